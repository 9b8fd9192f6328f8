"""PromoDesk: promotional campaign approvals and SRP masterlist service."""

__version__ = "1.0.0"
