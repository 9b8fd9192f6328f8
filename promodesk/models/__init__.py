# Models module
from promodesk.models.store_entry import StoreEntry
from promodesk.models.campaign import CampaignStatus, CampaignType
from promodesk.models.role import UserRole

__all__ = [
    "StoreEntry",
    "CampaignStatus",
    "CampaignType",
    "UserRole",
]
