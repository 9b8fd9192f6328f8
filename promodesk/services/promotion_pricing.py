"""
Promotion pricing derivation.

Given an SRP and a discounted price, fill in whichever of discount value and
discount percentage is missing:

    discount_value      = srp - discounted_price
    discount_percentage = 100 * (srp - discounted_price) / srp   (0 when srp <= 0)

Values that are already present are never overwritten, so running the
derivation twice gives the same result as running it once.
"""
from typing import Iterable, List, Optional

from promodesk.schemas.campaign import ProductPromotion


def calculate_discount_value(srp: float, discounted_price: float) -> float:
    return srp - discounted_price


def calculate_discount_percentage(srp: float, discounted_price: float) -> float:
    if srp <= 0:
        return 0
    return (srp - discounted_price) / srp * 100


def derive_discount_fields(promotion: ProductPromotion) -> ProductPromotion:
    """Return a copy with missing discount fields derived."""
    if promotion.srp is None or promotion.discounted_price is None:
        return promotion

    updates = {}
    if promotion.discount_value is None:
        updates["discount_value"] = calculate_discount_value(
            promotion.srp, promotion.discounted_price
        )
    if promotion.discount_percentage is None:
        updates["discount_percentage"] = calculate_discount_percentage(
            promotion.srp, promotion.discounted_price
        )
    if not updates:
        return promotion
    return promotion.model_copy(update=updates)


def derive_all(promotions: Optional[Iterable[ProductPromotion]]) -> List[ProductPromotion]:
    return [derive_discount_fields(p) for p in promotions or []]
