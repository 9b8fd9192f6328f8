"""Schemas for the trade letter extraction service boundary."""
from typing import Optional, List

from pydantic import Field

from promodesk.schemas.base import CamelModel
from promodesk.schemas.campaign import ProductPromotion


class ExtractionResult(CamelModel):
    """
    Best-effort fields read from a trade letter.

    Every field is optional. Dates are kept as the strings the service
    returned (expected YYYY-MM-DD); they are parsed when the result seeds a
    campaign draft.
    """
    brand_name: Optional[str] = None
    program_name: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    objectives: Optional[str] = None
    trade_letter_date: Optional[str] = None
    distributor: Optional[str] = None
    promotion_duration: Optional[str] = None
    website: Optional[str] = None
    remarks: Optional[str] = None
    promotions: List[ProductPromotion] = Field(default_factory=list)
    approvers: List[str] = Field(default_factory=list)
