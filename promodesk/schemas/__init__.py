# Schemas module
from promodesk.schemas.base import CamelModel
from promodesk.schemas.campaign import (
    Campaign,
    CampaignCreate,
    CampaignUpdate,
    CampaignDraft,
    ProductPromotion,
)
from promodesk.schemas.srp import SKUItem, SrpVersion
from promodesk.schemas.extraction import ExtractionResult

__all__ = [
    "CamelModel",
    "Campaign",
    "CampaignCreate",
    "CampaignUpdate",
    "CampaignDraft",
    "ProductPromotion",
    "SKUItem",
    "SrpVersion",
    "ExtractionResult",
]
