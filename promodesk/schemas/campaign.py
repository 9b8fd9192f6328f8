"""Pydantic schemas for campaigns and their product promotions."""
from datetime import date
from typing import Optional, List

from pydantic import Field, field_validator

from promodesk.schemas.base import CamelModel, BaseUpdateSchema, blank_to_none
from promodesk.models.campaign import CampaignStatus, CampaignType


_OPTIONAL_DATE_FIELDS = ("start_date", "end_date", "trade_letter_date")


# ==================== Product Promotion Schemas ====================

class ProductPromotion(CamelModel):
    """One product line of a campaign. Ordering only matters for display."""
    product_name: str = ""
    barcode: str = ""
    srp: float = Field(0, ge=0)  # Suggested Retail Price, VAT inclusive
    discounted_price: Optional[float] = None
    discount_value: Optional[float] = None
    discount_percentage: Optional[float] = None

    @field_validator("discounted_price", "discount_value", "discount_percentage", mode="before")
    @classmethod
    def _blank_numbers(cls, v):
        return blank_to_none(v)


# ==================== Campaign Schemas ====================

class CampaignFields(CamelModel):
    """Fields a commercial user fills in (by hand or from a scanned trade letter)."""
    program_name: str = ""
    brand_name: Optional[str] = None
    campaign_type: Optional[CampaignType] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    objectives: Optional[str] = None

    # Trade letter fields
    trade_letter_date: Optional[date] = None
    distributor: Optional[str] = None
    promotion_duration: Optional[str] = None
    website: Optional[str] = None
    extracted_remarks: Optional[str] = None
    promotions: List[ProductPromotion] = Field(default_factory=list)
    approvers: List[str] = Field(default_factory=list)

    @field_validator(*_OPTIONAL_DATE_FIELDS, mode="before")
    @classmethod
    def _blank_dates(cls, v):
        return blank_to_none(v)


class Campaign(CampaignFields):
    """A promotional program tracked through the approval workflow."""
    id: str
    campaign_type: CampaignType
    status: CampaignStatus = CampaignStatus.DRAFT
    remarks: Optional[str] = None
    created_by: str
    created_at: date
    approved_by: Optional[str] = None
    date_approved: Optional[date] = None


class CampaignCreate(CampaignFields):
    """Schema for creating a campaign as Draft, or submitting it straight away."""
    submit: bool = False
    trade_letter_data_uri: Optional[str] = None


class CampaignUpdate(BaseUpdateSchema):
    """Schema for editing a Draft/Returned campaign. Status is not editable here."""
    program_name: Optional[str] = None
    brand_name: Optional[str] = None
    campaign_type: Optional[CampaignType] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    objectives: Optional[str] = None
    trade_letter_date: Optional[date] = None
    distributor: Optional[str] = None
    promotion_duration: Optional[str] = None
    website: Optional[str] = None
    extracted_remarks: Optional[str] = None
    promotions: Optional[List[ProductPromotion]] = None
    approvers: Optional[List[str]] = None

    @field_validator(*_OPTIONAL_DATE_FIELDS, mode="before")
    @classmethod
    def _blank_dates(cls, v):
        return blank_to_none(v)


class CampaignFilters(CamelModel):
    """List filters. Date range matches campaigns overlapping [start_date, end_date]."""
    search: Optional[str] = None
    status: Optional[CampaignStatus] = None
    campaign_type: Optional[CampaignType] = None
    brand: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None


# ==================== Transition Schemas ====================

class TransitionRequest(CamelModel):
    """Move one campaign to a new status."""
    status: CampaignStatus
    remarks: Optional[str] = None


class BulkTransitionRequest(CamelModel):
    """Move many campaigns to the same status, each checked independently."""
    ids: List[str] = Field(..., min_length=1)
    status: CampaignStatus
    remarks: Optional[str] = None


class TransitionOption(CamelModel):
    """One status change the acting role may apply."""
    status: CampaignStatus
    action: str
    requires_remarks: bool = False


class CampaignActions(CamelModel):
    """What the acting role can do with one campaign, plus its activity text."""
    campaign_id: str
    status: CampaignStatus
    activity_label: str
    is_terminal: bool
    can_edit: bool
    can_submit: bool
    transitions: List[TransitionOption] = Field(default_factory=list)


class BulkTransitionFailure(CamelModel):
    id: str
    reason: str


class BulkTransitionResult(CamelModel):
    """Outcome of a best-effort batch: successes are kept even when others fail."""
    status: CampaignStatus
    succeeded: List[str] = Field(default_factory=list)
    failed: List[BulkTransitionFailure] = Field(default_factory=list)

    @property
    def updated_count(self) -> int:
        return len(self.succeeded)


# ==================== Trade Letter Schemas ====================

class CampaignDraft(CampaignFields):
    """Pre-filled form values for a new campaign."""
    pass


class TradeLetterScanResponse(CamelModel):
    """Pre-filled draft plus a non-fatal warning when extraction failed."""
    draft: CampaignDraft
    warning: Optional[str] = None
    file_name: Optional[str] = None
    trade_letter_data_uri: Optional[str] = None


class TradeLetterAttachment(CamelModel):
    campaign_id: str
    data_uri: str


class TradeLetterAttachmentRequest(CamelModel):
    """Attach a trade letter (as a data URI) to an existing campaign."""
    data_uri: str
