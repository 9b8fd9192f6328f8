"""Pydantic schemas for the SRP masterlist and its version history."""
from datetime import datetime
from typing import Optional, List, Union
import re

from pydantic import Field, field_validator

from promodesk.schemas.base import CamelModel, blank_to_none


PRICE_FIELDS = (
    "srp_per_case_vatin",
    "srp_per_case_vatex",
    "srp_per_piece_vatin",
    "srp_per_piece_vatex",
)

_NUMBER_RE = re.compile(r"^-?\d+(\.\d+)?([eE][-+]?\d+)?$")


class SKUItemFields(CamelModel):
    """Price-list attributes of one product row. Every attribute is optional."""
    platform: Optional[str] = None
    sku: Optional[str] = None
    product_name: Optional[str] = None
    business_unit: Optional[str] = None
    brand: Optional[str] = None
    sub_brand: Optional[str] = None
    case_configuration: Optional[str] = None
    unit_of_measure: Optional[str] = None
    srp_per_case_vatin: Optional[Union[float, str]] = None
    srp_per_case_vatex: Optional[Union[float, str]] = None
    srp_per_piece_vatin: Optional[Union[float, str]] = None
    srp_per_piece_vatex: Optional[Union[float, str]] = None
    date_start: Optional[str] = None
    date_end: Optional[str] = None
    time_start: Optional[str] = None
    time_end: Optional[str] = None
    remarks: Optional[str] = None
    lazada_shop_sku: Optional[str] = None
    shopee_product_id: Optional[str] = None
    shopee_variation_id: Optional[str] = None

    @field_validator("*", mode="before")
    @classmethod
    def _normalise(cls, v, info):
        v = blank_to_none(v)
        if v is None:
            return None
        if info.field_name in PRICE_FIELDS:
            if isinstance(v, str) and _NUMBER_RE.match(v.strip()):
                return float(v.strip())
            if isinstance(v, (int, float)) and not isinstance(v, bool):
                return float(v)
            return str(v).strip()
        # CSV cells and numeric JSON values both end up as text
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return v


class SKUItem(SKUItemFields):
    """One row of the price masterlist. The id is only unique within one snapshot."""
    id: str


class SrpVersion(CamelModel):
    """Immutable snapshot of the whole masterlist."""
    version: int = Field(..., ge=1)
    timestamp: datetime
    reason: str
    user: str
    data: List[SKUItem] = Field(default_factory=list)
    original_file_name: Optional[str] = None


class SrpVersionSummary(CamelModel):
    """Version metadata without the rows, for history listings."""
    version: int
    timestamp: datetime
    reason: str
    user: str
    original_file_name: Optional[str] = None
    row_count: int

    @classmethod
    def from_version(cls, version: SrpVersion) -> "SrpVersionSummary":
        return cls(
            version=version.version,
            timestamp=version.timestamp,
            reason=version.reason,
            user=version.user,
            original_file_name=version.original_file_name,
            row_count=len(version.data),
        )


class SrpCommitRequest(CamelModel):
    """Confirm a previewed upload (or any full row list) as a new version."""
    rows: List[SKUItem]
    reason: str = ""
    original_file_name: Optional[str] = None


class SrpRowEditRequest(CamelModel):
    """Replace one row of the current snapshot and save as a new version."""
    item: SKUItemFields
    reason: str = ""


class SrpPreviewResponse(CamelModel):
    """Uploaded-but-unconfirmed rows. Never persisted."""
    file_name: Optional[str] = None
    row_count: int
    rows: List[SKUItem]


class SrpFacets(CamelModel):
    platforms: List[str] = Field(default_factory=list)
    brands: List[str] = Field(default_factory=list)
    business_units: List[str] = Field(default_factory=list)


class SrpMasterlistResponse(CamelModel):
    """Current snapshot, optionally filtered."""
    version: Optional[int] = None
    original_file_name: Optional[str] = None
    total: int
    items: List[SKUItem]
    facets: SrpFacets
