"""
Campaign domain enums.

Campaign records are persisted as one JSON collection (see
promodesk.core.storage), so there is no table here; the enums are shared by
the schemas, the state machine and the export code.
"""
import enum


class CampaignStatus(str, enum.Enum):
    """Workflow status of a campaign."""
    DRAFT = "Draft"
    SUBMITTED = "Submitted"
    VALIDATED = "Validated"
    ACTIVE = "Active"
    COMPLETED = "Completed"
    RETURNED = "Returned"


class CampaignType(str, enum.Enum):
    """Type of promotional program."""
    LAZADA_CAMPAIGN = "Lazada Campaign"
    SHOPEE_CAMPAIGN = "Shopee Campaign"
    TIKTOK_CAMPAIGN = "Tiktok Campaign"
    GWP_FREEBIES = "GWP Freebies"
    GWP_SKUS = "GWP SKUs"
    BUNDLE_DEALS = "Bundle Deals"
    FAKE_PRICING = "Fake Pricing"
    VOUCHERS = "Vouchers"
    DIRECT_CAMPAIGN = "Direct Campaign"
