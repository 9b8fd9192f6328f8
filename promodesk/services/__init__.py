# Services module
from promodesk.services.campaign_service import CampaignStore
from promodesk.services.srp_masterlist_service import SrpMasterlistStore
from promodesk.services.trade_letter_scanner import TradeLetterScanner, prefill_campaign_draft

__all__ = [
    "CampaignStore",
    "SrpMasterlistStore",
    "TradeLetterScanner",
    "prefill_campaign_draft",
]
