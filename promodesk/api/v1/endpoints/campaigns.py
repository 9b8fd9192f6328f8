"""
Campaign API Endpoints.

Provides:
- Role-filtered campaign list, approval queue and CSV export
- Create (draft or submit), edit and delete for commercial
- Single and bulk status transitions
- Trade letter attachments
"""
from datetime import date
from typing import Annotated, List, Optional

from fastapi import APIRouter, Query, Response, status

from promodesk.api.deps import Campaigns, Session
from promodesk.core.exceptions import NotFoundError
from promodesk.models.campaign import CampaignStatus, CampaignType
from promodesk.schemas.campaign import (
    BulkTransitionRequest,
    BulkTransitionResult,
    Campaign,
    CampaignActions,
    CampaignCreate,
    CampaignFilters,
    CampaignUpdate,
    TradeLetterAttachment,
    TradeLetterAttachmentRequest,
    TransitionRequest,
)
from promodesk.services.campaign_export import EXPORT_FILENAME, export_campaigns_csv


router = APIRouter(prefix="/campaigns", tags=["Campaigns"])


def _filters(
    search: Annotated[Optional[str], Query()] = None,
    status: Annotated[Optional[CampaignStatus], Query()] = None,
    campaign_type: Annotated[Optional[CampaignType], Query(alias="campaignType")] = None,
    brand: Annotated[Optional[str], Query()] = None,
    start_date: Annotated[Optional[date], Query(alias="startDate")] = None,
    end_date: Annotated[Optional[date], Query(alias="endDate")] = None,
) -> CampaignFilters:
    return CampaignFilters(
        search=search,
        status=status,
        campaign_type=campaign_type,
        brand=brand,
        start_date=start_date,
        end_date=end_date,
    )


# ============== Listing ==============

@router.get("", response_model=List[Campaign])
async def list_campaigns(
    session: Session,
    store: Campaigns,
    search: Annotated[Optional[str], Query()] = None,
    status: Annotated[Optional[CampaignStatus], Query()] = None,
    campaign_type: Annotated[Optional[CampaignType], Query(alias="campaignType")] = None,
    brand: Annotated[Optional[str], Query()] = None,
    start_date: Annotated[Optional[date], Query(alias="startDate")] = None,
    end_date: Annotated[Optional[date], Query(alias="endDate")] = None,
):
    """Campaigns visible to the acting role, newest first."""
    filters = _filters(search, status, campaign_type, brand, start_date, end_date)
    return await store.list_for(session, filters)


@router.get("/approvals", response_model=List[Campaign])
async def approval_queue(session: Session, store: Campaigns):
    """Submitted campaigns waiting for the commercial approver."""
    return await store.approval_queue(session)


@router.get("/brands", response_model=List[str])
async def list_brands(session: Session, store: Campaigns):
    return await store.brands()


@router.get("/export")
async def export_campaigns(
    session: Session,
    store: Campaigns,
    search: Annotated[Optional[str], Query()] = None,
    status: Annotated[Optional[CampaignStatus], Query()] = None,
    campaign_type: Annotated[Optional[CampaignType], Query(alias="campaignType")] = None,
    brand: Annotated[Optional[str], Query()] = None,
    start_date: Annotated[Optional[date], Query(alias="startDate")] = None,
    end_date: Annotated[Optional[date], Query(alias="endDate")] = None,
):
    """CSV of the filtered list: one row per campaign and promotion."""
    filters = _filters(search, status, campaign_type, brand, start_date, end_date)
    campaigns = await store.list_for(session, filters)
    if not campaigns:
        raise NotFoundError("There are no campaigns matching the current filters.")

    return Response(
        content=export_campaigns_csv(campaigns),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{EXPORT_FILENAME}"'},
    )


# ============== Create / Edit / Delete ==============

@router.post("", response_model=Campaign, status_code=status.HTTP_201_CREATED)
async def create_campaign(data: CampaignCreate, session: Session, store: Campaigns):
    """Create a campaign as Draft, or submit it straight away with submit=true."""
    return await store.create(session, data)


@router.post("/bulk-transition", response_model=BulkTransitionResult)
async def bulk_transition(data: BulkTransitionRequest, session: Session, store: Campaigns):
    """
    Apply one transition to many campaigns.

    Best effort: every campaign is checked on its own and the response lists
    which ids succeeded and why the others failed.
    """
    return await store.bulk_transition(session, data.ids, data.status, data.remarks)


@router.get("/{campaign_id}", response_model=Campaign)
async def get_campaign(campaign_id: str, session: Session, store: Campaigns):
    return await store.get(session, campaign_id)


@router.get("/{campaign_id}/actions", response_model=CampaignActions)
async def get_campaign_actions(campaign_id: str, session: Session, store: Campaigns):
    """Activity label plus the edit, submit and transition options for the acting role."""
    return await store.actions(session, campaign_id)


@router.put("/{campaign_id}", response_model=Campaign)
async def update_campaign(
    campaign_id: str,
    data: CampaignUpdate,
    session: Session,
    store: Campaigns,
):
    """Edit a Draft or Returned campaign."""
    return await store.update(session, campaign_id, data)


@router.delete("/{campaign_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_campaign(campaign_id: str, session: Session, store: Campaigns):
    await store.delete(session, campaign_id)


# ============== Workflow ==============

@router.post("/{campaign_id}/transition", response_model=Campaign)
async def transition_campaign(
    campaign_id: str,
    data: TransitionRequest,
    session: Session,
    store: Campaigns,
):
    """Move a campaign to a new status. Returning a campaign requires remarks."""
    return await store.transition(session, campaign_id, data.status, data.remarks)


# ============== Trade Letter ==============

@router.get("/{campaign_id}/trade-letter", response_model=TradeLetterAttachment)
async def get_trade_letter(campaign_id: str, session: Session, store: Campaigns):
    data_uri = await store.get_trade_letter(session, campaign_id)
    return TradeLetterAttachment(campaign_id=campaign_id, data_uri=data_uri)


@router.put("/{campaign_id}/trade-letter", response_model=TradeLetterAttachment)
async def set_trade_letter(
    campaign_id: str,
    data: TradeLetterAttachmentRequest,
    session: Session,
    store: Campaigns,
):
    await store.set_trade_letter(session, campaign_id, data.data_uri)
    return TradeLetterAttachment(campaign_id=campaign_id, data_uri=data.data_uri)
