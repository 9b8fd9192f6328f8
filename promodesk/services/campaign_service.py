"""
Campaign Store.

The whole campaign collection is read and written as one JSON document under
the ``campaigns`` key. load() and save() are the only places that touch the
storage backend for it; everything else works on Campaign objects.

Reads are served from a per-store cache that is dropped whenever another
store instance publishes a change for the collection. Mutations always
re-read the backing store before writing, but two writers racing on the
same collection still resolve as last-writer-wins.
"""
from datetime import date, datetime, timezone
from typing import List, Optional
import json
import logging
import uuid

from pydantic import TypeAdapter, ValidationError

from promodesk.config import settings
from promodesk.core.change_feed import ChangeEvent, ChangeFeed
from promodesk.core.exceptions import (
    NotFoundError,
    PermissionDenied,
    StoreReadError,
    TransitionError,
    ValidationFailed,
)
from promodesk.core.session import SessionContext
from promodesk.core.storage import StorageBackend, CAMPAIGNS_KEY, trade_letter_key
from promodesk.models.campaign import CampaignStatus
from promodesk.models.role import UserRole
from promodesk.schemas.campaign import (
    BulkTransitionFailure,
    BulkTransitionResult,
    Campaign,
    CampaignActions,
    CampaignCreate,
    CampaignFilters,
    CampaignUpdate,
    TransitionOption,
)
from promodesk.services import campaign_state_machine as workflow
from promodesk.services.demo_data import get_demo_campaigns
from promodesk.services.promotion_pricing import derive_all

logger = logging.getLogger(__name__)

_campaign_list = TypeAdapter(List[Campaign])

_BASE36 = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ"


def to_base36(number: int) -> str:
    if number == 0:
        return "0"
    digits = []
    while number:
        number, remainder = divmod(number, 36)
        digits.append(_BASE36[remainder])
    return "".join(reversed(digits))


def generate_campaign_id(existing: Optional[set] = None, now: Optional[datetime] = None) -> str:
    """CAM-<base36 millisecond timestamp>, bumped forward until unused."""
    existing = existing or set()
    now = now or datetime.now(timezone.utc)
    millis = int(now.timestamp() * 1000)
    campaign_id = f"CAM-{to_base36(millis)}"
    while campaign_id in existing:
        millis += 1
        campaign_id = f"CAM-{to_base36(millis)}"
    return campaign_id


def matches_filters(campaign: Campaign, filters: CampaignFilters) -> bool:
    """Dashboard filters. The date range keeps campaigns overlapping it."""
    if filters.search:
        term = filters.search.strip().lower()
        haystacks = [campaign.program_name or "", campaign.brand_name or ""]
        if term and not any(term in h.lower() for h in haystacks):
            return False

    if filters.status and campaign.status != filters.status:
        return False

    if filters.campaign_type and campaign.campaign_type != filters.campaign_type:
        return False

    if filters.brand and campaign.brand_name != filters.brand:
        return False

    # Undated campaigns never overlap a requested range
    if filters.start_date:
        if campaign.end_date is None or campaign.end_date < filters.start_date:
            return False
    if filters.end_date:
        if campaign.start_date is None or campaign.start_date > filters.end_date:
            return False

    return True


def sort_newest_first(campaigns: List[Campaign]) -> List[Campaign]:
    return sorted(campaigns, key=lambda c: (c.created_at, c.id), reverse=True)


class CampaignStore:
    """Campaign records, their workflow and their trade letter attachments."""

    def __init__(
        self,
        storage: StorageBackend,
        feed: Optional[ChangeFeed] = None,
        seed_demo_data: Optional[bool] = None,
        default_distributor: Optional[str] = None,
    ):
        self.storage = storage
        self.feed = feed
        self.seed_demo_data = settings.SEED_DEMO_DATA if seed_demo_data is None else seed_demo_data
        self.default_distributor = default_distributor or settings.DEFAULT_DISTRIBUTOR
        self.origin = f"campaigns-{uuid.uuid4().hex[:8]}"
        self._cache: Optional[List[Campaign]] = None
        self._subscription = feed.subscribe(CAMPAIGNS_KEY, self._on_change) if feed else None

    def _on_change(self, event: ChangeEvent) -> None:
        if event.origin != self.origin:
            self._cache = None

    def close(self) -> None:
        if self._subscription is not None:
            self._subscription.cancel()

    # ==================== Persistence ====================

    async def _read(self) -> List[Campaign]:
        raw = await self.storage.get(CAMPAIGNS_KEY)
        if raw is None or raw == "undefined":
            raise StoreReadError(CAMPAIGNS_KEY, "no campaigns stored")
        try:
            return _campaign_list.validate_json(raw)
        except ValidationError as e:
            raise StoreReadError(CAMPAIGNS_KEY, f"malformed campaign data ({e.error_count()} errors)")

    async def load(self) -> List[Campaign]:
        """
        Read the collection fresh from storage.

        Absent or malformed data is replaced with the demo data set (or an
        empty list when seeding is off), which is written back immediately.
        """
        try:
            campaigns = await self._read()
        except StoreReadError as e:
            logger.warning(f"{e.message}. Falling back to demo campaigns.")
            campaigns = get_demo_campaigns() if self.seed_demo_data else []
            await self.save(campaigns)
            return list(campaigns)

        self._cache = list(campaigns)
        return campaigns

    async def save(self, campaigns: List[Campaign]) -> None:
        payload = json.dumps([c.to_storage() for c in campaigns])
        await self.storage.set(CAMPAIGNS_KEY, payload)
        self._cache = list(campaigns)
        self._publish(CAMPAIGNS_KEY)

    async def _cached(self) -> List[Campaign]:
        if self._cache is None:
            return await self.load()
        return list(self._cache)

    def _publish(self, key: str) -> None:
        if self.feed is not None:
            self.feed.publish(key, origin=self.origin)

    # ==================== Queries ====================

    async def list_for(
        self, session: SessionContext, filters: Optional[CampaignFilters] = None
    ) -> List[Campaign]:
        """Campaigns visible to the session, filtered, newest first."""
        campaigns = workflow.filter_visible(await self._cached(), session.role, session.user)
        if filters is not None:
            campaigns = [c for c in campaigns if matches_filters(c, filters)]
        return sort_newest_first(campaigns)

    async def approval_queue(self, session: SessionContext) -> List[Campaign]:
        """Submitted campaigns awaiting the approver."""
        if session.role != UserRole.COMMERCIAL_APPROVER:
            raise PermissionDenied("Only the commercial approver has an approval queue.")
        return await self.list_for(session, CampaignFilters(status=CampaignStatus.SUBMITTED))

    async def get(self, session: SessionContext, campaign_id: str) -> Campaign:
        return self._find_visible(await self._cached(), session, campaign_id)

    async def actions(self, session: SessionContext, campaign_id: str) -> CampaignActions:
        """Activity label and the edit/submit/transition options open to the session."""
        campaign = await self.get(session, campaign_id)
        is_owner = session.role == UserRole.COMMERCIAL and campaign.created_by == session.user
        return CampaignActions(
            campaign_id=campaign.id,
            status=campaign.status,
            activity_label=workflow.get_activity_label(campaign.status),
            is_terminal=workflow.is_terminal(campaign.status),
            can_edit=is_owner and workflow.can_edit(campaign.status),
            can_submit=is_owner and workflow.can_submit(campaign.status),
            transitions=[
                TransitionOption(
                    status=target,
                    action=workflow.get_transition_action(campaign.status, target),
                    requires_remarks=workflow.requires_remarks(target),
                )
                for target in workflow.get_allowed_transitions(session.role, campaign.status)
            ],
        )

    async def brands(self) -> List[str]:
        """Distinct brand names across every campaign (for the brand filter)."""
        return sorted({c.brand_name for c in await self._cached() if c.brand_name})

    def _find_visible(self, campaigns: List[Campaign], session: SessionContext, campaign_id: str) -> Campaign:
        for campaign in campaigns:
            if campaign.id == campaign_id:
                if workflow.is_visible(campaign, session.role, session.user):
                    return campaign
                break
        raise NotFoundError(f"Campaign '{campaign_id}' not found", {"id": campaign_id})

    @staticmethod
    def _index_of(campaigns: List[Campaign], campaign_id: str) -> int:
        for i, campaign in enumerate(campaigns):
            if campaign.id == campaign_id:
                return i
        raise NotFoundError(f"Campaign '{campaign_id}' not found", {"id": campaign_id})

    # ==================== Commands ====================

    @staticmethod
    def _require_commercial(session: SessionContext, action: str) -> None:
        if session.role != UserRole.COMMERCIAL:
            raise PermissionDenied(f"Only commercial users can {action} campaigns.")

    async def create(self, session: SessionContext, data: CampaignCreate) -> Campaign:
        """
        Create a campaign as Draft, or as Submitted when data.submit is set.

        Submitting runs the full submission validation; a plain draft only
        needs a program name and a campaign type.
        """
        self._require_commercial(session, "create")

        if not (data.program_name or "").strip():
            raise ValidationFailed("Program name is required", field="program_name")
        if data.campaign_type is None:
            raise ValidationFailed("Please select a campaign type.", field="campaign_type")

        campaigns = await self.load()
        fields = data.model_dump(exclude={"submit", "trade_letter_data_uri"})
        fields["promotions"] = derive_all(data.promotions)
        fields["distributor"] = data.distributor or self.default_distributor

        campaign = Campaign(
            **fields,
            id=generate_campaign_id({c.id for c in campaigns}),
            status=CampaignStatus.DRAFT,
            created_by=session.user,
            created_at=date.today(),
        )
        if data.submit:
            campaign = workflow.transition_campaign(
                campaign, CampaignStatus.SUBMITTED, session.role, session.user
            )

        campaigns.append(campaign)
        await self.save(campaigns)

        if data.trade_letter_data_uri:
            await self._write_trade_letter(campaign.id, data.trade_letter_data_uri)

        logger.info(f"Campaign {campaign.id} created by {session.user} as {campaign.status.value}")
        return campaign

    async def update(self, session: SessionContext, campaign_id: str, data: CampaignUpdate) -> Campaign:
        """Edit a Draft/Returned campaign owned by the session user."""
        self._require_commercial(session, "edit")

        campaigns = await self.load()
        existing = self._find_visible(campaigns, session, campaign_id)
        if not workflow.can_edit(existing.status):
            raise ValidationFailed(
                f"Campaign in '{existing.status.value}' status cannot be edited.",
                field="status",
            )

        changes = data.model_dump(exclude_unset=True)
        if "program_name" in changes and not (changes["program_name"] or "").strip():
            raise ValidationFailed("Program name is required", field="program_name")
        if "campaign_type" in changes and changes["campaign_type"] is None:
            raise ValidationFailed("Please select a campaign type.", field="campaign_type")

        merged = existing.model_dump()
        merged.update(changes)
        updated = Campaign.model_validate(merged)
        updated = updated.model_copy(update={"promotions": derive_all(updated.promotions)})

        campaigns[self._index_of(campaigns, campaign_id)] = updated
        await self.save(campaigns)
        logger.info(f"Campaign {campaign_id} updated by {session.user}")
        return updated

    async def delete(self, session: SessionContext, campaign_id: str) -> None:
        """Remove a campaign and its trade letter attachment."""
        self._require_commercial(session, "delete")

        campaigns = await self.load()
        self._find_visible(campaigns, session, campaign_id)
        remaining = [c for c in campaigns if c.id != campaign_id]
        await self.save(remaining)

        if await self.storage.remove(trade_letter_key(campaign_id)):
            self._publish(trade_letter_key(campaign_id))

        logger.info(f"Campaign {campaign_id} deleted by {session.user}")

    async def transition(
        self,
        session: SessionContext,
        campaign_id: str,
        status: CampaignStatus,
        remarks: Optional[str] = None,
    ) -> Campaign:
        """Move one campaign to a new status. Nothing is written on failure."""
        campaigns = await self.load()
        existing = self._find_visible(campaigns, session, campaign_id)
        updated = workflow.transition_campaign(
            existing, status, session.role, session.user, remarks=remarks
        )

        campaigns[self._index_of(campaigns, campaign_id)] = updated
        await self.save(campaigns)
        logger.info(
            f"Campaign {campaign_id}: {existing.status.value} -> {updated.status.value} "
            f"by {session.role.value}"
        )
        return updated

    async def bulk_transition(
        self,
        session: SessionContext,
        campaign_ids: List[str],
        status: CampaignStatus,
        remarks: Optional[str] = None,
    ) -> BulkTransitionResult:
        """
        Apply the same transition to many campaigns.

        Each campaign is checked on its own; failures are reported per id and
        never undo the successes. All successes are saved in one write.
        """
        campaigns = await self.load()
        result = BulkTransitionResult(status=status)

        for campaign_id in dict.fromkeys(campaign_ids):
            try:
                existing = self._find_visible(campaigns, session, campaign_id)
                updated = workflow.transition_campaign(
                    existing, status, session.role, session.user, remarks=remarks
                )
            except (NotFoundError, TransitionError, ValidationFailed) as e:
                result.failed.append(BulkTransitionFailure(id=campaign_id, reason=e.message))
                continue

            campaigns[self._index_of(campaigns, campaign_id)] = updated
            result.succeeded.append(campaign_id)

        if result.succeeded:
            await self.save(campaigns)

        logger.info(
            f"Bulk transition to {CampaignStatus(status).value} by {session.role.value}: "
            f"{len(result.succeeded)} succeeded, {len(result.failed)} failed"
        )
        return result

    # ==================== Trade letter attachments ====================

    async def get_trade_letter(self, session: SessionContext, campaign_id: str) -> str:
        """Data URI of the attached trade letter."""
        await self.get(session, campaign_id)
        data_uri = await self.storage.get(trade_letter_key(campaign_id))
        if not data_uri:
            raise NotFoundError(
                f"No trade letter attached to campaign '{campaign_id}'", {"id": campaign_id}
            )
        return data_uri

    async def set_trade_letter(self, session: SessionContext, campaign_id: str, data_uri: str) -> None:
        """Attach (or replace) the trade letter of a campaign owned by the session."""
        self._require_commercial(session, "attach trade letters to")
        if not data_uri or not data_uri.startswith("data:"):
            raise ValidationFailed("Trade letter must be a data URI.", field="data_uri")

        campaigns = await self.load()
        self._find_visible(campaigns, session, campaign_id)
        await self._write_trade_letter(campaign_id, data_uri)

    async def _write_trade_letter(self, campaign_id: str, data_uri: str) -> None:
        await self.storage.set(trade_letter_key(campaign_id), data_uri)
        self._publish(trade_letter_key(campaign_id))
