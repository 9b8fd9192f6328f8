from datetime import date
import json

import pytest

from promodesk.core.exceptions import (
    NotFoundError,
    PermissionDenied,
    TransitionError,
    ValidationFailed,
)
from promodesk.core.session import SessionContext
from promodesk.core.storage import CAMPAIGNS_KEY, trade_letter_key, InMemoryStorage
from promodesk.models.campaign import CampaignStatus, CampaignType
from promodesk.models.role import UserRole
from promodesk.schemas.campaign import CampaignCreate, CampaignFilters, CampaignUpdate
from promodesk.services.campaign_service import CampaignStore, generate_campaign_id, to_base36
from promodesk.services.demo_data import DEMO_CAMPAIGNS


# ============== Loading ==============

async def test_missing_collection_falls_back_to_demo_data(seeded_store, storage, approver):
    campaigns = await seeded_store.list_for(approver)
    assert len(campaigns) == len(DEMO_CAMPAIGNS)
    # The fallback is written back immediately
    stored = json.loads(await storage.get(CAMPAIGNS_KEY))
    assert {c["id"] for c in stored} == {c["id"] for c in DEMO_CAMPAIGNS}


async def test_malformed_collection_is_replaced(feed, approver):
    storage = InMemoryStorage({CAMPAIGNS_KEY: "{not json"})
    store = CampaignStore(storage, feed, seed_demo_data=True)
    campaigns = await store.load()
    assert len(campaigns) == len(DEMO_CAMPAIGNS)
    assert json.loads(await storage.get(CAMPAIGNS_KEY))


async def test_malformed_collection_without_seeding_is_emptied(feed):
    storage = InMemoryStorage({CAMPAIGNS_KEY: "undefined"})
    store = CampaignStore(storage, feed, seed_demo_data=False)
    assert await store.load() == []
    assert await storage.get(CAMPAIGNS_KEY) == "[]"


async def test_persisted_layout_uses_camel_case(campaign_store, storage, commercial, summer_sale):
    await campaign_store.create(commercial, summer_sale)
    stored = json.loads(await storage.get(CAMPAIGNS_KEY))[0]
    assert stored["programName"] == "Summer Sale"
    assert stored["createdBy"] == "commercial@demo.com"
    assert stored["promotions"][0]["discountValue"] == 20


# ============== Create / Edit / Delete ==============

async def test_create_draft(campaign_store, commercial):
    campaign = await campaign_store.create(
        commercial,
        CampaignCreate(program_name="Quick Draft", campaign_type=CampaignType.VOUCHERS),
    )
    assert campaign.status == CampaignStatus.DRAFT
    assert campaign.id.startswith("CAM-")
    assert campaign.created_by == "commercial@demo.com"
    assert campaign.created_at == date.today()
    assert campaign.distributor == "Great Deals Ecommerce Corp"


async def test_create_and_submit_derives_discounts(campaign_store, commercial, summer_sale):
    summer_sale.submit = True
    campaign = await campaign_store.create(commercial, summer_sale)
    assert campaign.status == CampaignStatus.SUBMITTED
    assert campaign.promotions[0].discount_value == pytest.approx(20)
    assert campaign.promotions[0].discount_percentage == pytest.approx(20)


async def test_create_requires_program_name_and_type(campaign_store, storage, commercial):
    with pytest.raises(ValidationFailed):
        await campaign_store.create(commercial, CampaignCreate(program_name=" ", campaign_type=CampaignType.VOUCHERS))
    with pytest.raises(ValidationFailed):
        await campaign_store.create(commercial, CampaignCreate(program_name="No type"))
    assert await storage.get(CAMPAIGNS_KEY) is None


async def test_submit_requires_full_form(campaign_store, storage, commercial):
    data = CampaignCreate(program_name="Half done", campaign_type=CampaignType.VOUCHERS, submit=True)
    with pytest.raises(ValidationFailed):
        await campaign_store.create(commercial, data)
    assert json.loads(await storage.get(CAMPAIGNS_KEY)) == []


async def test_only_commercial_creates(campaign_store, approver, summer_sale):
    with pytest.raises(PermissionDenied):
        await campaign_store.create(approver, summer_sale)


async def test_update_draft(campaign_store, commercial, summer_sale):
    created = await campaign_store.create(commercial, summer_sale)
    updated = await campaign_store.update(
        commercial, created.id, CampaignUpdate(program_name="Summer Mega Sale", brand_name="SunnySide Plus")
    )
    assert updated.program_name == "Summer Mega Sale"
    assert updated.brand_name == "SunnySide Plus"
    assert updated.id == created.id
    assert updated.objectives == created.objectives
    assert (await campaign_store.get(commercial, created.id)).program_name == "Summer Mega Sale"


async def test_update_rejected_after_submission(campaign_store, commercial, summer_sale):
    summer_sale.submit = True
    created = await campaign_store.create(commercial, summer_sale)
    with pytest.raises(ValidationFailed):
        await campaign_store.update(commercial, created.id, CampaignUpdate(program_name="Too late"))


async def test_delete_removes_attachment(campaign_store, storage, commercial, summer_sale):
    summer_sale.trade_letter_data_uri = "data:application/pdf;base64,JVBERi0x"
    created = await campaign_store.create(commercial, summer_sale)
    assert await storage.get(trade_letter_key(created.id)) is not None

    await campaign_store.delete(commercial, created.id)

    assert await storage.get(trade_letter_key(created.id)) is None
    with pytest.raises(NotFoundError):
        await campaign_store.get(commercial, created.id)


async def test_other_commercial_user_cannot_delete(campaign_store, commercial, summer_sale):
    created = await campaign_store.create(commercial, summer_sale)
    other = SessionContext.for_role(UserRole.COMMERCIAL, "other@demo.com")
    with pytest.raises(NotFoundError):
        await campaign_store.delete(other, created.id)


# ============== Visibility & Filters ==============

async def test_shop_ops_sees_only_operational_statuses(seeded_store, shop_ops):
    campaigns = await seeded_store.list_for(shop_ops)
    assert campaigns
    assert {c.status for c in campaigns} <= {
        CampaignStatus.SUBMITTED,
        CampaignStatus.VALIDATED,
        CampaignStatus.ACTIVE,
        CampaignStatus.COMPLETED,
    }


async def test_invisible_record_reads_as_not_found(seeded_store, shop_ops):
    with pytest.raises(NotFoundError):
        await seeded_store.get(shop_ops, "CAM-003")  # Draft


async def test_commercial_sees_only_own_campaigns(seeded_store, commercial):
    other = SessionContext.for_role(UserRole.COMMERCIAL, "someone@demo.com")
    assert len(await seeded_store.list_for(commercial)) == len(DEMO_CAMPAIGNS)
    assert await seeded_store.list_for(other) == []


async def test_filters(seeded_store, finance):
    by_brand = await seeded_store.list_for(finance, CampaignFilters(brand="PencilPro"))
    assert {c.id for c in by_brand} == {"CAM-002", "CAM-006"}

    by_search = await seeded_store.list_for(finance, CampaignFilters(search="summer"))
    assert [c.id for c in by_search] == ["CAM-001"]

    overlapping = await seeded_store.list_for(
        finance, CampaignFilters(start_date=date(2024, 6, 15), end_date=date(2024, 7, 20))
    )
    assert {c.id for c in overlapping} == {"CAM-001", "CAM-002"}


async def test_list_is_newest_first(seeded_store, finance):
    campaigns = await seeded_store.list_for(finance)
    created = [c.created_at for c in campaigns]
    assert created == sorted(created, reverse=True)


async def test_approval_queue(seeded_store, approver, commercial):
    queue = await seeded_store.approval_queue(approver)
    assert [c.id for c in queue] == ["CAM-002"]
    with pytest.raises(PermissionDenied):
        await seeded_store.approval_queue(commercial)


# ============== Workflow ==============

async def test_summer_sale_return_and_resubmit(campaign_store, commercial, approver, shop_ops, summer_sale):
    summer_sale.submit = True
    campaign = await campaign_store.create(commercial, summer_sale)
    assert campaign.status == CampaignStatus.SUBMITTED

    returned = await campaign_store.transition(
        approver, campaign.id, CampaignStatus.RETURNED, remarks="SRP does not match the masterlist"
    )
    assert returned.status == CampaignStatus.RETURNED
    assert returned.remarks == "SRP does not match the masterlist"

    # Returned campaigns leave the shop-ops view
    with pytest.raises(NotFoundError):
        await campaign_store.get(shop_ops, campaign.id)

    await campaign_store.update(commercial, campaign.id, CampaignUpdate(objectives="Corrected SRPs"))
    resubmitted = await campaign_store.transition(commercial, campaign.id, CampaignStatus.SUBMITTED)
    assert resubmitted.status == CampaignStatus.SUBMITTED
    assert resubmitted.remarks is None

    validated = await campaign_store.transition(approver, campaign.id, CampaignStatus.VALIDATED)
    assert validated.approved_by == "approver@demo.com"
    assert validated.date_approved == date.today()

    active = await campaign_store.transition(shop_ops, campaign.id, CampaignStatus.ACTIVE)
    assert active.status == CampaignStatus.ACTIVE
    completed = await campaign_store.transition(shop_ops, campaign.id, CampaignStatus.COMPLETED)
    assert completed.status == CampaignStatus.COMPLETED


async def test_shop_ops_cannot_activate_a_draft(campaign_store, storage, commercial, shop_ops, summer_sale):
    campaign = await campaign_store.create(commercial, summer_sale)
    before = await storage.get(CAMPAIGNS_KEY)

    with pytest.raises((NotFoundError, TransitionError)):
        await campaign_store.transition(shop_ops, campaign.id, CampaignStatus.ACTIVE)

    assert await storage.get(CAMPAIGNS_KEY) == before


async def test_disallowed_transition_changes_nothing(campaign_store, storage, commercial, shop_ops, summer_sale):
    summer_sale.submit = True
    campaign = await campaign_store.create(commercial, summer_sale)
    before = await storage.get(CAMPAIGNS_KEY)

    with pytest.raises(TransitionError):
        await campaign_store.transition(shop_ops, campaign.id, CampaignStatus.ACTIVE)
    with pytest.raises(ValidationFailed):
        await campaign_store.transition(shop_ops, campaign.id, CampaignStatus.RETURNED, remarks="")

    assert await storage.get(CAMPAIGNS_KEY) == before


async def test_bulk_transition_is_best_effort(seeded_store, approver):
    result = await seeded_store.bulk_transition(
        approver, ["CAM-002", "CAM-003", "CAM-MISSING"], CampaignStatus.VALIDATED
    )
    assert result.succeeded == ["CAM-002"]
    assert {f.id for f in result.failed} == {"CAM-003", "CAM-MISSING"}
    assert result.updated_count == 1

    assert (await seeded_store.get(approver, "CAM-002")).status == CampaignStatus.VALIDATED
    assert (await seeded_store.get(approver, "CAM-003")).status == CampaignStatus.DRAFT


async def test_bulk_transition_all_failed_writes_nothing(seeded_store, storage, shop_ops):
    await seeded_store.load()
    before = await storage.get(CAMPAIGNS_KEY)
    result = await seeded_store.bulk_transition(shop_ops, ["CAM-001"], CampaignStatus.VALIDATED)
    assert result.succeeded == []
    assert await storage.get(CAMPAIGNS_KEY) == before


# ============== Change notification ==============

async def test_other_store_sees_writes_through_change_feed(storage, feed, commercial, approver, summer_sale):
    dashboard = CampaignStore(storage, feed, seed_demo_data=False)
    editor = CampaignStore(storage, feed, seed_demo_data=False)

    assert await dashboard.list_for(approver) == []

    created = await editor.create(commercial, summer_sale)

    assert [c.id for c in await dashboard.list_for(approver)] == [created.id]


async def test_cancelled_subscription_keeps_stale_cache(storage, feed, commercial, approver, summer_sale):
    dashboard = CampaignStore(storage, feed, seed_demo_data=False)
    editor = CampaignStore(storage, feed, seed_demo_data=False)
    await dashboard.list_for(approver)
    dashboard.close()

    await editor.create(commercial, summer_sale)

    assert await dashboard.list_for(approver) == []
    assert len(await dashboard.load()) == 1


# ============== Trade letters ==============

async def test_trade_letter_attachment(campaign_store, commercial, approver, summer_sale):
    created = await campaign_store.create(commercial, summer_sale)
    with pytest.raises(NotFoundError):
        await campaign_store.get_trade_letter(approver, created.id)

    await campaign_store.set_trade_letter(commercial, created.id, "data:image/png;base64,iVBORw0KGgo=")
    assert await campaign_store.get_trade_letter(approver, created.id) == "data:image/png;base64,iVBORw0KGgo="


async def test_trade_letter_must_be_data_uri(campaign_store, commercial, summer_sale):
    created = await campaign_store.create(commercial, summer_sale)
    with pytest.raises(ValidationFailed):
        await campaign_store.set_trade_letter(commercial, created.id, "https://example.com/letter.pdf")


# ============== Ids ==============

def test_campaign_ids_are_unique():
    first = generate_campaign_id()
    second = generate_campaign_id({first})
    assert first != second
    assert first.startswith("CAM-")


def test_base36():
    assert to_base36(0) == "0"
    assert to_base36(35) == "Z"
    assert to_base36(36) == "10"


# ============== Available actions ==============

async def test_actions_for_approver_on_submitted(seeded_store, approver):
    actions = await seeded_store.actions(approver, "CAM-002")

    assert actions.activity_label == "Submitted to Shop Ops"
    assert not actions.can_edit
    assert [(t.status, t.action, t.requires_remarks) for t in actions.transitions] == [
        (CampaignStatus.VALIDATED, "Approve", False),
        (CampaignStatus.RETURNED, "Return for Revision", True),
    ]


async def test_actions_for_owner_of_returned_campaign(seeded_store, commercial):
    actions = await seeded_store.actions(commercial, "CAM-006")

    assert actions.activity_label == "Needs Revision"
    assert actions.can_edit and actions.can_submit
    assert [t.action for t in actions.transitions] == ["Resubmit"]


async def test_actions_for_completed_campaign(seeded_store, finance):
    actions = await seeded_store.actions(finance, "CAM-005")

    assert actions.is_terminal
    assert actions.activity_label == "Campaign Ended"
    assert actions.transitions == []
    assert not actions.can_edit


async def test_actions_respect_visibility(seeded_store, shop_ops):
    with pytest.raises(NotFoundError):
        await seeded_store.actions(shop_ops, "CAM-003")
