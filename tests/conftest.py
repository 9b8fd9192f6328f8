import os

# Settings are read once at import time; pin them before promodesk is imported
os.environ["STORAGE_BACKEND"] = "memory"
os.environ["GEMINI_API_KEY"] = ""
os.environ["SEED_DEMO_DATA"] = "true"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"

from datetime import date

import pytest
from fastapi.testclient import TestClient

from promodesk.core.change_feed import ChangeFeed
from promodesk.core.session import SessionContext
from promodesk.core.storage import InMemoryStorage
from promodesk.models.campaign import CampaignType
from promodesk.models.role import UserRole
from promodesk.schemas.campaign import CampaignCreate, ProductPromotion
from promodesk.services.campaign_service import CampaignStore
from promodesk.services.srp_masterlist_service import SrpMasterlistStore


@pytest.fixture
def storage():
    return InMemoryStorage()


@pytest.fixture
def feed():
    return ChangeFeed()


@pytest.fixture
def campaign_store(storage, feed):
    """Store over an empty backend, without the demo data set."""
    return CampaignStore(storage, feed, seed_demo_data=False, default_distributor="Great Deals Ecommerce Corp")


@pytest.fixture
def seeded_store(storage, feed):
    return CampaignStore(storage, feed, seed_demo_data=True)


@pytest.fixture
def srp_store(storage, feed):
    return SrpMasterlistStore(storage, feed)


@pytest.fixture
def commercial():
    return SessionContext.for_role(UserRole.COMMERCIAL)


@pytest.fixture
def approver():
    return SessionContext.for_role(UserRole.COMMERCIAL_APPROVER)


@pytest.fixture
def shop_ops():
    return SessionContext.for_role(UserRole.SHOP_OPS)


@pytest.fixture
def finance():
    return SessionContext.for_role(UserRole.FINANCE)


@pytest.fixture
def summer_sale():
    """A complete campaign form, ready to submit."""
    return CampaignCreate(
        program_name="Summer Sale",
        brand_name="SunnySide",
        campaign_type=CampaignType.SHOPEE_CAMPAIGN,
        start_date=date(2025, 6, 1),
        end_date=date(2025, 6, 30),
        objectives="Lift juice sales during the summer months",
        promotions=[
            ProductPromotion(product_name="Orange Juice 1L", barcode="4800000000011", srp=100, discounted_price=80),
        ],
        approvers=["Maria Santos"],
    )


@pytest.fixture
def client():
    from promodesk.main import app

    with TestClient(app) as c:
        yield c
