import csv
import io

COMMERCIAL = {"X-User-Role": "commercial"}
APPROVER = {"X-User-Role": "commercial-approver"}
SHOP_OPS = {"X-User-Role": "shop-ops"}
FINANCE = {"X-User-Role": "finance"}

SUMMER_SALE = {
    "programName": "Summer Sale",
    "brandName": "SunnySide",
    "campaignType": "Shopee Campaign",
    "startDate": "2025-06-01",
    "endDate": "2025-06-30",
    "objectives": "Lift juice sales",
    "promotions": [
        {"productName": "Orange Juice 1L", "barcode": "4800000000011", "srp": 100, "discountedPrice": 80},
    ],
}

SRP_CSV = (
    "Platform,SKU,Product Name,Brand,srp/case (vatin)\n"
    "Shopee,A1,Orange Juice 1L,SunnySide,1200\n"
    "Lazada,A2,Mango Juice 1L,SunnySide,1250.5\n"
).encode("utf-8")


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


# ============== Session ==============

def test_login_and_notification_flag(client):
    response = client.post("/api/v1/session/login", json={"role": "shop-ops"})
    assert response.status_code == 200
    body = response.json()
    assert body["role"] == "shop-ops"
    assert body["displayName"] == "ShopOps"
    assert body["hasNotification"] is True

    response = client.post("/api/v1/session/notifications/dismiss")
    assert response.json()["hasNotification"] is False

    # Stored role is used when no header is sent
    campaigns = client.get("/api/v1/campaigns").json()
    assert {c["status"] for c in campaigns} <= {"Submitted", "Validated", "Active", "Completed"}


def test_requests_without_role_are_rejected(client):
    response = client.get("/api/v1/campaigns")
    assert response.status_code == 403
    assert response.json()["type"] == "PermissionDenied"


def test_unknown_role_header(client):
    response = client.get("/api/v1/campaigns", headers={"X-User-Role": "boss"})
    assert response.status_code == 422


def test_logout(client):
    client.post("/api/v1/session/login", json={"role": "finance"})
    assert client.post("/api/v1/session/logout").status_code == 204
    assert client.get("/api/v1/session").json()["role"] is None


# ============== Campaigns ==============

def test_campaign_workflow(client):
    response = client.post("/api/v1/campaigns", json={**SUMMER_SALE, "submit": True}, headers=COMMERCIAL)
    assert response.status_code == 201
    campaign = response.json()
    assert campaign["status"] == "Submitted"
    assert campaign["promotions"][0]["discountValue"] == 20
    campaign_id = campaign["id"]

    # Approver must give remarks when returning
    response = client.post(
        f"/api/v1/campaigns/{campaign_id}/transition", json={"status": "Returned"}, headers=APPROVER
    )
    assert response.status_code == 422

    response = client.post(
        f"/api/v1/campaigns/{campaign_id}/transition",
        json={"status": "Returned", "remarks": "Wrong SRP"},
        headers=APPROVER,
    )
    assert response.json()["remarks"] == "Wrong SRP"

    response = client.put(f"/api/v1/campaigns/{campaign_id}", json={"objectives": "Fixed"}, headers=COMMERCIAL)
    assert response.status_code == 200

    response = client.post(
        f"/api/v1/campaigns/{campaign_id}/transition", json={"status": "Submitted"}, headers=COMMERCIAL
    )
    assert response.json()["status"] == "Submitted"
    assert response.json().get("remarks") is None

    response = client.post(
        f"/api/v1/campaigns/{campaign_id}/transition", json={"status": "Validated"}, headers=APPROVER
    )
    assert response.json()["approvedBy"] == "approver@demo.com"


def test_disallowed_transition_returns_400(client):
    # CAM-001 (demo data) is Active
    response = client.post(
        "/api/v1/campaigns/CAM-001/transition", json={"status": "Validated"}, headers=SHOP_OPS
    )
    assert response.status_code == 400
    body = response.json()
    assert body["type"] == "TransitionError"
    assert body["details"]["allowed"] == ["Completed"]


def test_campaign_actions(client):
    response = client.get("/api/v1/campaigns/CAM-001/actions", headers=SHOP_OPS)
    assert response.status_code == 200
    body = response.json()
    assert body["activityLabel"] == "Running Campaign"
    assert body["transitions"] == [{"status": "Completed", "action": "Mark Completed", "requiresRemarks": False}]
    assert body["canEdit"] is False


def test_invisible_campaign_is_404(client):
    # CAM-003 (demo data) is a Draft
    assert client.get("/api/v1/campaigns/CAM-003", headers=SHOP_OPS).status_code == 404
    assert client.get("/api/v1/campaigns/CAM-003", headers=FINANCE).status_code == 200


def test_finance_cannot_create(client):
    response = client.post("/api/v1/campaigns", json=SUMMER_SALE, headers=FINANCE)
    assert response.status_code == 403


def test_list_filters(client):
    response = client.get("/api/v1/campaigns", params={"brand": "PencilPro"}, headers=FINANCE)
    assert {c["id"] for c in response.json()} == {"CAM-002", "CAM-006"}

    response = client.get("/api/v1/campaigns", params={"status": "Submitted"}, headers=FINANCE)
    assert [c["id"] for c in response.json()] == ["CAM-002"]


def test_approval_queue(client):
    response = client.get("/api/v1/campaigns/approvals", headers=APPROVER)
    assert [c["id"] for c in response.json()] == ["CAM-002"]
    assert client.get("/api/v1/campaigns/approvals", headers=SHOP_OPS).status_code == 403


def test_bulk_transition(client):
    response = client.post(
        "/api/v1/campaigns/bulk-transition",
        json={"ids": ["CAM-002", "CAM-003"], "status": "Validated"},
        headers=APPROVER,
    )
    assert response.status_code == 200
    body = response.json()
    assert body["succeeded"] == ["CAM-002"]
    assert [f["id"] for f in body["failed"]] == ["CAM-003"]


def test_export_csv(client):
    response = client.get("/api/v1/campaigns/export", params={"search": "summer"}, headers=FINANCE)
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert "dashboard_export.csv" in response.headers["content-disposition"]

    rows = list(csv.DictReader(io.StringIO(response.text)))
    assert {r["Campaign ID"] for r in rows} == {"CAM-001"}
    assert len(rows) == 2


def test_export_with_no_matches_is_404(client):
    response = client.get("/api/v1/campaigns/export", params={"search": "nothing-matches"}, headers=FINANCE)
    assert response.status_code == 404


def test_delete_campaign(client):
    campaign_id = client.post("/api/v1/campaigns", json=SUMMER_SALE, headers=COMMERCIAL).json()["id"]
    assert client.delete(f"/api/v1/campaigns/{campaign_id}", headers=COMMERCIAL).status_code == 204
    assert client.get(f"/api/v1/campaigns/{campaign_id}", headers=FINANCE).status_code == 404


def test_trade_letter_attachment(client):
    campaign_id = client.post("/api/v1/campaigns", json=SUMMER_SALE, headers=COMMERCIAL).json()["id"]
    assert client.get(f"/api/v1/campaigns/{campaign_id}/trade-letter", headers=FINANCE).status_code == 404

    response = client.put(
        f"/api/v1/campaigns/{campaign_id}/trade-letter",
        json={"dataUri": "data:application/pdf;base64,JVBERi0x"},
        headers=COMMERCIAL,
    )
    assert response.status_code == 200

    response = client.get(f"/api/v1/campaigns/{campaign_id}/trade-letter", headers=FINANCE)
    assert response.json()["dataUri"] == "data:application/pdf;base64,JVBERi0x"


# ============== Trade letter scan ==============

def test_scan_without_extraction_service_returns_empty_draft(client):
    response = client.post(
        "/api/v1/trade-letters/scan",
        files={"file": ("letter.pdf", b"%PDF-1.4 letter", "application/pdf")},
        headers=COMMERCIAL,
    )
    assert response.status_code == 200
    body = response.json()
    assert body["warning"]
    assert body["draft"]["distributor"] == "Great Deals Ecommerce Corp"
    assert body["tradeLetterDataUri"].startswith("data:application/pdf;base64,")


def test_scan_rejects_unsupported_files(client):
    response = client.post(
        "/api/v1/trade-letters/scan",
        files={"file": ("notes.txt", b"hello", "text/plain")},
        headers=COMMERCIAL,
    )
    assert response.status_code == 422


# ============== SRP Masterlist ==============

def test_srp_upload_commit_and_download(client):
    response = client.post(
        "/api/v1/srp-masterlist/preview",
        files={"file": ("prices.csv", SRP_CSV, "text/csv")},
        headers=COMMERCIAL,
    )
    assert response.status_code == 200
    preview = response.json()
    assert preview["rowCount"] == 2
    assert preview["rows"][1]["srpPerCaseVatin"] == 1250.5

    response = client.post(
        "/api/v1/srp-masterlist/versions",
        json={"rows": preview["rows"], "reason": ""},
        headers=COMMERCIAL,
    )
    assert response.status_code == 422

    response = client.post(
        "/api/v1/srp-masterlist/versions",
        json={"rows": preview["rows"], "reason": "Q3 price list", "originalFileName": "prices.csv"},
        headers=COMMERCIAL,
    )
    assert response.status_code == 201
    assert response.json()["version"] == 1

    current = client.get("/api/v1/srp-masterlist", params={"platform": "Lazada"}, headers=FINANCE).json()
    assert current["version"] == 1
    assert current["total"] == 1
    assert current["facets"]["platforms"] == ["Lazada", "Shopee"]

    response = client.get("/api/v1/srp-masterlist/versions/1/download", headers=FINANCE)
    assert response.status_code == 200
    assert "version-1-prices.csv" in response.headers["content-disposition"]
    assert response.text.startswith("Platform,SKU,Product Name")


def test_srp_row_edit(client):
    preview = client.post(
        "/api/v1/srp-masterlist/preview",
        files={"file": ("prices.csv", SRP_CSV, "text/csv")},
        headers=COMMERCIAL,
    ).json()
    client.post(
        "/api/v1/srp-masterlist/versions",
        json={"rows": preview["rows"], "reason": "Initial", "originalFileName": "prices.csv"},
        headers=COMMERCIAL,
    )
    row = preview["rows"][0]

    response = client.put(
        f"/api/v1/srp-masterlist/items/{row['id']}",
        json={"item": {**row, "srpPerCaseVatin": 1100}, "reason": "Price drop"},
        headers=COMMERCIAL,
    )
    assert response.status_code == 200
    assert response.json()["version"] == 2
    assert response.json()["originalFileName"] == "prices.csv"

    history = client.get("/api/v1/srp-masterlist/history", headers=FINANCE).json()
    assert [v["version"] for v in history] == [2, 1]


def test_srp_upload_requires_commercial(client):
    response = client.post(
        "/api/v1/srp-masterlist/preview",
        files={"file": ("prices.csv", SRP_CSV, "text/csv")},
        headers=FINANCE,
    )
    assert response.status_code == 403


def test_srp_unknown_version_is_404(client):
    assert client.get("/api/v1/srp-masterlist/versions/9/download", headers=FINANCE).status_code == 404
