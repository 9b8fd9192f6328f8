"""
Demo campaign data set.

Used when the campaign collection is absent or unreadable, so a fresh
install always has something to show for every role.
"""
from typing import List

from promodesk.schemas.campaign import Campaign


DEMO_CAMPAIGNS = [
    {
        "id": "CAM-001",
        "programName": "Summer Sale",
        "brandName": "SunnySide",
        "campaignType": "Shopee Campaign",
        "startDate": "2024-06-01",
        "endDate": "2024-06-30",
        "objectives": "Increase summer sales by 20% across all beverage SKUs.",
        "status": "Active",
        "createdBy": "commercial@demo.com",
        "createdAt": "2024-05-10",
        "approvedBy": "approver@demo.com",
        "dateApproved": "2024-05-15",
        "distributor": "Great Deals Ecommerce Corp",
        "promotionDuration": "30 days",
        "website": "https://shopee.ph/sunnyside",
        "approvers": ["Maria Santos", "Jose Reyes"],
        "promotions": [
            {
                "productName": "SunnySide Orange Juice 1L",
                "barcode": "4800000000011",
                "srp": 120,
                "discountedPrice": 99,
                "discountValue": 21,
                "discountPercentage": 17.5,
            },
            {
                "productName": "SunnySide Mango Juice 1L",
                "barcode": "4800000000028",
                "srp": 125,
                "discountedPrice": 100,
                "discountValue": 25,
                "discountPercentage": 20,
            },
        ],
    },
    {
        "id": "CAM-002",
        "programName": "Back to School Bundle",
        "brandName": "PencilPro",
        "campaignType": "Bundle Deals",
        "startDate": "2024-07-15",
        "endDate": "2024-08-15",
        "objectives": "Clear stationery inventory before the school year opens.",
        "status": "Submitted",
        "createdBy": "commercial@demo.com",
        "createdAt": "2024-06-20",
        "distributor": "Great Deals Ecommerce Corp",
        "promotions": [
            {
                "productName": "PencilPro Starter Kit",
                "barcode": "4800000000035",
                "srp": 350,
                "discountedPrice": 299,
                "discountValue": 51,
                "discountPercentage": 14.57,
            },
        ],
    },
    {
        "id": "CAM-003",
        "programName": "Holiday Vouchers",
        "brandName": "CozyHome",
        "campaignType": "Vouchers",
        "startDate": "2024-12-01",
        "endDate": "2024-12-31",
        "objectives": "Drive repeat purchases during the holiday season.",
        "status": "Draft",
        "createdBy": "commercial@demo.com",
        "createdAt": "2024-09-02",
        "distributor": "Great Deals Ecommerce Corp",
    },
    {
        "id": "CAM-004",
        "programName": "Lazada 9.9 Mega Sale",
        "brandName": "GlowUp",
        "campaignType": "Lazada Campaign",
        "startDate": "2024-09-09",
        "endDate": "2024-09-11",
        "objectives": "Capture 9.9 traffic with flash discounts on hero SKUs.",
        "status": "Validated",
        "createdBy": "commercial@demo.com",
        "createdAt": "2024-08-01",
        "approvedBy": "approver@demo.com",
        "dateApproved": "2024-08-05",
        "distributor": "Great Deals Ecommerce Corp",
        "promotions": [
            {
                "productName": "GlowUp Vitamin C Serum 30ml",
                "barcode": "4800000000042",
                "srp": 799,
                "discountedPrice": 599,
            },
        ],
    },
    {
        "id": "CAM-005",
        "programName": "Tiktok Live Freebies",
        "brandName": "SnackAttack",
        "campaignType": "GWP Freebies",
        "startDate": "2024-04-01",
        "endDate": "2024-04-30",
        "objectives": "Boost live-selling conversion with gift-with-purchase.",
        "status": "Completed",
        "createdBy": "commercial@demo.com",
        "createdAt": "2024-03-05",
        "approvedBy": "approver@demo.com",
        "dateApproved": "2024-03-08",
        "distributor": "Great Deals Ecommerce Corp",
    },
    {
        "id": "CAM-006",
        "programName": "Clearance Pricing",
        "brandName": "PencilPro",
        "campaignType": "Fake Pricing",
        "startDate": "2024-10-01",
        "endDate": "2024-10-15",
        "objectives": "Reprice slow movers ahead of the new catalogue.",
        "status": "Returned",
        "remarks": "Please attach the approved trade letter and confirm the SRPs.",
        "createdBy": "commercial@demo.com",
        "createdAt": "2024-09-10",
        "distributor": "Great Deals Ecommerce Corp",
    },
]


def get_demo_campaigns() -> List[Campaign]:
    """Fresh Campaign objects for the demo data set."""
    return [Campaign.model_validate(raw) for raw in DEMO_CAMPAIGNS]
