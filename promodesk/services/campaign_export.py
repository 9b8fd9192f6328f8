"""
Campaign CSV export.

One row per campaign and promotion. A campaign without promotions still gets
one row, with N/A in every promotion column.
"""
from datetime import date
from typing import Iterable, List, Optional
import csv
import io

from promodesk.schemas.campaign import Campaign, ProductPromotion


CAMPAIGN_COLUMNS = [
    "Campaign ID",
    "Program Name",
    "Brand Name",
    "Campaign Type",
    "Start Date",
    "End Date",
    "Status",
    "Objectives",
    "Distributor",
    "Promotion Duration",
    "Website",
    "Approvers",
    "Remarks",
    "Extracted Remarks",
    "Created By",
    "Date Created",
]

PROMOTION_COLUMNS = [
    "Product Name",
    "Barcode",
    "SRP",
    "Discounted Price",
    "Discount Value",
    "Discount %",
]

EXPORT_COLUMNS = CAMPAIGN_COLUMNS + PROMOTION_COLUMNS

EXPORT_FILENAME = "dashboard_export.csv"


def format_export_date(value: Optional[date]) -> str:
    """MM/DD/YY, or empty."""
    if value is None:
        return ""
    return value.strftime("%m/%d/%y")


def format_number(value: Optional[float]) -> str:
    if value is None:
        return ""
    if float(value).is_integer():
        return str(int(value))
    return str(value)


def _campaign_cells(campaign: Campaign) -> dict:
    return {
        "Campaign ID": campaign.id,
        "Program Name": campaign.program_name,
        "Brand Name": campaign.brand_name or "",
        "Campaign Type": campaign.campaign_type.value if campaign.campaign_type else "",
        "Start Date": format_export_date(campaign.start_date),
        "End Date": format_export_date(campaign.end_date),
        "Status": campaign.status.value,
        "Objectives": campaign.objectives or "",
        "Distributor": campaign.distributor or "",
        "Promotion Duration": campaign.promotion_duration or "",
        "Website": campaign.website or "",
        "Approvers": "; ".join(campaign.approvers),
        "Remarks": campaign.remarks or "",
        "Extracted Remarks": campaign.extracted_remarks or "",
        "Created By": campaign.created_by,
        "Date Created": format_export_date(campaign.created_at),
    }


def _promotion_cells(promotion: ProductPromotion) -> dict:
    return {
        "Product Name": promotion.product_name,
        "Barcode": promotion.barcode,
        "SRP": format_number(promotion.srp),
        "Discounted Price": format_number(promotion.discounted_price),
        "Discount Value": format_number(promotion.discount_value),
        "Discount %": format_number(promotion.discount_percentage),
    }


def build_export_rows(campaigns: Iterable[Campaign]) -> List[dict]:
    rows = []
    for campaign in campaigns:
        base = _campaign_cells(campaign)
        if campaign.promotions:
            for promotion in campaign.promotions:
                rows.append({**base, **_promotion_cells(promotion)})
        else:
            rows.append({**base, **{column: "N/A" for column in PROMOTION_COLUMNS}})
    return rows


def export_campaigns_csv(campaigns: Iterable[Campaign]) -> str:
    """Render campaigns as CSV text with a header row."""
    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=EXPORT_COLUMNS, lineterminator="\r\n")
    writer.writeheader()
    writer.writerows(build_export_rows(campaigns))
    return buffer.getvalue()
