"""
Trade Letter Scanner

Reads campaign details out of a scanned trade letter (image or PDF) with the
Gemini generateContent REST API. The model output is untrusted: every field
is optional, numbers may arrive as "PHP 1,299.00", and anything that cannot
be coerced is dropped.

prefill_campaign_draft() never fails on extraction problems; it falls back
to an empty draft and a warning so the user can fill the form by hand.
"""

from datetime import date
from typing import Any, Dict, Optional
import base64
import json
import logging
import re

import httpx

from promodesk.config import settings
from promodesk.core.exceptions import ExtractionError
from promodesk.schemas.campaign import CampaignDraft, ProductPromotion, TradeLetterScanResponse
from promodesk.schemas.extraction import ExtractionResult
from promodesk.services.promotion_pricing import derive_all

logger = logging.getLogger(__name__)

SUPPORTED_MIME_PREFIXES = ("image/",)
SUPPORTED_MIME_TYPES = ("application/pdf",)

FALLBACK_WARNING = (
    "Could not extract details from the trade letter. "
    "Please fill in the campaign details manually."
)

EXTRACTION_PROMPT = """You are an expert marketing assistant. Your job is to extract relevant campaign details from a trade letter. Extract the following information and return it as a JSON object with a single "campaignDetails" key.

- brandName: The brand name of the product or company in the trade letter.
- programName: The name of the marketing program or campaign.
- startDate: The start date of the campaign. Format this as YYYY-MM-DD.
- endDate: The end date of the campaign. Format as YYYY-MM-DD.
- objectives: What are the objectives of the campaign?
- tradeLetterDate: The date written on the trade letter. Format as YYYY-MM-DD.
- distributor: The name of the distributor.
- promotionDuration: The total duration of the promo (e.g., "30 days").
- website: The promotional website, if mentioned.
- remarks: Any other notes or remarks from the document.
- promotions: A list of all products with their specific promotion details. This might be in a table. For each product, extract:
  - barcode
  - productName
  - srp: Suggested Retail Price, VAT inclusive.
  - discountedPrice: The final price for the customer.
  - discountValue: The value of the discount, if explicitly mentioned.
  - discountPercentage: The percentage of the discount, if explicitly mentioned.
- approvers: A list of names of the undersigned or approvers.

Omit any field that is not present in the document.
"""

_NUMBER_CHARS = re.compile(r"[^0-9.\-]")


def is_supported_mime_type(mime_type: Optional[str]) -> bool:
    mime_type = (mime_type or "").lower()
    return mime_type in SUPPORTED_MIME_TYPES or mime_type.startswith(SUPPORTED_MIME_PREFIXES)


def to_data_uri(document: bytes, mime_type: str) -> str:
    return f"data:{mime_type};base64,{base64.b64encode(document).decode('ascii')}"


# ==================== Coercion of untrusted output ====================

def _coerce_str(value: Any) -> Optional[str]:
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def coerce_number(value: Any) -> Optional[float]:
    """Number, numeric string (currency symbols and commas allowed) or None."""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        cleaned = _NUMBER_CHARS.sub("", value)
        if not cleaned or cleaned in ("-", ".", "-."):
            return None
        try:
            return float(cleaned)
        except ValueError:
            return None
    return None


def coerce_date(value: Any) -> Optional[str]:
    """ISO date string (YYYY-MM-DD) or None."""
    text = _coerce_str(value)
    if not text:
        return None
    try:
        return date.fromisoformat(text[:10]).isoformat()
    except ValueError:
        return None


def _coerce_promotion(raw: Any) -> Optional[ProductPromotion]:
    if not isinstance(raw, dict):
        return None
    product_name = _coerce_str(raw.get("productName")) or ""
    barcode = _coerce_str(raw.get("barcode")) or ""
    srp = coerce_number(raw.get("srp"))
    if srp is None or srp < 0:
        # Without a usable SRP the line is only worth keeping if it names a product
        if not (product_name or barcode):
            return None
        srp = 0
    return ProductPromotion(
        product_name=product_name,
        barcode=barcode,
        srp=srp,
        discounted_price=coerce_number(raw.get("discountedPrice")),
        discount_value=coerce_number(raw.get("discountValue")),
        discount_percentage=coerce_number(raw.get("discountPercentage")),
    )


def coerce_extraction(payload: Any) -> ExtractionResult:
    """Turn raw model JSON into an ExtractionResult, dropping what does not fit."""
    if isinstance(payload, dict) and isinstance(payload.get("campaignDetails"), dict):
        payload = payload["campaignDetails"]
    if not isinstance(payload, dict):
        raise ExtractionError("Extraction response is not a JSON object")

    promotions = []
    raw_promotions = payload.get("promotions")
    if isinstance(raw_promotions, list):
        for raw in raw_promotions:
            promotion = _coerce_promotion(raw)
            if promotion is not None:
                promotions.append(promotion)

    approvers = []
    raw_approvers = payload.get("approvers")
    if isinstance(raw_approvers, list):
        approvers = [a for a in (_coerce_str(x) for x in raw_approvers) if a]

    return ExtractionResult(
        brand_name=_coerce_str(payload.get("brandName")),
        program_name=_coerce_str(payload.get("programName")),
        start_date=coerce_date(payload.get("startDate")),
        end_date=coerce_date(payload.get("endDate")),
        objectives=_coerce_str(payload.get("objectives")),
        trade_letter_date=coerce_date(payload.get("tradeLetterDate")),
        distributor=_coerce_str(payload.get("distributor")),
        promotion_duration=_coerce_str(payload.get("promotionDuration")),
        website=_coerce_str(payload.get("website")),
        remarks=_coerce_str(payload.get("remarks")),
        promotions=derive_all(promotions),
        approvers=approvers,
    )


# ==================== Gemini client ====================

class TradeLetterScanner:
    """Extraction service client."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        api_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key if api_key is not None else settings.GEMINI_API_KEY
        self.model = model or settings.GEMINI_MODEL
        self.api_url = (api_url or settings.GEMINI_API_URL).rstrip("/")
        self.timeout = timeout or settings.EXTRACTION_TIMEOUT_SECONDS
        self.transport = transport

    @property
    def endpoint(self) -> str:
        return f"{self.api_url}/models/{self.model}:generateContent"

    def build_request_body(self, document: bytes, mime_type: str) -> Dict[str, Any]:
        return {
            "contents": [
                {
                    "role": "user",
                    "parts": [
                        {"text": EXTRACTION_PROMPT},
                        {
                            "inline_data": {
                                "mime_type": mime_type,
                                "data": base64.b64encode(document).decode("ascii"),
                            }
                        },
                    ],
                }
            ],
            "generationConfig": {"responseMimeType": "application/json"},
        }

    async def scan(self, document: bytes, mime_type: str) -> ExtractionResult:
        """
        Extract campaign details from one document.

        Raises:
            ExtractionError: not configured, unsupported type, HTTP failure,
                timeout or an unparseable response
        """
        if not self.api_key:
            raise ExtractionError("Trade letter extraction is not configured (GEMINI_API_KEY missing)")
        if not document:
            raise ExtractionError("Trade letter is empty")
        if not is_supported_mime_type(mime_type):
            raise ExtractionError(f"Unsupported trade letter type '{mime_type}'")

        try:
            async with httpx.AsyncClient(transport=self.transport, timeout=self.timeout) as client:
                response = await client.post(
                    self.endpoint,
                    headers={"x-goog-api-key": self.api_key},
                    json=self.build_request_body(document, mime_type),
                )
        except httpx.TimeoutException:
            logger.error("Trade letter extraction timed out")
            raise ExtractionError("Trade letter extraction timed out")
        except httpx.HTTPError as e:
            logger.error(f"Trade letter extraction request failed: {e}")
            raise ExtractionError(f"Trade letter extraction request failed: {e}")

        if response.status_code != 200:
            logger.error(f"Gemini API error: HTTP {response.status_code}")
            raise ExtractionError(
                f"Extraction service returned HTTP {response.status_code}",
                {"status_code": response.status_code},
            )

        return coerce_extraction(self._parse_response(response))

    @staticmethod
    def _parse_response(response: httpx.Response) -> Any:
        try:
            body = response.json()
            parts = body["candidates"][0]["content"]["parts"]
            text = "".join(part.get("text", "") for part in parts)
            return json.loads(text)
        except (ValueError, KeyError, IndexError, TypeError, AttributeError) as e:
            raise ExtractionError(f"Malformed extraction response: {e}")


# ==================== Draft pre-fill ====================

def draft_from_extraction(result: ExtractionResult, default_distributor: Optional[str] = None) -> CampaignDraft:
    return CampaignDraft(
        program_name=result.program_name or "",
        brand_name=result.brand_name,
        start_date=result.start_date,
        end_date=result.end_date,
        objectives=result.objectives,
        trade_letter_date=result.trade_letter_date,
        distributor=result.distributor or default_distributor or settings.DEFAULT_DISTRIBUTOR,
        promotion_duration=result.promotion_duration,
        website=result.website,
        extracted_remarks=result.remarks,
        promotions=result.promotions,
        approvers=result.approvers,
    )


async def prefill_campaign_draft(
    document: bytes,
    mime_type: str,
    file_name: Optional[str] = None,
    scanner: Optional[TradeLetterScanner] = None,
    default_distributor: Optional[str] = None,
) -> TradeLetterScanResponse:
    """
    Pre-fill a campaign draft from a trade letter.

    Extraction failures are logged and returned as a warning next to an
    empty draft; they are never raised.
    """
    scanner = scanner or TradeLetterScanner()
    default_distributor = default_distributor or settings.DEFAULT_DISTRIBUTOR
    warning = None

    try:
        result = await scanner.scan(document, mime_type)
        draft = draft_from_extraction(result, default_distributor)
        logger.info(
            f"Extracted trade letter '{file_name or 'upload'}': "
            f"{len(result.promotions)} promotions"
        )
    except ExtractionError as e:
        logger.warning(f"Trade letter extraction failed, using empty draft: {e.message}")
        draft = CampaignDraft(distributor=default_distributor)
        warning = f"{FALLBACK_WARNING} ({e.message})"

    return TradeLetterScanResponse(
        draft=draft,
        warning=warning,
        file_name=file_name,
        trade_letter_data_uri=to_data_uri(document, mime_type),
    )
