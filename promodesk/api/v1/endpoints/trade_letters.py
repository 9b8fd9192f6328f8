"""Trade letter scanning endpoint."""
from fastapi import APIRouter, File, UploadFile

from promodesk.api.deps import Scanner, Session
from promodesk.config import settings
from promodesk.core.exceptions import PermissionDenied, ValidationFailed
from promodesk.models.role import UserRole
from promodesk.schemas.campaign import TradeLetterScanResponse
from promodesk.services.trade_letter_scanner import is_supported_mime_type, prefill_campaign_draft


router = APIRouter(prefix="/trade-letters", tags=["Trade Letters"])


@router.post("/scan", response_model=TradeLetterScanResponse)
async def scan_trade_letter(
    session: Session,
    scanner: Scanner,
    file: UploadFile = File(...),
):
    """
    Upload a trade letter (image or PDF) and get a pre-filled campaign draft.

    Extraction problems do not fail the request: the draft comes back empty
    with a warning, and the document is still returned as a data URI so it
    can be attached when the campaign is saved.
    """
    if session.role != UserRole.COMMERCIAL:
        raise PermissionDenied("Only commercial users can scan trade letters.")

    mime_type = file.content_type or ""
    if not is_supported_mime_type(mime_type):
        raise ValidationFailed(
            f"Unsupported file type '{mime_type}'. Upload an image or a PDF.",
            field="file",
        )

    document = await file.read()
    if not document:
        raise ValidationFailed("Uploaded file is empty.", field="file")
    if len(document) > settings.MAX_UPLOAD_BYTES:
        raise ValidationFailed(
            f"File too large. Maximum size: {settings.MAX_UPLOAD_BYTES // (1024 * 1024)}MB",
            field="file",
        )

    return await prefill_campaign_draft(document, mime_type, file.filename, scanner=scanner)
