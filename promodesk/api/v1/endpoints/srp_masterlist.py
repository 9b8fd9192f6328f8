"""
SRP Masterlist API Endpoints.

Provides:
- Current snapshot with filters and facet lists
- Version history and per-version CSV download
- CSV upload preview and commit as a new version
- Single-row edit (saved as a new version)
"""
from typing import Annotated, List, Optional

from fastapi import APIRouter, File, Query, Response, UploadFile, status

from promodesk.api.deps import Session, SrpStore
from promodesk.config import settings
from promodesk.core.exceptions import NotFoundError, PermissionDenied, ValidationFailed
from promodesk.models.role import UserRole
from promodesk.schemas.srp import (
    SrpCommitRequest,
    SrpMasterlistResponse,
    SrpPreviewResponse,
    SrpRowEditRequest,
    SrpVersion,
    SrpVersionSummary,
)
from promodesk.services.srp_masterlist_service import (
    EXPORT_FILENAME,
    build_facets,
    download_filename,
    filter_items,
    preview_csv,
)


router = APIRouter(prefix="/srp-masterlist", tags=["SRP Masterlist"])


def _csv_response(content: bytes, filename: str) -> Response:
    return Response(
        content=content,
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("", response_model=SrpMasterlistResponse)
async def get_masterlist(
    session: Session,
    store: SrpStore,
    search: Annotated[Optional[str], Query()] = None,
    platform: Annotated[Optional[str], Query()] = None,
    brand: Annotated[Optional[str], Query()] = None,
    business_unit: Annotated[Optional[str], Query(alias="businessUnit")] = None,
):
    """Current snapshot. Facets always describe the whole snapshot, not the filtered view."""
    current = await store.get_current()
    items = list(current.data) if current else []
    filtered = filter_items(items, search, platform, brand, business_unit)
    return SrpMasterlistResponse(
        version=current.version if current else None,
        original_file_name=current.original_file_name if current else None,
        total=len(filtered),
        items=filtered,
        facets=build_facets(items),
    )


@router.get("/history", response_model=List[SrpVersionSummary])
async def get_history(session: Session, store: SrpStore):
    """Every saved version, newest first (rows omitted)."""
    return [SrpVersionSummary.from_version(v) for v in await store.get_history()]


@router.get("/export")
async def export_current_view(
    session: Session,
    store: SrpStore,
    search: Annotated[Optional[str], Query()] = None,
    platform: Annotated[Optional[str], Query()] = None,
    brand: Annotated[Optional[str], Query()] = None,
    business_unit: Annotated[Optional[str], Query(alias="businessUnit")] = None,
):
    """CSV of the current snapshot after filters."""
    items = filter_items(await store.get_current_items(), search, platform, brand, business_unit)
    if not items:
        raise NotFoundError("There are no items matching the current filters.")
    return _csv_response(store.export_items(items), EXPORT_FILENAME)


@router.post("/preview", response_model=SrpPreviewResponse)
async def preview_upload(
    session: Session,
    file: UploadFile = File(...),
):
    """
    Map an uploaded CSV onto masterlist rows without saving anything.

    Confirm the preview with POST /versions and a reason.
    """
    if session.role != UserRole.COMMERCIAL:
        raise PermissionDenied("Only commercial users can upload the SRP masterlist.")

    content = await file.read()
    if len(content) > settings.MAX_UPLOAD_BYTES:
        raise ValidationFailed(
            f"File too large. Maximum size: {settings.MAX_UPLOAD_BYTES // (1024 * 1024)}MB",
            field="file",
        )
    return preview_csv(content, file.filename)


@router.post("/versions", response_model=SrpVersionSummary, status_code=status.HTTP_201_CREATED)
async def commit_version(data: SrpCommitRequest, session: Session, store: SrpStore):
    """Save rows as a new version. A reason for the change is mandatory."""
    version = await store.commit(session, data.rows, data.reason, data.original_file_name)
    return SrpVersionSummary.from_version(version)


@router.put("/items/{row_id}", response_model=SrpVersionSummary)
async def edit_row(row_id: str, data: SrpRowEditRequest, session: Session, store: SrpStore):
    """Replace one row of the current snapshot; the result is saved as a new version."""
    version = await store.edit_row(session, row_id, data.item, data.reason)
    return SrpVersionSummary.from_version(version)


@router.get("/versions/{version}", response_model=SrpVersion)
async def get_version(version: int, session: Session, store: SrpStore):
    return await store.get_version(version)


@router.get("/versions/{version}/download")
async def download_version(version: int, session: Session, store: SrpStore):
    snapshot = await store.get_version(version)
    return _csv_response(await store.download(version), download_filename(snapshot))
