"""
SRP Masterlist Version Store.

The price masterlist is kept as an append-only list of full snapshots
(SrpVersion) under the ``srpMasterlistHistory`` key. Every upload or row edit
appends a new snapshot numbered max+1; nothing is ever modified or removed,
so any past version can be downloaded again.

CSV uploads are mapped onto SKUItem fields through a header alias table:
headers are matched case-insensitively after trimming, unknown columns are
ignored, and when two columns map to the same field the later one wins.
"""
from datetime import datetime, timezone
from decimal import Decimal
from typing import Dict, List, Optional, Union
import csv
import io
import json
import logging
import time
import uuid

from pydantic import TypeAdapter, ValidationError

from promodesk.core.change_feed import ChangeEvent, ChangeFeed
from promodesk.core.exceptions import (
    NotFoundError,
    PermissionDenied,
    StoreReadError,
    ValidationFailed,
)
from promodesk.core.session import SessionContext
from promodesk.core.storage import StorageBackend, SRP_HISTORY_KEY
from promodesk.models.role import UserRole
from promodesk.schemas.srp import (
    SKUItem,
    SKUItemFields,
    SrpFacets,
    SrpPreviewResponse,
    SrpVersion,
)

logger = logging.getLogger(__name__)

_history_list = TypeAdapter(List[SrpVersion])


# Field -> [canonical label, *other accepted spellings]
SRP_COLUMN_ALIASES: Dict[str, List[str]] = {
    "platform": ["Platform"],
    "sku": ["SKU"],
    "product_name": ["Product Name", "productname"],
    "business_unit": ["Business Unit", "businessunit"],
    "brand": ["Brand"],
    "sub_brand": ["Sub-Brand", "sub brand", "subbrand"],
    "case_configuration": ["Case Configuration", "caseconfiguration"],
    "unit_of_measure": ["Unit of Measure", "unitofmeasure", "uom"],
    "srp_per_case_vatin": ["SRP per Case (VATIN)", "srppercasevatin", "srp/case (vatin)"],
    "srp_per_case_vatex": ["SRP per Case (VATEX)", "srppercasevatex", "srp/case (vatex)"],
    "srp_per_piece_vatin": ["SRP per Piece (VATIN)", "srpperpiecevatin", "srp/pc (vatin)"],
    "srp_per_piece_vatex": ["SRP per Piece (VATEX)", "srpperpiecevatex", "srp/pc (vatex)"],
    "date_start": ["Date Start", "datestart", "start date"],
    "date_end": ["Date End", "dateend", "end date"],
    "time_start": ["Time Start", "timestart", "start time"],
    "time_end": ["Time End", "timeend", "end time"],
    "remarks": ["Remarks", "remarks if any"],
    "lazada_shop_sku": ["Lazada Shop SKU", "lazadashopsku"],
    "shopee_product_id": ["Shopee Product ID", "shopeeproductid"],
    "shopee_variation_id": ["Shopee Variation ID", "shopeevariationid"],
}

CANONICAL_LABELS: Dict[str, str] = {field: aliases[0] for field, aliases in SRP_COLUMN_ALIASES.items()}

ALIAS_TO_FIELD: Dict[str, str] = {
    alias.strip().lower(): field
    for field, aliases in SRP_COLUMN_ALIASES.items()
    for alias in aliases
}

EXPORT_FILENAME = "srp_masterlist_export.csv"


def normalize_header(header: str) -> str:
    return header.strip().lower()


def _format_cell(value) -> str:
    if value is None:
        return ""
    if isinstance(value, float):
        if value.is_integer():
            return str(int(value))
        # Plain decimal notation, never exponent form (1e-05 -> 0.00001)
        return format(Decimal(repr(value)), "f")
    return str(value)


def items_to_csv(items: List[SKUItem]) -> bytes:
    """UTF-8 CSV with the canonical column labels."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\r\n")
    writer.writerow(list(CANONICAL_LABELS.values()))
    for item in items:
        writer.writerow([_format_cell(getattr(item, field)) for field in CANONICAL_LABELS])
    return buffer.getvalue().encode("utf-8")


def parse_csv(content: Union[bytes, str]) -> List[Dict[str, str]]:
    """
    Header-driven CSV parse.

    A UTF-8 byte order mark is tolerated and lines with no values are
    skipped. Cells beyond the header row are dropped.
    """
    if isinstance(content, bytes):
        try:
            text = content.decode("utf-8-sig")
        except UnicodeDecodeError:
            raise ValidationFailed("Failed to parse CSV file: file is not UTF-8 text", field="file")
    else:
        text = content.lstrip("\ufeff")

    try:
        reader = csv.DictReader(io.StringIO(text))
        rows = []
        for row in reader:
            cells = {k: v for k, v in row.items() if k is not None}
            if any((v or "").strip() for v in cells.values()):
                rows.append(cells)
    except csv.Error as e:
        raise ValidationFailed(f"Failed to parse CSV file: {e}", field="file")
    return rows


def propose_upload(raw_rows: List[Dict[str, object]], now_ms: Optional[int] = None) -> List[SKUItem]:
    """
    Map raw CSV rows onto SKUItems. Pure: nothing is persisted.

    Every row gets a fresh id ``row-<ms>-<index>`` (index of the raw row);
    rows with neither SKU nor product name are dropped. Headers are trimmed,
    cell values are kept as written.
    """
    now_ms = now_ms if now_ms is not None else int(time.time() * 1000)
    items = []
    for index, row in enumerate(raw_rows):
        mapped = {}
        for header, value in row.items():
            if header is None:
                continue
            field = ALIAS_TO_FIELD.get(normalize_header(str(header)))
            if field:
                mapped[field] = value
        item = SKUItem(id=f"row-{now_ms}-{index}", **mapped)
        if item.sku or item.product_name:
            items.append(item)
    return items


def preview_csv(content: Union[bytes, str], file_name: Optional[str] = None) -> SrpPreviewResponse:
    """Parse and map an upload for confirmation."""
    rows = propose_upload(parse_csv(content))
    if not rows:
        raise ValidationFailed(
            "Could not map any columns from the file. Please check the file headers and try again.",
            field="file",
        )
    return SrpPreviewResponse(file_name=file_name, row_count=len(rows), rows=rows)


def filter_items(
    items: List[SKUItem],
    search: Optional[str] = None,
    platform: Optional[str] = None,
    brand: Optional[str] = None,
    business_unit: Optional[str] = None,
) -> List[SKUItem]:
    """Search matches SKU or product name; the other filters are exact."""
    term = (search or "").strip().lower()
    result = []
    for item in items:
        if term and not (
            (item.sku and term in str(item.sku).lower())
            or (item.product_name and term in item.product_name.lower())
        ):
            continue
        if platform and item.platform != platform:
            continue
        if brand and item.brand != brand:
            continue
        if business_unit and item.business_unit != business_unit:
            continue
        result.append(item)
    return result


def build_facets(items: List[SKUItem]) -> SrpFacets:
    return SrpFacets(
        platforms=sorted({i.platform for i in items if i.platform}),
        brands=sorted({i.brand for i in items if i.brand}),
        business_units=sorted({i.business_unit for i in items if i.business_unit}),
    )


def _check_rows(rows: List[SKUItem]) -> None:
    """
    Row ids must be unique within a snapshot, and every row needs a SKU or a
    product name (the same rule propose_upload applies on import).
    """
    seen = set()
    duplicates = []
    for row in rows:
        if row.id in seen and row.id not in duplicates:
            duplicates.append(row.id)
        seen.add(row.id)
    if duplicates:
        raise ValidationFailed(
            f"Duplicate row ids: {', '.join(duplicates)}",
            field="rows",
            details={"duplicate_ids": duplicates},
        )

    unnamed = [row.id for row in rows if not (row.sku or row.product_name)]
    if unnamed:
        raise ValidationFailed(
            "Every row needs a SKU or a product name.",
            field="rows",
            details={"row_ids": unnamed},
        )


def download_filename(version: SrpVersion) -> str:
    if version.original_file_name:
        return f"version-{version.version}-{version.original_file_name}"
    return f"version-{version.version}-export.csv"


class SrpMasterlistStore:
    """Append-only version history of the SRP masterlist."""

    def __init__(self, storage: StorageBackend, feed: Optional[ChangeFeed] = None):
        self.storage = storage
        self.feed = feed
        self.origin = f"srp-{uuid.uuid4().hex[:8]}"
        self._cache: Optional[List[SrpVersion]] = None
        self._subscription = feed.subscribe(SRP_HISTORY_KEY, self._on_change) if feed else None

    def _on_change(self, event: ChangeEvent) -> None:
        if event.origin != self.origin:
            self._cache = None

    def close(self) -> None:
        if self._subscription is not None:
            self._subscription.cancel()

    # ==================== Persistence ====================

    async def _read(self) -> List[SrpVersion]:
        raw = await self.storage.get(SRP_HISTORY_KEY)
        if not raw:
            return []
        try:
            return _history_list.validate_json(raw)
        except ValidationError as e:
            raise StoreReadError(SRP_HISTORY_KEY, f"malformed history ({e.error_count()} errors)")

    async def load_history(self) -> List[SrpVersion]:
        """Fresh read of every version, newest first. Corrupt history is reset to empty."""
        try:
            history = await self._read()
        except StoreReadError as e:
            logger.warning(f"{e.message}. Resetting SRP masterlist history.")
            await self._save_history([])
            return []

        history = sorted(history, key=lambda v: v.version, reverse=True)
        self._cache = list(history)
        return history

    async def _save_history(self, history: List[SrpVersion]) -> None:
        payload = json.dumps([v.to_storage() for v in history])
        await self.storage.set(SRP_HISTORY_KEY, payload)
        self._cache = list(history)
        if self.feed is not None:
            self.feed.publish(SRP_HISTORY_KEY, origin=self.origin)

    async def _cached(self) -> List[SrpVersion]:
        if self._cache is None:
            return await self.load_history()
        return list(self._cache)

    # ==================== Queries ====================

    async def get_history(self) -> List[SrpVersion]:
        """All versions, highest version number first."""
        return await self._cached()

    async def get_current(self) -> Optional[SrpVersion]:
        history = await self._cached()
        return history[0] if history else None

    async def get_current_items(self) -> List[SKUItem]:
        current = await self.get_current()
        return list(current.data) if current else []

    async def get_version(self, version: int) -> SrpVersion:
        for entry in await self._cached():
            if entry.version == version:
                return entry
        raise NotFoundError(f"SRP masterlist version {version} not found", {"version": version})

    async def facets(self) -> SrpFacets:
        """Unique platforms, brands and business units of the current snapshot."""
        return build_facets(await self.get_current_items())

    # ==================== Commands ====================

    @staticmethod
    def _require_commercial(session: SessionContext) -> None:
        if session.role != UserRole.COMMERCIAL:
            raise PermissionDenied("Only commercial users can change the SRP masterlist.")

    async def commit(
        self,
        session: SessionContext,
        rows: List[SKUItem],
        reason: str,
        original_file_name: Optional[str] = None,
    ) -> SrpVersion:
        """
        Append rows as a new version.

        A reason and at least one row are required; on failure the history
        is left as it was.
        """
        self._require_commercial(session)
        if not (reason or "").strip():
            raise ValidationFailed("Please provide a reason for this change.", field="reason")
        if not rows:
            raise ValidationFailed("Cannot save an empty masterlist.", field="rows")
        _check_rows(rows)

        history = await self.load_history()
        next_version = max((v.version for v in history), default=0) + 1
        new_version = SrpVersion(
            version=next_version,
            timestamp=datetime.now(timezone.utc),
            reason=reason.strip(),
            user=session.author_label,
            data=list(rows),
            original_file_name=original_file_name,
        )
        await self._save_history([new_version] + history)

        logger.info(
            f"SRP masterlist version {next_version} saved by {new_version.user} "
            f"({len(rows)} rows)"
        )
        return new_version

    async def edit_row(
        self,
        session: SessionContext,
        row_id: str,
        item: SKUItemFields,
        reason: str,
    ) -> SrpVersion:
        """Replace one row of the current snapshot and save it as a new version."""
        self._require_commercial(session)
        history = await self.load_history()
        current = history[0] if history else None
        if current is None or not any(row.id == row_id for row in current.data):
            raise NotFoundError(f"SRP row '{row_id}' not found", {"id": row_id})

        replacement = SKUItem(id=row_id, **item.model_dump())
        rows = [replacement if row.id == row_id else row for row in current.data]
        return await self.commit(
            session, rows, reason, original_file_name=current.original_file_name
        )

    # ==================== CSV ====================

    async def download(self, version: int) -> bytes:
        return items_to_csv((await self.get_version(version)).data)

    @staticmethod
    def export_items(items: List[SKUItem]) -> bytes:
        return items_to_csv(items)
