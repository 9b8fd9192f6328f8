"""
Key/value storage table.

Each row holds one storage key and its raw serialized value, so whole
collections (campaigns, SRP history) are read and written as a single row.
"""
from datetime import datetime, timezone

from sqlalchemy import String, Text, DateTime
from sqlalchemy.orm import Mapped, mapped_column

from promodesk.database import Base


class StoreEntry(Base):
    """One persisted storage key."""
    __tablename__ = "store_entries"

    key: Mapped[str] = mapped_column(String(255), primary_key=True)
    value: Mapped[str] = mapped_column(Text, nullable=False)

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    def __repr__(self) -> str:
        return f"<StoreEntry(key='{self.key}', size={len(self.value or '')})>"
