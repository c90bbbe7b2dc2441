"""
Model mixins combined with core.models.BaseModel.

Available Mixins:
    UUIDPrimaryKeyMixin: UUID primary key
    MetadataMixin: JSON metadata with read helpers

Usage:
    from core.models import BaseModel
    from core.model_mixins import MetadataMixin, UUIDPrimaryKeyMixin

    class LedgerEntry(UUIDPrimaryKeyMixin, MetadataMixin, BaseModel):
        memo = models.TextField(blank=True)

Note:
    Always list mixins before BaseModel in inheritance.
"""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING

from django.db import models

if TYPE_CHECKING:
    from typing import Any


class UUIDPrimaryKeyMixin(models.Model):
    """
    Use a UUID primary key instead of an auto-increment integer.

    Ledger rows get human-readable numbers separately (entry_number), so
    the primary key never leaks posting order or volume.
    """

    id = models.UUIDField(
        primary_key=True,
        default=uuid.uuid4,
        editable=False,
        help_text="Unique identifier for this record",
    )

    class Meta:
        abstract = True


class MetadataMixin(models.Model):
    """
    JSON metadata storage.

    Used for markers that must be queryable without a schema change, such
    as the legacy_reference_id embedded by backfill jobs:

        LedgerEntry.objects.filter(metadata__legacy_reference_id=row_id)

    There are no mutating helpers: rows that carry metadata are usually
    immutable once written, so metadata is set at creation time.
    """

    metadata = models.JSONField(
        default=dict,
        blank=True,
        help_text="Flexible key-value metadata storage",
    )

    class Meta:
        abstract = True

    def get_meta(self, key: str, default: Any = None) -> Any:
        """Get a metadata value by key."""
        return (self.metadata or {}).get(key, default)

    def has_meta(self, key: str) -> bool:
        return key in (self.metadata or {})
