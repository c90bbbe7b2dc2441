"""
Core abstract base model.

Base Classes:
    BaseModel: Abstract model with created_at / updated_at timestamps

For mixins (UUIDPrimaryKeyMixin, MetadataMixin) see core.model_mixins.

Usage:
    from core.models import BaseModel
    from core.model_mixins import UUIDPrimaryKeyMixin

    class Account(UUIDPrimaryKeyMixin, BaseModel):
        code = models.CharField(max_length=20, unique=True)
"""

from __future__ import annotations

from django.db import models


class BaseModel(models.Model):
    """
    Abstract base model with creation and modification timestamps.

    Note:
        created_at is the time the row was written, which is not always the
        time of the economic event. Ledger entries keep the event time in
        their own posted_at field.
    """

    created_at = models.DateTimeField(
        auto_now_add=True,
        db_index=True,
        help_text="Timestamp when this record was created",
    )
    updated_at = models.DateTimeField(
        auto_now=True,
        help_text="Timestamp when this record was last modified",
    )

    class Meta:
        abstract = True
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"{self.__class__.__name__}(id={self.pk})"
