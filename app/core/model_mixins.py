"""
Model mixins combined with BaseModel.

Available Mixins:
    UUIDPrimaryKeyMixin: Use UUID as primary key
"""

from __future__ import annotations

import uuid

from django.db import models


class UUIDPrimaryKeyMixin(models.Model):
    """
    Use UUID as primary key instead of auto-increment integer.

    Order and refund ids travel through URLs and realtime events, so they
    must not reveal volume or ordering.

    Fields:
        id: UUIDField as primary key (auto-generated)
    """

    id = models.UUIDField(
        primary_key=True,
        default=uuid.uuid4,
        editable=False,
        help_text="Unique identifier (UUID v4)",
    )

    class Meta:
        abstract = True
