# rad_core/common/models.py
from __future__ import annotations

import uuid

from django.db import models


class TimeStampedModel(models.Model):
    """
    Standard timestamps for all entities.
    """
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True


class TenantScopedModel(TimeStampedModel):
    """
    Persistence-level tenant scope.

    Every row carries both the organization FK and the denormalized
    organization_identifier; save() keeps the two in step so lookups by
    identifier (the key embedded in tokens) never drift from the FK.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    organization = models.ForeignKey(
        "organizations.Organization",
        on_delete=models.PROTECT,
        related_name="%(app_label)s_%(class)s_set",
    )
    organization_identifier = models.CharField(max_length=32, db_index=True)

    class Meta:
        abstract = True

    def save(self, *args, **kwargs):
        if self.organization_id:
            self.organization_identifier = self.organization.identifier
        return super().save(*args, **kwargs)
