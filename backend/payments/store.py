"""ORM-backed record store with compare-and-set updates."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Mapping

from django.db import models
from django.db.models import Q
from django.utils import timezone

from .exceptions import StaleRecordError

logger = logging.getLogger(__name__)

# Correlation ids that may only be written while blank.
WRITE_ONCE_FIELDS = ("stripe_checkout_session_id", "stripe_payment_intent_id")


class DjangoRecordStore:
    """
    Read and conditionally update one payable model.

    ``update_fields`` is a single UPDATE whose WHERE clause carries the
    expected prior state, so two writers racing on the same record cannot
    both apply a transition.
    """

    def __init__(self, model: type[models.Model], *, select_related: tuple[str, ...] = ()):
        self.model = model
        self.status_field = model.STATUS_FIELD
        self.select_related = select_related

    def _queryset(self):
        queryset = self.model.objects.all()
        if self.select_related:
            queryset = queryset.select_related(*self.select_related)
        return queryset

    def find_by_identifier(self, record_id: Any):
        try:
            pk = int(record_id)
        except (TypeError, ValueError):
            return None
        return self._queryset().filter(pk=pk).first()

    def find_by_session_id(self, session_id: str):
        if not session_id:
            return None
        return self._queryset().filter(stripe_checkout_session_id=session_id).first()

    def find_by_intent_id(self, intent_id: str):
        if not intent_id:
            return None
        return self._queryset().filter(stripe_payment_intent_id=intent_id).first()

    def update_fields(
        self,
        record_id: Any,
        patch: Mapping[str, Any],
        *,
        expected_status: str | None = None,
        expected: Mapping[str, Any] | None = None,
    ):
        """Apply ``patch`` only if the row still matches; raise StaleRecordError otherwise."""
        changes = dict(patch)
        queryset = self.model.objects.filter(pk=record_id)
        if expected_status is not None:
            queryset = queryset.filter(**{self.status_field: expected_status})
        if expected:
            queryset = queryset.filter(**expected)
        for field_name in WRITE_ONCE_FIELDS:
            value = changes.get(field_name)
            if value:
                queryset = queryset.filter(Q(**{field_name: ""}) | Q(**{field_name: value}))
        changes["updated_at"] = timezone.now()

        if not queryset.update(**changes):
            logger.info(
                "record_store: conditional update skipped",
                extra={
                    "model": self.model._meta.label,
                    "record_id": record_id,
                    "expected_status": expected_status,
                },
            )
            raise StaleRecordError(
                f"{self.model._meta.label} {record_id} no longer matches the expected state"
            )
        return self._queryset().get(pk=record_id)

    def find_expired(self, older_than: datetime, status: str) -> list:
        return list(
            self._queryset()
            .filter(**{self.status_field: status, "authorized_at__lt": older_than})
            .order_by("authorized_at", "pk")
        )
