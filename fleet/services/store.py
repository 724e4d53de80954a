"""
Store handle shared by the dispatch and analytics engines.

A :class:`Store` is bound to one database alias and owns every query
the engines run: row locks, the conditional equipment claim, history
rows and counter refreshes.  Engines receive a store at construction
instead of reaching for a global connection.
"""
from __future__ import annotations

from typing import Iterable, Optional

from django.conf import settings
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import transaction
from django.db.models import Q, QuerySet

from fleet.models import (
    ACTIVE_STATUSES,
    Equipment,
    EquipmentStatus,
    RequestTransition,
    Room,
    TransportRequest,
    User,
)


def _by_pk(qs: QuerySet, pk):
    # A malformed id cannot match any row
    try:
        return qs.filter(pk=pk).first()
    except (DjangoValidationError, ValueError, TypeError):
        return None


class Store:
    def __init__(self, alias: Optional[str] = None):
        self.alias = alias or getattr(settings, 'DISPATCH_DB_ALIAS', 'default')

    def atomic(self):
        return transaction.atomic(using=self.alias)

    def on_commit(self, func) -> None:
        transaction.on_commit(func, using=self.alias)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    def requests(self) -> QuerySet[TransportRequest]:
        return TransportRequest.objects.using(self.alias)

    def equipment(self) -> QuerySet[Equipment]:
        return Equipment.objects.using(self.alias)

    def users(self) -> QuerySet[User]:
        return User.objects.using(self.alias)

    def rooms(self) -> QuerySet[Room]:
        return Room.objects.using(self.alias)

    def requests_for_user(self, user_id) -> QuerySet[TransportRequest]:
        return self.requests().filter(Q(requested_by_id=user_id) | Q(assigned_to_id=user_id))

    def get_user(self, user_id) -> Optional[User]:
        return _by_pk(self.users(), user_id)

    def rooms_exist(self, *room_ids) -> bool:
        ids = {r for r in room_ids}
        return self.rooms().filter(pk__in=ids).count() == len(ids)

    # ------------------------------------------------------------------
    # Locked reads (call inside atomic())
    # ------------------------------------------------------------------
    def lock_request(self, request_id) -> Optional[TransportRequest]:
        return _by_pk(self.requests().select_for_update(), request_id)

    def lock_equipment(self, equipment_id) -> Optional[Equipment]:
        return _by_pk(self.equipment().select_for_update(), equipment_id)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------
    def create_request(self, **fields) -> TransportRequest:
        return self.requests().create(**fields)

    def save_request(self, req: TransportRequest, fields: Iterable[str]) -> None:
        req.save(using=self.alias, update_fields=[*fields, 'updated_at'])

    def claim_equipment(self, equipment: Equipment, req: TransportRequest) -> bool:
        """Flip ``equipment`` to in_use for ``req`` if it is still free.

        The update is conditional on the row still being available (or
        already held by this very request), so two racing assignments
        cannot both succeed even where row locks are unavailable.
        """
        free = Q(status=EquipmentStatus.AVAILABLE, assigned_request__isnull=True)
        held = Q(status=EquipmentStatus.IN_USE, assigned_request_id=req.pk)
        updated = self.equipment().filter(free | held, pk=equipment.pk).update(
            status=EquipmentStatus.IN_USE, assigned_request_id=req.pk
        )
        if updated:
            equipment.status = EquipmentStatus.IN_USE
            equipment.assigned_request_id = req.pk
        return bool(updated)

    def release_equipment(self, equipment_id, req: TransportRequest) -> Optional[Equipment]:
        """Undo the coupling between ``req`` and its unit.

        A unit held in_use for the request goes back to available.  A
        unit an outside process moved to charging or maintenance keeps
        that status and only loses the stale request pointer.
        """
        equipment = self.lock_equipment(equipment_id)
        if equipment is None or equipment.assigned_request_id != req.pk:
            return None
        if equipment.status == EquipmentStatus.IN_USE:
            equipment.status = EquipmentStatus.AVAILABLE
        equipment.assigned_request = None
        equipment.save(using=self.alias, update_fields=['status', 'assigned_request', 'updated_at'])
        return equipment

    def set_equipment_status(self, equipment: Equipment, new_status: str) -> None:
        equipment.status = new_status
        equipment.save(using=self.alias, update_fields=['status', 'updated_at'])

    def record_transition(self, req: TransportRequest, from_status, to_status, operator=None, reason: str = '') -> RequestTransition:
        return RequestTransition.objects.using(self.alias).create(
            request=req,
            from_status=from_status,
            to_status=to_status,
            operator=operator if getattr(operator, 'pk', None) else None,
            reason=reason[:255],
        )

    def refresh_active_counts(self, user_ids: Optional[Iterable] = None) -> int:
        """Recompute ``User.active_request_count`` from the request table.

        With ``user_ids`` only those users are touched; otherwise every
        user is.  Returns the number of users whose cached value changed.
        """
        users = self.users()
        if user_ids is not None:
            ids = {u for u in user_ids if u is not None}
            if not ids:
                return 0
            users = users.filter(pk__in=ids)
        changed = 0
        for user in users.only('id', 'active_request_count'):
            actual = self.requests_for_user(user.pk).filter(status__in=ACTIVE_STATUSES).count()
            if actual != user.active_request_count:
                user.active_request_count = actual
                user.save(using=self.alias, update_fields=['active_request_count'])
                changed += 1
        return changed
