"""
Request dispatch lifecycle.

:class:`DispatchEngine` validates and applies every mutation of a
transport request: creation, status changes, assignment of a staff
member and an equipment unit, and cancellation.  Each mutating call is
a single transaction against the engine's :class:`Store`; request and
equipment rows are locked before they are read, so the two entities
are either both updated or neither is.
"""
from __future__ import annotations

import html
import logging
from typing import Optional

import bleach
from django.conf import settings
from django.db import DatabaseError
from django.utils import timezone

from fleet.exceptions import ConflictError, NotFoundError, UpstreamError, ValidationError
from fleet.models import (
    ACTIVE_STATUSES,
    TERMINAL_STATUSES,
    EquipmentType,
    Priority,
    RequestStatus,
    TransportRequest,
    User,
)
from fleet.services import notify
from fleet.services.audit import log_action
from fleet.services.store import Store

logger = logging.getLogger(__name__)


def _clean(text) -> Optional[str]:
    if text is None:
        return None
    # Notes are stored as plain text: drop all markup, keep literal characters
    text = html.unescape(bleach.clean(str(text), tags=set(), attributes={}, strip=True)).strip()
    return text or None


def parse_priority(value) -> int:
    try:
        priority = int(value)
    except (TypeError, ValueError):
        raise ValidationError({'priority': 'Priority must be 1 (STAT), 2 (HIGH), 3 (NORMAL) or 4 (LOW)'})
    if priority not in Priority.values:
        raise ValidationError({'priority': 'Priority must be 1 (STAT), 2 (HIGH), 3 (NORMAL) or 4 (LOW)'})
    return priority


def parse_status(value) -> RequestStatus:
    if value not in RequestStatus.values:
        raise ValidationError({'status': f"Invalid status. Must be one of: {', '.join(RequestStatus.values)}"})
    return RequestStatus(value)


class DispatchEngine:
    def __init__(self, store: Optional[Store] = None):
        self.store = store or Store()

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------
    def create_request(self, requester: Optional[User], *, priority, equipment_type, pickup_room_id,
                       destination_room_id, notes=None, duration=None, patient_name=None) -> TransportRequest:
        """Create a pending request on behalf of the authenticated ``requester``."""
        if priority in (None, '') or not pickup_room_id or not destination_room_id or not equipment_type:
            raise ValidationError(
                'Missing required fields: priority, pickup_room_id, destination_room_id, equipment_type'
            )
        priority = parse_priority(priority)
        if equipment_type not in EquipmentType.values:
            raise ValidationError({'equipment_type': "Equipment type must be 'wheelchair' or 'bed'"})
        if duration in (None, ''):
            duration = settings.DISPATCH_DEFAULT_DURATION_MIN
        try:
            duration = int(duration)
        except (TypeError, ValueError):
            raise ValidationError({'estimated_duration_minutes': 'Duration must be a whole number of minutes'})
        if duration < 1:
            raise ValidationError({'estimated_duration_minutes': 'Duration must be at least 1 minute'})

        try:
            with self.store.atomic():
                if not self.store.rooms_exist(pickup_room_id, destination_room_id):
                    raise ValidationError('Unknown pickup or destination room')
                req = self.store.create_request(
                    patient_name=_clean(patient_name),
                    priority=priority,
                    equipment_type=equipment_type,
                    pickup_room_id=pickup_room_id,
                    destination_room_id=destination_room_id,
                    notes=_clean(notes),
                    estimated_duration_minutes=duration,
                    status=RequestStatus.PENDING,
                    requested_by=requester if getattr(requester, 'pk', None) else None,
                )
                self.store.record_transition(req, None, RequestStatus.PENDING, requester, 'created')
                self.store.refresh_active_counts([req.requested_by_id])
                log_action(user=requester, action='request_create', object_type='request', object_id=req.pk,
                           detail={'priority': priority, 'equipment_type': equipment_type}, using=self.store.alias)
                self._announce(req, 'created')
        except DatabaseError as exc:
            raise UpstreamError(f'could not create request: {exc}') from exc
        logger.info("request %s created by %s priority=%s type=%s",
                    req.pk, getattr(requester, 'pk', None), priority, equipment_type)
        return req

    # ------------------------------------------------------------------
    # Status changes
    # ------------------------------------------------------------------
    def advance_status(self, request_id, new_status, *, operator: Optional[User] = None,
                       reason: str = '') -> TransportRequest:
        """Move a request to ``new_status``.

        Any status in the enum may be targeted from a non-terminal
        request; completed and cancelled requests refuse every change.
        Completing stamps ``completed_at``; reaching either terminal
        status releases the coupled equipment.
        """
        target = parse_status(new_status)
        try:
            with self.store.atomic():
                req = self._lock_request(request_id)
                if req.is_terminal:
                    if req.status == target == RequestStatus.CANCELLED:
                        return req
                    logger.warning("request %s is %s; refusing move to %s", req.pk, req.status, target)
                    raise ConflictError(f'Request is {req.status}; no further transitions are allowed')
                old = req.status
                req.status = target
                fields = ['status']
                if target == RequestStatus.COMPLETED:
                    req.completed_at = timezone.now()
                    fields.append('completed_at')
                self.store.save_request(req, fields)
                if target in TERMINAL_STATUSES and req.equipment_id:
                    self.store.release_equipment(req.equipment_id, req)
                self.store.record_transition(req, old, target, operator, reason or 'status update')
                self.store.refresh_active_counts([req.requested_by_id, req.assigned_to_id])
                action = 'request_cancel' if target == RequestStatus.CANCELLED else 'request_status'
                log_action(user=operator, action=action, object_type='request', object_id=req.pk,
                           detail={'from': old, 'to': target}, using=self.store.alias)
                self._announce(req, 'status')
        except DatabaseError as exc:
            raise UpstreamError(f'could not update request {request_id}: {exc}') from exc
        logger.info("request %s %s -> %s by %s", req.pk, old, target, getattr(operator, 'pk', None))
        return req

    def cancel_request(self, request_id, *, operator: Optional[User] = None, reason: str = '') -> TransportRequest:
        """Cancel a request; cancelling twice is a no-op, cancelling a completed one is refused."""
        return self.advance_status(request_id, RequestStatus.CANCELLED, operator=operator,
                                   reason=reason or 'cancelled')

    # ------------------------------------------------------------------
    # Assignment
    # ------------------------------------------------------------------
    def assign_request(self, request_id, assignee_id, equipment_id=None, *,
                       operator: Optional[User] = None) -> TransportRequest:
        """Assign a staff member and optionally an equipment unit to a request.

        The request update, the equipment claim, the release of any unit
        previously held by the request, the history row and the counter
        refresh commit together or not at all.
        """
        if not assignee_id:
            raise ValidationError({'assignee_id': 'assignee is required'})
        try:
            with self.store.atomic():
                req = self._lock_request(request_id)
                if req.is_terminal:
                    raise ConflictError(f'Request is {req.status} and cannot be assigned')
                assignee = self.store.get_user(assignee_id)
                if assignee is None:
                    raise NotFoundError(f'Staff member {assignee_id} not found')

                equipment = None
                if equipment_id:
                    equipment = self.store.lock_equipment(equipment_id)
                    if equipment is None:
                        raise NotFoundError(f'Equipment {equipment_id} not found')
                    if equipment.type != req.equipment_type:
                        raise ValidationError(
                            f'Request needs a {req.equipment_type}; equipment {equipment.equipment_code} is a {equipment.type}'
                        )
                    if equipment.assigned_request_id not in (None, req.pk):
                        raise ConflictError(f'Equipment {equipment.equipment_code} is already assigned to another request')

                old_status = req.status
                previous_assignee = req.assigned_to_id
                previous_equipment = req.equipment_id
                now = timezone.now()
                req.assigned_to = assignee
                req.status = RequestStatus.ASSIGNED
                req.assigned_at = now
                fields = ['assigned_to', 'status', 'assigned_at']
                if equipment is not None:
                    req.equipment = equipment
                    fields.append('equipment')
                self.store.save_request(req, fields)

                if equipment is not None:
                    if previous_equipment and previous_equipment != equipment.pk:
                        self.store.release_equipment(previous_equipment, req)
                    if not self.store.claim_equipment(equipment, req):
                        logger.warning("equipment %s could not be claimed for request %s", equipment.pk, req.pk)
                        raise ConflictError(
                            f'Equipment {equipment.equipment_code} is {equipment.status} and cannot be assigned'
                        )

                self.store.record_transition(req, old_status, RequestStatus.ASSIGNED, operator,
                                             f'assigned to {assignee.display_name}')
                self.store.refresh_active_counts([req.requested_by_id, assignee.pk, previous_assignee])
                log_action(user=operator, action='request_assign', object_type='request', object_id=req.pk,
                           detail={'assignee': assignee.pk, 'equipment': str(equipment.pk) if equipment else None},
                           using=self.store.alias)
                self._announce(req, 'assigned')
        except DatabaseError as exc:
            raise UpstreamError(f'could not assign request {request_id}: {exc}') from exc
        logger.info("request %s assigned to %s equipment=%s", req.pk, assignee_id, equipment_id)
        return req

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def list_active_for_user(self, user_id):
        """Open work a user requested or carries, STAT first and oldest first within a tier."""
        return (
            self.store.requests_for_user(user_id)
            .filter(status__in=ACTIVE_STATUSES)
            .select_related('pickup_room', 'destination_room', 'requested_by', 'assigned_to', 'equipment')
            .order_by('priority', 'created_at')
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _lock_request(self, request_id) -> TransportRequest:
        req = self.store.lock_request(request_id)
        if req is None:
            logger.warning("request %s not found", request_id)
            raise NotFoundError(f'Request {request_id} not found')
        return req

    def _announce(self, req: TransportRequest, event: str) -> None:
        payload = notify.request_event(req, event)
        self.store.on_commit(lambda: notify.publish(payload))
