import logging
from typing import Optional

from django.db import DatabaseError
from django.db.models import Q

from fleet.exceptions import ConflictError, NotFoundError, UpstreamError, ValidationError
from fleet.models import ACTIVE_STATUSES, Equipment, EquipmentStatus, User
from fleet.services.audit import log_action
from fleet.services.store import Store

logger = logging.getLogger(__name__)


def list_equipment(store: Store, *, type: Optional[str]=None, status: Optional[str]=None, floor_id=None):
    qs = store.equipment().select_related('current_floor', 'current_room', 'current_ap')
    if type:
        qs = qs.filter(type=type)
    if status:
        qs = qs.filter(status=status)
    if floor_id:
        qs = qs.filter(current_floor_id=floor_id)
    return qs.order_by('-created_at')


def nearby_available(store: Store, user: User, *, type: Optional[str]=None):
    if not getattr(user, 'current_floor_id', None):
        raise ValidationError('User has no floor assignment')
    qs = store.equipment().select_related('current_floor', 'current_room', 'current_ap').filter(
        status=EquipmentStatus.AVAILABLE, current_floor_id=user.current_floor_id
    )
    if type:
        qs = qs.filter(type=type)
    return qs.order_by('-battery_level', 'equipment_code')


def search_equipment(store: Store, *, q: Optional[str]=None, type: Optional[str]=None, status: Optional[str]=None):
    if not q and not type and not status:
        raise ValidationError('Please provide search query (q), type, or status')
    qs = store.equipment().select_related('current_floor', 'current_room')
    if q:
        qs = qs.filter(Q(equipment_code__icontains=q) | Q(type__icontains=q))
    if type:
        qs = qs.filter(type=type)
    if status:
        qs = qs.filter(status=status)
    return qs.order_by('equipment_code')


def set_equipment_status(store: Store, equipment_id, new_status: str, *, operator: Optional[User]=None) -> Equipment:
    """Change a unit's status outside of the request lifecycle.

    Used by charging and maintenance workflows.  ``in_use`` is reserved
    for assignment, and a unit held by a live request only changes
    through that request.
    """
    if new_status not in EquipmentStatus.values:
        raise ValidationError({'status': f"Invalid status. Must be one of: {', '.join(EquipmentStatus.values)}"})
    if new_status == EquipmentStatus.IN_USE:
        raise ConflictError('Equipment becomes in_use only by assigning it to a request')
    try:
        with store.atomic():
            equipment = store.lock_equipment(equipment_id)
            if equipment is None:
                raise NotFoundError(f'Equipment {equipment_id} not found')
            holder = equipment.assigned_request_id
            if holder and store.requests().filter(pk=holder, status__in=ACTIVE_STATUSES).exists():
                raise ConflictError(
                    f'Equipment {equipment.equipment_code} is held by request {holder}; complete or cancel it first'
                )
            old = equipment.status
            if holder:
                # Stale pointer left by a request that already finished
                equipment.assigned_request = None
                equipment.save(using=store.alias, update_fields=['assigned_request', 'updated_at'])
            store.set_equipment_status(equipment, new_status)
            log_action(user=operator, action='equipment_status', object_type='equipment', object_id=equipment.pk,
                       detail={'from': old, 'to': new_status}, using=store.alias)
    except DatabaseError as exc:
        raise UpstreamError(f'could not update equipment {equipment_id}: {exc}') from exc
    logger.info("equipment %s %s -> %s", equipment.equipment_code, old, new_status)
    return equipment
