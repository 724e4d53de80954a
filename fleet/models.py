"""
Database models for the equipment dispatch backend.

The directory models (floors, zones, rooms, access points) are
reference data: the dispatch core only passes their ids through.
Equipment units and transport requests are the two mutable entities
the dispatch engine keeps consistent with each other.  Status, role and
priority fields are closed choice sets so that every consumer can
branch over them exhaustively.
"""
from __future__ import annotations

import uuid

from django.contrib.auth.models import AbstractUser
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models


# ---------------------------------------------------------------------------
# Choice sets
# ---------------------------------------------------------------------------

class Role(models.TextChoices):
    PORTER = 'porter', 'Porter'
    NURSE = 'nurse', 'Nurse'
    ADMIN = 'admin', 'Administrator'


class StaffStatus(models.TextChoices):
    AVAILABLE = 'available', 'Available'
    BUSY = 'busy', 'Busy'
    OFFLINE = 'offline', 'Offline'


class EquipmentType(models.TextChoices):
    WHEELCHAIR = 'wheelchair', 'Wheelchair'
    BED = 'bed', 'Bed'


class EquipmentStatus(models.TextChoices):
    AVAILABLE = 'available', 'Available'
    IN_USE = 'in_use', 'In use'
    CHARGING = 'charging', 'Charging'
    MAINTENANCE = 'maintenance', 'Maintenance'


class Priority(models.IntegerChoices):
    STAT = 1, 'STAT'
    HIGH = 2, 'HIGH'
    NORMAL = 3, 'NORMAL'
    LOW = 4, 'LOW'


class RequestStatus(models.TextChoices):
    PENDING = 'pending', 'Pending'
    QUEUED = 'queued', 'Queued'
    ASSIGNED = 'assigned', 'Assigned'
    IN_PROGRESS = 'in_progress', 'In progress'
    COMPLETED = 'completed', 'Completed'
    CANCELLED = 'cancelled', 'Cancelled'


ACTIVE_STATUSES = (
    RequestStatus.PENDING,
    RequestStatus.QUEUED,
    RequestStatus.ASSIGNED,
    RequestStatus.IN_PROGRESS,
)
TERMINAL_STATUSES = (RequestStatus.COMPLETED, RequestStatus.CANCELLED)


# ---------------------------------------------------------------------------
# Directory (read-mostly reference data)
# ---------------------------------------------------------------------------

class Floor(models.Model):
    name = models.CharField(max_length=100)
    building = models.CharField(max_length=100, blank=True)
    level = models.IntegerField(default=0)

    class Meta:
        ordering = ['building', 'level']

    def __str__(self) -> str:
        return f"{self.building} {self.name}".strip()


class Zone(models.Model):
    floor = models.ForeignKey(Floor, on_delete=models.CASCADE, related_name='zones')
    name = models.CharField(max_length=100)

    def __str__(self) -> str:
        return f"{self.name} ({self.floor})"


class Room(models.Model):
    zone = models.ForeignKey(Zone, on_delete=models.CASCADE, related_name='rooms')
    name = models.CharField(max_length=100)
    room_type = models.CharField(max_length=50, blank=True, db_index=True)

    def __str__(self) -> str:
        return self.name


class AccessPoint(models.Model):
    floor = models.ForeignKey(Floor, on_delete=models.CASCADE, related_name='access_points')
    room = models.ForeignKey(Room, null=True, blank=True, on_delete=models.SET_NULL, related_name='access_points')
    name = models.CharField(max_length=100)
    x_coord = models.FloatField(null=True, blank=True)
    y_coord = models.FloatField(null=True, blank=True)

    def __str__(self) -> str:
        return self.name


# ---------------------------------------------------------------------------
# Staff
# ---------------------------------------------------------------------------

class User(AbstractUser):
    """Staff member with a flat role and a live availability status.

    ``active_request_count`` is a denormalised cache of open work.  The
    dispatch engine recomputes it on every write it performs and the
    analytics engine never reads it.
    """
    employee_code = models.CharField(max_length=32, unique=True, null=True, blank=True)
    full_name = models.CharField(max_length=255, blank=True)
    phone = models.CharField(max_length=32, blank=True)
    role = models.CharField(max_length=16, choices=Role.choices, default=Role.PORTER, db_index=True)
    current_status = models.CharField(
        max_length=16, choices=StaffStatus.choices, default=StaffStatus.AVAILABLE, db_index=True
    )
    current_floor = models.ForeignKey(
        Floor, null=True, blank=True, on_delete=models.SET_NULL, related_name='staff'
    )
    active_request_count = models.PositiveIntegerField(default=0)

    @property
    def display_name(self) -> str:
        return self.full_name or self.get_full_name() or self.username

    def __str__(self) -> str:
        return f"{self.username} ({self.role})"


# ---------------------------------------------------------------------------
# Equipment registry & request store
# ---------------------------------------------------------------------------

class Equipment(models.Model):
    """A physical wheelchair or bed tracked by the registry.

    Within the dispatch engine ``status == in_use`` holds exactly when
    ``assigned_request`` is set.  Charging and maintenance are set by
    outside processes and are never overwritten by a release.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    equipment_code = models.CharField(max_length=32, unique=True)
    type = models.CharField(max_length=16, choices=EquipmentType.choices, db_index=True)
    battery_level = models.PositiveSmallIntegerField(
        default=100, validators=[MinValueValidator(0), MaxValueValidator(100)]
    )
    status = models.CharField(
        max_length=16, choices=EquipmentStatus.choices, default=EquipmentStatus.AVAILABLE, db_index=True
    )
    # Location pointers are reserved for positioning and never written here
    current_floor = models.ForeignKey(
        Floor, null=True, blank=True, on_delete=models.SET_NULL, related_name='equipment'
    )
    current_room = models.ForeignKey(
        Room, null=True, blank=True, on_delete=models.SET_NULL, related_name='equipment'
    )
    current_ap = models.ForeignKey(
        AccessPoint, null=True, blank=True, on_delete=models.SET_NULL, related_name='equipment'
    )
    assigned_request = models.ForeignKey(
        'TransportRequest', null=True, blank=True, on_delete=models.SET_NULL, related_name='claimed_equipment'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        indexes = [
            models.Index(fields=['status', 'current_floor'], name='fleet_equip_status_2e6b90_idx'),
        ]

    def __str__(self) -> str:
        return f"{self.equipment_code} ({self.type}, {self.status})"


class TransportRequest(models.Model):
    """A unit of transport work moving a patient with a piece of equipment.

    Requests are never deleted; cancellation is a terminal status so
    that historical workload metrics remain complete.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    patient_name = models.CharField(max_length=255, null=True, blank=True)
    priority = models.PositiveSmallIntegerField(choices=Priority.choices, default=Priority.NORMAL, db_index=True)
    equipment_type = models.CharField(max_length=16, choices=EquipmentType.choices)
    pickup_room = models.ForeignKey(Room, on_delete=models.PROTECT, related_name='pickups')
    destination_room = models.ForeignKey(Room, on_delete=models.PROTECT, related_name='dropoffs')
    notes = models.TextField(null=True, blank=True)
    estimated_duration_minutes = models.PositiveIntegerField(default=30)
    status = models.CharField(
        max_length=16, choices=RequestStatus.choices, default=RequestStatus.PENDING, db_index=True
    )
    requested_by = models.ForeignKey(
        User, null=True, blank=True, on_delete=models.SET_NULL, related_name='requests_created'
    )
    assigned_to = models.ForeignKey(
        User, null=True, blank=True, on_delete=models.SET_NULL, related_name='requests_assigned'
    )
    equipment = models.ForeignKey(
        Equipment, null=True, blank=True, on_delete=models.SET_NULL, related_name='requests'
    )
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    assigned_at = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        indexes = [
            models.Index(fields=['status', 'priority', 'created_at'], name='fleet_trans_status_8a1f0c_idx'),
            models.Index(fields=['assigned_to', 'status'], name='fleet_trans_assigne_3c9e2d_idx'),
            models.Index(fields=['requested_by', 'status'], name='fleet_trans_request_5b7d41_idx'),
        ]

    @property
    def priority_label(self) -> str:
        return priority_label(self.priority)

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def __str__(self) -> str:
        return f"{self.equipment_type} #{self.id} [{self.status}]"


class RequestTransition(models.Model):
    """Records a status transition for a transport request."""
    request = models.ForeignKey(TransportRequest, related_name='transitions', on_delete=models.CASCADE)
    from_status = models.CharField(max_length=16, null=True, blank=True)
    to_status = models.CharField(max_length=16)
    operator = models.ForeignKey(
        User, null=True, blank=True, on_delete=models.SET_NULL, related_name='request_transitions'
    )
    timestamp = models.DateTimeField(auto_now_add=True)
    reason = models.CharField(max_length=255, blank=True)

    def __str__(self) -> str:
        return f"{self.request_id}: {self.from_status} → {self.to_status}"


class AuditEvent(models.Model):
    user = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True)
    action = models.CharField(max_length=64)
    object_type = models.CharField(max_length=64, blank=True, null=True)
    object_id = models.CharField(max_length=64, blank=True, null=True)
    detail = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [
            models.Index(fields=['action', 'created_at'], name='fleet_audit_action_7d2c18_idx'),
            models.Index(fields=['object_type', 'object_id', 'created_at'], name='fleet_audit_object__4f0a63_idx'),
        ]

    def __str__(self):
        return f"{self.action}:{self.user_id}@{self.created_at:%F %T}"


def priority_label(priority: int | None) -> str:
    """Presentation label for a priority value; anything unknown is LOW."""
    if priority == Priority.STAT:
        return 'STAT'
    if priority == Priority.HIGH:
        return 'HIGH'
    if priority == Priority.NORMAL:
        return 'NORMAL'
    return 'LOW'
