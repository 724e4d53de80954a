"""
Django admin registrations for the dispatch models.

Superusers can inspect requests, equipment and staff at ``/admin/``.
Request status and equipment coupling should be changed through the
API so that history rows and counters stay consistent; the admin is
meant for inspection and reference data.
"""

from django.contrib import admin

from .models import (
    AccessPoint,
    AuditEvent,
    Equipment,
    Floor,
    RequestTransition,
    Room,
    TransportRequest,
    User,
    Zone,
)


@admin.register(Floor)
class FloorAdmin(admin.ModelAdmin):
    list_display = ('id', 'name', 'building', 'level')
    search_fields = ('name', 'building')


@admin.register(Zone)
class ZoneAdmin(admin.ModelAdmin):
    list_display = ('id', 'name', 'floor')
    list_filter = ('floor',)


@admin.register(Room)
class RoomAdmin(admin.ModelAdmin):
    list_display = ('id', 'name', 'room_type', 'zone')
    list_filter = ('room_type',)
    search_fields = ('name',)


@admin.register(AccessPoint)
class AccessPointAdmin(admin.ModelAdmin):
    list_display = ('id', 'name', 'floor', 'room', 'x_coord', 'y_coord')


@admin.register(User)
class UserAdmin(admin.ModelAdmin):
    list_display = ('username', 'employee_code', 'full_name', 'role', 'current_status', 'active_request_count')
    list_filter = ('role', 'current_status')
    search_fields = ('username', 'employee_code', 'full_name')
    readonly_fields = ('active_request_count',)


@admin.register(Equipment)
class EquipmentAdmin(admin.ModelAdmin):
    list_display = ('equipment_code', 'type', 'status', 'battery_level', 'current_floor', 'assigned_request')
    list_filter = ('type', 'status')
    search_fields = ('equipment_code',)
    readonly_fields = ('assigned_request',)


class RequestTransitionInline(admin.TabularInline):
    model = RequestTransition
    extra = 0
    readonly_fields = ('from_status', 'to_status', 'operator', 'timestamp', 'reason')
    can_delete = False


@admin.register(TransportRequest)
class TransportRequestAdmin(admin.ModelAdmin):
    list_display = ('id', 'patient_name', 'priority', 'equipment_type', 'status', 'requested_by', 'assigned_to', 'created_at')
    list_filter = ('status', 'priority', 'equipment_type')
    search_fields = ('id', 'patient_name', 'requested_by__username', 'assigned_to__username')
    readonly_fields = ('status', 'assigned_to', 'equipment', 'assigned_at', 'completed_at')
    inlines = [RequestTransitionInline]


@admin.register(AuditEvent)
class AuditEventAdmin(admin.ModelAdmin):
    list_display = ('action', 'user', 'object_type', 'object_id', 'created_at')
    list_filter = ('action', 'object_type')
    search_fields = ('object_id', 'user__username')
