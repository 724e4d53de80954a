"""
Personal dashboard for the signed-in staff member.

The dashboard combines the caller's profile, the available equipment
on their floor and their open work.  The stats endpoint counts the
requests currently assigned to the caller.
"""
from __future__ import annotations

from django.db.models import Count, Q
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from ..models import EquipmentStatus, RequestStatus
from ..serializers.equipment import serialize_equipment
from ..serializers.requests import serialize_request
from ..services.dispatch import DispatchEngine
from ..services.store import Store
from .users import serialize_profile


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def dashboard(request):
    user = request.user
    store = Store()
    nearby = []
    if user.current_floor_id:
        nearby = list(
            store.equipment()
            .select_related('current_floor', 'current_room', 'current_ap')
            .filter(status=EquipmentStatus.AVAILABLE, current_floor_id=user.current_floor_id)
            .order_by('-battery_level', 'equipment_code')
        )
    active = list(DispatchEngine(store).list_active_for_user(user.id))
    return Response({
        'ok': True,
        'data': {
            'user': serialize_profile(user),
            'nearby_equipment_count': len(nearby),
            'nearby_equipment': [serialize_equipment(e) for e in nearby],
            'active_tasks_count': len(active),
            'active_tasks': [serialize_request(r) for r in active],
        },
    })


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def dashboard_stats(request):
    """Counts over requests assigned to the caller."""
    stats = Store().requests().filter(assigned_to=request.user).aggregate(
        total=Count('id'),
        completed=Count('id', filter=Q(status=RequestStatus.COMPLETED)),
        in_progress=Count('id', filter=Q(status=RequestStatus.IN_PROGRESS)),
        pending=Count('id', filter=Q(status__in=[
            RequestStatus.PENDING, RequestStatus.QUEUED, RequestStatus.ASSIGNED,
        ])),
    )
    return Response({'ok': True, 'data': stats})
