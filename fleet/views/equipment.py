"""
Equipment registry endpoints.

Listing, nearby lookup and search are open to every authenticated
staff member.  Status changes (charging, maintenance, back to
available) are restricted to administrators; ``in_use`` is only ever
set by assigning a unit to a request.
"""
from __future__ import annotations

from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from ..exceptions import NotFoundError
from ..permissions import IsAdminRole
from ..serializers.equipment import (
    EquipmentListQuerySerializer,
    EquipmentSearchQuerySerializer,
    EquipmentStatusSerializer,
    serialize_equipment,
)
from ..services import equipment as equipment_service
from ..services.store import Store


def _listing(qs) -> Response:
    data = [serialize_equipment(e) for e in qs]
    return Response({'ok': True, 'data': data, 'count': len(data)})


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def equipment_list(request):
    q = EquipmentListQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    return _listing(equipment_service.list_equipment(Store(), **q.validated_data))


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def equipment_nearby(request):
    """Available units on the caller's floor, fullest battery first."""
    q = EquipmentListQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    qs = equipment_service.nearby_available(Store(), request.user, type=q.validated_data.get('type'))
    return _listing(qs)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def equipment_search(request):
    q = EquipmentSearchQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    return _listing(equipment_service.search_equipment(Store(), **q.validated_data))


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def equipment_detail(request, pk):
    eq = (
        Store().equipment()
        .select_related('current_floor', 'current_room', 'current_ap',
                        'assigned_request__pickup_room', 'assigned_request__destination_room')
        .filter(pk=pk)
        .first()
    )
    if eq is None:
        raise NotFoundError('Equipment not found')
    return Response({'ok': True, 'data': serialize_equipment(eq, with_request=True)})


@api_view(['PUT'])
@permission_classes([IsAuthenticated, IsAdminRole])
def equipment_update_status(request, pk):
    s = EquipmentStatusSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    store = Store()
    equipment_service.set_equipment_status(store, pk, s.validated_data['status'], operator=request.user)
    eq = store.equipment().select_related('current_floor', 'current_room', 'current_ap').get(pk=pk)
    return Response({'ok': True, 'message': 'Equipment status updated', 'data': serialize_equipment(eq)})
