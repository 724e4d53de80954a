"""
Transport request endpoints.

Every mutation goes through :class:`DispatchEngine`; these views only
validate the wire format, check the caller's role and shape the
response.  The requester of a new request is always the authenticated
caller, never a value from the request body.
"""
from __future__ import annotations

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from ..exceptions import NotFoundError
from ..models import User
from ..permissions import can_dispatch
from ..serializers.requests import (
    RequestAssignSerializer,
    RequestCreateSerializer,
    RequestListQuerySerializer,
    RequestStatusSerializer,
    serialize_request,
)
from ..services.dispatch import DispatchEngine
from ..services.store import Store

RELATED = ('pickup_room', 'destination_room', 'requested_by', 'assigned_to', 'equipment')


def _listing(qs) -> Response:
    data = [serialize_request(r) for r in qs]
    return Response({'ok': True, 'data': data, 'count': len(data)})


def _engine() -> DispatchEngine:
    return DispatchEngine(Store())


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def requests_collection(request):
    """GET lists requests with optional filters; POST creates a request."""
    user: User = request.user  # type: ignore[assignment]
    if request.method == 'GET':
        q = RequestListQuerySerializer(data=request.query_params)
        q.is_valid(raise_exception=True)
        filters = q.validated_data
        qs = Store().requests().select_related(*RELATED).order_by('-created_at')
        if 'status' in filters:
            qs = qs.filter(status=filters['status'])
        if 'assigned_to' in filters:
            qs = qs.filter(assigned_to_id=filters['assigned_to'])
        if 'requested_by' in filters:
            qs = qs.filter(requested_by_id=filters['requested_by'])
        if 'equipment_type' in filters:
            qs = qs.filter(equipment_type=filters['equipment_type'])
        if 'priority' in filters:
            qs = qs.filter(priority=filters['priority'])
        return _listing(qs)

    s = RequestCreateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    vd = s.validated_data
    req = _engine().create_request(
        user,
        priority=vd['priority'],
        equipment_type=vd['equipment_type'],
        pickup_room_id=vd['pickup_room_id'],
        destination_room_id=vd['destination_room_id'],
        notes=vd.get('notes'),
        duration=vd.get('estimated_duration_minutes'),
        patient_name=vd.get('patient_name'),
    )
    req = Store().requests().select_related(*RELATED).get(pk=req.pk)
    return Response(
        {'ok': True, 'message': 'Request created successfully', 'data': serialize_request(req)},
        status=status.HTTP_201_CREATED,
    )


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def active_requests(request):
    """Caller's open work, STAT first, then oldest first."""
    return _listing(_engine().list_active_for_user(request.user.id))


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def my_requests(request):
    qs = Store().requests().filter(requested_by=request.user).select_related(*RELATED)
    return _listing(qs.order_by('-created_at'))


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def assigned_requests(request):
    qs = Store().requests().filter(assigned_to=request.user).select_related(*RELATED)
    return _listing(qs.order_by('-created_at'))


@api_view(['GET', 'DELETE'])
@permission_classes([IsAuthenticated])
def request_detail(request, pk):
    """GET returns a request with its history; DELETE cancels it."""
    if request.method == 'DELETE':
        req = _engine().cancel_request(pk, operator=request.user)
        return Response({'ok': True, 'message': 'Request cancelled successfully', 'data': _reload(req.pk)})
    return Response({'ok': True, 'data': _reload(pk, history=True)})


@api_view(['PUT'])
@permission_classes([IsAuthenticated])
def request_update_status(request, pk):
    s = RequestStatusSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    req = _engine().advance_status(
        pk, s.validated_data['status'], operator=request.user, reason=s.validated_data.get('reason', '')
    )
    return Response({'ok': True, 'message': 'Request status updated', 'data': _reload(req.pk)})


@api_view(['PUT'])
@permission_classes([IsAuthenticated])
def request_assign(request, pk):
    """Assign a porter (and optionally a unit) to a request.

    Nurses and admins may assign anyone; porters may only take a
    request themselves.
    """
    s = RequestAssignSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    assignee_id = s.validated_data['assignee_id']
    user: User = request.user  # type: ignore[assignment]
    if not can_dispatch(user) and assignee_id != user.id:
        return Response(
            {'ok': False, 'error': {'code': 'forbidden', 'message': 'Porters can only assign requests to themselves'}},
            status=status.HTTP_403_FORBIDDEN,
        )
    req = _engine().assign_request(pk, assignee_id, s.validated_data.get('equipment_id'), operator=user)
    return Response({'ok': True, 'message': 'Request assigned successfully', 'data': _reload(req.pk)})


def _reload(pk, *, history: bool = False) -> dict:
    req = Store().requests().select_related(*RELATED).filter(pk=pk).first()
    if req is None:
        raise NotFoundError('Request not found')
    return serialize_request(req, history=history)
