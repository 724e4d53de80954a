"""Profile helpers shared by the auth and dashboard endpoints."""
from __future__ import annotations

from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from ..models import User


def serialize_profile(user: User) -> dict:
    floor = user.current_floor
    return {
        'id': user.id,
        'username': user.username,
        'employee_code': user.employee_code,
        'full_name': user.display_name,
        'role': user.role,
        'phone': user.phone,
        'current_status': user.current_status,
        'current_floor': {'id': floor.id, 'name': floor.name, 'building': floor.building} if floor else None,
        'active_request_count': user.active_request_count,
    }


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def me(request):
    return Response({'ok': True, 'data': serialize_profile(request.user)})
