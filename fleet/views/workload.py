"""
Workload analytics endpoints.

All figures are recomputed from the request table on every call.
"""
from __future__ import annotations

from rest_framework import serializers
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from ..models import Role, StaffStatus
from ..serializers.requests import serialize_request
from ..services.analytics import WorkloadAnalytics
from ..services.store import Store


class StaffQuerySerializer(serializers.Serializer):
    role = serializers.ChoiceField(choices=[*Role.values, 'all'], required=False, allow_blank=True)
    status = serializers.ChoiceField(choices=[*StaffStatus.values, 'all'], required=False, allow_blank=True)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def workload_summary(request):
    return Response({'ok': True, 'data': WorkloadAnalytics(Store()).system_summary()})


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def workload_staff(request):
    """Per-staff task buckets and efficiency, filtered by ``role`` and ``status``."""
    q = StaffQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    data = WorkloadAnalytics(Store()).per_staff_summary(
        role=q.validated_data.get('role'), status=q.validated_data.get('status')
    )
    return Response({'ok': True, 'data': data, 'count': len(data)})


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def workload_staff_detail(request, pk):
    detail = WorkloadAnalytics(Store()).staff_detail(pk)
    detail['recent_tasks'] = [serialize_request(r) for r in detail['recent_tasks']]
    return Response({'ok': True, 'data': detail})
