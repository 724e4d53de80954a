from datetime import timedelta

import pytest
from django.test import override_settings
from django.utils import timezone

from fleet.exceptions import NotFoundError
from fleet.models import Priority, RequestStatus, Role, StaffStatus, TransportRequest, User
from fleet.services.analytics import (
    WorkloadAnalytics,
    bucket_counts,
    completion_rate,
    efficiency_score,
    round_half_up,
)
from fleet.services.dispatch import DispatchEngine

pytestmark = pytest.mark.django_db


def _create(engine, requester, rooms):
    return engine.create_request(requester, priority=Priority.NORMAL, equipment_type='wheelchair',
                                 pickup_room_id=rooms[0].id, destination_room_id=rooms[1].id)


def _complete_after(engine, req, porter, minutes):
    engine.assign_request(req.pk, porter.id)
    engine.advance_status(req.pk, RequestStatus.COMPLETED)
    done = timezone.now()
    TransportRequest.objects.filter(pk=req.pk).update(
        created_at=done - timedelta(minutes=minutes), completed_at=done
    )


@pytest.fixture
def handled(nurse, porter, rooms):
    """Three requests completed in 10, 20 and 30 minutes and one cancelled."""
    engine = DispatchEngine()
    for minutes in (10, 20, 30):
        _complete_after(engine, _create(engine, nurse, rooms), porter, minutes)
    cancelled = _create(engine, nurse, rooms)
    engine.assign_request(cancelled.pk, porter.id)
    engine.cancel_request(cancelled.pk)
    return engine


def test_rounding_is_half_up():
    assert round_half_up(76.5) == 77
    assert round_half_up(0.5) == 1
    assert round_half_up(20.49) == 20


def test_bucket_counts_cover_every_status():
    rows = [{'status': s} for s in RequestStatus.values]
    assert bucket_counts(rows) == {'completed': 1, 'active': 2, 'pending': 2, 'cancelled': 1, 'total': 6}
    with pytest.raises(ValueError):
        bucket_counts([{'status': 'lost'}])


def test_rates_with_empty_denominators():
    assert completion_rate(0, 0) == 100
    assert efficiency_score(100, 0) == 100
    assert efficiency_score(0, 250) == 0


def test_system_summary_on_empty_store():
    assert WorkloadAnalytics().system_summary() == {
        'total_tasks': 0,
        'completed_count': 0,
        'cancelled_count': 0,
        'avg_completion_minutes': 0,
        'efficiency_percent': 100,
    }


def test_system_summary(handled, nurse, rooms):
    _create(handled, nurse, rooms)
    summary = WorkloadAnalytics().system_summary()
    assert summary == {
        'total_tasks': 5,
        'completed_count': 3,
        'cancelled_count': 1,
        'avg_completion_minutes': 20,
        'efficiency_percent': 75,
    }


def test_per_staff_summary_scores_porter(handled, porter):
    rows = WorkloadAnalytics().per_staff_summary(role=Role.PORTER)
    assert [r['id'] for r in rows] == [porter.id]
    row = rows[0]
    assert row['tasks'] == {'completed': 3, 'active': 0, 'pending': 0, 'cancelled': 1, 'total': 4}
    assert row['completion_rate'] == 75
    assert row['avg_completion_minutes'] == 20
    # 0.7 * 75 + 0.3 * 80 = 76.5
    assert row['efficiency_score'] == 77


def test_per_staff_summary_buckets_and_filters(nurse, porter, rooms):
    engine = DispatchEngine()
    _create(engine, nurse, rooms)
    queued = _create(engine, nurse, rooms)
    engine.advance_status(queued.pk, RequestStatus.QUEUED)
    assigned = _create(engine, nurse, rooms)
    engine.assign_request(assigned.pk, porter.id)
    moving = _create(engine, nurse, rooms)
    engine.assign_request(moving.pk, porter.id)
    engine.advance_status(moving.pk, RequestStatus.IN_PROGRESS)
    User.objects.create_user(username='idle', password='x', full_name='Aaron Idle',
                             role=Role.PORTER, current_status=StaffStatus.OFFLINE)

    rows = WorkloadAnalytics().per_staff_summary(role='all', status='all')
    assert [r['full_name'] for r in rows] == ['Aaron Idle', 'Chris Walker', 'Sam Patel']
    by_name = {r['full_name']: r for r in rows}
    assert by_name['Sam Patel']['tasks'] == {'completed': 0, 'active': 2, 'pending': 2, 'cancelled': 0, 'total': 4}
    assert by_name['Chris Walker']['tasks']['active'] == 2
    assert by_name['Aaron Idle']['tasks']['total'] == 0
    assert by_name['Aaron Idle']['completion_rate'] == 100
    assert by_name['Aaron Idle']['efficiency_score'] == 100

    offline = WorkloadAnalytics().per_staff_summary(status=StaffStatus.OFFLINE)
    assert [r['full_name'] for r in offline] == ['Aaron Idle']
    assert WorkloadAnalytics().per_staff_summary(role=Role.ADMIN) == []


def test_analytics_ignore_cached_counter(handled, porter):
    User.objects.filter(pk=porter.pk).update(active_request_count=42)
    row = WorkloadAnalytics().staff_detail(porter.id)
    assert row['tasks']['active'] == 0


@override_settings(DISPATCH_RECENT_TASKS=10)
def test_staff_detail_recent_tasks(nurse, rooms):
    engine = DispatchEngine()
    made = [_create(engine, nurse, rooms) for _ in range(12)]
    base = timezone.now() - timedelta(hours=2)
    for i, req in enumerate(made):
        TransportRequest.objects.filter(pk=req.pk).update(created_at=base + timedelta(minutes=i))

    detail = WorkloadAnalytics().staff_detail(nurse.id)
    assert detail['tasks']['total'] == 12
    assert [r.pk for r in detail['recent_tasks']] == [r.pk for r in reversed(made)][:10]


def test_staff_detail_unknown_user():
    with pytest.raises(NotFoundError):
        WorkloadAnalytics().staff_detail(99999)
