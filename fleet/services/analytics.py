"""
Workload analytics over the request table.

Every figure is recomputed from request rows on each call; the
``active_request_count`` cached on users is never consulted.  Empty or
zero-denominator inputs have defined values (100 % efficiency and a
0 minute average) rather than raising.
"""
from __future__ import annotations

import math
from typing import Iterable, Optional

from django.conf import settings

from fleet.exceptions import NotFoundError
from fleet.models import RequestStatus, User
from fleet.services.store import Store

METRIC_FIELDS = ('id', 'status', 'requested_by_id', 'assigned_to_id', 'created_at', 'completed_at')

# Blend weights in tenths: 70 % completion rate, 30 % speed
COMPLETION_WEIGHT = 7
SPEED_WEIGHT = 3


def round_half_up(value: float) -> int:
    # round() is banker's rounding; 76.5 must become 77
    return int(math.floor(value + 0.5))


def avg_completion_minutes(rows: Iterable[dict]) -> int:
    """Mean created→completed time in whole minutes over completed rows."""
    durations = [
        (r['completed_at'] - r['created_at']).total_seconds() / 60
        for r in rows
        if r['status'] == RequestStatus.COMPLETED and r.get('completed_at') and r.get('created_at')
    ]
    if not durations:
        return 0
    return round_half_up(sum(durations) / len(durations))


def completion_rate(completed: int, cancelled: int) -> int:
    handled = completed + cancelled
    if handled == 0:
        return 100
    return round_half_up(completed * 100 / handled)


def efficiency_score(rate: int, avg_minutes: int) -> int:
    speed = max(0, 100 - avg_minutes)
    score = round_half_up((rate * COMPLETION_WEIGHT + speed * SPEED_WEIGHT) / 10)
    return max(0, min(100, score))


def bucket_counts(rows: list[dict]) -> dict:
    counts = {'completed': 0, 'active': 0, 'pending': 0, 'cancelled': 0, 'total': len(rows)}
    for r in rows:
        status = RequestStatus(r['status'])
        if status == RequestStatus.COMPLETED:
            counts['completed'] += 1
        elif status in (RequestStatus.ASSIGNED, RequestStatus.IN_PROGRESS):
            counts['active'] += 1
        elif status in (RequestStatus.PENDING, RequestStatus.QUEUED):
            counts['pending'] += 1
        else:
            # RequestStatus.CANCELLED
            counts['cancelled'] += 1
    return counts


def staff_metrics(rows: list[dict]) -> dict:
    tasks = bucket_counts(rows)
    rate = completion_rate(tasks['completed'], tasks['cancelled'])
    avg = avg_completion_minutes(rows)
    return {
        'tasks': tasks,
        'completion_rate': rate,
        'avg_completion_minutes': avg,
        'efficiency_score': efficiency_score(rate, avg),
    }


def _staff_profile(user: User) -> dict:
    return {
        'id': user.pk,
        'employee_code': user.employee_code,
        'full_name': user.display_name,
        'role': user.role,
        'phone': user.phone,
        'current_status': user.current_status,
        'current_floor_id': user.current_floor_id,
    }


class WorkloadAnalytics:
    def __init__(self, store: Optional[Store] = None):
        self.store = store or Store()

    def system_summary(self) -> dict:
        rows = list(self.store.requests().values('status', 'created_at', 'completed_at'))
        completed = sum(1 for r in rows if r['status'] == RequestStatus.COMPLETED)
        cancelled = sum(1 for r in rows if r['status'] == RequestStatus.CANCELLED)
        return {
            'total_tasks': len(rows),
            'completed_count': completed,
            'cancelled_count': cancelled,
            'avg_completion_minutes': avg_completion_minutes(rows),
            'efficiency_percent': completion_rate(completed, cancelled),
        }

    def per_staff_summary(self, role: Optional[str] = None, status: Optional[str] = None) -> list[dict]:
        users = self.store.users()
        if role and role != 'all':
            users = users.filter(role=role)
        if status and status != 'all':
            users = users.filter(current_status=status)
        users = list(users.order_by('full_name', 'username'))
        if not users:
            return []

        by_user: dict = {u.pk: [] for u in users}
        rows = self.store.requests().values(*METRIC_FIELDS)
        for r in rows:
            # A user who both requested and carries a request counts it once
            for uid in {r['requested_by_id'], r['assigned_to_id']}:
                if uid in by_user:
                    by_user[uid].append(r)
        return [{**_staff_profile(u), **staff_metrics(by_user[u.pk])} for u in users]

    def staff_detail(self, user_id) -> dict:
        user = self.store.get_user(user_id)
        if user is None:
            raise NotFoundError(f'Staff member {user_id} not found')
        requests = (
            self.store.requests_for_user(user.pk)
            .select_related('pickup_room', 'destination_room', 'requested_by', 'assigned_to', 'equipment')
            .order_by('-created_at')
        )
        rows = list(requests.values(*METRIC_FIELDS))
        limit = getattr(settings, 'DISPATCH_RECENT_TASKS', 10)
        recent = list(requests[:limit])
        return {**_staff_profile(user), **staff_metrics(rows), 'recent_tasks': recent}
