"""
Management command to populate the database with demo data.

Floors, rooms, staff and equipment are created idempotently.  Demo
requests go through :class:`DispatchEngine` so that their history rows
and staff counters are consistent with what the API would produce.
"""
import random

from django.contrib.auth.hashers import make_password
from django.core.management.base import BaseCommand

from fleet.models import (
    AccessPoint,
    Equipment,
    EquipmentStatus,
    EquipmentType,
    Floor,
    Priority,
    RequestStatus,
    Role,
    Room,
    User,
    Zone,
)
from fleet.services.dispatch import DispatchEngine
from fleet.services.store import Store

FLOORS = [
    ('Ground', 'Main', 0, ['Emergency', 'Radiology', 'Admissions']),
    ('Level 1', 'Main', 1, ['Ward 1A', 'Ward 1B', 'Theatre 1']),
    ('Level 2', 'Main', 2, ['Ward 2A', 'ICU', 'Cardiology']),
]

STAFF = [
    ('admin1', 'A0001', 'Alex Morgan', Role.ADMIN, 0),
    ('nurse1', 'N0001', 'Sam Patel', Role.NURSE, 1),
    ('nurse2', 'N0002', 'Jordan Lee', Role.NURSE, 2),
    ('porter1', 'P0001', 'Chris Walker', Role.PORTER, 0),
    ('porter2', 'P0002', 'Robin Diaz', Role.PORTER, 1),
    ('porter3', 'P0003', 'Taylor Kim', Role.PORTER, 2),
]


class Command(BaseCommand):
    help = 'Populate database with demo floors, rooms, staff, equipment and requests'

    def add_arguments(self, parser):
        parser.add_argument('--requests', type=int, default=8, help='Number of demo requests to create.')
        parser.add_argument('--seed', type=int, default=None, help='Random seed for reproducible data.')

    def handle(self, *args, **options):
        rng = random.Random(options['seed'])
        self.stdout.write('Creating demo data...')

        floors, rooms = self.create_floors()
        staff = self.create_staff(floors)
        units = self.create_equipment(floors, rooms, rng)
        created = self.create_requests(staff, rooms, units, options['requests'], rng)

        self.stdout.write(self.style.SUCCESS(
            f'Demo data ready: {len(floors)} floors, {len(rooms)} rooms, {len(staff)} staff, '
            f'{len(units)} units, {created} requests'
        ))

    def create_floors(self):
        floors, rooms = [], []
        for name, building, level, room_names in FLOORS:
            floor, _ = Floor.objects.get_or_create(name=name, building=building, defaults={'level': level})
            zone, _ = Zone.objects.get_or_create(floor=floor, name=f'{name} North')
            AccessPoint.objects.get_or_create(floor=floor, name=f'AP-{level}-01')
            for room_name in room_names:
                room, _ = Room.objects.get_or_create(zone=zone, name=room_name,
                                                     defaults={'room_type': room_name.split()[0].lower()})
                rooms.append(room)
            floors.append(floor)
        return floors, rooms

    def create_staff(self, floors):
        staff = []
        for username, code, name, role, floor_idx in STAFF:
            user, created = User.objects.get_or_create(
                username=username,
                defaults={
                    'employee_code': code,
                    'full_name': name,
                    'role': role,
                    'current_floor': floors[floor_idx],
                    'password': make_password('123456'),
                },
            )
            if created:
                self.stdout.write(f'  staff {username} ({role})')
            staff.append(user)
        return staff

    def create_equipment(self, floors, rooms, rng):
        units = []
        for i in range(1, 13):
            kind = EquipmentType.WHEELCHAIR if i % 3 else EquipmentType.BED
            prefix = 'WC' if kind == EquipmentType.WHEELCHAIR else 'BD'
            floor = floors[i % len(floors)]
            unit, _ = Equipment.objects.get_or_create(
                equipment_code=f'{prefix}-{i:03d}',
                defaults={
                    'type': kind,
                    'battery_level': rng.randint(20, 100),
                    'current_floor': floor,
                    'current_room': rng.choice([r for r in rooms if r.zone.floor_id == floor.id]),
                },
            )
            units.append(unit)
        return units

    def create_requests(self, staff, rooms, units, count, rng):
        engine = DispatchEngine(Store())
        requesters = [u for u in staff if u.role in (Role.NURSE, Role.ADMIN)]
        porters = [u for u in staff if u.role == Role.PORTER]
        for n in range(count):
            pickup, destination = rng.sample(rooms, 2)
            kind = rng.choice(EquipmentType.values)
            req = engine.create_request(
                rng.choice(requesters),
                priority=rng.choice(Priority.values),
                equipment_type=kind,
                pickup_room_id=pickup.id,
                destination_room_id=destination.id,
                patient_name=f'Patient {n + 1:03d}',
            )
            step = n % 4
            if step == 0:
                continue
            free = Store().equipment().filter(type=kind, status=EquipmentStatus.AVAILABLE, assigned_request__isnull=True).first()
            engine.assign_request(req.pk, rng.choice(porters).pk, free.pk if free else None)
            if step >= 2:
                engine.advance_status(req.pk, RequestStatus.IN_PROGRESS)
            if step == 3:
                engine.advance_status(req.pk, RequestStatus.COMPLETED)
        return count
