import pytest
from django.core.cache import cache

from fleet.models import Equipment, EquipmentType, Floor, Role, Room, User, Zone


@pytest.fixture(autouse=True)
def _clear_throttle_cache():
    # Throttle history lives in the cache and would leak between tests
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def floor(db):
    return Floor.objects.create(name='Level 1', building='Main', level=1)


@pytest.fixture
def rooms(floor):
    zone = Zone.objects.create(floor=floor, name='North')
    return (
        Room.objects.create(zone=zone, name='Ward 1A', room_type='ward'),
        Room.objects.create(zone=zone, name='Radiology', room_type='imaging'),
    )


@pytest.fixture
def nurse(floor):
    return User.objects.create_user(username='nurse1', password='P@ssw0rd1', employee_code='N0001',
                                    full_name='Sam Patel', role=Role.NURSE, current_floor=floor)


@pytest.fixture
def porter(floor):
    return User.objects.create_user(username='porter1', password='P@ssw0rd1', employee_code='P0001',
                                    full_name='Chris Walker', role=Role.PORTER, current_floor=floor)


@pytest.fixture
def wheelchair(floor):
    return Equipment.objects.create(equipment_code='WC-001', type=EquipmentType.WHEELCHAIR,
                                    battery_level=90, current_floor=floor)
