"""
Integration tests for the dispatch HTTP API.

These exercise the request lifecycle endpoints, role checks, the error
envelope, equipment status guards and the analytics and dashboard
views through DRF's APIClient.

To run the tests:

```
pytest -q fleet/tests
```
"""
import uuid

from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient, APITestCase

from ..models import (
    Equipment,
    EquipmentStatus,
    EquipmentType,
    Floor,
    RequestStatus,
    Role,
    Room,
    TransportRequest,
    User,
    Zone,
)
from ..services.dispatch import DispatchEngine


class DispatchAPITests(APITestCase):
    def setUp(self) -> None:
        self.floor = Floor.objects.create(name='Level 1', building='Main', level=1)
        self.other_floor = Floor.objects.create(name='Level 2', building='Main', level=2)
        zone = Zone.objects.create(floor=self.floor, name='North')
        self.ward = Room.objects.create(zone=zone, name='Ward 1A', room_type='ward')
        self.xray = Room.objects.create(zone=zone, name='Radiology', room_type='imaging')

        self.admin = User.objects.create_user(username='admin1', password='P@ssw0rd1', full_name='Alex Morgan',
                                              role=Role.ADMIN, current_floor=self.floor)
        self.nurse = User.objects.create_user(username='nurse1', password='P@ssw0rd1', full_name='Sam Patel',
                                              role=Role.NURSE, current_floor=self.floor)
        self.porter = User.objects.create_user(username='porter1', password='P@ssw0rd1', full_name='Chris Walker',
                                               role=Role.PORTER, current_floor=self.floor)
        self.porter2 = User.objects.create_user(username='porter2', password='P@ssw0rd1', full_name='Robin Diaz',
                                                role=Role.PORTER)

        self.chair = Equipment.objects.create(equipment_code='WC-001', type=EquipmentType.WHEELCHAIR,
                                              battery_level=80, current_floor=self.floor)
        self.chair_far = Equipment.objects.create(equipment_code='WC-002', type=EquipmentType.WHEELCHAIR,
                                                  battery_level=95, current_floor=self.other_floor)
        self.bed = Equipment.objects.create(equipment_code='BD-001', type=EquipmentType.BED,
                                            current_floor=self.floor)

        self.client = APIClient()

    def as_user(self, user):
        self.client.force_authenticate(user=user)

    def create_request(self, **overrides):
        payload = {
            'patient_name': 'J. Doe',
            'priority': 2,
            'equipment_type': 'wheelchair',
            'pickup_room_id': self.ward.id,
            'destination_room_id': self.xray.id,
        }
        payload.update(overrides)
        return self.client.post(reverse('requests'), payload, format='json')

    # ------------------------------------------------------------------
    # Authentication and error envelope
    # ------------------------------------------------------------------
    def test_requires_authentication(self):
        resp = self.client.get(reverse('requests'))
        self.assertEqual(resp.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(resp.data['error']['code'], 'unauthorized')

    def test_healthz(self):
        resp = self.client.get(reverse('healthz'))
        self.assertEqual(resp.status_code, 200)
        self.assertTrue(resp.json()['ok'])

    def test_me(self):
        self.as_user(self.nurse)
        resp = self.client.get(reverse('me'))
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.data['data']['role'], 'nurse')
        self.assertEqual(resp.data['data']['current_floor']['id'], self.floor.id)

    # ------------------------------------------------------------------
    # Requests
    # ------------------------------------------------------------------
    def test_create_request_uses_caller_as_requester(self):
        self.as_user(self.nurse)
        resp = self.create_request(requested_by=self.admin.id)
        self.assertEqual(resp.status_code, status.HTTP_201_CREATED)
        data = resp.data['data']
        self.assertEqual(data['status'], 'pending')
        self.assertEqual(data['priority_label'], 'HIGH')
        self.assertEqual(data['requested_by'], self.nurse.id)
        self.assertEqual(data['estimated_duration_minutes'], 30)

    def test_create_request_validation_errors(self):
        self.as_user(self.nurse)
        resp = self.create_request(priority=7)
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(resp.data['error']['code'], 'validation_error')
        resp = self.create_request(equipment_type='stretcher')
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        resp = self.create_request(destination_room_id=None)
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(TransportRequest.objects.exists())

    def test_list_filters_and_detail_history(self):
        self.as_user(self.nurse)
        first = self.create_request(priority=1).data['data']['id']
        self.create_request(equipment_type='bed')
        resp = self.client.get(reverse('requests'), {'equipment_type': 'bed'})
        self.assertEqual(resp.data['count'], 1)
        resp = self.client.get(reverse('requests'), {'priority': 1})
        self.assertEqual([r['id'] for r in resp.data['data']], [first])

        resp = self.client.get(reverse('request_detail', args=[first]))
        self.assertEqual(resp.status_code, 200)
        self.assertEqual([t['to'] for t in resp.data['data']['transitions']], ['pending'])

    def test_unknown_request_is_404(self):
        self.as_user(self.nurse)
        resp = self.client.get(reverse('request_detail', args=[uuid.uuid4()]))
        self.assertEqual(resp.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(resp.data['error']['code'], 'not_found')

    def test_nurse_assigns_porter_with_equipment(self):
        self.as_user(self.nurse)
        req_id = self.create_request().data['data']['id']
        resp = self.client.put(reverse('request_assign', args=[req_id]),
                               {'porter_id': self.porter.id, 'equipment_id': str(self.chair.pk)}, format='json')
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.data['data']['status'], 'assigned')
        self.assertEqual(resp.data['data']['assigned_to'], self.porter.id)
        self.assertEqual(resp.data['data']['equipment']['status'], 'in_use')

        self.as_user(self.porter)
        resp = self.client.get(reverse('requests_assigned'))
        self.assertEqual([r['id'] for r in resp.data['data']], [req_id])
        resp = self.client.get(reverse('requests_active'))
        self.assertEqual(resp.data['count'], 1)

    def test_porter_can_only_assign_self(self):
        self.as_user(self.nurse)
        req_id = self.create_request().data['data']['id']

        self.as_user(self.porter)
        resp = self.client.put(reverse('request_assign', args=[req_id]), {'assignee_id': self.porter2.id}, format='json')
        self.assertEqual(resp.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(resp.data['error']['code'], 'forbidden')

        resp = self.client.put(reverse('request_assign', args=[req_id]), {'assignee_id': self.porter.id}, format='json')
        self.assertEqual(resp.status_code, 200)

    def test_assign_requires_assignee(self):
        self.as_user(self.nurse)
        req_id = self.create_request().data['data']['id']
        resp = self.client.put(reverse('request_assign', args=[req_id]), {}, format='json')
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        message = str(resp.data['error']['message']['assignee_id'][0])
        self.assertIn('assignee_id', message)
        self.assertIn('porter_id', message)

    def test_assigning_taken_unit_conflicts(self):
        self.as_user(self.nurse)
        first = self.create_request().data['data']['id']
        second = self.create_request().data['data']['id']
        url = reverse('request_assign', args=[first])
        self.client.put(url, {'porter_id': self.porter.id, 'equipment_id': str(self.chair.pk)}, format='json')

        resp = self.client.put(reverse('request_assign', args=[second]),
                               {'porter_id': self.porter2.id, 'equipment_id': str(self.chair.pk)}, format='json')
        self.assertEqual(resp.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(resp.data['error']['code'], 'conflict')
        self.assertEqual(TransportRequest.objects.get(pk=second).status, RequestStatus.PENDING)

    def test_assigning_wrong_type_is_rejected(self):
        self.as_user(self.nurse)
        req_id = self.create_request().data['data']['id']
        resp = self.client.put(reverse('request_assign', args=[req_id]),
                               {'porter_id': self.porter.id, 'equipment_id': str(self.bed.pk)}, format='json')
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)

    def test_status_update_and_completion(self):
        self.as_user(self.nurse)
        req_id = self.create_request().data['data']['id']
        self.client.put(reverse('request_assign', args=[req_id]),
                        {'porter_id': self.porter.id, 'equipment_id': str(self.chair.pk)}, format='json')

        self.as_user(self.porter)
        url = reverse('request_status', args=[req_id])
        resp = self.client.put(url, {'status': 'in_progress'}, format='json')
        self.assertEqual(resp.status_code, 200)
        self.assertIsNone(resp.data['data']['completed_at'])
        resp = self.client.put(url, {'status': 'completed'}, format='json')
        self.assertIsNotNone(resp.data['data']['completed_at'])
        self.chair.refresh_from_db()
        self.assertEqual(self.chair.status, EquipmentStatus.AVAILABLE)

        resp = self.client.put(url, {'status': 'in_progress'}, format='json')
        self.assertEqual(resp.status_code, status.HTTP_409_CONFLICT)
        resp = self.client.put(url, {'status': 'finished'}, format='json')
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)

    def test_cancel_via_delete(self):
        self.as_user(self.nurse)
        req_id = self.create_request().data['data']['id']
        url = reverse('request_detail', args=[req_id])
        resp = self.client.delete(url)
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.data['data']['status'], 'cancelled')
        resp = self.client.delete(url)
        self.assertEqual(resp.status_code, 200)
        self.assertTrue(TransportRequest.objects.filter(pk=req_id).exists())

    def test_my_requests(self):
        self.as_user(self.nurse)
        self.create_request()
        self.as_user(self.admin)
        self.create_request()
        resp = self.client.get(reverse('requests_mine'))
        self.assertEqual(resp.data['count'], 1)
        self.assertEqual(resp.data['data'][0]['requested_by'], self.admin.id)

    # ------------------------------------------------------------------
    # Equipment
    # ------------------------------------------------------------------
    def test_equipment_list_and_nearby(self):
        self.as_user(self.porter)
        resp = self.client.get(reverse('equipment'), {'type': 'wheelchair'})
        self.assertEqual(resp.data['count'], 2)
        resp = self.client.get(reverse('equipment_nearby'), {'type': 'wheelchair'})
        self.assertEqual([e['equipment_code'] for e in resp.data['data']], ['WC-001'])

        self.as_user(self.porter2)
        resp = self.client.get(reverse('equipment_nearby'))
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)

    def test_equipment_search(self):
        self.as_user(self.porter)
        resp = self.client.get(reverse('equipment_search'), {'q': 'bd'})
        self.assertEqual([e['equipment_code'] for e in resp.data['data']], ['BD-001'])
        resp = self.client.get(reverse('equipment_search'))
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)

    def test_equipment_detail_shows_holder(self):
        req = DispatchEngine().create_request(self.nurse, priority=1, equipment_type='wheelchair',
                                              pickup_room_id=self.ward.id, destination_room_id=self.xray.id)
        DispatchEngine().assign_request(req.pk, self.porter.id, self.chair.pk)
        self.as_user(self.porter)
        resp = self.client.get(reverse('equipment_detail', args=[self.chair.pk]))
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.data['data']['assigned_request']['id'], str(req.pk))

    def test_equipment_status_requires_admin(self):
        url = reverse('equipment_status', args=[self.chair.pk])
        self.as_user(self.porter)
        resp = self.client.put(url, {'status': 'maintenance'}, format='json')
        self.assertEqual(resp.status_code, status.HTTP_403_FORBIDDEN)

        self.as_user(self.admin)
        resp = self.client.put(url, {'status': 'maintenance'}, format='json')
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.data['data']['status'], 'maintenance')
        resp = self.client.put(url, {'status': 'in_use'}, format='json')
        self.assertEqual(resp.status_code, status.HTTP_409_CONFLICT)
        resp = self.client.put(url, {'status': 'broken'}, format='json')
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)

    def test_equipment_held_by_live_request_is_locked(self):
        req = DispatchEngine().create_request(self.nurse, priority=1, equipment_type='wheelchair',
                                              pickup_room_id=self.ward.id, destination_room_id=self.xray.id)
        DispatchEngine().assign_request(req.pk, self.porter.id, self.chair.pk)
        self.as_user(self.admin)
        resp = self.client.put(reverse('equipment_status', args=[self.chair.pk]), {'status': 'charging'}, format='json')
        self.assertEqual(resp.status_code, status.HTTP_409_CONFLICT)

    # ------------------------------------------------------------------
    # Workload and dashboard
    # ------------------------------------------------------------------
    def test_workload_endpoints(self):
        self.as_user(self.nurse)
        req_id = self.create_request().data['data']['id']
        self.client.put(reverse('request_assign', args=[req_id]), {'porter_id': self.porter.id}, format='json')

        resp = self.client.get(reverse('workload'))
        self.assertEqual(resp.data['data']['total_tasks'], 1)
        self.assertEqual(resp.data['data']['efficiency_percent'], 100)

        resp = self.client.get(reverse('workload_staff'), {'role': 'porter'})
        self.assertEqual([r['id'] for r in resp.data['data']], [self.porter.id, self.porter2.id])
        resp = self.client.get(reverse('workload_staff'), {'role': 'surgeon'})
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)

        resp = self.client.get(reverse('workload_staff_detail', args=[self.porter.id]))
        self.assertEqual(resp.data['data']['tasks']['active'], 1)
        self.assertEqual(resp.data['data']['recent_tasks'][0]['id'], req_id)
        resp = self.client.get(reverse('workload_staff_detail', args=[99999]))
        self.assertEqual(resp.status_code, status.HTTP_404_NOT_FOUND)

    def test_dashboard(self):
        self.as_user(self.nurse)
        req_id = self.create_request().data['data']['id']
        self.client.put(reverse('request_assign', args=[req_id]), {'porter_id': self.porter.id}, format='json')

        self.as_user(self.porter)
        resp = self.client.get(reverse('dashboard'))
        data = resp.data['data']
        self.assertEqual(data['user']['id'], self.porter.id)
        self.assertEqual(data['nearby_equipment_count'], 2)
        self.assertEqual(data['active_tasks_count'], 1)

        resp = self.client.get(reverse('dashboard_stats'))
        self.assertEqual(resp.data['data'], {'total': 1, 'completed': 0, 'in_progress': 0, 'pending': 1})
