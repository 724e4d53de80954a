import pytest
from django.urls import reverse
from rest_framework.test import APIClient

from fleet.models import AuditEvent, Role, User

pytestmark = pytest.mark.django_db


def login(client, **payload):
    return client.post(reverse('login_view'), payload, format='json')


def test_login_returns_jwt_and_legacy_token():
    User.objects.create_user(username='u_jwt', password='P@ssw0rd1', role=Role.PORTER)
    r = login(APIClient(), username='u_jwt', password='P@ssw0rd1')
    assert r.status_code == 200
    assert r.data['jwt_access'] and r.data['jwt_refresh'] and r.data['token']
    assert r.data['user']['role'] == 'porter'


def test_login_by_employee_code():
    User.objects.create_user(username='porter9', password='P@ssw0rd1', employee_code='P0009', role=Role.PORTER)
    r = login(APIClient(), employee_code='P0009', password='P@ssw0rd1')
    assert r.status_code == 200
    assert r.data['user']['username'] == 'porter9'


def test_no_role_bypass_in_login():
    u = User.objects.create_user(username='u1', password='P@ssw0rd1', role=Role.PORTER)
    r = login(APIClient(), username='u1', password='P@ssw0rd1', role='admin')
    assert r.status_code == 200
    assert r.data['role'] == 'porter'
    u.refresh_from_db()
    assert u.role == Role.PORTER


def test_failed_login_is_audited():
    User.objects.create_user(username='u2', password='P@ssw0rd1')
    r = login(APIClient(), username='u2', password='wrong')
    assert r.status_code == 401
    assert r.data['error']['code'] == 'unauthorized'
    event = AuditEvent.objects.get(action='login')
    assert event.user is None
    assert event.detail['result'] == 'fail'


def test_bearer_token_grants_access_and_logout_blacklists():
    User.objects.create_user(username='nurse7', password='P@ssw0rd1', role=Role.NURSE)
    client = APIClient()
    tokens = login(client, username='nurse7', password='P@ssw0rd1').data
    client.credentials(HTTP_AUTHORIZATION=f"Bearer {tokens['jwt_access']}")
    assert client.get(reverse('me')).status_code == 200

    r = client.post(reverse('jwt_logout'), {}, format='json')
    assert r.status_code == 200
    assert r.data['blacklisted'] == 1

    anon = APIClient()
    r = anon.post(reverse('jwt_refresh'), {'refresh': tokens['jwt_refresh']}, format='json')
    assert r.status_code == 401


def test_legacy_token_header():
    User.objects.create_user(username='tablet', password='P@ssw0rd1', role=Role.NURSE)
    client = APIClient()
    token = login(client, username='tablet', password='P@ssw0rd1').data['token']
    client.credentials(HTTP_AUTHORIZATION=f'Token {token}')
    r = client.get(reverse('me'))
    assert r.status_code == 200
    assert r.data['data']['username'] == 'tablet'
