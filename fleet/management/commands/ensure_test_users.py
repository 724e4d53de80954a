# fleet/management/commands/ensure_test_users.py
from django.contrib.auth.hashers import make_password
from django.core.management.base import BaseCommand

from fleet.models import Role, User

TEST_SET = [
    ("admin1", "A0001", "Test Admin", Role.ADMIN),
    ("nurse1", "N0001", "Test Nurse", Role.NURSE),
    ("porter1", "P0001", "Test Porter", Role.PORTER),
]


class Command(BaseCommand):
    help = "Ensure test staff exist with password=123456 (idempotent)."

    def handle(self, *args, **opts):
        for username, code, name, role in TEST_SET:
            u, created = User.objects.get_or_create(
                username=username,
                defaults={
                    "employee_code": code,
                    "full_name": name,
                    "role": role,
                    "password": make_password("123456"),
                    "is_active": True,
                },
            )
            if not created:
                # Reset password, activation and role
                u.password = make_password("123456")
                u.role = role
                u.is_active = True
                u.save(update_fields=["password", "role", "is_active"])
            self.stdout.write(self.style.SUCCESS(f"ok: {username} ({role})"))
        self.stdout.write(self.style.SUCCESS("All test users ensured."))
