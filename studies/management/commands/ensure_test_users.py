from django.core.management.base import BaseCommand
from django.contrib.auth.hashers import make_password

from studies.models import User

TEST_SET = [
    ("admin@epicq.test", "admin"),
    ("coordinator@epicq.test", "coordinator"),
]


class Command(BaseCommand):
    help = "Ensure test users exist and password=123456 (idempotent)."

    def handle(self, *args, **opts):
        for email, role in TEST_SET:
            u, created = User.objects.get_or_create(
                email=email,
                defaults={"username": email, "role": role, "password": make_password("123456"), "is_active": True},
            )
            if not created:
                u.password = make_password("123456")
                u.role = role
                u.is_active = True
                u.save(update_fields=["password", "role", "is_active"])
            self.stdout.write(self.style.SUCCESS(f"ok: {email} ({role})"))
        self.stdout.write(self.style.SUCCESS("All test users ensured."))
