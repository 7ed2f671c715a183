"""
User service tests: creation, role predicates, and lookup.
"""

import uuid

from django.test import TestCase

from apps.users import services
from apps.users.models import Role, User


class CreateUserTests(TestCase):
    def test_create_user_defaults(self):
        user = User.objects.create_user(username="juan", password="secret123")
        self.assertEqual(user.role, Role.RESIDENT)
        self.assertEqual(user.display_name, "juan")
        self.assertTrue(user.check_password("secret123"))
        self.assertNotEqual(user.password, "secret123")

    def test_create_superuser_is_admin(self):
        user = User.objects.create_superuser(username="root", password="x")
        self.assertEqual(user.role, Role.ADMIN)
        self.assertTrue(user.is_superuser)
        self.assertTrue(user.is_staff)

    def test_username_required(self):
        with self.assertRaises(ValueError):
            User.objects.create_user(username="", password="x")


class RolePredicateTests(TestCase):
    def test_is_staff_member(self):
        staff = User.objects.create_user(username="s", role="STAFF")
        admin = User.objects.create_user(username="a", role="ADMIN")
        resident = User.objects.create_user(username="r", role="RESIDENT")

        self.assertTrue(services.is_staff_member(staff))
        self.assertTrue(services.is_staff_member(admin))
        self.assertFalse(services.is_staff_member(resident))
        self.assertFalse(services.is_staff_member(None))

    def test_admin_permissions(self):
        staff = User.objects.create_user(username="s2", role="STAFF")
        self.assertTrue(staff.is_staff)
        self.assertFalse(staff.is_superuser)
        self.assertFalse(staff.has_perm("clearances.view_clearancerequest"))


class FindUserTests(TestCase):
    def test_find_user(self):
        user = User.objects.create_user(username="findme")
        self.assertEqual(services.find_user(user.id), user)
        self.assertIsNone(services.find_user(uuid.uuid4()))
        self.assertIsNone(services.find_user("not-a-uuid"))
        self.assertIsNone(services.find_user(None))
