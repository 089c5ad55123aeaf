from django.contrib.auth import get_user_model
from django.contrib.auth.models import AnonymousUser
from django.test import TestCase
from rest_framework.test import APIClient, APIRequestFactory

from users.permissions import IsReportAdmin, IsReportAdminOrReadOnly

User = get_user_model()


class UserModelTests(TestCase):
    def test_create_user_normalizes_email_and_defaults_to_standard(self):
        user = User.objects.create_user(email="Clerk@Example.COM", password="pw12345!")

        self.assertEqual(user.email, "Clerk@example.com")
        self.assertEqual(user.role, User.ROLE_STANDARD)
        self.assertFalse(user.is_report_admin)

    def test_create_user_requires_email(self):
        with self.assertRaises(ValueError):
            User.objects.create_user(email="", password="pw12345!")

    def test_superuser_is_report_admin(self):
        user = User.objects.create_superuser(email="root@example.com", password="pw")

        self.assertEqual(user.role, User.ROLE_SUPER_ADMIN)
        self.assertTrue(user.is_staff)
        self.assertTrue(user.is_report_admin)

    def test_display_name_falls_back_to_email(self):
        named = User(email="a@example.com", full_name="  Asha Rao ")
        unnamed = User(email="b@example.com")

        self.assertEqual(named.display_name, "Asha Rao")
        self.assertEqual(unnamed.display_name, "b@example.com")


class MeViewTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.user = User.objects.create_user(
            email="admin@example.com",
            password="pw12345!",
            full_name="Report Admin",
            role=User.ROLE_ADMIN,
        )

    def test_me_requires_authentication(self):
        res = self.client.get("/api/auth/me/")
        self.assertEqual(res.status_code, 401)

    def test_me_returns_role_flags(self):
        self.client.force_authenticate(user=self.user)
        res = self.client.get("/api/auth/me/")

        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["display_name"], "Report Admin")
        self.assertTrue(res.data["is_report_admin"])


class ReportPermissionTests(TestCase):
    """
    Role gates for report administration.

    GUARANTEES:
    - admin / super_admin / superuser pass
    - standard users may only read
    - anonymous and inactive users are denied
    """

    def setUp(self):
        self.factory = APIRequestFactory()

        self.admin = User.objects.create_user(
            email="admin@example.com", password="pw", role=User.ROLE_ADMIN
        )
        self.standard = User.objects.create_user(
            email="clerk@example.com", password="pw", role=User.ROLE_STANDARD
        )
        self.inactive_admin = User.objects.create_user(
            email="former@example.com",
            password="pw",
            role=User.ROLE_ADMIN,
            is_active=False,
        )

    def _request(self, user, method="get"):
        request = getattr(self.factory, method)("/")
        request.user = user
        return request

    def test_report_admin_roles(self):
        self.assertTrue(IsReportAdmin().has_permission(self._request(self.admin), None))
        self.assertFalse(IsReportAdmin().has_permission(self._request(self.standard), None))
        self.assertFalse(
            IsReportAdmin().has_permission(self._request(self.inactive_admin), None)
        )
        self.assertFalse(IsReportAdmin().has_permission(self._request(AnonymousUser()), None))

    def test_superuser_passes_regardless_of_role(self):
        root = User.objects.create_user(
            email="root@example.com",
            password="pw",
            role=User.ROLE_STANDARD,
            is_superuser=True,
        )

        self.assertTrue(IsReportAdmin().has_permission(self._request(root), None))

    def test_read_only_for_standard_users(self):
        permission = IsReportAdminOrReadOnly()

        self.assertTrue(permission.has_permission(self._request(self.standard), None))
        self.assertFalse(
            permission.has_permission(self._request(self.standard, "patch"), None)
        )
        self.assertTrue(permission.has_permission(self._request(self.admin, "patch"), None))
