"""
Auth tests: JWT login/logout with session log, current user, log listing
"""
from django.test import TestCase
from rest_framework import status

from accounts.models import AuthAction, AuthLog
from common.test_utils import AuthenticatedAPIClient, TestDataFactory


class AuthFlowTests(TestCase):

    def setUp(self):
        self.user = TestDataFactory.create_user(username="ravi", password="secret-pass-1")
        self.client = AuthenticatedAPIClient()

    def _login(self):
        return self.client.post("/api/auth/login/", {"username": "ravi", "password": "secret-pass-1"})

    def test_login_returns_tokens_and_logs_session(self):
        response = self._login()
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn("access", response.data)
        self.assertIn("refresh", response.data)
        self.assertEqual(response.data["user"]["username"], "ravi")

        entry = AuthLog.objects.get()
        self.assertEqual(entry.action, AuthAction.LOGIN)
        self.assertEqual(entry.user, self.user)
        self.assertFalse(entry.invalidated)

    def test_login_wrong_password(self):
        response = self.client.post("/api/auth/login/", {"username": "ravi", "password": "nope"})
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertIn("error", response.data)
        self.assertFalse(AuthLog.objects.exists())

    def test_logout_invalidates_login_entry(self):
        tokens = self._login().data
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {tokens['access']}")

        response = self.client.post("/api/auth/logout/", {"refresh": tokens["refresh"]})
        self.assertEqual(response.status_code, status.HTTP_200_OK)

        login = AuthLog.objects.get(action=AuthAction.LOGIN)
        logout = AuthLog.objects.get(action=AuthAction.LOGOUT)
        self.assertTrue(login.invalidated)
        self.assertEqual(login.session_id, logout.session_id)

    def test_logout_bad_token(self):
        self.client.authenticate_user(self.user)
        response = self.client.post("/api/auth/logout/", {"refresh": "not-a-token"})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_me(self):
        self.client.authenticate_user(self.user)
        response = self.client.get("/api/auth/me/")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["data"]["username"], "ravi")

    def test_me_requires_token(self):
        response = self.client.get("/api/auth/me/")
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)


class AuthLogAPITests(TestCase):

    def setUp(self):
        self.user = TestDataFactory.create_user(username="admin1")
        self.other = TestDataFactory.create_user(username="sales1")
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

        AuthLog.objects.create(action=AuthAction.LOGIN, user=self.user, username="admin1", session_id="s1")
        AuthLog.objects.create(action=AuthAction.LOGIN, user=self.other, username="sales1", session_id="s2")
        AuthLog.objects.create(action=AuthAction.LOGOUT, user=self.other, username="sales1", session_id="s2")

    def test_list_and_filters(self):
        response = self.client.get("/api/auth/logs/")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["totalLogs"], 3)

        by_user = self.client.get("/api/auth/logs/", {"userId": self.other.pk})
        self.assertEqual(by_user.data["totalLogs"], 2)

        logouts = self.client.get("/api/auth/logs/", {"action": "logout"})
        self.assertEqual([r["username"] for r in logouts.data["data"]], ["sales1"])

        searched = self.client.get("/api/auth/logs/", {"search": "admin"})
        self.assertEqual(searched.data["totalLogs"], 1)

    def test_non_numeric_user_id_matches_nothing(self):
        response = self.client.get("/api/auth/logs/", {"userId": "abc"})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["totalLogs"], 0)

    def test_missing_log(self):
        response = self.client.get("/api/auth/logs/9999/")
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data["error"], "Auth log not found")
