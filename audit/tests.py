"""
Audit log tests: service helpers, manual create, filters, sources and statistics
"""
from django.test import RequestFactory, TestCase
from rest_framework import status

from audit import services
from audit.models import AuditAction, AuditLog
from common.test_utils import AuthenticatedAPIClient, TestDataFactory


class AuditServiceTests(TestCase):

    def setUp(self):
        self.user = TestDataFactory.create_user(username="priya", role="MANAGER")
        self.request = RequestFactory().post("/")
        self.request.user = self.user

    def test_actor_snapshot(self):
        entry = services.log_create({"name": "Skyline"}, self.request, "Inventory", "Created project: Skyline")
        self.assertEqual(entry.action, AuditAction.CREATE)
        self.assertEqual(entry.actor_user_id, str(self.user.pk))
        self.assertEqual(entry.actor_username, "priya")
        self.assertEqual(entry.actor_roles, ["MANAGER"])

    def test_update_keeps_before_and_after(self):
        entry = services.log_update({"name": "Old"}, {"name": "New"}, self.request, "Inventory", "Updated")
        self.assertEqual(entry.changes, {"before": {"name": "Old"}, "after": {"name": "New"}})

    def test_password_is_scrubbed(self):
        entry = services.log_delete({"username": "x", "password": "secret"}, self.request, "User", "Deleted")
        self.assertEqual(entry.changes, {"username": "x"})

    def test_anonymous_actor(self):
        request = RequestFactory().post("/")
        entry = services.log_create({}, request, "Unit", "Created")
        self.assertEqual(entry.actor_user_id, "anonymous")


class AuditAPITests(TestCase):

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.url = "/api/audit/logs/"

        for action, source, username in (
            ("create", "Inventory", "amit"),
            ("update", "Inventory", "amit"),
            ("delete", "Unit", "priya"),
        ):
            AuditLog.objects.create(
                action=action, source=source, actor_user_id=username, actor_username=username,
                description=f"{action} on {source}",
            )

    def test_manual_create(self):
        response = self.client.post(
            self.url,
            {
                "event": {"action": "locked", "changes": {"unit": "A-101"}},
                "actor": {"userId": "7", "username": "rahul", "roles": ["SALES"]},
                "source": "Unit",
                "description": "Locked unit A-101",
            },
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        entry = AuditLog.objects.get(pk=response.data["logId"])
        self.assertEqual(entry.action, "locked")
        self.assertEqual(entry.actor_roles, ["SALES"])

    def test_manual_create_rejects_unknown_action(self):
        response = self.client.post(
            self.url,
            {"event": {"action": "exploded"}, "actor": {"userId": "7", "username": "r"}, "source": "Unit",
             "description": "x"},
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_list_filters(self):
        response = self.client.get(self.url)
        self.assertEqual(response.data["totalLogs"], 3)
        self.assertEqual(response.data["data"][0]["event"]["action"], "delete")

        self.assertEqual(self.client.get(self.url, {"source": "Unit"}).data["totalLogs"], 1)
        self.assertEqual(self.client.get(self.url, {"userId": "amit"}).data["totalLogs"], 2)
        self.assertEqual(self.client.get(self.url, {"action": "update"}).data["totalLogs"], 1)
        self.assertEqual(self.client.get(self.url, {"search": "priya"}).data["totalLogs"], 1)
        self.assertEqual(self.client.get(self.url, {"endDate": "2000-01-01"}).data["totalLogs"], 0)

    def test_retrieve_missing(self):
        response = self.client.get(f"{self.url}9999/")
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data["error"], "Audit log not found")

    def test_sources(self):
        response = self.client.get("/api/audit/sources/")
        self.assertEqual(response.data, {"sources": ["Inventory", "Unit"], "count": 2})

    def test_statistics(self):
        response = self.client.get("/api/audit/statistics/")
        stats = response.data["statistics"]
        self.assertEqual(stats["sourceStats"][0], {"source": "Inventory", "count": 2})
        self.assertEqual(len(stats["actionStats"]), 3)
        self.assertEqual(len(stats["recentActivity"]), 3)
