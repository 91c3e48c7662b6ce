"""
Client tests: create with first visit, latest-visit filters, visit rules and remarks
"""
from datetime import datetime
from decimal import Decimal

from django.test import TestCase
from django.utils import timezone
from rest_framework import status

from clients.models import Client, Remark, Visit
from common.test_utils import AuthenticatedAPIClient, TestDataFactory


def aware(*args):
    return timezone.make_aware(datetime(*args))


class ClientAPITests(TestCase):

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.url = "/api/client/"

    def _payload(self, **overrides):
        payload = {
            "firstName": "Neha",
            "lastName": "Sharma",
            "phoneNo": "9000000001",
            "email": "neha@example.com",
            "project": "Skyline",
            "requirement": "2BHK",
            "budget": "7500000",
            "visitData": {
                "date": "2024-05-01T11:00:00+05:30",
                "reference": "walk-in",
                "source": "amit",
                "relation": "rahul",
                "closing": "priya",
                "status": "warm",
            },
        }
        payload.update(overrides)
        return payload

    def test_create_with_first_visit(self):
        response = self.client.post(self.url, self._payload())
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data["message"], "Client created successfully")
        client = Client.objects.get(pk=response.data["data"]["id"])
        self.assertEqual(client.visits.count(), 1)
        self.assertEqual(response.data["data"]["visits"][0]["status"], "warm")

    def test_create_requires_visit_data(self):
        payload = self._payload()
        payload.pop("visitData")
        response = self.client.post(self.url, payload)
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["error"], "visitData is required")
        self.assertFalse(Client.objects.exists())

    def test_create_invalid_visit_rolls_back(self):
        payload = self._payload()
        payload["visitData"]["status"] = "lukewarm"
        response = self.client.post(self.url, payload)
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(Client.objects.exists())

    def test_list_filters_on_latest_visit(self):
        moved_on = TestDataFactory.create_client(first_name="Amit", visit_date=aware(2024, 1, 5, 10), visit_status="hot")
        Visit.objects.create(
            client=moved_on, date=aware(2024, 3, 1, 10), reference="web", source="kiran",
            relation="kiran", closing="kiran", status="cold",
        )
        TestDataFactory.create_client(first_name="Bina", visit_date=aware(2024, 2, 10, 10), visit_status="hot")

        def names(params):
            response = self.client.get(self.url, params)
            self.assertEqual(response.status_code, status.HTTP_200_OK)
            return sorted(c["firstName"] for c in response.data["data"])

        self.assertEqual(names({"status": "hot"}), ["Bina"])
        self.assertEqual(names({"status": "cold"}), ["Amit"])
        self.assertEqual(names({"manager": "kiran"}), ["Amit"])
        self.assertEqual(names({"manager": "priya"}), ["Bina"])
        self.assertEqual(names({"reference": "web"}), ["Amit"])
        self.assertEqual(names({"fromDate": "2024-02-10", "toDate": "2024-02-10"}), ["Bina"])
        self.assertEqual(names({"fromDate": "2024-02-15"}), ["Amit"])

    def test_list_visits_latest_first(self):
        client = TestDataFactory.create_client(visit_date=aware(2024, 1, 5, 10))
        Visit.objects.create(
            client=client, date=aware(2024, 3, 1, 10), reference="web", source="a",
            relation="b", closing="c", status="hot",
        )
        response = self.client.get(self.url)
        self.assertEqual(response.data["totalClients"], 1)
        visits = response.data["data"][0]["visits"]
        self.assertEqual([v["status"] for v in visits], ["hot", "warm"])

    def test_clients_without_visits_are_hidden(self):
        Client.objects.create(first_name="Ghost", last_name="X", phone_no="1", project="P", requirement="R", budget=1)
        TestDataFactory.create_client()
        response = self.client.get(self.url)
        self.assertEqual(response.data["totalClients"], 1)

    def test_search_and_budget(self):
        TestDataFactory.create_client(first_name="Neha", last_name="Sharma", budget=Decimal("5000000"))
        TestDataFactory.create_client(first_name="Rohit", last_name="Verma", budget=Decimal("9000000"))

        def names(params):
            return [c["firstName"] for c in self.client.get(self.url, params).data["data"]]

        self.assertEqual(names({"search": "neha sharma"}), ["Neha"])
        self.assertEqual(names({"search": "verma"}), ["Rohit"])
        self.assertEqual(names({"minBudget": "6000000"}), ["Rohit"])
        self.assertEqual(names({"maxBudget": "6000000"}), ["Neha"])

    def test_retrieve_visits_ascending(self):
        client = TestDataFactory.create_client(visit_date=aware(2024, 3, 1, 10), visit_status="hot")
        Visit.objects.create(
            client=client, date=aware(2024, 1, 1, 10), reference="web", source="a",
            relation="b", closing="c", status="cold",
        )
        response = self.client.get(f"{self.url}{client.pk}/")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([v["status"] for v in response.data["data"]["visits"]], ["cold", "hot"])

    def test_patch_client(self):
        client = TestDataFactory.create_client()
        response = self.client.patch(f"{self.url}{client.pk}/", {"occupation": "Engineer"})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        client.refresh_from_db()
        self.assertEqual(client.occupation, "Engineer")

    def test_delete_cascades_visits(self):
        client = TestDataFactory.create_client()
        response = self.client.delete(f"{self.url}{client.pk}/")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["clientId"], client.pk)
        self.assertFalse(Visit.objects.exists())

    def test_missing_client(self):
        response = self.client.get(f"{self.url}9999/")
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data["error"], "Client not found")

    def test_export(self):
        TestDataFactory.create_client()
        response = self.client.get(f"{self.url}export/")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(
            response["Content-Type"],
            "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        )


class VisitAPITests(TestCase):

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.url = "/api/visit/"
        self.customer = TestDataFactory.create_client()

    def _payload(self, **overrides):
        payload = {
            "clientId": self.customer.pk,
            "date": "2024-06-01T10:00:00+05:30",
            "reference": "walk-in",
            "source": "amit",
            "relation": "rahul",
            "closing": "priya",
            "status": "hot",
        }
        payload.update(overrides)
        return payload

    def test_add_visit(self):
        response = self.client.post(self.url, self._payload())
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(self.customer.visits.count(), 2)

    def test_add_visit_unknown_client(self):
        response = self.client.post(self.url, self._payload(clientId=9999))
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["error"], "Client not found")

    def test_update_visit(self):
        visit = self.customer.visits.get()
        response = self.client.patch(f"{self.url}{visit.pk}/", {"status": "booked"})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        visit.refresh_from_db()
        self.assertEqual(visit.status, "booked")

    def test_only_visit_cannot_be_deleted(self):
        visit = self.customer.visits.get()
        response = self.client.delete(f"{self.url}{visit.pk}/")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(
            response.data["error"],
            "Cannot delete the only visit for this client. A client must have at least one visit.",
        )
        self.assertTrue(Visit.objects.filter(pk=visit.pk).exists())

    def test_delete_one_of_many(self):
        self.client.post(self.url, self._payload())
        visit = self.customer.visits.order_by("date").first()
        response = self.client.delete(f"{self.url}{visit.pk}/")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(self.customer.visits.count(), 1)

    def test_remarks(self):
        visit = self.customer.visits.get()
        added = self.client.post(f"{self.url}{visit.pk}/remarks/", {"remark": "Wants east facing"})
        self.assertEqual(added.status_code, status.HTTP_201_CREATED)
        self.assertEqual(added.data["data"]["remarks"][0]["remark"], "Wants east facing")

        remark = Remark.objects.get()
        deleted = self.client.delete(f"{self.url}{visit.pk}/remarks/{remark.pk}/")
        self.assertEqual(deleted.status_code, status.HTTP_200_OK)
        self.assertEqual(deleted.data["data"]["remarks"], [])

    def test_delete_missing_remark(self):
        visit = self.customer.visits.get()
        response = self.client.delete(f"{self.url}{visit.pk}/remarks/9999/")
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data["error"], "Visit or remark not found")

    def test_delete_remark_with_non_numeric_ids(self):
        visit = self.customer.visits.get()
        for url in (f"{self.url}{visit.pk}/remarks/abc/", f"{self.url}abc/remarks/1/"):
            response = self.client.delete(url)
            self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
            self.assertEqual(response.data["error"], "Visit or remark not found")

    def test_remark_on_missing_visit(self):
        response = self.client.post(f"{self.url}9999/remarks/", {"remark": "x"})
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data["error"], "Visit not found")
