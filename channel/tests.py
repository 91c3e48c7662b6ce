"""
Client partner tests: cpId generation, soft delete lifecycle, nested employees
"""
import re
from unittest import mock

from django.test import SimpleTestCase, TestCase
from rest_framework import status

from channel.models import ClientPartner, PartnerEmployee
from channel.utils import company_initials, generate_cp_id
from common.test_utils import AuthenticatedAPIClient, TestDataFactory


class InitialsTests(SimpleTestCase):

    def test_company_initials(self):
        self.assertEqual(company_initials("Sky Realty Partners"), "SRP")
        self.assertEqual(company_initials("  acme   homes "), "AH")


class CpIdTests(TestCase):

    @mock.patch("channel.utils.time.time", return_value=1717000123.0)
    def test_format(self, _time):
        self.assertEqual(generate_cp_id("Sky Realty Partners"), "CP-SRP-123000")

    @mock.patch("channel.utils.time.time", return_value=1717000123.0)
    def test_collision_moves_to_next_stamp(self, _time):
        TestDataFactory.create_partner(cp_id="CP-SRP-123000")
        self.assertEqual(generate_cp_id("Sky Realty Partners"), "CP-SRP-123001")


class ClientPartnerAPITests(TestCase):

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.url = "/api/client-partner/"

    def test_create(self):
        response = self.client.post(
            self.url,
            {"name": "Sky Realty Partners", "email": "info@sky.in", "phoneNo": "9333333333", "commissionPercentage": "2.5"},
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data["message"], "Client Partner created successfully")
        self.assertTrue(re.match(r"^CP-SRP-\d{6}$", response.data["data"]["cpId"]))
        self.assertEqual(response.data["data"]["employees"], [])

    def test_cp_id_is_read_only(self):
        response = self.client.post(self.url, {"name": "Acme", "cpId": "CP-HACK-000000"})
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertNotEqual(response.data["data"]["cpId"], "CP-HACK-000000")

    def test_commission_out_of_range(self):
        response = self.client.post(self.url, {"name": "Acme", "commissionPercentage": "150"})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_list_hides_soft_deleted_and_searches(self):
        TestDataFactory.create_partner(name="Sky Realty")
        TestDataFactory.create_partner(name="Acme Homes", email="hello@acme.in")
        TestDataFactory.create_partner(name="Gone Estates", is_deleted=True)

        response = self.client.get(self.url)
        self.assertEqual(response.data["totalClientPartners"], 2)

        found = self.client.get(self.url, {"search": "acme.in"})
        self.assertEqual([p["name"] for p in found.data["data"]], ["Acme Homes"])

    def test_put_is_partial(self):
        partner = TestDataFactory.create_partner(name="Sky Realty", phone_no="1")
        response = self.client.put(f"{self.url}{partner.pk}/", {"notes": "Top performer"})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        partner.refresh_from_db()
        self.assertEqual(partner.notes, "Top performer")
        self.assertEqual(partner.name, "Sky Realty")

    def test_soft_delete_restore_hard_delete(self):
        partner = TestDataFactory.create_partner()

        deleted = self.client.delete(f"{self.url}{partner.pk}/")
        self.assertEqual(deleted.status_code, status.HTTP_200_OK)
        partner.refresh_from_db()
        self.assertTrue(partner.is_deleted)
        self.assertEqual(self.client.get(f"{self.url}{partner.pk}/").status_code, status.HTTP_404_NOT_FOUND)

        restored = self.client.post(f"{self.url}{partner.pk}/restore/")
        self.assertEqual(restored.status_code, status.HTTP_200_OK)
        partner.refresh_from_db()
        self.assertFalse(partner.is_deleted)

        gone = self.client.delete(f"{self.url}{partner.pk}/hard-delete/")
        self.assertEqual(gone.status_code, status.HTTP_200_OK)
        self.assertFalse(ClientPartner.objects.filter(pk=partner.pk).exists())

    def test_restore_live_partner_not_found(self):
        partner = TestDataFactory.create_partner()
        response = self.client.post(f"{self.url}{partner.pk}/restore/")
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data["error"], "Deleted client partner not found")

    def test_reference_lists_live_employees(self):
        sky = TestDataFactory.create_partner(name="Sky Realty")
        TestDataFactory.create_employee(sky, first_name="Kiran")
        TestDataFactory.create_employee(sky, first_name="Old", is_deleted=True)
        gone = TestDataFactory.create_partner(name="Gone", is_deleted=True)
        TestDataFactory.create_employee(gone, first_name="Hidden")

        response = self.client.get(f"{self.url}reference/")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(
            response.data["references"],
            [{"id": sky.employees.get(first_name="Kiran").pk, "firstName": "Kiran", "lastName": "Rao",
              "companyName": "Sky Realty"}],
        )

    def test_export(self):
        partner = TestDataFactory.create_partner()
        TestDataFactory.create_employee(partner)
        response = self.client.get(f"{self.url}export/")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(
            response["Content-Type"],
            "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        )


class PartnerEmployeeAPITests(TestCase):

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.partner = TestDataFactory.create_partner(name="Sky Realty")
        self.url = f"/api/client-partner/{self.partner.pk}/employees/"

    def test_add_employee_returns_partner(self):
        response = self.client.post(self.url, {"firstName": "Kiran", "lastName": "Rao", "phoneNo": "9222222222"})
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data["data"]["id"], self.partner.pk)
        self.assertEqual([e["firstName"] for e in response.data["data"]["employees"]], ["Kiran"])

    def test_add_employee_to_missing_partner(self):
        response = self.client.post("/api/client-partner/9999/employees/", {"firstName": "K", "phoneNo": "1"})
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data["error"], "Client partner not found")

    def test_non_numeric_partner_id(self):
        response = self.client.post("/api/client-partner/abc/employees/", {"firstName": "K", "phoneNo": "1"})
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data["error"], "Client partner not found")

        employee = self.client.put(f"{self.url}abc/", {"position": "Lead"})
        self.assertEqual(employee.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(employee.data["error"], "Employee not found")

    def test_update_employee(self):
        employee = TestDataFactory.create_employee(self.partner)
        response = self.client.put(f"{self.url}{employee.pk}/", {"position": "Lead"})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        employee.refresh_from_db()
        self.assertEqual(employee.position, "Lead")
        self.assertEqual(employee.first_name, "Kiran")

    def test_soft_delete_and_restore_employee(self):
        employee = TestDataFactory.create_employee(self.partner)

        deleted = self.client.delete(f"{self.url}{employee.pk}/")
        self.assertEqual(deleted.status_code, status.HTTP_200_OK)
        self.assertEqual(deleted.data["data"]["employees"], [])
        self.assertTrue(PartnerEmployee.objects.get(pk=employee.pk).is_deleted)

        again = self.client.delete(f"{self.url}{employee.pk}/")
        self.assertEqual(again.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(again.data["error"], "Employee not found")

        restored = self.client.post(f"{self.url}{employee.pk}/restore/")
        self.assertEqual(restored.status_code, status.HTTP_200_OK)
        self.assertEqual(len(restored.data["data"]["employees"]), 1)

    def test_restore_live_employee_not_found(self):
        employee = TestDataFactory.create_employee(self.partner)
        response = self.client.post(f"{self.url}{employee.pk}/restore/")
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data["error"], "Deleted employee not found")
