"""
EOI tests: numbering, immutable eoiNo, search/filter/sort and the sheet import command
"""
import json
import os
import tempfile
from datetime import date
from decimal import Decimal
from io import StringIO
from unittest import mock

from django.core.management import call_command
from django.test import SimpleTestCase, TestCase
from rest_framework import status
from rest_framework.exceptions import ValidationError

from common.test_utils import AuthenticatedAPIClient, TestDataFactory
from eoi.management.commands.import_eois import ERRORS_FILENAME, clean_record, parse_sheet_date
from eoi.models import EOI
from eoi.services import MAX_NUMBER_ATTEMPTS, create_eoi, next_eoi_no


class EOINumberingTests(TestCase):

    def _data(self, **extra):
        data = {
            "date": date(2024, 5, 1),
            "applicant": "Ravi",
            "config": "2BHK",
            "eoi_amt": Decimal("10000"),
            "manager": "amit",
        }
        data.update(extra)
        return data

    def test_first_number_is_1001(self):
        self.assertEqual(next_eoi_no(), 1001)
        eoi = create_eoi(self._data())
        self.assertEqual(eoi.eoi_no, 1001)
        self.assertEqual(eoi.status, "pending")

    def test_next_number_is_max_plus_one(self):
        TestDataFactory.create_eoi(2000)
        TestDataFactory.create_eoi(1500)
        self.assertEqual(create_eoi(self._data()).eoi_no, 2001)

    def test_explicit_number_kept(self):
        eoi = create_eoi(self._data(eoi_no=42))
        self.assertEqual(eoi.eoi_no, 42)

    @mock.patch("eoi.services.next_eoi_no", side_effect=[1001, 1002])
    def test_taken_number_is_retried(self, next_no):
        TestDataFactory.create_eoi(1001)
        eoi = create_eoi(self._data())
        self.assertEqual(eoi.eoi_no, 1002)
        self.assertEqual(next_no.call_count, 2)
        self.assertEqual(EOI.objects.count(), 2)

    @mock.patch("eoi.services.next_eoi_no", return_value=1001)
    def test_gives_up_after_max_attempts(self, next_no):
        TestDataFactory.create_eoi(1001)
        with self.assertRaises(ValidationError) as ctx:
            create_eoi(self._data())
        self.assertEqual(str(ctx.exception.detail["eoiNo"][0]), "Could not assign an EOI number, please retry")
        self.assertEqual(next_no.call_count, MAX_NUMBER_ATTEMPTS)
        self.assertEqual(EOI.objects.count(), 1)


class EOIAPITests(TestCase):

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.url = "/api/eoi/"

    def _payload(self, **overrides):
        payload = {
            "date": "2024-05-01",
            "applicant": "Ravi Kumar",
            "contact": 9876543210,
            "config": "2BHK",
            "eoiAmt": "50000",
            "manager": "amit",
            "pan": "abcde1234f",
        }
        payload.update(overrides)
        return payload

    def test_create_assigns_numbers(self):
        first = self.client.post(self.url, self._payload())
        self.assertEqual(first.status_code, status.HTTP_201_CREATED)
        self.assertEqual(first.data["message"], "EOI created successfully")
        self.assertEqual(first.data["data"]["eoiNo"], 1001)
        self.assertEqual(first.data["data"]["status"], "pending")
        self.assertEqual(first.data["data"]["pan"], "ABCDE1234F")

        second = self.client.post(self.url, self._payload(applicant="Meera"))
        self.assertEqual(second.data["data"]["eoiNo"], 1002)

    def test_create_duplicate_number_rejected(self):
        TestDataFactory.create_eoi(1200)
        response = self.client.post(self.url, self._payload(eoiNo=1200))
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["error"], "EOI number already exists")
        self.assertEqual(EOI.objects.count(), 1)

    def test_create_missing_required_fields(self):
        response = self.client.post(self.url, {"applicant": "Ravi"})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        for field in ("date", "config", "eoiAmt", "manager"):
            self.assertIn(field, response.data["fields"])

    def test_update_is_partial(self):
        eoi = TestDataFactory.create_eoi(1001)
        response = self.client.put(f"{self.url}{eoi.pk}/", {"status": "converted", "cp": "Sky Realty"})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["message"], "EOI updated successfully")
        eoi.refresh_from_db()
        self.assertEqual(eoi.status, "converted")
        self.assertEqual(eoi.applicant, "Ravi Kumar")

    def test_update_cannot_change_number(self):
        eoi = TestDataFactory.create_eoi(1001)
        response = self.client.put(f"{self.url}{eoi.pk}/", {"eoiNo": 5000, "applicant": "Other"})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["error"], "EOI number cannot be updated")
        eoi.refresh_from_db()
        self.assertEqual(eoi.eoi_no, 1001)
        self.assertEqual(eoi.applicant, "Ravi Kumar")

    def test_update_missing_eoi_with_number(self):
        response = self.client.put(f"{self.url}9999/", {"eoiNo": 5000})
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data, {"error": "EOI not found"})

    @mock.patch("eoi.services.next_eoi_no", return_value=1001)
    def test_create_reports_exhausted_numbering(self, _next_no):
        TestDataFactory.create_eoi(1001)
        response = self.client.post(self.url, self._payload())
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["error"], "Could not assign an EOI number, please retry")

    def test_retrieve_and_missing(self):
        eoi = TestDataFactory.create_eoi(1001)
        response = self.client.get(f"{self.url}{eoi.pk}/")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["data"]["eoiNo"], 1001)

        missing = self.client.get(f"{self.url}9999/")
        self.assertEqual(missing.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(missing.data, {"error": "EOI not found"})

    def test_delete_returns_snapshot(self):
        eoi = TestDataFactory.create_eoi(1001)
        response = self.client.delete(f"{self.url}{eoi.pk}/")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["data"]["eoiNo"], 1001)
        self.assertFalse(EOI.objects.exists())

    def test_list_pagination_shape(self):
        for n in range(1001, 1004):
            TestDataFactory.create_eoi(n)
        response = self.client.get(self.url, {"limit": 2, "page": 2})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["totalEois"], 3)
        self.assertEqual(response.data["totalPages"], 2)
        self.assertEqual(response.data["currentPage"], 2)
        self.assertEqual(len(response.data["data"]), 1)

    def test_numeric_search_matches_numbers_and_amount(self):
        TestDataFactory.create_eoi(1001, contact=9000000001, eoi_amt=Decimal("25000"))
        TestDataFactory.create_eoi(1002, contact=9000000002, alt=9000000001, eoi_amt=Decimal("75000"))
        TestDataFactory.create_eoi(1003, contact=9111111111, aadhar=123412341234, eoi_amt=Decimal("99000"))

        by_phone = self.client.get(self.url, {"search": "9000000001"})
        self.assertEqual({r["eoiNo"] for r in by_phone.data["data"]}, {1001, 1002})

        by_amount = self.client.get(self.url, {"search": "75000"})
        self.assertEqual([r["eoiNo"] for r in by_amount.data["data"]], [1002])

        by_number = self.client.get(self.url, {"search": "1003"})
        self.assertEqual([r["eoiNo"] for r in by_number.data["data"]], [1003])

        by_aadhar = self.client.get(self.url, {"search": "123412341234"})
        self.assertEqual([r["eoiNo"] for r in by_aadhar.data["data"]], [1003])

    def test_text_search_is_substring(self):
        TestDataFactory.create_eoi(1001, applicant="Ravi Kumar")
        TestDataFactory.create_eoi(1002, applicant="Meera Joshi", manager="priya")
        response = self.client.get(self.url, {"search": "JOSH"})
        self.assertEqual([r["eoiNo"] for r in response.data["data"]], [1002])

    def test_filters(self):
        TestDataFactory.create_eoi(1001, date=date(2024, 1, 10), eoi_amt=Decimal("20000"), config="2BHK")
        TestDataFactory.create_eoi(1002, date=date(2024, 2, 10), eoi_amt=Decimal("50000"), config="3BHK")
        TestDataFactory.create_eoi(1003, date=date(2024, 3, 10), eoi_amt=Decimal("90000"), config="3BHK",
                                   status="converted", pan="XYZAB9876C")

        def numbers(params):
            return sorted(r["eoiNo"] for r in self.client.get(self.url, params).data["data"])

        self.assertEqual(numbers({"minAmount": "30000", "maxAmount": "90000"}), [1002, 1003])
        self.assertEqual(numbers({"startDate": "2024-02-01", "endDate": "2024-02-28"}), [1002])
        self.assertEqual(numbers({"config": "3BHK"}), [1002, 1003])
        self.assertEqual(numbers({"status": "converted"}), [1003])
        self.assertEqual(numbers({"pan": "xyzab"}), [1003])
        self.assertEqual(numbers({"eoiNo": "1002"}), [1002])
        self.assertEqual(numbers({"contact": "abc"}), [])

    def test_out_of_range_numbers_match_nothing(self):
        TestDataFactory.create_eoi(1001, applicant="Ravi", eoi_amt=Decimal("20000"))
        huge = "12345678901234567890"

        for params in ({"search": huge}, {"eoiNo": huge}, {"contact": huge}, {"minAmount": huge}):
            response = self.client.get(self.url, params)
            self.assertEqual(response.status_code, status.HTTP_200_OK)
            self.assertEqual(response.data["data"], [])

        no_cap = self.client.get(self.url, {"maxAmount": huge})
        self.assertEqual([r["eoiNo"] for r in no_cap.data["data"]], [1001])

    def test_sorting(self):
        TestDataFactory.create_eoi(1002, eoi_amt=Decimal("10"))
        TestDataFactory.create_eoi(1001, eoi_amt=Decimal("30"))
        TestDataFactory.create_eoi(1003, eoi_amt=Decimal("20"))

        asc = self.client.get(self.url, {"sortBy": "eoiNo", "sortOrder": "asc"})
        self.assertEqual([r["eoiNo"] for r in asc.data["data"]], [1001, 1002, 1003])

        by_amount = self.client.get(self.url, {"sortBy": "eoiAmt"})
        self.assertEqual([r["eoiNo"] for r in by_amount.data["data"]], [1001, 1003, 1002])


class SheetDateTests(SimpleTestCase):

    def test_two_digit_year_pivot(self):
        self.assertEqual(parse_sheet_date("05/01/24"), date(2024, 5, 1))
        self.assertEqual(parse_sheet_date("12/31/99"), date(1999, 12, 31))
        self.assertEqual(parse_sheet_date("1/2/2023"), date(2023, 1, 2))

    def test_iso_fallback(self):
        self.assertEqual(parse_sheet_date("2024-06-15"), date(2024, 6, 15))

    def test_invalid_date(self):
        with self.assertRaises(ValueError):
            parse_sheet_date("sometime")

    def test_clean_record_trims_and_uppercases(self):
        record = clean_record({
            "date": "05/01/24",
            "applicant": "  Ravi ",
            "pan": "abcde1234f",
            "contact": "9876543210",
            "eoiNo": "1201",
            "config": "2BHK",
            "manager": " amit ",
        })
        self.assertEqual(record["applicant"], "Ravi")
        self.assertEqual(record["pan"], "ABCDE1234F")
        self.assertEqual(record["contact"], 9876543210)
        self.assertEqual(record["eoi_no"], 1201)
        self.assertEqual(record["manager"], "amit")
        self.assertEqual(record["eoi_amt"], 0)


class ImportCommandTests(TestCase):

    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmpdir.cleanup)

    def _write(self, records):
        path = os.path.join(self.tmpdir.name, "eoi.json")
        with open(path, "w", encoding="utf-8") as fh:
            json.dump(records, fh)
        return path

    def test_import_json(self):
        path = self._write([
            {"date": "05/01/24", "applicant": "Ravi", "config": "2BHK", "eoiAmt": 25000,
             "eoiNo": 1500, "manager": "amit", "contact": "9876543210"},
            {"date": "05/02/24", "applicant": "Meera", "config": "3BHK", "eoiAmt": 30000, "manager": "priya"},
            {"date": "13/45/24", "applicant": "Broken", "config": "2BHK", "eoiAmt": 1000, "manager": "amit"},
            {"date": "05/03/24", "applicant": "Dup", "config": "2BHK", "eoiAmt": 1000,
             "eoiNo": 1500, "manager": "amit"},
        ])
        out = StringIO()
        call_command("import_eois", path, stdout=out)

        self.assertEqual(EOI.objects.count(), 2)
        ravi = EOI.objects.get(eoi_no=1500)
        self.assertEqual(ravi.date, date(2024, 5, 1))
        self.assertEqual(ravi.contact, 9876543210)
        self.assertEqual(EOI.objects.get(applicant="Meera").eoi_no, 1501)
        self.assertIn("Successful: 2", out.getvalue())

        with open(os.path.join(self.tmpdir.name, ERRORS_FILENAME), encoding="utf-8") as fh:
            errors = json.load(fh)
        self.assertEqual(len(errors), 2)

    def test_skip_validation_numbers_rows_without_eoi_no(self):
        TestDataFactory.create_eoi(1700)
        path = self._write([
            {"date": "05/01/24", "applicant": "Ravi", "config": "2BHK", "eoiAmt": 25000, "manager": "amit"},
            {"date": "05/02/24", "applicant": "Meera", "config": "3BHK", "eoiAmt": 30000, "manager": "priya"},
        ])
        out = StringIO()
        call_command("import_eois", path, "--skip-validation", stdout=out)

        self.assertEqual(EOI.objects.get(applicant="Ravi").eoi_no, 1701)
        self.assertEqual(EOI.objects.get(applicant="Meera").eoi_no, 1702)
        self.assertIn("Successful: 2", out.getvalue())

    def test_unsupported_file_type(self):
        path = os.path.join(self.tmpdir.name, "eoi.csv")
        with open(path, "w", encoding="utf-8") as fh:
            fh.write("date\n")
        from django.core.management.base import CommandError
        with self.assertRaises(CommandError):
            call_command("import_eois", path, stdout=StringIO())
