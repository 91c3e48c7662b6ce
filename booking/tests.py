"""
Booking tests: unit lock-in on create, cancellation flow and letter, export,
payment ledger and the demand letter
"""
from datetime import datetime
from decimal import Decimal

from django.core.exceptions import ValidationError as DjangoValidationError
from django.test import SimpleTestCase, TestCase
from django.utils import timezone
from rest_framework import status

from booking.ledger import amount_in_words, format_inr, generate_transaction_id, wing_label
from booking.letters import demand_letter_context, interest_for_months, letter_date, property_identifier
from booking.models import BookingAttachment, BookingLedger, ClientBooking, LedgerEntryType, LedgerPaymentMethod
from booking.tasks import generate_cancellation_letter
from booking.views import payment_type_abbreviation
from common.test_utils import AuthenticatedAPIClient, TestDataFactory
from inventory.models import FloorType


class HelperTests(SimpleTestCase):

    def test_payment_type_abbreviation(self):
        self.assertEqual(payment_type_abbreviation("regular-payment"), "RP")
        self.assertEqual(payment_type_abbreviation("down-payment"), "DP")
        self.assertEqual(payment_type_abbreviation(""), "")

    def test_amount_in_words_uses_lakh_and_crore(self):
        self.assertEqual(amount_in_words(1234567), "Twelve Lakh Thirty Four Thousand Five Hundred Sixty Seven Only")
        self.assertEqual(amount_in_words(Decimal("600000.75")), "Six Lakh Only")
        self.assertEqual(amount_in_words(10000000), "One Crore Only")
        self.assertEqual(amount_in_words(1500000000), "One Hundred Fifty Crore Only")
        self.assertEqual(amount_in_words(0), "Zero Only")
        self.assertEqual(amount_in_words(-15), "Minus Fifteen Only")

    def test_format_inr_groups_like_en_in(self):
        self.assertEqual(format_inr(999), "999")
        self.assertEqual(format_inr(100000), "1,00,000")
        self.assertEqual(format_inr(Decimal("1234567.00")), "12,34,567")
        self.assertEqual(format_inr(-1500), "-1,500")

    def test_wing_label(self):
        self.assertEqual(wing_label("A"), "A-Wing")
        self.assertEqual(wing_label("wing b"), "B-Wing")
        self.assertEqual(wing_label("Tower  c"), "Tower-C")
        self.assertEqual(wing_label("East Block 2"), "East Block 2")
        self.assertEqual(wing_label(""), "")

    def test_transaction_id_format(self):
        txn = generate_transaction_id()
        prefix, millis, suffix = txn.split("-")
        self.assertEqual(prefix, "TXN")
        self.assertTrue(millis.isdigit())
        self.assertRegex(suffix, r"^[0-9a-z]{9}$")
        self.assertNotEqual(txn, generate_transaction_id())

    def test_interest_for_months(self):
        self.assertEqual(interest_for_months(Decimal("600000"), 6), Decimal("72000"))
        self.assertEqual(interest_for_months(Decimal("0"), 6), Decimal("0"))

    def test_letter_date(self):
        self.assertEqual(letter_date(datetime(2026, 10, 2).date()), "2nd October, 2026")


class BookingTestMixin:

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.url = "/api/client-booking/"

        self.project = TestDataFactory.create_project(name="Skyline")
        self.wing = TestDataFactory.create_wing(self.project, name="A")
        self.floor = TestDataFactory.create_floor(self.project, self.wing, display_number=1)
        self.unit = TestDataFactory.create_unit(self.floor, "101")


class BookingAPITests(BookingTestMixin, TestCase):

    def _payload(self, **overrides):
        payload = {
            "applicant": "Sanjay Patil",
            "unit": self.unit.pk,
            "phoneNo": "9111111111",
            "email": "Sanjay@Example.com",
            "paymentType": "regular-payment",
            "paymentStatus": "pending",
            "bookingAmt": "100000",
            "dealTerms": "Standard",
            "paymentTerms": "CLP",
            "salesManager": "amit",
            "clientPartner": "Direct",
        }
        payload.update(overrides)
        return payload

    def test_create_marks_unit_booked(self):
        response = self.client.post(self.url, self._payload())
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        data = response.data["data"]
        self.assertEqual(data["status"], "booked")
        self.assertEqual(data["project"], "Skyline")
        self.assertEqual(data["wing"], "A")
        self.assertEqual(data["floor"], "1st")
        self.assertEqual(data["unit"]["unitNumber"], "101")
        self.assertEqual(data["email"], "sanjay@example.com")

        self.unit.refresh_from_db()
        self.assertEqual(self.unit.status, "booked")
        self.assertEqual(self.unit.reserved_by_or_reason, "Sanjay Patil")
        self.assertEqual(self.unit.reference_id, str(data["id"]))

    def test_create_requires_unit(self):
        payload = self._payload()
        payload.pop("unit")
        response = self.client.post(self.url, payload)
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["error"], "Unit ID is required")

    def test_create_unknown_unit(self):
        response = self.client.post(self.url, self._payload(unit=9999))
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data["error"], "Unit not found")

    def test_create_negative_amount(self):
        response = self.client.post(self.url, self._payload(bookingAmt="-5"))
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["error"], "Booking amount cannot be negative")
        self.unit.refresh_from_db()
        self.assertEqual(self.unit.status, "available")

    def test_booked_unit_cannot_be_booked_again(self):
        self.client.post(self.url, self._payload())
        response = self.client.post(self.url, self._payload(applicant="Someone Else"))
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(ClientBooking.objects.count(), 1)

    def test_client_partner_name_resolved_from_id(self):
        partner = TestDataFactory.create_partner(name="Sky Realty Partners")
        response = self.client.post(self.url, self._payload(clientPartner=str(partner.pk)))
        self.assertEqual(response.data["data"]["clientPartnerName"], "Sky Realty Partners")

    def test_list_filters(self):
        TestDataFactory.create_booking(self.unit, applicant="Sanjay Patil")
        other_unit = TestDataFactory.create_unit(self.floor, "102")
        TestDataFactory.create_booking(other_unit, applicant="Meera Joshi", status="canceled", project="Other")

        response = self.client.get(self.url)
        self.assertEqual(response.data["total"], 2)

        canceled = self.client.get(self.url, {"status": "Canceled"})
        self.assertEqual([b["applicant"] for b in canceled.data["data"]], ["Meera Joshi"])

        by_project = self.client.get(self.url, {"project": "Skyline"})
        self.assertEqual([b["applicant"] for b in by_project.data["data"]], ["Sanjay Patil"])

        by_unit = self.client.get(self.url, {"search": "102"})
        self.assertEqual([b["applicant"] for b in by_unit.data["data"]], ["Meera Joshi"])

    def test_patch_booking(self):
        booking = TestDataFactory.create_booking(self.unit)
        response = self.client.patch(f"{self.url}{booking.pk}/", {"paymentStatus": "paid"})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        booking.refresh_from_db()
        self.assertEqual(booking.payment_status, "paid")

    def test_delete_keeps_unit_status(self):
        booking = TestDataFactory.create_booking(self.unit)
        self.unit.status = "booked"
        self.unit.save()
        response = self.client.delete(f"{self.url}{booking.pk}/")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.unit.refresh_from_db()
        self.assertEqual(self.unit.status, "booked")

    def test_missing_booking(self):
        response = self.client.get(f"{self.url}9999/")
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data["error"], "Booking not found")

    def test_export(self):
        TestDataFactory.create_booking(self.unit)
        response = self.client.get(f"{self.url}export/")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(
            response["Content-Type"],
            "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        )


class CancellationTests(BookingTestMixin, TestCase):

    def setUp(self):
        super().setUp()
        self.unit.status = "booked"
        self.unit.save()
        self.booking = TestDataFactory.create_booking(self.unit, wing="A")

    def test_cancel_marks_unit_and_generates_letter(self):
        with self.captureOnCommitCallbacks(execute=True):
            response = self.client.post(f"{self.url}{self.booking.pk}/cancel/")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["message"], "Booking canceled successfully")
        self.booking.refresh_from_db()
        self.unit.refresh_from_db()
        self.assertEqual(self.booking.status, "canceled")
        self.assertEqual(self.unit.status, "canceled")

        letter = self.booking.attachments.get()
        self.assertEqual(letter.doc_type, BookingAttachment.DocType.CANCELLATION_LETTER)

        download = self.client.get(f"{self.url}{self.booking.pk}/cancellation-letter/")
        self.assertEqual(download.status_code, status.HTTP_200_OK)
        self.assertEqual(download["Content-Type"], "application/pdf")
        self.assertTrue(download.content.startswith(b"%PDF"))

    def test_cancel_twice_rejected(self):
        with self.captureOnCommitCallbacks(execute=True):
            self.client.post(f"{self.url}{self.booking.pk}/cancel/")
        response = self.client.post(f"{self.url}{self.booking.pk}/cancel/")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["error"], "Booking is already canceled")

    def test_letter_missing_before_cancel(self):
        response = self.client.get(f"{self.url}{self.booking.pk}/cancellation-letter/")
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data["error"], "Cancellation letter not available")

    def test_task_skips_missing_booking(self):
        self.assertIsNone(generate_cancellation_letter(9999))

    def test_property_identifier(self):
        self.assertEqual(property_identifier(self.booking), "Flat A-101")
        shops = TestDataFactory.create_floor(self.project, None, 0, FloorType.COMMERCIAL, is_commercial_block=True)
        shop = TestDataFactory.create_unit(shops, "S12")
        booking = TestDataFactory.create_booking(shop, wing="", booking_amt=Decimal("0"))
        self.assertEqual(property_identifier(booking), "Shop S12")


class LedgerTestMixin(BookingTestMixin):

    def setUp(self):
        super().setUp()
        self.bank = TestDataFactory.create_bank(self.project)
        self.booking = TestDataFactory.create_booking(self.unit, agreement_value=Decimal("5000000"))
        self.ledger_url = "/api/booking-ledger/"


class BookingLedgerAPITests(LedgerTestMixin, TestCase):

    def _payload(self, **overrides):
        payload = {
            "bookingId": self.booking.pk,
            "toAccount": self.bank.pk,
            "amount": "250000",
            "demand": "250000",
            "description": "Plinth slab",
            "type": "schedule-payment",
            "method": "cash",
        }
        payload.update(overrides)
        return payload

    def test_create_assigns_transaction_id(self):
        response = self.client.post(self.ledger_url, self._payload())
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data["message"], "Payment added successfully")
        data = response.data["data"]
        self.assertTrue(data["transactionId"].startswith("TXN-"))
        self.assertEqual(data["createdBy"], self.user.username)
        self.assertEqual(data["bookingId"], self.booking.pk)
        self.assertEqual(data["toAccount"], self.bank.pk)
        self.assertFalse(data["isDeleted"])

    def test_cheque_needs_number_and_dates(self):
        response = self.client.post(
            self.ledger_url,
            self._payload(method="cheque", paymentDetails={"chequeNumber": "000123"}),
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["error"], "Cheque date is required for cheque payments")

        response = self.client.post(
            self.ledger_url,
            self._payload(
                method="cheque",
                paymentDetails={
                    "chequeNumber": "000123",
                    "chequeDate": "2026-10-01",
                    "dueDate": "2026-10-10",
                    "chequeStatus": "issued",
                },
            ),
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data["data"]["paymentDetails"]["chequeNumber"], "000123")

    def test_upi_needs_transaction_id(self):
        response = self.client.post(self.ledger_url, self._payload(method="upi"))
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["error"], "Transaction ID is required for UPI/Online payments")

        response = self.client.post(
            self.ledger_url, self._payload(method="online-payment", paymentDetails={"upiTransactionId": "UPI123"})
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data["data"]["paymentDetails"]["upiTransactionId"], "UPI123")

    def test_invalid_amount_rejected(self):
        for amount in ("0", "-10", "abc"):
            response = self.client.post(self.ledger_url, self._payload(amount=amount))
            self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
            self.assertEqual(response.data["error"], "Valid amount is required")

    def test_unknown_booking_or_account(self):
        response = self.client.post(self.ledger_url, self._payload(bookingId=9999))
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data["error"], "Client booking not found")

        response = self.client.post(self.ledger_url, self._payload(toAccount="abc"))
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data["error"], "Bank account not found")

    def test_model_save_checks_payment_details(self):
        with self.assertRaises(DjangoValidationError):
            TestDataFactory.create_ledger_entry(self.booking, self.bank, method=LedgerPaymentMethod.CHEQUE)
        self.assertFalse(BookingLedger.objects.exists())

    def test_client_list_with_summary(self):
        TestDataFactory.create_ledger_entry(self.booking, self.bank, amount=Decimal("100000"))
        TestDataFactory.create_ledger_entry(self.booking, self.bank, amount=Decimal("10000"), type=LedgerEntryType.REFUND)
        TestDataFactory.create_ledger_entry(self.booking, self.bank, amount=Decimal("5000"), type=LedgerEntryType.PENALTY)
        deleted = TestDataFactory.create_ledger_entry(
            self.booking, self.bank, amount=Decimal("50000"), type=LedgerEntryType.ADVANCE
        )
        deleted.soft_delete(deleted_by="amit", reason="duplicate")

        response = self.client.get(f"{self.ledger_url}client/{self.booking.pk}/")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["total"], 3)
        summary = response.data["summary"]
        self.assertEqual(summary["totalAmount"], Decimal("115000"))
        self.assertEqual(summary["totalPayments"], Decimal("100000"))
        self.assertEqual(summary["totalRefunds"], Decimal("10000"))
        self.assertEqual(summary["totalPenalties"], Decimal("5000"))

        response = self.client.get(f"{self.ledger_url}client/{self.booking.pk}/", {"includeDeleted": "true"})
        self.assertEqual(response.data["total"], 4)
        self.assertEqual(response.data["summary"]["totalPayments"], Decimal("100000"))

        response = self.client.get(f"{self.ledger_url}client/{self.booking.pk}/", {"type": "refund,penalty"})
        self.assertEqual(response.data["total"], 2)

    def test_client_list_date_and_method_filters(self):
        old = TestDataFactory.create_ledger_entry(self.booking, self.bank)
        old.date = timezone.make_aware(datetime(2024, 1, 15, 10, 0))
        old.save()
        TestDataFactory.create_ledger_entry(
            self.booking, self.bank, method=LedgerPaymentMethod.UPI, upi_transaction_id="UPI9"
        )

        url = f"{self.ledger_url}client/{self.booking.pk}/"
        self.assertEqual(self.client.get(url, {"fromDate": "2025-01-01"}).data["total"], 1)
        self.assertEqual(self.client.get(url, {"toDate": "2024-01-15"}).data["total"], 1)
        self.assertEqual(self.client.get(url, {"method": "upi"}).data["data"][0]["method"], "upi")

    def test_client_list_unknown_booking(self):
        for booking_id in ("9999", "abc"):
            response = self.client.get(f"{self.ledger_url}client/{booking_id}/")
            self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
            self.assertEqual(response.data["error"], "Client booking not found")

    def test_soft_delete_and_restore(self):
        entry = TestDataFactory.create_ledger_entry(self.booking, self.bank)
        url = f"{self.ledger_url}{entry.pk}/"

        response = self.client.delete(url, {"reason": "Entered twice"})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["message"], "Payment deleted successfully")
        entry.refresh_from_db()
        self.assertTrue(entry.is_deleted)
        self.assertEqual(entry.deleted_by, self.user.username)
        self.assertEqual(entry.deletion_reason, "Entered twice")
        self.assertIsNotNone(entry.deleted_at)

        response = self.client.delete(url)
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["error"], "Payment is already deleted")

        response = self.client.patch(f"{url}restore/")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["message"], "Payment restored successfully")
        entry.refresh_from_db()
        self.assertFalse(entry.is_deleted)
        self.assertIsNone(entry.deleted_at)

        response = self.client.patch(f"{url}restore/")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["error"], "Payment is not deleted")

    def test_missing_payment(self):
        response = self.client.get(f"{self.ledger_url}9999/")
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data, {"error": "Payment not found"})


class DemandLetterTests(LedgerTestMixin, TestCase):

    def setUp(self):
        super().setUp()
        self.project.project_stage = 30
        self.project.save()
        self.booking.co_applicant = "Meera Patil & Rohan Patil"
        self.booking.save()
        TestDataFactory.create_ledger_entry(self.booking, self.bank, amount=Decimal("1000000"))
        TestDataFactory.create_ledger_entry(self.booking, self.bank, amount=Decimal("100000"), type=LedgerEntryType.REFUND)
        self.letter_url = f"{self.url}{self.booking.pk}/demand-letter/"

    def test_context_amounts(self):
        context = demand_letter_context(self.booking)
        self.assertEqual(context["title"], "DEMAND LETTER")
        self.assertEqual(context["agreement_value"], "50,00,000")
        self.assertEqual(context["amount_due"], "15,00,000")
        self.assertEqual(context["amount_received"], "9,00,000")
        self.assertEqual(context["amount_payable"], "6,00,000")
        self.assertEqual(context["amount_words"], "Six Lakh Only")
        self.assertEqual(context["wing"], "A-Wing")
        self.assertEqual(context["floor"], "1st")
        self.assertEqual(context["co_applicants"], ["Meera Patil", "Rohan Patil"])
        self.assertEqual(context["bank_rows"][-1], ("IFSC Code", "HDFC0001234"))

    def test_context_with_interest(self):
        context = demand_letter_context(self.booking, Decimal("72000"))
        self.assertEqual(context["title"], "INTEREST LETTER")
        self.assertEqual(context["total_payable"], "6,72,000")
        self.assertEqual(context["amount_words"], "Six Lakh Seventy Two Thousand Only")

    def test_download_demand_letter(self):
        response = self.client.get(self.letter_url)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response["Content-Type"], "application/pdf")
        self.assertIn(f"demand-letter-{self.booking.pk}.pdf", response["Content-Disposition"])
        self.assertTrue(response.content.startswith(b"%PDF"))

    def test_interest_letter_from_months(self):
        response = self.client.get(self.letter_url, {"months": 6})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn(f"interest-letter-{self.booking.pk}.pdf", response["Content-Disposition"])

    def test_invalid_interest_inputs(self):
        response = self.client.get(self.letter_url, {"interest": "abc"})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["error"], "Please enter a valid interest amount")

        response = self.client.get(self.letter_url, {"months": "0"})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["error"], "Please enter a valid number of months")

    def test_missing_bank(self):
        self.booking.ledger_entries.all().delete()
        self.bank.delete()
        response = self.client.get(self.letter_url)
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["error"], "Missing project bank data for generating demand letter")

    def test_missing_agreement_value(self):
        self.booking.agreement_value = Decimal("0")
        self.booking.save()
        response = self.client.get(self.letter_url)
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["error"], "Missing agreement value for generating demand letter")

    def test_missing_booking(self):
        response = self.client.get(f"{self.url}9999/demand-letter/")
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data["error"], "Booking not found")
