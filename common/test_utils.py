"""
Test utilities and factories for creating test data
"""
import random
import string
from datetime import date
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.utils import timezone
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken

from booking.ledger import generate_transaction_id
from booking.models import BookingLedger, ClientBooking, LedgerEntryType, LedgerPaymentMethod, PaymentType
from channel.models import ClientPartner, PartnerEmployee
from clients.models import Client, Visit
from eoi.models import EOI
from inventory.models import (
    BankAccountType,
    BankDetail,
    CommercialPlacement,
    Floor,
    FloorType,
    Project,
    ProjectStatus,
    Unit,
    Wing,
)
from setup.models import Category, CategoryType

User = get_user_model()

DEFAULT_CATEGORIES = [
    ("available", "Available", "#22C55E", 0),
    ("booked", "Booked", "#EF4444", 1),
    ("canceled", "Canceled", "#9CA3AF", 2),
    ("others", "Others", "#FFFFFF", 3),
]


class TestDataFactory:
    """Factory class for creating test data"""

    __test__ = False

    @staticmethod
    def random_string(length=8):
        return "".join(random.choices(string.ascii_lowercase + string.digits, k=length))

    @staticmethod
    def create_user(username=None, email=None, password="testpass123", **extra):
        if not username:
            username = f"user_{TestDataFactory.random_string(6)}"
        if not email:
            email = f"{username}@test.com"
        return User.objects.create_user(username=username, email=email, password=password, **extra)

    # ---------- setup ----------

    @staticmethod
    def create_category(name=None, display_name=None, color_hex="#123456", precedence=0, type=CategoryType.MUTABLE):
        name = name or f"cat_{TestDataFactory.random_string(5)}"
        return Category.objects.create(
            name=name,
            display_name=display_name or name.title(),
            color_hex=color_hex,
            precedence=precedence,
            type=type,
        )

    @staticmethod
    def create_default_categories():
        return [
            TestDataFactory.create_category(name, label, color, prec)
            for name, label, color, prec in DEFAULT_CATEGORIES
        ]

    # ---------- inventory ----------

    @staticmethod
    def create_project(name=None, placement=CommercialPlacement.WING_LEVEL, **extra):
        data = {
            "name": name or f"Project {TestDataFactory.random_string(4)}",
            "developer": "acme builders",
            "location": "Pune",
            "start_date": date(2024, 1, 1),
            "status": ProjectStatus.UNDER_CONSTRUCTION,
            "commercial_unit_placement": placement,
        }
        data.update(extra)
        return Project.objects.create(**data)

    @staticmethod
    def create_wing(project, name="A", units_per_floor=4, header_floor_index=0, position=0):
        return Wing.objects.create(
            project=project,
            name=name,
            units_per_floor=units_per_floor,
            header_floor_index=header_floor_index,
            position=position,
        )

    @staticmethod
    def create_floor(project, wing=None, display_number=1, type=FloorType.RESIDENTIAL,
                     is_commercial_block=False, position=0, show_area=True):
        return Floor.objects.create(
            project=project,
            wing=wing,
            type=type,
            display_number=display_number,
            show_area=show_area,
            is_commercial_block=is_commercial_block,
            position=position,
        )

    @staticmethod
    def create_unit(floor, unit_number=None, status="available", unit_span=1,
                    configuration="2BHK", area=Decimal("650.00"), position=0, **extra):
        return Unit.objects.create(
            floor=floor,
            unit_number=unit_number or TestDataFactory.random_string(4).upper(),
            area=area,
            configuration=configuration,
            unit_span=unit_span,
            status=status,
            position=position,
            **extra,
        )

    # ---------- eoi ----------

    @staticmethod
    def create_eoi(eoi_no, **extra):
        data = {
            "date": date(2024, 5, 1),
            "applicant": "Ravi Kumar",
            "contact": 9876543210,
            "config": "2BHK",
            "eoi_amt": Decimal("50000.00"),
            "eoi_no": eoi_no,
            "manager": "amit",
        }
        data.update(extra)
        return EOI.objects.create(**data)

    # ---------- clients ----------

    @staticmethod
    def create_client(visit_date=None, visit_status="warm", **extra):
        data = {
            "first_name": "Neha",
            "last_name": "Sharma",
            "phone_no": "9000000001",
            "project": "Skyline",
            "requirement": "2BHK",
            "budget": Decimal("7500000"),
        }
        data.update(extra)
        client = Client.objects.create(**data)
        Visit.objects.create(
            client=client,
            date=visit_date or timezone.now(),
            reference="walk-in",
            source="amit",
            relation="rahul",
            closing="priya",
            status=visit_status,
        )
        return client

    # ---------- booking ----------

    @staticmethod
    def create_booking(unit, applicant="Sanjay Patil", **extra):
        data = {
            "applicant": applicant,
            "project": unit.floor.project.name,
            "wing": unit.floor.wing.name if unit.floor.wing else "",
            "floor": str(unit.floor.display_number),
            "unit": unit,
            "phone_no": "9111111111",
            "payment_type": PaymentType.REGULAR,
            "payment_status": "pending",
            "booking_amt": Decimal("100000"),
            "deal_terms": "Standard",
            "payment_terms": "CLP",
            "sales_manager": "amit",
            "client_partner": "Direct",
        }
        data.update(extra)
        return ClientBooking.objects.create(**data)

    @staticmethod
    def create_bank(project, **extra):
        data = {
            "holder_name": "Acme Builders LLP",
            "account_number": "001122334455",
            "name": "HDFC Bank",
            "branch": "Baner",
            "ifsc_code": "HDFC0001234",
            "account_type": BankAccountType.CURRENT,
        }
        data.update(extra)
        return BankDetail.objects.create(project=project, **data)

    @staticmethod
    def create_ledger_entry(booking, to_account, amount=Decimal("100000"), type=LedgerEntryType.SCHEDULE_PAYMENT,
                            method=LedgerPaymentMethod.CASH, **extra):
        data = {
            "transaction_id": generate_transaction_id(),
            "amount": amount,
            "demand": amount,
            "description": "Slab payment",
            "type": type,
            "method": method,
            "created_by": "amit",
        }
        data.update(extra)
        return BookingLedger.objects.create(booking=booking, to_account=to_account, **data)

    # ---------- channel ----------

    @staticmethod
    def create_partner(name="Sky Realty Partners", cp_id=None, **extra):
        return ClientPartner.objects.create(
            name=name,
            cp_id=cp_id or f"CP-T-{TestDataFactory.random_string(6)}",
            **extra,
        )

    @staticmethod
    def create_employee(partner, first_name="Kiran", last_name="Rao", **extra):
        data = {"phone_no": "9222222222", "commission_percentage": Decimal("1.50")}
        data.update(extra)
        return PartnerEmployee.objects.create(partner=partner, first_name=first_name, last_name=last_name, **data)


class AuthenticatedAPIClient(APIClient):
    """APIClient with authentication helper"""

    def authenticate_user(self, user):
        refresh = RefreshToken.for_user(user)
        self.credentials(HTTP_AUTHORIZATION=f"Bearer {refresh.access_token}")
        return self

    def logout(self):
        self.credentials()
