"""
Inventory tests: chart geometry, span capacity, nested project create,
unit endpoints and the residential status summary workbook
"""
from decimal import Decimal

from django.test import SimpleTestCase, TestCase
from rest_framework import status

from audit.models import AuditLog
from common.test_utils import AuthenticatedAPIClient, TestDataFactory
from inventory import layout
from inventory.models import BankDetail, CommercialPlacement, Floor, FloorType, Project, Unit
from inventory.reports import build_status_summary_workbook, config_sort_key


def _unit(number, span=1, status="available", config="2BHK", area="650"):
    return {
        "unit_number": number,
        "area": area,
        "configuration": config,
        "unit_span": span,
        "status": status,
        "reserved_by_or_reason": None,
    }


def _floor(display_number, units, type="residential", show_area=True):
    return {"display_number": display_number, "type": type, "show_area": show_area, "units": units}


class LayoutMathTests(SimpleTestCase):

    def test_clamp_unit_span_to_remaining_capacity(self):
        self.assertEqual(layout.clamp_unit_span(4, 10, 8), 2)
        self.assertEqual(layout.clamp_unit_span(3, 10, 0), 3)
        self.assertEqual(layout.clamp_unit_span(0, 10, 0), 1)

    def test_orientation_threshold(self):
        self.assertFalse(layout.is_landscape(10))
        self.assertTrue(layout.is_landscape(11))
        self.assertEqual(layout.floors_per_page(False), 16)
        self.assertEqual(layout.floors_per_page(True), 11)

    def test_available_width(self):
        self.assertEqual(layout.available_unit_width(False), 515)
        self.assertEqual(layout.available_unit_width(True), 762)

    def test_span_slot_width_from_header_spans(self):
        self.assertEqual(layout.span_slot_width(515, 10, [1, 2, 1]), 515 / 4)
        self.assertEqual(layout.span_slot_width(515, 5), 103)
        self.assertEqual(layout.span_slot_width(515, 0), 515)

    def test_floor_label(self):
        self.assertEqual(layout.floor_label(0), "Ground")
        self.assertEqual(layout.floor_label(1), "1st")
        self.assertEqual(layout.floor_label(2), "2nd")
        self.assertEqual(layout.floor_label(3), "3rd")
        self.assertEqual(layout.floor_label(11), "11th")
        self.assertEqual(layout.floor_label(22), "22nd")

    def test_wing_columns_line_up_with_header_floor(self):
        wing = {
            "name": "A",
            "units_per_floor": 4,
            "header_floor_index": 0,
            "floors": [
                _floor(1, [_unit("101", 2), _unit("102"), _unit("103")]),
                _floor(2, [_unit("201"), _unit("202"), _unit("203"), _unit("204")]),
            ],
        }
        pages = layout.build_wing_pages(wing, {"available": "#00ff00"})
        self.assertEqual(len(pages), 1)
        page = pages[0]

        slot = 515 / 4
        self.assertEqual([h["width"] for h in page.header], [round(slot * 2, 2), round(slot, 2), round(slot, 2)])
        first_floor = page.rows[0]
        self.assertEqual(first_floor.label, "1st")
        self.assertEqual(first_floor.cells[0].width, round(slot * 2, 2))
        self.assertEqual(first_floor.cells[0].color, "#00ff00")
        self.assertEqual(page.rows[1].cells[0].width, round(slot, 2))

    def test_missing_header_floor_falls_back_to_units_per_floor(self):
        wing = {"name": "B", "units_per_floor": 5, "header_floor_index": 7, "floors": [_floor(1, [_unit("101")])]}
        page = layout.build_wing_pages(wing, {})[0]
        self.assertEqual(len(page.header), 5)
        self.assertEqual(page.header[0]["title"], "Unit 1")
        self.assertEqual(page.rows[0].cells[0].width, 103)
        self.assertEqual(page.rows[0].cells[0].color, layout.NEUTRAL_COLOR)

    def test_floors_paginate_per_orientation(self):
        floors = [_floor(n, [_unit(f"{n}01")]) for n in range(20)]
        portrait = layout.build_wing_pages({"name": "A", "units_per_floor": 4, "header_floor_index": 0, "floors": floors}, {})
        self.assertEqual([len(p.rows) for p in portrait], [16, 4])
        self.assertTrue(portrait[1].continued)
        self.assertEqual(portrait[1].total_pages, 2)

        landscape = layout.build_wing_pages({"name": "A", "units_per_floor": 12, "header_floor_index": 0, "floors": floors}, {})
        self.assertTrue(landscape[0].landscape)
        self.assertEqual([len(p.rows) for p in landscape], [11, 9])

    def test_others_status_hides_area_and_config(self):
        row = layout.build_floor_row(
            _floor(1, [_unit("101", status="others"), _unit("102")]),
            lambda u, i: 50,
            {},
        )
        self.assertEqual(row.cells[0].lines, [])
        self.assertEqual(row.cells[1].lines, ["650 sqft", "2BHK"])

    def test_project_level_commercial_page_first(self):
        structure = {
            "commercial_unit_placement": "projectLevel",
            "commercial_floors": [_floor(0, [_unit("S1"), _unit("S2")], type="commercial")],
            "wings": [{"name": "A", "units_per_floor": 2, "header_floor_index": 0, "floors": [], "commercial_floors": []}],
        }
        chart = layout.build_availability_chart(structure, [{"name": "available", "display_name": "Available", "color_hex": "#0f0"}])
        self.assertEqual(chart["legend"][0]["color"], "#0f0")
        self.assertEqual(chart["pages"][0].title, "Project Commercial Units")
        self.assertEqual(chart["pages"][0].rows[0].cells[0].width, 257.5)


class StatusSummaryWorkbookTests(SimpleTestCase):

    def setUp(self):
        self.structure = {
            "name": "Skyline",
            "wings": [
                {
                    "name": "A",
                    "floors": [
                        _floor(1, [
                            _unit("101", status="available", config="2BHK"),
                            _unit("102", status="available", config="3BHK"),
                            _unit("103", status="booked", config="2BHK"),
                            _unit("104", status="others"),
                        ]),
                        _floor(0, [_unit("S1", status="available")], type="commercial"),
                    ],
                },
                {"name": "B", "floors": [_floor(1, [_unit("101", status="booked", config="2BHK")])]},
            ],
        }
        self.categories = [
            {"name": "available", "display_name": "Available"},
            {"name": "booked", "display_name": "Booked"},
        ]

    def test_totals_skip_others_and_commercial(self):
        _wb, totals = build_status_summary_workbook(self.structure, self.categories)
        self.assertEqual(totals, {"available": 2, "booked": 2})

    def test_layout_rows_and_formulas(self):
        wb, _totals = build_status_summary_workbook(self.structure, self.categories)
        ws = wb.active

        self.assertEqual(ws.cell(row=1, column=1).value, "Skyline")
        self.assertEqual(
            [ws.cell(row=4, column=c).value for c in range(1, 5)],
            ["Category / Config", "A", "B", "Total Units"],
        )
        self.assertEqual(ws.cell(row=5, column=1).value, "AVAILABLE")
        self.assertEqual(ws.cell(row=5, column=2).value, 2)
        self.assertEqual(ws.cell(row=5, column=3).value, 0)
        self.assertEqual(ws.cell(row=5, column=4).value, "=SUM(B5:C5)")
        self.assertEqual(ws.cell(row=6, column=1).value, "2BHK")
        self.assertEqual(ws.cell(row=7, column=1).value, "3BHK")
        self.assertEqual(ws.cell(row=9, column=1).value, "BOOKED")
        self.assertEqual(ws.cell(row=12, column=1).value, "Total")
        self.assertEqual(ws.cell(row=12, column=2).value, "=SUM(B5,B9)")
        self.assertTrue(wb.calculation.fullCalcOnLoad)

    def test_config_sort_key_orders_bhk_numerically(self):
        configs = ["Shop", "10BHK", "2BHK", "1 BHK"]
        self.assertEqual(sorted(configs, key=config_sort_key), ["1 BHK", "2BHK", "10BHK", "Shop"])


class ProjectAPITests(TestCase):

    def setUp(self):
        TestDataFactory.create_default_categories()
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.url = "/api/inventory/project/"

    def _payload(self, **overrides):
        payload = {
            "name": "Skyline",
            "by": "Acme Builders",
            "location": "Pune",
            "startDate": "2024-01-01",
            "status": "under-construction",
            "commercialUnitPlacement": "wingLevel",
            "wings": [
                {
                    "name": "A",
                    "unitsPerFloor": 4,
                    "headerFloorIndex": 0,
                    "floors": [
                        {
                            "type": "residential",
                            "displayNumber": 1,
                            "units": [
                                {"unitNumber": "101", "area": "650", "configuration": "2BHK", "unitSpan": 2, "status": "Available"},
                                {"unitNumber": "102", "area": "900", "configuration": "3BHK", "unitSpan": 1, "status": "booked"},
                            ],
                        }
                    ],
                    "commercialFloors": [
                        {
                            "type": "commercial",
                            "displayNumber": 0,
                            "units": [{"unitNumber": "S1", "area": "300", "configuration": "Shop", "unitSpan": 1, "status": "available"}],
                        }
                    ],
                }
            ],
        }
        payload.update(overrides)
        return payload

    def test_nested_create(self):
        response = self.client.post(self.url, self._payload())
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        project = Project.objects.get(pk=response.data["data"]["projectId"])

        self.assertEqual(project.wings.count(), 1)
        wing = project.wings.get()
        self.assertEqual(wing.residential_floors.count(), 1)
        self.assertEqual(wing.commercial_floors.count(), 1)
        unit = Unit.objects.get(unit_number="101")
        self.assertEqual(unit.status, "available")
        self.assertEqual(unit.unit_span, 2)
        self.assertTrue(AuditLog.objects.filter(source="Inventory", action="create").exists())

    def test_project_level_placement_ignores_wing_commercial_floors(self):
        payload = self._payload(
            commercialUnitPlacement="projectLevel",
            commercialFloors=[{"type": "commercial", "displayNumber": 0, "units": []}],
        )
        response = self.client.post(self.url, payload)
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        project = Project.objects.get(pk=response.data["data"]["projectId"])
        self.assertEqual(project.commercial_floors.count(), 1)
        self.assertEqual(project.wings.get().commercial_floors.count(), 0)

    def test_unknown_status_rejected(self):
        payload = self._payload()
        payload["wings"][0]["floors"][0]["units"][0]["status"] = "sold-out"
        response = self.client.post(self.url, payload)
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("Invalid status 'sold-out'", response.data["error"])
        self.assertFalse(Project.objects.exists())

    def test_floor_over_capacity_rejected(self):
        payload = self._payload()
        payload["wings"][0]["unitsPerFloor"] = 2
        response = self.client.post(self.url, payload)
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(Project.objects.exists())

    def test_list_counts_exclude_others(self):
        project = TestDataFactory.create_project(name="Skyline")
        wing = TestDataFactory.create_wing(project)
        floor = TestDataFactory.create_floor(project, wing)
        TestDataFactory.create_unit(floor, "101", status="available")
        TestDataFactory.create_unit(floor, "102", status="booked")
        TestDataFactory.create_unit(floor, "103", status="others")
        shops = TestDataFactory.create_floor(project, wing, 0, FloorType.COMMERCIAL, is_commercial_block=True)
        TestDataFactory.create_unit(shops, "S1", status="available")

        response = self.client.get(self.url, {"search": "sky"})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["pagination"]["totalProjects"], 1)
        row = response.data["data"][0]
        self.assertEqual(row["totalUnits"], 2)
        self.assertEqual(row["totalAvailableUnits"], 1)
        self.assertEqual(row["totalCommercialUnits"], 1)
        self.assertEqual(row["totalAvailableCommercialUnits"], 1)

    def test_retrieve_returns_tree(self):
        project = TestDataFactory.create_project()
        wing = TestDataFactory.create_wing(project)
        floor = TestDataFactory.create_floor(project, wing)
        TestDataFactory.create_unit(floor, "101")

        response = self.client.get(f"{self.url}{project.pk}/")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        wing_data = response.data["data"]["wings"][0]
        self.assertEqual(wing_data["floors"][0]["units"][0]["unitNumber"], "101")

    def test_retrieve_missing_project(self):
        response = self.client.get(f"{self.url}9999/")
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data["error"], "Project not found")

    def test_update_basic_fields_only(self):
        project = TestDataFactory.create_project(name="Old")
        response = self.client.put(f"{self.url}{project.pk}/", {"name": "New", "location": "Mumbai"})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        project.refresh_from_db()
        self.assertEqual(project.name, "New")
        self.assertEqual(project.commercial_unit_placement, CommercialPlacement.WING_LEVEL)
        self.assertTrue(AuditLog.objects.filter(source="Inventory", action="update").exists())

    def test_update_project_stage(self):
        project = TestDataFactory.create_project()
        response = self.client.put(f"{self.url}{project.pk}/", {"projectStage": 40})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        project.refresh_from_db()
        self.assertEqual(project.project_stage, 40)

        response = self.client.put(f"{self.url}{project.pk}/", {"projectStage": 120})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_delete_cascades(self):
        project = TestDataFactory.create_project()
        wing = TestDataFactory.create_wing(project)
        floor = TestDataFactory.create_floor(project, wing)
        TestDataFactory.create_unit(floor, "101")

        response = self.client.delete(f"{self.url}{project.pk}/")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(Floor.objects.exists())
        self.assertFalse(Unit.objects.exists())

    def test_status_summary_download(self):
        project = TestDataFactory.create_project()
        wing = TestDataFactory.create_wing(project)
        floor = TestDataFactory.create_floor(project, wing)
        TestDataFactory.create_unit(floor, "101")

        response = self.client.get(f"{self.url}{project.pk}/status-summary/")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(
            response["Content-Type"],
            "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        )

    def test_availability_chart_pdf(self):
        project = TestDataFactory.create_project()
        wing = TestDataFactory.create_wing(project)
        floor = TestDataFactory.create_floor(project, wing)
        TestDataFactory.create_unit(floor, "101")

        response = self.client.get(f"{self.url}{project.pk}/availability-chart/")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response["Content-Type"], "application/pdf")
        self.assertTrue(response.content.startswith(b"%PDF"))


class UnitAPITests(TestCase):

    def setUp(self):
        TestDataFactory.create_default_categories()
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.url = "/api/inventory/unit/"

        self.project = TestDataFactory.create_project()
        self.wing = TestDataFactory.create_wing(self.project, units_per_floor=10)
        self.floor = TestDataFactory.create_floor(self.project, self.wing)

    def _payload(self, **overrides):
        payload = {
            "floorId": self.floor.pk,
            "unitNumber": "110",
            "area": "650",
            "configuration": "2BHK",
            "unitSpan": 1,
            "status": "available",
        }
        payload.update(overrides)
        return payload

    def test_span_clamped_to_remaining_capacity(self):
        TestDataFactory.create_unit(self.floor, "101", unit_span=5)
        TestDataFactory.create_unit(self.floor, "102", unit_span=3)

        response = self.client.post(self.url, self._payload(unitSpan=4))
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data["data"]["unitSpan"], 2)
        self.assertTrue(AuditLog.objects.filter(source="Unit", action="create").exists())

    def test_full_floor_rejected(self):
        TestDataFactory.create_unit(self.floor, "101", unit_span=10)
        response = self.client.post(self.url, self._payload())
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_duplicate_unit_number_conflict(self):
        TestDataFactory.create_unit(self.floor, "110")
        response = self.client.post(self.url, self._payload())
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)

    def test_missing_floor(self):
        response = self.client.post(self.url, self._payload(floorId=9999))
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data["error"], "Floor not found")

    def test_unknown_status(self):
        response = self.client.post(self.url, self._payload(status="sold-out"))
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_list_filters_by_status_csv(self):
        TestDataFactory.create_unit(self.floor, "101", status="available")
        TestDataFactory.create_unit(self.floor, "102", status="booked")
        TestDataFactory.create_unit(self.floor, "103", status="others")

        response = self.client.get(self.url, {"floorId": self.floor.pk, "status": "available,booked"})
        self.assertEqual(response.data["count"], 2)
        self.assertEqual({u["unitNumber"] for u in response.data["data"]}, {"101", "102"})

    def test_list_with_non_numeric_floor_id_is_empty(self):
        TestDataFactory.create_unit(self.floor, "101")
        response = self.client.get(self.url, {"floorId": "abc"})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["count"], 0)

    def test_update_rejects_floor_change(self):
        unit = TestDataFactory.create_unit(self.floor, "101")
        response = self.client.put(f"{self.url}{unit.pk}/", {"floorId": 1})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_update_refits_span(self):
        unit = TestDataFactory.create_unit(self.floor, "101", unit_span=1)
        TestDataFactory.create_unit(self.floor, "102", unit_span=7)

        response = self.client.put(f"{self.url}{unit.pk}/", {"unitSpan": 6, "area": "700"})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        unit.refresh_from_db()
        self.assertEqual(unit.unit_span, 3)
        self.assertEqual(unit.area, Decimal("700"))

    def test_set_available_clears_holder(self):
        unit = TestDataFactory.create_unit(self.floor, "101", status="booked", reserved_by_or_reason="Ravi")
        response = self.client.patch(f"{self.url}{unit.pk}/status/", {"status": "Available"})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        unit.refresh_from_db()
        self.assertEqual(unit.status, "available")
        self.assertIsNone(unit.reserved_by_or_reason)

    def test_delete_unit(self):
        unit = TestDataFactory.create_unit(self.floor, "101")
        response = self.client.delete(f"{self.url}{unit.pk}/")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(Unit.objects.filter(pk=unit.pk).exists())
        self.assertTrue(AuditLog.objects.filter(source="Unit", action="delete").exists())


class BankDetailAPITests(TestCase):

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.url = "/api/inventory/bank/"
        self.project = TestDataFactory.create_project(name="Skyline")

    def _payload(self, **overrides):
        payload = {
            "projectId": self.project.pk,
            "holderName": "Acme Builders LLP",
            "accountNumber": "001122334455",
            "name": "HDFC Bank",
            "branch": "Baner",
            "ifscCode": "hdfc0001234",
            "accountType": "current",
        }
        payload.update(overrides)
        return payload

    def test_create_bank(self):
        response = self.client.post(self.url, self._payload())
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data["message"], "Bank details saved successfully")
        self.assertEqual(response.data["data"]["projectName"], "Skyline")
        bank = BankDetail.objects.get(project=self.project)
        self.assertEqual(bank.ifsc_code, "HDFC0001234")

    def test_second_account_for_project_conflicts(self):
        TestDataFactory.create_bank(self.project)
        response = self.client.post(self.url, self._payload())
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data["error"], "Bank details already exist for this project")

    def test_invalid_ifsc_rejected(self):
        response = self.client.post(self.url, self._payload(ifscCode="HDFC1234"))
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["error"], "Please provide a valid IFSC code")

    def test_unknown_project(self):
        response = self.client.post(self.url, self._payload(projectId=9999))
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data["error"], "Project not found")

    def test_list_filters_by_project(self):
        TestDataFactory.create_bank(self.project)
        other = TestDataFactory.create_project(name="Other")
        TestDataFactory.create_bank(other, name="SBI")

        response = self.client.get(self.url, {"projectId": other.pk})
        self.assertEqual([b["name"] for b in response.data["data"]], ["SBI"])
        self.assertEqual(len(self.client.get(self.url).data["data"]), 2)
        self.assertEqual(self.client.get(self.url, {"projectId": "abc"}).data["data"], [])

    def test_update_is_partial_and_keeps_project(self):
        bank = TestDataFactory.create_bank(self.project)
        response = self.client.put(f"{self.url}{bank.pk}/", {"branch": "Aundh"})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        bank.refresh_from_db()
        self.assertEqual(bank.branch, "Aundh")

        other = TestDataFactory.create_project()
        response = self.client.put(f"{self.url}{bank.pk}/", {"projectId": other.pk})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["error"], "Bank details cannot be moved to another project")

    def test_missing_bank(self):
        response = self.client.get(f"{self.url}9999/")
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data, {"error": "Bank account not found"})

    def test_delete_blocked_while_ledger_uses_it(self):
        bank = TestDataFactory.create_bank(self.project)
        wing = TestDataFactory.create_wing(self.project)
        floor = TestDataFactory.create_floor(self.project, wing)
        booking = TestDataFactory.create_booking(TestDataFactory.create_unit(floor, "101"))
        TestDataFactory.create_ledger_entry(booking, bank)

        response = self.client.delete(f"{self.url}{bank.pk}/")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["error"], "Bank account has ledger entries and cannot be deleted")

        booking.ledger_entries.all().delete()
        response = self.client.delete(f"{self.url}{bank.pk}/")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(BankDetail.objects.filter(pk=bank.pk).exists())
