"""
Tests for unit status categories: CRUD, immutability and precedence reorder
"""
from django.test import TestCase
from rest_framework import status

from common.test_utils import AuthenticatedAPIClient, TestDataFactory
from setup.models import Category, CategoryType


class CategoryModelTests(TestCase):

    def test_name_is_lowercased_on_save(self):
        category = TestDataFactory.create_category(name="  Hold ")
        self.assertEqual(category.name, "hold")

    def test_is_immutable(self):
        category = TestDataFactory.create_category(type=CategoryType.IMMUTABLE)
        self.assertTrue(category.is_immutable)


class CategoryAPITests(TestCase):

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.url = "/api/category/"

    def test_requires_authentication(self):
        self.client.logout()
        response = self.client.get(self.url)
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertIn("error", response.data)

    def test_create_category(self):
        response = self.client.post(
            self.url,
            {"name": "Reserved", "displayName": "Reserved", "colorHex": "#FFA500", "precedence": 2},
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data["message"], "Category created successfully")
        category = Category.objects.get(pk=response.data["categoryId"])
        self.assertEqual(category.name, "reserved")
        self.assertEqual(category.color_hex, "#FFA500")

    def test_duplicate_name_rejected(self):
        TestDataFactory.create_category(name="booked")
        response = self.client.post(self.url, {"name": "BOOKED", "displayName": "Booked", "colorHex": "#F00"})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["error"], 'Category name "booked" already exists')
        self.assertIn("name", response.data["fields"])

    def test_invalid_color_rejected(self):
        response = self.client.post(self.url, {"name": "x", "displayName": "X", "colorHex": "red"})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_put_is_partial(self):
        category = TestDataFactory.create_category(name="hold", display_name="Hold")
        response = self.client.put(f"{self.url}{category.pk}/", {"displayName": "On Hold"})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        category.refresh_from_db()
        self.assertEqual(category.display_name, "On Hold")
        self.assertEqual(category.name, "hold")

    def test_delete_mutable_category(self):
        category = TestDataFactory.create_category()
        response = self.client.delete(f"{self.url}{category.pk}/")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["message"], "Category deleted successfully")
        self.assertFalse(Category.objects.filter(pk=category.pk).exists())

    def test_delete_immutable_category_rejected(self):
        category = TestDataFactory.create_category(type=CategoryType.IMMUTABLE)
        response = self.client.delete(f"{self.url}{category.pk}/")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertTrue(Category.objects.filter(pk=category.pk).exists())

    def test_immutable_category_type_cannot_be_relaxed(self):
        category = TestDataFactory.create_category(type=CategoryType.IMMUTABLE)
        response = self.client.put(f"{self.url}{category.pk}/", {"type": "mutable"})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["error"], "Cannot change the type of an immutable category")

        category.refresh_from_db()
        self.assertEqual(category.type, CategoryType.IMMUTABLE)
        self.assertEqual(self.client.delete(f"{self.url}{category.pk}/").status_code, status.HTTP_400_BAD_REQUEST)

    def test_mutable_category_can_become_immutable(self):
        category = TestDataFactory.create_category()
        response = self.client.put(f"{self.url}{category.pk}/", {"type": "immutable"})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        category.refresh_from_db()
        self.assertTrue(category.is_immutable)

    def test_delete_missing_category(self):
        response = self.client.delete(f"{self.url}9999/")
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data, {"error": "Category not found"})

    def test_precedence_batch_reorders_list(self):
        a = TestDataFactory.create_category(name="a", precedence=0)
        b = TestDataFactory.create_category(name="b", precedence=1)

        response = self.client.patch(
            f"{self.url}precedence/",
            {"items": [{"id": a.pk, "precedence": 1}, {"id": b.pk, "precedence": 0}]},
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["matched"], 2)
        self.assertEqual(response.data["modified"], 2)

        names = [c["name"] for c in self.client.get(self.url).data]
        self.assertEqual(names, ["b", "a"])

    def test_precedence_unknown_ids_are_skipped(self):
        a = TestDataFactory.create_category(name="a", precedence=0)
        response = self.client.patch(
            f"{self.url}precedence/",
            {"items": [{"id": a.pk, "precedence": 0}, {"id": 9999, "precedence": 3}]},
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["matched"], 1)
        self.assertEqual(response.data["modified"], 0)

    def test_precedence_empty_items_rejected(self):
        response = self.client.patch(f"{self.url}precedence/", {"items": []})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["error"], "items must be a non-empty array")

    def test_precedence_negative_rejected(self):
        a = TestDataFactory.create_category(name="a")
        response = self.client.patch(f"{self.url}precedence/", {"items": [{"id": a.pk, "precedence": -1}]})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
