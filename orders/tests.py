"""Tests for print orders: store constraints, updated_at, lifecycle, access."""
from datetime import timedelta

from django.db import IntegrityError, transaction
from django.test import TestCase, override_settings
from django.utils import timezone
from rest_framework.test import APIClient

from accounts.models import User
from core.exceptions import PolicyDenied, TransitionDenied
from core.rows import update_row
from shops.services import become_merchant

from .choices import OrderStatus, is_valid_transition, next_statuses
from .models import PrintOrder
from .services import cancel_order, create_order, orders_for_actor, set_order_status, update_order
from .signals import next_timestamp


class OrderFixtureMixin:
    def setUp(self):
        self.customer = User.objects.create_user(email="u1@x.edu", password="pass")
        self.owner = User.objects.create_user(email="m1@x.edu", password="pass")
        self.stranger = User.objects.create_user(email="u2@x.edu", password="pass")
        self.merchant = become_merchant(self.owner, shop_name="Campus Prints")

    def place_order(self, **kwargs):
        defaults = {
            "file_name": "doc.pdf",
            "file_url": f"/api/files/print-files/{self.customer.pk}/doc.pdf",
        }
        defaults.update(kwargs)
        return create_order(self.customer, self.merchant, **defaults)


class StatusLifecycleTest(TestCase):
    def test_allowed_transitions(self):
        self.assertTrue(is_valid_transition(OrderStatus.PENDING, OrderStatus.PRINTING))
        self.assertTrue(is_valid_transition(OrderStatus.PRINTING, OrderStatus.COMPLETED))
        self.assertTrue(is_valid_transition(OrderStatus.PENDING, OrderStatus.CANCELLED))
        self.assertTrue(is_valid_transition("printing", "printing"))

    def test_disallowed_transitions(self):
        self.assertFalse(is_valid_transition(OrderStatus.COMPLETED, OrderStatus.PENDING))
        self.assertFalse(is_valid_transition(OrderStatus.PRINTING, OrderStatus.CANCELLED))
        self.assertFalse(is_valid_transition(OrderStatus.PENDING, OrderStatus.COMPLETED))

    def test_next_statuses(self):
        self.assertEqual(
            next_statuses(OrderStatus.PENDING),
            [OrderStatus.PRINTING, OrderStatus.CANCELLED],
        )
        self.assertEqual(next_statuses(OrderStatus.CANCELLED), [])


class PrintOrderConstraintTest(OrderFixtureMixin, TestCase):
    def _create(self, **kwargs):
        with transaction.atomic():
            return PrintOrder.objects.create(
                user=self.customer.profile,
                merchant=self.merchant,
                file_name="doc.pdf",
                file_url="x",
                **kwargs,
            )

    def test_zero_copies_rejected(self):
        with self.assertRaises(IntegrityError):
            self._create(copies=0)

    def test_unknown_status_rejected(self):
        with self.assertRaises(IntegrityError):
            self._create(status="shipped")

    def test_defaults(self):
        order = self._create()
        self.assertEqual(order.status, OrderStatus.PENDING)
        self.assertEqual(order.copies, 1)
        self.assertEqual(order.pages, 1)


class UpdatedAtTest(OrderFixtureMixin, TestCase):
    def test_next_timestamp_moves_past_future_value(self):
        ahead = timezone.now() + timedelta(hours=1)
        self.assertEqual(next_timestamp(ahead), ahead + timedelta(microseconds=1))

    def test_service_update_increases_updated_at(self):
        order = self.place_order()
        before = PrintOrder.objects.get(pk=order.pk).updated_at
        update_order(self.customer, order, notes="Double sided")
        self.assertGreater(PrintOrder.objects.get(pk=order.pk).updated_at, before)

    def test_update_fields_still_refreshes_updated_at(self):
        order = self.place_order()
        before = order.updated_at
        order.notes = "Staple"
        order.save(update_fields=["notes"])
        self.assertGreater(PrintOrder.objects.get(pk=order.pk).updated_at, before)

    def test_caller_supplied_updated_at_is_overwritten(self):
        order = self.place_order()
        before = order.updated_at
        order.updated_at = before - timedelta(days=1)
        order.save()
        self.assertGreater(PrintOrder.objects.get(pk=order.pk).updated_at, before)

    def test_stored_future_value_still_increases(self):
        order = self.place_order()
        ahead = timezone.now() + timedelta(hours=1)
        PrintOrder._base_manager.filter(pk=order.pk).update(updated_at=ahead)
        order.refresh_from_db()
        order.copies = 2
        order.save()
        self.assertGreater(PrintOrder.objects.get(pk=order.pk).updated_at, ahead)

    def test_queryset_update_refreshes_updated_at(self):
        order = self.place_order()
        before = order.updated_at
        PrintOrder.objects.filter(pk=order.pk).update(copies=3)
        self.assertGreater(PrintOrder.objects.get(pk=order.pk).updated_at, before)

    def test_queryset_update_moves_past_stored_future_value(self):
        order = self.place_order()
        ahead = timezone.now() + timedelta(hours=1)
        PrintOrder._base_manager.filter(pk=order.pk).update(updated_at=ahead)
        PrintOrder.objects.filter(pk=order.pk).update(copies=3)
        self.assertGreater(PrintOrder.objects.get(pk=order.pk).updated_at, ahead)


class PrintOrderPolicyTest(OrderFixtureMixin, TestCase):
    def test_order_always_starts_pending(self):
        order = self.place_order()
        self.assertEqual(order.status, OrderStatus.PENDING)

    def test_order_for_another_customer_denied(self):
        with self.assertRaises(PolicyDenied):
            create_order(
                self.stranger,
                self.merchant,
                file_name="doc.pdf",
                file_url="x",
                customer=self.customer.profile,
            )

    def test_merchant_drives_lifecycle(self):
        order = self.place_order()
        set_order_status(self.owner, order, OrderStatus.PRINTING)
        set_order_status(self.owner, order, OrderStatus.COMPLETED)
        order.refresh_from_db()
        self.assertEqual(order.status, OrderStatus.COMPLETED)

    def test_illegal_transition_denied(self):
        order = self.place_order()
        with self.assertRaises(TransitionDenied):
            set_order_status(self.owner, order, OrderStatus.COMPLETED)
        order.refresh_from_db()
        self.assertEqual(order.status, OrderStatus.PENDING)

    def test_cannot_cancel_after_printing_started(self):
        order = self.place_order()
        set_order_status(self.owner, order, OrderStatus.PRINTING)
        with self.assertRaises(TransitionDenied):
            cancel_order(self.customer, order)

    @override_settings(PRINT_ORDERS_ENFORCE_TRANSITIONS=False)
    def test_transitions_unrestricted_when_disabled(self):
        order = self.place_order()
        set_order_status(self.owner, order, OrderStatus.COMPLETED)
        set_order_status(self.customer, order, OrderStatus.PENDING)
        order.refresh_from_db()
        self.assertEqual(order.status, OrderStatus.PENDING)

    def test_customer_can_cancel_pending(self):
        order = self.place_order()
        cancel_order(self.customer, order)
        order.refresh_from_db()
        self.assertEqual(order.status, OrderStatus.CANCELLED)

    def test_stranger_cannot_update(self):
        order = self.place_order()
        with self.assertRaises(PolicyDenied):
            update_order(self.stranger, order, notes="mine")
        self.assertIsNone(order.notes)

    def test_refused_transition_leaves_instance_unchanged(self):
        order = self.place_order()
        with self.assertRaises(TransitionDenied):
            set_order_status(self.owner, order, OrderStatus.COMPLETED)
        self.assertEqual(order.status, OrderStatus.PENDING)

    def test_cannot_move_order_to_foreign_merchant(self):
        other_owner = User.objects.create_user(email="m2@x.edu", password="pass")
        other_shop = become_merchant(other_owner, shop_name="Other Prints")
        order = self.place_order()
        # The merchant owner passes on the stored row but not on the new one
        with self.assertRaises(PolicyDenied):
            update_row(self.owner, order, merchant=other_shop)

    def test_orders_for_actor_by_role(self):
        order = self.place_order()
        self.assertEqual(list(orders_for_actor(self.customer)), [order])
        self.assertEqual(list(orders_for_actor(self.owner, role="merchant")), [order])
        self.assertEqual(list(orders_for_actor(self.owner, role="customer")), [])
        self.assertEqual(list(orders_for_actor(self.stranger)), [])


class PrintOrderAPITest(OrderFixtureMixin, TestCase):
    def setUp(self):
        super().setUp()
        self.client = APIClient()

    def test_submit_order(self):
        self.client.force_authenticate(user=self.customer)
        r = self.client.post(
            "/api/orders/",
            {
                "merchant": str(self.merchant.pk),
                "file_name": "doc.pdf",
                "file_url": f"/api/files/print-files/{self.customer.pk}/doc.pdf",
                "copies": 2,
                "status": "completed",
            },
            format="json",
        )
        self.assertEqual(r.status_code, 201)
        self.assertEqual(r.json()["status"], "pending")
        self.assertEqual(r.json()["next_statuses"], ["printing", "cancelled"])

    def test_submit_to_inactive_merchant_rejected(self):
        self.merchant.is_active = False
        self.merchant.save()
        self.client.force_authenticate(user=self.customer)
        r = self.client.post(
            "/api/orders/",
            {"merchant": str(self.merchant.pk), "file_name": "doc.pdf", "file_url": "x"},
            format="json",
        )
        self.assertEqual(r.status_code, 400)

    def test_zero_copies_rejected(self):
        self.client.force_authenticate(user=self.customer)
        r = self.client.post(
            "/api/orders/",
            {"merchant": str(self.merchant.pk), "file_name": "doc.pdf", "file_url": "x", "copies": 0},
            format="json",
        )
        self.assertEqual(r.status_code, 400)

    def test_list_filters_by_status(self):
        first = self.place_order()
        self.place_order(file_name="other.pdf")
        set_order_status(self.owner, first, OrderStatus.PRINTING)
        self.client.force_authenticate(user=self.owner)
        r = self.client.get("/api/orders/", {"as": "merchant", "status": "printing"})
        self.assertEqual(r.status_code, 200)
        ids = [o["id"] for o in r.json()["results"]]
        self.assertEqual(ids, [str(first.pk)])

    def test_illegal_status_change_forbidden(self):
        order = self.place_order()
        self.client.force_authenticate(user=self.owner)
        r = self.client.post(f"/api/orders/{order.pk}/status/", {"status": "completed"}, format="json")
        self.assertEqual(r.status_code, 403)

    def test_stranger_read_forbidden(self):
        order = self.place_order()
        self.client.force_authenticate(user=self.stranger)
        r = self.client.get(f"/api/orders/{order.pk}/")
        self.assertEqual(r.status_code, 403)
