# Overview: Pytest coverage for recalculation of user and creditor balances.

from tamweel.collections import CREDITORS, EXTERNAL_DEBTS, ORDERS, TEMP_ORDERS, USERS
from tamweel.services import document_store
from tamweel.services.recalculation_service import (
    compute_user_stats,
    recalculate_all_creditors,
    recalculate_all_users,
    recalculate_creditor_debt,
    recalculate_user_stats,
    recalculate_users,
    should_recalculate,
)


def _order(doc_id, user_id, status, remaining):
    document_store.insert(ORDERS, {"userId": user_id, "status": status, "remainingAmount": remaining}, doc_id=doc_id)


class TestUserStats:

    def test_user_without_orders(self, user_u1):
        stats = recalculate_user_stats(user_u1)
        assert stats == {"debt": 0, "orderCount": 0}
        user = document_store.get_one(USERS, user_u1)
        assert user.get("debt") == 0
        assert user.get("orderCount") == 0

    def test_debt_sums_active_orders_only(self, user_u1):
        _order("o1", user_u1, "pending", 100)
        _order("o2", user_u1, "delivered", 50)
        _order("o3", user_u1, "paid", 0)
        _order("o4", user_u1, "cancelled", 999)
        _order("o5", "OTHER", "pending", 777)

        recalculate_user_stats(user_u1)
        user = document_store.get_one(USERS, user_u1)
        assert user.get("debt") == 150
        assert user.get("orderCount") == 3

    def test_unconverted_temp_orders_count(self, user_u1):
        _order("o1", user_u1, "pending", 100)
        document_store.insert(TEMP_ORDERS, {"assignedUserId": user_u1, "parentInvoiceId": None, "status": "pending", "remainingAmount": 40}, doc_id="t1")
        document_store.insert(TEMP_ORDERS, {"assignedUserId": user_u1, "parentInvoiceId": "o1", "status": "pending", "remainingAmount": 100}, doc_id="t2")
        document_store.insert(TEMP_ORDERS, {"assignedUserId": user_u1, "status": "cancelled", "remainingAmount": 500}, doc_id="t3")

        assert compute_user_stats(user_u1) == {"debt": 140, "orderCount": 1}

    def test_idempotent(self, user_u1):
        _order("o1", user_u1, "pending", 100)
        first = recalculate_user_stats(user_u1)
        second = recalculate_user_stats(user_u1)
        assert first == second
        assert document_store.get_one(USERS, user_u1).get("debt") == 100

    def test_corrects_a_drifted_projection(self, user_u1):
        _order("o1", user_u1, "pending", 100)
        document_store.update(USERS, user_u1, {"debt": 12345, "orderCount": 9})
        recalculate_user_stats(user_u1)
        user = document_store.get_one(USERS, user_u1)
        assert (user.get("debt"), user.get("orderCount")) == (100, 1)

    def test_missing_user_is_not_created(self, db_session):
        recalculate_user_stats("ghost")
        assert not document_store.get_one(USERS, "ghost").exists

    def test_temp_customer_ids_are_skipped(self, user_u1):
        assert not should_recalculate("TEMP-abc")
        assert not should_recalculate(None)
        assert should_recalculate(user_u1)
        assert recalculate_users(["TEMP-abc", user_u1, user_u1, None]) == 1

    def test_recalculate_all_users(self, user_u1):
        document_store.insert(USERS, {"username": "u2"}, doc_id="U2")
        _order("o1", "U2", "pending", 60)
        assert recalculate_all_users() == 2
        assert document_store.get_one(USERS, "U2").get("debt") == 60


class TestCreditorDebt:

    def test_sums_external_debts(self, db_session):
        document_store.insert(CREDITORS, {"name": "Supplier", "totalDebt": 0}, doc_id="c1")
        document_store.insert(EXTERNAL_DEBTS, {"creditorId": "c1", "amount": 100}, doc_id="d1")
        document_store.insert(EXTERNAL_DEBTS, {"creditorId": "c1", "amount": -30}, doc_id="d2")
        document_store.insert(EXTERNAL_DEBTS, {"creditorId": "c2", "amount": 5}, doc_id="d3")

        assert recalculate_creditor_debt("c1") == 70
        assert document_store.get_one(CREDITORS, "c1").get("totalDebt") == 70

    def test_missing_creditor(self, db_session):
        assert recalculate_creditor_debt("ghost") is None
        assert not document_store.get_one(CREDITORS, "ghost").exists

    def test_recalculate_all_creditors(self, db_session):
        document_store.insert(CREDITORS, {"name": "A"}, doc_id="c1")
        document_store.insert(CREDITORS, {"name": "B"}, doc_id="c2")
        document_store.insert(EXTERNAL_DEBTS, {"creditorId": "c2", "amount": 8}, doc_id="d1")
        assert recalculate_all_creditors() == 2
        assert document_store.get_one(CREDITORS, "c1").get("totalDebt") == 0
        assert document_store.get_one(CREDITORS, "c2").get("totalDebt") == 8
