# Overview: Pytest coverage for the plain directory actions (users, representatives, deposits, labels, sales, expenses).

from tamweel.collections import DEPOSITS, USERS
from tamweel.services import (
    deposit_service,
    document_store,
    expense_service,
    instant_sale_service,
    label_service,
    order_service,
    representative_service,
    user_service,
)


class TestUsers:

    def test_get_user_by_id_recalculates(self, user_u1, order_input):
        order_service.add_order(order_input(user_u1, selling=300))
        document_store.update(USERS, user_u1, {"debt": 0, "orderCount": 0})

        user = user_service.get_user_by_id(user_u1)
        assert user["debt"] == 300
        assert user["orderCount"] == 1

    def test_get_user_by_id_missing(self, db_session):
        assert user_service.get_user_by_id("ghost") is None

    def test_orders_newest_first(self, user_u1, order_input):
        order_service.add_order(order_input(user_u1, operationDate="2026-01-01T00:00:00.000Z"))
        order_service.add_order(order_input(user_u1, operationDate="2026-03-01T00:00:00.000Z"))
        dates = [o["operationDate"] for o in user_service.get_orders_by_user_id(user_u1)]
        assert dates == ["2026-03-01T00:00:00.000Z", "2026-01-01T00:00:00.000Z"]

    def test_crud_and_phone_lookup(self, db_session):
        user = user_service.add_user({"name": "Two", "phone": "0920000002"})
        assert user_service.get_user_by_phone("0920000002")["id"] == user["id"]
        assert user_service.update_user(user["id"], {"name": "Renamed"})
        assert user_service.get_user_by_id(user["id"])["name"] == "Renamed"
        assert user_service.delete_user(user["id"])
        assert user_service.get_users() == []


class TestRepresentatives:

    def test_new_representative_starts_unassigned(self, db_session):
        rep = representative_service.add_representative({"name": "Rep", "username": "rep"})
        assert rep["assignedOrders"] == 0
        assert representative_service.get_representative_by_username("rep")["id"] == rep["id"]
        assert representative_service.delete_representative(rep["id"])
        assert representative_service.get_representative_by_id(rep["id"]) is None


class TestDeposits:

    def test_admin_deposit_is_collected_immediately(self, db_session):
        deposit = deposit_service.add_deposit({"amount": 100, "collectedBy": "admin"})
        assert deposit["status"] == "collected"
        assert deposit["collectedDate"]
        assert deposit["receiptNumber"].startswith("DEP-")
        assert len(deposit["receiptNumber"]) == len("DEP-") + 6

    def test_representative_deposit_waits_for_collection(self, db_session):
        deposit = deposit_service.add_deposit({"amount": 50, "collectedBy": "representative", "representativeId": "R1"})
        assert deposit["status"] == "pending"
        assert deposit["collectedDate"] is None

        assert deposit_service.update_deposit_status(deposit["id"], "collected")
        stored = document_store.get_one(DEPOSITS, deposit["id"])
        assert stored.get("status") == "collected"
        assert stored.get("collectedDate")
        assert [d["id"] for d in deposit_service.get_deposits_by_representative_id("R1")] == [deposit["id"]]

    def test_deposits_by_user_match_phone(self, user_u1):
        mine = deposit_service.add_deposit({"amount": 1, "customerPhone": "0910000001"})
        deposit_service.add_deposit({"amount": 2, "customerPhone": "0990000000"})
        assert [d["id"] for d in deposit_service.get_deposits_by_user_id(user_u1)] == [mine["id"]]
        assert deposit_service.get_deposits_by_user_id("ghost") == []

    def test_newest_first(self, db_session):
        deposit_service.add_deposit({"amount": 1, "date": "2026-01-01T00:00:00.000Z"})
        deposit_service.add_deposit({"amount": 2, "date": "2026-02-01T00:00:00.000Z"})
        assert [d["amount"] for d in deposit_service.get_deposits()] == [2, 1]


class TestSimpleCollections:

    def test_labels(self, db_session):
        label_service.add_manual_label({"customerName": "A", "operationDate": "2026-01-01T00:00:00.000Z"})
        newest = label_service.add_manual_label({"customerName": "B", "operationDate": "2026-02-01T00:00:00.000Z"})

        labels = label_service.get_manual_labels()
        assert [l["customerName"] for l in labels] == ["B", "A"]
        assert label_service.get_manual_label_by_id(newest["id"])["customerName"] == "B"
        assert label_service.delete_manual_label(newest["id"])
        assert len(label_service.get_manual_labels()) == 1

    def test_instant_sales(self, db_session):
        sale = instant_sale_service.add_instant_sale({"amount": 70, "createdAt": "2026-01-01T00:00:00.000Z"})
        assert [s["id"] for s in instant_sale_service.get_instant_sales()] == [sale["id"]]
        assert instant_sale_service.delete_instant_sale(sale["id"])
        assert instant_sale_service.get_instant_sales() == []

    def test_expenses(self, db_session):
        expense_service.add_expense({"amount": 10, "date": "2026-01-01T00:00:00.000Z"})
        expense_service.add_expense({"amount": 20, "date": "2026-01-02T00:00:00.000Z"})
        assert [e["amount"] for e in expense_service.get_expenses()] == [20, 10]
