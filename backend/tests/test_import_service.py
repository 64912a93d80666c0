from tamweel.collections import ORDERS, USERS
from tamweel.services import document_store
from tamweel.services.import_service import IMPORT_ALIASES, bulk_import, import_rows


class TestBulkImport:

    def test_rows_replace_existing_documents(self, db_session):
        document_store.insert(USERS, {"name": "Before", "phone": "1"}, doc_id="u1")

        result = bulk_import("users", [{"id": "u1", "name": "After"}, {"id": "u2", "name": "New"}])

        assert result == {"success": True, "count": 2}
        assert document_store.get_one(USERS, "u1").data == {"name": "After"}
        assert document_store.get_one(USERS, "u2").get("name") == "New"

    def test_rows_without_id_get_one(self, db_session):
        assert import_rows("orders", [{"userId": "U1"}]) == 1
        assert len(document_store.get_all(ORDERS)) == 1

    def test_unknown_alias(self, db_session):
        result = bulk_import("ledger", [{"id": "x"}])
        assert result["success"] is False
        assert result["count"] == 0
        assert "ledger" in result["error"]

    def test_empty_or_malformed_input(self, db_session):
        assert bulk_import("users", [])["success"] is False
        assert bulk_import("users", {"id": "x"})["success"] is False
        assert bulk_import("users", [{"id": "ok"}, "not a row"])["success"] is False
        assert document_store.get_all(USERS) == []

    def test_aliases_cover_exported_collections(self):
        assert IMPORT_ALIASES["tempOrders"] == "tempOrders"
        assert IMPORT_ALIASES["externalDebts"] == "externalDebts"
        assert "notifications" not in IMPORT_ALIASES
