"""
Health endpoint and CLI command tests.
"""

import json

from tamweel.collections import COLLECTIONS, MANAGERS, USERS
from tamweel.services import document_store, order_service


class TestHealth:

    def test_healthy(self, app, db_session):
        document_store.insert(USERS, {"name": "A"}, doc_id="a")

        response = app.test_client().get("/health")

        assert response.status_code == 200
        body = response.get_json()
        assert body["status"] == "healthy"
        assert body["timestamp"].endswith("Z")
        counts = body["checks"]["database"]["details"]
        assert set(counts) == set(COLLECTIONS)
        assert counts["users"] == 1


class TestCli:

    def test_system_init_is_idempotent(self, app, db_session):
        runner = app.test_cli_runner()

        first = runner.invoke(args=["system", "init"])
        assert first.exit_code == 0, first.output
        assert "Created default admin" in first.output

        second = runner.invoke(args=["system", "init"])
        assert "already exists" in second.output
        assert len(document_store.get_all(MANAGERS)) == 1

    def test_recalc_users(self, app, user_u1, order_input):
        order_service.add_order(order_input(user_u1, selling=450))
        document_store.update(USERS, user_u1, {"debt": 0})

        result = app.test_cli_runner().invoke(args=["stats", "recalc-users", "--user-id", user_u1])

        assert result.exit_code == 0, result.output
        assert "debt=450" in result.output

    def test_import_file(self, app, db_session, tmp_path):
        path = tmp_path / "users.json"
        path.write_text(json.dumps([{"id": "x1", "name": "Imported"}]), encoding="utf-8")

        result = app.test_cli_runner().invoke(args=["data", "import", "users", str(path)])

        assert result.exit_code == 0, result.output
        assert document_store.get_one(USERS, "x1").get("name") == "Imported"

    def test_import_unknown_collection_fails(self, app, db_session, tmp_path):
        path = tmp_path / "rows.json"
        path.write_text(json.dumps([{"id": "x1"}]), encoding="utf-8")

        result = app.test_cli_runner().invoke(args=["data", "import", "nope", str(path)])
        assert result.exit_code != 0

    def test_reset_financials_requires_confirmation(self, app, db_session):
        result = app.test_cli_runner().invoke(args=["data", "reset-financials"], input="n\n")
        assert result.exit_code != 0
