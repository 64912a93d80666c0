import unittest

from tamweel import create_app
from tamweel.collections import MANAGERS, SETTINGS
from tamweel.constants import DEFAULT_APP_SETTINGS, MANAGER_PERMISSIONS, SETTINGS_DOCUMENT_ID
from tamweel.extensions import db
from tamweel.services import document_store, manager_service, settings_service


class ServiceTestCase(unittest.TestCase):
    """Own application on a private in-memory database."""

    @classmethod
    def setUpClass(cls):
        cls.app = create_app({
            "TESTING": True,
            "SQLALCHEMY_DATABASE_URI": "sqlite:///:memory:",
            "SQLALCHEMY_TRACK_MODIFICATIONS": False,
            "STORE_RETRY_BACKOFF": 0,
            "DEFAULT_ADMIN_USERNAME": "admin@example.test",
            "DEFAULT_ADMIN_PASSWORD": "0911111111",
        })
        cls.ctx = cls.app.app_context()
        cls.ctx.push()
        db.create_all()

    @classmethod
    def tearDownClass(cls):
        db.session.remove()
        db.drop_all()
        cls.ctx.pop()

    def setUp(self):
        for table in reversed(db.metadata.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()


class SettingsServiceTests(ServiceTestCase):

    def test_defaults_are_created_on_first_read(self):
        self.assertFalse(document_store.get_one(SETTINGS, SETTINGS_DOCUMENT_ID).exists)
        settings = settings_service.get_app_settings()
        self.assertEqual(settings, DEFAULT_APP_SETTINGS)
        self.assertTrue(document_store.get_one(SETTINGS, SETTINGS_DOCUMENT_ID).exists)

    def test_missing_keys_fall_back_to_defaults(self):
        document_store.upsert(SETTINGS, SETTINGS_DOCUMENT_ID, {"exchangeRate": 6.2})
        settings = settings_service.get_app_settings()
        self.assertEqual(settings["exchangeRate"], 6.2)
        self.assertEqual(settings["pricePerKiloLYD"], DEFAULT_APP_SETTINGS["pricePerKiloLYD"])

    def test_update_merges(self):
        self.assertTrue(settings_service.update_app_settings({"exchangeRate": 5}))
        self.assertTrue(settings_service.update_app_settings({"pricePerKiloUSD": 8, "note": "x"}))

        raw = settings_service.get_raw_app_settings()
        self.assertEqual(raw["exchangeRate"], 5)
        self.assertEqual(raw["pricePerKiloUSD"], 8)
        self.assertEqual(raw["note"], "x")
        self.assertEqual(settings_service.current_exchange_rate(), 5)

    def test_raw_settings_empty_before_first_write(self):
        self.assertEqual(settings_service.get_raw_app_settings(), {})


class ManagerServiceTests(ServiceTestCase):

    def test_default_admin_created_once(self):
        self.assertTrue(manager_service.ensure_default_admin_exists())
        self.assertFalse(manager_service.ensure_default_admin_exists())

        managers = manager_service.get_managers()
        self.assertEqual(len(managers), 1)
        admin = managers[0]
        self.assertEqual(admin["id"], "admin@example.test")
        self.assertEqual(admin["name"], manager_service.DEFAULT_ADMIN_NAME)
        self.assertEqual(admin["permissions"], MANAGER_PERMISSIONS)

    def test_lookup_by_id_falls_back_to_username(self):
        document_store.insert(MANAGERS, {"name": "Ops", "username": "ops"}, doc_id="m-1")

        self.assertEqual(manager_service.get_manager_by_id("m-1")["username"], "ops")
        self.assertEqual(manager_service.get_manager_by_id("ops")["id"], "m-1")
        self.assertIsNone(manager_service.get_manager_by_id("nobody"))
        self.assertEqual(manager_service.get_manager_by_username("ops")["id"], "m-1")

    def test_crud(self):
        manager = manager_service.add_manager({"name": "Ops", "username": "ops", "permissions": ["orders"]})
        self.assertTrue(manager_service.update_manager(manager["id"], {"permissions": ["orders", "users"]}))
        self.assertEqual(manager_service.get_manager_by_id(manager["id"])["permissions"], ["orders", "users"])
        self.assertTrue(manager_service.delete_manager(manager["id"]))
        self.assertIsNone(manager_service.get_manager_by_id(manager["id"]))
