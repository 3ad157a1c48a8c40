import os
import sys
import tempfile
import unittest

# Ensure project src/ is on sys.path for imports
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
src_path = os.path.join(ROOT, "src")
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from api.models import AuthResponse, User  # noqa: E402
from db import database as db_database  # noqa: E402
from db import session_store as store  # noqa: E402
from utils.state import GlobalState  # noqa: E402

ADMIN = User(
    id="u-admin",
    email="root@pos.test",
    first_name="Root",
    last_name="Admin",
    roles=("SuperAdmin",),
)
CASHIER = User(
    id="u-cash",
    email="cash@shop.test",
    first_name="Cem",
    last_name="Kasa",
    roles=("Cashier",),
    tenant_id="t1",
)


class StoreTestCase(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        # Point the DB to a temporary file and force re-initialization
        self.temp_dir = tempfile.TemporaryDirectory()
        self.db_path = os.path.join(self.temp_dir.name, "nested", "session.sqlite")
        self.old_path = db_database.DB_PATH
        db_database.DB_PATH = self.db_path
        db_database._initialized = False

    def tearDown(self):
        db_database.DB_PATH = self.old_path
        db_database._initialized = False
        self.temp_dir.cleanup()


class SessionStoreTestCase(StoreTestCase):
    async def test_empty_store(self):
        self.assertIsNone(await store.load_auth(store.CURRENT))
        self.assertTrue(os.path.exists(self.db_path))

    async def test_save_load_and_replace(self):
        await store.save_auth(store.CURRENT, "tok-1", CASHIER)
        token, user = await store.load_auth(store.CURRENT)
        self.assertEqual(token, "tok-1")
        self.assertEqual(user, CASHIER)

        await store.save_auth(store.CURRENT, "tok-2", ADMIN)
        token, user = await store.load_auth(store.CURRENT)
        self.assertEqual(token, "tok-2")
        self.assertEqual(user.roles, ("SuperAdmin",))

    async def test_clear_one_slot_or_all(self):
        await store.save_auth(store.CURRENT, "tok-1", CASHIER)
        await store.save_auth(store.ORIGINAL, "tok-0", ADMIN)

        await store.clear_auth(store.ORIGINAL)
        self.assertIsNone(await store.load_auth(store.ORIGINAL))
        self.assertIsNotNone(await store.load_auth(store.CURRENT))

        await store.clear_auth()
        self.assertIsNone(await store.load_auth(store.CURRENT))

    async def test_unreadable_row_counts_as_signed_out(self):
        async with db_database.connect() as conn:
            await conn.execute(
                "INSERT INTO auth(slot, token, user_json, saved_at) VALUES (?, ?, ?, ?);",
                (store.CURRENT, "tok", "{not json", "2024-01-01"),
            )
            await conn.commit()
        self.assertIsNone(await store.load_auth(store.CURRENT))


class GlobalStateSessionTestCase(StoreTestCase):
    async def test_restore_after_restart(self):
        first = GlobalState()
        await first.start_session(AuthResponse("tok-1", CASHIER))

        second = GlobalState()
        session = await second.restore()

        self.assertEqual(session.user_id, "u-cash")
        self.assertEqual(second.token, "tok-1")
        self.assertFalse(second.is_impersonating)

    async def test_restore_without_saved_session(self):
        state = GlobalState()
        self.assertIsNone(await state.restore())
        self.assertFalse(state.is_authenticated)

    async def test_impersonation_round_trip(self):
        state = GlobalState()
        await state.start_session(AuthResponse("tok-admin", ADMIN))

        await state.start_impersonation(AuthResponse("tok-cash", CASHIER))
        self.assertTrue(state.is_impersonating)
        self.assertEqual(state.original_session.user_id, "u-admin")
        self.assertEqual(state.token, "tok-cash")
        self.assertTrue(state.capabilities.manage_sales)
        self.assertFalse(state.capabilities.impersonate)

        # a restarted client is still impersonating
        restored = GlobalState()
        await restored.restore()
        self.assertTrue(restored.is_impersonating)
        self.assertEqual(restored.session.user_id, "u-cash")

        session = await state.stop_impersonation()
        self.assertEqual(session.user_id, "u-admin")
        self.assertEqual(state.token, "tok-admin")
        self.assertFalse(state.is_impersonating)
        self.assertTrue(state.capabilities.impersonate)
        self.assertIsNone(await store.load_auth(store.ORIGINAL))

    async def test_hopping_keeps_first_original(self):
        other = User(id="u-other", email="o@shop.test", first_name="O", last_name="T")
        state = GlobalState()
        await state.start_session(AuthResponse("tok-admin", ADMIN))
        await state.start_impersonation(AuthResponse("tok-cash", CASHIER))
        await state.start_impersonation(AuthResponse("tok-other", other))

        self.assertEqual(state.original_session.user_id, "u-admin")
        await state.stop_impersonation()
        self.assertEqual(state.session.user_id, "u-admin")

    async def test_impersonation_needs_a_session(self):
        with self.assertRaises(RuntimeError):
            await GlobalState().start_impersonation(AuthResponse("tok", CASHIER))

    async def test_end_session_forgets_everything(self):
        state = GlobalState()
        await state.start_session(AuthResponse("tok-admin", ADMIN))
        await state.start_impersonation(AuthResponse("tok-cash", CASHIER))

        await state.end_session()

        self.assertFalse(state.is_authenticated)
        self.assertFalse(state.is_impersonating)
        self.assertIsNone(await GlobalState().restore())


if __name__ == "__main__":
    unittest.main()
