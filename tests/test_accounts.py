"""
Tests for the account directory, session pointer and per-user record store
"""
import json

from accounts import HashedPasswords, ObfuscatedPasswords, password_scheme
from errors import DuplicateUsername, UserNotFound, InvalidCredentials, InvalidInput
from models import Session
from reports import dashboard_summary, distribution_cost, seed_type_breakdown, distribution_statement_pdf
from store import KeyValueStorage, RecordStore, current_key, USERS_KEY, SESSION_KEY
from tests.helpers import LedgerTestCase, FormFactory


class SignupTests(LedgerTestCase):
    """Test account creation"""

    def test_signup_opens_empty_workspace(self):
        """Test signup sets the session and an empty record set"""
        directory = self.directory()
        session = directory.signup("  ravi  ", "pw")
        self.assertEqual(session, Session(1, "ravi"))
        self.assertEqual(directory.session, session)
        self.assertTrue(directory.workspace.records.is_empty())
        self.assertEqual(KeyValueStorage().get_json(SESSION_KEY), {"id": 1, "username": "ravi"})

    def test_ids_are_max_plus_one(self):
        """Test account ids increase from the current maximum"""
        directory = self.directory()
        directory.signup("a", "pw")
        self.assertEqual(directory.signup("b", "pw").id, 2)
        self.assertEqual([a.username for a in directory.list_accounts()], ["a", "b"])

    def test_duplicate_username(self):
        """Test duplicate usernames are refused and nothing changes"""
        directory = self.directory()
        directory.signup("ravi", "pw")
        before = KeyValueStorage().get(USERS_KEY)
        with self.assertRaises(DuplicateUsername):
            directory.signup("ravi", "other")
        self.assertEqual(KeyValueStorage().get(USERS_KEY), before)

    def test_usernames_are_case_sensitive(self):
        """Test Ravi and ravi are different accounts"""
        directory = self.directory()
        directory.signup("ravi", "pw")
        self.assertEqual(directory.signup("Ravi", "pw").id, 2)

    def test_empty_input(self):
        """Test blank username or password is rejected"""
        directory = self.directory()
        with self.assertRaises(InvalidInput):
            directory.signup("   ", "pw")
        with self.assertRaises(InvalidInput):
            directory.signup("ravi", "")
        self.assertFalse(directory.has_accounts())


class LoginTests(LedgerTestCase):
    """Test login, logout and session restore"""

    def setUp(self):
        super().setUp()
        self.directory().signup("ravi", "pw")

    def test_unknown_user(self):
        """Test login for a missing account"""
        with self.assertRaises(UserNotFound):
            self.directory().login("nobody", "pw")

    def test_wrong_password(self):
        """Test credential mismatch"""
        with self.assertRaises(InvalidCredentials):
            self.directory().login("ravi", "wrong")

    def test_logout_keeps_data(self):
        """Test logout drops the workspace but not the persisted records"""
        directory = self.directory()
        directory.login("ravi", "pw")
        directory.workspace.farmers.create(FormFactory.farmer())
        directory.logout()
        self.assertIsNone(directory.session)
        self.assertIsNone(directory.workspace)
        self.assertIsNone(KeyValueStorage().get(SESSION_KEY))
        directory.login("ravi", "pw")
        self.assertEqual(len(directory.workspace.farmers.list()), 1)

    def test_restore_session(self):
        """Test the session pointer re-opens the last login"""
        directory = self.directory()
        directory.login("ravi", "pw")
        restored = self.directory()
        self.assertEqual(restored.restore_session(), Session(1, "ravi"))
        self.assertIsNotNone(restored.workspace)

    def test_restore_without_pointer(self):
        """Test no pointer means no session"""
        directory = self.directory()
        directory.logout()
        self.assertIsNone(directory.restore_session())

    def test_switching_accounts_swaps_records(self):
        """Test data of one account is never visible to another"""
        directory = self.directory()
        directory.login("ravi", "pw")
        directory.workspace.farmers.create(FormFactory.farmer(name="A's farmer"))
        directory.workspace.inventory.create(FormFactory.inventory())
        saved = directory.workspace.records.to_dict()

        directory.signup("lakshmi", "pw")
        self.assertTrue(directory.workspace.records.is_empty())
        directory.workspace.farmers.create(FormFactory.farmer(name="B's farmer"))

        directory.login("ravi", "pw")
        self.assertEqual(directory.workspace.records.to_dict(), saved)


class PasswordSchemeTests(LedgerTestCase):
    """Test the pluggable password handling"""

    def test_obfuscated_is_base64(self):
        """Test the demo scheme stores base64 text"""
        self.assertEqual(ObfuscatedPasswords().encode("secret"), "c2VjcmV0")

    def test_hashed_round_trip(self):
        """Test the hashed scheme verifies and is salted"""
        scheme = HashedPasswords()
        first, second = scheme.encode("secret"), scheme.encode("secret")
        self.assertNotEqual(first, second)
        self.assertTrue(scheme.verify("secret", first))
        self.assertFalse(scheme.verify("nope", first))

    def test_hashed_directory_login(self):
        """Test directory works with the hashed scheme"""
        directory = self.directory(HashedPasswords())
        directory.signup("ravi", "pw")
        self.assertNotIn("cHc=", KeyValueStorage().get(USERS_KEY))
        self.assertEqual(self.directory(HashedPasswords()).login("ravi", "pw").username, "ravi")

    def test_unknown_scheme(self):
        """Test naming an unknown scheme fails"""
        with self.assertRaises(ValueError):
            password_scheme("rot13")


class RecordStoreTests(LedgerTestCase):
    """Test storage keys and recovery from bad data"""

    def test_current_key(self):
        """Test per-user and default keys"""
        self.assertEqual(current_key(Session(1, "ravi")), "data_ravi")
        self.assertEqual(current_key(None), "data")

    def test_missing_data_loads_empty(self):
        """Test unknown user has empty collections"""
        self.assertTrue(RecordStore().load("ghost").is_empty())

    def test_malformed_json_resets(self):
        """Test unreadable data is replaced by empty collections"""
        KeyValueStorage().set("data_ravi", "{not json")
        with self.assertLogs("store", level="WARNING"):
            records = RecordStore().load("ravi")
        self.assertTrue(records.is_empty())

    def test_wrong_shape_resets(self):
        """Test a collection that is not a list resets everything"""
        KeyValueStorage().set("data_ravi", json.dumps({"farmers": {"id": 1}, "inventory": []}))
        with self.assertLogs("store", level="WARNING"):
            self.assertTrue(RecordStore().load("ravi").is_empty())

    def test_null_numbers_are_tolerated(self):
        """Test records with null or text numbers still feed the dashboard"""
        KeyValueStorage().set("data_ravi", json.dumps({
            "inventory": [{"id": 1, "type": "P", "quantity": None, "price": 5},
                          {"id": 2, "type": "Q", "quantity": 4, "price": "abc"},
                          {"id": 3, "type": "R", "quantity": 2, "price": 10}],
            "distributions": [{"id": 1, "farmer": "Ravi", "seedType": "R", "quantity": None},
                              {"id": 2, "farmer": "Ravi", "seedType": "P", "quantity": 3}],
        }))
        records = RecordStore().load("ravi")
        summary = dashboard_summary(records)
        self.assertEqual(summary["totalBagsInInventory"], 6)
        self.assertEqual(summary["inventoryValue"], 20)
        self.assertEqual(summary["totalBagsDistributed"], 3)
        self.assertEqual(distribution_cost(records.distributions[0], records.inventory), 0)
        self.assertEqual(distribution_cost(records.distributions[1], records.inventory), 15)
        self.assertEqual(seed_type_breakdown(records.distributions), {"R": 0, "P": 3})
        self.assertTrue(distribution_statement_pdf(records, "ravi").startswith(b"%PDF"))

    def test_missing_collections_default(self):
        """Test absent collections load as empty lists"""
        KeyValueStorage().set("data_ravi", json.dumps({"farmers": [{"id": 1, "name": "Ravi"}]}))
        records = RecordStore().load("ravi")
        self.assertEqual(len(records.farmers), 1)
        self.assertEqual(records.payments, [])

    def test_browser_directory_compatible(self):
        """Test users written by the browser app can log in"""
        KeyValueStorage().set_json(USERS_KEY, [{"id": 3, "username": "old", "password": "cHc="}])
        session = self.directory().login("old", "pw")
        self.assertEqual(session.id, 3)
        self.assertEqual(self.directory().signup("new", "pw").id, 4)
