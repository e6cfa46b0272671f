# accounts.py
"""Registered users, the current session and pluggable password handling."""
import base64
import logging

from werkzeug.security import generate_password_hash, check_password_hash

from models import Account
from errors import DuplicateUsername, UserNotFound, InvalidCredentials, InvalidInput
from store import KeyValueStorage, RecordStore, USERS_KEY, SESSION_KEY
from records import Workspace

logger = logging.getLogger(__name__)

class PasswordScheme:
    name = None

    def encode(self, password):
        raise NotImplementedError

    def verify(self, password, stored):
        raise NotImplementedError

class ObfuscatedPasswords(PasswordScheme):
    """Reversible base64 encoding. Not secure; kept for demo installs and
    for directories written by the browser version of the app."""
    name = "obfuscated"

    def encode(self, password):
        return base64.b64encode(password.encode("utf-8")).decode("ascii")

    def verify(self, password, stored):
        return self.encode(password) == stored

class HashedPasswords(PasswordScheme):
    name = "hashed"

    def encode(self, password):
        return generate_password_hash(password)

    def verify(self, password, stored):
        try:
            return check_password_hash(stored, password)
        except ValueError:
            # stored value was written by another scheme
            return False

PASSWORD_SCHEMES = {
    ObfuscatedPasswords.name: ObfuscatedPasswords,
    HashedPasswords.name: HashedPasswords,
}

def password_scheme(name):
    try:
        return PASSWORD_SCHEMES[name]()
    except KeyError:
        raise ValueError(f"Unknown password scheme {name!r}; use one of {sorted(PASSWORD_SCHEMES)}")

class AccountDirectory:
    """Owns the users directory and the single active session.

    A successful signup or login opens a ``Workspace`` for the account; logout
    drops it. The persisted record set is never touched here.
    """

    def __init__(self, storage=None, scheme=None, store=None):
        self.storage = storage or KeyValueStorage()
        self.scheme = scheme or ObfuscatedPasswords()
        self.store = store or RecordStore(self.storage)
        self.session = None
        self.workspace = None

    # --- directory ---
    def list_accounts(self):
        try:
            raw = self.storage.get_json(USERS_KEY)
        except ValueError:
            logger.warning("users directory is not valid JSON; treating it as empty")
            return []
        if not isinstance(raw, list):
            return []
        accounts = []
        for item in raw:
            try:
                accounts.append(Account.from_dict(item))
            except (KeyError, TypeError, ValueError):
                logger.warning("skipping malformed account entry %r", item)
        return accounts

    def has_accounts(self):
        return bool(self.list_accounts())

    def find(self, username):
        return next((a for a in self.list_accounts() if a.username == username), None)

    def get(self, account_id):
        return next((a for a in self.list_accounts() if a.id == account_id), None)

    # --- session ---
    def signup(self, username, password):
        username = (username or "").strip()
        if not username or not password:
            raise InvalidInput()
        accounts = self.list_accounts()
        if any(a.username == username for a in accounts):
            raise DuplicateUsername()

        new_id = max([a.id for a in accounts] + [0]) + 1
        account = Account(new_id, username, self.scheme.encode(password))
        accounts.append(account)
        self.storage.set_json(USERS_KEY, [a.to_dict() for a in accounts])
        logger.info("created account %s (%d)", username, new_id)
        return self._open(account)

    def login(self, username, password):
        account = self.find(username)
        if not account:
            raise UserNotFound()
        if not self.scheme.verify(password or "", account.password):
            logger.info("rejected credentials for %s", username)
            raise InvalidCredentials()
        return self._open(account)

    def logout(self):
        self.storage.delete(SESSION_KEY)
        if self.session:
            logger.info("%s logged out", self.session.username)
        self.session = None
        self.workspace = None

    def restore_session(self):
        """Re-open the session recorded by the last login, if any."""
        try:
            pointer = self.storage.get_json(SESSION_KEY)
        except ValueError:
            pointer = None
        if not isinstance(pointer, dict):
            return None
        account = self.find(pointer.get("username"))
        if not account:
            logger.warning("session pointer names unknown user %r", pointer.get("username"))
            return None
        return self._open(account, write_pointer=False)

    def _open(self, account, write_pointer=True):
        session = account.session()
        if write_pointer:
            self.storage.set_json(SESSION_KEY, session.to_dict())
        self.session = session
        self.workspace = Workspace(session, self.store.load(session.username), self.store)
        return session
