# store.py
"""Persistence boundary and per-user record store.

Everything the application keeps lives in one key/value table. The record
store is the only code that reads or writes it for user data; the account
directory uses the same boundary for ``usersDirectory`` and
``currentSessionPointer``.
"""
import json
import logging

from models import db, StorageEntry, RecordSet, COLLECTIONS
from errors import MalformedPersistedData

logger = logging.getLogger(__name__)

USERS_KEY = "usersDirectory"
SESSION_KEY = "currentSessionPointer"
DATA_KEY_PREFIX = "data_"
DEFAULT_DATA_KEY = "data"

class KeyValueStorage:
    """JSON values stored under string keys in the ``storage_entry`` table."""

    def get(self, key):
        entry = db.session.get(StorageEntry, key)
        return entry.value if entry else None

    def set(self, key, value):
        entry = db.session.get(StorageEntry, key)
        if entry:
            entry.value = value
        else:
            db.session.add(StorageEntry(key=key, value=value))
        self._commit()

    def delete(self, key):
        entry = db.session.get(StorageEntry, key)
        if entry:
            db.session.delete(entry)
            self._commit()

    def _commit(self):
        try:
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise

    def get_json(self, key):
        raw = self.get(key)
        if raw is None:
            return None
        return json.loads(raw)

    def set_json(self, key, value):
        self.set(key, json.dumps(value))

def data_key(username):
    return DATA_KEY_PREFIX + username if username else DEFAULT_DATA_KEY

def current_key(session):
    return data_key(session.username if session else None)

class RecordStore:
    def __init__(self, storage=None):
        self.storage = storage or KeyValueStorage()

    def load(self, username):
        key = data_key(username)
        raw = self.storage.get(key)
        if raw is None:
            return RecordSet()
        try:
            return self._decode(raw)
        except MalformedPersistedData as exc:
            logger.warning("%s under %r, starting with empty collections: %s",
                           MalformedPersistedData.message, key, exc)
            return RecordSet()

    def save(self, record_set, username):
        key = data_key(username)
        self.storage.set(key, json.dumps(record_set.to_dict()))
        logger.debug("saved record set under %r", key)

    def _decode(self, raw):
        try:
            parsed = json.loads(raw)
        except ValueError as exc:
            raise MalformedPersistedData(f"not JSON ({exc})")
        if not isinstance(parsed, dict):
            raise MalformedPersistedData(f"expected an object, got {type(parsed).__name__}")
        collections = {}
        for name in COLLECTIONS:
            items = parsed.get(name) or []
            if not isinstance(items, list) or not all(isinstance(i, dict) for i in items):
                raise MalformedPersistedData(f"collection {name!r} is not a list of records")
            collections[name] = items
        return RecordSet(**collections)
