# models.py
from flask_sqlalchemy import SQLAlchemy
from flask_login import UserMixin
from datetime import datetime

db = SQLAlchemy()

COLLECTIONS = ("farmers", "inventory", "distributions", "logistics", "payments")

class StorageEntry(db.Model):
    __tablename__ = "storage_entry"
    key = db.Column(db.String(200), primary_key=True)
    value = db.Column(db.Text, nullable=False)   # JSON text
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

class Account(UserMixin):
    """A registered user as kept in the users directory."""

    def __init__(self, id, username, password):
        self.id = id
        self.username = username
        self.password = password   # encoded by the configured PasswordScheme

    @classmethod
    def from_dict(cls, data):
        return cls(int(data["id"]), data["username"], data.get("password", ""))

    def to_dict(self):
        return {"id": self.id, "username": self.username, "password": self.password}

    def session(self):
        return Session(self.id, self.username)

class Session:
    """The signed-in account reference: {id, username}."""

    def __init__(self, id, username):
        self.id = id
        self.username = username

    def to_dict(self):
        return {"id": self.id, "username": self.username}

    def __eq__(self, other):
        return isinstance(other, Session) and (self.id, self.username) == (other.id, other.username)

    def __repr__(self):
        return f"Session(id={self.id!r}, username={self.username!r})"

class RecordSet:
    """The five per-user collections, kept as lists of JSON-shaped dicts."""

    def __init__(self, farmers=None, inventory=None, distributions=None, logistics=None, payments=None):
        self.farmers = farmers or []
        self.inventory = inventory or []
        self.distributions = distributions or []
        self.logistics = logistics or []
        self.payments = payments or []

    def collection(self, name):
        if name not in COLLECTIONS:
            raise KeyError(name)
        return getattr(self, name)

    def replace(self, name, items):
        if name not in COLLECTIONS:
            raise KeyError(name)
        setattr(self, name, items)

    def is_empty(self):
        return not any(self.collection(name) for name in COLLECTIONS)

    def to_dict(self):
        return {name: list(self.collection(name)) for name in COLLECTIONS}
