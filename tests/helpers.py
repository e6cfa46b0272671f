"""
Test utilities: an isolated app per test and factories for form data
"""
import unittest

from app import create_app
from models import db
from accounts import AccountDirectory, ObfuscatedPasswords


class LedgerTestCase(unittest.TestCase):
    """Fresh in-memory database and an app context for every test"""

    def setUp(self):
        self.app = create_app({
            "TESTING": True,
            "SECRET_KEY": "test",
            "SQLALCHEMY_DATABASE_URI": "sqlite://",
        })
        self.ctx = self.app.app_context()
        self.ctx.push()

    def tearDown(self):
        db.session.remove()
        db.drop_all()
        self.ctx.pop()

    def directory(self, scheme=None):
        return AccountDirectory(scheme=scheme or ObfuscatedPasswords())

    def signed_in(self, username="ravi_admin", password="secret"):
        """Sign up a user and return the opened workspace"""
        directory = self.directory()
        directory.signup(username, password)
        return directory.workspace


class FormFactory:
    """Raw form values as the presentation layer submits them"""

    @staticmethod
    def farmer(**overrides):
        data = {"name": "Ravi", "contact": "999", "address": "X", "farmSize": "2 acres", "crops": "Rice"}
        data.update(overrides)
        return data

    @staticmethod
    def inventory(**overrides):
        data = {"type": "Paddy", "quantity": "100", "unit": "bags", "price": "50",
                "supplier": "S", "expiry": "2025-01-01"}
        data.update(overrides)
        return data

    @staticmethod
    def distribution(**overrides):
        data = {"farmer": "Ravi", "seedType": "Paddy", "quantity": "10",
                "date": "2024-01-01", "status": "Pending"}
        data.update(overrides)
        return data

    @staticmethod
    def logistics(**overrides):
        data = {"tractorNumber": "TN-09-1234", "driverName": "Murugan", "bagsLoaded": "40",
                "loadingTeam": "Team A", "destination": "Salem", "date": "2024-02-01",
                "status": "In Transit"}
        data.update(overrides)
        return data

    @staticmethod
    def payment(**overrides):
        data = {"farmerName": "Ravi", "accountNumber": "1234567890", "amount": "2500.50",
                "paymentDate": "2024-03-01", "method": "Bank Transfer", "status": "Pending",
                "notes": ""}
        data.update(overrides)
        return data
