# records.py
"""Session-scoped workspace and the five entity managers.

Records are plain dicts in their persisted (camelCase) shape. Every manager
validates raw form values, assigns ids with ``next_id`` and hands the new
collection to the record store before it becomes visible.
"""
import logging

from errors import ValidationError, NotFound
from utils import clean_text, parse_int, parse_float, parse_date, contains

logger = logging.getLogger(__name__)

def next_id(collection):
    # max + 1: deleting the highest id frees it for the next record
    return max([item.get("id", 0) for item in collection] + [0]) + 1

class Field:
    def __init__(self, name, kind="text", required=True, choices=None, minimum=None, default=None):
        self.name = name
        self.kind = kind          # text / int / float / date
        self.required = required
        self.choices = choices
        self.minimum = minimum
        self.default = default

    def parse(self, raw):
        """Return the cleaned value or raise ValueError/TypeError."""
        if self.kind == "int":
            value = parse_int(raw)
        elif self.kind == "float":
            value = parse_float(raw)
        elif self.kind == "date":
            value = parse_date(raw)
        else:
            value = clean_text(raw)
        if self.choices and value not in self.choices:
            raise ValueError(f"{value!r} not one of {self.choices}")
        if self.minimum is not None and value < self.minimum:
            raise ValueError(f"{value} is below {self.minimum}")
        return value

def _missing(raw):
    return raw is None or (isinstance(raw, str) and not raw.strip())

class EntityManager:
    kind = None
    collection = None
    fields = ()
    search_fields = ()
    exact_filters = ()

    def __init__(self, workspace):
        self.workspace = workspace

    @property
    def items(self):
        return self.workspace.records.collection(self.collection)

    def clean(self, data):
        if not isinstance(data, dict):
            data = {}
        record, bad = {}, []
        for field in self.fields:
            raw = data.get(field.name)
            if _missing(raw):
                if field.default is not None:
                    record[field.name] = field.default
                elif field.required:
                    bad.append(field.name)
                else:
                    record[field.name] = ""
                continue
            try:
                record[field.name] = field.parse(raw)
            except (TypeError, ValueError):
                bad.append(field.name)
        if bad:
            raise ValidationError(bad)
        return record

    def get(self, record_id):
        for item in self.items:
            if item.get("id") == record_id:
                return item
        raise NotFound(self.kind, record_id)

    def list(self, term=None, **filters):
        results = list(self.items)
        term = clean_text(term)
        if term:
            results = [item for item in results
                       if any(contains(item.get(name), term) for name in self.search_fields)]
        for name in self.exact_filters:
            wanted = filters.get(name)
            if wanted:
                results = [item for item in results if item.get(name) == wanted]
        return results

    def create(self, data):
        record = self.clean(data)
        items = list(self.items)
        record = {"id": next_id(items), **record}
        items.append(record)
        self._commit(items)
        logger.info("%s %d created for %s", self.kind, record["id"], self.workspace.username)
        return record

    def update(self, record_id, data):
        items = list(self.items)
        index = self._index(items, record_id)
        record = {"id": record_id, **self.clean(data)}
        items[index] = record
        self._commit(items)
        logger.info("%s %d updated for %s", self.kind, record_id, self.workspace.username)
        return record

    def delete(self, record_id):
        items = list(self.items)
        index = self._index(items, record_id)
        del items[index]
        self._commit(items)
        logger.info("%s %d deleted for %s", self.kind, record_id, self.workspace.username)

    def _index(self, items, record_id):
        for index, item in enumerate(items):
            if item.get("id") == record_id:
                return index
        raise NotFound(self.kind, record_id)

    def _commit(self, items):
        records = self.workspace.records
        previous = records.collection(self.collection)
        records.replace(self.collection, items)
        try:
            self.workspace.save()
        except Exception:
            records.replace(self.collection, previous)
            raise

class FarmerManager(EntityManager):
    kind = "Farmer"
    collection = "farmers"
    fields = (
        Field("name"),
        Field("contact"),
        Field("address"),
        Field("farmSize"),
        Field("crops"),
    )
    search_fields = ("name", "contact", "address")

class InventoryManager(EntityManager):
    kind = "Inventory item"
    collection = "inventory"
    fields = (
        Field("type"),
        Field("quantity", "int", minimum=0),
        Field("unit", choices=("kg", "pieces", "bags")),
        Field("price", "float", minimum=0),
        Field("supplier"),
        Field("expiry", "date"),
    )
    search_fields = ("type", "supplier")

class DistributionManager(EntityManager):
    kind = "Distribution"
    collection = "distributions"
    fields = (
        Field("farmer"),
        Field("seedType"),
        Field("quantity", "int"),
        Field("date", "date"),
        Field("status", choices=("Pending", "Completed"), default="Pending"),
    )
    search_fields = ("farmer", "seedType", "date")

class LogisticsManager(EntityManager):
    kind = "Logistics entry"
    collection = "logistics"
    fields = (
        Field("tractorNumber"),
        Field("driverName"),
        Field("bagsLoaded", "int"),
        Field("loadingTeam"),
        Field("destination"),
        Field("date", "date"),
        Field("status", choices=("Loading", "In Transit", "Delivered"), default="Loading"),
    )
    search_fields = ("tractorNumber", "driverName", "destination")
    exact_filters = ("status",)

class PaymentManager(EntityManager):
    kind = "Payment"
    collection = "payments"
    fields = (
        Field("farmerName"),
        Field("accountNumber"),
        Field("amount", "float"),
        Field("paymentDate", "date"),
        Field("method", choices=("Cash", "Bank Transfer", "Check")),
        Field("status", choices=("Pending", "Completed"), default="Pending"),
        Field("notes", required=False),
    )
    search_fields = ("farmerName", "accountNumber", "method")
    exact_filters = ("method",)

MANAGERS = {
    m.collection: m for m in
    (FarmerManager, InventoryManager, DistributionManager, LogisticsManager, PaymentManager)
}

class Workspace:
    """The active session's record set and the managers that mutate it."""

    def __init__(self, session, records, store):
        self.session = session
        self.records = records
        self.store = store
        self.farmers = FarmerManager(self)
        self.inventory = InventoryManager(self)
        self.distributions = DistributionManager(self)
        self.logistics = LogisticsManager(self)
        self.payments = PaymentManager(self)

    @property
    def username(self):
        return self.session.username if self.session else None

    def manager(self, collection):
        if collection not in MANAGERS:
            raise KeyError(collection)
        return getattr(self, collection)

    def save(self):
        self.store.save(self.records, self.username)
