# errors.py
class LedgerError(Exception):
    """Base for every failure reported back to the user. Never fatal."""
    status_code = 400
    message = "Request failed"

    def __init__(self, message=None):
        super().__init__(message or self.message)
        self.message = message or self.message

    def to_dict(self):
        return {"error": self.message}

class DuplicateUsername(LedgerError):
    status_code = 409
    message = "Username already exists"

class UserNotFound(LedgerError):
    status_code = 404
    message = "User not found"

class InvalidCredentials(LedgerError):
    status_code = 401
    message = "Invalid credentials"

class InvalidInput(LedgerError):
    message = "Username and password required"

class ValidationError(LedgerError):
    def __init__(self, fields):
        self.fields = list(fields)
        super().__init__("Invalid or missing fields: " + ", ".join(self.fields))

    def to_dict(self):
        return {"error": self.message, "fields": self.fields}

class NotFound(LedgerError):
    status_code = 404

    def __init__(self, kind, record_id):
        self.kind = kind
        self.record_id = record_id
        super().__init__(f"{kind} {record_id} not found")

class MalformedPersistedData(LedgerError):
    # recovered locally by the record store; only ever logged
    status_code = 500
    message = "Stored data could not be read"
