# utils.py
from datetime import datetime

DATE_FORMAT = "%Y-%m-%d"

def clean_text(value):
    if value is None:
        return ""
    return str(value).strip()

def parse_int(value):
    # "10", 10 and 10.0 are accepted; "10.5" is not
    if isinstance(value, bool):
        raise ValueError("bool is not an integer")
    if isinstance(value, float):
        if not value.is_integer():
            raise ValueError(f"{value} is not an integer")
        return int(value)
    return int(clean_text(value))

def parse_float(value):
    if isinstance(value, bool):
        raise ValueError("bool is not a number")
    result = float(clean_text(value) if isinstance(value, str) else value)
    if result != result or result in (float("inf"), float("-inf")):
        raise ValueError(f"{value} is not a finite number")
    return result

def parse_date(value):
    """Validate a YYYY-MM-DD string and return it in canonical form."""
    return datetime.strptime(clean_text(value), DATE_FORMAT).date().strftime(DATE_FORMAT)

def contains(haystack, needle):
    """Case-insensitive substring test; None never matches."""
    if haystack is None:
        return False
    return needle.lower() in str(haystack).lower()
