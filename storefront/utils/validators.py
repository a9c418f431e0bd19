# storefront/utils/validators.py
import re
from decimal import Decimal, InvalidOperation

from ..errors import ValidationError

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
_URL_RE = re.compile(r"^https?://[^\s/$.?#].[^\s]*$", re.IGNORECASE)

# largest value an INTEGER column holds on every supported backend
MAX_INT = 2**31 - 1


def parse_positive_int(v, max_value=MAX_INT):
    """Return ``v`` as an int in ``1..max_value``, or None if it is not one."""
    if v is None or isinstance(v, bool):
        return None
    if isinstance(v, int):
        n = v
    elif isinstance(v, float):
        if not v.is_integer():
            return None
        n = int(v)
    elif isinstance(v, str) and v.strip().isdigit():
        n = int(v.strip())
    else:
        return None
    return n if 0 < n <= max_value else None


def parse_decimal(v):
    if v is None or isinstance(v, bool):
        return None
    if isinstance(v, str) and v.strip() == "":
        return None
    try:
        d = Decimal(str(v).strip())
    except (InvalidOperation, ValueError):
        return None
    return d if d.is_finite() else None


def is_email(v) -> bool:
    return isinstance(v, str) and len(v) <= 254 and bool(_EMAIL_RE.match(v))


def is_url(v) -> bool:
    return isinstance(v, str) and bool(_URL_RE.match(v))


class FieldErrors:
    """Collects ``{field, message}`` entries and raises them together."""

    def __init__(self):
        self.items = []

    def add(self, field, message):
        self.items.append({"field": field, "message": message})

    def __bool__(self):
        return bool(self.items)

    def raise_if_any(self, message="Validation failed"):
        if self.items:
            raise ValidationError(message, errors=self.items)
