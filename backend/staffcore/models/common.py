from __future__ import annotations

import uuid
from decimal import Decimal

from .. import time_utils


def new_id() -> str:
    """Opaque primary key. Callers must not parse it."""
    return uuid.uuid4().hex


def now():
    return time_utils.utcnow()


def money_str(value: Decimal | None) -> str | None:
    if value is None:
        return None
    return f"{Decimal(value):.2f}"
