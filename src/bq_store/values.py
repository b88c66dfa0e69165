"""Scalar cell values exchanged with BigQuery.

A ``Value`` is one of boolean, integer, float, string, or null.  Rows are
encoded into this variant before a streaming insert, and query cells are
decoded into it after a query.
"""

from __future__ import annotations

import base64
import json
from datetime import date, datetime, time
from decimal import Decimal
from typing import Any

Value = bool | int | float | str | None

_SCALARS = (bool, int, float, str)


def encode_value(value: Any) -> Value:
    """Convert a Python value into its wire representation.

    Dates and datetimes are sent as ISO-8601 strings, which BigQuery accepts
    for ``DATE``, ``DATETIME`` and ``TIMESTAMP`` columns.

    Args:
        value: Cell value supplied by the caller.

    Returns:
        A JSON-serialisable ``Value``.

    Raises:
        TypeError: If *value* has no scalar representation.
    """
    if value is None or isinstance(value, _SCALARS):
        return value
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return str(value)
    raise TypeError(f"unsupported cell value type: {type(value).__name__}")


def decode_value(raw: Any) -> Value:
    """Normalise a cell returned by the BigQuery client into a ``Value``.

    ``NUMERIC`` cells arrive as ``Decimal`` and become floats; temporal cells
    become ISO-8601 strings; ``BYTES`` become base64 text.  Nested ``RECORD``
    or ``REPEATED`` cells are rendered as JSON text.
    """
    if raw is None or isinstance(raw, _SCALARS):
        return raw
    if isinstance(raw, Decimal):
        return float(raw)
    if isinstance(raw, (datetime, date, time)):
        return raw.isoformat()
    if isinstance(raw, bytes):
        return base64.b64encode(raw).decode("ascii")
    return json.dumps(raw, default=str)
