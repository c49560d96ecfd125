"""
MongoDB connection and document helpers.

Entities are stored one document per record with ``_id`` set to the entity id.
BSON has no plain ``date`` or ``Decimal`` type, so dates are stored as ISO
strings and amounts as ``Decimal128``.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Optional

from bson.decimal128 import Decimal128
from pymongo import MongoClient
from pymongo.database import Database

logger = logging.getLogger(__name__)

_clients: Dict[str, MongoClient] = {}


def connect(database_url: str, database_name: str) -> Database:
    client = _clients.get(database_url)
    if client is None:
        # tz_aware so stored timestamps come back as UTC datetimes
        client = MongoClient(database_url, tz_aware=True)
        _clients[database_url] = client
        logger.info("MongoDB client created for database %s", database_name)
    return client[database_name]


def close_all() -> None:
    while _clients:
        _, client = _clients.popitem()
        client.close()


def to_bson(value: Any) -> Any:
    if isinstance(value, Decimal):
        return Decimal128(value)
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, date) and not isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, dict):
        return {k: to_bson(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_bson(v) for v in value]
    return value


def from_bson(value: Any) -> Any:
    if isinstance(value, Decimal128):
        return value.to_decimal()
    if isinstance(value, datetime) and value.tzinfo is None:
        # BSON dates are UTC; clients without tz_aware hand them back naive
        return value.replace(tzinfo=timezone.utc)
    if isinstance(value, dict):
        return {k: from_bson(v) for k, v in value.items()}
    if isinstance(value, list):
        return [from_bson(v) for v in value]
    return value


def encode_document(key: str, data: Dict[str, Any]) -> Dict[str, Any]:
    doc = to_bson(data)
    doc["_id"] = key
    return doc


def decode_document(doc: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    if doc is None:
        return None
    data = from_bson(doc)
    data.pop("_id", None)
    return data
