"""
Entity store: one key -> entity map per record type.

Every map offers the same three operations: ``get`` (None when absent),
``insert`` (upsert, an existing key is overwritten) and ``list`` (insertion
order). There are no transactions and no secondary indexes; uniqueness and
cross-entity references are checked by callers.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Dict, Generic, List, Optional, Type, TypeVar

from pydantic import BaseModel
from pymongo.collection import Collection
from pymongo.database import Database

from daycare.database import connect, decode_document, encode_document
from daycare.settings import Settings
from schemas import ActiveConfiguration, Child, FeeStructure, Guardian, Owner, Payment

logger = logging.getLogger(__name__)

E = TypeVar("E", bound=BaseModel)

ACTIVE_CONFIGURATION_KEY = "active"


class Table(ABC, Generic[E]):
    @abstractmethod
    def get(self, key: str) -> Optional[E]:
        ...

    @abstractmethod
    def insert(self, key: str, entity: E) -> None:
        ...

    @abstractmethod
    def list(self) -> List[E]:
        ...


class MemoryTable(Table[E]):
    """Process-local map. Dicts keep insertion order, and re-inserting a key keeps its slot."""

    def __init__(self) -> None:
        self._rows: Dict[str, E] = {}

    def get(self, key: str) -> Optional[E]:
        return self._rows.get(key)

    def insert(self, key: str, entity: E) -> None:
        self._rows[key] = entity

    def list(self) -> List[E]:
        return list(self._rows.values())


class MongoTable(Table[E]):
    def __init__(self, collection: Collection, model: Type[E]) -> None:
        self.collection = collection
        self.model = model

    def get(self, key: str) -> Optional[E]:
        data = decode_document(self.collection.find_one({"_id": key}))
        return None if data is None else self.model.model_validate(data)

    def insert(self, key: str, entity: E) -> None:
        doc = encode_document(key, entity.model_dump())
        self.collection.replace_one({"_id": key}, doc, upsert=True)

    def list(self) -> List[E]:
        # natural order is insertion order for documents that are never resized
        return [self.model.model_validate(decode_document(doc)) for doc in self.collection.find({})]


class EntityStore:
    def __init__(
        self,
        owners: Table[Owner],
        guardians: Table[Guardian],
        children: Table[Child],
        fee_structures: Table[FeeStructure],
        payments: Table[Payment],
        configuration: Table[ActiveConfiguration],
        backend: str,
    ) -> None:
        self.owners = owners
        self.guardians = guardians
        self.children = children
        self.fee_structures = fee_structures
        self.payments = payments
        self.configuration = configuration
        self.backend = backend

    def active_configuration(self) -> ActiveConfiguration:
        return self.configuration.get(ACTIVE_CONFIGURATION_KEY) or ActiveConfiguration()

    def save_active_configuration(self, config: ActiveConfiguration) -> None:
        self.configuration.insert(ACTIVE_CONFIGURATION_KEY, config)


def memory_store() -> EntityStore:
    return EntityStore(
        owners=MemoryTable(),
        guardians=MemoryTable(),
        children=MemoryTable(),
        fee_structures=MemoryTable(),
        payments=MemoryTable(),
        configuration=MemoryTable(),
        backend="memory",
    )


def mongo_store(db: Database) -> EntityStore:
    return EntityStore(
        owners=MongoTable(db["owner"], Owner),
        guardians=MongoTable(db["guardian"], Guardian),
        children=MongoTable(db["child"], Child),
        fee_structures=MongoTable(db["fee_structure"], FeeStructure),
        payments=MongoTable(db["payment"], Payment),
        configuration=MongoTable(db["configuration"], ActiveConfiguration),
        backend="mongodb",
    )


def build_store(settings: Settings) -> EntityStore:
    if settings.DATABASE_URL:
        return mongo_store(connect(settings.DATABASE_URL, settings.DATABASE_NAME))
    logger.warning("DATABASE_URL not set; records are kept in memory and lost on restart")
    return memory_store()
