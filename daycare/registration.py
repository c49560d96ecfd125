from __future__ import annotations

import logging
import threading
from typing import List

from daycare.errors import (
    ChildNotFound,
    ConflictError,
    FeeStructureNotFound,
    GuardianNotFound,
    OwnerNotFound,
)
from daycare.fees import FeeResolver
from daycare.store import EntityStore
from daycare.utils import new_id, utcnow
from schemas import (
    Child,
    ChildCreate,
    ChildUpdate,
    FeeStructure,
    FeeStructureCreate,
    Guardian,
    GuardianCreate,
    Owner,
    OwnerCreate,
    Payment,
)

logger = logging.getLogger(__name__)


class RegistrationService:
    """Creates, looks up and updates the records that payments refer to.

    Input shape is already validated by the request schemas. This layer owns
    the rules that need the store: one owner, unique guardian emails, and
    references to existing guardians and owners.
    """

    def __init__(self, store: EntityStore, fees: FeeResolver | None = None):
        self.store = store
        self.fees = fees or FeeResolver(store)
        # serializes read-check-write sequences on shared records
        self._lock = threading.Lock()

    # ---------- Owner ----------
    def create_owner(self, payload: OwnerCreate) -> Owner:
        with self._lock:
            if self.store.owners.list():
                raise ConflictError("An owner is already registered")
            owner = Owner(id=new_id(), created_at=utcnow(), **payload.model_dump())
            self.store.owners.insert(owner.id, owner)
            config = self.store.active_configuration()
            self.store.save_active_configuration(
                config.model_copy(update={"owner_id": owner.id, "updated_at": utcnow()})
            )
        logger.info("Owner %s registered", owner.id)
        return owner

    def get_owner(self, owner_id: str) -> Owner:
        owner = self.store.owners.get(owner_id)
        if owner is None:
            raise OwnerNotFound()
        return owner

    # ---------- Guardians ----------
    def create_guardian(self, payload: GuardianCreate) -> Guardian:
        email = payload.email.lower()
        with self._lock:
            if any(g.email.lower() == email for g in self.store.guardians.list()):
                raise ConflictError("Guardian with the same email already exists")
            guardian = Guardian(id=new_id(), created_at=utcnow(), child_ids=[], **payload.model_dump())
            self.store.guardians.insert(guardian.id, guardian)
        logger.info("Guardian %s registered", guardian.id)
        return guardian

    def get_guardian(self, guardian_id: str) -> Guardian:
        guardian = self.store.guardians.get(guardian_id)
        if guardian is None:
            raise GuardianNotFound()
        return guardian

    def list_guardians(self) -> List[Guardian]:
        return self.store.guardians.list()

    # ---------- Children ----------
    def create_child(self, payload: ChildCreate) -> Child:
        with self._lock:
            guardian = self.get_guardian(payload.guardian_id)
            child = Child(id=new_id(), created_at=utcnow(), **payload.model_dump())
            self.store.children.insert(child.id, child)
            self.store.guardians.insert(
                guardian.id,
                guardian.model_copy(update={"child_ids": [*guardian.child_ids, child.id]}),
            )
        logger.info("Child %s registered under guardian %s", child.id, guardian.id)
        return child

    def get_child(self, child_id: str) -> Child:
        child = self.store.children.get(child_id)
        if child is None:
            raise ChildNotFound()
        return child

    def list_children(self) -> List[Child]:
        return self.store.children.list()

    def update_child(self, child_id: str, payload: ChildUpdate) -> Child:
        changes = payload.model_dump(exclude_unset=True, exclude_none=True)
        with self._lock:
            child = self.get_child(child_id)
            if not changes:
                return child
            updated = child.model_copy(update=changes)
            self.store.children.insert(child_id, updated)
        logger.info("Child %s updated: %s", child_id, sorted(changes))
        return updated

    # ---------- Fee structures ----------
    def create_fee_structure(self, payload: FeeStructureCreate) -> FeeStructure:
        self.get_owner(payload.owner_id)
        fee_structure = FeeStructure(id=new_id(), created_at=utcnow(), **payload.model_dump())
        with self._lock:
            self.store.fee_structures.insert(fee_structure.id, fee_structure)
            self._activate(fee_structure)
        logger.info("Fee structure %s (%s) created and activated", fee_structure.id, fee_structure.amount)
        return fee_structure

    def get_fee_structure(self, fee_structure_id: str) -> FeeStructure:
        fee_structure = self.store.fee_structures.get(fee_structure_id)
        if fee_structure is None:
            raise FeeStructureNotFound()
        return fee_structure

    def activate_fee_structure(self, fee_structure_id: str) -> FeeStructure:
        with self._lock:
            fee_structure = self.get_fee_structure(fee_structure_id)
            self._activate(fee_structure)
        logger.info("Fee structure %s activated", fee_structure_id)
        return fee_structure

    def active_fee_structure(self) -> FeeStructure:
        return self.fees.active_fee_structure()

    def _activate(self, fee_structure: FeeStructure) -> None:
        config = self.store.active_configuration()
        self.store.save_active_configuration(
            config.model_copy(update={"active_fee_structure_id": fee_structure.id, "updated_at": utcnow()})
        )

    # ---------- Payments ----------
    def list_payments(self) -> List[Payment]:
        return self.store.payments.list()
