from __future__ import annotations

from decimal import Decimal
from typing import Optional

from daycare.errors import FeeStructureNotFound
from daycare.store import EntityStore
from schemas import FeeStructure


class FeeResolver:
    """Looks up the fee structure currently in force.

    The structure named by the active configuration wins. When none is named
    (or it no longer exists) the most recently created structure is used, with
    later store entries winning ties.
    """

    def __init__(self, store: EntityStore):
        self.store = store

    def active_fee_structure(self) -> FeeStructure:
        active_id = self.store.active_configuration().active_fee_structure_id
        if active_id:
            fee_structure = self.store.fee_structures.get(active_id)
            if fee_structure is not None:
                return fee_structure

        newest: Optional[FeeStructure] = None
        for fee_structure in self.store.fee_structures.list():
            if newest is None or fee_structure.created_at >= newest.created_at:
                newest = fee_structure
        if newest is None:
            raise FeeStructureNotFound()
        return newest

    def resolve_fee(self) -> Decimal:
        return self.active_fee_structure().amount
