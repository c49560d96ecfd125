"""
Payment allocation.

A single payment is spread over an ordered list of children. Each child in
turn is funded up to the per-child fee until the money runs out; children
later in the list then get nothing applied and owe the full fee. Surplus
beyond ``len(children) * fee`` is not tracked.
"""

from __future__ import annotations

import logging
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Iterator, List, Sequence, Tuple

from daycare.errors import GuardianNotFound, InvalidAmount, InvalidChildIds, ValidationError
from daycare.fees import FeeResolver
from daycare.store import EntityStore
from daycare.utils import new_id, utcnow
from schemas import AMOUNT_DECIMAL_PLACES, MAX_AMOUNT, AllocationResult, BalanceEntry, Payment, PaymentStatus

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


def parse_amount(value: Any) -> Decimal:
    """Coerce a requested amount to a positive Decimal within the accepted bounds."""
    if isinstance(value, bool):
        raise InvalidAmount()
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        raise InvalidAmount()
    if not amount.is_finite() or amount <= ZERO:
        raise InvalidAmount()
    if amount > MAX_AMOUNT:
        raise InvalidAmount(f"Amount must not exceed {MAX_AMOUNT}")
    if -amount.normalize().as_tuple().exponent > AMOUNT_DECIMAL_PLACES:
        raise InvalidAmount(f"Amount must have at most {AMOUNT_DECIMAL_PLACES} decimal places")
    return amount


def split_amount(fee: Decimal, amount: Decimal, child_ids: Sequence[str]) -> Iterator[Tuple[str, Decimal, Decimal]]:
    """Yield ``(child_id, applied, balance)`` for each child, in order."""
    remaining = amount
    for child_id in child_ids:
        applied = min(fee, remaining)
        remaining -= applied
        yield child_id, applied, max(ZERO, fee - applied)


class PaymentAllocator:
    def __init__(
        self,
        store: EntityStore,
        fees: FeeResolver | None = None,
        clock: Callable[[], Any] = utcnow,
        id_factory: Callable[[], str] = new_id,
    ):
        self.store = store
        self.fees = fees or FeeResolver(store)
        self.clock = clock
        self.id_factory = id_factory

    def allocate(self, guardian_id: str, child_ids: Sequence[str], requested_amount: Any) -> AllocationResult:
        # Every check runs before anything is written
        if self.store.guardians.get(guardian_id) is None:
            raise GuardianNotFound()

        amount = parse_amount(requested_amount)

        child_ids = list(child_ids)
        if not child_ids:
            raise ValidationError("childIds must contain at least one id")
        invalid = [cid for cid in child_ids if self.store.children.get(cid) is None]
        if invalid:
            logger.warning("Payment rejected for guardian %s: unknown children %s", guardian_id, invalid)
            raise InvalidChildIds(invalid)

        fee = self.fees.resolve_fee()

        payments: List[Payment] = []
        balances: List[BalanceEntry] = []
        for child_id, applied, balance in split_amount(fee, amount, child_ids):
            payments.append(
                Payment(
                    id=self.id_factory(),
                    child_id=child_id,
                    amount=applied,
                    status=PaymentStatus.PAID,
                    date=self.clock(),
                )
            )
            balances.append(BalanceEntry(child_id=child_id, balance=balance))

        for payment in payments:
            self.store.payments.insert(payment.id, payment)

        logger.info(
            "Allocated %s across %d children for guardian %s (fee %s)",
            amount, len(child_ids), guardian_id, fee,
        )
        return AllocationResult(payments=payments, balances=balances)
