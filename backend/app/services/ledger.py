"""Balance-affecting operations on budget accounts.

Every entry point validates its whole input before the persistence layer is
asked to write anything, so a rejected call leaves balances and transactions
exactly as they were.
"""

from __future__ import annotations

import logging
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Mapping
from uuid import UUID

from ..config import settings
from ..errors import InvalidAmountError, ValidationError
from ..persistence import MONEY_LIMIT, Persistence
from ..schemas import TransactionType

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")


def _now() -> datetime:
    return datetime.now().replace(microsecond=0)


def _to_decimal(raw: Any, field: str) -> Decimal | None:
    if raw is None or isinstance(raw, bool):
        return None
    try:
        value = Decimal(str(raw).strip())
    except InvalidOperation:
        return None
    if not value.is_finite():
        return None
    if abs(value) < MONEY_LIMIT:
        value = value.quantize(CENT, rounding=ROUND_HALF_UP)
    if abs(value) >= MONEY_LIMIT:
        raise ValidationError(f"{field} must be below {MONEY_LIMIT:,}", field=field)
    return value


def parse_amount(raw: Any, field: str = "amount") -> Decimal:
    """Parse a strictly positive money amount, rounded half-up to cents."""
    value = _to_decimal(raw, field)
    if value is None or value <= 0:
        raise InvalidAmountError(field=field)
    return value


def parse_balance(raw: Any) -> Decimal:
    value = _to_decimal(raw, "balance")
    if value is None:
        raise ValidationError("balance must be a decimal number", field="balance")
    return value


def coerce_type(raw: Any) -> TransactionType:
    try:
        return TransactionType(raw)
    except ValueError:
        raise ValidationError("type must be income or expense", field="type") from None


class Ledger:
    def __init__(self, persistence: Persistence, allow_overdraft: bool | None = None) -> None:
        self.persistence = persistence
        self.allow_overdraft = settings.allow_overdraft if allow_overdraft is None else allow_overdraft

    def create_transaction(self, user_id: str, values: Mapping[str, Any]) -> dict[str, Any]:
        tx_type = coerce_type(values.get("type"))
        amount = parse_amount(values.get("amount"))
        row = self.persistence.insert_transaction(
            user_id,
            {**values, "type": tx_type.value, "amount": amount, "date": values.get("date") or _now()},
            allow_overdraft=self.allow_overdraft,
        )
        logger.info(
            "transaction created user=%s id=%s type=%s amount=%s account=%s",
            user_id,
            row["id"],
            tx_type.value,
            amount,
            row.get("account_id"),
        )
        return row

    def delete_transaction(self, user_id: str, transaction_id: UUID) -> bool:
        removed = self.persistence.remove_transaction(user_id, transaction_id)
        if removed is None:
            logger.debug("transaction delete ignored user=%s id=%s (not found)", user_id, transaction_id)
            return False
        logger.info(
            "transaction deleted user=%s id=%s type=%s amount=%s account=%s",
            user_id,
            transaction_id,
            removed["type"],
            removed["amount"],
            removed.get("account_id"),
        )
        return True

    def transfer(self, user_id: str, from_account_id: UUID, to_account_id: UUID, amount: Any) -> None:
        value = parse_amount(amount)
        if from_account_id == to_account_id:
            raise ValidationError("cannot transfer to the same account", field="toAccountId")
        self.persistence.move_balance(
            user_id, from_account_id, to_account_id, value, allow_overdraft=self.allow_overdraft
        )
        logger.info("transfer user=%s from=%s to=%s amount=%s", user_id, from_account_id, to_account_id, value)

    def update_account_balance(self, user_id: str, account_id: UUID, balance: Any) -> dict[str, Any]:
        value = parse_balance(balance)
        row = self.persistence.set_account_balance(user_id, account_id, value)
        logger.info("balance override user=%s account=%s balance=%s", user_id, account_id, value)
        return row
