from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Iterator
from uuid import UUID, uuid4

from pydantic import ValidationError as SchemaError
from pydantic.alias_generators import to_camel
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import SQLAlchemyError

from .config import settings
from .errors import InvalidAccountError, NotFoundError, StorageError, ValidationError
from .resources import BUDGET_CATEGORIES, JOBS, Resource
from .store import InMemoryStore, store

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")
# budget columns are numeric(14,2)
MONEY_LIMIT = Decimal("1000000000000")

ACCOUNT_COLUMNS = "id, user_id, name, type, balance, color, created_at"
TRANSACTION_COLUMNS = (
    "id, user_id, date, amount, type, category_id, account_id, description, is_recurring, recurring_frequency"
)


def _money(value: Any) -> Decimal:
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


def _tx_sign(direction: str) -> Decimal:
    return Decimal("1") if direction == "income" else Decimal("-1")


def _check_new_balance(account: dict[str, Any], new_balance: Decimal, allow_overdraft: bool = True) -> None:
    if abs(new_balance) >= MONEY_LIMIT:
        raise ValidationError(
            f"balance of account {account['name']} would leave the supported range", field="amount"
        )
    if allow_overdraft or account["type"] == "credit":
        return
    if new_balance < 0:
        raise ValidationError(f"insufficient funds in account {account['name']}", field="amount")


def _merge_update(resource: Resource, row: dict[str, Any], updates: dict[str, Any]) -> dict[str, Any]:
    """Apply ``updates`` to ``row`` and re-run the create model's validation on the result."""
    allowed = {k: v for k, v in updates.items() if k in resource.create_model.model_fields}
    merged = {key: row.get(key) for key in resource.create_model.model_fields}
    merged.update(allowed)
    try:
        resource.create_model.model_validate(merged)
    except SchemaError as exc:
        first = exc.errors()[0]
        loc = first.get("loc") or ()
        raise ValidationError(first["msg"], field=to_camel(str(loc[0])) if loc else "body") from None
    return allowed


def _sort_desc(rows: list[dict[str, Any]], key: str | None) -> list[dict[str, Any]]:
    if key is None:
        return rows
    return sorted(rows, key=lambda r: (r.get(key) is not None, r.get(key)), reverse=True)


class Persistence:
    def create_account(self, user_id: str, values: dict[str, Any]) -> dict[str, Any]:
        raise NotImplementedError

    def list_accounts(self, user_id: str) -> list[dict[str, Any]]:
        raise NotImplementedError

    def get_account(self, user_id: str, account_id: UUID) -> dict[str, Any] | None:
        raise NotImplementedError

    def update_account(self, user_id: str, account_id: UUID, updates: dict[str, Any]) -> dict[str, Any]:
        raise NotImplementedError

    def delete_account(self, user_id: str, account_id: UUID) -> bool:
        raise NotImplementedError

    def set_account_balance(self, user_id: str, account_id: UUID, balance: Decimal) -> dict[str, Any]:
        raise NotImplementedError

    def list_transactions(self, user_id: str) -> list[dict[str, Any]]:
        raise NotImplementedError

    def insert_transaction(self, user_id: str, values: dict[str, Any], allow_overdraft: bool = True) -> dict[str, Any]:
        """Store a transaction and apply its signed amount to the referenced account as one unit."""
        raise NotImplementedError

    def remove_transaction(self, user_id: str, transaction_id: UUID) -> dict[str, Any] | None:
        """Reverse the transaction's balance effect and delete it as one unit; ``None`` if absent."""
        raise NotImplementedError

    def move_balance(
        self, user_id: str, from_account_id: UUID, to_account_id: UUID, amount: Decimal, allow_overdraft: bool = True
    ) -> tuple[dict[str, Any], dict[str, Any]]:
        """Debit one account and credit another as one unit; ``InvalidAccountError`` names the missing side."""
        raise NotImplementedError

    def list_entries(self, resource: Resource, user_id: str) -> list[dict[str, Any]]:
        raise NotImplementedError

    def get_entry(self, resource: Resource, user_id: str, entry_id: UUID) -> dict[str, Any] | None:
        raise NotImplementedError

    def create_entry(self, resource: Resource, user_id: str, values: dict[str, Any]) -> dict[str, Any]:
        return self.create_entries(resource, user_id, [values])[0]

    def create_entries(self, resource: Resource, user_id: str, rows: list[dict[str, Any]]) -> list[dict[str, Any]]:
        raise NotImplementedError

    def update_entry(self, resource: Resource, user_id: str, entry_id: UUID, updates: dict[str, Any]) -> dict[str, Any]:
        raise NotImplementedError

    def delete_entry(self, resource: Resource, user_id: str, entry_id: UUID) -> bool:
        raise NotImplementedError

    def list_daily_hours(self, user_id: str, week_start: date) -> list[dict[str, Any]]:
        raise NotImplementedError

    def upsert_daily_hours(self, user_id: str, entries: list[dict[str, Any]]) -> list[dict[str, Any]]:
        raise NotImplementedError

    def clear_daily_hours(self, user_id: str, week_start: date) -> int:
        raise NotImplementedError

    @staticmethod
    def _new_row(resource: Resource, user_id: str, values: dict[str, Any]) -> dict[str, Any]:
        row = {col: values.get(col) for col in resource.create_model.model_fields}
        row["id"] = uuid4()
        row["user_id"] = user_id
        if resource.stamp_created_at:
            row["created_at"] = InMemoryStore.now()
        return row


class InMemoryPersistence(Persistence):
    def __init__(self, backing: InMemoryStore | None = None) -> None:
        self.store = backing or store

    def _owned(self, table: dict[UUID, dict[str, Any]], user_id: str, entity_id: UUID | None) -> dict[str, Any] | None:
        if entity_id is None:
            return None
        row = table.get(entity_id)
        if row is None or row["user_id"] != user_id:
            return None
        return row

    def create_account(self, user_id: str, values: dict[str, Any]) -> dict[str, Any]:
        entity_id = self.store.make_id()
        row = {
            "id": entity_id,
            "user_id": user_id,
            "name": values["name"],
            "type": values.get("type") or "checking",
            "balance": str(_money(values.get("balance") or 0)),
            "color": values.get("color"),
            "created_at": self.store.now(),
        }
        with self.store.lock:
            self.store.accounts[entity_id] = row
        return dict(row)

    def list_accounts(self, user_id: str) -> list[dict[str, Any]]:
        with self.store.lock:
            rows = [dict(a) for a in self.store.accounts.values() if a["user_id"] == user_id]
        return sorted(rows, key=lambda a: a["created_at"])

    def get_account(self, user_id: str, account_id: UUID) -> dict[str, Any] | None:
        with self.store.lock:
            row = self._owned(self.store.accounts, user_id, account_id)
            return dict(row) if row else None

    def update_account(self, user_id: str, account_id: UUID, updates: dict[str, Any]) -> dict[str, Any]:
        with self.store.lock:
            row = self._owned(self.store.accounts, user_id, account_id)
            if row is None:
                raise NotFoundError(f"account not found: {account_id}", field="id")
            for key in ("name", "type", "color"):
                if key in updates:
                    row[key] = updates[key]
            return dict(row)

    def delete_account(self, user_id: str, account_id: UUID) -> bool:
        with self.store.lock:
            if self._owned(self.store.accounts, user_id, account_id) is None:
                return False
            del self.store.accounts[account_id]
            return True

    def set_account_balance(self, user_id: str, account_id: UUID, balance: Decimal) -> dict[str, Any]:
        with self.store.lock:
            row = self._owned(self.store.accounts, user_id, account_id)
            if row is None:
                raise NotFoundError(f"account not found: {account_id}", field="id")
            row["balance"] = str(_money(balance))
            return dict(row)

    def list_transactions(self, user_id: str) -> list[dict[str, Any]]:
        with self.store.lock:
            rows = [dict(t) for t in self.store.transactions.values() if t["user_id"] == user_id]
        return _sort_desc(rows, "date")

    def insert_transaction(self, user_id: str, values: dict[str, Any], allow_overdraft: bool = True) -> dict[str, Any]:
        with self.store.lock:
            account = None
            if values.get("account_id") is not None:
                account = self._owned(self.store.accounts, user_id, values["account_id"])
                if account is None:
                    raise NotFoundError(f"account not found: {values['account_id']}", field="accountId")
            if values.get("category_id") is not None:
                if self._owned(self.store.table(BUDGET_CATEGORIES.table), user_id, values["category_id"]) is None:
                    raise NotFoundError(f"category not found: {values['category_id']}", field="categoryId")
            amount = _money(values["amount"])
            new_balance = None
            if account is not None:
                new_balance = _money(Decimal(account["balance"]) + amount * _tx_sign(values["type"]))
                _check_new_balance(account, new_balance, allow_overdraft)
            entity_id = self.store.make_id()
            row = {
                "id": entity_id,
                "user_id": user_id,
                "date": values["date"],
                "amount": str(amount),
                "type": values["type"],
                "category_id": values.get("category_id"),
                "account_id": values.get("account_id"),
                "description": values.get("description"),
                "is_recurring": bool(values.get("is_recurring")),
                "recurring_frequency": values.get("recurring_frequency"),
            }
            self.store.transactions[entity_id] = row
            if account is not None:
                account["balance"] = str(new_balance)
            return dict(row)

    def remove_transaction(self, user_id: str, transaction_id: UUID) -> dict[str, Any] | None:
        with self.store.lock:
            row = self._owned(self.store.transactions, user_id, transaction_id)
            if row is None:
                return None
            account = self._owned(self.store.accounts, user_id, row.get("account_id"))
            if account is not None:
                delta = Decimal(row["amount"]) * _tx_sign(row["type"])
                account["balance"] = str(_money(Decimal(account["balance"]) - delta))
            del self.store.transactions[transaction_id]
            return dict(row)

    def move_balance(
        self, user_id: str, from_account_id: UUID, to_account_id: UUID, amount: Decimal, allow_overdraft: bool = True
    ) -> tuple[dict[str, Any], dict[str, Any]]:
        with self.store.lock:
            source = self._owned(self.store.accounts, user_id, from_account_id)
            target = self._owned(self.store.accounts, user_id, to_account_id)
            if source is None:
                raise InvalidAccountError(f"account not found: {from_account_id}", field="fromAccountId")
            if target is None:
                raise InvalidAccountError(f"account not found: {to_account_id}", field="toAccountId")
            new_source = _money(Decimal(source["balance"]) - amount)
            new_target = _money(Decimal(target["balance"]) + amount)
            _check_new_balance(source, new_source, allow_overdraft)
            _check_new_balance(target, new_target)
            source["balance"] = str(new_source)
            target["balance"] = str(new_target)
            return dict(source), dict(target)

    def list_entries(self, resource: Resource, user_id: str) -> list[dict[str, Any]]:
        with self.store.lock:
            rows = [dict(r) for r in self.store.table(resource.table).values() if r["user_id"] == user_id]
        return _sort_desc(rows, resource.order_by)

    def get_entry(self, resource: Resource, user_id: str, entry_id: UUID) -> dict[str, Any] | None:
        with self.store.lock:
            row = self._owned(self.store.table(resource.table), user_id, entry_id)
            return dict(row) if row else None

    def create_entries(self, resource: Resource, user_id: str, rows: list[dict[str, Any]]) -> list[dict[str, Any]]:
        prepared = [self._new_row(resource, user_id, values) for values in rows]
        with self.store.lock:
            table = self.store.table(resource.table)
            for row in prepared:
                table[row["id"]] = row
        return [dict(row) for row in prepared]

    def update_entry(self, resource: Resource, user_id: str, entry_id: UUID, updates: dict[str, Any]) -> dict[str, Any]:
        with self.store.lock:
            row = self._owned(self.store.table(resource.table), user_id, entry_id)
            if row is None:
                raise NotFoundError(f"{resource.name} entry not found: {entry_id}", field="id")
            row.update(_merge_update(resource, row, updates))
            return dict(row)

    def delete_entry(self, resource: Resource, user_id: str, entry_id: UUID) -> bool:
        with self.store.lock:
            table = self.store.table(resource.table)
            if self._owned(table, user_id, entry_id) is None:
                return False
            del table[entry_id]
            return True

    def list_daily_hours(self, user_id: str, week_start: date) -> list[dict[str, Any]]:
        with self.store.lock:
            return [
                dict(r)
                for r in self.store.table("paycheck_daily_hours").values()
                if r["user_id"] == user_id and r["week_start"] == week_start
            ]

    def upsert_daily_hours(self, user_id: str, entries: list[dict[str, Any]]) -> list[dict[str, Any]]:
        with self.store.lock:
            jobs = self.store.table(JOBS.table)
            for entry in entries:
                if self._owned(jobs, user_id, entry["job_id"]) is None:
                    raise NotFoundError(f"job not found: {entry['job_id']}", field="jobId")
            table = self.store.table("paycheck_daily_hours")
            saved = []
            for entry in entries:
                existing = next(
                    (
                        r
                        for r in table.values()
                        if r["user_id"] == user_id
                        and r["job_id"] == entry["job_id"]
                        and r["week_start"] == entry["week_start"]
                        and r["day"] == entry["day"]
                    ),
                    None,
                )
                if existing is None:
                    existing = {
                        "id": self.store.make_id(),
                        "user_id": user_id,
                        "job_id": entry["job_id"],
                        "week_start": entry["week_start"],
                        "day": entry["day"],
                    }
                    table[existing["id"]] = existing
                existing["hours"] = entry["hours"]
                existing["updated_at"] = self.store.now()
                saved.append(dict(existing))
            return saved

    def clear_daily_hours(self, user_id: str, week_start: date) -> int:
        with self.store.lock:
            table = self.store.table("paycheck_daily_hours")
            doomed = [k for k, r in table.items() if r["user_id"] == user_id and r["week_start"] == week_start]
            for key in doomed:
                del table[key]
            return len(doomed)


class PostgresPersistence(Persistence):
    def __init__(self, database_url: str) -> None:
        self.engine: Engine = create_engine(database_url, future=True, pool_pre_ping=True)

    @contextmanager
    def _unit(self) -> Iterator[Connection]:
        try:
            with self.engine.begin() as conn:
                yield conn
        except SQLAlchemyError as exc:
            logger.error("postgres error", exc_info=True)
            raise StorageError(f"postgres error: {exc.__class__.__name__}") from exc

    @staticmethod
    def _rows(conn: Connection, sql: str, params: dict[str, Any] | None = None) -> list[dict[str, Any]]:
        result = conn.execute(text(sql), params or {})
        if result.returns_rows:
            return [dict(row._mapping) for row in result.fetchall()]
        return []

    def _run(self, sql: str, params: dict[str, Any] | None = None) -> list[dict[str, Any]]:
        with self._unit() as conn:
            return self._rows(conn, sql, params)

    def create_account(self, user_id: str, values: dict[str, Any]) -> dict[str, Any]:
        return self._run(
            f"""
            insert into budget_accounts (id, user_id, name, type, balance, color)
            values (:id, :user_id, :name, :type, :balance, :color)
            returning {ACCOUNT_COLUMNS}
            """,
            {
                "id": uuid4(),
                "user_id": user_id,
                "name": values["name"],
                "type": values.get("type") or "checking",
                "balance": _money(values.get("balance") or 0),
                "color": values.get("color"),
            },
        )[0]

    def list_accounts(self, user_id: str) -> list[dict[str, Any]]:
        return self._run(
            f"select {ACCOUNT_COLUMNS} from budget_accounts where user_id = :user_id order by created_at",
            {"user_id": user_id},
        )

    def get_account(self, user_id: str, account_id: UUID) -> dict[str, Any] | None:
        rows = self._run(
            f"select {ACCOUNT_COLUMNS} from budget_accounts where id = :id and user_id = :user_id",
            {"id": account_id, "user_id": user_id},
        )
        return rows[0] if rows else None

    def update_account(self, user_id: str, account_id: UUID, updates: dict[str, Any]) -> dict[str, Any]:
        allowed = {k: v for k, v in updates.items() if k in {"name", "type", "color"}}
        if not allowed:
            current = self.get_account(user_id, account_id)
            if current is None:
                raise NotFoundError(f"account not found: {account_id}", field="id")
            return current
        assignments = ", ".join(f"{key} = :{key}" for key in allowed)
        rows = self._run(
            f"update budget_accounts set {assignments} where id = :id and user_id = :user_id returning {ACCOUNT_COLUMNS}",
            {**allowed, "id": account_id, "user_id": user_id},
        )
        if not rows:
            raise NotFoundError(f"account not found: {account_id}", field="id")
        return rows[0]

    def delete_account(self, user_id: str, account_id: UUID) -> bool:
        rows = self._run(
            "delete from budget_accounts where id = :id and user_id = :user_id returning id",
            {"id": account_id, "user_id": user_id},
        )
        return bool(rows)

    def set_account_balance(self, user_id: str, account_id: UUID, balance: Decimal) -> dict[str, Any]:
        rows = self._run(
            f"update budget_accounts set balance = :balance where id = :id and user_id = :user_id returning {ACCOUNT_COLUMNS}",
            {"balance": _money(balance), "id": account_id, "user_id": user_id},
        )
        if not rows:
            raise NotFoundError(f"account not found: {account_id}", field="id")
        return rows[0]

    def list_transactions(self, user_id: str) -> list[dict[str, Any]]:
        return self._run(
            f"select {TRANSACTION_COLUMNS} from budget_transactions where user_id = :user_id order by date desc",
            {"user_id": user_id},
        )

    def _lock_account(self, conn: Connection, user_id: str, account_id: UUID) -> dict[str, Any] | None:
        rows = self._rows(
            conn,
            f"select {ACCOUNT_COLUMNS} from budget_accounts where id = :id and user_id = :user_id for update",
            {"id": account_id, "user_id": user_id},
        )
        return rows[0] if rows else None

    def insert_transaction(self, user_id: str, values: dict[str, Any], allow_overdraft: bool = True) -> dict[str, Any]:
        amount = _money(values["amount"])
        with self._unit() as conn:
            account = None
            if values.get("account_id") is not None:
                account = self._lock_account(conn, user_id, values["account_id"])
                if account is None:
                    raise NotFoundError(f"account not found: {values['account_id']}", field="accountId")
            if values.get("category_id") is not None:
                found = self._rows(
                    conn,
                    "select 1 as ok from budget_categories where id = :id and user_id = :user_id",
                    {"id": values["category_id"], "user_id": user_id},
                )
                if not found:
                    raise NotFoundError(f"category not found: {values['category_id']}", field="categoryId")
            new_balance = None
            if account is not None:
                new_balance = _money(Decimal(account["balance"]) + amount * _tx_sign(values["type"]))
                _check_new_balance(account, new_balance, allow_overdraft)
            row = self._rows(
                conn,
                f"""
                insert into budget_transactions (
                  id, user_id, date, amount, type, category_id, account_id, description, is_recurring, recurring_frequency
                )
                values (
                  :id, :user_id, :date, :amount, :type, :category_id, :account_id, :description, :is_recurring, :recurring_frequency
                )
                returning {TRANSACTION_COLUMNS}
                """,
                {
                    "id": uuid4(),
                    "user_id": user_id,
                    "date": values["date"],
                    "amount": amount,
                    "type": values["type"],
                    "category_id": values.get("category_id"),
                    "account_id": values.get("account_id"),
                    "description": values.get("description"),
                    "is_recurring": bool(values.get("is_recurring")),
                    "recurring_frequency": values.get("recurring_frequency"),
                },
            )[0]
            if account is not None:
                self._rows(
                    conn,
                    "update budget_accounts set balance = :balance where id = :id",
                    {"balance": new_balance, "id": account["id"]},
                )
            return row

    def remove_transaction(self, user_id: str, transaction_id: UUID) -> dict[str, Any] | None:
        with self._unit() as conn:
            rows = self._rows(
                conn,
                f"select {TRANSACTION_COLUMNS} from budget_transactions where id = :id and user_id = :user_id for update",
                {"id": transaction_id, "user_id": user_id},
            )
            if not rows:
                return None
            row = rows[0]
            if row["account_id"] is not None:
                account = self._lock_account(conn, user_id, row["account_id"])
                if account is not None:
                    delta = Decimal(row["amount"]) * _tx_sign(row["type"])
                    self._rows(
                        conn,
                        "update budget_accounts set balance = :balance where id = :id",
                        {"balance": _money(Decimal(account["balance"]) - delta), "id": account["id"]},
                    )
            self._rows(conn, "delete from budget_transactions where id = :id", {"id": transaction_id})
            return row

    def move_balance(
        self, user_id: str, from_account_id: UUID, to_account_id: UUID, amount: Decimal, allow_overdraft: bool = True
    ) -> tuple[dict[str, Any], dict[str, Any]]:
        with self._unit() as conn:
            # lock in id order so two opposite transfers cannot deadlock
            locked = self._rows(
                conn,
                f"""
                select {ACCOUNT_COLUMNS} from budget_accounts
                where user_id = :user_id and id in (:from_id, :to_id)
                order by id
                for update
                """,
                {"user_id": user_id, "from_id": from_account_id, "to_id": to_account_id},
            )
            by_id = {row["id"]: row for row in locked}
            source = by_id.get(from_account_id)
            target = by_id.get(to_account_id)
            if source is None:
                raise InvalidAccountError(f"account not found: {from_account_id}", field="fromAccountId")
            if target is None:
                raise InvalidAccountError(f"account not found: {to_account_id}", field="toAccountId")
            new_source = _money(Decimal(source["balance"]) - amount)
            new_target = _money(Decimal(target["balance"]) + amount)
            _check_new_balance(source, new_source, allow_overdraft)
            _check_new_balance(target, new_target)
            update = "update budget_accounts set balance = :balance where id = :id"
            self._rows(conn, update, {"balance": new_source, "id": from_account_id})
            self._rows(conn, update, {"balance": new_target, "id": to_account_id})
            return {**source, "balance": new_source}, {**target, "balance": new_target}

    def list_entries(self, resource: Resource, user_id: str) -> list[dict[str, Any]]:
        order = f" order by {resource.order_by} desc nulls last" if resource.order_by else ""
        return self._run(f"select * from {resource.table} where user_id = :user_id{order}", {"user_id": user_id})

    def get_entry(self, resource: Resource, user_id: str, entry_id: UUID) -> dict[str, Any] | None:
        rows = self._run(
            f"select * from {resource.table} where id = :id and user_id = :user_id",
            {"id": entry_id, "user_id": user_id},
        )
        return rows[0] if rows else None

    def create_entries(self, resource: Resource, user_id: str, rows: list[dict[str, Any]]) -> list[dict[str, Any]]:
        columns = ["id", "user_id", *resource.columns]
        sql = (
            f"insert into {resource.table} ({', '.join(columns)}) "
            f"values ({', '.join(':' + c for c in columns)}) returning *"
        )
        created = []
        with self._unit() as conn:
            for values in rows:
                created.extend(self._rows(conn, sql, self._new_row(resource, user_id, values)))
        return created

    def update_entry(self, resource: Resource, user_id: str, entry_id: UUID, updates: dict[str, Any]) -> dict[str, Any]:
        key = {"id": entry_id, "user_id": user_id}
        with self._unit() as conn:
            current = self._rows(
                conn, f"select * from {resource.table} where id = :id and user_id = :user_id for update", key
            )
            if not current:
                raise NotFoundError(f"{resource.name} entry not found: {entry_id}", field="id")
            allowed = _merge_update(resource, current[0], updates)
            if not allowed:
                return current[0]
            assignments = ", ".join(f"{column} = :{column}" for column in allowed)
            return self._rows(
                conn,
                f"update {resource.table} set {assignments} where id = :id and user_id = :user_id returning *",
                {**allowed, **key},
            )[0]

    def delete_entry(self, resource: Resource, user_id: str, entry_id: UUID) -> bool:
        rows = self._run(
            f"delete from {resource.table} where id = :id and user_id = :user_id returning id",
            {"id": entry_id, "user_id": user_id},
        )
        return bool(rows)

    def list_daily_hours(self, user_id: str, week_start: date) -> list[dict[str, Any]]:
        return self._run(
            "select * from paycheck_daily_hours where user_id = :user_id and week_start = :week_start",
            {"user_id": user_id, "week_start": week_start},
        )

    def upsert_daily_hours(self, user_id: str, entries: list[dict[str, Any]]) -> list[dict[str, Any]]:
        saved = []
        with self._unit() as conn:
            for entry in entries:
                job = self._rows(
                    conn,
                    "select 1 as ok from jobs where id = :id and user_id = :user_id",
                    {"id": entry["job_id"], "user_id": user_id},
                )
                if not job:
                    raise NotFoundError(f"job not found: {entry['job_id']}", field="jobId")
                saved.extend(
                    self._rows(
                        conn,
                        """
                        insert into paycheck_daily_hours (id, user_id, job_id, week_start, day, hours, updated_at)
                        values (:id, :user_id, :job_id, :week_start, :day, :hours, now())
                        on conflict (user_id, job_id, week_start, day)
                        do update set hours = excluded.hours, updated_at = now()
                        returning *
                        """,
                        {
                            "id": uuid4(),
                            "user_id": user_id,
                            "job_id": entry["job_id"],
                            "week_start": entry["week_start"],
                            "day": entry["day"],
                            "hours": entry["hours"],
                        },
                    )
                )
        return saved

    def clear_daily_hours(self, user_id: str, week_start: date) -> int:
        rows = self._run(
            "delete from paycheck_daily_hours where user_id = :user_id and week_start = :week_start returning id",
            {"user_id": user_id, "week_start": week_start},
        )
        return len(rows)


def get_persistence() -> Persistence:
    if settings.storage_backend == "postgres":
        return PostgresPersistence(settings.database_url)
    return InMemoryPersistence()
