import threading
from datetime import datetime
from typing import Any
from uuid import UUID, uuid4


class InMemoryStore:
    def __init__(self) -> None:
        self.accounts: dict[UUID, dict[str, Any]] = {}
        self.transactions: dict[UUID, dict[str, Any]] = {}
        self.tables: dict[str, dict[UUID, dict[str, Any]]] = {}
        # one writer at a time; re-entrant so a unit may call helpers that lock again
        self.lock = threading.RLock()

    def table(self, name: str) -> dict[UUID, dict[str, Any]]:
        return self.tables.setdefault(name, {})

    def reset(self) -> None:
        with self.lock:
            self.accounts.clear()
            self.transactions.clear()
            self.tables.clear()

    @staticmethod
    def make_id() -> UUID:
        return uuid4()

    @staticmethod
    def now() -> datetime:
        return datetime.now().replace(microsecond=0)


store = InMemoryStore()
