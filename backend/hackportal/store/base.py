"""
Storage backend interface.

Both backends (JSON file, SQL database) implement PortalStore. The
allocation engine only needs `transaction()`: everything it reads and the
insert it performs happen inside one StoreTransaction, which the backend
guarantees is serialized against every other transaction touching the same
problem statement or team number.
"""

import asyncio
from abc import ABC, abstractmethod
from typing import Any, AsyncContextManager, Awaitable, Dict, List, Optional, Tuple, TypeVar

from hackportal.core.exceptions import StoreTimeoutError
from hackportal.store.records import ProblemStatement, Registration

T = TypeVar("T")


class StoreTransaction(ABC):
    """Read-count + conditional-insert primitive used by the allocation engine"""

    @abstractmethod
    async def team_number_exists(self, team_number: str) -> bool:
        ...

    @abstractmethod
    async def get_problem_statement(
        self, problem_statement_id: str, for_update: bool = False
    ) -> Optional[ProblemStatement]:
        ...

    @abstractmethod
    async def count_registrations(self, problem_statement_id: str) -> int:
        ...

    @abstractmethod
    async def insert_registration(self, registration: Registration) -> None:
        """Insert; raises DuplicateKeyError if the team number is taken"""


class PortalStore(ABC):
    """Catalog + Ledger storage"""

    backend_name: str = "abstract"

    @abstractmethod
    async def init(self) -> None:
        ...

    @abstractmethod
    async def close(self) -> None:
        ...

    # ---------- transactions ----------

    @abstractmethod
    def transaction(self) -> AsyncContextManager[StoreTransaction]:
        """Serialized read-modify-write scope; commits on clean exit, discards on error"""

    # ---------- catalog ----------

    @abstractmethod
    async def get_problem_statement(self, problem_statement_id: str) -> Optional[ProblemStatement]:
        ...

    async def problem_statement_exists(self, problem_statement_id: str) -> bool:
        return await self.get_problem_statement(problem_statement_id) is not None

    @abstractmethod
    async def list_problem_statements(self) -> List[ProblemStatement]:
        ...

    @abstractmethod
    async def insert_problem_statement(self, statement: ProblemStatement) -> None:
        """Insert; raises DuplicateKeyError if the id exists"""

    @abstractmethod
    async def insert_problem_statements(self, statements: List[ProblemStatement]) -> int:
        """Insert those whose id is not present yet; returns how many were inserted"""

    @abstractmethod
    async def update_problem_statement(self, problem_statement_id: str, fields: Dict[str, Any]) -> int:
        """Merge already-normalized fields; returns 0 or 1"""

    @abstractmethod
    async def delete_problem_statement(self, problem_statement_id: str) -> Tuple[int, int]:
        """Delete registrations of the statement, then the statement.

        Returns (statements_deleted, registrations_deleted).
        """

    # ---------- ledger ----------

    @abstractmethod
    async def get_registration(self, team_number: str) -> Optional[Registration]:
        ...

    async def team_number_exists(self, team_number: str) -> bool:
        return await self.get_registration(team_number) is not None

    @abstractmethod
    async def list_registrations(self) -> List[Registration]:
        ...

    @abstractmethod
    async def delete_registration(self, team_number: str) -> int:
        ...

    @abstractmethod
    async def delete_registrations_for(self, problem_statement_id: str) -> int:
        ...

    # ---------- read model ----------

    @abstractmethod
    async def snapshot(self) -> Tuple[List[ProblemStatement], List[Registration]]:
        """Catalog and ledger read together"""


async def bounded(awaitable: Awaitable[T], operation: str, timeout_seconds: float) -> T:
    """Await a store call, converting an overrun into StoreTimeoutError"""
    try:
        return await asyncio.wait_for(awaitable, timeout=timeout_seconds)
    except asyncio.TimeoutError:
        raise StoreTimeoutError(operation, timeout_seconds)
