"""
Allocation Engine
=================

The capacity-constrained registration procedure. Inside one store
transaction, in this order:

1. the trimmed team number must be non-empty and not yet registered
   (else DuplicateTeam)
2. the problem statement must exist (else UnknownProblem)
3. its current registration count must be below maxSelections
   (else ProblemFull)

then the registration is inserted with the commit instant. Expected
rejections are returned as values, not raised.

A store-level transaction conflict is retried once. The whole attempt runs
in a shielded task: a caller that times out or disconnects stops waiting,
but a registration that already entered the critical section still
completes (or rolls back) on its own.
"""

import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Set

from hackportal.core.exceptions import DuplicateKeyError, StoreTimeoutError, TransactionConflictError
from hackportal.core.logging_config import logger, set_team_number
from hackportal.store.base import PortalStore, bounded
from hackportal.store.records import ProblemStatement, Registration, utc_now_iso


class RejectionReason(str, Enum):
    """Why a registration was refused"""
    DUPLICATE_TEAM = "DuplicateTeam"
    UNKNOWN_PROBLEM = "UnknownProblem"
    PROBLEM_FULL = "ProblemFull"


@dataclass
class AllocationResult:
    """Either a committed registration or a rejection reason"""
    registration: Optional[Registration] = None
    rejection: Optional[RejectionReason] = None
    problem_statement: Optional[ProblemStatement] = None

    @property
    def ok(self) -> bool:
        return self.registration is not None

    @classmethod
    def rejected(cls, reason: RejectionReason) -> "AllocationResult":
        return cls(rejection=reason)


class AllocationEngine:
    def __init__(self, store: PortalStore, timeout_seconds: float = 10.0, conflict_retries: int = 1):
        self.store = store
        self.timeout_seconds = timeout_seconds
        self.conflict_retries = conflict_retries
        # Strong references to shielded attempts that may outlive their callers
        self._inflight: Set[asyncio.Task] = set()
        # Attempts whose caller stopped waiting; their failures are logged here
        self._detached: Set[asyncio.Task] = set()

    async def register(
        self,
        team_number: str,
        team_name: str,
        team_leader: str,
        problem_statement_id: str,
    ) -> AllocationResult:
        """
        Register a team for a problem statement.

        Raises:
            StoreTimeoutError: the store did not answer within timeout_seconds
            TransactionConflictError: conflict persisted after the retry
            StoreError: any other backend failure
        """
        team_number = (team_number or "").strip()
        problem_statement_id = (problem_statement_id or "").strip()
        set_team_number(team_number)

        if not team_number:
            logger.log_registration(team_number, problem_statement_id, RejectionReason.DUPLICATE_TEAM.value)
            return AllocationResult.rejected(RejectionReason.DUPLICATE_TEAM)

        task = asyncio.ensure_future(
            self._register_with_retry(team_number, team_name, team_leader, problem_statement_id)
        )
        self._inflight.add(task)
        task.add_done_callback(self._inflight.discard)
        task.add_done_callback(self._log_background_failure)

        try:
            result = await asyncio.wait_for(asyncio.shield(task), timeout=self.timeout_seconds)
        except asyncio.CancelledError:
            self._detach(task)
            raise
        except asyncio.TimeoutError:
            self._detach(task)
            logger.warning(
                f"Registration for team {team_number} exceeded {self.timeout_seconds}s; "
                f"it will finish in the background"
            )
            raise StoreTimeoutError("register", self.timeout_seconds)

        outcome = "registered" if result.ok else result.rejection.value
        logger.log_registration(team_number, problem_statement_id, outcome)
        return result

    def _detach(self, task: asyncio.Task) -> None:
        if task.done():
            self._report_failure(task)
        else:
            self._detached.add(task)

    def _log_background_failure(self, task: asyncio.Task) -> None:
        if task in self._detached:
            self._detached.discard(task)
            self._report_failure(task)

    @staticmethod
    def _report_failure(task: asyncio.Task) -> None:
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.log_error_with_context(error, context="background registration")

    async def _register_with_retry(
        self,
        team_number: str,
        team_name: str,
        team_leader: str,
        problem_statement_id: str,
    ) -> AllocationResult:
        attempt = 0
        while True:
            try:
                return await self._attempt(team_number, team_name, team_leader, problem_statement_id)
            except TransactionConflictError as e:
                if attempt >= self.conflict_retries:
                    logger.error(f"Registration for team {team_number} failed after retry: {e.message}")
                    raise
                attempt += 1
                logger.warning(f"Transaction conflict registering team {team_number}, retrying ({attempt})")

    async def _attempt(
        self,
        team_number: str,
        team_name: str,
        team_leader: str,
        problem_statement_id: str,
    ) -> AllocationResult:
        try:
            async with self.store.transaction() as txn:
                if await txn.team_number_exists(team_number):
                    return AllocationResult.rejected(RejectionReason.DUPLICATE_TEAM)

                statement = await txn.get_problem_statement(problem_statement_id, for_update=True)
                if statement is None:
                    return AllocationResult.rejected(RejectionReason.UNKNOWN_PROBLEM)

                selected = await txn.count_registrations(problem_statement_id)
                if selected >= statement.max_selections:
                    return AllocationResult.rejected(RejectionReason.PROBLEM_FULL)

                registration = Registration(
                    team_number=team_number,
                    team_name=(team_name or "").strip(),
                    team_leader=(team_leader or "").strip(),
                    problem_statement_id=problem_statement_id,
                    registration_date_time=utc_now_iso(),
                )
                await txn.insert_registration(registration)
        except DuplicateKeyError:
            # Unique key caught a concurrent insert the existence check missed
            return AllocationResult.rejected(RejectionReason.DUPLICATE_TEAM)

        return AllocationResult(registration=registration, problem_statement=statement)

    async def release(self, team_number: str) -> int:
        """Delete a team's registration; returns how many were removed (0 or 1)"""
        team_number = (team_number or "").strip()
        removed = await bounded(self.store.delete_registration(team_number), "delete_registration", self.timeout_seconds)
        if removed:
            logger.info(f"Registration removed: team {team_number}")
        return removed
