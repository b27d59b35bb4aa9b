"""
Database-backed store
=====================

SQLAlchemy async over SQLite (aiosqlite) or PostgreSQL (asyncpg).

Serialization of the allocation critical section:
- PostgreSQL: the transaction runs at SERIALIZABLE isolation and locks the
  problem statement row with SELECT ... FOR UPDATE.
- SQLite: a single writer at the file level, so write transactions are also
  funnelled through a process-wide asyncio.Lock instead of racing for the
  database lock.

The registrations primary key is the last line of defence against a
duplicate team number: an IntegrityError on insert becomes DuplicateKeyError.
"""

import asyncio
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, List, Optional, Tuple

from sqlalchemy import delete, func, select
from sqlalchemy.exc import DBAPIError, IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from hackportal.core.database import Base, build_engine, build_session_factory, get_database_url, is_sqlite_url
from hackportal.core.exceptions import (
    DuplicateKeyError,
    PortalError,
    StoreError,
    StoreUnavailableError,
    TransactionConflictError,
)
from hackportal.core.logging_config import logger
from hackportal.models import ProblemStatementRecord, RegistrationRecord
from hackportal.store.base import PortalStore, StoreTransaction
from hackportal.store.records import ProblemStatement, Registration

# SQLSTATE codes for serialization failure and deadlock
_CONFLICT_SQLSTATES = {"40001", "40P01"}
_CONFLICT_MARKERS = ("database is locked", "could not serialize", "deadlock detected")


def translate_db_error(error: Exception) -> PortalError:
    """Map a driver/SQLAlchemy failure to the portal's store errors"""
    orig = getattr(error, "orig", None)
    sqlstate = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    text = str(orig or error)
    lowered = text.lower()

    if sqlstate in _CONFLICT_SQLSTATES or any(marker in lowered for marker in _CONFLICT_MARKERS):
        return TransactionConflictError(text)
    if isinstance(error, OSError):
        return StoreUnavailableError(f"Database unreachable: {text}")
    if isinstance(error, DBAPIError) and error.connection_invalidated:
        return StoreUnavailableError(f"Database connection lost: {text}")
    return StoreError(f"Database error: {text}")


def _to_statement(record: ProblemStatementRecord) -> ProblemStatement:
    return ProblemStatement(
        id=record.id,
        title=record.title,
        description=record.description or "",
        max_selections=record.max_selections,
        category=record.category,
        difficulty=record.difficulty,
        technologies=list(record.technologies or []),
    )


def _to_record(statement: ProblemStatement) -> ProblemStatementRecord:
    return ProblemStatementRecord(
        id=statement.id,
        title=statement.title,
        description=statement.description,
        max_selections=statement.max_selections,
        category=statement.category,
        difficulty=statement.difficulty,
        technologies=list(statement.technologies),
    )


def _to_registration(record: RegistrationRecord) -> Registration:
    return Registration(
        team_number=record.team_number,
        team_name=record.team_name,
        team_leader=record.team_leader,
        problem_statement_id=record.problem_statement_id,
        registration_date_time=record.registration_date_time,
    )


class SqlTransaction(StoreTransaction):
    def __init__(self, session: AsyncSession):
        self.session = session

    async def team_number_exists(self, team_number: str) -> bool:
        return await self.session.get(RegistrationRecord, team_number) is not None

    async def get_problem_statement(
        self, problem_statement_id: str, for_update: bool = False
    ) -> Optional[ProblemStatement]:
        query = select(ProblemStatementRecord).where(ProblemStatementRecord.id == problem_statement_id)
        if for_update:
            # Rendered as FOR UPDATE on PostgreSQL, ignored by SQLite
            query = query.with_for_update()
        record = (await self.session.execute(query)).scalar_one_or_none()
        return _to_statement(record) if record else None

    async def count_registrations(self, problem_statement_id: str) -> int:
        result = await self.session.execute(
            select(func.count())
            .select_from(RegistrationRecord)
            .where(RegistrationRecord.problem_statement_id == problem_statement_id)
        )
        return int(result.scalar_one())

    async def insert_registration(self, registration: Registration) -> None:
        self.session.add(RegistrationRecord(
            team_number=registration.team_number,
            team_name=registration.team_name,
            team_leader=registration.team_leader,
            problem_statement_id=registration.problem_statement_id,
            registration_date_time=registration.registration_date_time,
        ))
        try:
            await self.session.flush()
        except IntegrityError:
            raise DuplicateKeyError("registrations", registration.team_number)


class SqlStore(PortalStore):
    """PortalStore over SQLAlchemy async"""

    backend_name = "sql"

    def __init__(self, database_url: str):
        self.database_url = get_database_url(database_url)
        self.is_sqlite = is_sqlite_url(self.database_url)
        self.engine = build_engine(self.database_url)
        self.session_factory = build_session_factory(self.engine)
        self._write_lock = asyncio.Lock()

    async def init(self) -> None:
        try:
            async with self.engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
        except (SQLAlchemyError, OSError) as e:
            raise translate_db_error(e)
        logger.info(f"SQL store ready ({self.engine.dialect.name})")

    async def close(self) -> None:
        await self.engine.dispose()

    # ---------- sessions ----------

    @asynccontextmanager
    async def _writer(self) -> AsyncIterator[None]:
        if self.is_sqlite:
            async with self._write_lock:
                yield
        else:
            yield

    @asynccontextmanager
    async def _session(self, write: bool = False, isolation: Optional[str] = None) -> AsyncIterator[AsyncSession]:
        """Session scope: commit on clean exit for writes, rollback on error, map driver errors"""
        async with self._writer() if write else _noop():
            async with self.session_factory() as session:
                try:
                    if isolation and not self.is_sqlite:
                        await session.connection(execution_options={"isolation_level": isolation})
                    yield session
                    if write:
                        await session.commit()
                except PortalError:
                    await session.rollback()
                    raise
                except (SQLAlchemyError, OSError) as e:
                    await session.rollback()
                    raise translate_db_error(e)

    # ---------- transactions ----------

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[SqlTransaction]:
        async with self._session(write=True, isolation="SERIALIZABLE") as session:
            yield SqlTransaction(session)

    # ---------- catalog ----------

    async def get_problem_statement(self, problem_statement_id: str) -> Optional[ProblemStatement]:
        async with self._session() as session:
            record = await session.get(ProblemStatementRecord, problem_statement_id)
            return _to_statement(record) if record else None

    async def list_problem_statements(self) -> List[ProblemStatement]:
        async with self._session() as session:
            result = await session.execute(select(ProblemStatementRecord).order_by(ProblemStatementRecord.id))
            return [_to_statement(r) for r in result.scalars().all()]

    async def insert_problem_statement(self, statement: ProblemStatement) -> None:
        async with self._session(write=True) as session:
            session.add(_to_record(statement))
            try:
                await session.flush()
            except IntegrityError:
                raise DuplicateKeyError("problem_statements", statement.id)

    async def insert_problem_statements(self, statements: List[ProblemStatement]) -> int:
        if not statements:
            return 0
        async with self._session(write=True) as session:
            ids = [s.id for s in statements]
            result = await session.execute(
                select(ProblemStatementRecord.id).where(ProblemStatementRecord.id.in_(ids))
            )
            existing = set(result.scalars().all())
            inserted = 0
            for statement in statements:
                if statement.id in existing:
                    continue
                session.add(_to_record(statement))
                existing.add(statement.id)
                inserted += 1
            return inserted

    async def update_problem_statement(self, problem_statement_id: str, fields: Dict[str, Any]) -> int:
        async with self._session(write=True) as session:
            record = await session.get(ProblemStatementRecord, problem_statement_id)
            if record is None:
                return 0
            for attr, value in fields.items():
                setattr(record, attr, list(value) if attr == "technologies" else value)
            return 1

    async def delete_problem_statement(self, problem_statement_id: str) -> Tuple[int, int]:
        async with self._session(write=True) as session:
            registrations = await session.execute(
                delete(RegistrationRecord).where(RegistrationRecord.problem_statement_id == problem_statement_id)
            )
            statements = await session.execute(
                delete(ProblemStatementRecord).where(ProblemStatementRecord.id == problem_statement_id)
            )
            return statements.rowcount or 0, registrations.rowcount or 0

    # ---------- ledger ----------

    async def get_registration(self, team_number: str) -> Optional[Registration]:
        async with self._session() as session:
            record = await session.get(RegistrationRecord, team_number)
            return _to_registration(record) if record else None

    async def list_registrations(self) -> List[Registration]:
        async with self._session() as session:
            return await self._all_registrations(session)

    async def delete_registration(self, team_number: str) -> int:
        async with self._session(write=True) as session:
            result = await session.execute(
                delete(RegistrationRecord).where(RegistrationRecord.team_number == team_number)
            )
            return result.rowcount or 0

    async def delete_registrations_for(self, problem_statement_id: str) -> int:
        async with self._session(write=True) as session:
            result = await session.execute(
                delete(RegistrationRecord).where(RegistrationRecord.problem_statement_id == problem_statement_id)
            )
            return result.rowcount or 0

    # ---------- read model ----------

    async def snapshot(self) -> Tuple[List[ProblemStatement], List[Registration]]:
        async with self._session(isolation="REPEATABLE READ") as session:
            result = await session.execute(select(ProblemStatementRecord).order_by(ProblemStatementRecord.id))
            statements = [_to_statement(r) for r in result.scalars().all()]
            registrations = await self._all_registrations(session)
            return statements, registrations

    @staticmethod
    async def _all_registrations(session: AsyncSession) -> List[Registration]:
        result = await session.execute(
            select(RegistrationRecord).order_by(
                RegistrationRecord.registration_date_time, RegistrationRecord.team_number
            )
        )
        return [_to_registration(r) for r in result.scalars().all()]


@asynccontextmanager
async def _noop() -> AsyncIterator[None]:
    yield
