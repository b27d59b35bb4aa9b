"""
File-backed store
=================

The whole catalog and ledger live in one JSON document:

    {"problemStatements": [...], "registrations": [...]}

Every write is a full read-modify-write under a process-wide asyncio.Lock,
and the file is replaced atomically (temp file + os.replace) so readers,
which do not take the lock, always see a complete document.
"""

import asyncio
import json
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncIterator, Dict, List, Optional, Tuple

import aiofiles
import aiofiles.os

from hackportal.core.exceptions import DuplicateKeyError, StoreError, StoreUnavailableError
from hackportal.core.logging_config import logger
from hackportal.store.base import PortalStore, StoreTransaction
from hackportal.store.records import ProblemStatement, Registration


def _empty_document() -> Dict[str, Any]:
    return {"problemStatements": [], "registrations": []}


class JsonTransaction(StoreTransaction):
    """Operates on an in-memory copy of the document; the store persists it on commit"""

    def __init__(self, document: Dict[str, Any]):
        self.document = document
        self.dirty = False

    async def team_number_exists(self, team_number: str) -> bool:
        return any(r.get("teamNumber") == team_number for r in self.document["registrations"])

    async def get_problem_statement(
        self, problem_statement_id: str, for_update: bool = False
    ) -> Optional[ProblemStatement]:
        # The writer lock is already held, so for_update needs no extra work
        for doc in self.document["problemStatements"]:
            if doc.get("id") == problem_statement_id:
                return ProblemStatement.from_dict(doc)
        return None

    async def count_registrations(self, problem_statement_id: str) -> int:
        return sum(
            1 for r in self.document["registrations"]
            if r.get("problemStatementId") == problem_statement_id
        )

    async def insert_registration(self, registration: Registration) -> None:
        if await self.team_number_exists(registration.team_number):
            raise DuplicateKeyError("registrations", registration.team_number)
        self.document["registrations"].append(registration.to_document())
        self.dirty = True


class JsonFileStore(PortalStore):
    """PortalStore over a single JSON file"""

    backend_name = "json"

    def __init__(self, path: Path):
        self.path = Path(path)
        self._write_lock = asyncio.Lock()

    async def init(self) -> None:
        if self.path.parent and not self.path.parent.exists():
            await aiofiles.os.makedirs(self.path.parent, exist_ok=True)
        if not await aiofiles.os.path.exists(self.path):
            async with self._write_lock:
                await self._write(_empty_document())
            logger.info(f"Created data file {self.path}")
        else:
            # Fail fast on an unreadable document
            await self._read()
        logger.info(f"JSON store ready at {self.path}")

    async def close(self) -> None:
        return None

    # ---------- file access ----------

    async def _read(self) -> Dict[str, Any]:
        try:
            async with aiofiles.open(self.path, "r", encoding="utf-8") as f:
                raw = await f.read()
        except FileNotFoundError:
            return _empty_document()
        except OSError as e:
            raise StoreUnavailableError(f"Cannot read data file {self.path}: {e}")

        if not raw.strip():
            return _empty_document()
        try:
            document = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.error(f"Data file {self.path} is not valid JSON: {e}")
            raise StoreError(f"Data file {self.path} is corrupt")

        if not isinstance(document, dict):
            raise StoreError(f"Data file {self.path} is corrupt")
        if not isinstance(document.get("problemStatements"), list):
            document["problemStatements"] = []
        if not isinstance(document.get("registrations"), list):
            document["registrations"] = []
        return document

    async def _write(self, document: Dict[str, Any]) -> None:
        """Write to a sibling temp file, then atomically replace the data file"""
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        payload = json.dumps(document, indent=2, ensure_ascii=False)
        try:
            async with aiofiles.open(tmp_path, "w", encoding="utf-8") as f:
                await f.write(payload)
                await f.flush()
            await aiofiles.os.replace(tmp_path, self.path)
        except OSError as e:
            raise StoreUnavailableError(f"Cannot write data file {self.path}: {e}")

    @asynccontextmanager
    async def _mutate(self) -> AsyncIterator[Dict[str, Any]]:
        """Hold the writer lock around a read-modify-write of the document"""
        async with self._write_lock:
            document = await self._read()
            yield document
            await self._write(document)

    # ---------- transactions ----------

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[JsonTransaction]:
        async with self._write_lock:
            txn = JsonTransaction(await self._read())
            yield txn
            if txn.dirty:
                await self._write(txn.document)

    # ---------- catalog ----------

    async def get_problem_statement(self, problem_statement_id: str) -> Optional[ProblemStatement]:
        document = await self._read()
        for doc in document["problemStatements"]:
            if doc.get("id") == problem_statement_id:
                return ProblemStatement.from_dict(doc)
        return None

    async def list_problem_statements(self) -> List[ProblemStatement]:
        document = await self._read()
        return [ProblemStatement.from_dict(doc) for doc in document["problemStatements"]]

    async def insert_problem_statement(self, statement: ProblemStatement) -> None:
        async with self._write_lock:
            document = await self._read()
            if any(doc.get("id") == statement.id for doc in document["problemStatements"]):
                raise DuplicateKeyError("problemStatements", statement.id)
            document["problemStatements"].append(statement.to_document())
            await self._write(document)

    async def insert_problem_statements(self, statements: List[ProblemStatement]) -> int:
        async with self._write_lock:
            document = await self._read()
            existing = {doc.get("id") for doc in document["problemStatements"]}
            inserted = 0
            for statement in statements:
                if statement.id in existing:
                    continue
                document["problemStatements"].append(statement.to_document())
                existing.add(statement.id)
                inserted += 1
            if inserted:
                await self._write(document)
            return inserted

    async def update_problem_statement(self, problem_statement_id: str, fields: Dict[str, Any]) -> int:
        async with self._write_lock:
            document = await self._read()
            for index, doc in enumerate(document["problemStatements"]):
                if doc.get("id") != problem_statement_id:
                    continue
                current = ProblemStatement.from_dict(doc)
                for attr, value in fields.items():
                    setattr(current, attr, value)
                document["problemStatements"][index] = current.to_document()
                await self._write(document)
                return 1
            return 0

    async def delete_problem_statement(self, problem_statement_id: str) -> Tuple[int, int]:
        async with self._mutate() as document:
            statements = document["problemStatements"]
            registrations = document["registrations"]
            document["registrations"] = [
                r for r in registrations if r.get("problemStatementId") != problem_statement_id
            ]
            document["problemStatements"] = [
                doc for doc in statements if doc.get("id") != problem_statement_id
            ]
            removed_statements = len(statements) - len(document["problemStatements"])
            removed_registrations = len(registrations) - len(document["registrations"])
        return removed_statements, removed_registrations

    # ---------- ledger ----------

    async def get_registration(self, team_number: str) -> Optional[Registration]:
        document = await self._read()
        for doc in document["registrations"]:
            if doc.get("teamNumber") == team_number:
                return Registration.from_document(doc)
        return None

    async def list_registrations(self) -> List[Registration]:
        document = await self._read()
        return [Registration.from_document(doc) for doc in document["registrations"]]

    async def delete_registration(self, team_number: str) -> int:
        async with self._mutate() as document:
            before = len(document["registrations"])
            document["registrations"] = [
                r for r in document["registrations"] if r.get("teamNumber") != team_number
            ]
            removed = before - len(document["registrations"])
        return removed

    async def delete_registrations_for(self, problem_statement_id: str) -> int:
        async with self._mutate() as document:
            before = len(document["registrations"])
            document["registrations"] = [
                r for r in document["registrations"]
                if r.get("problemStatementId") != problem_statement_id
            ]
            removed = before - len(document["registrations"])
        return removed

    # ---------- read model ----------

    async def snapshot(self) -> Tuple[List[ProblemStatement], List[Registration]]:
        document = await self._read()
        return (
            [ProblemStatement.from_dict(doc) for doc in document["problemStatements"]],
            [Registration.from_document(doc) for doc in document["registrations"]],
        )
