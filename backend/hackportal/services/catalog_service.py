"""
Catalog Service - problem statement administration

Handles:
- Create (id collision reported as AlreadyExists)
- Partial update
- Delete with cascade to registrations
- Bulk import (existing ids untouched)
- Startup seeding from a seed file or the built-in defaults
"""

import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import aiofiles

from hackportal.core.exceptions import (
    DuplicateKeyError,
    ProblemStatementExistsError,
    ValidationError,
)
from hackportal.core.logging_config import logger
from hackportal.store.base import PortalStore, bounded
from hackportal.store.records import ProblemStatement, normalize_updates


DEFAULT_PROBLEM_STATEMENTS: List[Dict[str, Any]] = [
    {
        "id": "ps001",
        "title": "Secure Authentication System",
        "description": (
            "Design and implement a multi-factor authentication system with biometric verification, "
            "OTP, and secure session management for a banking application."
        ),
        "maxSelections": 2,
        "category": "Cybersecurity",
        "difficulty": "Advanced",
        "technologies": ["Node.js", "React", "JWT"],
    },
    {
        "id": "ps002",
        "title": "AI-Powered Code Review Assistant",
        "description": (
            "Develop an intelligent code review tool that uses machine learning to detect bugs, "
            "security vulnerabilities, and suggest improvements in real-time."
        ),
        "maxSelections": 2,
        "category": "Artificial Intelligence",
        "difficulty": "Advanced",
        "technologies": ["Python", "TensorFlow"],
    },
    {
        "id": "ps003",
        "title": "Blockchain Supply Chain Tracker",
        "description": (
            "Create a transparent supply chain management system using blockchain technology "
            "to track products from manufacturer to consumer."
        ),
        "maxSelections": 2,
        "category": "Blockchain",
        "difficulty": "Intermediate",
        "technologies": ["Ethereum", "Solidity"],
    },
]


class CatalogService:
    def __init__(self, store: PortalStore, timeout_seconds: float = 10.0):
        self.store = store
        self.timeout_seconds = timeout_seconds

    async def create(self, payload: Dict[str, Any]) -> ProblemStatement:
        """Create one problem statement; maxSelections is clamped to >= 1"""
        statement = ProblemStatement.from_dict(payload)
        if not statement.id:
            raise ValidationError("Problem statement id is required", field="id")
        if not statement.title.strip():
            raise ValidationError("Problem statement title is required", field="title")

        try:
            await bounded(self.store.insert_problem_statement(statement), "insert_problem_statement", self.timeout_seconds)
        except DuplicateKeyError:
            raise ProblemStatementExistsError(statement.id)

        logger.info(f"Problem statement created: {statement.id} (max {statement.max_selections})")
        return statement

    async def update(self, problem_statement_id: str, updates: Dict[str, Any]) -> int:
        """Merge only the provided fields; returns the number of statements changed (0 or 1)"""
        fields = normalize_updates(updates)
        if not fields:
            # Nothing to apply; still report whether the id exists
            exists = await bounded(
                self.store.problem_statement_exists(problem_statement_id), "problem_statement_exists", self.timeout_seconds
            )
            return 1 if exists else 0

        changed = await bounded(
            self.store.update_problem_statement(problem_statement_id, fields), "update_problem_statement", self.timeout_seconds
        )
        if changed:
            logger.info(f"Problem statement updated: {problem_statement_id} ({', '.join(sorted(fields))})")
        return changed

    async def delete(self, problem_statement_id: str) -> Tuple[int, int]:
        """Delete a statement and its registrations; returns (statements, registrations) removed"""
        deleted, cascaded = await bounded(
            self.store.delete_problem_statement(problem_statement_id), "delete_problem_statement", self.timeout_seconds
        )
        if deleted:
            logger.info(f"Problem statement deleted: {problem_statement_id} ({cascaded} registrations removed)")
        return deleted, cascaded

    async def bulk_import(self, items: List[Dict[str, Any]]) -> int:
        """Insert statements whose id is not present yet; returns how many were inserted"""
        statements = []
        for item in items or []:
            if not isinstance(item, dict):
                continue
            statement = ProblemStatement.from_dict(item)
            if not statement.id:
                logger.warning("Skipping imported problem statement without an id")
                continue
            statements.append(statement)

        inserted = await bounded(
            self.store.insert_problem_statements(statements), "insert_problem_statements", self.timeout_seconds
        )
        logger.info(f"Imported {inserted} of {len(statements)} problem statements")
        return inserted

    async def seed(self, seed_file: Optional[Path] = None, use_defaults: bool = True) -> int:
        """Populate an empty catalog from the seed file, else from the built-in defaults"""
        existing = await bounded(self.store.list_problem_statements(), "list_problem_statements", self.timeout_seconds)
        if existing:
            return 0

        items = await self._read_seed_file(seed_file) if seed_file else None
        if items:
            inserted = await self.bulk_import(items)
            logger.info(f"Seeded catalog from {seed_file}: {inserted} problem statements")
            return inserted

        if not use_defaults:
            return 0
        inserted = await self.bulk_import(DEFAULT_PROBLEM_STATEMENTS)
        logger.info(f"Seeded catalog with {inserted} default problem statements")
        return inserted

    @staticmethod
    async def _read_seed_file(seed_file: Path) -> Optional[List[Dict[str, Any]]]:
        path = Path(seed_file)
        if not path.exists():
            return None
        try:
            async with aiofiles.open(path, "r", encoding="utf-8") as f:
                data = json.loads(await f.read())
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Ignoring unreadable seed file {path}: {e}")
            return None

        items = data.get("problemStatements") if isinstance(data, dict) else None
        if not isinstance(items, list):
            logger.warning(f"Seed file {path} has no problemStatements list")
            return None
        return items
