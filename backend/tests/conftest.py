"""
Registration Portal - Test Configuration and Fixtures
"""
import os
from pathlib import Path
from typing import AsyncGenerator

import pytest
from httpx import AsyncClient, ASGITransport
from faker import Faker

# Set testing environment before the settings module is imported
os.environ['ENVIRONMENT'] = 'testing'
os.environ['RATE_LIMIT_ENABLED'] = 'false'
os.environ['LOG_FILE'] = ''

from hackportal.core.config import Settings
from hackportal.main import create_app
from hackportal.services.catalog_service import DEFAULT_PROBLEM_STATEMENTS
from hackportal.services.container import PortalServices
from hackportal.store.base import PortalStore
from hackportal.store.json_store import JsonFileStore
from hackportal.store.sql_store import SqlStore

fake = Faker()

STORE_BACKENDS = ['json', 'sqlite']


def build_store(backend: str, tmp_path: Path) -> PortalStore:
    if backend == 'json':
        return JsonFileStore(tmp_path / 'portal.json')
    return SqlStore(f'sqlite+aiosqlite:///{tmp_path / "portal.db"}')


@pytest.fixture(params=STORE_BACKENDS)
async def store(request, tmp_path: Path) -> AsyncGenerator[PortalStore, None]:
    """A fresh, initialized store for each backend"""
    instance = build_store(request.param, tmp_path)
    await instance.init()
    yield instance
    await instance.close()


@pytest.fixture
def test_settings(tmp_path: Path) -> Settings:
    """Settings pointing every file at the test's temp directory"""
    return Settings(
        ENVIRONMENT='testing',
        DATA_FILE=str(tmp_path / 'portal.json'),
        DATABASE_URL=f'sqlite+aiosqlite:///{tmp_path / "portal.db"}',
        SEED_FILE=str(tmp_path / 'data.json'),
        TEAMS_CSV_PATH=str(tmp_path / 'teams.csv'),
        HEARTBEAT_INTERVAL_SECONDS=0.2,
        STORE_TIMEOUT_SECONDS=5.0,
        RATE_LIMIT_ENABLED=False,
    )


@pytest.fixture
async def portal(store: PortalStore, test_settings: Settings) -> AsyncGenerator[PortalServices, None]:
    """Services over an empty catalog"""
    services = PortalServices(store, test_settings)
    await services.teams.load()
    yield services
    await services.broadcaster.close()


@pytest.fixture
async def seeded_portal(portal: PortalServices) -> PortalServices:
    """Services over the three default problem statements (maxSelections 2 each)"""
    await portal.catalog.bulk_import(DEFAULT_PROBLEM_STATEMENTS)
    return portal


@pytest.fixture
async def client(seeded_portal: PortalServices) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client bound to an app that uses the test services"""
    app = create_app(portal=seeded_portal)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url='http://test') as ac:
        yield ac


@pytest.fixture
def team_payload():
    """Factory for registration request bodies"""
    def _make(problem_statement_id: str = 'ps001', team_number: str = None) -> dict:
        return {
            'teamNumber': team_number or f'T{fake.unique.random_int(min=100, max=99999)}',
            'teamName': fake.company(),
            'teamLeader': fake.name(),
            'problemStatementId': problem_statement_id,
        }
    return _make


@pytest.fixture
def teams_csv(test_settings: Settings) -> Path:
    """Roster file with three teams"""
    path = test_settings.teams_csv_path
    path.write_text(
        'teamNumber,teamName,teamLeader\n'
        'T001,Byte Busters,Asha Rao\n'
        'T002,Null Pointers,Vikram Sen\n'
        'T003,Stack Smashers,Meera Iyer\n',
        encoding='utf-8'
    )
    return path
