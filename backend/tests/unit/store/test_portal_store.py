"""
Unit Tests for the storage backends (JSON file and SQLite)
"""
import asyncio
import json

import pytest

from hackportal.core.exceptions import DuplicateKeyError, StoreError, TransactionConflictError, StoreUnavailableError
from hackportal.store import create_store
from hackportal.store.json_store import JsonFileStore
from hackportal.store.records import ProblemStatement, Registration
from hackportal.store.sql_store import SqlStore, translate_db_error


def make_statement(id='ps100', max_selections=2, **kwargs) -> ProblemStatement:
    return ProblemStatement(
        id=id,
        title=kwargs.pop('title', f'Problem {id}'),
        description=kwargs.pop('description', 'Build something useful'),
        max_selections=max_selections,
        **kwargs
    )


def make_registration(team_number='T001', problem_statement_id='ps100') -> Registration:
    return Registration(
        team_number=team_number,
        team_name=f'Team {team_number}',
        team_leader='Leader',
        problem_statement_id=problem_statement_id,
    )


async def register_direct(store, registration: Registration) -> None:
    async with store.transaction() as txn:
        await txn.insert_registration(registration)


class TestCatalogStore:
    """Catalog half of both backends"""

    @pytest.mark.asyncio
    async def test_insert_and_get(self, store):
        """Test inserting a statement and reading it back"""
        await store.insert_problem_statement(make_statement(category='AI', technologies=['Python']))

        statement = await store.get_problem_statement('ps100')
        assert statement is not None
        assert statement.title == 'Problem ps100'
        assert statement.category == 'AI'
        assert statement.technologies == ['Python']
        assert await store.problem_statement_exists('ps100')
        assert not await store.problem_statement_exists('missing')

    @pytest.mark.asyncio
    async def test_insert_duplicate_raises(self, store):
        """Test inserting an existing id raises DuplicateKeyError"""
        await store.insert_problem_statement(make_statement())

        with pytest.raises(DuplicateKeyError):
            await store.insert_problem_statement(make_statement(title='Other'))

        statement = await store.get_problem_statement('ps100')
        assert statement.title == 'Problem ps100'

    @pytest.mark.asyncio
    async def test_bulk_insert_skips_existing(self, store):
        """Test bulk insert only adds ids not present yet"""
        await store.insert_problem_statement(make_statement('ps1', title='Original'))

        inserted = await store.insert_problem_statements([
            make_statement('ps1', title='Replacement'),
            make_statement('ps2'),
            make_statement('ps3'),
        ])

        assert inserted == 2
        assert (await store.get_problem_statement('ps1')).title == 'Original'
        assert len(await store.list_problem_statements()) == 3

    @pytest.mark.asyncio
    async def test_update_merges_fields(self, store):
        """Test partial update only touches given fields"""
        await store.insert_problem_statement(make_statement(category='AI'))

        changed = await store.update_problem_statement('ps100', {'max_selections': 5})

        assert changed == 1
        statement = await store.get_problem_statement('ps100')
        assert statement.max_selections == 5
        assert statement.category == 'AI'
        assert statement.title == 'Problem ps100'

    @pytest.mark.asyncio
    async def test_update_unknown_returns_zero(self, store):
        """Test updating a missing id changes nothing"""
        assert await store.update_problem_statement('nope', {'title': 'x'}) == 0

    @pytest.mark.asyncio
    async def test_delete_cascades_registrations(self, store):
        """Test deleting a statement removes its registrations only"""
        await store.insert_problem_statement(make_statement('ps1'))
        await store.insert_problem_statement(make_statement('ps2'))
        await register_direct(store, make_registration('T1', 'ps1'))
        await register_direct(store, make_registration('T2', 'ps1'))
        await register_direct(store, make_registration('T3', 'ps2'))

        deleted, cascaded = await store.delete_problem_statement('ps1')

        assert (deleted, cascaded) == (1, 2)
        assert await store.get_problem_statement('ps1') is None
        remaining = await store.list_registrations()
        assert [r.team_number for r in remaining] == ['T3']

    @pytest.mark.asyncio
    async def test_delete_unknown(self, store):
        """Test deleting a missing statement reports zero"""
        assert await store.delete_problem_statement('nope') == (0, 0)


class TestLedgerStore:
    """Ledger half of both backends"""

    @pytest.mark.asyncio
    async def test_transaction_insert_and_count(self, store):
        """Test the allocation primitives inside one transaction"""
        await store.insert_problem_statement(make_statement())

        async with store.transaction() as txn:
            assert not await txn.team_number_exists('T001')
            assert await txn.count_registrations('ps100') == 0
            statement = await txn.get_problem_statement('ps100', for_update=True)
            assert statement.max_selections == 2
            await txn.insert_registration(make_registration())

        assert await store.team_number_exists('T001')
        registration = await store.get_registration('T001')
        assert registration.problem_statement_id == 'ps100'
        assert registration.registration_date_time.endswith('Z')

    @pytest.mark.asyncio
    async def test_duplicate_team_number_rejected(self, store):
        """Test the ledger key refuses a second registration for a team"""
        await store.insert_problem_statement(make_statement())
        await register_direct(store, make_registration())

        with pytest.raises(DuplicateKeyError):
            await register_direct(store, make_registration())

        assert len(await store.list_registrations()) == 1

    @pytest.mark.asyncio
    async def test_failed_transaction_discards_changes(self, store):
        """Test an exception inside the transaction rolls it back"""
        await store.insert_problem_statement(make_statement())

        with pytest.raises(RuntimeError):
            async with store.transaction() as txn:
                await txn.insert_registration(make_registration())
                raise RuntimeError('abort')

        assert await store.get_registration('T001') is None

    @pytest.mark.asyncio
    async def test_delete_registration(self, store):
        """Test deleting one registration by team number"""
        await store.insert_problem_statement(make_statement())
        await register_direct(store, make_registration('T1'))

        assert await store.delete_registration('T1') == 1
        assert await store.delete_registration('T1') == 0
        assert await store.list_registrations() == []

    @pytest.mark.asyncio
    async def test_delete_registrations_for(self, store):
        """Test removing every registration of one statement"""
        await store.insert_problem_statement(make_statement('ps1'))
        await store.insert_problem_statement(make_statement('ps2'))
        await register_direct(store, make_registration('T1', 'ps1'))
        await register_direct(store, make_registration('T2', 'ps2'))

        assert await store.delete_registrations_for('ps1') == 1
        assert [r.team_number for r in await store.list_registrations()] == ['T2']

    @pytest.mark.asyncio
    async def test_snapshot(self, store):
        """Test snapshot returns catalog and ledger together"""
        await store.insert_problem_statement(make_statement())
        await register_direct(store, make_registration())

        statements, registrations = await store.snapshot()

        assert [s.id for s in statements] == ['ps100']
        assert [r.team_number for r in registrations] == ['T001']


class TestJsonFileStore:
    """JSON-file specific behaviour"""

    @pytest.mark.asyncio
    async def test_init_creates_document(self, tmp_path):
        """Test init writes an empty document in a new directory"""
        path = tmp_path / 'nested' / 'portal.json'
        store = JsonFileStore(path)
        await store.init()

        assert json.loads(path.read_text()) == {'problemStatements': [], 'registrations': []}

    @pytest.mark.asyncio
    async def test_document_uses_camel_case(self, tmp_path):
        """Test the persisted document keeps the portal's field names"""
        path = tmp_path / 'portal.json'
        store = JsonFileStore(path)
        await store.init()
        await store.insert_problem_statement(make_statement())
        await register_direct(store, make_registration())

        document = json.loads(path.read_text())
        assert document['problemStatements'][0]['maxSelections'] == 2
        assert document['registrations'][0]['teamNumber'] == 'T001'
        assert document['registrations'][0]['problemStatementId'] == 'ps100'
        assert not (tmp_path / 'portal.json.tmp').exists()

    @pytest.mark.asyncio
    async def test_loose_documents_are_coerced(self, tmp_path):
        """Test hand-edited entries get the catalog coercions on read"""
        path = tmp_path / 'portal.json'
        path.write_text(json.dumps({
            'problemStatements': [
                {'id': 'x', 'title': 'X', 'maxSelections': '0', 'category': '', 'technologies': 'Go'},
            ],
        }))
        store = JsonFileStore(path)
        await store.init()

        statement = await store.get_problem_statement('x')
        assert statement.max_selections == 1
        assert statement.category is None
        assert statement.technologies == []
        assert await store.list_registrations() == []

    @pytest.mark.asyncio
    async def test_corrupt_document_raises(self, tmp_path):
        """Test an unparseable data file is reported, not silently replaced"""
        path = tmp_path / 'portal.json'
        path.write_text('{not json')
        store = JsonFileStore(path)

        with pytest.raises(StoreError):
            await store.init()
        assert path.read_text() == '{not json'

    @pytest.mark.asyncio
    async def test_concurrent_writes_are_serialized(self, tmp_path):
        """Test concurrent inserts all land in the document"""
        store = JsonFileStore(tmp_path / 'portal.json')
        await store.init()

        await asyncio.gather(*[
            store.insert_problem_statement(make_statement(f'ps{i}')) for i in range(20)
        ])

        assert len(await store.list_problem_statements()) == 20


class TestSqlStore:
    """SQL specific behaviour"""

    def test_translate_serialization_failure(self):
        """Test SQLSTATE 40001 maps to a transaction conflict"""
        from sqlalchemy.exc import DBAPIError

        class DriverError(Exception):
            sqlstate = '40001'

        error = DBAPIError('SELECT 1', {}, DriverError('could not serialize access'))
        assert isinstance(translate_db_error(error), TransactionConflictError)

    def test_translate_database_locked(self):
        """Test SQLite lock contention maps to a transaction conflict"""
        from sqlalchemy.exc import OperationalError

        error = OperationalError('INSERT', {}, Exception('database is locked'))
        assert isinstance(translate_db_error(error), TransactionConflictError)

    def test_translate_connection_refused(self):
        """Test an unreachable server maps to StoreUnavailableError"""
        assert isinstance(translate_db_error(ConnectionRefusedError('refused')), StoreUnavailableError)

    def test_translate_other_errors(self):
        """Test anything else is a generic store error"""
        from sqlalchemy.exc import OperationalError

        error = translate_db_error(OperationalError('SELECT', {}, Exception('no such table')))
        assert type(error) is StoreError
        assert error.status_code == 500

    @pytest.mark.asyncio
    async def test_plain_sqlite_url_is_upgraded(self, tmp_path):
        """Test a sqlite:/// URL is switched to the async driver"""
        store = SqlStore(f'sqlite:///{tmp_path / "plain.db"}')
        try:
            assert store.database_url.startswith('sqlite+aiosqlite:///')
            await store.init()
            assert await store.list_problem_statements() == []
        finally:
            await store.close()


class TestCreateStore:
    """Backend selection"""

    def test_json_backend(self, test_settings):
        """Test STORE_BACKEND=json builds the file store"""
        test_settings.STORE_BACKEND = 'json'
        assert isinstance(create_store(test_settings), JsonFileStore)

    def test_sql_backend(self, test_settings):
        """Test STORE_BACKEND=sql builds the database store"""
        test_settings.STORE_BACKEND = 'sql'
        assert isinstance(create_store(test_settings), SqlStore)

    def test_unknown_backend(self, test_settings):
        """Test an unknown backend name is rejected"""
        from hackportal.core.exceptions import ValidationError

        test_settings.STORE_BACKEND = 'mongo'
        with pytest.raises(ValidationError):
            create_store(test_settings)
