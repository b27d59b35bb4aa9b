"""
Unit Tests for the Catalog Service
"""
import json

import pytest

from hackportal.core.exceptions import ProblemStatementExistsError, ValidationError
from hackportal.services.allocation_engine import AllocationEngine
from hackportal.services.catalog_service import CatalogService, DEFAULT_PROBLEM_STATEMENTS


class TestCreate:
    """Test creating problem statements"""

    @pytest.mark.asyncio
    async def test_create(self, store):
        catalog = CatalogService(store)

        statement = await catalog.create({
            'id': 'ps9', 'title': 'Edge AI', 'maxSelections': 3, 'technologies': ['Rust'],
        })

        stored = await store.get_problem_statement('ps9')
        assert statement.max_selections == 3
        assert stored.title == 'Edge AI'
        assert stored.technologies == ['Rust']
        assert stored.category is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize('raw, expected', [(0, 1), (-4, 1), ('3', 3), ('abc', 1), (None, 1)])
    async def test_max_selections_clamped(self, store, raw, expected):
        catalog = CatalogService(store)

        await catalog.create({'id': 'ps1', 'title': 'T', 'maxSelections': raw})

        assert (await store.get_problem_statement('ps1')).max_selections == expected

    @pytest.mark.asyncio
    async def test_existing_id(self, store):
        catalog = CatalogService(store)
        await catalog.create({'id': 'ps1', 'title': 'First'})

        with pytest.raises(ProblemStatementExistsError) as exc:
            await catalog.create({'id': 'ps1', 'title': 'Second'})

        assert exc.value.status_code == 409
        assert (await store.get_problem_statement('ps1')).title == 'First'

    @pytest.mark.asyncio
    @pytest.mark.parametrize('payload, field', [
        ({'title': 'No id'}, 'id'),
        ({'id': '  ', 'title': 'Blank id'}, 'id'),
        ({'id': 'ps1'}, 'title'),
        ({'id': 'ps1', 'title': '   '}, 'title'),
    ])
    async def test_required_fields(self, store, payload, field):
        catalog = CatalogService(store)

        with pytest.raises(ValidationError) as exc:
            await catalog.create(payload)

        assert exc.value.details.get('field') == field
        assert await store.list_problem_statements() == []


class TestUpdate:
    """Test partial updates"""

    @pytest.mark.asyncio
    async def test_merges_only_given_fields(self, store):
        catalog = CatalogService(store)
        await catalog.create({'id': 'ps1', 'title': 'Old', 'description': 'Keep me', 'category': 'Web'})

        changed = await catalog.update('ps1', {'title': 'New', 'maxSelections': '4'})

        stored = await store.get_problem_statement('ps1')
        assert changed == 1
        assert stored.title == 'New'
        assert stored.max_selections == 4
        assert stored.description == 'Keep me'
        assert stored.category == 'Web'

    @pytest.mark.asyncio
    async def test_id_cannot_change(self, store):
        catalog = CatalogService(store)
        await catalog.create({'id': 'ps1', 'title': 'T'})

        await catalog.update('ps1', {'id': 'ps2', 'title': 'Renamed'})

        assert await store.get_problem_statement('ps2') is None
        assert (await store.get_problem_statement('ps1')).title == 'Renamed'

    @pytest.mark.asyncio
    async def test_unknown_id(self, store):
        catalog = CatalogService(store)

        assert await catalog.update('nope', {'title': 'X'}) == 0
        assert await catalog.update('nope', {}) == 0

    @pytest.mark.asyncio
    async def test_empty_update_on_existing(self, store):
        catalog = CatalogService(store)
        await catalog.create({'id': 'ps1', 'title': 'T'})

        assert await catalog.update('ps1', {'unknown': 1}) == 1

    @pytest.mark.asyncio
    async def test_lowering_capacity_keeps_registrations(self, store):
        """Test shrinking below the current count only blocks new teams"""
        catalog = CatalogService(store)
        engine = AllocationEngine(store)
        await catalog.create({'id': 'ps1', 'title': 'T', 'maxSelections': 3})
        for team in ('T1', 'T2', 'T3'):
            await engine.register(team, 'n', 'l', 'ps1')

        await catalog.update('ps1', {'maxSelections': 1})

        assert len(await store.list_registrations()) == 3
        assert not (await engine.register('T4', 'n', 'l', 'ps1')).ok


class TestDelete:
    """Test delete with cascade"""

    @pytest.mark.asyncio
    async def test_cascade(self, store):
        catalog = CatalogService(store)
        engine = AllocationEngine(store)
        await catalog.create({'id': 'ps1', 'title': 'A', 'maxSelections': 3})
        await catalog.create({'id': 'ps2', 'title': 'B'})
        await engine.register('T1', 'n', 'l', 'ps1')
        await engine.register('T2', 'n', 'l', 'ps1')
        await engine.register('T3', 'n', 'l', 'ps2')

        deleted, cascaded = await catalog.delete('ps1')

        assert (deleted, cascaded) == (1, 2)
        remaining = await store.list_registrations()
        assert [r.team_number for r in remaining] == ['T3']
        assert (await engine.register('T1', 'n', 'l', 'ps2')).ok is False

    @pytest.mark.asyncio
    async def test_unknown(self, store):
        catalog = CatalogService(store)
        assert await catalog.delete('nope') == (0, 0)


class TestBulkImport:
    """Test bulk import"""

    @pytest.mark.asyncio
    async def test_existing_ids_untouched(self, store):
        catalog = CatalogService(store)
        await catalog.create({'id': 'ps1', 'title': 'Original'})

        inserted = await catalog.bulk_import([
            {'id': 'ps1', 'title': 'Replacement'},
            {'id': 'ps2', 'title': 'New', 'maxSelections': 0},
            {'title': 'No id'},
            'not a dict',
        ])

        assert inserted == 1
        assert (await store.get_problem_statement('ps1')).title == 'Original'
        assert (await store.get_problem_statement('ps2')).max_selections == 1

    @pytest.mark.asyncio
    async def test_empty(self, store):
        assert await CatalogService(store).bulk_import([]) == 0


class TestSeed:
    """Test startup seeding"""

    @pytest.mark.asyncio
    async def test_defaults(self, store, tmp_path):
        catalog = CatalogService(store)

        inserted = await catalog.seed(tmp_path / 'missing.json')

        ids = [s.id for s in await store.list_problem_statements()]
        assert inserted == len(DEFAULT_PROBLEM_STATEMENTS)
        assert ids == ['ps001', 'ps002', 'ps003']

    @pytest.mark.asyncio
    async def test_from_seed_file(self, store, tmp_path):
        seed_file = tmp_path / 'data.json'
        seed_file.write_text(json.dumps({
            'problemStatements': [{'id': 'x1', 'title': 'Seeded', 'maxSelections': 5}],
            'registrations': [],
        }), encoding='utf-8')
        catalog = CatalogService(store)

        assert await catalog.seed(seed_file) == 1
        assert (await store.get_problem_statement('x1')).max_selections == 5

    @pytest.mark.asyncio
    async def test_unreadable_seed_file_falls_back(self, store, tmp_path):
        seed_file = tmp_path / 'data.json'
        seed_file.write_text('{not json', encoding='utf-8')

        assert await CatalogService(store).seed(seed_file) == len(DEFAULT_PROBLEM_STATEMENTS)

    @pytest.mark.asyncio
    async def test_no_defaults(self, store, tmp_path):
        assert await CatalogService(store).seed(tmp_path / 'missing.json', use_defaults=False) == 0
        assert await store.list_problem_statements() == []

    @pytest.mark.asyncio
    async def test_non_empty_catalog_untouched(self, store, tmp_path):
        catalog = CatalogService(store)
        await catalog.create({'id': 'mine', 'title': 'Keep'})

        assert await catalog.seed(tmp_path / 'missing.json') == 0
        assert [s.id for s in await store.list_problem_statements()] == ['mine']
