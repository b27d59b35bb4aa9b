"""
Unit Tests for CSV / JSON exports
"""
import csv
import io

import pytest

from hackportal.services.allocation_engine import AllocationEngine
from hackportal.services.exports import (
    PROBLEM_STATEMENT_COLUMNS,
    REGISTRATION_COLUMNS,
    export_all,
    problem_statements_csv,
    registrations_csv,
    summarize,
)
from hackportal.services.read_model import ReadModelProjector
from hackportal.store.records import ProblemStatement


def read_csv(text):
    return list(csv.reader(io.StringIO(text)))


async def populated(store):
    await store.insert_problem_statement(ProblemStatement(
        id='ps1', title='Smart, Safe Cities', description='Say "hi"', max_selections=1,
        category='IoT', technologies=['MQTT', 'Go'],
    ))
    await store.insert_problem_statement(ProblemStatement(id='ps2', title='Open', max_selections=2))
    await AllocationEngine(store).register('T1', 'Team, One', 'Lead', 'ps1')
    return ReadModelProjector(store)


class TestCsv:
    """Test CSV rendering"""

    @pytest.mark.asyncio
    async def test_registrations(self, store):
        projector = await populated(store)

        rows = read_csv(registrations_csv(await projector.list_registrations()))

        assert rows[0] == REGISTRATION_COLUMNS
        assert rows[1][:6] == ['T1', 'Team, One', 'Lead', 'Smart, Safe Cities', 'IoT', '']
        assert len(rows) == 2

    @pytest.mark.asyncio
    async def test_problem_statements(self, store):
        projector = await populated(store)

        rows = read_csv(problem_statements_csv(await projector.list_problem_statements()))
        by_id = {row[0]: row for row in rows[1:]}

        assert rows[0] == PROBLEM_STATEMENT_COLUMNS
        assert by_id['ps1'][1:6] == ['Smart, Safe Cities', 'Say "hi"', '1', '1', 'False']
        assert by_id['ps1'][8] == '["MQTT", "Go"]'
        assert by_id['ps2'][5] == 'True'

    def test_empty(self):
        assert registrations_csv([]) == ','.join(REGISTRATION_COLUMNS) + '\n'


class TestExportAll:
    """Test the combined JSON export"""

    @pytest.mark.asyncio
    async def test_export_all(self, store):
        projector = await populated(store)

        data = await export_all(projector)

        assert data['exportDate'].endswith('Z')
        assert len(data['problemStatements']) == 2
        assert data['registrations'][0]['team_number'] == 'T1'
        assert data['summary'] == {
            'totalProblems': 2,
            'totalRegistrations': 1,
            'availableProblems': 1,
            'fullProblems': 1,
        }

    def test_summarize_empty(self):
        assert summarize([], []) == {
            'totalProblems': 0, 'totalRegistrations': 0, 'availableProblems': 0, 'fullProblems': 0,
        }
