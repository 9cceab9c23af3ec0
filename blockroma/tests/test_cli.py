import pytest
from click.testing import CliRunner

from blockroma.cli import cli
from blockroma.common.structs import RootRange


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def run_worker(mocker):
    mocker.patch('blockroma.common.logs.configure')
    return mocker.patch('blockroma.indexer.cli.run_worker')


def test_indexer_command(runner, run_worker):
    result = runner.invoke(cli, [
        'indexer',
        '--catchup',
        '--no-realtime',
        '--block-ranges', '0-latest, 100-200',
        '--batch-size', '50',
        '--queue-size', '8',
        '--port', '9000',
    ])

    assert result.exit_code == 0, result.output
    run_worker.assert_called_once_with([RootRange(0, 'latest'), RootRange(100, 200)], 9000, True, False, 50, 8)


def test_indexer_command_rejects_bad_ranges(runner, run_worker):
    result = runner.invoke(cli, ['indexer', '--catchup', '--block-ranges', '10-abc'])

    assert result.exit_code == 2
    run_worker.assert_not_called()


def test_indexer_command_requires_ranges_for_catchup(runner, run_worker):
    result = runner.invoke(cli, ['indexer', '--catchup', '--block-ranges', ''])

    assert result.exit_code == 2
    run_worker.assert_not_called()


def test_indexer_command_rejects_zero_batch(runner, run_worker):
    result = runner.invoke(cli, ['indexer', '--batch-size', '0'])

    assert result.exit_code == 2


def test_create_tables_command(runner, mocker):
    mocker.patch('blockroma.common.logs.configure')
    create_tables = mocker.patch('blockroma.cli._create_tables', mocker.AsyncMock())

    result = runner.invoke(cli, ['create-tables', '--db', 'postgresql://localhost/test'])

    assert result.exit_code == 0, result.output
    create_tables.assert_awaited_once_with('postgresql://localhost/test')
