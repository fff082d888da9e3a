"""Tests for scripts/run_nurture.py."""
import importlib.util
import json
from pathlib import Path
from unittest.mock import patch

import pytest

SCRIPT = Path(__file__).resolve().parents[2] / 'scripts' / 'run_nurture.py'


@pytest.fixture(scope='module')
def script():
    spec = importlib.util.spec_from_file_location('run_nurture_script', SCRIPT)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def _engine_result(success=True):
    result = {
        'success': success,
        'leads': [{'id': 'l1'}],
        'leadsByStage': {'reminder': [{'id': 'l1'}], 'provide_value': [], 'breakup': []},
        'totalChecked': 3,
        'considered': 4,
        'excludedByAssignee': 1,
        'thresholdDate': '2026-02-22T12:00:00.000Z',
        'stats': {'reminder': 1, 'provide_value': 0, 'breakup': 0, 'resumed': 0},
        'terminal': {'cold': 0, 'completed': 0},
        'cancelled': False,
        'dryRun': True,
    }
    if not success:
        result['errors'] = ['Database not available']
    return result


class TestParser:

    def test_defaults(self, script):
        args = script.build_parser().parse_args(['site-1'])
        assert args.site_id == 'site-1'
        assert args.days_without_reply is None
        assert not args.dry_run and not args.cycle

    def test_dry_run_and_cycle_are_exclusive(self, script):
        with pytest.raises(SystemExit):
            script.build_parser().parse_args(['site-1', '--dry-run', '--cycle'])


class TestMain:

    def test_dry_run_calls_engine(self, script, capsys):
        with patch.object(script, 'configure_logging'), \
             patch.object(script, 'get_nurture_leads', return_value=_engine_result()) as engine:
            code = script.main(['site-1', '--dry-run', '--days-without-reply', '3.5', '--max-per-stage', '2'])
        assert code == 0
        engine.assert_called_once_with('site-1', days_without_reply=3.5, limit=None,
                                       max_leads_per_stage=2, dry_run=True)
        out = capsys.readouterr().out
        assert 'reminder' in out
        assert 'l1' in out

    def test_verbose_sets_debug_logging(self, script):
        with patch.object(script, 'configure_logging') as configure, \
             patch.object(script, 'get_nurture_leads', return_value=_engine_result()):
            script.main(['site-1', '-v'])
        configure.assert_called_once_with(level='DEBUG')

    def test_json_output(self, script, capsys):
        with patch.object(script, 'configure_logging'), \
             patch.object(script, 'get_nurture_leads', return_value=_engine_result()):
            script.main(['site-1', '--json'])
        assert json.loads(capsys.readouterr().out)['considered'] == 4

    def test_failure_exit_code(self, script, capsys):
        with patch.object(script, 'configure_logging'), \
             patch.object(script, 'get_nurture_leads', return_value=_engine_result(success=False)):
            code = script.main(['site-1'])
        assert code == 1
        assert 'ERROR Database not available' in capsys.readouterr().out

    def test_cycle_mode(self, script, capsys):
        cycle_result = {
            'success': True, 'runId': 'run-1', 'followUpsStarted': 1, 'qualifiedLeads': 1,
            'executionTime': '0.10s', 'stats': {}, 'terminal': {}, 'errors': [],
        }
        with patch.object(script, 'configure_logging'), \
             patch.object(script, 'run_nurture_cycle', return_value=cycle_result) as run:
            code = script.main(['site-1', '--cycle', '--limit', '5'])
        assert code == 0
        run.assert_called_once_with('site-1', days_without_reply=None, max_leads=5, max_leads_per_stage=None)
        assert 'Cycle run-1' in capsys.readouterr().out
