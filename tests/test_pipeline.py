#!/usr/bin/env python3
"""
Tests for src/pipeline.py

Tests cover:
- CLI argument parsing
- Command routing
- Environment checks
"""
from __future__ import annotations

import pytest
import sys
from pathlib import Path
from unittest.mock import patch

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / 'src'))


@pytest.fixture
def venv(monkeypatch):
    """Pretend the project virtual environment is active."""
    monkeypatch.setenv('VIRTUAL_ENV', '/project/.venv')


class TestParseArgs:
    """Tests for argument parsing."""

    def test_run_report_defaults(self):
        """Parse run_report with defaults."""
        from pipeline import parse_args
        args = parse_args(['run_report'])

        assert args.cmd == 'run_report'
        assert args.input is None
        assert args.demo is False
        assert args.qa is True
        assert args.verbose is True

    def test_run_report_with_options(self):
        """Parse run_report with every flag."""
        from pipeline import parse_args
        args = parse_args(['run_report', '-i', 'extract.csv', '--demo', '--no-qa', '-q'])

        assert args.input == 'extract.csv'
        assert args.demo is True
        assert args.qa is False
        assert args.verbose is False

    def test_make_demo_options(self):
        """Parse make_demo options."""
        from pipeline import parse_args
        args = parse_args(['make_demo', '-o', 'out.csv', '-n', '50', '--seed', '3'])

        assert args.cmd == 'make_demo'
        assert args.output == 'out.csv'
        assert args.rows == 50
        assert args.seed == 3

    def test_reads_sys_argv(self):
        """Without explicit argv, sys.argv is used."""
        from pipeline import parse_args
        with patch('sys.argv', ['pipeline.py', 'list_models']):
            args = parse_args()
            assert args.cmd == 'list_models'

    def test_command_required(self):
        """A command must be given."""
        from pipeline import parse_args
        with pytest.raises(SystemExit):
            parse_args([])

    def test_unknown_command(self):
        from pipeline import parse_args
        with pytest.raises(SystemExit):
            parse_args(['ingest_data'])


class TestEnsureEnv:
    """Tests for the virtual environment check."""

    def test_missing_venv_exits(self, monkeypatch):
        from pipeline import ensure_env
        monkeypatch.delenv('VIRTUAL_ENV', raising=False)

        with pytest.raises(SystemExit) as exc_info:
            ensure_env()
        assert exc_info.value.code == 1

    def test_other_venv_exits(self, monkeypatch):
        from pipeline import ensure_env
        monkeypatch.setenv('VIRTUAL_ENV', '/somewhere/env')

        with pytest.raises(SystemExit):
            ensure_env()

    def test_project_venv_passes(self, venv):
        from pipeline import ensure_env
        ensure_env()


class TestMain:
    """Tests for command routing."""

    def test_check_config(self, venv, capsys):
        from pipeline import main
        main(['check_config'])

        out = capsys.readouterr().out
        assert 'Engine: Python engine ready' in out
        assert 'Configuration valid.' in out

    def test_list_models(self, venv, capsys):
        from pipeline import main
        main(['list_models'])

        out = capsys.readouterr().out
        assert 'model_1: MENTHLTH ~ ADDEPEV3_fact' in out
        assert 'model_3: MENTHLTH ~ ADDEPEV3_fact + ALCDAY5 + EXERANY2_fact' in out

    def test_make_demo(self, venv, temp_dir, capsys):
        from pipeline import main
        output = temp_dir / 'demo.csv'

        main(['make_demo', '--output', str(output), '--rows', '40'])

        assert output.exists()
        assert 'Demo survey written to' in capsys.readouterr().out

    def test_run_report_from_file(self, venv, survey_csv, capsys):
        from pipeline import main
        main(['run_report', '--input', str(survey_csv), '--no-qa', '--quiet'])

        assert 'REPORT SUMMARY' in capsys.readouterr().out

    def test_pipeline_error_exits(self, venv, temp_dir, capsys):
        """Pipeline errors print a message and exit with status 1."""
        from pipeline import main

        with pytest.raises(SystemExit) as exc_info:
            main(['run_report', '--input', str(temp_dir / 'missing.csv'), '--no-qa'])

        assert exc_info.value.code == 1
        assert 'ERROR' in capsys.readouterr().err
