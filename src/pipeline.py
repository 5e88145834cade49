#!/usr/bin/env python3
"""
Module: pipeline.py
Purpose: Main orchestration CLI for the BRFSS mental-health report.

Commands
--------
run_report : Load, clean, trim, describe and fit the nested models
    Options: --input, --demo, --no-qa, --quiet
make_demo : Write a synthetic survey extract
    Options: --output, --rows, --seed
list_models : List the model specifications and their formulas
check_config : Validate configuration settings

Usage
-----
    python src/pipeline.py run_report --input data_raw/brfss_extract.csv
    python src/pipeline.py make_demo --rows 1000

Notes
-----
Requires activation of project virtual environment before running.
"""
from __future__ import annotations

import os
import sys
import argparse
from pathlib import Path

# Add src directory for imports
sys.path.insert(0, str(Path(__file__).parent))

from errors import SurveyPipelineError


def ensure_env():
    """Verify virtual environment is activated."""
    venv = os.getenv('VIRTUAL_ENV')
    if not venv or not venv.endswith('/.venv'):
        print(
            'ERROR: Please activate project .venv (source .venv/bin/activate) before running.',
            file=sys.stderr
        )
        sys.exit(1)


def parse_args(argv: list[str] = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    p = argparse.ArgumentParser(
        description='BRFSS Mental Health Report Pipeline',
        formatter_class=argparse.RawDescriptionHelpFormatter
    )
    sub = p.add_subparsers(dest='cmd', required=True)

    p_run = sub.add_parser('run_report', help='Run the full analysis')
    p_run.add_argument(
        '--input', '-i',
        default=None,
        help='Survey CSV (default: data_raw/brfss_extract.csv)'
    )
    p_run.add_argument(
        '--demo',
        action='store_true',
        help='Use a synthetic survey instead of reading a file'
    )
    p_run.add_argument(
        '--no-qa',
        dest='qa',
        action='store_false',
        help='Skip writing QA reports'
    )
    p_run.add_argument(
        '--quiet', '-q',
        dest='verbose',
        action='store_false',
        help='Print summaries only'
    )

    p_demo = sub.add_parser('make_demo', help='Write a synthetic survey extract')
    p_demo.add_argument(
        '--output', '-o',
        default=None,
        help='Output CSV (default: data_raw/brfss_extract.csv)'
    )
    p_demo.add_argument(
        '--rows', '-n',
        type=int,
        default=None,
        help='Number of respondents (default: DEMO_ROWS)'
    )
    p_demo.add_argument(
        '--seed',
        type=int,
        default=None,
        help='Random seed (default: DEMO_SEED)'
    )

    sub.add_parser('list_models', help='List model specifications')
    sub.add_parser('check_config', help='Validate configuration settings')

    return p.parse_args(argv)


def main(argv: list[str] = None):
    """Main entry point."""
    ensure_env()
    args = parse_args(argv)

    try:
        if args.cmd == 'run_report':
            from stages import s05_report
            s05_report.main(
                input_path=Path(args.input) if args.input else None,
                use_demo=args.demo,
                verbose=args.verbose,
                qa=args.qa
            )

        elif args.cmd == 'make_demo':
            from config import DEMO_ROWS, DEMO_SEED
            from stages.s00_load import write_demo_survey
            path = write_demo_survey(
                args.output,
                n=args.rows if args.rows is not None else DEMO_ROWS,
                seed=args.seed if args.seed is not None else DEMO_SEED
            )
            print(f"Demo survey written to: {path}")

        elif args.cmd == 'list_models':
            from stages.s04_models import load_model_specs
            from analysis import spec_to_formula
            for num, spec in enumerate(load_model_specs(), start=1):
                print(f"  {num}. {spec['name']}: {spec_to_formula(spec)}")
                if spec.get('description'):
                    print(f"     {spec['description']}")

        elif args.cmd == 'check_config':
            from config import validate_config
            from analysis import get_engine
            validate_config()
            available, message = get_engine().validate_installation()
            print(f"Engine: {message}")
            if not available:
                sys.exit(1)
            print("Configuration valid.")

    except (SurveyPipelineError, ValueError) as e:
        print(f"\nERROR: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == '__main__':
    main()
