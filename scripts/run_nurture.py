#!/usr/bin/env python3
"""
Run the lead nurture engine (or a full cycle) for one site, inline.

Usage:
    python scripts/run_nurture.py SITE_ID                 # classify + apply terminal writes
    python scripts/run_nurture.py SITE_ID --dry-run       # classify only, write nothing
    python scripts/run_nurture.py SITE_ID --cycle         # also dispatch follow-up jobs
    python scripts/run_nurture.py SITE_ID --json          # print the raw result
    python scripts/run_nurture.py SITE_ID -v              # log every per-lead decision

Requires: DATABASE_URL set (or defaults to sqlite:///local.db). --cycle also needs Redis.
"""
import sys
import os
import json
import argparse

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from nurture.config import CADENCE_STAGES
from nurture.logging_config import configure_logging
from nurture.sequencing.cycle import run_nurture_cycle
from nurture.sequencing.engine import get_nurture_leads


def build_parser():
    parser = argparse.ArgumentParser(description='Run the lead nurture engine for a site')
    parser.add_argument('site_id', help='Site (tenant) to scan')
    parser.add_argument('--days-without-reply', type=float, default=None,
                        help='Days of silence before the first reminder (default 7)')
    parser.add_argument('--limit', type=int, default=None,
                        help='Cap on the flattened legacy leads list (default 30)')
    parser.add_argument('--max-per-stage', type=int, default=None,
                        help='Cap on each stage bucket (default 10)')
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument('--dry-run', action='store_true', help='Do not apply terminal writes')
    mode.add_argument('--cycle', action='store_true', help='Run a full cycle and dispatch follow-ups')
    parser.add_argument('--json', action='store_true', help='Print the raw JSON result')
    parser.add_argument('-v', '--verbose', action='store_true', help='Log every per-lead decision')
    return parser


def print_summary(result):
    if 'leadsByStage' in result:
        print(f"Site run success={result['success']}  threshold={result['thresholdDate']}")
        print(f"  considered={result['considered']}  checked={result['totalChecked']}  "
              f"excluded_by_assignee={result['excludedByAssignee']}")
        for stage in CADENCE_STAGES:
            leads = result['leadsByStage'][stage]
            print(f"  {stage:<14} {len(leads):>3}  {', '.join(l['id'] for l in leads)}")
        print(f"  stats={result['stats']}  terminal={result['terminal']}")
    else:
        print(f"Cycle {result['runId']} success={result['success']}  "
              f"follow-ups {result['followUpsStarted']}/{result['qualifiedLeads']}  "
              f"took {result['executionTime']}")
        print(f"  stats={result['stats']}  terminal={result['terminal']}")
    for err in result.get('errors') or []:
        print(f"  ERROR {err}")


def main(argv=None):
    args = build_parser().parse_args(argv)
    configure_logging(level='DEBUG' if args.verbose else None)

    if args.cycle:
        result = run_nurture_cycle(
            args.site_id,
            days_without_reply=args.days_without_reply,
            max_leads=args.limit,
            max_leads_per_stage=args.max_per_stage,
        )
    else:
        result = get_nurture_leads(
            args.site_id,
            days_without_reply=args.days_without_reply,
            limit=args.limit,
            max_leads_per_stage=args.max_per_stage,
            dry_run=args.dry_run,
        )

    if args.json:
        print(json.dumps(result, indent=2, default=str))
    else:
        print_summary(result)
    return 0 if result['success'] else 1


if __name__ == '__main__':
    sys.exit(main())
