"""
Runs the FBR sandbox checks from the command line.

Validates the sample invoice of each scenario against the configured FBR
sandbox (FBR_BASE_URL / FBR_SANDBOX_TOKEN from the environment or .env).
Nothing is posted unless --flow is given.

Usage:
    python scripts/fbr_scenario_sweep.py
    python scripts/fbr_scenario_sweep.py --scenarios SN001 SN008 --json
    python scripts/fbr_scenario_sweep.py --setup
    python scripts/fbr_scenario_sweep.py --flow --scenarios SN026
"""

import argparse
import asyncio
import json
import sys

from fbr_invoicing.config import settings
from fbr_invoicing.modules.fbr import get_fbr_client
from fbr_invoicing.modules.fbr.harness import SWEEP_SCENARIOS, run_flow_check, run_setup_check, sweep_scenarios
from fbr_invoicing.utils.observability import setup_logging


async def _run(args) -> dict:
    client = get_fbr_client()
    if args.setup:
        return await run_setup_check(client)
    if args.flow:
        flows = {scenario: await run_flow_check(client, scenario) for scenario in args.scenarios}
        return {"success": all(r["success"] for r in flows.values()), "results": flows}
    return await sweep_scenarios(client, args.scenarios)


def _print_summary(summary: dict):
    if "results" not in summary or not isinstance(summary["results"], list):
        print(json.dumps(summary, indent=2, default=str))
        return
    for row in summary["results"]:
        mark = "OK  " if row["success"] else "FAIL"
        detail = row.get("saleType") or ""
        if row.get("error"):
            detail = f"{detail} | {row['error']}" if detail else row["error"]
        print(f"  {mark} {row['scenario']}  {row.get('status') or '-'}  {detail}")
    print(f"\n{summary['successCount']}/{summary['totalScenarios']} scenarios passed validation")


def main():
    parser = argparse.ArgumentParser(description='Validate FBR sample invoices against the sandbox')
    parser.add_argument('--scenarios', nargs='+', default=SWEEP_SCENARIOS, metavar='SNxxx',
                        help='Scenario ids to check (default: the standard sweep set)')
    parser.add_argument('--setup', action='store_true', help='Only check configuration and connectivity')
    parser.add_argument('--flow', action='store_true', help='Validate AND post the sample invoices')
    parser.add_argument('--json', action='store_true', help='Print the raw JSON summary')
    args = parser.parse_args()

    setup_logging(settings.LOG_LEVEL, settings.LOG_FORMAT)
    summary = asyncio.run(_run(args))

    if args.json:
        print(json.dumps(summary, indent=2, default=str))
    else:
        _print_summary(summary)

    sys.exit(0 if summary.get("success", summary.get("successCount") == summary.get("totalScenarios")) else 1)


if __name__ == '__main__':
    main()
