#!/usr/bin/env python3

import argparse
import asyncio
import os
import sys
from datetime import datetime
from pathlib import Path

from constants import NETREVEAL_URL, OUTPUT_DIR, RESULTS_DIR
from mock_pages import MOCK_POLICIES
from reporting import archive_files, log_to_csv, summarize, write_html_report, write_junit_report, write_results_json
from runner import run_test_suite
from scenarios import SCENARIOS, select_scenarios
from selector_agent import DEFAULT_MODEL_ID, DEFAULT_REGION


DEBUG_SLOW_MO = 250


def non_negative_int(value: str) -> int:
    number = int(value)
    if number < 0:
        raise argparse.ArgumentTypeError(f"must be 0 or greater, got {value}")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="NetReveal Watchlist Manager E2E suite")
    parser.add_argument("--url", default=NETREVEAL_URL, help="NetReveal login URL")
    parser.add_argument("--base-url", help="Alias for --url")
    parser.add_argument("--scenario", action="append", dest="scenarios", help="Scenario key to run (repeatable)")
    parser.add_argument("--grep", help="Only run scenarios whose title or key contains this text")
    parser.add_argument("--include-demo", action="store_true", help="Also run the failure demonstration scenario")
    parser.add_argument("--list", action="store_true", help="List available scenarios and exit")
    parser.add_argument("--retries", type=non_negative_int, help="Retries per scenario (default: 2 when CI is set, else 0)")
    parser.add_argument("--mock", choices=MOCK_POLICIES, default="off",
                        help="Substitute mock pages: never (off), when unreachable (fallback), or always (force)")
    parser.add_argument("--repair", action="store_true", help="Enable agent-in-the-loop selector repair on failures")
    parser.add_argument("--model-id", default=DEFAULT_MODEL_ID)
    parser.add_argument("--region", default=DEFAULT_REGION)
    parser.add_argument("--output-dir", default=OUTPUT_DIR, help="Where run artifacts and the JUnit report are written")
    parser.add_argument("--headed", action="store_true", help="Run the browser headed")
    parser.add_argument("--debug", action="store_true", help="Headed, slowed down, verbose, with the Playwright inspector")
    parser.add_argument("--trace", action="store_true", help="Record a trace for every attempt")
    parser.add_argument("--verbose", action="store_true", help="Print step details and browser console output")
    return parser


def list_scenarios():
    for key, scenario in SCENARIOS.items():
        flags = []
        if scenario["demo"]:
            flags.append("demo")
        if scenario["expected_failure"]:
            flags.append("expected failure")
        if not scenario["supports_mock"]:
            flags.append("no mock")
        suffix = f" [{', '.join(flags)}]" if flags else ""
        print(f"  {key:<28} {scenario['title']}{suffix}")


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    if args.list:
        list_scenarios()
        return 0

    try:
        scenario_keys = select_scenarios(args.scenarios, args.grep, args.include_demo)
    except ValueError as e:
        print(f"✖ {e}")
        return 2
    if not scenario_keys:
        print("⚠️ No scenarios matched the selection")
        return 0

    headless = not (args.headed or args.debug)
    slow_mo = DEBUG_SLOW_MO if args.debug else 0
    verbose = args.verbose or args.debug
    if args.debug:
        os.environ["PWDEBUG"] = "1"

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    output_dir = Path(args.output_dir)
    run_dir = output_dir / f"run_{timestamp}"
    run_dir.mkdir(parents=True, exist_ok=True)
    Path(RESULTS_DIR).mkdir(parents=True, exist_ok=True)

    print(f"🏃 Running {len(scenario_keys)} scenario(s) with Playwright against {args.base_url or args.url}")
    results_json = asyncio.run(run_test_suite(
        scenario_keys=scenario_keys,
        run_dir=run_dir,
        url=args.base_url or args.url,
        headless=headless,
        slow_mo=slow_mo,
        retries=args.retries,
        mock_policy=args.mock,
        repair=args.repair,
        model_id=args.model_id,
        region=args.region,
        trace=args.trace,
        verbose=verbose,
    ))

    artifacts = {"scenarios": scenario_keys}

    results_path = run_dir / "results.json"
    write_results_json(results_json, results_path)
    artifacts["results"] = results_path
    print(f"📊 Results written: {results_path}")

    report_path = run_dir / "report.html"
    write_html_report(results_json, report_path)
    artifacts["report"] = report_path
    print(f"📝 HTML report: {report_path}")

    junit_path = output_dir / "junit-report.xml"
    write_junit_report(results_json, junit_path)
    artifacts["junit"] = junit_path
    print(f"🧾 JUnit report: {junit_path}")

    archive_path = run_dir / "archive.zip"
    archive_files(archive_path, [results_path, report_path, junit_path])
    artifacts["archive"] = archive_path
    print(f"📦 Archive: {archive_path}")

    log_to_csv(output_dir / "run_log.csv", timestamp, artifacts)

    summary = summarize(results_json)
    print(
        f"✅ Done. Total: {summary['total']}, Passed: {summary['passed']}, Failed: {summary['failed']} "
        f"({summary['expected_failures']} expected), Skipped: {summary['skipped']}"
    )
    if summary["unexpected"]:
        print(f"✖ Unexpected results: {', '.join(summary['unexpected'])}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
