import asyncio
import os
import time
from datetime import datetime
from pathlib import Path

from playwright.async_api import async_playwright

from constants import BASE_URL, CHROMIUM_ARGS, DEFAULT_TEST_TIMEOUT, NAVIGATION_TIMEOUT, NETREVEAL_URL, SCENARIO_TIMEOUT, VIEWPORT
from helpers import sanitize_for_filename, take_screenshot
from login_page import LoginPage
from page_analysis import PageAnalyzer
from scenarios import SCENARIOS, ScenarioContext


def default_retries() -> int:
    return 2 if os.getenv("CI") else 0


async def global_setup(playwright) -> None:
    """Launch and close a headless Chromium once so a broken install fails fast."""
    print("→ Starting global setup...")
    try:
        browser = await playwright.chromium.launch(headless=True)
        await browser.close()
    except Exception as e:
        print(f"✖ Global setup failed: {e}")
        raise
    print("✓ Global setup completed")


def global_teardown() -> None:
    print("→ Starting global teardown...")
    print("✓ Global teardown completed")


def attach_page_listeners(page, verbose: bool = False) -> None:
    if verbose:
        page.on("console", lambda msg: print(f"BROWSER CONSOLE [{msg.type}]: {msg.text}"))
    page.on("pageerror", lambda error: print(f"✖ BROWSER PAGE ERROR: {error}"))


async def run_attempt(browser, key: str, attempt: int, run_dir: Path, url: str, mock_policy: str,
                      analyzer: PageAnalyzer, trace_all: bool, verbose: bool) -> dict:
    scenario = SCENARIOS[key]
    screenshots_dir = run_dir / "screenshots"
    first_retry = attempt == 1
    context_options = {"base_url": BASE_URL, "viewport": VIEWPORT, "ignore_https_errors": True}
    if first_retry:
        context_options["record_video_dir"] = str(run_dir / "videos" / key)
    context = await browser.new_context(**context_options)
    context.set_default_navigation_timeout(NAVIGATION_TIMEOUT)
    if first_retry or trace_all:
        await context.tracing.start(screenshots=True, snapshots=True, sources=False)

    page = await context.new_page()
    page.set_default_timeout(DEFAULT_TEST_TIMEOUT)
    attach_page_listeners(page, verbose)
    analyzer.reset()
    analyzer.overrides.clear()
    ctx = ScenarioContext(page, analyzer, url=url, mock_policy=mock_policy, screenshots_dir=screenshots_dir, verbose=verbose)

    result = {"status": "passed", "error": "", "screenshot": "", "steps": ctx.steps}
    started = time.monotonic()
    try:
        await asyncio.wait_for(scenario["run"](ctx), timeout=SCENARIO_TIMEOUT / 1000)
    except asyncio.TimeoutError:
        result["status"] = "failed"
        result["error"] = f"Scenario timed out after {SCENARIO_TIMEOUT} ms"
    except Exception as e:
        result["status"] = "failed"
        result["error"] = str(e)
    result["duration_ms"] = int((time.monotonic() - started) * 1000)

    if result["status"] == "failed":
        shot = await take_screenshot(page, key, f"test-failure-attempt{attempt + 1}", screenshots_dir)
        if shot:
            print(f"📸 Failure screenshot saved: {shot.name}")
            result["screenshot"] = str(shot.relative_to(run_dir)) if shot.is_relative_to(run_dir) else str(shot)

    print("→ Test cleanup started")
    try:
        await LoginPage(page, mock_policy=mock_policy, verbose=verbose).logout()
        if first_retry or trace_all:
            trace_path = run_dir / "traces" / f"{sanitize_for_filename(key)}-attempt{attempt + 1}.zip"
            trace_path.parent.mkdir(parents=True, exist_ok=True)
            try:
                await context.tracing.stop(path=str(trace_path))
                result["trace"] = str(trace_path)
            except Exception as e:
                print(f"⚠️ Failed to save trace: {e}")
    finally:
        await context.close()
    return result


async def run_test_suite(scenario_keys: list[str], run_dir: Path, url: str = NETREVEAL_URL, headless: bool = True,
                         slow_mo: int = 0, retries: int | None = None, mock_policy: str = "off",
                         repair: bool = False, model_id: str | None = None, region: str | None = None,
                         trace: bool = False, verbose: bool = False) -> dict:
    """Run the selected scenarios sequentially, one fresh browser context per attempt."""
    retries = default_retries() if retries is None else max(retries, 0)
    run_dir.mkdir(parents=True, exist_ok=True)
    (run_dir / "screenshots").mkdir(parents=True, exist_ok=True)

    analyzer_options = {"screenshots_dir": run_dir / "screenshots" / "analysis", "repair": repair, "verbose": verbose}
    if model_id:
        analyzer_options["model_id"] = model_id
    if region:
        analyzer_options["region"] = region
    analyzer = PageAnalyzer(**analyzer_options)

    if verbose and repair:
        print(f"🔧 Repair mode ENABLED (model={analyzer.model_id}, region={analyzer.region})")

    results = {
        "started_at": datetime.now().isoformat(timespec="seconds"),
        "url": url,
        "mock": mock_policy,
        "tests": [],
    }

    async with async_playwright() as p:
        await global_setup(p)
        browser = await p.chromium.launch(headless=headless, slow_mo=slow_mo, args=CHROMIUM_ARGS)
        try:
            for key in scenario_keys:
                scenario = SCENARIOS[key]
                print(f"\n🏃 {scenario['suite']} › {scenario['title']}")
                entry = {
                    "key": key,
                    "name": scenario["title"],
                    "suite": scenario["suite"],
                    "expected_failure": scenario["expected_failure"],
                }

                if mock_policy == "force" and not scenario["supports_mock"]:
                    entry.update({"status": "skipped", "attempts": 0, "steps": [], "error": "Not supported in mock mode"})
                    print("↷ Skipped: not supported in mock mode")
                    results["tests"].append(entry)
                    continue

                attempt_result = {}
                attempts = 0
                for attempt in range(retries + 1):
                    attempts += 1
                    if attempt:
                        print(f"↻ Retry {attempt}/{retries}")
                    attempt_result = await run_attempt(
                        browser, key, attempt, run_dir, url, mock_policy, analyzer, trace, verbose
                    )
                    if attempt_result["status"] == "passed":
                        break
                entry.update(attempt_result)
                entry["attempts"] = attempts

                if entry["status"] == "passed":
                    print(f"✓ Passed: {entry['name']} ({entry['duration_ms']} ms)")
                else:
                    err_excerpt = entry["error"].splitlines()[0] if entry["error"] else ""
                    marker = " (expected)" if entry["expected_failure"] else ""
                    print(f"✖ Failed{marker}: {entry['name']}: {err_excerpt}")
                results["tests"].append(entry)
        finally:
            await browser.close()
            global_teardown()

    results["finished_at"] = datetime.now().isoformat(timespec="seconds")
    return results
