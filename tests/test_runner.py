import asyncio

import pytest

import runner
from conftest import FakePage
from constants import BASE_URL, DEFAULT_TEST_TIMEOUT, VIEWPORT
from page_analysis import PageAnalyzer


class FakeTracing:
    def __init__(self, stop_error=None):
        self.started = False
        self.stopped_path = None
        self.stop_error = stop_error

    async def start(self, **kwargs):
        self.started = True

    async def stop(self, path=None):
        if self.stop_error:
            raise self.stop_error
        self.stopped_path = path


class FakeContext:
    def __init__(self, options, stop_error=None):
        self.options = options
        self.page = FakePage()
        self.tracing = FakeTracing(stop_error)
        self.navigation_timeout = None
        self.closed = False

    def set_default_navigation_timeout(self, timeout):
        self.navigation_timeout = timeout

    async def new_page(self):
        return self.page

    async def close(self):
        self.closed = True


class FakeBrowser:
    def __init__(self, stop_error=None):
        self.contexts = []
        self.stop_error = stop_error
        self.launch_options = {}
        self.closed = False

    async def new_context(self, **options):
        context = FakeContext(options, self.stop_error)
        self.contexts.append(context)
        return context

    async def close(self):
        self.closed = True


class FakeChromium:
    def __init__(self, browser):
        self.browser = browser
        self.launches = 0

    async def launch(self, **options):
        self.launches += 1
        if self.launches == 1:
            return FakeBrowser()
        self.browser.launch_options = options
        return self.browser


class FakePlaywright:
    def __init__(self, browser):
        self.chromium = FakeChromium(browser)

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False


def use_browser(monkeypatch, browser):
    playwright = FakePlaywright(browser)
    monkeypatch.setattr(runner, "async_playwright", lambda: playwright)
    return playwright


def register(monkeypatch, run, **overrides):
    scenario = {
        "title": "Stub scenario",
        "suite": "Stub suite",
        "run": run,
        "expected_failure": False,
        "demo": False,
        "supports_mock": True,
    }
    scenario.update(overrides)
    monkeypatch.setitem(runner.SCENARIOS, "stub", scenario)


def test_default_retries_follow_ci(monkeypatch):
    monkeypatch.delenv("CI", raising=False)
    assert runner.default_retries() == 0

    monkeypatch.setenv("CI", "true")
    assert runner.default_retries() == 2


@pytest.mark.asyncio
async def test_passing_attempt_uses_fresh_context(tmp_path, monkeypatch):
    async def run(ctx):
        ctx.step("only step")

    register(monkeypatch, run)
    browser = FakeBrowser()

    result = await runner.run_attempt(browser, "stub", 0, tmp_path, "https://netreveal", "off",
                                      PageAnalyzer(), False, False)

    context = browser.contexts[0]
    assert result["status"] == "passed"
    assert result["steps"] == ["only step"]
    assert result["screenshot"] == ""
    assert context.options == {"base_url": BASE_URL, "viewport": VIEWPORT, "ignore_https_errors": True}
    assert context.page.default_timeout == DEFAULT_TEST_TIMEOUT
    assert "pageerror" in context.page.listeners
    assert not context.tracing.started
    assert context.closed


@pytest.mark.asyncio
async def test_first_retry_records_trace_video_and_failure_screenshot(tmp_path, monkeypatch):
    async def run(ctx):
        raise RuntimeError("Failed to click main menu button: timeout")

    register(monkeypatch, run)
    browser = FakeBrowser()

    result = await runner.run_attempt(browser, "stub", 1, tmp_path, "https://netreveal", "off",
                                      PageAnalyzer(), False, False)

    context = browser.contexts[0]
    assert result["status"] == "failed"
    assert result["error"] == "Failed to click main menu button: timeout"
    assert result["screenshot"].startswith("screenshots/stub-test_failure_attempt2-")
    assert context.options["record_video_dir"] == str(tmp_path / "videos" / "stub")
    assert context.tracing.started
    assert context.tracing.stopped_path == str(tmp_path / "traces" / "stub-attempt2.zip")


@pytest.mark.asyncio
async def test_scenario_timeout_is_reported(tmp_path, monkeypatch):
    async def hang(ctx):
        await asyncio.Event().wait()

    register(monkeypatch, hang)
    monkeypatch.setattr(runner, "SCENARIO_TIMEOUT", 10)

    result = await runner.run_attempt(FakeBrowser(), "stub", 0, tmp_path, "https://netreveal", "off",
                                      PageAnalyzer(), False, False)

    assert result["status"] == "failed"
    assert result["error"] == "Scenario timed out after 10 ms"


@pytest.mark.asyncio
async def test_each_attempt_starts_without_previous_overrides(tmp_path, monkeypatch):
    seen = []

    async def run(ctx):
        seen.append(dict(ctx.analyzer.overrides))

    register(monkeypatch, run)
    analyzer = PageAnalyzer()
    analyzer.override("agency rule", "#stale")

    await runner.run_attempt(FakeBrowser(), "stub", 0, tmp_path, "https://netreveal", "off", analyzer, False, False)

    assert seen == [{}]


@pytest.mark.asyncio
async def test_trace_save_failure_still_closes_context(tmp_path, monkeypatch):
    async def run(ctx):
        raise RuntimeError("Element not found")

    register(monkeypatch, run)
    browser = FakeBrowser(stop_error=RuntimeError("Target page, context or browser has been closed"))

    result = await runner.run_attempt(browser, "stub", 1, tmp_path, "https://netreveal", "off",
                                      PageAnalyzer(), False, False)

    assert result["status"] == "failed"
    assert "trace" not in result
    assert browser.contexts[0].closed


@pytest.mark.asyncio
async def test_suite_retries_until_first_pass(tmp_path, monkeypatch):
    calls = []

    async def flaky(ctx):
        calls.append(1)
        if len(calls) == 1:
            raise RuntimeError("Failed to click main menu button")

    register(monkeypatch, flaky)
    browser = FakeBrowser()
    playwright = use_browser(monkeypatch, browser)

    results = await runner.run_test_suite(["stub"], tmp_path, retries=2, headless=False)

    entry = results["tests"][0]
    assert (entry["status"], entry["attempts"]) == ("passed", 2)
    assert len(calls) == 2
    assert len(browser.contexts) == 2
    assert playwright.chromium.launches == 2
    assert browser.launch_options["headless"] is False
    assert browser.closed
    assert results["finished_at"]


@pytest.mark.asyncio
async def test_suite_reports_last_failure_after_all_retries(tmp_path, monkeypatch):
    async def run(ctx):
        raise RuntimeError("EU List Validation Failed")

    register(monkeypatch, run)
    browser = FakeBrowser()
    use_browser(monkeypatch, browser)

    results = await runner.run_test_suite(["stub"], tmp_path, retries=1)

    entry = results["tests"][0]
    assert (entry["status"], entry["attempts"]) == ("failed", 2)
    assert entry["error"] == "EU List Validation Failed"
    assert browser.closed


@pytest.mark.asyncio
async def test_suite_negative_retries_still_runs_once(tmp_path, monkeypatch):
    async def run(ctx):
        pass

    register(monkeypatch, run)
    use_browser(monkeypatch, FakeBrowser())

    results = await runner.run_test_suite(["stub"], tmp_path, retries=-1)

    assert results["tests"][0]["attempts"] == 1


@pytest.mark.asyncio
async def test_forced_mock_skips_unsupported_scenarios(tmp_path, monkeypatch):
    async def run(ctx):
        raise AssertionError("should not run")

    register(monkeypatch, run, supports_mock=False)
    browser = FakeBrowser()
    use_browser(monkeypatch, browser)

    results = await runner.run_test_suite(["stub"], tmp_path, retries=0, mock_policy="force")

    entry = results["tests"][0]
    assert (entry["status"], entry["attempts"]) == ("skipped", 0)
    assert browser.contexts == []
    assert results["mock"] == "force"


@pytest.mark.asyncio
async def test_browser_closed_when_a_scenario_crashes_the_runner(tmp_path, monkeypatch):
    async def run(ctx):
        pass

    register(monkeypatch, run)
    browser = FakeBrowser()
    use_browser(monkeypatch, browser)

    async def crash(*args, **kwargs):
        raise RuntimeError("browser disconnected")

    monkeypatch.setattr(runner, "run_attempt", crash)

    with pytest.raises(RuntimeError, match="browser disconnected"):
        await runner.run_test_suite(["stub"], tmp_path, retries=0)
    assert browser.closed
