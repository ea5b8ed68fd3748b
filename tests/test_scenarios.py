import pytest
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from assertions import ElementReportError
from conftest import FakePage
from mock_pages import MOCK_DASHBOARD_HTML
from page_analysis import PageAnalyzer
from scenarios import (
    SCENARIOS,
    ScenarioContext,
    run_agency_rule,
    run_agency_rule_failure_demo,
    run_eu_list,
    select_scenarios,
)

LOGIN_URL = "https://10.222.2.239:8443/netreveal/login.do"


def mock_context(tmp_path, page=None, mock_policy="force"):
    page = page or FakePage()
    analyzer = PageAnalyzer(screenshots_dir=tmp_path / "analysis")
    return ScenarioContext(page, analyzer, url=LOGIN_URL, mock_policy=mock_policy, screenshots_dir=tmp_path)


def test_default_selection_excludes_demo():
    assert select_scenarios() == ["agency_rule", "eu_list", "eu_list_standard_lists"]


def test_include_demo_selects_everything():
    assert select_scenarios(include_demo=True) == list(SCENARIOS)


def test_demo_runs_when_named():
    assert select_scenarios(["agency_rule_failure_demo"]) == ["agency_rule_failure_demo"]


def test_grep_matches_titles():
    assert select_scenarios(grep="eu_name") == ["eu_list", "eu_list_standard_lists"]
    assert select_scenarios(grep="Weighted", include_demo=True) == ["agency_rule", "agency_rule_failure_demo"]


def test_unknown_scenario_rejected():
    with pytest.raises(ValueError, match="Unknown scenario"):
        select_scenarios(["agency_rule", "nope"])


def test_only_demo_is_expected_to_fail():
    assert [key for key, scenario in SCENARIOS.items() if scenario["expected_failure"]] == ["agency_rule_failure_demo"]


def test_context_wires_analyzer_into_page_objects(tmp_path):
    ctx = mock_context(tmp_path)
    ctx.step("Navigate to NetReveal")

    kwargs = ctx.page_kwargs()

    assert ctx.steps == ["Navigate to NetReveal"]
    assert kwargs["selector_fn"] == ctx.analyzer.selector_for
    assert kwargs["mock_policy"] == "force"


@pytest.mark.asyncio
async def test_agency_rule_passes_against_mock_pages(tmp_path):
    ctx = mock_context(tmp_path)

    await run_agency_rule(ctx)

    assert ctx.page.html == MOCK_DASHBOARD_HTML
    assert ctx.steps == [
        "Navigate to NetReveal",
        "Log in",
        "Navigate to Synonyms Rules Manager",
        "Verify agency rule visibility",
    ]
    assert ctx.page.clicks[-1] == 'a:has-text("Weighted words rule set")'


@pytest.mark.asyncio
async def test_eu_list_passes_against_mock_pages(tmp_path):
    ctx = mock_context(tmp_path)

    await run_eu_list(ctx)

    assert ctx.steps[-1] == "Verify eu_name presence in EU List"


@pytest.mark.asyncio
async def test_failure_demo_produces_element_report(tmp_path):
    ctx = mock_context(tmp_path)

    with pytest.raises(ElementReportError, match="ELEMENT NOT FOUND"):
        await run_agency_rule_failure_demo(ctx)


@pytest.mark.asyncio
async def test_eu_list_failure_is_reported_as_validation_failure(tmp_path, monkeypatch):
    page = FakePage(html=MOCK_DASHBOARD_HTML.replace("eu_name", "eu_nickname"))
    ctx = mock_context(tmp_path, page)
    ctx.analyzer.override("eu_name", "#missing-eu-name")

    async def already_logged_in(ctx, test_name):
        return None

    monkeypatch.setattr("scenarios.login_and_verify", already_logged_in)
    with pytest.raises(AssertionError, match="EU List Validation Failed"):
        await run_eu_list(ctx)


@pytest.mark.asyncio
async def test_unreachable_server_fails_without_mocking(tmp_path):
    page = FakePage()
    page.goto_error = PlaywrightTimeoutError("net::ERR_CONNECTION_REFUSED")
    ctx = mock_context(tmp_path, page, mock_policy="off")

    with pytest.raises(RuntimeError, match="Failed to navigate to login page"):
        await run_eu_list(ctx)
    assert ctx.steps == ["Navigate to NetReveal"]
