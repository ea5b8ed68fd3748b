from constants import NETREVEAL_URL, TEST_DATA
from assertions import assert_link_visible_with_text, assert_text_visible
from helpers import take_screenshot
from login_page import LoginPage
from standard_list_page import StandardListPage
from watchlist_manager_page import WatchlistManagerPage


class ScenarioContext:
    """Everything a scenario needs for one attempt: the page, the analyzer and run options."""

    def __init__(self, page, analyzer, url: str = NETREVEAL_URL, mock_policy: str = "off",
                 screenshots_dir=None, verbose: bool = False):
        self.page = page
        self.analyzer = analyzer
        self.url = url
        self.mock_policy = mock_policy
        self.screenshots_dir = screenshots_dir
        self.verbose = verbose
        self.steps: list[str] = []

    def step(self, name: str) -> None:
        self.steps.append(name)
        print(f"→ Step {len(self.steps)}: {name}")

    def page_kwargs(self) -> dict:
        return {
            "selector_fn": self.analyzer.selector_for,
            "mock_policy": self.mock_policy,
            "screenshots_dir": self.screenshots_dir,
            "verbose": self.verbose,
        }

    async def screenshot(self, test_name: str, name: str) -> None:
        await take_screenshot(self.page, test_name, name, self.screenshots_dir)


async def login_and_verify(ctx: ScenarioContext, test_name: str) -> LoginPage:
    login_page = LoginPage(ctx.page, **ctx.page_kwargs())

    ctx.step("Navigate to NetReveal")
    await login_page.navigate_to_login_page(ctx.url)
    await ctx.analyzer.analyze(ctx.page, "login page")

    ctx.step("Log in")
    await login_page.login()
    if not await login_page.is_logged_in():
        raise AssertionError("User should be logged in")
    await ctx.screenshot(test_name, "after-login")
    await ctx.analyzer.analyze(ctx.page, "authenticated dashboard")
    return login_page


async def run_agency_rule(ctx: ScenarioContext, test_name: str = "WLMAgencyList") -> None:
    """Weighted words rule set must list the 'agency rule' entry."""
    await login_and_verify(ctx, test_name)

    ctx.step("Navigate to Synonyms Rules Manager")
    await ctx.analyzer.analyze(ctx.page, "pre-navigation state")
    watchlist_manager = WatchlistManagerPage(ctx.page, **ctx.page_kwargs())
    await watchlist_manager.navigate_to_synonym_rules_without_assertion()

    ctx.step("Verify agency rule visibility")
    await assert_link_visible_with_text(
        ctx.page,
        ctx.analyzer.selector_for("agency rule"),
        TEST_DATA["EXPECTED_TEXT"],
        test_name,
        description="Agency rule",
        analyzer=ctx.analyzer,
        screenshots_dir=ctx.screenshots_dir,
    )
    await ctx.screenshot(test_name, "agency-rule-visible")


async def run_agency_rule_failure_demo(ctx: ScenarioContext) -> None:
    """Points 'agency rule' at an element that is not the target to exercise the failure report."""
    ctx.analyzer.override("agency rule", 'a:has-text("administrative rule")')
    await run_agency_rule(ctx, test_name="WLMAgencyList-FailureDemo")


async def run_eu_list(ctx: ScenarioContext, test_name: str = "WLMEUList") -> None:
    """EU List search indexes must show 'eu_name'."""
    await login_and_verify(ctx, test_name)

    ctx.step("Navigate to EU List")
    await ctx.analyzer.analyze(ctx.page, "pre-navigation state")
    watchlist_manager = WatchlistManagerPage(ctx.page, **ctx.page_kwargs())
    await watchlist_manager.navigate_to_eu_list_without_assertion()

    ctx.step("Verify eu_name presence in EU List")
    try:
        await assert_text_visible(
            ctx.page,
            ctx.analyzer.selector_for(TEST_DATA["EU_NAME_TEXT"]),
            test_name,
            description="eu_name",
            analyzer=ctx.analyzer,
            screenshots_dir=ctx.screenshots_dir,
        )
    except AssertionError as e:
        if "EU List Validation Failed" in str(e):
            raise
        raise AssertionError(
            f"EU List Validation Failed: The test was unable to verify the presence of "
            f"'{TEST_DATA['EU_NAME_TEXT']}' text. Please check the screenshots and logs for details.\n{e}"
        ) from e
    await ctx.screenshot(test_name, "eu-name-visible")


async def run_eu_list_via_standard_lists(ctx: ScenarioContext, test_name: str = "WLMStandardLists") -> None:
    """Same check as ``run_eu_list`` driven through the Standard Lists page object."""
    await login_and_verify(ctx, test_name)

    ctx.step("Navigate to EU List through Standard Lists and assert eu_name")
    standard_lists = StandardListPage(ctx.page, **ctx.page_kwargs())
    await standard_lists.navigate_to_eu_list_and_assert()
    await ctx.screenshot(test_name, "eu-name-visible")


SCENARIOS = {
    "agency_rule": {
        "title": "Verify agency rule is present in Weighted words rule set",
        "suite": "NetReveal Watchlist Manager Agency List Tests",
        "run": run_agency_rule,
        "expected_failure": False,
        "demo": False,
        "supports_mock": True,
    },
    "eu_list": {
        "title": "Verify eu_name is present in EU List",
        "suite": "NetReveal Watchlist Manager EU List Tests",
        "run": run_eu_list,
        "expected_failure": False,
        "demo": False,
        "supports_mock": True,
    },
    "eu_list_standard_lists": {
        "title": "Verify eu_name is present in EU List via Standard Lists",
        "suite": "NetReveal Watchlist Manager EU List Tests",
        "run": run_eu_list_via_standard_lists,
        "expected_failure": False,
        "demo": False,
        "supports_mock": False,
    },
    "agency_rule_failure_demo": {
        "title": "Verify agency rule is present in Weighted words rule set (failure demonstration)",
        "suite": "NetReveal Watchlist Manager Agency List Tests",
        "run": run_agency_rule_failure_demo,
        "expected_failure": True,
        "demo": True,
        "supports_mock": True,
    },
}


def select_scenarios(names: list[str] | None = None, grep: str | None = None, include_demo: bool = False) -> list[str]:
    """Resolve CLI selection to scenario keys, preserving registry order."""
    if names:
        unknown = [n for n in names if n not in SCENARIOS]
        if unknown:
            raise ValueError(f"Unknown scenario(s): {', '.join(unknown)}. Available: {', '.join(SCENARIOS)}")
    selected = []
    for key, scenario in SCENARIOS.items():
        if names and key not in names:
            continue
        if not names and scenario["demo"] and not include_demo:
            continue
        if grep and grep.lower() not in scenario["title"].lower() and grep.lower() not in key:
            continue
        selected.append(key)
    return selected
