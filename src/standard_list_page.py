from datetime import datetime
from urllib.parse import quote

from constants import ACTION_TIMEOUT, NAVIGATION, TEST_DATA, TIMEOUTS, xpath_id
from helpers import BasePage, first_visible, is_visible, retry, safe_click, settle, wait_for_element


CLICK_BY_EXACT_TEXT = """
(text) => {
    const match = Array.from(document.querySelectorAll('*'))
        .find(el => el.textContent && el.textContent.trim() === text);
    if (match) { match.click(); return true; }
    return false;
}
"""


class StandardListPage(BasePage):
    """Lists and Standard Lists sections of the Watchlist Manager.

    Every navigation step tries an ordered set of selector strategies and
    checks that the UI actually moved on before declaring success.
    """

    def __init__(self, page, selector_fn=None, mock_policy: str = "off", screenshots_dir=None, verbose: bool = False):
        super().__init__(page, selector_fn, mock_policy, screenshots_dir, verbose)
        wm = NAVIGATION["WATCHLIST_MANAGER"]
        lists = NAVIGATION["LISTS"]
        standard = NAVIGATION["STANDARD_LISTS"]
        eu_list = TEST_DATA["EU_LIST_NAME"]
        eu_name = TEST_DATA["EU_NAME_TEXT"]

        self.main_menu_button = page.locator(self.get_selector("main menu", xpath_id("main_menu")))
        self.watchlist_manager_menu = page.locator(self.get_selector(
            "watchlist manager menu",
            f'{xpath_id("watchlist_manager")} | //*[@role="menuitem" and contains(., "{wm}")]',
        )).first
        self.watchlist_manager_expanded = page.locator(
            f'[role="menuitem"][expanded="true"]:has-text("{wm}"), [role="menuitem"][aria-expanded="true"]:has-text("{wm}")'
        ).first
        self.lists_menu = page.locator(self.get_selector("lists menu", f'[role="menuitem"]:has-text("{lists}")')).first
        self.standard_lists_menu = page.locator(
            self.get_selector("standard lists menu", f'[role="menuitem"]:has-text("{standard}")')
        ).first
        self.eu_list_link = page.locator(self.get_selector("eu list", f'a:has-text("{eu_list}")')).first
        self.eu_name_text = page.locator(self.get_selector("eu_name", f'text="{eu_name}"')).first
        self.debug_dir = None

    async def _shot(self, name: str) -> None:
        if self.debug_dir is not None:
            await self.screenshot(f"{self.debug_dir}-{name}")
        elif self.verbose:
            await self.screenshot(name)

    async def click_main_menu(self) -> None:
        try:
            if await is_visible(self.watchlist_manager_menu):
                self.log("→ Watchlist Manager already visible, skipping main menu click")
                return
            await wait_for_element(self.main_menu_button, TIMEOUTS["MEDIUM"])
            await safe_click(self.main_menu_button)
            await self.page.wait_for_timeout(500)
            if not await is_visible(self.watchlist_manager_menu):
                self.log("→ Watchlist Manager not visible after clicking main menu, clicking again")
                await safe_click(self.main_menu_button)
            self.log("→ Main menu button clicked")
        except Exception as e:
            print(f"✖ Failed to click main menu button: {e}")
            raise RuntimeError(f"Failed to click main menu button: {e}") from e

    async def navigate_to_watchlist_manager(self) -> None:
        try:
            await safe_click(self.watchlist_manager_menu)
            self.log("→ Navigated to Watchlist Manager")
        except Exception as e:
            print(f"✖ Failed to navigate to Watchlist Manager: {e}")
            raise RuntimeError(f"Failed to navigate to Watchlist Manager: {e}") from e

    async def expand_watchlist_manager(self) -> None:
        if await is_visible(self.watchlist_manager_expanded):
            return
        self.log("→ Watchlist Manager not expanded, expanding it first")

        async def expand():
            await safe_click(self.watchlist_manager_menu)
            await self.page.wait_for_timeout(1000)
            if not await is_visible(self.watchlist_manager_expanded):
                raise RuntimeError("Watchlist Manager menu not expanded after click")

        await retry(expand, 3, 1000)

    async def navigate_to_lists(self) -> None:
        lists = NAVIGATION["LISTS"]
        try:
            if "list" in self.page.url.lower() and await is_visible(self.standard_lists_menu):
                self.log("→ Already on Lists page, skipping navigation")
                return

            await self.expand_watchlist_manager()

            strategies = [
                lambda: self.lists_menu,
                lambda: self.page.locator(f'text="{lists}"').first,
                lambda: self.page.locator(f'[expanded="true"] [role="menuitem"]:has-text("{lists}")').first,
                lambda: self.page.locator(f':text("{lists}")').first,
                lambda: self.page.locator(f'li:has-text("{lists}")').first,
            ]
            for i, strategy in enumerate(strategies):
                _, locator = await first_visible([strategy], self.verbose, "Lists menu")
                if locator is None:
                    continue
                try:
                    await safe_click(locator)
                    await settle(self.page, TIMEOUTS["SHORT"], self.verbose)
                    await self.page.wait_for_timeout(500)
                except Exception as e:
                    self.log(f"→ Lists strategy {i + 1} failed: {e}")
                    continue
                if await is_visible(self.standard_lists_menu):
                    self.log(f"✓ Clicked Lists using strategy {i + 1}")
                    return
                self.log(f"→ Lists strategy {i + 1} clicked but Standard Lists not visible")
            raise RuntimeError("All Lists menu click strategies failed")
        except Exception as e:
            print(f"✖ Failed to navigate to Lists: {e}")
            raise RuntimeError(f"Failed to navigate to Lists: {e}") from e

    async def navigate_to_standard_lists(self) -> None:
        standard = NAVIGATION["STANDARD_LISTS"]
        try:
            current_url = self.page.url
            lowered = current_url.lower()
            if "standard" in lowered and "list" in lowered and await is_visible(self.eu_list_link):
                self.log("→ EU List already visible, already on Standard Lists page")
                return

            strategies = [
                lambda: self.standard_lists_menu,
                lambda: self.page.locator(f'text="{standard}"').first,
                lambda: self.page.locator(f'[role="menu"] [role="menuitem"]:has-text("{standard}")').first,
                lambda: self.page.locator(f':text("{standard}")').first,
                lambda: self.page.locator(f'li:has-text("{standard}")').first,
            ]
            for i, strategy in enumerate(strategies):
                _, locator = await first_visible([strategy], self.verbose, "Standard Lists menu")
                if locator is None:
                    continue
                try:
                    await self._shot("before-standard-lists-click")
                    await safe_click(locator)
                    await settle(self.page, TIMEOUTS["MEDIUM"], self.verbose)
                    await self.page.wait_for_timeout(1000)
                    await self._shot("after-standard-lists-click")
                except Exception as e:
                    self.log(f"→ Standard Lists strategy {i + 1} failed: {e}")
                    continue
                if await is_visible(self.eu_list_link) or self.page.url != current_url:
                    self.log(f"✓ Clicked Standard Lists using strategy {i + 1}")
                    return
                self.log(f"→ Standard Lists strategy {i + 1} clicked but EU List not visible and URL unchanged")
            raise RuntimeError("All Standard Lists menu click strategies failed")
        except Exception as e:
            print(f"✖ Failed to navigate to Standard Lists: {e}")
            raise RuntimeError(f"Failed to navigate to Standard Lists: {e}") from e

    async def click_eu_list(self) -> None:
        eu_list = TEST_DATA["EU_LIST_NAME"]
        try:
            await self._shot("before-eu-list-click")
            if await is_visible(self.eu_list_link):
                await safe_click(self.eu_list_link, timeout=TIMEOUTS["LONG"])
            else:
                self.log("→ EU List link not immediately visible, trying alternate strategies")
                strategies = [
                    lambda: self.page.locator(f'a:text-is("{eu_list}")').first,
                    lambda: self.page.locator(f'a:has-text("{eu_list}")').first,
                    lambda: self.page.locator(f':text-is("{eu_list}")').first,
                    lambda: self.page.locator(f':has-text("{eu_list}")').first,
                    lambda: self.page.locator(f'td:has-text("{eu_list}")').first,
                    lambda: self.page.locator('a[href*="eu_list"], a[href*="eulist"]').first,
                ]
                index, locator = await first_visible(strategies, self.verbose, "EU List")
                if locator is None:
                    await self.screenshot("eu-list-not-found")
                    html = await self.page.content()
                    print(f"→ Page HTML: {html[:500]}...")
                    raise RuntimeError("All EU List click strategies failed")
                self.log(f"→ EU List found with strategy {index + 1} at {await locator.bounding_box()}")
                await locator.scroll_into_view_if_needed()
                await safe_click(locator, timeout=TIMEOUTS["LONG"])

            await settle(self.page, TIMEOUTS["MEDIUM"], self.verbose)
            await self.page.wait_for_timeout(1000)
            await self._shot("after-eu-list-click")
            self.log("→ Clicked EU List link")
        except Exception as e:
            print(f"✖ Failed to click EU List link: {e}")
            raise RuntimeError(f"Failed to click EU List link: {e}") from e

    async def assert_eu_name_text_visible(self) -> None:
        eu_name = TEST_DATA["EU_NAME_TEXT"]
        try:
            if await is_visible(self.eu_name_text):
                await self.eu_name_text.wait_for(state="visible", timeout=TIMEOUTS["MEDIUM"])
                print(f"✓ '{eu_name}' text is present and visible")
                return

            self.log(f"→ '{eu_name}' not immediately visible, trying alternate selectors")
            alternatives = [
                self.page.locator(f'text="{eu_name}"').first,
                self.page.locator(f':has-text("{eu_name}")').first,
                self.page.locator(f'[id*="{eu_name}"]').first,
                self.page.locator(f"text={eu_name}").first,
                self.page.locator(f'td:has-text("{eu_name}")').first,
            ]
            index, locator = await first_visible(alternatives, self.verbose, eu_name)
            if locator is None:
                section = self.page.locator(':has-text("Search Indexes")').first
                if not await is_visible(section):
                    raise AssertionError(f"Could not find Search Indexes section or {eu_name} text")
                self.log("→ Found Search Indexes section, looking inside the Index Name column")
                locator = section.locator(':has-text("Index Name")').first.locator(f':has-text("{eu_name}")').first
            await locator.wait_for(state="visible", timeout=TIMEOUTS["MEDIUM"])
            print(f"✓ '{eu_name}' text is present and visible")
        except Exception as e:
            print(f"✖ Assertion failed: {eu_name} text is not visible: {e}")
            raise AssertionError(f"Assertion failed: {eu_name} text is not visible: {e}") from e

    async def _click_text_with_script(self, text: str) -> bool:
        try:
            clicked = await self.page.evaluate(CLICK_BY_EXACT_TEXT, text)
        except Exception as e:
            self.log(f"→ Script click on '{text}' failed: {e}")
            return False
        if clicked:
            await self.page.wait_for_timeout(2000)
        return bool(clicked)

    async def _navigate_through_menu(self) -> None:
        await self.click_main_menu()
        await self._shot("after-main-menu-click")
        await self.page.wait_for_timeout(1000)

        if not await is_visible(self.watchlist_manager_menu):
            await self._shot("no-watchlist-manager-visible")
            await self.main_menu_button.click(force=True)
            await self.page.wait_for_timeout(2000)
        await self.expand_watchlist_manager()
        await self._shot("after-watchlist-manager-expanded")

        try:
            await self.navigate_to_lists()
            await self._shot("after-lists-navigation")
            await self.page.wait_for_timeout(1000)
        except Exception as e:
            print(f"⚠️ Lists navigation failed, trying script click: {e}")
            await self._click_text_with_script(NAVIGATION["LISTS"])

        try:
            await self.navigate_to_standard_lists()
            await self._shot("after-standard-lists")
        except Exception as e:
            print(f"⚠️ Standard Lists navigation failed, trying script click: {e}")
            await self._click_text_with_script(NAVIGATION["STANDARD_LISTS"])

        await self.click_eu_list()

    async def _navigate_directly(self) -> None:
        eu_list = TEST_DATA["EU_LIST_NAME"]
        links = [
            self.page.locator(f'a:has-text("{eu_list}")').first,
            self.page.locator('a[href*="eu_list"], a[href*="eulist"]').first,
        ]
        index, link = await first_visible(links, self.verbose, "EU List direct link")
        if link is not None:
            await link.scroll_into_view_if_needed()
            await link.click()
            await settle(self.page, TIMEOUTS["SHORT"], self.verbose)
            return

        current_url = self.page.url
        if "netreveal" in current_url or "watchlist" in current_url:
            eu_list_url = f"{current_url.split('?')[0]}?section=wlm&view=list&list={quote(eu_list)}"
            self.log(f"→ Trying direct URL: {eu_list_url}")
            await self.page.goto(eu_list_url, timeout=ACTION_TIMEOUT)
            body = await self.page.text_content("body") or ""
            if eu_list in body or TEST_DATA["EU_NAME_TEXT"] in body:
                return
        raise RuntimeError("Could not find direct link or construct valid URL for EU List")

    async def _navigate_by_text_walk(self) -> None:
        labels = ["Menu", NAVIGATION["WATCHLIST_MANAGER"], NAVIGATION["LISTS"], NAVIGATION["STANDARD_LISTS"], TEST_DATA["EU_LIST_NAME"]]
        for label in labels:
            index, locator = await first_visible([
                lambda label=label: self.page.locator(f'[role="menuitem"]:has-text("{label}")').first,
                lambda label=label: self.page.locator(f'a:has-text("{label}"), button:has-text("{label}")').first,
                lambda label=label: self.page.locator(f'li:has-text("{label}"), span:has-text("{label}")').first,
            ], self.verbose, label)
            if locator is None:
                self.log(f"→ Text walk could not find '{label}'")
                continue
            await locator.click()
            await self.page.wait_for_timeout(500)
        await self.page.wait_for_timeout(3000)
        if not await is_visible(self.page.locator(f'text="{TEST_DATA["EU_NAME_TEXT"]}"').first):
            raise RuntimeError("Full DOM search did not successfully navigate to EU List")

    async def navigate_to_eu_list_without_assertion(self) -> None:
        self.debug_dir = f"eu-list-nav-debug-{int(datetime.now().timestamp() * 1000)}"
        strategies = [
            ("menu navigation", self._navigate_through_menu),
            ("direct navigation", self._navigate_directly),
            ("text walk", self._navigate_by_text_walk),
        ]
        last_error = None
        try:
            for name, strategy in strategies:
                try:
                    self.log(f"→ EU List strategy: {name}")
                    await strategy()
                    print(f"✓ Navigated to EU List via {name}")
                    return
                except Exception as e:
                    last_error = e
                    print(f"✖ EU List strategy '{name}' failed: {e}")
                    await self.screenshot(f"{name}-failure")
            await self.screenshot("all-strategies-failed")
            raise RuntimeError(f"All navigation strategies to EU List failed: {last_error}")
        finally:
            self.debug_dir = None

    async def navigate_to_eu_list_and_assert(self) -> None:
        try:
            await self.navigate_to_eu_list_without_assertion()
            await self.assert_eu_name_text_visible()
        except Exception as e:
            print(f"✖ Navigation and assertion sequence failed: {e}")
            raise RuntimeError(f"Navigation and assertion sequence failed: {e}") from e
