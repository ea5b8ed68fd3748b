"""In-memory stand-ins for Playwright pages and locators.

Selectors registered with ``FakePage.add`` resolve exactly. Once HTML has been
loaded (``set_content`` or a routed ``goto``), id, ``text=``, ``:has-text()``,
attribute, class and bare tag selectors also resolve against that markup.
"""

import asyncio
import re

import pytest
from playwright.async_api import TimeoutError as PlaywrightTimeoutError


ID_SELECTOR = re.compile(r'^(?:#([\w-]+)|//\*\[@id="([^"]+)"\])$')
TEXT_SELECTOR = re.compile(r'^text="?(.+?)"?$')
HAS_TEXT = re.compile(r':(?:has-text|text-is|text)\("([^"]+)"\)')
ATTRIBUTE_SELECTOR = re.compile(r'^\[([\w-]+)="([^"]+)"\]$')
CLASS_SELECTOR = re.compile(r"^\.([\w-]+)$")
TAG_SELECTOR = re.compile(r"^[a-z][a-z0-9]*$")


class FakeElement:
    def __init__(self, text: str = "", visible: bool = True, enabled: bool = True, on_click=None):
        self.text = text
        self.visible = visible
        self.enabled = enabled
        self.on_click = on_click
        self.clicks = 0
        self.value = ""

    @property
    def box(self):
        return {"x": 0, "y": 0, "width": 120, "height": 20} if self.visible else None


class FakeLocator:
    def __init__(self, page: "FakePage", selector: str, nth: int | None = None):
        self.page = page
        self.selector = selector
        self.nth = nth

    def _elements(self) -> list[FakeElement]:
        found = self.page.resolve(self.selector)
        if self.nth is not None:
            return found[self.nth:self.nth + 1]
        return found

    def _require(self) -> FakeElement:
        found = self._elements()
        if not found:
            raise PlaywrightTimeoutError(f"Timeout exceeded waiting for locator('{self.selector}')")
        return found[0]

    @property
    def first(self) -> "FakeLocator":
        return FakeLocator(self.page, self.selector, 0)

    def locator(self, selector: str) -> "FakeLocator":
        return FakeLocator(self.page, f"{self.selector} >> {selector}")

    async def count(self) -> int:
        return len(self._elements())

    async def is_visible(self) -> bool:
        found = self._elements()
        return bool(found) and found[0].visible

    async def is_enabled(self) -> bool:
        found = self._elements()
        return bool(found) and found[0].enabled

    async def wait_for(self, state: str = "visible", timeout: int | None = None) -> None:
        element = self._require()
        if state == "visible" and not element.visible:
            raise PlaywrightTimeoutError(f"Timeout {timeout}ms exceeded: locator('{self.selector}') is hidden")

    async def click(self, force: bool = False, timeout: int | None = None) -> None:
        element = self._require()
        if not element.visible and not force:
            raise PlaywrightTimeoutError(f"locator('{self.selector}') is not visible")
        self.page.clicks.append(self.selector)
        element.clicks += 1
        if element.on_click:
            element.on_click(self.page)

    async def fill(self, value: str, timeout: int | None = None) -> None:
        self._require().value = value
        self.page.fills.append((self.selector, value))

    async def clear(self, timeout: int | None = None) -> None:
        self._require().value = ""

    async def text_content(self, timeout: int | None = None) -> str:
        return self._require().text

    async def all_text_contents(self) -> list[str]:
        return [element.text for element in self._elements()]

    async def all(self) -> list["FakeLocator"]:
        return [FakeLocator(self.page, self.selector, i) for i in range(len(self._elements()))]

    async def bounding_box(self):
        return self._require().box

    async def scroll_into_view_if_needed(self, timeout: int | None = None) -> None:
        self._require()


class FakePage:
    def __init__(self, url: str = "about:blank", html: str = ""):
        self.url = url
        self.html = ""
        self._title = ""
        self.elements: dict[str, list[FakeElement]] = {}
        self.routes: dict[str, str] = {}
        self.clicks: list[str] = []
        self.fills: list[tuple[str, str]] = []
        self.gotos: list[str] = []
        self.screenshots: list[str] = []
        self.waits: list[int] = []
        self.listeners: dict[str, list] = {}
        self.evaluate_calls: list = []
        self.evaluate_result = None
        self.goto_error: Exception | None = None
        self.networkidle_error: Exception | None = None
        self.screenshot_error: Exception | None = None
        self.viewport = None
        self.default_timeout = None
        if html:
            self._load(html)

    def add(self, selector: str, text: str = "", visible: bool = True, enabled: bool = True, on_click=None) -> FakeElement:
        element = FakeElement(text, visible, enabled, on_click)
        self.elements.setdefault(selector, []).append(element)
        return element

    def _load(self, html: str) -> None:
        self.html = html
        match = re.search(r"<title>(.*?)</title>", html, re.S)
        self._title = match.group(1).strip() if match else ""

    def body_text(self) -> str:
        body = re.sub(r"<head>.*?</head>", " ", self.html, flags=re.S)
        return re.sub(r"\s+", " ", re.sub(r"<[^>]+>", " ", body)).strip()

    def resolve(self, selector: str) -> list[FakeElement]:
        if selector in self.elements:
            return self.elements[selector]
        if not self.html:
            return []
        match = ID_SELECTOR.match(selector)
        if match:
            element_id = match.group(1) or match.group(2)
            found = re.search(rf'id="{re.escape(element_id)}"[^>]*>([^<]*)', self.html)
            return [FakeElement(found.group(1).strip())] if found else []
        match = TEXT_SELECTOR.match(selector) or HAS_TEXT.search(selector)
        if match:
            fragment = match.group(1)
            return [FakeElement(fragment)] if fragment.lower() in self.body_text().lower() else []
        match = ATTRIBUTE_SELECTOR.match(selector)
        if match:
            return [FakeElement(visible=False)] if f'{match.group(1)}="{match.group(2)}"' in self.html else []
        match = CLASS_SELECTOR.match(selector)
        if match:
            pattern = rf'class="[^"]*\b{re.escape(match.group(1))}\b[^"]*"[^>]*>([^<]*)'
            return [FakeElement(text.strip()) for text in re.findall(pattern, self.html)]
        if TAG_SELECTOR.match(selector):
            return [FakeElement(text.strip()) for text in re.findall(rf"<{selector}\b[^>]*>([^<]*)", self.html)]
        return []

    def locator(self, selector: str) -> FakeLocator:
        return FakeLocator(self, selector)

    def on(self, event: str, handler) -> None:
        self.listeners.setdefault(event, []).append(handler)

    def set_default_timeout(self, timeout: int) -> None:
        self.default_timeout = timeout

    async def goto(self, url: str, **kwargs) -> None:
        self.gotos.append(url)
        if self.goto_error:
            raise self.goto_error
        self.url = url
        if url in self.routes:
            self._load(self.routes[url])

    async def set_content(self, html: str, **kwargs) -> None:
        self._load(html)

    async def title(self) -> str:
        return self._title

    async def content(self) -> str:
        return self.html

    async def text_content(self, selector: str, timeout: int | None = None) -> str:
        return self.body_text()

    async def evaluate(self, script: str, arg=None):
        self.evaluate_calls.append((script, arg))
        if isinstance(self.evaluate_result, Exception):
            raise self.evaluate_result
        return self.evaluate_result

    async def screenshot(self, path: str | None = None, full_page: bool = False) -> bytes:
        if self.screenshot_error:
            raise self.screenshot_error
        self.screenshots.append(path)
        return b""

    async def set_viewport_size(self, size: dict) -> None:
        self.viewport = size

    async def wait_for_load_state(self, state: str = "load", timeout: int | None = None) -> None:
        if self.networkidle_error:
            raise self.networkidle_error

    async def wait_for_timeout(self, timeout: int) -> None:
        self.waits.append(timeout)


@pytest.fixture(autouse=True)
def isolated_cwd(tmp_path, monkeypatch):
    """Default artifact directories are relative, keep them out of the checkout."""
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture(autouse=True)
def fast_sleep(monkeypatch):
    original_sleep = asyncio.sleep

    async def no_delay(delay, result=None):
        return await original_sleep(0, result)

    monkeypatch.setattr(asyncio, "sleep", no_delay)


@pytest.fixture
def page():
    return FakePage()
