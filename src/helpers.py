import asyncio
import re
from datetime import datetime
from pathlib import Path

from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from constants import MAXIMIZED_VIEWPORT, RESULTS_DIR, TIMEOUTS


class BasePage:
    """Shared plumbing for page objects.

    ``selector_fn`` maps an element description to a selector; when it is
    missing or raises, the page object's own fallback selector is used.
    ``mock_policy`` is one of ``off``, ``fallback`` or ``force``.
    """

    def __init__(self, page, selector_fn=None, mock_policy: str = "off",
                 screenshots_dir: Path | None = None, verbose: bool = False):
        self.page = page
        self.selector_fn = selector_fn
        self.mock_policy = mock_policy
        self.screenshots_dir = Path(screenshots_dir) if screenshots_dir else Path(RESULTS_DIR)
        self.verbose = verbose

    def log(self, message: str) -> None:
        if self.verbose:
            print(message)

    def get_selector(self, description: str, fallback: str) -> str:
        if self.selector_fn:
            try:
                selector = self.selector_fn(description.lower().strip())
                self.log(f"→ Using generated selector for '{description}': {selector}")
                return selector
            except Exception as e:
                print(f"⚠️ Error using generated selector for '{description}': {e}")
        self.log(f"→ Using fallback selector for '{description}': {fallback}")
        return fallback

    async def screenshot(self, name: str) -> Path | None:
        return await take_screenshot(self.page, type(self).__name__, name, self.screenshots_dir)

    async def navigate_to(self, url: str) -> None:
        try:
            await self.page.goto(url, wait_until="domcontentloaded", timeout=TIMEOUTS["LONG"])
        except Exception as e:
            print(f"✖ Navigation to {url} failed: {e}")
            raise RuntimeError(f"Failed to navigate to {url}: {e}") from e

    async def maximize_window(self) -> None:
        try:
            await self.page.set_viewport_size(MAXIMIZED_VIEWPORT)
        except Exception as e:
            print(f"✖ Failed to maximize window: {e}")
            raise RuntimeError(f"Failed to maximize window: {e}") from e


async def wait_for_element(locator, timeout: int = TIMEOUTS["MEDIUM"]) -> None:
    try:
        await locator.wait_for(state="visible", timeout=timeout)
    except Exception as e:
        print(f"✖ Element wait timed out: {e}")
        raise RuntimeError(f"Element wait timed out: {e}") from e


async def retry(operation, max_retries: int = 3, delay_ms: int = 1000):
    """Run ``operation`` (a zero-argument coroutine function) up to ``max_retries`` times.

    The delay between attempts is fixed; there is no backoff and no wait after
    the final attempt.
    """
    last_error = None
    for attempt in range(1, max_retries + 1):
        try:
            return await operation()
        except Exception as e:
            last_error = e
            print(f"⚠️ Retry attempt {attempt}/{max_retries} failed: {e}")
            if attempt < max_retries:
                await asyncio.sleep(delay_ms / 1000)
    raise RuntimeError(f"Operation failed after {max_retries} attempts. Last error: {last_error}")


def sanitize_for_filename(text: str) -> str:
    text = re.sub(r"[^\w\s-]", "", text)
    text = re.sub(r"[-\s]+", "_", text)
    return text.strip("_").lower()[:100]


async def take_screenshot(page, test_name: str, screenshot_name: str, directory: Path | None = None) -> Path | None:
    """Full-page screenshot named ``<test>-<name>-<millis>.png``. Failures are logged, not raised."""
    shots_dir = Path(directory) if directory else Path(RESULTS_DIR) / "screenshots"
    stamp = int(datetime.now().timestamp() * 1000)
    path = shots_dir / f"{sanitize_for_filename(test_name)}-{sanitize_for_filename(screenshot_name)}-{stamp}.png"
    try:
        shots_dir.mkdir(parents=True, exist_ok=True)
        await page.screenshot(path=str(path), full_page=True)
        return path
    except Exception as e:
        print(f"⚠️ Failed to take screenshot: {e}")
        return None


async def element_exists(locator, timeout: int = 5000) -> bool:
    try:
        await locator.wait_for(state="attached", timeout=timeout)
        return True
    except Exception:
        return False


async def is_visible(locator) -> bool:
    """Visibility probe that treats any Playwright error as 'not visible'."""
    try:
        return await locator.is_visible()
    except Exception:
        return False


async def count_of(locator) -> int:
    try:
        return await locator.count()
    except Exception:
        return 0


async def safe_click(locator, force: bool = False, timeout: int | None = None) -> None:
    timeout = timeout or TIMEOUTS["MEDIUM"]

    async def attempt():
        await wait_for_element(locator, timeout)
        await locator.click(force=force, timeout=timeout)

    await retry(attempt)


async def first_visible(candidates: list, verbose: bool = False, label: str = "element"):
    """Return ``(index, locator)`` for the first visible candidate, else ``(None, None)``.

    Candidates may be locators or zero-argument callables returning a locator,
    so expensive strategies are only built when earlier ones miss.
    """
    for i, candidate in enumerate(candidates):
        try:
            loc = candidate() if callable(candidate) else candidate
        except Exception as e:
            if verbose:
                print(f"→ {label} strategy {i + 1} could not be built: {e}")
            continue
        if loc is None:
            continue
        if await is_visible(loc):
            if verbose:
                print(f"✓ {label} visible with strategy {i + 1}")
            return i, loc
        if verbose:
            print(f"→ {label} not visible with strategy {i + 1}")
    return None, None


async def settle(page, timeout: int = TIMEOUTS["SHORT"], verbose: bool = False) -> bool:
    """Wait for network idle; a timeout is logged and tolerated."""
    try:
        await page.wait_for_load_state("networkidle", timeout=timeout)
        return True
    except PlaywrightTimeoutError as e:
        if verbose:
            print(f"⚠️ Network wait timed out, continuing: {e}")
        return False
