from helpers import count_of, element_exists, retry, take_screenshot


VISIBILITY_SCRIPT = """
(selector) => {
    const element = document.querySelector(selector);
    if (!element) return null;
    const styles = window.getComputedStyle(element);
    const rect = element.getBoundingClientRect();
    return {
        display: styles.display,
        visibility: styles.visibility,
        opacity: styles.opacity,
        zIndex: styles.zIndex,
        position: styles.position,
        dimensions: `${rect.width}x${rect.height}`,
        coordinates: `(${rect.x}, ${rect.y})`,
    };
}
"""


class ElementReportError(AssertionError):
    """Assertion failure carrying a multi-section diagnostic report."""

    def __init__(self, title: str, details: str, context: dict, causes: list[str], steps: list[str]):
        self.title = title
        self.details = details
        self.context = context
        self.causes = causes
        self.steps = steps
        super().__init__(self.render())

    def render(self) -> str:
        lines = [f"===== ERROR REPORT: {self.title} =====", f"ERROR DETAILS: {self.details}", "", "CONTEXT:"]
        lines += [f"  {key}: {value}" for key, value in self.context.items()]
        lines += ["", "POSSIBLE CAUSES:"]
        lines += [f"  {i}. {cause}" for i, cause in enumerate(self.causes, 1)]
        lines += ["", "TROUBLESHOOTING STEPS:"]
        lines += [f"  {i}. {step}" for i, step in enumerate(self.steps, 1)]
        lines.append("===== END OF ERROR REPORT =====")
        return "\n".join(lines)


async def _not_found_report(page, selector: str, description: str, expected_text: str | None) -> ElementReportError:
    links = []
    try:
        links = await page.locator("a").all_text_contents()
    except Exception:
        pass
    body = ""
    try:
        body = await page.text_content("body") or ""
    except Exception:
        pass
    last_word = expected_text.split()[-1].lower() if expected_text and expected_text.split() else ""
    related = [text.strip() for text in links if last_word and last_word in text.lower()]
    context = {
        "Current page title": await page.title(),
        "Current URL": page.url,
        "Total links found": len(links),
        "Similar elements": ", ".join(related) if related else "None",
        "Attempted selector": selector,
        "Page content sample": (body[:200] + "...") if body else "No text found",
    }
    return ElementReportError(
        "ELEMENT NOT FOUND",
        f"{description} element was not found on the page",
        context,
        [
            "The test may not have navigated to the correct page",
            "The element structure or naming has changed",
            "The element id or text content has changed",
            "The element is dynamically loaded and not ready yet",
        ],
        [
            "Verify the navigation sequence is correct",
            "Check if the element id or structure has changed",
            "Increase wait time for dynamic content",
            "Check the default selector map for this description",
        ],
    )


async def _not_visible_report(page, locator, selector: str, description: str) -> ElementReportError:
    bounds = None
    text = "Unable to retrieve text"
    enabled = False
    styles = None
    try:
        bounds = await locator.bounding_box()
        text = await locator.text_content()
        enabled = await locator.is_enabled()
        styles = await page.evaluate(VISIBILITY_SCRIPT, selector)
    except Exception:
        pass
    context = {
        "Element text content": text,
        "Element bounds": f"{bounds['width']}x{bounds['height']} at ({bounds['x']}, {bounds['y']})" if bounds else "Not available",
        "Element enabled": enabled,
        "Selector used": selector,
        "CSS properties": styles or "Not available",
    }
    return ElementReportError(
        "ELEMENT NOT VISIBLE",
        f"{description} element exists but is not visible",
        context,
        [
            "The element may be hidden or have zero dimensions",
            "The element might be overlapped by another element",
            "The element may have visibility:hidden or display:none CSS",
        ],
        [
            "Check the element's CSS properties",
            "Inspect element visibility in DevTools",
            "Check for overlapping elements",
            "Try scrolling to the element before asserting",
        ],
    )


async def assert_element_visible(page, selector: str, description: str, test_name: str,
                                 expected_text: str | None = None, analyzer=None, screenshots_dir=None) -> str:
    """Existence, then visibility (retried 3x at 1 s), then optional text containment.

    Returns the text content of the matched element. Raises ``ElementReportError``.
    """
    print(f"→ Asserting {description} with selector: {selector}")
    await take_screenshot(page, test_name, "before-assertion", screenshots_dir)
    try:
        await page.wait_for_timeout(2000)
        locator = page.locator(selector).first
        present = await element_exists(locator, 3000)
        if not present and analyzer is not None:
            repaired = await analyzer.repair(page, description, selector)
            if repaired:
                selector = repaired
                locator = page.locator(selector).first
                present = await element_exists(locator, 3000)
        found = await count_of(page.locator(selector))
        print(f"→ Found {found} matching elements for {description} (exists: {present})")
        if not present or found == 0:
            raise await _not_found_report(page, selector, description, expected_text)

        async def check_visible():
            await locator.wait_for(state="visible", timeout=2000)

        try:
            await retry(check_visible, 3, 1000)
        except RuntimeError:
            raise await _not_visible_report(page, locator, selector, description)

        text = await locator.text_content() or ""
        if expected_text and expected_text.lower() not in text.lower():
            raise ElementReportError(
                "TEXT CONTENT MISMATCH",
                "Element text content mismatch",
                {"Expected text to contain": expected_text, "Actual text content": text, "Selector used": selector},
                ["The wrong element was selected", "The element text has changed"],
                [
                    "Update expected text or selector",
                    "Check if element text is loaded dynamically",
                    "Use a partial text match if appropriate",
                ],
            )
        print(f"✓ {description} is visible and contains expected text: \"{text.strip()}\"")
        await take_screenshot(page, test_name, "after-assertion", screenshots_dir)
        return text
    except ElementReportError:
        print(f"✖ Enhanced {description} assertion failed")
        await take_screenshot(page, test_name, "assertion-failure", screenshots_dir)
        raise


async def assert_link_visible_with_text(page, selector: str, expected_text: str, test_name: str,
                                        description: str = "Link", analyzer=None, screenshots_dir=None) -> str:
    return await assert_element_visible(page, selector, description, test_name, expected_text, analyzer, screenshots_dir)


async def assert_text_visible(page, selector: str, test_name: str, description: str = "Text",
                              analyzer=None, screenshots_dir=None) -> str:
    return await assert_element_visible(page, selector, description, test_name, None, analyzer, screenshots_dir)
