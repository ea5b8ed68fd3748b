import asyncio
from pathlib import Path

from constants import DEFAULT_SELECTORS, RESULTS_DIR
from helpers import count_of, take_screenshot
from selector_agent import DEFAULT_MODEL_ID, DEFAULT_REGION, suggest_selectors


SNAPSHOT_SCRIPT = """
() => ({
    title: document.title,
    url: window.location.href,
    elementsCount: document.querySelectorAll('*').length,
    accessibilityTree: Array.from(document.querySelectorAll('*'))
        .slice(0, 100)
        .map(el => ({
            tagName: el.tagName.toLowerCase(),
            id: el.id || null,
            className: (typeof el.className === 'string' ? el.className : '') || null,
            textContent: (el.textContent || '').trim().substring(0, 50) || null,
            attributes: Array.from(el.attributes).map(a => ({ name: a.name, value: a.value })),
            role: el.getAttribute('role') || null,
            ariaLabel: el.getAttribute('aria-label') || null,
        })),
})
"""

INVENTORY_SCRIPT = """
(limit) => {
    const uniq = (values) => Array.from(new Set(values.filter(Boolean))).slice(0, limit);
    const texts = (sel) => Array.from(document.querySelectorAll(sel)).map(el => (el.innerText || '').trim());
    return {
        ids: uniq(Array.from(document.querySelectorAll('[id]')).map(el => el.id)),
        aria_labels: uniq(Array.from(document.querySelectorAll('[aria-label]')).map(el => el.getAttribute('aria-label'))),
        buttons: uniq(texts("button, [role='button']")),
        links: uniq(texts("a, [role='link']")),
        menuitems: uniq(texts("[role='menuitem']")),
    };
}
"""

# Containers whose text spans the whole document and never make useful targets
STRUCTURAL_TAGS = {"html", "head", "body", "script", "style", "title", "meta", "link"}


def _quote(text: str) -> str:
    return text.replace('"', '\\"')


class PageAnalyzer:
    """Captures page snapshots and turns element descriptions into selectors.

    ``selector_for`` is the selector function injected into the page objects.
    """

    def __init__(self, snapshots_enabled: bool = True, screenshots_dir: Path | None = None,
                 repair: bool = False, model_id: str = DEFAULT_MODEL_ID, region: str = DEFAULT_REGION,
                 verbose: bool = False):
        self.snapshots_enabled = snapshots_enabled
        self.screenshots_dir = screenshots_dir or Path(RESULTS_DIR) / "screenshots"
        self.repair_enabled = repair
        self.model_id = model_id
        self.region = region
        self.verbose = verbose
        self.last_snapshot: dict | None = None
        self.overrides: dict[str, str] = {}

    def reset(self) -> None:
        self.last_snapshot = None

    def override(self, description: str, selector: str) -> None:
        self.overrides[description.lower().strip()] = selector

    async def snapshot(self, page) -> dict | None:
        try:
            result = await page.evaluate(SNAPSHOT_SCRIPT)
        except Exception as e:
            print(f"⚠️ Snapshot capture failed: {e}")
            return None
        if result and self.verbose:
            print(f"→ Snapshot captured for '{result.get('title')}' ({result.get('elementsCount')} elements)")
        return result

    async def analyze(self, page, step_description: str = "page structure") -> dict | None:
        """Snapshot the page ahead of an interaction. Never raises."""
        if self.verbose:
            print(f"→ Analyzing {step_description}")
        if not self.snapshots_enabled:
            await take_screenshot(page, "page-analysis", step_description, self.screenshots_dir)
            return None
        result = await self.snapshot(page)
        if result:
            self.last_snapshot = result
        await take_screenshot(page, "page-analysis", step_description, self.screenshots_dir)
        return result

    def _match(self, normalized: str) -> dict | None:
        tree = (self.last_snapshot or {}).get("accessibilityTree") or []
        matches = []
        for element in tree:
            if element.get("tagName") in STRUCTURAL_TAGS:
                continue
            fields = [element.get("textContent"), element.get("id"), element.get("ariaLabel"), element.get("role")]
            fields.extend(a.get("value") for a in element.get("attributes") or [])
            if any(f and normalized in f.lower() for f in fields):
                matches.append(element)
        best = None
        for element in matches:
            # document order puts descendants last, so ties go to the innermost element
            if best is None or len(element.get("textContent") or "") <= len(best.get("textContent") or ""):
                best = element
        return best

    def selector_for(self, description: str) -> str:
        normalized = description.lower().strip()
        if normalized in self.overrides:
            return self.overrides[normalized]

        element = self._match(normalized) if self.last_snapshot else None
        if element:
            text = element.get("textContent")
            if element.get("id"):
                selector = f"#{element['id']}"
            elif element.get("role") and text:
                selector = f'[role="{element["role"]}"]:has-text("{_quote(text)}")'
            elif element.get("tagName") and text:
                selector = f'{element["tagName"]}:has-text("{_quote(text)}")'
            elif element.get("className"):
                selector = "." + element["className"].split()[0]
            else:
                selector = None
            if selector:
                if self.verbose:
                    print(f"→ Generated selector for '{description}': {selector}")
                return selector

        selector = DEFAULT_SELECTORS.get(normalized) or f'text="{_quote(description)}"'
        if self.verbose:
            print(f"→ Using fallback selector for '{description}': {selector}")
        return selector

    async def inventory(self, page, limit: int = 100) -> dict:
        try:
            return await page.evaluate(INVENTORY_SCRIPT, limit)
        except Exception:
            return {}

    async def repair(self, page, description: str, failed_selector: str) -> str | None:
        """Ask the selector agent for replacements and keep the first one that matches."""
        if not self.repair_enabled:
            return None
        inventory = await self.inventory(page)
        suggestions = await asyncio.to_thread(
            suggest_selectors,
            description,
            failed_selector,
            page.url,
            inventory,
            self.model_id,
            self.region,
            self.verbose,
        )
        for suggestion in suggestions:
            if await count_of(page.locator(suggestion)) > 0:
                print(f"✓ Repair successful for '{description}' with: {suggestion}")
                self.override(description, suggestion)
                return suggestion
            if self.verbose:
                print(f"✖ Repair suggestion did not match: {suggestion}")
        return None
