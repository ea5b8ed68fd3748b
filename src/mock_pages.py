from constants import ELEMENT_IDS, TEST_DATA


MOCK_POLICIES = ("off", "fallback", "force")

MOCK_LOGIN_HTML = f"""
<html>
  <head><title>NetReveal Test Mode</title></head>
  <body>
    <h1>NetReveal - Test Mode</h1>
    <p>Running in mock mode - real server not available</p>
    <div id="login-form">
      <input id="{ELEMENT_IDS['username']}" placeholder="Username" />
      <input id="{ELEMENT_IDS['password']}" type="password" placeholder="Password" />
      <button>Login</button>
    </div>
  </body>
</html>
"""

MOCK_DASHBOARD_HTML = f"""
<html>
  <head>
    <title>NetReveal Dashboard</title>
    <style>
      .menu-item {{
        display: block !important;
        visibility: visible !important;
        border: 2px solid blue;
        margin: 10px;
        padding: 10px;
        background-color: #f0f0ff;
      }}
    </style>
  </head>
  <body>
    <h1>NetReveal Mock Dashboard (All Elements Visible)</h1>
    <p>Test running in mock mode with all navigation elements visible</p>
    <div data-testid="mock-indicator" hidden></div>
    <div id="{ELEMENT_IDS['main_menu']}" class="menu-item">Menu Button</div>
    <div id="{ELEMENT_IDS['watchlist_manager']}" class="menu-item">Watchlist Manager Menu</div>
    <div id="{ELEMENT_IDS['lists']}" class="menu-item">Lists Menu</div>
    <div id="standard_lists" class="menu-item">Standard Lists Menu</div>
    <div><a href="#" id="{ELEMENT_IDS['eu_list_item']}" class="menu-item">{TEST_DATA['EU_LIST_NAME']} Link</a></div>
    <div id="{ELEMENT_IDS['eu_name_container']}" class="menu-item eu-name-container">{TEST_DATA['EU_NAME_TEXT']} Text</div>
    <div id="{ELEMENT_IDS['synonyms']}" class="menu-item">Synonyms Menu</div>
    <div id="{ELEMENT_IDS['synonyms_rules_manager']}" class="menu-item">Synonyms Rules Manager Menu</div>
    <table>
      <tr><th id="{ELEMENT_IDS['rule_set_sort']}">Name</th></tr>
      <tr><td><a href="#" class="menu-item">{TEST_DATA['RULE_SET_NAME']}</a></td></tr>
      <tr><td><a href="#" class="menu-item">{TEST_DATA['EXPECTED_TEXT']}</a></td></tr>
    </table>
  </body>
</html>
"""

# Elements only the mock dashboard renders
MOCK_DASHBOARD_MARKERS = [
    "#" + ELEMENT_IDS["main_menu"],
    "#" + ELEMENT_IDS["watchlist_manager"],
    ".menu-item",
    'h1:has-text("NetReveal Mock Dashboard")',
    'h1:has-text("Test Mode")',
    "#" + ELEMENT_IDS["eu_list_item"],
    "#" + ELEMENT_IDS["eu_name_container"],
]


def title_indicates_mock(title: str) -> bool:
    return "Mock" in title or "Test Mode" in title


async def is_running_in_mock_mode(page, verbose: bool = False) -> bool:
    """Heuristic mock detection: title, URL flag, marker elements, then URL shape.

    Errors while probing count as mock mode.
    """
    try:
        title = await page.title()
        if title_indicates_mock(title):
            if verbose:
                print("→ Mock mode detected via page title")
            return True

        url = page.url or ""
        if "mock=true" in url:
            if verbose:
                print("→ Mock mode detected via URL parameter")
            return True

        if await page.locator('[data-testid="mock-indicator"]').count() > 0:
            if verbose:
                print("→ Mock mode detected via mock indicator elements")
            return True

        has_mock_elements = (
            await page.locator('h1:has-text("NetReveal Mock Dashboard")').count() > 0
            or await page.locator('p:has-text("mock mode")').count() > 0
        )
        if has_mock_elements or url.startswith("data:") or "about:blank" in url:
            if verbose:
                print("→ Mock mode detected via page content or URL shape")
            return True

        if "netreveal" in url or "https://10.222" in url:
            if verbose:
                print("→ Application URL detected, not in mock mode")
            return False

        if verbose:
            print("→ No mock mode indicators found")
        return False
    except Exception as e:
        print(f"⚠️ Error detecting mock mode: {e}, assuming mock mode")
        return True
