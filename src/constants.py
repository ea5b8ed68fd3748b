import os


NETREVEAL_URL = os.getenv("NETREVEAL_URL", "https://10.222.2.239:8443/netreveal/login.do")
BASE_URL = os.getenv("NETREVEAL_BASE_URL", "https://10.222.17.231:8443")
USERNAME = os.getenv("NETREVEAL_USERNAME", "admin")
PASSWORD = os.getenv("NETREVEAL_PASSWORD", "password")

# Milliseconds, matching Playwright's timeout arguments
TIMEOUTS = {
    "SHORT": 5000,
    "MEDIUM": 15000,
    "LONG": 30000,
    "EXTENDED": 60000,
}

ACTION_TIMEOUT = 10000
NAVIGATION_TIMEOUT = 30000
DEFAULT_TEST_TIMEOUT = 30000
SCENARIO_TIMEOUT = 60000

VIEWPORT = {"width": 1280, "height": 720}
MAXIMIZED_VIEWPORT = {"width": 1920, "height": 1080}

CHROMIUM_ARGS = [
    "--disable-web-security",
    "--no-sandbox",
    "--disable-gpu",
    "--ignore-certificate-errors",
]

NAVIGATION = {
    "WATCHLIST_MANAGER": "Watchlist Manager",
    "SYNONYMS": "Synonyms",
    "SYNONYMS_RULES_MANAGER": "Synonyms Rules Manager",
    "LISTS": "Lists",
    "STANDARD_LISTS": "Standard Lists",
}

TEST_DATA = {
    "RULE_SET_NAME": "Weighted words rule set",
    "EXPECTED_TEXT": "agency rule",
    "EU_LIST_NAME": "EU List",
    "EU_NAME_TEXT": "eu_name",
}

ELEMENT_IDS = {
    "username": "forms-text-field-username",
    "password": "forms-text-field-password",
    "main_menu": "menu-trigger",
    "watchlist_manager": "home_watchlistmanagement",
    "synonyms": "home_watchlistmanagement_menu-item_synonyms_path",
    "synonyms_rules_manager": "home_watchlistmanagement_menu-item_synonyms_path_menu-item_synonym_rules_manager_path",
    "lists": "home_watchlistmanagement_home_watchlistmanagement_lists",
    "standard_lists": "home_watchlistmanagement_home_watchlistmanagement_lists_home_watchlistmanagement_lists_standard",
    "rule_set_sort": "SYSWLMPP_Synonym_RS_List_sort0",
    "eu_list_item": "eu_list_item",
    "eu_name_container": "eu_name_container",
}


def xpath_id(key: str) -> str:
    return f'//*[@id="{ELEMENT_IDS[key]}"]'


# Used by the selector function when the page snapshot has no match
DEFAULT_SELECTORS = {
    "username field": "#" + ELEMENT_IDS["username"],
    "password field": "#" + ELEMENT_IDS["password"],
    "login button": 'button:has-text("Login")',
    "error message": ".error-message, .alert-error",
    "main menu": "#" + ELEMENT_IDS["main_menu"],
    "watchlist manager menu": "#" + ELEMENT_IDS["watchlist_manager"],
    "synonyms menu": "#" + ELEMENT_IDS["synonyms"],
    "synonyms rules manager menu": "#" + ELEMENT_IDS["synonyms_rules_manager"],
    "lists menu": "#" + ELEMENT_IDS["lists"],
    "standard lists menu": "#" + ELEMENT_IDS["standard_lists"],
    "weighted words rule set": f'a:has-text("{TEST_DATA["RULE_SET_NAME"]}")',
    "agency rule": f'a:has-text("{TEST_DATA["EXPECTED_TEXT"]}")',
    "eu list": f'a:has-text("{TEST_DATA["EU_LIST_NAME"]}")',
    "eu_name": f'text="{TEST_DATA["EU_NAME_TEXT"]}"',
    "logout button": 'a:has-text("Logout")',
}

RESULTS_DIR = "test-results"
OUTPUT_DIR = "test-output"
