"""Project-wide constants."""

from __future__ import annotations

PACKAGE_VERSION = "0.2.0"

DEFAULT_HTML_REPORT_FOLDER = "playwright-report"
DEFAULT_OUTPUT_DIR = "test-results"
HTML_REPORTER_NAME = "html"
TRACE_OFF = "off"

EMBEDDED_REPORT_GLOBAL = "window.playwrightReportBase64"
EMBEDDED_REPORT_PREFIX = "data:application/zip;base64,"

DEFAULT_SCRATCH_DIR = ".pwscrub-temp"
DEFAULT_SETTINGS_PATH = "pwscrub.yaml"
DEFAULT_RULES_FILES = ("playwright-scrub-rules.json", "playwright-scrub-rules.yaml")

ASTERISK_MASK = "********"
PLACEHOLDER_MASK = "[MASKED]"

DEFAULT_CONFIG_CANDIDATES = (
    "playwright.config.ts",
    "playwright.config.js",
    "playwright.config.mjs",
    "playwright.config.cjs",
    "playwright.config.json",
)
