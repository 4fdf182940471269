"""
RenderProbe: load a live preview document in headless Chromium and report
whether the App actually mounted. Playwright Python API only, no dev server:
the document is handed to the page with set_content.

A missing Playwright install (or a browser that will not launch) is "no
verdict", never a render failure. Callers only fall back when the probe
positively saw the preview break.
"""
import importlib.util
import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Callable, Optional

from webforge.signatures import MOUNT_ID

log = logging.getLogger("probe")

VIEWPORT = {"width": 1280, "height": 720}

# Console errors only count when they look like a real JS exception that
# broke the app. CDN/network chatter and React dev warnings are ignored.
NOISE = [
    "favicon", "Warning:", "DevTools", "Download the React",
    "ReactDOM.render", "StrictMode", "You are using the in-browser Babel transformer",
    "cdn.tailwindcss.com should not be used in production",
    "net::ERR_", "Failed to load resource",
    "Cross-Origin", "Content-Security-Policy",
]
REAL_SIGNALS = [
    "is not defined", "is not a function",
    "Cannot read prop", "Cannot read properties",
    "SyntaxError", "ReferenceError", "TypeError",
    "Failed to resolve module specifier", "does not provide an export",
]


def real_errors(console_errors: list) -> list:
    """Must NOT match noise AND MUST match a real signal."""
    return [
        e for e in console_errors
        if not any(n.lower() in e.lower() for n in NOISE)
        and any(s in e for s in REAL_SIGNALS)
    ]


@dataclass
class ProbeReport:
    rendered: Optional[bool]          # None → no verdict
    errors: list = field(default_factory=list)

    @property
    def failed(self) -> bool:
        return self.rendered is False


@contextmanager
def chromium():
    from playwright.sync_api import sync_playwright

    with sync_playwright() as pw:
        browser = pw.chromium.launch(headless=True)
        try:
            yield browser
        finally:
            browser.close()


class RenderProbe:
    def __init__(self, timeout_ms: int = 8000, browser_factory: Optional[Callable] = None):
        self.timeout_ms = timeout_ms
        self.browser_factory = browser_factory

    def check(self, document: str, mount_id: str = MOUNT_ID) -> ProbeReport:
        if self.browser_factory is None and not self._playwright_available():
            log.warning("   ⚠ Playwright unavailable, skipping render probe")
            return ProbeReport(None)

        log.info("   🎭 Probing live preview in headless Chromium...")
        factory = self.browser_factory or chromium
        try:
            with factory() as browser:
                report = self._run(browser, document, mount_id)
        except Exception as e:
            msg = f"Playwright runtime error: {e}"
            log.warning(f"   ⚠ {msg}")
            return ProbeReport(None, [msg])

        if report.failed:
            log.warning(f"   ❌ live preview broke: {len(report.errors)} issue(s)")
            for e in report.errors:
                log.warning(f"      • {e}")
        else:
            log.info("   ✅ live preview rendered")
        return report

    # ── Internals ─────────────────────────────────────────────────────────────

    @staticmethod
    def _playwright_available() -> bool:
        return importlib.util.find_spec("playwright") is not None

    def _run(self, browser, document: str, mount_id: str) -> ProbeReport:
        console_errors = []
        ctx  = browser.new_context(viewport=VIEWPORT)
        page = ctx.new_page()
        page.on("console", lambda m: console_errors.append(m.text) if m.type == "error" else None)
        page.on("pageerror", lambda e: console_errors.append(f"PageError: {e}"))

        # "load" so Babel has picked up the text/babel script before we look
        page.set_content(document, timeout=self.timeout_ms, wait_until="load")

        errors = []
        try:
            page.wait_for_selector(f"#{mount_id} > *", timeout=self.timeout_ms)
        except Exception:
            errors.append(f"App never rendered into #{mount_id}")

        for ce in real_errors(console_errors)[:5]:
            errors.append(f"Console error: {ce[:160]}")
        return ProbeReport(not errors, errors)
