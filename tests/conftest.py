# tests/conftest.py
# Shared fakes for the browser layer and pacing

from contextlib import asynccontextmanager

import pytest

from scrapers.human_patterns import ZeroDelayScheduler


async def no_sleep(_seconds):
    return None


class RecordingScheduler(ZeroDelayScheduler):
    """Zero-delay scheduler that remembers which delay windows were drawn."""

    def __init__(self, seed=7):
        super().__init__(seed)
        self.windows = []

    def delay_for(self, window):
        self.windows.append(window.name)
        return super().delay_for(window)


def seek_card(title, company, href="/job/1", description="", location=None, salary=None):
    extra = ""
    if location:
        extra += f'<span data-automation="jobLocation">{location}</span>'
    if salary:
        extra += f'<span data-automation="jobSalary">{salary}</span>'
    company_html = f'<a data-automation="jobCompany">{company}</a>' if company is not None else ""
    return f"""
    <article data-automation="jobCard">
      <h3><a data-automation="jobTitle" href="{href}">{title}</a></h3>
      {company_html}
      {extra}
      <span data-automation="jobShortDescription">{description}</span>
    </article>
    """


def seek_page(*cards):
    return "<html><body><div id='results'>" + "".join(cards) + "</div></body></html>"


class FakeMouse:
    def __init__(self):
        self.moves = []

    async def move(self, x, y):
        self.moves.append((x, y))


class FakePage:
    """Serves one HTML snapshot per result page; the next button exists while pages remain."""

    def __init__(self, pages, goto_error=None, content_error_on_page=None, click_error=None):
        self.pages = list(pages)
        self.goto_error = goto_error
        self.content_error_on_page = content_error_on_page
        self.click_error = click_error
        self.current = 0
        self.mouse = FakeMouse()
        self.visited = []
        self.clicks = []
        self.evaluations = []
        self.load_waits = []
        self.load_timeouts = []

    async def goto(self, url, wait_until=None, timeout=None):
        self.visited.append({"url": url, "wait_until": wait_until, "timeout": timeout})
        if self.goto_error:
            raise self.goto_error

    async def evaluate(self, script, arg=None):
        self.evaluations.append((script, arg))
        if "length" in script:
            return 3
        return None

    async def content(self):
        if self.content_error_on_page == self.current:
            raise RuntimeError("Target page, context or browser has been closed")
        return self.pages[min(self.current, len(self.pages) - 1)]

    async def query_selector(self, selector):
        return object() if self.current < len(self.pages) - 1 else None

    async def click(self, selector):
        self.clicks.append(selector)
        if self.click_error:
            raise self.click_error
        self.current += 1

    async def wait_for_load_state(self, state="load", timeout=None):
        self.load_waits.append(state)
        self.load_timeouts.append(timeout)


class FakeCDPSession:
    def __init__(self):
        self.sent = []

    async def send(self, method, params=None):
        self.sent.append((method, params))


class FakeContext:
    def __init__(self, page, options):
        self.page = page
        self.options = options
        self.init_scripts = []
        self.cdp = FakeCDPSession()

    async def add_init_script(self, script):
        self.init_scripts.append(script)

    async def new_page(self):
        return self.page

    async def new_cdp_session(self, page):
        return self.cdp


class FakeBrowser:
    def __init__(self, page):
        self.page = page
        self.contexts = []

    async def new_context(self, **options):
        context = FakeContext(self.page, options)
        self.contexts.append(context)
        return context


class FakeLauncher:
    stealth_script = "Object.defineProperty(navigator, 'webdriver', {get: () => undefined});"

    def __init__(self, page, launch_error=None):
        self.page = page
        self.launch_error = launch_error
        self.launched = 0
        self.released = 0
        self.slow_mo = []
        self.browsers = []

    @asynccontextmanager
    async def launch(self, slow_mo_ms=0):
        if self.launch_error:
            raise self.launch_error
        self.launched += 1
        self.slow_mo.append(slow_mo_ms)
        browser = FakeBrowser(self.page)
        self.browsers.append(browser)
        try:
            yield browser
        finally:
            self.released += 1


@pytest.fixture
def scheduler():
    return RecordingScheduler()
