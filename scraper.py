#!/usr/bin/env python3
"""
Deliveroo listing scraper using Playwright
Dismisses overlays, expands the listing and scrolls until every restaurant name is rendered
"""

import logging
import random
import re
from abc import ABC, abstractmethod
from typing import Callable, List, Optional, Sequence, Tuple

from playwright.async_api import async_playwright, Browser, BrowserContext, Locator, Page

from config import SCROLLING, SELECTORS, TIMING, USER_AGENTS

logger = logging.getLogger(__name__)


class Candidate(ABC):
    """A locator strategy tried in priority order"""

    def __init__(self, description: str, locate: Callable[[Page], Locator]):
        self.description = description
        self.locate = locate

    def target(self, page: Page) -> Locator:
        return self.locate(page).first

    @abstractmethod
    async def is_applicable(self, page: Page) -> bool:
        raise NotImplementedError

    @abstractmethod
    async def attempt_interact(self, page: Page) -> bool:
        raise NotImplementedError

    def __repr__(self):
        return f"{self.__class__.__name__}({self.description!r})"


class OverlayCandidate(Candidate):
    """Consent or modal button that is clicked whenever it shows up"""

    async def is_applicable(self, page: Page) -> bool:
        try:
            await self.target(page).wait_for(state='visible', timeout=TIMING['overlay_visible_timeout'])
            return True
        except Exception:
            return False

    async def attempt_interact(self, page: Page) -> bool:
        await self.target(page).click(timeout=TIMING['overlay_click_timeout'])
        await page.wait_for_timeout(TIMING['overlay_settle'])
        return True


class ViewAllCandidate(Candidate):
    """'View all ... restaurants' control; only clicked when its text matches"""

    view_all = re.compile(r'view all', re.I)
    restaurant = re.compile(r'restaurant', re.I)

    async def is_applicable(self, page: Page) -> bool:
        handle = self.target(page)
        try:
            await handle.wait_for(state='visible', timeout=TIMING['view_all_visible_timeout'])
            text = await handle.inner_text()
        except Exception:
            return False
        return bool(self.view_all.search(text) and self.restaurant.search(text))

    async def attempt_interact(self, page: Page) -> bool:
        handle = self.target(page)
        try:
            await handle.scroll_into_view_if_needed()
        except Exception:
            pass
        try:
            # trial click checks the control is hittable without clicking it
            await handle.click(trial=True, timeout=TIMING['trial_click_timeout'])
        except Exception as e:
            logger.debug(f"Trial click failed for {self.description}: {e}")
        await handle.click(timeout=TIMING['click_timeout'])
        return True


def _by_role(role: str, pattern: str) -> Callable[[Page], Locator]:
    return lambda page: page.get_by_role(role, name=re.compile(pattern, re.I))


OVERLAY_CANDIDATES = [
    OverlayCandidate("accept button", _by_role('button', SELECTORS['accept_button'])),
    OverlayCandidate(
        "dialog ok/close button",
        lambda page: page.get_by_role('dialog').get_by_role(
            'button', name=re.compile(SELECTORS['dialog_button'], re.I)),
    ),
    OverlayCandidate("accept cookies attribute", lambda page: page.locator(SELECTORS['accept_cookies'])),
    OverlayCandidate("OK button", lambda page: page.locator(SELECTORS['ok_button'])),
    OverlayCandidate(
        "consent iframe",
        lambda page: page.frame_locator(SELECTORS['consent_iframe'])
        .locator(SELECTORS['consent_iframe_button'])
        .filter(has_text=re.compile(SELECTORS['consent_iframe_text'], re.I)),
    ),
]

VIEW_ALL_CANDIDATES = [
    ViewAllCandidate("exact view-all button", _by_role('button', SELECTORS['view_all_exact'])),
    ViewAllCandidate("view-all button", _by_role('button', SELECTORS['view_all_text'])),
    ViewAllCandidate("view-all link", _by_role('link', SELECTORS['view_all_text'])),
    ViewAllCandidate(
        "button with view-all text",
        lambda page: page.locator('button').filter(has_text=re.compile(SELECTORS['view_all_text'], re.I)),
    ),
    ViewAllCandidate(
        "view-all text node",
        lambda page: page.get_by_text(re.compile(SELECTORS['view_all_text_node'], re.I)),
    ),
    ViewAllCandidate("last button on page", lambda page: page.locator('button').last),
]


async def dismiss_overlays(page: Page, candidates: Optional[Sequence[Candidate]] = None):
    """Click through any consent/modal overlays that are present; never raises"""
    for candidate in (OVERLAY_CANDIDATES if candidates is None else candidates):
        try:
            if await candidate.is_applicable(page):
                await candidate.attempt_interact(page)
                logger.info(f"Dismissed overlay: {candidate.description}")
        except Exception as e:
            logger.debug(f"Overlay {candidate.description} not dismissed: {e}")


class RestaurantNameScraper:
    """Collect restaurant names from a Deliveroo listing page"""

    def __init__(self, page: Page, name_selector: str = SELECTORS['restaurant_name'],
                 overlay_candidates: Optional[Sequence[Candidate]] = None,
                 view_all_candidates: Optional[Sequence[Candidate]] = None):
        self.page = page
        self.name_selector = name_selector
        self.overlay_candidates = OVERLAY_CANDIDATES if overlay_candidates is None else overlay_candidates
        self.view_all_candidates = VIEW_ALL_CANDIDATES if view_all_candidates is None else view_all_candidates

    async def scroll_page(self, times: int = 1, delay: int = TIMING['reveal_scroll_delay']):
        """Scroll down by most of a viewport height, settling after each step"""
        for _ in range(times):
            await self.page.evaluate(
                f"() => window.scrollBy(0, Math.floor(window.innerHeight * {SCROLLING['viewport_fraction']}))"
            )
            await self.page.wait_for_timeout(delay)

    async def count_names(self, default: int = 0) -> int:
        try:
            return await self.page.locator(self.name_selector).count()
        except Exception as e:
            logger.debug(f"Counting name nodes failed: {e}")
            return default

    async def expand_listing(self) -> bool:
        """Click 'View all ... restaurants' if present; True when more names appear"""
        # the button is often rendered only near the bottom
        await self.scroll_page(SCROLLING['reveal_scrolls'])
        before_count = await self.count_names()

        for candidate in self.view_all_candidates:
            try:
                if not await candidate.is_applicable(self.page):
                    continue
                await candidate.attempt_interact(self.page)
                logger.info(f"Clicked {candidate.description}")

                try:
                    await self.page.wait_for_load_state('networkidle', timeout=TIMING['networkidle_timeout'])
                except Exception:
                    pass
                await self.page.wait_for_timeout(TIMING['expand_settle'])
                await self.scroll_page(SCROLLING['post_click_scrolls'])

                after_count = await self.count_names()
                if after_count > before_count:
                    logger.info(f"Listing expanded: {before_count} -> {after_count} names")
                    return True
                logger.debug(f"No new names after clicking {candidate.description}")
            except Exception as e:
                logger.debug(f"View-all candidate {candidate.description} failed: {e}")

        logger.info("Listing not expanded, continuing with what is rendered")
        return False

    async def scroll_until_stable(self) -> int:
        """Scroll until the name count stops growing; returns the number of scrolls made"""
        last_count = -1
        stable_cycles = 0
        scrolls = 0

        for _ in range(SCROLLING['max_scrolls']):
            await self.scroll_page(delay=TIMING['scroll_delay'])
            scrolls += 1

            count = await self.count_names(default=last_count)
            if count == last_count:
                stable_cycles += 1
                if stable_cycles >= SCROLLING['stable_cycles']:
                    break
            else:
                stable_cycles = 0
                last_count = count

        logger.info(f"Scrolled {scrolls} time(s), {max(last_count, 0)} name nodes rendered")
        return scrolls

    async def collect_names(self) -> List[str]:
        nodes = self.page.locator(self.name_selector)
        total = await nodes.count()
        names = []

        for i in range(total):
            try:
                node = nodes.nth(i)
                try:
                    await node.scroll_into_view_if_needed()
                except Exception:
                    pass
                text = await node.text_content(timeout=TIMING['text_timeout'])
                name = (text or '').strip()
                if name:
                    names.append(name)
            except Exception as e:
                logger.debug(f"Skipping name node {i}: {e}")

        return names

    async def scrape(self) -> List[str]:
        await dismiss_overlays(self.page, self.overlay_candidates)
        try:
            await self.expand_listing()
        except Exception as e:
            logger.debug(f"Error expanding listing: {e}")
        await self.scroll_until_stable()

        names = await self.collect_names()
        logger.info(f"Collected {len(names)} restaurant names")
        return names


async def get_restaurant_names(page: Page) -> List[str]:
    return await RestaurantNameScraper(page).scrape()


async def setup_browser(playwright, headless: bool) -> Tuple[Browser, BrowserContext]:
    """Launch Chromium with a randomised, less automation-looking context"""
    browser = await playwright.chromium.launch(
        headless=headless,
        args=[
            '--disable-blink-features=AutomationControlled',
            '--disable-dev-shm-usage',
            '--no-sandbox',
            '--lang=en-US'
        ]
    )

    context = await browser.new_context(
        user_agent=random.choice(USER_AGENTS),
        viewport={'width': 1920, 'height': 1080},
        locale='en-US',
        extra_http_headers={
            'Accept-Language': 'en-US,en;q=0.9'
        }
    )

    await context.add_init_script("""
        Object.defineProperty(navigator, 'webdriver', {get: () => undefined});
        Object.defineProperty(navigator, 'languages', {get: () => ['en-US', 'en']});
        window.chrome = {runtime: {}};
    """)

    return browser, context


async def scrape_listing(url: str, headless: bool = True) -> List[str]:
    """Open the listing URL in a fresh browser and return its restaurant names"""
    async with async_playwright() as playwright:
        browser, context = await setup_browser(playwright, headless)
        try:
            page = await context.new_page()
            logger.info(f"Navigating to: {url}")
            await page.goto(url, timeout=TIMING['page_load_timeout'], wait_until='domcontentloaded')
            return await get_restaurant_names(page)
        finally:
            try:
                await context.close()
                await browser.close()
            except Exception as e:
                logger.debug(f"Cleanup error (ignored): {e}")
