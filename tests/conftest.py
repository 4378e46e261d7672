import pytest

from config import SELECTORS


class NotFound(Exception):
    pass


class MissingLocator:
    """Locator for an element that never appears"""

    @property
    def first(self):
        return self

    @property
    def last(self):
        return self

    def nth(self, index):
        return self

    def filter(self, **kwargs):
        return self

    def locator(self, *args, **kwargs):
        return self

    def get_by_role(self, *args, **kwargs):
        return self

    async def wait_for(self, state=None, timeout=None):
        raise NotFound("element not found")

    async def click(self, **kwargs):
        raise NotFound("element not found")

    async def inner_text(self, **kwargs):
        raise NotFound("element not found")

    async def scroll_into_view_if_needed(self, **kwargs):
        raise NotFound("element not found")

    async def count(self):
        return 0


class FakeButton:
    def __init__(self, text="OK", visible=True, on_click=None, fail_click=False):
        self.text = text
        self.visible = visible
        self.on_click = on_click
        self.fail_click = fail_click
        self.clicks = []

    @property
    def first(self):
        return self

    async def wait_for(self, state=None, timeout=None):
        if not self.visible:
            raise NotFound("not visible")

    async def inner_text(self, **kwargs):
        return self.text

    async def scroll_into_view_if_needed(self, **kwargs):
        pass

    async def click(self, trial=False, timeout=None):
        if self.fail_click:
            raise NotFound("click intercepted")
        self.clicks.append('trial' if trial else 'click')
        if not trial and self.on_click:
            self.on_click()


class FakeNode:
    def __init__(self, text):
        self.text = text

    async def scroll_into_view_if_needed(self, **kwargs):
        pass

    async def text_content(self, timeout=None):
        if isinstance(self.text, Exception):
            raise self.text
        return self.text


class NameLocator:
    def __init__(self, page):
        self.page = page

    async def count(self):
        self.page.count_calls += 1
        if self.page.count_calls in self.page.count_failures:
            raise RuntimeError("execution context was destroyed")
        return self.page.rendered()

    def nth(self, index):
        return FakeNode(self.page.names[index])


class FakePage:
    """
    Listing page whose rendered name count grows by `step` on each of the
    first `growth_scrolls` scrolls, starting from `initial`.
    """

    def __init__(self, names, initial=0, step=10, growth_scrolls=4, count_failures=()):
        self.names = list(names)
        self.initial = initial
        self.step = step
        self.growth_scrolls = growth_scrolls
        self.count_failures = set(count_failures)
        self.count_calls = 0
        self.scrolls = 0
        self.waits = []
        self.load_states = []

    def rendered(self):
        grown = self.initial + self.step * min(self.scrolls, self.growth_scrolls)
        return min(len(self.names), grown)

    async def evaluate(self, script):
        if 'scrollBy' in script:
            self.scrolls += 1

    async def wait_for_timeout(self, ms):
        self.waits.append(ms)

    async def wait_for_load_state(self, state=None, timeout=None):
        self.load_states.append(state)

    def locator(self, selector):
        if selector == SELECTORS['restaurant_name']:
            return NameLocator(self)
        return MissingLocator()

    def get_by_role(self, *args, **kwargs):
        return MissingLocator()

    def get_by_text(self, *args, **kwargs):
        return MissingLocator()

    def frame_locator(self, *args, **kwargs):
        return MissingLocator()


class EchoRoutingClient:
    """Routing backend that answers every tile with a constant or computed value"""

    def __init__(self, value=1, missing_at=None):
        self.value = value
        self.missing_at = missing_at
        self.calls = []

    async def matrix(self, locations, sources=None, destinations=None, metrics=('distance',)):
        self.calls.append({
            'locations': locations,
            'sources': list(sources),
            'destinations': list(destinations),
            'metrics': list(metrics),
        })
        if self.missing_at is not None and len(self.calls) - 1 == self.missing_at:
            return {'error': {'code': 6099, 'message': 'Unknown internal error'}}

        if callable(self.value):
            return {'distances': [[self.value(s, d) for d in destinations] for s in sources]}
        return {'distances': [[self.value] * len(destinations) for _ in sources]}


@pytest.fixture
def listing_names():
    names = [f"  Restaurant {i}  " for i in range(40)]
    names[3] = "   "
    names[7] = ""
    names[11] = RuntimeError("node detached")
    names[12] = None
    return names
