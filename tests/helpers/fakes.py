"""
In-memory fakes and sample documents shared by the unit tests.
"""

# Standard library imports
import time
from typing import Callable, Dict, List, Optional, Tuple, Union

# Local imports
from menuquarry.crawler.http_client import FetchResponse
from menuquarry.errors import FetchError
from menuquarry.protocols import Menu, MenuItem

# ============================================================================
# Sample documents
# ============================================================================

MENU_HTML = """<!DOCTYPE html>
<html>
<head><title>Chez Marcel</title><script>var tracking = 1;</script></head>
<body>
  <nav><a href="/">Home</a> <a href="/menu">Menu</a> <a href="/contact">Contact</a></nav>
  <div class="cookie-banner">We use cookies to improve your experience. Accept all cookies?</div>
  <main>
    <section class="intro"><p>Welcome to our little bistro in the heart of the old town.</p></section>
    <div class="menu-section">
      <h2>Starters</h2>
      <p>French onion soup with gruyere croutons 8.50 €</p>
      <p>Burrata, heirloom tomatoes and basil oil 12.00 €</p>
      <h2>Main courses</h2>
      <p>Steak frites with bearnaise sauce 24.50 €</p>
      <p>Pan-seared sea bass, fennel and citrus 26.00 €</p>
      <h2>Desserts</h2>
      <p>Creme brulee with Tahitian vanilla 9.00 €</p>
      <p>Dark chocolate fondant, salted caramel 10.50 €</p>
    </div>
  </main>
  <footer>© Chez Marcel - Privacy - Impressum</footer>
</body>
</html>
"""

ROBOTS_TXT = """User-agent: *
Disallow: /admin
Sitemap: https://bistro.example/sitemap_index.xml
"""


def make_response(
    url: str,
    body: Union[bytes, str] = b"",
    *,
    content_type: str = "text/html; charset=utf-8",
    status: int = 200,
    method: str = "GET",
) -> FetchResponse:
    """Build a ``FetchResponse`` as the HTTP client would return it."""
    if isinstance(body, str):
        body = body.encode("utf-8")
    now = time.time()
    return FetchResponse(
        status=status,
        headers={"content-type": content_type},
        body=body,
        start_ts=now,
        end_ts=now,
        attempts=1,
        url=url,
        final_url=url,
        method=method,
    )


def sample_menu(price: str = "12.50 €") -> Menu:
    return Menu(
        starters=[MenuItem(name="Onion soup", price=price)],
        main_courses=[MenuItem(name="Steak frites", price="24.50 €")],
        desserts=[MenuItem(name="Creme brulee", price="9.00 €")],
    )


# ============================================================================
# Fakes
# ============================================================================


class FakeFetcher:
    """
    In-memory fetch collaborator.

    Routes map a URL to a response or an exception; unknown URLs answer 404.
    """

    def __init__(self, routes: Optional[Dict[str, Union[FetchResponse, Exception]]] = None) -> None:
        self.routes: Dict[str, Union[FetchResponse, Exception]] = dict(routes or {})
        self.calls: List[Tuple[str, str]] = []

    def add(self, url: str, body: Union[bytes, str] = b"", **kwargs) -> None:
        self.routes[url] = make_response(url, body, **kwargs)

    async def fetch(self, url: str, *, method: str = "GET", timeout: Optional[float] = None) -> FetchResponse:
        self.calls.append((method, url))
        route = self.routes.get(url)
        if route is None:
            raise FetchError("HTTP 404", url=url, status=404)
        if isinstance(route, Exception):
            raise route
        return route

    def fetched(self, method: str = "GET") -> List[str]:
        return [url for m, url in self.calls if m == method]


class FakeStructurer:
    """Structuring collaborator driven by a callable or a fixed answer."""

    def __init__(self, answer: Union[Menu, Exception, Callable[[str], Menu]]) -> None:
        self.answer = answer
        self.texts: List[str] = []

    async def structure(self, text: str) -> Menu:
        self.texts.append(text)
        if isinstance(self.answer, Exception):
            raise self.answer
        if callable(self.answer):
            return self.answer(text)
        return self.answer
