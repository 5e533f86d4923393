"""
Listing pages: popular/latest catalogue and search results.

Unlike work pages, listings are small and flat (one <article> per work), so
they go through BeautifulSoup instead of the streaming engine.

Input:  listing page body + AdapterGrammar
Output: list of NovelItem
"""

from typing import Optional
from urllib.parse import quote

from bs4 import BeautifulSoup

from .fetcher import collapse_slashes
from .grammar import AdapterGrammar
from .schemas import DEFAULT_COVER, NovelItem
from .logger import get_module_logger

logger = get_module_logger("listing")


def make_soup(html: str) -> BeautifulSoup:
    """
    Parse with the most tolerant parser available.

    html5lib implements the WHATWG algorithm and survives the worst markup;
    lxml is the fast fallback and html.parser is always there.
    """
    try:
        return BeautifulSoup(html, "html5lib")
    except Exception as e:
        logger.warning(f"html5lib parsing failed, trying lxml: {e}")
    try:
        return BeautifulSoup(html, "lxml")
    except Exception as e:
        logger.warning(f"lxml parsing also failed: {e}")
    return BeautifulSoup(html, "html.parser")


def relative_path(url: str, site: str) -> str:
    """
    Path of `url` relative to the site.

    A link to another host (the site moved, or a mirror) keeps only its
    path so it still resolves against the configured site.
    """
    if site and site in url:
        return url.replace(site, "", 1)
    parts = url.split("/")
    if len(parts) > 3 and "://" in url:
        return "/".join(parts[3:])
    return url


def parse_novels(html: str, grammar: AdapterGrammar) -> list[NovelItem]:
    """Extract one NovelItem per <article> that links to a titled work."""
    if not html or not html.strip():
        return []

    soup = make_soup(html)
    novels = []
    for article in soup.find_all("article"):
        link = article.find("a", href=True, title=True)
        if link is None:
            continue
        name = link.get("title", "").strip()
        url = link.get("href", "").strip()
        if not name or not url:
            continue

        cover = DEFAULT_COVER
        image = article.find("img")
        if image is not None:
            cover = image.get("data-src") or image.get("src") or DEFAULT_COVER

        novels.append(NovelItem(name=name, path=relative_path(url, grammar.site), cover=cover))

    logger.debug(f"Parsed {len(novels)} listing entries")
    return novels


def popular_url(
    grammar: AdapterGrammar,
    page: int = 1,
    latest: bool = False,
    filters: Optional[dict] = None,
) -> str:
    """
    URL of one page of the site's catalogue.

    `filters` maps query keys to a value or a list of values; list values
    repeat the key ("genre[]=action&genre[]=drama"), empty values are left out.
    """
    url = f"{grammar.site}{grammar.series_path}?page={page}"
    if latest:
        url += "&order=latest"
    for key, value in (filters or {}).items():
        if isinstance(value, (list, tuple)):
            for item in value:
                url += f"&{key}={item}"
        elif value:
            url += f"&{key}={value}"
    return collapse_slashes(url)


def search_url(grammar: AdapterGrammar, term: str, page: int = 1) -> str:
    """URL of one page of search results for `term`."""
    return grammar.site + grammar.search_path.format(page=page, term=quote(term, safe=""))
