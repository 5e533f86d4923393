"""
Main orchestrator for the serial parser.

Wires the stages for one site: Transport → guard → Preprocessor →
tokenizer → ExtractionEngine → normalizer. Each stage stays ignorant of the
others; this module owns the URLs, the order of requests and the decision
whether an empty result is an error.
"""

from itertools import chain
from pathlib import Path
from typing import Iterable, Optional, Union

from .chapter import extract_content
from .engine import ExtractionEngine
from .events import ParseEvent
from .exceptions import MalformedInput, SiteUnreachable, StructureMismatch
from .fetcher import RequestsTransport, Transport
from .grammar import AdapterGrammar
from .grammar_store import GrammarStore
from .guard import ensure_access
from .listing import parse_novels, popular_url, search_url
from .preprocessor import Preprocessor
from .schemas import ExtractionPolicy, NovelItem, WorkRecord
from .tokenizer import tokenize, tokenize_all
from .logger import get_module_logger, setup_logger

logger = get_module_logger("main")


class SerialParser:
    """
    Main orchestrator for one site.

    Pipeline per work page:
    1. Transport fetches the page (and the chapter list, for sites that
       load it separately)
    2. Guard rejects challenge pages and cross-site redirects
    3. Preprocessor sanitizes, tokenizer streams events
    4. Engine + normalizer build the WorkRecord
    """

    def __init__(
        self,
        grammar: Union[AdapterGrammar, str],
        transport: Optional[Transport] = None,
        policy: Optional[ExtractionPolicy] = None,
        store: Optional[GrammarStore] = None,
        strict: bool = False,
        log_level: Optional[Union[int, str]] = None,
    ):
        """
        Args:
            grammar: Grammar, or the id of one in `store` / the built-ins
            transport: Network access; defaults to a RequestsTransport
            policy: Caller switches (hide locked chapters, reference time)
            store: Where grammar ids are resolved
            strict: Raise StructureMismatch when a page yields nothing
            log_level: Reconfigure package logging
        """
        if log_level is not None:
            setup_logger(level=log_level)

        if isinstance(grammar, str):
            grammar = (store or GrammarStore()).get(grammar)

        self.grammar = grammar
        self.transport = transport or RequestsTransport()
        self.policy = policy or ExtractionPolicy()
        if self.policy.hide_locked and not grammar.has_locked:
            logger.info(f"'{grammar.id}' has no locked chapters; ignoring hide_locked")
            self.policy = self.policy.model_copy(update={"hide_locked": False})
        self.strict = strict
        self.preprocessor = Preprocessor()
        self.engine = ExtractionEngine(grammar, self.policy)

        logger.info(f"SerialParser initialized for '{grammar.id}' ({grammar.site})")

    # --- Work pages ---

    def extract_events(self, events: Iterable[ParseEvent], path: str = "") -> WorkRecord:
        """Run the engine over an event stream and apply the strictness check."""
        record = self.engine.extract(events, path)
        if self.strict and record.is_empty():
            raise StructureMismatch(
                f"Page structure not recognized by grammar '{self.grammar.id}'",
                path=path,
                details={"site": self.grammar.site},
            )
        return record

    def parse_html(self, html: Union[str, bytes], path: str = "") -> WorkRecord:
        """Extract a WorkRecord from an already fetched work page."""
        page = self.preprocessor.process(html)
        return self.extract_events(tokenize(page.body), path)

    def parse_file(self, file_path: Union[str, Path], path: Optional[str] = None) -> WorkRecord:
        """Extract a WorkRecord from a saved work page."""
        file_path = Path(file_path)
        # Bytes, so the declared charset decides the decoding
        return self.parse_html(file_path.read_bytes(), path if path is not None else file_path.stem)

    def fetch_work(self, path: str) -> WorkRecord:
        """
        Fetch and extract one work.

        Raises:
            AccessBlocked, SiteUnreachable: from the guard / transport
            MalformedInput: the page body could not be tokenized
            StructureMismatch: strict mode and nothing was found
        """
        url = self.grammar.site + path
        logger.info(f"Fetching work {url}")
        body = ensure_access(url, self.transport.fetch(url))
        page = self.preprocessor.process(body)

        events: Iterable[ParseEvent] = tokenize(page.body)
        extra = self._fetch_chapter_list(path, referrer=url)
        if extra:
            events = chain(events, extra)

        return self.extract_events(events, path)

    def _fetch_chapter_list(self, path: str, referrer: str) -> list[ParseEvent]:
        """
        Events of the separately served chapter list, if the site has one.

        A failed request only costs the chapters: the work's metadata is
        still worth returning. Bot challenges are not swallowed.
        """
        request = self.grammar.chapter_list_request
        if request is None:
            return []

        url = request.path.format(site=self.grammar.site, path=path)
        try:
            result = self.transport.fetch(
                url, method=request.method, data=request.data or None, referrer=referrer
            )
            body = ensure_access(url, result)
            return tokenize_all(self.preprocessor.process(body).body)
        except (SiteUnreachable, MalformedInput) as e:
            logger.warning(f"Chapter list request failed for {path}: {e.message}")
            return []

    # --- Listings ---

    def fetch_listing(
        self,
        page: int = 1,
        latest: bool = False,
        filters: Optional[dict] = None,
    ) -> list[NovelItem]:
        """One page of the site's catalogue, by popularity or latest update."""
        url = popular_url(self.grammar, page, latest, filters)
        body = ensure_access(url, self.transport.fetch(url))
        novels = parse_novels(body, self.grammar)
        logger.info(f"Listing page {page}: {len(novels)} works")
        return novels

    def search(self, term: str, page: int = 1) -> list[NovelItem]:
        """
        Search results for `term`.

        Sites answer an empty search with 404; that is an empty result, not
        an unreachable site.
        """
        url = search_url(self.grammar, term, page)
        body = ensure_access(url, self.transport.fetch(url), search=True)
        novels = parse_novels(body, self.grammar)
        logger.info(f"Search '{term}' page {page}: {len(novels)} works")
        return novels

    # --- Chapters ---

    def fetch_chapter(self, path: str) -> str:
        """Paragraph HTML of one chapter."""
        url = self.grammar.site + path
        body = ensure_access(url, self.transport.fetch(url))
        return extract_content(self.preprocessor.process(body).body, self.grammar)


def parse_html(html: Union[str, bytes], grammar: Union[AdapterGrammar, str], path: str = "") -> WorkRecord:
    """Convenience function to extract a saved work page."""
    return SerialParser(grammar, transport=_NoTransport()).parse_html(html, path)


class _NoTransport:
    """Transport for offline use; any fetch is a programming error."""

    def fetch(self, url, method="GET", data=None, referrer=None):
        raise SiteUnreachable(url, 0, {"error": "offline parser has no transport"})
