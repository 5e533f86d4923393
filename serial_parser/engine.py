"""
Streaming extraction engine.

Consumes a page's ParseEvents once, in order, and fills a WorkDraft under the
control of an AdapterGrammar. There is no tree: structure is recovered from
event order with one active mode and a few counters per context.

Pipeline position: tokenizer → engine → normalizer.
Input:  iterable of ParseEvent + AdapterGrammar + ExtractionPolicy
Output: ExtractionContext (raw draft), or a WorkRecord via extract()

Modes are exclusive: a container open tag only switches contexts from IDLE,
so text can never be claimed by two contexts at once. Every handler is a
transition on the context for one (mode, event kind) pair, which keeps each
context testable with a handful of hand-built events.
"""

import re
from typing import Callable, Iterable, Optional

from .context import (
    ChapterDraft,
    ChapterField,
    ExtractionContext,
    InfoState,
    Mode,
)
from .events import CloseTag, OpenTag, ParseEvent, Text
from .grammar import AdapterGrammar, matches_any
from .keywords import InfoField, is_free, lookup_field, lookup_status
from .normalizer import normalize
from .schemas import DEFAULT_COVER, ChapterRecord, ExtractionPolicy, WorkRecord
from .logger import get_module_logger

logger = get_module_logger("engine")

_TRAILING_NUMBER_RE = re.compile(r"(\d+)$")
_RATING_RE = re.compile(r"\d+(?:[.,]\d+)?")


Handler = Callable[[ExtractionContext, ParseEvent], None]


class ExtractionEngine:
    """Single-pass interpreter of an AdapterGrammar over a ParseEvent stream."""

    def __init__(self, grammar: AdapterGrammar, policy: Optional[ExtractionPolicy] = None):
        self.grammar = grammar
        self.policy = policy or ExtractionPolicy()

        self._open: dict[Mode, Handler] = {
            Mode.IDLE: self._idle_open,
            Mode.GENRES: self._genres_open,
            Mode.SUMMARY: self._summary_open,
            Mode.INFO: self._info_open,
            Mode.CHAPTERS: self._chapters_open,
        }
        self._text: dict[Mode, Handler] = {
            Mode.TITLE: self._field_text,
            Mode.RATING: self._field_text,
            Mode.GENRES: self._genres_text,
            Mode.SUMMARY: self._summary_text,
            Mode.INFO: self._info_text,
            Mode.CHAPTERS: self._chapters_text,
        }
        self._close: dict[Mode, Handler] = {
            Mode.TITLE: self._title_close,
            Mode.RATING: self._rating_close,
            Mode.GENRES: self._genres_close,
            Mode.SUMMARY: self._summary_close,
            Mode.INFO: self._info_close,
            Mode.CHAPTERS: self._chapters_close,
        }

    def new_context(self, path: str = "") -> ExtractionContext:
        ctx = ExtractionContext(grammar=self.grammar, policy=self.policy)
        ctx.work.path = path
        return ctx

    def feed(self, ctx: ExtractionContext, event: ParseEvent) -> ExtractionContext:
        """Apply one event to the context and return it."""
        ctx.events_seen += 1
        if isinstance(event, OpenTag):
            self._capture_cover(ctx, event)
            handler = self._open.get(ctx.mode)
        elif isinstance(event, Text):
            handler = self._text.get(ctx.mode)
        elif isinstance(event, CloseTag):
            handler = self._close.get(ctx.mode)
        else:
            handler = None
        if handler is not None:
            handler(ctx, event)
        return ctx

    def run(self, events: Iterable[ParseEvent], path: str = "") -> ExtractionContext:
        """Consume the whole stream and return the final context."""
        ctx = self.new_context(path)
        for event in events:
            self.feed(ctx, event)
        logger.debug(
            f"Consumed {ctx.events_seen} events, {len(ctx.chapters.records)} chapters kept, "
            f"{ctx.chapters.hidden} hidden"
        )
        return ctx

    def extract(self, events: Iterable[ParseEvent], path: str = "") -> WorkRecord:
        """Run the machine and normalize the result."""
        ctx = self.run(events, path)
        record = normalize(ctx)
        logger.info(f"Extracted '{record.name}': {len(record.chapters)} chapters")
        return record

    # --- Cover and name (attribute-only, any mode) ---

    def _capture_cover(self, ctx: ExtractionContext, event: OpenTag) -> None:
        rules = self.grammar.cover
        if ctx.work.cover is not None or not matches_any(rules.image, event.name, event.attributes):
            return
        name = event.attr(rules.name_attribute)
        if name:
            ctx.work.name = name
        for attribute in rules.source_attributes:
            source = event.attr(attribute)
            if source:
                ctx.work.cover = source
                return
        ctx.work.cover = DEFAULT_COVER

    # --- IDLE: look for the next container ---

    def _idle_open(self, ctx: ExtractionContext, event: OpenTag) -> None:
        name, attrs = event.name, event.attributes
        grammar = self.grammar

        if matches_any(grammar.genres.container, name, attrs):
            ctx.mode = Mode.GENRES
            ctx.genres.reading_tag = None
        elif matches_any(grammar.summary.container, name, attrs):
            ctx.mode = Mode.SUMMARY
            ctx.summary.depth = 1
            ctx.summary.container_tag = name
        elif matches_any(grammar.info.container, name, attrs):
            ctx.mode = Mode.INFO
            ctx.info = InfoState(end_tag=name)
        elif matches_any(grammar.info.status_container, name, attrs):
            # Holds only the status value: no label to read first
            ctx.mode = Mode.INFO
            ctx.info = InfoState(reading_label=True, active_field=InfoField.STATUS, end_tag=name)
        elif matches_any(grammar.chapters.container, name, attrs):
            ctx.mode = Mode.CHAPTERS
            ctx.chapters.end_tag = grammar.chapters.end_tag or name
            ctx.chapters.active_field = ChapterField.NONE
        elif not ctx.work.name and matches_any(grammar.title, name, attrs):
            ctx.mode = Mode.TITLE
            ctx.field_end_tag = name
            ctx.field_buffer = ""
        elif ctx.work.rating is None and matches_any(grammar.rating, name, attrs):
            rating = _parse_rating(event.attr("content"))
            if rating is not None:
                ctx.work.rating = rating
            else:
                ctx.mode = Mode.RATING
                ctx.field_end_tag = name
                ctx.field_buffer = ""

    # --- TITLE / RATING: collect the text of one element ---

    def _field_text(self, ctx: ExtractionContext, event: Text) -> None:
        ctx.field_buffer += event.content

    def _title_close(self, ctx: ExtractionContext, event: CloseTag) -> None:
        if event.name != ctx.field_end_tag:
            return
        ctx.work.name = ctx.field_buffer.strip()
        ctx.mode = Mode.IDLE

    def _rating_close(self, ctx: ExtractionContext, event: CloseTag) -> None:
        if event.name != ctx.field_end_tag:
            return
        ctx.work.rating = _parse_rating(ctx.field_buffer)
        if ctx.work.rating is None:
            logger.warning(f"Unparseable rating: {ctx.field_buffer.strip()!r}")
        ctx.mode = Mode.IDLE

    # --- GENRES ---

    def _genres_open(self, ctx: ExtractionContext, event: OpenTag) -> None:
        if ctx.genres.reading_tag is None and matches_any(
            self.grammar.genres.link, event.name, event.attributes
        ):
            ctx.genres.reading_tag = event.name
            ctx.genres.fragments.append("")

    def _genres_text(self, ctx: ExtractionContext, event: Text) -> None:
        # Text of nested tags joins the current link's genre
        if ctx.genres.reading_tag is not None:
            ctx.genres.fragments[-1] += event.content

    def _genres_close(self, ctx: ExtractionContext, event: CloseTag) -> None:
        if ctx.genres.reading_tag is not None:
            if event.name == ctx.genres.reading_tag:
                ctx.genres.reading_tag = None
            return
        ctx.mode = Mode.IDLE

    # --- SUMMARY ---

    def _is_summary_boundary(self, ctx: ExtractionContext, name: str) -> bool:
        return name in self.grammar.summary.boundary_tags or name == ctx.summary.container_tag

    def _summary_open(self, ctx: ExtractionContext, event: OpenTag) -> None:
        if self._is_summary_boundary(ctx, event.name):
            ctx.summary.depth += 1

    def _summary_text(self, ctx: ExtractionContext, event: Text) -> None:
        # Only prose directly inside the container; nested boundaries are ads/scripts
        if ctx.summary.depth == 1 and event.content.strip():
            ctx.work.summary += event.content

    def _summary_close(self, ctx: ExtractionContext, event: CloseTag) -> None:
        if event.name == "p":
            ctx.work.summary += "\n\n"
        elif event.name == "br":
            ctx.work.summary += "\n"
        elif self._is_summary_boundary(ctx, event.name):
            ctx.summary.depth -= 1
            if ctx.summary.depth <= 0:
                ctx.summary.depth = 0
                ctx.mode = Mode.IDLE

    # --- INFO (author / artist / status) ---

    def _info_open(self, ctx: ExtractionContext, event: OpenTag) -> None:
        if matches_any(self.grammar.info.label, event.name, event.attributes):
            ctx.info.reading_label = True
            ctx.info.label_tag = event.name

    def _info_text(self, ctx: ExtractionContext, event: Text) -> None:
        if not ctx.info.reading_label:
            return
        text = event.content
        work = ctx.work

        # A field switched on by an earlier label takes this text as its value
        if ctx.info.active_field == InfoField.AUTHOR:
            work.author += text or "Unknown"
        elif ctx.info.active_field == InfoField.ARTIST:
            work.artist += text or "Unknown"
        elif ctx.info.active_field == InfoField.STATUS:
            work.status = lookup_status(text)

        introduced = lookup_field(text)
        if introduced is not None:
            ctx.info.active_field = introduced

    def _field_captured(self, ctx: ExtractionContext) -> bool:
        work = ctx.work
        if ctx.info.active_field == InfoField.AUTHOR:
            return bool(work.author)
        if ctx.info.active_field == InfoField.ARTIST:
            return bool(work.artist)
        if ctx.info.active_field == InfoField.STATUS:
            return work.status is not None
        return False

    def _info_close(self, ctx: ExtractionContext, event: CloseTag) -> None:
        info = ctx.info
        if info.reading_label and event.name == info.label_tag:
            info.reading_label = False
            info.label_tag = None
            # A label wrapper can close before its value arrives; keep the field
            if self._field_captured(ctx):
                info.active_field = None
            return
        if event.name == info.end_tag and (not info.reading_label or info.label_tag is None):
            info.reading_label = False
            info.active_field = None
            ctx.work.author = ctx.work.author.strip()
            ctx.work.artist = ctx.work.artist.strip()
            ctx.mode = Mode.IDLE

    # --- CHAPTERS ---

    def _chapters_open(self, ctx: ExtractionContext, event: OpenTag) -> None:
        rules = self.grammar.chapters
        state = ctx.chapters
        name, attrs = event.name, event.attributes

        if state.draft is None:
            if matches_any(rules.item, name, attrs):
                state.draft = ChapterDraft(
                    item_tag=name,
                    locked_by_class=matches_any(rules.locked_item, name, attrs),
                )
                state.active_field = ChapterField.NONE
            return

        draft = state.draft
        if name == rules.link_tag and draft.path is None:
            href = event.attr(rules.link_attribute)
            draft.path = href.replace(self.grammar.site, "", 1).strip()
        elif matches_any(rules.number, name, attrs):
            state.active_field = ChapterField.NUMBER
        elif matches_any(rules.title, name, attrs):
            state.active_field = ChapterField.TITLE
        elif matches_any(rules.date, name, attrs):
            state.active_field = ChapterField.DATE
        elif matches_any(rules.price, name, attrs):
            state.active_field = ChapterField.PRICE

    def _chapters_text(self, ctx: ExtractionContext, event: Text) -> None:
        state = ctx.chapters
        draft = state.draft
        if draft is None or state.active_field == ChapterField.NONE:
            return
        text = event.content

        if state.active_field == ChapterField.NUMBER:
            if self.grammar.chapters.lock_glyph in text:
                state.paid = True
                state.lock_marker_seen = True
            elif state.lock_marker_seen:
                state.paid = False
            _take_trailing_number(text, draft)
        elif state.active_field == ChapterField.TITLE:
            draft.name = _strip_work_name(text, ctx.work.name)
            if not draft.chapter_number:
                _take_trailing_number(text, draft)
        elif state.active_field == ChapterField.DATE:
            draft.release_time = text
        elif state.active_field == ChapterField.PRICE:
            state.paid = not is_free(text)

    def _chapters_close(self, ctx: ExtractionContext, event: CloseTag) -> None:
        state = ctx.chapters
        if state.draft is not None:
            if state.active_field != ChapterField.NONE:
                state.active_field = ChapterField.NONE
            elif event.name == state.draft.item_tag:
                self._finish_chapter(ctx)
            return
        if event.name == state.end_tag:
            ctx.mode = Mode.IDLE

    def _finish_chapter(self, ctx: ExtractionContext) -> None:
        state = ctx.chapters
        draft = state.draft
        state.draft = None
        state.active_field = ChapterField.NONE

        locked = state.paid or draft.locked_by_class
        name = draft.name
        if locked:
            name = f"{self.grammar.chapters.lock_glyph} {name}"

        if locked and self.policy.hide_locked:
            state.hidden += 1
            logger.debug(f"Hiding locked chapter {draft.path}")
            return
        if not draft.path:
            logger.debug(f"Skipping chapter item without a link: {name!r}")
            return

        state.records.append(ChapterRecord(
            path=draft.path,
            name=name,
            release_time=draft.release_time,
            chapter_number=draft.chapter_number or 0,
            locked=locked,
        ))


def _take_trailing_number(text: str, draft: ChapterDraft) -> None:
    """Set the draft's ordinal from the digits ending `text`, if any."""
    match = _TRAILING_NUMBER_RE.search(text.rstrip())
    if match:
        draft.chapter_number = int(match.group(1))


def _strip_work_name(text: str, work_name: str) -> str:
    """Drop a leading copy of the work's name from a chapter title."""
    if work_name:
        match = re.match(rf"^{re.escape(work_name)}\s*(.+)", text)
        if match and match.group(1).strip():
            return match.group(1).strip()
    return text.strip()


def _parse_rating(text: str) -> Optional[float]:
    match = _RATING_RE.search(text or "")
    if not match:
        return None
    return float(match.group(0).replace(",", "."))


def extract(
    events: Iterable[ParseEvent],
    grammar: AdapterGrammar,
    policy: Optional[ExtractionPolicy] = None,
    path: str = "",
) -> WorkRecord:
    """Convenience function to extract a WorkRecord from an event stream."""
    return ExtractionEngine(grammar, policy).extract(events, path)
