"""
Normalizer: freezes an engine context into a WorkRecord.

Pipeline position: engine → normalizer → caller.
Input:  ExtractionContext after the last event
Output: WorkRecord (immutable)

Runs after the stream is exhausted because some rules need the whole chapter
list: reversal of newest-first sites and position-derived numbering.
"""

from datetime import datetime
from typing import Optional

from .context import ExtractionContext
from .dates import normalize_date
from .grammar import OrdinalPolicy
from .schemas import DEFAULT_COVER, ChapterRecord, NovelStatus, WorkRecord
from .logger import get_module_logger

logger = get_module_logger("normalizer")


def _normalize_release(raw: Optional[str], now: datetime) -> Optional[str]:
    if raw is None:
        return None
    raw = raw.strip()
    if not raw:
        return None
    return normalize_date(raw, now)


def normalize_chapters(ctx: ExtractionContext) -> list[ChapterRecord]:
    """Ascending chapter list with dates resolved and ordinals filled in."""
    grammar = ctx.grammar
    chapters = list(ctx.chapters.records)

    if grammar.reverse_chapters:
        chapters.reverse()

    now = ctx.policy.now or datetime.now()
    normalized = []
    for index, chapter in enumerate(chapters):
        update = {"release_time": _normalize_release(chapter.release_time, now)}
        if grammar.ordinal_policy == OrdinalPolicy.POSITION:
            update["chapter_number"] = index + 1
        normalized.append(chapter.model_copy(update=update))
    return normalized


def normalize(ctx: ExtractionContext) -> WorkRecord:
    """Build the final record from the context's draft and chapter list."""
    work = ctx.work
    genres = [g.strip() for g in ctx.genres.fragments if g.strip()]

    record = WorkRecord(
        path=work.path,
        name=work.name.strip(),
        cover=work.cover or DEFAULT_COVER,
        summary=work.summary.strip(),
        author=work.author.strip(),
        artist=work.artist.strip(),
        status=work.status or NovelStatus.UNKNOWN,
        genres=genres,
        rating=work.rating,
        chapters=normalize_chapters(ctx),
    )
    if record.is_empty():
        logger.warning(f"No name and no chapters found for '{work.path}'")
    return record
