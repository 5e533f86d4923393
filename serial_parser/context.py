"""
Mutable state of one in-progress extraction.

One ExtractionContext is allocated per extract() call and owned by the
engine until the normalizer freezes it into a WorkRecord. Each context of
the page (genres, summary, info block, chapter list) keeps its own small
sub-state; `mode` says which one is active.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from .grammar import AdapterGrammar
from .keywords import InfoField
from .schemas import ChapterRecord, ExtractionPolicy, NovelStatus


class Mode(str, Enum):
    """Top-level context the engine is in."""
    IDLE = "idle"
    TITLE = "title"
    RATING = "rating"
    GENRES = "genres"
    SUMMARY = "summary"
    INFO = "info"
    CHAPTERS = "chapters"


class ChapterField(str, Enum):
    """Cell of a chapter item whose text is being read."""
    NONE = "none"
    NUMBER = "number"
    TITLE = "title"
    DATE = "date"
    PRICE = "price"


# --- Per-context sub-state ---

@dataclass
class GenreState:
    reading_tag: Optional[str] = None       # tag of the genre link being read
    fragments: list[str] = field(default_factory=list)  # one per genre link


@dataclass
class SummaryState:
    depth: int = 0
    container_tag: str = "div"


@dataclass
class InfoState:
    reading_label: bool = False
    label_tag: Optional[str] = None
    active_field: Optional[InfoField] = None
    end_tag: str = "div"


@dataclass
class ChapterDraft:
    path: Optional[str] = None
    name: str = ""
    release_time: Optional[str] = None
    chapter_number: Optional[int] = None
    locked_by_class: bool = False
    item_tag: str = "li"


@dataclass
class ChapterState:
    active_field: ChapterField = ChapterField.NONE
    draft: Optional[ChapterDraft] = None
    # Session-wide lock flags. `paid` carries over to following items until
    # a number or price cell changes it; `lock_marker_seen` turns on the rule
    # that a number cell without the glyph unlocks.
    paid: bool = False
    lock_marker_seen: bool = False
    end_tag: str = "ul"
    hidden: int = 0
    records: list[ChapterRecord] = field(default_factory=list)


@dataclass
class WorkDraft:
    """Mutable accumulator for one work; frozen by the normalizer."""
    path: str = ""
    name: str = ""
    cover: Optional[str] = None
    summary: str = ""
    author: str = ""
    artist: str = ""
    status: Optional[NovelStatus] = None
    rating: Optional[float] = None


@dataclass
class ExtractionContext:
    """Full state of one in-progress extraction. Never shared between calls."""
    grammar: AdapterGrammar
    policy: ExtractionPolicy
    mode: Mode = Mode.IDLE
    work: WorkDraft = field(default_factory=WorkDraft)
    genres: GenreState = field(default_factory=GenreState)
    summary: SummaryState = field(default_factory=SummaryState)
    info: InfoState = field(default_factory=InfoState)
    chapters: ChapterState = field(default_factory=ChapterState)
    # Close tag ending the TITLE/RATING modes, plus the text they collect
    field_end_tag: Optional[str] = None
    field_buffer: str = ""
    events_seen: int = 0
