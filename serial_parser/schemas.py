"""
Pydantic schemas shared by the pipeline stages.

Data flow:
  Transport → FetchResult → guard + tokenizer → ParseEvents
  ParseEvents + AdapterGrammar + ExtractionPolicy → engine → WorkDraft
  WorkDraft → normalizer → WorkRecord (frozen, handed to the caller)
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

# Placeholder cover used when a page has no usable image attribute
DEFAULT_COVER = "https://github.com/LNReader/lnreader-plugins/blob/master/icons/src/coverNotAvailable.webp?raw=true"

# Prefix added to the display name of locked chapters
LOCK_GLYPH = "🔒"


class NovelStatus(str, Enum):
    """Publication status of a work."""
    ONGOING = "Ongoing"
    COMPLETED = "Completed"
    ON_HIATUS = "On Hiatus"
    UNKNOWN = "Unknown"


# --- Engine output ---

class ChapterRecord(BaseModel):
    """One entry of a work's chapter list."""
    model_config = ConfigDict(frozen=True)

    path: str = Field(min_length=1)
    name: str = ""
    release_time: Optional[str] = None   # Normalized date, or the raw string when unparseable
    chapter_number: int = 0              # 0 when no ordinal could be determined
    locked: bool = False


class WorkRecord(BaseModel):
    """A work's metadata plus its ordered chapter list."""
    model_config = ConfigDict(frozen=True)

    path: str = ""
    name: str = ""
    cover: str = DEFAULT_COVER
    summary: str = ""
    author: str = ""
    artist: str = ""
    status: NovelStatus = NovelStatus.UNKNOWN
    genres: list[str] = Field(default_factory=list)
    rating: Optional[float] = None
    chapters: list[ChapterRecord] = Field(default_factory=list)

    @property
    def genre_string(self) -> str:
        """Genres joined the way the sites display them ("Action, Drama")."""
        return ", ".join(self.genres)

    def is_empty(self) -> bool:
        """True when neither a name nor any chapter was found."""
        return not self.name and not self.chapters


class NovelItem(BaseModel):
    """One entry of a popular/latest/search listing page."""
    name: str
    path: str
    cover: str = DEFAULT_COVER


# --- Caller inputs ---

class ExtractionPolicy(BaseModel):
    """Caller-side switches that change what the engine keeps."""
    hide_locked: bool = False
    # Reference instant for relative dates ("3 days ago"); None means now
    now: Optional[datetime] = None


class FetchResult(BaseModel):
    """What the transport hands back for one request."""
    status: int
    final_url: str
    body: str = ""

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300
