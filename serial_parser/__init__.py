"""
Serial Parser

Extracts a work's metadata and chapter list from template-driven serial
fiction sites, one streaming pass over the page's markup events.
- Guard: rejects bot-challenge pages and cross-site redirects
- Tokenizer: page body → ParseEvent stream (lxml, no tree)
- Engine: grammar-driven state machine → WorkRecord
- Listing / chapter: catalogue pages and chapter bodies

Public API surface:
  Orchestrator     — SerialParser, parse_html
  Engine           — ExtractionEngine, extract
  Grammars         — AdapterGrammar, lightnovelwp, GrammarStore
  Data models      — WorkRecord, ChapterRecord, NovelItem, ExtractionPolicy
  Events           — OpenTag, Text, CloseTag
  Error types      — AccessBlocked, SiteUnreachable (fatal),
                     MalformedInput, StructureMismatch
"""

# --- Pipeline ---
from .main import SerialParser, parse_html
from .engine import ExtractionEngine, extract
from .tokenizer import tokenize
from .guard import ensure_access

# --- Grammars ---
from .grammar import AdapterGrammar, lightnovelwp
from .grammar_store import GrammarStore, BUILTIN_GRAMMARS

# --- Data models ---
from .events import OpenTag, Text, CloseTag
from .schemas import WorkRecord, ChapterRecord, NovelItem, NovelStatus, ExtractionPolicy
from .config import Preferences

# --- Exceptions ---
from .exceptions import (
    SerialParserError,
    AccessBlocked,
    SiteUnreachable,
    MalformedInput,
    StructureMismatch,
)

__version__ = "0.1.0"
__all__ = [
    "SerialParser",
    "parse_html",
    "ExtractionEngine",
    "extract",
    "tokenize",
    "ensure_access",
    "AdapterGrammar",
    "lightnovelwp",
    "GrammarStore",
    "BUILTIN_GRAMMARS",
    "OpenTag",
    "Text",
    "CloseTag",
    "WorkRecord",
    "ChapterRecord",
    "NovelItem",
    "NovelStatus",
    "ExtractionPolicy",
    "Preferences",
    "SerialParserError",
    "AccessBlocked",
    "SiteUnreachable",
    "MalformedInput",
    "StructureMismatch",
]
