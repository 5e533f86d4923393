"""
Adapter grammars: declarative per-site extraction rules.

A grammar says which open tags switch the engine into which context
(genre list, summary, info block, chapter list) and carries the handful of
per-site knobs the engine and orchestrator need. Predicates are typed and
serializable so a new site of a known theme family is a JSON file, not code.

Contract: AdapterGrammar → ExtractionEngine / SerialParser
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from .schemas import LOCK_GLYPH


class PredicateKind(str, Enum):
    """How a predicate tests an open tag."""
    TAG = "tag"                      # tag name equality
    ATTR_EQUALS = "attr_equals"      # whole attribute value equality
    ATTR_CONTAINS = "attr_contains"  # substring of the attribute value


class Predicate(BaseModel):
    """A single test against an open tag's name and attributes."""
    kind: PredicateKind
    value: str
    attribute: str = "class"          # ignored for TAG predicates
    tag: Optional[str] = None         # optional extra tag-name constraint

    def matches(self, name: str, attributes: dict[str, str]) -> bool:
        if self.kind == PredicateKind.TAG:
            return name == self.value
        if self.tag is not None and name != self.tag:
            return False
        actual = attributes.get(self.attribute)
        if actual is None:
            return False
        if self.kind == PredicateKind.ATTR_EQUALS:
            return actual == self.value
        return self.value in actual


def matches_any(predicates: list[Predicate], name: str, attributes: dict[str, str]) -> bool:
    """True when any predicate of the list matches. An empty list never matches."""
    return any(p.matches(name, attributes) for p in predicates)


# --- Shorthand constructors used by the built-in grammars and tests ---

def tag_is(name: str) -> Predicate:
    return Predicate(kind=PredicateKind.TAG, value=name)


def class_is(value: str, tag: Optional[str] = None) -> Predicate:
    return Predicate(kind=PredicateKind.ATTR_EQUALS, value=value, tag=tag)


def class_has(value: str, tag: Optional[str] = None) -> Predicate:
    return Predicate(kind=PredicateKind.ATTR_CONTAINS, value=value, tag=tag)


def attr_is(attribute: str, value: str, tag: Optional[str] = None) -> Predicate:
    return Predicate(kind=PredicateKind.ATTR_EQUALS, value=value, attribute=attribute, tag=tag)


# --- Per-context rule groups ---

class CoverRules(BaseModel):
    """Cover image tag; its attributes also carry the work's name."""
    image: list[Predicate] = Field(default_factory=list)
    name_attribute: str = "title"
    source_attributes: list[str] = Field(default_factory=lambda: ["data-src", "src"])


class GenreRules(BaseModel):
    container: list[Predicate] = Field(default_factory=list)
    link: list[Predicate] = Field(default_factory=lambda: [tag_is("a")])


class SummaryRules(BaseModel):
    container: list[Predicate] = Field(default_factory=list)
    # Nested elements that may hold non-prose (ads, inline scripts)
    boundary_tags: list[str] = Field(default_factory=lambda: ["div", "script"])


class InfoRules(BaseModel):
    container: list[Predicate] = Field(default_factory=list)
    label: list[Predicate] = Field(default_factory=lambda: [tag_is("span")])
    # Containers that hold nothing but the status value
    status_container: list[Predicate] = Field(default_factory=list)


class ChapterRules(BaseModel):
    container: list[Predicate] = Field(default_factory=list)
    # Close tag that ends the list; None means the container's own tag
    end_tag: Optional[str] = "ul"
    item: list[Predicate] = Field(default_factory=lambda: [tag_is("li")])
    link_tag: str = "a"
    link_attribute: str = "href"
    number: list[Predicate] = Field(default_factory=list)
    title: list[Predicate] = Field(default_factory=list)
    date: list[Predicate] = Field(default_factory=list)
    price: list[Predicate] = Field(default_factory=list)
    # Items whose own tag marks them as locked (e.g. a "premium" class)
    locked_item: list[Predicate] = Field(default_factory=list)
    lock_glyph: str = LOCK_GLYPH


class OrdinalPolicy(str, Enum):
    """Where chapter numbers come from."""
    PARSED = "parsed"        # trailing digits of the number/title text
    POSITION = "position"    # 1-based position in the final (ascending) list


class ChapterListRequest(BaseModel):
    """
    Secondary request some themes need to get the chapter list.

    `path` is formatted with `site` and `path` (the work's path) and is
    fetched by the orchestrator before extraction; its events are appended
    to the work page's events.
    """
    path: str = "{site}{path}ajax/chapters/"
    method: str = "POST"
    data: dict[str, str] = Field(default_factory=dict)


class AdapterGrammar(BaseModel):
    """Everything the pipeline needs to know about one site."""
    id: str
    source_name: str
    site: str                                   # base URL, stripped from chapter hrefs
    lang: str = "English"

    cover: CoverRules = Field(default_factory=CoverRules)
    title: list[Predicate] = Field(default_factory=list)   # element whose text is the name
    rating: list[Predicate] = Field(default_factory=list)
    genres: GenreRules = Field(default_factory=GenreRules)
    summary: SummaryRules = Field(default_factory=SummaryRules)
    info: InfoRules = Field(default_factory=InfoRules)
    chapters: ChapterRules = Field(default_factory=ChapterRules)

    reverse_chapters: bool = False              # site lists newest first
    ordinal_policy: OrdinalPolicy = OrdinalPolicy.PARSED
    has_locked: bool = False                    # site marks paid chapters; hide_locked applies
    series_path: str = "/series/"               # paginated popular listing
    search_path: str = "page/{page}/?s={term}"
    chapter_list_request: Optional[ChapterListRequest] = None

    # Chapter page body
    content_class: str = "epcontent"
    strip_style_classes: bool = False           # drop style-hidden <p> and .code-block ads


def lightnovelwp(
    id: str,
    source_name: str,
    site: str,
    lang: str = "English",
    reverse_chapters: bool = False,
    **options,
) -> AdapterGrammar:
    """
    Grammar for sites built on the LightNovel WordPress theme.

    The theme renders, in order: a cover <img class="ts-post-image">, the
    info block (<div class="spe"> with one <span> per field, or
    <div class="sertostat"> holding only the status), the genre links
    (<div class="genxed"> / "sertogenre"), the description
    (<div class="entry-content"> or itemprop="description") and the chapter
    list (<div class="eplister"><ul><li>...) with epl-num / epl-title /
    epl-date / epl-price cells.

    The theme marks paid chapters with a lock glyph, so its grammars support
    hiding locked chapters unless `has_locked=False` is passed.
    """
    options.setdefault("has_locked", True)
    return AdapterGrammar(
        id=id,
        source_name=source_name,
        site=site,
        lang=lang,
        reverse_chapters=reverse_chapters,
        cover=CoverRules(image=[class_has("ts-post-image")]),
        title=[class_is("entry-title", tag="h1")],
        rating=[attr_is("itemprop", "ratingValue")],
        genres=GenreRules(
            container=[class_is("genxed"), class_is("sertogenre")],
            link=[tag_is("a")],
        ),
        summary=SummaryRules(
            container=[
                class_is("entry-content", tag="div"),
                attr_is("itemprop", "description", tag="div"),
            ],
        ),
        info=InfoRules(
            container=[class_is("spe"), class_is("serl")],
            label=[tag_is("span")],
            status_container=[class_is("sertostat", tag="div")],
        ),
        chapters=ChapterRules(
            container=[class_has("eplister")],
            end_tag="ul",
            item=[tag_is("li")],
            number=[class_is("epl-num")],
            title=[class_is("epl-title")],
            date=[class_is("epl-date")],
            price=[class_is("epl-price")],
        ),
        **options,
    )
