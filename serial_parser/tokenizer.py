"""
Tokenizer: page body → ParseEvent stream.

Uses lxml's HTML push parser with a parser target, so no tree is ever
built: libxml2 calls start/data/end on the target as it reads and the
events are handed on in document order. The body is fed in chunks and
events are yielded after each chunk, which keeps memory flat on the very
long chapter lists some works have.

Pipeline position: preprocessor → guard → tokenizer → engine.
Input:  sanitized page body (str)
Output: iterator of OpenTag / Text / CloseTag

libxml2 repairs markup the way browsers roughly do: unclosed tags are
closed, void elements (br, img) get an end event, and implied html/body
tags appear. Comments and processing instructions are dropped. Adjacent
character data is merged into one Text event so entity references do not
split a title in two.
"""

from typing import Iterator

from lxml import etree

from .events import CloseTag, OpenTag, ParseEvent, Text
from .exceptions import MalformedInput
from .logger import get_module_logger

logger = get_module_logger("tokenizer")

CHUNK_SIZE = 64 * 1024


class _EventCollector:
    """lxml parser target that buffers ParseEvents until drained."""

    def __init__(self):
        self.events: list = []
        self._text: list[str] = []

    def _flush_text(self) -> None:
        if self._text:
            self.events.append(Text(content="".join(self._text)))
            self._text = []

    def start(self, tag, attrib):
        self._flush_text()
        attributes = {str(k).lower(): v or "" for k, v in attrib.items()}
        self.events.append(OpenTag(name=str(tag).lower(), attributes=attributes))

    def end(self, tag):
        self._flush_text()
        self.events.append(CloseTag(name=str(tag).lower()))

    def data(self, data):
        self._text.append(data)

    def comment(self, text):
        self._flush_text()

    def close(self):
        self._flush_text()
        return None

    def drain(self) -> list:
        events, self.events = self.events, []
        return events


def tokenize(body: str) -> Iterator[ParseEvent]:
    """
    Turn a page body into ParseEvents, lazily.

    Raises:
        MalformedInput: body is empty or libxml2 gives up on it
    """
    if not body or not body.strip():
        raise MalformedInput("Cannot tokenize an empty document")

    collector = _EventCollector()
    parser = etree.HTMLParser(target=collector, encoding="utf-8", remove_comments=True)
    raw = body.encode("utf-8", errors="replace")

    count = 0
    try:
        for offset in range(0, len(raw), CHUNK_SIZE):
            parser.feed(raw[offset:offset + CHUNK_SIZE])
            for event in collector.drain():
                count += 1
                yield event
        parser.close()
    except etree.LxmlError as e:
        raise MalformedInput(f"Tokenizer failed: {e}", {"events_emitted": count}) from e

    for event in collector.drain():
        count += 1
        yield event

    logger.debug(f"Tokenized {len(raw)} bytes into {count} events")


def tokenize_all(body: str) -> list[ParseEvent]:
    """Eager variant of tokenize(), for callers that replay a stream."""
    return list(tokenize(body))
