"""
Markup events consumed by the extraction engine.

A page is a flat, ordered stream of three event kinds. Order is the only
identity an event has: there are no offsets, parents or ids, so the engine
can only learn structure from the sequence itself.
"""

from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field


class OpenTag(BaseModel):
    """A start tag with its attributes (names lowercased by the tokenizer)."""
    model_config = ConfigDict(frozen=True)

    kind: Literal["open"] = "open"
    name: str
    attributes: dict[str, str] = Field(default_factory=dict)

    def attr(self, key: str) -> str:
        """Attribute value, or "" when absent."""
        return self.attributes.get(key) or ""


class Text(BaseModel):
    """A run of character data. Whitespace-only runs are delivered too."""
    model_config = ConfigDict(frozen=True)

    kind: Literal["text"] = "text"
    content: str


class CloseTag(BaseModel):
    """An end tag. Void elements (br, img) get one as well."""
    model_config = ConfigDict(frozen=True)

    kind: Literal["close"] = "close"
    name: str


# Discriminated on `kind` so event streams survive a JSON round trip
ParseEvent = Annotated[Union[OpenTag, Text, CloseTag], Field(discriminator="kind")]
