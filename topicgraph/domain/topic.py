"""Topic domain models."""

import posixpath
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


def make_topic_id(unit_id: str, sub_index: int) -> str:
    """Build the stable topic identifier from its source unit and position.

    The unit path is normalized, so two spellings of the same path
    (``notes/./a.md`` and ``notes/a.md``) produce colliding identifiers.
    """
    normalized = posixpath.normpath(unit_id.replace("\\", "/"))
    return f"{normalized}::{sub_index}"


class Section(BaseModel):
    """A headed block of body text. The heading is empty for text directly under the title."""

    model_config = ConfigDict(frozen=True)

    heading: str
    text: str


class RelationRef(BaseModel):
    """A relation as declared in the related section, before resolution.

    Attributes:
        raw: The full list-item text as written
        target: Link target (path, anchor or URL) or the raw text for unstructured items
        display: Link text for markdown links, alias for wikilinks
        kind: Which syntax the item used
    """

    model_config = ConfigDict(frozen=True)

    raw: str
    target: str
    display: str | None = None
    kind: Literal["markdown", "wikilink", "text"] = "text"


class Topic(BaseModel):
    """Represents one structured note extracted from a source unit.

    Attributes:
        id: Unique identifier derived from unit id and sub-index
        unit_id: Identifier of the source unit (POSIX relative path)
        sub_index: Position of the sub-document within the unit
        title: Text of the first heading
        source: Source reference (URI or citation string) if one was found
        sections: Ordered body sections, at least one
        relations: Ordered declared relations as written
    """

    id: str
    unit_id: str
    sub_index: int
    title: str
    source: str | None = None
    sections: list[Section] = Field(min_length=1)
    relations: list[RelationRef] = []

    @property
    def body_text(self) -> str:
        return "\n\n".join(section.text for section in self.sections)


class ParseIssue(BaseModel):
    """A sub-document that was skipped during parsing."""

    unit_id: str
    sub_index: int
    message: str


class ParseResult(BaseModel):
    """Topics parsed from one source unit, plus the sub-documents that were rejected."""

    unit_id: str
    topics: list[Topic] = []
    issues: list[ParseIssue] = []
