"""Parsing of raw markdown source units into structured topics."""

import re
from typing import Iterable

from loguru import logger

from topicgraph.config import settings
from topicgraph.domain.topic import (
    ParseIssue,
    ParseResult,
    RelationRef,
    Section,
    Topic,
    make_topic_id,
)
from topicgraph.errors import ParseError
from topicgraph.normalization import find_uri

_HEADING = re.compile(r"^(#{1,6})\s+(.+?)(?:\s+#+)?\s*$")
_FENCE = re.compile(r"^\s*(```|~~~)")
_LIST_ITEM = re.compile(r"^\s*(?:[-*+]|\d+[.)])\s+(.*\S)\s*$")
_MARKDOWN_LINK = re.compile(
    r"(?<!!)\[([^\]]*)\]\(\s*(?:<([^>\n]+)>|([^)\s]+))(?:\s+\"[^\"]*\")?\s*\)"
)
_WIKILINK = re.compile(r"\[\[([^\]|]+)(?:\|([^\]]*))?\]\]")


class DocumentParser:
    """Service for turning markdown source units into Topic records."""

    def __init__(
        self,
        *,
        separator: str | None = None,
        related_headings: Iterable[str] | None = None,
        citation_prefixes: Iterable[str] | None = None,
    ):
        """Initialize the parser.

        Args:
            separator: Line that separates sub-documents packed into one unit
            related_headings: Headings (matched case-insensitively) that open the related section
            citation_prefixes: Line prefixes such as "Source" that mark an explicit citation
        """
        self.separator = (separator if separator is not None else settings.topic_separator).strip()
        headings = list(related_headings or settings.related_headings)
        self.related_heading = headings[0]
        self._related_keys = {self._heading_key(heading) for heading in headings}
        prefixes = list(citation_prefixes or settings.citation_prefixes)
        self.citation_prefix = prefixes[0]
        self._citation_pattern = re.compile(
            r"^\s*(?:" + "|".join(re.escape(p) for p in prefixes) + r")\s*:\s*(.+?)\s*$",
            re.IGNORECASE,
        )

    def parse_unit(self, unit_id: str, text: str) -> ParseResult:
        """Parse every sub-document of a source unit.

        A sub-document that cannot be parsed is skipped and reported as an
        issue; the remaining sub-documents are still returned.

        Args:
            unit_id: Stable identifier of the source unit
            text: Raw text of the unit

        Returns:
            ParseResult with the topics in order and any parse issues
        """
        topics = []
        issues = []
        for sub_index, chunk in enumerate(self.split_sub_documents(text)):
            try:
                topics.append(self.parse_topic(unit_id, sub_index, chunk))
            except ParseError as e:
                logger.warning(str(e))
                issues.append(ParseIssue(unit_id=unit_id, sub_index=sub_index, message=e.details))

        logger.debug(f"Parsed {unit_id}: {len(topics)} topics, {len(issues)} issues")
        return ParseResult(unit_id=unit_id, topics=topics, issues=issues)

    def split_sub_documents(self, text: str) -> list[str]:
        """Split unit text on separator lines outside code fences, dropping blank chunks."""
        chunks = []
        current: list[str] = []
        in_fence = False

        for line in text.splitlines():
            if _FENCE.match(line):
                in_fence = not in_fence
            if not in_fence and line.strip() == self.separator:
                chunks.append("\n".join(current))
                current = []
                continue
            current.append(line)
        chunks.append("\n".join(current))

        return [chunk for chunk in chunks if chunk.strip()]

    def parse_topic(self, unit_id: str, sub_index: int, text: str) -> Topic:
        """Parse a single sub-document.

        Raises:
            ParseError: If the sub-document has no title heading or no body sections
        """
        title, intro_lines, blocks = self._split_blocks(text)
        if title is None:
            raise ParseError(unit_id, sub_index, "no title heading found")

        body_blocks = []
        relations: list[RelationRef] = []
        for heading, lines in blocks:
            if self._heading_key(heading) in self._related_keys:
                relations.extend(self.extract_relations(lines))
            else:
                body_blocks.append((heading, lines))

        source, source_line = self._find_source([("", intro_lines)] + body_blocks)

        sections = []
        intro_text = self._join(intro_lines, skip=source_line)
        if intro_text:
            sections.append(Section(heading="", text=intro_text))
        for heading, lines in body_blocks:
            sections.append(Section(heading=heading, text=self._join(lines, skip=source_line)))

        if not sections:
            raise ParseError(unit_id, sub_index, f"topic '{title}' has no body sections")

        return Topic(
            id=make_topic_id(unit_id, sub_index),
            unit_id=unit_id,
            sub_index=sub_index,
            title=title,
            source=source,
            sections=sections,
            relations=relations,
        )

    @staticmethod
    def extract_relations(lines: list[str]) -> list[RelationRef]:
        """Extract one relation per list item of a related section.

        Markdown links are preferred, then wikilinks; an item with neither is
        kept whole as an unstructured reference.
        """
        relations = []
        for line in lines:
            item = _LIST_ITEM.match(line)
            if not item:
                continue
            raw = item.group(1)

            link = _MARKDOWN_LINK.search(raw)
            if link:
                relations.append(
                    RelationRef(
                        raw=raw,
                        target=(link.group(2) or link.group(3)).strip(),
                        display=link.group(1).strip() or None,
                        kind="markdown",
                    )
                )
                continue

            wikilink = _WIKILINK.search(raw)
            if wikilink:
                alias = wikilink.group(2)
                relations.append(
                    RelationRef(
                        raw=raw,
                        target=wikilink.group(1).strip(),
                        display=alias.strip() if alias and alias.strip() else None,
                        kind="wikilink",
                    )
                )
                continue

            relations.append(RelationRef(raw=raw, target=raw, kind="text"))
        return relations

    def render_topic(self, topic: Topic) -> str:
        """Write a topic back in the structured text form this parser reads."""
        lines = [f"# {topic.title}", ""]
        if topic.source:
            lines.extend([f"{self.citation_prefix}: {topic.source}", ""])

        for section in topic.sections:
            if section.heading:
                lines.append(f"## {section.heading}")
            if section.text:
                lines.append(section.text)
            lines.append("")

        if topic.relations:
            lines.append(f"## {self.related_heading}")
            lines.extend(f"- {relation.raw}" for relation in topic.relations)
            lines.append("")

        return "\n".join(lines)

    def render_unit(self, topics: list[Topic]) -> str:
        """Render several topics as one unit, joined by the separator."""
        return f"\n{self.separator}\n\n".join(self.render_topic(topic) for topic in topics)

    @staticmethod
    def _split_blocks(text: str) -> tuple[str | None, list[str], list[tuple[str, list[str]]]]:
        """Split a sub-document into title, text under the title and headed blocks."""
        title = None
        intro: list[str] = []
        blocks: list[tuple[str, list[str]]] = []
        in_fence = False

        for line in text.splitlines():
            if _FENCE.match(line):
                in_fence = not in_fence
            heading = None if in_fence else _HEADING.match(line)

            if heading and title is None:
                title = heading.group(2).strip()
            elif heading:
                blocks.append((heading.group(2).strip(), []))
            elif blocks:
                blocks[-1][1].append(line)
            else:
                intro.append(line)

        return title, intro, blocks

    def _find_source(self, blocks: list[tuple[str, list[str]]]) -> tuple[str | None, str | None]:
        """Find the first citation line or bare URI in body text.

        Returns:
            Tuple of (source reference, citation line to drop from the body)
        """
        for _, lines in blocks:
            for line in lines:
                citation = self._citation_pattern.match(line)
                if citation:
                    return citation.group(1), line
                uri = find_uri(line)
                if uri:
                    return uri, None
        return None, None

    @staticmethod
    def _join(lines: list[str], skip: str | None = None) -> str:
        kept = [line for line in lines if skip is None or line != skip]
        return "\n".join(kept).strip()

    @staticmethod
    def _heading_key(heading: str) -> str:
        return " ".join(heading.strip().rstrip(":").casefold().split())
