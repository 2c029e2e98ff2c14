"""Tests for parsing markdown source units into topics."""

import pytest

from topicgraph.domain.topic import RelationRef, Section, Topic
from topicgraph.ingestion.document_parser import DocumentParser

ATTENTION_NOTE = """# Attention Is All You Need

Source: https://arxiv.org/abs/1706.03762

Summary paragraph about transformers.

## Key Points
- Self-attention replaces recurrence.

## Related Summaries & Subjects
- [BERT](../nlp/bert.md)
- [[Sequence Models|seq]]
- Positional encodings in general
"""


def test_parse_single_topic(parser: DocumentParser) -> None:
    """Test title, source, sections and relations of a typical note."""
    result = parser.parse_unit("papers/attention.md", ATTENTION_NOTE)

    assert result.issues == []
    assert len(result.topics) == 1

    topic = result.topics[0]
    assert topic.id == "papers/attention.md::0"
    assert topic.unit_id == "papers/attention.md"
    assert topic.sub_index == 0
    assert topic.title == "Attention Is All You Need"
    assert topic.source == "https://arxiv.org/abs/1706.03762"
    assert topic.sections == [
        Section(heading="", text="Summary paragraph about transformers."),
        Section(heading="Key Points", text="- Self-attention replaces recurrence."),
    ]


def test_relation_extraction_prefers_structured_links(parser: DocumentParser) -> None:
    """Test markdown links, wikilinks and unstructured fallbacks in the related section."""
    topic = parser.parse_unit("papers/attention.md", ATTENTION_NOTE).topics[0]

    assert topic.relations == [
        RelationRef(raw="[BERT](../nlp/bert.md)", target="../nlp/bert.md", display="BERT", kind="markdown"),
        RelationRef(raw="[[Sequence Models|seq]]", target="Sequence Models", display="seq", kind="wikilink"),
        RelationRef(
            raw="Positional encodings in general",
            target="Positional encodings in general",
            kind="text",
        ),
    ]


def test_bare_uri_source(parser: DocumentParser) -> None:
    """Test that the first bare URI is used when there is no citation line."""
    topic = parser.parse_unit("post.md", "# Post\n\nA summary of https://example.com/post.\n").topics[0]

    assert topic.source == "https://example.com/post"
    assert topic.sections == [Section(heading="", text="A summary of https://example.com/post.")]


def test_citation_line_source(parser: DocumentParser) -> None:
    """Test that an explicit citation line wins and is not kept as body text."""
    text = "# Book\n\ncitation: Smith, J. (2020). Some Book.\n\n## Notes\nSee https://example.com too.\n"
    topic = parser.parse_unit("book.md", text).topics[0]

    assert topic.source == "Smith, J. (2020). Some Book."
    assert topic.sections == [Section(heading="Notes", text="See https://example.com too.")]


def test_missing_related_section_yields_no_relations(parser: DocumentParser) -> None:
    result = parser.parse_unit("plain.md", "# Plain\n\nJust a body.\n")

    assert result.issues == []
    assert result.topics[0].relations == []
    assert result.topics[0].source is None


def test_related_heading_is_case_insensitive(parser: DocumentParser) -> None:
    text = "# Note\n\nBody.\n\n### related subjects:\n* [Other](other.md)\n1. [[Third]]\n"
    topic = parser.parse_unit("note.md", text).topics[0]

    assert [r.target for r in topic.relations] == ["other.md", "Third"]
    assert [s.heading for s in topic.sections] == [""]


def test_non_list_lines_in_related_section_are_ignored(parser: DocumentParser) -> None:
    text = "# Note\n\nBody.\n\n## Related Subjects\nSome prose here.\n\n- [Other](other.md)\n"
    topic = parser.parse_unit("note.md", text).topics[0]

    assert [r.raw for r in topic.relations] == ["[Other](other.md)"]


def test_sub_documents_and_parse_issues(parser: DocumentParser) -> None:
    """Test that a malformed sub-document is reported without losing its siblings."""
    text = "# First\n\nBody one.\n\n---\n\nno heading here\n\n---\n\n# Third\n\nBody three.\n"
    result = parser.parse_unit("packed.md", text)

    assert [t.id for t in result.topics] == ["packed.md::0", "packed.md::2"]
    assert [t.title for t in result.topics] == ["First", "Third"]
    assert len(result.issues) == 1
    assert result.issues[0].unit_id == "packed.md"
    assert result.issues[0].sub_index == 1
    assert "no title" in result.issues[0].message


def test_topic_without_sections_is_rejected(parser: DocumentParser) -> None:
    text = "# Only A Title\n\n## Related Subjects\n- [Other](other.md)\n"
    result = parser.parse_unit("empty.md", text)

    assert result.topics == []
    assert len(result.issues) == 1
    assert "no body sections" in result.issues[0].message


def test_separator_inside_code_fence_does_not_split(parser: DocumentParser) -> None:
    text = "# Fenced\n\n```yaml\n---\nkey: value\n# not a heading\n```\n"
    result = parser.parse_unit("fenced.md", text)

    assert len(result.topics) == 1
    assert result.topics[0].title == "Fenced"
    assert "# not a heading" in result.topics[0].sections[0].text


def test_blank_sub_documents_are_skipped(parser: DocumentParser) -> None:
    result = parser.parse_unit("blank.md", "\n---\n\n---\n# Real\n\nBody.\n")

    assert result.issues == []
    assert [t.id for t in result.topics] == ["blank.md::0"]


def test_parsing_is_deterministic(parser: DocumentParser) -> None:
    first = parser.parse_unit("papers/attention.md", ATTENTION_NOTE)
    second = parser.parse_unit("papers/attention.md", ATTENTION_NOTE)

    assert first == second


@pytest.mark.parametrize(
    "source",
    ["https://example.com/articles/graphs", "Smith, J. (2020). Some Book.", None],
)
def test_render_then_parse_round_trips(parser: DocumentParser, source: str | None) -> None:
    """Test that writing a topic back and parsing it keeps title, source and relations."""
    topic = Topic(
        id="notes/topic.md::0",
        unit_id="notes/topic.md",
        sub_index=0,
        title="Graph Databases",
        source=source,
        sections=[
            Section(heading="", text="Intro."),
            Section(heading="Details", text="More text.\n\n- a point"),
        ],
        relations=[
            RelationRef(
                raw="[BERT](../nlp/bert.md#intro)",
                target="../nlp/bert.md#intro",
                display="BERT",
                kind="markdown",
            ),
            RelationRef(raw="[[Sequence Models]]", target="Sequence Models", kind="wikilink"),
            RelationRef(raw="Plain text reference", target="Plain text reference", kind="text"),
        ],
    )

    result = parser.parse_unit("notes/topic.md", parser.render_topic(topic))

    assert result.issues == []
    assert result.topics == [topic]


def test_render_unit_round_trips_sub_documents(parser: DocumentParser) -> None:
    text = "# One\n\nFirst body.\n\n---\n\n# Two\n\nSecond body.\n\n## Related Subjects\n- [[One]]\n"
    topics = parser.parse_unit("pair.md", text).topics

    reparsed = parser.parse_unit("pair.md", parser.render_unit(topics)).topics

    assert [t.id for t in reparsed] == ["pair.md::0", "pair.md::1"]
    assert [t.title for t in reparsed] == ["One", "Two"]
    assert [r.raw for r in reparsed[1].relations] == ["[[One]]"]


def test_custom_separator() -> None:
    parser = DocumentParser(separator="%%%")
    result = parser.parse_unit("custom.md", "# A\n\nBody.\n%%%\n# B\n\nBody.\n---\nstill B\n")

    assert [t.title for t in result.topics] == ["A", "B"]
    assert "still B" in result.topics[1].sections[0].text


@pytest.mark.parametrize(
    ("heading", "title"),
    [("# C#", "C#"), ("# Learning F#", "Learning F#"), ("## Closed Heading ##", "Closed Heading")],
)
def test_title_keeps_trailing_hash_without_space(parser: DocumentParser, heading: str, title: str) -> None:
    result = parser.parse_unit("lang.md", f"{heading}\n\nNotes about the language.\n")

    assert result.topics[0].title == title


def test_title_ending_in_hash_round_trips(parser: DocumentParser) -> None:
    topic = Topic(
        id="lang.md::0",
        unit_id="lang.md",
        sub_index=0,
        title="Learning F#",
        sections=[Section(heading="", text="Functional programming on .NET.")],
    )

    assert parser.parse_unit("lang.md", parser.render_topic(topic)).topics == [topic]


def test_angle_bracket_link_target_with_spaces(parser: DocumentParser) -> None:
    text = "# Note\n\nBody.\n\n## Related Subjects\n- [My Note](<my note.md#part one>)\n"
    (relation,) = parser.parse_unit("note.md", text).topics[0].relations

    assert relation.kind == "markdown"
    assert relation.target == "my note.md#part one"
    assert relation.display == "My Note"
