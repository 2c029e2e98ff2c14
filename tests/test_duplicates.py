"""Tests for exact-title and near-duplicate detection."""

import pytest

from tests.factories import build_topic
from topicgraph.checks import DuplicateDetector
from topicgraph.corpus_store.local import LocalCorpusStore
from topicgraph.domain.reports import FindingKind, Severity
from topicgraph.ingestion.document_parser import DocumentParser


def test_same_title_sub_documents_form_one_group(parser: DocumentParser, store: LocalCorpusStore) -> None:
    text = "# Same Title\n\nAbout cats.\n\n---\n\n# same title!\n\nSomething else entirely.\n"
    parsed = parser.parse_unit("packed.md", text)
    store.upsert("packed.md", parsed.topics)

    report = DuplicateDetector().detect(store)

    (group,) = report.groups
    assert group.normalized_title == "same title"
    assert group.topic_ids == ("packed.md::0", "packed.md::1")
    (finding,) = report.of_kind(FindingKind.DUPLICATE_TITLE)
    assert finding.severity is Severity.WARNING
    assert report.pairs == ()


def test_groups_across_units() -> None:
    store = LocalCorpusStore.from_topics(
        [
            build_topic("z.md", "Transformers", body="Attention layers."),
            build_topic("a.md", "Transformers", body="Electrical devices."),
            build_topic("m.md", "TRANSFORMERS", body="Toy robots."),
        ]
    )

    (group,) = DuplicateDetector().detect(store).groups

    assert group.topic_ids == ("a.md::0", "m.md::0", "z.md::0")


def test_near_duplicates_share_title_token_and_body() -> None:
    body = "Graph databases store nodes and edges and answer traversal queries quickly."
    store = LocalCorpusStore.from_topics(
        [
            build_topic("b.md", "Graph Database Systems", body=body),
            build_topic("a.md", "Graph Databases", body=body + " Neo4j is one."),
            build_topic("c.md", "Cooking", body=body),
        ]
    )

    report = DuplicateDetector(threshold=0.6).detect(store)

    (pair,) = report.pairs
    assert pair.topic_ids == ("a.md::0", "b.md::0")
    assert 0.6 <= pair.similarity < 1.0
    (finding,) = report.of_kind(FindingKind.NEAR_DUPLICATE)
    assert finding.severity is Severity.INFO
    assert report.groups == ()


def test_threshold_excludes_weak_overlap() -> None:
    store = LocalCorpusStore.from_topics(
        [
            build_topic("a.md", "Graph Theory", body="vertices edges paths cycles trees"),
            build_topic("b.md", "Graph Drawing", body="vertices edges layouts colours fonts"),
        ]
    )

    assert DuplicateDetector(threshold=0.6).detect(store).pairs == ()
    assert len(DuplicateDetector(threshold=0.2).detect(store).pairs) == 1


@pytest.mark.parametrize("threshold", [-0.1, 1.5])
def test_invalid_threshold(threshold: float) -> None:
    with pytest.raises(ValueError):
        DuplicateDetector(threshold=threshold)


def test_report_does_not_depend_on_store_order() -> None:
    topics = [
        build_topic("a.md", "Neural Networks", body="layers weights training"),
        build_topic("b.md", "neural networks", body="layers weights training data"),
        build_topic("c.md", "Networks", body="routers switches cables"),
    ]

    forward = DuplicateDetector().detect(LocalCorpusStore.from_topics(topics))
    backward = DuplicateDetector().detect(LocalCorpusStore.from_topics(list(reversed(topics))))

    assert forward == backward
    assert len(forward.groups) == 1
    assert len(forward.pairs) == 1


def test_detect_accepts_snapshot() -> None:
    store = LocalCorpusStore.from_topics(
        [build_topic("a.md", "Same", body="one"), build_topic("b.md", "Same", body="two")]
    )
    snapshot = store.snapshot()
    store.remove("b.md")

    assert len(DuplicateDetector().detect(snapshot).groups) == 1
    assert DuplicateDetector().detect(store).groups == ()


def test_empty_store_is_clean(store: LocalCorpusStore) -> None:
    report = DuplicateDetector().detect(store)

    assert report.is_clean
    assert report.groups == ()
    assert report.pairs == ()
