"""Exact-title and near-duplicate topic detection."""

from itertools import combinations

from loguru import logger

from topicgraph.config import settings
from topicgraph.corpus_store.base import CorpusSnapshot, CorpusStore
from topicgraph.domain.reports import (
    DuplicateGroup,
    DuplicateReport,
    Finding,
    FindingKind,
    NearDuplicatePair,
    Severity,
)
from topicgraph.normalization import normalize_title, overlap_ratio, title_tokens, word_tokens


class DuplicateDetector:
    """Flags topics that share a normalized title or have overlapping bodies."""

    def __init__(self, threshold: float | None = None):
        """Initialize the detector.

        Args:
            threshold: Minimum body token overlap for a near-duplicate pair
        """
        self.threshold = settings.near_duplicate_threshold if threshold is None else threshold
        if not 0.0 <= self.threshold <= 1.0:
            raise ValueError(f"threshold must be between 0 and 1, got {self.threshold}")

    def detect(self, corpus: CorpusStore | CorpusSnapshot) -> DuplicateReport:
        """Detect duplicates in a store or snapshot.

        Groups and pairs are sorted by topic ID, so the report does not depend
        on the order topics were scanned in.
        """
        snapshot = corpus if isinstance(corpus, CorpusSnapshot) else corpus.snapshot()

        groups = self._exact_groups(snapshot)
        pairs = self._near_duplicate_pairs(snapshot)

        findings = [
            Finding(
                kind=FindingKind.DUPLICATE_TITLE,
                severity=Severity.WARNING,
                topic_ids=group.topic_ids,
                description=f"{len(group.topic_ids)} topics share the title '{group.normalized_title}'",
            )
            for group in groups
        ]
        findings.extend(
            Finding(
                kind=FindingKind.NEAR_DUPLICATE,
                severity=Severity.INFO,
                topic_ids=pair.topic_ids,
                description=f"Bodies overlap by {pair.similarity:.0%}",
            )
            for pair in pairs
        )

        logger.info(f"Duplicate check: {len(groups)} title groups, {len(pairs)} near-duplicate pairs")
        return DuplicateReport.from_findings(findings, groups=tuple(groups), pairs=tuple(pairs))

    @staticmethod
    def _exact_groups(snapshot: CorpusSnapshot) -> list[DuplicateGroup]:
        groups: dict[str, list[str]] = {}
        for topic in snapshot.topics.values():
            key = normalize_title(topic.title)
            if key:
                groups.setdefault(key, []).append(topic.id)

        return sorted(
            (
                DuplicateGroup(normalized_title=key, topic_ids=tuple(sorted(ids)))
                for key, ids in groups.items()
                if len(ids) > 1
            ),
            key=lambda group: group.topic_ids,
        )

    def _near_duplicate_pairs(self, snapshot: CorpusSnapshot) -> list[NearDuplicatePair]:
        """Compare bodies of topics that share at least one title token."""
        by_token: dict[str, set[str]] = {}
        for topic in snapshot.topics.values():
            for token in title_tokens(topic.title):
                by_token.setdefault(token, set()).add(topic.id)

        candidates: set[tuple[str, str]] = set()
        for topic_ids in by_token.values():
            candidates.update(combinations(sorted(topic_ids), 2))

        body_tokens: dict[str, set[str]] = {}
        pairs = []
        for first, second in sorted(candidates):
            for topic_id in (first, second):
                if topic_id not in body_tokens:
                    body_tokens[topic_id] = word_tokens(snapshot.topics[topic_id].body_text)
            similarity = overlap_ratio(body_tokens[first], body_tokens[second])
            if similarity >= self.threshold:
                pairs.append(NearDuplicatePair(topic_ids=(first, second), similarity=similarity))
        return pairs
