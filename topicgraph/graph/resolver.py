"""Reference resolution for converting declared relations to topic IDs."""

import posixpath

from loguru import logger

from topicgraph.corpus_store.base import CorpusSnapshot
from topicgraph.domain.relationships import Relation, Resolution, ResolutionStatus
from topicgraph.domain.topic import RelationRef, Topic
from topicgraph.ingestion.path_resolver import PathResolver, split_reference
from topicgraph.normalization import find_uri, is_uri, normalize_title, normalize_uri, slugify


class ReferenceResolver:
    """Handles resolution of declared relations against one corpus snapshot.

    Every reference ends up resolved, ambiguous or dangling; an ambiguous
    reference keeps all of its candidates instead of guessing one.
    """

    def __init__(self, snapshot: CorpusSnapshot):
        """Initialize resolver with a corpus snapshot.

        Args:
            snapshot: Consistent view of the corpus store to resolve against
        """
        self.snapshot = snapshot
        self.path_resolver = PathResolver(snapshot.units.keys())
        self._source_index: dict[str, list[str]] = {}
        for topic in snapshot.topics.values():
            if topic.source and is_uri(topic.source):
                self._source_index.setdefault(normalize_uri(topic.source), []).append(topic.id)

    def resolve_relations(self, topic: Topic) -> list[Relation]:
        """Resolve every declared relation of a topic, keeping declaration order."""
        relations = []
        for ref in topic.relations:
            resolution = self.resolve(topic, ref)
            relations.append(
                Relation(
                    source_id=topic.id,
                    ref=ref,
                    status=resolution.status,
                    target_id=resolution.target_id,
                    candidates=resolution.candidates,
                    method=resolution.method,
                )
            )
        return relations

    def resolve(self, topic: Topic, ref: RelationRef) -> Resolution:
        """Resolve a single reference.

        Order: path lookup, source URI lookup, then title fallback.

        Args:
            topic: Topic that declares the reference
            ref: The declared reference

        Returns:
            Resolution with its status and target or candidates
        """
        resolution = self._resolve_path(topic, ref)
        if resolution is None:
            resolution = self._resolve_source(ref)
        if resolution is None:
            resolution = self._resolve_title(ref)
        if resolution is None:
            logger.debug(f"Could not resolve reference {ref.raw!r} from {topic.id}")
            return Resolution(status=ResolutionStatus.DANGLING)

        logger.debug(
            f"Resolved {ref.raw!r} from {topic.id} by {resolution.method}: {resolution.status.value}"
        )
        return resolution

    def _resolve_path(self, topic: Topic, ref: RelationRef) -> Resolution | None:
        units = self.path_resolver.resolve_units(topic.unit_id, ref.target)
        topic_ids = [tid for unit_id in units for tid in self.snapshot.topic_ids_for_unit(unit_id)]
        if not topic_ids:
            return None

        _, anchor = split_reference(ref.target)
        if len(topic_ids) > 1 and anchor:
            anchor_slug = slugify(anchor)
            matched = [
                tid for tid in topic_ids if slugify(self.snapshot.topics[tid].title) == anchor_slug
            ]
            if len(matched) == 1:
                return Resolution(
                    status=ResolutionStatus.RESOLVED, target_id=matched[0], method="anchor"
                )

        return self._classify(topic_ids, "path")

    def _resolve_source(self, ref: RelationRef) -> Resolution | None:
        uri = ref.target if is_uri(ref.target) else find_uri(ref.raw)
        if not uri:
            return None
        topic_ids = self._source_index.get(normalize_uri(uri), [])
        return self._classify(topic_ids, "source") if topic_ids else None

    def _resolve_title(self, ref: RelationRef) -> Resolution | None:
        for key in self._title_keys(ref):
            topic_ids = self.snapshot.find_by_normalized_title(key)
            if topic_ids:
                return self._classify(topic_ids, "title")
        return None

    @staticmethod
    def _title_keys(ref: RelationRef) -> list[str]:
        """Candidate titles for a reference, most explicit first."""
        keys = []
        if ref.display:
            keys.append(ref.display)
        if ref.kind == "markdown":
            path, _ = split_reference(ref.target)
            if path and not is_uri(ref.target):
                keys.append(posixpath.splitext(posixpath.basename(path))[0])
        elif ref.kind == "wikilink":
            keys.append(split_reference(ref.target)[0] or ref.target)
        else:
            keys.append(ref.raw)
            if " - " in ref.raw:
                keys.append(ref.raw.split(" - ", 1)[0])

        normalized = [normalize_title(key) for key in keys]
        return list(dict.fromkeys(key for key in normalized if key))

    @staticmethod
    def _classify(topic_ids: list[str], method: str) -> Resolution:
        unique = list(dict.fromkeys(topic_ids))
        if len(unique) == 1:
            return Resolution(status=ResolutionStatus.RESOLVED, target_id=unique[0], method=method)
        return Resolution(status=ResolutionStatus.AMBIGUOUS, candidates=tuple(unique), method=method)
