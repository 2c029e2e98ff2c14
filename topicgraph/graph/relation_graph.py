"""Relation graph over topic identifiers."""

from collections import deque
from typing import Iterable

from topicgraph.config import settings
from topicgraph.domain.relationships import IdentifierConflict, Relation, ResolutionStatus
from topicgraph.domain.topic import Topic
from topicgraph.errors import TopicNotFoundError


class RelationGraph:
    """Directed graph of resolved relations, stored as adjacency maps keyed by topic ID.

    Several raw relations between the same pair collapse into one logical
    edge; every raw occurrence stays available through ``relations_between``.
    Ambiguous and dangling relations are kept alongside, never dropped.
    """

    def __init__(
        self,
        *,
        topics: dict[str, Topic],
        relations: Iterable[Relation],
        identifier_conflicts: Iterable[IdentifierConflict] = (),
        version: int = 0,
    ) -> None:
        """Initialize the graph.

        Args:
            topics: Topic ID to Topic, in store order
            relations: Every declared relation with its resolution
            identifier_conflicts: Conflicts recorded by the store
            version: Store version the graph was built from

        Raises:
            ValueError: If a relation's source or resolved target is not a topic
        """
        self._topics = topics
        self._relations = tuple(relations)
        self.identifier_conflicts = tuple(identifier_conflicts)
        self.version = version

        self._by_source: dict[str, list[Relation]] = {topic_id: [] for topic_id in topics}
        self._outbound: dict[str, dict[str, list[Relation]]] = {topic_id: {} for topic_id in topics}
        self._inbound: dict[str, dict[str, None]] = {topic_id: {} for topic_id in topics}

        for relation in self._relations:
            if relation.source_id not in topics:
                raise ValueError(f"Relation source {relation.source_id} is not a topic")
            self._by_source[relation.source_id].append(relation)

            if relation.status is ResolutionStatus.RESOLVED:
                if relation.target_id not in topics:
                    raise ValueError(f"Relation target {relation.target_id} is not a topic")
                self._outbound[relation.source_id].setdefault(relation.target_id, []).append(
                    relation
                )
                self._inbound[relation.target_id][relation.source_id] = None

    def __len__(self) -> int:
        return len(self._topics)

    def node_ids(self) -> list[str]:
        """Get all topic IDs in store order."""
        return list(self._topics)

    def has_node(self, topic_id: str) -> bool:
        return topic_id in self._topics

    def topic(self, topic_id: str) -> Topic:
        """Get the topic behind a node."""
        self._require(topic_id)
        return self._topics[topic_id]

    def relations(self) -> list[Relation]:
        """Get every declared relation, grouped by source in store order."""
        return list(self._relations)

    def relations_from(self, topic_id: str) -> list[Relation]:
        """Get every relation declared by a topic, in declaration order."""
        self._require(topic_id)
        return list(self._by_source[topic_id])

    def relations_between(self, source_id: str, target_id: str) -> list[Relation]:
        """Get the raw relations collapsed into the logical edge source -> target."""
        self._require(source_id)
        return list(self._outbound[source_id].get(target_id, []))

    def edges(self) -> list[tuple[str, str]]:
        """Get every logical resolved edge as (source, target) pairs."""
        return [
            (source_id, target_id)
            for source_id, targets in self._outbound.items()
            for target_id in targets
        ]

    def successors(self, topic_id: str) -> list[str]:
        """Get the topics a topic's relations resolve to."""
        self._require(topic_id)
        return list(self._outbound[topic_id])

    def inbound_to(self, topic_id: str) -> list[str]:
        """Get the topics whose relations resolve to the given topic."""
        self._require(topic_id)
        return list(self._inbound[topic_id])

    def has_edge(self, source_id: str, target_id: str) -> bool:
        return target_id in self._outbound.get(source_id, {})

    def related_to(self, topic_id: str, depth: int | None = None) -> list[str]:
        """Get topics reachable within ``depth`` directed hops.

        Args:
            topic_id: Origin topic
            depth: Maximum number of hops, defaults to the configured depth

        Returns:
            Topic IDs in breadth-first order, deduplicated, never including the origin

        Raises:
            TopicNotFoundError: If the origin is not in the graph
            ValueError: If depth is negative
        """
        self._require(topic_id)
        max_depth = settings.default_related_depth if depth is None else depth
        if max_depth < 0:
            raise ValueError(f"depth must be non-negative, got {max_depth}")

        visited = {topic_id}
        related = []
        queue = deque([(topic_id, 0)])  # (topic_id, depth)

        while queue:
            current_id, current_depth = queue.popleft()
            if current_depth >= max_depth:
                continue
            for linked_id in self._outbound[current_id]:
                if linked_id not in visited:
                    visited.add(linked_id)
                    related.append(linked_id)
                    queue.append((linked_id, current_depth + 1))

        return related

    def find_path(self, source_id: str, target_id: str) -> list[str]:
        """Find the shortest directed path between two topics, empty if there is none."""
        self._require(source_id)
        self._require(target_id)

        if source_id == target_id:
            return [source_id]

        visited = {source_id}
        queue = deque([(source_id, [source_id])])  # (topic_id, path)

        while queue:
            current_id, path = queue.popleft()
            for linked_id in self._outbound[current_id]:
                if linked_id == target_id:
                    return path + [linked_id]
                if linked_id not in visited:
                    visited.add(linked_id)
                    queue.append((linked_id, path + [linked_id]))

        return []

    def dangling(self) -> list[Relation]:
        return [r for r in self._relations if r.status is ResolutionStatus.DANGLING]

    def ambiguous(self) -> list[Relation]:
        return [r for r in self._relations if r.status is ResolutionStatus.AMBIGUOUS]

    def _require(self, topic_id: str) -> None:
        if topic_id not in self._topics:
            raise TopicNotFoundError(topic_id)
