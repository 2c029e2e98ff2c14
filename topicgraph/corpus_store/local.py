import json
import threading
from pathlib import Path
from typing import Iterable

from loguru import logger

from topicgraph.corpus_store.base import CorpusSnapshot, CorpusStore, UpsertResult
from topicgraph.domain.relationships import IdentifierConflict
from topicgraph.domain.topic import Topic
from topicgraph.graph import RelationGraph, RelationGraphBuilder
from topicgraph.normalization import normalize_title


class LocalCorpusStore(CorpusStore):
    """In-memory corpus store that can snapshot its topics to a JSON file.

    Writers build a new immutable state under one lock and publish it with a
    single reference swap. Readers only ever see a complete state, so they
    never need the lock.
    """

    def __init__(self, filepath: str | Path | None = None) -> None:
        """Initialize LocalCorpusStore.

        Args:
            filepath: Path to store file. If provided and exists, will auto-load.
                     If provided and doesn't exist, will save to this path when save() is called.
                     If not provided, creates empty store in memory only.
        """
        self._filepath = str(filepath) if filepath else None
        self._lock = threading.Lock()
        self._graph_builder = RelationGraphBuilder()
        self._graph: RelationGraph | None = None
        self._state = CorpusSnapshot()

        if self._filepath and Path(self._filepath).exists():
            with open(self._filepath, "r") as f:
                data = json.load(f)
            digests = data.get("digests", {})
            by_unit: dict[str, list[Topic]] = {}
            for topic_data in data["topics"]:
                topic = Topic(**topic_data)
                by_unit.setdefault(topic.unit_id, []).append(topic)
            for unit_id, topics in by_unit.items():
                self.upsert(unit_id, topics, digest=digests.get(unit_id))
            logger.info(f"Loaded {len(self._state.topics)} topics from {self._filepath}")

    @classmethod
    def from_topics(cls, topics: Iterable[Topic]) -> "LocalCorpusStore":
        """Create LocalCorpusStore from provided topics (useful for testing)."""
        instance = cls(filepath=None)
        by_unit: dict[str, list[Topic]] = {}
        for topic in topics:
            by_unit.setdefault(topic.unit_id, []).append(topic)
        for unit_id, unit_topics in by_unit.items():
            instance.upsert(unit_id, unit_topics)
        return instance

    @property
    def version(self) -> int:
        return self._state.version

    def upsert(
        self, unit_id: str, topics: list[Topic], digest: str | None = None
    ) -> UpsertResult:
        """Atomically replace all topics owned by a unit.

        A topic whose ID is already owned by another unit, or repeated within
        this upsert, is rejected and recorded as a conflict; the current owner
        keeps the ID.

        Raises:
            ValueError: If a topic does not belong to ``unit_id``
        """
        for topic in topics:
            if topic.unit_id != unit_id:
                raise ValueError(f"Topic {topic.id} belongs to {topic.unit_id}, not {unit_id}")

        with self._lock:
            state = self._state
            previous_ids = set(state.units.get(unit_id, ()))

            accepted: list[Topic] = []
            rejected: list[IdentifierConflict] = []
            seen: set[str] = set()
            for topic in topics:
                existing = state.topics.get(topic.id)
                if topic.id in seen:
                    owner = unit_id
                elif existing is not None and existing.unit_id != unit_id:
                    owner = existing.unit_id
                else:
                    seen.add(topic.id)
                    accepted.append(topic)
                    continue
                rejected.append(
                    IdentifierConflict(topic_id=topic.id, unit_id=unit_id, owner_unit_id=owner)
                )

            new_topics: dict[str, Topic] = {}
            inserted = False
            for topic_id, topic in state.topics.items():
                if topic.unit_id == unit_id:
                    if not inserted:
                        new_topics.update((t.id, t) for t in accepted)
                        inserted = True
                    continue
                new_topics[topic_id] = topic
            if not inserted:
                new_topics.update((t.id, t) for t in accepted)

            units = dict(state.units)
            units[unit_id] = tuple(t.id for t in accepted)
            digests = dict(state.digests)
            if digest is not None:
                digests[unit_id] = digest
            else:
                digests.pop(unit_id, None)
            conflicts = dict(state.conflicts)
            if rejected:
                conflicts[unit_id] = tuple(rejected)
            else:
                conflicts.pop(unit_id, None)

            self._publish(
                CorpusSnapshot(
                    version=state.version + 1,
                    topics=new_topics,
                    units=units,
                    digests=digests,
                    title_index=self._build_title_index(new_topics),
                    conflicts=conflicts,
                )
            )

        for conflict in rejected:
            logger.error(
                f"Duplicate identifier {conflict.topic_id}: rejected from {unit_id}, "
                f"owned by {conflict.owner_unit_id}"
            )
        stored = [t.id for t in accepted]
        return UpsertResult(
            unit_id=unit_id,
            stored=stored,
            removed=sorted(previous_ids - set(stored)),
            rejected=rejected,
        )

    def remove(self, unit_id: str) -> list[str]:
        """Delete all topics owned by a unit.

        Relations other topics declare towards them stay in place and resolve
        as dangling on the next graph build.
        """
        with self._lock:
            state = self._state
            if unit_id not in state.units:
                logger.debug(f"Remove of unknown unit {unit_id} ignored")
                return []

            removed = list(state.units[unit_id])
            new_topics = {tid: t for tid, t in state.topics.items() if t.unit_id != unit_id}
            units = {uid: ids for uid, ids in state.units.items() if uid != unit_id}
            digests = {uid: d for uid, d in state.digests.items() if uid != unit_id}
            conflicts = {uid: c for uid, c in state.conflicts.items() if uid != unit_id}

            self._publish(
                CorpusSnapshot(
                    version=state.version + 1,
                    topics=new_topics,
                    units=units,
                    digests=digests,
                    title_index=self._build_title_index(new_topics),
                    conflicts=conflicts,
                )
            )

        logger.info(f"Removed unit {unit_id} ({len(removed)} topics)")
        return removed

    def get(self, topic_id: str) -> Topic | None:
        """Get a topic by its ID."""
        return self._state.topics.get(topic_id)

    def all(self) -> Iterable[Topic]:
        """Get all topics in insertion order.

        The returned view belongs to the state current at call time, so it can
        be iterated repeatedly and is unaffected by later writes.
        """
        return self._state.topics.values()

    def unit_ids(self) -> set[str]:
        """Get all unit IDs in the store."""
        return set(self._state.units)

    def topic_ids_for_unit(self, unit_id: str) -> list[str]:
        return self._state.topic_ids_for_unit(unit_id)

    def unit_digest(self, unit_id: str) -> str | None:
        return self._state.digests.get(unit_id)

    def find_by_normalized_title(self, title: str) -> list[str]:
        return self._state.find_by_normalized_title(title)

    def identifier_conflicts(self) -> list[IdentifierConflict]:
        return self._state.identifier_conflicts()

    def snapshot(self) -> CorpusSnapshot:
        """Get the current state. It is never mutated after being published."""
        return self._state

    def get_relation_graph(self) -> RelationGraph:
        """Get the relation graph for the current contents.

        The cached graph is reused only while its version matches the store;
        the build itself runs on a snapshot outside the lock.
        """
        state = self._state
        graph = self._graph
        if graph is not None and graph.version == state.version:
            return graph

        graph = self._graph_builder.build(state)
        with self._lock:
            if self._state is state:
                self._graph = graph
        return graph

    def save(self, filepath: str | None = None) -> None:
        """Save the store to a JSON file.

        Args:
            filepath: Path to save to. If not provided, uses the filepath from initialization.
        """
        save_path = filepath or self._filepath
        if not save_path:
            raise ValueError(
                "No filepath provided and no default filepath set during initialization"
            )

        state = self._state
        data = {
            "topics": [topic.model_dump() for topic in state.topics.values()],
            "digests": dict(state.digests),
        }
        with open(str(save_path), "w") as f:
            json.dump(data, f)
        logger.info(f"Saved {len(state.topics)} topics to {save_path}")

    def clear(self) -> None:
        """Clear all data from the store."""
        with self._lock:
            self._publish(CorpusSnapshot(version=self._state.version + 1))

    def _publish(self, state: CorpusSnapshot) -> None:
        """Swap in a new state and drop the cached graph. Caller holds the lock."""
        self._state = state
        self._graph = None

    @staticmethod
    def _build_title_index(topics: dict[str, Topic]) -> dict[str, tuple[str, ...]]:
        index: dict[str, list[str]] = {}
        for topic in topics.values():
            key = normalize_title(topic.title)
            if key:
                index.setdefault(key, []).append(topic.id)
        return {key: tuple(ids) for key, ids in index.items()}
