from typing import Iterable, Protocol

from pydantic import BaseModel, ConfigDict

from topicgraph.domain.relationships import IdentifierConflict
from topicgraph.domain.topic import Topic
from topicgraph.normalization import normalize_title


class CorpusSnapshot(BaseModel):
    """Consistent, read-only view of a corpus store at one version.

    Attributes:
        version: Store version this snapshot was taken at
        topics: Topic ID to Topic, in insertion order
        units: Unit ID to the IDs of the topics it owns, in sub-index order
        digests: Unit ID to content digest of the text it was parsed from
        title_index: Normalized title to topic IDs, in insertion order
        conflicts: Unit ID to identifier conflicts recorded for its last upsert
    """

    model_config = ConfigDict(frozen=True)

    version: int = 0
    topics: dict[str, Topic] = {}
    units: dict[str, tuple[str, ...]] = {}
    digests: dict[str, str] = {}
    title_index: dict[str, tuple[str, ...]] = {}
    conflicts: dict[str, tuple[IdentifierConflict, ...]] = {}

    def get(self, topic_id: str) -> Topic | None:
        return self.topics.get(topic_id)

    def topic_ids_for_unit(self, unit_id: str) -> list[str]:
        return list(self.units.get(unit_id, ()))

    def find_by_normalized_title(self, title: str) -> list[str]:
        return list(self.title_index.get(normalize_title(title), ()))

    def identifier_conflicts(self) -> list[IdentifierConflict]:
        return [conflict for conflicts in self.conflicts.values() for conflict in conflicts]


class UpsertResult(BaseModel):
    """Outcome of replacing one unit's topics."""

    unit_id: str
    stored: list[str] = []
    removed: list[str] = []
    rejected: list[IdentifierConflict] = []


class CorpusStore(Protocol):
    def upsert(
        self, unit_id: str, topics: list[Topic], digest: str | None = None
    ) -> UpsertResult:
        """Atomically replace all topics owned by a unit."""
        ...

    def remove(self, unit_id: str) -> list[str]:
        """Delete all topics owned by a unit, returning their IDs."""
        ...

    def get(self, topic_id: str) -> Topic | None:
        """Get a topic by its ID."""
        ...

    def all(self) -> Iterable[Topic]:
        """Get all topics in insertion order as a lazy, restartable iterable."""
        ...

    def unit_ids(self) -> set[str]:
        """Get all unit IDs in the store."""
        ...

    def topic_ids_for_unit(self, unit_id: str) -> list[str]:
        """Get the IDs of the topics owned by a unit."""
        ...

    def unit_digest(self, unit_id: str) -> str | None:
        """Get the content digest a unit was last upserted with."""
        ...

    def find_by_normalized_title(self, title: str) -> list[str]:
        """Get the IDs of topics whose normalized title matches."""
        ...

    def identifier_conflicts(self) -> list[IdentifierConflict]:
        """Get the identifier conflicts recorded by upserts."""
        ...

    def snapshot(self) -> CorpusSnapshot:
        """Get a consistent read-only view of the current contents."""
        ...

    def get_relation_graph(self):
        """Get the relation graph for the current contents, rebuilding it if stale."""
        ...

    def save(self, filepath: str | None = None) -> None:
        """Save the store to disk."""
        ...

    def clear(self) -> None:
        """Clear all data from the store."""
        ...
