"""Relationship domain models."""

from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict

from topicgraph.domain.topic import RelationRef


class ResolutionStatus(str, Enum):
    RESOLVED = "resolved"
    AMBIGUOUS = "ambiguous"
    DANGLING = "dangling"


class Resolution(BaseModel):
    """Outcome of resolving one declared reference against the corpus."""

    model_config = ConfigDict(frozen=True)

    status: ResolutionStatus
    target_id: str | None = None
    candidates: tuple[str, ...] = ()
    method: Literal["path", "anchor", "source", "title", "none"] = "none"


class Relation(BaseModel):
    """Represents a directed edge from a topic to one declared reference.

    ``target_id`` is set only for resolved edges; ambiguous edges list every
    candidate instead of picking one.
    """

    model_config = ConfigDict(frozen=True)

    source_id: str
    ref: RelationRef
    status: ResolutionStatus
    target_id: str | None = None
    candidates: tuple[str, ...] = ()
    method: Literal["path", "anchor", "source", "title", "none"] = "none"

    @property
    def raw(self) -> str:
        return self.ref.raw

    @property
    def is_resolved(self) -> bool:
        return self.status is ResolutionStatus.RESOLVED


class IdentifierConflict(BaseModel):
    """A topic rejected because another unit already owns its identifier."""

    model_config = ConfigDict(frozen=True)

    topic_id: str
    unit_id: str  # unit whose topic was rejected
    owner_unit_id: str  # unit that keeps the identifier
