"""Report domain models produced by the integrity and duplicate checks."""

from enum import Enum

from pydantic import BaseModel, ConfigDict


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class FindingKind(str, Enum):
    SELF_LOOP = "self_loop"
    DUPLICATE_IDENTIFIER = "duplicate_identifier"
    DANGLING = "dangling"
    AMBIGUOUS = "ambiguous"
    ASYMMETRIC = "asymmetric"
    ORPHAN = "orphan"
    DUPLICATE_TITLE = "duplicate_title"
    NEAR_DUPLICATE = "near_duplicate"


class Finding(BaseModel):
    """One reported problem or suggestion.

    Attributes:
        kind: What was found
        severity: How serious it is
        topic_ids: Topics involved, source first for edge findings
        description: Human-readable explanation
        raw_reference: The reference as written, for edge findings
        candidates: Candidate targets for ambiguous references
    """

    model_config = ConfigDict(frozen=True)

    kind: FindingKind
    severity: Severity
    topic_ids: tuple[str, ...]
    description: str
    raw_reference: str | None = None
    candidates: tuple[str, ...] = ()


def group_by_severity(findings: list[Finding]) -> dict[Severity, tuple[Finding, ...]]:
    """Group findings by severity, keeping every severity key present."""
    grouped: dict[Severity, list[Finding]] = {severity: [] for severity in Severity}
    for finding in findings:
        grouped[finding.severity].append(finding)
    return {severity: tuple(items) for severity, items in grouped.items()}


class Report(BaseModel):
    """Immutable mapping of severity to findings."""

    model_config = ConfigDict(frozen=True)

    findings: dict[Severity, tuple[Finding, ...]] = {severity: () for severity in Severity}

    @classmethod
    def from_findings(cls, findings: list[Finding], **kwargs):
        return cls(findings=group_by_severity(findings), **kwargs)

    def all_findings(self) -> list[Finding]:
        return [finding for severity in Severity for finding in self.findings.get(severity, ())]

    def of_kind(self, kind: FindingKind) -> list[Finding]:
        return [finding for finding in self.all_findings() if finding.kind is kind]

    def count(self, severity: Severity | None = None) -> int:
        if severity is None:
            return len(self.all_findings())
        return len(self.findings.get(severity, ()))

    @property
    def is_clean(self) -> bool:
        return self.count() == 0


class IntegrityReport(Report):
    """Findings about the relation graph: broken, ambiguous, one-way and missing links."""

    topic_count: int = 0
    relation_count: int = 0


class DuplicateGroup(BaseModel):
    """Topics sharing one normalized title."""

    model_config = ConfigDict(frozen=True)

    normalized_title: str
    topic_ids: tuple[str, ...]


class NearDuplicatePair(BaseModel):
    """An unordered pair of topics with similar bodies, ids stored in sorted order."""

    model_config = ConfigDict(frozen=True)

    topic_ids: tuple[str, str]
    similarity: float


class DuplicateReport(Report):
    """Findings about exact-title and near-duplicate topics."""

    groups: tuple[DuplicateGroup, ...] = ()
    pairs: tuple[NearDuplicatePair, ...] = ()
