"""Integrity checks over a built relation graph."""

from loguru import logger

from topicgraph.domain.relationships import ResolutionStatus
from topicgraph.domain.reports import Finding, FindingKind, IntegrityReport, Severity
from topicgraph.graph import RelationGraph


class IntegrityChecker:
    """Read-only pass that reports broken, ambiguous, one-way and missing links.

    Only direct edges are inspected, so cycles of any length are harmless.
    """

    def check(self, graph: RelationGraph) -> IntegrityReport:
        """Check a relation graph.

        Args:
            graph: Graph to check; it is not modified

        Returns:
            IntegrityReport with findings in store order
        """
        findings = self._duplicate_identifier_findings(graph)

        for topic_id in graph.node_ids():
            findings.extend(self._relation_findings(graph, topic_id))
            findings.extend(self._asymmetry_findings(graph, topic_id))
            orphan = self._orphan_finding(graph, topic_id)
            if orphan:
                findings.append(orphan)

        report = IntegrityReport.from_findings(
            findings,
            topic_count=len(graph),
            relation_count=len(graph.relations()),
        )
        logger.info(
            f"Integrity check: {report.count(Severity.ERROR)} errors, "
            f"{report.count(Severity.WARNING)} warnings, {report.count(Severity.INFO)} suggestions"
        )
        return report

    @staticmethod
    def _duplicate_identifier_findings(graph: RelationGraph) -> list[Finding]:
        return [
            Finding(
                kind=FindingKind.DUPLICATE_IDENTIFIER,
                severity=Severity.ERROR,
                topic_ids=(conflict.topic_id,),
                description=(
                    f"Identifier {conflict.topic_id} from {conflict.unit_id} is already owned by "
                    f"{conflict.owner_unit_id}; the topic was rejected"
                ),
            )
            for conflict in graph.identifier_conflicts
        ]

    @staticmethod
    def _relation_findings(graph: RelationGraph, topic_id: str) -> list[Finding]:
        """Dangling, ambiguous and self-referencing relations declared by one topic."""
        findings = []
        seen: set[tuple[ResolutionStatus, str]] = set()
        self_loop_reported = False
        title = graph.topic(topic_id).title

        for relation in graph.relations_from(topic_id):
            if relation.status is ResolutionStatus.RESOLVED:
                if relation.target_id == topic_id and not self_loop_reported:
                    self_loop_reported = True
                    findings.append(
                        Finding(
                            kind=FindingKind.SELF_LOOP,
                            severity=Severity.ERROR,
                            topic_ids=(topic_id,),
                            description=f"'{title}' lists itself as related",
                            raw_reference=relation.raw,
                        )
                    )
                continue

            key = (relation.status, relation.raw)
            if key in seen:
                continue
            seen.add(key)

            if relation.status is ResolutionStatus.DANGLING:
                findings.append(
                    Finding(
                        kind=FindingKind.DANGLING,
                        severity=Severity.WARNING,
                        topic_ids=(topic_id,),
                        description=f"'{title}' references '{relation.ref.target}', which is not in the corpus",
                        raw_reference=relation.raw,
                    )
                )
            else:
                findings.append(
                    Finding(
                        kind=FindingKind.AMBIGUOUS,
                        severity=Severity.WARNING,
                        topic_ids=(topic_id,),
                        description=(
                            f"'{title}' references '{relation.ref.target}', which matches "
                            f"{len(relation.candidates)} topics"
                        ),
                        raw_reference=relation.raw,
                        candidates=relation.candidates,
                    )
                )
        return findings

    @staticmethod
    def _asymmetry_findings(graph: RelationGraph, topic_id: str) -> list[Finding]:
        findings = []
        for target_id in graph.successors(topic_id):
            if target_id == topic_id or graph.has_edge(target_id, topic_id):
                continue
            findings.append(
                Finding(
                    kind=FindingKind.ASYMMETRIC,
                    severity=Severity.INFO,
                    topic_ids=(topic_id, target_id),
                    description=(
                        f"'{graph.topic(topic_id).title}' lists '{graph.topic(target_id).title}' "
                        f"as related, but not the other way round"
                    ),
                    raw_reference=graph.relations_between(topic_id, target_id)[0].raw,
                )
            )
        return findings

    @staticmethod
    def _orphan_finding(graph: RelationGraph, topic_id: str) -> Finding | None:
        neighbours = set(graph.successors(topic_id)) | set(graph.inbound_to(topic_id))
        neighbours.discard(topic_id)
        if neighbours:
            return None
        return Finding(
            kind=FindingKind.ORPHAN,
            severity=Severity.INFO,
            topic_ids=(topic_id,),
            description=f"'{graph.topic(topic_id).title}' has no resolved relations to or from other topics",
        )
