"""Orchestration service for the complete scan, rebuild and check pass."""

from concurrent.futures import ThreadPoolExecutor
from hashlib import sha256
from pathlib import Path
from typing import Mapping

from loguru import logger
from pydantic import BaseModel

from topicgraph.checks import DuplicateDetector, IntegrityChecker
from topicgraph.config import settings
from topicgraph.corpus_store.base import CorpusStore, UpsertResult
from topicgraph.domain.relationships import IdentifierConflict
from topicgraph.domain.reports import DuplicateReport, IntegrityReport
from topicgraph.domain.topic import ParseIssue, ParseResult
from topicgraph.graph import RelationGraph, RelationGraphBuilder

from .document_parser import DocumentParser


class IngestionResult(BaseModel):
    """Summary of one ingestion pass."""

    total_units: int = 0
    upserted: list[str] = []
    unchanged: list[str] = []
    removed: list[str] = []
    issues: list[ParseIssue] = []
    conflicts: list[IdentifierConflict] = []


class CheckResult(BaseModel):
    """Both reports of one check run, taken from the same store version."""

    version: int
    integrity: IntegrityReport
    duplicates: DuplicateReport


class IngestionOrchestrator:
    """Orchestrates the pipeline from raw source units to a checked relation graph."""

    def __init__(
        self,
        *,
        store: CorpusStore,
        parser: DocumentParser | None = None,
        max_workers: int | None = None,
        corpus_glob: str | None = None,
        near_duplicate_threshold: float | None = None,
    ):
        """Initialize the orchestrator with required services.

        Args:
            store: Corpus store that receives the parsed topics
            parser: Document parser, defaults to one built from settings
            max_workers: Threads used to parse units
            corpus_glob: File pattern for units when ingesting a folder
            near_duplicate_threshold: Body overlap that marks a near-duplicate pair
        """
        self.store = store
        self.parser = parser or DocumentParser()
        self.max_workers = max_workers or settings.ingest_workers
        self.corpus_glob = corpus_glob or settings.corpus_glob

        self.graph_builder = RelationGraphBuilder()
        self.integrity_checker = IntegrityChecker()
        self.duplicate_detector = DuplicateDetector(threshold=near_duplicate_threshold)

    def ingest(self, folder: Path) -> IngestionResult:
        """Load every unit under a folder and bring the store in line with it.

        Args:
            folder: Path to folder containing markdown files
        """
        files = self._get_all_files_for_ingestion(folder)
        units = {}
        for file in files:
            with open(file, "r", encoding="utf-8") as f:
                units[self._generate_unit_id(file, folder)] = f.read()
        return self.ingest_units(units)

    def ingest_units(self, units: Mapping[str, str], *, prune_missing: bool = True) -> IngestionResult:
        """Upsert changed units and remove units that were not delivered.

        Units are re-parsed only when their content digest changed, or when
        their last upsert had identifier conflicts that may since have cleared.

        Args:
            units: Unit ID to raw text
            prune_missing: Remove stored units absent from ``units``

        Returns:
            IngestionResult summarizing the pass
        """
        deleted_unit_ids = sorted(self.store.unit_ids() - set(units)) if prune_missing else []
        if deleted_unit_ids:
            logger.info(f"Removing {len(deleted_unit_ids)} deleted units...")
            for unit_id in deleted_unit_ids:
                self.store.remove(unit_id)

        conflicted = {conflict.unit_id for conflict in self.store.identifier_conflicts()}
        digests = {unit_id: self._digest(text) for unit_id, text in units.items()}
        modified = [
            unit_id
            for unit_id in units
            if unit_id in conflicted or self.store.unit_digest(unit_id) != digests[unit_id]
        ]
        modified_set = set(modified)
        unchanged = [unit_id for unit_id in units if unit_id not in modified_set]

        logger.info(f"Found {len(units)} total units, {len(modified)} modified since last ingestion")

        parsed_units: list[ParseResult] = []
        if modified:
            with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
                parsed_units = list(
                    pool.map(lambda unit_id: self.parser.parse_unit(unit_id, units[unit_id]), modified)
                )

        # Store insertion order follows delivery order
        results: list[tuple[ParseResult, UpsertResult]] = [
            (parsed, self.store.upsert(parsed.unit_id, parsed.topics, digest=digests[parsed.unit_id]))
            for parsed in parsed_units
        ]

        result = IngestionResult(
            total_units=len(units),
            upserted=[upsert.unit_id for _, upsert in results],
            unchanged=unchanged,
            removed=deleted_unit_ids,
            issues=[issue for parsed, _ in results for issue in parsed.issues],
            conflicts=[conflict for _, upsert in results for conflict in upsert.rejected],
        )

        logger.info("Ingestion complete:")
        logger.info(f"  - Total units: {result.total_units}")
        logger.info(f"  - Modified: {len(result.upserted)}")
        logger.info(f"  - Deleted: {len(result.removed)}")
        logger.info(f"  - Parse issues: {len(result.issues)}")
        logger.info(f"  - Identifier conflicts: {len(result.conflicts)}")
        return result

    def run_checks(self) -> CheckResult:
        """Run the integrity and duplicate checks against one store snapshot."""
        snapshot = self.store.snapshot()
        graph = self.relation_graph()
        if graph.version != snapshot.version:
            graph = self.graph_builder.build(snapshot)

        return CheckResult(
            version=snapshot.version,
            integrity=self.integrity_checker.check(graph),
            duplicates=self.duplicate_detector.detect(snapshot),
        )

    def relation_graph(self) -> RelationGraph:
        return self.store.get_relation_graph()

    def related_to(self, topic_id: str, depth: int | None = None) -> list[str]:
        """Get topics reachable from a topic within ``depth`` hops."""
        return self.relation_graph().related_to(topic_id, depth)

    def _get_all_files_for_ingestion(self, folder: Path) -> list[Path]:
        """Get all unit files under a folder, in a stable order.

        Args:
            folder: Path to folder containing markdown files

        Returns:
            Sorted list of files matching the corpus pattern
        """
        return sorted(f for f in folder.rglob(self.corpus_glob) if f.is_file())

    @staticmethod
    def _generate_unit_id(file: Path, base_folder: Path) -> str:
        """Generate a unit ID from the file path relative to the corpus root."""
        return file.relative_to(base_folder).as_posix()

    @staticmethod
    def _digest(text: str) -> str:
        return sha256(text.encode()).hexdigest()
