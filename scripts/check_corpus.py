"""CLI for ingesting a corpus folder, checking its relation graph and printing the reports as JSON"""

import argparse
import json
import sys
from pathlib import Path

from loguru import logger

from topicgraph.config import settings
from topicgraph.corpus_store.local import LocalCorpusStore
from topicgraph.ingestion.orchestrator import IngestionOrchestrator

logger.configure(handlers=[{"sink": sys.stderr, "level": settings.log_level}])


def main(
    in_folder: str,
    snapshot_path: str | None,
    related_to: str | None,
    depth: int | None,
) -> None:
    folder = Path(in_folder)
    store = LocalCorpusStore(filepath=snapshot_path)

    orchestrator = IngestionOrchestrator(store=store)
    ingestion = orchestrator.ingest(folder)
    checks = orchestrator.run_checks()

    output = {
        "ingestion": ingestion.model_dump(mode="json"),
        "integrity": checks.integrity.model_dump(mode="json"),
        "duplicates": checks.duplicates.model_dump(mode="json"),
    }
    if related_to:
        output["related_to"] = {
            "topic_id": related_to,
            "related": orchestrator.related_to(related_to, depth),
        }
    print(json.dumps(output, indent=2))

    if snapshot_path:
        store.save()


if __name__ == "__main__":
    parser = argparse.ArgumentParser()
    parser.add_argument(
        "--in-folder", type=str, required=True, help="Folder containing markdown topic files"
    )
    parser.add_argument(
        "--snapshot",
        type=str,
        required=False,
        help="Store snapshot file, loaded if present and saved after the run",
        default=str(settings.snapshot_path) if settings.snapshot_path else None,
    )
    parser.add_argument(
        "--related-to", type=str, required=False, help="Topic ID to list related topics for"
    )
    parser.add_argument(
        "--depth",
        type=int,
        required=False,
        help="Hops to follow for --related-to",
        default=settings.default_related_depth,
    )

    args = parser.parse_args()

    main(
        in_folder=args.in_folder,
        snapshot_path=args.snapshot,
        related_to=args.related_to,
        depth=args.depth,
    )
