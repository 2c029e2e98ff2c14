import tempfile
from pathlib import Path
from typing import Generator

import pytest

from topicgraph.corpus_store.local import LocalCorpusStore
from topicgraph.ingestion.document_parser import DocumentParser
from topicgraph.ingestion.orchestrator import IngestionOrchestrator


@pytest.fixture
def parser() -> DocumentParser:
    return DocumentParser(
        separator="---",
        related_headings=["Related Summaries & Subjects", "Related Subjects"],
        citation_prefixes=["Source", "Citation"],
    )


@pytest.fixture
def store() -> LocalCorpusStore:
    return LocalCorpusStore()


@pytest.fixture
def orchestrator(store: LocalCorpusStore, parser: DocumentParser) -> IngestionOrchestrator:
    return IngestionOrchestrator(
        store=store, parser=parser, max_workers=2, corpus_glob="*.md", near_duplicate_threshold=0.6
    )


@pytest.fixture
def temp_corpus_base() -> Generator[Path, None, None]:
    """Create a temporary directory used when testing ingestion of a corpus folder."""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield Path(temp_dir)


@pytest.fixture
def corpus_directory(temp_corpus_base: Path) -> Path:
    """Create the corpus subdirectory."""
    corpus_dir = temp_corpus_base / "corpus"
    corpus_dir.mkdir()
    return corpus_dir


@pytest.fixture
def three_unit_corpus(corpus_directory: Path) -> Path:
    """A references B, B has no relations, C references a missing file."""
    (corpus_directory / "a.md").write_text(
        "# Alpha\n\nAlpha summary.\n\n## Related Subjects\n- [Beta](b.md)\n"
    )
    (corpus_directory / "b.md").write_text("# Beta\n\nBeta summary.\n")
    (corpus_directory / "c.md").write_text(
        "# Gamma\n\nGamma summary.\n\n## Related Subjects\n- [Missing](../missing.md)\n"
    )
    return corpus_directory
