"""Read-only checks that turn a corpus and its relation graph into reports."""

from topicgraph.checks.duplicates import DuplicateDetector
from topicgraph.checks.integrity import IntegrityChecker

__all__ = [
    "DuplicateDetector",
    "IntegrityChecker",
]
