"""Path resolution for relation targets written as relative paths."""

import posixpath
from typing import Iterable
from urllib.parse import unquote

from loguru import logger

from topicgraph.normalization import is_uri


def split_reference(target: str) -> tuple[str, str | None]:
    """Split a link target into a decoded path and an optional anchor.

    Query strings are dropped and backslashes are treated as separators.

    Args:
        target: Link target as written, e.g. ``../notes/foo%20bar.md#summary``

    Returns:
        Tuple of (path, anchor); the path is empty for anchor-only targets
    """
    path, _, anchor = target.strip().partition("#")
    path = path.split("?", 1)[0]
    path = unquote(path).replace("\\", "/").strip()
    return path, unquote(anchor).strip() or None


class PathResolver:
    """Resolve relation targets to source unit ids with clear precedence rules."""

    def __init__(self, unit_ids: Iterable[str], default_suffix: str = ".md"):
        """
        Initialize PathResolver.

        Args:
            unit_ids: Known source unit ids (POSIX paths relative to the corpus root)
            default_suffix: Suffix tried for targets written without one (e.g. wikilinks)
        """
        self.unit_ids = list(unit_ids)
        self._known = set(self.unit_ids)
        self.default_suffix = default_suffix

    def resolve_units(self, owner_unit_id: str, target: str) -> list[str]:
        """
        Resolve a target path with clear precedence rules.

        Priority:
        1. Anchor-only target: the owning unit itself
        2. Relative to the owning unit (most specific)
        3. Relative to the corpus root, only for targets written with a leading "/"
        4. By file name anywhere in the corpus, for bare names without a folder

        A folder path that does not exist relative to the owning unit stays
        unresolved rather than being looked up from the root.

        Args:
            owner_unit_id: Unit that declares the relation
            target: Target as written in the note

        Returns:
            Matching unit ids from the first strategy that found any, else an empty list
        """
        if is_uri(target):
            return []

        path, _ = split_reference(target)
        if not path:
            return [owner_unit_id] if owner_unit_id in self._known else []

        resolution_strategies = [
            ("relative to unit", self._resolve_relative_to_unit),
            ("relative to root", self._resolve_relative_to_root),
            ("by file name", self._resolve_by_file_name),
        ]

        for strategy_name, resolver_func in resolution_strategies:
            matches = resolver_func(owner_unit_id, path)
            logger.debug(f"Trying {strategy_name} for {target!r}: {matches}")
            if matches:
                return matches

        return []

    def get_resolution_candidates(self, owner_unit_id: str, target: str) -> list[str]:
        """
        Get all normalized paths that would be looked up, for debugging purposes.
        """
        path, _ = split_reference(target)
        if not path:
            return [owner_unit_id]

        if path.startswith("/"):
            normalized = self._normalize("", path.lstrip("/"))
        else:
            normalized = self._normalize(posixpath.dirname(owner_unit_id), path)
        return self._with_suffix(normalized) if normalized is not None else []

    def _resolve_relative_to_unit(self, owner_unit_id: str, path: str) -> list[str]:
        """Try relative to the owning unit's folder."""
        if path.startswith("/"):
            return []
        normalized = self._normalize(posixpath.dirname(owner_unit_id), path)
        return self._existing(normalized)

    def _resolve_relative_to_root(self, owner_unit_id: str, path: str) -> list[str]:
        """Try relative to the corpus root, for root-anchored targets."""
        if not path.startswith("/"):
            return []
        return self._existing(self._normalize("", path.lstrip("/")))

    def _resolve_by_file_name(self, owner_unit_id: str, path: str) -> list[str]:
        """Try matching a bare file name against every unit."""
        if "/" in path:
            return []
        names = set(self._with_suffix(path))
        return [unit_id for unit_id in self.unit_ids if posixpath.basename(unit_id) in names]

    def _existing(self, normalized: str | None) -> list[str]:
        if normalized is None:
            return []
        for candidate in self._with_suffix(normalized):
            if candidate in self._known:
                return [candidate]
        return []

    def _with_suffix(self, path: str) -> list[str]:
        if path.endswith(self.default_suffix):
            return [path]
        return [path, f"{path}{self.default_suffix}"]

    @staticmethod
    def _normalize(base: str, path: str) -> str | None:
        """Join and collapse ``.``/``..`` segments; None when the path escapes the corpus root."""
        normalized = posixpath.normpath(posixpath.join(base, path))
        if normalized == ".." or normalized.startswith("../") or normalized.startswith("/"):
            return None
        return normalized
