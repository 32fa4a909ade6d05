"""Lazy fingerprint -> commit index over one branch's history."""

import logging
from collections.abc import Generator, Iterator
from pathlib import Path

from snapmirror.gateway.repository.abc import RepositoryGateway

logger = logging.getLogger(__name__)


class FingerprintIndex:
    """Finds the newest commit in a history whose tree matches a fingerprint.

    History is walked newest first and only as far as needed: a lookup that
    misses the cache resumes the walk where the previous lookup stopped and
    caches every commit it passes. When several commits share a fingerprint
    (for example after a revert) the first one walked, i.e. the newest, is
    the one returned.
    """

    def __init__(self, gateway: RepositoryGateway, repo_root: Path, tip: str) -> None:
        self._gateway = gateway
        self._repo_root = repo_root
        self._tip = tip
        self._walk: Generator[str, None, None] | None = None
        self._exhausted = False
        self._newest_by_fingerprint: dict[str, str] = {}
        self._walked = 0

    def _commits(self) -> Iterator[str]:
        if self._walk is None:
            self._walk = self._gateway.commits_newest_first(self._repo_root, self._tip)
        return self._walk

    def find(self, fingerprint: str) -> str | None:
        """Return the newest commit with this fingerprint, or None."""
        if fingerprint in self._newest_by_fingerprint:
            return self._newest_by_fingerprint[fingerprint]
        if self._exhausted:
            return None

        for commit in self._commits():
            self._walked += 1
            tree = self._gateway.fingerprint_of(self._repo_root, commit)
            self._newest_by_fingerprint.setdefault(tree, commit)
            if tree == fingerprint:
                return self._newest_by_fingerprint[tree]

        self._exhausted = True
        logger.debug("walked all %d commits from %s", self._walked, self._tip)
        return None

    def close(self) -> None:
        """Stop the history walk, releasing whatever backs it."""
        if self._walk is not None:
            self._walk.close()
            self._walk = None
        self._exhausted = True

    @property
    def walked(self) -> int:
        """Number of commits examined so far."""
        return self._walked
