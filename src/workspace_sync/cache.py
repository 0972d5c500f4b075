"""Process-wide caches keyed by project scope id.

Both the notification thread and the propagation worker use these caches.
The only mutations are insert-on-miss and explicit invalidation. Computing a
missing entry holds a lock for that scope only, so invalidating or reading
other scopes never waits for a slow computation.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import threading
from typing import TYPE_CHECKING

from workspace_sync.log import get_logger


if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Sequence
    from pathlib import PurePosixPath

    from workspace_sync.protocols import ExclusionProvider, Project, WorkspaceFile


logger = get_logger(__name__)

ExclusionSet = frozenset["PurePosixPath"]


@dataclass
class ScopedCache[T]:
    """Key-value store with atomic per-key insert-or-fetch."""

    name: str = "cache"
    """Used in log output only."""

    _entries: dict[str, T] = field(default_factory=dict, repr=False)
    _generations: dict[str, int] = field(default_factory=dict, repr=False)
    """Bumped on every invalidation, to drop results computed before it."""

    _scope_locks: dict[str, threading.Lock] = field(default_factory=dict, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)
    """Guards the dicts above; never held while computing."""

    def get(self, scope_id: str) -> T | None:
        with self._lock:
            return self._entries.get(scope_id)

    def put(self, scope_id: str, value: T) -> None:
        with self._lock:
            self._entries[scope_id] = value

    def invalidate(self, scope_id: str) -> None:
        """Drop the entry for a scope, if any."""
        with self._lock:
            removed = self._entries.pop(scope_id, None)
            self._generations[scope_id] = self._generations.get(scope_id, 0) + 1
        if removed is not None:
            logger.debug("Invalidated cache entry", cache=self.name, scope_id=scope_id)

    def get_or_compute(self, scope_id: str, factory: Callable[[], T]) -> T:
        """Return the cached value, computing and storing it on a miss.

        The factory runs under the scope's own lock, so it runs at most once per
        scope between invalidations. A result whose scope got invalidated while
        it was computed is returned but not stored.
        """
        with self._lock:
            scope_lock = self._scope_locks.setdefault(scope_id, threading.Lock())
        with scope_lock:
            with self._lock:
                if (value := self._entries.get(scope_id)) is not None:
                    return value
                generation = self._generations.get(scope_id, 0)
            value = factory()
            with self._lock:
                if self._generations.get(scope_id, 0) == generation:
                    self._entries[scope_id] = value
            return value

    def clear(self) -> None:
        with self._lock:
            for scope_id in self._entries.keys() | self._scope_locks.keys():
                self._generations[scope_id] = self._generations.get(scope_id, 0) + 1
            self._entries.clear()

    def __contains__(self, scope_id: object) -> bool:
        with self._lock:
            return scope_id in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class ExclusionCache(ScopedCache[ExclusionSet]):
    """Exclusion sets per project scope."""

    def __init__(self) -> None:
        super().__init__(name="exclusions")

    def exclusions_for(
        self,
        project: Project,
        providers: Sequence[ExclusionProvider],
    ) -> ExclusionSet:
        """Cached exclusion set of a project, computed from all providers on a miss."""
        return self.get_or_compute(
            project.scope_id, lambda: compute_exclusions(project, providers)
        )


class ProjectFilesCache(ScopedCache["Sequence[WorkspaceFile]"]):
    """File listings per project scope.

    Entries must be invalidated whenever files of the project were added or
    changed, before anything else asks for the listing again.
    """

    def __init__(self) -> None:
        super().__init__(name="project-files")

    def files_of(self, project: Project) -> Sequence[WorkspaceFile]:
        return self.get_or_compute(project.scope_id, lambda: tuple(project.files()))


def compute_exclusions(
    project: Project, providers: Iterable[ExclusionProvider]
) -> ExclusionSet:
    """Union of the exclusions of every provider for the project."""
    exclusions: set[PurePosixPath] = set()
    for provider in providers:
        exclusions.update(provider.get_exclusions(project))
    logger.debug(
        "Computed exclusions",
        scope_id=project.scope_id,
        count=len(exclusions),
    )
    return frozenset(exclusions)
