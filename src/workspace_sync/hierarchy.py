"""Fan-out of configuration file snapshots to sub-projects."""

from __future__ import annotations

from typing import TYPE_CHECKING

from workspace_sync.log import get_logger
from workspace_sync.paths import relativize


if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from workspace_sync.models import FileSnapshot
    from workspace_sync.protocols import HierarchyProvider, Project


logger = get_logger(__name__)


def resolve_sub_projects(
    project: Project, providers: Iterable[HierarchyProvider]
) -> list[Project]:
    """Union of the sub-projects of every provider the project takes part in.

    Deduplicated by scope id, in first-seen order.
    """
    sub_projects: dict[str, Project] = {}
    for provider in providers:
        if not provider.part_of_hierarchy(project):
            continue
        for sub_project in provider.get_sub_projects(project):
            sub_projects.setdefault(sub_project.scope_id, sub_project)
    return list(sub_projects.values())


def to_sub_project_snapshot(sub_project: Project, snapshot: FileSnapshot) -> FileSnapshot:
    """Copy of a root project snapshot as seen from a sub-project.

    Only the relative path and the scope id change.
    """
    relative_path = relativize(sub_project.location_uri, snapshot.uri)
    return snapshot.model_copy(
        update={
            "ide_relative_path": relative_path.as_posix(),
            "config_scope_id": sub_project.scope_id,
        }
    )


def fan_out(
    snapshots: Sequence[FileSnapshot], sub_projects: Sequence[Project]
) -> list[FileSnapshot]:
    """One duplicate per sub-project and snapshot."""
    duplicates = [
        to_sub_project_snapshot(sub_project, snapshot)
        for sub_project in sub_projects
        for snapshot in snapshots
    ]
    if duplicates:
        logger.debug(
            "Duplicated configuration files for sub-projects",
            files=len(snapshots),
            sub_projects=len(sub_projects),
        )
    return duplicates
