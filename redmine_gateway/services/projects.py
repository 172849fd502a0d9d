"""Reshaping of Redmine's flat project list into a parent/child hierarchy."""

from typing import Any, Dict, List

from ..models.redmine import ProjectHierarchy


def shape_projects(projects: List[Dict[str, Any]]) -> ProjectHierarchy:
    """
    Split projects into top-level projects and subprojects keyed by parent id.

    Upstream ordering is kept within every group. Top-level projects get a
    `has_subprojects` flag and subprojects a `parent_id`; the input dicts are
    copied, not modified.
    """
    main_projects: List[Dict[str, Any]] = []
    subprojects: Dict[Any, List[Dict[str, Any]]] = {}

    for project in projects:
        parent = project.get("parent")
        if parent:
            parent_id = parent.get("id")
            subprojects.setdefault(parent_id, []).append({**project, "parent_id": parent_id})
        else:
            main_projects.append({**project, "has_subprojects": False})

    for project in main_projects:
        project["has_subprojects"] = project.get("id") in subprojects

    return ProjectHierarchy(
        main_projects=main_projects,
        subprojects=subprojects,
        total_count=len(projects),
    )
