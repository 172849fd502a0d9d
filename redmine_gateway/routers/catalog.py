"""Read-only Redmine catalog endpoints: projects, trackers and priorities."""

from fastapi import APIRouter, Depends

from ..config import Settings
from ..dependencies import get_app_settings, get_redmine_client
from ..errors import UpstreamError
from ..models.redmine import Failure
from ..services.projects import shape_projects
from ..services.redmine_client import RedmineClient

router = APIRouter()


async def fetch(client: RedmineClient, endpoint: str, error: str):
    """Fetch `endpoint` and return its body, raising UpstreamError on failure."""
    result = await client.call(endpoint)
    if isinstance(result, Failure):
        raise UpstreamError(result.error, status_code=result.status or 500, error=error)
    return result.data


@router.get("/projects")
async def list_projects(
    settings: Settings = Depends(get_app_settings),
    client: RedmineClient = Depends(get_redmine_client),
):
    """
    List projects.

    With hierarchy shaping enabled, subprojects are requested too and the
    response is split into `main_projects` and `subprojects` by parent id.
    Otherwise Redmine's response is returned as is.
    """
    if not settings.shape_project_hierarchy:
        return await fetch(client, "/projects.json", "Error al obtener proyectos")

    data = await fetch(client, "/projects.json?include=descendants", "Error al obtener proyectos")
    if not isinstance(data, dict):
        raise UpstreamError(
            "Respuesta inesperada de Redmine",
            status_code=502,
            error="Error al obtener proyectos",
        )
    return shape_projects(data.get("projects") or [])


@router.get("/trackers")
async def list_trackers(client: RedmineClient = Depends(get_redmine_client)):
    """List issue trackers (types)."""
    return await fetch(client, "/trackers.json", "Error al obtener trackers")


@router.get("/priorities")
async def list_priorities(client: RedmineClient = Depends(get_redmine_client)):
    """List issue priorities."""
    return await fetch(client, "/enumerations/issue_priorities.json", "Error al obtener prioridades")
