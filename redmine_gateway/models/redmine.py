"""Pydantic models for talking to the upstream Redmine API."""

from pydantic import BaseModel, Field
from typing import Any, Dict, List, Literal, Optional, Union


class Success(BaseModel):
    """Successful upstream call; `data` is the parsed response body."""
    success: Literal[True] = True
    data: Any = None


class Failure(BaseModel):
    """Failed upstream call.

    `error` holds the upstream response body when there was one, otherwise the
    error message. `status` is the upstream HTTP status and `code` the
    transport error name, each only when known.
    """
    success: Literal[False] = False
    error: Any = None
    status: Optional[int] = None
    code: Optional[str] = None


CallResult = Union[Success, Failure]


class UploadReference(BaseModel):
    """Token returned by /uploads.json plus the original file metadata."""
    token: str
    filename: str
    content_type: str


IdValue = Union[int, str]


class IssuePayload(BaseModel):
    """Body of POST /issues.json."""
    project_id: Optional[IdValue] = None
    subject: str
    description: str
    tracker_id: IdValue = 1
    priority_id: IdValue = 2
    uploads: List[UploadReference] = Field(default_factory=list)

    def to_request_body(self) -> Dict[str, Any]:
        """Wrap in the `issue` envelope, leaving out `uploads` when empty and unset ids."""
        issue = self.model_dump(exclude={"uploads"}, exclude_none=True)
        if self.uploads:
            issue["uploads"] = [upload.model_dump() for upload in self.uploads]
        return {"issue": issue}


class ProjectHierarchy(BaseModel):
    """Projects split into top-level ones and subprojects grouped by parent id."""
    main_projects: List[Dict[str, Any]] = Field(default_factory=list)
    # Keys are whatever Redmine sent as parent id
    subprojects: Dict[Any, List[Dict[str, Any]]] = Field(default_factory=dict)
    total_count: int = 0
