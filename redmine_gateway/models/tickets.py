"""Pydantic models for the ticket endpoints and the audit trail."""

from datetime import datetime, timezone
from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Any, Dict, List, Optional

from .redmine import IdValue


class Attachment(BaseModel):
    """A file received from the client, held in memory for one request."""
    content: bytes
    filename: str
    content_type: str = "application/octet-stream"

    @property
    def size(self) -> int:
        return len(self.content)


class RequesterInfo(BaseModel):
    """Identity attached to the request by the upstream identity provider."""
    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    name: Optional[str] = None
    email: Optional[str] = None
    username: Optional[str] = None
    sub: Optional[str] = None


class TicketRequest(BaseModel):
    """Fields of a create-ticket request after multipart decoding."""
    project_id: Optional[IdValue] = None
    subject: Optional[str] = None
    description: Optional[str] = None
    tracker_id: Optional[IdValue] = None
    priority_id: Optional[IdValue] = None
    modulo: Optional[str] = None
    numero_tramite: Optional[str] = None
    identificador_operacion: Optional[str] = None
    user_info: Optional[str] = None  # serialized JSON from the frontend
    attachments: List[Attachment] = Field(default_factory=list)

    @field_validator(
        "project_id", "subject", "description", "tracker_id", "priority_id",
        "modulo", "numero_tramite", "identificador_operacion", "user_info",
        mode="before"
    )
    @classmethod
    def blank_as_missing(cls, value):
        # Form fields arrive as empty strings when left blank
        if isinstance(value, str) and not value.strip():
            return None
        return value


class TicketCreated(BaseModel):
    """Outcome of a successful ticket creation."""
    ticket_id: IdValue
    ticket: Dict[str, Any]
    attachments_uploaded: int


class CreateTicketResponse(BaseModel):
    """Response body for POST /api/tickets."""
    message: str = "Ticket creado exitosamente"
    ticket: Dict[str, Any]
    attachments_uploaded: int = Field(serialization_alias="attachmentsUploaded")


class ErrorResponse(BaseModel):
    """Error body shared by every endpoint."""
    error: str
    details: Any = None


class AuditUser(BaseModel):
    keycloak_id: Optional[str] = None
    email: Optional[str] = None
    username: Optional[str] = None
    name: Optional[str] = None


class AuditTicket(BaseModel):
    redmine_id: Optional[IdValue] = None
    project_id: Optional[IdValue] = None
    subject: Optional[str] = None
    tracker_id: Optional[IdValue] = None
    priority_id: Optional[IdValue] = None


class AuditRecord(BaseModel):
    """One ticket-creation attempt, successful or not."""
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    action: str
    user: Optional[AuditUser] = None
    ticket: Optional[AuditTicket] = None
    attachments: int = 0
    error: Optional[str] = None
