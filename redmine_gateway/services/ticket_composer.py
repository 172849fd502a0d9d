"""Ticket creation workflow: upload attachments, compose the issue, create it upstream."""

import json
import logging
from typing import List, Optional

from pydantic import ValidationError as PydanticValidationError

from ..config import Settings
from ..errors import (
    GatewayError, InternalError, MissingIdentityError, UploadError,
    UpstreamError, ValidationError
)
from ..models.redmine import Failure, IssuePayload, UploadReference
from ..models.tickets import (
    AuditRecord, AuditTicket, AuditUser, RequesterInfo, TicketCreated, TicketRequest
)
from .audit import CREATE_TICKET, CREATE_TICKET_FAILED, AuditSink
from .redmine_client import RedmineClient
from .uploader import AttachmentUploader

logger = logging.getLogger(__name__)

DEFAULT_TRACKER_ID = 1   # "Bug" / "Soporte"
DEFAULT_PRIORITY_ID = 2  # "Normal"

SECTION_DELIMITER = "\n\n---\n"


class TicketComposer:
    """Validates a ticket request and turns it into a Redmine issue."""

    def __init__(
        self,
        settings: Settings,
        client: RedmineClient,
        audit: AuditSink,
        uploader: Optional[AttachmentUploader] = None
    ):
        self.settings = settings
        self.client = client
        self.audit = audit
        self.uploader = uploader or AttachmentUploader(client)

    async def create_ticket(self, request: TicketRequest) -> TicketCreated:
        """
        Create a ticket upstream.

        Steps run in order and the first hard failure stops the workflow.
        Attachment upload failures are logged and the attachment is left out.

        Raises:
            ValidationError: subject or description missing
            MissingIdentityError: identity required but not usable
            UpstreamError: Redmine rejected the issue
            InternalError: anything unexpected after validation
        """
        if not request.subject or not request.description:
            raise ValidationError("subject y description son obligatorios")

        requester = parse_requester_info(request.user_info)
        if self.settings.require_requester_identity and requester is None:
            raise MissingIdentityError(
                "Se requiere información del usuario autenticado para crear el ticket"
            )

        if requester:
            logger.info("Creating ticket for %s (%s)", requester.name, requester.email)

        try:
            uploads = await self.upload_attachments(request)

            payload = self.build_payload(request, requester, uploads)
            result = await self.client.call("/issues.json", "POST", payload.to_request_body())

            if isinstance(result, Failure):
                logger.error("Redmine rejected the ticket: %s", result.error)
                self._record_failure(requester, str(result.error))
                raise UpstreamError(
                    result.error,
                    status_code=result.status or 500,
                    error="Error al crear ticket",
                )

            issue = result.data["issue"]
            ticket_id = issue["id"]
        except GatewayError:
            raise
        except Exception as e:
            logger.exception("Ticket creation failed")
            self._record_failure(requester, str(e))
            raise InternalError("Error inesperado al crear el ticket") from e

        self.audit.record(AuditRecord(
            action=CREATE_TICKET,
            user=_audit_user(requester),
            ticket=AuditTicket(
                redmine_id=ticket_id,
                project_id=request.project_id,
                subject=request.subject,
                tracker_id=request.tracker_id,
                priority_id=request.priority_id,
            ),
            attachments=len(uploads),
        ))
        logger.info("Ticket #%s created with %d attachment(s)", ticket_id, len(uploads))

        return TicketCreated(
            ticket_id=ticket_id,
            ticket=issue,
            attachments_uploaded=len(uploads),
        )

    async def upload_attachments(self, request: TicketRequest) -> List[UploadReference]:
        """Upload attachments one at a time, in request order, skipping failures."""
        uploads: List[UploadReference] = []
        if request.attachments:
            logger.info("Uploading %d attachment(s)", len(request.attachments))
        for attachment in request.attachments:
            try:
                uploads.append(await self.uploader.upload(attachment))
            except UploadError as e:
                logger.error("Error al subir archivo %s: %s", e.filename, e.details)
        return uploads

    def build_payload(
        self,
        request: TicketRequest,
        requester: Optional[RequesterInfo],
        uploads: List[UploadReference]
    ) -> IssuePayload:
        """Build the issue payload, filling in configured defaults."""
        return IssuePayload(
            project_id=request.project_id or self.settings.default_project_id,
            subject=request.subject,
            description=build_description(request, requester),
            tracker_id=request.tracker_id or DEFAULT_TRACKER_ID,
            priority_id=request.priority_id or DEFAULT_PRIORITY_ID,
            uploads=uploads,
        )

    def _record_failure(self, requester: Optional[RequesterInfo], error: str) -> None:
        if requester is None:
            return
        self.audit.record(AuditRecord(
            action=CREATE_TICKET_FAILED,
            user=_audit_user(requester),
            error=error,
        ))


def parse_requester_info(raw: Optional[str]) -> Optional[RequesterInfo]:
    """
    Parse the serialized identity sent by the frontend.

    Returns None when nothing was sent, when it cannot be parsed, or when it
    carries no email. Parse errors are logged, not raised.
    """
    if not raw:
        return None
    try:
        info = RequesterInfo.model_validate(json.loads(raw))
    except (ValueError, PydanticValidationError) as e:
        logger.warning("Error al parsear user_info: %s", e)
        return None
    return info if info.email else None


def build_description(request: TicketRequest, requester: Optional[RequesterInfo]) -> str:
    """Append requester and additional-information sections to the description."""
    sections = []

    if requester:
        lines = [
            "**Información del Solicitante:**",
            f"- **Nombre:** {requester.name or ''}",
            f"- **Email:** {requester.email}",
        ]
        if requester.username:
            lines.append(f"- **Usuario Keycloak:** {requester.username}")
        sections.append("\n".join(lines) + "\n")

    extra_fields = [
        ("Módulo", request.modulo),
        ("Número de trámite", request.numero_tramite),
        ("Identificador de operación", request.identificador_operacion),
    ]
    extra_lines = [f"- **{label}:** {value}" for label, value in extra_fields if value]
    if extra_lines:
        sections.append("\n".join(["**Información Adicional:**"] + extra_lines) + "\n")

    if not sections:
        return request.description
    return request.description + SECTION_DELIMITER + "\n".join(sections)


def _audit_user(requester: Optional[RequesterInfo]) -> Optional[AuditUser]:
    if requester is None:
        return None
    return AuditUser(
        keycloak_id=requester.sub,
        email=requester.email,
        username=requester.username,
        name=requester.name,
    )
