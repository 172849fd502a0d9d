"""Ticket API endpoints."""

from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile

from ..config import Settings
from ..dependencies import get_app_settings, get_redmine_client, get_ticket_composer
from ..errors import AttachmentRejectedError, UpstreamError
from ..models.redmine import Failure
from ..models.tickets import Attachment, CreateTicketResponse, TicketRequest
from ..services.redmine_client import RedmineClient
from ..services.ticket_composer import TicketComposer

router = APIRouter()


@router.post("", status_code=201, response_model=CreateTicketResponse)
async def create_ticket(
    subject: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    project_id: Optional[str] = Form(None),
    tracker_id: Optional[str] = Form(None),
    priority_id: Optional[str] = Form(None),
    modulo: Optional[str] = Form(None),
    numero_tramite: Optional[str] = Form(None),
    identificador_operacion: Optional[str] = Form(None),
    user_info: Optional[str] = Form(None),
    attachments: Optional[List[UploadFile]] = File(None),
    settings: Settings = Depends(get_app_settings),
    composer: TicketComposer = Depends(get_ticket_composer),
) -> CreateTicketResponse:
    """
    Create a Redmine issue from a multipart form.

    Files sent as `attachments` are uploaded first and linked to the issue.
    Requester identity, when sent as `user_info`, is appended to the
    description along with any additional-information fields.
    """
    files = await read_attachments(attachments or [], settings)

    result = await composer.create_ticket(TicketRequest(
        project_id=project_id,
        subject=subject,
        description=description,
        tracker_id=tracker_id,
        priority_id=priority_id,
        modulo=modulo,
        numero_tramite=numero_tramite,
        identificador_operacion=identificador_operacion,
        user_info=user_info,
        attachments=files,
    ))
    return CreateTicketResponse(
        ticket=result.ticket,
        attachments_uploaded=result.attachments_uploaded,
    )


@router.get("/{ticket_id}")
async def get_ticket(ticket_id: int, client: RedmineClient = Depends(get_redmine_client)):
    """Return a single issue as Redmine sends it."""
    result = await client.call(f"/issues/{ticket_id}.json")
    if isinstance(result, Failure):
        raise UpstreamError(result.error, status_code=result.status or 500, error="Error al obtener ticket")
    return result.data


async def read_attachments(uploads: List[UploadFile], settings: Settings) -> List[Attachment]:
    """Read uploaded files into memory, enforcing count, size and type limits."""
    if len(uploads) > settings.max_attachments:
        raise AttachmentRejectedError(
            f"Se permiten como máximo {settings.max_attachments} archivos"
        )

    attachments = []
    for upload in uploads:
        content_type = upload.content_type or "application/octet-stream"
        if settings.restrict_attachments_to_images and not content_type.startswith("image/"):
            raise AttachmentRejectedError(f"Solo se permiten imágenes: {upload.filename}")

        too_large = AttachmentRejectedError(
            f"{upload.filename} supera el tamaño máximo de {settings.max_attachment_size} bytes",
            status_code=413,
        )
        if upload.size is not None and upload.size > settings.max_attachment_size:
            raise too_large

        # Never read more than one byte past the limit
        content = await upload.read(settings.max_attachment_size + 1)
        if len(content) > settings.max_attachment_size:
            raise too_large
        attachments.append(Attachment(
            content=content,
            filename=upload.filename or "attachment",
            content_type=content_type,
        ))
    return attachments
