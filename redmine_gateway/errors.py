"""Errors raised by the gateway and translated into `{error, details}` responses."""

from typing import Any, Optional


class GatewayError(Exception):
    """Base error carrying the HTTP status and body to return to the caller."""

    status_code = 500
    error = "Error interno del servidor"

    def __init__(
        self,
        details: Any = None,
        status_code: Optional[int] = None,
        error: Optional[str] = None
    ):
        super().__init__(details if isinstance(details, str) else (error or self.error))
        self.details = details
        if status_code is not None:
            self.status_code = status_code
        if error is not None:
            self.error = error


class ValidationError(GatewayError):
    """Required ticket fields are missing."""
    status_code = 400
    error = "Campos requeridos faltantes"


class MissingIdentityError(GatewayError):
    """Requester identity is required but absent or unusable."""
    status_code = 400
    error = "Información de usuario no disponible"


class AttachmentRejectedError(GatewayError):
    """An attachment violates the configured count, size or type limits."""
    status_code = 400
    error = "Archivo adjunto rechazado"


class UpstreamError(GatewayError):
    """The upstream tracker rejected the call or could not be reached."""
    status_code = 500
    error = "Error en Redmine"


class InternalError(GatewayError):
    """Unexpected failure inside the ticket workflow."""
    status_code = 500


class UploadError(Exception):
    """Uploading a single attachment failed. Never surfaced to the caller."""

    def __init__(self, filename: str, details: Any):
        super().__init__(f"Failed to upload {filename}: {details}")
        self.filename = filename
        self.details = details
