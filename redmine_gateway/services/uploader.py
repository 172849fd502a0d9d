"""Upload of attachment blobs to Redmine's /uploads.json endpoint."""

from ..errors import UploadError
from ..models.redmine import Failure, UploadReference
from ..models.tickets import Attachment
from .redmine_client import RedmineClient


class AttachmentUploader:
    """Streams attachments upstream and returns their upload tokens."""

    def __init__(self, client: RedmineClient):
        self.client = client

    async def upload(self, attachment: Attachment) -> UploadReference:
        """
        Upload one file and return its reference.

        Redmine does not reliably echo the filename and content type, so both
        are taken from the attachment itself.

        Raises:
            UploadError: the upload failed or returned no token
        """
        result = await self.client.call(
            "/uploads.json",
            method="POST",
            headers={"Content-Type": "application/octet-stream"},
            content=attachment.content,
        )
        if isinstance(result, Failure):
            raise UploadError(attachment.filename, result.error)

        data = result.data if isinstance(result.data, dict) else {}
        token = (data.get("upload") or {}).get("token")
        if not token:
            raise UploadError(attachment.filename, f"No upload token in response: {result.data}")

        return UploadReference(
            token=token,
            filename=attachment.filename,
            content_type=attachment.content_type,
        )
