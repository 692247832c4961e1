"""
Document Service — uploads compliance documents to the document store.
"""

from __future__ import annotations

import logging

from regulatory_intake.models.schemas import DocumentUploadResult
from regulatory_intake.models.values import DocumentFile
from regulatory_intake.services.api_client import BackendClient

logger = logging.getLogger(__name__)


class DocumentService:
    def __init__(self, client: BackendClient):
        self.client = client

    async def upload_document(
        self,
        document: DocumentFile,
        filename: str | None = None,
        customer_reference: str | None = None,
    ) -> DocumentUploadResult:
        """Upload ``document`` as multipart form data and return the store's record."""
        form: dict[str, str] = {}
        if filename:
            form["filename"] = filename
        if customer_reference:
            form["customer_reference"] = customer_reference

        files = {"file": (filename or document.filename, document.content, document.content_type)}
        payload = await self.client.post("/documents", data=form, files=files)
        result = DocumentUploadResult.model_validate(payload or {})
        logger.info(f"Uploaded document {result.filename or document.filename} ({document.size} bytes) → id={result.id!r}")
        return result
