"""
Async HTTP client for the notebook workflow webhooks.

Every backend operation is a JSON POST to a webhook URL. Failures are
translated into LensError subclasses at this boundary; nothing here
retries.
"""

import logging
from typing import Any, Optional, Type

import httpx

from lens.core.config import WebhookSettings, get_settings
from lens.core.exceptions import (
    AgentError,
    EnhancementTriggerError,
    RetrievalError,
    StatusCheckError,
    WebhookError,
)
from lens.core.models import NotebookFile
from lens.enhancement.files import map_files
from lens.retrieval.response_parser import parse_json_lenient

logger = logging.getLogger(__name__)

PUBLISH_EMBEDDING_MODEL = "text-embedding-3-small"
# High value so enhanced content is not re-chunked on publish
PUBLISH_CHUNK_SIZE = 50000


class WebhookClient:
    """Async client for retrieval, agent, status and trigger webhooks."""

    def __init__(
        self,
        settings: Optional[WebhookSettings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.settings = settings or get_settings().webhooks
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the shared HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.settings.timeout, connect=10.0),
                headers={"Content-Type": "application/json"},
                transport=self._transport,
            )
        return self._client

    async def close(self):
        """Close the HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _post(
        self,
        url: str,
        body: dict[str, Any],
        error_cls: Type[WebhookError],
        label: str,
        **error_kwargs: Any,
    ) -> httpx.Response:
        if not url:
            raise error_cls(f"{label} webhook URL is missing", **error_kwargs)

        client = await self._get_client()
        logger.info(f"[WebhookClient] POST {label}: {url}")

        try:
            response = await client.post(url, json=body)
            response.raise_for_status()
            return response

        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            logger.error(f"[WebhookClient] {label} HTTP error: {status}")
            raise error_cls(
                f"{label} failed: {status}",
                status_code=status,
                context={"url": url},
                **error_kwargs,
            ) from e

        except httpx.RequestError as e:
            logger.error(f"[WebhookClient] {label} request error: {e}")
            raise error_cls(
                f"{label} failed: {e}",
                context={"url": url},
                **error_kwargs,
            ) from e

    # =========================================================================
    # Retrieval / agent
    # =========================================================================

    async def retrieve(self, url: str, body: dict[str, Any]) -> Any:
        """Call a strategy's retrieval webhook and return the raw payload."""
        response = await self._post(url, body, RetrievalError, "Retrieval")
        return parse_json_lenient(response.text)

    async def ask_agent(self, url: str, body: dict[str, Any]) -> Any:
        """Call a strategy's agent webhook and return the raw response."""
        response = await self._post(url, body, AgentError, "Agent Generation")
        return parse_json_lenient(response.text)

    # =========================================================================
    # Enhancement
    # =========================================================================

    async def check_status(self, file_id: str, notebook_id: str) -> Any:
        """Fetch the raw enhancement status record for one file."""
        response = await self._post(
            self.settings.check_status_url,
            {"file_id": file_id, "notebook_id": notebook_id},
            StatusCheckError,
            "Status check",
        )
        return response.json()

    async def trigger_enhancement(
        self,
        file: NotebookFile,
        notebook_id: str,
        user_id: Optional[str] = None,
        embedding_model: Optional[str] = None,
    ) -> None:
        """Ask the backend to enhance a file's chunks (fire-and-forget)."""
        await self._post(
            self.settings.enhance_url,
            {
                "file_id": file.tracking_id,
                "job_id": file.job_id,
                "file_name": file.name,
                "notebook_id": notebook_id,
                "user_id": user_id,
                "embedding_model": embedding_model,
            },
            EnhancementTriggerError,
            "Enhancement trigger",
            action="enhance",
        )

    async def reingest_errors(
        self,
        file: NotebookFile,
        notebook_id: str,
        user_id: Optional[str] = None,
    ) -> None:
        """Re-run enhancement for a file's failed chunks only."""
        await self._post(
            self.settings.reingest_url,
            {
                "file_id": file.tracking_id,
                "job_id": file.job_id,
                "notebook_id": notebook_id,
                "user_id": user_id,
            },
            EnhancementTriggerError,
            "Reingest trigger",
            action="reingest",
        )

    async def publish_enhanced(
        self,
        file: NotebookFile,
        notebook_id: str,
        notebook_title: str = "",
        user_id: Optional[str] = None,
    ) -> None:
        """Replace a file's documents with its enhanced chunks."""
        await self._post(
            self.settings.publish_url,
            {
                "file_id": file.tracking_id,
                "job_id": file.job_id,
                "file_name": file.name,
                "notebook_id": notebook_id,
                "notebook_title": notebook_title,
                "user_id": user_id,
                "embedding_model": PUBLISH_EMBEDDING_MODEL,
                "body_recursiv_chunk_size": PUBLISH_CHUNK_SIZE,
                "body_recursiv_chunk_overlap": 0,
            },
            EnhancementTriggerError,
            "Publish trigger",
            action="publish",
        )

    # =========================================================================
    # Files
    # =========================================================================

    async def list_files(self, notebook_id: str) -> list[NotebookFile]:
        """List the notebook's files with their ingestion status."""
        response = await self._post(
            self.settings.notebook_status_url,
            {"notebook_id": notebook_id},
            WebhookError,
            "File list",
        )
        return map_files(parse_json_lenient(response.text))
