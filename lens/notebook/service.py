"""
Notebook Service - ties webhooks, normalization and job polling together.

    service = NotebookService(notebook_id="nb-1", config=load_notebook_config())
    result = await service.ask("What changed in Q3?")
    result.view.kind   # presentation shape for result.raw_retrieval

    await service.enhance_file(file, on_update=render, on_terminal=notify)
    ...
    await service.close()
"""

import asyncio
import logging
from typing import Any, Callable, Optional, Union

from lens.core.config import NotebookConfig, get_settings
from lens.core.exceptions import AgentError, EnhancementTriggerError, RetrievalError
from lens.core.models import (
    AnswerResult,
    EnhancementState,
    JobProgress,
    NotebookFile,
    StrategyId,
)
from lens.enhancement.files import enhancement_state, is_tabular
from lens.enhancement.poller import JobPoller, TerminalCallback, UpdateCallback
from lens.retrieval.answer import answer_text, extract_agent_metadata
from lens.retrieval.discovery import dedupe_by_content, find_documents
from lens.retrieval.fields import resolve_document_fields
from lens.retrieval.router import select_view
from lens.webhooks.client import WebhookClient

logger = logging.getLogger(__name__)


def _refuse_tabular(file: NotebookFile, action: str) -> None:
    if is_tabular(file):
        raise EnhancementTriggerError(
            f"{file.name!r} is tabular; tabular files are queried through SQL and never enhanced",
            action=action,
            context={"file_id": file.tracking_id},
        )


class NotebookService:
    """One notebook's chat pipeline and enhancement job tracking."""

    def __init__(
        self,
        notebook_id: str,
        config: Optional[NotebookConfig] = None,
        client: Optional[WebhookClient] = None,
        poller: Optional[JobPoller] = None,
        notebook_title: str = "",
        user_id: Optional[str] = None,
    ):
        self.notebook_id = notebook_id
        self.notebook_title = notebook_title
        self.user_id = user_id
        self.config = config or NotebookConfig()
        self.client = client or WebhookClient()
        self.poller = poller or JobPoller(
            status_check=self._check_status,
            on_refresh=self.refresh_files,
        )
        self.files: list[NotebookFile] = []
        self.max_depth = get_settings().discovery.max_depth

    # =========================================================================
    # Chat pipeline
    # =========================================================================

    def _common_body(self) -> dict[str, Any]:
        return {
            "notebook_id": self.notebook_id,
            "active_strategy_id": self.config.active_strategy_id,
            "strategies_config": {
                k: v.model_dump() for k, v in self.config.strategies.items()
            },
            "inference_config": self.config.inference,
            "system_prompts": self.config.system_prompts,
            "embedding_model": self.config.embedding_model,
            "user_id": self.user_id,
        }

    async def ask(
        self,
        question: str,
        chat_history: Optional[list[dict[str, str]]] = None,
    ) -> AnswerResult:
        """
        Send a question through the active strategy.

        The SQL agent strategy answers in one call; every other strategy
        runs retrieval and agent generation concurrently.

        Raises:
            RetrievalError / AgentError: on a missing webhook or failed call
        """
        strategy_id = self.config.active_strategy_id
        endpoints = self.config.endpoints_for(strategy_id)
        is_sql = strategy_id == StrategyId.AGENTIC_SQL.value

        if not endpoints.agentic_webhook:
            raise AgentError("Agentic Webhook URL is missing.")
        if not is_sql and not endpoints.retrieval_webhook:
            raise RetrievalError("Retrieval Webhook URL is missing.")

        common = self._common_body()
        agent_body = {"question": question, "chat_history": chat_history or [], **common}

        logger.info(f"[NotebookService] ask | strategy={strategy_id} | question={question[:100]}")

        retrieval_data: Any = {}
        if is_sql:
            agent_data = await self.client.ask_agent(endpoints.agentic_webhook, agent_body)
        else:
            retrieval_body = {"question": question, **common}
            retrieval_data, agent_data = await asyncio.gather(
                self.client.retrieve(endpoints.retrieval_webhook, retrieval_body),
                self.client.ask_agent(endpoints.agentic_webhook, agent_body),
            )

        records = dedupe_by_content(find_documents(retrieval_data, self.max_depth))
        citations = [resolve_document_fields(r) for r in records]

        return AnswerResult(
            answer=answer_text(agent_data),
            citations=citations,
            strategy_id=strategy_id,
            raw_retrieval=retrieval_data,
            view=select_view(strategy_id, retrieval_data, self.max_depth),
            agent_metadata=extract_agent_metadata(agent_data) if is_sql else None,
        )

    # =========================================================================
    # Files and enhancement
    # =========================================================================

    async def refresh_files(self) -> list[NotebookFile]:
        """Reload the notebook's file list."""
        self.files = await self.client.list_files(self.notebook_id)
        return self.files

    async def _check_status(self, file_id: str) -> Any:
        return await self.client.check_status(file_id, self.notebook_id)

    async def enhance_file(
        self,
        file: NotebookFile,
        on_update: Optional[UpdateCallback] = None,
        on_terminal: Optional[TerminalCallback] = None,
    ) -> Callable[[], bool]:
        """Trigger enhancement for a file, then poll it to a terminal state.

        Returns the poll session's cancel function. A tabular file or a failed
        trigger raises EnhancementTriggerError and no polling starts.
        """
        _refuse_tabular(file, "enhance")
        await self.client.trigger_enhancement(
            file, self.notebook_id, self.user_id, self.config.embedding_model
        )
        logger.info(f"[NotebookService] Enhancement started for {file.name!r}")
        return self.poller.start_polling(file.tracking_id, on_update, on_terminal, label=file.name)

    async def reingest_errors(
        self,
        file: NotebookFile,
        on_update: Optional[UpdateCallback] = None,
        on_terminal: Optional[TerminalCallback] = None,
    ) -> Callable[[], bool]:
        """Re-run failed chunks for a file, then poll it."""
        _refuse_tabular(file, "reingest")
        await self.client.reingest_errors(file, self.notebook_id, self.user_id)
        logger.info(f"[NotebookService] Reingest started for failed chunks in {file.name!r}")
        return self.poller.start_polling(file.tracking_id, on_update, on_terminal, label=file.name)

    async def publish(self, file: NotebookFile) -> None:
        """Publish a file's enhanced chunks (no polling)."""
        await self.client.publish_enhanced(
            file, self.notebook_id, self.notebook_title, self.user_id
        )
        logger.info(f"[NotebookService] Publishing enhanced chunks for {file.name!r}")

    async def publish_many(self, files: list[NotebookFile]) -> tuple[int, int]:
        """Publish several files one after another.

        Returns:
            (published, failed) counts; one failure does not stop the batch
        """
        published = failed = 0
        for file in files:
            try:
                await self.publish(file)
                published += 1
            except EnhancementTriggerError as e:
                logger.warning(f"[NotebookService] Publish failed for {file.name!r}: {e}")
                failed += 1
        return published, failed

    def enhancement_state(self, file: NotebookFile) -> EnhancementState:
        return enhancement_state(self.progress_for(file))

    def cancel_enhancement(self, file: Union[NotebookFile, str]) -> bool:
        """Cancel polling for a file (or a raw tracking id)."""
        job_id = file if isinstance(file, str) else file.tracking_id
        return self.poller.cancel(job_id)

    def progress_for(self, file: NotebookFile) -> Optional[JobProgress]:
        return self.poller.get_progress(file.tracking_id)

    async def close(self) -> None:
        """Tear down every poll timer and the HTTP client."""
        self.poller.shutdown()
        await self.client.close()
