"""Pydantic models for notebook-lens."""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field


# =============================================================================
# Enums
# =============================================================================

class StrategyId(str, Enum):
    """Retrieval strategies known to the view router."""

    FUSION = "fusion"
    MULTI_QUERY = "multi-query"
    EXPANDED_HYBRID = "expanded-hybrid"
    SEMANTIC_CONTEXT = "semantic-context"
    SEMANTIC_RERANK = "semantic-rerank"
    HYBRID_RERANK = "hybrid-rerank"
    AGENTIC_SQL = "agentic-sql"


class StrategyCategory(str, Enum):
    """Chat mode a strategy belongs to."""

    RAG = "rag"
    SQL = "sql"


class ViewKind(str, Enum):
    """Presentation shape selected for a retrieval payload."""

    MULTI_QUERY_GROUPED = "multi_query_grouped"
    RANKED_WITH_BADGES = "ranked_with_badges"
    FLAT_RANKED = "flat_ranked"


class RankBadge(str, Enum):
    """Badge shown on a ranked view."""

    SEMANTIC = "semantic"
    HYBRID = "hybrid"
    FUSION = "fusion"
    EXPANDED = "expanded"


class JobOutcome(str, Enum):
    """Terminal states of a polled enhancement job."""

    COMPLETED = "completed"
    STUCK = "stuck"
    TIMED_OUT = "timed_out"
    CANCELLED = "cancelled"


class FileStatus(str, Enum):
    """Ingestion status of a notebook file."""

    COMPLETED = "completed"
    PROCESSING = "processing"
    PENDING = "pending"
    ERROR = "error"


class EnhancementState(str, Enum):
    """Where a file stands in the enhance/publish lifecycle."""

    NOT_ENHANCED = "not_enhanced"
    ENHANCING = "enhancing"
    ENHANCED = "enhanced"
    PUBLISHED = "published"


# =============================================================================
# Retrieval view model
# =============================================================================

class NormalizedDocument(BaseModel):
    """One retrieved document, resolved from an arbitrary backend record."""

    title: str
    content: str
    score: float = Field(default=0.0, ge=0.0)
    metadata: dict[str, Any] = Field(default_factory=dict)
    source_type: str = "file"
    url: Optional[str] = None


class QueryGroup(BaseModel):
    """Documents retrieved for one generated sub-query."""

    query: str
    documents: list[NormalizedDocument] = Field(default_factory=list)


class ViewVariant(BaseModel):
    """Render-ready selection for one strategy payload.

    `documents` is always populated for ranked and flat views, and for an
    aggregated multi-query view. `groups` is only populated for
    multi-query views.
    """

    kind: ViewKind
    badge: Optional[RankBadge] = None
    title: str = ""
    description: str = ""
    documents: list[NormalizedDocument] = Field(default_factory=list)
    groups: list[QueryGroup] = Field(default_factory=list)
    aggregated: bool = False


class StrategyMeta(BaseModel):
    """Catalogue entry for a retrieval strategy."""

    id: StrategyId
    name: str
    description: str
    category: StrategyCategory
    disabled: bool = False


class AnswerResult(BaseModel):
    """Outcome of one question sent through the notebook pipeline."""

    answer: str
    citations: list[NormalizedDocument] = Field(default_factory=list)
    strategy_id: Optional[str] = None
    raw_retrieval: Any = None
    view: Optional[ViewVariant] = None
    agent_metadata: Optional[dict[str, Any]] = None


# =============================================================================
# Enhancement jobs
# =============================================================================

class EnhancementStatus(BaseModel):
    """One parsed status-check response."""

    total_units: int = 0
    terminated_units: int = 0
    succeeded_units: int = 0
    failed_units: int = 0
    pending_units: int = 0
    processing_units: int = 0
    published_units: int = 0
    all_terminated: bool = False


class JobProgress(EnhancementStatus):
    """Progress record for one polled job."""

    job_id: str
    label: str = ""
    is_polling: bool = True


class JobNotice(BaseModel):
    """Human-readable notification emitted once per terminal transition."""

    job_id: str
    outcome: JobOutcome
    message: str


class NotebookFile(BaseModel):
    """A file listed by the notebook status backend."""

    id: str
    job_id: Optional[str] = None
    file_id: Optional[str] = None
    name: str = "Untitled Document"
    type: str = "document"
    status: FileStatus = FileStatus.PENDING
    size: str = "Unknown"
    added: str = ""
    updated: Optional[str] = None
    chunk_status: Optional[str] = None
    total_chunks: Optional[int] = None
    completed_chunks: Optional[int] = None

    @property
    def tracking_id(self) -> str:
        """Identifier used for status checks and poll tracking."""
        return self.file_id or self.id
