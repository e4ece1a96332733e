"""Retrieval strategy catalogue."""

from typing import Optional

from lens.core.models import StrategyCategory, StrategyId, StrategyMeta

RETRIEVAL_STRATEGIES: list[StrategyMeta] = [
    StrategyMeta(
        id=StrategyId.FUSION,
        name="Fusion-Based Search",
        description="Reciprocal Rank Fusion of full-text and semantic search results.",
        category=StrategyCategory.RAG,
    ),
    StrategyMeta(
        id=StrategyId.MULTI_QUERY,
        name="Multi Query RAG",
        description="Generates sub-queries for broader coverage before reranking.",
        category=StrategyCategory.RAG,
    ),
    StrategyMeta(
        id=StrategyId.EXPANDED_HYBRID,
        name="Expanded Hybrid Rerank",
        description="Hybrid search with query expansion and advanced reranking.",
        category=StrategyCategory.RAG,
    ),
    StrategyMeta(
        id=StrategyId.SEMANTIC_CONTEXT,
        name="Semantic Context",
        description="Pure semantic search focusing on vector similarity.",
        category=StrategyCategory.RAG,
    ),
    StrategyMeta(
        id=StrategyId.SEMANTIC_RERANK,
        name="Semantic-Reranker",
        description="Vector retrieval followed by a cross-encoder reranking step.",
        category=StrategyCategory.RAG,
    ),
    StrategyMeta(
        id=StrategyId.HYBRID_RERANK,
        name="Hybrid Rerank",
        description="Standard keyword + vector search with final reranking.",
        category=StrategyCategory.RAG,
    ),
    StrategyMeta(
        id=StrategyId.AGENTIC_SQL,
        name="Agentic SQL Retrieval",
        description="Autonomous SQL agent for structured database querying.",
        category=StrategyCategory.SQL,
    ),
]


def parse_strategy_id(value: Optional[str]) -> Optional[StrategyId]:
    """Map a raw strategy tag to a StrategyId, or None if unknown."""
    if not isinstance(value, str):
        return None
    try:
        return StrategyId(value.strip().lower())
    except ValueError:
        return None


def strategies_by_category(category: StrategyCategory) -> list[StrategyMeta]:
    """Get the strategies offered for one chat mode."""
    return [s for s in RETRIEVAL_STRATEGIES if s.category == category]


def get_strategy(strategy_id: Optional[str]) -> Optional[StrategyMeta]:
    parsed = parse_strategy_id(strategy_id)
    for strategy in RETRIEVAL_STRATEGIES:
        if strategy.id == parsed:
            return strategy
    return None
