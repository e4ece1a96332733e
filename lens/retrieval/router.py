"""
Strategy Router - choose the presentation shape for a retrieval payload.

    view = select_view("fusion", raw_payload)
    view.kind   -> ViewKind.RANKED_WITH_BADGES
    view.badge  -> RankBadge.FUSION

Unknown or missing strategy ids always get the flat ranked view.
"""

import logging
from typing import Any, Optional

from lens.core.models import RankBadge, StrategyId, ViewKind, ViewVariant
from lens.retrieval.discovery import DEFAULT_MAX_DEPTH, discover_documents
from lens.retrieval.grouping import group_by_query, is_aggregated
from lens.retrieval.strategies import parse_strategy_id

logger = logging.getLogger(__name__)


RANKED_STRATEGIES: dict[StrategyId, RankBadge] = {
    StrategyId.EXPANDED_HYBRID: RankBadge.EXPANDED,
    StrategyId.SEMANTIC_RERANK: RankBadge.SEMANTIC,
    StrategyId.HYBRID_RERANK: RankBadge.HYBRID,
    StrategyId.FUSION: RankBadge.FUSION,
}

BADGE_TEXT: dict[RankBadge, tuple[str, str]] = {
    RankBadge.SEMANTIC: (
        "Semantic Rerank",
        "Documents re-ordered using cross-encoder precision.",
    ),
    RankBadge.HYBRID: (
        "Hybrid Rerank",
        "Combined keyword and vector results, then reranked.",
    ),
    RankBadge.FUSION: (
        "Fusion Rank",
        "Reciprocal Rank Fusion (RRF) of multiple retrieval methods.",
    ),
    RankBadge.EXPANDED: (
        "Expanded Hybrid Rerank",
        "Query expansion with hybrid retrieval and cross-encoder scoring.",
    ),
}

FLAT_TITLE = "Retrieved Context"
MULTI_QUERY_TITLE = "Multi-Query Execution"
AGGREGATED_TITLE = "Aggregated Multi-Query Results"
AGGREGATED_DESCRIPTION = "Results from multiple sub-queries have been fused into a single ranking."


def _flat_view(payload: Any, max_depth: int) -> ViewVariant:
    documents = discover_documents(payload, max_depth)
    return ViewVariant(
        kind=ViewKind.FLAT_RANKED,
        title=FLAT_TITLE,
        description=f"{len(documents)} Documents",
        documents=documents,
    )


def _ranked_view(badge: RankBadge, payload: Any, max_depth: int) -> ViewVariant:
    title, description = BADGE_TEXT[badge]
    return ViewVariant(
        kind=ViewKind.RANKED_WITH_BADGES,
        badge=badge,
        title=title,
        description=description,
        documents=discover_documents(payload, max_depth),
    )


def _multi_query_view(payload: Any, max_depth: int) -> ViewVariant:
    groups = group_by_query(payload, max_depth)

    if not groups:
        logger.debug("[Router] No multi-query structure found, using flat view")
        return _flat_view(payload, max_depth)

    if is_aggregated(groups):
        return ViewVariant(
            kind=ViewKind.MULTI_QUERY_GROUPED,
            title=AGGREGATED_TITLE,
            description=AGGREGATED_DESCRIPTION,
            documents=groups[0].documents,
            groups=groups,
            aggregated=True,
        )

    return ViewVariant(
        kind=ViewKind.MULTI_QUERY_GROUPED,
        title=MULTI_QUERY_TITLE,
        description=f"Generated {len(groups)} sub-queries to maximize coverage.",
        groups=groups,
    )


def select_view(
    strategy_id: Optional[str],
    payload: Any,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> ViewVariant:
    """Pick and build the view for a strategy's raw payload.

    Pure: reads the payload, never mutates it, never raises on shape.
    """
    strategy = parse_strategy_id(strategy_id)

    if strategy == StrategyId.MULTI_QUERY:
        return _multi_query_view(payload, max_depth)

    badge = RANKED_STRATEGIES.get(strategy)
    if badge is not None:
        return _ranked_view(badge, payload, max_depth)

    return _flat_view(payload, max_depth)
