"""
Query pipeline: store -> relevance selection -> reasoning -> result.
"""

from typing import Optional

from ..models.core import QueryRequest, QueryResult
from ..utils.logging_config import get_logger
from ..utils.memory_store import MemoryStore, StoreError
from .reasoning import ReasoningAdapter
from .relevance import RelevanceSelector

logger = get_logger(__name__)


class MemoryRetrievalError(Exception):
    """Memories could not be fetched, so the query cannot be answered."""
    pass


class QueryPipeline:
    """Answer a query from the stored memories.

    Each run is independent; the pipeline holds no per-request state and only
    reads from the store.
    """

    def __init__(self,
                 store: MemoryStore,
                 selector: Optional[RelevanceSelector] = None,
                 adapter: Optional[ReasoningAdapter] = None):
        self.store = store
        self.selector = selector or RelevanceSelector()
        self.adapter = adapter or ReasoningAdapter()

    def run(self, request: QueryRequest) -> QueryResult:
        """
        Select the relevant memories and ask the reasoning service about them.

        Args:
            request: Query and entity label

        Returns:
            QueryResult with the decision (possibly the sentinel) and the context used

        Raises:
            MemoryRetrievalError: If the store cannot be read
        """
        try:
            memories = self.store.list_all()
        except StoreError as e:
            logger.error(f'Failed to fetch memories for query: {e}')
            raise MemoryRetrievalError('Failed to retrieve memories') from e

        context = self.selector.select(request.query, memories)

        outcome = self.adapter.reason(request.query, context)
        if not outcome.ok:
            logger.warning(f'Answering with degraded decision for entity {request.entity!r} '
                           f'({outcome.failure.value}, {len(context)} context memories)')
        else:
            logger.info(f'Answered query for entity {request.entity!r} with {len(context)} context memories')

        return QueryResult(decision=outcome.decision, context=context)
