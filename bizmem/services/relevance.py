"""
Relevance selection of stored memories for a query.
"""

from typing import Callable, List, Optional, Sequence

from ..models.core import Memory, SelectedMemory
from ..utils.config import config
from ..utils.logging_config import get_logger

logger = get_logger(__name__)

ScoringStrategy = Callable[[str, Memory], float]


def substring_score(query: str, memory: Memory) -> float:
    """Binary score: 1.0 when the memory content contains the query, case-insensitively.

    An empty query is contained in every content and therefore matches everything.
    """
    return 1.0 if query.lower() in memory.content.lower() else 0.0


class RelevanceSelector:
    """Pick the memories relevant to a query, keeping store order."""

    def __init__(self, limit: Optional[int] = None, scorer: ScoringStrategy = substring_score):
        """
        Args:
            limit: Maximum number of memories returned (uses config default if None)
            scorer: Scoring strategy; memories scoring 0 are excluded
        """
        self.limit = config.memory.context_limit if limit is None else limit
        self.scorer = scorer

    def select(self, query: Optional[str], memories: Sequence[Memory]) -> List[SelectedMemory]:
        """Return at most ``limit`` matching memories in the order they were given.

        Args:
            query: Question text; None is treated as empty
            memories: All stored memories, in store order

        Returns:
            Selected memories with their relevance scores
        """
        query = query or ''
        selected: List[SelectedMemory] = []

        for memory in memories:
            if len(selected) >= self.limit:
                break
            score = self.scorer(query, memory)
            if score > 0:
                selected.append(SelectedMemory(memory=memory, relevance_score=score))

        logger.debug(f'Selected {len(selected)} of {len(memories)} memories for query {query!r}')
        return selected
