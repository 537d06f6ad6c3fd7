"""
Memory Management Service for unified memory operations.
"""

from typing import Any, List, Mapping, Optional

from ..models.core import Memory, QueryRequest, QueryResult
from ..utils.config import config
from ..utils.logging_config import get_logger
from ..utils.memory_store import MemoryStore, create_memory_store
from .query_pipeline import QueryPipeline

logger = get_logger(__name__)


class MemoryManagementService:
    """Unified service for recording memories and answering queries about them.

    The service owns the store lifecycle: ``start()`` before serving,
    ``shutdown()`` when the process stops.
    """

    def __init__(self, store: Optional[MemoryStore] = None, pipeline: Optional[QueryPipeline] = None):
        """Initialize the memory management service."""
        self.store = store or create_memory_store(config)
        self.pipeline = pipeline or QueryPipeline(self.store)
        self._started = False

        logger.info(f'Initialized MemoryManagementService with {type(self.store).__name__}')

    def start(self) -> None:
        """Open the memory store.

        Raises:
            StoreError: If the store cannot be prepared
        """
        if not self._started:
            self.store.open()
            self._started = True

    def shutdown(self) -> None:
        if self._started:
            self.store.close()
            self._started = False
            logger.info('Memory store closed')

    def __enter__(self) -> 'MemoryManagementService':
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.shutdown()

    def add(self, candidate: Mapping[str, Any]) -> Memory:
        """Record a new memory.

        Raises:
            ValidationError: If the candidate is invalid
            StoreError: If the memory cannot be stored
        """
        memory = self.store.create(candidate)
        logger.info(f'Added {memory.memory_type.value} memory {memory.id} for {memory.entity}')
        return memory

    def list(self) -> List[Memory]:
        """Return all memories.

        Raises:
            StoreError: If the store cannot be read
        """
        return self.store.list_all()

    def query(self, query: Optional[str], entity: Optional[str] = '') -> QueryResult:
        """Answer a question from the stored memories.

        Raises:
            MemoryRetrievalError: If the store cannot be read
        """
        return self.pipeline.run(QueryRequest(query=query, entity=entity))
