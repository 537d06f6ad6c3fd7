"""
Memory record stores: the keyed record store the query pipeline reads from.
"""

import threading
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Mapping, Optional

from ..models.core import Memory, ValidationError, build_memory
from .config import AppConfig
from .logging_config import get_logger
from .opensearch_client import OpenSearchClient, OpenSearchError
from .timestamp_utils import to_millis

logger = get_logger(__name__)


class StoreError(Exception):
    """Raised when the record store is unreachable or fails a read or write."""
    pass


class MemoryStore(ABC):
    """Abstract interface for a memory backend.

    Stores are process-wide resources: call ``open()`` before serving requests
    and ``close()`` on shutdown, or use the store as a context manager.
    Validation of candidates happens here, at the store boundary, so every
    Memory handed to the query pipeline is already well-formed.
    """

    def open(self) -> None:
        """Acquire connections or create backing structures."""

    def close(self) -> None:
        """Release connections."""

    def __enter__(self) -> 'MemoryStore':
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def create(self, candidate: Mapping[str, Any]) -> Memory:
        """Validate and persist a new memory.

        Args:
            candidate: Partial memory; ``entity`` and ``content`` are required

        Returns:
            The stored Memory, with id and timestamp assigned

        Raises:
            ValidationError: If the candidate is invalid
            StoreError: If the memory cannot be persisted
        """
        memory = build_memory(candidate)
        self._save(memory)
        logger.debug(f'Stored memory {memory.id} for entity {memory.entity}')
        return memory

    @abstractmethod
    def _save(self, memory: Memory) -> None:
        """Persist an already validated memory."""

    @abstractmethod
    def list_all(self) -> List[Memory]:
        """Return every stored memory in insertion order.

        Raises:
            StoreError: If the store cannot be read
        """

    def health_check(self) -> bool:
        return True


class InMemoryMemoryStore(MemoryStore):
    """Process-local store, for development and tests."""

    def __init__(self, memories: Optional[List[Memory]] = None):
        self._memories: List[Memory] = list(memories or [])
        self._lock = threading.Lock()

    def _save(self, memory: Memory) -> None:
        with self._lock:
            self._memories.append(memory)

    def list_all(self) -> List[Memory]:
        with self._lock:
            return list(self._memories)


class OpenSearchMemoryStore(MemoryStore):
    """Store backed by an OpenSearch index, one document per memory."""

    # indexed_at is the insertion sequence; id breaks ties within the same millisecond
    SORT = [{'indexed_at': {'order': 'asc'}}, {'id': {'order': 'asc'}}]

    def __init__(self, client: OpenSearchClient):
        self.client = client

    def open(self) -> None:
        try:
            result = self.client.create_index_if_not_exists()
        except OpenSearchError as e:
            raise StoreError(f'Failed to prepare memory index: {e}') from e
        if result == 'failed':
            raise StoreError(f'Memory index {self.client.index_name} was not created')
        logger.info(f'Memory store ready on index {self.client.index_name}')

    def close(self) -> None:
        self.client.close()

    def _save(self, memory: Memory) -> None:
        document: Dict[str, Any] = memory.to_dict()
        document['indexed_at'] = to_millis()
        try:
            stored = self.client.index_document(document, doc_id=memory.id)
        except OpenSearchError as e:
            raise StoreError(f'Failed to save memory: {e}') from e
        if not stored:
            raise StoreError(f'Memory {memory.id} was not stored')

    def list_all(self) -> List[Memory]:
        try:
            documents = self.client.list_documents(sort=self.SORT)
        except OpenSearchError as e:
            raise StoreError(f'Failed to list memories: {e}') from e

        memories = []
        for document in documents:
            try:
                memories.append(Memory.from_document(document))
            except ValidationError as e:
                logger.warning(f"Skipping invalid memory document {document.get('id')}: {e}")
        return memories

    def health_check(self) -> bool:
        return self.client.health_check()


def create_memory_store(app_config: AppConfig) -> MemoryStore:
    """Build the memory store selected by configuration.

    Raises:
        ValueError: If the configured backend is unknown
    """
    backend = app_config.memory.store_backend
    if backend == 'memory':
        return InMemoryMemoryStore()
    if backend == 'opensearch':
        return OpenSearchMemoryStore(OpenSearchClient(app_config.opensearch))
    raise ValueError(f"Unknown memory store backend '{backend}'")
