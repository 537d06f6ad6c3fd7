"""
MCP Interface Layer using fastmcp for agent orchestration.
"""
from typing import Any, Dict, List, Optional

from fastmcp import FastMCP

from .models.core import ValidationError
from .services.memory_management import MemoryManagementService
from .services.query_pipeline import MemoryRetrievalError
from .utils.config import config
from .utils.health_check import check_health
from .utils.logging_config import get_logger
from .utils.memory_store import StoreError

logger = get_logger(__name__)

# Initialize FastMCP application
mcp = FastMCP('Business Memory')

_service: Optional[MemoryManagementService] = None


def get_service() -> MemoryManagementService:
    global _service
    if _service is None:
        _service = MemoryManagementService()
        _service.start()
    return _service


def set_service(service: Optional[MemoryManagementService]) -> None:
    """Replace the service used by the tools (the caller manages its lifecycle)."""
    global _service
    _service = service


def add_memory(entity: str,
               content: str,
               entity_type: str = 'supplier',
               memory_type: str = 'interaction',
               importance: float = 0.5,
               tags: Optional[List[str]] = None) -> Dict[str, Any]:
    """Record a memory about a supplier, customer or internal actor.

    Args:
        entity: Name of the entity the memory is about
        content: The observation to remember
        entity_type: supplier, customer or internal
        memory_type: interaction, quality_issue, payment, contract or escalation
        importance: Between 0 and 1
        tags: Optional labels

    Returns:
        The stored memory

    Raises:
        Exception: If the memory is invalid or cannot be stored
    """
    candidate = {
        'entity': entity,
        'content': content,
        'entityType': entity_type,
        'memoryType': memory_type,
        'importance': importance,
        'tags': tags or [],
    }
    try:
        return get_service().add(candidate).to_dict()
    except ValidationError as e:
        raise Exception(f'Invalid memory: {e}')
    except StoreError as e:
        logger.error(f'Store error in MCP add_memory: {e}')
        raise Exception('Failed to save memory')


def list_memories() -> List[Dict[str, Any]]:
    """List every stored memory.

    Raises:
        Exception: If the store cannot be read
    """
    try:
        return [memory.to_dict() for memory in get_service().list()]
    except StoreError as e:
        logger.error(f'Store error in MCP list_memories: {e}')
        raise Exception('Failed to get list')


def query_memories(query: str, entity: str = '') -> Dict[str, Any]:
    """Ask a business question answered from the relevant stored memories.

    Args:
        query: Natural language question
        entity: Entity the question is about (informational)

    Returns:
        Dict with the decision and the memories used as context

    Raises:
        Exception: If memories cannot be retrieved
    """
    try:
        return get_service().query(query, entity).to_dict()
    except MemoryRetrievalError as e:
        logger.error(f'Retrieval error in MCP query_memories: {e}')
        raise Exception('Failed to process query')


for _tool in (add_memory, list_memories, query_memories):
    mcp.tool()(_tool)


def main() -> None:
    service = get_service()
    check_health(service.store)
    try:
        if config.mcp.transport == 'stdio':
            mcp.run(transport='stdio')
        else:
            mcp.run(transport=config.mcp.transport, host=config.mcp.host, port=config.mcp.port)
    finally:
        service.shutdown()


if __name__ == '__main__':
    main()
