"""
Health check utilities for the application.
"""

from typing import Any, Dict, Optional

from .config import config
from .logging_config import get_logger
from .memory_store import MemoryStore

logger = get_logger(__name__)


def check_health(store: MemoryStore, llm: Optional[Any] = None) -> bool:
    """Check the health of all system components.

    Returns:
        True if all components are healthy, False otherwise
    """
    health_status = get_health_status(store, llm)

    all_healthy = all(status.get('healthy', False) for status in health_status.values())

    if all_healthy:
        logger.info('All system components are healthy')
    else:
        logger.warning('Some system components are unhealthy')

    return all_healthy


def get_health_status(store: MemoryStore, llm: Optional[Any] = None) -> Dict[str, Any]:
    """Get detailed health status of all components.

    Args:
        store: Memory store in use
        llm: Reasoning service client; skipped when None

    Returns:
        Dictionary with health status of each component
    """
    health_status = {}

    try:
        health_status['memory_store'] = {'healthy': store.health_check(), 'service': type(store).__name__}
    except Exception as e:
        health_status['memory_store'] = {'healthy': False, 'service': type(store).__name__, 'error': str(e)}

    if llm is not None:
        model = getattr(llm, 'model_id', config.bedrock_llm.model_id)
        try:
            health_status['reasoning_service'] = {'healthy': llm.health_check(), 'service': 'Amazon Bedrock LLM', 'model': model}
        except Exception as e:
            health_status['reasoning_service'] = {
                'healthy': False,
                'service': 'Amazon Bedrock LLM',
                'model': model,
                'error': str(e)
            }

    return health_status

