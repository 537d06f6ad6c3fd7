"""
Core data models for business entity memories and the query pipeline.
"""

import numbers
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple

from ..utils.timestamp_utils import parse_timestamp, to_datetime, to_iso


class ValidationError(Exception):
    """Raised when a memory candidate is missing required fields or has invalid values."""
    pass


class EntityType(str, Enum):
    """Kind of business entity a memory is about."""
    SUPPLIER = 'supplier'
    CUSTOMER = 'customer'
    INTERNAL = 'internal'


class MemoryType(str, Enum):
    """Kind of observation recorded in a memory."""
    INTERACTION = 'interaction'
    QUALITY_ISSUE = 'quality_issue'
    PAYMENT = 'payment'
    CONTRACT = 'contract'
    ESCALATION = 'escalation'


DEFAULT_ENTITY_TYPE = EntityType.SUPPLIER
DEFAULT_MEMORY_TYPE = MemoryType.INTERACTION
DEFAULT_IMPORTANCE = 0.5


@dataclass(frozen=True)
class Memory:
    """A single recorded observation about a business entity.

    Memories are immutable once created; ``id`` and ``timestamp`` are assigned
    by the store when the caller does not supply them.
    """
    id: str
    entity: str  # Display name of the supplier, customer or internal actor
    content: str
    timestamp: datetime
    entity_type: EntityType = DEFAULT_ENTITY_TYPE
    memory_type: MemoryType = DEFAULT_MEMORY_TYPE
    importance: float = DEFAULT_IMPORTANCE
    tags: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        """Caller-facing JSON-safe representation."""
        return {
            'id': self.id,
            'entity': self.entity,
            'entityType': self.entity_type.value,
            'memoryType': self.memory_type.value,
            'content': self.content,
            'timestamp': to_iso(self.timestamp),
            'importance': self.importance,
            'tags': list(self.tags),
        }

    @classmethod
    def from_document(cls, document: Mapping[str, Any]) -> 'Memory':
        """Rebuild a memory from a stored document.

        Raises:
            ValidationError: If the document does not describe a valid memory
        """
        return build_memory(document, memory_id=document.get('id'))


def _pick(candidate: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        if candidate.get(key) is not None:
            return candidate[key]
    return None


def _required_text(candidate: Mapping[str, Any], key: str) -> str:
    value = candidate.get(key)
    if value is None:
        raise ValidationError(f"'{key}' is required")
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"'{key}' must be a non-empty string")
    return value


def _enum_value(enum_cls, value: Any, default, key: str):
    if value is None:
        return default
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ', '.join(member.value for member in enum_cls)
        raise ValidationError(f"'{key}' must be one of: {allowed} (got {value!r})")


def _importance(value: Any) -> float:
    if value is None:
        return DEFAULT_IMPORTANCE
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        raise ValidationError(f"'importance' must be a number (got {value!r})")
    importance = float(value)
    if not 0.0 <= importance <= 1.0:
        raise ValidationError(f"'importance' must be between 0 and 1 (got {value!r})")
    return importance


def _tags(value: Any) -> Tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        return (value, )
    if isinstance(value, (list, tuple)):
        return tuple(str(tag) for tag in value)
    raise ValidationError(f"'tags' must be a list of strings (got {type(value).__name__})")


def build_memory(candidate: Mapping[str, Any], memory_id: Optional[str] = None, now: Optional[datetime] = None) -> Memory:
    """Validate a partial memory and fill in defaults.

    Args:
        candidate: Mapping with at least ``entity`` and ``content``; enum keys may be
            camelCase (``entityType``) or snake_case (``entity_type``)
        memory_id: Identifier to use, a new UUID is generated if None
        now: Creation time used when no timestamp is supplied

    Returns:
        Validated Memory

    Raises:
        ValidationError: If a required field is absent or a value is invalid
    """
    if not isinstance(candidate, Mapping):
        raise ValidationError('Memory must be a JSON object')

    entity = _required_text(candidate, 'entity')
    content = _required_text(candidate, 'content')

    entity_type = _enum_value(EntityType, _pick(candidate, 'entityType', 'entity_type'), DEFAULT_ENTITY_TYPE, 'entityType')
    memory_type = _enum_value(MemoryType, _pick(candidate, 'memoryType', 'memory_type'), DEFAULT_MEMORY_TYPE, 'memoryType')

    raw_timestamp = candidate.get('timestamp')
    if raw_timestamp is None:
        timestamp = now or to_datetime()
    else:
        try:
            timestamp = parse_timestamp(raw_timestamp)
        except ValueError as e:
            raise ValidationError(f"'timestamp' is invalid: {e}")

    return Memory(id=str(memory_id) if memory_id else str(uuid.uuid4()),
                  entity=entity,
                  content=content,
                  timestamp=timestamp,
                  entity_type=entity_type,
                  memory_type=memory_type,
                  importance=_importance(candidate.get('importance')),
                  tags=_tags(candidate.get('tags')))


@dataclass(frozen=True)
class QueryRequest:
    """A natural-language question; ``entity`` is a pass-through context label."""
    query: str = ''
    entity: str = ''

    def __post_init__(self):
        object.__setattr__(self, 'query', self.query or '')
        object.__setattr__(self, 'entity', self.entity or '')


@dataclass(frozen=True)
class SelectedMemory:
    """A memory chosen as context for a query, with its relevance score."""
    memory: Memory
    relevance_score: float

    def to_dict(self) -> Dict[str, Any]:
        data = self.memory.to_dict()
        data['relevanceScore'] = self.relevance_score
        return data


@dataclass(frozen=True)
class Decision:
    """Structured answer from the reasoning service."""
    decision: str
    reason: str

    @property
    def is_error(self) -> bool:
        return self == ERROR_DECISION

    def to_dict(self) -> Dict[str, str]:
        return {'decision': self.decision, 'reason': self.reason}


# Returned whenever the reasoning service fails or replies with an unusable shape
ERROR_DECISION = Decision(decision='Error', reason='AI not responding')


class ReasoningFailure(str, Enum):
    """Why a reasoning call did not produce a usable decision."""
    TRANSPORT = 'transport'
    TIMEOUT = 'timeout'
    MALFORMED_RESPONSE = 'malformed_response'
    UNEXPECTED = 'unexpected'


@dataclass(frozen=True)
class ReasoningOutcome:
    """Result of a reasoning call: a parsed decision, or the sentinel plus a failure kind."""
    decision: Decision
    failure: Optional[ReasoningFailure] = None
    detail: str = ''

    @property
    def ok(self) -> bool:
        return self.failure is None

    @classmethod
    def success(cls, decision: Decision) -> 'ReasoningOutcome':
        return cls(decision=decision)

    @classmethod
    def failed(cls, failure: ReasoningFailure, detail: str = '') -> 'ReasoningOutcome':
        return cls(decision=ERROR_DECISION, failure=failure, detail=detail)


@dataclass(frozen=True)
class QueryResult:
    """Decision paired with the context it was grounded in."""
    decision: Decision
    context: List[SelectedMemory] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'decision': self.decision.to_dict(),
            'context': [item.to_dict() for item in self.context],
        }
