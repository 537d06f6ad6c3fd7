"""
Reasoning adapter: turns a query and its memory context into a structured decision.

The reasoning service is untrusted. Its reply only becomes a Decision after it
passes structural validation; every transport or shape failure is converted to
the sentinel ERROR_DECISION and never raised to the caller.
"""

import json
from typing import Any, Optional, Sequence

from ..models.core import Decision, ReasoningFailure, ReasoningOutcome, SelectedMemory
from ..utils.bedrock_llm import BedrockLLM, BedrockLLMError, BedrockLLMTimeoutError
from ..utils.config import config
from ..utils.json_utils import clean_json_response
from ..utils.logging_config import get_logger
from ..utils.timestamp_utils import to_iso

logger = get_logger(__name__)

PROMPT_TEMPLATE = """You are a helpful business assistant.

Question: {question}

History:
{history}

Reply only in JSON, with exactly these two fields and nothing else:
{{
  "decision": "...",
  "reason": "..."
}}"""


class DecisionParseError(Exception):
    """The reasoning service replied with something that is not a decision object."""
    pass


def format_history(context: Sequence[SelectedMemory]) -> str:
    """One line per memory: content followed by its timestamp, in context order."""
    return '\n'.join(f'{item.memory.content} ({to_iso(item.memory.timestamp)})' for item in context)


def build_prompt(question: str, history: str) -> str:
    return PROMPT_TEMPLATE.format(question=question, history=history)


def parse_decision(text: Any) -> Decision:
    """Validate the shape of a reasoning reply.

    Args:
        text: Raw reply, possibly wrapped in a code fence

    Returns:
        Decision with the reply's fields unchanged

    Raises:
        DecisionParseError: If the reply is not a JSON object with string
            ``decision`` and ``reason`` fields
    """
    if not isinstance(text, str):
        raise DecisionParseError(f'Expected text reply, got {type(text).__name__}')

    try:
        data = json.loads(clean_json_response(text))
    except json.JSONDecodeError as e:
        raise DecisionParseError(f'Reply is not valid JSON: {e}') from e

    if not isinstance(data, dict):
        raise DecisionParseError(f'Expected JSON object, got {type(data).__name__}')

    missing = [key for key in ('decision', 'reason') if key not in data]
    if missing:
        raise DecisionParseError(f"Reply is missing field(s): {', '.join(missing)}")

    if not isinstance(data['decision'], str) or not isinstance(data['reason'], str):
        raise DecisionParseError('Fields decision and reason must be strings')

    return Decision(decision=data['decision'], reason=data['reason'])


class ReasoningAdapter:
    """Delegate a question plus memory context to the reasoning service."""

    def __init__(self, llm: Optional[Any] = None):
        """
        Args:
            llm: Object exposing ``generate(prompt) -> str``; a BedrockLLM built
                from configuration is used if None
        """
        self.llm = llm or BedrockLLM(config.bedrock_llm)

    def reason(self, query: str, context: Sequence[SelectedMemory]) -> ReasoningOutcome:
        """Ask the reasoning service and report how the call went.

        Never raises; failures carry their kind in ``ReasoningOutcome.failure``.
        """
        prompt = build_prompt(query or '', format_history(context))

        try:
            reply = self.llm.generate(prompt)
        except BedrockLLMTimeoutError as e:
            return self._failed(ReasoningFailure.TIMEOUT, e)
        except BedrockLLMError as e:
            return self._failed(ReasoningFailure.TRANSPORT, e)
        except Exception as e:
            logger.exception('Unexpected error calling reasoning service')
            return self._failed(ReasoningFailure.UNEXPECTED, e)

        try:
            decision = parse_decision(reply)
        except DecisionParseError as e:
            return self._failed(ReasoningFailure.MALFORMED_RESPONSE, e)

        logger.debug(f'Reasoning service decided {decision.decision!r}')
        return ReasoningOutcome.success(decision)

    def ask(self, query: str, context: Sequence[SelectedMemory]) -> Decision:
        """Return the parsed decision, or the sentinel ERROR_DECISION on any failure."""
        return self.reason(query, context).decision

    @staticmethod
    def _failed(kind: ReasoningFailure, error: Exception) -> ReasoningOutcome:
        logger.warning(f'Reasoning service failure ({kind.value}): {error}')
        return ReasoningOutcome.failed(kind, str(error))
