"""
JSON utilities for cleaning LLM responses.
"""

import re

# Opening fence with an optional language tag (```json, ```JSON, ```javascript ...)
_OPENING_FENCE = re.compile(r'^```[\w+-]*[ \t]*\r?\n?')
_CLOSING_FENCE = re.compile(r'\r?\n?```$')


def clean_json_response(response: str) -> str:
    """Clean LLM response by removing code block markers.

    Args:
        response: Raw LLM response

    Returns:
        Cleaned JSON string
    """
    response = response.strip()

    response = _OPENING_FENCE.sub('', response, count=1)
    response = _CLOSING_FENCE.sub('', response.rstrip(), count=1)

    return response.strip()
