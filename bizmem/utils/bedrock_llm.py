"""
Amazon Bedrock LLM client wrapper with timeouts, retry logic and error handling.
"""

import random
import time
from typing import Any, Dict, List, Optional

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError, ConnectTimeoutError, ReadTimeoutError
from botocore.exceptions import ConnectionError as BotoConnectionError

from .config import BedrockLLMConfig
from .logging_config import get_logger

logger = get_logger(__name__)

# ClientError codes worth another attempt; everything else fails immediately.
# Compared lowercased since stream errors use lowerCamel codes (throttlingException).
TRANSIENT_ERROR_CODES = frozenset({
    'throttlingexception',
    'toomanyrequestsexception',
    'serviceunavailableexception',
    'internalserverexception',
    'modelnotreadyexception',
    'modeltimeoutexception',
    'modelstreamerrorexception',
})


class BedrockLLMError(Exception):
    """Custom exception for Bedrock LLM errors."""
    pass


class BedrockLLMTimeoutError(BedrockLLMError):
    """The model did not answer within the configured timeouts."""
    pass


def _error_code(error: ClientError) -> str:
    return str(error.response.get('Error', {}).get('Code', '')).lower()


def _is_timeout(error: Exception) -> bool:
    if isinstance(error, (ConnectTimeoutError, ReadTimeoutError)):
        return True
    return isinstance(error, ClientError) and _error_code(error) == 'modeltimeoutexception'


def _is_transient(error: Exception) -> bool:
    if isinstance(error, (BotoConnectionError, ConnectTimeoutError, ReadTimeoutError)):
        return True
    if isinstance(error, ClientError):
        return _error_code(error) in TRANSIENT_ERROR_CODES
    return False


class BedrockLLM:
    """Amazon Bedrock LLM client with retry logic and error handling."""

    def __init__(self, config: BedrockLLMConfig, client: Optional[Any] = None):
        """
        Initialize Bedrock LLM client.

        Args:
            config: BedrockLLMConfig instance with connection parameters
            client: Pre-built bedrock-runtime client (skips client creation)
        """
        self.config = config
        self.model_id = config.model_id

        # Create Bedrock runtime client with timeout configuration
        self.bedrock_runtime = client or boto3.client(
            'bedrock-runtime',
            region_name=config.region,
            config=BotoConfig(
                connect_timeout=config.connect_timeout,
                read_timeout=config.read_timeout,
                retries={'max_attempts': 0}  # We handle retries manually
            ))

        logger.info(f'Initialized Bedrock LLM client with model: {self.model_id}')

    def generate(self,
                 prompt: str,
                 system_prompt: Optional[str] = None,
                 max_tokens: Optional[int] = None,
                 temperature: Optional[float] = None) -> str:
        """
        Send a single textual prompt and return the model's reply.

        Args:
            prompt: Complete prompt, sent as one user message
            system_prompt: Optional system prompt
            max_tokens: Maximum tokens to generate (uses config default if None)
            temperature: Temperature for generation (uses config default if None)

        Returns:
            Response text

        Raises:
            BedrockLLMTimeoutError: If the final attempt timed out
            BedrockLLMError: If the request fails for any other reason
        """
        messages = [{'role': 'user', 'content': [{'text': prompt}]}]
        return self.generate_response(messages, system_prompt=system_prompt, max_tokens=max_tokens, temperature=temperature)

    def generate_response(self,
                          messages: List[Dict[str, Any]],
                          system_prompt: Optional[str] = None,
                          max_tokens: Optional[int] = None,
                          temperature: Optional[float] = None) -> str:
        """
        Generate response using Bedrock LLM, retrying transient transport errors.

        Args:
            messages: List of message dictionaries in Bedrock format
            system_prompt: System prompt for the conversation
            max_tokens: Maximum tokens to generate (uses config default if None)
            temperature: Temperature for generation (uses config default if None)

        Returns:
            Response text

        Raises:
            BedrockLLMTimeoutError: If the final attempt timed out
            BedrockLLMError: If all retry attempts fail or the error is not retryable
        """
        inf_params = {
            'maxTokens': max_tokens if max_tokens is not None else self.config.max_tokens,
            'temperature': temperature if temperature is not None else self.config.temperature,
        }
        request: Dict[str, Any] = {'modelId': self.model_id, 'messages': messages, 'inferenceConfig': inf_params}
        if system_prompt:
            request['system'] = [{'text': system_prompt}]

        attempts = max(1, self.config.retry_attempts)
        for attempt in range(attempts):
            try:
                logger.debug(f'Bedrock LLM request attempt {attempt + 1}/{attempts}')
                msg = self._converse(request)
                logger.debug(f'Bedrock LLM response generated successfully (length: {len(msg)})')
                return msg

            except (ClientError, BotoCoreError) as e:
                retryable = _is_transient(e)
                logger.warning(f'Bedrock LLM attempt {attempt + 1}/{attempts} failed: {e}')

                if retryable and attempt < attempts - 1:
                    # Exponential backoff with jitter
                    delay = self.config.retry_delay * (2**attempt) + random.uniform(0, 1)
                    time.sleep(delay)
                    continue

                error_cls = BedrockLLMTimeoutError if _is_timeout(e) else BedrockLLMError
                if retryable:
                    raise error_cls(f'Bedrock LLM failed after {attempts} attempts: {e}') from e
                raise error_cls(f'Bedrock LLM request rejected: {e}') from e

        raise BedrockLLMError(f'Bedrock LLM failed after {attempts} attempts')

    def _converse(self, request: Dict[str, Any]) -> str:
        stream = self.bedrock_runtime.converse_stream(**request).get('stream')

        msg = ''
        if stream:
            for event in stream:
                if 'contentBlockDelta' in event:
                    msg += event['contentBlockDelta']['delta'].get('text', '')
                if 'metadata' in event:
                    logger.debug(f"Bedrock LLM usage: {event['metadata'].get('usage')}")
        return msg

    def health_check(self) -> bool:
        """
        Perform a health check on the Bedrock LLM service.

        Returns:
            True if service is healthy, False otherwise
        """
        try:
            response = self.generate('Respond with just OK.', max_tokens=10, temperature=0.0)
            return len(response.strip()) > 0

        except Exception as e:
            logger.error(f'Bedrock LLM health check failed: {e}')
            return False
