"""
Configuration management for AWS services and application settings.
"""

import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()


@dataclass
class BedrockLLMConfig:
    """Configuration for the Amazon Bedrock reasoning model."""
    region: str
    model_id: str
    max_tokens: int
    temperature: float
    retry_attempts: int
    retry_delay: float
    connect_timeout: float
    read_timeout: float


@dataclass
class OpenSearchConfig:
    """Configuration for the OpenSearch memory index."""
    endpoint: str
    port: int
    region: str
    index_name: str
    auth: str  # 'aws' for SigV4 signed requests, 'none' otherwise
    use_ssl: bool


@dataclass
class MemoryConfig:
    """Configuration for memory storage and selection."""
    store_backend: str  # 'memory' or 'opensearch'
    context_limit: int


@dataclass
class HTTPConfig:
    """Configuration for the HTTP API."""
    host: str
    port: int


@dataclass
class MCPConfig:
    """Configuration for MCP interface."""
    transport: str
    host: str
    port: int


@dataclass
class AppConfig:
    """Main application configuration."""
    environment: str
    log_level: str
    bedrock_llm: BedrockLLMConfig
    opensearch: OpenSearchConfig
    memory: MemoryConfig
    http: HTTPConfig
    mcp: MCPConfig


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ('1', 'true', 'yes', 'on')


def load_config() -> AppConfig:
    """Load configuration from environment variables with defaults."""
    environment = os.getenv('ENVIRONMENT', 'development')

    # Bedrock configuration
    bedrock_llm_config = BedrockLLMConfig(region=os.getenv('BEDROCK_LLM_AWS_REGION', 'us-east-1'),
                                          model_id=os.getenv('BEDROCK_LLM_MODEL_ID', 'anthropic.claude-3-sonnet-20240229-v1:0'),
                                          max_tokens=int(os.getenv('BEDROCK_LLM_MAX_TOKENS', '1024')),
                                          temperature=float(os.getenv('BEDROCK_LLM_TEMPERATURE', '0.0')),
                                          retry_attempts=int(os.getenv('BEDROCK_LLM_RETRY_ATTEMPTS', '3')),
                                          retry_delay=float(os.getenv('BEDROCK_LLM_RETRY_DELAY', '1.0')),
                                          connect_timeout=float(os.getenv('BEDROCK_LLM_CONNECT_TIMEOUT', '5')),
                                          read_timeout=float(os.getenv('BEDROCK_LLM_READ_TIMEOUT', '30')))

    # OpenSearch configuration
    opensearch_config = OpenSearchConfig(endpoint=os.getenv('OPENSEARCH_ENDPOINT', 'localhost'),
                                         port=int(os.getenv('OPENSEARCH_PORT', '443')),
                                         region=os.getenv('OPENSEARCH_AWS_REGION', 'us-east-1'),
                                         index_name=os.getenv('OPENSEARCH_INDEX', 'business_memories'),
                                         auth=os.getenv('OPENSEARCH_AUTH', 'aws').lower(),
                                         use_ssl=_env_bool('OPENSEARCH_USE_SSL', 'true'))

    # Memory configuration
    memory_config = MemoryConfig(store_backend=os.getenv('MEMORY_STORE_BACKEND', 'memory').lower(),
                                 context_limit=int(os.getenv('MEMORY_CONTEXT_LIMIT', '5')))

    http_config = HTTPConfig(host=os.getenv('HTTP_HOST', '127.0.0.1'), port=int(os.getenv('HTTP_PORT', '5000')))

    # MCP configuration
    mcp_config = MCPConfig(transport=os.getenv('MCP_TRANSPORT', 'sse'),
                           host=os.getenv('MCP_HOST', '127.0.0.1'),
                           port=int(os.getenv('MCP_PORT', '8000')))

    return AppConfig(environment=environment,
                     log_level=os.getenv('LOG_LEVEL', 'INFO'),
                     bedrock_llm=bedrock_llm_config,
                     opensearch=opensearch_config,
                     memory=memory_config,
                     http=http_config,
                     mcp=mcp_config)


# Global configuration instance
config = load_config()
