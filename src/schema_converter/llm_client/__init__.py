"""
LLM Client Package
Bedrock-backed client used by the AI-assisted extractor
"""
from .bedrock_client import (
    BaseLLMClient,
    BedrockClaudeClient,
    LLMClientFactory,
    LLMResponse,
    create_llm_client,
)

__all__ = [
    "BaseLLMClient",
    "BedrockClaudeClient",
    "LLMClientFactory",
    "LLMResponse",
    "create_llm_client",
]
