"""
LLM Client Module for AWS Bedrock Claude Integration
Provides a thread-safe, single-shot LLM client using Boto3
"""
from __future__ import annotations

import json
import threading
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Optional

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError, ConnectTimeoutError, ReadTimeoutError

from ..config import LLMConfig, LLMProvider
from ..utils.errors import ErrorContext, LLMError
from ..utils.logging import get_logger
from ..utils.metrics import ConverterMetrics

logger = get_logger(__name__)


@dataclass
class LLMResponse:
    """LLM response representation"""
    content: str
    model_id: str
    input_tokens: int = 0
    output_tokens: int = 0
    stop_reason: Optional[str] = None
    latency_ms: float = 0.0
    raw_response: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "content": self.content,
            "model_id": self.model_id,
            "input_tokens": self.input_tokens,
            "output_tokens": self.output_tokens,
            "stop_reason": self.stop_reason,
            "latency_ms": self.latency_ms,
        }


class BaseLLMClient(ABC):
    """Abstract base class for LLM clients"""

    model_id: str = "unknown"

    @abstractmethod
    def invoke(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        **kwargs
    ) -> LLMResponse:
        """Invoke the LLM once; raise LLMError on any failure"""
        pass


class BedrockClaudeClient(BaseLLMClient):
    """
    AWS Bedrock Claude Client

    One request per call with a bounded read timeout. Botocore's own retries
    are disabled; callers decide whether to resubmit.
    """

    def __init__(self, config: LLMConfig):
        self.config = config
        self.model_id = config.model_id
        self._client = None
        self._lock = threading.Lock()

    def _get_client(self):
        """Get or create Boto3 Bedrock client (lazy initialization)"""
        if self._client is None:
            with self._lock:
                if self._client is None:
                    boto_config = Config(
                        region_name=self.config.aws_region,
                        retries={'max_attempts': 0, 'mode': 'standard'},
                        connect_timeout=min(10, self.config.request_timeout),
                        read_timeout=self.config.request_timeout,
                    )

                    session_kwargs = {}
                    if self.config.aws_access_key_id:
                        session_kwargs['aws_access_key_id'] = self.config.aws_access_key_id.get_secret_value()
                    if self.config.aws_secret_access_key:
                        session_kwargs['aws_secret_access_key'] = self.config.aws_secret_access_key.get_secret_value()
                    if self.config.aws_session_token:
                        session_kwargs['aws_session_token'] = self.config.aws_session_token.get_secret_value()

                    if session_kwargs:
                        session = boto3.Session(**session_kwargs)
                        self._client = session.client('bedrock-runtime', config=boto_config)
                    else:
                        self._client = boto3.client(
                            'bedrock-runtime',
                            config=boto_config,
                            region_name=self.config.aws_region
                        )

                    logger.info(
                        "Initialized Bedrock client",
                        extra={"extra_fields": {
                            "region": self.config.aws_region,
                            "model_id": self.config.model_id
                        }}
                    )

        return self._client

    def invoke(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        **kwargs
    ) -> LLMResponse:
        """
        Invoke Claude via Bedrock

        Args:
            prompt: User prompt
            system_prompt: Optional system prompt
            **kwargs: max_tokens / temperature / top_p overrides

        Returns:
            LLMResponse with generated content
        """
        client = self._get_client()

        request_body = {
            "anthropic_version": "bedrock-2023-05-31",
            "max_tokens": kwargs.get("max_tokens", self.config.max_tokens),
            "temperature": kwargs.get("temperature", self.config.temperature),
            "top_p": kwargs.get("top_p", self.config.top_p),
            "messages": [{"role": "user", "content": prompt}],
        }
        if system_prompt:
            request_body["system"] = system_prompt

        start_time = time.time()

        try:
            response = client.invoke_model(
                modelId=self.config.model_id,
                body=json.dumps(request_body),
                contentType="application/json",
                accept="application/json",
            )
            response_body = json.loads(response['body'].read())
        except (ReadTimeoutError, ConnectTimeoutError) as e:
            logger.error(
                "LLM invocation timed out",
                extra={"extra_fields": {"timeout_s": self.config.request_timeout}}
            )
            raise LLMError(
                message=f"Bedrock Claude invocation timed out after {self.config.request_timeout}s",
                model_id=self.config.model_id,
                context=ErrorContext(metadata={"timeout": True}),
                original_error=e
            )
        except (BotoCoreError, ClientError, ValueError) as e:
            latency_ms = (time.time() - start_time) * 1000
            logger.error(
                f"LLM invocation failed: {str(e)}",
                extra={"extra_fields": {"latency_ms": latency_ms}}
            )
            raise LLMError(
                message=f"Bedrock Claude invocation failed: {str(e)}",
                model_id=self.config.model_id,
                original_error=e
            )

        latency_ms = (time.time() - start_time) * 1000

        content = ""
        for block in response_body.get("content") or []:
            if block.get("type") == "text":
                content += block.get("text", "")

        usage = response_body.get("usage", {})
        input_tokens = usage.get("input_tokens", 0)
        output_tokens = usage.get("output_tokens", 0)

        ConverterMetrics.record_llm_call(
            duration=latency_ms / 1000,
            model_id=self.config.model_id,
            input_tokens=input_tokens,
            output_tokens=output_tokens
        )

        logger.debug(
            "LLM invocation successful",
            extra={"extra_fields": {
                "input_tokens": input_tokens,
                "output_tokens": output_tokens,
                "latency_ms": latency_ms
            }}
        )

        return LLMResponse(
            content=content,
            model_id=self.config.model_id,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            stop_reason=response_body.get("stop_reason"),
            latency_ms=latency_ms,
            raw_response=response_body,
        )


class LLMClientFactory:
    """Factory for creating LLM clients"""

    _clients: Dict[str, BaseLLMClient] = {}
    _lock = threading.Lock()

    @classmethod
    def get_client(cls, config: LLMConfig) -> BaseLLMClient:
        """
        Get or create LLM client instance

        Uses singleton pattern per configuration
        """
        key = f"{config.provider}_{config.model_id}_{config.aws_region}"

        if key not in cls._clients:
            with cls._lock:
                if key not in cls._clients:
                    if LLMProvider(config.provider) == LLMProvider.BEDROCK_CLAUDE:
                        cls._clients[key] = BedrockClaudeClient(config)
                    else:
                        raise ValueError(f"Unsupported LLM provider: {config.provider}")

        return cls._clients[key]

    @classmethod
    def clear_clients(cls) -> None:
        """Clear all cached clients"""
        with cls._lock:
            cls._clients.clear()


def create_llm_client(config: Optional[LLMConfig] = None) -> BaseLLMClient:
    """Create an LLM client from configuration (defaults to the global config)"""
    if config is None:
        from ..config import get_config
        config = get_config().llm
    return LLMClientFactory.get_client(config)
