"""
Configuration Management for the Schema Converter
Uses Pydantic for validation and type safety
"""
from __future__ import annotations

import os
from enum import Enum
from typing import Any, Dict, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, SecretStr, field_validator
from pydantic.alias_generators import to_camel


class DialectType(str, Enum):
    """Supported relational dialects"""
    MYSQL = "mysql"
    POSTGRESQL = "postgresql"
    SQLITE = "sqlite"
    MSSQL = "mssql"


class TargetFormat(str, Enum):
    """Conversion targets"""
    RELATIONAL = "relational"
    DOCUMENT = "document"


class LLMProvider(str, Enum):
    """Supported LLM providers"""
    BEDROCK_CLAUDE = "bedrock_claude"


class LogLevel(str, Enum):
    """Log levels"""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class ConversionOptions(BaseModel):
    """
    Per-request conversion options.

    Accepts both snake_case names and the camelCase keys used at the
    service boundary (``embedOneToOne``, ``normalizationDepth`` ...).
    """
    dialect: DialectType = DialectType.MYSQL
    embed_one_to_one: bool = True
    embed_small_one_to_many: bool = True
    small_table_threshold: int = Field(default=5, ge=0)
    normalization_depth: int = Field(default=1, ge=0)
    include_timestamps: bool = False
    preserve_case: bool = False
    generate_indexes: bool = True
    generate_validator: bool = True
    include_drop_statements: bool = False
    include_if_not_exists: bool = True
    include_comments: bool = True
    junction_max_extra_columns: int = Field(default=2, ge=0)

    @field_validator('dialect', mode='before')
    @classmethod
    def normalize_dialect(cls, v: Any) -> Any:
        """Accept common dialect spellings"""
        if isinstance(v, str):
            aliases = {"postgres": "postgresql", "pg": "postgresql", "sqlserver": "mssql"}
            lowered = v.strip().lower()
            return aliases.get(lowered, lowered)
        return v

    model_config = {
        "use_enum_values": True,
        "validate_default": True,
        "populate_by_name": True,
        "alias_generator": to_camel,
    }


class AnalyzerConfig(BaseModel):
    """Thresholds used by the relationship analyzer"""
    small_table_threshold: int = Field(default=5, ge=0)
    junction_max_extra_columns: int = Field(default=2, ge=0)
    timestamp_pattern: str = "created|updated|timestamp"

    @classmethod
    def from_options(cls, options: ConversionOptions) -> "AnalyzerConfig":
        return cls(
            small_table_threshold=options.small_table_threshold,
            junction_max_extra_columns=options.junction_max_extra_columns,
        )

    model_config = {"frozen": True}


class LLMConfig(BaseModel):
    """LLM configuration for Bedrock Claude"""
    provider: LLMProvider = LLMProvider.BEDROCK_CLAUDE
    model_id: str = "anthropic.claude-3-5-sonnet-20241022-v2:0"
    aws_region: str = "us-east-1"
    aws_access_key_id: Optional[SecretStr] = None
    aws_secret_access_key: Optional[SecretStr] = None
    aws_session_token: Optional[SecretStr] = None
    max_tokens: int = Field(default=8192, ge=100, le=100000)
    temperature: float = Field(default=0.0, ge=0.0, le=1.0)
    top_p: float = Field(default=0.9, ge=0.0, le=1.0)
    request_timeout: int = Field(default=60, ge=5, le=600)

    model_config = {"use_enum_values": True}


class MetricsConfig(BaseModel):
    """Metrics configuration"""
    enabled: bool = True


class SystemConfig(BaseModel):
    """Main system configuration"""
    conversion: ConversionOptions = Field(default_factory=ConversionOptions)
    llm: LLMConfig = Field(default_factory=LLMConfig)
    metrics: MetricsConfig = Field(default_factory=MetricsConfig)
    log_level: LogLevel = LogLevel.INFO
    json_logs: bool = False
    debug_mode: bool = False

    @classmethod
    def from_env(cls, dotenv_path: Optional[str] = None) -> "SystemConfig":
        """Create configuration from environment variables (and a .env file if present)"""
        load_dotenv(dotenv_path)

        conversion: Dict[str, Any] = {}
        if os.getenv("CONVERTER_DIALECT"):
            conversion["dialect"] = os.getenv("CONVERTER_DIALECT")
        if os.getenv("CONVERTER_NORMALIZATION_DEPTH"):
            conversion["normalization_depth"] = int(os.getenv("CONVERTER_NORMALIZATION_DEPTH", "1"))
        if os.getenv("CONVERTER_SMALL_TABLE_THRESHOLD"):
            conversion["small_table_threshold"] = int(os.getenv("CONVERTER_SMALL_TABLE_THRESHOLD", "5"))
        if os.getenv("CONVERTER_INCLUDE_TIMESTAMPS"):
            conversion["include_timestamps"] = os.getenv("CONVERTER_INCLUDE_TIMESTAMPS", "false").lower() == "true"

        llm_config = LLMConfig(
            aws_region=os.getenv("AWS_REGION", "us-east-1"),
            model_id=os.getenv("BEDROCK_MODEL_ID", "anthropic.claude-3-5-sonnet-20241022-v2:0"),
            max_tokens=int(os.getenv("LLM_MAX_TOKENS", "8192")),
            temperature=float(os.getenv("LLM_TEMPERATURE", "0.0")),
            request_timeout=int(os.getenv("LLM_REQUEST_TIMEOUT", "60")),
        )

        return cls(
            conversion=ConversionOptions(**conversion),
            llm=llm_config,
            metrics=MetricsConfig(enabled=os.getenv("METRICS_ENABLED", "true").lower() == "true"),
            log_level=LogLevel(os.getenv("LOG_LEVEL", "INFO")),
            json_logs=os.getenv("LOG_JSON", "false").lower() == "true",
            debug_mode=os.getenv("DEBUG_MODE", "false").lower() == "true",
        )

    model_config = {"use_enum_values": True}


# Global configuration instance
_config: Optional[SystemConfig] = None


def get_config() -> SystemConfig:
    """Get the global configuration instance"""
    global _config
    if _config is None:
        _config = SystemConfig.from_env()
    return _config


def set_config(config: SystemConfig) -> None:
    """Set the global configuration instance"""
    global _config
    _config = config


def reset_config() -> None:
    """Reset the global configuration instance"""
    global _config
    _config = None
