"""
LLM Extractor
AI-assisted extraction behind the common extractor contract.

The model is asked for the canonical schema as JSON. One bounded-timeout
call is made; any failure or unusable answer raises ExtractionError and no
partial schema is handed downstream.
"""
from __future__ import annotations

import json
import re
from typing import Any, Dict, Optional

from ..llm_client import BaseLLMClient, create_llm_client
from ..schemas.models import CanonicalSchema, SourceKind
from ..utils.errors import ErrorCategory, ExtractionError, LLMError
from ..utils.logging import get_logger
from .base import BaseExtractor, register_extractor

logger = get_logger(__name__)


@register_extractor(SourceKind.LLM)
class LLMExtractor(BaseExtractor):
    """Extracts a canonical schema from free-form text using an LLM"""

    source_kind = SourceKind.LLM
    extracted_by = "llm_extractor"

    SYSTEM_PROMPT = """You are an expert database architect. Your task is to read a schema description (SQL DDL, a document database schema, sample records or plain prose) and restate it as a canonical schema.

OUTPUT FORMAT:
Respond with a single JSON object wrapped in ```json``` code blocks, shaped like:
```json
{
  "version": "1.0",
  "tables": [
    {
      "name": "users",
      "kind": "table",
      "columns": [
        {"name": "id", "type": "integer", "nullable": false, "autoIncrement": true},
        {"name": "email", "type": "string", "nullable": false, "unique": true, "length": 255}
      ],
      "primaryKey": {"columns": ["id"]},
      "foreignKeys": [],
      "indexes": []
    }
  ]
}
```

RULES:
1. "type" must be one of: string, text, integer, bigint, decimal, float, double, boolean, date, datetime, timestamp, time, blob, json, uuid, enum
2. "kind" must be one of: table, collection, view
3. Foreign keys use "columns", "referencedTable", "referencedColumns", "onDelete", "onUpdate" (cascade, set-null, restrict, no-action)
4. Enumerations use type "enum" with "enumValues"
5. Use "defaultValue": "$now" for current-timestamp defaults
6. Do not invent tables or columns that are not described
7. Do not include relationships; they are derived from the foreign keys"""

    def __init__(self, llm_client: Optional[BaseLLMClient] = None):
        super().__init__()
        self._llm_client = llm_client

    @property
    def llm_client(self) -> BaseLLMClient:
        if self._llm_client is None:
            self._llm_client = create_llm_client()
        return self._llm_client

    def _prepare_prompt(self, raw_input: Any, hint: Optional[str]) -> str:
        text = raw_input if isinstance(raw_input, str) else json.dumps(raw_input, indent=2, default=str)
        prompt_parts = []
        if hint:
            prompt_parts.append(f"SOURCE FORMAT HINT: {hint}")
        prompt_parts.extend([
            "SCHEMA DESCRIPTION:",
            text,
            "\nReturn the canonical schema JSON for the above description.",
        ])
        return "\n".join(prompt_parts)

    def _extract(self, raw_input: Any, hint: Optional[str]) -> CanonicalSchema:
        prompt = self._prepare_prompt(raw_input, hint)

        try:
            response = self.llm_client.invoke(prompt, system_prompt=self.SYSTEM_PROMPT)
        except TimeoutError as e:
            raise ExtractionError(
                "Extraction service timed out",
                source_kind="llm",
                original_error=e,
                category=ErrorCategory.TIMEOUT,
            )
        except LLMError as e:
            category = ErrorCategory.TIMEOUT if e.context.metadata.get("timeout") else ErrorCategory.EXTRACTION
            raise ExtractionError(
                f"Extraction service failed: {e.message}",
                source_kind="llm",
                original_error=e,
                category=category,
            )

        data = self._parse_response(response.content)
        schema = CanonicalSchema.from_dict(data)
        schema.metadata.dialect = schema.metadata.dialect or hint

        logger.debug(
            "LLM extraction parsed",
            extra={"extra_fields": {
                "tables": len(schema.tables),
                "input_tokens": response.input_tokens,
                "output_tokens": response.output_tokens,
            }}
        )
        return schema

    def _parse_response(self, content: str) -> Dict[str, Any]:
        """Pull the JSON object out of the model's answer"""
        if not content or not content.strip():
            raise ExtractionError("Extraction service returned an empty answer", source_kind="llm")

        candidates = []
        match = re.search(r"```json\s*(.*?)\s*```", content, re.DOTALL | re.IGNORECASE)
        if match:
            candidates.append(match.group(1))
        match = re.search(r"```\s*(.*?)\s*```", content, re.DOTALL)
        if match:
            candidates.append(match.group(1))
        start, end = content.find("{"), content.rfind("}")
        if start != -1 and end > start:
            candidates.append(content[start:end + 1])

        for candidate in candidates:
            try:
                data = json.loads(candidate)
            except json.JSONDecodeError:
                continue
            if isinstance(data, dict) and isinstance(data.get("tables"), list):
                return data

        raise ExtractionError("Extraction service answer is not a canonical schema", source_kind="llm")
