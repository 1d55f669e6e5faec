"""
Base Generator Module
Defines abstract base class for all generators
"""
from __future__ import annotations

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..config import ConversionOptions
from ..schemas.models import CanonicalSchema
from ..utils.errors import ConversionWarning, UnsupportedConstructError, WarningCode
from ..utils.logging import get_logger
from ..utils.naming import IdentifierAllocator
from ..utils.metrics import timer

logger = get_logger(__name__)


@dataclass
class GeneratorResult:
    """Generated target plus the non-fatal findings made while producing it"""
    output: Any
    target: str
    warnings: List[ConversionWarning] = field(default_factory=list)

    @property
    def text(self) -> str:
        """Output as text (DDL as-is, structured output as JSON)"""
        if isinstance(self.output, str):
            return self.output
        return self.output.to_json()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "target": self.target,
            "output": self.output if isinstance(self.output, str) else self.output.to_dict(),
            "warnings": [w.to_dict() for w in self.warnings],
        }


class BaseGenerator(ABC):
    """
    Abstract base class for generators

    Implements Template Method pattern: ``generate`` handles timing and
    logging, subclasses implement ``_generate``. A generator instance keeps
    per-call state; create one per conversion.
    """

    target: str = "unknown"

    def __init__(self, options: Optional[ConversionOptions] = None):
        self.options = options or ConversionOptions()
        self.warnings: List[ConversionWarning] = []

    def generate(self, schema: CanonicalSchema, **kwargs: Any) -> GeneratorResult:
        """
        Generate target output for a validated, analyzed schema

        Args:
            schema: Canonical schema with relationships computed
            **kwargs: Generator-specific inputs (embedding plan ...)

        Returns:
            GeneratorResult with output and warnings
        """
        self.warnings = []
        start_time = time.time()

        output = self._generate(schema, **kwargs)

        duration = time.time() - start_time
        timer("converter_generation_duration_seconds", duration, {"target": self.target})
        logger.info(
            f"Generated {self.target} output",
            extra={"extra_fields": {
                "target": self.target,
                "tables": len(schema.tables),
                "warnings": len(self.warnings),
                "duration_ms": round(duration * 1000, 2),
            }}
        )
        return GeneratorResult(output=output, target=self.target, warnings=list(self.warnings))

    @abstractmethod
    def _generate(self, schema: CanonicalSchema, **kwargs: Any) -> Any:
        pass

    def _warn(self, message: str, location: Optional[str] = None,
              code: WarningCode = WarningCode.UNSUPPORTED_CONSTRUCT) -> None:
        self.warnings.append(ConversionWarning(code=code, message=message, location=location))
        logger.warning(message, extra={"extra_fields": {"location": location, "code": code.value}})

    def _degrade(self, error: UnsupportedConstructError, location: Optional[str] = None) -> None:
        """Record an unsupported construct that was rendered with a fallback"""
        warning = ConversionWarning.from_error(error, location=location)
        self.warnings.append(warning)
        logger.warning(
            error.message,
            extra={"extra_fields": {"location": location, "construct": error.construct, "fallback": error.fallback}}
        )

    def _report_renames(self, allocator: IdentifierAllocator, scope: str) -> None:
        for old, new in allocator.renamed:
            self._warn(
                f"Identifier '{old}' emitted as '{new}'",
                location=scope,
                code=WarningCode.IDENTIFIER_RENAMED,
            )
        allocator.renamed.clear()
