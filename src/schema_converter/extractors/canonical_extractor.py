"""
Canonical Extractor
Reads a schema already in the canonical boundary-contract shape
"""
from __future__ import annotations

from typing import Any, Optional

from ..schemas.models import CanonicalSchema, SourceKind
from ..utils.errors import ExtractionError
from .base import BaseExtractor, load_structured_input, register_extractor


@register_extractor(SourceKind.CANONICAL)
class CanonicalExtractor(BaseExtractor):
    """Loads a CanonicalSchema from its dict / JSON / YAML form"""

    source_kind = SourceKind.CANONICAL
    extracted_by = "canonical_extractor"

    def _extract(self, raw_input: Any, hint: Optional[str]) -> CanonicalSchema:
        if isinstance(raw_input, CanonicalSchema):
            return CanonicalSchema.from_dict(raw_input.to_dict())

        data = load_structured_input(raw_input, "canonical")
        if not isinstance(data, dict) or not isinstance(data.get("tables"), list):
            raise ExtractionError("Canonical input must be an object with a 'tables' list", source_kind="canonical")
        return CanonicalSchema.from_dict(data)
