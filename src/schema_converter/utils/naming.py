"""
Identifier and naming helpers shared by extractors, planner and generators
"""
from __future__ import annotations

import re
from typing import Dict, List, Optional, Set, Tuple


# Common singular -> plural mappings for irregular nouns
IRREGULAR_PLURALS = {
    "person": "people",
    "child": "children",
    "status": "statuses",
    "analysis": "analyses",
    "datum": "data",
    "man": "men",
    "woman": "women",
    "mouse": "mice",
}
IRREGULAR_SINGULARS = {v: k for k, v in IRREGULAR_PLURALS.items()}

_WORD_SPLIT = re.compile(r'[^A-Za-z0-9]+')
_CAMEL_BOUNDARY_1 = re.compile(r'(.)([A-Z][a-z]+)')
_CAMEL_BOUNDARY_2 = re.compile(r'([a-z0-9])([A-Z])')
_INVALID_IDENTIFIER_CHARS = re.compile(r'[^a-zA-Z0-9_]')


def to_camel_case(name: str) -> str:
    """
    Convert snake/kebab/space separated names to lowerCamelCase.

    A single word keeps its inner capitals, so ``userId`` stays ``userId``.
    """
    parts = [p for p in _WORD_SPLIT.split(name) if p]
    if not parts:
        return name
    if len(parts) == 1:
        word = parts[0]
        if word.isupper():
            return word.lower()
        return word[0].lower() + word[1:]
    head = parts[0].lower()
    return head + "".join(p[:1].upper() + p[1:].lower() for p in parts[1:])


def to_snake_case(name: str) -> str:
    """Convert camelCase or PascalCase names to snake_case"""
    step = _CAMEL_BOUNDARY_1.sub(r'\1_\2', name)
    step = _CAMEL_BOUNDARY_2.sub(r'\1_\2', step)
    step = re.sub(r'[^A-Za-z0-9]+', '_', step)
    return step.strip('_').lower() or name


def singularize(word: str) -> str:
    """Simple singularization (reverse of common plural rules)"""
    lower = word.lower()
    if lower in IRREGULAR_SINGULARS:
        return _match_case(word, IRREGULAR_SINGULARS[lower])
    if lower in IRREGULAR_PLURALS:
        return word
    if lower.endswith('ies') and len(word) > 3:
        return word[:-3] + 'y'
    if lower.endswith(('sses', 'xes', 'zes', 'ches', 'shes')):
        return word[:-2]
    if lower.endswith('s') and not lower.endswith(('ss', 'us', 'is')):
        return word[:-1]
    return word


def pluralize(word: str) -> str:
    """Simple pluralization for English table names"""
    lower = word.lower()
    if lower in IRREGULAR_PLURALS:
        return _match_case(word, IRREGULAR_PLURALS[lower])
    if lower in IRREGULAR_SINGULARS:
        return word
    if lower.endswith('y') and len(word) > 1 and lower[-2] not in 'aeiou':
        return word[:-1] + 'ies'
    if lower.endswith(('s', 'x', 'z', 'ch', 'sh')):
        return word + 'es'
    return word + 's'


def _match_case(original: str, replacement: str) -> str:
    if original[:1].isupper():
        return replacement[:1].upper() + replacement[1:]
    return replacement


def sanitize_identifier(name: str) -> str:
    """Replace characters outside [A-Za-z0-9_]; prefix a leading digit"""
    cleaned = _INVALID_IDENTIFIER_CHARS.sub('_', name or '')
    if not cleaned:
        return '_'
    if cleaned[0].isdigit():
        cleaned = f"_{cleaned}"
    return cleaned


class IdentifierAllocator:
    """
    Hands out unique identifiers within one scope (a schema's table names,
    one table's column names, one collection's field names).

    Names are compared case-insensitively after sanitization. A clash is
    resolved by appending ``_2``, ``_3`` ... until the name is free.
    """

    def __init__(self, reserved: Optional[List[str]] = None):
        self._used: Set[str] = set()
        self._assigned: Dict[str, str] = {}
        self.renamed: List[Tuple[str, str]] = []
        for name in reserved or []:
            self._used.add(name.lower())

    def allocate(self, name: str, sanitize: bool = True) -> str:
        candidate = sanitize_identifier(name) if sanitize else name
        base = candidate
        suffix = 2
        while candidate.lower() in self._used:
            candidate = f"{base}_{suffix}"
            suffix += 1
        self._used.add(candidate.lower())
        self._assigned.setdefault(name, candidate)
        if candidate != name:
            self.renamed.append((name, candidate))
        return candidate

    def resolve(self, name: str) -> str:
        """Name previously allocated for ``name``, falling back to the sanitized form"""
        return self._assigned.get(name, sanitize_identifier(name))

    def is_taken(self, name: str) -> bool:
        return name.lower() in self._used
