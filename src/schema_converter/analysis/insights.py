"""
Schema Inspector

Reviews an analyzed canonical schema and reports what a designer would want
to know before converting it:

- summary: table and column counts, average width and a complexity rating
- relationships: counts per kind, circular foreign key chains, orphaned tables
- normalization: heuristic violations and a 0-100 score
- performance: foreign keys without a supporting index, redundant indexes,
  tables without a primary key
- recommendations, most urgent first

Document schemas (every table a collection) are rated with their own
thresholds and checked for embedding-heavy collections instead of the
relational normal-form heuristics.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Set

from ..schemas.models import CanonicalSchema, Relationship, Table, TableKind
from ..utils.logging import get_logger
from .relationships import summarize_relationships

logger = get_logger(__name__)

# (tables, average columns) above which a schema is rated high / medium
RELATIONAL_COMPLEXITY = {"high": (20, 15), "medium": (10, 10)}
DOCUMENT_COMPLEXITY = {"high": (15, 20), "medium": (8, 12)}

ADDRESS_MARKERS = ("address", "city", "zip")


class Priority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


_PRIORITY_ORDER = [Priority.CRITICAL, Priority.HIGH, Priority.MEDIUM, Priority.LOW]


@dataclass
class SchemaSummary:
    tables: int
    columns: int
    relationships: int
    avg_columns_per_table: float
    complexity: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tables": self.tables,
            "columns": self.columns,
            "relationships": self.relationships,
            "avg_columns_per_table": self.avg_columns_per_table,
            "complexity": self.complexity,
        }


@dataclass
class NormalizationViolation:
    table: str
    issue: str
    severity: Priority
    recommendation: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "table": self.table,
            "issue": self.issue,
            "severity": self.severity.value,
            "recommendation": self.recommendation,
        }


@dataclass
class IndexFinding:
    """A missing (``index`` unset) or redundant index on ``table``"""
    table: str
    columns: List[str]
    index: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"table": self.table, "columns": list(self.columns)}
        if self.index:
            data["index"] = self.index
        return data


@dataclass
class Recommendation:
    category: str
    priority: Priority
    title: str
    description: str
    impact: str
    effort: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "category": self.category,
            "priority": self.priority.value,
            "title": self.title,
            "description": self.description,
            "impact": self.impact,
            "effort": self.effort,
        }


@dataclass
class SchemaInsights:
    """Everything ``SchemaInspector.inspect`` found"""
    summary: SchemaSummary
    relationship_counts: Dict[str, int]
    circular: List[str] = field(default_factory=list)
    orphaned_tables: List[str] = field(default_factory=list)
    relationship_density: float = 0.0
    normalization_level: str = "3NF"
    normalization_score: int = 100
    violations: List[NormalizationViolation] = field(default_factory=list)
    index_coverage: int = 100
    missing_indexes: List[IndexFinding] = field(default_factory=list)
    redundant_indexes: List[IndexFinding] = field(default_factory=list)
    tables_without_primary_key: List[str] = field(default_factory=list)
    recommendations: List[Recommendation] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "summary": self.summary.to_dict(),
            "relationships": {
                **self.relationship_counts,
                "circular": list(self.circular),
                "orphaned_tables": list(self.orphaned_tables),
                "density": self.relationship_density,
            },
            "normalization": {
                "level": self.normalization_level,
                "score": self.normalization_score,
                "violations": [v.to_dict() for v in self.violations],
            },
            "performance": {
                "index_coverage": self.index_coverage,
                "missing_indexes": [f.to_dict() for f in self.missing_indexes],
                "redundant_indexes": [f.to_dict() for f in self.redundant_indexes],
                "tables_without_primary_key": list(self.tables_without_primary_key),
            },
            "recommendations": [r.to_dict() for r in self.recommendations],
        }


class SchemaInspector:
    """
    Produces ``SchemaInsights`` for a schema whose relationships are known

    Usage:
        relationships = RelationshipAnalyzer().analyze(schema)
        insights = SchemaInspector().inspect(schema, relationships)
    """

    def inspect(self, schema: CanonicalSchema, relationships: List[Relationship]) -> SchemaInsights:
        tables = [t for t in schema.tables if t.kind != TableKind.VIEW]
        is_document = bool(tables) and all(t.kind == TableKind.COLLECTION for t in tables)

        insights = SchemaInsights(
            summary=self._summary(tables, relationships, is_document),
            relationship_counts={k: v for k, v in summarize_relationships(relationships).items() if k != "total"},
            circular=self.find_cycles(tables),
            orphaned_tables=self._orphaned_tables(tables, relationships),
            relationship_density=round(len(relationships) / len(tables), 2) if tables else 0.0,
        )

        junctions = {r.junction_table.lower() for r in relationships if r.junction_table}
        if is_document:
            self._document_normalization(insights, tables)
        else:
            self._relational_normalization(insights, tables, junctions)
        self._performance(insights, tables)
        insights.recommendations = self._recommendations(insights, is_document)

        logger.info(
            "Inspected schema",
            extra={"extra_fields": {
                "complexity": insights.summary.complexity,
                "circular": len(insights.circular),
                "missing_indexes": len(insights.missing_indexes),
                "recommendations": len(insights.recommendations),
            }}
        )
        return insights

    # Summary and relationships

    def _summary(self, tables: List[Table], relationships: List[Relationship], is_document: bool) -> SchemaSummary:
        columns = sum(len(t.columns) for t in tables)
        average = columns / len(tables) if tables else 0.0
        thresholds = DOCUMENT_COMPLEXITY if is_document else RELATIONAL_COMPLEXITY

        complexity = "low"
        for level in ("high", "medium"):
            max_tables, max_average = thresholds[level]
            if len(tables) > max_tables or average > max_average:
                complexity = level
                break

        return SchemaSummary(
            tables=len(tables),
            columns=columns,
            relationships=len(relationships),
            avg_columns_per_table=round(average, 1),
            complexity=complexity,
        )

    def find_cycles(self, tables: List[Table]) -> List[str]:
        """Foreign key chains that lead back to their start, e.g. ``a -> b -> a``"""
        names = {t.name.lower(): t.name for t in tables}
        graph: Dict[str, List[str]] = {}
        for table in tables:
            targets = []
            for fk in table.foreign_keys:
                target = fk.referenced_table.lower()
                # self references are ordinary hierarchies, not cycles
                if target in names and target != table.name.lower() and target not in targets:
                    targets.append(target)
            graph[table.name.lower()] = targets

        cycles: List[str] = []
        seen: Set[frozenset] = set()
        visited: Set[str] = set()

        def visit(node: str, path: List[str]) -> None:
            visited.add(node)
            path.append(node)
            for neighbor in graph.get(node, []):
                if neighbor in path:
                    loop = path[path.index(neighbor):]
                    if frozenset(loop) not in seen:
                        seen.add(frozenset(loop))
                        cycles.append(" -> ".join(names[n] for n in loop + [neighbor]))
                elif neighbor not in visited:
                    visit(neighbor, path)
            path.pop()

        for table in tables:
            if table.name.lower() not in visited:
                visit(table.name.lower(), [])
        return cycles

    def _orphaned_tables(self, tables: List[Table], relationships: List[Relationship]) -> List[str]:
        related: Set[str] = set()
        for rel in relationships:
            related.update((rel.from_.table.lower(), rel.to.table.lower()))
            if rel.junction_table:
                related.add(rel.junction_table.lower())
        return [t.name for t in tables if t.name.lower() not in related]

    # Normalization

    def _relational_normalization(self, insights: SchemaInsights, tables: List[Table], junctions: Set[str]) -> None:
        for table in tables:
            if len(table.primary_key_columns) > 1 and table.name.lower() not in junctions:
                insights.violations.append(NormalizationViolation(
                    table=table.name,
                    issue="Composite primary key",
                    severity=Priority.MEDIUM,
                    recommendation="Verify no non-key column depends on only part of the primary key",
                ))

            address_columns = [
                c for c in table.columns if any(marker in c.name.lower() for marker in ADDRESS_MARKERS)
            ]
            if len(address_columns) > 3:
                insights.violations.append(NormalizationViolation(
                    table=table.name,
                    issue="Multiple address-related columns",
                    severity=Priority.LOW,
                    recommendation="Consider moving address data into a separate table",
                ))

            nullable = [c for c in table.columns if c.nullable and not table.is_primary_key_column(c.name)]
            if table.columns and len(nullable) > len(table.columns) * 0.5:
                insights.violations.append(NormalizationViolation(
                    table=table.name,
                    issue="More than half of the columns are nullable",
                    severity=Priority.MEDIUM,
                    recommendation="Consider splitting optional attributes into their own table",
                ))

        insights.normalization_score = max(0, 100 - 10 * len(insights.violations))
        severities = {v.severity for v in insights.violations}
        if Priority.HIGH in severities:
            insights.normalization_level = "1NF"
        elif Priority.MEDIUM in severities:
            insights.normalization_level = "2NF"
        else:
            insights.normalization_level = "3NF"

    def _document_normalization(self, insights: SchemaInsights, tables: List[Table]) -> None:
        for table in tables:
            arrays = [c for c in table.columns if c.is_array and not c.reference]
            if len(arrays) > 2:
                insights.violations.append(NormalizationViolation(
                    table=table.name,
                    issue="Multiple embedded arrays",
                    severity=Priority.MEDIUM,
                    recommendation="Consider moving some arrays into their own collections with references",
                ))
            objects = [c for c in table.columns if c.is_nested and not c.is_array]
            if len(objects) > 3:
                insights.violations.append(NormalizationViolation(
                    table=table.name,
                    issue="Multiple embedded objects",
                    severity=Priority.LOW,
                    recommendation="Consider referencing embedded objects that are shared or grow independently",
                ))

        score = max(0, 100 - 15 * len(insights.violations))
        insights.normalization_score = score
        insights.normalization_level = "3NF" if score > 80 else "2NF" if score > 60 else "1NF"

    # Performance

    def _performance(self, insights: SchemaInsights, tables: List[Table]) -> None:
        foreign_keys = 0
        covered = 0
        for table in tables:
            if not table.primary_key_columns:
                insights.tables_without_primary_key.append(table.name)

            for fk in table.foreign_keys:
                foreign_keys += 1
                if self._is_indexed(table, fk.columns):
                    covered += 1
                else:
                    insights.missing_indexes.append(IndexFinding(table=table.name, columns=list(fk.columns)))

            insights.redundant_indexes.extend(self._redundant_indexes(table))

        insights.index_coverage = round(100 * covered / foreign_keys) if foreign_keys else 100

    def _is_indexed(self, table: Table, columns: List[str]) -> bool:
        """Some index, key or unique set starts with exactly these columns"""
        wanted = {c.lower() for c in columns}
        candidates = [idx.columns for idx in table.indexes]
        candidates.append(table.primary_key_columns)
        candidates.extend(table.unique_column_sets())
        candidates.extend([c.name] for c in table.columns if c.unique)
        for candidate in candidates:
            prefix = candidate[:len(columns)]
            if len(prefix) == len(columns) and {c.lower() for c in prefix} == wanted:
                return True
        return False

    def _redundant_indexes(self, table: Table) -> List[IndexFinding]:
        """Non-unique indexes whose columns lead another index or the primary key"""
        findings = []
        primary = [c.lower() for c in table.primary_key_columns]
        for position, index in enumerate(table.indexes):
            if index.unique or not index.columns:
                continue
            columns = [c.lower() for c in index.columns]
            covering = primary if primary[:len(columns)] == columns else None
            for other_position, other in enumerate(table.indexes):
                if covering is not None:
                    break
                if other_position == position:
                    continue
                other_columns = [c.lower() for c in other.columns]
                if other_columns[:len(columns)] != columns:
                    continue
                # of two identical indexes only the later one is reported
                if len(other_columns) > len(columns) or other.unique or other_position < position:
                    covering = other_columns
            if covering is not None:
                findings.append(IndexFinding(table=table.name, columns=list(index.columns), index=index.name))
        return findings

    # Recommendations

    def _recommendations(self, insights: SchemaInsights, is_document: bool) -> List[Recommendation]:
        recommendations: List[Recommendation] = []

        if insights.circular:
            recommendations.append(Recommendation(
                category="design",
                priority=Priority.CRITICAL,
                title="Resolve circular foreign keys",
                description=f"{len(insights.circular)} circular foreign key chain(s): "
                            + "; ".join(insights.circular),
                impact="Tables in a cycle cannot be created, loaded or deleted in a simple order",
                effort="high",
            ))

        if insights.missing_indexes:
            subject = "reference fields" if is_document else "foreign key columns"
            recommendations.append(Recommendation(
                category="performance",
                priority=Priority.HIGH,
                title=f"Index {subject}",
                description=f"{len(insights.missing_indexes)} {subject} have no supporting index: "
                            + ", ".join(f"{f.table}({', '.join(f.columns)})" for f in insights.missing_indexes),
                impact="Faster joins and lookups",
                effort="low",
            ))

        if insights.tables_without_primary_key:
            recommendations.append(Recommendation(
                category="design",
                priority=Priority.HIGH,
                title="Add primary keys",
                description="No primary key on: " + ", ".join(insights.tables_without_primary_key),
                impact="Rows can be addressed, updated and referenced reliably",
                effort="low",
            ))

        if is_document and any("embedded" in v.issue for v in insights.violations):
            recommendations.append(Recommendation(
                category="design",
                priority=Priority.MEDIUM,
                title="Review the embedding strategy",
                description="Some collections embed many objects or arrays; references may suit them better",
                impact="Less duplication and smaller documents",
                effort="medium",
            ))
        elif insights.normalization_score < 70:
            recommendations.append(Recommendation(
                category="normalization",
                priority=Priority.HIGH,
                title="Improve normalization",
                description=f"Normalization score is {insights.normalization_score}/100 "
                            f"with {len(insights.violations)} violation(s)",
                impact="Less redundancy and better integrity",
                effort="high",
            ))

        if insights.redundant_indexes:
            recommendations.append(Recommendation(
                category="performance",
                priority=Priority.LOW,
                title="Drop redundant indexes",
                description="Covered by another index or the primary key: "
                            + ", ".join(f"{f.table}.{f.index}" for f in insights.redundant_indexes),
                impact="Cheaper writes and less storage",
                effort="low",
            ))

        if insights.orphaned_tables:
            recommendations.append(Recommendation(
                category="design",
                priority=Priority.LOW,
                title="Review unrelated tables",
                description=f"{len(insights.orphaned_tables)} table(s) take part in no relationship: "
                            + ", ".join(insights.orphaned_tables),
                impact="A clearer picture of the schema",
                effort="low",
            ))

        recommendations.sort(key=lambda r: _PRIORITY_ORDER.index(r.priority))
        return recommendations
