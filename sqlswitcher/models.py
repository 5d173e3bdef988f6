"""
Value types shared by the conversion engine.

This module holds the dialect enumeration, the conversion options, the
diagnostics model (warnings, metadata, results) and the exception
hierarchy. Apart from small helpers these types carry no behavior.
"""

import json
from dataclasses import dataclass, field, fields
from enum import Enum
from pathlib import Path
from typing import Any, Dict, FrozenSet, List, Optional


class SqlSwitcherError(Exception):
    """Base class for all errors raised by sqlswitcher."""


class UnsupportedDialectError(SqlSwitcherError):
    """Raised when a dialect name or dialect pair is not supported."""


class UnrecognizedStatementError(SqlSwitcherError):
    """Raised when a statement does not start with a known SQL keyword."""


class ConversionError(SqlSwitcherError):
    """Raised when a statement cannot be converted."""


class ConfigError(SqlSwitcherError):
    """Raised for invalid options or rule configuration files."""


_COMMON_FUNCTIONS = frozenset({
    "ABS", "AVG", "CEIL", "COALESCE", "CONCAT", "COUNT", "FLOOR", "LOWER",
    "LTRIM", "MAX", "MIN", "MOD", "REPLACE", "ROUND", "RTRIM", "SUM", "TRIM",
    "UPPER",
})


class Dialect(Enum):
    """Supported SQL dialects."""
    MYSQL = "MYSQL"
    POSTGRESQL = "POSTGRESQL"
    ORACLE = "ORACLE"
    TIBERO = "TIBERO"

    @property
    def quote_char(self) -> str:
        """Identifier quote character."""
        return "`" if self is Dialect.MYSQL else '"'

    @property
    def sqlglot_name(self) -> str:
        """Name of the closest built-in sqlglot dialect."""
        return {
            Dialect.MYSQL: "mysql",
            Dialect.POSTGRESQL: "postgres",
            Dialect.ORACLE: "oracle",
            Dialect.TIBERO: "oracle",
        }[self]

    @property
    def is_oracle_family(self) -> bool:
        return self in (Dialect.ORACLE, Dialect.TIBERO)

    @property
    def supported_functions(self) -> FrozenSet[str]:
        return _COMMON_FUNCTIONS | _DIALECT_FUNCTIONS[self]

    @property
    def display_name(self) -> str:
        return {
            Dialect.MYSQL: "MySQL",
            Dialect.POSTGRESQL: "PostgreSQL",
            Dialect.ORACLE: "Oracle",
            Dialect.TIBERO: "Tibero",
        }[self]

    @classmethod
    def from_name(cls, name: "str | Dialect") -> "Dialect":
        """
        Resolve a dialect from a user supplied name.

        Args:
            name: Dialect name such as "mysql", "postgres" or "Oracle"

        Returns:
            The matching Dialect

        Raises:
            UnsupportedDialectError: If the name is not a known dialect
        """
        if isinstance(name, Dialect):
            return name
        key = str(name).strip().upper()
        aliases = {
            "MYSQL": cls.MYSQL,
            "MARIADB": cls.MYSQL,
            "POSTGRESQL": cls.POSTGRESQL,
            "POSTGRES": cls.POSTGRESQL,
            "PG": cls.POSTGRESQL,
            "ORACLE": cls.ORACLE,
            "TIBERO": cls.TIBERO,
        }
        if key not in aliases:
            raise UnsupportedDialectError(f"Unsupported dialect: {name}")
        return aliases[key]


_ORACLE_FUNCTIONS = frozenset({
    "DECODE", "INSTR", "LENGTH", "LISTAGG", "NVL", "NVL2", "SUBSTR",
    "SYSDATE", "SYSTIMESTAMP", "TO_CHAR", "TO_DATE", "TO_NUMBER",
    "TO_TIMESTAMP", "TRUNC",
})

_DIALECT_FUNCTIONS = {
    Dialect.MYSQL: frozenset({
        "CHAR_LENGTH", "DATE_FORMAT", "GROUP_CONCAT", "IF", "IFNULL",
        "LENGTH", "LOCATE", "NOW", "STR_TO_DATE", "SUBSTRING", "TRUNCATE",
    }),
    Dialect.POSTGRESQL: frozenset({
        "CURRENT_TIMESTAMP", "LENGTH", "NOW", "POSITION", "STRING_AGG",
        "STRPOS", "SUBSTRING", "TO_CHAR", "TO_DATE", "TO_TIMESTAMP", "TRUNC",
    }),
    Dialect.ORACLE: _ORACLE_FUNCTIONS,
    Dialect.TIBERO: _ORACLE_FUNCTIONS,
}


class WarningType(Enum):
    """Kinds of conversion diagnostics."""
    UNSUPPORTED_FUNCTION = "UNSUPPORTED_FUNCTION"
    UNSUPPORTED_STATEMENT = "UNSUPPORTED_STATEMENT"
    SYNTAX_DIFFERENCE = "SYNTAX_DIFFERENCE"
    DATA_TYPE_MISMATCH = "DATA_TYPE_MISMATCH"
    PARTIAL_SUPPORT = "PARTIAL_SUPPORT"
    MANUAL_REVIEW_NEEDED = "MANUAL_REVIEW_NEEDED"


class WarningSeverity(Enum):
    """Severity of a conversion diagnostic."""
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"


@dataclass(frozen=True)
class ConversionWarning:
    """A single diagnostic attached to a conversion result."""
    kind: WarningType
    message: str
    severity: WarningSeverity = WarningSeverity.WARNING
    suggestion: Optional[str] = None
    line: Optional[int] = None
    column: Optional[int] = None

    def __str__(self) -> str:
        parts = [f"[{self.severity.value}] {self.kind.value}: {self.message}"]
        if self.suggestion:
            parts.append(f"  Suggestion: {self.suggestion}")
        if self.line:
            parts.append(f"  Line: {self.line}")
        return "\n".join(parts)


@dataclass(frozen=True)
class ConversionOptions:
    """
    Per-request conversion settings.

    Attributes:
        preserve_comments: Keep SQL comments in the output
        format_output: Pretty-print statements rendered from a tree
        include_warnings: Attach diagnostics to the result
        strict_mode: Escalate ambiguous rewrites to ERROR
        custom_mappings: Function renames consulted before the registry
        skip_unsupported_features: Omit DDL parts that have no target form
        max_complexity_score: Flag statements scoring above this value
        schema_owner: Oracle schema owner for generated DDL
        tablespace: Oracle tablespace for tables
        indexspace: Oracle tablespace for indexes
        separate_primary_key: Emit the primary key as ALTER TABLE
        separate_comments: Emit comments as COMMENT ON statements
        generate_index: Emit an explicit unique index for the primary key
    """
    preserve_comments: bool = True
    format_output: bool = True
    include_warnings: bool = True
    strict_mode: bool = False
    custom_mappings: Dict[str, str] = field(default_factory=dict)
    skip_unsupported_features: bool = False
    max_complexity_score: Optional[int] = None
    schema_owner: Optional[str] = None
    tablespace: Optional[str] = None
    indexspace: Optional[str] = None
    separate_primary_key: bool = True
    separate_comments: bool = True
    generate_index: bool = True

    def __post_init__(self):
        mappings = {str(k).upper(): str(v) for k, v in (self.custom_mappings or {}).items()}
        object.__setattr__(self, "custom_mappings", mappings)

    @property
    def owner(self) -> str:
        return self.schema_owner or "SCHEMA_OWNER"

    @property
    def table_space(self) -> str:
        return self.tablespace or "TABLESPACE_NAME"

    @property
    def index_space(self) -> str:
        return self.indexspace or "INDEXSPACE_NAME"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ConversionOptions":
        """
        Build options from a dictionary with snake_case keys.

        Raises:
            ConfigError: If the dictionary contains unknown keys
        """
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigError(f"Unknown option(s): {', '.join(unknown)}")
        return cls(**data)


def load_options(path: str) -> ConversionOptions:
    """
    Load ConversionOptions from a JSON file.

    Raises:
        ConfigError: If the file is missing or not valid JSON
    """
    options_path = Path(path)
    if not options_path.exists():
        raise ConfigError(f"Options file not found: {path}")
    try:
        with open(options_path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigError(f"Invalid JSON in options file '{path}': {e}")
    if not isinstance(data, dict):
        raise ConfigError(f"Options file '{path}' must contain a JSON object")
    return ConversionOptions.from_dict(data)


@dataclass(frozen=True)
class ConversionMetadata:
    """Analysis figures stamped onto a result."""
    source_dialect: Dialect
    target_dialect: Dialect
    complexity_score: int = 0
    function_count: int = 0
    table_count: int = 0
    join_count: int = 0
    subquery_count: int = 0


@dataclass
class ConversionResult:
    """Result of converting one request."""
    original_sql: str
    converted_sql: str
    success: bool = True
    warnings: List[ConversionWarning] = field(default_factory=list)
    applied_rules: List[str] = field(default_factory=list)
    execution_time_ms: float = 0.0
    metadata: Optional[ConversionMetadata] = None
    failed_statements: int = 0
    total_statements: int = 0

    def __str__(self) -> str:
        return self.converted_sql

    @property
    def errors(self) -> List[ConversionWarning]:
        return [w for w in self.warnings if w.severity is WarningSeverity.ERROR]

    def get_detailed_report(self) -> str:
        """Generate a detailed report of the conversion result."""
        lines = []

        if not self.success:
            lines.append("=" * 60)
            lines.append("CONVERSION FAILED")
            lines.append("=" * 60)

        if self.metadata:
            m = self.metadata
            lines.append(
                f"\n[METADATA] {m.source_dialect.display_name} -> {m.target_dialect.display_name}"
            )
            lines.append(f"  Complexity score: {m.complexity_score}")
            lines.append(
                f"  Functions: {m.function_count}  Tables: {m.table_count}  "
                f"Joins: {m.join_count}  Subqueries: {m.subquery_count}"
            )

        if self.total_statements > 1:
            lines.append(
                f"\n[STATEMENTS] {self.total_statements - self.failed_statements}"
                f"/{self.total_statements} converted"
            )

        if self.errors:
            lines.append("\n[ERRORS]")
            for warning in self.errors:
                lines.append(f"  ✗ {warning.message}")

        others = [w for w in self.warnings if w.severity is not WarningSeverity.ERROR]
        if others:
            lines.append("\n[WARNINGS]")
            for warning in others:
                lines.append(f"  {warning}")

        if self.applied_rules:
            lines.append("\n[APPLIED RULES]")
            for rule in self.applied_rules:
                lines.append(f"  • {rule}")

        lines.append(f"\nExecution time: {self.execution_time_ms:.1f} ms")

        if not self.success:
            lines.append("\n[ORIGINAL SQL]")
            for i, line in enumerate(self.original_sql.split('\n'), 1):
                lines.append(f"  {i:3d} | {line}")

        return "\n".join(lines)


class ConversionContext:
    """
    Per-statement accumulator for warnings and applied rules.

    A fresh context is created for every statement; the orchestrator merges
    them into one ConversionResult.
    """

    def __init__(self, source: Dialect, target: Dialect, options: ConversionOptions):
        self.source = source
        self.target = target
        self.options = options
        self.warnings: List[ConversionWarning] = []
        self.applied_rules: List[str] = []

    def warn(
        self,
        kind: WarningType,
        message: str,
        severity: WarningSeverity = WarningSeverity.WARNING,
        suggestion: Optional[str] = None,
    ) -> None:
        if self.options.strict_mode and severity is WarningSeverity.WARNING:
            severity = WarningSeverity.ERROR
        self.warnings.append(ConversionWarning(kind, message, severity, suggestion))

    def info(self, kind: WarningType, message: str, suggestion: Optional[str] = None) -> None:
        self.warnings.append(ConversionWarning(kind, message, WarningSeverity.INFO, suggestion))

    def error(self, kind: WarningType, message: str, suggestion: Optional[str] = None) -> None:
        self.warnings.append(ConversionWarning(kind, message, WarningSeverity.ERROR, suggestion))

    def report(self, warning: ConversionWarning) -> None:
        """Record a prepared warning, escalated like warn() under strict mode."""
        self.warn(warning.kind, warning.message, warning.severity, warning.suggestion)

    def rule(self, name: str) -> None:
        if name not in self.applied_rules:
            self.applied_rules.append(name)

    def merge(self, other: "ConversionContext") -> None:
        self.warnings.extend(other.warnings)
        for name in other.applied_rules:
            self.rule(name)
