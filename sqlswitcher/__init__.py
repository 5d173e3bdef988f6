"""
SQL Switcher

Converts SQL scripts between MySQL, PostgreSQL, Oracle and Tibero using
sqlglot for parsing plus dialect-specific rewrite rules.
"""

from .models import (
    ConfigError,
    ConversionError,
    ConversionMetadata,
    ConversionOptions,
    ConversionResult,
    ConversionWarning,
    Dialect,
    SqlSwitcherError,
    UnrecognizedStatementError,
    UnsupportedDialectError,
    WarningSeverity,
    WarningType,
    load_options,
)
from .function_mappings import MappingRegistry, build_default_registry
from .parser import SqlglotParser, StatementKind
from .fallback import FallbackTransformer
from .metrics import LoggingMetrics, NullMetrics
from .custom_rules import (
    CustomRule,
    CustomRulesConfig,
    load_custom_rules,
    save_sample_config,
    validate_config,
)
from .orchestrator import SqlConverterEngine
from .sql_text import split_statements, strip_sql_comments

__version__ = "0.1.0"
__all__ = [
    "SqlConverterEngine",
    "ConversionOptions",
    "ConversionResult",
    "ConversionWarning",
    "ConversionMetadata",
    "Dialect",
    "WarningType",
    "WarningSeverity",
    "SqlSwitcherError",
    "UnsupportedDialectError",
    "UnrecognizedStatementError",
    "ConversionError",
    "ConfigError",
    "load_options",
    "MappingRegistry",
    "build_default_registry",
    "SqlglotParser",
    "StatementKind",
    "FallbackTransformer",
    "NullMetrics",
    "LoggingMetrics",
    "CustomRule",
    "CustomRulesConfig",
    "load_custom_rules",
    "save_sample_config",
    "validate_config",
    "split_statements",
    "strip_sql_comments",
]
