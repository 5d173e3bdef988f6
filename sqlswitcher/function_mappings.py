"""
Function and data-type mapping registries.

This module contains the lookup tables that drive renaming of functions
and data types between every ordered pair of supported dialects. The
tables are plain data: a rule is keyed by (source dialect, target dialect,
upper-cased name) and a MappingRegistry is built once and never mutated.
"""

import re
from dataclasses import dataclass, replace
from enum import Enum
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from .models import ConversionWarning, Dialect, WarningSeverity, WarningType

MYSQL = Dialect.MYSQL
POSTGRESQL = Dialect.POSTGRESQL
ORACLE = Dialect.ORACLE
TIBERO = Dialect.TIBERO

# Target name used by rules that expand into a CASE expression
CASE_WHEN = "CASE_WHEN"


class ParameterTransform(Enum):
    """How the arguments of a mapped function are rewritten."""
    NONE = "NONE"
    SWAP_FIRST_TWO = "SWAP_FIRST_TWO"
    DATE_FORMAT_CONVERT = "DATE_FORMAT_CONVERT"
    TO_CASE_WHEN = "TO_CASE_WHEN"
    WRAP_WITH_FUNCTION = "WRAP_WITH_FUNCTION"


@dataclass(frozen=True)
class FunctionMappingRule:
    """A function rename between two dialects."""
    source_dialect: Dialect
    target_dialect: Dialect
    source_function: str
    target_function: str
    parameter_transform: ParameterTransform = ParameterTransform.NONE
    warning_type: Optional[WarningType] = None
    warning_message: Optional[str] = None
    suggestion: Optional[str] = None
    is_partial_support: bool = False
    max_args: Optional[int] = None

    @property
    def key(self) -> Tuple[Dialect, Dialect, str]:
        return (self.source_dialect, self.target_dialect, self.source_function.upper())

    @property
    def rule_name(self) -> str:
        target = "CASE WHEN" if self.target_function == CASE_WHEN else self.target_function
        return f"{self.source_function} → {target}"

    def accepts(self, arg_count: int) -> bool:
        return self.max_args is None or arg_count <= self.max_args


class PrecisionHandler(Enum):
    """How a type's precision/length arguments are carried over."""
    PRESERVE = "PRESERVE"
    CONVERT = "CONVERT"
    DROP = "DROP"
    MAP_TO_INTEGER = "MAP_TO_INTEGER"


@dataclass(frozen=True)
class DataTypeMappingRule:
    """A data type rename between two dialects."""
    source_dialect: Dialect
    target_dialect: Dialect
    source_type: str
    target_type: str
    precision_handler: PrecisionHandler = PrecisionHandler.DROP
    warning_type: Optional[WarningType] = None
    warning_message: Optional[str] = None

    @property
    def key(self) -> Tuple[Dialect, Dialect, str]:
        return (self.source_dialect, self.target_dialect, normalize_type_name(self.source_type))


@dataclass(frozen=True)
class DataTypeConversionResult:
    """Outcome of mapping one column type."""
    converted_type: str
    warning: Optional[ConversionWarning] = None
    applied_rule: Optional[str] = None


def normalize_type_name(data_type: str) -> str:
    """
    Normalize a type name for registry lookup.

    VARCHAR(100) → VARCHAR, NUMBER(10,2) → NUMBER, double  precision →
    DOUBLE PRECISION.
    """
    return " ".join(re.sub(r'\([^)]*\)', ' ', data_type).split()).upper()


class MappingRegistry:
    """
    Immutable lookup tables for function and data type rules.

    Example:
        >>> registry = build_default_registry()
        >>> registry.get_function_mapping(Dialect.ORACLE, Dialect.MYSQL, "nvl").target_function
        'IFNULL'
    """

    def __init__(
        self,
        function_rules: Iterable[FunctionMappingRule],
        type_rules: Iterable[DataTypeMappingRule],
    ):
        functions: Dict[Tuple[Dialect, Dialect, str], FunctionMappingRule] = {}
        for rule in function_rules:
            functions[rule.key] = rule
        types: Dict[Tuple[Dialect, Dialect, str], DataTypeMappingRule] = {}
        for rule in type_rules:
            types[rule.key] = rule
        self._functions: Mapping = MappingProxyType(functions)
        self._types: Mapping = MappingProxyType(types)

    def get_function_mapping(
        self, source: Dialect, target: Dialect, function_name: str
    ) -> Optional[FunctionMappingRule]:
        return self._functions.get((source, target, function_name.upper()))

    def get_type_mapping(
        self, source: Dialect, target: Dialect, data_type: str
    ) -> Optional[DataTypeMappingRule]:
        return self._types.get((source, target, normalize_type_name(data_type)))

    def function_rules_for(self, source: Dialect, target: Dialect) -> List[FunctionMappingRule]:
        return [r for r in self._functions.values()
                if r.source_dialect is source and r.target_dialect is target]

    def type_rules_for(self, source: Dialect, target: Dialect) -> List[DataTypeMappingRule]:
        return [r for r in self._types.values()
                if r.source_dialect is source and r.target_dialect is target]

    def __len__(self) -> int:
        return len(self._functions) + len(self._types)

    def map_data_type(self, source: Dialect, target: Dialect, data_type: str) -> DataTypeConversionResult:
        """
        Map a column type from source to target.

        Args:
            source: Source dialect
            target: Target dialect
            data_type: Type text such as "VARCHAR2(100 BYTE)" or "NUMBER(10,2)"

        Returns:
            DataTypeConversionResult; the type is returned unchanged on a
            registry miss
        """
        if source is target:
            return DataTypeConversionResult(data_type)

        base, args, suffix = split_type(data_type)
        rule = None
        if suffix:
            rule = self.get_type_mapping(source, target, f"{base} {suffix}")
            if rule is not None:
                suffix = ""
        if rule is None:
            rule = self.get_type_mapping(source, target, base)
        if rule is None:
            if source.is_oracle_family and target.is_oracle_family:
                return DataTypeConversionResult(data_type)
            return DataTypeConversionResult(
                data_type,
                warning=ConversionWarning(
                    WarningType.DATA_TYPE_MISMATCH,
                    f"No data type rule for {base}; kept as is",
                    WarningSeverity.WARNING,
                    suggestion=f"Check that {base} exists in {target.display_name}",
                ),
            )

        converted = _apply_precision(rule, args)
        if suffix and target is MYSQL and suffix.upper() in ("UNSIGNED", "ZEROFILL", "UNSIGNED ZEROFILL"):
            converted = f"{converted} {suffix.upper()}"

        warning = None
        if rule.warning_type is not None:
            warning = ConversionWarning(
                rule.warning_type, rule.warning_message or f"{base} has no exact equivalent",
                WarningSeverity.WARNING,
            )
        return DataTypeConversionResult(converted, warning, f"{base} → {converted}")


def split_type(data_type: str) -> Tuple[str, List[str], str]:
    """
    Split a type into base name, argument list and trailing words.

    "TIMESTAMP(6) WITH TIME ZONE" → ("TIMESTAMP", ["6"], "WITH TIME ZONE")
    """
    text = " ".join(data_type.split())
    match = re.match(r'([^(]*)\(([^)]*)\)(.*)$', text)
    if match:
        base, suffix = match.group(1), match.group(3)
        args = [a.strip() for a in match.group(2).split(',') if a.strip()]
    else:
        base, suffix, args = text, "", []
    base, suffix = base.strip().upper(), suffix.strip().upper()
    for modifier in (" UNSIGNED ZEROFILL", " UNSIGNED", " ZEROFILL"):
        if base.endswith(modifier):
            base = base[:-len(modifier)]
            suffix = f"{modifier.strip()} {suffix}".strip()
            break
    return base, args, suffix


def _int_arg(args: List[str], index: int) -> Optional[int]:
    if len(args) <= index:
        return None
    match = re.match(r'\s*(\d+)', args[index])
    return int(match.group(1)) if match else None


def number_to_mysql(precision: Optional[int], scale: Optional[int]) -> str:
    """Smallest sufficient MySQL type for Oracle NUMBER(p, s)."""
    if precision is None:
        return "DECIMAL"
    if scale:
        return f"DECIMAL({precision},{scale})"
    if precision <= 3:
        return "TINYINT"
    if precision <= 5:
        return "SMALLINT"
    if precision <= 7:
        return "MEDIUMINT"
    if precision <= 10:
        return "INT"
    if precision <= 19:
        return "BIGINT"
    return f"DECIMAL({precision})"


def number_to_postgresql(precision: Optional[int], scale: Optional[int]) -> str:
    """Smallest sufficient PostgreSQL type for Oracle NUMBER(p, s)."""
    if precision is None:
        return "NUMERIC"
    if scale:
        return f"NUMERIC({precision},{scale})"
    if precision <= 5:
        return "SMALLINT"
    if precision <= 10:
        return "INTEGER"
    if precision <= 19:
        return "BIGINT"
    return f"NUMERIC({precision})"


def varchar2(size: Optional[int]) -> str:
    """Oracle VARCHAR2 with BYTE or CHAR length semantics."""
    size = size or 255
    unit = "CHAR" if size > 4000 else "BYTE"
    return f"VARCHAR2({size} {unit})"


def _apply_precision(rule: DataTypeMappingRule, args: List[str]) -> str:
    target = rule.target_type
    handler = rule.precision_handler

    if handler is PrecisionHandler.MAP_TO_INTEGER:
        precision, scale = _int_arg(args, 0), _int_arg(args, 1)
        if rule.target_dialect is MYSQL:
            return number_to_mysql(precision, scale)
        if rule.target_dialect is POSTGRESQL:
            return number_to_postgresql(precision, scale)
        return f"{target}({','.join(args)})" if args else target

    if handler is PrecisionHandler.CONVERT:
        if target == "VARCHAR2":
            return varchar2(_int_arg(args, 0))
        if target == "DATE":
            precision = _int_arg(args, 0)
            return f"TIMESTAMP({precision})" if precision else "DATE"
        return f"{target}({','.join(args)})" if args else target

    if handler is PrecisionHandler.PRESERVE and args and "(" not in target:
        cleaned = [re.sub(r'\s+(BYTE|CHAR)$', '', a, flags=re.IGNORECASE) for a in args]
        return f"{target}({','.join(cleaned)})"

    return target


def _fn(source, target, src_name, tgt_name, **kwargs) -> FunctionMappingRule:
    return FunctionMappingRule(source, target, src_name, tgt_name, **kwargs)


_FORMAT_WARNING = dict(
    parameter_transform=ParameterTransform.DATE_FORMAT_CONVERT,
    warning_type=WarningType.SYNTAX_DIFFERENCE,
    warning_message="Date format strings differ between dialects and were not translated",
    suggestion="Review the format mask manually",
    is_partial_support=True,
)

_CASE_WARNING = dict(
    parameter_transform=ParameterTransform.TO_CASE_WHEN,
    warning_type=WarningType.SYNTAX_DIFFERENCE,
)


def _oracle_function_rules() -> List[FunctionMappingRule]:
    return [
        # Oracle → MySQL
        _fn(ORACLE, MYSQL, "NVL", "IFNULL", max_args=2),
        _fn(ORACLE, MYSQL, "NVL2", CASE_WHEN, warning_message="NVL2 is rewritten as CASE WHEN", **_CASE_WARNING),
        _fn(ORACLE, MYSQL, "DECODE", CASE_WHEN, warning_message="DECODE is rewritten as CASE", **_CASE_WARNING),
        _fn(ORACLE, MYSQL, "TO_CHAR", "DATE_FORMAT", **_FORMAT_WARNING),
        _fn(ORACLE, MYSQL, "TO_DATE", "STR_TO_DATE", **_FORMAT_WARNING),
        _fn(ORACLE, MYSQL, "LISTAGG", "GROUP_CONCAT"),
        _fn(ORACLE, MYSQL, "SUBSTR", "SUBSTRING"),
        _fn(ORACLE, MYSQL, "INSTR", "LOCATE", parameter_transform=ParameterTransform.SWAP_FIRST_TWO, max_args=2,
            suggestion="LOCATE takes the search string first"),
        _fn(ORACLE, MYSQL, "LENGTH", "CHAR_LENGTH"),
        _fn(ORACLE, MYSQL, "TRUNC", "TRUNCATE", is_partial_support=True,
            warning_type=WarningType.PARTIAL_SUPPORT,
            warning_message="TRUNCATE only covers numeric TRUNC; date truncation needs DATE()",
            suggestion="Use DATE(x) or DATE_FORMAT for TRUNC on dates"),
        _fn(ORACLE, MYSQL, "SYSDATE", "NOW"),
        _fn(ORACLE, MYSQL, "SYSTIMESTAMP", "NOW"),
        # Oracle → PostgreSQL
        _fn(ORACLE, POSTGRESQL, "NVL", "COALESCE"),
        _fn(ORACLE, POSTGRESQL, "NVL2", CASE_WHEN, warning_message="NVL2 is rewritten as CASE WHEN", **_CASE_WARNING),
        _fn(ORACLE, POSTGRESQL, "DECODE", CASE_WHEN, warning_message="DECODE is rewritten as CASE", **_CASE_WARNING),
        _fn(ORACLE, POSTGRESQL, "TO_CHAR", "TO_CHAR"),
        _fn(ORACLE, POSTGRESQL, "TO_DATE", "TO_TIMESTAMP", **_FORMAT_WARNING),
        _fn(ORACLE, POSTGRESQL, "LISTAGG", "STRING_AGG"),
        _fn(ORACLE, POSTGRESQL, "INSTR", "STRPOS", max_args=2),
        _fn(ORACLE, POSTGRESQL, "SYSDATE", "CURRENT_TIMESTAMP"),
        _fn(ORACLE, POSTGRESQL, "SYSTIMESTAMP", "CURRENT_TIMESTAMP"),
    ]


def _mysql_function_rules() -> List[FunctionMappingRule]:
    return [
        # MySQL → Oracle
        _fn(MYSQL, ORACLE, "IFNULL", "NVL"),
        _fn(MYSQL, ORACLE, "COALESCE", "NVL", max_args=2),
        _fn(MYSQL, ORACLE, "DATE_FORMAT", "TO_CHAR", **_FORMAT_WARNING),
        _fn(MYSQL, ORACLE, "STR_TO_DATE", "TO_DATE", **_FORMAT_WARNING),
        _fn(MYSQL, ORACLE, "GROUP_CONCAT", "LISTAGG"),
        _fn(MYSQL, ORACLE, "SUBSTRING", "SUBSTR"),
        _fn(MYSQL, ORACLE, "LOCATE", "INSTR", parameter_transform=ParameterTransform.SWAP_FIRST_TWO, max_args=2),
        _fn(MYSQL, ORACLE, "CHAR_LENGTH", "LENGTH"),
        _fn(MYSQL, ORACLE, "TRUNCATE", "TRUNC"),
        _fn(MYSQL, ORACLE, "IF", CASE_WHEN, warning_message="IF is rewritten as CASE WHEN", **_CASE_WARNING),
        _fn(MYSQL, ORACLE, "NOW", "SYSDATE"),
        # MySQL → PostgreSQL
        _fn(MYSQL, POSTGRESQL, "IFNULL", "COALESCE"),
        _fn(MYSQL, POSTGRESQL, "DATE_FORMAT", "TO_CHAR", **_FORMAT_WARNING),
        _fn(MYSQL, POSTGRESQL, "STR_TO_DATE", "TO_TIMESTAMP", **_FORMAT_WARNING),
        _fn(MYSQL, POSTGRESQL, "GROUP_CONCAT", "STRING_AGG"),
        _fn(MYSQL, POSTGRESQL, "LOCATE", "STRPOS", parameter_transform=ParameterTransform.SWAP_FIRST_TWO, max_args=2),
        _fn(MYSQL, POSTGRESQL, "CHAR_LENGTH", "LENGTH"),
        _fn(MYSQL, POSTGRESQL, "TRUNCATE", "TRUNC"),
        _fn(MYSQL, POSTGRESQL, "IF", CASE_WHEN, warning_message="IF is rewritten as CASE WHEN", **_CASE_WARNING),
    ]


def _postgresql_function_rules() -> List[FunctionMappingRule]:
    return [
        # PostgreSQL → Oracle
        _fn(POSTGRESQL, ORACLE, "COALESCE", "NVL", max_args=2),
        _fn(POSTGRESQL, ORACLE, "TO_TIMESTAMP", "TO_DATE"),
        _fn(POSTGRESQL, ORACLE, "STRING_AGG", "LISTAGG"),
        _fn(POSTGRESQL, ORACLE, "STRPOS", "INSTR", max_args=2),
        _fn(POSTGRESQL, ORACLE, "NOW", "SYSDATE"),
        _fn(POSTGRESQL, ORACLE, "SUBSTRING", "SUBSTR"),
        # PostgreSQL → MySQL
        _fn(POSTGRESQL, MYSQL, "COALESCE", "IFNULL", max_args=2),
        _fn(POSTGRESQL, MYSQL, "TO_CHAR", "DATE_FORMAT", **_FORMAT_WARNING),
        _fn(POSTGRESQL, MYSQL, "TO_TIMESTAMP", "STR_TO_DATE", **_FORMAT_WARNING),
        _fn(POSTGRESQL, MYSQL, "STRING_AGG", "GROUP_CONCAT"),
        _fn(POSTGRESQL, MYSQL, "STRPOS", "LOCATE", parameter_transform=ParameterTransform.SWAP_FIRST_TWO, max_args=2),
        _fn(POSTGRESQL, MYSQL, "LENGTH", "CHAR_LENGTH"),
    ]


def _ty(source, target, src_type, tgt_type, handler=PrecisionHandler.DROP, **kwargs) -> DataTypeMappingRule:
    return DataTypeMappingRule(source, target, src_type, tgt_type, handler, **kwargs)


P = PrecisionHandler


def _oracle_type_rules() -> List[DataTypeMappingRule]:
    rules = []
    for target, numeric, text, blob, raw, date, tz, interval, xml, double, real in (
        (MYSQL, "DECIMAL", "LONGTEXT", "LONGBLOB", "VARBINARY", "DATETIME", "DATETIME",
         "VARCHAR(30)", "LONGTEXT", "DOUBLE", "FLOAT"),
        (POSTGRESQL, "NUMERIC", "TEXT", "BYTEA", "BYTEA", "TIMESTAMP", "TIMESTAMPTZ",
         "INTERVAL", "XML", "DOUBLE PRECISION", "REAL"),
    ):
        rules += [
            _ty(ORACLE, target, "NUMBER", numeric, P.MAP_TO_INTEGER),
            _ty(ORACLE, target, "BINARY_FLOAT", real),
            _ty(ORACLE, target, "BINARY_DOUBLE", double),
            _ty(ORACLE, target, "INTEGER", "INT" if target is MYSQL else "INTEGER"),
            _ty(ORACLE, target, "FLOAT", double),
            _ty(ORACLE, target, "VARCHAR2", "VARCHAR", P.PRESERVE),
            _ty(ORACLE, target, "NVARCHAR2", "VARCHAR", P.PRESERVE),
            _ty(ORACLE, target, "CHAR", "CHAR", P.PRESERVE),
            _ty(ORACLE, target, "NCHAR", "CHAR", P.PRESERVE),
            _ty(ORACLE, target, "CLOB", text),
            _ty(ORACLE, target, "NCLOB", text),
            _ty(ORACLE, target, "LONG", text),
            _ty(ORACLE, target, "BLOB", blob),
            _ty(ORACLE, target, "RAW", raw, P.PRESERVE if target is MYSQL else P.DROP),
            _ty(ORACLE, target, "LONG RAW", blob),
            _ty(ORACLE, target, "DATE", date),
            _ty(ORACLE, target, "TIMESTAMP", "DATETIME" if target is MYSQL else "TIMESTAMP", P.PRESERVE),
            _ty(ORACLE, target, "TIMESTAMP WITH TIME ZONE", tz),
            _ty(ORACLE, target, "TIMESTAMP WITH LOCAL TIME ZONE", date if target is MYSQL else "TIMESTAMP"),
            _ty(ORACLE, target, "INTERVAL YEAR TO MONTH", "VARCHAR(20)" if target is MYSQL else "INTERVAL"),
            _ty(ORACLE, target, "INTERVAL DAY TO SECOND", interval),
            _ty(ORACLE, target, "ROWID", "VARCHAR(18)"),
            _ty(ORACLE, target, "UROWID", "VARCHAR(4000)"),
            _ty(ORACLE, target, "XMLTYPE", xml),
            _ty(ORACLE, target, "BFILE", "VARCHAR(255)",
                warning_type=WarningType.UNSUPPORTED_FUNCTION,
                warning_message=f"BFILE is not supported by {target.display_name}; stored as a file path"),
        ]
    return rules


def _mysql_type_rules() -> List[DataTypeMappingRule]:
    return [
        # MySQL → Oracle
        _ty(MYSQL, ORACLE, "TINYINT", "NUMBER(3)"),
        _ty(MYSQL, ORACLE, "SMALLINT", "NUMBER(5)"),
        _ty(MYSQL, ORACLE, "MEDIUMINT", "NUMBER(7)"),
        _ty(MYSQL, ORACLE, "INT", "NUMBER(10)"),
        _ty(MYSQL, ORACLE, "INTEGER", "NUMBER(10)"),
        _ty(MYSQL, ORACLE, "BIGINT", "NUMBER(19)"),
        _ty(MYSQL, ORACLE, "DECIMAL", "NUMBER", P.PRESERVE),
        _ty(MYSQL, ORACLE, "NUMERIC", "NUMBER", P.PRESERVE),
        _ty(MYSQL, ORACLE, "FLOAT", "BINARY_FLOAT"),
        _ty(MYSQL, ORACLE, "DOUBLE", "BINARY_DOUBLE"),
        _ty(MYSQL, ORACLE, "VARCHAR", "VARCHAR2", P.CONVERT),
        _ty(MYSQL, ORACLE, "CHAR", "CHAR", P.PRESERVE),
        _ty(MYSQL, ORACLE, "TEXT", "CLOB"),
        _ty(MYSQL, ORACLE, "TINYTEXT", "VARCHAR2(255 BYTE)"),
        _ty(MYSQL, ORACLE, "MEDIUMTEXT", "CLOB"),
        _ty(MYSQL, ORACLE, "LONGTEXT", "CLOB"),
        _ty(MYSQL, ORACLE, "BLOB", "BLOB"),
        _ty(MYSQL, ORACLE, "TINYBLOB", "RAW(255)"),
        _ty(MYSQL, ORACLE, "MEDIUMBLOB", "BLOB"),
        _ty(MYSQL, ORACLE, "LONGBLOB", "BLOB"),
        _ty(MYSQL, ORACLE, "VARBINARY", "RAW", P.PRESERVE),
        _ty(MYSQL, ORACLE, "BINARY", "RAW", P.PRESERVE),
        _ty(MYSQL, ORACLE, "DATE", "DATE"),
        _ty(MYSQL, ORACLE, "DATETIME", "DATE", P.CONVERT),
        _ty(MYSQL, ORACLE, "TIMESTAMP", "TIMESTAMP", P.PRESERVE),
        _ty(MYSQL, ORACLE, "TIME", "VARCHAR2(15 BYTE)"),
        _ty(MYSQL, ORACLE, "YEAR", "NUMBER(4)"),
        _ty(MYSQL, ORACLE, "BOOLEAN", "NUMBER(1)"),
        _ty(MYSQL, ORACLE, "BOOL", "NUMBER(1)"),
        _ty(MYSQL, ORACLE, "BIT", "NUMBER(1)"),
        _ty(MYSQL, ORACLE, "ENUM", "VARCHAR2(255 BYTE)",
            warning_type=WarningType.SYNTAX_DIFFERENCE,
            warning_message="ENUM becomes VARCHAR2; add a CHECK constraint for the allowed values"),
        _ty(MYSQL, ORACLE, "SET", "VARCHAR2(255 BYTE)",
            warning_type=WarningType.SYNTAX_DIFFERENCE,
            warning_message="SET has no Oracle equivalent; stored as VARCHAR2"),
        _ty(MYSQL, ORACLE, "JSON", "CLOB"),
        # MySQL → PostgreSQL
        _ty(MYSQL, POSTGRESQL, "TINYINT", "SMALLINT"),
        _ty(MYSQL, POSTGRESQL, "SMALLINT", "SMALLINT"),
        _ty(MYSQL, POSTGRESQL, "MEDIUMINT", "INTEGER"),
        _ty(MYSQL, POSTGRESQL, "INT", "INTEGER"),
        _ty(MYSQL, POSTGRESQL, "INTEGER", "INTEGER"),
        _ty(MYSQL, POSTGRESQL, "BIGINT", "BIGINT"),
        _ty(MYSQL, POSTGRESQL, "DECIMAL", "NUMERIC", P.PRESERVE),
        _ty(MYSQL, POSTGRESQL, "NUMERIC", "NUMERIC", P.PRESERVE),
        _ty(MYSQL, POSTGRESQL, "FLOAT", "REAL"),
        _ty(MYSQL, POSTGRESQL, "DOUBLE", "DOUBLE PRECISION"),
        _ty(MYSQL, POSTGRESQL, "VARCHAR", "VARCHAR", P.PRESERVE),
        _ty(MYSQL, POSTGRESQL, "CHAR", "CHAR", P.PRESERVE),
        _ty(MYSQL, POSTGRESQL, "TEXT", "TEXT"),
        _ty(MYSQL, POSTGRESQL, "TINYTEXT", "TEXT"),
        _ty(MYSQL, POSTGRESQL, "MEDIUMTEXT", "TEXT"),
        _ty(MYSQL, POSTGRESQL, "LONGTEXT", "TEXT"),
        _ty(MYSQL, POSTGRESQL, "BLOB", "BYTEA"),
        _ty(MYSQL, POSTGRESQL, "TINYBLOB", "BYTEA"),
        _ty(MYSQL, POSTGRESQL, "MEDIUMBLOB", "BYTEA"),
        _ty(MYSQL, POSTGRESQL, "LONGBLOB", "BYTEA"),
        _ty(MYSQL, POSTGRESQL, "VARBINARY", "BYTEA"),
        _ty(MYSQL, POSTGRESQL, "BINARY", "BYTEA"),
        _ty(MYSQL, POSTGRESQL, "DATE", "DATE"),
        _ty(MYSQL, POSTGRESQL, "DATETIME", "TIMESTAMP", P.PRESERVE),
        _ty(MYSQL, POSTGRESQL, "TIMESTAMP", "TIMESTAMP", P.PRESERVE),
        _ty(MYSQL, POSTGRESQL, "TIME", "TIME"),
        _ty(MYSQL, POSTGRESQL, "YEAR", "INTEGER"),
        _ty(MYSQL, POSTGRESQL, "BOOLEAN", "BOOLEAN"),
        _ty(MYSQL, POSTGRESQL, "BOOL", "BOOLEAN"),
        _ty(MYSQL, POSTGRESQL, "BIT", "BIT", P.PRESERVE),
        _ty(MYSQL, POSTGRESQL, "ENUM", "VARCHAR(255)",
            warning_type=WarningType.SYNTAX_DIFFERENCE,
            warning_message="ENUM becomes VARCHAR; use a CHECK constraint or CREATE TYPE ... AS ENUM"),
        _ty(MYSQL, POSTGRESQL, "SET", "VARCHAR(255)"),
        _ty(MYSQL, POSTGRESQL, "JSON", "JSONB"),
    ]


def _postgresql_type_rules() -> List[DataTypeMappingRule]:
    return [
        # PostgreSQL → Oracle
        _ty(POSTGRESQL, ORACLE, "SMALLINT", "NUMBER(5)"),
        _ty(POSTGRESQL, ORACLE, "INT2", "NUMBER(5)"),
        _ty(POSTGRESQL, ORACLE, "INTEGER", "NUMBER(10)"),
        _ty(POSTGRESQL, ORACLE, "INT", "NUMBER(10)"),
        _ty(POSTGRESQL, ORACLE, "INT4", "NUMBER(10)"),
        _ty(POSTGRESQL, ORACLE, "BIGINT", "NUMBER(19)"),
        _ty(POSTGRESQL, ORACLE, "INT8", "NUMBER(19)"),
        _ty(POSTGRESQL, ORACLE, "NUMERIC", "NUMBER", P.PRESERVE),
        _ty(POSTGRESQL, ORACLE, "DECIMAL", "NUMBER", P.PRESERVE),
        _ty(POSTGRESQL, ORACLE, "REAL", "BINARY_FLOAT"),
        _ty(POSTGRESQL, ORACLE, "DOUBLE PRECISION", "BINARY_DOUBLE"),
        _ty(POSTGRESQL, ORACLE, "SERIAL", "NUMBER(10)",
            warning_type=WarningType.SYNTAX_DIFFERENCE,
            warning_message="SERIAL needs a sequence or an identity column in Oracle"),
        _ty(POSTGRESQL, ORACLE, "BIGSERIAL", "NUMBER(19)",
            warning_type=WarningType.SYNTAX_DIFFERENCE,
            warning_message="BIGSERIAL needs a sequence or an identity column in Oracle"),
        _ty(POSTGRESQL, ORACLE, "VARCHAR", "VARCHAR2", P.CONVERT),
        _ty(POSTGRESQL, ORACLE, "CHARACTER VARYING", "VARCHAR2", P.CONVERT),
        _ty(POSTGRESQL, ORACLE, "CHAR", "CHAR", P.PRESERVE),
        _ty(POSTGRESQL, ORACLE, "TEXT", "CLOB"),
        _ty(POSTGRESQL, ORACLE, "BYTEA", "BLOB"),
        _ty(POSTGRESQL, ORACLE, "DATE", "DATE"),
        _ty(POSTGRESQL, ORACLE, "TIMESTAMP", "TIMESTAMP", P.PRESERVE),
        _ty(POSTGRESQL, ORACLE, "TIMESTAMPTZ", "TIMESTAMP WITH TIME ZONE"),
        _ty(POSTGRESQL, ORACLE, "TIMESTAMP WITH TIME ZONE", "TIMESTAMP WITH TIME ZONE"),
        _ty(POSTGRESQL, ORACLE, "TIME", "VARCHAR2(15 BYTE)"),
        _ty(POSTGRESQL, ORACLE, "INTERVAL", "INTERVAL DAY TO SECOND"),
        _ty(POSTGRESQL, ORACLE, "BOOLEAN", "NUMBER(1)"),
        _ty(POSTGRESQL, ORACLE, "BOOL", "NUMBER(1)"),
        _ty(POSTGRESQL, ORACLE, "UUID", "RAW(16)"),
        _ty(POSTGRESQL, ORACLE, "JSON", "CLOB"),
        _ty(POSTGRESQL, ORACLE, "JSONB", "CLOB"),
        _ty(POSTGRESQL, ORACLE, "XML", "XMLTYPE"),
        _ty(POSTGRESQL, ORACLE, "ARRAY", "VARCHAR2(4000 BYTE)",
            warning_type=WarningType.UNSUPPORTED_FUNCTION,
            warning_message="PostgreSQL arrays are not supported by Oracle; stored as text"),
        # PostgreSQL → MySQL
        _ty(POSTGRESQL, MYSQL, "SMALLINT", "SMALLINT"),
        _ty(POSTGRESQL, MYSQL, "INT2", "SMALLINT"),
        _ty(POSTGRESQL, MYSQL, "INTEGER", "INT"),
        _ty(POSTGRESQL, MYSQL, "INT", "INT"),
        _ty(POSTGRESQL, MYSQL, "INT4", "INT"),
        _ty(POSTGRESQL, MYSQL, "BIGINT", "BIGINT"),
        _ty(POSTGRESQL, MYSQL, "INT8", "BIGINT"),
        _ty(POSTGRESQL, MYSQL, "NUMERIC", "DECIMAL", P.PRESERVE),
        _ty(POSTGRESQL, MYSQL, "DECIMAL", "DECIMAL", P.PRESERVE),
        _ty(POSTGRESQL, MYSQL, "REAL", "FLOAT"),
        _ty(POSTGRESQL, MYSQL, "DOUBLE PRECISION", "DOUBLE"),
        _ty(POSTGRESQL, MYSQL, "SERIAL", "INT AUTO_INCREMENT"),
        _ty(POSTGRESQL, MYSQL, "BIGSERIAL", "BIGINT AUTO_INCREMENT"),
        _ty(POSTGRESQL, MYSQL, "VARCHAR", "VARCHAR", P.PRESERVE),
        _ty(POSTGRESQL, MYSQL, "CHARACTER VARYING", "VARCHAR", P.PRESERVE),
        _ty(POSTGRESQL, MYSQL, "CHAR", "CHAR", P.PRESERVE),
        _ty(POSTGRESQL, MYSQL, "TEXT", "LONGTEXT"),
        _ty(POSTGRESQL, MYSQL, "BYTEA", "LONGBLOB"),
        _ty(POSTGRESQL, MYSQL, "DATE", "DATE"),
        _ty(POSTGRESQL, MYSQL, "TIMESTAMP", "DATETIME", P.PRESERVE),
        _ty(POSTGRESQL, MYSQL, "TIMESTAMPTZ", "DATETIME"),
        _ty(POSTGRESQL, MYSQL, "TIMESTAMP WITH TIME ZONE", "DATETIME"),
        _ty(POSTGRESQL, MYSQL, "TIME", "TIME"),
        _ty(POSTGRESQL, MYSQL, "INTERVAL", "VARCHAR(50)"),
        _ty(POSTGRESQL, MYSQL, "BOOLEAN", "TINYINT(1)"),
        _ty(POSTGRESQL, MYSQL, "BOOL", "TINYINT(1)"),
        _ty(POSTGRESQL, MYSQL, "UUID", "CHAR(36)"),
        _ty(POSTGRESQL, MYSQL, "JSON", "JSON"),
        _ty(POSTGRESQL, MYSQL, "JSONB", "JSON"),
        _ty(POSTGRESQL, MYSQL, "XML", "LONGTEXT"),
        _ty(POSTGRESQL, MYSQL, "ARRAY", "JSON"),
    ]


def _with_tibero(rules: List) -> List:
    """Tibero shares every Oracle rule in both directions."""
    copies = []
    for rule in rules:
        if rule.source_dialect is ORACLE:
            copies.append(replace(rule, source_dialect=TIBERO))
        if rule.target_dialect is ORACLE:
            copies.append(replace(rule, target_dialect=TIBERO))
    return rules + copies


def build_default_registry() -> MappingRegistry:
    """
    Build the built-in registry.

    Returns:
        A MappingRegistry holding every function and data type rule
    """
    function_rules = _with_tibero(
        _oracle_function_rules() + _mysql_function_rules() + _postgresql_function_rules()
    )
    type_rules = _with_tibero(
        _oracle_type_rules() + _mysql_type_rules() + _postgresql_type_rules()
    )
    return MappingRegistry(function_rules, type_rules)
