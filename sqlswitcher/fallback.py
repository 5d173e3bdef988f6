"""
Regex-driven conversion for statements the parser cannot model.

The FallbackTransformer runs a fixed sequence of textual stages over one
statement. Each stage is idempotent and works outside single-quoted
literals; the transformer as a whole never raises.
"""

import logging
import re
from typing import Callable, List, Optional, Tuple

from .ddl_extractors import balanced, split_top_level
from .function_mappings import CASE_WHEN, MappingRegistry, ParameterTransform
from .models import ConversionContext, ConversionError, Dialect, WarningType
from .sql_text import first_keyword, literal_spans, sub_outside_literals

logger = logging.getLogger(__name__)

_ORACLE_STORAGE_CLAUSES = [
    (re.compile(r'\s+TABLESPACE\s+[`"]?[\w$#]+[`"]?', re.IGNORECASE), "TABLESPACE"),
    (re.compile(r'\s+(?:PCTFREE|PCTUSED|INITRANS|MAXTRANS)\s+\d+', re.IGNORECASE), "PCTFREE/PCTUSED/INITRANS/MAXTRANS"),
    (re.compile(r'\s+(?:COMPRESS(?:\s+FOR\s+\w+)?|NOCOMPRESS)\b(?!\s*\()', re.IGNORECASE), "COMPRESS"),
    (re.compile(r'\s+(?:NO)?LOGGING\b', re.IGNORECASE), "LOGGING"),
    (re.compile(r'\s+(?:NOPARALLEL|PARALLEL(?:\s+\d+)?)\b(?!\s*\()', re.IGNORECASE), "PARALLEL"),
    (re.compile(r'\s+NOCACHE\b|(?<=\))\s+CACHE\b', re.IGNORECASE), "CACHE"),
    (re.compile(r'\s+(?:NO)?MONITORING\b', re.IGNORECASE), "MONITORING"),
    (re.compile(r'\s+SEGMENT\s+CREATION\s+(?:IMMEDIATE|DEFERRED)', re.IGNORECASE), "SEGMENT CREATION"),
    (re.compile(r'\s+(?:ENABLE|DISABLE)\s+ROW\s+MOVEMENT', re.IGNORECASE), "ROW MOVEMENT"),
    (re.compile(r'\s+USING\s+INDEX(?:\s+[`"]?[\w$#]+[`"]?(?:\.[`"]?[\w$#]+[`"]?)?)?(?=\s|$)', re.IGNORECASE),
     "USING INDEX"),
    (re.compile(r'\s+(?:ENABLE|DISABLE)(?:\s+(?:NO)?VALIDATE)?(?=\s*(?:,|\)|$))', re.IGNORECASE),
     "constraint state"),
]
_MYSQL_TABLE_OPTIONS = re.compile(
    r'\s+(?:DEFAULT\s+)?(?:ENGINE|CHARSET|CHARACTER\s+SET|COLLATE|AUTO_INCREMENT|ROW_FORMAT)\s*=?\s*[\w$]+',
    re.IGNORECASE,
)
_HINT = re.compile(r'/\*\+.*?\*/\s*', re.DOTALL)
_STORAGE_KEYWORD = re.compile(r'\bSTORAGE\s*\(', re.IGNORECASE)

_COMMENT_ON = re.compile(r'^\s*COMMENT\s+ON\s+(?:COLUMN|TABLE)\b', re.IGNORECASE)
_SCHEMA_PREFIX = re.compile(
    r'\b(FROM|JOIN|INTO|UPDATE|TABLE|ON|EXISTS|REFERENCES|VIEW)(\s+)[`"]?[\w$#]+[`"]?\.(?=[`"]?[\w$#]+)',
    re.IGNORECASE,
)
_PUBLIC_PREFIX = re.compile(r'\bpublic\.(?=[`"]?\w)', re.IGNORECASE)

_ROWNUM_ONLY = re.compile(r'\s+WHERE\s+ROWNUM\s*(<=|<|=)\s*(\d+)(?=\s*(?:ORDER\s+BY\b|GROUP\s+BY\b|$))',
                          re.IGNORECASE)
_ROWNUM_LEADING = re.compile(r'\bWHERE\s+ROWNUM\s*(<=|<|=)\s*(\d+)\s+AND\s+', re.IGNORECASE)
_ROWNUM_TRAILING = re.compile(r'\s+AND\s+ROWNUM\s*(<=|<|=)\s*(\d+)', re.IGNORECASE)
_LIMIT = re.compile(r'\s+LIMIT\s+(\d+)(?:\s*,\s*(\d+)|\s+OFFSET\s+(\d+))?\s*$', re.IGNORECASE)
_FROM_DUAL = re.compile(r'\s+FROM\s+DUAL\b', re.IGNORECASE)
_MINUS = re.compile(r'\bMINUS\b', re.IGNORECASE)
_ORACLE_SEQUENCE = re.compile(r'\b([\w$#]+)\.(NEXTVAL|CURRVAL)\b', re.IGNORECASE)
_PG_SEQUENCE = re.compile(r"\b(nextval|currval)\s*\(\s*'([\w$.]+)'(?:::regclass)?\s*\)", re.IGNORECASE)

_NILADIC = {"SYSDATE", "SYSTIMESTAMP", "CURRENT_TIMESTAMP", "CURRENT_DATE"}
_DDL_KEYWORDS = {"CREATE", "ALTER"}


def _bound(op: str, value: int) -> Optional[int]:
    if op == "<=":
        return value
    if op == "<":
        return max(value - 1, 0)
    if value == 1:
        return 1
    return None


def _in_literal(spans: List[Tuple[int, int]], position: int) -> bool:
    return any(start <= position < end for start, end in spans)


def rewrite_calls(text: str, name: str, build: Callable[[List[str]], str]) -> Tuple[str, int]:
    """
    Rewrite every call NAME(args) outside literals.

    Args:
        text: SQL text
        name: Function name, matched case-insensitively as a whole word
        build: Callable receiving the argument texts and returning the new call

    Returns:
        Tuple of (new_text, number_of_rewritten_calls)
    """
    pattern = re.compile(r'(?<![\w.$#])' + re.escape(name) + r'\s*\(', re.IGNORECASE)
    count = 0
    position = 0
    while True:
        match = pattern.search(text, position)
        if not match:
            break
        if _in_literal(literal_spans(text), match.start()):
            position = match.end()
            continue
        try:
            inner, end = balanced(text, match.end() - 1)
        except ConversionError:
            break
        replacement = build(split_top_level(inner))
        text = text[:match.start()] + replacement + text[end:]
        position = match.start() + 1
        count += 1
    return text, count


def substitute_functions(text: str, ctx: ConversionContext, registry: MappingRegistry) -> str:
    """
    Whole-word function renames from custom mappings and the registry.

    Calls whose rewrite is structural (CASE_WHEN) are flagged instead.
    """
    for source_name, target_name in ctx.options.custom_mappings.items():
        text, n = rewrite_calls(text, source_name, lambda args, t=target_name: f"{t}({', '.join(args)})")
        if n:
            ctx.rule(f"{source_name} → {target_name} (custom)")

    for rule in sorted(registry.function_rules_for(ctx.source, ctx.target),
                       key=lambda r: len(r.source_function), reverse=True):
        source_name = rule.source_function
        if source_name in ctx.options.custom_mappings:
            continue
        target_name = rule.target_function

        if rule.target_function == CASE_WHEN or rule.parameter_transform is ParameterTransform.TO_CASE_WHEN:
            if re.search(r'\b' + re.escape(source_name) + r'\s*\(', text, re.IGNORECASE):
                ctx.warn(
                    WarningType.MANUAL_REVIEW_NEEDED,
                    f"{source_name} was not expanded to CASE in text mode",
                    suggestion=f"Rewrite {source_name} as a CASE expression",
                )
            continue

        if source_name in _NILADIC:
            replacement = target_name if target_name in _NILADIC else f"{target_name}()"
            text, n = sub_outside_literals(
                re.compile(r'(?<![\w.$#])' + source_name + r'\b(?!\s*\()', re.IGNORECASE), replacement, text
            )
        elif target_name in _NILADIC:
            text, n = sub_outside_literals(
                re.compile(r'(?<![\w.$#])' + re.escape(source_name) + r'\s*\(\s*\)', re.IGNORECASE),
                target_name, text,
            )
        else:
            def build(args, rule=rule):
                if not rule.accepts(len(args)):
                    return f"{rule.source_function}({', '.join(args)})"
                if rule.parameter_transform is ParameterTransform.SWAP_FIRST_TWO and len(args) >= 2:
                    args = [args[1], args[0]] + args[2:]
                return f"{rule.target_function}({', '.join(args)})"

            before = text
            text, n = rewrite_calls(text, source_name, build)
            if text == before:
                n = 0
        if n:
            ctx.rule(rule.rule_name)
            if rule.warning_type is not None:
                ctx.warn(rule.warning_type, rule.warning_message or f"{source_name} needs review",
                         suggestion=rule.suggestion)
    return text


def substitute_types(text: str, ctx: ConversionContext, registry: MappingRegistry,
                     ddl: bool = True) -> str:
    """
    Map data type names through the registry.

    A type is only recognised after an identifier (a column definition) or
    after AS (a CAST target); outside DDL only the CAST form is rewritten.
    """
    rules = registry.type_rules_for(ctx.source, ctx.target)
    if not rules:
        return text
    names = sorted({r.source_type for r in rules}, key=len, reverse=True)
    alternation = "|".join(r"\s+".join(re.escape(p) for p in n.split()) for n in names)
    prefix = r'([\w"`\]]\s+)' if ddl else r'(\bAS\s+)'
    pattern = re.compile(prefix + r'(' + alternation + r')\b(\s*\([^)]*\))?', re.IGNORECASE)

    def _map(match):
        original = match.group(2) + (match.group(3) or "")
        result = registry.map_data_type(ctx.source, ctx.target, " ".join(original.split()))
        if result.applied_rule is None:
            return match.group(0)
        ctx.rule(result.applied_rule)
        if result.warning is not None and all(w.message != result.warning.message for w in ctx.warnings):
            ctx.report(result.warning)
        return match.group(1) + result.converted_type

    text, _ = sub_outside_literals(pattern, _map, text)
    return text


def strip_physical_clauses(sql: str, source: Dialect, target: Dialect) -> Tuple[str, List[str]]:
    """
    Remove storage clauses of the source dialect that the target does not know.

    Only CREATE/ALTER statements are touched.

    Returns:
        Tuple of (sql, names_of_removed_clauses)
    """
    removed: List[str] = []
    if source is target or (source.is_oracle_family and target.is_oracle_family):
        return sql, removed
    if first_keyword(sql) not in _DDL_KEYWORDS:
        return sql, removed
    if re.match(r'\s*CREATE\s+(?:OR\s+REPLACE\s+)?(?:(?:NON)?EDITIONABLE\s+)?'
                r'(?:SEQUENCE|TRIGGER|PROCEDURE|FUNCTION)\b', sql, re.IGNORECASE):
        return sql, removed

    if source.is_oracle_family:
        # STORAGE (...) needs a balanced scan
        while True:
            match = _STORAGE_KEYWORD.search(sql)
            if not match or _in_literal(literal_spans(sql), match.start()):
                break
            try:
                _, end = balanced(sql, match.end() - 1)
            except ConversionError:
                break
            sql = sql[:match.start()].rstrip() + sql[end:]
            if "STORAGE" not in removed:
                removed.append("STORAGE")
        for pattern, name in _ORACLE_STORAGE_CLAUSES:
            sql, n = sub_outside_literals(pattern, "", sql)
            if n and name not in removed:
                removed.append(name)
    elif source is Dialect.MYSQL:
        sql, n = sub_outside_literals(_MYSQL_TABLE_OPTIONS, "", sql)
        if n:
            removed.append("table options")
    return sql, removed


class FallbackTransformer:
    """
    Textual conversion pipeline.

    Example:
        >>> ctx = ConversionContext(Dialect.ORACLE, Dialect.MYSQL, ConversionOptions())
        >>> FallbackTransformer(build_default_registry()).transform(
        ...     "SELECT NVL(a, 0) FROM t WHERE ROWNUM <= 5", ctx)
        'SELECT IFNULL(a, 0) FROM t LIMIT 5'
    """

    def __init__(self, registry: MappingRegistry):
        self.registry = registry

    def transform(self, sql: str, ctx: ConversionContext) -> str:
        """
        Convert one statement textually.

        Args:
            sql: Statement text without the terminating semicolon
            ctx: Conversion context for warnings and applied rules

        Returns:
            Converted text, or the input unchanged when a stage fails
        """
        if ctx.source is ctx.target:
            return sql
        stages = [
            self.strip_storage_clauses,
            self.remove_comment_statements,
            self.strip_schema_prefixes,
            self.substitute_names,
            self.convert_pagination,
            self.convert_set_operations,
        ]
        text = sql
        try:
            for stage in stages:
                text = stage(text, ctx)
        except Exception as e:
            logger.warning("Fallback conversion aborted: %s", e)
            ctx.rule(f"Fallback aborted: {e}")
            return sql

        if ctx.options.strict_mode:
            ctx.warn(
                WarningType.MANUAL_REVIEW_NEEDED,
                "Statement was converted with text rules only",
                suggestion="Review the converted statement",
            )
        return text

    def strip_storage_clauses(self, sql: str, ctx: ConversionContext) -> str:
        """Stage 1: drop physical storage clauses and optimizer hints."""
        sql, removed = strip_physical_clauses(sql, ctx.source, ctx.target)
        for name in removed:
            ctx.rule(f"{name} clause removed")
        if not ctx.target.is_oracle_family:
            sql, n = _HINT.subn("", sql)
            if n:
                ctx.rule("Optimizer hints removed")
        return sql

    def remove_comment_statements(self, sql: str, ctx: ConversionContext) -> str:
        """Stage 2: comment out COMMENT ON for MySQL, which has no such statement."""
        if ctx.target is not Dialect.MYSQL or not _COMMENT_ON.match(sql):
            return sql
        ctx.warn(
            WarningType.UNSUPPORTED_STATEMENT,
            "MySQL does not support COMMENT ON; statement commented out",
            suggestion="Use the inline COMMENT clause of the column or table definition",
        )
        ctx.rule("COMMENT ON removed")
        return "\n".join("-- " + line for line in sql.splitlines())

    def strip_schema_prefixes(self, sql: str, ctx: ConversionContext) -> str:
        """Stage 3: flatten schema-qualified names for a single-schema target."""
        if ctx.source is Dialect.POSTGRESQL:
            sql, n = sub_outside_literals(_PUBLIC_PREFIX, "", sql)
            if n:
                ctx.rule("public schema prefix removed")
        elif ctx.source.is_oracle_family and ctx.target is Dialect.MYSQL:
            sql, n = sub_outside_literals(_SCHEMA_PREFIX, r'\1\2', sql)
            if n:
                ctx.rule("Schema prefixes removed")
        return sql

    def substitute_names(self, sql: str, ctx: ConversionContext) -> str:
        """Stage 4: function, sequence and data type substitution."""
        sql = substitute_functions(sql, ctx, self.registry)
        sql = substitute_types(sql, ctx, self.registry, ddl=first_keyword(sql) in _DDL_KEYWORDS)

        if ctx.source.is_oracle_family and ctx.target is Dialect.POSTGRESQL:
            sql, n = sub_outside_literals(
                _ORACLE_SEQUENCE, lambda m: f"{m.group(2).lower()}('{m.group(1)}')", sql)
            if n:
                ctx.rule("NEXTVAL → nextval()")
        elif ctx.source is Dialect.POSTGRESQL and ctx.target.is_oracle_family:
            sql, n = _PG_SEQUENCE.subn(lambda m: f"{m.group(2)}.{m.group(1).upper()}", sql)
            if n:
                ctx.rule("nextval() → NEXTVAL")
        return sql

    def convert_pagination(self, sql: str, ctx: ConversionContext) -> str:
        """Stage 5: ROWNUM → LIMIT, and LIMIT → FETCH FIRST for Oracle targets."""
        if ctx.source.is_oracle_family and not ctx.target.is_oracle_family:
            return self._rownum_to_limit(sql, ctx)
        if ctx.target.is_oracle_family and not ctx.source.is_oracle_family:
            match = _LIMIT.search(sql)
            if match:
                if match.group(2):
                    offset, count = match.group(1), match.group(2)
                else:
                    count, offset = match.group(1), match.group(3)
                clause = f" OFFSET {offset} ROWS FETCH NEXT {count} ROWS ONLY" if offset \
                    else f" FETCH FIRST {count} ROWS ONLY"
                sql = sql[:match.start()] + clause
                ctx.rule("LIMIT → FETCH FIRST")
        return sql

    def _rownum_to_limit(self, sql: str, ctx: ConversionContext) -> str:
        limit = None
        for pattern, replacement in ((_ROWNUM_ONLY, ""), (_ROWNUM_LEADING, "WHERE "), (_ROWNUM_TRAILING, "")):
            match = pattern.search(sql)
            if match:
                bound = _bound(match.group(1), int(match.group(2)))
                if bound is None:
                    continue
                sql = sql[:match.start()] + replacement + sql[match.end():]
                limit = bound
                break
        if limit is not None:
            sql = f"{sql.rstrip()} LIMIT {limit}"
            ctx.rule("ROWNUM → LIMIT")
        if re.search(r'\bROWNUM\b', sql, re.IGNORECASE):
            ctx.warn(
                WarningType.MANUAL_REVIEW_NEEDED,
                "ROWNUM could not be converted to LIMIT",
                suggestion="Rewrite the pagination with LIMIT/OFFSET or ROW_NUMBER()",
            )
        return sql

    def convert_set_operations(self, sql: str, ctx: ConversionContext) -> str:
        """Stage 6: remove FROM DUAL and translate MINUS for non-Oracle targets."""
        if not ctx.source.is_oracle_family or ctx.target.is_oracle_family:
            return sql
        sql, n = sub_outside_literals(_FROM_DUAL, "", sql)
        if n:
            ctx.rule("FROM DUAL removed")
        sql, n = sub_outside_literals(_MINUS, "EXCEPT", sql)
        if n:
            ctx.rule("MINUS → EXCEPT")
        return sql
