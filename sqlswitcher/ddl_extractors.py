"""
Text extraction of DDL records.

sqlglot models plain queries well but not vendor DDL (Oracle partitions,
PL/SQL bodies, trigger headers, materialized view options), so these
statements are read into ddl_records with small, anchored regexes and a
parenthesis-aware scanner.
"""

import logging
import re
from typing import List, Optional, Tuple

from .ddl_records import (
    BuildOption, CheckConstraint, ColumnInfo, ForeignKey, IndexColumnOption,
    IndexInfo, MaterializedViewAction, MaterializedViewInfo, NullsPosition,
    ParameterMode, PartitionDefinition, PartitionInfo, PartitionType,
    ProcedureInfo, ProcedureParameter, RefreshMethod, RefreshTiming,
    SequenceInfo, SortOrder, TableInfo, TriggerEvent, TriggerInfo,
    TriggerTiming, UniqueConstraint,
)
from .models import ConversionError, Dialect
from .sql_text import strip_sql_comments

logger = logging.getLogger(__name__)

_NAME = r'((?:[`"]?[\w$#]+[`"]?\.)?[`"]?[\w$#]+[`"]?)'


def _clean(sql: str) -> str:
    return strip_sql_comments(sql).strip().rstrip(';').strip()


def split_name(raw: str) -> Tuple[Optional[str], str]:
    """Split "schema.name" (quoted or not) into (schema, name)."""
    parts = [p.strip('`"[] ') for p in raw.strip().split('.')]
    if len(parts) >= 2:
        return parts[-2], parts[-1]
    return None, parts[0]


def _unquote(name: str) -> str:
    return name.strip().strip('`"[]')


def balanced(text: str, start: int) -> Tuple[str, int]:
    """
    Read a parenthesised group.

    Args:
        text: Source text
        start: Index of the opening parenthesis

    Returns:
        Tuple of (inner_text, index just past the closing parenthesis)

    Raises:
        ConversionError: If the parentheses are unbalanced
    """
    depth = 0
    i = start
    quote = None
    while i < len(text):
        ch = text[i]
        if quote:
            if ch == quote:
                quote = None
        elif ch in ("'", '"', '`'):
            quote = ch
        elif ch == '(':
            depth += 1
        elif ch == ')':
            depth -= 1
            if depth == 0:
                return text[start + 1:i], i + 1
        i += 1
    raise ConversionError("Unbalanced parentheses")


def split_top_level(text: str, separator: str = ',') -> List[str]:
    """Split on separator outside parentheses and quotes."""
    parts = []
    depth = 0
    quote = None
    current = []
    for ch in text:
        if quote:
            if ch == quote:
                quote = None
        elif ch in ("'", '"', '`'):
            quote = ch
        elif ch == '(':
            depth += 1
        elif ch == ')':
            depth -= 1
        elif ch == separator and depth == 0:
            parts.append(''.join(current).strip())
            current = []
            continue
        current.append(ch)
    if ''.join(current).strip():
        parts.append(''.join(current).strip())
    return parts


def _columns(text: str) -> Tuple[str, ...]:
    return tuple(_unquote(c) for c in split_top_level(text) if c.strip())


# ---------------------------------------------------------------------------
# CREATE TABLE
# ---------------------------------------------------------------------------

_CREATE_TABLE = re.compile(
    r'^CREATE\s+(?:GLOBAL\s+TEMPORARY\s+|TEMPORARY\s+)?TABLE\s+(IF\s+NOT\s+EXISTS\s+)?' + _NAME + r'\s*\(',
    re.IGNORECASE,
)
_TYPE_CONTINUATION = {"PRECISION", "VARYING", "UNSIGNED", "ZEROFILL", "WITH", "WITHOUT",
                      "LOCAL", "TIME", "ZONE", "RAW", "TO", "MONTH", "SECOND", "DAY", "YEAR"}
_DEFAULT = re.compile(
    r"\bDEFAULT\s+('(?:[^']|'')*'(?:::\w+)?|\([^)]*\)|[-+]?[\w.]+(?:\s*\([^)]*\))?(?:::\w+)?)",
    re.IGNORECASE,
)
_COMMENT = re.compile(r"\bCOMMENT\s*=?\s*'((?:[^']|'')*)'", re.IGNORECASE)
_REFERENCES = re.compile(
    r'\bREFERENCES\s+' + _NAME + r'\s*\(([^)]*)\)'
    r'(?:\s+ON\s+DELETE\s+(CASCADE|SET\s+NULL|SET\s+DEFAULT|RESTRICT|NO\s+ACTION))?'
    r'(?:\s+ON\s+UPDATE\s+(CASCADE|SET\s+NULL|SET\s+DEFAULT|RESTRICT|NO\s+ACTION))?',
    re.IGNORECASE,
)
_CONSTRAINT_NAME = re.compile(r'^CONSTRAINT\s+([`"]?[\w$#]+[`"]?)\s+', re.IGNORECASE)


def _split_column_type(text: str) -> Tuple[str, str]:
    """Split "VARCHAR(20) NOT NULL DEFAULT 'x'" into the type and the rest."""
    match = re.match(r'\s*([A-Za-z_]\w*)', text)
    if not match:
        return "", text
    end = match.end()
    type_text = match.group(1)
    while True:
        rest = text[end:]
        stripped = rest.lstrip()
        offset = len(rest) - len(stripped)
        if stripped.startswith('('):
            inner, close = balanced(text, end + offset)
            type_text += f"({inner.strip()})"
            end = close
            continue
        word = re.match(r'([A-Za-z_]+)', stripped)
        if word and word.group(1).upper() in _TYPE_CONTINUATION:
            # "WITH" only continues a TIMESTAMP/TIME type
            if word.group(1).upper() in ("WITH", "WITHOUT") and not re.match(
                    r'(?:WITH|WITHOUT)\s+(?:LOCAL\s+)?TIME\s+ZONE', stripped, re.IGNORECASE):
                break
            type_text += " " + word.group(1).upper()
            end += offset + len(word.group(1))
            continue
        break
    return type_text, text[end:]


def _parse_column(item: str, source: Dialect) -> Tuple[ColumnInfo, dict]:
    """Parse one column definition; also returns inline constraint facts."""
    match = re.match(r'\s*([`"][^`"]+[`"]|[\w$#]+)', item)
    name = _unquote(match.group(1))
    data_type, rest = _split_column_type(item[match.end():])
    upper_rest = rest.upper()

    facts = {}
    default = _DEFAULT.search(rest)
    comment = _COMMENT.search(rest)
    auto_increment = bool(re.search(r'\bAUTO_INCREMENT\b|\bGENERATED\b.*\bAS\s+IDENTITY\b', upper_rest))
    if data_type.upper() in ("SERIAL", "BIGSERIAL", "SMALLSERIAL"):
        auto_increment = True
        data_type = {"SERIAL": "INTEGER", "BIGSERIAL": "BIGINT", "SMALLSERIAL": "SMALLINT"}[data_type.upper()]
    if re.search(r'\bPRIMARY\s+KEY\b', upper_rest):
        facts["primary_key"] = True
    if re.search(r'\bUNIQUE\b', upper_rest):
        facts["unique"] = True
    reference = _REFERENCES.search(rest)
    if reference:
        facts["references"] = reference
    check = re.search(r'\bCHECK\s*\(', rest, re.IGNORECASE)
    if check:
        facts["check"] = balanced(rest, check.end() - 1)[0].strip()

    default_value = default.group(1).strip() if default else None
    if default_value and source is Dialect.POSTGRESQL and default_value.lower().startswith("nextval("):
        auto_increment = True
        default_value = None

    column = ColumnInfo(
        name=name,
        data_type=data_type,
        not_null=bool(re.search(r'\bNOT\s+NULL\b', upper_rest)) or "primary_key" in facts,
        default=default_value,
        comment=comment.group(1) if comment else None,
        auto_increment=auto_increment,
    )
    return column, facts


def _parse_partition(text: str) -> Optional[PartitionInfo]:
    match = re.search(r'\bPARTITION\s+BY\s+(RANGE|LIST|HASH|KEY)\s*(COLUMNS\s*)?\(', text, re.IGNORECASE)
    if not match:
        return None
    kind = PartitionType(match.group(1).upper())
    if match.group(2):
        kind = PartitionType.COLUMNS if kind is PartitionType.RANGE else kind
    columns_text, end = balanced(text, match.end() - 1)
    rest = text[end:]

    count = None
    count_match = re.match(r'\s*PARTITIONS\s+(\d+)', rest, re.IGNORECASE)
    if count_match:
        count = int(count_match.group(1))
        rest = rest[count_match.end():]

    definitions = []
    body_start = re.match(r'\s*\(', rest)
    if body_start:
        body, _ = balanced(rest, body_start.end() - 1)
        for item in split_top_level(body):
            name_match = re.match(r'PARTITION\s+([`"]?[\w$#]+[`"]?)', item, re.IGNORECASE)
            if not name_match:
                continue
            values = None
            less_than = re.search(r'VALUES\s+LESS\s+THAN\s*(\(|MAXVALUE)', item, re.IGNORECASE)
            in_list = re.search(r'VALUES\s+(?:IN\s*)?\(', item, re.IGNORECASE)
            if less_than:
                if less_than.group(1) == '(':
                    values = balanced(item, less_than.end() - 1)[0].strip()
                else:
                    values = "MAXVALUE"
            elif in_list:
                values = balanced(item, in_list.end() - 1)[0].strip()
            tablespace = re.search(r'\bTABLESPACE\s+([`"]?[\w$#]+[`"]?)', item, re.IGNORECASE)
            definitions.append(PartitionDefinition(
                name=_unquote(name_match.group(1)),
                values=values,
                tablespace=_unquote(tablespace.group(1)) if tablespace else None,
            ))
    return PartitionInfo(kind, _columns(columns_text), tuple(definitions), count)


def extract_table(sql: str, source: Dialect) -> TableInfo:
    """
    Read a CREATE TABLE statement into a TableInfo.

    Column types are kept as written; the converter maps them afterwards.

    Raises:
        ConversionError: If the statement is not a column-list CREATE TABLE
    """
    text = _clean(sql)
    match = _CREATE_TABLE.match(text)
    if not match:
        raise ConversionError("Not a CREATE TABLE statement with a column list")
    schema, name = split_name(match.group(2))
    body, end = balanced(text, match.end() - 1)
    options = text[end:]

    columns: List[ColumnInfo] = []
    primary_key: Tuple[str, ...] = ()
    primary_key_name = None
    foreign_keys: List[ForeignKey] = []
    uniques: List[UniqueConstraint] = []
    checks: List[CheckConstraint] = []
    indexes: List[IndexInfo] = []

    for item in split_top_level(body):
        constraint_name = None
        named = _CONSTRAINT_NAME.match(item)
        if named:
            constraint_name = _unquote(named.group(1))
            item = item[named.end():]
        upper = item.upper()

        if upper.startswith("PRIMARY KEY"):
            primary_key = _columns(balanced(item, item.index('('))[0])
            primary_key_name = constraint_name
        elif upper.startswith("FOREIGN KEY"):
            fk_columns = _columns(balanced(item, item.index('('))[0])
            reference = _REFERENCES.search(item)
            foreign_keys.append(ForeignKey(
                name=constraint_name or f"FK_{name}_{fk_columns[0]}",
                columns=fk_columns,
                referenced_table=_unquote(reference.group(1)) if reference else "",
                referenced_columns=_columns(reference.group(2)) if reference else (),
                on_delete=reference.group(3).upper() if reference and reference.group(3) else None,
                on_update=reference.group(4).upper() if reference and reference.group(4) else None,
            ))
        elif re.match(r'UNIQUE\b', upper):
            key_name = re.match(r'UNIQUE\s+(?:KEY|INDEX)?\s*([`"]?[\w$#]+[`"]?)\s*\(', item, re.IGNORECASE)
            unique_columns = _columns(balanced(item, item.index('('))[0])
            uniques.append(UniqueConstraint(
                name=constraint_name or (_unquote(key_name.group(1)) if key_name else f"UK_{name}_{unique_columns[0]}"),
                columns=unique_columns,
            ))
        elif upper.startswith("CHECK"):
            expression = balanced(item, item.index('('))[0].strip()
            checks.append(CheckConstraint(constraint_name or f"CK_{name}_{len(checks) + 1}", expression))
        elif re.match(r'(?:KEY|INDEX|FULLTEXT|SPATIAL)\b', upper):
            key = re.match(r'(?:FULLTEXT\s+|SPATIAL\s+)?(?:KEY|INDEX)\s+([`"]?[\w$#]+[`"]?)\s*\(', item, re.IGNORECASE)
            index_columns = _columns(balanced(item, item.index('('))[0])
            indexes.append(IndexInfo(
                name=_unquote(key.group(1)) if key else f"IX_{name}_{index_columns[0]}",
                table=name,
                columns=tuple(IndexColumnOption(re.sub(r'\(\d+\)$', '', c)) for c in index_columns),
            ))
        else:
            column, facts = _parse_column(item, source)
            columns.append(column)
            if facts.get("primary_key"):
                primary_key = (column.name,)
            if facts.get("unique"):
                uniques.append(UniqueConstraint(f"UK_{name}_{column.name}", (column.name,)))
            if "references" in facts:
                reference = facts["references"]
                foreign_keys.append(ForeignKey(
                    name=f"FK_{name}_{column.name}",
                    columns=(column.name,),
                    referenced_table=_unquote(reference.group(1)),
                    referenced_columns=_columns(reference.group(2)),
                    on_delete=reference.group(3).upper() if reference.group(3) else None,
                    on_update=reference.group(4).upper() if reference.group(4) else None,
                ))
            if "check" in facts:
                checks.append(CheckConstraint(f"CK_{name}_{column.name}", facts["check"]))

    table_comment = _COMMENT.search(re.split(r"\bPARTITION\s+BY\b", options, flags=re.IGNORECASE)[0])
    return TableInfo(
        name=name,
        columns=tuple(columns),
        schema=schema,
        primary_key=primary_key,
        primary_key_name=primary_key_name,
        foreign_keys=tuple(foreign_keys),
        unique_constraints=tuple(uniques),
        check_constraints=tuple(checks),
        indexes=tuple(indexes),
        comment=table_comment.group(1) if table_comment else None,
        partition=_parse_partition(options),
        if_not_exists=bool(match.group(1)),
    )


# ---------------------------------------------------------------------------
# CREATE INDEX
# ---------------------------------------------------------------------------

_CREATE_INDEX = re.compile(
    r'^CREATE\s+(UNIQUE\s+|BITMAP\s+)?INDEX\s+(?:CONCURRENTLY\s+)?(?:IF\s+NOT\s+EXISTS\s+)?' + _NAME
    + r'\s+ON\s+(?:ONLY\s+)?' + _NAME + r'\s*(?:USING\s+\w+\s*)?\(',
    re.IGNORECASE,
)
_INDEX_COLUMN = re.compile(r'^[`"]?[\w$#]+[`"]?$')
_INDEX_KEY = re.compile(
    r'^(.+?)(?:\s+(ASC|DESC))?(?:\s+NULLS\s+(FIRST|LAST))?$',
    re.IGNORECASE | re.DOTALL,
)


def extract_index(sql: str) -> IndexInfo:
    """
    Read a CREATE INDEX statement into an IndexInfo.

    ASC/DESC and NULLS FIRST/LAST are split off every key; a key that is
    not a bare column is kept as expression text.
    """
    text = _clean(sql)
    match = _CREATE_INDEX.match(text)
    if not match:
        raise ConversionError("Not a CREATE INDEX statement")
    _, name = split_name(match.group(2))
    table_schema, table = split_name(match.group(3))
    keys_text, end = balanced(text, match.end() - 1)

    options = []
    for key in split_top_level(keys_text):
        if not key.strip():
            continue
        ordered = _INDEX_KEY.match(key.strip())
        key_text = ordered.group(1).strip()
        is_expression = not _INDEX_COLUMN.match(key_text)
        options.append(IndexColumnOption(
            column=key_text if is_expression else _unquote(key_text),
            sort_order=SortOrder((ordered.group(2) or "ASC").upper()),
            nulls_position=NullsPosition(ordered.group(3).upper()) if ordered.group(3) else None,
            is_expression=is_expression,
        ))

    tablespace = re.search(r'\bTABLESPACE\s+([`"]?[\w$#]+[`"]?)', text[end:], re.IGNORECASE)
    return IndexInfo(
        name=name,
        table=f"{table_schema}.{table}" if table_schema else table,
        columns=tuple(options),
        unique=bool(match.group(1)) and match.group(1).strip().upper() == "UNIQUE",
        tablespace=_unquote(tablespace.group(1)) if tablespace else None,
    )


# ---------------------------------------------------------------------------
# CREATE SEQUENCE
# ---------------------------------------------------------------------------

_CREATE_SEQUENCE = re.compile(r'^CREATE\s+SEQUENCE\s+(?:IF\s+NOT\s+EXISTS\s+)?' + _NAME, re.IGNORECASE)


def _int_option(pattern: str, text: str) -> Optional[int]:
    match = re.search(pattern, text, re.IGNORECASE)
    return int(match.group(1)) if match else None


def extract_sequence(sql: str) -> SequenceInfo:
    text = _clean(sql)
    match = _CREATE_SEQUENCE.match(text)
    if not match:
        raise ConversionError("Not a CREATE SEQUENCE statement")
    schema, name = split_name(match.group(1))
    options = text[match.end():]
    start = _int_option(r'\bSTART\s+(?:WITH\s+)?(-?\d+)', options)
    increment = _int_option(r'\bINCREMENT\s+(?:BY\s+)?(-?\d+)', options)
    return SequenceInfo(
        name=name,
        schema=schema,
        start_with=start if start is not None else 1,
        increment_by=increment if increment is not None else 1,
        min_value=_int_option(r'(?<!NO)MINVALUE\s+(-?\d+)', options),
        max_value=_int_option(r'(?<!NO)MAXVALUE\s+(-?\d+)', options),
        cache=_int_option(r'(?<!NO)CACHE\s+(\d+)', options),
        cycle=bool(re.search(r'(?<!NO )\bCYCLE\b', options, re.IGNORECASE)),
    )


# ---------------------------------------------------------------------------
# CREATE TRIGGER
# ---------------------------------------------------------------------------

_CREATE_TRIGGER = re.compile(
    r'^CREATE\s+(?:OR\s+REPLACE\s+)?(?:(?:NON)?EDITIONABLE\s+)?(?:DEFINER\s*=\s*\S+\s+)?'
    r'(?:CONSTRAINT\s+)?TRIGGER\s+(?:IF\s+NOT\s+EXISTS\s+)?' + _NAME,
    re.IGNORECASE,
)
_TIMING = re.compile(r'\b(BEFORE|AFTER|INSTEAD\s+OF)\b', re.IGNORECASE)
_EVENT = re.compile(r'\b(INSERT|UPDATE|DELETE)\b(?:\s+OF\s+([\w$#"`]+(?:\s*,\s*[\w$#"`]+)*))?', re.IGNORECASE)
_ON_TABLE = re.compile(r'\bON\s+' + _NAME, re.IGNORECASE)
_BODY_START = re.compile(r'\b(DECLARE|BEGIN|EXECUTE\s+(?:FUNCTION|PROCEDURE)|COMPOUND\s+TRIGGER)\b', re.IGNORECASE)


def _block_body(text: str) -> Tuple[Optional[str], str]:
    """
    Split "[DECLARE decls] BEGIN stmts END [label]" into (declarations, statements).
    """
    declarations = None
    begin = re.search(r'\bBEGIN\b', text, re.IGNORECASE)
    if not begin:
        return None, text.strip().rstrip(';').strip() + ";" if text.strip() else ""
    head = text[:begin.start()]
    declare = re.search(r'\b(?:DECLARE|IS|AS)\b', head, re.IGNORECASE)
    if declare and head[declare.end():].strip():
        declarations = head[declare.end():].strip()
    body = text[begin.end():]
    end = re.search(r'\bEND\b\s*[\w$#"]*\s*;?\s*$', body, re.IGNORECASE)
    if end:
        body = body[:end.start()]
    return declarations, body.strip()


def extract_trigger(sql: str) -> TriggerInfo:
    """
    Read a CREATE TRIGGER statement (Oracle, MySQL or PostgreSQL form).

    PostgreSQL triggers delegate to a function; the record body is the
    function call and the converter flags it for review.
    """
    text = _clean(sql)
    match = _CREATE_TRIGGER.match(text)
    if not match:
        raise ConversionError("Not a CREATE TRIGGER statement")
    schema, name = split_name(match.group(1))
    rest = text[match.end():]

    body_start = _BODY_START.search(rest)
    header = rest[:body_start.start()] if body_start else rest
    block = rest[body_start.start():] if body_start else ""

    timing_match = _TIMING.search(header)
    timing = TriggerTiming("INSTEAD OF" if timing_match and timing_match.group(1).upper().startswith("INSTEAD")
                           else (timing_match.group(1).upper() if timing_match else "BEFORE"))

    on_match = _ON_TABLE.search(header)
    if not on_match:
        raise ConversionError(f"Trigger {name} has no ON clause")
    event_text = header[timing_match.end() if timing_match else 0:on_match.start()]
    events = []
    update_columns: List[str] = []
    for event in _EVENT.finditer(event_text):
        events.append(TriggerEvent(event.group(1).upper()))
        if event.group(2):
            update_columns.extend(_unquote(c) for c in event.group(2).split(','))
    table_schema, table = split_name(on_match.group(1))

    when_condition = None
    when = re.search(r'\bWHEN\s*\(', header, re.IGNORECASE)
    if when:
        when_condition = balanced(header, when.end() - 1)[0].strip()

    is_compound = bool(re.match(r'COMPOUND\s+TRIGGER', block, re.IGNORECASE))
    declarations, body = None, ""
    if is_compound:
        pass
    elif re.match(r'EXECUTE\s+(?:FUNCTION|PROCEDURE)', block, re.IGNORECASE):
        call = re.sub(r'^EXECUTE\s+(?:FUNCTION|PROCEDURE)\s+', '', block, flags=re.IGNORECASE)
        body = call.strip().rstrip(';') + ";"
    elif block:
        declarations, body = _block_body(block)
    else:
        # MySQL single-statement trigger: FOR EACH ROW <statement>
        row = re.search(r'\bFOR\s+EACH\s+ROW\b', header, re.IGNORECASE)
        if row:
            statement = header[row.end():].strip()
            if re.match(r'(?:FOLLOWS|PRECEDES)\s+\w+', statement, re.IGNORECASE):
                statement = re.sub(r'^(?:FOLLOWS|PRECEDES)\s+\w+\s*', '', statement, flags=re.IGNORECASE)
            body = statement.rstrip(';') + ";" if statement else ""
            header = header[:row.end()]

    return TriggerInfo(
        name=name,
        table=table,
        timing=timing,
        events=tuple(events) or (TriggerEvent.INSERT,),
        body=body,
        for_each_row=bool(re.search(r'\bFOR\s+EACH\s+ROW\b', header, re.IGNORECASE)),
        when_condition=when_condition,
        declarations=declarations,
        update_columns=tuple(update_columns),
        is_compound=is_compound,
        schema=schema or table_schema,
        source_text=text,
    )


# ---------------------------------------------------------------------------
# CREATE PROCEDURE / FUNCTION
# ---------------------------------------------------------------------------

_CREATE_PROCEDURE = re.compile(
    r'^CREATE\s+(?:OR\s+REPLACE\s+)?(?:(?:NON)?EDITIONABLE\s+)?(?:DEFINER\s*=\s*\S+\s+)?'
    r'(PROCEDURE|FUNCTION)\s+(?:IF\s+NOT\s+EXISTS\s+)?' + _NAME,
    re.IGNORECASE,
)
_DOLLAR_BODY = re.compile(r'\bAS\s+(\$[\w]*\$)(.*?)\1', re.IGNORECASE | re.DOTALL)
_ROUTINE_CHARACTERISTICS = re.compile(
    r'\b(?:NOT\s+)?DETERMINISTIC\b|\bLANGUAGE\s+\w+\b|\b(?:CONTAINS|READS|MODIFIES)\s+SQL(?:\s+DATA)?\b'
    r'|\bNO\s+SQL\b|\bSQL\s+SECURITY\s+\w+\b|\bCOMMENT\s+\'(?:[^\']|\'\')*\'',
    re.IGNORECASE,
)


def _parse_parameter(text: str) -> ProcedureParameter:
    tokens = text.split()
    mode = ParameterMode.IN
    upper = [t.upper() for t in tokens]
    if upper and upper[0] in ("IN", "OUT", "INOUT"):
        # MySQL / PostgreSQL: [mode] name type
        mode = ParameterMode(upper[0])
        tokens = tokens[1:]
        name, rest = tokens[0], " ".join(tokens[1:])
    else:
        # Oracle: name [IN | OUT | IN OUT] [NOCOPY] type
        name = tokens[0]
        rest_tokens = tokens[1:]
        modes = []
        while rest_tokens and rest_tokens[0].upper() in ("IN", "OUT", "NOCOPY"):
            word = rest_tokens.pop(0).upper()
            if word != "NOCOPY":
                modes.append(word)
        if modes == ["IN", "OUT"]:
            mode = ParameterMode.INOUT
        elif modes:
            mode = ParameterMode(modes[0])
        rest = " ".join(rest_tokens)

    default = None
    default_match = re.search(r'\s*(?:\bDEFAULT\b|:=|=)\s*(.+)$', rest, re.IGNORECASE)
    if default_match:
        default = default_match.group(1).strip()
        rest = rest[:default_match.start()]
    return ProcedureParameter(_unquote(name), mode, rest.strip(), default)


def extract_procedure(sql: str, source: Dialect) -> ProcedureInfo:
    """
    Read a CREATE PROCEDURE / FUNCTION statement.

    Handles the Oracle IS/AS block, the MySQL BEGIN ... END block and the
    PostgreSQL dollar-quoted body.
    """
    text = _clean(sql)
    match = _CREATE_PROCEDURE.match(text)
    if not match:
        raise ConversionError("Not a CREATE PROCEDURE or CREATE FUNCTION statement")
    is_function = match.group(1).upper() == "FUNCTION"
    schema, name = split_name(match.group(2))
    rest = text[match.end():]

    parameters: List[ProcedureParameter] = []
    params_match = re.match(r'\s*\(', rest)
    if params_match:
        params_text, end = balanced(rest, params_match.end() - 1)
        parameters = [_parse_parameter(p) for p in split_top_level(params_text) if p.strip()]
        rest = rest[end:]

    return_type = None
    returns = re.match(r'\s*RETURNS?\s+([\w.%]+(?:\s*\([^)]*\))?)', rest, re.IGNORECASE)
    if returns and is_function:
        return_type = returns.group(1).strip()
        rest = rest[returns.end():]

    dollar = _DOLLAR_BODY.search(rest)
    if dollar:
        block = dollar.group(2)
    elif source.is_oracle_family:
        is_as = re.match(r'\s*(?:(?:DETERMINISTIC|PIPELINED|RESULT_CACHE|PARALLEL_ENABLE)\s+)*(?:IS|AS)\b',
                         rest, re.IGNORECASE)
        block = "DECLARE " + rest[is_as.end():] if is_as else rest
    else:
        block = _ROUTINE_CHARACTERISTICS.sub(" ", rest)

    declarations, body = _block_body(block)
    return ProcedureInfo(
        name=name,
        parameters=tuple(parameters),
        body=body,
        return_type=return_type,
        is_function=is_function,
        declarations=declarations,
        schema=schema,
    )


# ---------------------------------------------------------------------------
# MATERIALIZED VIEW
# ---------------------------------------------------------------------------

_CREATE_MVIEW = re.compile(
    r'^CREATE\s+(?:OR\s+REPLACE\s+)?MATERIALIZED\s+VIEW\s+(?:IF\s+NOT\s+EXISTS\s+)?' + _NAME
    + r'(.*?)\bAS\s+(\(?\s*(?:SELECT|WITH)\b.*)$',
    re.IGNORECASE | re.DOTALL,
)
_DROP_MVIEW = re.compile(r'^DROP\s+MATERIALIZED\s+VIEW\s+(?:IF\s+EXISTS\s+)?' + _NAME, re.IGNORECASE)
_REFRESH_MVIEW = re.compile(
    r'^REFRESH\s+MATERIALIZED\s+VIEW\s+(?:CONCURRENTLY\s+)?' + _NAME + r'(?:\s+WITH\s+(NO\s+)?DATA)?',
    re.IGNORECASE,
)


def extract_materialized_view(sql: str) -> MaterializedViewInfo:
    """Read CREATE, DROP or REFRESH MATERIALIZED VIEW."""
    text = _clean(sql)

    drop = _DROP_MVIEW.match(text)
    if drop:
        schema, name = split_name(drop.group(1))
        return MaterializedViewInfo(name, schema=schema, action=MaterializedViewAction.DROP)
    refresh = _REFRESH_MVIEW.match(text)
    if refresh:
        schema, name = split_name(refresh.group(1))
        return MaterializedViewInfo(
            name, schema=schema, action=MaterializedViewAction.REFRESH, with_data=not refresh.group(2)
        )

    create = _CREATE_MVIEW.match(text)
    if not create:
        raise ConversionError("Unsupported MATERIALIZED VIEW statement")
    schema, name = split_name(create.group(1))
    options = create.group(2)
    query = create.group(3).strip()

    with_data = True
    trailing = re.search(r'\s+WITH\s+(NO\s+)?DATA\s*$', query, re.IGNORECASE)
    if trailing:
        with_data = not trailing.group(1)
        query = query[:trailing.start()].strip()

    upper = options.upper()
    if re.search(r'REFRESH\s+FAST', upper):
        method = RefreshMethod.FAST
    elif re.search(r'REFRESH\s+FORCE', upper):
        method = RefreshMethod.FORCE
    else:
        method = RefreshMethod.COMPLETE
    timing = RefreshTiming.ON_COMMIT if re.search(r'ON\s+COMMIT', upper) else RefreshTiming.ON_DEMAND
    build = BuildOption.DEFERRED if re.search(r'BUILD\s+DEFERRED', upper) or not with_data else BuildOption.IMMEDIATE
    tablespace = re.search(r'\bTABLESPACE\s+([\w$#"]+)', options, re.IGNORECASE)

    return MaterializedViewInfo(
        name=name,
        query=query,
        schema=schema,
        action=MaterializedViewAction.CREATE,
        build=build,
        refresh_method=method,
        refresh_timing=timing,
        enable_query_rewrite=bool(re.search(r'ENABLE\s+QUERY\s+REWRITE', upper)),
        tablespace=_unquote(tablespace.group(1)) if tablespace else None,
        with_data=with_data,
    )
