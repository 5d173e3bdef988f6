"""
Text-level helpers: comment stripping, statement splitting and
literal-aware rewriting.

Everything here works on raw SQL text and never on a parsed tree, so it is
shared by the structured path and the fallback path.
"""

import re
from typing import Callable, List, Tuple


def strip_sql_comments(sql: str) -> str:
    """
    Remove SQL comments from the input string.

    Handles:
    - Single-line comments starting with --
    - Multi-line comments enclosed in /* */ (optimizer hints included)
    - Preserves string literals (doesn't strip -- or /* inside quotes)

    Args:
        sql: SQL string potentially containing comments

    Returns:
        SQL string with all comments removed
    """
    if not sql:
        return sql

    result = []
    i = 0
    length = len(sql)

    while i < length:
        if sql[i] in ("'", '"', '`'):
            quote_char = sql[i]
            result.append(sql[i])
            i += 1
            while i < length:
                if sql[i] == quote_char:
                    result.append(sql[i])
                    i += 1
                    # Doubled quote is an escaped quote
                    if i < length and sql[i] == quote_char:
                        result.append(sql[i])
                        i += 1
                        continue
                    break
                result.append(sql[i])
                i += 1
        elif sql.startswith('--', i):
            while i < length and sql[i] != '\n':
                i += 1
            if i < length:
                result.append('\n')
                i += 1
        elif sql.startswith('/*', i):
            i += 2
            while i + 1 < length and not sql.startswith('*/', i):
                if sql[i] == '\n':
                    result.append('\n')
                i += 1
            i += 2
        else:
            result.append(sql[i])
            i += 1

    return ''.join(result)


def leading_comments(sql: str) -> str:
    """Return the comment lines that precede the first SQL token."""
    lines = []
    for line in sql.strip().splitlines():
        stripped = line.strip()
        if stripped.startswith('--'):
            lines.append(stripped)
        elif stripped:
            break
    return "\n".join(lines)


_PROCEDURAL_START = re.compile(
    r'(?:CREATE\s+(?:OR\s+REPLACE\s+)?(?:(?:NON)?EDITIONABLE\s+)?(?:DEFINER\s*=\s*\S+\s+)?'
    r'(?:PROCEDURE|FUNCTION|TRIGGER|PACKAGE|TYPE\s+BODY)\b'
    r'|(?:DECLARE|BEGIN)\b(?!\s*(?:;|TRANSACTION\b|WORK\b|$)))',
    re.IGNORECASE,
)

# Oracle declaration section opened by "IS"/"AS" or an explicit DECLARE
_DECLARATION_SECTION = re.compile(
    r'(?:\)|\b(?:PROCEDURE|FUNCTION|PACKAGE|BODY)\s+[\w."$#]+)\s*(?:RETURN\s+[\w.%()"]+\s*)?'
    r'(?:DETERMINISTIC\s+|PIPELINED\s+)*\b(?:IS|AS)\b(?!\s*\$)'
    r'|\bDECLARE\b',
    re.IGNORECASE,
)

_BLOCK_CLOSERS_TO_IGNORE = {"IF", "LOOP", "WHILE", "REPEAT", "FOR"}


def split_statements(sql: str) -> List[str]:
    """
    Split a script into statements on top-level semicolons.

    Semicolons inside single-quoted, double-quoted or back-quoted text,
    inside comments, inside PostgreSQL dollar-quoted bodies and inside
    procedural BEGIN ... END blocks never split. Blank statements are
    dropped; the terminating semicolon is not kept.

    Args:
        sql: SQL script text

    Returns:
        Ordered list of statement texts
    """
    statements: List[str] = []
    current: List[str] = []
    i = 0
    length = len(sql)

    depth = 0
    block_seen = False
    dollar_tag = None
    dollar_seen = False
    procedural = None

    def flush() -> None:
        text = ''.join(current).strip()
        if strip_sql_comments(text).strip():
            statements.append(text)
        current.clear()

    while i < length:
        ch = sql[i]

        if dollar_tag is not None:
            if sql.startswith(dollar_tag, i):
                current.append(dollar_tag)
                i += len(dollar_tag)
                dollar_tag = None
            else:
                current.append(ch)
                i += 1
            continue

        if ch in ("'", '"', '`'):
            current.append(ch)
            i += 1
            while i < length:
                c = sql[i]
                current.append(c)
                i += 1
                if c == '\\' and ch == "'" and i < length:
                    current.append(sql[i])
                    i += 1
                    continue
                if c == ch:
                    if i < length and sql[i] == ch:
                        current.append(sql[i])
                        i += 1
                        continue
                    break
            continue

        if sql.startswith('--', i):
            end = sql.find('\n', i)
            end = length if end == -1 else end
            current.append(sql[i:end])
            i = end
            continue

        if sql.startswith('/*', i):
            end = sql.find('*/', i + 2)
            end = length if end == -1 else end + 2
            current.append(sql[i:end])
            i = end
            continue

        if ch == '$':
            match = re.match(r'\$[A-Za-z_]*\$', sql[i:])
            if match:
                dollar_tag = match.group(0)
                dollar_seen = True
                current.append(dollar_tag)
                i += len(dollar_tag)
                continue

        if (ch.isalpha() or ch == '_') and (i == 0 or not (sql[i - 1].isalnum() or sql[i - 1] in '_$#')):
            match = re.match(r'[A-Za-z_][\w$#]*', sql[i:])
            word = match.group(0)
            upper = word.upper()
            if procedural is None:
                procedural = bool(_PROCEDURAL_START.match(sql, i))
            current.append(word)
            i += len(word)
            if procedural:
                if upper in ("BEGIN", "CASE"):
                    depth += 1
                    block_seen = block_seen or upper == "BEGIN"
                elif upper == "END":
                    following = re.match(r'\s*([A-Za-z_]\w*)', sql[i:])
                    next_word = following.group(1).upper() if following else ""
                    if next_word in _BLOCK_CLOSERS_TO_IGNORE:
                        continue
                    if next_word == "CASE":
                        current.append(following.group(0))
                        i += len(following.group(0))
                    depth = max(depth - 1, 0)
                    block_seen = True
            continue

        if ch == ';':
            if procedural:
                if depth > 0:
                    current.append(ch)
                    i += 1
                    continue
                text = strip_sql_comments(''.join(current))
                if not block_seen and not dollar_seen and _DECLARATION_SECTION.search(text):
                    current.append(ch)
                    i += 1
                    continue
            flush()
            depth = 0
            block_seen = False
            dollar_seen = False
            procedural = None
            i += 1
            continue

        current.append(ch)
        i += 1

    flush()
    return statements


def join_statements(statements: List[str]) -> str:
    """
    Rejoin converted statements with ';\\n' and a trailing ';'.

    A statement that already ends with ';' (a rendered procedural block,
    "DELIMITER ;", "$$;") keeps its own terminator.
    """
    parts = []
    for statement in statements:
        text = statement.rstrip() if statement else ""
        if not text:
            continue
        parts.append(text if text.endswith(';') else text + ';')
    return "\n".join(parts)


def _split_literals(sql: str) -> List[Tuple[bool, str]]:
    """Split text into (is_literal, text) segments on single-quoted strings."""
    segments: List[Tuple[bool, str]] = []
    buf: List[str] = []
    i = 0
    length = len(sql)
    while i < length:
        if sql[i] == "'":
            if buf:
                segments.append((False, ''.join(buf)))
                buf = []
            j = i + 1
            while j < length:
                if sql[j] == '\\' and j + 1 < length:
                    j += 2
                    continue
                if sql[j] == "'":
                    if j + 1 < length and sql[j + 1] == "'":
                        j += 2
                        continue
                    break
                j += 1
            segments.append((True, sql[i:j + 1]))
            i = j + 1
        else:
            buf.append(sql[i])
            i += 1
    if buf:
        segments.append((False, ''.join(buf)))
    return segments


def replace_outside_literals(sql: str, func: Callable[[str], str]) -> str:
    """Apply func to every part of sql that is not a single-quoted literal."""
    return ''.join(text if is_literal else func(text) for is_literal, text in _split_literals(sql))


def sub_outside_literals(pattern: "re.Pattern", replacement, sql: str) -> Tuple[str, int]:
    """
    re.subn restricted to text outside single-quoted literals.

    Returns:
        Tuple of (new_sql, number_of_replacements)
    """
    count = 0

    def _sub(text: str) -> str:
        nonlocal count
        new_text, n = pattern.subn(replacement, text)
        count += n
        return new_text

    return replace_outside_literals(sql, _sub), count


def swap_identifier_quotes(sql: str, target_quote: str) -> Tuple[str, bool]:
    """
    Rewrite quoted identifiers to use target_quote, outside literals.

    Args:
        sql: SQL text
        target_quote: '`' for MySQL, '"' for the other dialects

    Returns:
        Tuple of (rewritten_sql, was_modified)
    """
    source_quote = '"' if target_quote == '`' else '`'
    pattern = re.compile(re.escape(source_quote) + r'([^' + re.escape(source_quote) + r'\n]*)' + re.escape(source_quote))
    new_sql, count = sub_outside_literals(pattern, lambda m: f"{target_quote}{m.group(1)}{target_quote}", sql)
    return new_sql, count > 0


STATEMENT_KEYWORDS = frozenset({
    "ALTER", "ANALYZE", "BEGIN", "CALL", "COMMENT", "COMMIT", "CREATE",
    "DECLARE", "DELETE", "DESC", "DESCRIBE", "DROP", "EXEC", "EXECUTE",
    "EXPLAIN", "GRANT", "INSERT", "LOCK", "MERGE", "REFRESH", "RENAME",
    "REPLACE", "REVOKE", "ROLLBACK", "SAVEPOINT", "SELECT", "SET", "SHOW",
    "START", "TRUNCATE", "UPDATE", "UPSERT", "USE", "VALUES", "WITH",
})


def first_keyword(sql: str) -> str:
    """Return the upper-cased first word of a statement, ignoring comments."""
    text = strip_sql_comments(sql).lstrip().lstrip('(').lstrip()
    match = re.match(r'[A-Za-z_]+', text)
    return match.group(0).upper() if match else ""


def is_recognized_statement(sql: str) -> bool:
    return first_keyword(sql) in STATEMENT_KEYWORDS


def normalize_whitespace(sql: str) -> str:
    return " ".join(sql.split())


def literal_spans(sql: str) -> List[Tuple[int, int]]:
    """Return (start, end) offsets of the single-quoted literals in sql."""
    spans = []
    position = 0
    for is_literal, text in _split_literals(sql):
        if is_literal:
            spans.append((position, position + len(text)))
        position += len(text)
    return spans
