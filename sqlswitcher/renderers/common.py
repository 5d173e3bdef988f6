"""
Helpers shared by the per-dialect renderers.
"""

import re
import textwrap
from typing import Iterable, Optional

NEW_OLD_REFERENCE = re.compile(r':\s*(NEW|OLD)\.', re.IGNORECASE)
BARE_NEW_OLD_REFERENCE = re.compile(r'(?<![:\w.])(NEW|OLD)\.(?=\w)', re.IGNORECASE)
RAISE_APPLICATION_ERROR = re.compile(
    r"RAISE_APPLICATION_ERROR\s*\(\s*(-?\d+)\s*,\s*'((?:[^']|'')*)'\s*\)",
    re.IGNORECASE,
)
TRIGGER_PREDICATE = re.compile(r'\b(INSERTING|UPDATING|DELETING)\b', re.IGNORECASE)
SYSDATE = re.compile(r'\bSYSDATE\b', re.IGNORECASE)
NVL_CALL = re.compile(r'\bNVL\s*\(', re.IGNORECASE)
ROW_ASSIGNMENT = re.compile(r'^(\s*)((?:NEW|OLD)\.\w+)\s*:=', re.IGNORECASE | re.MULTILINE)
ROW_SET = re.compile(r'^(\s*)SET\s+((?:NEW|OLD)\.\w+)\s*=', re.IGNORECASE | re.MULTILINE)
SIGNAL = re.compile(
    r"SIGNAL\s+SQLSTATE\s+'\w+'\s+SET\s+MESSAGE_TEXT\s*=\s*'((?:[^']|'')*)'",
    re.IGNORECASE,
)

PREDICATE_EVENTS = {"INSERTING": "INSERT", "UPDATING": "UPDATE", "DELETING": "DELETE"}


def unquote(name: str) -> str:
    return name.strip().strip('`"[]')


def quote(name: str, quote_char: str) -> str:
    return f"{quote_char}{unquote(name)}{quote_char}"


def qualify(name: str, quote_char: str, owner: Optional[str] = None) -> str:
    """
    Quote a possibly qualified name.

    "scott.emp" → "scott"."emp"; a bare name gets owner as its schema
    when one is given.
    """
    parts = [p for p in unquote(name).split('.') if p]
    if len(parts) == 1 and owner:
        parts.insert(0, owner)
    return ".".join(quote(p, quote_char) for p in parts)


def column_list(columns: Iterable[str], quote_char: str) -> str:
    return ", ".join(quote(c, quote_char) for c in columns)


def swap_quotes(text: str, quote_char: str) -> str:
    """Switch identifier quotes in a raw expression to quote_char."""
    other = '"' if quote_char == '`' else '`'
    return text.replace(other, quote_char)


def indent(text: str, prefix: str = "    ") -> str:
    """Dedent text, drop blank lines and indent the rest with prefix."""
    lines = textwrap.dedent(text).splitlines()
    return "\n".join(prefix + line.rstrip() for line in lines if line.strip())
