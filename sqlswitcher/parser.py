"""
Parsing collaborator built on sqlglot.

The parser turns one statement into a ParsedStatement (kind, text, tree)
plus an AnalysisSummary. Dialect subclasses keep the functions that the
mapping registry renames as anonymous calls, so that renaming is driven by
registry data instead of sqlglot's own transpilation.
"""

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional

import sqlglot
from sqlglot import exp
from sqlglot.dialects.mysql import MySQL
from sqlglot.dialects.oracle import Oracle
from sqlglot.dialects.postgres import Postgres
from sqlglot.errors import ParseError, TokenError

from .models import Dialect
from .sql_text import strip_sql_comments

logger = logging.getLogger(__name__)


# Functions parsed as exp.Anonymous so the registry controls their output
ANONYMOUS_FUNCTIONS = frozenset({
    "CHAR_LENGTH", "CHARACTER_LENGTH", "COALESCE", "DATE_FORMAT", "DECODE",
    "IFNULL", "INSTR", "LENGTH", "LISTAGG", "LOCATE", "NOW", "NVL", "NVL2",
    "STR_TO_DATE", "STRPOS", "SUBSTR", "SYSTIMESTAMP", "TO_CHAR", "TO_DATE",
    "TO_TIMESTAMP", "TRUNC", "TRUNCATE",
})


def _without_anonymous(table: Dict) -> Dict:
    return {k: v for k, v in table.items() if k not in ANONYMOUS_FUNCTIONS}


class SwitchMySQL(MySQL):
    class Parser(MySQL.Parser):
        FUNCTIONS = _without_anonymous(MySQL.Parser.FUNCTIONS)
        FUNCTION_PARSERS = _without_anonymous(MySQL.Parser.FUNCTION_PARSERS)


class SwitchPostgres(Postgres):
    class Parser(Postgres.Parser):
        FUNCTIONS = _without_anonymous(Postgres.Parser.FUNCTIONS)
        FUNCTION_PARSERS = _without_anonymous(Postgres.Parser.FUNCTION_PARSERS)


class SwitchOracle(Oracle):
    class Parser(Oracle.Parser):
        FUNCTIONS = _without_anonymous(Oracle.Parser.FUNCTIONS)
        FUNCTION_PARSERS = _without_anonymous(Oracle.Parser.FUNCTION_PARSERS)
        # SYSDATE stays a bare column reference
        NO_PAREN_FUNCTION_PARSERS = {
            k: v for k, v in getattr(Oracle.Parser, "NO_PAREN_FUNCTION_PARSERS", {}).items()
            if k != "SYSDATE"
        }


READ_DIALECTS = {
    Dialect.MYSQL: SwitchMySQL,
    Dialect.POSTGRESQL: SwitchPostgres,
    Dialect.ORACLE: SwitchOracle,
    Dialect.TIBERO: SwitchOracle,
}


class StatementKind(Enum):
    """Closed set of statement kinds the converters dispatch on."""
    SELECT = "SELECT"
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    MERGE = "MERGE"
    CREATE_TABLE = "CREATE_TABLE"
    CREATE_VIEW = "CREATE_VIEW"
    CREATE_INDEX = "CREATE_INDEX"
    CREATE_SEQUENCE = "CREATE_SEQUENCE"
    CREATE_TRIGGER = "CREATE_TRIGGER"
    CREATE_PROCEDURE = "CREATE_PROCEDURE"
    CREATE_MATERIALIZED_VIEW = "CREATE_MATERIALIZED_VIEW"
    DROP = "DROP"
    ALTER = "ALTER"
    TRUNCATE = "TRUNCATE"
    OTHER = "OTHER"


# Kinds converted through intermediate records; they need no tree
RECORD_KINDS = frozenset({
    StatementKind.CREATE_SEQUENCE,
    StatementKind.CREATE_TRIGGER,
    StatementKind.CREATE_PROCEDURE,
    StatementKind.CREATE_MATERIALIZED_VIEW,
    StatementKind.CREATE_INDEX,
})

_TEXT_KINDS = [
    (re.compile(r'^\s*(?:CREATE|DROP|REFRESH|ALTER)\s+(?:OR\s+REPLACE\s+)?MATERIALIZED\s+VIEW\b', re.IGNORECASE),
     StatementKind.CREATE_MATERIALIZED_VIEW),
    (re.compile(r'^\s*CREATE\s+(?:OR\s+REPLACE\s+)?(?:(?:NON)?EDITIONABLE\s+)?(?:DEFINER\s*=\s*\S+\s+)?TRIGGER\b',
                re.IGNORECASE),
     StatementKind.CREATE_TRIGGER),
    (re.compile(r'^\s*CREATE\s+(?:OR\s+REPLACE\s+)?(?:(?:NON)?EDITIONABLE\s+)?(?:DEFINER\s*=\s*\S+\s+)?'
                r'(?:PROCEDURE|FUNCTION)\b', re.IGNORECASE),
     StatementKind.CREATE_PROCEDURE),
    (re.compile(r'^\s*CREATE\s+SEQUENCE\b', re.IGNORECASE), StatementKind.CREATE_SEQUENCE),
    (re.compile(r'^\s*CREATE\s+(?:UNIQUE\s+|BITMAP\s+)?INDEX\b', re.IGNORECASE), StatementKind.CREATE_INDEX),
]


@dataclass
class AnalysisSummary:
    """Structural figures of one statement."""
    join_count: int = 0
    subquery_count: int = 0
    function_count: int = 0
    table_count: int = 0
    aggregate_count: int = 0
    window_count: int = 0
    case_count: int = 0
    union_count: int = 0
    cte_count: int = 0
    recursive_cte_count: int = 0
    lateral_count: int = 0

    @property
    def complexity_score(self) -> int:
        return (
            1
            + self.join_count * 2
            + self.subquery_count * 3
            + self.function_count
            + self.aggregate_count * 2
            + self.window_count * 4
            + self.case_count * 2
            + self.union_count * 2
            + self.cte_count * 3
            + self.recursive_cte_count * 5
            + self.lateral_count * 3
        )


@dataclass
class ParsedStatement:
    """One statement: its kind, its comment-free text and its tree."""
    kind: StatementKind
    text: str
    tree: Optional[exp.Expression] = None


@dataclass
class ParseOutcome:
    """Result of parsing one statement."""
    statement: Optional[ParsedStatement] = None
    analysis: Optional[AnalysisSummary] = None
    parse_error: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.statement is not None and self.parse_error is None


def classify_text(sql: str) -> Optional[StatementKind]:
    """Classify statements converted through intermediate records."""
    for pattern, kind in _TEXT_KINDS:
        if pattern.match(sql):
            return kind
    return None


def classify_tree(tree: exp.Expression) -> StatementKind:
    """Map a sqlglot tree to a StatementKind."""
    if isinstance(tree, (exp.Select, exp.Union, exp.Except, exp.Intersect, exp.Subquery)):
        return StatementKind.SELECT
    if isinstance(tree, exp.Insert):
        return StatementKind.INSERT
    if isinstance(tree, exp.Update):
        return StatementKind.UPDATE
    if isinstance(tree, exp.Delete):
        return StatementKind.DELETE
    if isinstance(tree, exp.Merge):
        return StatementKind.MERGE
    if isinstance(tree, exp.Create):
        kind = (tree.args.get("kind") or "").upper()
        if kind == "TABLE":
            return StatementKind.CREATE_TABLE
        if kind == "VIEW":
            return StatementKind.CREATE_VIEW
        if kind == "INDEX":
            return StatementKind.CREATE_INDEX
        if kind == "SEQUENCE":
            return StatementKind.CREATE_SEQUENCE
        return StatementKind.OTHER
    if isinstance(tree, exp.Drop):
        return StatementKind.DROP
    if type(tree).__name__ in ("Alter", "AlterTable"):
        return StatementKind.ALTER
    if type(tree).__name__ == "TruncateTable":
        return StatementKind.TRUNCATE
    return StatementKind.OTHER


def analyze(tree: Optional[exp.Expression]) -> AnalysisSummary:
    """
    Compute the analysis summary of a statement tree.

    Args:
        tree: Parsed statement or None for statements parsed from text only

    Returns:
        AnalysisSummary with join, subquery, function and table counts
    """
    summary = AnalysisSummary()
    if tree is None:
        return summary

    summary.join_count = len(list(tree.find_all(exp.Join)))
    summary.subquery_count = len([
        s for s in tree.find_all(exp.Select) if s is not tree and s.parent is not None
        and not isinstance(s.parent, (exp.Union, exp.Except, exp.Intersect))
        and s.find_ancestor(exp.CTE) is None
    ])
    function_names = set()
    for func in tree.find_all(exp.Func):
        if isinstance(func, exp.AggFunc):
            summary.aggregate_count += 1
        name = func.name.upper() if isinstance(func, exp.Anonymous) else func.sql_name()
        function_names.add(name)
    summary.function_count = len(function_names)
    summary.table_count = len({t.name.upper() for t in tree.find_all(exp.Table) if t.name})
    summary.window_count = len(list(tree.find_all(exp.Window)))
    summary.case_count = len(list(tree.find_all(exp.Case)))
    summary.union_count = len(list(tree.find_all(exp.Union)))
    summary.cte_count = len(list(tree.find_all(exp.CTE)))
    summary.recursive_cte_count = len([w for w in tree.find_all(exp.With) if w.args.get("recursive")])
    summary.lateral_count = len(list(tree.find_all(exp.Lateral)))
    return summary


class SqlglotParser:
    """
    Parse single statements with sqlglot.

    Example:
        >>> outcome = SqlglotParser().parse("SELECT NVL(a, 0) FROM t", Dialect.ORACLE)
        >>> outcome.statement.kind
        <StatementKind.SELECT: 'SELECT'>
    """

    def parse(self, sql: str, dialect: Dialect) -> ParseOutcome:
        """
        Parse one statement.

        Args:
            sql: Statement text without the terminating semicolon
            dialect: Source dialect

        Returns:
            ParseOutcome with either a statement and analysis or a parse_error
        """
        text = strip_sql_comments(sql).strip().rstrip(';').strip()

        record_kind = classify_text(text)
        if record_kind is not None and record_kind is not StatementKind.CREATE_INDEX:
            return ParseOutcome(ParsedStatement(record_kind, text), AnalysisSummary())

        try:
            trees = sqlglot.parse(text, read=READ_DIALECTS[dialect])
        except (ParseError, TokenError) as e:
            logger.debug("sqlglot rejected statement: %s", e)
            if record_kind is StatementKind.CREATE_INDEX:
                return ParseOutcome(ParsedStatement(record_kind, text), AnalysisSummary())
            return ParseOutcome(parse_error=str(e).splitlines()[0] if str(e) else type(e).__name__)

        trees = [t for t in trees if t is not None]
        if len(trees) != 1:
            return ParseOutcome(parse_error=f"Expected one statement, found {len(trees)}")
        tree = trees[0]

        if record_kind is StatementKind.CREATE_INDEX:
            return ParseOutcome(ParsedStatement(record_kind, text, tree), analyze(tree))

        if isinstance(tree, exp.Command):
            return ParseOutcome(parse_error=f"Statement not modelled by the parser: {tree.name}")

        kind = classify_tree(tree)
        return ParseOutcome(ParsedStatement(kind, text, tree), analyze(tree))
