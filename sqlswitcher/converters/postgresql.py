"""
Converter for PostgreSQL source SQL.
"""

import logging
import re

from sqlglot import exp

from ..models import ConversionContext, Dialect, WarningType
from ..parser import AnalysisSummary, ParsedStatement
from ..sql_text import sub_outside_literals
from .base import DialectConverter

logger = logging.getLogger(__name__)

# x::type left in procedural text the parser never saw
_SHORT_CAST = re.compile(r'([\w.]+|\))::(\w+(?:\s*\(\s*\d+(?:\s*,\s*\d+)?\s*\))?)')


class PostgreSQLConverter(DialectConverter):
    """PostgreSQL → MySQL / Oracle / Tibero."""

    dialect = Dialect.POSTGRESQL

    def can_convert(self, statement: ParsedStatement, ctx: ConversionContext) -> bool:
        tree = statement.tree
        if tree is None:
            return True
        if tree.args.get("returning") is not None:
            ctx.error(
                WarningType.UNSUPPORTED_STATEMENT,
                f"RETURNING is not supported by {ctx.target.display_name} and was left unconverted",
                suggestion="Query the affected rows in a separate statement",
            )
            return not ctx.options.skip_unsupported_features
        if isinstance(tree, exp.Insert) and tree.args.get("conflict") is not None:
            ctx.warn(
                WarningType.SYNTAX_DIFFERENCE,
                f"ON CONFLICT has no direct {ctx.target.display_name} equivalent",
                suggestion="Use MERGE (Oracle) or ON DUPLICATE KEY UPDATE (MySQL)",
            )
        return True

    def perform_conversion(self, statement: ParsedStatement, ctx: ConversionContext,
                           analysis: AnalysisSummary) -> str:
        return self.dispatch(statement, ctx)

    def post_process(self, sql: str, ctx: ConversionContext, analysis: AnalysisSummary) -> str:
        """Rewrite x::type casts left in text bodies as CAST(x AS type)."""
        if "::" not in sql:
            return sql

        def _cast(match):
            data_type = self.map_data_type(match.group(2), ctx.target).converted_type
            return f"CAST({match.group(1)} AS {data_type})"

        sql, n = sub_outside_literals(_SHORT_CAST, _cast, sql)
        if n:
            ctx.rule("::type → CAST")
        return sql
