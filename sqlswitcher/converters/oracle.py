"""
Converter for Oracle source SQL.
"""

import logging
import re
from typing import List

from sqlglot import exp

from ..models import ConversionContext, Dialect, WarningType
from ..parser import AnalysisSummary, ParsedStatement
from ..sql_text import sub_outside_literals
from .base import DialectConverter

logger = logging.getLogger(__name__)

_CONCAT_OPERATOR = re.compile(r'\|\|')


class OracleConverter(DialectConverter):
    """
    Oracle → MySQL / PostgreSQL / Tibero.

    Hierarchical queries and the (+) outer join marker have no mechanical
    rewrite on the other engines; such statements are reported as ERROR and
    emitted unchanged.
    """

    dialect = Dialect.ORACLE

    @staticmethod
    def unconvertible_constructs(statement: ParsedStatement, target: Dialect) -> List[str]:
        if target.is_oracle_family or statement.tree is None:
            return []
        found = []
        if statement.tree.find(exp.Connect) is not None:
            found.append("CONNECT BY hierarchical query")
        if any(c.args.get("join_mark") for c in statement.tree.find_all(exp.Column)):
            found.append("(+) outer join")
        return found

    def can_convert(self, statement: ParsedStatement, ctx: ConversionContext) -> bool:
        unconvertible = self.unconvertible_constructs(statement, ctx.target)
        for construct in unconvertible:
            ctx.error(
                WarningType.MANUAL_REVIEW_NEEDED,
                f"{construct} has no direct {ctx.target.display_name} equivalent and was left unconverted",
                suggestion="Rewrite as a recursive CTE" if "CONNECT" in construct else "Rewrite with ANSI JOIN syntax",
            )
        return not (unconvertible and ctx.options.skip_unsupported_features)

    def perform_conversion(self, statement: ParsedStatement, ctx: ConversionContext,
                           analysis: AnalysisSummary) -> str:
        if self.unconvertible_constructs(statement, ctx.target):
            return statement.text
        if analysis.recursive_cte_count and ctx.target is Dialect.MYSQL:
            ctx.info(WarningType.PARTIAL_SUPPORT, "Recursive CTEs require MySQL 8.0 or later")
        return self.dispatch(statement, ctx)

    def post_process(self, sql: str, ctx: ConversionContext, analysis: AnalysisSummary) -> str:
        """Flag || left in procedural text; MySQL reads it as logical OR."""
        if ctx.target is not Dialect.MYSQL:
            return sql
        _, found = sub_outside_literals(_CONCAT_OPERATOR, "||", sql)
        if found:
            ctx.warn(
                WarningType.SYNTAX_DIFFERENCE,
                "|| is logical OR in MySQL unless PIPES_AS_CONCAT is set",
                suggestion="Replace || with CONCAT()",
            )
        return sql
