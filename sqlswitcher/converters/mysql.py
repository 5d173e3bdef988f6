"""
Converter for MySQL source SQL.
"""

import logging
import re

from ..models import ConversionContext, Dialect, WarningType
from ..parser import AnalysisSummary, ParsedStatement
from .base import DialectConverter

logger = logging.getLogger(__name__)

_ON_DUPLICATE_KEY = re.compile(r'\bON\s+DUPLICATE\s+KEY\s+UPDATE\b', re.IGNORECASE)
_INSERT_IGNORE = re.compile(r'^\s*INSERT\s+IGNORE\b', re.IGNORECASE)


class MySQLConverter(DialectConverter):
    """MySQL → PostgreSQL / Oracle / Tibero."""

    dialect = Dialect.MYSQL

    def can_convert(self, statement: ParsedStatement, ctx: ConversionContext) -> bool:
        if _ON_DUPLICATE_KEY.search(statement.text):
            if ctx.target.is_oracle_family:
                ctx.warn(
                    WarningType.SYNTAX_DIFFERENCE,
                    "ON DUPLICATE KEY UPDATE must be rewritten as MERGE INTO",
                    suggestion="Rewrite the upsert as MERGE INTO ... WHEN MATCHED THEN UPDATE",
                )
                return not ctx.options.skip_unsupported_features
            ctx.info(WarningType.SYNTAX_DIFFERENCE, "ON DUPLICATE KEY UPDATE becomes ON CONFLICT")
        if _INSERT_IGNORE.match(statement.text):
            ctx.warn(
                WarningType.PARTIAL_SUPPORT,
                f"INSERT IGNORE has no direct {ctx.target.display_name} equivalent",
                suggestion="Use ON CONFLICT DO NOTHING (PostgreSQL) or MERGE (Oracle)",
            )
        return True

    def perform_conversion(self, statement: ParsedStatement, ctx: ConversionContext,
                           analysis: AnalysisSummary) -> str:
        return self.dispatch(statement, ctx)
