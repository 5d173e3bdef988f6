"""
Converter for Tibero source SQL.

Tibero is Oracle compatible; it reuses the Oracle converter and rule set.
"""

from ..models import ConversionContext, Dialect
from ..parser import AnalysisSummary, ParsedStatement
from .oracle import OracleConverter


class TiberoConverter(OracleConverter):
    """Tibero → MySQL / PostgreSQL / Oracle."""

    dialect = Dialect.TIBERO

    def perform_conversion(self, statement: ParsedStatement, ctx: ConversionContext,
                           analysis: AnalysisSummary) -> str:
        if ctx.target is Dialect.ORACLE:
            ctx.rule("Tibero → Oracle (compatible syntax kept)")
        return super().perform_conversion(statement, ctx, analysis)
