"""
Conversion engine: the public entry point of sqlswitcher.

SqlConverterEngine splits a script into statements, parses each one,
chooses the structured or the textual path and merges every per-statement
result into one ConversionResult.
"""

import logging
import time
from typing import Dict, List, Optional, Tuple, Union

from .converters import DialectConverter, build_converters
from .custom_rules import CustomRulesConfig, apply_custom_rules
from .fallback import FallbackTransformer, strip_physical_clauses
from .function_mappings import MappingRegistry, build_default_registry
from .metrics import NullMetrics
from .models import (
    ConversionContext, ConversionMetadata, ConversionOptions, ConversionResult,
    ConversionWarning, Dialect, SqlSwitcherError, UnrecognizedStatementError,
    WarningSeverity, WarningType,
)
from .parser import AnalysisSummary, SqlglotParser
from .sql_text import (
    first_keyword, is_recognized_statement, join_statements, leading_comments,
    split_statements, strip_sql_comments, swap_identifier_quotes,
)

logger = logging.getLogger(__name__)

FAILURE_MARKER = "-- [CONVERSION FAILED]"


class SqlConverterEngine:
    """
    Convert SQL scripts between MySQL, PostgreSQL, Oracle and Tibero.

    Registry and converters are built once in the constructor and only read
    afterwards, so one engine can serve concurrent calls.

    Example:
        >>> engine = SqlConverterEngine()
        >>> result = engine.convert("SELECT NVL(a, 0) FROM t", "oracle", "mysql")
        >>> result.converted_sql
        'SELECT IFNULL(a, 0) FROM t;'

        # With custom rules
        >>> engine = SqlConverterEngine(custom_rules=load_custom_rules("rules.json"))
    """

    def __init__(
        self,
        registry: Optional[MappingRegistry] = None,
        parser: Optional[SqlglotParser] = None,
        metrics: Optional[NullMetrics] = None,
        converters: Optional[Dict[Dialect, DialectConverter]] = None,
        custom_rules: Optional[CustomRulesConfig] = None,
    ):
        self.registry = registry or build_default_registry()
        self.parser = parser or SqlglotParser()
        self.metrics = metrics or NullMetrics()
        self.fallback = FallbackTransformer(self.registry)
        self.converters = converters or build_converters(self.registry, self.fallback)
        self.custom_rules = custom_rules

    def convert(
        self,
        sql: str,
        source: Union[str, Dialect],
        target: Union[str, Dialect],
        options: Optional[ConversionOptions] = None,
    ) -> ConversionResult:
        """
        Convert a script of one or more statements.

        Args:
            sql: Source SQL text
            source: Source dialect name or Dialect
            target: Target dialect name or Dialect
            options: Conversion options, defaults when None

        Returns:
            ConversionResult; never raises. A request-level failure returns
            the original text with a single ERROR warning.
        """
        start = time.perf_counter()
        options = options or ConversionOptions()
        source_dialect: Optional[Dialect] = None
        target_dialect: Optional[Dialect] = None

        try:
            source_dialect = Dialect.from_name(source)
            target_dialect = Dialect.from_name(target)
            self._record("record_request", source_dialect, target_dialect)
            result = self._convert_script(sql, source_dialect, target_dialect, options)
        except Exception as e:
            logger.exception("Conversion failed")
            result = self._failure(sql, e)
            if source_dialect is not None and target_dialect is not None:
                self._record("record_error", source_dialect, target_dialect, str(e))

        result.execution_time_ms = (time.perf_counter() - start) * 1000
        if source_dialect is not None and target_dialect is not None:
            if result.success:
                self._record("record_success", source_dialect, target_dialect)
            self._record("record_duration", source_dialect, target_dialect, result.execution_time_ms)
        if not options.include_warnings:
            result.warnings = []
        return result

    def _failure(self, sql: str, error: Exception) -> ConversionResult:
        return ConversionResult(
            original_sql=sql,
            converted_sql=sql,
            success=False,
            warnings=[ConversionWarning(
                WarningType.MANUAL_REVIEW_NEEDED,
                f"Conversion failed: {error}",
                WarningSeverity.ERROR,
            )],
            failed_statements=1,
            total_statements=1,
        )

    def _record(self, event: str, source: Dialect, target: Dialect, *args) -> None:
        """Call the metrics collaborator; its failures are logged and dropped."""
        try:
            getattr(self.metrics, event)(source, target, *args)
        except Exception as e:
            logger.warning("Metrics %s failed: %s", event, e)

    def _convert_script(
        self,
        sql: str,
        source: Dialect,
        target: Dialect,
        options: ConversionOptions,
    ) -> ConversionResult:
        if source is target:
            return ConversionResult(
                original_sql=sql,
                converted_sql=sql,
                metadata=ConversionMetadata(source, target),
                total_statements=len(split_statements(sql)),
            )

        statements = split_statements(sql)
        if not statements:
            return ConversionResult(original_sql=sql, converted_sql="",
                                    metadata=ConversionMetadata(source, target))

        if len(statements) == 1:
            ctx = ConversionContext(source, target, options)
            converted, analysis = self._convert_statement(statements[0], ctx)
            return ConversionResult(
                original_sql=sql,
                converted_sql=join_statements([converted]),
                warnings=ctx.warnings,
                applied_rules=ctx.applied_rules,
                metadata=self._metadata(source, target, analysis),
                total_statements=1,
            )

        request_ctx = ConversionContext(source, target, options)
        outputs: List[str] = []
        failed = 0
        totals = AnalysisSummary()
        for index, statement in enumerate(statements, 1):
            ctx = ConversionContext(source, target, options)
            try:
                converted, analysis = self._convert_statement(statement, ctx)
            except Exception as e:
                failed += 1
                logger.warning("Statement %d failed: %s", index, e)
                request_ctx.warn(
                    WarningType.MANUAL_REVIEW_NEEDED,
                    f"Statement {index} was not converted: {e}",
                    suggestion="Convert this statement manually",
                )
                outputs.append(f"{FAILURE_MARKER} {e}\n{statement.strip().rstrip(';')}")
                continue
            request_ctx.merge(ctx)
            outputs.append(converted)
            _accumulate(totals, analysis)

        if failed:
            request_ctx.warn(
                WarningType.PARTIAL_SUPPORT,
                f"{failed} statements failed",
                suggestion="Search the output for the failure marker",
            )
        return ConversionResult(
            original_sql=sql,
            converted_sql=join_statements(outputs),
            success=failed < len(statements),
            warnings=request_ctx.warnings,
            applied_rules=request_ctx.applied_rules,
            metadata=self._metadata(source, target, totals),
            failed_statements=failed,
            total_statements=len(statements),
        )

    def _convert_statement(self, statement: str, ctx: ConversionContext) -> Tuple[str, AnalysisSummary]:
        """
        Convert one statement, recording diagnostics on ctx.

        Raises:
            UnrecognizedStatementError: If the text does not start with a
                SQL statement keyword
            SqlSwitcherError: If the converter rejects the statement
        """
        if not is_recognized_statement(statement):
            keyword = first_keyword(statement) or statement.strip()[:20]
            raise UnrecognizedStatementError(f"Unrecognized statement starting with '{keyword}'")

        text = statement
        _, quoted_input = swap_identifier_quotes(strip_sql_comments(statement), ctx.target.quote_char)
        use_rules = self.custom_rules is not None
        if use_rules and self.custom_rules.apply_before_default:
            text = self._apply_rules(text, ctx)

        analysis = AnalysisSummary()
        outcome = self.parser.parse(text, ctx.source)
        if outcome.success:
            logger.debug("Structured path: %s", outcome.statement.kind.value)
            analysis = outcome.analysis or analysis
            converter = self.converters.get(ctx.source)
            if converter is None:
                raise SqlSwitcherError(f"No converter registered for {ctx.source.display_name}")
            result = converter.convert(outcome.statement, ctx.target, ctx.options, analysis)
            ctx.warnings.extend(result.warnings)
            for name in result.applied_rules:
                ctx.rule(name)
            converted = result.converted_sql
        else:
            logger.debug("Fallback path: %s", outcome.parse_error)
            ctx.info(
                WarningType.SYNTAX_DIFFERENCE,
                f"Statement not parsed ({outcome.parse_error}); converted with text rules",
            )
            converted = self.fallback.transform(strip_sql_comments(text).strip().rstrip(';').rstrip(), ctx)

        limit = ctx.options.max_complexity_score
        if limit is not None and analysis.complexity_score > limit:
            ctx.warn(
                WarningType.MANUAL_REVIEW_NEEDED,
                f"Complexity score {analysis.complexity_score} exceeds the limit of {limit}",
                suggestion="Review the converted statement",
            )

        converted = self._post_convert(converted, ctx, quoted_input)

        if use_rules and not self.custom_rules.apply_before_default:
            converted = self._apply_rules(converted, ctx)

        if ctx.options.preserve_comments:
            comments = leading_comments(statement)
            if comments:
                converted = f"{comments}\n{converted}"
        return converted, analysis

    def _post_convert(self, sql: str, ctx: ConversionContext, quoted_input: bool = False) -> str:
        """
        Storage clause removal and identifier quote rewriting.

        quoted_input tells whether the source statement quoted identifiers
        with the other quote character; sqlglot already requotes them on the
        structured path, so the output alone cannot show it.
        """
        sql, removed = strip_physical_clauses(sql, ctx.source, ctx.target)
        for name in removed:
            ctx.rule(f"{name} clause removed")

        target_quote = ctx.target.quote_char
        sql, changed = swap_identifier_quotes(sql, target_quote)
        if changed or quoted_input:
            ctx.rule(f"Identifier quotes → {target_quote}")
            ctx.info(
                WarningType.SYNTAX_DIFFERENCE,
                f"Quoted identifiers rewritten with {target_quote} for {ctx.target.display_name}",
            )
        return sql

    def _apply_rules(self, sql: str, ctx: ConversionContext) -> str:
        sql, applied = apply_custom_rules(sql, self.custom_rules, ctx.source, ctx.target)
        for name in applied:
            ctx.rule(f"Custom rule: {name}")
        return sql

    @staticmethod
    def _metadata(source: Dialect, target: Dialect, analysis: AnalysisSummary) -> ConversionMetadata:
        return ConversionMetadata(
            source_dialect=source,
            target_dialect=target,
            complexity_score=analysis.complexity_score,
            function_count=analysis.function_count,
            table_count=analysis.table_count,
            join_count=analysis.join_count,
            subquery_count=analysis.subquery_count,
        )


def _accumulate(totals: AnalysisSummary, analysis: AnalysisSummary) -> None:
    """Add the counters of one statement to the script totals."""
    for name, value in vars(analysis).items():
        if isinstance(value, int):
            setattr(totals, name, getattr(totals, name) + value)
