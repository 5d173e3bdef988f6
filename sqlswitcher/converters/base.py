"""
Converter template shared by every source dialect.

A converter owns one source dialect. DialectConverter.convert runs the
fixed sequence capability check → perform_conversion → post_process and
stamps metadata and elapsed time on the result; subclasses implement
perform_conversion and may override can_convert and post_process.
"""

import dataclasses
import logging
import re
import time
from abc import ABC, abstractmethod
from typing import Callable, Dict, Optional

import sqlglot
from sqlglot.errors import ParseError, TokenError

from ..ddl_extractors import (
    extract_index, extract_materialized_view, extract_procedure,
    extract_sequence, extract_table, extract_trigger,
)
from ..ddl_records import (
    MaterializedViewAction, MaterializedViewInfo, ProcedureInfo,
    SequenceInfo, TableInfo,
)
from ..fallback import FallbackTransformer, substitute_functions, substitute_types
from ..function_mappings import DataTypeConversionResult, MappingRegistry
from ..models import (
    ConversionContext, ConversionError, ConversionMetadata, ConversionOptions,
    ConversionResult, Dialect, WarningType,
)
from ..parser import READ_DIALECTS, AnalysisSummary, ParsedStatement, StatementKind
from ..renderers import render
from ..transformations import apply_all_transformations, generate_sql

logger = logging.getLogger(__name__)

_ANCHORED_TYPE = re.compile(r'%(?:ROW)?TYPE\b', re.IGNORECASE)


class DialectConverter(ABC):
    """
    Base class of the per-source-dialect converters.

    Args:
        registry: Function and data type rules shared by all converters
        fallback: Textual transformer used for text the parser cannot model
    """

    dialect: Dialect

    def __init__(self, registry: MappingRegistry, fallback: Optional[FallbackTransformer] = None):
        self.registry = registry
        self.fallback = fallback or FallbackTransformer(registry)
        self._handlers: Dict[StatementKind, Callable[[ParsedStatement, ConversionContext], str]] = {
            StatementKind.CREATE_TABLE: self.convert_create_table,
            StatementKind.CREATE_INDEX: self.convert_create_index,
            StatementKind.CREATE_SEQUENCE: self.convert_create_sequence,
            StatementKind.CREATE_TRIGGER: self.convert_create_trigger,
            StatementKind.CREATE_PROCEDURE: self.convert_create_procedure,
            StatementKind.CREATE_MATERIALIZED_VIEW: self.convert_materialized_view,
            StatementKind.OTHER: self.convert_other,
        }

    def quote_char(self) -> str:
        return self.dialect.quote_char

    def supported_functions(self):
        return self.dialect.supported_functions

    def map_data_type(self, source_type: str, target: Dialect) -> DataTypeConversionResult:
        return self.registry.map_data_type(self.dialect, target, source_type)

    def can_convert(self, statement: ParsedStatement, ctx: ConversionContext) -> bool:
        """Return False to reject the statement; diagnostics go to ctx."""
        return True

    @abstractmethod
    def perform_conversion(self, statement: ParsedStatement, ctx: ConversionContext,
                           analysis: AnalysisSummary) -> str:
        """Convert one statement to ctx.target."""

    def post_process(self, sql: str, ctx: ConversionContext, analysis: AnalysisSummary) -> str:
        return sql

    def convert(
        self,
        statement: ParsedStatement,
        target: Dialect,
        options: ConversionOptions,
        analysis: Optional[AnalysisSummary] = None,
    ) -> ConversionResult:
        """
        Convert one parsed statement.

        Args:
            statement: Parsed statement of this converter's dialect
            target: Target dialect
            options: Conversion options
            analysis: Analysis summary from the parser

        Returns:
            ConversionResult for this statement, with metadata and timing

        Raises:
            ConversionError: If can_convert rejects the statement or a
                record cannot be extracted
        """
        start = time.perf_counter()
        analysis = analysis or AnalysisSummary()
        ctx = ConversionContext(self.dialect, target, options)

        if not self.can_convert(statement, ctx):
            reasons = [w.message for w in ctx.warnings]
            raise ConversionError("; ".join(reasons) or f"{statement.kind.value} cannot be converted")

        converted = self.perform_conversion(statement, ctx, analysis)
        converted = self.post_process(converted, ctx, analysis)

        return ConversionResult(
            original_sql=statement.text,
            converted_sql=converted,
            warnings=ctx.warnings,
            applied_rules=ctx.applied_rules,
            execution_time_ms=(time.perf_counter() - start) * 1000,
            metadata=ConversionMetadata(
                source_dialect=self.dialect,
                target_dialect=target,
                complexity_score=analysis.complexity_score,
                function_count=analysis.function_count,
                table_count=analysis.table_count,
                join_count=analysis.join_count,
                subquery_count=analysis.subquery_count,
            ),
            total_statements=1,
        )

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def dispatch(self, statement: ParsedStatement, ctx: ConversionContext) -> str:
        """
        Route a statement to its handler by StatementKind.

        Kinds without a dedicated handler go through the tree path.
        """
        handler = self._handlers.get(statement.kind, self.convert_tree)
        logger.debug("%s → %s: %s", ctx.source.display_name, ctx.target.display_name, statement.kind.value)
        return handler(statement, ctx)

    def _same_family(self, ctx: ConversionContext) -> bool:
        return ctx.source.is_oracle_family and ctx.target.is_oracle_family

    def convert_tree(self, statement: ParsedStatement, ctx: ConversionContext) -> str:
        """Structured path: sqlglot tree → rewrites → target SQL."""
        if statement.tree is None:
            raise ConversionError(f"No statement tree for {statement.kind.value}")
        tree = apply_all_transformations(statement.tree.copy(), ctx, self.registry)
        return generate_sql(tree, ctx)

    def convert_other(self, statement: ParsedStatement, ctx: ConversionContext) -> str:
        """Statements outside the closed set are emitted unchanged."""
        return self.fallback.remove_comment_statements(statement.text, ctx)

    def convert_query_text(self, sql: str, ctx: ConversionContext) -> str:
        """Convert a query embedded in DDL, falling back to text rules."""
        try:
            tree = sqlglot.parse_one(sql, read=READ_DIALECTS[ctx.source])
        except (ParseError, TokenError) as e:
            logger.debug("Embedded query not parsed, using text rules: %s", e)
            return self.fallback.transform(sql, ctx)
        tree = apply_all_transformations(tree, ctx, self.registry)
        return generate_sql(tree, ctx)

    # ------------------------------------------------------------------
    # Record handlers
    # ------------------------------------------------------------------

    def render_record(self, record, ctx: ConversionContext) -> str:
        """Render a record, honouring skip_unsupported_features for simulations."""
        simulated = ctx.target is Dialect.MYSQL and isinstance(record, (SequenceInfo, MaterializedViewInfo))
        if simulated and ctx.options.skip_unsupported_features:
            kind = "SEQUENCE" if isinstance(record, SequenceInfo) else "MATERIALIZED VIEW"
            ctx.warn(
                WarningType.UNSUPPORTED_STATEMENT,
                f"{kind} {record.name} skipped: MySQL has no native equivalent",
                suggestion="Disable skip_unsupported_features to generate a simulation",
            )
            return f"-- {kind} {record.name} skipped (not supported by MySQL)"
        return render(record, ctx)

    def map_text(self, text: Optional[str], ctx: ConversionContext, ddl: bool = False) -> Optional[str]:
        """Function and type substitution for expression or body text."""
        if not text:
            return text
        text = substitute_functions(text, ctx, self.registry)
        return substitute_types(text, ctx, self.registry, ddl=ddl)

    def _map_type(self, data_type: str, ctx: ConversionContext) -> str:
        if _ANCHORED_TYPE.search(data_type):
            if not ctx.target.is_oracle_family:
                ctx.warn(
                    WarningType.DATA_TYPE_MISMATCH,
                    f"Anchored type {data_type} kept as is",
                    suggestion="Replace %TYPE/%ROWTYPE with an explicit type",
                )
            return data_type
        result = self.registry.map_data_type(ctx.source, ctx.target, data_type)
        if result.warning is not None:
            ctx.report(result.warning)
        if result.applied_rule is not None:
            ctx.rule(result.applied_rule)
        return result.converted_type

    def map_table(self, table: TableInfo, ctx: ConversionContext) -> TableInfo:
        """Map column types, defaults and constraint expressions to the target."""
        columns = tuple(
            dataclasses.replace(
                column,
                data_type=self._map_type(column.data_type, ctx),
                default=self.map_text(column.default, ctx),
            )
            for column in table.columns
        )
        checks = tuple(
            dataclasses.replace(check, expression=self.map_text(check.expression, ctx))
            for check in table.check_constraints
        )
        return dataclasses.replace(table, columns=columns, check_constraints=checks)

    def convert_create_table(self, statement: ParsedStatement, ctx: ConversionContext) -> str:
        """
        CREATE TABLE between dialect families goes through a TableInfo record.

        CREATE TABLE ... AS SELECT and tables the extractor cannot read use
        the tree path.
        """
        if self._same_family(ctx):
            return self.convert_tree(statement, ctx)
        try:
            table = extract_table(statement.text, ctx.source)
        except ConversionError as e:
            logger.debug("CREATE TABLE not extracted (%s); using the tree path", e)
            return self.convert_tree(statement, ctx)
        return self.render_record(self.map_table(table, ctx), ctx)

    def convert_create_index(self, statement: ParsedStatement, ctx: ConversionContext) -> str:
        if self._same_family(ctx):
            return statement.text
        try:
            index = extract_index(statement.text)
        except ConversionError:
            return self.convert_tree(statement, ctx)
        if index.is_function_based:
            index = dataclasses.replace(index, columns=tuple(
                dataclasses.replace(c, column=self.map_text(c.column, ctx)) if c.is_expression else c
                for c in index.columns
            ))
        return self.render_record(index, ctx)

    def convert_create_sequence(self, statement: ParsedStatement, ctx: ConversionContext) -> str:
        if self._same_family(ctx):
            return statement.text
        return self.render_record(extract_sequence(statement.text), ctx)

    def convert_create_trigger(self, statement: ParsedStatement, ctx: ConversionContext) -> str:
        if self._same_family(ctx):
            return statement.text
        trigger = extract_trigger(statement.text)
        if ctx.source is Dialect.POSTGRESQL:
            ctx.warn(
                WarningType.MANUAL_REVIEW_NEEDED,
                f"Trigger {trigger.name} calls {trigger.body.rstrip(';')}; "
                "the trigger function must be converted separately",
                suggestion="Convert the trigger function and inline its body",
            )
        elif not trigger.is_compound:
            trigger = dataclasses.replace(
                trigger,
                body=self.map_text(trigger.body, ctx),
                declarations=self.map_text(trigger.declarations, ctx, ddl=True),
                when_condition=self.map_text(trigger.when_condition, ctx),
            )
        return self.render_record(trigger, ctx)

    def convert_create_procedure(self, statement: ParsedStatement, ctx: ConversionContext) -> str:
        if self._same_family(ctx):
            return statement.text
        procedure: ProcedureInfo = extract_procedure(statement.text, ctx.source)
        parameters = tuple(
            dataclasses.replace(p, data_type=self._map_type(p.data_type, ctx) if p.data_type else p.data_type)
            for p in procedure.parameters
        )
        procedure = dataclasses.replace(
            procedure,
            parameters=parameters,
            return_type=self._map_type(procedure.return_type, ctx) if procedure.return_type else None,
            body=self.map_text(procedure.body, ctx),
            declarations=self.map_text(procedure.declarations, ctx, ddl=True),
        )
        ctx.warn(
            WarningType.MANUAL_REVIEW_NEEDED,
            f"Body of {procedure.object_type} {procedure.name} was converted with text rules",
            suggestion="Review control flow, cursors and exception handling",
        )
        return self.render_record(procedure, ctx)

    def convert_materialized_view(self, statement: ParsedStatement, ctx: ConversionContext) -> str:
        if self._same_family(ctx):
            return statement.text
        view = extract_materialized_view(statement.text)
        if view.action is MaterializedViewAction.CREATE and view.query:
            view = dataclasses.replace(view, query=self.convert_query_text(view.query, ctx))
        return self.render_record(view, ctx)

