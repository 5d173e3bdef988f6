"""
AST transformations applied between parsing and generation.

This module contains the rewrite rules that run on a sqlglot tree for one
(source, target) dialect pair. Function renames are driven by the mapping
registry; constructs that need a structural rewrite (DECODE, NVL2, IF,
LISTAGG, pagination, ROWNUM, DUAL, sequences) have dedicated transforms.
"""

import logging
from functools import partial
from typing import Callable, List, Optional

from sqlglot import exp
from sqlglot.errors import ParseError

from .function_mappings import CASE_WHEN, MappingRegistry, ParameterTransform
from .models import ConversionContext, Dialect, WarningType

logger = logging.getLogger(__name__)

_FROM_KEY = "from_" if "from_" in exp.Select.arg_types else "from"

_SEQUENCE_PSEUDO_COLUMNS = ("NEXTVAL", "CURRVAL")


def _args(expression: exp.Expression) -> List[exp.Expression]:
    return list(expression.args.get("expressions") or [])


def _anonymous_name(expression: exp.Expression) -> Optional[str]:
    if isinstance(expression, exp.Anonymous):
        return expression.name.upper()
    return None


def _is_null(expression: exp.Expression) -> bool:
    return isinstance(expression, exp.Null)


def _build_call(name: str, args: List[exp.Expression]) -> exp.Expression:
    """Build a function call, using keyword forms for niladic date functions."""
    upper = name.upper()
    if not args and upper == "SYSDATE":
        return exp.Var(this="SYSDATE")
    if not args and upper == "CURRENT_TIMESTAMP":
        return exp.CurrentTimestamp()
    return exp.Anonymous(this=upper, expressions=args)


def _int_literal(expression: exp.Expression) -> Optional[int]:
    if isinstance(expression, exp.Literal) and not expression.is_string:
        try:
            return int(expression.this)
        except ValueError:
            return None
    return None


def _is_rownum(expression: exp.Expression) -> bool:
    return isinstance(expression, exp.Column) and not expression.table and expression.name.upper() == "ROWNUM"


def _group_concat_parts(node: exp.GroupConcat):
    """Return (value, separator, ordering) of a GROUP_CONCAT/STRING_AGG node."""
    this = node.this
    separator = node.args.get("separator")
    ordering: List[exp.Expression] = []
    if isinstance(this, exp.Order):
        ordering = list(this.expressions)
        this = this.this
    if isinstance(separator, exp.Order):
        ordering = ordering or list(separator.expressions)
        separator = separator.this
    return this, separator, ordering


class DialectTransformations:
    """
    Collection of tree rewrites for converting between dialects.

    Every transform takes the node being visited, the per-statement
    ConversionContext and the MappingRegistry, and returns either the same
    node or its replacement.
    """

    @staticmethod
    def transform_decode(expression: exp.Expression, ctx: ConversionContext,
                         registry: MappingRegistry) -> exp.Expression:
        """
        Transform Oracle DECODE into a CASE expression.

        DECODE(e, s1, r1, s2, r2, d) → CASE e WHEN s1 THEN r1 WHEN s2 THEN r2 ELSE d END

        A NULL search value matches a NULL e in DECODE, so when any search
        value is a NULL literal the searched form is used instead:
        CASE WHEN e IS NULL THEN r1 WHEN e = s2 THEN r2 ELSE d END
        """
        if _anonymous_name(expression) != "DECODE":
            return expression
        rule = registry.get_function_mapping(ctx.source, ctx.target, "DECODE")
        if rule is None or rule.target_function != CASE_WHEN:
            return expression
        args = _args(expression)
        if len(args) < 3:
            return expression

        subject, pairs = args[0], args[1:]
        default = pairs[-1] if len(pairs) % 2 == 1 else None
        if default is not None:
            pairs = pairs[:-1]
        searches = pairs[0::2]
        results = pairs[1::2]

        if any(_is_null(s) for s in searches):
            ifs = []
            for search, result in zip(searches, results):
                if _is_null(search):
                    condition = exp.Is(this=subject.copy(), expression=exp.Null())
                else:
                    condition = exp.EQ(this=subject.copy(), expression=search)
                ifs.append(exp.If(this=condition, true=result))
            case = exp.Case(ifs=ifs, default=default)
        else:
            case = exp.Case(
                this=subject,
                ifs=[exp.If(this=s, true=r) for s, r in zip(searches, results)],
                default=default,
            )

        ctx.rule(rule.rule_name)
        return case

    @staticmethod
    def transform_nvl2(expression: exp.Expression, ctx: ConversionContext,
                       registry: MappingRegistry) -> exp.Expression:
        """
        Transform Oracle NVL2 into CASE WHEN.

        NVL2(e, a, b) → CASE WHEN e IS NOT NULL THEN a ELSE b END
        """
        if _anonymous_name(expression) != "NVL2":
            return expression
        rule = registry.get_function_mapping(ctx.source, ctx.target, "NVL2")
        if rule is None:
            return expression
        args = _args(expression)
        if len(args) != 3:
            return expression

        value, if_not_null, if_null = args
        condition = exp.Is(this=value, expression=exp.Not(this=exp.Null()))
        ctx.rule(rule.rule_name)
        return exp.Case(ifs=[exp.If(this=condition, true=if_not_null)], default=if_null)

    @staticmethod
    def transform_if(expression: exp.Expression, ctx: ConversionContext,
                     registry: MappingRegistry) -> exp.Expression:
        """
        Transform MySQL IF(c, a, b) into CASE WHEN c THEN a ELSE b END.
        """
        rule = registry.get_function_mapping(ctx.source, ctx.target, "IF")
        if rule is None:
            return expression

        if isinstance(expression, exp.If) and not isinstance(expression.parent, exp.Case):
            condition = expression.this
            true_value = expression.args.get("true")
            false_value = expression.args.get("false")
        elif _anonymous_name(expression) == "IF" and len(_args(expression)) in (2, 3):
            args = _args(expression)
            condition, true_value = args[0], args[1]
            false_value = args[2] if len(args) == 3 else None
        else:
            return expression

        ctx.rule(rule.rule_name)
        return exp.Case(ifs=[exp.If(this=condition, true=true_value)], default=false_value)

    @staticmethod
    def transform_listagg(expression: exp.Expression, ctx: ConversionContext,
                          registry: MappingRegistry) -> exp.Expression:
        """
        Transform Oracle LISTAGG into GROUP_CONCAT or STRING_AGG.

        LISTAGG(x, ',') WITHIN GROUP (ORDER BY y)
            MySQL:      GROUP_CONCAT(x ORDER BY y SEPARATOR ',')
            PostgreSQL: STRING_AGG(x, ',' ORDER BY y)
        """
        ordering: List[exp.Expression] = []
        call = expression
        if isinstance(expression, exp.WithinGroup) and _anonymous_name(expression.this) == "LISTAGG":
            call = expression.this
            order = expression.args.get("expression")
            if isinstance(order, exp.Order):
                ordering = list(order.expressions)
        elif _anonymous_name(expression) != "LISTAGG" or isinstance(expression.parent, exp.WithinGroup):
            return expression

        rule = registry.get_function_mapping(ctx.source, ctx.target, "LISTAGG")
        args = _args(call)
        if rule is None or not args:
            return expression

        value = args[0]
        separator = args[1] if len(args) > 1 else exp.Literal.string(",")
        ctx.rule(rule.rule_name)

        if rule.target_function == "STRING_AGG":
            return exp.Anonymous(this="STRING_AGG", expressions=[
                value,
                exp.Order(this=separator, expressions=ordering) if ordering else separator,
            ])
        if ordering:
            value = exp.Order(this=value, expressions=ordering)
        return exp.GroupConcat(this=value, separator=separator)

    @staticmethod
    def transform_group_concat(expression: exp.Expression, ctx: ConversionContext,
                               registry: MappingRegistry) -> exp.Expression:
        """
        Transform GROUP_CONCAT/STRING_AGG for a different target.

        Oracle targets get LISTAGG(x, sep) WITHIN GROUP (ORDER BY ...); Oracle
        requires an ordering, so the aggregated value is used when none is
        given.
        """
        if not isinstance(expression, exp.GroupConcat):
            return expression

        source_name = "GROUP_CONCAT" if ctx.source is Dialect.MYSQL else "STRING_AGG"
        rule = registry.get_function_mapping(ctx.source, ctx.target, source_name)
        if rule is None:
            return expression

        value, separator, ordering = _group_concat_parts(expression)
        separator = separator or exp.Literal.string(",")
        ctx.rule(rule.rule_name)

        if ctx.target.is_oracle_family:
            if isinstance(value, exp.Distinct):
                ctx.warn(
                    WarningType.PARTIAL_SUPPORT,
                    "LISTAGG(DISTINCT ...) requires Oracle 19c or later",
                )
            order_by = ordering or [exp.Ordered(this=value.copy())]
            return exp.WithinGroup(
                this=exp.Anonymous(this="LISTAGG", expressions=[value, separator]),
                expression=exp.Order(expressions=order_by),
            )

        if rule.target_function == "STRING_AGG":
            return exp.Anonymous(this="STRING_AGG", expressions=[
                value,
                exp.Order(this=separator, expressions=ordering) if ordering else separator,
            ])
        if ordering:
            value = exp.Order(this=value, expressions=ordering)
        return exp.GroupConcat(this=value, separator=separator)

    @staticmethod
    def transform_current_date(expression: exp.Expression, ctx: ConversionContext,
                               registry: MappingRegistry) -> exp.Expression:
        """
        Transform the current-date functions: SYSDATE, SYSTIMESTAMP and NOW().
        """
        name = None
        if isinstance(expression, exp.Column) and not expression.table:
            if expression.name.upper() in ("SYSDATE", "SYSTIMESTAMP") and not expression.this.quoted:
                name = expression.name.upper()
        elif isinstance(expression, exp.CurrentTimestamp) and expression.args.get("sysdate"):
            name = "SYSDATE"
        elif (isinstance(expression, exp.CurrentTimestamp) and expression.this is None
              and not ctx.source.is_oracle_family and ctx.target.is_oracle_family):
            # sqlglot reads NOW() as CURRENT_TIMESTAMP
            name = "NOW"
        elif _anonymous_name(expression) in ("NOW", "SYSDATE", "SYSTIMESTAMP") and not _args(expression):
            name = _anonymous_name(expression)
        if name is None:
            return expression

        rule = registry.get_function_mapping(ctx.source, ctx.target, name)
        if rule is None:
            return expression
        ctx.rule(f"{name} → {rule.target_function}")
        return _build_call(rule.target_function, [])

    @staticmethod
    def transform_function_mappings(expression: exp.Expression, ctx: ConversionContext,
                                    registry: MappingRegistry) -> exp.Expression:
        """
        Rename functions through custom mappings and the registry.

        Custom mappings from the options win over registry rules. A rule with
        SWAP_FIRST_TWO exchanges the first two arguments; DATE_FORMAT_CONVERT
        renames the function and flags the format mask for review.
        """
        if isinstance(expression, exp.Substring):
            name = "SUBSTRING"
            args = [a for a in (expression.this, expression.args.get("start"),
                                expression.args.get("length")) if a is not None]
        elif isinstance(expression, exp.Anonymous):
            name = expression.name.upper()
            args = _args(expression)
        else:
            return expression

        custom = ctx.options.custom_mappings.get(name)
        if custom:
            ctx.rule(f"{name} → {custom} (custom)")
            return _build_call(custom, args)

        rule = registry.get_function_mapping(ctx.source, ctx.target, name)
        if rule is None:
            if name in ctx.source.supported_functions and name not in ctx.target.supported_functions:
                ctx.warn(
                    WarningType.UNSUPPORTED_FUNCTION,
                    f"No conversion rule for {name} from {ctx.source.display_name} "
                    f"to {ctx.target.display_name}",
                    suggestion=f"Rewrite {name} manually",
                )
            return expression

        if rule.parameter_transform is ParameterTransform.TO_CASE_WHEN:
            return expression

        if not rule.accepts(len(args)):
            if name not in ctx.target.supported_functions:
                ctx.warn(
                    WarningType.PARTIAL_SUPPORT,
                    f"{name} with {len(args)} arguments has no direct equivalent in "
                    f"{ctx.target.display_name}",
                    suggestion=rule.suggestion,
                )
            return expression

        if rule.parameter_transform is ParameterTransform.SWAP_FIRST_TWO and len(args) >= 2:
            args = [args[1], args[0]] + args[2:]

        if rule.warning_type is not None:
            ctx.warn(rule.warning_type, rule.warning_message or f"{name} needs review",
                     suggestion=rule.suggestion)
        elif rule.is_partial_support:
            ctx.warn(WarningType.PARTIAL_SUPPORT, f"{rule.target_function} only partially covers {name}",
                     suggestion=rule.suggestion)

        ctx.rule(rule.rule_name)
        return _build_call(rule.target_function, args)

    @staticmethod
    def transform_sequences(expression: exp.Expression, ctx: ConversionContext,
                            registry: MappingRegistry) -> exp.Expression:
        """
        Transform sequence access between Oracle seq.NEXTVAL and PostgreSQL nextval('seq').
        """
        if (isinstance(expression, exp.Column) and expression.table
                and expression.name.upper() in _SEQUENCE_PSEUDO_COLUMNS
                and ctx.source.is_oracle_family):
            sequence = expression.table
            pseudo = expression.name.upper()
            if ctx.target is Dialect.POSTGRESQL:
                ctx.rule(f"{pseudo} → {pseudo.lower()}()")
                return exp.Anonymous(this=pseudo.lower(), expressions=[exp.Literal.string(sequence)])
            if ctx.target is Dialect.MYSQL:
                ctx.warn(
                    WarningType.UNSUPPORTED_FUNCTION,
                    f"MySQL has no sequences; {sequence}.{pseudo} was kept",
                    suggestion=f"Use an AUTO_INCREMENT column or the {sequence}_seq simulation table",
                )
            return expression

        name = _anonymous_name(expression)
        if name in _SEQUENCE_PSEUDO_COLUMNS and ctx.source is Dialect.POSTGRESQL:
            args = _args(expression)
            if len(args) == 1 and isinstance(args[0], exp.Literal) and args[0].is_string:
                sequence = args[0].this
                if ctx.target.is_oracle_family:
                    ctx.rule(f"{name.lower()}() → {name}")
                    return exp.column(name, table=sequence)
                if ctx.target is Dialect.MYSQL:
                    ctx.warn(
                        WarningType.UNSUPPORTED_FUNCTION,
                        f"MySQL has no sequences; {name.lower()}('{sequence}') was kept",
                        suggestion="Use an AUTO_INCREMENT column",
                    )
        return expression

    @staticmethod
    def transform_json_regex(expression: exp.Expression, ctx: ConversionContext,
                             registry: MappingRegistry) -> exp.Expression:
        """
        Record JSON path and regular-expression predicates.

        sqlglot renders these nodes natively per dialect (REGEXP_LIKE, REGEXP,
        ~; JSON_EXTRACT, ->, JSON_VALUE). Regex flavours and JSON path
        semantics still differ between engines, so each conversion is flagged.
        """
        if ctx.source is ctx.target or (ctx.source.is_oracle_family and ctx.target.is_oracle_family):
            return expression
        if isinstance(expression, (exp.RegexpLike, exp.RegexpILike)):
            ctx.rule(f"{type(expression).__name__} → {ctx.target.display_name} regex match")
            ctx.warn(
                WarningType.SYNTAX_DIFFERENCE,
                "Regular expression syntax differs between "
                f"{ctx.source.display_name} and {ctx.target.display_name}",
                suggestion="Check character classes, flags and back-references in the pattern",
            )
        elif isinstance(expression, (exp.JSONExtract, exp.JSONExtractScalar)):
            ctx.rule(f"JSON extract → {ctx.target.display_name} JSON access")
            ctx.warn(
                WarningType.SYNTAX_DIFFERENCE,
                f"JSON path access converted to {ctx.target.display_name} syntax",
                suggestion="Check that the JSON path and the returned type (text or JSON) are unchanged",
            )
        return expression

    @staticmethod
    def transform_data_types(expression: exp.Expression, ctx: ConversionContext,
                             registry: MappingRegistry) -> exp.Expression:
        """
        Map CAST targets and other type references through the registry.
        """
        if not isinstance(expression, exp.DataType) or isinstance(expression.parent, exp.DataType):
            return expression
        if not isinstance(expression.parent, (exp.Cast, exp.TryCast, exp.ColumnDef)):
            return expression

        source_text = expression.sql(dialect=ctx.source.sqlglot_name)
        result = registry.map_data_type(ctx.source, ctx.target, source_text)
        if result.warning is not None:
            ctx.report(result.warning)
        if result.applied_rule is None:
            return expression
        try:
            converted = exp.DataType.build(result.converted_type, dialect=ctx.target.sqlglot_name)
        except (ParseError, ValueError):
            logger.debug("Could not build data type %s", result.converted_type)
            return expression
        ctx.rule(result.applied_rule)
        return converted


def _rewrite(tree: exp.Expression, fn: Callable[[exp.Expression], exp.Expression]) -> exp.Expression:
    """Apply fn bottom-up so nested calls are rewritten before their callers."""
    for node in reversed(list(tree.find_all(exp.Expression, bfs=False))):
        new_node = fn(node)
        if new_node is node:
            continue
        if node is tree:
            tree = new_node
        else:
            node.replace(new_node)
    return tree


def convert_rownum(select: exp.Select, ctx: ConversionContext) -> None:
    """
    Turn ROWNUM filters into LIMIT for MySQL and PostgreSQL targets.

    WHERE ROWNUM <= n → LIMIT n, WHERE ROWNUM < n → LIMIT n-1,
    WHERE ROWNUM = 1 → LIMIT 1. A projected ROWNUM becomes
    ROW_NUMBER() OVER ().
    """
    where = select.args.get("where")
    if where is not None:
        conditions = list(where.this.flatten()) if isinstance(where.this, exp.And) else [where.this]
        limit = None
        kept = []
        for condition in conditions:
            bound = _rownum_bound(condition)
            if bound is not None and limit is None:
                limit = bound
            else:
                kept.append(condition)

        if limit is not None:
            if kept:
                select.set("where", exp.Where(this=exp.and_(*kept)))
            else:
                select.set("where", None)
            if select.args.get("limit") is None:
                select.set("limit", exp.Limit(expression=exp.Literal.number(limit)))
            ctx.rule("ROWNUM → LIMIT")
            if select.args.get("order"):
                ctx.warn(
                    WarningType.SYNTAX_DIFFERENCE,
                    "ROWNUM is applied before ORDER BY in Oracle; LIMIT is applied after it",
                    suggestion="Check that the row selection is unchanged",
                )

    for projection in select.expressions:
        for column in list(projection.find_all(exp.Column)):
            if _is_rownum(column):
                column.replace(exp.Window(this=exp.RowNumber()))
                ctx.rule("ROWNUM → ROW_NUMBER() OVER ()")
                ctx.warn(
                    WarningType.MANUAL_REVIEW_NEEDED,
                    "Projected ROWNUM was replaced with ROW_NUMBER() OVER ()",
                    suggestion="Add the intended ORDER BY to the OVER clause",
                )


def _rownum_bound(condition: exp.Expression) -> Optional[int]:
    if not isinstance(condition, (exp.LTE, exp.LT, exp.EQ, exp.GTE, exp.GT)):
        return None
    left, right = condition.this, condition.expression
    if _is_rownum(left):
        value, op = _int_literal(right), type(condition)
    elif _is_rownum(right):
        value = _int_literal(left)
        op = {exp.GTE: exp.LTE, exp.GT: exp.LT, exp.EQ: exp.EQ}.get(type(condition))
    else:
        return None
    if value is None or op is None:
        return None
    if op is exp.LTE:
        return value
    if op is exp.LT:
        return max(value - 1, 0)
    if op is exp.EQ and value == 1:
        return 1
    return None


def flag_leftover_rownum(expression: exp.Expression, ctx: ConversionContext) -> None:
    """Report ROWNUM references that no rewrite removed (UPDATE, DELETE, ROWNUM > n, ...)."""
    if any(_is_rownum(c) for c in expression.find_all(exp.Column)):
        ctx.error(
            WarningType.MANUAL_REVIEW_NEEDED,
            f"ROWNUM in {expression.key.upper()} has no {ctx.target.display_name} equivalent "
            "and was left unconverted",
            suggestion="Rewrite the row limit with LIMIT/OFFSET or a ROW_NUMBER() subquery",
        )


def alias_derived_tables(select: exp.Select, ctx: ConversionContext) -> None:
    """Name unaliased subqueries in FROM and JOIN; MySQL and PostgreSQL before 16 require it."""
    sources = [select.args.get(_FROM_KEY)] + list(select.args.get("joins") or [])
    number = 0
    for source in sources:
        subquery = source.this if source is not None else None
        if isinstance(subquery, exp.Subquery) and not subquery.alias:
            number += 1
            subquery.set("alias", exp.TableAlias(this=exp.to_identifier(f"sq{number}")))
            ctx.rule("Derived table alias added")


def convert_fetch_to_limit(select: exp.Expression, ctx: ConversionContext) -> None:
    """Turn Oracle FETCH FIRST n ROWS ONLY into LIMIT n."""
    fetch = select.args.get("limit")
    if not isinstance(fetch, exp.Fetch):
        return
    count = fetch.args.get("count")
    if count is None:
        return
    if fetch.args.get("percent") or fetch.args.get("with_ties"):
        ctx.warn(
            WarningType.PARTIAL_SUPPORT,
            "FETCH ... PERCENT / WITH TIES has no LIMIT equivalent",
            suggestion="Rewrite the row limit manually",
        )
        return
    select.set("limit", exp.Limit(expression=count))
    ctx.rule("FETCH FIRST → LIMIT")


def remove_dual(select: exp.Select, ctx: ConversionContext) -> None:
    """Remove FROM DUAL for targets that do not need it."""
    from_clause = select.args.get(_FROM_KEY)
    if from_clause is None or select.args.get("joins"):
        return
    table = from_clause.this
    if isinstance(table, exp.Table) and table.name.upper() == "DUAL" and not table.db:
        select.set(_FROM_KEY, None)
        ctx.rule("FROM DUAL removed")


def add_dual(select: exp.Select, ctx: ConversionContext) -> None:
    """Add FROM DUAL to a SELECT without a FROM clause."""
    if select.args.get(_FROM_KEY) is None and select.expressions:
        select.set(_FROM_KEY, exp.From(this=exp.to_table("DUAL")))
        ctx.rule("FROM DUAL added")


def pop_pagination(tree: exp.Expression):
    """
    Detach LIMIT/OFFSET from a top-level query.

    Returns:
        Tuple of (row_count, offset) expressions, either may be None
    """
    limit = tree.args.get("limit")
    offset_node = tree.args.get("offset")
    count = offset = None

    if isinstance(limit, exp.Limit):
        count = limit.args.get("expression")
        offset = limit.args.get("offset")
    elif isinstance(limit, exp.Fetch):
        count = limit.args.get("count")
    if isinstance(offset_node, exp.Offset):
        offset = offset_node.args.get("expression")

    if limit is not None:
        tree.set("limit", None)
    if offset_node is not None:
        tree.set("offset", None)
    return count, offset


def apply_all_transformations(
    expression: exp.Expression,
    ctx: ConversionContext,
    registry: MappingRegistry,
) -> exp.Expression:
    """
    Apply all tree rewrites for ctx.source → ctx.target.

    Args:
        expression: sqlglot tree of one statement; it is modified in place
        ctx: Conversion context collecting warnings and applied rules
        registry: Function and data type rules

    Returns:
        Transformed tree
    """
    transformations = [
        # Structural rewrites first so their arguments are renamed afterwards
        DialectTransformations.transform_decode,
        DialectTransformations.transform_nvl2,
        DialectTransformations.transform_if,
        DialectTransformations.transform_listagg,
        DialectTransformations.transform_group_concat,
        DialectTransformations.transform_sequences,
        DialectTransformations.transform_current_date,
        DialectTransformations.transform_function_mappings,
        DialectTransformations.transform_json_regex,
        DialectTransformations.transform_data_types,
    ]

    for transform in transformations:
        expression = _rewrite(expression, partial(transform, ctx=ctx, registry=registry))

    for select in list(expression.find_all(exp.Select)):
        if ctx.source.is_oracle_family and not ctx.target.is_oracle_family:
            convert_rownum(select, ctx)
            convert_fetch_to_limit(select, ctx)
            remove_dual(select, ctx)
            alias_derived_tables(select, ctx)
        elif ctx.target.is_oracle_family and not ctx.source.is_oracle_family:
            add_dual(select, ctx)

    if ctx.source.is_oracle_family and not ctx.target.is_oracle_family:
        for node in list(expression.find_all(exp.Union, exp.Except, exp.Intersect)):
            convert_fetch_to_limit(node, ctx)
        flag_leftover_rownum(expression, ctx)

    return expression


def generate_sql(expression: exp.Expression, ctx: ConversionContext) -> str:
    """
    Render a transformed tree in the target dialect.

    Oracle targets get their top-level row limit as
    OFFSET n ROWS FETCH NEXT m ROWS ONLY; nested limits are left to the
    sqlglot Oracle generator.
    """
    pretty = ctx.options.format_output
    if not ctx.target.is_oracle_family or ctx.source.is_oracle_family:
        return expression.sql(dialect=ctx.target.sqlglot_name, pretty=pretty)

    query = expression
    if isinstance(expression, (exp.Insert, exp.Create)) and isinstance(expression.expression, (exp.Select, exp.Union)):
        query = expression.expression
    count = offset = None
    if isinstance(query, (exp.Select, exp.Union, exp.Except, exp.Intersect)):
        count, offset = pop_pagination(query)

    sql = expression.sql(dialect=ctx.target.sqlglot_name, pretty=pretty)
    if count is None and offset is None:
        return sql

    separator = "\n" if pretty else " "
    clauses = []
    if offset is not None:
        clauses.append(f"OFFSET {offset.sql(dialect=ctx.target.sqlglot_name)} ROWS")
    if count is not None:
        word = "NEXT" if offset is not None else "FIRST"
        clauses.append(f"FETCH {word} {count.sql(dialect=ctx.target.sqlglot_name)} ROWS ONLY")
    ctx.rule("LIMIT → FETCH FIRST")
    return sql + separator + separator.join(clauses)

