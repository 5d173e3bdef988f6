"""
PostgreSQL rendering of DDL records.

Partitioned tables become declarative partitioning with one
"PARTITION OF" child table per partition; triggers become a trigger
function plus a CREATE TRIGGER that executes it.
"""

import re
from typing import List

from ..ddl_records import (
    BuildOption, CheckConstraint, ForeignKey, IndexInfo, MaterializedViewAction,
    MaterializedViewInfo, PartitionInfo, PartitionType, ProcedureInfo,
    RefreshMethod, RefreshTiming, SequenceInfo, SortOrder, TableInfo,
    TriggerEvent, TriggerInfo, TriggerTiming, UniqueConstraint,
)
from ..models import ConversionContext, WarningType
from .common import (
    NEW_OLD_REFERENCE, NVL_CALL, PREDICATE_EVENTS, RAISE_APPLICATION_ERROR,
    ROW_SET, SIGNAL, SYSDATE, TRIGGER_PREDICATE, column_list, indent, qualify,
    quote, swap_quotes,
)

Q = '"'

_SUBSTR_CALL = re.compile(r'\bSUBSTR\s*\(', re.IGNORECASE)


def render_foreign_key(fk: ForeignKey, table: str, ctx: ConversionContext) -> str:
    sql = (
        f"ALTER TABLE {qualify(table, Q)} ADD CONSTRAINT {quote(fk.name, Q)} "
        f"FOREIGN KEY ({column_list(fk.columns, Q)}) "
        f"REFERENCES {qualify(fk.referenced_table, Q)} ({column_list(fk.referenced_columns, Q)})"
    )
    if fk.on_delete:
        sql += f" ON DELETE {fk.on_delete.upper()}"
    if fk.on_update:
        sql += f" ON UPDATE {fk.on_update.upper()}"
    return sql


def render_unique(constraint: UniqueConstraint, table: str, ctx: ConversionContext) -> str:
    return (
        f"ALTER TABLE {qualify(table, Q)} ADD CONSTRAINT {quote(constraint.name, Q)} "
        f"UNIQUE ({column_list(constraint.columns, Q)})"
    )


def render_check(constraint: CheckConstraint, table: str, ctx: ConversionContext) -> str:
    return (
        f"ALTER TABLE {qualify(table, Q)} ADD CONSTRAINT {quote(constraint.name, Q)} "
        f"CHECK ({swap_quotes(constraint.expression, Q)})"
    )


def render_partition(partition: PartitionInfo, table: str, ctx: ConversionContext) -> List[str]:
    """
    Render the PARTITION BY clause and the child tables.

    Returns:
        List whose first item is the clause appended to CREATE TABLE and
        whose remaining items are CREATE TABLE ... PARTITION OF statements
    """
    kind = partition.partition_type
    keyword = {PartitionType.COLUMNS: "RANGE", PartitionType.KEY: "HASH"}.get(kind, kind.value)
    if kind is PartitionType.KEY:
        ctx.info(WarningType.SYNTAX_DIFFERENCE, "PARTITION BY KEY is rendered as PARTITION BY HASH")
    parent = qualify(table, Q)
    results = [f"PARTITION BY {keyword} ({column_list(partition.columns, Q)})"]

    def child(name: str) -> str:
        return qualify(f"{table}_{name}", Q)

    if keyword == "HASH":
        count = partition.count
        names = [d.name for d in partition.partitions] or [f"p{i}" for i in range(count)]
        for remainder, name in enumerate(names):
            results.append(
                f"CREATE TABLE {child(name)} PARTITION OF {parent}\n"
                f"    FOR VALUES WITH (MODULUS {count}, REMAINDER {remainder})"
            )
        return results

    lower = "MINVALUE"
    for definition in partition.partitions:
        if keyword == "LIST":
            bound = f"FOR VALUES IN ({definition.values})"
        else:
            upper = "MAXVALUE" if definition.is_maxvalue else definition.values
            bound = f"FOR VALUES FROM ({lower}) TO ({upper})"
            lower = upper
        results.append(f"CREATE TABLE {child(definition.name)} PARTITION OF {parent}\n    {bound}")
    if any(d.tablespace for d in partition.partitions):
        ctx.info(WarningType.SYNTAX_DIFFERENCE, "Partition tablespaces were dropped for PostgreSQL")
    ctx.rule("PARTITION → PostgreSQL declarative partitioning")
    return results


def render_table(table: TableInfo, ctx: ConversionContext) -> str:
    lines = []
    for column in table.columns:
        line = f"    {quote(column.name, Q)} {column.data_type}"
        if column.auto_increment:
            line += " GENERATED BY DEFAULT AS IDENTITY"
            ctx.rule("AUTO_INCREMENT → GENERATED BY DEFAULT AS IDENTITY")
        if column.default is not None:
            line += f" DEFAULT {column.default}"
        if column.not_null:
            line += " NOT NULL"
        lines.append(line)
    if table.primary_key:
        lines.append(f"    PRIMARY KEY ({column_list(table.primary_key, Q)})")

    exists = "IF NOT EXISTS " if table.if_not_exists else ""
    name = qualify(table.name, Q)
    create = f"CREATE TABLE {exists}{name} (\n" + ",\n".join(lines) + "\n)"
    statements = [create]
    if table.partition is not None:
        clause, *children = render_partition(table.partition, table.name, ctx)
        statements[0] += "\n" + clause
        statements.extend(children)
    ctx.rule("CREATE TABLE → PostgreSQL format")

    for column in table.columns:
        if column.comment is not None:
            statements.append(f"COMMENT ON COLUMN {name}.{quote(column.name, Q)} IS '{column.comment}'")
    if table.comment is not None:
        statements.append(f"COMMENT ON TABLE {name} IS '{table.comment}'")

    for fk in table.foreign_keys:
        if fk.is_complete:
            statements.append(render_foreign_key(fk, table.name, ctx))
    for constraint in table.unique_constraints:
        statements.append(render_unique(constraint, table.name, ctx))
    for constraint in table.check_constraints:
        statements.append(render_check(constraint, table.name, ctx))
    for index in table.indexes:
        statements.append(render_index(index, ctx))
    return ";\n\n".join(statements)


def render_index(index: IndexInfo, ctx: ConversionContext) -> str:
    parts = []
    for option in index.columns:
        if option.is_expression:
            expression = NVL_CALL.sub("COALESCE(", swap_quotes(option.column, Q))
            part = _SUBSTR_CALL.sub("SUBSTRING(", expression)
        else:
            part = quote(option.column, Q)
        if option.sort_order is SortOrder.DESC:
            part += " DESC"
        if option.nulls_position is not None:
            part += f" NULLS {option.nulls_position.value}"
        parts.append(part)
    if index.is_function_based:
        ctx.rule("Function-based index → PostgreSQL expression index")
    keys = ", ".join(parts)
    unique = "UNIQUE " if index.unique else ""
    if index.tablespace:
        ctx.info(WarningType.SYNTAX_DIFFERENCE, f"TABLESPACE {index.tablespace} was dropped for PostgreSQL")
    return f"CREATE {unique}INDEX {quote(index.name, Q)} ON {qualify(index.table, Q)} ({keys})"


def render_sequence(sequence: SequenceInfo, ctx: ConversionContext) -> str:
    lines = [
        f"CREATE SEQUENCE {qualify(sequence.name, Q, sequence.schema)}",
        f"    START WITH {sequence.start_with}",
        f"    INCREMENT BY {sequence.increment_by}",
    ]
    if sequence.min_value is not None:
        lines.append(f"    MINVALUE {sequence.min_value}")
    if sequence.max_value is not None:
        lines.append(f"    MAXVALUE {sequence.max_value}")
    if sequence.cache is not None and sequence.cache > 1:
        lines.append(f"    CACHE {sequence.cache}")
    if sequence.cycle:
        lines.append("    CYCLE")
    ctx.rule("CREATE SEQUENCE → PostgreSQL")
    return "\n".join(lines)


def _trigger_body(body: str) -> str:
    body = NEW_OLD_REFERENCE.sub(lambda m: f"{m.group(1).upper()}.", body)
    body = ROW_SET.sub(r"\1\2 :=", body)
    body = TRIGGER_PREDICATE.sub(lambda m: f"TG_OP = '{PREDICATE_EVENTS[m.group(1).upper()]}'", body)
    body = RAISE_APPLICATION_ERROR.sub(
        lambda m: f"RAISE EXCEPTION '{m.group(2)}' USING ERRCODE = 'P0001', HINT = 'Oracle error {m.group(1)}'",
        body,
    )
    body = SIGNAL.sub(lambda m: f"RAISE EXCEPTION '{m.group(1)}'", body)
    body = SYSDATE.sub("CURRENT_TIMESTAMP", body)
    return NVL_CALL.sub("COALESCE(", body)


def _return_statement(trigger: TriggerInfo) -> str:
    if trigger.timing is TriggerTiming.AFTER or not trigger.for_each_row:
        return "RETURN NULL;"
    if trigger.events == (TriggerEvent.DELETE,):
        return "RETURN OLD;"
    return "RETURN NEW;"


def render_trigger(trigger: TriggerInfo, ctx: ConversionContext) -> str:
    function_name = f"{trigger.name}_func"
    lines = [
        f"CREATE OR REPLACE FUNCTION {qualify(function_name, Q, trigger.schema)}()",
        "RETURNS TRIGGER",
        "LANGUAGE plpgsql",
        "AS $$",
    ]
    if trigger.declarations:
        lines.append("DECLARE")
        lines.append(indent(trigger.declarations))
    lines.append("BEGIN")
    lines.append(indent(_trigger_body(trigger.body)))
    lines.append("    " + _return_statement(trigger))
    lines.append("END;")
    lines.append("$$;")
    lines.append("")

    events = " OR ".join(
        "UPDATE OF " + ", ".join(trigger.update_columns)
        if e is TriggerEvent.UPDATE and trigger.update_columns else e.value
        for e in trigger.events
    )
    lines.append(f"CREATE OR REPLACE TRIGGER {quote(trigger.name, Q)}")
    lines.append(f"{trigger.timing.value} {events}")
    lines.append(f"ON {qualify(trigger.table, Q, trigger.schema)}")
    lines.append("FOR EACH ROW" if trigger.for_each_row else "FOR EACH STATEMENT")
    if trigger.when_condition:
        condition = NEW_OLD_REFERENCE.sub(lambda m: f"{m.group(1).upper()}.", trigger.when_condition)
        lines.append(f"WHEN ({condition})")
    lines.append(f"EXECUTE FUNCTION {qualify(function_name, Q, trigger.schema)}()")

    if trigger.is_compound:
        ctx.warn(
            WarningType.SYNTAX_DIFFERENCE,
            f"PostgreSQL has no COMPOUND TRIGGER; {trigger.name} needs one trigger function per timing point",
        )
    ctx.rule(f"Trigger {trigger.name} → PostgreSQL trigger function")
    return "\n".join(line for line in lines if line is not None)


def render_procedure(procedure: ProcedureInfo, ctx: ConversionContext) -> str:
    lines = [f"CREATE OR REPLACE {procedure.object_type} {qualify(procedure.name, Q, procedure.schema)}("]
    params = []
    for p in procedure.parameters:
        text = f"    {p.mode.value} {quote(p.name, Q)} {p.data_type}"
        if p.default is not None:
            text += f" DEFAULT {p.default}"
        params.append(text)
    if params:
        lines.append(",\n".join(params))
    lines.append(")")
    if procedure.is_function:
        lines.append(f"RETURNS {procedure.return_type or 'NUMERIC'}")
    lines.append("LANGUAGE plpgsql")
    lines.append("AS $$")
    if procedure.declarations:
        lines.append("DECLARE")
        lines.append(indent(procedure.declarations))
    lines.append("BEGIN")
    lines.append(indent(procedure.body))
    lines.append("END;")
    lines.append("$$")
    ctx.rule(f"{procedure.object_type} {procedure.name} → PostgreSQL plpgsql")
    return "\n".join(line for line in lines if line)


def render_materialized_view(view: MaterializedViewInfo, ctx: ConversionContext) -> str:
    full_name = view.full_name
    if view.action is MaterializedViewAction.DROP:
        ctx.rule(f"DROP MATERIALIZED VIEW {view.name} → PostgreSQL")
        return f"DROP MATERIALIZED VIEW IF EXISTS {full_name} CASCADE"
    if view.action is MaterializedViewAction.REFRESH:
        ctx.rule(f"REFRESH MATERIALIZED VIEW {view.name} → PostgreSQL")
        return f"REFRESH MATERIALIZED VIEW {full_name}" + ("" if view.with_data else " WITH NO DATA")

    if view.refresh_timing is RefreshTiming.ON_COMMIT:
        ctx.warn(
            WarningType.SYNTAX_DIFFERENCE,
            "PostgreSQL cannot refresh a materialized view ON COMMIT",
            suggestion="Call REFRESH MATERIALIZED VIEW from a trigger or the application",
        )
    if view.refresh_method is RefreshMethod.FAST:
        ctx.info(
            WarningType.SYNTAX_DIFFERENCE,
            "PostgreSQL has no incremental (FAST) refresh",
            suggestion="REFRESH MATERIALIZED VIEW CONCURRENTLY avoids blocking readers",
        )
    if view.enable_query_rewrite:
        ctx.info(
            WarningType.UNSUPPORTED_FUNCTION,
            "PostgreSQL does not rewrite queries to use materialized views",
            suggestion="Reference the materialized view directly in queries",
        )
    with_data = view.with_data and view.build is BuildOption.IMMEDIATE
    ctx.rule(f"CREATE MATERIALIZED VIEW {view.name} → PostgreSQL")
    return "\n".join([
        f"CREATE MATERIALIZED VIEW {full_name} AS",
        view.query,
        "WITH DATA" if with_data else "WITH NO DATA",
    ])


RENDERERS = {
    TableInfo: render_table,
    IndexInfo: render_index,
    SequenceInfo: render_sequence,
    TriggerInfo: render_trigger,
    ProcedureInfo: render_procedure,
    MaterializedViewInfo: render_materialized_view,
}
