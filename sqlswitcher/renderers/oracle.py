"""
Oracle (and Tibero) rendering of DDL records.

Generated DDL follows the usual Oracle house style: quoted owner-qualified
names, TABLESPACE clauses, primary keys split into a unique index plus an
ALTER TABLE constraint, and comments as standalone COMMENT ON statements.
"""

from typing import List

from ..ddl_records import (
    CheckConstraint, ForeignKey, IndexInfo, MaterializedViewAction,
    MaterializedViewInfo, ParameterMode, PartitionInfo, PartitionType,
    ProcedureInfo, SequenceInfo, SortOrder, TableInfo, TriggerInfo, UniqueConstraint,
)
from ..models import ConversionContext, WarningType
from .common import (
    BARE_NEW_OLD_REFERENCE, ROW_SET, SIGNAL, column_list, indent, qualify, quote, swap_quotes,
)

Q = '"'


def _table_name(ctx: ConversionContext, name: str) -> str:
    return qualify(name, Q, ctx.options.owner)


def render_foreign_key(fk: ForeignKey, table: str, ctx: ConversionContext) -> str:
    sql = (
        f"ALTER TABLE {_table_name(ctx, table)} ADD CONSTRAINT {quote(fk.name, Q)} "
        f"FOREIGN KEY ({column_list(fk.columns, Q)}) "
        f"REFERENCES {_table_name(ctx, fk.referenced_table)} ({column_list(fk.referenced_columns, Q)})"
    )
    if fk.on_delete:
        sql += f" ON DELETE {fk.on_delete.upper()}"
    if fk.on_update:
        ctx.warn(
            WarningType.SYNTAX_DIFFERENCE,
            f"Oracle has no ON UPDATE action; dropped from {fk.name}",
            suggestion="Use a trigger to cascade key updates",
        )
    return sql + " ENABLE"


def render_unique(constraint: UniqueConstraint, table: str, ctx: ConversionContext) -> str:
    sql = (
        f"ALTER TABLE {_table_name(ctx, table)} ADD CONSTRAINT {quote(constraint.name, Q)} "
        f"UNIQUE ({column_list(constraint.columns, Q)})"
    )
    if ctx.options.generate_index:
        sql += f"\n    USING INDEX TABLESPACE {quote(ctx.options.index_space, Q)}"
    return sql + " ENABLE"


def render_check(constraint: CheckConstraint, table: str, ctx: ConversionContext) -> str:
    return (
        f"ALTER TABLE {_table_name(ctx, table)} ADD CONSTRAINT {quote(constraint.name, Q)} "
        f"CHECK ({swap_quotes(constraint.expression, Q)}) ENABLE"
    )


def render_partition(partition: PartitionInfo, ctx: ConversionContext) -> str:
    kind = partition.partition_type
    keyword = "RANGE" if kind is PartitionType.COLUMNS else kind.value
    if kind is PartitionType.KEY:
        keyword = "HASH"
        ctx.info(WarningType.SYNTAX_DIFFERENCE, "PARTITION BY KEY is rendered as PARTITION BY HASH")
    header = f"PARTITION BY {keyword} ({column_list(partition.columns, Q)})"

    if kind in (PartitionType.HASH, PartitionType.KEY):
        return f"{header}\nPARTITIONS {partition.count}"

    lines = []
    for definition in partition.partitions:
        if kind is PartitionType.LIST:
            bound = f"VALUES ({definition.values})"
        elif definition.is_maxvalue:
            bound = "VALUES LESS THAN (MAXVALUE)"
        else:
            bound = f"VALUES LESS THAN ({definition.values})"
        line = f"    PARTITION {quote(definition.name, Q)} {bound}"
        if definition.tablespace:
            line += f" TABLESPACE {quote(definition.tablespace, Q)}"
        lines.append(line)
    return header + "\n(\n" + ",\n".join(lines) + "\n)"


def render_table(table: TableInfo, ctx: ConversionContext) -> str:
    """
    Render CREATE TABLE and its companion statements.

    Returns:
        The statements joined with ';\\n\\n', without a trailing terminator
    """
    options = ctx.options
    owner = options.owner
    name = table.name
    full_name = _table_name(ctx, name)

    column_lines = []
    for column in table.columns:
        line = f"    {quote(column.name, Q)} {column.data_type}"
        if column.default is not None:
            line += f" DEFAULT {column.default}"
        if column.not_null:
            line += " NOT NULL"
        column_lines.append(line)
        if column.auto_increment:
            ctx.warn(
                WarningType.SYNTAX_DIFFERENCE,
                f"AUTO_INCREMENT on {column.name} must become a SEQUENCE in Oracle",
                suggestion="Create a SEQUENCE with a trigger or use an IDENTITY column",
            )

    if table.primary_key and not options.separate_primary_key:
        column_lines.append(
            f"    CONSTRAINT {quote(table.pk_name, Q)} PRIMARY KEY ({column_list(table.primary_key, Q)})"
        )

    create = f"CREATE TABLE {full_name}\n(\n" + ",\n".join(column_lines) + f"\n) TABLESPACE {quote(options.table_space, Q)}"
    if table.partition is not None:
        create += "\n" + render_partition(table.partition, ctx)
    statements = [create]
    ctx.rule("CREATE TABLE → Oracle format")

    comments = [
        f"COMMENT ON COLUMN {full_name}.{quote(c.name, Q)} IS '{c.comment}'"
        for c in table.columns if c.comment is not None
    ]
    if table.comment is not None:
        comments.append(f"COMMENT ON TABLE {full_name} IS '{table.comment}'")
    if comments:
        if options.separate_comments:
            statements.extend(comments)
            ctx.rule("COMMENT → COMMENT ON")
        else:
            ctx.warn(
                WarningType.SYNTAX_DIFFERENCE,
                "Oracle has no inline column comments; comments were dropped",
                suggestion="Enable separate_comments to emit COMMENT ON statements",
            )

    if table.primary_key and options.separate_primary_key:
        pk_name = table.pk_name
        pk_columns = column_list(table.primary_key, Q)
        constraint = f"ALTER TABLE {full_name} ADD CONSTRAINT {quote(pk_name, Q)} PRIMARY KEY ({pk_columns})"
        if options.generate_index:
            statements.append(
                f"CREATE UNIQUE INDEX {qualify(pk_name, Q, owner)} ON {full_name} ({pk_columns})\n"
                f"    TABLESPACE {quote(options.index_space, Q)}"
            )
            constraint += f"\n    USING INDEX {qualify(pk_name, Q, owner)} ENABLE"
            ctx.rule("PRIMARY KEY → UNIQUE INDEX")
        else:
            constraint += "\n    ENABLE"
        statements.append(constraint)
        ctx.rule("PRIMARY KEY → ALTER TABLE ADD CONSTRAINT")

    for fk in table.foreign_keys:
        if fk.is_complete:
            statements.append(render_foreign_key(fk, name, ctx))
            ctx.rule("FOREIGN KEY → ALTER TABLE ADD CONSTRAINT")
        else:
            ctx.warn(
                WarningType.PARTIAL_SUPPORT,
                f"Foreign key {fk.name} has no referenced table or columns",
                suggestion="Add the foreign key manually",
            )
    for constraint in table.unique_constraints:
        statements.append(render_unique(constraint, name, ctx))
    for constraint in table.check_constraints:
        statements.append(render_check(constraint, name, ctx))
    for index in table.indexes:
        statements.append(render_index(index, ctx))

    return ";\n\n".join(statements)


def render_index(index: IndexInfo, ctx: ConversionContext) -> str:
    owner = ctx.options.owner
    parts = []
    for option in index.columns:
        part = swap_quotes(option.column, Q) if option.is_expression else quote(option.column, Q)
        if option.sort_order is SortOrder.DESC:
            part += " DESC"
        if option.nulls_position is not None:
            ctx.warn(
                WarningType.SYNTAX_DIFFERENCE,
                f"NULLS {option.nulls_position.value} is not allowed in an Oracle index; "
                f"dropped from {option.column}",
                suggestion="Use a function-based index with NVL to control NULL ordering",
            )
        parts.append(part)
    if index.is_function_based:
        ctx.rule("Function-based index → Oracle")
    keys = ", ".join(parts)
    unique = "UNIQUE " if index.unique else ""
    tablespace = index.tablespace or ctx.options.index_space
    return (
        f"CREATE {unique}INDEX {qualify(index.name, Q, owner)} ON {qualify(index.table, Q, owner)} "
        f"({keys}) TABLESPACE {quote(tablespace, Q)}"
    )


def render_sequence(sequence: SequenceInfo, ctx: ConversionContext) -> str:
    lines = [
        f"CREATE SEQUENCE {qualify(sequence.name, Q, sequence.schema or ctx.options.owner)}",
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
    ctx.rule("CREATE SEQUENCE → Oracle")
    return "\n".join(lines)


def _trigger_body(body: str) -> str:
    body = ROW_SET.sub(r"\1\2 :=", body)
    body = BARE_NEW_OLD_REFERENCE.sub(lambda m: f":{m.group(1).upper()}.", body)
    return SIGNAL.sub(lambda m: f"RAISE_APPLICATION_ERROR(-20000, '{m.group(1)}')", body)


def render_trigger(trigger: TriggerInfo, ctx: ConversionContext) -> str:
    owner = trigger.schema or ctx.options.owner
    events = " OR ".join(e.value for e in trigger.events)
    lines = [
        f"CREATE OR REPLACE TRIGGER {qualify(trigger.name, Q, owner)}",
        f"{trigger.timing.value} {events}",
        f"ON {qualify(trigger.table, Q, owner)}",
    ]
    if trigger.for_each_row:
        lines.append("FOR EACH ROW")
    if trigger.when_condition:
        # Oracle WHEN clauses reference NEW/OLD without the colon
        lines.append(f"WHEN ({trigger.when_condition})")
    if trigger.declarations:
        lines.append("DECLARE")
        lines.append(indent(trigger.declarations))
    lines.append("BEGIN")
    lines.append(indent(_trigger_body(trigger.body) or "NULL;"))
    lines.append("END;")
    ctx.rule(f"Trigger {trigger.name} → Oracle")
    return "\n".join(line for line in lines if line)


def _parameter(parameter) -> str:
    mode = "IN OUT" if parameter.mode is ParameterMode.INOUT else parameter.mode.value
    text = f"{quote(parameter.name, Q)} {mode} {parameter.data_type}"
    if parameter.default is not None:
        text += f" DEFAULT {parameter.default}"
    return text


def render_procedure(procedure: ProcedureInfo, ctx: ConversionContext) -> str:
    owner = procedure.schema or ctx.options.owner
    header = f"CREATE OR REPLACE {procedure.object_type} {qualify(procedure.name, Q, owner)}"
    lines: List[str] = []
    if procedure.parameters:
        lines.append(header + " (")
        lines.append(",\n".join("    " + _parameter(p) for p in procedure.parameters))
        lines.append(")")
    else:
        lines.append(header)
    if procedure.is_function:
        lines.append(f"RETURN {procedure.return_type or 'NUMBER'}")
    lines.append("IS")
    if procedure.declarations:
        lines.append(indent(procedure.declarations))
    lines.append("BEGIN")
    lines.append(indent(procedure.body or "NULL;"))
    lines.append("END;")
    ctx.rule(f"{procedure.object_type} {procedure.name} → Oracle")
    return "\n".join(line for line in lines if line)


def render_materialized_view(view: MaterializedViewInfo, ctx: ConversionContext) -> str:
    if view.action is MaterializedViewAction.DROP:
        ctx.rule(f"DROP MATERIALIZED VIEW {view.name} → Oracle")
        return f"DROP MATERIALIZED VIEW {view.full_name}"
    if view.action is MaterializedViewAction.REFRESH:
        ctx.rule(f"REFRESH MATERIALIZED VIEW {view.name} → DBMS_MVIEW.REFRESH")
        return f"BEGIN\n    DBMS_MVIEW.REFRESH('{view.full_name}');\nEND;"

    lines = [
        f"CREATE MATERIALIZED VIEW {view.full_name}",
        f"BUILD {view.build.value}",
        f"REFRESH {view.refresh_method.value} ON {view.refresh_timing.value}",
    ]
    if view.enable_query_rewrite:
        lines.append("ENABLE QUERY REWRITE")
    if view.tablespace:
        lines.append(f"TABLESPACE {view.tablespace}")
    lines.append("AS")
    lines.append(view.query)
    ctx.rule(f"CREATE MATERIALIZED VIEW {view.name} → Oracle")
    return "\n".join(lines)


RENDERERS = {
    TableInfo: render_table,
    IndexInfo: render_index,
    SequenceInfo: render_sequence,
    TriggerInfo: render_trigger,
    ProcedureInfo: render_procedure,
    MaterializedViewInfo: render_materialized_view,
}
