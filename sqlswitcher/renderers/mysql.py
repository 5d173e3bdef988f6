"""
MySQL rendering of DDL records.

MySQL lacks sequences, materialized views, multi-event triggers and
INSTEAD OF triggers; those records render as simulations (a counter table,
a table plus refresh procedure, one trigger per event) or are left
unconverted with an ERROR.
"""

import re
from typing import List

from ..ddl_records import (
    CheckConstraint, ForeignKey, IndexInfo, MaterializedViewAction,
    MaterializedViewInfo, PartitionInfo, PartitionType, ProcedureInfo,
    SequenceInfo, SortOrder, TableInfo, TriggerInfo, TriggerTiming,
    UniqueConstraint,
)
from ..models import ConversionContext, WarningType
from .common import (
    NEW_OLD_REFERENCE, NVL_CALL, PREDICATE_EVENTS, RAISE_APPLICATION_ERROR,
    ROW_ASSIGNMENT, SYSDATE, TRIGGER_PREDICATE, column_list, indent, qualify, quote, swap_quotes,
)

Q = '`'


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


def render_partition(partition: PartitionInfo, ctx: ConversionContext) -> str:
    kind = partition.partition_type
    columns = column_list(partition.columns, Q)
    if kind in (PartitionType.HASH, PartitionType.KEY):
        return f"PARTITION BY {kind.value} ({columns})\nPARTITIONS {partition.count}"

    if kind is PartitionType.COLUMNS or (kind is PartitionType.RANGE and len(partition.columns) > 1):
        header = f"PARTITION BY RANGE COLUMNS ({columns})"
    else:
        header = f"PARTITION BY {kind.value} ({columns})"

    lines = []
    for definition in partition.partitions:
        if kind is PartitionType.LIST:
            bound = f"VALUES IN ({definition.values})"
        elif definition.is_maxvalue:
            bound = "VALUES LESS THAN MAXVALUE"
        else:
            bound = f"VALUES LESS THAN ({definition.values})"
        lines.append(f"    PARTITION {quote(definition.name, Q)} {bound}")
    if any(d.tablespace for d in partition.partitions):
        ctx.info(WarningType.SYNTAX_DIFFERENCE, "Partition tablespaces were dropped for MySQL")
    return header + " (\n" + ",\n".join(lines) + "\n)"


def render_table(table: TableInfo, ctx: ConversionContext) -> str:
    lines = []
    for column in table.columns:
        line = f"    {quote(column.name, Q)} {column.data_type}"
        if column.not_null:
            line += " NOT NULL"
        if column.auto_increment:
            line += " AUTO_INCREMENT"
        if column.default is not None:
            line += f" DEFAULT {column.default}"
        if column.comment is not None:
            line += f" COMMENT '{column.comment}'"
        lines.append(line)
    if table.primary_key:
        lines.append(f"    PRIMARY KEY ({column_list(table.primary_key, Q)})")

    exists = "IF NOT EXISTS " if table.if_not_exists else ""
    create = f"CREATE TABLE {exists}{qualify(table.name, Q)} (\n" + ",\n".join(lines) + "\n)"
    if table.comment is not None:
        create += f" COMMENT='{table.comment}'"
    if table.partition is not None:
        create += "\n" + render_partition(table.partition, ctx)
    statements = [create]
    ctx.rule("CREATE TABLE → MySQL format")

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
            # Functional key parts need their own parentheses
            part = f"({swap_quotes(option.column, Q)})"
        else:
            part = quote(option.column, Q)
        if option.sort_order is SortOrder.DESC:
            part += " DESC"
        if option.nulls_position is not None:
            ctx.warn(
                WarningType.SYNTAX_DIFFERENCE,
                f"MySQL indexes do not support NULLS {option.nulls_position.value}; "
                f"dropped from {option.column}",
                suggestion="NULL values sort first in ascending MySQL indexes",
            )
        parts.append(part)
    if index.is_function_based:
        ctx.rule("Function-based index → MySQL functional key parts")
    keys = ", ".join(parts)
    unique = "UNIQUE " if index.unique else ""
    if index.tablespace:
        ctx.info(WarningType.SYNTAX_DIFFERENCE, f"TABLESPACE {index.tablespace} was dropped for MySQL")
    return f"CREATE {unique}INDEX {quote(index.name, Q)} ON {qualify(index.table, Q)} ({keys})"


def render_sequence(sequence: SequenceInfo, ctx: ConversionContext) -> str:
    name = f"{sequence.name}_seq"
    ctx.warn(
        WarningType.UNSUPPORTED_STATEMENT,
        f"MySQL has no sequences; {sequence.name} is simulated with an AUTO_INCREMENT table",
        suggestion=f"INSERT INTO {name} VALUES (NULL) and read LAST_INSERT_ID(), "
                   "or use an AUTO_INCREMENT column",
    )
    ctx.rule(f"CREATE SEQUENCE {sequence.name} → AUTO_INCREMENT table")
    lines = [
        f"-- Sequence {sequence.name} simulated with an AUTO_INCREMENT table",
        f"CREATE TABLE {quote(name, Q)} (",
        f"    {quote('id', Q)} BIGINT NOT NULL AUTO_INCREMENT PRIMARY KEY",
        f") ENGINE=InnoDB AUTO_INCREMENT={sequence.start_with}",
    ]
    if sequence.increment_by != 1:
        lines.insert(1, f"-- INCREMENT BY {sequence.increment_by} needs auto_increment_increment")
    if sequence.cycle:
        lines.insert(1, "-- CYCLE is not supported by the simulation")
    return "\n".join(lines)


def _trigger_body(trigger: TriggerInfo, event: str) -> str:
    body = NEW_OLD_REFERENCE.sub(lambda m: f"{m.group(1).upper()}.", trigger.body)
    body = ROW_ASSIGNMENT.sub(r"\1SET \2 =", body)
    body = TRIGGER_PREDICATE.sub(
        lambda m: "TRUE" if PREDICATE_EVENTS[m.group(1).upper()] == event else "FALSE", body
    )
    body = RAISE_APPLICATION_ERROR.sub(
        lambda m: f"SIGNAL SQLSTATE '45000' SET MESSAGE_TEXT = '{m.group(2)}'", body
    )
    body = SYSDATE.sub("NOW()", body)
    return NVL_CALL.sub("IFNULL(", body)


def render_trigger(trigger: TriggerInfo, ctx: ConversionContext) -> str:
    if trigger.is_compound:
        ctx.error(
            WarningType.UNSUPPORTED_STATEMENT,
            f"MySQL does not support COMPOUND TRIGGER ({trigger.name})",
            suggestion="Create one trigger per timing point",
        )
        return f"-- COMPOUND TRIGGER {trigger.name} is not supported by MySQL; convert manually\n{trigger.source_text}"
    if trigger.timing is TriggerTiming.INSTEAD_OF:
        ctx.error(
            WarningType.UNSUPPORTED_STATEMENT,
            f"MySQL does not support INSTEAD OF triggers ({trigger.name})",
            suggestion="Use a stored procedure instead of writing through the view",
        )
        return f"-- INSTEAD OF trigger {trigger.name} is not supported by MySQL; convert manually\n{trigger.source_text}"

    if trigger.when_condition:
        ctx.warn(
            WarningType.SYNTAX_DIFFERENCE,
            "MySQL triggers have no WHEN clause; the condition was moved into an IF block",
        )

    events = [e.value for e in trigger.events]
    blocks: List[str] = []
    for event in events:
        name = f"{trigger.name}_{event.lower()}" if len(events) > 1 else trigger.name
        body = _trigger_body(trigger, event)
        lines = [
            "DELIMITER //",
            "",
            f"CREATE TRIGGER {quote(name, Q)}",
            f"{trigger.timing.value} {event} ON {qualify(trigger.table, Q)}",
            "FOR EACH ROW",
            "BEGIN",
        ]
        if trigger.when_condition:
            condition = NEW_OLD_REFERENCE.sub(lambda m: f"{m.group(1).upper()}.", trigger.when_condition)
            lines.append(f"    IF {condition} THEN")
            lines.append(indent(body, "        "))
            lines.append("    END IF;")
        else:
            lines.append(indent(body))
        lines += ["END//", "", "DELIMITER ;"]
        blocks.append("\n".join(lines))

    if len(events) > 1:
        names = ", ".join(f"{trigger.name}_{e.lower()}" for e in events)
        ctx.info(
            WarningType.SYNTAX_DIFFERENCE,
            f"MySQL allows one event per trigger; {trigger.name} was split into {len(events)} triggers",
            suggestion=f"Trigger names: {names}",
        )
    if trigger.declarations:
        ctx.warn(
            WarningType.MANUAL_REVIEW_NEEDED,
            f"DECLARE section of {trigger.name} must move inside BEGIN as DECLARE statements",
        )
    ctx.rule(f"Trigger {trigger.name} → MySQL")
    return "\n\n".join(blocks)


def _declarations(text: str) -> str:
    """Turn a PL/SQL declaration section into MySQL DECLARE statements."""
    declarations = []
    for item in text.split(';'):
        item = item.strip()
        if item:
            item = re.sub(r'\s*:=\s*', ' DEFAULT ', item)
            declarations.append(f"DECLARE {item};")
    return "\n".join(declarations)


def render_procedure(procedure: ProcedureInfo, ctx: ConversionContext) -> str:
    params = ", ".join(
        f"{p.mode.value} {quote(p.name, Q)} {p.data_type}" if not procedure.is_function
        else f"{quote(p.name, Q)} {p.data_type}"
        for p in procedure.parameters
    )
    lines = [f"CREATE {procedure.object_type} {qualify(procedure.name, Q)}({params})"]
    if procedure.is_function:
        lines.append(f"RETURNS {procedure.return_type or 'DECIMAL'}")
    lines.append("BEGIN")
    if procedure.declarations:
        lines.append(indent(_declarations(procedure.declarations)))
    lines.append(indent(procedure.body))
    lines.append("END")
    if any(p.default is not None for p in procedure.parameters):
        ctx.warn(WarningType.SYNTAX_DIFFERENCE, "MySQL parameters have no DEFAULT values; defaults were dropped")
    ctx.rule(f"{procedure.object_type} {procedure.name} → MySQL")
    return "DELIMITER //\n\n" + "\n".join(lines) + "//\n\nDELIMITER ;"


def render_materialized_view(view: MaterializedViewInfo, ctx: ConversionContext) -> str:
    full_name = view.full_name
    if view.action is MaterializedViewAction.DROP:
        ctx.rule(f"DROP MATERIALIZED VIEW {view.name} → MySQL")
        return f"DROP TABLE IF EXISTS {full_name};\nDROP PROCEDURE IF EXISTS {full_name}_refresh"
    if view.action is MaterializedViewAction.REFRESH:
        ctx.rule(f"REFRESH MATERIALIZED VIEW {view.name} → CALL {full_name}_refresh()")
        return f"CALL {full_name}_refresh()"

    ctx.warn(
        WarningType.UNSUPPORTED_STATEMENT,
        "MySQL has no materialized views; emulated with a table and a refresh procedure",
        suggestion="Refresh manually or schedule the procedure with the event scheduler",
    )
    ctx.rule(f"CREATE MATERIALIZED VIEW {view.name} → MySQL table emulation")
    return "\n".join([
        f"-- Materialized view emulation for {view.name}",
        f"CREATE TABLE {full_name} AS",
        f"{view.query};",
        "",
        f"DROP PROCEDURE IF EXISTS {full_name}_refresh;",
        "DELIMITER //",
        f"CREATE PROCEDURE {full_name}_refresh()",
        "BEGIN",
        f"    TRUNCATE TABLE {full_name};",
        f"    INSERT INTO {full_name}",
        indent(view.query, "    ") + ";",
        "END //",
        "DELIMITER ;",
        "",
        f"-- To refresh: CALL {full_name}_refresh();",
        f"-- CREATE EVENT {view.name}_refresh_event",
        "-- ON SCHEDULE EVERY 1 HOUR",
        f"-- DO CALL {full_name}_refresh();",
    ])


RENDERERS = {
    TableInfo: render_table,
    IndexInfo: render_index,
    SequenceInfo: render_sequence,
    TriggerInfo: render_trigger,
    ProcedureInfo: render_procedure,
    MaterializedViewInfo: render_materialized_view,
}
