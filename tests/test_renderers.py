import pytest

from sqlswitcher.ddl_records import (
    ColumnInfo, IndexColumnOption, IndexInfo, MaterializedViewInfo, NullsPosition,
    ParameterMode, ProcedureInfo, ProcedureParameter, RefreshTiming, SequenceInfo,
    SortOrder, TableInfo, TriggerEvent, TriggerInfo, TriggerTiming,
)
from sqlswitcher.models import WarningSeverity, WarningType
from sqlswitcher.renderers import render

USER_TABLE = TableInfo(
    name="TB_USER",
    columns=(
        ColumnInfo("id", "NUMBER(10)", not_null=True),
        ColumnInfo("name", "VARCHAR2(50 BYTE)", comment="user name"),
    ),
    primary_key=("id",),
    comment="users",
)

AUDIT_TRIGGER = TriggerInfo(
    name="trg",
    table="emp",
    timing=TriggerTiming.BEFORE,
    events=(TriggerEvent.INSERT, TriggerEvent.UPDATE),
    body=(
        ":NEW.updated_at := SYSDATE;\n"
        "IF :NEW.salary < 0 THEN\n"
        "  RAISE_APPLICATION_ERROR(-20001, 'negative');\n"
        "END IF;"
    ),
)


def test_pk_name_drops_table_prefix():
    """PK names are derived from the table name without TB_/T_."""
    assert USER_TABLE.pk_name == "PK_USER"
    assert TableInfo("T_ORDER", ()).pk_name == "PK_ORDER"
    assert TableInfo("x", (), primary_key_name="pk_x").pk_name == "pk_x"


def test_oracle_table_house_style(make_ctx):
    """Owner, tablespaces, COMMENT ON and a separate primary key."""
    ctx = make_ctx("mysql", "oracle")
    sql = render(USER_TABLE, ctx)
    statements = sql.split(";\n\n")
    assert statements[0] == (
        'CREATE TABLE "SCHEMA_OWNER"."TB_USER"\n'
        "(\n"
        '    "id" NUMBER(10) NOT NULL,\n'
        '    "name" VARCHAR2(50 BYTE)\n'
        ') TABLESPACE "TABLESPACE_NAME"'
    )
    assert 'COMMENT ON COLUMN "SCHEMA_OWNER"."TB_USER"."name" IS \'user name\'' in statements
    assert 'COMMENT ON TABLE "SCHEMA_OWNER"."TB_USER" IS \'users\'' in statements
    assert (
        'CREATE UNIQUE INDEX "SCHEMA_OWNER"."PK_USER" ON "SCHEMA_OWNER"."TB_USER" ("id")\n'
        '    TABLESPACE "INDEXSPACE_NAME"'
    ) in statements
    assert statements[-1] == (
        'ALTER TABLE "SCHEMA_OWNER"."TB_USER" ADD CONSTRAINT "PK_USER" PRIMARY KEY ("id")\n'
        '    USING INDEX "SCHEMA_OWNER"."PK_USER" ENABLE'
    )


def test_oracle_table_options(make_ctx):
    """Owner and tablespace come from the options; the key can stay inline."""
    ctx = make_ctx("mysql", "oracle", schema_owner="APP", tablespace="TS_DATA",
                   separate_primary_key=False, separate_comments=False)
    sql = render(USER_TABLE, ctx)
    assert sql.startswith('CREATE TABLE "APP"."TB_USER"')
    assert 'TABLESPACE "TS_DATA"' in sql
    assert '    CONSTRAINT "PK_USER" PRIMARY KEY ("id")' in sql
    assert "ALTER TABLE" not in sql
    assert "COMMENT ON" not in sql
    assert any(w.kind is WarningType.SYNTAX_DIFFERENCE for w in ctx.warnings)


def test_oracle_primary_key_without_index(make_ctx):
    """generate_index off keeps only the constraint."""
    sql = render(USER_TABLE, make_ctx("mysql", "oracle", generate_index=False))
    assert "CREATE UNIQUE INDEX" not in sql
    assert sql.endswith('PRIMARY KEY ("id")\n    ENABLE')


def test_oracle_index_drops_nulls_order(make_ctx):
    """Oracle indexes cannot carry NULLS FIRST/LAST."""
    ctx = make_ctx("postgresql", "oracle")
    index = IndexInfo("ix_a", "emp", (IndexColumnOption("a", SortOrder.DESC, NullsPosition.LAST),))
    sql = render(index, ctx)
    assert sql == 'CREATE INDEX "SCHEMA_OWNER"."ix_a" ON "SCHEMA_OWNER"."emp" ("a" DESC) TABLESPACE "INDEXSPACE_NAME"'
    assert ctx.warnings[0].severity is WarningSeverity.WARNING


def test_oracle_procedure_parameters(make_ctx):
    """INOUT parameters are written IN OUT."""
    procedure = ProcedureInfo("p", (ProcedureParameter("a", ParameterMode.INOUT, "NUMBER"),), body="NULL;")
    sql = render(procedure, make_ctx("mysql", "oracle"))
    assert sql.startswith('CREATE OR REPLACE PROCEDURE "SCHEMA_OWNER"."p" (')
    assert '    "a" IN OUT NUMBER' in sql
    assert sql.endswith("BEGIN\n    NULL;\nEND;")


def test_mysql_sequence_simulation(make_ctx):
    """Sequences become AUTO_INCREMENT tables for MySQL."""
    ctx = make_ctx("oracle", "mysql")
    sql = render(SequenceInfo("seq_order", start_with=100), ctx)
    assert "CREATE TABLE `seq_order_seq` (" in sql
    assert "AUTO_INCREMENT=100" in sql
    assert ctx.warnings[0].kind is WarningType.UNSUPPORTED_STATEMENT


def test_mysql_trigger_per_event(make_ctx):
    """Each event gets its own MySQL trigger with a rewritten body."""
    ctx = make_ctx("oracle", "mysql")
    sql = render(AUDIT_TRIGGER, ctx)
    assert sql.count("DELIMITER //") == 2
    assert "CREATE TRIGGER `trg_insert`" in sql
    assert "CREATE TRIGGER `trg_update`" in sql
    assert "BEFORE INSERT ON `emp`" in sql
    assert "SET NEW.updated_at = NOW();" in sql
    assert "SIGNAL SQLSTATE '45000' SET MESSAGE_TEXT = 'negative'" in sql
    assert ":NEW" not in sql


def test_mysql_instead_of_trigger(make_ctx):
    """INSTEAD OF triggers are reported and kept as source."""
    ctx = make_ctx("oracle", "mysql")
    trigger = TriggerInfo("trg_v", "v_emp", TriggerTiming.INSTEAD_OF, (TriggerEvent.INSERT,), "NULL;",
                          source_text="CREATE TRIGGER trg_v INSTEAD OF INSERT ON v_emp")
    sql = render(trigger, ctx)
    assert sql.startswith("-- INSTEAD OF trigger trg_v")
    assert sql.endswith("CREATE TRIGGER trg_v INSTEAD OF INSERT ON v_emp")
    assert ctx.warnings[0].severity is WarningSeverity.ERROR


def test_mysql_functional_index(make_ctx):
    """Functional key parts get their own parentheses."""
    index = IndexInfo("ix_upper", "emp", (IndexColumnOption("UPPER(name)", is_expression=True),))
    assert render(index, make_ctx("oracle", "mysql")) == "CREATE INDEX `ix_upper` ON `emp` ((UPPER(name)))"


def test_mysql_functional_index_order(make_ctx):
    """DESC follows the parenthesised key part; NULLS LAST is dropped with a warning."""
    ctx = make_ctx("oracle", "mysql")
    index = IndexInfo("ix", "t", (
        IndexColumnOption("UPPER(name)", is_expression=True),
        IndexColumnOption("IFNULL(x, 0)", SortOrder.DESC, NullsPosition.LAST, is_expression=True),
    ))
    assert render(index, ctx) == "CREATE INDEX `ix` ON `t` ((UPPER(name)), (IFNULL(x, 0)) DESC)"
    assert len(ctx.warnings) == 1
    assert "NULLS LAST" in ctx.warnings[0].message


def test_mysql_materialized_view_emulation(make_ctx):
    """A table plus a refresh procedure stands in for the view."""
    ctx = make_ctx("oracle", "mysql")
    sql = render(MaterializedViewInfo("mv_sales", query="SELECT 1 AS a"), ctx)
    assert "CREATE TABLE mv_sales AS" in sql
    assert "CREATE PROCEDURE mv_sales_refresh()" in sql


def test_postgresql_trigger_function(make_ctx):
    """Oracle triggers become a trigger function plus CREATE TRIGGER."""
    trigger = TriggerInfo(
        "trg_emp", "emp", TriggerTiming.BEFORE, (TriggerEvent.INSERT, TriggerEvent.UPDATE),
        body="IF INSERTING THEN\n  :NEW.created_at := SYSDATE;\nEND IF;",
    )
    sql = render(trigger, make_ctx("oracle", "postgresql"))
    assert 'CREATE OR REPLACE FUNCTION "trg_emp_func"()' in sql
    assert "RETURNS TRIGGER\nLANGUAGE plpgsql\nAS $$" in sql
    assert "IF TG_OP = 'INSERT' THEN" in sql
    assert "NEW.created_at := CURRENT_TIMESTAMP;" in sql
    assert "    RETURN NEW;" in sql
    assert "BEFORE INSERT OR UPDATE" in sql
    assert sql.endswith('EXECUTE FUNCTION "trg_emp_func"()')


@pytest.mark.parametrize("timing, events, expected", [
    (TriggerTiming.AFTER, (TriggerEvent.INSERT,), "RETURN NULL;"),
    (TriggerTiming.BEFORE, (TriggerEvent.DELETE,), "RETURN OLD;"),
])
def test_postgresql_trigger_return(make_ctx, timing, events, expected):
    """The trigger function returns what the timing requires."""
    trigger = TriggerInfo("trg", "emp", timing, events, body="NULL;")
    assert expected in render(trigger, make_ctx("oracle", "postgresql"))


def test_postgresql_raise(make_ctx):
    """RAISE_APPLICATION_ERROR becomes RAISE EXCEPTION."""
    sql = render(AUDIT_TRIGGER, make_ctx("oracle", "postgresql"))
    assert "RAISE EXCEPTION 'negative' USING ERRCODE = 'P0001'" in sql


def test_postgresql_functional_index(make_ctx):
    """Oracle functions inside index keys are renamed."""
    index = IndexInfo("ix", "emp", (
        IndexColumnOption("NVL(a, 0)", is_expression=True),
        IndexColumnOption("SUBSTR(b, 1, 3)", is_expression=True),
    ))
    sql = render(index, make_ctx("oracle", "postgresql"))
    assert sql == 'CREATE INDEX "ix" ON "emp" (COALESCE(a, 0), SUBSTRING(b, 1, 3))'


def test_postgresql_materialized_view(make_ctx):
    """ON COMMIT refresh is reported; data is loaded on creation."""
    ctx = make_ctx("oracle", "postgresql")
    view = MaterializedViewInfo("mv", query="SELECT 1", refresh_timing=RefreshTiming.ON_COMMIT)
    assert render(view, ctx) == "CREATE MATERIALIZED VIEW mv AS\nSELECT 1\nWITH DATA"
    assert ctx.warnings[0].severity is WarningSeverity.WARNING


def test_postgresql_sequence(make_ctx):
    """Sequence options are carried over."""
    sql = render(SequenceInfo("seq_a", start_with=10, increment_by=2, cache=20), make_ctx("oracle", "postgresql"))
    assert sql == 'CREATE SEQUENCE "seq_a"\n    START WITH 10\n    INCREMENT BY 2\n    CACHE 20'
