import pytest

from sqlswitcher.ddl_extractors import (
    balanced, extract_index, extract_materialized_view, extract_procedure,
    extract_sequence, extract_table, extract_trigger, split_name, split_top_level,
)
from sqlswitcher.ddl_records import (
    BuildOption, MaterializedViewAction, NullsPosition, ParameterMode,
    PartitionType, RefreshMethod, RefreshTiming, SortOrder, TriggerEvent, TriggerTiming,
)
from sqlswitcher.models import ConversionError, Dialect

MYSQL_TABLE = """
CREATE TABLE `tb_user` (
  `id` INT NOT NULL AUTO_INCREMENT,
  `name` VARCHAR(50) NOT NULL COMMENT 'user name',
  `dept_id` INT,
  PRIMARY KEY (`id`),
  UNIQUE KEY `uk_name` (`name`),
  KEY `ix_dept` (`dept_id`),
  CONSTRAINT `fk_dept` FOREIGN KEY (`dept_id`) REFERENCES `dept` (`id`) ON DELETE CASCADE
) ENGINE=InnoDB COMMENT='users';
"""

ORACLE_TABLE = """
CREATE TABLE hr.emp (
  emp_id NUMBER(10) NOT NULL,
  salary NUMBER(10,2) DEFAULT 0,
  CONSTRAINT pk_emp PRIMARY KEY (emp_id),
  CONSTRAINT ck_sal CHECK (salary >= 0)
) TABLESPACE users
PARTITION BY RANGE (emp_id) (
  PARTITION p1 VALUES LESS THAN (1000),
  PARTITION p2 VALUES LESS THAN (MAXVALUE)
)
"""


def test_scanner_helpers():
    """Parenthesised groups and top-level commas are found."""
    assert balanced("f(a, (b), 'c)')", 1) == ("a, (b), 'c)'", 15)
    assert split_top_level("a, f(b, c), 'd,e'") == ["a", "f(b, c)", "'d,e'"]
    assert split_name('"hr"."emp"') == ("hr", "emp")
    assert split_name("emp") == (None, "emp")


def test_unbalanced_parentheses():
    """An unclosed group is a conversion error."""
    with pytest.raises(ConversionError):
        balanced("f(a", 1)


def test_mysql_table():
    """Columns, keys, indexes and comments of a MySQL table."""
    table = extract_table(MYSQL_TABLE, Dialect.MYSQL)
    assert table.name == "tb_user"
    assert [c.name for c in table.columns] == ["id", "name", "dept_id"]
    assert table.columns[0].auto_increment
    assert table.columns[0].not_null
    assert table.columns[1].data_type == "VARCHAR(50)"
    assert table.columns[1].comment == "user name"
    assert table.primary_key == ("id",)
    assert table.unique_constraints[0].name == "uk_name"
    assert table.indexes[0].name == "ix_dept"
    fk = table.foreign_keys[0]
    assert (fk.name, fk.referenced_table, fk.referenced_columns, fk.on_delete) == \
        ("fk_dept", "dept", ("id",), "CASCADE")
    assert table.comment == "users"


def test_oracle_table_with_partitions():
    """Oracle constraints and RANGE partitions are read."""
    table = extract_table(ORACLE_TABLE, Dialect.ORACLE)
    assert (table.schema, table.name) == ("hr", "emp")
    assert table.columns[0].data_type == "NUMBER(10)"
    assert table.columns[1].data_type == "NUMBER(10,2)"
    assert table.columns[1].default == "0"
    assert table.primary_key_name == "pk_emp"
    assert table.check_constraints[0].expression == "salary >= 0"
    partition = table.partition
    assert partition.partition_type is PartitionType.RANGE
    assert partition.columns == ("emp_id",)
    assert [p.values for p in partition.partitions] == ["1000", "MAXVALUE"]
    assert partition.partitions[1].is_maxvalue


def test_postgresql_serial_column():
    """SERIAL becomes an auto-increment INTEGER."""
    table = extract_table("CREATE TABLE t (id SERIAL PRIMARY KEY, note TEXT)", Dialect.POSTGRESQL)
    assert table.columns[0].data_type == "INTEGER"
    assert table.columns[0].auto_increment
    assert table.primary_key == ("id",)


def test_not_a_table():
    """CREATE TABLE AS SELECT has no column list to read."""
    with pytest.raises(ConversionError):
        extract_table("CREATE TABLE t AS SELECT * FROM u", Dialect.MYSQL)


def test_index_columns():
    """Sort order and NULLS placement are kept per column."""
    index = extract_index("CREATE UNIQUE INDEX ix_emp ON hr.emp (last_name DESC NULLS LAST, first_name)")
    assert index.name == "ix_emp"
    assert index.table == "hr.emp"
    assert index.unique
    assert index.columns[0].sort_order is SortOrder.DESC
    assert index.columns[0].nulls_position is NullsPosition.LAST
    assert index.columns[1].column == "first_name"


def test_function_based_index():
    """A key expression makes the index function-based."""
    index = extract_index("CREATE INDEX ix_upper ON emp (UPPER(name))")
    assert index.is_function_based
    assert index.expressions == ("UPPER(name)",)
    assert index.columns[0].is_expression


def test_function_based_index_ordering():
    """ASC/DESC and NULLS are split off expression keys; plain keys stay columns."""
    index = extract_index("CREATE INDEX ix ON t (UPPER(name), NVL(x, 0) DESC NULLS LAST, id)")
    upper, nvl, plain = index.columns
    assert upper.column == "UPPER(name)"
    assert nvl.column == "NVL(x, 0)"
    assert nvl.sort_order is SortOrder.DESC
    assert nvl.nulls_position is NullsPosition.LAST
    assert not plain.is_expression
    assert plain.column == "id"


def test_sequence_options():
    """START, INCREMENT, MAXVALUE and CACHE are read; NOCYCLE is not CYCLE."""
    sequence = extract_sequence("CREATE SEQUENCE seq_emp START WITH 100 INCREMENT BY 5 MAXVALUE 9999 CACHE 20 NOCYCLE")
    assert sequence.start_with == 100
    assert sequence.increment_by == 5
    assert sequence.max_value == 9999
    assert sequence.min_value is None
    assert sequence.cache == 20
    assert not sequence.cycle


def test_oracle_trigger():
    """Header and PL/SQL body of an Oracle row trigger."""
    trigger = extract_trigger(
        "CREATE OR REPLACE TRIGGER trg_emp_audit\n"
        "BEFORE INSERT OR UPDATE ON emp\n"
        "FOR EACH ROW\n"
        "BEGIN\n"
        "  :NEW.updated_at := SYSDATE;\n"
        "END;"
    )
    assert trigger.name == "trg_emp_audit"
    assert trigger.table == "emp"
    assert trigger.timing is TriggerTiming.BEFORE
    assert trigger.events == (TriggerEvent.INSERT, TriggerEvent.UPDATE)
    assert trigger.for_each_row
    assert trigger.body == ":NEW.updated_at := SYSDATE;"


def test_postgresql_trigger_body_is_the_call():
    """A PostgreSQL trigger only names its function."""
    trigger = extract_trigger("CREATE TRIGGER trg AFTER DELETE ON t FOR EACH ROW EXECUTE FUNCTION audit_fn()")
    assert trigger.timing is TriggerTiming.AFTER
    assert trigger.events == (TriggerEvent.DELETE,)
    assert trigger.body == "audit_fn();"


def test_mysql_single_statement_trigger():
    """The statement after FOR EACH ROW is the body."""
    trigger = extract_trigger("CREATE TRIGGER trg BEFORE INSERT ON t FOR EACH ROW SET NEW.a = 1")
    assert trigger.body == "SET NEW.a = 1;"


def test_oracle_procedure():
    """Parameters, declarations and body of a PL/SQL procedure."""
    procedure = extract_procedure(
        "CREATE OR REPLACE PROCEDURE raise_salary (p_id IN NUMBER, p_pct IN OUT NUMBER DEFAULT 10) IS\n"
        "  v_count NUMBER := 0;\n"
        "BEGIN\n"
        "  UPDATE emp SET salary = salary * p_pct WHERE emp_id = p_id;\n"
        "END raise_salary;",
        Dialect.ORACLE,
    )
    assert procedure.name == "raise_salary"
    assert not procedure.is_function
    first, second = procedure.parameters
    assert (first.name, first.mode, first.data_type) == ("p_id", ParameterMode.IN, "NUMBER")
    assert (second.mode, second.data_type, second.default) == (ParameterMode.INOUT, "NUMBER", "10")
    assert procedure.declarations == "v_count NUMBER := 0;"
    assert procedure.body == "UPDATE emp SET salary = salary * p_pct WHERE emp_id = p_id;"


def test_postgresql_function():
    """A dollar-quoted function body is read."""
    procedure = extract_procedure(
        "CREATE FUNCTION add_one(x INTEGER) RETURNS INTEGER AS $$\nBEGIN\n  RETURN x + 1;\nEND;\n$$ LANGUAGE plpgsql",
        Dialect.POSTGRESQL,
    )
    assert procedure.is_function
    assert procedure.return_type == "INTEGER"
    assert procedure.parameters[0].name == "x"
    assert procedure.body == "RETURN x + 1;"


def test_materialized_view_options():
    """Build and refresh options of an Oracle materialized view."""
    view = extract_materialized_view(
        "CREATE MATERIALIZED VIEW mv_sales BUILD IMMEDIATE REFRESH FAST ON COMMIT "
        "AS SELECT region, SUM(amount) FROM sales GROUP BY region"
    )
    assert view.name == "mv_sales"
    assert view.refresh_method is RefreshMethod.FAST
    assert view.refresh_timing is RefreshTiming.ON_COMMIT
    assert view.build is BuildOption.IMMEDIATE
    assert view.query.startswith("SELECT region")


def test_materialized_view_drop_and_refresh():
    """DROP and REFRESH are records too."""
    assert extract_materialized_view("DROP MATERIALIZED VIEW mv").action is MaterializedViewAction.DROP
    refresh = extract_materialized_view("REFRESH MATERIALIZED VIEW mv WITH NO DATA")
    assert refresh.action is MaterializedViewAction.REFRESH
    assert not refresh.with_data
