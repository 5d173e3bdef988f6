import pytest

from sqlswitcher.fallback import FallbackTransformer, rewrite_calls, strip_physical_clauses
from sqlswitcher.models import Dialect, WarningSeverity, WarningType


@pytest.fixture
def fallback(registry):
    return FallbackTransformer(registry)


def test_nvl_and_rownum_to_mysql(fallback, make_ctx):
    """NVL becomes IFNULL and a lone ROWNUM bound becomes LIMIT."""
    ctx = make_ctx("oracle", "mysql")
    result = fallback.transform("SELECT NVL(a, 0) FROM t WHERE ROWNUM <= 5", ctx)
    assert result == "SELECT IFNULL(a, 0) FROM t LIMIT 5"
    assert "NVL → IFNULL" in ctx.applied_rules
    assert "ROWNUM → LIMIT" in ctx.applied_rules


@pytest.mark.parametrize("sql, expected", [
    ("SELECT a FROM t WHERE ROWNUM < 11 AND b = 1", "SELECT a FROM t WHERE b = 1 LIMIT 10"),
    ("SELECT a FROM t WHERE b = 1 AND ROWNUM <= 3", "SELECT a FROM t WHERE b = 1 LIMIT 3"),
])
def test_rownum_inside_where(fallback, make_ctx, sql, expected):
    """ROWNUM conjuncts are removed from the WHERE clause."""
    assert fallback.transform(sql, make_ctx("oracle", "mysql")) == expected


def test_unconvertible_rownum_is_flagged(fallback, make_ctx):
    """ROWNUM = n (n > 1) is left in place with a review warning."""
    ctx = make_ctx("oracle", "postgresql")
    result = fallback.transform("SELECT a FROM t WHERE ROWNUM = 5", ctx)
    assert "ROWNUM = 5" in result
    assert any(w.kind is WarningType.MANUAL_REVIEW_NEEDED for w in ctx.warnings)


def test_dual_and_minus(fallback, make_ctx):
    """FROM DUAL is dropped and MINUS becomes EXCEPT."""
    ctx = make_ctx("oracle", "postgresql")
    assert fallback.transform("SELECT 1 FROM DUAL", ctx) == "SELECT 1"
    assert fallback.transform("SELECT a FROM t MINUS SELECT a FROM u", ctx) == \
        "SELECT a FROM t EXCEPT SELECT a FROM u"


@pytest.mark.parametrize("sql", [
    "SELECT * FROM t LIMIT 10 OFFSET 5",
    "SELECT * FROM t LIMIT 5, 10",
])
def test_limit_to_fetch_for_oracle(fallback, make_ctx, sql):
    """Both MySQL LIMIT forms become OFFSET ... FETCH NEXT."""
    result = fallback.transform(sql, make_ctx("mysql", "oracle"))
    assert result == "SELECT * FROM t OFFSET 5 ROWS FETCH NEXT 10 ROWS ONLY"


def test_limit_without_offset(fallback, make_ctx):
    """A plain LIMIT becomes FETCH FIRST."""
    result = fallback.transform("SELECT * FROM t LIMIT 3", make_ctx("postgresql", "tibero"))
    assert result == "SELECT * FROM t FETCH FIRST 3 ROWS ONLY"


def test_literals_are_not_rewritten(fallback, make_ctx):
    """Function names inside string literals stay as written."""
    sql = "SELECT 'NVL(x)' FROM t"
    assert fallback.transform(sql, make_ctx("oracle", "mysql")) == sql


def test_storage_clauses_and_types(fallback, make_ctx):
    """Oracle storage clauses are dropped and column types mapped."""
    ctx = make_ctx("oracle", "postgresql")
    sql = "CREATE TABLE t (id NUMBER(10)) TABLESPACE users PCTFREE 10 NOLOGGING"
    assert fallback.transform(sql, ctx) == "CREATE TABLE t (id INTEGER)"
    assert "TABLESPACE clause removed" in ctx.applied_rules
    assert "LOGGING clause removed" in ctx.applied_rules


def test_mysql_table_options(make_ctx):
    """ENGINE and CHARSET options have no PostgreSQL form."""
    sql, removed = strip_physical_clauses(
        "CREATE TABLE t (id INT) ENGINE=InnoDB DEFAULT CHARSET=utf8mb4", Dialect.MYSQL, Dialect.POSTGRESQL)
    assert sql == "CREATE TABLE t (id INT)"
    assert removed == ["table options"]


def test_physical_clauses_kept_between_oracle_family():
    """Oracle and Tibero share storage syntax."""
    sql = "CREATE TABLE t (id NUMBER) TABLESPACE users"
    assert strip_physical_clauses(sql, Dialect.ORACLE, Dialect.TIBERO) == (sql, [])


def test_comment_on_for_mysql(fallback, make_ctx):
    """COMMENT ON is commented out for MySQL."""
    ctx = make_ctx("oracle", "mysql")
    result = fallback.transform("COMMENT ON TABLE t IS 'x'", ctx)
    assert result == "-- COMMENT ON TABLE t IS 'x'"
    assert ctx.warnings[0].kind is WarningType.UNSUPPORTED_STATEMENT


def test_sequence_calls_to_postgresql(fallback, make_ctx):
    """seq.NEXTVAL becomes nextval('seq')."""
    result = fallback.transform("SELECT seq_a.NEXTVAL FROM dual", make_ctx("oracle", "postgresql"))
    assert result == "SELECT nextval('seq_a')"


def test_sequence_calls_to_oracle(fallback, make_ctx):
    """nextval('seq') becomes seq.NEXTVAL."""
    result = fallback.transform("INSERT INTO t VALUES (nextval('seq_a'))", make_ctx("postgresql", "oracle"))
    assert result == "INSERT INTO t VALUES (seq_a.NEXTVAL)"


def test_schema_prefix_removed_for_mysql(fallback, make_ctx):
    """Oracle schema owners are dropped for MySQL."""
    ctx = make_ctx("oracle", "mysql")
    assert fallback.transform("SELECT * FROM hr.emp", ctx) == "SELECT * FROM emp"
    assert "Schema prefixes removed" in ctx.applied_rules


def test_custom_mappings_win(fallback, make_ctx):
    """A custom mapping overrides the registry rule."""
    ctx = make_ctx("oracle", "mysql", custom_mappings={"NVL": "MY_NVL"})
    assert fallback.transform("SELECT NVL(a, 0) FROM t", ctx) == "SELECT MY_NVL(a, 0) FROM t"
    assert "NVL → MY_NVL (custom)" in ctx.applied_rules
    assert "NVL → IFNULL" not in ctx.applied_rules


def test_case_rewrites_are_flagged(fallback, make_ctx):
    """DECODE cannot be expanded textually and is flagged."""
    ctx = make_ctx("oracle", "mysql")
    result = fallback.transform("SELECT DECODE(a, 1, 'x', 'y') FROM t", ctx)
    assert "DECODE(" in result
    assert any("DECODE" in w.message for w in ctx.warnings)


def test_untouched_statement(fallback, make_ctx):
    """Text no rule matches is returned as is."""
    ctx = make_ctx("oracle", "mysql")
    assert fallback.transform("UPDATE t SET a = 1", ctx) == "UPDATE t SET a = 1"
    assert ctx.warnings == []


def test_strict_mode_escalates(fallback, make_ctx):
    """Strict mode marks every text conversion for review at ERROR level."""
    ctx = make_ctx("oracle", "mysql", strict_mode=True)
    fallback.transform("UPDATE t SET a = 1", ctx)
    assert ctx.warnings[-1].kind is WarningType.MANUAL_REVIEW_NEEDED
    assert ctx.warnings[-1].severity is WarningSeverity.ERROR


def test_failing_stage_returns_input(fallback, make_ctx, monkeypatch):
    """A stage that raises leaves the statement unchanged."""
    def boom(sql, ctx):
        raise RuntimeError("boom")

    monkeypatch.setattr(fallback, "convert_pagination", boom)
    ctx = make_ctx("oracle", "mysql")
    sql = "SELECT NVL(a, 0) FROM t"
    assert fallback.transform(sql, ctx) == sql
    assert ctx.applied_rules[-1] == "Fallback aborted: boom"


def test_rewrite_calls_nested():
    """Nested calls are rewritten with their arguments intact."""
    text, count = rewrite_calls("NVL(NVL(a, b), c)", "NVL", lambda args: f"COALESCE({', '.join(args)})")
    assert text == "COALESCE(COALESCE(a, b), c)"
    assert count == 2
