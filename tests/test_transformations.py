import pytest

from sqlswitcher.parser import SqlglotParser
from sqlswitcher.transformations import apply_all_transformations, generate_sql
from sqlswitcher.models import ConversionOptions, Dialect, WarningSeverity, WarningType


def convert(sql, source, target, registry, make_ctx, **options):
    """Parse, transform and generate one statement; returns (sql, ctx)."""
    options.setdefault("format_output", False)
    ctx = make_ctx(source, target, **options)
    outcome = SqlglotParser().parse(sql, ctx.source)
    assert outcome.success, outcome.parse_error
    tree = apply_all_transformations(outcome.statement.tree, ctx, registry)
    return generate_sql(tree, ctx), ctx


def test_nvl_to_ifnull(registry, make_ctx):
    """NVL is renamed through the registry."""
    sql, ctx = convert("SELECT NVL(a, 0) FROM t", "oracle", "mysql", registry, make_ctx)
    assert "IFNULL(a, 0)" in sql
    assert "NVL → IFNULL" in ctx.applied_rules


def test_nvl_to_coalesce(registry, make_ctx):
    """PostgreSQL gets COALESCE."""
    sql, _ = convert("SELECT NVL(a, 0) FROM t", "oracle", "postgresql", registry, make_ctx)
    assert "COALESCE(a, 0)" in sql


def test_decode_to_simple_case(registry, make_ctx):
    """DECODE becomes a simple CASE."""
    sql, ctx = convert("SELECT DECODE(a, 1, 'x', 'y') FROM t", "oracle", "mysql", registry, make_ctx)
    assert "CASE a WHEN 1 THEN 'x' ELSE 'y' END" in sql
    assert "DECODE → CASE WHEN" in ctx.applied_rules


def test_decode_with_null_search(registry, make_ctx):
    """A NULL search value needs the searched CASE form."""
    sql, _ = convert("SELECT DECODE(a, NULL, 'n', 'y') FROM t", "oracle", "postgresql", registry, make_ctx)
    assert "CASE WHEN a IS NULL THEN 'n' ELSE 'y' END" in sql


def test_nvl2_to_case(registry, make_ctx):
    """NVL2 becomes CASE WHEN ... IS NOT NULL."""
    sql, _ = convert("SELECT NVL2(a, 'set', 'unset') FROM t", "oracle", "mysql", registry, make_ctx)
    assert "CASE WHEN" in sql
    assert "IS NOT NULL" in sql
    assert "NVL2" not in sql.upper()


def test_mysql_if_to_case(registry, make_ctx):
    """MySQL IF becomes CASE WHEN for PostgreSQL."""
    sql, _ = convert("SELECT IF(a > 1, 'x', 'y') FROM t", "mysql", "postgresql", registry, make_ctx)
    assert "CASE WHEN a > 1 THEN 'x' ELSE 'y' END" in sql


def test_listagg_to_string_agg(registry, make_ctx):
    """LISTAGG becomes STRING_AGG for PostgreSQL."""
    sql, _ = convert("SELECT LISTAGG(name, ',') FROM t", "oracle", "postgresql", registry, make_ctx)
    assert "STRING_AGG" in sql.upper()
    assert "LISTAGG" not in sql.upper()


def test_rownum_to_limit(registry, make_ctx):
    """A ROWNUM filter becomes LIMIT."""
    sql, ctx = convert("SELECT a FROM t WHERE ROWNUM <= 5", "oracle", "mysql", registry, make_ctx)
    assert "LIMIT 5" in sql
    assert "ROWNUM" not in sql.upper()
    assert "ROWNUM → LIMIT" in ctx.applied_rules


def test_rownum_keeps_other_conditions(registry, make_ctx):
    """Other WHERE conditions survive the ROWNUM rewrite."""
    sql, _ = convert("SELECT a FROM t WHERE b = 1 AND ROWNUM < 11", "oracle", "postgresql", registry, make_ctx)
    assert "WHERE b = 1" in sql
    assert "LIMIT 10" in sql


def test_unconvertible_rownum_warns(registry, make_ctx):
    """ROWNUM > n cannot be a LIMIT."""
    _, ctx = convert("SELECT a FROM t WHERE ROWNUM > 5", "oracle", "mysql", registry, make_ctx)
    assert any(w.kind is WarningType.MANUAL_REVIEW_NEEDED for w in ctx.warnings)


def test_from_dual_removed(registry, make_ctx):
    """DUAL is dropped for MySQL."""
    sql, _ = convert("SELECT 1 FROM dual", "oracle", "mysql", registry, make_ctx)
    assert sql == "SELECT 1"


def test_from_dual_added(registry, make_ctx):
    """Oracle needs a FROM clause."""
    sql, ctx = convert("SELECT 1", "mysql", "oracle", registry, make_ctx)
    assert "FROM DUAL" in sql.upper()
    assert "FROM DUAL added" in ctx.applied_rules


def test_limit_to_fetch_first(registry, make_ctx):
    """LIMIT becomes FETCH FIRST for Oracle."""
    sql, _ = convert("SELECT a FROM t LIMIT 10", "mysql", "oracle", registry, make_ctx)
    assert sql.endswith("FETCH FIRST 10 ROWS ONLY")
    assert "LIMIT" not in sql.upper()


def test_nextval_to_postgresql(registry, make_ctx):
    """seq.NEXTVAL becomes nextval('seq')."""
    sql, _ = convert("SELECT seq_a.NEXTVAL FROM dual", "oracle", "postgresql", registry, make_ctx)
    assert "nextval('seq_a')" in sql.lower()


def test_cast_type_mapping(registry, make_ctx):
    """CAST targets go through the type registry."""
    sql, ctx = convert("SELECT CAST(a AS NUMBER(10)) FROM t", "oracle", "postgresql", registry, make_ctx)
    assert "AS INT" in sql.upper()
    assert "NUMBER" not in sql.upper()


def test_custom_mapping_overrides_registry(registry, make_ctx):
    """Custom mappings are consulted before the registry."""
    sql, ctx = convert("SELECT NVL(a, 0) FROM t", "oracle", "mysql", registry, make_ctx,
                       custom_mappings={"NVL": "MY_NVL"})
    assert "MY_NVL(a, 0)" in sql
    assert "NVL → MY_NVL (custom)" in ctx.applied_rules


def test_instr_with_too_many_arguments(registry, make_ctx):
    """A call the rule cannot take is kept and flagged."""
    sql, ctx = convert("SELECT INSTR(a, 'x', 1, 2) FROM t", "oracle", "postgresql", registry, make_ctx)
    assert "INSTR" in sql.upper()
    assert any(w.kind is WarningType.PARTIAL_SUPPORT for w in ctx.warnings)


def test_instr_swaps_for_mysql(registry, make_ctx):
    """LOCATE takes the search string first."""
    sql, _ = convert("SELECT INSTR(a, 'x') FROM t", "oracle", "mysql", registry, make_ctx)
    assert "LOCATE('x', a)" in sql


def test_custom_mapping_keys_are_case_insensitive(registry, make_ctx):
    """Lower-case custom mapping names still match."""
    assert ConversionOptions(custom_mappings={"nvl": "x"}).custom_mappings == {"NVL": "x"}
    sql, _ = convert("SELECT NVL(a, 0) FROM t", "oracle", "mysql", registry, make_ctx,
                     custom_mappings={"nvl": "MY_NVL"})
    assert "MY_NVL(a, 0)" in sql


@pytest.mark.parametrize("forward, backward", [
    ((Dialect.ORACLE, Dialect.MYSQL, "NVL", "IFNULL"), (Dialect.MYSQL, Dialect.ORACLE, "IFNULL", "NVL")),
    ((Dialect.ORACLE, Dialect.POSTGRESQL, "NVL", "COALESCE"),
     (Dialect.POSTGRESQL, Dialect.ORACLE, "COALESCE", "NVL")),
    ((Dialect.MYSQL, Dialect.POSTGRESQL, "IFNULL", "COALESCE"),
     (Dialect.POSTGRESQL, Dialect.MYSQL, "COALESCE", "IFNULL")),
    ((Dialect.ORACLE, Dialect.MYSQL, "SYSDATE", "NOW"), (Dialect.MYSQL, Dialect.ORACLE, "NOW", "SYSDATE")),
    ((Dialect.ORACLE, Dialect.MYSQL, "LISTAGG", "GROUP_CONCAT"),
     (Dialect.MYSQL, Dialect.ORACLE, "GROUP_CONCAT", "LISTAGG")),
    ((Dialect.ORACLE, Dialect.POSTGRESQL, "LISTAGG", "STRING_AGG"),
     (Dialect.POSTGRESQL, Dialect.ORACLE, "STRING_AGG", "LISTAGG")),
    ((Dialect.MYSQL, Dialect.POSTGRESQL, "GROUP_CONCAT", "STRING_AGG"),
     (Dialect.POSTGRESQL, Dialect.MYSQL, "STRING_AGG", "GROUP_CONCAT")),
])
def test_builtin_mappings_are_symmetric(registry, forward, backward):
    """Each built-in rename has a matching rule in the other direction."""
    for source, target, name, expected in (forward, backward):
        assert registry.get_function_mapping(source, target, name).target_function == expected


@pytest.mark.parametrize("sql, source, target, expected", [
    ("SELECT IFNULL(a, 0) FROM t", "mysql", "oracle", "NVL(a, 0)"),
    ("SELECT COALESCE(a, 0) FROM t", "postgresql", "oracle", "NVL(a, 0)"),
    ("SELECT IFNULL(a, 0) FROM t", "mysql", "postgresql", "COALESCE(a, 0)"),
    ("SELECT COALESCE(a, 0) FROM t", "postgresql", "mysql", "IFNULL(a, 0)"),
])
def test_null_functions_in_every_direction(registry, make_ctx, sql, source, target, expected):
    """NVL, IFNULL and COALESCE map onto each other."""
    converted, _ = convert(sql, source, target, registry, make_ctx)
    assert expected in converted


@pytest.mark.parametrize("sql, source, target, expected, absent", [
    ("SELECT SYSDATE FROM dual", "oracle", "mysql", "NOW()", "SYSDATE"),
    ("SELECT SYSDATE FROM dual", "oracle", "postgresql", "CURRENT_TIMESTAMP", "SYSDATE"),
    ("SELECT NOW() FROM t", "mysql", "oracle", "SYSDATE", "NOW"),
])
def test_current_date_in_every_direction(registry, make_ctx, sql, source, target, expected, absent):
    """SYSDATE, NOW and CURRENT_TIMESTAMP map onto each other."""
    converted, _ = convert(sql, source, target, registry, make_ctx)
    assert expected in converted.upper()
    assert absent not in converted.upper()


def test_group_concat_to_listagg(registry, make_ctx):
    """GROUP_CONCAT becomes LISTAGG for Oracle."""
    sql, _ = convert("SELECT GROUP_CONCAT(name) FROM t", "mysql", "oracle", registry, make_ctx)
    assert "LISTAGG" in sql.upper()
    assert "GROUP_CONCAT" not in sql.upper()


def test_projected_rownum(registry, make_ctx):
    """A projected ROWNUM becomes ROW_NUMBER() OVER () and asks for review."""
    sql, ctx = convert("SELECT ROWNUM, a FROM t", "oracle", "mysql", registry, make_ctx)
    assert "ROW_NUMBER() OVER ()" in sql
    assert "ROWNUM → ROW_NUMBER() OVER ()" in ctx.applied_rules
    assert any(w.kind is WarningType.MANUAL_REVIEW_NEEDED and "ROW_NUMBER" in w.message
               for w in ctx.warnings)


def test_rownum_in_update_is_an_error(registry, make_ctx):
    """ROWNUM outside a SELECT is kept and reported as an error."""
    sql, ctx = convert("UPDATE t SET a = 1 WHERE ROWNUM <= 5", "oracle", "postgresql", registry, make_ctx)
    assert "ROWNUM" in sql.upper()
    assert any(w.kind is WarningType.MANUAL_REVIEW_NEEDED and w.severity is WarningSeverity.ERROR
               and "UPDATE" in w.message for w in ctx.warnings)


def test_rownum_over_derived_table_gets_alias(registry, make_ctx):
    """The derived table under a ROWNUM limit is named for PostgreSQL."""
    sql, ctx = convert("SELECT * FROM (SELECT a FROM t ORDER BY a) WHERE ROWNUM <= 5",
                       "oracle", "postgresql", registry, make_ctx)
    assert "LIMIT 5" in sql
    assert "AS sq1" in sql
    assert "Derived table alias added" in ctx.applied_rules
