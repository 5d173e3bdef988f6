import logging

import pytest

from sqlswitcher import ConversionOptions, Dialect, LoggingMetrics, SqlConverterEngine, WarningSeverity, WarningType
from sqlswitcher.custom_rules import parse_config
from sqlswitcher.orchestrator import FAILURE_MARKER


@pytest.fixture
def engine():
    return SqlConverterEngine()


@pytest.fixture
def options():
    return ConversionOptions(format_output=False)


class FailingMetrics:
    def record_request(self, source, target):
        raise RuntimeError("metrics down")

    record_success = record_error = record_duration = record_request


def test_single_statement(engine, options):
    """A single statement is converted and terminated."""
    result = engine.convert("SELECT NVL(a, 0) FROM t", "oracle", "mysql", options)
    assert result.success
    assert "IFNULL(a, 0)" in result.converted_sql
    assert result.converted_sql.endswith(";")
    assert result.total_statements == 1
    assert result.metadata.source_dialect is Dialect.ORACLE


def test_same_dialect_is_unchanged(engine, options):
    """Source equal to target returns the input as is."""
    sql = "SELECT NVL(a, 0) FROM t"
    result = engine.convert(sql, "oracle", "oracle", options)
    assert result.converted_sql == sql
    assert result.warnings == []


def test_unrecognized_statement_fails_request(engine, options):
    """Text that is not SQL fails the request and keeps the original text."""
    result = engine.convert("hello world", "oracle", "mysql", options)
    assert not result.success
    assert result.converted_sql == "hello world"
    assert len(result.warnings) == 1
    assert result.warnings[0].severity is WarningSeverity.ERROR
    assert "HELLO" in result.warnings[0].message


def test_batch_marks_failed_statement(engine, options):
    """A failing statement is marked while the others are converted."""
    sql = "SELECT NVL(a, 0) FROM t; hello world; SELECT b FROM u"
    result = engine.convert(sql, "oracle", "mysql", options)
    assert result.success
    assert result.total_statements == 3
    assert result.failed_statements == 1
    assert FAILURE_MARKER in result.converted_sql
    assert "IFNULL(a, 0)" in result.converted_sql
    assert any(w.kind is WarningType.PARTIAL_SUPPORT and "1 statements failed" in w.message
               for w in result.warnings)


def test_unknown_dialect(engine, options):
    """An unknown dialect name fails the request."""
    result = engine.convert("SELECT 1", "db2", "mysql", options)
    assert not result.success
    assert result.errors


def test_warnings_can_be_omitted(engine):
    """include_warnings=False returns no diagnostics."""
    options = ConversionOptions(format_output=False, include_warnings=False)
    result = engine.convert("hello world", "oracle", "mysql", options)
    assert result.warnings == []


def test_leading_comments_preserved(engine, options):
    """Comments before a statement are carried over."""
    result = engine.convert("-- note\nSELECT a FROM t", "oracle", "postgresql", options)
    assert result.converted_sql.startswith("-- note\n")


def test_sequence_to_mysql(engine, options):
    """Sequences are simulated with a table for MySQL."""
    result = engine.convert("CREATE SEQUENCE seq_order START WITH 100", "oracle", "mysql", options)
    assert result.success
    assert "seq_order_seq" in result.converted_sql.lower()
    assert any(w.kind is WarningType.UNSUPPORTED_STATEMENT for w in result.warnings)


def test_skip_unsupported_sequence(engine):
    """skip_unsupported_features comments out the MySQL sequence simulation."""
    options = ConversionOptions(format_output=False, skip_unsupported_features=True)
    result = engine.convert("CREATE SEQUENCE seq_order START WITH 100", "oracle", "mysql", options)
    assert result.converted_sql.startswith("-- SEQUENCE")
    assert "CREATE TABLE" not in result.converted_sql


def test_oracle_trigger_to_postgresql(engine, options):
    """A row trigger becomes a trigger function plus a trigger."""
    sql = (
        "CREATE OR REPLACE TRIGGER trg_emp_audit\n"
        "BEFORE INSERT OR UPDATE ON emp\n"
        "FOR EACH ROW\n"
        "BEGIN\n"
        "  :NEW.updated_at := SYSDATE;\n"
        "END;"
    )
    result = engine.convert(sql, "oracle", "postgresql", options)
    assert result.success
    assert "RETURNS TRIGGER" in result.converted_sql.upper()
    assert "EXECUTE FUNCTION" in result.converted_sql


def test_metrics_failures_are_ignored(options):
    """A failing metrics collaborator never breaks a conversion."""
    engine = SqlConverterEngine(metrics=FailingMetrics())
    result = engine.convert("SELECT NVL(a, 0) FROM t", "oracle", "mysql", options)
    assert result.success
    assert "IFNULL" in result.converted_sql


def test_custom_rules_applied(options):
    """Custom rules rewrite the text and are reported as applied."""
    rules = parse_config({"custom_rules": [
        {"name": "rename table", "pattern": r"\bold_tbl\b", "replacement": "new_tbl"},
    ]})
    engine = SqlConverterEngine(custom_rules=rules)
    result = engine.convert("SELECT a FROM old_tbl", "oracle", "postgresql", options)
    assert "new_tbl" in result.converted_sql
    assert "old_tbl" not in result.converted_sql
    assert "Custom rule: rename table" in result.applied_rules


def test_complexity_limit(engine):
    """Statements above max_complexity_score are flagged for review."""
    options = ConversionOptions(format_output=False, max_complexity_score=0)
    result = engine.convert("SELECT a FROM t", "mysql", "postgresql", options)
    assert any(w.kind is WarningType.MANUAL_REVIEW_NEEDED and "Complexity" in w.message
               for w in result.warnings)


def test_detailed_report(engine, options):
    """The report names both dialects and the applied rules."""
    result = engine.convert("SELECT NVL(a, 0) FROM t", "oracle", "mysql", options)
    report = result.get_detailed_report()
    assert "[METADATA] Oracle -> MySQL" in report
    assert "[APPLIED RULES]" in report


def test_logging_metrics(options, caplog):
    """LoggingMetrics writes request, success and duration events."""
    caplog.set_level(logging.INFO, logger="sqlswitcher")
    engine = SqlConverterEngine(metrics=LoggingMetrics())
    engine.convert("SELECT a FROM t", "mysql", "oracle", options)
    messages = [r.getMessage() for r in caplog.records if r.name == "sqlswitcher.metrics"]
    assert "request MYSQL -> ORACLE" in messages
    assert "success MYSQL -> ORACLE" in messages
    assert any(m.startswith("duration MYSQL -> ORACLE") for m in messages)


def test_identifier_quotes_reported(engine, options):
    """Rewritten identifier quotes are reported on the structured path too."""
    result = engine.convert('SELECT "a" FROM "t"', "postgresql", "mysql", options)
    assert "`a`" in result.converted_sql
    assert "Identifier quotes → `" in result.applied_rules
    assert any(w.severity is WarningSeverity.INFO and w.kind is WarningType.SYNTAX_DIFFERENCE
               for w in result.warnings)


def test_outer_join_marker_is_kept(engine, options):
    """(+) joins are left as written and reported instead of becoming inner joins."""
    result = engine.convert("SELECT a FROM t, u WHERE t.id = u.id(+)", "oracle", "postgresql", options)
    assert "(+)" in result.converted_sql
    assert any(w.severity is WarningSeverity.ERROR for w in result.warnings)


def test_connect_by_is_kept(engine, options):
    """Hierarchical queries are left as written and reported."""
    sql = "SELECT id FROM emp START WITH mgr IS NULL CONNECT BY PRIOR id = mgr"
    result = engine.convert(sql, "oracle", "mysql", options)
    assert "CONNECT BY" in result.converted_sql
    assert any(w.severity is WarningSeverity.ERROR for w in result.warnings)


def test_functional_index_order_to_mysql(engine, options):
    """DESC stays outside the key part and NULLS LAST is dropped with a warning."""
    sql = "CREATE INDEX ix ON t (UPPER(name), NVL(x, 0) DESC NULLS LAST)"
    result = engine.convert(sql, "oracle", "mysql", options)
    assert "(IFNULL(x, 0)) DESC" in result.converted_sql
    assert "NULLS" not in result.converted_sql
    assert any("NULLS LAST" in w.message for w in result.warnings)


def test_strict_mode_escalates_type_warnings():
    """Registry type warnings become errors under strict_mode."""
    options = ConversionOptions(format_output=False, strict_mode=True)
    result = SqlConverterEngine().convert("CREATE TABLE t (a ENUM('x','y'), b INT)", "mysql", "oracle", options)
    assert any(w.severity is WarningSeverity.ERROR and "ENUM" in w.message for w in result.warnings)


def test_rownum_strict_bound(engine, options):
    """ROWNUM < 11 keeps ten rows."""
    result = engine.convert("SELECT a FROM t WHERE ROWNUM < 11", "oracle", "mysql", options)
    assert "LIMIT 10" in result.converted_sql
    assert "ROWNUM" not in result.converted_sql.upper()
