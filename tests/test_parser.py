import pytest

from sqlswitcher.models import Dialect
from sqlswitcher.parser import AnalysisSummary, SqlglotParser, StatementKind, analyze, classify_text


@pytest.fixture
def parser():
    return SqlglotParser()


def test_select_is_parsed(parser):
    """A plain query parses with a tree and analysis."""
    outcome = parser.parse("SELECT NVL(a, 0) FROM t;", Dialect.ORACLE)
    assert outcome.success
    assert outcome.statement.kind is StatementKind.SELECT
    assert outcome.statement.tree is not None
    assert outcome.analysis.table_count == 1
    assert outcome.analysis.function_count == 1


def test_join_analysis(parser):
    """Joins and tables are counted."""
    outcome = parser.parse("SELECT a.x FROM a JOIN b ON a.id = b.id", Dialect.MYSQL)
    assert outcome.analysis.join_count == 1
    assert outcome.analysis.table_count == 2
    assert outcome.analysis.complexity_score == 3


def test_comments_are_removed_before_parsing(parser):
    """The statement text carries no comments."""
    outcome = parser.parse("-- header\nSELECT 1 /* note */", Dialect.POSTGRESQL)
    assert outcome.success
    assert "--" not in outcome.statement.text
    assert "note" not in outcome.statement.text


@pytest.mark.parametrize("sql, kind", [
    ("CREATE OR REPLACE TRIGGER trg BEFORE INSERT ON t FOR EACH ROW BEGIN NULL; END;",
     StatementKind.CREATE_TRIGGER),
    ("CREATE SEQUENCE seq_a START WITH 1", StatementKind.CREATE_SEQUENCE),
    ("CREATE OR REPLACE PROCEDURE p IS BEGIN NULL; END;", StatementKind.CREATE_PROCEDURE),
    ("CREATE MATERIALIZED VIEW mv AS SELECT * FROM t", StatementKind.CREATE_MATERIALIZED_VIEW),
])
def test_record_kinds_need_no_tree(parser, sql, kind):
    """Statements converted through records are classified from text."""
    outcome = parser.parse(sql, Dialect.ORACLE)
    assert outcome.success
    assert outcome.statement.kind is kind
    assert outcome.statement.tree is None


def test_create_table_kind(parser):
    """CREATE TABLE is classified from the tree."""
    outcome = parser.parse("CREATE TABLE t (id INT PRIMARY KEY)", Dialect.MYSQL)
    assert outcome.statement.kind is StatementKind.CREATE_TABLE


@pytest.mark.parametrize("sql, kind", [
    ("INSERT INTO t (a) VALUES (1)", StatementKind.INSERT),
    ("UPDATE t SET a = 1", StatementKind.UPDATE),
    ("DELETE FROM t WHERE a = 1", StatementKind.DELETE),
    ("DROP TABLE t", StatementKind.DROP),
    ("CREATE VIEW v AS SELECT a FROM t", StatementKind.CREATE_VIEW),
])
def test_dml_kinds(parser, sql, kind):
    """DML and simple DDL are classified from the tree."""
    assert parser.parse(sql, Dialect.POSTGRESQL).statement.kind is kind


def test_parse_error_is_reported(parser):
    """Broken SQL yields a parse error instead of raising."""
    outcome = parser.parse("SELECT a FROM t WHERE (a = 1", Dialect.MYSQL)
    assert not outcome.success
    assert outcome.parse_error


def test_classify_text():
    """Only record kinds are recognised from text."""
    assert classify_text("CREATE UNIQUE INDEX ix ON t (a)") is StatementKind.CREATE_INDEX
    assert classify_text("REFRESH MATERIALIZED VIEW mv") is StatementKind.CREATE_MATERIALIZED_VIEW
    assert classify_text("SELECT 1") is None


def test_empty_analysis():
    """A statement without a tree scores the base complexity."""
    assert analyze(None).complexity_score == 1
    assert AnalysisSummary(join_count=1, subquery_count=1).complexity_score == 6
