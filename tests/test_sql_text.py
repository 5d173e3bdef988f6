from sqlswitcher.sql_text import (
    first_keyword, is_recognized_statement, join_statements, leading_comments,
    literal_spans, split_statements, strip_sql_comments, swap_identifier_quotes,
)


def test_strip_comments_keeps_literals():
    """Comment markers inside string literals are not comments."""
    sql = "SELECT '--not' , a -- trailing\nFROM t /* hint */"
    stripped = strip_sql_comments(sql)
    assert "'--not'" in stripped
    assert "trailing" not in stripped
    assert "hint" not in stripped


def test_leading_comments():
    """Only the comment lines before the first token are returned."""
    sql = "-- first\n-- second\nSELECT 1 -- inline"
    assert leading_comments(sql) == "-- first\n-- second"


def test_split_on_top_level_semicolons():
    """Semicolons in literals do not split and blank statements are dropped."""
    statements = split_statements("SELECT 'a;b' FROM t;;\n  ;SELECT 2;")
    assert len(statements) == 2
    assert "'a;b'" in statements[0]
    assert statements[1].strip() == "SELECT 2"


def test_split_keeps_procedural_block():
    """A PL/SQL body with inner semicolons stays one statement."""
    sql = (
        "CREATE OR REPLACE PROCEDURE p IS\nBEGIN\n  UPDATE t SET a = 1;\n  COMMIT;\nEND;\n"
        "SELECT 1 FROM dual;"
    )
    statements = split_statements(sql)
    assert len(statements) == 2
    assert "COMMIT" in statements[0]
    assert statements[1].strip().startswith("SELECT")


def test_split_keeps_dollar_quoted_body():
    """Semicolons inside a $$ body do not split."""
    sql = (
        "CREATE FUNCTION f() RETURNS trigger AS $$ BEGIN NEW.a := 1; RETURN NEW; END; $$ LANGUAGE plpgsql;"
        "SELECT 1;"
    )
    statements = split_statements(sql)
    assert len(statements) == 2
    assert "RETURN NEW" in statements[0]


def test_join_statements_terminates_once():
    """join_statements adds ';' only where missing."""
    assert join_statements(["SELECT 1", "SELECT 2;", ""]) == "SELECT 1;\nSELECT 2;"


def test_swap_identifier_quotes_outside_literals():
    """Double quotes become backticks, literals are untouched."""
    sql, changed = swap_identifier_quotes('SELECT "a" FROM t WHERE b = \'"x"\'', "`")
    assert changed
    assert sql == 'SELECT `a` FROM t WHERE b = \'"x"\''


def test_swap_identifier_quotes_noop():
    """Nothing to rewrite reports unchanged."""
    sql, changed = swap_identifier_quotes("SELECT a FROM t", '"')
    assert not changed
    assert sql == "SELECT a FROM t"


def test_first_keyword_and_recognition():
    """Statement keywords are read past comments and parentheses."""
    assert first_keyword("-- c\n(SELECT 1)") == "SELECT"
    assert is_recognized_statement("insert into t values (1)")
    assert not is_recognized_statement("hello world")


def test_literal_spans():
    """Offsets cover the quoted text including the quotes."""
    sql = "a = 'x' AND b = 'it''s'"
    spans = literal_spans(sql)
    assert [sql[s:e] for s, e in spans] == ["'x'", "'it''s'"]
