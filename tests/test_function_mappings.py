import pytest

from sqlswitcher.function_mappings import (
    ParameterTransform, normalize_type_name, split_type,
)
from sqlswitcher.models import Dialect, WarningType

ORACLE = Dialect.ORACLE
TIBERO = Dialect.TIBERO
MYSQL = Dialect.MYSQL
POSTGRESQL = Dialect.POSTGRESQL


def test_function_lookup_is_case_insensitive(registry):
    """Function names are looked up upper-cased."""
    rule = registry.get_function_mapping(ORACLE, MYSQL, "nvl")
    assert rule.target_function == "IFNULL"
    assert rule.rule_name == "NVL → IFNULL"


def test_tibero_shares_oracle_rules(registry):
    """Tibero resolves the same rules as Oracle in both directions."""
    assert registry.get_function_mapping(TIBERO, POSTGRESQL, "NVL").target_function == "COALESCE"
    assert registry.map_data_type(MYSQL, TIBERO, "INT").converted_type == "NUMBER(10)"


def test_instr_swaps_arguments_for_mysql(registry):
    """INSTR becomes LOCATE with the search string first."""
    rule = registry.get_function_mapping(ORACLE, MYSQL, "INSTR")
    assert rule.target_function == "LOCATE"
    assert rule.parameter_transform is ParameterTransform.SWAP_FIRST_TWO
    assert not rule.accepts(3)


def test_missing_function_rule(registry):
    """Unknown functions have no rule."""
    assert registry.get_function_mapping(ORACLE, MYSQL, "MY_OWN_FUNC") is None


@pytest.mark.parametrize("source_type, expected", [
    ("NUMBER(3)", "TINYINT"),
    ("NUMBER(5)", "SMALLINT"),
    ("NUMBER(7)", "MEDIUMINT"),
    ("NUMBER(10)", "INT"),
    ("NUMBER(19)", "BIGINT"),
    ("NUMBER(20)", "DECIMAL(20)"),
    ("NUMBER", "DECIMAL"),
    ("NUMBER(10,2)", "DECIMAL(10,2)"),
    ("VARCHAR2(100 BYTE)", "VARCHAR(100)"),
])
def test_oracle_types_to_mysql(registry, source_type, expected):
    """Oracle NUMBER picks the smallest sufficient MySQL type."""
    assert registry.map_data_type(ORACLE, MYSQL, source_type).converted_type == expected


@pytest.mark.parametrize("source_type, expected", [
    ("NUMBER(5)", "SMALLINT"),
    ("NUMBER(10)", "INTEGER"),
    ("NUMBER(12,2)", "NUMERIC(12,2)"),
    ("TIMESTAMP(6) WITH TIME ZONE", "TIMESTAMPTZ"),
])
def test_oracle_types_to_postgresql(registry, source_type, expected):
    """Oracle types map onto PostgreSQL names."""
    assert registry.map_data_type(ORACLE, POSTGRESQL, source_type).converted_type == expected


def test_varchar_length_semantics_for_oracle(registry):
    """Long VARCHAR columns use CHAR semantics in Oracle."""
    assert registry.map_data_type(MYSQL, ORACLE, "VARCHAR(100)").converted_type == "VARCHAR2(100 BYTE)"
    assert registry.map_data_type(MYSQL, ORACLE, "VARCHAR(5000)").converted_type == "VARCHAR2(5000 CHAR)"


def test_datetime_precision_to_oracle(registry):
    """DATETIME keeps fractional seconds only through TIMESTAMP."""
    assert registry.map_data_type(MYSQL, ORACLE, "DATETIME").converted_type == "DATE"
    assert registry.map_data_type(MYSQL, ORACLE, "DATETIME(6)").converted_type == "TIMESTAMP(6)"


def test_unsigned_dropped_outside_mysql(registry):
    """UNSIGNED has no PostgreSQL form."""
    assert registry.map_data_type(MYSQL, POSTGRESQL, "INT UNSIGNED").converted_type == "INTEGER"


def test_unknown_type_is_kept_with_warning(registry):
    """A registry miss keeps the type and warns."""
    result = registry.map_data_type(MYSQL, POSTGRESQL, "GEOMETRY")
    assert result.converted_type == "GEOMETRY"
    assert result.warning.kind is WarningType.DATA_TYPE_MISMATCH


def test_oracle_family_miss_is_silent(registry):
    """Oracle and Tibero share their types, so a miss is not a mismatch."""
    result = registry.map_data_type(ORACLE, TIBERO, "SDO_GEOMETRY")
    assert result.converted_type == "SDO_GEOMETRY"
    assert result.warning is None


def test_enum_carries_rule_warning(registry):
    """Rules with a warning attach it to the result."""
    result = registry.map_data_type(MYSQL, POSTGRESQL, "ENUM('a','b')")
    assert result.converted_type == "VARCHAR(255)"
    assert result.warning is not None


def test_type_name_helpers():
    """Type names are normalised and split into parts."""
    assert normalize_type_name("double  precision") == "DOUBLE PRECISION"
    assert split_type("TIMESTAMP(6) WITH TIME ZONE") == ("TIMESTAMP", ["6"], "WITH TIME ZONE")
    assert split_type("int unsigned") == ("INT", [], "UNSIGNED")
