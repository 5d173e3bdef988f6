"""
Dialect-neutral records for DDL and procedural objects.

Records are immutable and carry no rendering logic; renderers live in
sqlswitcher.renderers, one module per target dialect.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple


@dataclass(frozen=True)
class ForeignKey:
    name: str
    columns: Tuple[str, ...]
    referenced_table: str
    referenced_columns: Tuple[str, ...]
    on_delete: Optional[str] = None
    on_update: Optional[str] = None

    @property
    def is_complete(self) -> bool:
        return bool(self.referenced_table and self.referenced_columns)


@dataclass(frozen=True)
class UniqueConstraint:
    name: str
    columns: Tuple[str, ...]


@dataclass(frozen=True)
class CheckConstraint:
    name: str
    expression: str


class SortOrder(Enum):
    ASC = "ASC"
    DESC = "DESC"


class NullsPosition(Enum):
    FIRST = "FIRST"
    LAST = "LAST"


@dataclass(frozen=True)
class IndexColumnOption:
    """
    One index key with its sort order and NULLS placement.

    column holds the column name, or the key text without ASC/DESC and
    NULLS when is_expression is set.
    """
    column: str
    sort_order: SortOrder = SortOrder.ASC
    nulls_position: Optional[NullsPosition] = None
    is_expression: bool = False


@dataclass(frozen=True)
class IndexInfo:
    """
    CREATE INDEX record.

    An index with at least one expression key is function-based.
    """
    name: str
    table: str
    columns: Tuple[IndexColumnOption, ...] = ()
    unique: bool = False
    tablespace: Optional[str] = None

    @property
    def is_function_based(self) -> bool:
        return any(c.is_expression for c in self.columns)

    @property
    def expressions(self) -> Tuple[str, ...]:
        return tuple(c.column for c in self.columns if c.is_expression)


class PartitionType(Enum):
    RANGE = "RANGE"
    LIST = "LIST"
    HASH = "HASH"
    KEY = "KEY"
    COLUMNS = "COLUMNS"


@dataclass(frozen=True)
class PartitionDefinition:
    """
    One partition.

    values holds the bound of a RANGE partition ("100", "MAXVALUE") or the
    comma separated value list of a LIST partition.
    """
    name: str
    values: Optional[str] = None
    tablespace: Optional[str] = None

    @property
    def is_maxvalue(self) -> bool:
        return (self.values or "").strip().upper() == "MAXVALUE"


@dataclass(frozen=True)
class PartitionInfo:
    partition_type: PartitionType
    columns: Tuple[str, ...]
    partitions: Tuple[PartitionDefinition, ...] = ()
    partition_count: Optional[int] = None

    @property
    def count(self) -> int:
        return self.partition_count or len(self.partitions)


@dataclass(frozen=True)
class SequenceInfo:
    name: str
    schema: Optional[str] = None
    start_with: int = 1
    increment_by: int = 1
    min_value: Optional[int] = None
    max_value: Optional[int] = None
    cache: Optional[int] = None
    cycle: bool = False


class TriggerTiming(Enum):
    BEFORE = "BEFORE"
    AFTER = "AFTER"
    INSTEAD_OF = "INSTEAD OF"


class TriggerEvent(Enum):
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


@dataclass(frozen=True)
class TriggerInfo:
    """
    CREATE TRIGGER record.

    body is the statement list between the outer BEGIN and END; declarations
    is the text of a DECLARE section, if any. source_text keeps the original
    statement for targets that cannot express the trigger.
    """
    name: str
    table: str
    timing: TriggerTiming
    events: Tuple[TriggerEvent, ...]
    body: str
    for_each_row: bool = True
    when_condition: Optional[str] = None
    declarations: Optional[str] = None
    update_columns: Tuple[str, ...] = ()
    is_compound: bool = False
    schema: Optional[str] = None
    source_text: str = field(default="", compare=False)


class ParameterMode(Enum):
    IN = "IN"
    OUT = "OUT"
    INOUT = "INOUT"


@dataclass(frozen=True)
class ProcedureParameter:
    name: str
    mode: ParameterMode
    data_type: str
    default: Optional[str] = None


@dataclass(frozen=True)
class ProcedureInfo:
    """CREATE PROCEDURE / CREATE FUNCTION record."""
    name: str
    parameters: Tuple[ProcedureParameter, ...]
    body: str
    return_type: Optional[str] = None
    is_function: bool = False
    declarations: Optional[str] = None
    schema: Optional[str] = None

    @property
    def object_type(self) -> str:
        return "FUNCTION" if self.is_function else "PROCEDURE"


class RefreshMethod(Enum):
    COMPLETE = "COMPLETE"
    FAST = "FAST"
    FORCE = "FORCE"


class RefreshTiming(Enum):
    ON_DEMAND = "DEMAND"
    ON_COMMIT = "COMMIT"


class BuildOption(Enum):
    IMMEDIATE = "IMMEDIATE"
    DEFERRED = "DEFERRED"


class MaterializedViewAction(Enum):
    CREATE = "CREATE"
    DROP = "DROP"
    REFRESH = "REFRESH"


@dataclass(frozen=True)
class MaterializedViewInfo:
    name: str
    query: str = ""
    schema: Optional[str] = None
    action: MaterializedViewAction = MaterializedViewAction.CREATE
    build: BuildOption = BuildOption.IMMEDIATE
    refresh_method: RefreshMethod = RefreshMethod.COMPLETE
    refresh_timing: RefreshTiming = RefreshTiming.ON_DEMAND
    enable_query_rewrite: bool = False
    tablespace: Optional[str] = None
    with_data: bool = True

    @property
    def full_name(self) -> str:
        return f"{self.schema}.{self.name}" if self.schema else self.name


@dataclass(frozen=True)
class ColumnInfo:
    name: str
    data_type: str
    not_null: bool = False
    default: Optional[str] = None
    comment: Optional[str] = None
    auto_increment: bool = False


@dataclass(frozen=True)
class TableInfo:
    """CREATE TABLE record with its constraints, comments and partitioning."""
    name: str
    columns: Tuple[ColumnInfo, ...]
    schema: Optional[str] = None
    primary_key: Tuple[str, ...] = ()
    primary_key_name: Optional[str] = None
    foreign_keys: Tuple[ForeignKey, ...] = ()
    unique_constraints: Tuple[UniqueConstraint, ...] = ()
    check_constraints: Tuple[CheckConstraint, ...] = ()
    indexes: Tuple[IndexInfo, ...] = ()
    comment: Optional[str] = None
    partition: Optional[PartitionInfo] = None
    if_not_exists: bool = False

    @property
    def pk_name(self) -> str:
        """Primary key name: given name, else PK_ + table name without a TB_/T_ prefix."""
        if self.primary_key_name:
            return self.primary_key_name
        base = self.name
        for prefix in ("TB_", "T_"):
            if base.upper().startswith(prefix):
                base = base[len(prefix):]
                break
        return f"PK_{base}"
