"""
Per-dialect rendering of DDL records.

Each target module exposes a RENDERERS table mapping a record type to its
render function; Tibero shares the Oracle module.
"""

from ..models import ConversionContext, ConversionError, Dialect
from . import mysql, oracle, postgresql

_MODULES = {
    Dialect.MYSQL: mysql,
    Dialect.POSTGRESQL: postgresql,
    Dialect.ORACLE: oracle,
    Dialect.TIBERO: oracle,
}


def render(record, ctx: ConversionContext) -> str:
    """
    Render a DDL record for ctx.target.

    Args:
        record: One of the records from sqlswitcher.ddl_records
        ctx: Conversion context; receives warnings and applied rules

    Returns:
        Target SQL; several statements are separated by ';\\n\\n'

    Raises:
        ConversionError: If the target has no renderer for the record type
    """
    renderer = _MODULES[ctx.target].RENDERERS.get(type(record))
    if renderer is None:
        raise ConversionError(
            f"No {ctx.target.display_name} renderer for {type(record).__name__}"
        )
    return renderer(record, ctx)


__all__ = ["render"]
