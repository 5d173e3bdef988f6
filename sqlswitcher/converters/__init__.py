"""
Source-dialect converters.
"""

from typing import Dict, Optional

from ..fallback import FallbackTransformer
from ..function_mappings import MappingRegistry
from ..models import Dialect
from .base import DialectConverter
from .mysql import MySQLConverter
from .oracle import OracleConverter
from .postgresql import PostgreSQLConverter
from .tibero import TiberoConverter


def build_converters(
    registry: MappingRegistry,
    fallback: Optional[FallbackTransformer] = None,
) -> Dict[Dialect, DialectConverter]:
    """Create one converter per source dialect sharing registry and fallback."""
    fallback = fallback or FallbackTransformer(registry)
    return {
        Dialect.MYSQL: MySQLConverter(registry, fallback),
        Dialect.POSTGRESQL: PostgreSQLConverter(registry, fallback),
        Dialect.ORACLE: OracleConverter(registry, fallback),
        Dialect.TIBERO: TiberoConverter(registry, fallback),
    }


__all__ = [
    "DialectConverter",
    "MySQLConverter",
    "OracleConverter",
    "PostgreSQLConverter",
    "TiberoConverter",
    "build_converters",
]
