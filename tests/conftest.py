import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from sqlswitcher.function_mappings import build_default_registry  # noqa: E402
from sqlswitcher.models import ConversionContext, ConversionOptions, Dialect  # noqa: E402


@pytest.fixture(scope="session")
def registry():
    return build_default_registry()


@pytest.fixture
def make_ctx():
    """Build a ConversionContext from dialect names and option overrides."""
    def _make(source, target, **options):
        return ConversionContext(Dialect.from_name(source), Dialect.from_name(target),
                                 ConversionOptions(**options))
    return _make
