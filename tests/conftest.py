import sys, os

import esper
import pytest

# Ensure src is on path for test imports
ROOT = os.path.dirname(os.path.dirname(__file__))
SRC = os.path.join(ROOT, 'src')
if SRC not in sys.path:
    sys.path.insert(0, SRC)

from tests.helpers import make_character, make_definition

__all__ = [
    "make_character",
    "make_definition",
]


@pytest.fixture(autouse=True)
def clean_esper_world():
    esper.switch_world("default")
    esper.clear_database()
    yield
    esper.switch_world("default")
    esper.clear_database()
