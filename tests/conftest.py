import copy
import json
import sys
from pathlib import Path

import pytest

# Ensure project root is on sys.path so `import md2gslides` works
project_root = Path(__file__).resolve().parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

FIXTURES_DIR = Path(__file__).resolve().parent / "fixtures"


@pytest.fixture(scope="session")
def _mock_presentation_data():
    with open(FIXTURES_DIR / "mock_presentation.json", encoding="utf-8") as fh:
        return json.load(fh)


@pytest.fixture
def mock_presentation(_mock_presentation_data):
    """Fresh copy of a presentation with title, body, two-column and blank slides."""
    return copy.deepcopy(_mock_presentation_data)
