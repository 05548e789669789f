import pytest
import sys
from pathlib import Path
from unittest.mock import MagicMock

import httpx

# Add backend directory to path so imports work
backend_path = Path(__file__).parent.parent
sys.path.append(str(backend_path))

from content_db import ContentDatabase
from models import MediaType, Work


@pytest.fixture
def content_db(tmp_path):
    """Database with the built-in defaults (tmp_path holds no overrides)."""
    return ContentDatabase(db_path=str(tmp_path))


@pytest.fixture
def http_client():
    return MagicMock(spec=httpx.AsyncClient)


@pytest.fixture
def book():
    return Work(title="The Fault in Our Stars", media_type=MediaType.BOOK)


@pytest.fixture
def movie():
    return Work(title="The Bucket List", media_type=MediaType.MOVIE)


def make_response(status_code=200, json_data=None, text=""):
    """Stand-in for httpx.Response as returned by SourceAdapter._request"""
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = json_data if json_data is not None else {}
    response.text = text
    return response
