"""
pytest configuration and fixtures.
"""

import json
import logging
from pathlib import Path

import pytest

from ghostman.config import set_config


@pytest.fixture(autouse=True)
def reset_config():
    """Drop the cached global configuration between tests."""
    set_config(None)
    yield
    set_config(None)


@pytest.fixture
def pdf_file(tmp_path: Path) -> Path:
    """Small file that sniffs as a PDF."""
    path = tmp_path / "report.pdf"
    path.write_bytes(b"%PDF-1.4\n%\xe2\xe3\xcf\xd3\n1 0 obj\n<<>>\nendobj\n")
    return path


@pytest.fixture
def note_file(tmp_path: Path) -> Path:
    """Plain text file."""
    path = tmp_path / "note.txt"
    path.write_text("remember the milk\n", encoding="utf-8")
    return path


@pytest.fixture
def form_request_json() -> dict:
    """JSON request file describing a URL-encoded form POST."""
    return {
        "method": "POST",
        "url": "https://example.com/submit",
        "body": {"type": "form", "form_data": {"a": ["1", "2"]}},
    }


@pytest.fixture
def form_request_file(tmp_path: Path, form_request_json: dict) -> Path:
    path = tmp_path / "request.json"
    path.write_text(json.dumps(form_request_json), encoding="utf-8")
    return path


@pytest.fixture
def restore_logger():
    """Undo logging setup done by a test."""
    logger = logging.getLogger("ghostman")
    yield logger
    for handler in logger.handlers:
        handler.close()
    logger.handlers.clear()
    logger.setLevel(logging.NOTSET)
    logger.propagate = True
