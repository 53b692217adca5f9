# Make the repository root importable so `app` resolves without an install.
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from app.config import settings  # noqa: E402


@pytest.fixture(autouse=True)
def pipeline_settings(monkeypatch):
    """Pin the tunables tests depend on, whatever the local environment says."""
    monkeypatch.setattr(settings, "handbag_num_results", 12)
    monkeypatch.setattr(settings, "generic_num_results", 3)
    monkeypatch.setattr(settings, "search_include_domains", [])
    monkeypatch.setattr(settings, "handbag_query_suffix", " buy online handbag")
    monkeypatch.setattr(settings, "max_products", 5)
    monkeypatch.setattr(settings, "require_product_image", False)
    monkeypatch.setattr(settings, "scrape_concurrency", 8)
    monkeypatch.setattr(settings, "scrape_timeout", 5.0)
    monkeypatch.setattr(settings, "generic_content_chars", 1000)
    monkeypatch.setattr(settings, "chat_thinking_budget", 0)
    monkeypatch.setattr(settings, "max_tool_rounds", 3)
    return settings


