import copy

import pytest

from quote_core.rate_sheet import DEFAULT_RATE_SHEET_PATH, load_default_rate_sheet, read_rate_document


CARD_NAME = "FL Distribution LLC Warehouse Rates"


@pytest.fixture(scope="session")
def rate_document():
    return read_rate_document(DEFAULT_RATE_SHEET_PATH)


@pytest.fixture(scope="session")
def rate_sheet():
    return load_default_rate_sheet()


@pytest.fixture
def card(rate_document):
    """A mutable copy of the bundled card's sections."""
    return copy.deepcopy(rate_document[CARD_NAME])


@pytest.fixture(autouse=True)
def _no_env_overrides(monkeypatch):
    monkeypatch.delenv("QUOTE_RATE_SHEET", raising=False)
    monkeypatch.delenv("QUOTE_RATE_CARD", raising=False)
