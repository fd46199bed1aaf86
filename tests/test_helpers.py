# tests/test_helpers.py
from marketplace.utils.helpers import truncate


def test_truncate():
    assert truncate("Mono 410 Panel", 4) == "Mono"
    assert truncate("Mono", 10) == "Mono"
    assert truncate(None, 10) == ""
