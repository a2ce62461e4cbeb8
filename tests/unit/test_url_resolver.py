"""Unit tests for Cerberus URL resolution."""

import pytest

from cerberus_client.core.url_resolver import (
    DefaultUrlResolver,
    StaticUrlResolver,
    as_url_resolver,
    is_valid_url,
)
from cerberus_client.utils.properties import set_property


@pytest.mark.parametrize(
    ("url", "expected"),
    [
        ("https://cerberus.example.com", True),
        ("http://localhost:9000", True),
        ("  https://cerberus.example.com  ", True),
        ("cerberus.example.com", False),
        ("ftp://cerberus.example.com", False),
        ("", False),
        ("   ", False),
        (None, False),
    ],
)
def test_is_valid_url(url, expected) -> None:
    assert is_valid_url(url) is expected


class TestDefaultUrlResolver:
    """Tests for DefaultUrlResolver."""

    def test_environment_wins(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CERBERUS_ADDR", "https://env.example.com")
        set_property("cerberus.addr", "https://prop.example.com")

        assert DefaultUrlResolver().resolve() == "https://env.example.com"

    def test_property_used_when_environment_unset(self) -> None:
        set_property("cerberus.addr", "https://prop.example.com")

        assert DefaultUrlResolver().resolve() == "https://prop.example.com"

    def test_invalid_environment_value_skipped(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CERBERUS_ADDR", "not a url")
        set_property("cerberus.addr", "https://prop.example.com")

        assert DefaultUrlResolver().resolve() == "https://prop.example.com"

    def test_nothing_configured(self) -> None:
        assert DefaultUrlResolver().resolve() is None


class TestStaticUrlResolver:
    """Tests for StaticUrlResolver."""

    def test_returns_url(self) -> None:
        assert StaticUrlResolver("https://cerberus.example.com").resolve() == "https://cerberus.example.com"

    @pytest.mark.parametrize("url", ["", "  "])
    def test_blank_rejected(self, url: str) -> None:
        with pytest.raises(ValueError):
            StaticUrlResolver(url)


def test_as_url_resolver() -> None:
    static = StaticUrlResolver("https://cerberus.example.com")

    assert as_url_resolver(static) is static
    assert isinstance(as_url_resolver(None), DefaultUrlResolver)
    assert as_url_resolver("https://other.example.com").resolve() == "https://other.example.com"
