from __future__ import annotations

import pytest

from wp_canva.engine import clean_domain, validate_domain


@pytest.mark.parametrize(
    "value",
    [
        "example.com",
        "https://example.com",
        "http://my-blog.org",
        "sub.example.co.uk",
        "HTTPS://Example.COM",
    ],
)
def test_validate_domain_accepts(value: str) -> None:
    assert validate_domain(value) is True


@pytest.mark.parametrize(
    "value",
    [
        "",
        "http://",
        "not a domain",
        "-bad-.com",
        "example",
        "ab.com",
        "example.com/path",
        "example.c",
    ],
)
def test_validate_domain_rejects(value: str) -> None:
    assert validate_domain(value) is False


@pytest.mark.parametrize("value", [None, 42, ["example.com"]])
def test_validate_domain_rejects_non_strings(value) -> None:
    assert validate_domain(value) is False


def test_clean_domain_strips_scheme() -> None:
    assert clean_domain("https://example.com") == "example.com"
    assert clean_domain("HTTP://example.com") == "example.com"
    assert clean_domain("example.com") == "example.com"
