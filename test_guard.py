import pytest

from serial_parser.exceptions import AccessBlocked, SiteUnreachable
from serial_parser.guard import (
    REASON_CHALLENGE,
    REASON_REDIRECTED,
    ensure_access,
    host_labels,
    inspect,
    page_title,
)
from serial_parser.schemas import FetchResult

URL = "https://www.example.com/series/x/"


def test_host_labels_drop_tld():
    assert host_labels("https://www.example.com/x") == ["www", "example"]
    assert host_labels("https://example.site") == ["example"]


def test_same_host_passes():
    decision = inspect(URL, "https://www.example.com/series/x/?ref=1", "My Novel")
    assert decision.passed
    assert decision.reason is None


def test_tld_change_is_not_a_redirect():
    assert inspect(URL, "https://www.example.net/series/x/", None).passed


def test_other_host_is_a_redirect():
    decision = inspect(URL, "https://parked.example.com/", None)
    assert not decision.passed
    assert decision.reason == REASON_REDIRECTED


@pytest.mark.parametrize("title", ["Just a moment...", "Bot Verification", "  Un instant...  "])
def test_challenge_titles(title):
    decision = inspect(URL, URL, title)
    assert decision.reason == REASON_CHALLENGE


def test_page_title():
    assert page_title("<html><head><TITLE>\n Hello \n</TITLE></head></html>") == "Hello"
    assert page_title("<p>no title</p>") is None


def test_ensure_access_returns_body():
    body = "<html><head><title>Fine</title></head></html>"
    assert ensure_access(URL, FetchResult(status=200, final_url=URL, body=body)) == body


def test_ensure_access_raises_on_challenge():
    body = "<title>Just a moment...</title>"
    with pytest.raises(AccessBlocked) as excinfo:
        ensure_access(URL, FetchResult(status=200, final_url=URL, body=body))
    assert excinfo.value.url == URL
    assert excinfo.value.to_response()["reason"] == REASON_CHALLENGE


def test_ensure_access_raises_on_error_status():
    with pytest.raises(SiteUnreachable):
        ensure_access(URL, FetchResult(status=503, final_url=URL))


def test_search_requests_tolerate_error_status():
    assert ensure_access(URL, FetchResult(status=404, final_url=URL), search=True) == ""


def test_search_requests_are_still_guarded():
    result = FetchResult(status=404, final_url="https://elsewhere.org/", body="")
    with pytest.raises(AccessBlocked):
        ensure_access(URL, result, search=True)


def test_subdomain_on_other_tld_is_a_redirect():
    assert inspect("https://example.com/", "https://cdn.example.net/", None).reason == REASON_REDIRECTED
    assert inspect("https://example.com/", "https://example.com/", "Chapter 1").passed
