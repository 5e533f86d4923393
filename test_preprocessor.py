import pytest

from serial_parser.config import Preferences
from serial_parser.exceptions import SerialParserError
from serial_parser.fetcher import RequestsTransport, collapse_slashes
from serial_parser.preprocessor import Preprocessor, preprocess


def test_sanitize_fixes_common_breakage():
    html = "<<p>>Hello\x00</p><a href==\"/x\">x</a>\r\nend\x07"
    sanitized, warnings = Preprocessor().sanitize(html)
    assert sanitized == '<p>Hello</p><a href="/x">x</a>\nend'
    assert "Removed NULL bytes" in warnings
    assert "Fixed double angle brackets" in warnings
    assert "Removed control characters" in warnings


def test_line_endings_are_normalized_silently():
    sanitized, warnings = Preprocessor().sanitize("a\r\nb\rc\td")
    assert sanitized == "a\nb\nc\td"
    assert warnings == []


def test_clean_input_has_no_warnings():
    page = preprocess("<html><head><title>Ok</title></head><body></body></html>")
    assert page.warnings == []
    assert page.title == "Ok"


@pytest.mark.parametrize("head,charset", [
    (b'<meta charset="utf-8">', "utf-8"),
    (b'<meta charset="ISO-8859-1">', "windows-1252"),
    (b'<meta http-equiv="Content-Type" content="text/html; charset=windows-1256">', "windows-1256"),
    (b"<p>no declaration</p>", "utf-8"),
    (b"<META CHARSET=iso-8859-6>", "windows-1256"),
    (b"<meta http-equiv='content-type' content='text/html;charset=Shift_JIS'>", "shift_jis"),
    (b"<p>" + b" " * 4096 + b'<meta charset="windows-1256">', "utf-8"),
])
def test_detect_charset_from_bytes(head, charset):
    assert Preprocessor.detect_charset_from_bytes(head) == charset


def test_bytes_are_decoded_with_declared_charset():
    body = '<meta charset="windows-1256"><title>رواية</title>'.encode("windows-1256")
    page = preprocess(body)
    assert page.charset == "windows-1256"
    assert page.title == "رواية"


def test_unknown_charset_falls_back_to_utf8():
    text, charset = Preprocessor.decode('<meta charset="x-nonsense"><p>é</p>'.encode("utf-8"))
    assert charset == "utf-8"
    assert "é" in text


def test_collapse_slashes():
    assert collapse_slashes("https://site.com//series/x") == "https://site.com/series/x"
    assert collapse_slashes("https://site.com/a///b/") == "https://site.com/a/b/"
    assert collapse_slashes("site.com//a") == "site.com/a"


def test_transport_settings():
    transport = RequestsTransport(user_agent="TestAgent/1.0", timeout=3)
    try:
        assert transport.session.headers["User-Agent"] == "TestAgent/1.0"
        assert transport.timeout == 3
    finally:
        transport.close()


def test_preferences_from_env():
    prefs = Preferences.from_env({
        "SERIAL_PARSER_HIDE_LOCKED": "true",
        "SERIAL_PARSER_TIMEOUT": "20",
        "SERIAL_PARSER_GRAMMAR_DIR": "  ",
        "UNRELATED": "x",
    })
    assert prefs.hide_locked is True
    assert prefs.timeout == 20.0
    assert prefs.grammar_dir is None
    assert prefs.log_level == "INFO"
    assert prefs.policy().hide_locked is True


@pytest.mark.parametrize("name,value", [
    ("SERIAL_PARSER_TIMEOUT", "-1"),
    ("SERIAL_PARSER_HIDE_LOCKED", "maybe"),
])
def test_invalid_preferences(name, value):
    with pytest.raises(SerialParserError):
        Preferences.from_env({name: value})
