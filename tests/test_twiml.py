import pytest

from sms_assistant.messenger.twiml import ResponseFormatter, build_twiml, clamp, xml_escape


def test_escapes_reserved_characters():
    assert xml_escape("<b>Tom & \"Jerry\"'s</b>") == (
        "&lt;b&gt;Tom &amp; &quot;Jerry&quot;&apos;s&lt;/b&gt;"
    )
    assert xml_escape(None) == ""


def test_ampersand_is_escaped_once():
    assert xml_escape("&lt;") == "&amp;lt;"


def test_document_shape():
    assert build_twiml("Hi there") == (
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        "<Response>\n"
        "  <Message>Hi there</Message>\n"
        "</Response>"
    )


@pytest.mark.parametrize("max_length", [160, 1200])
def test_clamp_respects_configured_limit(max_length):
    text = "a" * (max_length + 50)
    clamped = clamp(text, max_length)
    assert len(clamped) == max_length
    assert clamped.endswith("...")


def test_short_text_is_not_clamped():
    assert clamp("short", 160) == "short"
    assert clamp("x" * 160, 160) == "x" * 160


def test_formatter_clamps_before_escaping():
    formatter = ResponseFormatter(max_length=10)
    body = formatter.render("<<<<<<<<<<<<<<<")
    assert "<Message>&lt;&lt;&lt;&lt;&lt;&lt;&lt;...</Message>" in body
