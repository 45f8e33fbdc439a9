"""Unit tests for display helpers."""

from memoriza.utils import (
    difficulty_label,
    format_date,
    format_datetime,
    html_to_text,
)


def test_difficulty_labels():
    assert difficulty_label("beginner") == "Iniciante"
    assert difficulty_label("advanced") == "Avançado"
    assert difficulty_label("unknown") == "unknown"


def test_format_date():
    assert format_date("2025-04-05T14:15:00Z") == "05/04/2025"


def test_format_datetime():
    assert format_datetime("2025-04-05T14:15:00Z") == "05/04/2025, 14:15"


def test_html_to_text_lists_and_paragraphs():
    markup = (
        "<p><strong>The four chambers:</strong></p>"
        "<ol><li><strong>Right Atrium:</strong> receives blood</li>"
        "<li>Left Ventricle</li></ol>"
        "<p>CO = SV &times; HR</p>"
    )
    assert html_to_text(markup) == (
        "The four chambers:\n"
        "- Right Atrium: receives blood\n"
        "- Left Ventricle\n"
        "CO = SV × HR"
    )


def test_html_to_text_plain_passthrough():
    assert html_to_text("just text") == "just text"
