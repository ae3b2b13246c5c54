# ABOUTME: Unit tests for markup-to-plain-text conversion.
# ABOUTME: Checks tag stripping, entity decoding, and whitespace collapsing.

import pytest

from bookbridge.metadata.text import to_plain_text


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("<p>One</p><p>Two</p>", "One Two"),
        ("<b>bold</b>er", "bolder"),
        ("Line<br>break", "Line break"),
        ("Tom &amp; Jerry", "Tom & Jerry"),
        ("  plenty   of\n\tspace  ", "plenty of space"),
        ("3 < 4 and 5 > 2", "3 < 4 and 5 > 2"),
        ("", ""),
    ],
)
def test_to_plain_text(raw: str, expected: str) -> None:
    assert to_plain_text(raw) == expected
