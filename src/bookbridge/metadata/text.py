# ABOUTME: Markup-to-plain-text conversion for descriptions and audiobook summaries.
# ABOUTME: Uses BeautifulSoup's html.parser so entities and stray tags are handled uniformly.

import re

from bs4 import BeautifulSoup

_WHITESPACE_RE = re.compile(r"\s+")
_MARKUP_HINT_RE = re.compile(r"<[a-zA-Z/!]|&[#a-zA-Z0-9]+;")
_BLOCK_TAGS = ["p", "div", "li", "h1", "h2", "h3", "h4", "h5", "h6", "blockquote"]


def to_plain_text(value: str) -> str:
    """Strip HTML tags, decode entities, and collapse whitespace to single spaces.

    Block elements and <br> become word breaks so adjacent paragraphs do not
    run together; inline tags (<b>, <i>, <span>) vanish without adding spaces.
    """
    if not value:
        return ""
    if _MARKUP_HINT_RE.search(value):
        soup = BeautifulSoup(value, "html.parser")
        for br in soup.find_all("br"):
            br.replace_with("\n")
        for block in soup.find_all(_BLOCK_TAGS):
            block.append("\n")
        value = soup.get_text()
    return _WHITESPACE_RE.sub(" ", value).strip()
