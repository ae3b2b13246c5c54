# ABOUTME: Notion destination package: HTTP client, response parsing, and the Destination protocol.
# ABOUTME: Re-exports the names the controller and CLI depend on.

from bookbridge.notion.client import NotionDestination
from bookbridge.notion.destination import Destination
from bookbridge.notion.http import NotionHttpClient
from bookbridge.notion.parser import DatabaseSummary, PageSummary, WrittenRecord

__all__ = [
    "DatabaseSummary",
    "Destination",
    "NotionDestination",
    "NotionHttpClient",
    "PageSummary",
    "WrittenRecord",
]
