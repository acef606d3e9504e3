"""Parsing of the `github-hipchat` name list (core domain)."""

from __future__ import annotations

from core.errors import MalformedEntry
from core.models import NameMapping

ENTRY_SEPARATOR = ","
PAIR_SEPARATOR = "-"


def parse_name_list(raw_list: str) -> NameMapping:
    """Build a NameMapping from `source-chat` pairs separated by commas.

    Every entry must split into exactly two non-empty parts, otherwise
    MalformedEntry is raised and no mapping is returned. A source name that
    appears twice keeps its last chat name.
    """

    names: dict[str, str] = {}
    for entry in raw_list.split(ENTRY_SEPARATOR):
        parts = [part.strip() for part in entry.split(PAIR_SEPARATOR)]
        if len(parts) != 2 or not all(parts):
            raise MalformedEntry(entry.strip())
        source_name, chat_name = parts
        names[source_name] = chat_name
    return NameMapping(names)
