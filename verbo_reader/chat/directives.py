"""Markers embedded by the assistant in its replies."""

import re

NAV_DIRECTIVE = re.compile(r"\[NAV:\s*(.+?)\s*\]")
MAP_DATA_START = "<<<MAP_DATA_START>>>"


def extract_nav_directive(text: str) -> str | None:
    """Return the reference inside the first ``[NAV:...]`` directive, if any."""
    match = NAV_DIRECTIVE.search(text)
    return match.group(1) if match else None


def strip_nav_directives(text: str) -> str:
    """Remove every ``[NAV:...]`` directive so the text can be shown or spoken."""
    return NAV_DIRECTIVE.sub("", text).strip()


def has_map_data(text: str) -> bool:
    return MAP_DATA_START in text
