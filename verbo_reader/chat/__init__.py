"""Assistant chat session and navigation directives."""

from verbo_reader.chat.directives import extract_nav_directive, strip_nav_directives
from verbo_reader.chat.session import ChatSession, GenerationService

__all__ = [
    "ChatSession",
    "GenerationService",
    "extract_nav_directive",
    "strip_nav_directives",
]
