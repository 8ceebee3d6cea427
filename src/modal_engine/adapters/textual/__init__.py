"""Textual host adapter. ``app`` needs the optional ``textual`` extra."""

from .controller import BUS_EVENTS, TextualUIHooks, TextualVimAdapter

__all__ = ["BUS_EVENTS", "TextualUIHooks", "TextualVimAdapter"]
