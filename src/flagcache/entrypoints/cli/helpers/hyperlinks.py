"""Clickable terminal links for the flagcache CLI.

Terminals that understand OSC-8 escape sequences render a label that opens a
URL when clicked. Detection is a heuristic on the stream and the terminal's
environment variables; anything unrecognized gets the plain URL.
"""

import os
import sys
from typing import TextIO

OSC8_TERM_PROGRAMS = frozenset({"apple_terminal", "vscode", "iterm.app", "wezterm", "kitty"})
OSC8_TERM_PREFIXES = ("alacritty", "konsole")
# GNOME Terminal/Tilix export VTE_VERSION, Windows Terminal exports WT_SESSION
OSC8_MARKER_VARS = ("WT_SESSION", "VTE_VERSION")


def supports_osc8(stream: TextIO | None = None) -> bool:
    """Guess whether `stream` is a terminal that renders OSC-8 hyperlinks.

    Args:
        stream: Text stream the link will be written to; defaults to ``sys.stdout``.

    Returns:
        bool: False for anything that is not a TTY (pipes, files, captured
        output), otherwise whether the terminal identifies as a known one.
    """
    stream = stream or sys.stdout
    isatty = getattr(stream, "isatty", None)
    if isatty is None or not isatty():
        return False
    if (os.getenv("TERM_PROGRAM") or "").lower() in OSC8_TERM_PROGRAMS:
        return True
    if any(os.getenv(name) for name in OSC8_MARKER_VARS):
        return True
    return os.getenv("TERM", "").startswith(OSC8_TERM_PREFIXES)


def hyperlink(url: str, label: str | None = None, stream: TextIO | None = None) -> str:
    """Render `url` as a clickable link when the terminal supports it.

    Args:
        url: Target URL.
        label: Visible text; defaults to the URL itself.
        stream: Stream the result is destined for (see `supports_osc8`).

    Returns:
        str: The OSC-8 sequence (terminated with BEL), or the plain URL.
    """
    if not supports_osc8(stream):
        return url
    return f"\x1b]8;;{url}\x07{label or url}\x1b]8;;\x07"
