import logging
import sys

logger = logging.getLogger(__name__)


def no_chime():
    """Fallback when no audio facility is available."""


class TerminalBellChime:
    """Rings the terminal bell of the process running the timer."""

    def __init__(self, stream=None):
        self.stream = stream

    def __call__(self):
        stream = self.stream or sys.stdout
        stream.write('\a')
        stream.flush()


def build_chime(kind):
    if kind == 'bell':
        return TerminalBellChime()
    return no_chime


def ring(chime):
    """Plays the chime; a failing chime is logged and never raised."""
    if chime is None:
        return
    try:
        chime()
    except Exception:
        logger.exception("Failed to play chime")
