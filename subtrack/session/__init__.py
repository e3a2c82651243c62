"""Session mode resolution."""

from subtrack.session.selector import ModeSelector

__all__ = ["ModeSelector"]
