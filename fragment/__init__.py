"""Extract Shift-JIS text from game data and patch translations back in place."""

__version__ = "0.3.0"
