"""The Mule's Court: a headless rules engine for a Love-Letter-style deduction game."""

__version__ = "0.1.0"
