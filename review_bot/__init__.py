"""GitHub code review and code-health triage bot."""

__version__ = "0.1.0"
