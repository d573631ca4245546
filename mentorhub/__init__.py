"""MentorHub booking and ledger back office."""

__version__ = "0.1.0"
