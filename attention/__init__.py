"""
Attention - unified priority engine.

Merges tasks, inbox messages, meetings, stale company relationships,
recurring commitments and reading material into one ranked, bounded
"what needs attention now" list.
"""

__version__ = "0.1.0"
