"""
Sync subsystem.

Components:
- matcher.py: exact + Levenshtein name matching against the remote task index
- plan.py: per-task update plan (one optional struct per field)
- coordinator.py: run lifecycle, batching, bounded concurrency, stats
"""
