"""
Remote side.

Components:
- rate_limiter.py: sliding-window throttle shared by all calls of one run
- client.py: authenticated Teambition client (retry/backoff + domain operations)
"""
