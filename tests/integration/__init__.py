"""
Integration tests.

These run the fragment cache against a real Redis and are skipped unless
USE_REAL_REDIS=1.
"""
