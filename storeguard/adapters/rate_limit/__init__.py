"""Rate limiting adapters.

This package keeps the admission logic behind a small abstraction so the
per-process in-memory store can later be replaced by a shared backend without
changing the HTTP layer.
"""
