"""
Core utilities shared across the household services API.

This package hosts:
- configuration helpers (env vars, token/code lifetimes, SMTP)
- cross-cutting services such as logging, the mailer adapter,
  password hashing, typed errors and rate limit helpers.

Services and repositories depend on these primitives instead of reading
os.environ or importing FastAPI directly.
"""
