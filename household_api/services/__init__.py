"""
High-level use cases for the household services API.

Each service module orchestrates repositories/adapters to implement business
rules (category tree integrity, verification codes, login, token refresh).

Routers (FastAPI endpoints) call these services and never touch the SQL
session or the TTL store directly.
"""
