"""
Persistence adapters.

SQL repositories (users, roles, service categories) and the TTL key-value
stores used for verification codes and token revocation. Services depend on
these adapters rather than on SQLAlchemy sessions or Redis clients.
"""
