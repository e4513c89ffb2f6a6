"""
rolegate.db.repositories

Repository package.

Responsibilities:
- Group data-access repositories for the persistence layer.
- Map store constraint violations to `Conflict` at a single place (`base`).
"""

# Package marker; repositories are imported directly from submodules.


# --- Module Notes -----------------------------------------------------------
# Repositories are intentionally thin; business rules belong in services.
# Every query is built with the SQLAlchemy expression language (bound parameters).
