"""
rolegate.auth

Authentication/authorization package.

Responsibilities:
- Token codec (JWT issue/verify) and password/access-code hashing.
- Authentication service (credential check + token issuance + login audit).
- Authorization guard (declarative role/ownership policies) and FastAPI glue.
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# Only `deps.py` imports FastAPI; the rest is framework-free and unit-testable.
