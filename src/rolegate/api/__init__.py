"""
rolegate.api

API package for the RoleGate service.

Responsibilities:
- FastAPI app factory and router modules.
- API-layer dependency wiring, error envelope handlers and request/response models.
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# The API layer should remain thin: request validation + policy + delegation to services.
