"""
rolegate

Top-level package for the RoleGate service: role-scoped authentication and
authorization in front of the trip marketplace, QR artifact and vaccination
reminder backends.

Responsibilities:
- Expose package version metadata.
"""

__all__ = ["__version__"]

__version__ = "0.1.0"


# --- Module Notes -----------------------------------------------------------
# Keep this file minimal to avoid import-time side effects across the codebase.
