"""
rolegate.services

Service-layer package.

Responsibilities:
- Own transaction boundaries (commit) for multi-step resource operations.
- Hold the small amount of business logic the backends have: daily votes and
  trip activation, seat capacity, trip limits, vaccine schedules, dashboards.
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# Services receive an AsyncSession and never look at HTTP objects.
