"""
rolegate.api.routers

One router module per principal family plus health checks.
"""
