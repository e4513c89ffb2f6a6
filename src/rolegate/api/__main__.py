"""
rolegate.api.__main__

`python -m rolegate.api` (or the `rolegate` console script).

Settings come from `ROLEGATE_*` variables; without `ROLEGATE_JWT_SECRET` the
process exits on a validation error before binding a port.
"""

from __future__ import annotations

import uvicorn

from rolegate.api.app import create_app
from rolegate.settings import get_settings


def main() -> None:
    settings = get_settings()
    # uvicorn's own logging config would bypass the structlog JSON renderer.
    uvicorn.run(
        create_app(settings=settings),
        host=settings.api_host,
        port=settings.api_port,
        log_config=None,
    )


if __name__ == "__main__":
    main()
