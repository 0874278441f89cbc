"""hashchanges entrypoint.

Run with:
  python -m hashchanges
"""

import uvicorn

from hashchanges.config import Settings
from hashchanges.logging_config import setup_logging


def main() -> None:
    settings = Settings.from_env()
    setup_logging(settings.log_level)
    uvicorn.run("hashchanges.app:create_app", factory=True, host=settings.host, port=settings.port, reload=settings.reload)

if __name__ == "__main__":
    main()
