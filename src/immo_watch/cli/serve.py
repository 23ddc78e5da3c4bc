from __future__ import annotations

import uvicorn

from immo_watch.config import Settings
from immo_watch.utils.log import configure_logging
from immo_watch.web.main import create_app


def main() -> None:
    settings = Settings.from_env()
    configure_logging(settings.log_level)
    uvicorn.run(create_app(settings), host="0.0.0.0", port=settings.port)


if __name__ == "__main__":
    main()
