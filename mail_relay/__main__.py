from __future__ import annotations

import uvicorn

from mail_relay.config.settings import get_settings


def main() -> None:
    settings = get_settings()
    uvicorn.run(
        "mail_relay.interfaces.http.main:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
