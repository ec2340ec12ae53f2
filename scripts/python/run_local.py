"""Run the service with auto-reload against the local configuration."""

import uvicorn

from recipeshare.core.config import get_settings


def main() -> None:
    """Serve ``recipeshare.main:app`` on the configured host and port."""
    settings = get_settings()
    uvicorn.run(
        "recipeshare.main:app",
        host=settings.server.host,
        port=settings.server.port,
        reload=True,
    )


if __name__ == "__main__":
    main()
