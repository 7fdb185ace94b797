"""Run the API under uvicorn with host and port taken from settings."""

import uvicorn

from subsync.config import get_settings


def main() -> None:
    settings = get_settings()
    uvicorn.run(
        "subsync.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.debug,
    )


if __name__ == "__main__":
    main()
