"""Run the server: ``python -m kwilt_mcp``."""

import uvicorn

from kwilt_mcp.config import get_settings


def main() -> None:
    settings = get_settings()
    uvicorn.run(
        "kwilt_mcp.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
