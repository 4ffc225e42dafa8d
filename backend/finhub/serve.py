"""
Run the API with uvicorn on the configured host and port.

Usage (from backend/):
  python -m finhub
"""

import uvicorn

from finhub.config import get_settings


def main() -> None:
    settings = get_settings()
    uvicorn.run(
        "finhub.main:app",
        host=settings.host,
        port=settings.port,
        reload=not settings.is_production,
    )


if __name__ == "__main__":
    main()
