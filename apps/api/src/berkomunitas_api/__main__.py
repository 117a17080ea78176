from urllib.parse import urlparse

import uvicorn

from berkomunitas_api.core.settings import settings


def main() -> None:
    bind = urlparse(settings.api_base_url)
    uvicorn.run(
        "berkomunitas_api.app:create_app",
        factory=True,
        host=bind.hostname or "127.0.0.1",
        port=bind.port or 8000,
        reload=settings.environment == "development",
    )


if __name__ == "__main__":
    main()
