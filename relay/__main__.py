"""Run the relay under uvicorn: ``python -m relay``."""

import uvicorn

from relay.core.config import get_settings


def main() -> None:
    settings = get_settings()
    uvicorn.run(
        "relay.main:create_app",
        factory=True,
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.RELOAD,
    )


if __name__ == "__main__":
    main()
