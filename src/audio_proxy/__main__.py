import uvicorn

from .logger import setup_logger
from .settings import settings


def main() -> None:
    server = settings.server
    logger = setup_logger(server.log_level)
    logger.info("openrouter-audio-proxy listening on http://%s:%s", server.bind, server.port)
    uvicorn.run(
        "audio_proxy.app:app",
        host=server.bind,
        port=server.port,
        reload=False,
        log_level=server.log_level.lower(),
    )


if __name__ == "__main__":
    main()
