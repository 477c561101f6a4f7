import logging

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logger(level: str = "INFO", log_format: str = LOG_FORMAT) -> logging.Logger:
    """
    Configures root logging for the proxy process.
    """
    logging.basicConfig(level=level.upper(), format=log_format)
    return logging.getLogger("audio_proxy")
