import logging
import sys

# Client libraries that log every HTTP request at INFO.
_CHATTY_LOGGERS = ("httpx", "httpcore", "openai", "pdfminer")


class Log:
    """Process-wide logger for the worker and the API.

    Lines carry the thread name, so output from concurrent runs and from the
    per-file extraction pool can be told apart.
    """

    _logger: logging.Logger = logging.getLogger("petition_scoring")

    @classmethod
    def configure(cls, log_level: str) -> None:
        level = log_level.upper()
        cls._logger.setLevel(level)
        if not cls._logger.handlers:
            handler = logging.StreamHandler(sys.stdout)
            handler.setFormatter(
                logging.Formatter("%(asctime)s [%(levelname)s] [%(threadName)s] %(message)s")
            )
            cls._logger.addHandler(handler)
        if level != "DEBUG":
            for name in _CHATTY_LOGGERS:
                logging.getLogger(name).setLevel(logging.WARNING)

    @classmethod
    def info(cls, message: str, **kwargs: object) -> None:
        cls._logger.info(message, extra=kwargs)

    @classmethod
    def error(cls, message: str, **kwargs: object) -> None:
        cls._logger.error(message, extra=kwargs)

    @classmethod
    def warning(cls, message: str, **kwargs: object) -> None:
        cls._logger.warning(message, extra=kwargs)

    @classmethod
    def debug(cls, message: str, **kwargs: object) -> None:
        cls._logger.debug(message, extra=kwargs)
