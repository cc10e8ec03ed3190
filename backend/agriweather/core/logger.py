import logging
import os
import re
from logging.handlers import RotatingFileHandler
from agriweather.core.config import settings

# Provider URLs carry the API key as a query parameter
_SECRET_PARAM = re.compile(r"(appid=)[^&\s]+")


class RedactSecretsFilter(logging.Filter):
    """Masks the weather provider key in any record that reaches our handlers."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        if "appid=" in message:
            record.msg = _SECRET_PARAM.sub(r"\1***", message)
            record.args = None
        return True


class LoggerConfig:
    """
    Sets up the service logger: a size-rotated file under `log_directory`
    plus the console, both at level `env`. Chatty client libraries are
    capped at WARNING so request URLs do not flood the log.
    """
    quiet_loggers = ("httpx", "httpcore", "pymongo")

    def __init__(
        self, env=20, logger_name="AgriWeather", log_directory="logs", log_file="app.log"
    ):
        try:
            self.logger_name = logger_name
            self.log_directory = os.path.abspath(log_directory)
            self.log_file_path = os.path.join(self.log_directory, log_file)
            self.env = env
            self.log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

            self.logger = logging.getLogger(self.logger_name)
            self.setup_logger()
        except Exception as e:
            print(f"Failed to initialize logger: {str(e)}")

    def _build_handlers(self) -> list[logging.Handler]:
        os.makedirs(self.log_directory, exist_ok=True)
        formatter = logging.Formatter(self.log_format)
        redact = RedactSecretsFilter()

        handlers = [
            RotatingFileHandler(
                self.log_file_path, backupCount=5, maxBytes=1024 * 1024 * 10, encoding="utf-8"
            ),
            logging.StreamHandler(),
        ]
        for handler in handlers:
            handler.setLevel(self.env)
            handler.setFormatter(formatter)
            handler.addFilter(redact)
        return handlers

    def setup_logger(self):
        try:
            # Avoid adding duplicate handlers if re-initialized
            if not self.logger.handlers:
                for handler in self._build_handlers():
                    self.logger.addHandler(handler)

            self.logger.setLevel(self.env)
            self.logger.propagate = False

            for name in self.quiet_loggers:
                logging.getLogger(name).setLevel(max(self.env, logging.WARNING))

        except Exception as e:
            print(f"Failed to setup logger handlers: {str(e)}")

    def log(self, level: int, message: str, extra: dict = None, exc_info: bool = False):
        """Logs `message`, appending `extra` as ` | {...}` context when given."""
        if extra:
            message = f"{message} | {extra}"
        self.logger.log(level, message, exc_info=exc_info)


# Initialize Logger
logs = LoggerConfig(
    env=settings.LOGGER,
    logger_name="AGRI-WEATHER",
    log_directory=settings.LOG_DIRECTORY,
    log_file="app.log"
)
