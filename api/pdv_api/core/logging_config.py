import logging.config

LOG_FORMATS = ("verbose", "json")


def build_logging_config(level: str = "INFO", fmt: str = "verbose") -> dict:
    if fmt not in LOG_FORMATS:
        raise ValueError(f"Unknown log format: {fmt}")

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "verbose": {
                "format": "{levelname} {asctime} {module} {message}",
                "style": "{",
            },
            "json": {
                "()": "pythonjsonlogger.json.JsonFormatter",
                "format": "%(asctime)s %(name)s %(levelname)s %(message)s",
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": fmt,
            },
        },
        "loggers": {
            "pdv_api": {
                "handlers": ["console"],
                "level": level.upper(),
                "propagate": False,
            },
            "uvicorn.error": {
                "handlers": ["console"],
                "level": level.upper(),
                "propagate": False,
            },
        },
    }


def configure_logging(level: str = "INFO", fmt: str = "verbose") -> None:
    logging.config.dictConfig(build_logging_config(level, fmt))
