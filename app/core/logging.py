import logging
import logging.config
from pathlib import Path

from app.core.config import settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def build_logging_config(log_dir: Path, level: str) -> dict:
    """Console plus rotating files; errors are also kept in their own file."""
    rotating = {
        "class": "logging.handlers.RotatingFileHandler",
        "formatter": "default",
        "maxBytes": 10485760,
        "backupCount": 5,
    }
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {"format": LOG_FORMAT}
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": level,
                "formatter": "default",
                "stream": "ext://sys.stdout"
            },
            "file": {**rotating, "level": level, "filename": str(log_dir / "exam_engine.log")},
            "error_file": {**rotating, "level": "ERROR", "filename": str(log_dir / "exam_engine_errors.log")},
        },
        "root": {
            "level": level,
            "handlers": ["console", "file", "error_file"]
        },
        "loggers": {
            # Grading, issuance and revocation events
            "app": {
                "level": level,
                "handlers": ["console", "file", "error_file"],
                "propagate": False
            },
            "app.middleware.logging": {
                "level": level,
                "handlers": ["console", "file"],
                "propagate": False
            },
            "sqlalchemy.engine": {
                "level": "WARNING",
                "handlers": ["console", "error_file"],
                "propagate": False
            },
            "apscheduler": {
                "level": "WARNING",
                "handlers": ["console"],
                "propagate": False
            },
            "uvicorn.access": {
                "level": "WARNING",
                "handlers": ["console"],
                "propagate": False
            }
        }
    }


def configure_logging():
    log_dir = Path(settings.LOG_DIR)
    log_dir.mkdir(parents=True, exist_ok=True)
    logging.config.dictConfig(build_logging_config(log_dir, settings.LOG_LEVEL.upper()))
