import logging
import logging.config
import sys
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from rentory.core.config import settings


def get_logging_config(environment: Optional[str] = None) -> Dict[str, Any]:
    """
    Build the logging configuration dictionary for an environment.

    Args:
        environment: Environment name, defaults to ``settings.ENVIRONMENT``

    Returns:
        Dictionary accepted by ``logging.config.dictConfig``
    """
    environment = environment or settings.ENVIRONMENT
    is_local = environment == "local"

    config: Dict[str, Any] = {
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {
            "context_filter": {
                "()": "rentory.core.logging.filters.CombinedContextFilter",
            },
            "operation_id": {
                "()": "rentory.core.logging.filters.OperationIdFilter",
            },
            "noise_reduction": {
                "()": "rentory.core.logging.filters.NoiseReductionFilter",
                "suppress_patterns": ["SELECT 1", "heartbeat"],
            },
        },
        "root": {
            "level": "WARNING",
            "handlers": [],
        },
    }

    if is_local:
        config["formatters"] = {
            "console": {
                "()": "rentory.core.logging.formatters.ConsoleFormatter",
                "format": "%(asctime)s %(name)s %(levelname)s %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
            "detailed": {
                "()": "rentory.core.logging.formatters.StructuredExceptionJsonFormatter",
                "format": "%(asctime)s %(name)s %(levelname)s %(message)s %(pathname)s %(lineno)d",
                "datefmt": "%Y-%m-%d %H:%M:%S",
                "rename_fields": {
                    "levelname": "level",
                    "asctime": "timestamp",
                    "name": "logger",
                    "pathname": "file_path",
                    "lineno": "line_number",
                },
            },
        }
        config["handlers"] = {
            "console": {
                "class": "logging.StreamHandler",
                "level": "DEBUG",
                "formatter": "console",
                "filters": ["context_filter", "operation_id"],
                "stream": "ext://sys.stdout",
            },
            "error_file": {
                "class": "logging.FileHandler",
                "level": "ERROR",
                "formatter": "detailed",
                "filters": ["context_filter"],
                "filename": str(Path(settings.BASE_DIR) / "logs" / "errors.log"),
                "mode": "a",
                "delay": True,
            },
        }
        config["root"]["handlers"] = ["console"]
        app_handlers = ["console", "error_file"]
    else:
        config["formatters"] = {
            "production": {
                "()": "rentory.core.logging.formatters.ProductionFormatter",
            }
        }
        config["handlers"] = {
            "json_stdout": {
                "class": "logging.StreamHandler",
                "level": "INFO",
                "formatter": "production",
                "filters": ["context_filter", "operation_id", "noise_reduction"],
                "stream": "ext://sys.stdout",
            },
            "error_stderr": {
                "class": "logging.StreamHandler",
                "level": "ERROR",
                "formatter": "production",
                "filters": ["context_filter", "operation_id"],
                "stream": "ext://sys.stderr",
            },
        }
        config["root"]["handlers"] = ["json_stdout", "error_stderr"]
        app_handlers = ["json_stdout", "error_stderr"]

    config["loggers"] = {
        "rentory": {
            "level": "DEBUG" if is_local else "INFO",
            "handlers": app_handlers,
            "propagate": False,
        },
        "sqlalchemy": {
            "level": "WARNING",
            "propagate": True,
        },
        "sqlalchemy.engine": {
            "level": "INFO" if is_local and settings.DATABASE_ECHO else "WARNING",
            "propagate": True,
        },
        "aiosqlite": {
            "level": "WARNING",
            "propagate": True,
        },
    }

    return config


def load_config_from_yaml(config_path: Path) -> Optional[Dict[str, Any]]:
    """
    Load logging configuration from a YAML file.

    Returns:
        The configuration dictionary, or None if the file is missing or invalid
    """
    if not config_path.exists():
        return None

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            loaded = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        print(f"Failed to load logging config from {config_path}: {e}", file=sys.stderr)
        return None

    return loaded if isinstance(loaded, dict) else None


def setup_logging(config_override: Optional[Dict[str, Any]] = None) -> None:
    """
    Configure logging for the process.

    The configuration is taken from, in order:
    1. ``config_override``
    2. ``config/logging.{environment}.yaml`` then ``config/logging.yaml`` under BASE_DIR
    3. ``get_logging_config()``
    """
    config = config_override

    if config is None:
        config_dir = Path(settings.BASE_DIR) / "config"
        config = load_config_from_yaml(config_dir / f"logging.{settings.ENVIRONMENT}.yaml")

        if config is None:
            config = load_config_from_yaml(config_dir / "logging.yaml")

    if config is None:
        config = get_logging_config()

    (Path(settings.BASE_DIR) / "logs").mkdir(exist_ok=True)

    try:
        logging.config.dictConfig(config)
    except (ValueError, TypeError, AttributeError, ImportError) as e:
        print(f"Failed to configure logging: {e}", file=sys.stderr)
        logging.basicConfig(
            level=logging.INFO,
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            handlers=[logging.StreamHandler(sys.stdout)],
        )


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger with the specified name (typically ``__name__``).

    Modules under ``rentory`` inherit the ``rentory`` logger configuration.
    """
    return logging.getLogger(name)
