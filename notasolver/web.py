"""Flask application setup for the NotaSolver HTTP API.

This module provides:

    - The Flask application instance shared by the route module
    - Application-wide logging configuration
    - Access to the process-wide solve pipeline

The HTTP API is the boundary to the two outside collaborators: the drawing
surface posts strokes and a region, and the result view polls the store
snapshot. Route handlers live in routes.py and register themselves on
``app`` when imported.

Example:
    Run the API with a pipeline built from the environment::

        from notasolver.web import app, configure_logging
        import notasolver.routes  # noqa: F401 - registers routes

        configure_logging(level='DEBUG')
        app.run()

    Inject a pipeline (tests, embedding)::

        app.config['PIPELINE'] = EquationRequestPipeline(ocr, solver)
"""

import logging
import threading

from flask import Flask

from .config import ServiceConfig
from .pipeline import EquationRequestPipeline

# Module logger
logger = logging.getLogger(__name__)

QUIET_LOGGERS = ('werkzeug', 'urllib3', 'PIL')


def configure_logging(level: str = 'INFO', log_file: str | None = None) -> None:
    """Route pipeline and client logs to stderr and optionally a file.

    Both entry points (``notasolver serve`` and the one-shot CLI commands)
    call this once before building a pipeline. Calling it again replaces
    the handlers instead of stacking them. Request transitions are logged
    at INFO, so ``WARNING`` leaves only retries and failures.

    Args:
        level: Level name; unknown names fall back to INFO.
        log_file: Extra file to append to, in addition to stderr.
    """
    log_level = logging.getLevelName(level.upper())
    if not isinstance(log_level, int):
        log_level = logging.INFO

    formatter = logging.Formatter(
        fmt='%(asctime)s %(levelname)-8s [%(name)s] %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    handlers = [logging.StreamHandler()]
    if log_file:
        handlers.append(logging.FileHandler(log_file, encoding='utf-8'))

    root_logger = logging.getLogger()
    for old in list(root_logger.handlers):
        root_logger.removeHandler(old)
    for handler in handlers:
        handler.setFormatter(formatter)
        root_logger.addHandler(handler)
    root_logger.setLevel(log_level)

    # HTTP server, connection pool and image codec chatter
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logger.info("Logging configured: level=%s, file=%s",
                logging.getLevelName(log_level), log_file or 'stderr')


# Flask application
app = Flask(__name__)
app.config.setdefault('PIPELINE', None)

_pipeline_lock = threading.Lock()


def get_pipeline() -> EquationRequestPipeline:
    """Return the app's pipeline, building one from the environment on first use."""
    with _pipeline_lock:
        pipeline = app.config.get('PIPELINE')
        if pipeline is None:
            config = ServiceConfig.from_env()
            missing = config.missing_credentials()
            if missing:
                logger.warning("Missing credentials: %s; remote calls will fail",
                               ', '.join(missing))
            pipeline = EquationRequestPipeline.from_config(config)
            app.config['PIPELINE'] = pipeline
        return pipeline
