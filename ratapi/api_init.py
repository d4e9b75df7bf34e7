"""
App initialization: configuration defaults, the package logger and the database handle
"""

import logging
import os
import sys
from typing import Callable, Optional

from flask import Flask, g, request
from flask_sqlalchemy import SQLAlchemy

import ratapi
from .json_encoder import RatAPIJSONProvider
from .permissions import ANONYMOUS
from .request import JsonapiRequest

LOG_FORMAT = "[%(asctime)s] %(levelname)s: %(message)s"


def anonymous_authenticator(req) -> "ratapi.Requester":
    """
    Used when no authenticator is configured: nobody is identified
    """
    return ANONYMOUS


class RatAPI:
    """Prepares a Flask app to serve the ratapi resources

    The class attributes are the configuration defaults, app.config entries override them (cfr. `get_config`)
    """

    DEFAULT_PAGE_LIMIT = 25
    MAX_PAGE_LIMIT = 100
    MAX_PAGE_OFFSET = 2**31
    # seconds during which anyone holding rescues.*.me is "self" for a new rescue
    RESCUE_ACCESS_TIME = 3 * 60 * 60
    # levels of declared relationships rendered in "included"
    INCLUDE_DEPTH = 1
    LOGLEVEL = logging.WARNING

    def __init__(self, app: Optional[Flask] = None, *args, **kwargs) -> None:
        self.app = app
        self.db: Optional[SQLAlchemy] = None
        self.authenticator: Callable = anonymous_authenticator
        if app is not None:
            self.init_app(app, *args, **kwargs)

    def init_app(
        self,
        app: Flask,
        app_db: Optional[SQLAlchemy] = None,
        authenticator: Optional[Callable] = None,
        **kwargs,
    ) -> None:
        """
        :param app: Flask app
        :param app_db: Flask-SQLAlchemy instance, the one registered on the app when omitted
        :param authenticator: callable(request) -> Requester
        :param kwargs: configuration defaults, added to app.config unless already set there
        """
        if not isinstance(app, Flask):  # pragma: no cover
            raise TypeError(f"Expected a Flask app, got {type(app).__name__}")

        self.db = app_db if app_db is not None else app.extensions["sqlalchemy"]
        ratapi.DB = self.db
        if authenticator is not None:
            self.authenticator = authenticator

        app.request_class = JsonapiRequest
        app.json = RatAPIJSONProvider(app)
        app.url_map.strict_slashes = False
        for name, value in kwargs.items():
            app.config.setdefault(name, value)

        if app.config.get("DEBUG"):
            log.setLevel(logging.DEBUG)

        @app.before_request
        def resolve_requester():
            g.requester = self.authenticator(request)

        # pylint: disable=unused-argument,unused-variable
        @app.teardown_appcontext
        def remove_session(exception=None):
            self.db.session.remove()

    @staticmethod
    def init_logging(loglevel: int = logging.WARNING) -> logging.Logger:
        """
        The package logger writes to stderr, the webserver captures stdout
        """
        logger = logging.getLogger(__name__.split(".")[0])
        if not logger.handlers:
            handler = logging.StreamHandler(sys.stderr)
            handler.setFormatter(logging.Formatter(LOG_FORMAT))
            logger.addHandler(handler)
            logger.setLevel(loglevel)
        return logger


DB = SQLAlchemy()

# DEBUG holds a numeric log level, e.g. DEBUG=10
_debug_env = os.getenv("DEBUG", str(RatAPI.LOGLEVEL))
try:
    LOGLEVEL = int(_debug_env)
except ValueError:  # pragma: no cover
    print(f'DEBUG should be a numeric log level, got "{_debug_env}"', file=sys.stderr)
    LOGLEVEL = logging.INFO

log = RatAPI.init_logging(LOGLEVEL)
