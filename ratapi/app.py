#!/usr/bin/env python
# run:
# $ FLASK_APP=ratapi.app:create_app flask run
from flask import Flask

from .api import ResourceAPI
from .api_init import DB as db
from .auth import BearerTokenAuthenticator
from .resources import expose_resources


def create_api(app, prefix=""):
    api = ResourceAPI(app, prefix=prefix, app_db=db, authenticator=BearerTokenAuthenticator())
    expose_resources(api)
    return api


def create_app(config=None):
    """
    :param config: app.config overrides, e.g. SQLALCHEMY_DATABASE_URI
    :return: Flask app serving the resources
    """
    app = Flask("ratapi")
    app.config.update(SQLALCHEMY_DATABASE_URI="sqlite://")
    app.config.update(config or {})
    db.init_app(app)
    with app.app_context():
        db.create_all()
        create_api(app)
    return app
