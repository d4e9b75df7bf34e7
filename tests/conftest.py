import itertools
import json

import pytest

from ratapi.api_init import DB
from ratapi.app import create_app
from ratapi.models import Group, Rat, Token, User

JSONAPI_CONTENT_TYPE = "application/vnd.api+json"


class JsonapiClient:
    """
    Test client sending JSON:API documents, optionally with a bearer token
    """

    def __init__(self, client, headers=None):
        self.client = client
        self.headers = headers or {}

    def get(self, url, **kwargs):
        return self.client.get(url, headers=self.headers, **kwargs)

    def _send(self, method, url, payload):
        data = None if payload is None else json.dumps(payload)
        return self.client.open(url, method=method, data=data, content_type=JSONAPI_CONTENT_TYPE, headers=self.headers)

    def post(self, url, payload):
        return self._send("POST", url, payload)

    def patch(self, url, payload):
        return self._send("PATCH", url, payload)

    def delete(self, url, payload=None):
        return self._send("DELETE", url, payload)


@pytest.fixture
def app():
    app = create_app({"TESTING": True})
    with app.app_context():
        yield app
        DB.session.remove()


@pytest.fixture
def anonymous(app):
    return JsonapiClient(app.test_client())


@pytest.fixture
def make_user(app):
    """
    Factory creating a user in a group holding `permissions` and a client authenticated as that user
    """
    counter = itertools.count()

    def factory(permissions=(), token_scope=("*",), suspended=None):
        number = next(counter)
        group = Group(name=f"group-{number}", permissions=list(permissions))
        user = User(email=f"user{number}@fuelrats.test", groups=[group], suspended=suspended)
        token = Token(value=f"token-{number}", scope=list(token_scope), user=user)
        DB.session.add_all([group, user, token])
        DB.session.commit()
        client = JsonapiClient(app.test_client(), headers={"Authorization": f"Bearer {token.value}"})
        return user, client

    return factory


@pytest.fixture
def make_rat(app):
    def factory(user=None, name="Test Rat", platform="pc"):
        rat = Rat(name=name, platform=platform, user=user)
        DB.session.add(rat)
        DB.session.commit()
        return rat

    return factory
