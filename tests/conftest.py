import pytest
from itsdangerous import URLSafeSerializer

from app import app as flask_app
from blueprints.games.guess_number import plugin

BASE = "/g/guess_number"


@pytest.fixture
def app(monkeypatch):
    monkeypatch.setitem(flask_app.config, "TESTING", True)
    monkeypatch.setitem(flask_app.config, "INSPECT_HOOKS", False)
    yield flask_app
    flask_app.extensions[plugin.RUNTIME_KEY].clear()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def runtime(app):
    return app.extensions[plugin.RUNTIME_KEY]


@pytest.fixture
def game_of(app, runtime):
    """取某个 test client 对应的服务端会话"""
    def _get(client):
        cookie = client.get_cookie(plugin.SID_COOKIE)
        assert cookie is not None
        ser = URLSafeSerializer(app.config["SECRET_KEY"], salt="guess_number-state")
        return runtime.peek(ser.loads(cookie.value))
    return _get


@pytest.fixture
def started(client, game_of):
    """打开页面并把 secret 固定成 5"""
    client.get(f"{BASE}/")
    game = game_of(client)
    game.secret_number = 5
    return game
