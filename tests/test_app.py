"""Tests for app wiring: home page, plugin discovery, config, error handlers."""

import os

import pytest

from config import Config
from plugins import plugin_metas, register_plugins


class TestApp:
    """Top-level routes and error handlers."""

    def test_home_lists_games(self, client):
        body = client.get("/").get_data(as_text=True)
        assert "Guess the Number" in body
        assert 'href="/g/guess_number/"' in body

    def test_site_templates_live_in_core_package(self, app):
        import core
        folder = os.path.join(app.root_path, app.template_folder)
        assert os.path.samefile(folder, os.path.join(os.path.dirname(core.__file__), "templates"))
        assert os.path.isfile(os.path.join(folder, "base.html"))

    def test_healthz(self, client):
        assert client.get("/healthz").get_json() == {"status": "ok", "games": ["guess_number"]}

    def test_api_404_is_json(self, client):
        resp = client.get("/g/guess_number/api/nope")
        assert resp.status_code == 404
        assert resp.get_json() == {"ok": False, "error": "NOT_FOUND"}

    def test_api_405_is_json(self, client):
        resp = client.get("/g/guess_number/api/check_guess")
        assert resp.status_code == 405
        assert resp.get_json()["error"] == "METHOD_NOT_ALLOWED"

    def test_page_404_is_not_json(self, client):
        resp = client.get("/nowhere")
        assert resp.status_code == 404
        assert resp.is_json is False


class TestPlugins:
    """Plugin discovery."""

    def test_guess_number_registered(self, app):
        assert "guess_number" in app.blueprints
        assert [m["slug"] for m in plugin_metas()] == ["guess_number"]

    def test_register_twice_is_noop(self, app):
        assert register_plugins(app) == []
        assert len(plugin_metas()) == 1

    def test_missing_base_package(self, app):
        assert register_plugins(app, base_pkg="no_such_games_pkg") == []


class TestConfig:
    """Config.validate checks."""

    def test_defaults_are_valid(self):
        assert Config.validate() is True

    def test_bad_trials(self, monkeypatch):
        features = {"guess_number": dict(Config.GAME_FEATURES["guess_number"], max_trials=0)}
        monkeypatch.setattr(Config, "GAME_FEATURES", features)
        with pytest.raises(ValueError, match="GUESS_MAX_TRIALS"):
            Config.validate()

    def test_production_needs_secret(self, monkeypatch):
        monkeypatch.setattr(Config, "IS_PRODUCTION", True)
        monkeypatch.setattr(Config, "SECRET_KEY", "dev-secret-key-change-in-production")
        with pytest.raises(ValueError, match="FLASK_SECRET_KEY"):
            Config.validate()

