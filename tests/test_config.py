"""Unit tests for settings loading."""
import json

from app.config import Settings, flatten_json_config, load_json_config


def test_flatten_json_config_skips_comments():
    config = {
        "_comment": "ignored",
        "google": {"google_client_id": "id", "_note": "x"},
        "server_port": 8080,
    }
    assert flatten_json_config(config) == {"google_client_id": "id", "server_port": 8080}


def test_load_json_config(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"redis": {"redis_host": "cache"}}))

    assert load_json_config(str(path)) == {"redis_host": "cache"}
    assert load_json_config(str(tmp_path / "missing.json")) == {}


def test_json_config_file_via_env(tmp_path, monkeypatch):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"automation": {"review_check_interval_seconds": 15}}))
    monkeypatch.setenv("CONFIG_FILE", str(path))

    assert Settings().review_check_interval_seconds == 15


def test_local_origins_include_frontend():
    settings = Settings(run_mode="LOCAL", frontend_url="http://localhost:5173")

    assert "http://localhost:3000" in settings.allowed_origins
    assert settings.allowed_origins[-1] == "http://localhost:5173"


def test_azure_origins():
    settings = Settings(
        run_mode="AZURE",
        environment="production",
        frontend_url="https://dashboard.example.com",
        azure_allowed_origins=["https://dashboard.example.com"],
        website_hostname="api.example.net",
    )

    assert settings.allowed_origins == [
        "https://dashboard.example.com",
        "https://api.example.net",
    ]


def test_redirect_uri_defaults_to_frontend_callback():
    settings = Settings(frontend_url="http://localhost:3000", google_redirect_uri="")
    assert settings.google_redirect_uri_resolved == "http://localhost:3000/auth/google/callback"


def test_missing_required():
    settings = Settings(google_client_id="", google_client_secret="s")
    assert settings.missing_required() == ["GOOGLE_CLIENT_ID"]


def test_backend_url_default():
    assert Settings(server_port=5001, backend_url="").backend_url == "http://localhost:5001"
