"""Unit tests for settings loading and credential storage."""

import threading

import pytest

from gha_webhooks.config import Credentials, WebhookSettings, load_config, load_settings


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    """Keep GHA_WEBHOOK_* variables and .env files out of the tests."""
    for name in ["SECRET", "SECRET_FILE", "PATH", "HOST", "PORT", "REDIS_URL", "STREAM"]:
        monkeypatch.delenv(f"GHA_WEBHOOK_{name}", raising=False)
    monkeypatch.chdir(tmp_path)


class TestWebhookSettings:
    def test_defaults(self):
        settings = WebhookSettings()

        assert settings.secret == ""
        assert settings.path == "/webhooks/github"
        assert settings.port == 8080
        assert settings.resolve_secret() is None

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("GHA_WEBHOOK_SECRET", "from-env")
        monkeypatch.setenv("GHA_WEBHOOK_PORT", "9000")

        settings = WebhookSettings(secret="from-file", port=8081)

        assert settings.secret == "from-env"
        assert settings.port == 9000

    def test_secret_file(self, tmp_path):
        secret_file = tmp_path / "webhook-secret"
        secret_file.write_text("s3cr3t\n")

        settings = WebhookSettings(secret_file=secret_file)

        assert settings.resolve_secret() == "s3cr3t"

    def test_secret_wins_over_file(self, tmp_path):
        secret_file = tmp_path / "webhook-secret"
        secret_file.write_text("from-file")

        settings = WebhookSettings(secret="inline", secret_file=secret_file)

        assert settings.resolve_secret() == "inline"

    def test_missing_secret_file(self, tmp_path):
        settings = WebhookSettings(secret_file=tmp_path / "nope")

        assert settings.resolve_secret() is None


class TestLoadSettings:
    def test_missing_file(self, tmp_path):
        assert load_config(tmp_path / "config.yaml") == {}
        assert load_settings(tmp_path / "config.yaml").secret == ""

    def test_webhook_section(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(
            "webhook:\n"
            "  secret: yaml-secret\n"
            "  port: 9090\n"
            "  path: /hooks\n"
            "other:\n"
            "  key: value\n"
        )

        settings = load_settings(path)

        assert settings.secret == "yaml-secret"
        assert settings.port == 9090
        assert settings.path == "/hooks"

    def test_local_override_merged(self, tmp_path):
        (tmp_path / "config.yaml").write_text("webhook:\n  secret: base\n  port: 9090\n")
        (tmp_path / "config.local.yaml").write_text("webhook:\n  secret: local\n")

        settings = load_settings(tmp_path / "config.yaml")

        assert settings.secret == "local"
        assert settings.port == 9090


class TestCredentials:
    def test_unconfigured(self):
        creds = Credentials()

        assert creds.get_webhook_secret() is None
        assert creds.is_configured() is False

    def test_empty_is_unconfigured(self):
        assert Credentials("").get_webhook_secret() is None

    def test_from_settings(self):
        creds = Credentials.from_settings(WebhookSettings(secret="abc"))

        assert creds.get_webhook_secret() == "abc"

    def test_rotate(self):
        creds = Credentials("old")
        creds.rotate("new")

        assert creds.get_webhook_secret() == "new"

    def test_reload(self, tmp_path):
        secret_file = tmp_path / "webhook-secret"
        secret_file.write_text("first")
        settings = WebhookSettings(secret_file=secret_file)
        creds = Credentials.from_settings(settings)

        secret_file.write_text("second")
        creds.reload(settings)

        assert creds.get_webhook_secret() == "second"

    def test_concurrent_reads_see_whole_values(self):
        old = "a" * 64
        new = "b" * 64
        creds = Credentials(old)
        seen = set()
        stop = threading.Event()

        def reader():
            while not stop.is_set():
                seen.add(creds.get_webhook_secret())

        threads = [threading.Thread(target=reader) for _ in range(4)]
        for t in threads:
            t.start()
        for i in range(1000):
            creds.rotate(new if i % 2 == 0 else old)
        stop.set()
        for t in threads:
            t.join()

        assert seen <= {old, new}

    def test_read_waits_for_rotation_in_progress(self):
        creds = Credentials("old")
        result = []

        creds._lock.acquire()
        reader = threading.Thread(target=lambda: result.append(creds.get_webhook_secret()))
        reader.start()
        reader.join(timeout=0.1)
        assert result == []

        creds._webhook_secret = "new"
        creds._lock.release()
        reader.join(timeout=5)
        assert result == ["new"]
