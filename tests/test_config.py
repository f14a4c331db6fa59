"""Tests for configuration loading."""

import yaml

from pixelprompt.config import Config


class TestConfig:
    def test_defaults_without_file(self, tmp_path, monkeypatch):
        for var in ("PIXELPROMPT_ENDPOINT", "PIXELPROMPT_API_KEY", "PIXELPROMPT_CUSTOMER_ID", "PIXELPROMPT_DATA_DIR"):
            monkeypatch.delenv(var, raising=False)

        config = Config.load(tmp_path / "missing.yaml")

        assert config.service.image_timeout_ms == 300_000
        assert config.service.text_timeout_ms == 30_000
        assert config.defaults.max_history_items == 50
        assert config.defaults.history_view_items == 20

    def test_save_and_load(self, tmp_path, monkeypatch):
        monkeypatch.delenv("PIXELPROMPT_API_KEY", raising=False)
        path = tmp_path / "config.yaml"
        config = Config()
        config.service.api_key = "secret"
        config.defaults.max_history_items = 10
        config.save(path)

        loaded = Config.load(path)

        assert loaded.service.api_key == "secret"
        assert loaded.defaults.max_history_items == 10
        assert yaml.safe_load(path.read_text())["service"]["api_key"] == "secret"

    def test_env_takes_precedence(self, tmp_path, monkeypatch):
        path = tmp_path / "config.yaml"
        path.write_text(yaml.dump({"service": {"api_key": "from-file", "customer_id": "cus_file"}}))
        monkeypatch.setenv("PIXELPROMPT_API_KEY", "from-env")
        monkeypatch.delenv("PIXELPROMPT_CUSTOMER_ID", raising=False)
        monkeypatch.setenv("PIXELPROMPT_DATA_DIR", str(tmp_path / "d"))

        config = Config.load(path)

        assert config.service.api_key == "from-env"
        assert config.service.customer_id == "cus_file"
        assert config.data_path == tmp_path / "d"

    def test_validate(self):
        config = Config()
        issues = config.validate()
        assert any("API key" in issue for issue in issues)
        assert any("customer id" in issue for issue in issues)

        config.service.api_key = "k"
        config.service.customer_id = "c"
        assert config.validate() == []
