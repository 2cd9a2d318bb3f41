"""Tests for configuration handling."""

import stat

import pytest

from pyonedrive.config import DEFAULT_API_URL, Config


@pytest.fixture
def clean_env(monkeypatch):
    monkeypatch.delenv("ONEDRIVE_ACCESS_TOKEN", raising=False)
    monkeypatch.delenv("ONEDRIVE_API_URL", raising=False)


@pytest.fixture
def cfg(tmp_path, clean_env):
    return Config(config_dir=tmp_path / "pyonedrive")


class TestConfig:
    """Tests for Config."""

    def test_defaults(self, cfg):
        assert cfg.access_token is None
        assert cfg.api_url == DEFAULT_API_URL

    def test_env_token(self, cfg, monkeypatch):
        monkeypatch.setenv("ONEDRIVE_ACCESS_TOKEN", "env_token")
        assert cfg.access_token == "env_token"

    def test_env_api_url(self, cfg, monkeypatch):
        monkeypatch.setenv("ONEDRIVE_API_URL", "https://graph.test/beta/")
        assert cfg.api_url == "https://graph.test/beta"

    def test_save_and_read_token(self, cfg):
        """Test a saved token is read back and kept private."""
        path = cfg.save_access_token("saved_token")
        assert path == cfg.get_config_path()
        assert cfg.access_token == "saved_token"
        assert stat.S_IMODE(path.stat().st_mode) == 0o600

    def test_env_overrides_file(self, cfg, monkeypatch):
        cfg.save_access_token("saved_token")
        monkeypatch.setenv("ONEDRIVE_ACCESS_TOKEN", "env_token")
        assert cfg.access_token == "env_token"

    def test_other_keys_preserved(self, cfg):
        cfg.config_dir.mkdir(parents=True)
        cfg.get_config_path().write_text(
            "# comment\nONEDRIVE_API_URL=https://graph.test/v1.0\n"
        )
        cfg.save_access_token("tok")
        assert cfg.api_url == "https://graph.test/v1.0"
        assert cfg.access_token == "tok"

    def test_quoted_values(self, cfg):
        cfg.config_dir.mkdir(parents=True)
        cfg.get_config_path().write_text('ONEDRIVE_ACCESS_TOKEN="quoted"\n')
        assert cfg.access_token == "quoted"
