"""
Unit tests for easy_kindle.config.
"""

from pathlib import Path

import pytest

from easy_kindle.config import DEFAULT_SMTP_PORT, DEFAULT_SMTP_SERVER, Config
from easy_kindle.errors import ConfigError


@pytest.mark.unit
class TestConfig:
    """Tests for building configuration from the environment."""

    def test_from_env(self):
        env = {
            "EASY_KINDLE_SENDER": "me@example.com",
            "EASY_KINDLE_RECEIVER": "me@kindle.com",
            "EASY_KINDLE_PASSWORD": "secret",
            "EASY_KINDLE_SMTP_SERVER": "mail.example.com",
            "EASY_KINDLE_SMTP_PORT": "587",
            "EASY_KINDLE_STORE_PATH": "/tmp/books",
            "EASY_KINDLE_SYNC_FILE": "/tmp/list.txt",
        }

        config = Config.from_env(env, dotenv=False)

        assert config.sender == "me@example.com"
        assert config.smtp_server == "mail.example.com"
        assert config.smtp_port == 587
        assert config.store_path == Path("/tmp/books")
        assert config.sync_file_path == Path("/tmp/list.txt")
        config.require_delivery()

    def test_defaults(self):
        config = Config.from_env({}, dotenv=False)

        assert config.smtp_server == DEFAULT_SMTP_SERVER
        assert config.smtp_port == DEFAULT_SMTP_PORT
        assert config.sync_file_path is None

    def test_bad_port(self):
        with pytest.raises(ConfigError):
            Config.from_env({"EASY_KINDLE_SMTP_PORT": "smtp"}, dotenv=False)

    def test_require_delivery_lists_missing(self):
        with pytest.raises(ConfigError, match="EASY_KINDLE_PASSWORD"):
            Config(sender="a@b.c", receiver="d@e.f").require_delivery()
