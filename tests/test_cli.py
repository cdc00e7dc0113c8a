"""
Tests for the command-line entry point.
"""

import logging

import pytest

from easy_kindle.errors import ConfigError
from easy_kindle.cli import build_parser, main


@pytest.mark.unit
class TestCli:
    """Tests for argument parsing and the offline commands."""

    def test_parser(self):
        args = build_parser().parse_args(["sync", "--file", "list.txt", "--combined"])

        assert args.command == "sync"
        assert str(args.file) == "list.txt"
        assert args.combined

    @pytest.mark.asyncio
    async def test_status(self, write_sync_file, caplog):
        path = write_sync_file("https://a.test/1\nhttps://a.test/2 - SENT\n")

        with caplog.at_level(logging.INFO):
            assert await main(["status", "--file", str(path)]) == 0

        assert "sent 1" in caplog.text
        assert "https://a.test/1" in caplog.text

    @pytest.mark.asyncio
    async def test_sync_requires_delivery_settings(self, monkeypatch, write_sync_file):
        for name in ("SENDER", "RECEIVER", "PASSWORD"):
            monkeypatch.setenv(f"EASY_KINDLE_{name}", "")
        path = write_sync_file("https://a.test/1\n")

        with pytest.raises(ConfigError):
            await main(["sync", "--file", str(path)])
