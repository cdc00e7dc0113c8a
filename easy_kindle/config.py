import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from dotenv import load_dotenv

from easy_kindle.errors import ConfigError

logger = logging.getLogger(__name__)

ENV_PREFIX = "EASY_KINDLE_"
DEFAULT_SMTP_SERVER = "smtp.gmail.com"
DEFAULT_SMTP_PORT = 465


@dataclass(frozen=True)
class Config:
    sender: str = ""
    receiver: str = ""
    password: str = ""
    smtp_server: str = DEFAULT_SMTP_SERVER
    smtp_port: int = DEFAULT_SMTP_PORT
    store_path: Path = Path(".")
    sync_file_path: Optional[Path] = None

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None, dotenv: bool = True) -> "Config":
        """
        Build the configuration from EASY_KINDLE_* environment variables.

        A .env file in the working directory is loaded first (existing
        variables win), mirroring how the CLI has always been configured.
        """
        if dotenv:
            load_dotenv()
        env = os.environ if environ is None else environ

        def get(name: str, default: str = "") -> str:
            return env.get(ENV_PREFIX + name, default).strip()

        port_str = get("SMTP_PORT", str(DEFAULT_SMTP_PORT))
        try:
            port = int(port_str)
        except ValueError:
            raise ConfigError(f"{ENV_PREFIX}SMTP_PORT must be an integer, got {port_str!r}")

        sync_file = get("SYNC_FILE")
        config = cls(
            sender=get("SENDER"),
            receiver=get("RECEIVER"),
            password=get("PASSWORD"),
            smtp_server=get("SMTP_SERVER", DEFAULT_SMTP_SERVER) or DEFAULT_SMTP_SERVER,
            smtp_port=port,
            store_path=Path(get("STORE_PATH", ".") or ".").expanduser(),
            sync_file_path=Path(sync_file).expanduser() if sync_file else None,
        )
        logger.debug(f"Loaded config: sender={config.sender!r} receiver={config.receiver!r} store={config.store_path}")
        return config

    def require_delivery(self):
        """Raise ConfigError unless everything needed to send mail is set."""
        missing = [
            ENV_PREFIX + name
            for name, value in (("SENDER", self.sender), ("RECEIVER", self.receiver), ("PASSWORD", self.password))
            if not value
        ]
        if missing:
            raise ConfigError(f"Missing delivery settings: {', '.join(missing)}")
