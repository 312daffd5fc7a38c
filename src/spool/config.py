"""Configuration loading from environment variables."""

import os
from dataclasses import dataclass, field
from pathlib import Path


@dataclass
class Config:
    repo_path: Path = field(default_factory=lambda: Path.cwd())
    system_actor: str = "@spool"
    default_branch: str = "main"
    archive_days: int = 30
    log_level: str = "WARNING"
    ui_host: str = "127.0.0.1"
    ui_port: int = 8787

    @classmethod
    def from_env(cls) -> "Config":
        config = cls()

        if repo := os.environ.get("SPOOL_REPO_PATH"):
            config.repo_path = Path(repo)

        if actor := os.environ.get("SPOOL_ACTOR"):
            config.system_actor = actor

        if branch := os.environ.get("SPOOL_DEFAULT_BRANCH"):
            config.default_branch = branch

        if days := os.environ.get("SPOOL_ARCHIVE_DAYS"):
            config.archive_days = int(days)

        if level := os.environ.get("SPOOL_LOG_LEVEL"):
            config.log_level = level.upper()

        if host := os.environ.get("SPOOL_UI_HOST"):
            config.ui_host = host

        if port := os.environ.get("SPOOL_UI_PORT"):
            config.ui_port = int(port)

        return config


def get_config() -> Config:
    return Config.from_env()
