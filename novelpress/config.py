"""Runtime settings read from the environment.

All settings have defaults so the service and the CLI work without any
configuration. The CLI overrides individual values from its flags.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from .fetcher import DEFAULT_USER_AGENT, PageFetcher

ENV_PREFIX = "NOVELPRESS_"


@dataclass
class Settings:
    output_dir: Path = Path("novels")
    timeout: float = 30.0
    max_retries: int = 3
    backoff: float = 1.0
    # None keeps each source's own worker count.
    max_workers: Optional[int] = None
    user_agent: str = DEFAULT_USER_AGENT
    log_level: str = "INFO"

    def make_fetcher(self, **kwargs) -> PageFetcher:
        return PageFetcher(
            timeout=self.timeout,
            max_retries=self.max_retries,
            backoff=self.backoff,
            user_agent=self.user_agent,
            **kwargs,
        )


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    env = os.environ if environ is None else environ

    def get(name: str) -> Optional[str]:
        value = env.get(ENV_PREFIX + name)
        return value if value else None

    settings = Settings()
    if get("OUTPUT_DIR"):
        settings.output_dir = Path(get("OUTPUT_DIR"))
    if get("TIMEOUT"):
        settings.timeout = float(get("TIMEOUT"))
    if get("MAX_RETRIES"):
        settings.max_retries = int(get("MAX_RETRIES"))
    if get("BACKOFF"):
        settings.backoff = float(get("BACKOFF"))
    if get("MAX_WORKERS"):
        settings.max_workers = int(get("MAX_WORKERS"))
    if get("USER_AGENT"):
        settings.user_agent = get("USER_AGENT")
    if get("LOG_LEVEL"):
        settings.log_level = get("LOG_LEVEL").upper()
    return settings


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    # httpx logs every request at INFO.
    logging.getLogger("httpx").setLevel(logging.WARNING)
