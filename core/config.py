from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from functools import lru_cache
from typing import List


def _to_list(value: str | None, *, default: List[str]) -> List[str]:
    if value is None:
        return list(default)
    return [item.strip() for item in value.split(",") if item.strip()]


@dataclass(frozen=True)
class Settings:
    source_path: str
    cors_origins: List[str]
    log_level: str


@lru_cache
def get_settings() -> Settings:
    return Settings(
        source_path=os.getenv("CLARIFY_SOURCE_PATH", ""),
        cors_origins=_to_list(
            os.getenv("CLARIFY_CORS_ORIGINS"),
            default=["http://localhost:3000", "http://127.0.0.1:3000"],
        ),
        log_level=os.getenv("CLARIFY_LOG_LEVEL", "INFO").strip().upper() or "INFO",
    )


def configure_logging(level: str | None = None) -> None:
    logging.basicConfig(
        level=level or get_settings().log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
