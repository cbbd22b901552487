from __future__ import annotations

import os
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import List

from .models import BatchConfig, ExtensionSource

DEFAULT_EXTENSIONS = ("blocktube", "stayfocusd")


@dataclass
class Settings:
  base_dir: Path
  source_dir: Path
  github_user: str
  repo_name: str
  extensions: List[str] = field(default_factory=lambda: list(DEFAULT_EXTENSIONS))

  @classmethod
  def from_env(cls) -> "Settings":
    base_dir = os.getenv("CRXHOST_BASE_DIR")
    source_dir = os.getenv("CRXHOST_SOURCE_DIR")
    names = os.getenv("CRXHOST_EXTENSIONS")
    return cls(
      base_dir=Path(base_dir).expanduser() if base_dir else Path.cwd() / "dist",
      source_dir=Path(source_dir).expanduser() if source_dir else Path.cwd() / "extensions",
      github_user=os.getenv("CRXHOST_GITHUB_USER", "example"),
      repo_name=os.getenv("CRXHOST_REPO_NAME", "chrome-extensions"),
      extensions=[item.strip() for item in names.split(",") if item.strip()] if names else list(DEFAULT_EXTENSIONS),
    )

  def to_batch_config(self) -> BatchConfig:
    return BatchConfig.for_github_pages(
      self.github_user,
      self.repo_name,
      output_dir=self.base_dir,
      extensions=[ExtensionSource(name=name, source_dir=self.source_dir / name) for name in self.extensions],
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
  return Settings.from_env()
