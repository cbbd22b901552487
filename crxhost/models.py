from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

_VERSION_PART_MAX = 65535
_NAME_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]*$")


def validate_version(value: str) -> str:
  """Check a browser manifest version: 1-4 dot separated integers up to 65535."""
  parts = value.split(".")
  if not value or len(parts) > 4:
    raise ValueError(f"invalid version {value!r}")
  for part in parts:
    if not (part.isascii() and part.isdigit()) or int(part) > _VERSION_PART_MAX:
      raise ValueError(f"invalid version {value!r}")
    if len(part) > 1 and part.startswith("0"):
      raise ValueError(f"invalid version {value!r}: leading zero in {part!r}")
  return value


class ExtensionManifest(BaseModel):
  version: str
  key: Optional[str] = None
  update_url: Optional[str] = None

  model_config = ConfigDict(extra="allow")

  @field_validator("version")
  @classmethod
  def check_version(cls, value: str) -> str:
    return validate_version(value)


class ExtensionSource(BaseModel):
  name: str
  source_dir: Path

  @field_validator("name")
  @classmethod
  def check_name(cls, value: str) -> str:
    if not _NAME_PATTERN.match(value):
      raise ValueError(f"extension name {value!r} is not a safe path component")
    return value


class BatchConfig(BaseModel):
  output_dir: Path
  keys_dir: Path
  base_url: str
  extensions: List[ExtensionSource] = Field(default_factory=list)

  @field_validator("base_url")
  @classmethod
  def strip_trailing_slash(cls, value: str) -> str:
    if not value.startswith(("https://", "http://")):
      raise ValueError("base_url must be an http(s) URL")
    return value.rstrip("/")

  @model_validator(mode="after")
  def check_unique_names(self) -> "BatchConfig":
    names = [item.name for item in self.extensions]
    duplicates = sorted({name for name in names if names.count(name) > 1})
    if duplicates:
      raise ValueError(f"duplicate extension names: {', '.join(duplicates)}")
    return self

  @classmethod
  def for_github_pages(
    cls,
    user: str,
    repo: str,
    output_dir: Path,
    extensions: List[ExtensionSource],
    keys_dir: Optional[Path] = None,
  ) -> "BatchConfig":
    return cls(
      output_dir=output_dir,
      keys_dir=keys_dir or output_dir / "keys",
      base_url=f"https://{user}.github.io/{repo}",
      extensions=extensions,
    )

  def key_path(self, name: str) -> Path:
    return self.keys_dir / f"{name}.pem"


@dataclass(frozen=True)
class BuildResult:
  name: str
  extension_id: str
  version: str
  crx_path: Path
  update_url: str
