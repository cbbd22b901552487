"""Rewrites a staged manifest.json so it installs from our own update feed."""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Dict

from pydantic import ValidationError

from .models import ExtensionManifest

logger = logging.getLogger(__name__)

FEED_FILENAME = "update.xml"


class SchemaError(ValueError):
  pass


def update_url_for(base_url: str, name: str) -> str:
  return f"{base_url.rstrip('/')}/{name}/{FEED_FILENAME}"


def _read_manifest(path: Path) -> Dict[str, object]:
  try:
    data = json.loads(path.read_text(encoding="utf-8"))
  except FileNotFoundError as exc:
    raise SchemaError(f"No manifest at {path}") from exc
  except (json.JSONDecodeError, UnicodeDecodeError) as exc:
    raise SchemaError(f"Manifest {path} is not valid JSON") from exc
  if not isinstance(data, dict):
    raise SchemaError(f"Manifest {path} must be a JSON object")
  return data


def rewrite_manifest(manifest_path: Path, update_url: str) -> str:
  """Drop the embedded ``key`` and point ``update_url`` at our feed.

  The browser derives the extension id from ``key`` when present, which would
  override the id of the key we sign with. Returns the manifest version.
  """
  data = _read_manifest(manifest_path)
  try:
    manifest = ExtensionManifest.model_validate(data)
  except ValidationError as exc:
    raise SchemaError(f"Manifest {manifest_path} is invalid: {exc.errors()[0]['msg']}") from exc

  if data.pop("key", None) is not None:
    logger.debug("Removed embedded key from %s", manifest_path)
  data["update_url"] = update_url

  manifest_path.write_text(json.dumps(data, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")
  logger.info("Updated manifest.json with update_url: %s", update_url)
  return manifest.version
