"""Builds one signed extension package plus its update feed."""
from __future__ import annotations

import logging
import os
import shutil
from contextlib import contextmanager
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Tuple

from .extension_id import KeyEncodingError, KeyReadError, PublicKeyExtractor, extension_id_for_key
from .models import BuildResult
from .rewrite_manifest import FEED_FILENAME, SchemaError, rewrite_manifest, update_url_for
from .sign_crx import Crx3Signer, PackageSigner, SigningError
from .update_feed import generate_feed

logger = logging.getLogger(__name__)

PACKAGE_SUFFIX = ".crx"
_STAGE_ERRORS = (KeyReadError, KeyEncodingError, SchemaError, SigningError, OSError, ValueError)


class BuildError(RuntimeError):
  def __init__(self, name: str, stage: str, cause: BaseException) -> None:
    super().__init__(f"{name}: {stage} failed: {cause}")
    self.name = name
    self.stage = stage
    self.cause = cause


@contextmanager
def _stage(name: str, stage: str) -> Iterator[None]:
  try:
    yield
  except _STAGE_ERRORS as exc:
    raise BuildError(name, stage, exc) from exc


@contextmanager
def staging_area(path: Path) -> Iterator[Path]:
  """Yield an empty ``path`` and remove it again on every exit."""
  if path.exists():
    logger.debug("Removing stale staging area %s", path)
    shutil.rmtree(path)
  try:
    yield path
  finally:
    if path.exists():
      shutil.rmtree(path)
      logger.debug("Removed staging area %s", path)


def _publish(files: Dict[Path, bytes]) -> None:
  """Move ``files`` into place in insertion order, after all of them are written.

  Callers list the package before the feed so the feed never names a version
  whose package is not on disk yet.
  """
  staged: List[Tuple[Path, Path]] = []
  try:
    for target, data in files.items():
      temp = target.with_name(target.name + ".tmp")
      staged.append((temp, target))
      temp.write_bytes(data)
  except OSError:
    for temp, _ in staged:
      temp.unlink(missing_ok=True)
    raise
  for index, (temp, target) in enumerate(staged):
    try:
      os.replace(temp, target)
    except OSError:
      for leftover, _ in staged[index:]:
        leftover.unlink(missing_ok=True)
      raise
    logger.info("Created: %s", target)


def build_extension(
  name: str,
  source_dir: Path,
  key_path: Path,
  output_dir: Path,
  base_url: str,
  signer: Optional[PackageSigner] = None,
  extractor: Optional[PublicKeyExtractor] = None,
) -> BuildResult:
  signer = signer or Crx3Signer()
  base_url = base_url.rstrip("/")
  logger.info("=== Building %s ===", name)

  with _stage(name, "key read"):
    extension_id = extension_id_for_key(key_path, extractor)
  logger.info("Extension ID: %s", extension_id)

  package_dir = output_dir / name
  crx_path = package_dir / f"{name}{PACKAGE_SUFFIX}"
  update_url = update_url_for(base_url, name)

  with staging_area(output_dir / f"{name}-temp") as staging_dir:
    with _stage(name, "copy"):
      shutil.copytree(source_dir, staging_dir)
    with _stage(name, "manifest rewrite"):
      version = rewrite_manifest(staging_dir / "manifest.json", update_url)
    with _stage(name, "signing"):
      package = signer.sign(staging_dir, key_path)

  with _stage(name, "write"):
    feed = generate_feed(extension_id, version, f"{base_url}/{name}/{crx_path.name}")
    package_dir.mkdir(parents=True, exist_ok=True)
    _publish({crx_path: package, package_dir / FEED_FILENAME: feed})

  return BuildResult(
    name=name,
    extension_id=extension_id,
    version=version,
    crx_path=crx_path,
    update_url=update_url,
  )
