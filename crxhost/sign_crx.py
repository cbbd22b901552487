"""Signs a staged extension directory into a CRX3 package."""
from __future__ import annotations

import io
import tempfile
import zipfile
from pathlib import Path
from typing import Protocol

from crx3 import creator
from crx3.exceptions import FileFormatNotSupportedError
from cryptography.hazmat.primitives.asymmetric import rsa

from .extension_id import load_private_key

_ZIP_EPOCH = (1980, 1, 1, 0, 0, 0)


class SigningError(RuntimeError):
  pass


class PackageSigner(Protocol):
  def sign(self, staging_dir: Path, key_path: Path) -> bytes:
    ...


def build_archive(source_dir: Path) -> bytes:
  """Zip ``source_dir`` with sorted entries and fixed timestamps."""
  files = sorted(
    (path for path in source_dir.rglob("*") if path.is_file()),
    key=lambda path: path.relative_to(source_dir).as_posix(),
  )
  buffer = io.BytesIO()
  with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED) as archive:
    for path in files:
      info = zipfile.ZipInfo(path.relative_to(source_dir).as_posix(), date_time=_ZIP_EPOCH)
      info.compress_type = zipfile.ZIP_DEFLATED
      info.external_attr = 0o644 << 16
      archive.writestr(info, path.read_bytes())
  return buffer.getvalue()


class Crx3Signer:
  """Hands a reproducible archive of the staging directory to ``crx3.creator``."""

  def sign(self, staging_dir: Path, key_path: Path) -> bytes:
    private_key = load_private_key(key_path)
    # crx3 only writes sha256_with_rsa proofs
    if not isinstance(private_key, rsa.RSAPrivateKey):
      raise SigningError(f"CRX3 packages need an RSA key, got {type(private_key).__name__}")

    with tempfile.TemporaryDirectory(prefix="crxhost-") as work_dir:
      archive_path = Path(work_dir) / "archive.zip"
      crx_path = Path(work_dir) / "package.crx"
      archive_path.write_bytes(build_archive(staging_dir))
      try:
        creator.create_crx_file(str(archive_path), str(key_path), str(crx_path))
      except (ValueError, TypeError, FileFormatNotSupportedError) as exc:
        raise SigningError(f"Signing failed: {exc}") from exc
      return crx_path.read_bytes()
