"""Derives the browser extension id from the public half of a signing key."""
from __future__ import annotations

import hashlib
import subprocess
from pathlib import Path
from typing import Optional, Protocol

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.types import PrivateKeyTypes

ID_LENGTH = 32


class KeyReadError(RuntimeError):
  pass


class KeyEncodingError(RuntimeError):
  pass


class PublicKeyExtractor(Protocol):
  def extract(self, path: Path) -> bytes:
    """Return the DER SubjectPublicKeyInfo of the key stored at ``path``."""
    ...


def load_private_key(path: Path) -> PrivateKeyTypes:
  if not path.exists():
    raise KeyReadError(f"Private key not found at {path}")
  try:
    data = path.read_bytes()
  except OSError as exc:
    raise KeyReadError(f"Private key at {path} is not readable") from exc
  try:
    return serialization.load_pem_private_key(data, password=None)
  except (ValueError, TypeError, UnsupportedAlgorithm) as exc:
    raise KeyReadError(f"Private key at {path} is not an unencrypted PEM key") from exc


class PemPublicKeyExtractor:
  """Reads the PEM key in-process with ``cryptography``."""

  def extract(self, path: Path) -> bytes:
    private_key = load_private_key(path)
    try:
      return private_key.public_key().public_bytes(
        serialization.Encoding.DER,
        serialization.PublicFormat.SubjectPublicKeyInfo,
      )
    except (ValueError, TypeError) as exc:
      raise KeyEncodingError(f"Cannot encode public key of {path}") from exc


class OpenSSLPublicKeyExtractor:
  """Asks the ``openssl`` binary for the DER public key."""

  def __init__(self, executable: str = "openssl") -> None:
    self._executable = executable

  def extract(self, path: Path) -> bytes:
    if not path.exists():
      raise KeyReadError(f"Private key not found at {path}")
    try:
      return subprocess.run(
        [self._executable, "rsa", "-in", str(path), "-pubout", "-outform", "DER"],
        check=True,
        capture_output=True,
      ).stdout
    except FileNotFoundError as exc:
      raise KeyEncodingError(f"{self._executable} is not installed") from exc
    except subprocess.CalledProcessError as exc:
      detail = exc.stderr.decode("utf-8", "replace").strip()
      raise KeyEncodingError(f"openssl could not extract the public key of {path}: {detail}") from exc


def derive_extension_id(public_key_der: bytes) -> str:
  """Map the first 32 hex digits of SHA-256(key) onto ``a``-``p``."""
  digest = hashlib.sha256(public_key_der).hexdigest()[:ID_LENGTH]
  return "".join(chr(ord("a") + int(char, 16)) for char in digest)


def extension_id_for_key(key_path: Path, extractor: Optional[PublicKeyExtractor] = None) -> str:
  extractor = extractor or PemPublicKeyExtractor()
  return derive_extension_id(extractor.extract(key_path))
