from __future__ import annotations

import json
from pathlib import Path

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa


def write_private_key(path: Path, private_key) -> Path:
  path.parent.mkdir(parents=True, exist_ok=True)
  path.write_bytes(
    private_key.private_bytes(
      serialization.Encoding.PEM,
      serialization.PrivateFormat.PKCS8,
      serialization.NoEncryption(),
    )
  )
  return path


def write_rsa_key(path: Path) -> Path:
  return write_private_key(path, rsa.generate_private_key(public_exponent=65537, key_size=2048))


@pytest.fixture
def rsa_key_path(tmp_path):
  return write_rsa_key(tmp_path / "keys" / "widget.pem")


@pytest.fixture
def extension_source(tmp_path):
  source = tmp_path / "src" / "widget"
  (source / "icons").mkdir(parents=True)
  (source / "manifest.json").write_text(json.dumps({"version": "1.2.3", "key": "abc"}), encoding="utf-8")
  (source / "background.js").write_text("console.log('hi');\n", encoding="utf-8")
  (source / "icons" / "icon16.png").write_bytes(b"\x89PNG\r\n")
  return source


@pytest.fixture
def make_rsa_key(tmp_path):
  def factory(name: str) -> Path:
    return write_rsa_key(tmp_path / "keys" / f"{name}.pem")

  return factory
