"""Verifies the signatures and id binding of a CRX3 package."""
from __future__ import annotations

import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from crx3.verifier import VerifierResult, verify
from google.protobuf.message import DecodeError


class VerificationError(RuntimeError):
  pass


@dataclass(frozen=True)
class VerifiedPackage:
  extension_id: str
  public_key: str


def verify_crx(crx_path: Path, expected_id: Optional[str] = None) -> VerifiedPackage:
  if not crx_path.exists():
    raise VerificationError(f"Package not found at {crx_path}")
  try:
    result, header = verify(str(crx_path))
  except DecodeError as exc:
    raise VerificationError(f"Malformed package {crx_path}: {exc}") from exc
  if result is not VerifierResult.OK_FULL:
    raise VerificationError(f"Package {crx_path} failed verification: {result.value}")

  if expected_id is not None and header.crx_id != expected_id:
    raise VerificationError(f"Package id {header.crx_id} does not match expected {expected_id}")
  return VerifiedPackage(extension_id=header.crx_id, public_key=header.public_key)


if __name__ == "__main__":
  for argument in sys.argv[1:]:
    verified = verify_crx(Path(argument))
    print(f"Verified {argument} -> {verified.extension_id}")
