"""Builds every configured extension and writes the force-install policy."""
from __future__ import annotations

import logging
import plistlib
import sys
from typing import List, Optional

from .build_extension import BuildError, build_extension
from .extension_id import PublicKeyExtractor
from .models import BatchConfig, BuildResult
from .settings import get_settings
from .sign_crx import PackageSigner

logger = logging.getLogger(__name__)

POLICY_FILENAME = "com.google.Chrome.plist"
RELEASE_MANIFEST_FILENAME = "README.md"

_README_TEMPLATE = """# Chrome Extensions Host

Self-hosted Chrome extensions with force-install policy.

## Extensions

| Extension | ID | Version |
|-----------|-----|---------|
{rows}

## Installation

1. Publish this directory on a static host reachable at {base_url}
2. Copy `{policy}` to `/Library/Managed Preferences/`
3. Restart Chrome

```bash
sudo cp {policy} "/Library/Managed Preferences/"
sudo chmod 644 "/Library/Managed Preferences/{policy}"
```
"""


class BatchBuildError(RuntimeError):
  def __init__(self, errors: List[BuildError], results: List[BuildResult]) -> None:
    summary = "; ".join(str(error) for error in errors)
    super().__init__(f"{len(errors)} extension(s) failed: {summary}")
    self.errors = errors
    self.results = results


def render_policy(results: List[BuildResult], base_url: str) -> bytes:
  policy = {
    "ExtensionInstallForcelist": [f"{result.extension_id};{result.update_url}" for result in results],
    "ExtensionInstallSources": [f"{base_url.rstrip('/')}/*"],
  }
  return plistlib.dumps(policy, fmt=plistlib.FMT_XML, sort_keys=True)


def render_release_manifest(results: List[BuildResult], base_url: str) -> str:
  rows = "\n".join(f"| {result.name} | `{result.extension_id}` | {result.version} |" for result in results)
  return _README_TEMPLATE.format(rows=rows, base_url=base_url, policy=POLICY_FILENAME)


def build_all(
  config: BatchConfig,
  signer: Optional[PackageSigner] = None,
  extractor: Optional[PublicKeyExtractor] = None,
) -> List[BuildResult]:
  results: List[BuildResult] = []
  errors: List[BuildError] = []
  for extension in config.extensions:
    try:
      result = build_extension(
        extension.name,
        extension.source_dir,
        config.key_path(extension.name),
        config.output_dir,
        config.base_url,
        signer=signer,
        extractor=extractor,
      )
    except BuildError as exc:
      logger.error("Failed to build %s during %s: %s", exc.name, exc.stage, exc.cause)
      errors.append(exc)
      continue
    results.append(result)

  if errors:
    raise BatchBuildError(errors, results)

  logger.info("=== Summary ===")
  for result in results:
    logger.info("  %s: %s (v%s)", result.name, result.extension_id, result.version)

  config.output_dir.mkdir(parents=True, exist_ok=True)
  policy_path = config.output_dir / POLICY_FILENAME
  policy_path.write_bytes(render_policy(results, config.base_url))
  logger.info("Created policy file: %s", policy_path)

  readme_path = config.output_dir / RELEASE_MANIFEST_FILENAME
  readme_path.write_text(render_release_manifest(results, config.base_url), encoding="utf-8")
  logger.info("Created: %s", readme_path)
  return results


def main() -> int:
  logging.basicConfig(level=logging.INFO, format="%(message)s")
  try:
    build_all(get_settings().to_batch_config())
  except BatchBuildError as exc:
    for error in exc.errors:
      logger.error("%s", error)
    return 1
  return 0


if __name__ == "__main__":
  sys.exit(main())
