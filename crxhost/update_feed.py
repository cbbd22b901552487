"""Renders the gupdate XML document the browser polls for new versions."""
from __future__ import annotations

import re
from xml.sax.saxutils import escape

from .models import validate_version

UPDATE_NAMESPACE = "http://www.google.com/update2/response"
_ID_PATTERN = re.compile(r"[a-p]{32}")

_FEED_TEMPLATE = """<?xml version='1.0' encoding='UTF-8'?>
<gupdate xmlns='{namespace}' protocol='2.0'>
  <app appid='{appid}'>
    <updatecheck codebase='{codebase}' version='{version}' />
  </app>
</gupdate>
"""


def _attr(value: str) -> str:
  return escape(value, {"'": "&apos;", '"': "&quot;"})


def generate_feed(extension_id: str, version: str, codebase_url: str) -> bytes:
  if not _ID_PATTERN.fullmatch(extension_id):
    raise ValueError(f"{extension_id!r} is not a 32 character a-p extension id")
  validate_version(version)
  if not codebase_url:
    raise ValueError("codebase_url must not be empty")
  return _FEED_TEMPLATE.format(
    namespace=UPDATE_NAMESPACE,
    appid=extension_id,
    codebase=_attr(codebase_url),
    version=_attr(version),
  ).encode("utf-8")
