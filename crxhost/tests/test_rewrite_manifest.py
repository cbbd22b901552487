from __future__ import annotations

import json

import pytest

from crxhost.rewrite_manifest import SchemaError, rewrite_manifest, update_url_for

URL = "https://user.github.io/repo/widget/update.xml"


def _write(path, data):
  path.write_text(json.dumps(data), encoding="utf-8")
  return path


def test_update_url_for():
  assert update_url_for("https://user.github.io/repo/", "widget") == URL


def test_rewrite_drops_key_and_sets_update_url(tmp_path):
  path = _write(tmp_path / "manifest.json", {"version": "1.2.3", "key": "abc"})
  assert rewrite_manifest(path, URL) == "1.2.3"
  assert json.loads(path.read_text(encoding="utf-8")) == {"version": "1.2.3", "update_url": URL}


def test_rewrite_passes_other_fields_through_in_order(tmp_path):
  path = _write(
    tmp_path / "manifest.json",
    {"manifest_version": 3, "name": "Widget", "version": "2.0", "permissions": ["tabs"], "update_url": "https://old"},
  )
  rewrite_manifest(path, URL)
  text = path.read_text(encoding="utf-8")
  data = json.loads(text)
  assert list(data) == ["manifest_version", "name", "version", "permissions", "update_url"]
  assert data["update_url"] == URL
  assert text.startswith("{\n  ")


def test_rewrite_is_idempotent(tmp_path):
  path = _write(tmp_path / "manifest.json", {"version": "1.2.3", "update_url": URL})
  rewrite_manifest(path, URL)
  first = path.read_text(encoding="utf-8")
  assert rewrite_manifest(path, URL) == "1.2.3"
  assert path.read_text(encoding="utf-8") == first
  assert "key" not in json.loads(first)


def test_missing_version(tmp_path):
  path = _write(tmp_path / "manifest.json", {"name": "Widget"})
  with pytest.raises(SchemaError):
    rewrite_manifest(path, URL)


@pytest.mark.parametrize("version", ["", "1.2.3.4.5", "1.x", "70000", "01.2", 3, "\u0661.\u0662", "\uff11.0"])
def test_invalid_version(tmp_path, version):
  path = _write(tmp_path / "manifest.json", {"version": version})
  with pytest.raises(SchemaError):
    rewrite_manifest(path, URL)


def test_not_json(tmp_path):
  path = tmp_path / "manifest.json"
  path.write_text("{broken", encoding="utf-8")
  with pytest.raises(SchemaError):
    rewrite_manifest(path, URL)


def test_not_an_object(tmp_path):
  path = _write(tmp_path / "manifest.json", ["version", "1.0"])
  with pytest.raises(SchemaError):
    rewrite_manifest(path, URL)
