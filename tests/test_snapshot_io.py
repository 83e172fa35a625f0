"""Tests for snapshot file reading and writing."""

import json

import pytest

from targethash._internal.io.snapshot import SnapshotFormatError, load_snapshot, write_snapshot


def test_write_is_canonical_and_creates_parents(tmp_path):
    path = write_snapshot(tmp_path / "nested" / "hashes.json", {"//b:b": "b" * 64, "//a:a": "a" * 64})
    text = path.read_text(encoding="utf-8")
    assert text.endswith("\n")
    assert text.index("//a:a") < text.index("//b:b")
    assert load_snapshot(path) == {"//a:a": "a" * 64, "//b:b": "b" * 64}


def test_same_snapshot_writes_same_bytes(tmp_path):
    one = write_snapshot(tmp_path / "one.json", {"//x:x": "0" * 64, "//y:y": "f" * 64})
    two = write_snapshot(tmp_path / "two.json", {"//y:y": "f" * 64, "//x:x": "0" * 64})
    assert one.read_bytes() == two.read_bytes()


def test_non_object_rejected(tmp_path):
    path = tmp_path / "hashes.json"
    path.write_text(json.dumps(["//a:a"]), encoding="utf-8")
    with pytest.raises(SnapshotFormatError, match="JSON object"):
        load_snapshot(path)


@pytest.mark.parametrize("digest", ["A" * 64, "a" * 63, 7, None])
def test_bad_digest_rejected(tmp_path, digest):
    path = tmp_path / "hashes.json"
    path.write_text(json.dumps({"//a:a": digest}), encoding="utf-8")
    with pytest.raises(SnapshotFormatError, match="//a:a"):
        load_snapshot(path)


def test_malformed_json_is_value_error(tmp_path):
    path = tmp_path / "hashes.json"
    path.write_text("{", encoding="utf-8")
    with pytest.raises(ValueError):
        load_snapshot(path)
