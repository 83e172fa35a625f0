"""Tests for source-file digests."""

import pytest

from targethash.kernel.source_digest import (
    build_source_digests,
    label_to_path,
    resolve_source_digest,
)


def test_label_to_path():
    assert label_to_path("//pkg/sub:file.txt", "/ws") == "/ws/pkg/sub/file.txt"
    assert label_to_path("//pkg:dir/file.txt", "/ws") == "/ws/pkg/dir/file.txt"


def test_label_to_path_root_package_stays_under_root():
    assert label_to_path("//:BUILD", "/ws") == "/ws/BUILD"


def test_label_to_path_skips_external_and_missing_root():
    assert label_to_path("@maven//:guava", "/ws") is None
    assert label_to_path("//pkg:file.txt", None) is None
    assert label_to_path("//pkg:file.txt", "") is None


def test_without_workspace_digest_is_declared_plus_name(build):
    fs = build.filesystem({"/ws/pkg/file.txt": b"content"})
    digest = resolve_source_digest("//pkg:file.txt", b"declared", fs)
    assert digest == build.sha(b"declared", "//pkg:file.txt")
    assert fs.reads == []


def test_content_is_folded_first(build):
    fs = build.filesystem({"/ws/pkg/file.txt": b"content"})
    digest = resolve_source_digest("//pkg:file.txt", b"declared", fs, "/ws")
    assert digest == build.sha(b"content", b"declared", "//pkg:file.txt")
    assert fs.reads == ["/ws/pkg/file.txt"]


def test_content_change_changes_digest(build):
    before = resolve_source_digest(
        "//pkg:file.txt", b"declared", build.filesystem({"/ws/pkg/file.txt": b"v1"}), "/ws"
    )
    after = resolve_source_digest(
        "//pkg:file.txt", b"declared", build.filesystem({"/ws/pkg/file.txt": b"v2"}), "/ws"
    )
    assert before != after


def test_missing_file_falls_back_silently(build):
    fs = build.filesystem()
    digest = resolve_source_digest("//pkg:gone.txt", b"declared", fs, "/ws")
    assert digest == build.sha(b"declared", "//pkg:gone.txt")


def test_read_error_after_existence_check_propagates(build):
    class BrokenFilesystem:
        def file_exists(self, path):
            return True

        def read_file(self, path):
            raise PermissionError(path)

    with pytest.raises(PermissionError):
        resolve_source_digest("//pkg:file.txt", b"declared", BrokenFilesystem(), "/ws")


def test_build_source_digests_only_covers_source_files(build):
    targets = [
        build.rule("//pkg:lib", ["//pkg:a.txt"]),
        build.source("//pkg:a.txt"),
        build.generated("//pkg:out.txt", "//pkg:lib"),
    ]
    digests = build_source_digests(targets, build.filesystem())
    assert set(digests) == {"//pkg:a.txt"}
    assert digests["//pkg:a.txt"] == build.sha(targets[1].declared_digest(), "//pkg:a.txt")
