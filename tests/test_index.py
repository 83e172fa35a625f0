"""Tests for the rule index."""

from targethash.kernel.index import build_rule_index


def test_rules_and_generated_files_indexed(build):
    targets = [
        build.rule("//pkg:gen", ["//pkg:in.txt"]),
        build.source("//pkg:in.txt"),
        build.generated("//pkg:out.txt", "//pkg:gen"),
    ]
    index = build_rule_index(targets, build.provider())

    assert index.resolve("//pkg:gen").name == "//pkg:gen"
    assert index.resolve("//pkg:out.txt").name == "//pkg:gen"
    assert index.generating_rule("//pkg:out.txt") == "//pkg:gen"
    assert index.resolve("//pkg:in.txt") is None
    assert "//pkg:in.txt" not in index
    assert len(index) == 2


def test_generated_file_before_its_rule_still_resolves(build):
    targets = [
        build.generated("//pkg:out.txt", "//pkg:gen"),
        build.rule("//pkg:gen"),
    ]
    index = build_rule_index(targets, build.provider())
    assert index.resolve("//pkg:out.txt").name == "//pkg:gen"


def test_dangling_generated_file_resolves_to_none(build):
    index = build_rule_index([build.generated("//pkg:out.txt", "//other:gen")], build.provider())
    assert index.resolve("//pkg:out.txt") is None
    assert index.generating_rule("//pkg:out.txt") == "//other:gen"
    assert "//pkg:out.txt" not in index


def test_rules_materialized_lazily_and_once(build):
    provider = build.provider()
    index = build_rule_index(
        [build.rule("//pkg:a"), build.rule("//pkg:b"), build.generated("//pkg:a.out", "//pkg:a")],
        provider,
    )
    assert provider.calls == []

    index.resolve("//pkg:a")
    index.resolve("//pkg:a.out")
    index.resolve("//pkg:a")
    assert provider.calls == ["//pkg:a"]


def test_unknown_name_is_a_resolution_gap(build):
    index = build_rule_index([build.rule("//pkg:a")], build.provider())
    assert index.resolve("@external//:thing") is None
