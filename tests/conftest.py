"""Pytest configuration and shared builders for tests.

No sys.path hacks - tests import from the installed targethash package.
"""

import hashlib
from pathlib import Path
from types import SimpleNamespace

import pytest

from targethash.kernel.targets import (
    GeneratedFileTarget,
    QueryGeneratedFile,
    QueryRule,
    QuerySourceFile,
    Rule,
    RuleTarget,
    SourceFileTarget,
)

HERE = Path(__file__).resolve().parent
FIXTURES = HERE.parent / "fixtures"


class MemoryFilesystem:
    """In-memory Filesystem; records every read."""

    def __init__(self, files=None):
        self.files = dict(files or {})
        self.reads = []

    def read_file(self, path):
        self.reads.append(path)
        if path not in self.files:
            raise FileNotFoundError(path)
        return self.files[path]

    def file_exists(self, path):
        return path in self.files


class DeclaredDigestProvider:
    """Rule provider with explicit declared digests (name -> bytes)."""

    def __init__(self, digests=None):
        self.digests = dict(digests or {})
        self.calls = []

    def get_rule(self, target):
        self.calls.append(target.name)
        digest = self.digests.get(target.name, target.name.encode("utf-8"))
        return Rule(name=target.name, digest=digest, rule_inputs=list(target.rule.rule_input))


def rule(name, inputs=(), rule_class="genrule", attributes=()):
    return RuleTarget(rule=QueryRule(
        name=name,
        rule_class=rule_class,
        attribute=list(attributes),
        rule_input=list(inputs),
    ))


def source(name):
    return SourceFileTarget(source_file=QuerySourceFile(name=name))


def generated(name, generating_rule):
    return GeneratedFileTarget(generated_file=QueryGeneratedFile(name=name, generating_rule=generating_rule))


def sha(*parts):
    h = hashlib.sha256()
    for part in parts:
        h.update(part.encode("utf-8") if isinstance(part, str) else part)
    return h.digest()


@pytest.fixture
def fixtures_dir():
    return FIXTURES


@pytest.fixture
def memory_fs():
    return MemoryFilesystem()


@pytest.fixture
def build():
    """Builders for query targets and test doubles: build.rule(...), build.source(...), ..."""
    return SimpleNamespace(
        rule=rule,
        source=source,
        generated=generated,
        sha=sha,
        provider=DeclaredDigestProvider,
        filesystem=MemoryFilesystem,
    )
