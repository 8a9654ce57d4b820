"""Tests for the copy-with-expansion primitive."""

import os
from pathlib import Path

import pytest

from manifestgen.core.errors import (
    InvalidConfigError,
    ResourceNotFoundError,
    UndefinedPlaceholderError,
)
from manifestgen.rendering.engine import copy_with_expansion
from manifestgen.rendering.io import atomic_write_text


def _template(tmp_path: Path, content: str, name: str = "Template.yaml") -> Path:
    path = tmp_path / "templates" / name
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    return path


def test_tokens_replaced_and_file_renamed(tmp_path):
    source = _template(tmp_path, "name: ${name}\nfrom: ${from}\nto: ${to}\n")
    out_dir = tmp_path / "out"

    output = copy_with_expansion(
        source, out_dir, lambda _: "svcRule.yaml", {"name": "svc", "from": "v1", "to": "v2"}
    )

    assert output == out_dir / "svcRule.yaml"
    assert output.read_text() == "name: svc\nfrom: v1\nto: v2\n"


def test_rename_receives_source_name(tmp_path):
    source = _template(tmp_path, "x", name="Rule.tpl")
    seen = []

    copy_with_expansion(source, tmp_path / "out", lambda n: seen.append(n) or "rule.yaml", {})

    assert seen == ["Rule.tpl"]


def test_other_content_passes_through(tmp_path):
    content = (
        "a: {{ not_jinja }}\n"
        "b: {% also_literal %}\n"
        "c: {# literal #}\n"
        "d: $HOME and $name\n"
        "e: {key: value}\n"
        "f: ${name}\n"
    )
    source = _template(tmp_path, content)

    output = copy_with_expansion(source, tmp_path / "out", lambda _: "o.yaml", {"name": "svc"})

    assert output.read_text() == content.replace("${name}", "svc")


def test_trailing_newline_preserved(tmp_path):
    source = _template(tmp_path, "value: ${name}\n\n")

    output = copy_with_expansion(source, tmp_path / "out", lambda _: "o.yaml", {"name": "svc"})

    assert output.read_text() == "value: svc\n\n"


def test_undefined_placeholder_fails_without_writing(tmp_path):
    source = _template(tmp_path, "value: ${missing}\n")
    out_dir = tmp_path / "out"

    with pytest.raises(UndefinedPlaceholderError, match="missing"):
        copy_with_expansion(source, out_dir, lambda _: "o.yaml", {"name": "svc"})

    assert not (out_dir / "o.yaml").exists()


def test_missing_template(tmp_path):
    with pytest.raises(ResourceNotFoundError, match="Template not found"):
        copy_with_expansion(tmp_path / "nope.yaml", tmp_path / "out", lambda _: "o.yaml", {})


def test_unparseable_token(tmp_path):
    source = _template(tmp_path, "value: ${name\n")

    with pytest.raises(InvalidConfigError, match="Invalid placeholder"):
        copy_with_expansion(source, tmp_path / "out", lambda _: "o.yaml", {"name": "svc"})


def test_repeated_expansion_is_byte_identical(tmp_path):
    source = _template(tmp_path, "name: ${name}\n")
    out_dir = tmp_path / "out"

    first = copy_with_expansion(source, out_dir, lambda _: "o.yaml", {"name": "svc"}).read_bytes()
    second = copy_with_expansion(source, out_dir, lambda _: "o.yaml", {"name": "svc"}).read_bytes()

    assert first == second
    assert sorted(p.name for p in out_dir.iterdir()) == ["o.yaml"]


@pytest.mark.skipif(os.name != "posix", reason="POSIX permissions")
def test_atomic_write_applies_mode(tmp_path):
    path = tmp_path / "nested" / "dir" / "file.yaml"

    atomic_write_text(path, "content\n", mode=0o600)

    assert path.read_text() == "content\n"
    assert path.stat().st_mode & 0o777 == 0o600


@pytest.mark.parametrize("newline", ["\r\n", "\r"])
def test_line_endings_preserved(tmp_path, newline):
    source = tmp_path / "Template.yaml"
    source.write_bytes(f"a: ${{name}}{newline}b: c{newline}".encode())

    output = copy_with_expansion(source, tmp_path / "out", lambda _: "o.yaml", {"name": "svc"})

    assert output.read_bytes() == f"a: svc{newline}b: c{newline}".encode()


@pytest.mark.parametrize("token", ["range", "dict", "lipsum", "namespace", "cycler"])
def test_builtin_names_are_undefined(tmp_path, token):
    source = _template(tmp_path, f"v: ${{{token}}}\n")
    out_dir = tmp_path / "out"

    with pytest.raises(UndefinedPlaceholderError, match=token):
        copy_with_expansion(source, out_dir, lambda _: "o.yaml", {"name": "svc"})

    assert not out_dir.exists()


@pytest.mark.parametrize(
    "token",
    ["true", "none", "False", "name|upper", "name.attr", "name ~ name", "'literal'", "self"],
)
def test_only_bare_identifiers_allowed(tmp_path, token):
    source = _template(tmp_path, f"v: ${{{token}}}\n")
    out_dir = tmp_path / "out"

    with pytest.raises(InvalidConfigError, match="only \\$\\{identifier\\}"):
        copy_with_expansion(source, out_dir, lambda _: "o.yaml", {"name": "svc"})

    assert not out_dir.exists()


def test_statements_rejected(tmp_path):
    source = _template(tmp_path, "${% if name %}x${% endif %}\n")

    with pytest.raises(InvalidConfigError, match="Unsupported statement"):
        copy_with_expansion(source, tmp_path / "out", lambda _: "o.yaml", {"name": "svc"})
