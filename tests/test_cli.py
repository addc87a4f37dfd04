"""CLI behaviour tests."""

from __future__ import annotations

import io
from pathlib import Path

import pytest

from gotab.cli import _build_parser, main


def _environ(go_tree, line: str | None = None, **extra: str) -> dict[str, str]:  # type: ignore[no-untyped-def]
    environ = {
        "GOPATH": str(go_tree.gopath),
        "GOROOT": str(go_tree.goroot),
        "GOOS": "linux",
        "GOARCH": "amd64",
        "HOME": str(go_tree.cwd),
        "GOTAB_CONFIG": str(go_tree.cwd / "absent.yml"),
    }
    if line is not None:
        environ["COMP_LINE"] = line
        environ["COMP_POINT"] = str(len(line))
    environ.update(extra)
    return environ


def test_cli_accepts_verbose_and_config() -> None:
    parser = _build_parser()
    args = parser.parse_args(["--verbose", "--config", "gotab.yml"])
    assert args.verbose is True
    assert args.config == Path("gotab.yml")


def test_main_prints_usage_without_shell_context(go_tree, capsys) -> None:
    with pytest.raises(SystemExit) as excinfo:
        main([], environ=_environ(go_tree))

    assert excinfo.value.code == 1
    captured = capsys.readouterr()
    assert captured.out == ""
    assert "COMP_LINE and COMP_POINT" in captured.err
    assert "-o nospace go" in captured.err


def test_main_rejects_cursor_beyond_line(go_tree, capsys) -> None:
    environ = _environ(go_tree, "go bui", COMP_POINT="99")
    with pytest.raises(SystemExit) as excinfo:
        main([], environ=environ)
    assert excinfo.value.code == 1


def test_main_streams_candidates(go_tree) -> None:
    out = io.StringIO()
    main(["go", "bui", "go"], environ=_environ(go_tree, "go bui"), stdout=out)
    assert out.getvalue() == "build \n"


def test_main_ignores_words_appended_by_bash(go_tree) -> None:
    out = io.StringIO()
    main(["go", "-c", "doc"], environ=_environ(go_tree, "go doc -c"), stdout=out)
    assert out.getvalue() == "-c \n-cmd \n"


def test_main_completes_packages_and_symbols(go_tree, monkeypatch) -> None:
    go_tree.system(
        {
            "strings/strings.go": """
            package strings

            func Fields(s string) []string { return nil }

            func explode(s string, n int) []string { return nil }
            """,
        }
    )
    monkeypatch.chdir(go_tree.cwd)

    out = io.StringIO()
    main([], environ=_environ(go_tree, "go doc strings.f"), stdout=out)
    assert out.getvalue() == "strings.fields \n"

    out = io.StringIO()
    main([], environ=_environ(go_tree, "go vet st"), stdout=out)
    assert out.getvalue() == "strings \n"


def test_main_survives_a_broken_config_file(go_tree) -> None:
    config_file = go_tree.cwd / "broken.yml"
    config_file.write_text("- not a mapping\n", encoding="utf-8")

    out = io.StringIO()
    main(["--config", str(config_file)], environ=_environ(go_tree, "go ver"), stdout=out)

    assert out.getvalue() == "version \n"


def test_unknown_introspector_falls_back_and_names_the_choices(go_tree, capsys) -> None:
    config_file = go_tree.cwd / "gotab.yml"
    config_file.write_text("introspector: clang\n", encoding="utf-8")

    out = io.StringIO()
    main(["--config", str(config_file)], environ=_environ(go_tree, "go ver"), stdout=out)

    assert out.getvalue() == "version \n"
    err = capsys.readouterr().err
    assert "Unknown introspector requested: clang" in err
    assert "available: tree_sitter" in err
