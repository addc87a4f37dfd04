"""Tests for gotab.paths."""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from gotab.paths import (
    SearchRoots,
    join_path,
    list_dirs,
    split_token,
    suggest_packages,
    suggest_paths,
)


@pytest.mark.parametrize(
    ("token", "expected"),
    [
        ("", ("", "")),
        ("fm", ("", "fm")),
        ("net/ht", ("net/", "ht")),
        ("net/", ("net/", "")),
        ("github.com/a/b", ("github.com/a/", "b")),
    ],
)
def test_split_token(token: str, expected: tuple[str, str]) -> None:
    assert split_token(token) == expected


def test_join_path_cleans_and_nests_absolute_parts() -> None:
    assert join_path("/gopath", "src", "") == "/gopath/src"
    assert join_path("/gopath", "src", "net/") == "/gopath/src/net"
    assert join_path("/gopath", "src", "/abs/x") == "/gopath/src/abs/x"
    assert join_path("/gopath", "src", "a/../b") == "/gopath/src/b"


def test_search_roots_expand_workspaces_before_system_root() -> None:
    roots = SearchRoots(workspace_roots=("/w1", "", "/w2"), system_root="/goroot")
    assert roots.expand("fmt") == ["/w1/src/fmt", "/w2/src/fmt", "/goroot/src/fmt"]
    assert SearchRoots().expand("fmt") == []


def test_suggest_packages_emits_package_and_namespace_candidates(go_tree, collector) -> None:
    go_tree.system(
        {
            "fmt/print.go": "package fmt\n",
            "net/http/server.go": "package http\n",
            "net/net.go": "package net\n",
            "encoding/json/decode.go": "package json\n",
            "errors/errors.go": "package errors\n",
        }
    )
    roots = go_tree.config().search_roots()

    suggest_packages("", roots, collector)

    assert collector == ["encoding/", "errors ", "fmt ", "net ", "net/"]


def test_suggest_packages_fans_out_over_all_roots_in_order(go_tree, collector) -> None:
    go_tree.workspace({"fmtx/fmtx.go": "package fmtx\n", "example.com/tool/main.go": "package main\n"})
    go_tree.system({"fmt/print.go": "package fmt\n"})
    roots = go_tree.config().search_roots()

    suggest_packages("fm", roots, collector)

    assert collector == ["fmtx ", "fmt "]


def test_suggest_packages_completes_below_a_directory_token(go_tree, collector) -> None:
    go_tree.system({"net/http/server.go": "package http\n", "net/mail/message.go": "package mail\n"})
    roots = go_tree.config().search_roots()

    suggest_packages("net/", roots, collector)
    assert collector == ["net/http ", "net/mail "]

    collector.clear()
    suggest_packages("net/h", roots, collector)
    assert collector == ["net/http "]


def test_hidden_directories_need_a_typed_prefix(go_tree, collector) -> None:
    go_tree.system({".git/objects/": "", "fmt/print.go": "package fmt\n"})
    roots = go_tree.config().search_roots()

    suggest_packages("", roots, collector)
    assert ".git/" not in collector

    collector.clear()
    suggest_packages(".g", roots, collector)
    assert collector == [".git/"]


def test_empty_base_is_a_superset_of_any_prefix(go_tree, collector) -> None:
    go_tree.system(
        {
            "bufio/bufio.go": "package bufio\n",
            "bytes/bytes.go": "package bytes\n",
            "builtin/builtin.go": "package builtin\n",
            "crypto/sha256/sha256.go": "package sha256\n",
        }
    )
    roots = go_tree.config().search_roots()
    suggest_packages("", roots, collector)
    everything = set(collector)

    for prefix in ("b", "bu", "by", "c", "crypto"):
        collector.clear()
        suggest_packages(prefix, roots, collector)
        assert set(collector) <= everything


def test_missing_roots_contribute_nothing(tmp_path: Path, collector) -> None:
    roots = SearchRoots(workspace_roots=(str(tmp_path / "missing"),), system_root=None)
    suggest_packages("", roots, collector)
    assert collector == []


def test_list_dirs_follows_symlinks(tmp_path: Path) -> None:
    (tmp_path / "real").mkdir()
    (tmp_path / "file.go").write_text("package x\n", encoding="utf-8")
    os.symlink(tmp_path / "real", tmp_path / "linked")
    os.symlink(tmp_path / "nowhere", tmp_path / "dangling")

    assert list_dirs(str(tmp_path)) == ["linked", "real"]


def test_suggest_paths_lists_working_directory(tmp_path: Path, monkeypatch, collector) -> None:
    (tmp_path / "cmd").mkdir()
    (tmp_path / "cmd" / "tool").mkdir()
    (tmp_path / "main.go").write_text("package main\n", encoding="utf-8")
    (tmp_path / "go.mod").write_text("module x\n", encoding="utf-8")
    (tmp_path / ".hidden").write_text("", encoding="utf-8")
    monkeypatch.chdir(tmp_path)

    suggest_paths("", collector)
    assert collector == ["cmd/", "go.mod ", "main.go "]

    collector.clear()
    suggest_paths("cmd/", collector)
    assert collector == ["cmd/tool/"]

    collector.clear()
    suggest_paths(".h", collector)
    assert collector == [".hidden "]


def test_suggest_paths_ignores_unreadable_directories(tmp_path: Path, monkeypatch, collector) -> None:
    monkeypatch.chdir(tmp_path)
    suggest_paths("does-not-exist/", collector)
    assert collector == []
