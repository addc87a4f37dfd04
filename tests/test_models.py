"""Tests for gotab.models."""

from __future__ import annotations

import io

from gotab.models import Candidate, CandidateWriter, PackageSymbols


def test_candidate_render_marks_directories_and_terminals() -> None:
    assert Candidate("net").render() == "net "
    assert Candidate("net", directory=True).render() == "net/"


def test_candidate_writer_streams_one_line_per_candidate() -> None:
    stream = io.StringIO()
    writer = CandidateWriter(stream)

    writer(Candidate("fmt"))
    assert stream.getvalue() == "fmt \n"
    writer(Candidate("net", directory=True))

    assert stream.getvalue() == "fmt \nnet/\n"
    assert writer.count == 2


def test_candidate_writer_defaults_to_stdout(capsys) -> None:
    CandidateWriter()(Candidate("build"))
    assert capsys.readouterr().out == "build \n"


def test_package_symbols_names_keep_the_stored_order() -> None:
    symbols = PackageSymbols(
        name="io",
        directory="/goroot/src/io",
        consts=["SeekStart", "SeekEnd"],
        vars=["EOF"],
        funcs=["ReadAll", "Copy"],
        types={"Writer": [], "Reader": ["Read"]},
    )

    assert list(symbols.names()) == [
        "SeekStart",
        "SeekEnd",
        "EOF",
        "ReadAll",
        "Copy",
        "Writer",
        "Reader",
        "Reader.Read",
    ]
