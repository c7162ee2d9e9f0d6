"""Index and 404 candidate construction."""

from pathlib import PurePath

from dev_server.candidates import (Candidate, fallback_candidates,
                                   primary_candidates)


def test_parse_request_relative_entry():
    candidate = Candidate.parse("./index.html")

    assert candidate.request_relative
    assert candidate.path == PurePath("index.html")
    assert str(candidate) == "./index.html"


def test_parse_root_relative_entry():
    candidate = Candidate.parse("errors/404.html")

    assert not candidate.request_relative
    assert candidate.path == PurePath("errors/404.html")
    assert str(candidate) == "errors/404.html"


def test_parse_strips_leading_separator():
    assert Candidate.parse("/404.html") == Candidate(PurePath("404.html"), False)


def test_parse_hidden_file_is_root_relative():
    candidate = Candidate.parse(".hidden.html")

    assert not candidate.request_relative
    assert candidate.path == PurePath(".hidden.html")


def test_directory_request_uses_index_entries_in_order():
    index = [Candidate.parse("./index.html"), Candidate.parse("./index.htm"),
             Candidate.parse("fallback.html")]

    candidates = primary_candidates(PurePath("docs/api"), True, index)

    assert candidates == [PurePath("docs/api/index.html"),
                          PurePath("docs/api/index.htm"),
                          PurePath("fallback.html")]


def test_root_directory_request():
    index = [Candidate.parse("./index.html")]

    assert primary_candidates(PurePath(""), True, index) == [PurePath("index.html")]


def test_directory_request_without_index_entries():
    assert primary_candidates(PurePath("docs"), True, []) == []


def test_file_request_is_literal_path():
    index = [Candidate.parse("./index.html")]

    assert primary_candidates(PurePath("docs/a.txt"), False, index) == [PurePath("docs/a.txt")]


def test_fallback_for_directory_request():
    not_found = [Candidate.parse("./404.html"), Candidate.parse("404.html")]

    candidates = fallback_candidates(PurePath("docs"), True, not_found)

    assert candidates == [PurePath("docs/404.html"), PurePath("404.html")]


def test_fallback_for_file_request_uses_parent_directory():
    not_found = [Candidate.parse("./404.html"), Candidate.parse("404.html")]

    candidates = fallback_candidates(PurePath("docs/missing.txt"), False, not_found)

    assert candidates == [PurePath("docs/404.html"), PurePath("404.html")]


def test_fallback_without_entries():
    assert fallback_candidates(PurePath("missing.txt"), False, []) == []
