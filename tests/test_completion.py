"""Tests for quill.completion -- longest-common-prefix completion."""

from __future__ import annotations

import os

import pytest

from quill.completion import candidates_completion, complete, complete_file_name, longest_common_prefix


class TestLongestCommonPrefix:
    def test_single_candidate(self) -> None:
        assert longest_common_prefix({"abc"}) == "abc"

    def test_shared_prefix(self) -> None:
        assert longest_common_prefix(["foobar", "foobaz", "foo"]) == "foo"

    def test_no_shared_prefix(self) -> None:
        assert longest_common_prefix(["abc", "xyz"]) is None

    def test_empty(self) -> None:
        assert longest_common_prefix([]) is None


class TestComplete:
    """Completion extends the input to the longest unambiguous prefix."""

    def test_ambiguous_input_stays(self) -> None:
        assert complete("fo", {"foo", "foobar", "fox"}) == "fo"

    def test_exact_and_longer_match(self) -> None:
        assert complete("foo", {"foo", "foobar"}) == "foo"

    def test_unique_match(self) -> None:
        assert complete("fi", {"find_file", "forward_char"}) == "find_file"

    def test_extends_to_common_prefix(self) -> None:
        assert complete("f", {"foobar", "foobaz"}) == "fooba"

    def test_no_match(self) -> None:
        assert complete("z", {"foo"}) is None

    def test_empty_input_matches_everything(self) -> None:
        assert complete("", {"save", "say"}) == "sa"

    def test_result_extends_input(self) -> None:
        candidates = {"kill_buffer", "kill_line", "keyboard_quit"}
        for s in ("", "k", "ki", "kill_", "kill_b"):
            result = complete(s, candidates)
            assert result is not None
            assert result.startswith(s)

    def test_candidates_completion(self) -> None:
        names = ["alpha"]
        fn = candidates_completion(lambda: names)
        assert fn("a") == "alpha"
        names.append("alps")
        assert fn("a") == "alp"


class TestCompleteFileName:
    def test_unique_file(self, tmp_path) -> None:
        (tmp_path / "notes.txt").write_text("")
        assert complete_file_name(str(tmp_path / "no")) == str(tmp_path / "notes.txt")

    def test_unique_directory_gets_separator(self, tmp_path) -> None:
        (tmp_path / "projects").mkdir()
        assert complete_file_name(str(tmp_path / "pro")) == str(tmp_path / "projects") + os.sep

    def test_common_prefix_of_several(self, tmp_path) -> None:
        (tmp_path / "report-2024.txt").write_text("")
        (tmp_path / "report-2025.txt").write_text("")
        assert complete_file_name(str(tmp_path / "rep")) == str(tmp_path / "report-202")

    def test_no_match(self, tmp_path) -> None:
        assert complete_file_name(str(tmp_path / "missing")) is None

    def test_glob_characters_are_literal(self, tmp_path) -> None:
        (tmp_path / "a[1].txt").write_text("")
        (tmp_path / "a1.txt").write_text("")
        assert complete_file_name(str(tmp_path / "a[")) == str(tmp_path / "a[1].txt")

    def test_home_directory_spelling_kept(self, tmp_path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("HOME", str(tmp_path))
        (tmp_path / "projects").mkdir()
        assert complete_file_name("~/pro") == "~/projects" + os.sep
