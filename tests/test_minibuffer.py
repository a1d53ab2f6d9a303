"""Tests for minibuffer reads: prompts, defaults, completion and restoration."""

from __future__ import annotations

import pytest

from quill.completion import complete
from quill.controller import Controller
from quill.errors import MinibufferReentrancyError, SessionAborted

from .virtual_terminal import VirtualTerminal


def make_controller(tmp_path) -> tuple[Controller, VirtualTerminal]:
    term = VirtualTerminal()
    return Controller(term, config_dir=str(tmp_path)), term


def assert_restored(ctl: Controller) -> None:
    assert ctl.current_buffer.name == "*scratch*"
    assert ctl.screen.current_window is ctl.screen.window
    assert ctl.echo_area.prompt is None
    assert ctl.minibuffer.text == ""
    assert ctl.minibuffer_completion is None
    assert ctl.recursion_depth == 0


# ---------------------------------------------------------------------------
# read_from_minibuffer
# ---------------------------------------------------------------------------


class TestReadFromMinibuffer:
    def test_returns_typed_text(self, tmp_path) -> None:
        ctl, term = make_controller(tmp_path)
        term.feed("a b c RET")
        assert ctl.read_from_minibuffer("Name: ") == "abc"
        assert_restored(ctl)

    def test_focus_moves_to_echo_area(self, tmp_path) -> None:
        ctl, term = make_controller(tmp_path)
        seen: list[tuple] = []
        term.feed(
            lambda: seen.append((
                ctl.echo_area.prompt,
                ctl.current_buffer is ctl.minibuffer,
                ctl.screen.current_window is ctl.echo_area,
                ctl.recursion_depth,
            )),
            "RET",
        )
        ctl.read_from_minibuffer("Name: ")
        assert seen == [("Name: ", True, True, 1)]

    def test_cursor_follows_input(self, tmp_path) -> None:
        ctl, term = make_controller(tmp_path)
        cursors: list[tuple[int, int]] = []
        term.feed("f o", lambda: cursors.append(term.cursor), "RET")
        ctl.read_from_minibuffer("M-x ")
        assert cursors == [(23, 6)]

    def test_default_on_empty_input(self, tmp_path) -> None:
        ctl, term = make_controller(tmp_path)
        prompts: list[str | None] = []
        term.feed(lambda: prompts.append(ctl.echo_area.prompt), "RET")
        assert ctl.read_from_minibuffer("Name: ", default="foo") == "foo"
        assert prompts == ["Name (default foo): "]

    def test_default_prompt_without_colon(self, tmp_path) -> None:
        ctl, term = make_controller(tmp_path)
        prompts: list[str | None] = []
        term.feed(lambda: prompts.append(ctl.echo_area.prompt), "RET")
        ctl.read_from_minibuffer("Go ", default="home")
        assert prompts == ["Go (default home) "]

    def test_typed_text_beats_default(self, tmp_path) -> None:
        ctl, term = make_controller(tmp_path)
        term.feed("x RET")
        assert ctl.read_from_minibuffer("Name: ", default="foo") == "x"

    def test_empty_input_without_default(self, tmp_path) -> None:
        ctl, term = make_controller(tmp_path)
        term.feed("RET")
        assert ctl.read_from_minibuffer("Name: ") == ""

    def test_trailing_newline_removed(self, tmp_path) -> None:
        ctl, term = make_controller(tmp_path)
        term.feed(lambda: ctl.minibuffer.insert("abc\n"), "RET")
        assert ctl.read_from_minibuffer("Name: ") == "abc"

    def test_previous_input_is_cleared(self, tmp_path) -> None:
        ctl, term = make_controller(tmp_path)
        ctl.minibuffer.insert("stale")
        term.feed("RET")
        assert ctl.read_from_minibuffer("Name: ") == ""

    def test_abort(self, tmp_path) -> None:
        ctl, term = make_controller(tmp_path)
        term.feed("a C-g")
        with pytest.raises(SessionAborted):
            ctl.read_from_minibuffer("Name: ")
        assert_restored(ctl)

    def test_input_failure_restores_state(self, tmp_path) -> None:
        ctl, term = make_controller(tmp_path)
        term.feed("a")
        with pytest.raises(EOFError):
            ctl.read_from_minibuffer("Name: ", completion=lambda s: s)
        assert_restored(ctl)

    def test_errors_inside_read_do_not_end_it(self, tmp_path) -> None:
        ctl, term = make_controller(tmp_path)
        term.feed("C-b C-c a RET")
        assert ctl.read_from_minibuffer("Name: ") == "a"
        assert term.beeps == 1


class TestReentrancy:
    """Starting a read while the minibuffer is focused fails fast."""

    def test_direct_call(self, tmp_path) -> None:
        ctl, term = make_controller(tmp_path)
        seen: list[tuple] = []

        def nested_read() -> None:
            with pytest.raises(MinibufferReentrancyError):
                ctl.read_from_minibuffer("Again: ")
            seen.append((
                ctl.recursion_depth,
                ctl.echo_area.prompt,
                ctl.minibuffer.text,
                ctl.current_buffer is ctl.minibuffer,
            ))

        term.feed("a", nested_read, "RET")
        assert ctl.read_from_minibuffer("First: ") == "a"
        assert seen == [(1, "First: ", "a", True)]

    def test_command_reading_from_minibuffer(self, tmp_path) -> None:
        ctl, term = make_controller(tmp_path)
        messages: list[str | None] = []
        term.feed("a C-x C-f", lambda: messages.append(ctl.echo_area.message), "RET")
        assert ctl.read_from_minibuffer("First: ") == "a"
        assert messages == ["Command attempted to use minibuffer while in minibuffer"]
        assert term.beeps == 1
        assert_restored(ctl)


# ---------------------------------------------------------------------------
# Completion
# ---------------------------------------------------------------------------


class TestMinibufferCompletion:
    def test_tab_completes(self, tmp_path) -> None:
        ctl, term = make_controller(tmp_path)
        contents: list[str] = []

        def fruit(s: str) -> str | None:
            return complete(s, ["apple", "apricot"])

        term.feed("a TAB", lambda: contents.append(ctl.minibuffer.text), "r TAB RET")
        assert ctl.read_from_minibuffer("Fruit: ", completion=fruit) == "apricot"
        assert contents == ["ap"]

    def test_no_match(self, tmp_path) -> None:
        ctl, term = make_controller(tmp_path)
        messages: list[str | None] = []
        term.feed("z TAB", lambda: messages.append(ctl.echo_area.message), "RET")
        result = ctl.read_from_minibuffer("Fruit: ", completion=lambda s: complete(s, ["apple"]))
        assert result == "z"
        assert messages == ["[No match]"]
        assert term.beeps == 1

    def test_no_completion_function(self, tmp_path) -> None:
        ctl, term = make_controller(tmp_path)
        messages: list[str | None] = []
        term.feed("x TAB", lambda: messages.append(ctl.echo_area.message), "RET")
        assert ctl.read_from_minibuffer("Name: ") == "x"
        assert messages == ["[No completions]"]

    def test_previous_completion_restored(self, tmp_path) -> None:
        ctl, term = make_controller(tmp_path)

        def outer(s: str) -> str | None:
            return complete(s, ["outer"])

        def inner(s: str) -> str | None:
            return complete(s, ["inner"])

        ctl.minibuffer_completion = outer
        active: list[object] = []
        term.feed(lambda: active.append(ctl.minibuffer_completion), "i TAB RET")
        assert ctl.read_from_minibuffer("Name: ", completion=inner) == "inner"
        assert active == [inner]
        assert ctl.minibuffer_completion is outer

    def test_file_name(self, tmp_path) -> None:
        (tmp_path / "notes.txt").write_text("")
        ctl, term = make_controller(tmp_path)
        term.type_text(str(tmp_path / "no"))
        term.feed("TAB RET")
        assert ctl.read_file_name("Find file: ") == str(tmp_path / "notes.txt")

    def test_buffer_name_defaults_to_previous_buffer(self, tmp_path) -> None:
        ctl, term = make_controller(tmp_path)
        ctl.switch_to_buffer(ctl.buffers.new_buffer("notes"))
        prompts: list[str | None] = []
        term.feed(lambda: prompts.append(ctl.echo_area.prompt), "RET")
        assert ctl.read_buffer("Buffer: ") == "*scratch*"
        assert prompts == ["Buffer (default *scratch*): "]

    def test_buffer_name_defaults_to_current_buffer(self, tmp_path) -> None:
        ctl, term = make_controller(tmp_path)
        term.feed("RET")
        assert ctl.read_buffer("Buffer: ") == "*scratch*"

    def test_buffer_name_completion(self, tmp_path) -> None:
        ctl, term = make_controller(tmp_path)
        ctl.buffers.new_buffer("notes")
        term.feed("n TAB RET")
        assert ctl.read_buffer("Buffer: ") == "notes"

    def test_command_name_accepts_hyphens(self, tmp_path) -> None:
        ctl, term = make_controller(tmp_path)
        term.type_text("find-f")
        term.feed("TAB RET")
        assert ctl.read_command_name("M-x ") == "find_file"


# ---------------------------------------------------------------------------
# Confirmation
# ---------------------------------------------------------------------------


class TestConfirmation:
    def test_yes_or_no(self, tmp_path) -> None:
        ctl, term = make_controller(tmp_path)
        term.type_text("yes")
        term.feed("RET")
        assert ctl.yes_or_no("Really?") is True
        assert_restored(ctl)

    def test_yes_or_no_reprompts(self, tmp_path) -> None:
        ctl, term = make_controller(tmp_path)
        seen: list[tuple] = []
        term.feed("y RET", lambda: seen.append((ctl.echo_area.message, ctl.echo_area.prompt)))
        term.type_text("no")
        term.feed("RET")
        assert ctl.yes_or_no("Really?") is False
        assert seen == [("Please answer yes or no.", "Really? (yes or no) ")]

    def test_y_or_n(self, tmp_path) -> None:
        ctl, term = make_controller(tmp_path)
        term.feed("x RET n RET")
        assert ctl.y_or_n("Kill?") is False

    def test_answers_are_case_sensitive(self, tmp_path) -> None:
        ctl, term = make_controller(tmp_path)
        seen: list[str | None] = []
        term.type_text("Yes")
        term.feed("RET", lambda: seen.append(ctl.echo_area.message))
        term.type_text("yes")
        term.feed("RET")
        assert ctl.yes_or_no("Really?") is True
        assert seen == ["Please answer yes or no."]

    def test_y_or_n_is_case_sensitive(self, tmp_path) -> None:
        ctl, term = make_controller(tmp_path)
        seen: list[str | None] = []
        term.feed("Y RET", lambda: seen.append(ctl.echo_area.message), "y RET")
        assert ctl.y_or_n("Kill?") is True
        assert seen == ["Please answer y or n."]

    def test_abort_propagates(self, tmp_path) -> None:
        ctl, term = make_controller(tmp_path)
        term.feed("C-g")
        with pytest.raises(SessionAborted):
            ctl.y_or_n("Kill?")
        assert_restored(ctl)
