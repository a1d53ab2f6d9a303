"""Tests for quill.stdin_buffer.StdinBuffer."""

from __future__ import annotations

from quill.stdin_buffer import BRACKETED_PASTE_END, BRACKETED_PASTE_START, StdinBuffer, split_sequences


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class Collector:
    """Collects emitted data/paste events for assertions."""

    def __init__(self) -> None:
        self.data: list[str] = []
        self.pastes: list[str] = []

    def on_data(self, d: str) -> None:
        self.data.append(d)

    def on_paste(self, d: str) -> None:
        self.pastes.append(d)


def make_buffer() -> tuple[StdinBuffer, Collector]:
    buf = StdinBuffer()
    col = Collector()
    buf.on_data(col.on_data)
    buf.on_paste(col.on_paste)
    return buf, col


# ---------------------------------------------------------------------------
# split_sequences
# ---------------------------------------------------------------------------


class TestSplitSequences:
    def test_plain_characters(self) -> None:
        assert split_sequences("ab") == (["a", "b"], "")

    def test_csi_sequence(self) -> None:
        assert split_sequences("a\x1b[Ab") == (["a", "\x1b[A", "b"], "")

    def test_incomplete_escape_held_back(self) -> None:
        assert split_sequences("x\x1b") == (["x"], "\x1b")
        assert split_sequences("\x1b[1;5") == ([], "\x1b[1;5")

    def test_meta_key(self) -> None:
        assert split_sequences("\x1bx") == (["\x1bx"], "")

    def test_ss3(self) -> None:
        assert split_sequences("\x1bOP") == (["\x1bOP"], "")


# ---------------------------------------------------------------------------
# StdinBuffer
# ---------------------------------------------------------------------------


class TestStdinBuffer:
    def test_emits_complete_sequences(self) -> None:
        buf, col = make_buffer()
        buf.process("a\x1b[B")
        assert col.data == ["a", "\x1b[B"]
        assert not buf.pending

    def test_split_sequence_across_chunks(self) -> None:
        buf, col = make_buffer()
        buf.process("\x1b[")
        assert col.data == []
        assert buf.pending
        buf.process("C")
        assert col.data == ["\x1b[C"]

    def test_flush_emits_lone_escape(self) -> None:
        buf, col = make_buffer()
        buf.process("\x1b")
        buf.flush()
        assert col.data == ["\x1b"]
        assert not buf.pending

    def test_flush_when_empty(self) -> None:
        buf, col = make_buffer()
        buf.flush()
        assert col.data == []

    def test_bracketed_paste(self) -> None:
        buf, col = make_buffer()
        buf.process(f"x{BRACKETED_PASTE_START}hello\x1b[Aworld{BRACKETED_PASTE_END}y")
        assert col.data == ["x", "y"]
        assert col.pastes == ["hello\x1b[Aworld"]

    def test_paste_across_chunks(self) -> None:
        buf, col = make_buffer()
        buf.process(f"{BRACKETED_PASTE_START}hel")
        buf.process(f"lo{BRACKETED_PASTE_END}")
        assert col.pastes == ["hello"]

    def test_clear(self) -> None:
        buf, col = make_buffer()
        buf.process("\x1b[")
        buf.clear()
        buf.flush()
        assert col.data == []
