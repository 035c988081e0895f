import pytest

from activity_logger.domain.models.console_buffer import DEFAULT_MAX_CHARS, BoundedConsoleBuffer


def test_default_capacity_is_five_mebibytes():
    assert BoundedConsoleBuffer().max_chars == DEFAULT_MAX_CHARS == 5 * 1024 * 1024


def test_keeps_everything_below_capacity():
    buffer = BoundedConsoleBuffer(max_chars=20)

    buffer.append("hello ")
    buffer.append("world")

    assert buffer.getvalue() == "hello world"
    assert len(buffer) == 11
    assert not buffer.is_full


def test_never_exceeds_capacity_and_keeps_prefix():
    buffer = BoundedConsoleBuffer(max_chars=100)
    chunks = [f"line {i}\n" for i in range(200)]

    for chunk in chunks:
        buffer.append(chunk)

    expected = "".join(chunks)[:100]
    assert len(buffer) == 100
    assert buffer.getvalue() == expected
    assert buffer.is_full
    assert buffer.dropped_chars == len("".join(chunks)) - 100


def test_append_reports_stored_characters():
    buffer = BoundedConsoleBuffer(max_chars=5)

    assert buffer.append("abc") == 3
    assert buffer.append("defg") == 2
    assert buffer.append("h") == 0
    assert buffer.append("") == 0
    assert buffer.getvalue() == "abcde"


def test_repeated_reads_return_same_text():
    buffer = BoundedConsoleBuffer(max_chars=50)
    buffer.append("a")
    buffer.append("b")

    assert buffer.getvalue() == "ab"
    buffer.append("c")
    assert buffer.getvalue() == "abc"


def test_clear_resets_length_and_drop_counter():
    buffer = BoundedConsoleBuffer(max_chars=3)
    buffer.append("abcdef")

    buffer.clear()

    assert len(buffer) == 0
    assert buffer.dropped_chars == 0
    assert buffer.getvalue() == ""
    buffer.append("xyz")
    assert buffer.getvalue() == "xyz"


def test_zero_capacity_drops_everything():
    buffer = BoundedConsoleBuffer(max_chars=0)

    buffer.append("anything")

    assert buffer.getvalue() == ""
    assert buffer.dropped_chars == 8


def test_negative_capacity_is_rejected():
    with pytest.raises(ValueError):
        BoundedConsoleBuffer(max_chars=-1)
