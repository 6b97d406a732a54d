import math

import pytest

from signalcrate.module import (
    KEY_BACKSPACE,
    KEY_ENTER,
    KEY_ESCAPE,
    SINE_TABLE_SIZE,
    CommandLine,
    Module,
    Smoother,
    clamp,
    parse_create_arg,
    sine_table,
)


def test_clamp_limits_both_sides():
    assert clamp(-3.0, 0.0, 1.0) == 0.0
    assert clamp(3.0, 0.0, 1.0) == 1.0
    assert clamp(0.25, 0.0, 1.0) == 0.25


def test_parse_create_arg_found():
    assert parse_create_arg("freq=220", "freq", 440.0) == pytest.approx(220.0)


def test_parse_create_arg_skips_space_after_equals():
    assert parse_create_arg("depth= 0.5", "depth", 1.0) == pytest.approx(0.5)


def test_parse_create_arg_missing_gives_default():
    assert parse_create_arg("other=3", "freq", 440.0) == 440.0
    assert parse_create_arg("", "freq", 440.0) == 440.0
    assert parse_create_arg(None, "freq", 440.0) == 440.0


def test_parse_create_arg_bad_number_gives_default():
    assert parse_create_arg("freq=abc", "freq", 440.0) == 440.0


def test_parse_create_arg_matches_substring():
    assert parse_create_arg("mod_freq=5", "freq", 440.0) == pytest.approx(5.0)


def test_sine_table_shape():
    table = sine_table()
    assert len(table) == SINE_TABLE_SIZE
    assert table[0] == 0.0
    assert table[SINE_TABLE_SIZE // 4] == pytest.approx(1.0)
    assert all(-1.0 <= v <= 1.0 for v in table)


def test_smoother_converges_monotonically():
    smoother = Smoother(0.75)
    values = [smoother.step(1.0) for _ in range(100)]
    assert all(a < b or math.isclose(a, b) for a, b in zip(values, values[1:]))
    assert values[-1] == pytest.approx(1.0, abs=1e-6)


def test_command_line_parses_entered_text():
    line = CommandLine()
    line.start()
    for ch in "1 100":
        assert line.feed(ch) is True
    assert line.feed(KEY_ENTER) is True
    assert line.active is False
    assert line.parse() == ("1", pytest.approx(100.0))


def test_command_line_backspace_and_escape():
    line = CommandLine()
    line.start()
    assert line.feed(KEY_BACKSPACE) is False
    line.feed("a")
    line.feed("b")
    assert line.feed(KEY_BACKSPACE) is True
    assert line.buffer == "a"
    assert line.feed(KEY_ESCAPE) is True
    assert line.active is False


def test_command_line_capacity():
    line = CommandLine(capacity=3)
    line.start()
    results = [line.feed(ch) for ch in "abcd"]
    assert results == [True, True, True, False]
    assert line.buffer == "abc"


def test_command_line_parse_without_number():
    line = CommandLine()
    line.start()
    line.feed("x")
    assert line.parse() is None


def test_command_line_inactive_ignores_keys():
    line = CommandLine()
    assert line.feed("a") is False
    assert line.buffer == ""


def test_command_line_rejects_multichar_key():
    line = CommandLine()
    line.start()
    with pytest.raises(ValueError):
        line.feed("ab")


def test_base_module_unknown_param():
    with pytest.raises(ValueError):
        Module().set_param("anything", 1.0)


def test_base_module_ignores_keys_and_names_itself():
    module = Module(name="thing")
    assert module.handle_key("=") is False
    assert "thing" in module.status_lines()[0]


def test_base_module_close_disconnects():
    module = Module()
    module.inputs.append([0.0])
    module.control_inputs.append(("x", [0.0]))
    module.close()
    assert module.inputs == []
    assert module.control_inputs == []
    assert module.closed is True