import pytest

from signalcrate.module import FRAMES_PER_BUFFER
from signalcrate.modules.looper import Looper, LooperState


def _warmed(args="length=1", sample_rate=1000.0):
    looper = Looper(args, sample_rate=sample_rate)
    looper.handle_key("s")
    for _ in range(100):
        looper.process([0.0] * FRAMES_PER_BUFFER)
    return looper


def test_buffer_length_from_args():
    looper = Looper("length=1", sample_rate=1000.0)
    assert looper.buffer_len == 1000
    assert looper.loop_end == 1000
    assert looper.loop_start == 0
    assert looper.looper_state is LooperState.IDLE


def test_zero_length_rejected():
    with pytest.raises(ValueError):
        Looper("length=0", sample_rate=1000.0)


def test_idle_outputs_silence():
    looper = Looper("length=1", sample_rate=1000.0)
    out = looper.process([0.5] * FRAMES_PER_BUFFER)
    assert all(v == 0.0 for v in out)


def test_record_stores_input():
    looper = _warmed()
    block = [(i + 1) / 1000.0 for i in range(FRAMES_PER_BUFFER)]
    looper.handle_key("r")
    looper.process(block)
    assert looper.buffer[:FRAMES_PER_BUFFER] == block
    assert looper.write_pos == FRAMES_PER_BUFFER


def test_record_then_play_reproduces():
    looper = _warmed()
    block = [(i + 1) / 1000.0 for i in range(FRAMES_PER_BUFFER)]
    looper.handle_key("r")
    looper.process(block)
    looper.handle_key("p")
    out = looper.process([0.0] * FRAMES_PER_BUFFER)
    assert out[0] == 0.0
    assert out[40:] == pytest.approx(block[40:], rel=1e-4)


def test_record_wraps_at_loop_end():
    looper = Looper("length=1", sample_rate=100.0)
    block = [float(i) for i in range(FRAMES_PER_BUFFER)]
    looper.handle_key("r")
    looper.process(block)
    assert looper.write_pos == FRAMES_PER_BUFFER % 100
    assert looper.buffer[0] == block[200]


def test_overdub_adds_to_buffer():
    looper = _warmed()
    block = [0.25] * FRAMES_PER_BUFFER
    looper.handle_key("r")
    looper.process(block)
    looper.write_pos = 0
    looper.handle_key("o")
    looper.process(block)
    assert looper.buffer[:FRAMES_PER_BUFFER] == [0.5] * FRAMES_PER_BUFFER


def test_set_param_loop_points():
    looper = Looper("length=1", sample_rate=1000.0)
    looper.set_param("start", 0.5)
    assert looper.loop_start == 500
    looper.set_param("end", 5.0)
    assert looper.loop_end == looper.buffer_len


def test_set_param_speed_range():
    looper = Looper("length=1", sample_rate=1000.0)
    looper.set_param("speed", 0.0)
    assert looper.playback_speed == pytest.approx(0.1)
    looper.set_param("speed", 1.0)
    assert looper.playback_speed == pytest.approx(4.0)


def test_set_param_triggers_state():
    looper = Looper("length=1", sample_rate=1000.0)
    looper.set_param("record", 1.0)
    assert looper.looper_state is LooperState.RECORDING
    looper.set_param("stop", 0.0)
    assert looper.looper_state is LooperState.RECORDING
    looper.set_param("stop", 1.0)
    assert looper.looper_state is LooperState.STOPPED


def test_set_param_unknown_raises():
    looper = Looper("length=1", sample_rate=1000.0)
    with pytest.raises(ValueError):
        looper.set_param("pitch", 0.5)


def test_start_below_zero_wraps_to_end():
    looper = Looper("length=1", sample_rate=1000.0)
    assert looper.handle_key("-")
    assert looper.loop_start == looper.buffer_len - 1
    assert looper.loop_end >= looper.loop_start


def test_command_sets_speed():
    looper = Looper("length=1", sample_rate=1000.0)
    for key in ":3 2\n":
        assert looper.handle_key(key)
    assert looper.playback_speed == pytest.approx(2.0)


def test_command_escape_discards():
    looper = Looper("length=1", sample_rate=1000.0)
    for key in ":3 2":
        looper.handle_key(key)
    assert looper.handle_key(27)
    assert looper.playback_speed == pytest.approx(1.0)


def test_unhandled_key():
    looper = Looper("length=1", sample_rate=1000.0)
    assert looper.handle_key("x") is False


def test_status_lines_show_state():
    looper = Looper("length=1", sample_rate=1000.0)
    looper.name = "loop"
    looper.handle_key("r")
    lines = looper.status_lines()
    assert lines[0].startswith("[Looper:loop] State: RECORDING")
    assert len(lines) == 6