import pytest

from signalcrate.module import FRAMES_PER_BUFFER
from signalcrate.modules.c_cv_proc import CVProc


def _settle(proc, times=200):
    for _ in range(times):
        proc.process_control()
    return proc.control_output


def test_defaults():
    proc = CVProc()
    assert (proc.k, proc.m, proc.offset) == (1.0, 0.0, 0.0)


def test_create_args():
    proc = CVProc("k=1.5,m=0.25,offset=-0.5")
    assert proc.k == pytest.approx(1.5)
    assert proc.m == pytest.approx(0.25)
    assert proc.offset == pytest.approx(-0.5)


def test_no_inputs_gives_flat_block():
    proc = CVProc()
    proc.process_control()
    out = proc.control_output
    assert len(out) == FRAMES_PER_BUFFER
    assert len(set(out)) == 1


def test_gain_converges_to_input():
    proc = CVProc()
    proc.control_inputs = [(None, [0.5] * FRAMES_PER_BUFFER)]
    out = _settle(proc)
    assert out[0] == pytest.approx(0.5)


def test_crossfade_selects_vc():
    proc = CVProc("m=1")
    proc.control_inputs = [(None, [0.0]), (None, [0.2]), (None, [0.6])]
    out = _settle(proc)
    assert out[-1] == pytest.approx(0.6)


def test_m_modulation_moves_crossfade():
    proc = CVProc()
    proc.control_inputs = [(None, [0.0]), (None, [0.2]), (None, [0.6]), ("m", [1.0])]
    out = _settle(proc)
    assert out[0] == pytest.approx(0.6)


def test_output_is_limited():
    proc = CVProc("k=2,offset=1")
    proc.control_inputs = [(None, [1.0])]
    out = _settle(proc)
    assert max(out) == 1.0
    assert all(-1.0 <= v <= 1.0 for v in out)


def test_set_param_mappings():
    proc = CVProc()
    proc.set_param("k", 0.0)
    assert proc.k == pytest.approx(-2.0)
    proc.set_param("k", 1.0)
    assert proc.k == pytest.approx(2.0)
    proc.set_param("offset", 0.0)
    assert proc.offset == pytest.approx(-1.0)
    proc.set_param("m", 3.0)
    assert proc.m == 1.0


def test_set_param_unknown():
    with pytest.raises(ValueError):
        CVProc().set_param("bogus", 0.5)


def test_keys_step_and_clamp():
    proc = CVProc()
    before = proc.k
    assert proc.handle_key("=") is True
    assert proc.k == pytest.approx(before + 0.01)
    for _ in range(300):
        proc.handle_key("=")
    assert proc.k == 2.0
    for _ in range(10):
        proc.handle_key("_")
    assert proc.m == 0.0


def test_command_sets_k():
    proc = CVProc()
    for key in ":1 1.5":
        proc.handle_key(key)
    proc.handle_key(10)
    assert proc.k == pytest.approx(1.5)


def test_escape_cancels_command():
    proc = CVProc()
    for key in ":3 0.7":
        proc.handle_key(key)
    proc.handle_key(27)
    assert proc.offset == 0.0


def test_status_lines_name():
    proc = CVProc()
    lines = proc.status_lines()
    assert len(lines) == 3
    assert lines[0].startswith("[CVProc:c_cv_proc]")