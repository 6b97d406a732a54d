import pytest

from signalcrate.module import FRAMES_PER_BUFFER, KEY_ENTER
from signalcrate.modules.fm_mod import FMMod


def type_keys(module, text):
    for ch in text:
        module.handle_key(ch)


def test_defaults():
    module = FMMod()
    assert module.mod_freq == 440.0
    assert module.index == 1.0
    assert module.name == "fm_mod"


def test_create_args():
    module = FMMod("mod_freq=100 idx=2")
    assert module.mod_freq == pytest.approx(100.0)
    assert module.index == pytest.approx(2.0)


def test_create_args_clamped():
    module = FMMod("idx=0", sample_rate=48000.0)
    assert module.index == pytest.approx(0.01)


def test_first_sample_is_zero():
    module = FMMod()
    out = module.process([1.0] * 16)
    assert out[0] == 0.0


def test_output_bounded_by_input():
    module = FMMod("mod_freq=1000 idx=3")
    block = [0.8] * FRAMES_PER_BUFFER
    for _ in range(4):
        out = module.process(block)
        assert len(out) == FRAMES_PER_BUFFER
        assert all(abs(v) <= 0.8 + 1e-9 for v in out)


def test_silence_in_silence_out():
    module = FMMod()
    assert module.process([0.0] * 32) == [0.0] * 32


def test_key_steps():
    module = FMMod()
    module.handle_key("=")
    assert module.mod_freq == pytest.approx(440.0 + 0.5)
    module.handle_key("+")
    assert module.index == pytest.approx(1.0 + 0.01)


def test_command_sets_index():
    module = FMMod()
    module.handle_key(":")
    type_keys(module, "2 3")
    module.handle_key(KEY_ENTER)
    assert module.index == pytest.approx(3.0)


def test_command_freq_clamped_to_nyquist_fraction():
    module = FMMod(sample_rate=48000.0)
    module.handle_key(":")
    type_keys(module, "1 99999")
    module.handle_key(KEY_ENTER)
    assert module.mod_freq == pytest.approx(48000.0 * 0.45)


def test_set_param_mod_freq_range():
    module = FMMod()
    module.set_param("mod_freq", 0.0)
    assert module.mod_freq == pytest.approx(0.01)
    module.set_param("mod_freq", 1.0)
    assert module.mod_freq == pytest.approx(20000.0)


def test_set_param_index_floor():
    module = FMMod()
    module.set_param("index", -1.0)
    assert module.index == 0.0


def test_set_param_unknown():
    with pytest.raises(ValueError):
        FMMod().set_param("idx", 1.0)


def test_control_input_index_reaches_ten():
    module = FMMod()
    module.control_inputs.append(("idx", [1.0]))
    module.process([0.0] * 4)
    assert module.display_index == pytest.approx(10.0)


def test_control_input_mod_freq_doubles():
    module = FMMod("mod_freq=50")
    module.control_inputs.append(("mod_freq", [1.0]))
    module.process([0.0] * 4)
    assert module.display_freq == pytest.approx(2 * module.mod_freq)


def test_status_lines():
    module = FMMod()
    lines = module.status_lines()
    assert lines[0].startswith("[FMMod:fm_mod]")
    assert lines[2] == "Command mode: :1 [mod freq], :2 [idx]"