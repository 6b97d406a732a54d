import pytest

from signalcrate.module import FRAMES_PER_BUFFER
from signalcrate.modules.c_env_fol import ENV_UPDATE_INTERVAL, EnvelopeFollower, NoAudioInputError


def _follower(level, args=""):
    follower = EnvelopeFollower(args)
    follower.inputs = [[level] * FRAMES_PER_BUFFER]
    return follower


def test_missing_input_raises():
    with pytest.raises(NoAudioInputError):
        EnvelopeFollower().process_control()


def test_defaults():
    follower = EnvelopeFollower()
    assert follower.attack_ms == 0.1
    assert (follower.decay_ms, follower.sens, follower.depth) == (1.0, 0.5, 0.5)


def test_create_args():
    follower = EnvelopeFollower("dec=200,sens=0.8,depth=0.9")
    assert follower.decay_ms == pytest.approx(200.0)
    assert follower.sens == pytest.approx(0.8)
    assert follower.depth == pytest.approx(0.9)


def test_silence_gives_zero():
    follower = _follower(0.0)
    follower.process_control()
    assert follower.control_output == [0.0] * FRAMES_PER_BUFFER


def test_output_rises_and_stays_bounded():
    follower = _follower(0.8)
    firsts = []
    for _ in range(30):
        follower.process_control()
        firsts.append(follower.control_output[0])
    assert firsts == sorted(firsts)
    assert firsts[-1] > firsts[0]
    assert all(0.0 <= v <= 1.0 for v in follower.control_output)


def test_output_held_across_update_interval():
    follower = _follower(0.8)
    follower.process_control()
    out = follower.control_output
    assert len(out) == FRAMES_PER_BUFFER
    assert len(set(out[:ENV_UPDATE_INTERVAL])) == 1
    assert len(set(out[ENV_UPDATE_INTERVAL:])) == 1


def test_rectifies_negative_input():
    positive = _follower(0.6)
    negative = _follower(-0.6)
    for _ in range(5):
        positive.process_control()
        negative.process_control()
    assert positive.control_output == negative.control_output


def test_depth_modulation_stays_in_range():
    follower = _follower(1.0, "sens=1,depth=0.2")
    follower.control_inputs = [("depth", [1.0])]
    for _ in range(50):
        follower.process_control()
    assert follower.display_depth == pytest.approx(1.0)
    assert all(0.0 <= v <= 1.0 for v in follower.control_output)


def test_keys_step_and_clamp():
    follower = EnvelopeFollower()
    assert follower.handle_key("-") is True
    assert follower.decay_ms == 1.0
    follower.handle_key("=")
    assert follower.decay_ms == pytest.approx(1.1)
    for _ in range(20):
        follower.handle_key("d")
    assert follower.depth == 0.0


def test_command_sets_depth():
    follower = EnvelopeFollower()
    for key in ":d 0.25":
        follower.handle_key(key)
    follower.handle_key(10)
    assert follower.depth == pytest.approx(0.25)


def test_set_param():
    follower = EnvelopeFollower()
    follower.set_param("dec", 0.0)
    assert follower.decay_ms == 1.0
    follower.set_param("dec", 1.0)
    assert follower.decay_ms == pytest.approx(5000.0)
    follower.set_param("sens", 0.3)
    assert follower.sens == pytest.approx(0.3)


def test_set_param_unknown_is_ignored():
    follower = EnvelopeFollower()
    follower.set_param("bogus", 0.9)
    assert (follower.decay_ms, follower.sens, follower.depth) == (1.0, 0.5, 0.5)


def test_status_lines_name():
    lines = EnvelopeFollower().status_lines()
    assert lines[0].startswith("[EnvFol:c_env_fol]")
    assert len(lines) == 3