"""Envelope follower turning an audio input into a control signal."""

from __future__ import annotations

import math
from typing import Optional

from signalcrate.module import (
    DEFAULT_SAMPLE_RATE,
    FRAMES_PER_BUFFER,
    Key,
    Module,
    Smoother,
    clamp,
    parse_create_arg,
)

ENV_UPDATE_INTERVAL = 128


class NoAudioInputError(RuntimeError):
    """Raised when the follower runs without an audio input connected."""


def _coefficient(time_ms: float, sample_rate: float) -> float:
    denominator = 0.001 * time_ms * sample_rate
    if denominator == 0:
        return 0.0
    return math.exp(-1.0 / denominator)


class EnvelopeFollower(Module):
    """Tracks the level of its first audio input with fixed attack and adjustable decay."""

    type_name = "c_env_fol"

    _STEPS = {
        "=": ("decay_ms", 0.1),
        "-": ("decay_ms", -0.1),
        "+": ("sens", 0.1),
        "_": ("sens", -0.1),
        "D": ("depth", 0.1),
        "d": ("depth", -0.1),
    }
    _COMMANDS = {"1": "decay_ms", "2": "sens", "d": "depth"}

    def __init__(self, args: Optional[str] = "", sample_rate: float = DEFAULT_SAMPLE_RATE) -> None:
        super().__init__(sample_rate)
        self.attack_ms = 0.1
        self.decay_ms = parse_create_arg(args, "dec", 1.0)
        self.sens = parse_create_arg(args, "sens", 0.5)
        self.depth = parse_create_arg(args, "depth", 0.5)
        self.env = 0.0
        self.smoothed_env = 0.0
        self._smooth_attack = Smoother(0.75)
        self._smooth_decay = Smoother(0.75)
        self._smooth_gain = Smoother(0.75)
        self._smooth_depth = Smoother(0.75)
        self.display_att = 0.0
        self.display_dec = 0.0
        self.display_gain = 0.0
        self.display_depth = 0.0
        self.display_env = 0.0
        self.control_output = [0.0] * FRAMES_PER_BUFFER

    def _clamp(self) -> None:
        self.decay_ms = clamp(self.decay_ms, 1.0, 5000.0)
        self.sens = clamp(self.sens, 0.01, 1.0)
        self.depth = clamp(self.depth, 0.0, 1.0)

    def process_control(self) -> None:
        if not self.inputs:
            raise NoAudioInputError("[c_env_fol] no audio input connected")

        with self._lock:
            attack = self._smooth_attack.step(self.attack_ms)
            decay = self._smooth_decay.step(self.decay_ms)
            sens = self._smooth_gain.step(self.sens)
            depth = self._smooth_depth.step(self.depth)

        for param, norm in self._modulations():
            if param == "dec":
                decay = self.decay_ms + norm * (5000.0 - self.decay_ms)
            elif param == "sens":
                sens = self.sens + norm * (1.0 - self.sens)
            elif param == "depth":
                depth = self.depth + norm * (1.0 - self.depth)

        self.display_att = attack
        self.display_dec = decay
        self.display_gain = sens
        self.display_depth = depth
        self.display_env = self.smoothed_env

        atk_coeff = _coefficient(attack, self.sample_rate)
        dec_coeff = _coefficient(decay, self.sample_rate)

        source = self.inputs[0]
        out = [0.0] * FRAMES_PER_BUFFER
        for start in range(0, FRAMES_PER_BUFFER, ENV_UPDATE_INTERVAL):
            sample = source[start] if start < len(source) else 0.0
            level = abs(sample * sens)
            coeff = atk_coeff if level > self.env else dec_coeff
            self.env = coeff * (self.env - level) + level
            self.smoothed_env += 0.05 * (self.env - self.smoothed_env)
            value = clamp(min(self.smoothed_env, 1.0) * depth, 0.0, 1.0)
            end = min(start + ENV_UPDATE_INTERVAL, FRAMES_PER_BUFFER)
            out[start:end] = [value] * (end - start)
        self.control_output = out

    def status_lines(self) -> list[str]:
        with self._lock:
            dec = self.display_dec
            sens = self.display_gain
            depth = self.display_depth
            value = clamp(self.display_env, 0.0, 1.0)
        return [
            f"[EnvFol:{self.name}] Env: {value:.3f} | dec: {dec:.1f}ms sens: {sens:.2f} depth: {depth:.2f}",
            "Real-time keys: -/= (dec), _/+ (sens), d/D (d)",
            "Command mode: :1 [dec], :2 [sens], :d [depth]",
        ]

    def handle_key(self, key: Key) -> bool:
        return self._dispatch_key(key, self._STEPS, self._COMMANDS)

    def set_param(self, param: str, value: float) -> None:
        with self._lock:
            if param == "dec":
                self.decay_ms = max(1.0, value * 5000.0)
            elif param == "sens":
                self.sens = value
            elif param == "depth":
                self.depth = value