"""Attack/sustain/release envelope generator producing a control signal."""

from __future__ import annotations

import enum
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


class EnvState(enum.Enum):
    """Stage of the envelope."""

    IDLE = 0
    ATTACK = 1
    SUSTAIN = 2
    RELEASE = 3


class CASR(Module):
    """ASR envelope triggered by keys, a gate input or a trigger input; can self-cycle."""

    type_name = "c_asr"

    _STEPS = {
        "-": ("attack_time", -0.1),
        "=": ("attack_time", 0.1),
        "_": ("release_time", -0.1),
        "+": ("release_time", 0.1),
        "[": ("threshold_gate", -0.1),
        "]": ("threshold_gate", 0.1),
        "d": ("depth", -0.01),
        "D": ("depth", 0.01),
    }
    _COMMANDS = {"1": "attack_time", "2": "release_time", "3": "threshold_gate", "d": "depth"}

    def __init__(self, args: Optional[str] = "", sample_rate: float = DEFAULT_SAMPLE_RATE) -> None:
        super().__init__(sample_rate)
        self.attack_time = parse_create_arg(args, "att", 1.0)
        self.release_time = parse_create_arg(args, "rel", 1.0)
        self.depth = parse_create_arg(args, "depth", 0.5)
        self.sustain_level = 1.0
        self.envelope_out = 0.0
        self.timer = 0.0
        self.release_start_level = 0.0
        self.state = EnvState.IDLE
        self.cycle = False
        self.cycle_stop_requested = False
        self.trigger_held = False
        self.short_mode = True
        self.gate_prev = False
        self.threshold_trigger = 0.5
        self.threshold_cycle = 0.5
        self.threshold_gate = 0.5
        self._smooth_att = Smoother(0.75)
        self._smooth_rel = Smoother(0.75)
        self._smooth_sus = Smoother(0.75)
        self._smooth_depth = Smoother(0.75)
        self.display_att = 0.0
        self.display_rel = 0.0
        self.display_sus = 0.0
        self.display_depth = 0.0
        self.display_cycle = False
        self.control_output = [0.0] * FRAMES_PER_BUFFER
        self._actions = {"t": self._key_trigger, "c": self._key_cycle, "m": self._key_mode}

    def _clamp(self) -> None:
        upper = 10.0 if self.short_mode else math.inf
        self.attack_time = clamp(self.attack_time, 0.01, upper)
        self.release_time = clamp(self.release_time, 0.01, upper)
        self.sustain_level = clamp(self.sustain_level, 0.01, 1.0)
        self.depth = clamp(self.depth, 0.0, 1.0)
        self.threshold_gate = clamp(self.threshold_gate, 0.0, 1.0)

    def _start_attack(self) -> None:
        self.state = EnvState.ATTACK
        self.timer = 0.0

    def _start_release(self) -> None:
        self.release_start_level = self.envelope_out
        self.state = EnvState.RELEASE
        self.timer = 0.0

    def process_control(self) -> None:
        with self._lock:
            att = self.attack_time
            sus = self.sustain_level
            rel = self.release_time
            depth = self.depth

        span = 10.0 if self.short_mode else 1000.0
        gate_input = 0.0
        for param, buffer in self.control_inputs:
            if param is None or not buffer:
                continue
            control = buffer[0]
            norm = clamp(control, -1.0, 1.0)
            if param == "trig":
                self.trigger_held = control > self.threshold_trigger
                if self.trigger_held and self.state is EnvState.IDLE:
                    self._start_attack()
            elif param == "cycle":
                self.cycle = control > self.threshold_cycle
            elif param == "att":
                att = att + norm * (span - att)
            elif param == "rel":
                rel = rel + norm * (span - rel)
            elif param == "depth":
                depth = self.depth + norm * (1.0 - self.depth)
            elif param == "gate":
                gate_input = control

        gate_now = gate_input >= self.threshold_gate
        if gate_now and not self.gate_prev and self.state is EnvState.IDLE:
            self._start_attack()
        self.gate_prev = gate_now

        sus = clamp(sus, 0.01, 1.0)
        depth = clamp(depth, 0.0, 1.0)

        att = self._smooth_att.step(att)
        sus = self._smooth_sus.step(sus)
        rel = self._smooth_rel.step(rel)
        depth = self._smooth_depth.step(depth)

        with self._lock:
            self.display_att = att
            self.display_sus = sus
            self.display_rel = rel
            self.display_depth = depth

        step = 1.0 / self.sample_rate
        out = []
        for _ in range(FRAMES_PER_BUFFER):
            self._advance(step, att, sus, rel)
            out.append(clamp(self.envelope_out * depth, 0.0, 1.0))
        self.control_output = out

    def _advance(self, step: float, att: float, sus: float, rel: float) -> None:
        if self.state is EnvState.ATTACK:
            self.envelope_out = min(self.envelope_out + step / max(att, 0.001), 1.0)
            self.timer += step
            if self.envelope_out >= 1.0 - 1e-4:
                self.envelope_out = 1.0
                if self.cycle:
                    self._start_release()
                else:
                    self.state = EnvState.SUSTAIN
                    self.timer = 0.0
        elif self.state is EnvState.SUSTAIN:
            self.envelope_out = sus
            if not self.cycle or not self.trigger_held:
                self._start_release()
                self.trigger_held = False
        elif self.state is EnvState.RELEASE:
            self.envelope_out = max(self.envelope_out - step / max(rel, 0.001), 0.0)
            self.timer += step
            if self.envelope_out <= 1e-4:
                self.envelope_out = 0.0
                if self.cycle_stop_requested:
                    self.cycle = False
                    self.cycle_stop_requested = False
                    self.state = EnvState.IDLE
                elif self.cycle and self.trigger_held:
                    self._start_attack()
                else:
                    self.state = EnvState.IDLE
        else:
            if self.cycle:
                self._start_attack()
            else:
                self.envelope_out = 0.0

    def status_lines(self) -> list[str]:
        with self._lock:
            return [
                f"[ASR:{self.name}] att: {self.display_att:.2f}s | rel: {self.display_rel:.2f}s"
                f" | depth: {self.display_depth:.2f} | gate: {self.threshold_gate:.2f}"
                f" | {'s' if self.short_mode else 'l'} | {'c' if self.display_cycle else 't'}",
                "Keys: t=trig, c=cycle, att -/=, rel _/+, gate [/], d/D [depth]",
                "Command: :1 [att], :2 [rel], :3 [g_thresh], :d[depth], :m [s/l mode]",
            ]

    def _key_trigger(self) -> None:
        if self.cycle:
            self.cycle = False
            self.display_cycle = False
            self.cycle_stop_requested = True
        elif self.state is EnvState.IDLE:
            self._start_attack()
        self.trigger_held = True

    def _key_cycle(self) -> None:
        if not self.cycle:
            self.cycle = True
            self.display_cycle = True
            self.cycle_stop_requested = False
            self.trigger_held = True
            if self.state is EnvState.IDLE:
                self._start_attack()
        else:
            self.cycle_stop_requested = True
            self.display_cycle = False

    def _key_mode(self) -> None:
        self.short_mode = not self.short_mode

    def handle_key(self, key: Key) -> bool:
        return self._dispatch_key(key, self._STEPS, self._COMMANDS, self._actions)

    def set_param(self, param: str, value: float) -> None:
        with self._lock:
            if param == "att":
                self.attack_time = value * 1000.0
            elif param == "rel":
                self.release_time = value * 1000.0
            elif param == "cycle":
                if value <= 0.5 and self.cycle:
                    self.cycle_stop_requested = True
                    self.display_cycle = False
                elif value > 0.5:
                    self.cycle = True
                    self.display_cycle = True
            elif value > 0.5:
                self.cycle = True
            elif param == "trig":
                if value > self.threshold_trigger and self.state is EnvState.IDLE:
                    self._start_attack()
            elif param == "depth":
                self.depth = value
            elif param == "gate":
                self.threshold_gate = value