"""Random fluctuation source: slewed noise or a bounded random walk."""

from __future__ import annotations

import enum
import math
import random
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


class FluctMode(enum.Enum):
    """How new target values are chosen."""

    NOISE = 0
    WALK = 1


_MODE_NAMES = {FluctMode.NOISE: "Noise", FluctMode.WALK: "Walk"}
_MODE_WORDS = {"noise": FluctMode.NOISE, "walk": FluctMode.WALK}


def _parse_mode(args: Optional[str]) -> FluctMode:
    if not args:
        return FluctMode.WALK
    position = args.find("mode=")
    if position < 0:
        return FluctMode.WALK
    words = args[position + len("mode="):].split(maxsplit=1)
    word = words[0][:31] if words else ""
    try:
        return _MODE_WORDS[word]
    except KeyError:
        raise ValueError(f"[c_fluct] unknown mode: {word!r}") from None


class Fluct(Module):
    """Picks a new random target at ``rate`` Hz and slews the output toward it."""

    type_name = "c_fluct"

    _STEPS = {
        "=": ("rate", 0.01),
        "-": ("rate", -0.01),
        "D": ("depth", 0.01),
        "d": ("depth", -0.01),
    }
    _COMMANDS = {"1": "rate", "d": "depth"}

    def __init__(
        self,
        args: Optional[str] = "",
        sample_rate: float = DEFAULT_SAMPLE_RATE,
        rng: Optional[random.Random] = None,
    ) -> None:
        super().__init__(sample_rate)
        self.rate = parse_create_arg(args, "rate", 1.0)
        self.depth = parse_create_arg(args, "depth", 0.5)
        self.mode = _parse_mode(args)
        self.phase = 0.0
        self.prev_value = 0.0
        self.target_value = 0.0
        self.current_value = 0.0
        self._rng = rng or random.Random()
        self._smooth_rate = Smoother(0.75)
        self._smooth_depth = Smoother(0.75)
        self.display_rate = 0.0
        self.display_depth = 0.0
        self.control_output = [0.0] * FRAMES_PER_BUFFER
        self._actions = {"m": self._toggle_mode}
        self._clamp()

    def _clamp(self) -> None:
        self.rate = clamp(self.rate, 0.001, 20.0)
        self.depth = clamp(self.depth, 0.0, 1.0)

    def _toggle_mode(self) -> None:
        self.mode = FluctMode((self.mode.value + 1) % 2)

    def _new_target(self) -> None:
        self.prev_value = self.current_value
        swing = self._rng.random() * 2.0 - 1.0
        if self.mode is FluctMode.NOISE:
            self.target_value = swing
        else:
            self.target_value = clamp(self.prev_value + swing * 0.1, -1.0, 1.0)

    def process_control(self) -> None:
        with self._lock:
            rate = self._smooth_rate.step(self.rate)
            depth = self._smooth_depth.step(self.depth)

        dt = 1.0 / self.sample_rate
        for param, norm in self._modulations():
            if param == "rate":
                rate = self.rate + norm * (20.0 - self.rate)
            elif param == "depth":
                depth = self.depth + norm * (1.0 - self.depth)

        self.control_output_depth = 1.0
        self.display_rate = rate
        self.display_depth = depth

        period = 1.0 / rate if rate != 0 else math.inf
        slew = min(dt * rate, 1.0)
        out = []
        for _ in range(FRAMES_PER_BUFFER):
            self.phase += dt
            if self.phase >= period:
                self.phase -= period
                self._new_target()
            self.current_value += (self.target_value - self.current_value) * slew
            out.append(depth * self.current_value)
        self.control_output = out

    def status_lines(self) -> list[str]:
        with self._lock:
            rate, depth, mode = self.display_rate, self.display_depth, self.mode
        return [
            f"[Fluct:{self.name}] Rate: {rate:.3f} Hz | Depth: {depth:.2f} | Mode: {_MODE_NAMES[mode]}",
            "Keys: -/= (rate), d/D (depth), m (mode)",
            "Cmd: :1 [rate], :d [depth]",
        ]

    def handle_key(self, key: Key) -> bool:
        return self._dispatch_key(key, self._STEPS, self._COMMANDS, self._actions)

    def set_param(self, param: str, value: float) -> None:
        with self._lock:
            if param == "rate":
                self.rate = 0.01 * (20.0 / 0.01) ** value
            elif param == "depth":
                self.depth = value
            elif param == "mode" and value > 0.5:
                self._toggle_mode()