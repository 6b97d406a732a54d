"""Audio input stage with adjustable gain."""

from __future__ import annotations

from typing import Optional, Sequence

from signalcrate.module import (
    DEFAULT_SAMPLE_RATE,
    FRAMES_PER_BUFFER,
    Key,
    Module,
    Smoother,
    clamp,
    parse_create_arg,
)


class Input(Module):
    """Passes the raw audio input through a smoothed gain."""

    type_name = "input"

    _STEPS = {"+": ("gain", 0.05), "_": ("gain", -0.05)}
    _COMMANDS = {"1": "gain"}

    def __init__(self, args: Optional[str] = "", sample_rate: float = DEFAULT_SAMPLE_RATE) -> None:
        super().__init__(sample_rate)
        self.gain = parse_create_arg(args, "gain", 1.0)
        self._smooth_gain = Smoother(0.75)
        self.output = [0.0] * FRAMES_PER_BUFFER
        self._clamp()

    def _clamp(self) -> None:
        self.gain = clamp(self.gain, 0.0, 1.0)

    def process(self, block: Sequence[float]) -> list[float]:
        with self._lock:
            gain = self._smooth_gain.step(self.gain)
        out = [gain * sample for sample in block]
        self.output = out
        return out

    def status_lines(self) -> list[str]:
        with self._lock:
            gain = self.gain
        return [
            f"[Input:{self.name}] Gain: {gain:.2f}",
            "Real-time keys: _/+ (gain)",
            "Command mode: :1 [gain]",
        ]

    def handle_key(self, key: Key) -> bool:
        return self._dispatch_key(key, self._STEPS, self._COMMANDS)

    def set_param(self, param: str, value: float) -> None:
        with self._lock:
            if param == "gain":
                self.gain = clamp(value, 0.0, 1.0)
            else:
                raise ValueError(f"[input] unknown parameter: {param}")