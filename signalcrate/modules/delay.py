"""Feedback delay line with interpolated, smoothly varying delay time."""

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

MAX_DELAY_MS = 2000.0
_TIME_SMOOTHING = 0.001


class Delay(Module):
    """Mixes the input with a delayed, fed-back copy of itself."""

    type_name = "delay"

    _STEPS = {
        "=": ("delay_ms", 10.0),
        "-": ("delay_ms", -10.0),
        "+": ("mix", 0.05),
        "_": ("mix", -0.05),
        "]": ("feedback", 0.05),
        "[": ("feedback", -0.05),
    }
    _COMMANDS = {"1": "delay_ms", "2": "mix", "3": "feedback"}

    def __init__(self, args: Optional[str] = "", sample_rate: float = DEFAULT_SAMPLE_RATE) -> None:
        super().__init__(sample_rate)
        self.delay_ms = parse_create_arg(args, "time", 500.0)
        self.mix = parse_create_arg(args, "mix", 0.5)
        self.feedback = parse_create_arg(args, "fb", 0.3)
        self.buffer_size = int(MAX_DELAY_MS / 1000.0 * sample_rate)
        self.buffer = [0.0] * self.buffer_size
        self.write_index = 0
        self.last_delay_samples = self.delay_ms / 1000.0 * sample_rate
        self._smooth_delay = Smoother(0.75)
        self._smooth_mix = Smoother(0.75)
        self._smooth_feedback = Smoother(0.75)
        self.display_delay = 0.0
        self.display_mix = 0.0
        self.display_feedback = 0.0
        self.output = [0.0] * FRAMES_PER_BUFFER
        self._clamp()

    def _clamp(self) -> None:
        self.mix = clamp(self.mix, 0.0, 1.0)
        self.feedback = clamp(self.feedback, 0.0, 0.99)
        self.delay_ms = clamp(self.delay_ms, 1.0, MAX_DELAY_MS)

    def process(self, block: Sequence[float]) -> list[float]:
        with self._lock:
            mix = self._smooth_mix.step(self.mix)
            fb = self._smooth_feedback.step(self.feedback)
            delay_ms = self._smooth_delay.step(self.delay_ms)

        for param, norm in self._modulations():
            if param == "time":
                delay_ms = self.delay_ms + norm * self.delay_ms
            elif param == "mix":
                mix = self.mix + norm * (1.0 - self.mix)
            elif param == "fb":
                fb = self.feedback + norm * (1.0 - self.feedback)

        self.display_mix = mix
        self.display_feedback = fb
        self.display_delay = delay_ms

        size = self.buffer_size
        buffer = self.buffer
        write_index = self.write_index

        target = delay_ms / 1000.0 * self.sample_rate
        target = min(target, float(size - 1))
        target = max(target, 1.0)

        delay_samples = self.last_delay_samples
        out = []
        for dry in block:
            delay_samples += _TIME_SMOOTHING * (target - delay_samples)
            read_pos = write_index - delay_samples
            if read_pos < 0.0:
                read_pos += size
            base = int(read_pos)
            frac = read_pos - base
            delayed = (1.0 - frac) * buffer[base % size] + frac * buffer[(base + 1) % size]
            out.append(dry * (1.0 - mix) + delayed * mix)
            buffer[write_index] = dry + delayed * fb
            write_index = (write_index + 1) % size

        self.write_index = write_index
        self.last_delay_samples = delay_samples
        self.output = out
        return out

    def status_lines(self) -> list[str]:
        with self._lock:
            mix, fb, ms = self.display_mix, self.display_feedback, self.display_delay
            command = f":{self._command.buffer}" if self._command.active else ""
        lines = [
            f"[Delay:{self.name}] Time: {ms:.1f} ms | Mix: {mix:.2f} | Feedback: {fb:.2f}",
            "Real-time keys: -/= (time), _/+ (mix), [/] (fb)",
            "Command mode: :1 [time], :2 [mix], :3 [fb]",
        ]
        if command:
            lines.append(command)
        return lines

    def handle_key(self, key: Key) -> bool:
        return self._dispatch_key(key, self._STEPS, self._COMMANDS)

    def set_param(self, param: str, value: float) -> None:
        with self._lock:
            if param == "time":
                self.delay_ms = clamp(value, 1.0, MAX_DELAY_MS)
            elif param == "mix":
                self.mix = clamp(value, 0.0, 1.0)
            elif param == "fb":
                self.feedback = clamp(value, 0.0, 0.99)
            else:
                raise ValueError(f"[delay] unknown parameter: {param}")