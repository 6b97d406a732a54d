"""Amplitude modulator: scales the input by a sine modulator."""

from __future__ import annotations

from typing import Optional, Sequence

from signalcrate.module import (
    DEFAULT_SAMPLE_RATE,
    FRAMES_PER_BUFFER,
    TWO_PI,
    Key,
    Module,
    Smoother,
    clamp,
    parse_create_arg,
    sine_table,
)

_MIN_HZ = 0.01
_MAX_HZ = 20000.0


class AmpMod(Module):
    """Multiplies the carrier input by a unipolar sine of adjustable rate and depth."""

    type_name = "amp_mod"

    _STEPS = {
        "=": ("freq", 0.05),
        "-": ("freq", -0.05),
        "+": ("car_amp", 0.01),
        "_": ("car_amp", -0.01),
        "]": ("depth", 0.01),
        "[": ("depth", -0.01),
    }
    _COMMANDS = {"1": "freq", "2": "car_amp", "3": "depth"}

    def __init__(self, args: Optional[str] = "", sample_rate: float = DEFAULT_SAMPLE_RATE) -> None:
        super().__init__(sample_rate)
        self.freq = parse_create_arg(args, "freq", 440.0)
        self.car_amp = parse_create_arg(args, "car_amp", 1.0)
        self.depth = parse_create_arg(args, "depth", 1.0)
        self._phase = 0.0
        self._smooth_freq = Smoother(0.75)
        self._smooth_car_amp = Smoother(0.75)
        self._smooth_depth = Smoother(0.75)
        self.display_freq = 0.0
        self.display_car_amp = 0.0
        self.display_depth = 0.0
        self.output = [0.0] * FRAMES_PER_BUFFER
        self._clamp()

    def _clamp(self) -> None:
        self.car_amp = clamp(self.car_amp, 0.0, 1.0)
        self.depth = clamp(self.depth, 0.0, 1.0)
        self.freq = clamp(self.freq, 0.01, self.sample_rate * 0.45)

    def process(self, block: Sequence[float]) -> list[float]:
        with self._lock:
            phase = self._phase
            freq = self._smooth_freq.step(self.freq)
            car_amp = self._smooth_car_amp.step(self.car_amp)
            depth = self._smooth_depth.step(self.depth)
            rate = self.sample_rate

        for param, norm in self._modulations():
            if param == "mod_freq":
                freq = self.freq + norm * self.freq
            elif param == "car_amp":
                car_amp = self.car_amp + norm * (1.0 - self.car_amp)
            elif param == "depth":
                depth = self.depth + norm * (1.0 - self.depth)
        car_amp = clamp(car_amp, 0.0, 1.0)

        self.display_freq = freq
        self.display_car_amp = car_amp
        self.display_depth = depth

        table = sine_table()
        size = len(table)
        increment = TWO_PI * freq / rate
        out = []
        for sample in block:
            mod = table[int(phase / TWO_PI * size) % size]
            out.append(car_amp * sample * (depth * mod + 1.0) * 0.5)
            phase += increment
            if phase >= TWO_PI:
                phase -= TWO_PI
        self.output = out

        with self._lock:
            self._phase = phase
        return out

    def status_lines(self) -> list[str]:
        with self._lock:
            freq, car_amp, depth = self.display_freq, self.display_car_amp, self.display_depth
        return [
            f"[AmpMod:{self.name}] mod_freq: {freq:.2f} Hz | Car_Amp: {car_amp:.2f} | Depth: {depth:.2f}",
            "Real-time keys: -/= (mod_freq), _/+ (Car_Amp), [/] (Depth)",
            "Command mode: :1 [mod_freq], :2 [car_amp], :3 [depth]",
        ]

    def handle_key(self, key: Key) -> bool:
        return self._dispatch_key(key, self._STEPS, self._COMMANDS)

    def set_param(self, param: str, value: float) -> None:
        with self._lock:
            if param == "mod_freq":
                norm = clamp(value, 0.0, 1.0)
                self.freq = _MIN_HZ * (_MAX_HZ / _MIN_HZ) ** norm
            elif param == "car_amp":
                self.car_amp = clamp(value, 0.0, 1.0)
            elif param == "depth":
                self.depth = clamp(value, 0.0, 1.0)
            else:
                raise ValueError(f"[amp_mod] unknown parameter: {param}")