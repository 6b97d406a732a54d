"""Control-voltage monitor with attenuverter and offset."""

from __future__ import annotations

from typing import Optional

from signalcrate.module import (
    DEFAULT_SAMPLE_RATE,
    FRAMES_PER_BUFFER,
    CommandLine,
    Key,
    Module,
    Smoother,
    clamp,
    parse_create_arg,
)


class CVMonitor(Module):
    """Scales and offsets its first control input, showing input and output."""

    type_name = "c_cv_monitor"

    _STEPS = {
        "=": ("attenuvert", 0.01),
        "-": ("attenuvert", -0.01),
        "+": ("offset", 0.01),
        "_": ("offset", -0.01),
    }
    _COMMANDS = {"1": "attenuvert", "2": "offset"}

    def __init__(self, args: Optional[str] = "", sample_rate: float = DEFAULT_SAMPLE_RATE) -> None:
        super().__init__(sample_rate)
        self.attenuvert = parse_create_arg(args, "att", 1.0)
        self.offset = parse_create_arg(args, "offset", 0.0)
        self.input = 0.0
        self.output_value = 0.0
        self._smooth_att = Smoother(0.75)
        self._smooth_off = Smoother(0.75)
        self.display_input = 0.0
        self.display_output = 0.0
        self.display_att = 0.0
        self.display_off = 0.0
        self._command = CommandLine(31)
        self.control_output = [0.0] * FRAMES_PER_BUFFER

    def _clamp(self) -> None:
        self.attenuvert = clamp(self.attenuvert, -2.0, 2.0)
        self.offset = clamp(self.offset, -1.0, 1.0)

    def process_control(self) -> None:
        with self._lock:
            att = self.attenuvert
            off = self.offset

        for param, norm in self._modulations():
            if param == "att":
                att = self.attenuvert + norm * (2.0 - abs(self.attenuvert))
            elif param == "offset":
                off = self.offset + norm * (1.0 - abs(self.offset))

        att = self._smooth_att.step(att)
        off = self._smooth_off.step(off)

        value = 0.0
        if self.control_inputs and self.control_inputs[0][1]:
            value = self.control_inputs[0][1][0]
        out = clamp(value * att + off, -1.0, 1.0)

        with self._lock:
            self.input = value
            self.output_value = out
            self.display_input = value
            self.display_output = out
            self.display_att = att
            self.display_off = off

        self.control_output = [out] * FRAMES_PER_BUFFER

    def status_lines(self) -> list[str]:
        with self._lock:
            value, out = self.display_input, self.display_output
            att, off = self.display_att, self.display_off
        return [
            f"[CVMon:{self.name}] In: {value:.3f} | Att: {att:.2f} | Off: {off:.2f} | Out: {out:.3f}",
            "Real-Time Keys: -/= att, _/+ offset",
            "Cmd Keys: :1 att, :2 offset",
        ]

    def handle_key(self, key: Key) -> bool:
        return self._dispatch_key(key, self._STEPS, self._COMMANDS)

    def set_param(self, param: str, value: float) -> None:
        with self._lock:
            if param == "att":
                self.attenuvert = clamp(value, -2.0, 2.0)
            elif param == "offset":
                self.offset = clamp(value, -1.0, 1.0)
            else:
                raise ValueError(f"[c_cv_monitor] unknown parameter: {param}")