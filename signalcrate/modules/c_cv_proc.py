"""Control-voltage processor: gain, crossfade and offset over three control inputs."""

from __future__ import annotations

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


class CVProc(Module):
    """Computes va*k + vb*(1-m) + vc*m + offset from its first three control inputs."""

    type_name = "c_cv_proc"

    _STEPS = {
        "=": ("k", 0.01),
        "-": ("k", -0.01),
        "+": ("m", 0.01),
        "_": ("m", -0.01),
        "]": ("offset", 0.01),
        "[": ("offset", -0.01),
    }
    _COMMANDS = {"1": "k", "2": "m", "3": "offset"}

    def __init__(self, args: Optional[str] = "", sample_rate: float = DEFAULT_SAMPLE_RATE) -> None:
        super().__init__(sample_rate)
        self.k = parse_create_arg(args, "k", 1.0)
        self.m = parse_create_arg(args, "m", 0.0)
        self.offset = parse_create_arg(args, "offset", 0.0)
        self.output_value = 0.0
        self._smooth_k = Smoother(0.75)
        self._smooth_m = Smoother(0.75)
        self._smooth_offset = Smoother(0.75)
        self.display_va = 0.0
        self.display_vb = 0.0
        self.display_vc = 0.0
        self.display_k = 0.0
        self.display_m_amt = 0.0
        self.display_offset = 0.0
        self.control_output = [0.0] * FRAMES_PER_BUFFER

    def _clamp(self) -> None:
        self.k = clamp(self.k, -2.0, 2.0)
        self.m = clamp(self.m, 0.0, 1.0)
        self.offset = clamp(self.offset, -1.0, 1.0)

    def _input_value(self, index: int) -> float:
        if index < len(self.control_inputs):
            buffer = self.control_inputs[index][1]
            if buffer:
                return buffer[0]
        return 0.0

    def process_control(self) -> None:
        with self._lock:
            k = self.k
            m_amt = self.m
            offset = self.offset

        for param, norm in self._modulations():
            if param == "k":
                k = self.k + norm * self.k
            elif param == "m":
                m_amt = self.m + norm * (1.0 - self.m)
            elif param == "offset":
                offset = self.offset + norm * (1.0 - abs(self.offset))

        k = self._smooth_k.step(clamp(k, -2.0, 2.0))
        m_amt = self._smooth_m.step(clamp(m_amt, 0.0, 1.0))
        offset = self._smooth_offset.step(clamp(offset, -1.0, 1.0))

        va, vb, vc = (self._input_value(i) for i in range(3))
        out = clamp(va * k + vb * (1.0 - m_amt) + vc * m_amt + offset, -1.0, 1.0)

        with self._lock:
            self.output_value = out
            self.display_va = va
            self.display_vb = vb
            self.display_vc = vc
            self.display_k = k
            self.display_m_amt = m_amt
            self.display_offset = offset

        self.control_output = [out] * FRAMES_PER_BUFFER

    def status_lines(self) -> list[str]:
        with self._lock:
            value = self.output_value
            va, vb, vc = self.display_va, self.display_vb, self.display_vc
            k, m_amt, offset = self.display_k, self.display_m_amt, self.display_offset
        return [
            f"[CVProc:{self.name}] Out: {value:.3f} | va: {va:.3f} | vb: {vb:.3f} | vc: {vc:.3f}",
            f"K: {k:.2f} | M: {m_amt:.2f} | Offset: {offset:.2f}",
            "Keys: k/:1 -/= m/:2 _/+, offset/:3 [/]",
        ]

    def handle_key(self, key: Key) -> bool:
        return self._dispatch_key(key, self._STEPS, self._COMMANDS)

    def set_param(self, param: str, value: float) -> None:
        with self._lock:
            if param == "k":
                self.k = clamp(value * 4.0 - 2.0, -2.0, 2.0)
            elif param == "m":
                self.m = clamp(value, 0.0, 1.0)
            elif param == "offset":
                self.offset = clamp(value * 2.0 - 1.0, -1.0, 1.0)
            else:
                raise ValueError(f"[c_cv_proc] unknown parameter: {param}")