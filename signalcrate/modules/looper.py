"""Sample looper with record, play and overdub."""

from __future__ import annotations

import enum
from typing import Optional, Sequence

from signalcrate.module import (
    DEFAULT_SAMPLE_RATE,
    FRAMES_PER_BUFFER,
    KEY_ENTER,
    KEY_ESCAPE,
    Key,
    Module,
    Smoother,
    _key_code,
    _scan_float,
    clamp,
    parse_create_arg,
)

_ULONG = 2 ** 64
_FADE_SAMPLES = 32
_MIN_SPEED = 0.1
_MAX_SPEED = 4.0
_TRIGGERS = ("record", "play", "overdub", "stop")


class LooperState(enum.Enum):
    """Transport state of the looper."""

    IDLE = 0
    RECORDING = 1
    PLAYING = 2
    OVERDUBBING = 3
    STOPPED = 4


class Looper(Module):
    """Records audio into a fixed buffer and plays it back over a loop range."""

    type_name = "looper"

    def __init__(self, args: Optional[str] = "", sample_rate: float = DEFAULT_SAMPLE_RATE) -> None:
        super().__init__(sample_rate)
        loop_length = parse_create_arg(args, "length", 10.0)
        self.playback_speed = parse_create_arg(args, "speed", 1.0)
        self.amp = parse_create_arg(args, "amp", 1.0)
        self.buffer_len = int(sample_rate * loop_length)
        if self.buffer_len < 1:
            raise ValueError(f"[looper] loop length too short: {loop_length}")
        self.buffer = [0.0] * self.buffer_len
        self.read_pos = 0.0
        self.write_pos = 0
        self.loop_start = 0
        self.loop_end = self.buffer_len
        self.looper_state = LooperState.IDLE
        self._smooth_speed = Smoother(0.75)
        self._smooth_amp = Smoother(0.75)
        self.display_playback_speed = 0.0
        self.display_amp = 0.0
        self.output = [0.0] * FRAMES_PER_BUFFER
        self._clamp()

    def _clamp(self) -> None:
        size = self.buffer_len
        # Loop points are unsigned: stepping below zero wraps to a huge value.
        self.loop_start %= _ULONG
        self.loop_end %= _ULONG
        if self.loop_start > size - 1:
            self.loop_start = size - 1
        if self.loop_end > size:
            self.loop_end = size
        if self.loop_end < self.loop_start:
            self.loop_end = self.loop_start + 1
        self.playback_speed = clamp(self.playback_speed, _MIN_SPEED, _MAX_SPEED)
        self.amp = clamp(self.amp, 0.0, 1.0)

    def _seconds_to_samples(self, seconds: float) -> int:
        return int(seconds * self.sample_rate)

    def _read(self, position: float) -> float:
        size = self.buffer_len
        i1 = int(position) % size
        i2 = (i1 + 1) % size
        frac = position - i1
        return (1.0 - frac) * self.buffer[i1] + frac * self.buffer[i2]

    def process(self, block: Sequence[float]) -> list[float]:
        with self._lock:
            read_pos = self.read_pos
            loop_start = self.loop_start
            loop_end = self.loop_end
            speed = self._smooth_speed.step(self.playback_speed)
            amp = self._smooth_amp.step(self.amp)
            state = self.looper_state

        for param, norm in self._modulations():
            if param == "speed":
                speed = self.playback_speed + norm * (_MAX_SPEED - self.playback_speed)
            elif param == "amp":
                amp = self.amp + norm * (1.0 - self.amp)

        self.display_playback_speed = speed
        self.display_amp = amp

        size = self.buffer_len
        out = []
        for sample in block:
            if state is LooperState.RECORDING:
                self.buffer[self.write_pos % size] = sample
                value = sample
                self.write_pos += 1
                if self.write_pos >= loop_end:
                    self.write_pos = loop_start
            elif state is LooperState.PLAYING:
                value = self._read(read_pos)
                if read_pos < loop_start + _FADE_SAMPLES:
                    value *= clamp((read_pos - loop_start) / _FADE_SAMPLES, 0.0, 1.0)
                read_pos += speed
                if read_pos >= loop_end:
                    read_pos = loop_start
            elif state is LooperState.OVERDUBBING:
                self.buffer[self.write_pos % size] += sample
                self.write_pos += 1
                value = self._read(read_pos)
                read_pos += speed
                if read_pos >= loop_end:
                    read_pos = loop_start
            else:
                value = 0.0
            out.append(value * amp)

        with self._lock:
            self.read_pos = read_pos
        self.output = out
        return out

    def status_lines(self) -> list[str]:
        with self._lock:
            state = self.looper_state
            speed = self.display_playback_speed
            amp = self.display_amp
            rate = self.sample_rate
            start_sec = self.loop_start / rate
            end_sec = self.loop_end / rate
            position = self.write_pos if state is LooperState.RECORDING else self.read_pos
            pos_sec = clamp(position / rate, start_sec, end_sec)
        return [
            f"[Looper:{self.name}] State: {state.name} | Speed: {speed:.2f}x",
            f"         Loop Range: [{start_sec:.2f} -> {end_sec:.2f}] sec",
            f"         Position: {pos_sec:.2f} sec | Amp: {amp:.2f}",
            "Keys: -/= (start pt), _/+ (end pt), [/] (speed)",
            "State: r(rec), p(play), o(odub), s(stop)",
            "Cmd Mode: :1=start, :2=end, :3=speed, :4=amp",
        ]

    def _run_looper_command(self) -> None:
        text = self._command.buffer
        letter = text[:1]
        value = _scan_float(text[1:]) or 0.0
        if letter == "1":
            self.loop_start = self._seconds_to_samples(value)
        elif letter == "2":
            self.loop_end = self._seconds_to_samples(value)
        elif letter == "3":
            self.playback_speed = value
        elif letter == "4":
            self.amp = value

    def _realtime(self, char: str) -> bool:
        step = self._seconds_to_samples(0.1)
        if char == "=":
            self.loop_start += step
        elif char == "-":
            self.loop_start -= step
        elif char == "+":
            self.loop_end += step
        elif char == "_":
            self.loop_end -= step
        elif char == "]":
            self.playback_speed += 0.05
        elif char == "[":
            self.playback_speed -= 0.05
        elif char == "}":
            self.amp += 0.01
        elif char == "{":
            self.amp -= 0.01
        elif char == ":":
            self._command.start()
        elif char == "r":
            self.looper_state = LooperState.RECORDING
        elif char == "p":
            self.looper_state = LooperState.PLAYING
        elif char == "o":
            self.looper_state = LooperState.OVERDUBBING
        elif char == "s":
            self.looper_state = LooperState.STOPPED
        else:
            return False
        return True

    def handle_key(self, key: Key) -> bool:
        code = _key_code(key)
        with self._lock:
            command = self._command
            if command.active:
                if code in (KEY_ENTER, ord("\r")):
                    self._run_looper_command()
                    command.active = False
                    command.buffer = ""
                    self._clamp()
                    handled = True
                elif code == KEY_ESCAPE:
                    command.active = False
                    command.buffer = ""
                    handled = True
                elif len(command.buffer) < command.capacity:
                    command.buffer += chr(code % 256)
                    handled = True
                else:
                    handled = False
            else:
                handled = 0 <= code < 0x110000 and self._realtime(chr(code))
            if handled:
                self._clamp()
        return handled

    def set_param(self, param: str, value: float) -> None:
        with self._lock:
            if param == "speed":
                norm = clamp(value, 0.0, 1.0)
                self.playback_speed = _MIN_SPEED * (_MAX_SPEED / _MIN_SPEED) ** norm
            elif param == "amp":
                self.amp = value
            elif param == "start":
                self.loop_start = self._seconds_to_samples(value)
            elif param == "end":
                self.loop_end = self._seconds_to_samples(value)
            elif param in _TRIGGERS:
                if value > 0.5:
                    self.looper_state = {
                        "record": LooperState.RECORDING,
                        "play": LooperState.PLAYING,
                        "overdub": LooperState.OVERDUBBING,
                        "stop": LooperState.STOPPED,
                    }[param]
            else:
                raise ValueError(f"[looper] unknown parameter: {param}")
            self._clamp()