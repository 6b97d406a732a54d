"""Base class and shared helpers for patchable signal modules."""

from __future__ import annotations

import math
import re
import threading
from functools import lru_cache
from typing import Callable, Iterator, Mapping, Optional, Sequence, Tuple, Union

FRAMES_PER_BUFFER = 256
SINE_TABLE_SIZE = 1024
DEFAULT_SAMPLE_RATE = 48000.0
TWO_PI = 2.0 * math.pi

KEY_ENTER = 10
KEY_ESCAPE = 27
KEY_DELETE = 127
KEY_BACKSPACE = 263

Key = Union[str, int]
CommandTarget = Union[str, Callable[[float], None]]

_FLOAT_RE = re.compile(
    r"\s*([+-]?(?:(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?|inf(?:inity)?|nan))",
    re.IGNORECASE,
)


def _scan_float(text: str) -> Optional[float]:
    """Read a leading float from ``text`` the way ``%f`` does, or return None."""
    match = _FLOAT_RE.match(text)
    if match is None:
        return None
    return float(match.group(1))


def _key_code(key: Key) -> int:
    if isinstance(key, str):
        if len(key) != 1:
            raise ValueError(f"expected a single character key, got {key!r}")
        return ord(key)
    return int(key)


def clamp(value: float, low: float, high: float) -> float:
    """Limit ``value`` to the range [low, high]."""
    if value < low:
        value = low
    if value > high:
        value = high
    return value


def parse_create_arg(args: Optional[str], key: str, default: float) -> float:
    """Return the number following the first ``key=`` in ``args``, else ``default``."""
    if not args:
        return default
    marker = f"{key}="
    position = args.find(marker)
    if position < 0:
        return default
    value = _scan_float(args[position + len(marker):])
    return default if value is None else value


@lru_cache(maxsize=None)
def sine_table() -> Tuple[float, ...]:
    """One period of a sine wave sampled at SINE_TABLE_SIZE points."""
    return tuple(math.sin(TWO_PI * i / SINE_TABLE_SIZE) for i in range(SINE_TABLE_SIZE))


class Smoother:
    """One-pole smoother that moves a value gradually toward a target."""

    def __init__(self, coefficient: float, value: float = 0.0) -> None:
        self.coefficient = coefficient
        self.value = value

    def step(self, target: float) -> float:
        self.value = target * (1.0 - self.coefficient) + self.value * self.coefficient
        return self.value


class CommandLine:
    """A small ':'-style command entry buffer driven one key at a time."""

    def __init__(self, capacity: int = 63) -> None:
        self.capacity = capacity
        self.active = False
        self.buffer = ""

    def start(self) -> None:
        self.active = True
        self.buffer = ""

    def feed(self, key: Key) -> bool:
        """Feed one key; return whether it was consumed."""
        code = _key_code(key)
        if not self.active:
            return False
        if code in (KEY_ENTER, KEY_ESCAPE):
            self.active = False
            return True
        if code in (KEY_BACKSPACE, KEY_DELETE) and self.buffer:
            self.buffer = self.buffer[:-1]
            return True
        if 32 <= code < 127 and len(self.buffer) < self.capacity:
            self.buffer += chr(code)
            return True
        return False

    def parse(self) -> Optional[Tuple[str, float]]:
        """Split the buffer into a command letter and a number, if it holds both."""
        if not self.buffer:
            return None
        value = _scan_float(self.buffer[1:])
        if value is None:
            return None
        return self.buffer[0], value


class Module:
    """A node in a patch: takes audio and control inputs, produces output."""

    type_name = "module"

    def __init__(self, sample_rate: float = DEFAULT_SAMPLE_RATE, name: Optional[str] = None) -> None:
        self.name = name or self.type_name
        self.sample_rate = sample_rate
        self.inputs: list[Sequence[float]] = []
        self.output: Optional[list[float]] = None
        self.control_inputs: list[Tuple[Optional[str], Sequence[float]]] = []
        self.control_output: Optional[list[float]] = None
        self.control_output_depth = 0.0
        self.closed = False
        self._lock = threading.Lock()
        self._command = CommandLine()

    def process(self, block: Sequence[float]) -> Optional[list[float]]:
        """Process one block of audio; modules without audio leave their output as is."""
        return self.output

    def process_control(self) -> None:
        """Update the control output for one block; nothing to do by default."""

    def status_lines(self) -> list[str]:
        return [f"[{self.type_name}:{self.name}]"]

    def handle_key(self, key: Key) -> bool:
        return False

    def set_param(self, param: str, value: float) -> None:
        raise ValueError(f"[{self.type_name}] unknown parameter: {param}")

    def close(self) -> None:
        with self._lock:
            self.inputs.clear()
            self.control_inputs.clear()
            self.closed = True

    def _clamp(self) -> None:
        """Bring parameters back into range; subclasses override."""

    def _modulations(self) -> Iterator[Tuple[str, float]]:
        """Yield (parameter, control value limited to [-1, 1]) for named control inputs."""
        for param, buffer in self.control_inputs:
            if param is None or not buffer:
                continue
            yield param, clamp(buffer[0], -1.0, 1.0)

    def _dispatch_key(
        self,
        key: Key,
        steps: Mapping[str, Tuple[str, float]],
        commands: Mapping[str, CommandTarget],
        actions: Optional[Mapping[str, Callable[[], None]]] = None,
    ) -> bool:
        code = _key_code(key)
        with self._lock:
            if self._command.active:
                handled = self._command.feed(code)
                if handled and code == KEY_ENTER:
                    self._run_command(commands)
            else:
                handled = self._realtime_key(code, steps, actions or {})
            if handled:
                self._clamp()
        return handled

    def _realtime_key(
        self,
        code: int,
        steps: Mapping[str, Tuple[str, float]],
        actions: Mapping[str, Callable[[], None]],
    ) -> bool:
        if not 0 <= code < 0x110000:
            return False
        char = chr(code)
        if char == ":":
            self._command.start()
            return True
        if char in steps:
            attribute, delta = steps[char]
            setattr(self, attribute, getattr(self, attribute) + delta)
            return True
        if char in actions:
            actions[char]()
            return True
        return False

    def _run_command(self, commands: Mapping[str, CommandTarget]) -> None:
        parsed = self._command.parse()
        if parsed is None:
            return
        letter, value = parsed
        target = commands.get(letter)
        if target is None:
            return
        if callable(target):
            target(value)
        else:
            setattr(self, target, value)