"""Patch parsing and the block-by-block processing graph."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Optional, Sequence, Union

from signalcrate.loader import load_module
from signalcrate.module import DEFAULT_SAMPLE_RATE, FRAMES_PER_BUFFER, Module

MAX_MODULES = 8192
MAX_INPUTS = 4096
MAX_CONTROL_INPUTS = 4096

_MODTYPE_RE = re.compile(r"[^ (]+")
_ARGS_RE = re.compile(r"[^)]+")
_PAREN_ALIAS_RE = re.compile(r"\)\s*as\s*(\S+)")
_ALIAS_RE = re.compile(r"\s*as\s*(\S+)")
_LITERAL_RE = re.compile(
    r"[+-]?(?:(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?|inf(?:inity)?|nan)",
    re.IGNORECASE,
)


@dataclass
class PatchLine:
    """One declared module: its type, alias, creation arguments and input list."""

    modtype: str
    alias: str
    create_args: str = ""
    input_str: str = ""


def _parse_call(line: str) -> tuple[str, str, str]:
    """Split ``type(args) as alias`` into its parts, stopping where the form breaks."""
    match = _MODTYPE_RE.match(line)
    if match is None:
        return "", "", ""
    modtype = match.group(0)
    rest = line[match.end():]
    if not rest.startswith("("):
        return modtype, "", ""
    rest = rest[1:]
    match = _ARGS_RE.match(rest)
    if match is None:
        return modtype, "", ""
    all_args = match.group(0)
    alias_match = _PAREN_ALIAS_RE.match(rest[match.end():])
    return modtype, all_args, alias_match.group(1) if alias_match else ""


def parse_patch_line(line: str, index: int) -> PatchLine:
    """Parse one patch line; ``index`` numbers the default alias of a bare type."""
    if "(" in line:
        modtype, all_args, alias = _parse_call(line)
        start = all_args.find("[")
        end = all_args.find("]")
        if start >= 0 and end > start:
            create_args = all_args[start + 1:end]
            input_str = all_args[end + 1:].lstrip(", ")
        else:
            create_args, input_str = "", all_args
        return PatchLine(modtype, alias, create_args, input_str)

    tokens = line.split(maxsplit=1)
    modtype = tokens[0] if tokens else ""
    if "as" in line:
        rest = tokens[1] if len(tokens) > 1 else ""
        match = _ALIAS_RE.match(" " + rest)
        return PatchLine(modtype, match.group(1) if match else "")
    return PatchLine(modtype, f"{modtype}{index}")


ControlSource = Union[Module, list]


@dataclass
class _Node:
    module: Module
    audio_sources: list[Module] = field(default_factory=list)
    control_sources: list[tuple[str, ControlSource]] = field(default_factory=list)

    def bind_controls(self) -> None:
        self.module.control_inputs = [
            (param, source.control_output if isinstance(source, Module) else source)
            for param, source in self.control_sources
        ]

    def bind_audio(self) -> None:
        self.module.inputs = [src.output for src in self.audio_sources if src.output is not None]


def _fit(buffer: Sequence[float], frames: int) -> list[float]:
    values = list(buffer[:frames])
    return values + [0.0] * (frames - len(values))


def _literal(text: str) -> Optional[float]:
    if _LITERAL_RE.fullmatch(text) is None:
        return None
    return float(text)


class Engine:
    """Holds the modules of a patch and runs them one block at a time."""

    def __init__(self, sample_rate: float = DEFAULT_SAMPLE_RATE) -> None:
        self.sample_rate = sample_rate
        self.ui_enabled = True
        self._nodes: list[_Node] = []
        self._patch_lines: list[PatchLine] = []

    @property
    def modules(self) -> list[Module]:
        return [node.module for node in self._nodes]

    def _node(self, name: str) -> Optional[_Node]:
        return next((node for node in self._nodes if node.module.name == name), None)

    def find(self, name: str) -> Optional[Module]:
        """Return the first module with alias ``name``, or None."""
        node = self._node(name)
        return node.module if node else None

    def load_patch(self, text: str) -> None:
        """Create the modules a patch declares, then wire their inputs."""
        self.ui_enabled = "no_ui" not in text

        for raw in re.split(r"[\r\n]+", text):
            line = raw.strip()
            if not line or line.startswith("#") or line.startswith("//"):
                continue
            if line[:5].lower() == "no_ui":
                continue
            self._add(parse_patch_line(line, len(self._nodes)))

        for patch_line in self._patch_lines:
            node = self._node(patch_line.alias)
            if node is not None:
                self._connect(node, patch_line.input_str)

    def _add(self, patch_line: PatchLine) -> None:
        if len(self._nodes) >= MAX_MODULES:
            raise ValueError(f"too many modules: at most {MAX_MODULES}")
        module = load_module(patch_line.modtype, self.sample_rate, patch_line.create_args)
        module.name = patch_line.alias
        self._nodes.append(_Node(module))
        self._patch_lines.append(patch_line)

    def _connect(self, node: _Node, input_str: str) -> None:
        audio: list[str] = []
        controls: list[tuple[str, str]] = []
        for token in input_str.split(","):
            item = token.strip()
            if not item:
                continue
            param, sep, source = item.partition("=")
            if sep:
                controls.append((param.strip(), source.strip()))
            else:
                audio.append(item)

        node.audio_sources = []
        node.control_sources = []
        for name in audio[:MAX_INPUTS]:
            source = self.find(name)
            if source is None or source.output is None:
                raise ValueError(f"unknown input module {name!r}")
            node.audio_sources.append(source)

        for param, name in controls[:MAX_CONTROL_INPUTS]:
            source = self.find(name)
            if source is not None and source.control_output is not None:
                node.control_sources.append((param, source))
                continue
            literal = _literal(name)
            if literal is None:
                raise ValueError(f"invalid control source {name!r}")
            node.control_sources.append((param, [literal] * FRAMES_PER_BUFFER))
        node.bind_controls()
        node.bind_audio()

    def process(self, block: Sequence[float]) -> list[float]:
        """Run every module over one block of input and return the patch output."""
        frames = len(block)

        for node in self._nodes:
            node.bind_controls()
            node.bind_audio()
            node.module.process_control()

        for node in self._nodes:
            node.bind_controls()
            node.bind_audio()
            module = node.module
            if module.type_name == "input":
                module.process(list(block))
                continue
            sources = [_fit(buffer, frames) for buffer in module.inputs]
            if sources:
                count = len(sources)
                mixed = [sum(column) / count for column in zip(*sources)]
            else:
                mixed = [0.0] * frames
            module.process(mixed)

        if not self._nodes:
            return [0.0] * frames
        target = self.find("out") or self._nodes[-1].module
        if target.output is None:
            return [0.0] * frames
        return _fit(target.output, frames)

    def close(self) -> None:
        """Close every module and forget the patch."""
        for node in self._nodes:
            node.module.close()
        self._nodes.clear()
        self._patch_lines.clear()