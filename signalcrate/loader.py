"""Look up module types by name and create configured instances."""

from __future__ import annotations

from typing import Callable, Dict, Optional

from signalcrate.module import Module
from signalcrate.modules.amp_mod import AmpMod
from signalcrate.modules.c_asr import CASR
from signalcrate.modules.c_cv_monitor import CVMonitor
from signalcrate.modules.c_cv_proc import CVProc
from signalcrate.modules.c_env_fol import EnvelopeFollower
from signalcrate.modules.c_fluct import Fluct
from signalcrate.modules.c_lfo import LFO
from signalcrate.modules.delay import Delay
from signalcrate.modules.fm_mod import FMMod
from signalcrate.modules.freeverb import Freeverb
from signalcrate.modules.input import Input
from signalcrate.modules.looper import Looper

_REGISTRY: Dict[str, Callable[[Optional[str], float], Module]] = {
    "amp_mod": AmpMod,
    "c_asr": CASR,
    "c_cv_monitor": CVMonitor,
    "c_cv_proc": CVProc,
    "c_env_fol": EnvelopeFollower,
    "c_fluct": Fluct,
    "c_lfo": LFO,
    "delay": Delay,
    "fm_mod": FMMod,
    "freeverb": Freeverb,
    "input": Input,
    "looper": Looper,
}


class ModuleLoadError(Exception):
    """Raised when a module type is unknown or cannot be created."""


def available_modules() -> list[str]:
    """Names of all module types that can be loaded, sorted."""
    return sorted(_REGISTRY)


def load_module(name: str, sample_rate: float, args: Optional[str]) -> Module:
    """Create a module of type ``name`` configured by the creation ``args``."""
    try:
        factory = _REGISTRY[name]
    except KeyError:
        raise ModuleLoadError(f"failed to load module {name!r}: unknown module type") from None
    try:
        return factory(args, sample_rate)
    except ValueError as error:
        raise ModuleLoadError(f"failed to load module {name!r}: {error}") from error