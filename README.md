# signalcrate

A small modular synthesis engine in pure Python. Audio modules (amplitude and
frequency modulation, delay, reverb, looper, input gain) and control modules
(ASR envelope, LFO, envelope follower, random fluctuation, CV processing and
monitoring) are wired together by a plain-text patch and run one block of
samples at a time. There are no third-party dependencies.

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Patches

A patch has one module per line:

```
# comments start with '#' or '//'
input as in
c_lfo([freq=2.0]) as l1
amp_mod([freq=5], in, depth=l1) as out
```

- `type(...) as alias` declares a module. Creation arguments go in square
  brackets as `key=number` pairs; what follows the brackets is the input list.
- `type as alias` declares a module with default settings and no inputs.
- A bare `type` gets the alias `type<N>`, where N is the number of modules
  declared before it.
- In the input list, a bare name is an audio input taken from that module's
  audio output. `param=source` routes a control module's output to a parameter;
  if `source` is not a control module but a number, a constant is used.
- Blank lines, `#` and `//` comments and lines starting with `no_ui` are
  skipped. If `no_ui` appears anywhere in the text, `Engine.ui_enabled` is set
  to `False`.

An unknown module type raises `signalcrate.loader.ModuleLoadError`; an unknown
audio input or an invalid control source raises `ValueError`.

## Running a patch

```python
from signalcrate.engine import Engine

engine = Engine(sample_rate=48000.0)
engine.load_patch("""
input as in
delay([time=250, mix=0.4], in) as out
""")

block = [0.0] * 256
output = engine.process(block)
engine.close()
```

Each call to `Engine.process(block)` first runs every module's
`process_control()`, then runs the audio modules in patch order. `input`
modules receive the block itself; every other module receives the mean of its
audio inputs (silence if it has none). The result is the output of the module
aliased `out`, or of the last module in the patch if there is none.
`Engine.find(name)` returns a module by alias and `Engine.modules` lists them
all. `signalcrate.engine.parse_patch_line` parses a single line into a
`PatchLine`.

## Modules

Single modules can be created with `signalcrate.loader.load_module(name,
sample_rate, args)`; `signalcrate.loader.available_modules()` lists the types.

| Type | Class | Creation args | Control parameters |
|------|-------|---------------|--------------------|
| `input` | `Input` | `gain` | – |
| `amp_mod` | `AmpMod` | `freq`, `car_amp`, `depth` | `mod_freq`, `car_amp`, `depth` |
| `fm_mod` | `FMMod` | `mod_freq`, `idx` | `mod_freq`, `idx` |
| `delay` | `Delay` | `time`, `mix`, `fb` | `time`, `mix`, `fb` |
| `freeverb` | `Freeverb` | `fb`, `damp`, `wet` | `fb`, `damp`, `wet` |
| `looper` | `Looper` | `length`, `speed`, `amp` | `speed`, `amp` |
| `c_asr` | `CASR` | `att`, `rel`, `depth` | `trig`, `gate`, `cycle`, `att`, `rel`, `depth` |
| `c_lfo` | `LFO` | `freq`, `amp`, `depth` | `freq`, `amp`, `depth` |
| `c_env_fol` | `EnvelopeFollower` | `dec`, `sens`, `depth` | `dec`, `sens`, `depth` |
| `c_fluct` | `Fluct` | `rate`, `depth`, `mode` (`noise` or `walk`) | `rate`, `depth` |
| `c_cv_proc` | `CVProc` | `k`, `m`, `offset` | `k`, `m`, `offset` |
| `c_cv_monitor` | `CVMonitor` | `att`, `offset` | `att`, `offset` |

Notes:

- `c_env_fol` follows the level of its first audio input and raises
  `NoAudioInputError` if it has none.
- `c_cv_proc` computes `va*k + vb*(1-m) + vc*m + offset` from its first three
  control inputs; `c_cv_monitor` scales and offsets its first control input.
- `c_fluct` accepts a `random.Random` through its `rng` argument for
  reproducible output.

Every module shares the interface of `signalcrate.module.Module`:

- `set_param(param, value)` changes a parameter, mostly from a 0–1 range
  (for example `looper` also takes `start`, `end`, `record`, `play`,
  `overdub` and `stop`; `c_lfo` takes `wave` to step the waveform). Most
  modules raise `ValueError` for an unknown parameter.
- `handle_key(key)` edits parameters from single keys, and `:` opens a small
  command line (`:1 0.5` then Enter sets the first parameter); it returns
  whether the key was used.
- `status_lines()` returns the module's state as lines of text.
- `close()` detaches the module's inputs.

## What it does not do

The package processes lists of samples that you supply. It does not open
audio devices or stream sound, it has no interactive terminal screen (only the
text from `status_lines()`), no network control server, and no command-line
program.