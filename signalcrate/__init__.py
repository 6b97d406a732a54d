"""Modular synthesis engine: patch parsing, a block processor and audio and control modules."""

__version__ = "0.1.0"