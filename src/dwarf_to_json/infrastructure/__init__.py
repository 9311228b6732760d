#!/usr/bin/env python3

"""Configuration and logging used around the conversion pipeline."""

from . import config, logging

__all__ = [
    "config",
    "logging",
]
