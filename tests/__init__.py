"""Test package for the scene console.

Core modules (console, timers, signals, config, numpad) are tested with fake
clocks and fake displays. The pygame host tests run headlessly using the SDL
dummy video and audio drivers. Run ``pytest`` from the project root.
"""
