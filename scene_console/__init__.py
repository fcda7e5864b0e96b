"""On-screen debug console for scene hosts.

The console core (scene_console.console) is host-agnostic; scene_console.app
is a pygame host that exercises it. Run ``python -m scene_console`` for the
demo.
"""
