"""
toastline - Notification lifecycle and eviction engine

This package presents transient notifications ("toasts") raised by the
compliance platform under strict resource bounds: a capacity-limited active
set with oldest-first eviction, per-notification auto-close timers with
pause/resume, accessibility announcements and an optional bounded history.

Main modules:
- notifications: engine, factory, active set, scheduler, announcer, persistence
- core: configuration value object and environment settings
- ui: HTTP API for remote callers and front-ends
- cli: toastctl operational CLI
"""

__version__ = "0.3.0"
__author__ = "Angkor Compliance Team"


__all__ = ["__version__", "__author__"]
