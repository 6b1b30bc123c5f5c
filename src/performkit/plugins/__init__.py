"""Lifecycle plugins — pluggy observers notified after every settlement."""

import pluggy

hookimpl = pluggy.HookimplMarker("performkit")

__all__ = ["hookimpl"]
