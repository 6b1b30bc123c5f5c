"""Pluggy hook specifications for performkit lifecycle events."""

from __future__ import annotations

from typing import Any

import pluggy

hookspec = pluggy.HookspecMarker("performkit")


class PerformkitHookSpec:
    """Hook specifications for the performkit plugin system."""

    @hookspec
    def service_settled(
        self,
        service: str,
        state: str,
        errors: dict[str, Any],
    ) -> None:
        """Called once per service, after its own callbacks have run."""
