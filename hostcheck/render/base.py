"""
hostcheck.render.base
AUTHOR: carter-vin

Renderer interface
"""

from __future__ import annotations

from hostcheck.model import Verdict


class Renderer:
    name: str = "base"

    def render(self, verdict: Verdict) -> str:
        raise NotImplementedError
