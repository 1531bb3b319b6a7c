"""
hostcheck.render.json
AUTHOR: carter-vin

JSON renderer wrapper
"""

from __future__ import annotations

from hostcheck.model import verdict_to_json
from hostcheck.render.base import Renderer


class JsonRenderer(Renderer):
    name = "json"

    def render(self, verdict) -> str:
        return verdict_to_json(verdict)
