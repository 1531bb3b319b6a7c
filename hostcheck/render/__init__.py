"""hostcheck.render registry."""

from __future__ import annotations

from hostcheck.render.detailed import DetailedRenderer
from hostcheck.render.json import JsonRenderer
from hostcheck.render.text import TextRenderer

_RENDERERS = {
    "text": TextRenderer(),
    "detailed": DetailedRenderer(),
    "json": JsonRenderer(),
}

RENDERER_NAMES = tuple(_RENDERERS)


def get_renderer(name: str):
    if name not in _RENDERERS:
        raise ValueError(f"unknown renderer: {name}")
    return _RENDERERS[name]
