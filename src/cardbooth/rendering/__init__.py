"""Card and QR code rendering."""

from cardbooth.rendering.card import CardRenderer, RenderError, wrap_text
from cardbooth.rendering.qr import render_qr_png

__all__ = [
    "CardRenderer",
    "RenderError",
    "render_qr_png",
    "wrap_text",
]
