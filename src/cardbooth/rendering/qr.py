"""QR code rendering for answer links."""

import io

import qrcode
from PIL import Image


def render_qr_png(data: str, size_px: int = 480, border: int = 2) -> bytes:
    """Encode data as a square black-on-white QR code PNG.

    Args:
        data: Text to encode, typically the answer URL.
        size_px: Output edge length in pixels.
        border: Quiet zone width in modules.
    """
    qr = qrcode.QRCode(
        version=None,  # Auto-size
        error_correction=qrcode.constants.ERROR_CORRECT_M,
        box_size=10,
        border=border,
    )
    qr.add_data(data)
    qr.make(fit=True)

    qr_img = qr.make_image(fill_color="black", back_color="white")
    # Convert to PIL Image if needed
    if hasattr(qr_img, "get_image"):
        qr_image: Image.Image = qr_img.get_image()
    else:
        qr_image = qr_img  # type: ignore[assignment]

    qr_image = qr_image.convert("RGB").resize((size_px, size_px), Image.Resampling.NEAREST)

    buffer = io.BytesIO()
    qr_image.save(buffer, format="PNG")
    return buffer.getvalue()
