"""
QR image encoding helpers (qrcode + Pillow).

Outputs:
- encode_png(text)      -> PNG bytes
- encode_data_url(text) -> "data:image/png;base64,..."
"""

from __future__ import annotations

import base64
import io

import qrcode
from PIL import Image

DEFAULT_WIDTH = 300
DEFAULT_MARGIN = 2
DEFAULT_DARK = "#000000"
DEFAULT_LIGHT = "#FFFFFF"

DATA_URL_PREFIX = "data:image/png;base64,"


class QRCodeError(RuntimeError):
    pass


def encode_png(
    text: str,
    *,
    width: int = DEFAULT_WIDTH,
    margin: int = DEFAULT_MARGIN,
    dark: str = DEFAULT_DARK,
    light: str = DEFAULT_LIGHT,
) -> bytes:
    """
    Encode `text` into a square PNG of `width` pixels.

    `margin` is the quiet zone in modules, as in most QR libraries.
    """
    payload = (text or "").strip()
    if not payload:
        raise QRCodeError("QR payload is empty.")
    if width <= 0:
        raise QRCodeError("QR width must be positive.")

    qr = qrcode.QRCode(
        version=None,
        error_correction=qrcode.constants.ERROR_CORRECT_M,
        box_size=10,
        border=max(0, margin),
    )
    qr.add_data(payload)
    qr.make(fit=True)

    img = qr.make_image(fill_color=dark, back_color=light).resize(
        (width, width),
        Image.Resampling.NEAREST,
    )

    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


def encode_data_url(text: str, **options) -> str:
    png = encode_png(text, **options)
    return DATA_URL_PREFIX + base64.b64encode(png).decode("ascii")


def decode_data_url(data_url: str) -> bytes:
    """
    Inverse of `encode_data_url` for stored images (download endpoint).
    """
    raw = (data_url or "").strip()
    if not raw.startswith(DATA_URL_PREFIX):
        raise QRCodeError("Stored QR image is not a PNG data URL.")
    try:
        return base64.b64decode(raw[len(DATA_URL_PREFIX):], validate=True)
    except ValueError as exc:
        raise QRCodeError("Stored QR image is not valid base64.") from exc
