import io

import pytest
from PIL import Image

from core import qr

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"


def test_encode_png_produces_square_image_of_requested_width():
    png = qr.encode_png("https://example.com/verify/abc")

    assert png.startswith(PNG_SIGNATURE)
    with Image.open(io.BytesIO(png)) as img:
        assert img.size == (qr.DEFAULT_WIDTH, qr.DEFAULT_WIDTH)


def test_encode_png_honours_custom_width():
    png = qr.encode_png("hello", width=120)

    with Image.open(io.BytesIO(png)) as img:
        assert img.size == (120, 120)


def test_data_url_wraps_png_bytes():
    url = qr.encode_data_url("https://example.com/verify/abc")

    assert url.startswith("data:image/png;base64,")
    assert qr.decode_data_url(url).startswith(PNG_SIGNATURE)


@pytest.mark.parametrize("payload", ["", "   ", None])
def test_empty_payload_is_rejected(payload):
    with pytest.raises(qr.QRCodeError):
        qr.encode_png(payload)


def test_decode_rejects_non_png_data_url():
    with pytest.raises(qr.QRCodeError):
        qr.decode_data_url("data:image/jpeg;base64,AAAA")
