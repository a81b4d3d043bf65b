"""Render guest credentials as QR code images."""

import io

import qrcode


def render_qr_png(data: str, box_size: int = 10, border: int = 4) -> bytes:
    """PNG bytes of a QR code holding ``data``."""
    qr = qrcode.QRCode(
        version=None,
        error_correction=qrcode.constants.ERROR_CORRECT_M,
        box_size=box_size,
        border=border,
    )
    qr.add_data(data)
    qr.make(fit=True)

    img = qr.make_image(fill_color="black", back_color="white")
    img_buffer = io.BytesIO()
    img.save(img_buffer, format='PNG')
    return img_buffer.getvalue()
