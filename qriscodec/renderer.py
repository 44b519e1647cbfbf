"""Render payload strings back into framed QR code images."""
from __future__ import annotations

import base64
import io

import qrcode
from PIL import Image, ImageDraw, ImageFont

LABEL_HEIGHT = 40
MARGIN = 40


def generate_qr_image(data: str, caption: str) -> Image.Image:
    """Draw ``data`` as a QR symbol above a caption strip."""

    qr = qrcode.QRCode(version=None, error_correction=qrcode.constants.ERROR_CORRECT_M, box_size=8, border=4)
    qr.add_data(data)
    qr.make(fit=True)

    qr_img = qr.make_image(fill_color="black", back_color="white").convert("RGB")
    width, height = qr_img.size

    canvas = Image.new("RGB", (width + MARGIN * 2, height + MARGIN * 2 + LABEL_HEIGHT), color="#FFFFFF")
    canvas.paste(qr_img, (MARGIN, MARGIN))

    draw = ImageDraw.Draw(canvas)
    font = ImageFont.load_default()
    text = caption[:40]
    left, top, right, bottom = draw.textbbox((0, 0), text, font=font)
    text_x = (canvas.width - (right - left)) // 2
    text_y = MARGIN + height + (LABEL_HEIGHT - (bottom - top)) // 2
    draw.text((text_x, text_y), text, fill="#111827", font=font)

    return canvas


def render_png_base64(payload: str, caption: str) -> str:
    """Render ``payload`` and return the PNG as a base64 string."""

    buffer = io.BytesIO()
    generate_qr_image(payload, caption).save(buffer, format="PNG")
    return base64.b64encode(buffer.getvalue()).decode("ascii")
