"""
QR Code Generation

Renders the public URL of a menu as a PNG (Pillow) or SVG (path image)
QR code with high error correction, so printed codes still scan when
partially covered by a logo or worn.

Usage:
    from digital_menu.services.qr import generate_qr_code, public_menu_url

    result = generate_qr_code(public_menu_url(base_url, "cafe-roma"), fmt="svg", size="large")
    result.content_type  # "image/svg+xml"
"""

import asyncio
import io
import re
from dataclasses import dataclass
from typing import Union

import qrcode
import qrcode.image.svg
from PIL import Image

QR_FORMATS = ("png", "svg")
QR_SIZES = ("small", "medium", "large")

CONTENT_TYPES = {"png": "image/png", "svg": "image/svg+xml"}

_SLUG_IN_URL = re.compile(r"/m/([^/?]+)")


@dataclass(frozen=True)
class QRSizeConfig:
    width: int
    margin: int


SIZE_CONFIG = {
    "small": QRSizeConfig(width=200, margin=2),
    "medium": QRSizeConfig(width=400, margin=3),
    "large": QRSizeConfig(width=800, margin=4),
}


@dataclass
class QRCodeResult:
    """Rendered QR code ready to send."""
    data: Union[bytes, str]
    content_type: str
    filename: str


def is_valid_format(fmt: str) -> bool:
    return fmt in QR_FORMATS


def is_valid_size(size: str) -> bool:
    return size in QR_SIZES


def public_menu_url(base_url: str, slug: str) -> str:
    """Guest-facing URL a QR code points at."""
    return f"{base_url.rstrip('/')}/m/{slug}"


def _build_matrix(url: str, margin: int) -> qrcode.QRCode:
    qr = qrcode.QRCode(
        error_correction=qrcode.constants.ERROR_CORRECT_H,
        border=margin,
    )
    qr.add_data(url)
    qr.make(fit=True)
    return qr


def _render_png(url: str, config: QRSizeConfig, dark: str, light: str) -> bytes:
    qr = _build_matrix(url, config.margin)
    modules = qr.modules_count + 2 * config.margin
    qr.box_size = max(1, config.width // modules)

    image = qr.make_image(fill_color=dark, back_color=light).get_image().convert("RGB")
    if image.size != (config.width, config.width):
        image = image.resize((config.width, config.width), Image.Resampling.NEAREST)

    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()


def _render_svg(url: str, config: QRSizeConfig, dark: str, light: str) -> str:
    qr = _build_matrix(url, config.margin)
    factory = type(
        "StyledSvgPathImage",
        (qrcode.image.svg.SvgPathImage,),
        {
            "QR_PATH_STYLE": {**qrcode.image.svg.SvgPathImage.QR_PATH_STYLE, "fill": dark},
            "background": light,
        },
    )
    image = qr.make_image(image_factory=factory)

    buffer = io.BytesIO()
    image.save(buffer)
    return buffer.getvalue().decode("utf-8")


def generate_qr_code(
    url: str,
    fmt: str = "png",
    size: str = "medium",
    dark_color: str = "#000000",
    light_color: str = "#ffffff",
) -> QRCodeResult:
    """
    Render a QR code for ``url``.

    Raises:
        ValueError: On an unknown format or size
    """
    if not is_valid_format(fmt):
        raise ValueError(f"Invalid QR format: {fmt}")
    if not is_valid_size(size):
        raise ValueError(f"Invalid QR size: {size}")

    config = SIZE_CONFIG[size]
    match = _SLUG_IN_URL.search(url)
    slug = match.group(1) if match else "menu"

    if fmt == "svg":
        data: Union[bytes, str] = _render_svg(url, config, dark_color, light_color)
    else:
        data = _render_png(url, config, dark_color, light_color)

    return QRCodeResult(
        data=data,
        content_type=CONTENT_TYPES[fmt],
        filename=f"qr-{slug}-{size}.{fmt}",
    )


async def render_qr_code(url: str, fmt: str = "png", size: str = "medium") -> QRCodeResult:
    """``generate_qr_code`` off the event loop."""
    return await asyncio.to_thread(generate_qr_code, url, fmt, size)
