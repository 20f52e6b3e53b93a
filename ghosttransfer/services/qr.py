"""QR codes for share links: remote image URLs for the web UI, ASCII for the CLI."""

import io
from urllib.parse import quote

import qrcode

from ghosttransfer.config import settings


def qr_image_url(data: str, size: int | None = None) -> str:
    """URL of a ``size`` x ``size`` PNG from the external QR service."""
    size = size or settings.qr_size
    return f"{settings.qr_service_url}?size={size}x{size}&data={quote(data, safe='')}"


def qr_download_url(data: str) -> str:
    return qr_image_url(data, settings.qr_download_size)


def qr_ascii(data: str) -> str:
    """Render a QR code as text for terminal output."""
    qr = qrcode.QRCode(border=1)
    qr.add_data(data)
    qr.make(fit=True)
    out = io.StringIO()
    qr.print_ascii(out=out)
    return out.getvalue()
