# =============================================================================
# 🧠 QR-Code Generator – QRCoder
# -----------------------------------------------------------------------------
# Erzeugt das PNG für einen QR-Code. Kodiert wird immer die öffentliche
# Auflösungs-URL {APP_BASE_URL}/qr/{id}, nie der Inhalt selbst – nur so
# landet jeder Scan in der Statistik.
# =============================================================================

from __future__ import annotations
from typing import Optional
from io import BytesIO
import logging
import qrcode
import qrcode.image.styledpil
import qrcode.image.styles.moduledrawers as mod
import qrcode.image.styles.colormasks as mask
from qrcode.constants import ERROR_CORRECT_M
from PIL import Image, ImageColor, ImageDraw, ImageFont, ImageOps

logger = logging.getLogger("qrcoder.qr_image")

MODULE_DRAWERS = {
    "square": mod.SquareModuleDrawer,
    "rounded": mod.RoundedModuleDrawer,
    "dots": mod.CircleModuleDrawer,
}


def public_qr_url(base_url: str, qr_id: str) -> str:
    return f"{base_url.rstrip('/')}/qr/{qr_id}"


def generate_qr_png(
    payload: str,
    size: int = 600,
    fg: str = "#0D2A78",
    bg: str = "#FFFFFF",
    module_style: str = "square",
    frame_text: Optional[str] = None,
) -> bytes:
    """
    Generiert einen QR-Code als PNG und gibt die Bytes zurück.
    Optional mit Beschriftung unter dem Code (z. B. dem QR-Namen).
    """

    # === 1️⃣ QR-Code Basis ===
    qr = qrcode.QRCode(
        version=None,
        error_correction=ERROR_CORRECT_M,
        box_size=10,
        border=4,
    )
    qr.add_data(payload)
    qr.make(fit=True)

    # === 2️⃣ Stil & Farben ===
    module_drawer = MODULE_DRAWERS.get(module_style, mod.SquareModuleDrawer)()
    color_mask = mask.SolidFillColorMask(
        front_color=ImageColor.getrgb(fg),
        back_color=ImageColor.getrgb(bg),
    )
    img = qr.make_image(
        image_factory=qrcode.image.styledpil.StyledPilImage,
        module_drawer=module_drawer,
        color_mask=color_mask,
    ).convert("RGBA")
    img = img.resize((size, size), Image.Resampling.LANCZOS)

    # === 3️⃣ Beschriftung unten ===
    if frame_text:
        framed = Image.new("RGBA", (img.width, img.height + 60), bg)
        framed.paste(img, (0, 0))
        draw = ImageDraw.Draw(framed)
        font = ImageFont.load_default()
        text_w = draw.textlength(frame_text, font=font)
        draw.text(((img.width - text_w) // 2, img.height + 20), frame_text, fill=fg, font=font)
        img = framed

    img = ImageOps.expand(img, border=8, fill=bg)

    buffer = BytesIO()
    img.save(buffer, format="PNG")
    logger.debug("🖼️ QR-PNG erzeugt (%d Bytes) für %s", buffer.tell(), payload)
    return buffer.getvalue()
