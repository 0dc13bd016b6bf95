import io

import qrcode
from qrcode.constants import ERROR_CORRECT_M


def generate_qr_code_png(data: str, box_size: int = 10, border: int = 4) -> bytes:
    """Render `data` (a public profile URL) as PNG bytes.

    The version is picked to fit the data; profile URLs are short, so medium
    error correction keeps the modules large enough to scan off a card.
    """
    qr = qrcode.QRCode(error_correction=ERROR_CORRECT_M, box_size=box_size, border=border)
    qr.add_data(data)
    qr.make(fit=True)

    buffer = io.BytesIO()
    qr.make_image(fill_color="black", back_color="white").save(buffer, format="PNG")
    return buffer.getvalue()
