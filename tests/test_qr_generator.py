from io import BytesIO

from PIL import Image

from utils.qr_generator import generate_qr_png, public_qr_url


def test_qr_generator_returns_png_bytes():
    png = generate_qr_png(payload="https://qr.example.com/qr/abc", size=300)
    assert isinstance(png, bytes)
    img = Image.open(BytesIO(png))
    assert img.format == "PNG"
    assert img.size == (316, 316)


def test_frame_text_adds_space_below():
    img = Image.open(BytesIO(generate_qr_png("https://qr.example.com/qr/abc", size=300, frame_text="Chapter 1")))
    assert img.size[1] > img.size[0]


def test_public_qr_url():
    assert public_qr_url("https://qr.example.com/", "abc") == "https://qr.example.com/qr/abc"
