"""Test doubles: scripted HTTP session and generated logo images."""

import io

from PIL import Image, ImageDraw


class FakeResponse:
    def __init__(self, status_code, location=None):
        self.status_code = status_code
        self.headers = {"Location": location} if location else {}

    def close(self):
        pass


class FakeSession:
    """routes: url -> (status, location) | Exception. Unknown URLs answer 200."""

    def __init__(self, routes):
        self.routes = routes
        self.calls = []

    def get(self, url, **kwargs):
        self.calls.append(url)
        route = self.routes.get(url, (200, None))
        if isinstance(route, Exception):
            raise route
        return FakeResponse(*route)


def make_logo(size=(200, 100), box=(0, 102, 204), dot=(220, 40, 40)):
    img = Image.new("RGB", size, "white")
    d = ImageDraw.Draw(img)
    w, h = size
    d.rectangle([w * 0.10, h * 0.20, w * 0.45, h * 0.80], fill=box)
    d.ellipse([w * 0.55, h * 0.15, w * 0.90, h * 0.85], fill=dot)
    return img


def png_bytes(img, fmt="PNG"):
    buf = io.BytesIO()
    img.save(buf, format=fmt)
    return buf.getvalue()
