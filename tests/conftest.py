"""Shared pytest fixtures for unit and integration tests."""
import os
import struct
from io import BytesIO
from typing import AsyncGenerator

import httpx
import pytest
import pytest_asyncio
from fastapi import FastAPI
from PIL import Image

from image_optimizer.api.routes import health as health_router
from image_optimizer.api.routes import images as images_router
from image_optimizer.clients.codec import PillowCodec
from image_optimizer.services.optimizer import ImageOptimizer


def make_image(
    width: int,
    height: int,
    fmt: str = "JPEG",
    mode: str = "RGB",
    noise: bool = False,
    **save_kwargs,
) -> bytes:
    """Encode a generated image in memory.

    Noisy images compress badly, which makes size reductions predictable.
    """
    if noise:
        image = Image.frombytes("RGB", (width, height), os.urandom(width * height * 3))
        if mode != "RGB":
            image = image.convert(mode)
    else:
        colors = {"RGBA": (200, 80, 40, 128), "CMYK": (20, 160, 200, 10)}
        color = colors.get(mode, (200, 80, 40))
        image = Image.new(mode, (width, height), color)
    output = BytesIO()
    image.save(output, format=fmt, **save_kwargs)
    return output.getvalue()


def make_broken_png(width: int = 256, height: int = 256) -> bytes:
    """Noisy PNG whose second IDAT chunk has an invalid chunk type.

    Pillow opens it fine and only fails while reading pixel data.
    """
    data = make_image(width, height, fmt="PNG", noise=True)
    offset, idat_seen = 8, 0
    while offset < len(data):
        (length,) = struct.unpack(">I", data[offset : offset + 4])
        chunk_type = data[offset + 4 : offset + 8]
        if chunk_type == b"IDAT":
            idat_seen += 1
            if idat_seen == 2:
                return data[: offset + 4] + b"\x00\x01\x02\x03" + data[offset + 8 :]
        offset += 12 + length
    raise AssertionError("expected at least two IDAT chunks")


def open_image(data: bytes) -> Image.Image:
    image = Image.open(BytesIO(data))
    image.load()
    return image


@pytest.fixture
def codec() -> PillowCodec:
    return PillowCodec()


@pytest.fixture
def optimizer(codec) -> ImageOptimizer:
    return ImageOptimizer(codec)


@pytest_asyncio.fixture
async def test_app() -> FastAPI:
    """Create FastAPI test application with the production routers."""
    app = FastAPI(title="Test Image Optimizer")
    app.include_router(health_router.router)
    app.include_router(images_router.router)
    return app


@pytest_asyncio.fixture
async def test_client(test_app) -> AsyncGenerator[httpx.AsyncClient, None]:
    """Create test HTTP client."""
    transport = httpx.ASGITransport(app=test_app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
