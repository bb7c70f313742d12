import pytest
import sys
from pathlib import Path

import fitz
import numpy as np
from PIL import Image

# Add src to sys.path so we can import page_studio
SRC_PATH = Path(__file__).resolve().parent.parent / "src"
if SRC_PATH.as_posix() not in sys.path:
    sys.path.insert(0, SRC_PATH.as_posix())


def make_pdf_bytes(sizes=((200, 300), (300, 200)), rotations=None) -> bytes:
    """Build a small PDF: one page per size, each with a red block and a label."""
    doc = fitz.open()
    for i, (width, height) in enumerate(sizes):
        page = doc.new_page(width=width, height=height)
        page.draw_rect(fitz.Rect(10, 10, 90, 60), color=(1, 0, 0), fill=(1, 0, 0))
        page.insert_text((20, height - 30), f"Page {i + 1}", fontsize=14)
        if rotations:
            page.set_rotation(rotations[i])
    data = doc.tobytes()
    doc.close()
    return data


# Common test fixtures
@pytest.fixture
def noise_raster():
    """Seeded random RGB raster (400x300) with lots of distinct colors."""
    rng = np.random.default_rng(1234)
    pixels = rng.integers(0, 256, size=(300, 400, 3), dtype=np.uint8)
    return Image.fromarray(pixels, "RGB")


@pytest.fixture
def pdf_bytes():
    """Two-page PDF: 200x300 pt portrait then 300x200 pt landscape."""
    return make_pdf_bytes()


@pytest.fixture
def pdf_path(tmp_path: Path, pdf_bytes: bytes):
    path = tmp_path / "source.pdf"
    path.write_bytes(pdf_bytes)
    return path


@pytest.fixture
def pdf_factory():
    """make_pdf_bytes(sizes, rotations) for tests that need custom pages."""
    return make_pdf_bytes
