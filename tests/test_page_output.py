"""
Tests for page enhancement and PDF assembly
"""

import io
import re

import numpy as np
import pytest
from PIL import Image

from page_output import DocumentAssembler, PageEnhancer


def count_pdf_pages(pdf: bytes) -> int:
    return len(re.findall(rb"/Type\s*/Page(?!s)", pdf))


class TestPageEnhancer:
    """Tests for PageEnhancer"""

    def test_fit_inside_page(self):
        image = np.full((100, 200, 3), 128, dtype=np.uint8)
        enhanced = PageEnhancer((2480, 3508)).enhance(image)
        assert enhanced.size == (2480, 1240)
        assert enhanced.mode == "RGB"

    def test_grayscale_page(self):
        image = np.full((350, 248), 128, dtype=np.uint8)
        enhanced = PageEnhancer((248, 351)).enhance(image)
        assert enhanced.mode == "L"

    def test_contrast_stretched(self):
        ramp = np.tile(np.linspace(100, 150, 200).astype(np.uint8), (100, 1))
        image = np.dstack([ramp, ramp, ramp])
        enhanced = np.asarray(PageEnhancer((200, 100)).enhance(image))
        assert enhanced.min() < 50
        assert enhanced.max() > 200

    def test_colour_order(self):
        """BGR input becomes RGB output"""
        image = np.zeros((50, 50, 3), dtype=np.uint8)
        image[:, :25] = (255, 0, 0)
        image[:, 25:] = (0, 0, 255)
        enhanced = PageEnhancer((50, 50)).enhance(image)
        r, g, b = enhanced.getpixel((5, 25))
        assert b > 200 and r < 50

    def test_jpeg(self):
        image = np.full((100, 80, 3), 200, dtype=np.uint8)
        data = PageEnhancer((80, 100)).enhance_to_jpeg(image)
        assert data[:2] == b"\xff\xd8"
        assert Image.open(io.BytesIO(data)).size == (80, 100)


class TestDocumentAssembler:
    """Tests for DocumentAssembler"""

    def test_compose_centres_page(self):
        page = Image.new("RGB", (100, 50), (0, 0, 0))
        composed = DocumentAssembler((300, 400)).compose_page(page)

        assert composed.size == (300, 400)
        assert composed.getpixel((100, 175)) == (0, 0, 0)
        assert composed.getpixel((99, 175)) == (255, 255, 255)
        assert composed.getpixel((199, 224)) == (0, 0, 0)
        assert composed.getpixel((200, 225)) == (255, 255, 255)

    def test_compose_shrinks_large_page(self):
        page = Image.new("RGB", (600, 400), (0, 0, 0))
        composed = DocumentAssembler((300, 400)).compose_page(page)
        assert composed.size == (300, 400)
        assert composed.getpixel((150, 200)) == (0, 0, 0)
        assert composed.getpixel((150, 5)) == (255, 255, 255)

    def test_compose_from_bytes(self):
        buffer = io.BytesIO()
        Image.new("L", (40, 40), 0).save(buffer, format="PNG")
        composed = DocumentAssembler((100, 100)).compose_page(buffer.getvalue())
        assert composed.mode == "RGB"
        assert composed.getpixel((50, 50)) == (0, 0, 0)

    def test_assemble_pages(self):
        enhancer = PageEnhancer((124, 175))
        pages = [enhancer.enhance_to_jpeg(np.full((175, 124, 3), v, dtype=np.uint8)) for v in (50, 150, 250)]

        pdf = DocumentAssembler((124, 175)).assemble(pages)

        assert pdf.startswith(b"%PDF")
        assert count_pdf_pages(pdf) == 3

    def test_assemble_single_page(self):
        pdf = DocumentAssembler((124, 175)).assemble([Image.new("RGB", (124, 175), (255, 255, 255))])
        assert count_pdf_pages(pdf) == 1

    def test_assemble_nothing(self):
        with pytest.raises(ValueError):
            DocumentAssembler().assemble([])
