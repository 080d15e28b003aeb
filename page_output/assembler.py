"""
Multi-page PDF assembly
"""

import io
from typing import Iterable, Tuple, Union

from PIL import Image


class DocumentAssembler:
    """
    Places each page image centred on a white page of fixed size and writes
    all pages, in the given order, into one PDF.
    """

    def __init__(self, page_size: Tuple[int, int] = (2480, 3508), resolution: float = 300.0):
        """
        Args:
            page_size: Page size in pixels (2480x3508 is A4 at 300 DPI)
            resolution: DPI written into the PDF, sets the physical page size
        """
        self.page_size = page_size
        self.resolution = resolution

    def compose_page(self, page: Union[bytes, Image.Image]) -> Image.Image:
        """Centre one (encoded or PIL) image on a blank page."""
        if isinstance(page, (bytes, bytearray)):
            page = Image.open(io.BytesIO(page))
            page.load()

        page = page.convert("RGB")
        if page.width > self.page_size[0] or page.height > self.page_size[1]:
            page.thumbnail(self.page_size)

        canvas = Image.new("RGB", self.page_size, (255, 255, 255))
        x = (self.page_size[0] - page.width) // 2
        y = (self.page_size[1] - page.height) // 2
        canvas.paste(page, (x, y))
        return canvas

    def assemble(self, pages: Iterable[Union[bytes, Image.Image]]) -> bytes:
        """
        Returns:
            PDF document bytes

        Raises:
            ValueError: If there are no pages
        """
        composed = [self.compose_page(page) for page in pages]
        if not composed:
            raise ValueError("No pages to assemble")

        buffer = io.BytesIO()
        composed[0].save(
            buffer,
            format="PDF",
            save_all=True,
            append_images=composed[1:],
            resolution=self.resolution
        )
        return buffer.getvalue()
