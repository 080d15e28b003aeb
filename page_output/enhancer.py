"""
Page enhancement before embedding into the output document
"""

import io
from typing import Tuple

import cv2
import numpy as np
from PIL import Image, ImageFilter, ImageOps


class PageEnhancer:
    """
    Fits a page inside the output canvas, stretches its contrast and
    sharpens text. Colour is kept.
    """

    def __init__(self, page_size: Tuple[int, int] = (2480, 3508), jpeg_quality: int = 90):
        """
        Args:
            page_size: (width, height) the page is fitted inside, aspect ratio kept
            jpeg_quality: Quality of the encoded output
        """
        self.page_size = page_size
        self.jpeg_quality = jpeg_quality

    def enhance(self, image: np.ndarray) -> Image.Image:
        """
        Args:
            image: BGR or grayscale page

        Returns:
            Enhanced RGB (or L) PIL image
        """
        if image.ndim == 2:
            pil_image = Image.fromarray(image)
        else:
            pil_image = Image.fromarray(cv2.cvtColor(image, cv2.COLOR_BGR2RGB))

        pil_image = ImageOps.contain(pil_image, self.page_size)
        pil_image = ImageOps.autocontrast(pil_image, cutoff=1)
        return pil_image.filter(ImageFilter.UnsharpMask(radius=2, percent=80, threshold=3))

    def enhance_to_jpeg(self, image: np.ndarray) -> bytes:
        """Enhance and encode as JPEG bytes."""
        buffer = io.BytesIO()
        self.enhance(image).save(buffer, format="JPEG", quality=self.jpeg_quality)
        return buffer.getvalue()
