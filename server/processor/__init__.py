from typing import List, Tuple

from page_output import DocumentAssembler, PageEnhancer
from paper_scanner import DecodeError, ScanPipeline
from paper_scanner.preprocessor import decode_image


class NoPagesError(Exception):
    """None of the uploaded files could be turned into a page."""

    def __init__(self, message: str, details: List[str]):
        super().__init__(message)
        self.details = details


def process_scan(uploads: List[Tuple[str, bytes]], pipeline: ScanPipeline) -> Tuple[bytes, List[str]]:
    """
    Rectify every uploaded image and assemble the pages into one PDF.

    Undecodable files are reported in the debug info and skipped; the
    remaining pages keep their upload order.

    Returns:
        (pdf bytes, debug info lines)
    """
    debug_info = []

    # Decode first so the worker pool only gets valid images
    images = []
    for index, (filename, data) in enumerate(uploads):
        try:
            images.append((index, filename, decode_image(data)))
        except DecodeError as e:
            debug_info.append(f"Image {index + 1} ({filename}): {e}")

    if not images:
        raise NoPagesError("No decodable images", debug_info)

    results = pipeline.rectify_many([image for _, _, image in images])

    page_size = pipeline.config.destination_size
    enhancer = PageEnhancer(page_size)
    pages = []
    for (index, filename, _), result in zip(images, results):
        debug_info.extend(f"Image {index + 1}: {line}" for line in result.trace)
        pages.append(enhancer.enhance_to_jpeg(result.image))

    pdf = DocumentAssembler(page_size).assemble(pages)
    return pdf, debug_info
