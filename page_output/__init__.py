"""
Output side of the scanner: page enhancement and PDF assembly
"""

from .assembler import DocumentAssembler
from .enhancer import PageEnhancer

__all__ = ['DocumentAssembler', 'PageEnhancer']
