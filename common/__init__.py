from .bounds import Bounds
