class Bounds:
    def __init__ (self, left, top, width, height):
        self.left = left
        self.top = top
        self.width = width
        self.height = height

    def __str__(self) -> str:
        return f"Bounds({self.left}, {self.top}, {self.width}, {self.height})"

    def __eq__(self, other) -> bool:
        if not isinstance(other, Bounds):
            return NotImplemented
        return (self.left, self.top, self.width, self.height) == (other.left, other.top, other.width, other.height)

    def center(self) -> tuple[float, float]:
        return (self.left + self.width / 2, self.top + self.height / 2)

    def right(self):
        return self.left + self.width

    def bottom(self):
        return self.top + self.height

    def isInside(self, other, checkCenterOnly=False) -> bool:
        """
        Check if the current Bounds object is completely inside another Bounds object.

        Parameters:
        - other (Bounds): The other Bounds object to compare against.

        Returns:
        - bool: True if the current Bounds object is completely inside the other Bounds object, False otherwise.
        """
        if checkCenterOnly:
            center = self.center()
            return Bounds(center[0], center[1], 0, 0).isInside(other)

        return self.left >= other.left and self.right() <= other.right() and self.top >= other.top and self.bottom() <= other.bottom()

    def shrink(self, fraction: float):
        """
        Remove `fraction` of the width from the left and right edges and of
        the height from the top and bottom edges.

        Offsets are floored, but for a positive fraction every side longer
        than 2 px loses at least 1 px per edge, so repeated shrinking keeps
        making the box smaller.

        Returns:
        - Bounds: the inner box, in the same coordinate space.
        """
        dx = _edge_offset(self.width, fraction)
        dy = _edge_offset(self.height, fraction)
        return Bounds(self.left + dx, self.top + dy, self.width - 2 * dx, self.height - 2 * dy)

    def area(self):
        """
        Calculate the area of the Bounds object.

        Returns:
        - int: The area of the Bounds object.
        """
        return self.width * self.height


def _edge_offset(size, fraction):
    if fraction <= 0 or size <= 2:
        return 0
    return max(1, int(size * fraction))
