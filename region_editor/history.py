"""
Undo/redo stack of edited images (Qt-free).

Every applied transform pushes a new image.  Pushing after an undo drops the
redo branch; the oldest entries fall off once ``max_size`` is exceeded.
"""

from PIL import Image

from region_editor.config import MAX_HISTORY


class EditHistory:
    def __init__(self, original: Image.Image, max_size: int = MAX_HISTORY):
        self._stack: list[Image.Image] = [original]
        self._index = 0
        self._max_size = max(1, max_size)

    @property
    def current(self) -> Image.Image:
        return self._stack[self._index]

    def push(self, img: Image.Image) -> None:
        del self._stack[self._index + 1:]
        self._stack.append(img)
        if len(self._stack) > self._max_size:
            del self._stack[:len(self._stack) - self._max_size]
        self._index = len(self._stack) - 1

    def can_undo(self) -> bool:
        return self._index > 0

    def can_redo(self) -> bool:
        return self._index < len(self._stack) - 1

    def undo(self) -> bool:
        if not self.can_undo():
            return False
        self._index -= 1
        return True

    def redo(self) -> bool:
        if not self.can_redo():
            return False
        self._index += 1
        return True
