from dataclasses import dataclass
from typing import Union

PathKey = Union[str, int]


@dataclass(frozen=True)
class Path:
    """A location in the result tree, stored as a linked list of segments.

    Descending creates a new node pointing at its parent, so sibling branches
    share their common prefix and nothing is ever popped by hand.
    """

    prev: "Path | None"
    key: PathKey

    def add_key(self, key: PathKey) -> "Path":
        return Path(self, key)

    def as_list(self) -> list[PathKey]:
        segments: list[PathKey] = []
        node: Path | None = self
        while node is not None:
            segments.append(node.key)
            node = node.prev
        segments.reverse()
        return segments

    def __str__(self) -> str:
        return ".".join(str(key) for key in self.as_list())


def path_list(path: "Path | None") -> list[PathKey]:
    return path.as_list() if path is not None else []


__all__ = ["Path", "PathKey", "path_list"]
