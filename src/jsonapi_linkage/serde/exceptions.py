import dataclasses
import typing

from .types import JSONValue
from .utils import JSONPointer


@dataclasses.dataclass(frozen=True)
class ShapeViolation:
    """
    One place where a document strays from the JSON:API shape.
    """

    pointer: JSONPointer
    message: str

    def __str__(self) -> str:
        where = str(self.pointer)
        return f"{where if where else '(root)'}: {self.message}"


class DeserializationError(ValueError):
    """
    Raised once a document has been walked completely, carrying every
    :py:class:`ShapeViolation` found in it.
    """

    tree: JSONValue
    errors: typing.Tuple[ShapeViolation, ...]

    @property
    def message(self) -> str:
        return "; ".join(map(str, self.errors))

    def __str__(self) -> str:
        return self.message

    def __init__(self, tree: JSONValue, errors: typing.Iterable[ShapeViolation]):
        self.tree = tree
        self.errors = tuple(errors)
        super().__init__(tree, self.errors)
