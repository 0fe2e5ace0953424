import typing


def _escape(component: str) -> str:
    return component.replace("~", "~0").replace("/", "~1")


def _unescape(component: str) -> str:
    return component.replace("~1", "/").replace("~0", "~")


class JSONPointer:
    """
    An immutable `JSON Pointer <https://tools.ietf.org/html/rfc6901>`_.

    .. code-block:: python

       p = JSONPointer() / "data" / "relationships"
       str(p[0])  # => "/data/relationships/0"
    """

    _components: typing.Tuple[str, ...]

    @property
    def components(self) -> typing.Tuple[str, ...]:
        return self._components

    @property
    def parent(self) -> typing.Optional["JSONPointer"]:
        if not self._components:
            return None
        return JSONPointer.from_components(self._components[:-1])

    def __truediv__(self, component: typing.Union[str, int]) -> "JSONPointer":
        return JSONPointer.from_components(self._components + (str(component),))

    def __getitem__(self, index: int) -> "JSONPointer":
        return self / str(index)

    def __str__(self) -> str:
        return "".join("/" + _escape(c) for c in self._components)

    def __repr__(self) -> str:
        return f"JSONPointer({str(self)!r})"

    def __eq__(self, other: typing.Any) -> bool:
        if not isinstance(other, JSONPointer):
            return NotImplemented
        return self._components == other._components

    def __hash__(self) -> int:
        return hash(self._components)

    @classmethod
    def from_components(cls, components: typing.Iterable[str]) -> "JSONPointer":
        retval = object.__new__(cls)
        retval._components = tuple(components)
        return retval

    def __init__(self, pointer: str = ""):
        if pointer and not pointer.startswith("/"):
            raise ValueError(f"invalid JSON pointer: {pointer!r}")
        self._components = tuple(_unescape(c) for c in pointer.split("/")[1:])
