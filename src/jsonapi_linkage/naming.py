import abc
import re
import typing


class NameMapper(metaclass=abc.ABCMeta):
    """
    Translates between attribute names on the wire and attribute names of Python objects.
    """

    @abc.abstractmethod
    def from_wire(self, name: str) -> str:
        ...  # pragma: nocover

    @abc.abstractmethod
    def to_wire(self, name: str) -> str:
        ...  # pragma: nocover


class NameMapperFuncAdapter(NameMapper):
    _from_wire: typing.Callable[[str], str]
    _to_wire: typing.Callable[[str], str]

    def from_wire(self, name: str) -> str:
        return self._from_wire(name)

    def to_wire(self, name: str) -> str:
        return self._to_wire(name)

    def __init__(self, from_wire: typing.Callable[[str], str], to_wire: typing.Callable[[str], str]):
        self._from_wire = from_wire
        self._to_wire = to_wire


_camel_case_boundary = re.compile(r"(?<=[a-z0-9])([A-Z])")


def _camelize(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(c[:1].upper() + c[1:] for c in rest)


def _decamelize(name: str) -> str:
    return _camel_case_boundary.sub(lambda m: "_" + m.group(1).lower(), name)


IDENTITY = NameMapperFuncAdapter(lambda n: n, lambda n: n)

KEBAB_CASE = NameMapperFuncAdapter(
    lambda n: n.replace("-", "_"),
    lambda n: n.replace("_", "-"),
)

CAMEL_CASE = NameMapperFuncAdapter(_decamelize, _camelize)
