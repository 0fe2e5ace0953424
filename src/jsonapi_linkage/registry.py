import logging
import typing

from .exceptions import ConfigurationError, UnknownResourceTypeError
from .models import TypeDescriptor

logger = logging.getLogger(__name__)


def get_descriptor(class_: type) -> typing.Optional[TypeDescriptor]:
    """
    Returns the descriptor attached to a class by :py:func:`jsonapi_linkage.declarative.resource`.
    """
    descr = class_.__dict__.get("__jsonapi_descriptor__")
    return descr if isinstance(descr, TypeDescriptor) else None


class TypeRegistry:
    """
    Maps resource type names and classes onto :py:class:`TypeDescriptor`s.

    The registry is filled in before any conversion starts and becomes read-only
    once :py:meth:`freeze` is called.
    """

    _by_name: typing.Dict[str, TypeDescriptor]
    _by_class: typing.Dict[type, TypeDescriptor]
    _frozen: bool

    @property
    def frozen(self) -> bool:
        return self._frozen

    def register(self, descr_or_class: typing.Union[TypeDescriptor, type]) -> TypeDescriptor:
        if self._frozen:
            raise ConfigurationError("no more types can be registered once the registry is frozen")
        if isinstance(descr_or_class, TypeDescriptor):
            descr = descr_or_class
        else:
            _descr = get_descriptor(descr_or_class)
            if _descr is None:
                raise ConfigurationError(f"{descr_or_class!r} is not declared as a resource")
            descr = _descr

        existing = self._by_name.get(descr.type_name)
        if existing is not None:
            if existing is descr:
                return descr
            raise ConfigurationError(
                f'resource type "{descr.type_name}" is already bound to {existing.class_!r}'
            )
        self._by_name[descr.type_name] = descr
        self._by_class[descr.class_] = descr
        logger.debug("registered %r as %s", descr.class_, descr.type_name)
        return descr

    def freeze(self) -> None:
        self._frozen = True

    def is_registered(self, class_: type) -> bool:
        return class_ in self._by_class

    def describe(self, class_or_name: typing.Union[type, str]) -> TypeDescriptor:
        if isinstance(class_or_name, str):
            try:
                return self._by_name[class_or_name]
            except KeyError:
                raise UnknownResourceTypeError(class_or_name)
        else:
            for c in class_or_name.__mro__:
                descr = self._by_class.get(c)
                if descr is not None:
                    return descr
            raise UnknownResourceTypeError(getattr(class_or_name, "__qualname__", repr(class_or_name)))

    def describe_object(self, obj: typing.Any) -> TypeDescriptor:
        return self.describe(type(obj))

    def lookup(self, type_name: str) -> typing.Optional[TypeDescriptor]:
        return self._by_name.get(type_name)

    def __contains__(self, class_or_name: typing.Any) -> bool:
        if isinstance(class_or_name, str):
            return class_or_name in self._by_name
        return class_or_name in self._by_class

    def __iter__(self) -> typing.Iterator[TypeDescriptor]:
        return iter(self._by_name.values())

    def __len__(self) -> int:
        return len(self._by_name)

    def __init__(self, descrs: typing.Iterable[typing.Union[TypeDescriptor, type]] = ()):
        self._by_name = {}
        self._by_class = {}
        self._frozen = False
        for descr in descrs:
            self.register(descr)
