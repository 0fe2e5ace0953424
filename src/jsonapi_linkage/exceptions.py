import abc
import typing

from .serde.models import ErrorRepr, Source

if typing.TYPE_CHECKING:
    from . import models  # noqa: F401


class JSONAPILinkageException(Exception, metaclass=abc.ABCMeta):
    @property
    @abc.abstractmethod
    def message(self) -> str:
        ...  # pragma: nocover

    def __str__(self):
        return self.message


class ConfigurationError(JSONAPILinkageException):
    """
    Raised while types are being described or registered.  These errors are
    programming mistakes and are never worth retrying.
    """

    _message: str

    @property
    def message(self) -> str:
        return self._message

    def __init__(self, message: str):
        super().__init__(message)
        self._message = message


class UnknownResourceTypeError(ConfigurationError):
    name: str

    def __init__(self, name: str):
        super().__init__(f'no resource known as "{name}"')
        self.name = name


class MalformedDocumentError(JSONAPILinkageException):
    _message: str
    errors: typing.Sequence[ErrorRepr]
    sources: typing.Sequence[Source]

    @property
    def message(self) -> str:
        return self._message

    def __init__(
        self,
        message: str,
        errors: typing.Sequence[ErrorRepr] = (),
        sources: typing.Sequence[Source] = (),
    ):
        super().__init__(message)
        self._message = message
        self.errors = tuple(errors)
        self.sources = tuple(sources)


class MaterializationError(JSONAPILinkageException):
    descr: "models.TypeDescriptor"
    detail: str

    @property
    def message(self) -> str:
        return f'failed to materialize a resource of type "{self.descr.type_name}": {self.detail}'

    def __init__(self, descr: "models.TypeDescriptor", detail: str):
        super().__init__(descr, detail)
        self.descr = descr
        self.detail = detail


class RelationshipFetchError(JSONAPILinkageException):
    link: str
    detail: str
    errors: typing.Sequence[ErrorRepr]

    @property
    def message(self) -> str:
        return f"Unable to parse the response document for '{self.link}': {self.detail}"

    def __init__(self, link: str, detail: str, errors: typing.Sequence[ErrorRepr] = ()):
        super().__init__(link, detail)
        self.link = link
        self.detail = detail
        self.errors = tuple(errors)


class UnsupportedOperationError(JSONAPILinkageException, TypeError):
    operation: str

    @property
    def message(self) -> str:
        return f"{self.operation} is not supported by a read-only collection"

    def __init__(self, operation: str):
        super().__init__(operation)
        self.operation = operation
