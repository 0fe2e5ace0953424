from .converter import ResourceConverter  # noqa
from .declarative import id_field, links_field, meta_field, relationship, resource  # noqa
from .exceptions import (  # noqa
    ConfigurationError,
    JSONAPILinkageException,
    MalformedDocumentError,
    MaterializationError,
    RelationshipFetchError,
    UnknownResourceTypeError,
    UnsupportedOperationError,
)
from .interfaces import LinkResolver, LinkResolverFuncAdapter  # noqa
from .models import (  # noqa
    RelationshipDescriptor,
    RelationshipType,
    RelType,
    ResolutionStrategy,
    TypeDescriptor,
)
from .naming import CAMEL_CASE, IDENTITY, KEBAB_CASE, NameMapper  # noqa
from .pagination import UNKNOWN, PaginatedResourceList, PagingIterator, ResourcePage  # noqa
from .registry import TypeRegistry  # noqa
