"""
This module contains the interfaces the converter consumes from its environment.

"""
import abc
import typing


class LinkResolver(metaclass=abc.ABCMeta):
    """
    A :py:class:`LinkResolver` fetches the document a link points to.

    Implementations are free to raise whatever exception their transport raises;
    the converter wraps them into :py:class:`~jsonapi_linkage.exceptions.RelationshipFetchError`
    for relationship links and ends iteration silently for pagination links.
    """

    @abc.abstractmethod
    def resolve(self, link: str) -> bytes:
        """
        Fetches the raw bytes of the document addressed by ``link``.

        :param str link: the link as it appears in the document.
        :return: the response body.
        """
        ...  # pragma: nocover


class LinkResolverFuncAdapter(LinkResolver):
    func: typing.Callable[[str], bytes]

    def resolve(self, link: str) -> bytes:
        return self.func(link)

    def __init__(self, func: typing.Callable[[str], bytes]):
        self.func = func


LinkResolverLike = typing.Union[LinkResolver, typing.Callable[[str], bytes]]


def as_link_resolver(resolver: LinkResolverLike) -> LinkResolver:
    if isinstance(resolver, LinkResolver):
        return resolver
    elif callable(resolver):
        return LinkResolverFuncAdapter(resolver)
    else:
        raise TypeError(f"{resolver!r} is neither a LinkResolver nor a callable")
