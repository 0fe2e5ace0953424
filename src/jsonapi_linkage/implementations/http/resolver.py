import logging
import typing
from urllib.parse import urljoin

import httpx

from ...interfaces import LinkResolver

logger = logging.getLogger(__name__)

JSONAPI_MEDIA_TYPE = "application/vnd.api+json"


class HTTPLinkResolver(LinkResolver):
    """
    Fetches linked documents over HTTP with :py:class:`httpx.Client`.

    :param Optional[httpx.Client] client: the client to send requests with.  A client owned by the resolver is created when omitted.
    :param Optional[str] base_url: relative links are resolved against it.
    :param Optional[Mapping[str, str]] headers: extra request headers.
    :param bool raise_for_status: raise :py:class:`httpx.HTTPStatusError` on 4xx and 5xx responses instead of returning their bodies.
    :param float timeout: the timeout of an owned client.
    """

    _client: httpx.Client
    _owns_client: bool
    base_url: typing.Optional[str]
    headers: typing.Dict[str, str]
    raise_for_status: bool

    def _absolutize(self, link: str) -> str:
        if self.base_url is None:
            return link
        return urljoin(self.base_url, link)

    def resolve(self, link: str) -> bytes:
        url = self._absolutize(link)
        logger.debug("GET %s", url)
        response = self._client.get(url, headers=self.headers)
        if self.raise_for_status:
            response.raise_for_status()
        return response.content

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> "HTTPLinkResolver":
        return self

    def __exit__(self, *args: typing.Any) -> None:
        self.close()

    def __init__(
        self,
        client: typing.Optional[httpx.Client] = None,
        base_url: typing.Optional[str] = None,
        headers: typing.Optional[typing.Mapping[str, str]] = None,
        raise_for_status: bool = False,
        timeout: float = 30.0,
    ):
        if client is None:
            self._client = httpx.Client(timeout=timeout)
            self._owns_client = True
        else:
            self._client = client
            self._owns_client = False
        self.base_url = base_url
        self.headers = {"Accept": JSONAPI_MEDIA_TYPE}
        if headers is not None:
            self.headers.update(headers)
        self.raise_for_status = raise_for_status
