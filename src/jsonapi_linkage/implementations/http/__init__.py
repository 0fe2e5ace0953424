from .resolver import JSONAPI_MEDIA_TYPE, HTTPLinkResolver  # noqa
