from .provider import INFO_KEY, describe_mapped_class  # noqa
