# sources/__init__.py
from dynaconf import Dynaconf

from .base import BaseSource, FetchResult
from .http import HttpSource


def get_source(config: Dynaconf) -> BaseSource:
    """Source factory: returns an instance of the configured snapshot source."""

    source_type = config.general.get("source_type", "http")

    if source_type == "http":
        return HttpSource(config.http)
    else:
        raise ValueError(f"Unsupported source type: {source_type}")
