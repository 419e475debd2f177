"""Errors raised while refreshing the station snapshot."""


class FeedError(Exception):
    """Base class for upstream GBFS failures during a refresh."""


class DiscoveryError(FeedError):
    """The discovery document is unreachable or does not have the expected shape."""


class FeedNotFound(FeedError):
    """A required feed is not listed in the discovery document."""

    def __init__(self, feed_name: str, language: str | None = None):
        self.feed_name = feed_name
        self.language = language
        where = f" for language '{language}'" if language else ""
        super().__init__(f"Feed '{feed_name}' not listed in discovery document{where}")


class FetchError(FeedError):
    """A data feed is unreachable, returned an error status, or is unparsable."""


class FeedUnavailable(Exception):
    """No station snapshot can be served: refresh failed and nothing is cached."""
