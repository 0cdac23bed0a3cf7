"""Shell exception types."""


class AgentApiError(Exception):
    """The agent HTTP API could not be reached or answered with an error."""


class UpdateError(Exception):
    """Update feed, download, or package verification failed."""
