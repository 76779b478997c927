"""Exception types raised inside components and caught at their boundaries."""


class MindbotError(Exception):
    pass


class LLMError(MindbotError):
    """The language model call failed or returned nothing usable."""


class RoutingParseError(MindbotError):
    """The routing model output was not the expected JSON document."""


class ToolValidationError(MindbotError):
    """Tool parameters did not match the tool's declared params."""


class StorageError(MindbotError):
    """The rate-limit store could not be read or written."""
