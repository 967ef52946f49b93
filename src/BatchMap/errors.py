"""Exception hierarchy for batch mapping.

BatchMapError
├── ConfigurationError        bad strategy, worker count or policy
├── UnsupportedStrategyError  strategy unavailable on this host / transform
└── TransformError            the transform failed for one element
"""


class BatchMapError(Exception):
    """Base class for all batch mapping errors."""


class ConfigurationError(BatchMapError, ValueError):
    """Invalid mapper configuration. Raised before any work starts."""


class UnsupportedStrategyError(BatchMapError):
    """Requested strategy cannot run here.

    Parameters
    ----------
    strategy : str
        Name of the strategy that was requested.
    reason : str
        Human readable explanation (missing primitives, no vector form, ...).
    """

    def __init__(self, strategy: str, reason: str):
        self.strategy = strategy
        self.reason = reason
        super().__init__(f"Strategy '{strategy}' is unsupported: {reason}")

    def __reduce__(self):
        return (type(self), (self.strategy, self.reason))


class TransformError(BatchMapError):
    """The transform raised for a single element.

    The original exception is kept as ``cause`` and chained as ``__cause__``
    by the mapper.
    """

    def __init__(self, index: int, element, cause: BaseException):
        self.index = index
        self.element = element
        self.cause = cause
        super().__init__(
            f"Transform failed at index {index} (element={element!r}): "
            f"{type(cause).__name__}: {cause}"
        )

    def __reduce__(self):
        return (type(self), (self.index, self.element, self.cause))
