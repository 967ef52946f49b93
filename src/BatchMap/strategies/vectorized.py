"""Vectorized strategy - one call on the whole input array."""

import logging

import numpy as np

from ..errors import ConfigurationError
from .base import BaseStrategy, call_guarded

log = logging.getLogger(__name__)


def vector_form(transform):
    """Return the vector-native form of transform, or None.

    A NumPy ufunc is its own vector form; other transforms opt in with a
    ``vectorized`` attribute taking an array and returning an array.
    """
    if isinstance(transform, np.ufunc):
        return transform
    return getattr(transform, "vectorized", None)


class VectorizedStrategy(BaseStrategy):
    """Apply the transform's vector-native form to the whole batch at once.

    If the vector call raises, the batch is re-evaluated element by element
    with the scalar transform so a failure can be pinned to its index.
    """

    name = "vectorized"

    @classmethod
    def unsupported_reason(cls, transform):
        if vector_form(transform) is None:
            return f"{transform!r} has no vector-native form"
        return None

    def _execute(self, inputs, transform):
        vector = vector_form(transform)
        try:
            values = np.asarray(vector(np.asarray(inputs)))
        except Exception as e:
            log.debug(f"Vector form raised {type(e).__name__}: {e}; evaluating per element")
            for index, element in enumerate(inputs):
                value, error = call_guarded(transform, element)
                yield index, value, error
            return

        if values.shape != (len(inputs),):
            raise ConfigurationError(
                f"Vector form returned shape {values.shape}, expected ({len(inputs)},)"
            )
        # tolist() gives native Python scalars, matching the scalar strategies
        for index, value in enumerate(values.tolist()):
            yield index, value, None
