"""Sequential strategy - explicit loop in the calling thread."""

from .base import BaseStrategy, call_guarded


class SequentialStrategy(BaseStrategy):
    """Baseline: evaluate elements one after another, in input order.

    Always available, and the only strategy that is correct for transforms
    whose elements depend on each other.
    """

    name = "sequential"

    def _execute(self, inputs, transform):
        for index, element in enumerate(inputs):
            value, error = call_guarded(transform, element)
            yield index, value, error
