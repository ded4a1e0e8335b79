"""Exception types raised by the diversification engine.

Data gaps (an unknown ticker, an ETF without composition data) are never
errors; they degrade to the ``Unclassified`` sentinel and are reported
through coverage fields.  Only inputs that break an invariant raise.
"""


class DiversificationError(Exception):
    """Base class for all errors raised by this package."""


class InvalidInputError(DiversificationError, ValueError):
    """A value violates an invariant (negative market value, NaN, bad threshold...)."""
