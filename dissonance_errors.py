# dissonance_errors.py

"""
Exceptions raised by the dissonance calculation modules.

Index errors are not wrapped: accessing a spectrum, partial, chord or map
cell that does not exist raises the built-in ``IndexError``.
"""


class DissonanceError(Exception):
    """Base class for all dissonance calculation errors."""


class InvalidInputError(DissonanceError, ValueError):
    """A mutator received a value it cannot accept. The object is unchanged."""


class PreconditionError(DissonanceError, RuntimeError):
    """A sweep, batch or optimization was requested before the calculator was ready."""


class PreprocessorContractError(DissonanceError, RuntimeError):
    """A preprocessor added, removed or reordered partials of a working copy."""


__all__ = [
    'DissonanceError',
    'InvalidInputError',
    'PreconditionError',
    'PreprocessorContractError',
]
