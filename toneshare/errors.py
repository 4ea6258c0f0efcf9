"""Exception types raised by the ToneShare core and its collaborators."""

from __future__ import annotations


class ToneShareError(Exception):
    """Base class for all ToneShare errors."""


class IndexOutOfRange(ToneShareError, IndexError):
    """A pedal position does not exist in the chain."""


class UnknownParameterKey(ToneShareError, KeyError):
    """A parameter update named a key the component does not have."""

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else ""


class InvalidParameterValue(ToneShareError, ValueError):
    """A parameter value is not a real number."""


class UnknownOption(ToneShareError, ValueError):
    """A channel or variant is not offered by the amplifier."""


class UnknownCatalogItem(ToneShareError, KeyError):
    """No catalog template with the given id."""

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else ""


class ExternalServiceFailure(ToneShareError, RuntimeError):
    """A network, persistence API or text-generation call failed."""


class StorageNotReady(ToneShareError):
    """The backing database has not been installed yet."""


class RecordError(ToneShareError, ValueError):
    """A setup record is malformed or conflicts with a stored one."""
