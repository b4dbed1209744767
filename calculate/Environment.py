# Environment.py
"""Session variable bindings plus the read-only builtin constants."""

import logging
from decimal import Decimal
from types import MappingProxyType

from . import ScientificEngine
from . import error as E

logger = logging.getLogger(__name__)

CONSTANTS = MappingProxyType({
    "pi": ScientificEngine.PI,
    "π": ScientificEngine.PI,
    "e": ScientificEngine.E_CONSTANT,
    "tau": ScientificEngine.TAU,
})


class Environment:
    """Name -> Decimal mapping owned by one session.

    Constants are looked up first and can never be reassigned or removed.
    The object is not locked; a host sharing one Environment between threads
    has to serialize assignments against evaluations itself.
    """

    def __init__(self, constants=CONSTANTS):
        self._constants = MappingProxyType(dict(constants))
        self._variables = {}

    def get(self, name):
        if name in self._constants:
            return self._constants[name]
        return self._variables.get(name)

    def set(self, name, value):
        if name in self._constants:
            raise E.ReservedName(name)
        if not isinstance(value, Decimal):
            value = Decimal(str(value))
        self._variables[name] = value
        logger.debug("Bound %s = %s", name, value)

    def remove(self, name):
        if name in self._constants:
            raise E.ReservedName(name)
        if name not in self._variables:
            raise E.UndefinedVariable(name)
        del self._variables[name]

    def constants(self):
        return self._constants

    def variables(self):
        """Snapshot of the user variables in assignment order."""
        return dict(self._variables)

    def is_constant(self, name):
        return name in self._constants

    def __contains__(self, name):
        return name in self._constants or name in self._variables

    def __iter__(self):
        yield from self._constants
        yield from self._variables

    def __len__(self):
        return len(self._constants) + len(self._variables)

    def __repr__(self):
        return f"Environment(variables={self._variables!r})"


def new_environment():
    """Fresh environment pre-seeded with the builtin constants."""
    return Environment()
