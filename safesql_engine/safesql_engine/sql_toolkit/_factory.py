"""Process-wide access to the active :class:`SqlToolkit`.

Consumer code calls :func:`get_sql_toolkit`; nothing else constructs a
toolkit.  The SQLGlot implementation is built on first use unless another
builder has been registered with :func:`register_implementation`.
"""

from __future__ import annotations

import threading
from collections.abc import Callable

from ._protocols import SqlToolkit

ToolkitBuilder = Callable[[], SqlToolkit]


def _build_sqlglot_toolkit() -> SqlToolkit:
    from .impl.sqlglot_impl import SqlGlotToolkit

    return SqlGlotToolkit()


class _ToolkitSlot:
    """A builder and the toolkit it produced, guarded by one lock.

    The toolkit is built lazily and at most once per builder; swapping the
    builder discards the built toolkit.
    """

    def __init__(self, builder: ToolkitBuilder) -> None:
        self._lock = threading.Lock()
        self._builder = builder
        self._toolkit: SqlToolkit | None = None

    def get(self) -> SqlToolkit:
        toolkit = self._toolkit
        if toolkit is not None:
            return toolkit
        with self._lock:
            if self._toolkit is None:
                self._toolkit = self._builder()
            return self._toolkit

    def swap(self, builder: ToolkitBuilder) -> None:
        with self._lock:
            self._builder = builder
            self._toolkit = None


_slot = _ToolkitSlot(_build_sqlglot_toolkit)


def register_implementation(factory_fn: ToolkitBuilder) -> None:
    """Use *factory_fn* to build the toolkit from the next call on."""
    _slot.swap(factory_fn)


def get_sql_toolkit() -> SqlToolkit:
    """Return the active :class:`SqlToolkit`, building it on first use."""
    return _slot.get()


def reset_toolkit() -> None:
    """Go back to a fresh SQLGlot toolkit.  For tests."""
    _slot.swap(_build_sqlglot_toolkit)
