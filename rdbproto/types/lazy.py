"""
Lazily decoded element sequences.

A packed container is captured as an envelope and only decoded the first time
its elements are needed. The decoded elements are cached as a tuple; later
accesses return the same content without rescanning the envelope, and callers
that mutate a returned list cannot change what others see. First access is not
synchronized, so callers sharing a LazyList across threads must guard it.
"""

from collections.abc import Sequence
from typing import Any, Callable, List, Optional, Tuple


class LazyList(Sequence):

    def __init__(self, envelope: Any = None,
                 decoder: Optional[Callable[[Any], List[bytes]]] = None,
                 values: Optional[List[bytes]] = None):
        if values is None and decoder is None:
            raise ValueError("LazyList needs either values or a decoder")
        self._envelope = envelope
        self._decoder = decoder
        self._values: Optional[Tuple[bytes, ...]] = None if values is None else tuple(values)

    @classmethod
    def of(cls, values: List[bytes]) -> "LazyList":
        """Wrap an already materialized list."""
        return cls(values=values)

    @property
    def is_realized(self) -> bool:
        return self._values is not None

    @property
    def envelope(self) -> Any:
        return self._envelope

    def _realize(self) -> Tuple[bytes, ...]:
        if self._values is None:
            self._values = tuple(self._decoder(self._envelope))
        return self._values

    def get(self) -> List[bytes]:
        """Force decoding (once) and return a fresh list of the elements."""
        return list(self._realize())

    def __getitem__(self, index):
        return self._realize()[index]

    def __len__(self) -> int:
        return len(self._realize())

    def __iter__(self):
        return iter(self._realize())

    def __eq__(self, other) -> bool:
        if isinstance(other, LazyList):
            return self._realize() == other._realize()
        if isinstance(other, (list, tuple)):
            return self._realize() == tuple(other)
        return NotImplemented

    __hash__ = None

    def __repr__(self) -> str:
        if self._values is None:
            return "LazyList(<unrealized>)"
        return f"LazyList({list(self._values)!r})"
