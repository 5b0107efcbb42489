"""
Capability contracts a response type has to fulfil to be decodable.

A TRIAS response always carries the same handful of header fields
(timestamp, producer reference, status...) followed by a list of
repeated records, the "delivery payload". ``TriasResponse`` describes the
former, ``DeliveryPayload`` the latter. The decoder only ever talks to
these two contracts, never to a concrete class.
"""

from abc import ABC, abstractmethod
from collections import namedtuple
from dataclasses import dataclass, field
from typing import ClassVar, FrozenSet, List, Type, Union

SCOPE_SEPARATOR = ">"


class ScopedKey(namedtuple("ScopedKey", ["parent", "child"])):
    """
    A leaf tag qualified by the container it is nested in.

    TRIAS reuses generic leaf tags like ``trias:Text`` under several
    parents, so a payload declares e.g.
    ``ScopedKey("trias:StopPointName", "trias:Text")`` to tell them apart.
    """

    __slots__ = ()

    @classmethod
    def parse(cls, key: str) -> "ScopedKey":
        """Build a ScopedKey from its textual ``parent>child`` form."""
        parent, sep, child = key.partition(SCOPE_SEPARATOR)
        if not sep or not parent or not child:
            raise ValueError(f"Not a composite key: {key!r}")
        return cls(parent, child)

    def __str__(self):
        return f"{self.parent}{SCOPE_SEPARATOR}{self.child}"


PropertyKey = Union[str, ScopedKey]


class DeliveryPayload(ABC):
    """
    One repeated record inside a response, e.g. a single location match.

    Subclasses declare the container tag that opens and closes a record
    and every key they accept.
    """

    element_name: ClassVar[str] = ""
    property_keys: ClassVar[FrozenSet[PropertyKey]] = frozenset()

    @classmethod
    def empty_instance(cls) -> "DeliveryPayload":
        """Return a fresh zero-value record."""
        return cls()

    @abstractmethod
    def set_value(self, key: PropertyKey, value: str) -> None:
        """
        Assign the text ``value`` to the field identified by ``key``.

        Raises:
            UnknownKey: if ``key`` is not one of ``property_keys``.
            TypeMismatch: if ``value`` cannot be converted to the field's type.
        """


@dataclass
class TriasResponse:
    """
    Header fields shared by every TRIAS response plus its payload list.

    Concrete responses subclass this and set ``payload_type``.
    """

    payload_type: ClassVar[Type[DeliveryPayload]] = DeliveryPayload

    timestamp: str = ""
    reference: str = ""
    language: str = ""
    status: bool = False
    calc_time: int = 0
    payloads: List[DeliveryPayload] = field(default_factory=list)

    @classmethod
    def empty_instance(cls) -> "TriasResponse":
        """Return a fresh zero-value response used as the decode accumulator."""
        return cls()
