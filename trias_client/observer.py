"""
Observer table: which parent tags scope which reused child tags.
"""

from typing import Dict, FrozenSet, Iterable, Set

from .schema import SCOPE_SEPARATOR, PropertyKey, ScopedKey


def normalize_key(key: PropertyKey) -> PropertyKey:
    """
    Return ``key`` with a textual ``parent>child`` form turned into a ScopedKey.

    An empty parent or child is a bug in the payload declaration, not in
    the document, and raises ValueError.
    """
    if isinstance(key, ScopedKey):
        if not key.parent or not key.child:
            raise ValueError(f"Malformed composite key: {key!r}")
        return key
    if SCOPE_SEPARATOR in key:
        return ScopedKey.parse(key)
    return key


def declared_keys(property_keys: Iterable[PropertyKey]) -> Dict[PropertyKey, PropertyKey]:
    """
    Map every normalized key to the key as the payload declared it.

    The decoder resolves keys in normalized form but hands the declared
    form back to ``set_value``.
    """
    return {normalize_key(key): key for key in property_keys}


def build_observer_table(property_keys: Iterable[PropertyKey]) -> FrozenSet[ScopedKey]:
    """
    Collect one (parent, child) entry for every composite key.

    Composite keys may be declared as ScopedKey or as ``parent>child``
    text; plain tag names are skipped.
    """
    observers = set()
    for key in property_keys:
        key = normalize_key(key)
        if isinstance(key, ScopedKey):
            observers.add(key)
    return frozenset(observers)


def parents_of(observers: Iterable[ScopedKey]) -> Set[str]:
    """Return the tags that open a disambiguation scope."""
    return {observer.parent for observer in observers}
