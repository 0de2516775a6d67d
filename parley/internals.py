import functools
import re
from collections.abc import Sequence
from contextlib import contextmanager
from typing import final


@final
class UnsetType:
    """
    marker for "no value given", distinct from None.

    builders keep their untouched fields at Unset so that an explicit None
    (for example an option default of None) is never mistaken for an omission.

    - bool(Unset) is False and repr(Unset) is "Unset".
    - there is exactly one instance; copying returns it unchanged.
    - the class cannot be subclassed.
    """

    @functools.cache
    def __new__(cls):
        return super().__new__(cls)

    def __bool__(self):
        return False

    def __repr__(self):
        return "Unset"

    def __copy__(self):
        return self

    def __deepcopy__(self, memo, /):
        return self

    def __init_subclass__(cls, **options):
        raise TypeError("type 'UnsetType' is not an acceptable base type")


Unset = UnsetType()


def nullify(object, default=None, /):
    """
    `default` when `object` is Unset, `object` itself otherwise (falsy values included).
    """
    return default if object is Unset else object


def rename(x, /, name=None):
    """
    give a callable a fixed __name__/__qualname__.

    rename(function, name) renames in place and returns the function;
    rename(name) returns a decorator doing the same.
    """
    if isinstance(x, str):
        return functools.partial(rename, name=x)
    if not isinstance(name, str):
        raise TypeError("callable name must be a string")
    x.__qualname__ = name
    x.__name__ = name
    return x


class StorageGuard:
    """
    base for objects that are frozen once constructed.

    fields live under '-'-prefixed names, which are not identifiers and so
    only reachable through getattr/setattr. such names cannot be read at all,
    and can be written only inside the construction block:

        with super().__new__(cls) as self:
            setattr(self, "-name", name)
        return self

    the public side of a field is a view() property.
    """
    __slots__ = ("__building",)

    @contextmanager
    def __new__(cls):
        self = super().__new__(cls)
        self.__building = True
        try:
            yield self
        finally:
            self.__building = False

    def __getattribute__(self, name, /):
        if isinstance(name, str) and name.startswith("-"):
            raise AttributeError("internal storage is not accessible")
        return object.__getattribute__(self, name)

    def __setattr__(self, name, value, /):
        if isinstance(name, str) and name.startswith("-") and not self.__building:
            raise AttributeError("internal storage is read-only")
        return object.__setattr__(self, name, value)

    def __delattr__(self, name, /):
        if isinstance(name, str) and name.startswith("-"):
            raise AttributeError("internal storage is read-only")
        return object.__delattr__(self, name)


def view(name):
    """
    read-only property over the '-name' field of a StorageGuard.

    lists and other non-tuple sequences come back as tuples; strings, tuples
    (named tuples included) and scalars are returned unchanged.
    """

    @rename(name)
    def getter(self):
        value = object.__getattribute__(self, "-" + name)
        if isinstance(value, Sequence) and not isinstance(value, str | tuple):
            return tuple(value)
        return value

    return property(getter)


@functools.cache
def typename(cls, /):
    """
    hyphenated, lowercase label for a class used in messages: NumberOption -> 'number-option'.
    """
    return re.sub(r"(?<!^)(?=[A-Z])", r"-", cls.__name__).lower()


_WORDS = ("first", "second", "third", "fourth", "fifth", "sixth", "seventh", "eighth", "ninth", "tenth")


@functools.cache
def ordinal(number, /):
    """
    position label for a 1-based index: words up to "tenth", then 11th, 22nd, 103rd...
    """
    if 1 <= number <= len(_WORDS):
        return _WORDS[number - 1]
    if 10 < number % 100 < 20:
        return f"{number}th"
    suffix = {1: "st", 2: "nd", 3: "rd"}.get(number % 10, "th")
    return f"{number}{suffix}"


__all__ = (
    "UnsetType",
    "Unset",
    "nullify",
    "rename",
    "StorageGuard",
    "view",
    "typename",
    "ordinal",
)
