r"""
Parley option descriptors and their fluent builders.

Overview
- Descriptors (frozen, one class per kind, tagged by OptionKind)
  • StringOption: free text; optional length bounds; 'rest' swallows every
    remaining token of the message (re-joined with single spaces).
  • NumberOption: decimal numbers; inclusive min/max; 'integer' rejects fractions.
  • BooleanOption: true/false style literals.
  • MentionableOption: user/role/channel mentions; 'kinds' narrows what is accepted.
  • CustomOption: delegates coercion to an author-supplied callable.

- Builders (mutable, chainable, single use)
  • StringOptionBuilder, NumberOptionBuilder, BooleanOptionBuilder,
    MentionableOptionBuilder, CustomOptionBuilder.
  Every setter validates its argument immediately and returns the builder;
  build() produces the frozen descriptor, after which the builder refuses changes.

Metadata (sanitized on construction)
- Shared (all kinds)
  • name: lowercase single word matching r"[^\W\d_][-\w]*" (unicode letters allowed).
  • description: non-empty after trimming.
  • required: bool (default True).
  • default: value reported for an unmatched optional option; forbidden on
    required options; must satisfy the kind's constraints and choices; None
    when not provided.
  • choices: allowed coerced values; duplicates rejected; must satisfy the
    kind's own constraints.

Configuration mistakes raise SchemaError at build time, never at validation time.

Quick example:
    >>> option = (
    ...     NumberOptionBuilder()
    ...     .set_name("count")
    ...     .set_description("how many messages to delete")
    ...     .set_min_value(1)
    ...     .set_max_value(100)
    ...     .set_integer()
    ...     .build()
    ... )
    >>> option.coerce("42")
    42
"""
import functools
import math
import re
from collections.abc import Iterable

from .coercers import coerce
from .faults import SchemaError
from .internals import *
from .kinds import OptionKind, MentionKind, Mention

_NAME = re.compile(r"[^\W\d_][-\w]*")


def _sanitize_name(cls, field, name, /):
    """
    Internal: validate a command/option/alias name and return it trimmed.

    Shared by descriptors, builders and commands so every name follows one rule.
    """
    if name is Unset:
        raise SchemaError(f"{typename(cls)} must specify a {field!r}")
    if not isinstance(name, str):
        raise SchemaError(f"{typename(cls)} {field!r} must be a string")
    elif not (name := name.strip()):
        raise SchemaError(f"{typename(cls)} {field!r} cannot be empty")
    elif not _NAME.fullmatch(name):
        raise SchemaError(f"{typename(cls)} {field!r} must be a single word of letters, digits, '-' or '_'")
    elif name != name.lower():
        raise SchemaError(f"{typename(cls)} {field!r} must be lowercase")
    return name


def _sanitize_description(cls, description, /):
    if description is Unset:
        raise SchemaError(f"{typename(cls)} must specify a 'description'")
    if not isinstance(description, str):
        raise SchemaError(f"{typename(cls)} 'description' must be a string")
    elif not (description := description.strip()):
        raise SchemaError(f"{typename(cls)} 'description' cannot be empty")
    return description


def _sanitize_bool(cls, field, value, /):
    if not isinstance(value, bool):
        raise SchemaError(f"{typename(cls)} {field!r} must be a boolean")
    return value


def _sanitize_number(cls, field, value, /):
    if value is None:
        return value
    if isinstance(value, bool) or not isinstance(value, int | float):
        raise SchemaError(f"{typename(cls)} {field!r} must be a number")
    if isinstance(value, float) and not math.isfinite(value):
        raise SchemaError(f"{typename(cls)} {field!r} must be finite")
    return value


def _sanitize_length(cls, field, value, /):
    if value is None:
        return value
    if isinstance(value, bool) or not isinstance(value, int):
        raise SchemaError(f"{typename(cls)} {field!r} must be an integer")
    if value < 0:
        raise SchemaError(f"{typename(cls)} {field!r} cannot be negative")
    return value


def _sanitize_choices(cls, choices, /):
    if isinstance(choices, str) or not isinstance(choices, Iterable):
        raise SchemaError(f"{typename(cls)} 'choices' must be an iterable of values")
    sanitized = []
    for choice in choices:
        if choice in sanitized:
            raise SchemaError(f"{typename(cls)} 'choices' cannot contain duplicates")
        sanitized.append(choice)
    return tuple(sanitized)


def _sanitize_kinds(cls, kinds, /):
    if isinstance(kinds, str) or not isinstance(kinds, Iterable):
        raise SchemaError(f"{typename(cls)} 'kinds' must be an iterable of mention kinds")
    sanitized = set()
    for kind in kinds:
        try:
            kind = MentionKind(kind)
        except ValueError:
            raise SchemaError(f"{typename(cls)} 'kinds' must contain only {', '.join(MentionKind)}") from None
        if kind in sanitized:
            raise SchemaError(f"{typename(cls)} 'kinds' cannot contain duplicates")
        sanitized.add(kind)
    if not sanitized:
        raise SchemaError(f"{typename(cls)} must accept at least one mention kind")
    # canonical order keeps help output and hints stable
    return tuple(kind for kind in MentionKind if kind in sanitized)


def _sanitize_bounds(cls, lower, upper, metadata, /):
    if metadata[lower] is not None and metadata[upper] is not None and metadata[lower] > metadata[upper]:
        raise SchemaError(f"{typename(cls)} {lower!r} cannot exceed {upper!r}")


class OptionType(type):
    """
    Metaclass that exposes the descriptor fields as read-only properties.

    Responsibilities
    - Wire a view() property for every name listed in __fields__.
    - Derive __typename__ from the class name (NumberOption -> 'number-option')
      for consistent messages.
    """
    __fields__ = ()

    def __new__(cls, name, bases, namespace, **options):
        self = super().__new__(
            cls,
            name,
            bases,
            namespace | {
                field: view(field) for field in namespace.get("__fields__", ())
            },
            **options,
        )
        self.__typename__ = typename(self)
        return self


class Option(StorageGuard, metaclass=OptionType):
    """
    Frozen declaration of one positional argument slot.

    Option itself is abstract; the concrete kinds carry a class-level `kind`
    tag and only the fields relevant to them (tagged variant). The fields named
    in __fields__ are exposed as read-only attributes.
    """
    kind = Unset

    __fields__ = (
        "name",
        "description",
        "required",
        "default",
        "choices",
    )

    def __new__(cls, metadata, /):
        if cls.kind is Unset:
            raise TypeError(f"{cls.__typename__} is abstract; use one of its kinds")

        metadata["name"] = _sanitize_name(cls, "name", metadata["name"])
        metadata["description"] = _sanitize_description(cls, metadata["description"])
        metadata["required"] = _sanitize_bool(cls, "required", metadata["required"])
        if metadata["required"] and metadata["default"] is not Unset:
            raise SchemaError(f"required {cls.__typename__} cannot have a 'default'")
        metadata["default"] = nullify(metadata["default"])
        metadata["choices"] = _sanitize_choices(cls, metadata["choices"])

        for choice in metadata["choices"]:
            cls._sanitize_value("choice", choice, metadata)
        if metadata["default"] is not None:
            cls._sanitize_value("default", metadata["default"], metadata)
            if metadata["choices"] and metadata["default"] not in metadata["choices"]:
                raise SchemaError(f"{cls.__typename__} default {metadata["default"]!r} is not one of its 'choices'")

        with super().__new__(cls) as self:
            for field in cls.__fields__:
                setattr(self, "-" + field, metadata[field])
        return self

    @classmethod
    def _sanitize_value(cls, field, value, metadata, /):
        """
        Internal: reject a choice or default the option could never produce.
        """

    @property
    def rest(self):
        """
        True when the option consumes the remainder of the message.
        """
        return False

    @property
    def usage(self):
        """
        Usage fragment: <name> when required, [name] when optional.
        """
        label = self.name + "..." * self.rest
        return f"<{label}>" if self.required else f"[{label}]"

    def coerce(self, token, /):
        """
        Coerce one raw token for this option (raises a CommandFault on failure).
        """
        return coerce(self, token)

    def __rich_repr__(self):
        yield "kind", self.kind
        for field in type(self).__fields__:
            yield field, getattr(self, field)

    def __repr__(self):
        return f"{type(self).__typename__}({", ".join("%s=%r" % pair for pair in self.__rich_repr__())})"


class StringOption(Option):
    kind = OptionKind.STRING

    __fields__ = Option.__fields__ + (
        "min_length",
        "max_length",
        "rest",
    )

    def __new__(
            cls,
            name=Unset,
            description=Unset,
            *,
            required=True,
            default=Unset,
            choices=(),
            min_length=None,
            max_length=None,
            rest=False,
    ):
        metadata = {
            "name": name,
            "description": description,
            "required": required,
            "default": default,
            "choices": choices,
            "min_length": _sanitize_length(cls, "min_length", min_length),
            "max_length": _sanitize_length(cls, "max_length", max_length),
            "rest": _sanitize_bool(cls, "rest", rest),
        }
        _sanitize_bounds(cls, "min_length", "max_length", metadata)
        return super().__new__(cls, metadata)

    @classmethod
    def _sanitize_value(cls, field, value, metadata, /):
        if not isinstance(value, str):
            raise SchemaError(f"{cls.__typename__} {field} {value!r} must be a string")
        if (
            (metadata["min_length"] is not None and len(value) < metadata["min_length"]) or
            (metadata["max_length"] is not None and len(value) > metadata["max_length"])
        ):
            raise SchemaError(f"{cls.__typename__} {field} {value!r} violates the length bounds")


class NumberOption(Option):
    kind = OptionKind.NUMBER

    __fields__ = Option.__fields__ + (
        "min_value",
        "max_value",
        "integer",
    )

    def __new__(
            cls,
            name=Unset,
            description=Unset,
            *,
            required=True,
            default=Unset,
            choices=(),
            min_value=None,
            max_value=None,
            integer=False,
    ):
        metadata = {
            "name": name,
            "description": description,
            "required": required,
            "default": default,
            "choices": choices,
            "min_value": _sanitize_number(cls, "min_value", min_value),
            "max_value": _sanitize_number(cls, "max_value", max_value),
            "integer": _sanitize_bool(cls, "integer", integer),
        }
        _sanitize_bounds(cls, "min_value", "max_value", metadata)
        return super().__new__(cls, metadata)

    @classmethod
    def _sanitize_value(cls, field, value, metadata, /):
        if isinstance(value, bool) or not isinstance(value, int | float):
            raise SchemaError(f"{cls.__typename__} {field} {value!r} must be a number")
        if isinstance(value, float) and not math.isfinite(value):
            raise SchemaError(f"{cls.__typename__} {field} {value!r} must be finite")
        if metadata["integer"] and isinstance(value, float) and not value.is_integer():
            raise SchemaError(f"{cls.__typename__} {field} {value!r} is not a whole number")
        if (
            (metadata["min_value"] is not None and value < metadata["min_value"]) or
            (metadata["max_value"] is not None and value > metadata["max_value"])
        ):
            raise SchemaError(f"{cls.__typename__} {field} {value!r} is out of range")


class BooleanOption(Option):
    kind = OptionKind.BOOLEAN

    def __new__(
            cls,
            name=Unset,
            description=Unset,
            *,
            required=True,
            default=Unset,
            choices=(),
    ):
        metadata = {
            "name": name,
            "description": description,
            "required": required,
            "default": default,
            "choices": choices,
        }
        return super().__new__(cls, metadata)

    @classmethod
    def _sanitize_value(cls, field, value, metadata, /):
        if not isinstance(value, bool):
            raise SchemaError(f"{cls.__typename__} {field} {value!r} must be a boolean")


class MentionableOption(Option):
    kind = OptionKind.MENTIONABLE

    __fields__ = Option.__fields__ + (
        "kinds",
    )

    def __new__(
            cls,
            name=Unset,
            description=Unset,
            *,
            required=True,
            default=Unset,
            choices=(),
            kinds=tuple(MentionKind),
    ):
        metadata = {
            "name": name,
            "description": description,
            "required": required,
            "default": default,
            "choices": choices,
            "kinds": _sanitize_kinds(cls, kinds),
        }
        return super().__new__(cls, metadata)

    @classmethod
    def _sanitize_value(cls, field, value, metadata, /):
        if not isinstance(value, Mention):
            raise SchemaError(f"{cls.__typename__} {field} {value!r} must be a mention")
        if value.kind not in metadata["kinds"]:
            raise SchemaError(f"{cls.__typename__} {field} {str(value)!r} is not an accepted kind")


class CustomOption(Option):
    kind = OptionKind.CUSTOM

    __fields__ = Option.__fields__ + (
        "coercer",
    )

    def __new__(
            cls,
            name=Unset,
            description=Unset,
            *,
            coercer=Unset,
            required=True,
            default=Unset,
            choices=(),
    ):
        if coercer is Unset:
            raise SchemaError(f"{cls.__typename__} must specify a 'coercer'")
        if not callable(coercer):
            raise SchemaError(f"{cls.__typename__} 'coercer' must be callable")
        metadata = {
            "name": name,
            "description": description,
            "required": required,
            "default": default,
            "choices": choices,
            "coercer": coercer,
        }
        return super().__new__(cls, metadata)


def _mutator(method):
    """
    Internal: make a builder setter chainable and refuse changes after build().
    """
    @functools.wraps(method)
    def wrapper(self, /, *args, **kwargs):
        if self._built:
            raise SchemaError(f"{typename(type(self))} cannot be changed after it was built")
        method(self, *args, **kwargs)
        return self
    return wrapper


class OptionBuilder:
    """
    Fluent, single-use builder for one option descriptor.

    Setters check their own argument right away (fail fast) and return the
    builder; cross-field rules (min <= max, choices and default within bounds,
    default only on optional options) are checked by build().
    """
    __option__ = Option

    def __init__(self):
        self._metadata = {
            "name": Unset,
            "description": Unset,
            "required": True,
            "default": Unset,
            "choices": (),
        }
        self._built = False

    @_mutator
    def set_name(self, name, /):
        self._metadata["name"] = _sanitize_name(self.__option__, "name", name)

    @_mutator
    def set_description(self, description, /):
        self._metadata["description"] = _sanitize_description(self.__option__, description)

    @_mutator
    def set_required(self, required=True, /):
        self._metadata["required"] = _sanitize_bool(self.__option__, "required", required)

    @_mutator
    def set_default(self, default, /):
        self._metadata["default"] = default

    @_mutator
    def set_choices(self, *choices):
        self._metadata["choices"] = _sanitize_choices(self.__option__, choices)

    def build(self):
        option = self.__option__(**self._metadata)
        self._built = True
        return option

    def __repr__(self):
        return f"{typename(type(self))}({", ".join("%s=%r" % pair for pair in self._metadata.items())})"


class StringOptionBuilder(OptionBuilder):
    __option__ = StringOption

    def __init__(self):
        super().__init__()
        self._metadata |= {
            "min_length": None,
            "max_length": None,
            "rest": False,
        }

    @_mutator
    def set_min_length(self, length, /):
        self._metadata["min_length"] = _sanitize_length(self.__option__, "min_length", length)

    @_mutator
    def set_max_length(self, length, /):
        self._metadata["max_length"] = _sanitize_length(self.__option__, "max_length", length)

    @_mutator
    def set_rest(self, rest=True, /):
        self._metadata["rest"] = _sanitize_bool(self.__option__, "rest", rest)


class NumberOptionBuilder(OptionBuilder):
    __option__ = NumberOption

    def __init__(self):
        super().__init__()
        self._metadata |= {
            "min_value": None,
            "max_value": None,
            "integer": False,
        }

    @_mutator
    def set_min_value(self, value, /):
        self._metadata["min_value"] = _sanitize_number(self.__option__, "min_value", value)

    @_mutator
    def set_max_value(self, value, /):
        self._metadata["max_value"] = _sanitize_number(self.__option__, "max_value", value)

    @_mutator
    def set_integer(self, integer=True, /):
        self._metadata["integer"] = _sanitize_bool(self.__option__, "integer", integer)


class BooleanOptionBuilder(OptionBuilder):
    __option__ = BooleanOption


class MentionableOptionBuilder(OptionBuilder):
    __option__ = MentionableOption

    def __init__(self):
        super().__init__()
        self._metadata |= {
            "kinds": tuple(MentionKind),
        }

    @_mutator
    def set_kinds(self, *kinds):
        self._metadata["kinds"] = _sanitize_kinds(self.__option__, kinds)


class CustomOptionBuilder(OptionBuilder):
    __option__ = CustomOption

    def __init__(self, coercer=Unset, /):
        super().__init__()
        self._metadata |= {
            "coercer": Unset,
        }
        if coercer is not Unset:
            self.set_coercer(coercer)

    @_mutator
    def set_coercer(self, coercer, /):
        if not callable(coercer):
            raise SchemaError(f"{self.__option__.__typename__} 'coercer' must be callable")
        self._metadata["coercer"] = coercer


__all__ = (
    # Descriptors
    "Option",
    "StringOption",
    "NumberOption",
    "BooleanOption",
    "MentionableOption",
    "CustomOption",

    # Builders
    "OptionBuilder",
    "StringOptionBuilder",
    "NumberOptionBuilder",
    "BooleanOptionBuilder",
    "MentionableOptionBuilder",
    "CustomOptionBuilder",
)

# Remove the internal metaclass from the module namespace to avoid accidental
# exposure in docs, autocompletion, or star-imports. Not part of the public API.
del OptionType
