"""
Parley command layer: declare a command schema, then validate messages against it.

What this module provides
- Command: frozen schema (name, description, aliases, ordered option
  descriptors, quote characters) with a single-pass validation engine.
- CommandBuilder: fluent, single-use builder producing a Command.
- Validation: the outcome of one pass, either every fault found or the
  positionally aligned, coerced values.
- Value: one tagged value (name, kind, value, present).
- command(...): shortcut returning a fresh CommandBuilder.

Engine (Command.validate)
- tokenizing: split the full message line; the first token is the command name
  and is dropped. An unterminated quote is the only fault of that pass.
- matching: option i takes argument i (1-based). Missing required options are
  all reported; an unmatched optional option yields its default with
  present=False. Extra arguments are faults (one per token) unless the last
  option is a 'rest' string option, which absorbs them.
- coercing: every matched pair is coerced; failures are recorded with the
  argument position and processing goes on.
- aggregating: values are only reported when there is no fault at all.

Quick start
    from parley import command

    ban = (
        command("ban", "ban a member from the server")
        .add_alias("b")
        .add_mentionable_option(lambda option: (
            option.set_name("user").set_description("who to ban").set_kinds("user")
        ))
        .add_string_option(lambda option: (
            option.set_name("reason").set_description("why").set_required(False).set_rest()
        ))
        .build()
    )

    validation = ban.validate("!ban <@80351110224678912> spamming links")
    if not validation:
        validation.report()
"""
import copy
from collections import namedtuple

from rich.box import ROUNDED
from rich.console import Console, Group
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .faults import *
from .faults import _palette
from .internals import *
from .kinds import OptionKind, MentionKind
from .options import (
    Option,
    StringOptionBuilder,
    NumberOptionBuilder,
    BooleanOptionBuilder,
    MentionableOptionBuilder,
    CustomOptionBuilder,
    _mutator,
    _sanitize_name,
    _sanitize_description,
)
from .tokens import QUOTES, tokenize


class CommandType(type):
    """
    Metaclass shared by Command and Validation.

    Responsibilities
    - Expose every name listed in __fields__ as a read-only view() property.
    - Derive __typename__ from the class name for messages.
    - Provide __repr__/__rich_repr__ driven by __fields__.
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

        @rename("__rich_repr__")
        def __rich_repr__(self):
            for field in type(self).__fields__:
                yield field, getattr(self, field)
        self.__rich_repr__ = __rich_repr__

        @rename("__repr__")
        def __repr__(self):
            return f"{type(self).__typename__}({", ".join("%s=%r" % pair for pair in self.__rich_repr__())})"
        self.__repr__ = __repr__

        return self


class Value(namedtuple("Value", ("name", "kind", "value", "present"))):
    """
    a coerced value tagged with its option name and kind.

    present is False for an unmatched optional option; value is then the
    option's default (None unless one was declared).
    """
    __slots__ = ()


def _check_options(cls, options, /, reserved=()):
    """
    Internal: enforce the ordering and naming rules over a sequence of options.
    """
    seen = set()
    optional = None
    for position, option in enumerate(options, 1):
        if not isinstance(option, Option):
            raise SchemaError(f"{typename(cls)} 'options' must contain only options")
        if option.name in seen:
            raise SchemaError(f"{typename(cls)} option name {option.name!r} is already in use")
        if option.name in reserved:
            raise SchemaError(f"{typename(cls)} option name {option.name!r} collides with the command name or an alias")
        seen.add(option.name)

        if option.required and optional:
            raise SchemaError(
                f"{typename(cls)} required option {option.name!r} cannot follow optional option {optional!r}"
            )
        if not option.required:
            optional = option.name

        if option.rest and position != len(options):
            raise SchemaError(f"{typename(cls)} rest option {option.name!r} must be the last option")
    return tuple(options)


def _constraints(option):
    """
    Internal: short human summary of an option's constraints for help tables.
    """
    notes = []
    if option.choices:
        notes.append("one of: %s" % " · ".join(map(str, option.choices)))
    match option.kind:
        case OptionKind.STRING:
            if option.min_length is not None or option.max_length is not None:
                notes.append("length %s..%s" % (option.min_length or 0, "∞" if option.max_length is None else option.max_length))
            if option.rest:
                notes.append("rest of the message")
        case OptionKind.NUMBER:
            if option.integer:
                notes.append("whole number")
            if option.min_value is not None:
                notes.append("min %s" % option.min_value)
            if option.max_value is not None:
                notes.append("max %s" % option.max_value)
        case OptionKind.MENTIONABLE:
            if len(option.kinds) < len(MentionKind):
                notes.append(" or ".join(option.kinds))
    if not option.required and option.default is not None:
        notes.append("default %s" % option.default)
    return ", ".join(notes)


class Command(StorageGuard, metaclass=CommandType):
    """
    Frozen command schema plus its validation engine.

    Fields (read-only)
    - name, description: identity used by help and fault headers.
    - aliases: frozenset of alternative names (the host dispatcher uses them).
    - options: tuple of option descriptors; declaration order is positional order.
    - quotes: quote characters honored by the tokenizer.

    Build-time rules (SchemaError)
    - option names are unique and differ from the name and every alias;
    - no required option follows an optional one;
    - a 'rest' string option is the last option.

    A Command holds no per-call state: validate() can be called from any number
    of threads with identical results for identical input.
    """
    __fields__ = (
        "name",
        "description",
        "aliases",
        "options",
        "quotes",
    )

    def __new__(cls, name=Unset, description=Unset, *, aliases=(), options=(), quotes=QUOTES):
        name = _sanitize_name(cls, "name", name)
        description = _sanitize_description(cls, description)

        if isinstance(aliases, str):
            raise SchemaError(f"{cls.__typename__} 'aliases' must be an iterable of strings")
        sanitized = set()
        for alias in aliases:
            alias = _sanitize_name(cls, "alias", alias)
            if alias == name:
                raise SchemaError(f"{cls.__typename__} alias {alias!r} is the command name")
            if alias in sanitized:
                raise SchemaError(f"{cls.__typename__} 'aliases' cannot contain duplicates")
            sanitized.add(alias)
        aliases = frozenset(sanitized)

        options = _check_options(cls, tuple(options), reserved=aliases | {name})

        if not isinstance(quotes, str):
            raise SchemaError(f"{cls.__typename__} 'quotes' must be a string")
        tokenize("", quotes)  # rejects quote sets the tokenizer cannot honor

        with super().__new__(cls) as self:
            setattr(self, "-name", name)
            setattr(self, "-description", description)
            setattr(self, "-aliases", aliases)
            setattr(self, "-options", options)
            setattr(self, "-quotes", quotes)
        return self

    @property
    def usage(self):
        """
        plain usage line, e.g. 'ban <user> [reason...]'.
        """
        return " ".join((self.name, *(option.usage for option in self.options)))

    def validate(self, text, /):
        """
        validate a full message line (command name included) against this schema.

        returns a Validation; user-input faults are data, never raised.
        raises TypeError when text is not a string.
        """
        if not isinstance(text, str):
            raise TypeError(f"{type(self).__typename__} validate() argument must be a string")

        try:
            arguments = tokenize(text, self.quotes)[1:]
        except UnterminatedQuoteError as fault:
            return Validation((copy.replace(fault, command=self),), command=self)

        faults = []
        values = []
        consumed = 0

        for index, option in enumerate(self.options, 1):
            if index > len(arguments):
                if option.required:
                    faults.append(MissingOptionError(
                        "option %r at %s position is missing" % (option.name, ordinal(index)),
                        title="missing option",
                        code=FaultCode.MISSING_OPTION,
                        reason="missing option",
                        hint="provide a %s value for %r (usage: %s)" % (option.kind, option.name, self.usage),
                        option=option.name,
                        index=index,
                        command=self,
                        docs=getdoc(FaultCode.MISSING_OPTION),
                    ))
                else:
                    values.append(Value(option.name, option.kind, option.default, False))
                continue

            if option.rest:
                token = " ".join(arguments[index - 1:])
                consumed = len(arguments)
            else:
                token = arguments[index - 1]
                consumed = index

            try:
                value = option.coerce(token)
            except CommandFault as fault:
                # faults raised by custom coercers may not name their slot
                context = {
                    key: value
                    for key, value in (("option", option.name), ("token", token))
                    if fault.options.get(key) is None
                }
                faults.append(copy.replace(
                    fault,
                    message="%s at %s position" % (fault, ordinal(index)),
                    index=index,
                    command=self,
                    **context,
                ))
                continue
            values.append(Value(option.name, option.kind, value, True))

        for index, token in enumerate(arguments[consumed:], consumed + 1):
            faults.append(UnexpectedArgumentError(
                "unexpected argument %r at %s position" % (token, ordinal(index)),
                title="unexpected argument",
                code=FaultCode.UNEXPECTED_ARGUMENT,
                reason="unexpected argument",
                hint="remove it (usage: %s) or quote it together with the previous argument" % self.usage,
                token=token,
                index=index,
                command=self,
                docs=getdoc(FaultCode.UNEXPECTED_ARGUMENT),
            ))

        return Validation(faults, () if faults else values, command=self)

    def __rich__(self):
        styles = _palette({
            "usage-label": "bold #00E6FF",  # cyan signature label
            "usage-section": "bold #36C5F0",  # sky-blue usage line
            "description-section": "italic #A3A3A3",  # neutral gray
            "option-name": "bold #FFD600",  # amber slots
            "option-kind": "#22C55E",  # green kinds
            "option-table": "#4B5563",  # slate border
            "constraint": "#FF4D94",  # magenta constraints
            "argument-description": "#9CA3AF",  # muted gray
            "panel-title": "bold #FF4D94",  # magenta branding
            "panel-subtitle": "#9CA3AF",
        })

        renders = [
            Text.assemble(("usage", styles["usage-label"]), ": ", (self.usage, styles["usage-section"])),
            Text(self.description, styles["description-section"]),
        ]

        if self.options:
            table = Table(
                "option", "kind", "constraints", "description",
                box=ROUNDED,
                style=styles["option-table"],
                header_style="bold",
            )
            for option in self.options:
                table.add_row(
                    Text(option.usage, styles["option-name"]),
                    Text(option.kind, styles["option-kind"]),
                    Text(_constraints(option), styles["constraint"]),
                    Text(option.description, styles["argument-description"]),
                )
            renders.append(table)

        return Panel(
            Group(*renders),
            title=Text.assemble("[ ", f"{self.name} help".upper(), " ]", style=styles["panel-title"]),
            title_align="left",
            subtitle=Text("aliases: %s" % ", ".join(sorted(self.aliases)), styles["panel-subtitle"]) if self.aliases else None,
        )


def _signature(fault):
    # the wrapped exception and the command carry no stable equality
    return type(fault), str(fault), {
        key: value for key, value in fault.options.items() if key not in ("exception", "command")
    }


class Validation(StorageGuard, metaclass=CommandType):
    """
    Outcome of one validation pass.

    Fields (read-only)
    - errors: tuple of CommandFault, in discovery order (empty means success).
    - options: tuple of Value aligned with the command's options; empty whenever
      errors is not.
    - command: the Command that produced it.

    Helpers
    - bool(validation) / validation.ok
    - validation["name"], validation.get("name"), validation.as_dict()
    - unwrap(): the coerced values, or raise CommandExit with every fault.
    - report(): print the faults with rich.
    """
    __fields__ = (
        "errors",
        "options",
        "command",
    )

    def __new__(cls, errors=(), options=(), /, *, command=None):
        errors = tuple(errors)
        options = tuple(options)
        if not all(isinstance(error, CommandFault) for error in errors):
            raise TypeError(f"{cls.__typename__} 'errors' must contain only command faults")
        if errors and options:
            raise ValueError(f"{cls.__typename__} cannot carry values alongside errors")

        with super().__new__(cls) as self:
            setattr(self, "-errors", errors)
            setattr(self, "-options", options)
            setattr(self, "-command", command)
        return self

    @property
    def ok(self):
        return not self.errors

    def __bool__(self):
        return self.ok

    def __getitem__(self, name, /):
        for value in self.options:
            if value.name == name:
                return value.value
        raise KeyError(name)

    def get(self, name, default=None, /):
        try:
            return self[name]
        except KeyError:
            return default

    def as_dict(self):
        """
        option name -> coerced value (defaults included), in declaration order.
        """
        return {value.name: value.value for value in self.options}

    def unwrap(self):
        """
        return the coerced values as a tuple, or raise CommandExit grouping every fault.
        """
        if self.errors:
            raise CommandExit(self.errors, command=self.command)
        return tuple(value.value for value in self.options)

    def report(self, console=None, *, fancy=False, colorful=True):
        """
        print every fault to `console` (a rich Console on stderr by default).

        returns ok so callers can write `if not validation.report(): return`.
        """
        if self.errors:
            console = console if console is not None else Console(stderr=True)
            console.print(CommandExit(self.errors, command=self.command, fancy=fancy, colorful=colorful))
        return self.ok

    def __rich__(self):
        if self.errors:
            return CommandExit(self.errors, command=self.command)

        table = Table("option", "kind", "value", box=ROUNDED, header_style="bold")
        for value in self.options:
            table.add_row(
                Text(value.name),
                Text(value.kind),
                Text(repr(value.value)) if value.present else Text("%r (default)" % (value.value,), "dim"),
            )
        return table

    def __eq__(self, other, /):
        if not isinstance(other, Validation):
            return NotImplemented
        return (
            self.command is other.command and
            self.options == other.options and
            list(map(_signature, self.errors)) == list(map(_signature, other.errors))
        )

    __hash__ = None


class CommandBuilder:
    """
    Fluent, single-use builder for a Command.

    Every setter checks its argument right away and returns the builder.
    add_<kind>_option(setup) creates the option builder, passes it to `setup`,
    builds it and appends the descriptor (declaration order is positional
    order). Ordering and naming rules are checked as each option is added.

    build() freezes the schema and caches the Command; the first validate()
    builds implicitly. Once built, every mutator raises SchemaError.
    """

    def __init__(self, name=Unset, description=Unset, /, *, aliases=(), quotes=QUOTES):
        self._metadata = {
            "name": Unset,
            "description": Unset,
            "aliases": [],
            "options": [],
            "quotes": QUOTES,
        }
        self._built = False
        self._command = None

        if name is not Unset:
            self.set_name(name)
        if description is not Unset:
            self.set_description(description)
        if isinstance(aliases, str):
            raise SchemaError(f"{typename(Command)} 'aliases' must be an iterable of strings")
        self.add_alias(*aliases)
        self.set_quotes(quotes)

    def _reserved(self):
        return {*self._metadata["aliases"], *(() if self._metadata["name"] is Unset else (self._metadata["name"],))}

    @_mutator
    def set_name(self, name, /):
        name = _sanitize_name(Command, "name", name)
        if name in self._metadata["aliases"]:
            raise SchemaError(f"{typename(Command)} name {name!r} is already an alias")
        if any(option.name == name for option in self._metadata["options"]):
            raise SchemaError(f"{typename(Command)} name {name!r} collides with an option name")
        self._metadata["name"] = name

    @_mutator
    def set_description(self, description, /):
        self._metadata["description"] = _sanitize_description(Command, description)

    @_mutator
    def add_alias(self, *aliases):
        for alias in aliases:
            alias = _sanitize_name(Command, "alias", alias)
            if alias in self._reserved():
                raise SchemaError(f"{typename(Command)} alias {alias!r} is already in use")
            if any(option.name == alias for option in self._metadata["options"]):
                raise SchemaError(f"{typename(Command)} alias {alias!r} collides with an option name")
            self._metadata["aliases"].append(alias)

    @_mutator
    def set_quotes(self, quotes, /):
        if not isinstance(quotes, str):
            raise SchemaError(f"{typename(Command)} 'quotes' must be a string")
        tokenize("", quotes)
        self._metadata["quotes"] = quotes

    @_mutator
    def add_option(self, option, /):
        self._metadata["options"] = list(
            _check_options(Command, (*self._metadata["options"], option), reserved=self._reserved())
        )

    def _add(self, builder, setup):
        if not callable(setup):
            raise SchemaError(f"{typename(type(builder))} setup must be callable")
        setup(builder)
        return self.add_option(builder.build())

    @_mutator
    def add_string_option(self, setup, /):
        self._add(StringOptionBuilder(), setup)

    @_mutator
    def add_number_option(self, setup, /):
        self._add(NumberOptionBuilder(), setup)

    @_mutator
    def add_boolean_option(self, setup, /):
        self._add(BooleanOptionBuilder(), setup)

    @_mutator
    def add_mentionable_option(self, setup, /):
        self._add(MentionableOptionBuilder(), setup)

    @_mutator
    def add_custom_option(self, coerce, setup, /):
        self._add(CustomOptionBuilder(coerce), setup)

    def build(self):
        """
        freeze the schema into a Command (cached: later calls return the same object).
        """
        if self._command is None:
            self._command = Command(**self._metadata)
            self._built = True
        return self._command

    def validate(self, text, /):
        return self.build().validate(text)

    def __repr__(self):
        return f"{typename(type(self))}({", ".join("%s=%r" % pair for pair in self._metadata.items())})"


def command(name, description, /, *, aliases=(), quotes=QUOTES):
    """
    shortcut: CommandBuilder(name, description, aliases=aliases, quotes=quotes).
    """
    return CommandBuilder(name, description, aliases=aliases, quotes=quotes)


__all__ = (
    "Command",
    "CommandBuilder",
    "Value",
    "Validation",
    "command",
)

# Remove the internal metaclass from the module namespace to avoid accidental
# exposure in docs, autocompletion, or star-imports. Not part of the public API.
del CommandType
