"""
Parley faults (schema errors, user-input faults) and rendering.

Scope
- SchemaError: programmer mistakes in a command declaration (empty names,
  required-after-optional, min greater than max, ...). Raised immediately while
  the schema is being built; never produced while validating user input.
- FaultCode: canonical, stable numeric identifiers for every user-facing fault.
  Codes are grouped by validation phase to keep copy consistent and make
  logs/searches predictable.
- CommandFault: base type for recoverable faults. A fault carries a message and
  an immutable mapping of options (code, title, hint, option, token, index...)
  and knows how to render itself with rich.
- CommandExit: an exception group bundling every fault of a validation pass, for
  callers that prefer raising over inspecting the result.
- getdoc(): optional description lookup for a code from the host application.

Tone
- Lowercased, position-first messages ("... at second position"), one sentence
  each, with a single actionable hint.
- Styling is configurable via __styles__ in __main__; codes can be relabelled
  via __codes__ and the program label via __prog__.
"""
from collections import defaultdict
from enum import IntEnum
from types import MappingProxyType

from rich.console import Group
from rich.panel import Panel
from rich.text import Text

from .internals import Unset, nullify, ordinal


class SchemaError(TypeError, ValueError):
    """
    configuration error raised while declaring a command.

    it derives from both TypeError and ValueError: a wrong type and a wrong value
    are both programmer mistakes here, and callers catching either keep working.
    it never derives from CommandFault, so user-input faults and schema mistakes
    cannot be confused.
    """


class FaultCode(IntEnum):
    """
    canonical fault codes produced by a validation pass (stable identifiers).

    grouping (by validation phase)
    - tokenizing (1110x)
      • UNTERMINATED_QUOTE
    - matching (1111x)
      • MISSING_OPTION, UNEXPECTED_ARGUMENT
    - coercing (1112x)
      • INVALID_NUMBER, OUT_OF_RANGE, INVALID_BOOLEAN, INVALID_MENTION,
        MENTION_KIND, INVALID_LENGTH, INVALID_CHOICE
    - delegated (1113x)
      • DELEGATED_ERROR (custom coercer rejection)

    spacing leaves room for future additions without reshuffling existing codes.
    """
    # --- tokenizing ---
    UNTERMINATED_QUOTE  = 11101

    # --- matching ---
    MISSING_OPTION      = 11111
    UNEXPECTED_ARGUMENT = 11112

    # --- coercing ---
    INVALID_NUMBER      = 11121
    OUT_OF_RANGE        = 11122
    INVALID_BOOLEAN     = 11123
    INVALID_MENTION     = 11124
    MENTION_KIND        = 11125
    INVALID_LENGTH      = 11126
    INVALID_CHOICE      = 11127

    # --- delegated ---
    DELEGATED_ERROR     = 11131

    def normalize(self):
        """
        return a host-normalized string for this code.

        the host application can provide a __codes__ mapping in __main__
        to override numeric ids with friendlier labels. when no mapping
        is present, the numeric value is returned as a string.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


def _palette(defaults):
    return defaultdict(str, defaults | getattr(__import__("__main__"), "__styles__", {}))


class CommandFault(Exception):
    """
    a recoverable, user-input fault recorded during validation.

    options recognized by the renderer and the accessors below
    - code, title, hint: classification and guidance.
    - option: name of the offending option (absent for tokenizing faults).
    - token: the raw token that failed (absent for missing options).
    - index: 1-based argument position (the command name is position zero).
    - reason: short machine-friendly reason ("out of range", ...).
    - command: the Command being validated (used for the header label).
    - colorful, fancy: rendering switches (see Validation.report).
    """

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str) or message is Unset
        self.message = message
        self.options = MappingProxyType(options)

    def __str__(self):
        return nullify(self.message, "")

    @property
    def code(self):
        return self.options.get("code")

    @property
    def title(self):
        return self.options.get("title")

    @property
    def hint(self):
        return self.options.get("hint")

    @property
    def option(self):
        return self.options.get("option")

    @property
    def token(self):
        return self.options.get("token")

    @property
    def index(self):
        return self.options.get("index")

    @property
    def reason(self):
        return self.options.get("reason", str(self))

    def __rich__(self):
        main = __import__("__main__")
        colorful = self.options.get("colorful", True)
        fancy = self.options.get("fancy", False)

        styles = _palette({
            # header parts
            "prog-name": "bold #E6E6F0",  # near-white program name
            "code": "bold #00E5FF",  # neon cyan fault code
            "error-title": "bold #FF4DA6",  # friendly pinky title
            "position": "#FFD600",  # amber position label

            # body
            "error-message": "#C8C8D0",  # soft light gray message
            "hint-arrow": "#9CE19C dim",  # gentle green arrow
            "hint": "italic #9CE19C",  # gentle green hint text
        })

        def text(fragment, style=""):
            if not fragment:
                return Text("")
            if not colorful:
                return Text(str(fragment))
            return Text(str(fragment), styles[style])

        command = self.options.get("command")
        prog = text(getattr(main, "__prog__", getattr(command, "name", "parley")), "prog-name")

        code = self.code.normalize() if isinstance(self.code, FaultCode) else self.code
        header = Text.assemble(
            "[ ",
            prog,
            " · ",
            text(code, "code"),
            " | ",
            text(str(self.title or "fault").title(), "error-title"),
            *((" @ ", text(ordinal(self.index), "position")) if self.index else ()),
            " ]"
        )
        message = text(self, "error-message")
        hint = Text.assemble(text(" → ", "hint-arrow"), text(self.hint, "hint"))

        if fancy:
            return Panel(Group(message, hint), title=header, title_align="left")
        return Group(header, message, hint)

    def __replace__(self, *unused, **overrides):
        """
        copy with updated options; a 'message' override replaces the message.

        the cause and traceback travel with the copy.
        """
        assert not unused, "positional arguments are not allowed"
        message = overrides.pop("message", self.message)
        fault = type(self)(message, **{**self.options, **overrides})
        fault.__cause__ = self.__cause__
        fault.__traceback__ = self.__traceback__
        return fault


class UnterminatedQuoteError(CommandFault): ...
class MissingOptionError(CommandFault): ...
class UnexpectedArgumentError(CommandFault): ...
class InvalidNumberError(CommandFault): ...
class OutOfRangeError(CommandFault): ...
class InvalidBooleanError(CommandFault): ...
class InvalidMentionError(CommandFault): ...
class MentionKindError(CommandFault): ...
class LengthError(CommandFault): ...
class InvalidChoiceError(CommandFault): ...
class DelegatedError(CommandFault): ...


class CommandExit(ExceptionGroup[CommandFault]):
    """
    every fault of one validation pass, raised together.
    """

    def __new__(cls, exceptions, **options):
        return super().__new__(cls, "bad input", tuple(exceptions))

    def __init__(self, exceptions, **options):
        super().__init__("bad input", tuple(exceptions))
        self.options = MappingProxyType(options)

    def derive(self, exceptions, /):
        return type(self)(exceptions, **self.options)

    def __rich__(self):
        main = __import__("__main__")
        colorful = self.options.get("colorful", True)
        fancy = self.options.get("fancy", False)

        styles = _palette({
            "prog-name": "bold #E6E6F0",  # near-white program name
            "title": "bold #FF4DA6",  # friendly pinky group title
        })

        def text(fragment, style=""):
            if not colorful:
                return Text(str(fragment))
            return Text(str(fragment), styles[style])

        command = self.options.get("command")
        prog = text(getattr(main, "__prog__", getattr(command, "name", "parley")), "prog-name")
        header = Text.assemble("[ ", prog, " · ", text(self.message.title(), "title"), " ]")

        renders = [
            fault.__replace__(colorful=colorful, fancy=fancy) for fault in self.exceptions
        ]

        if fancy:
            return Panel(Group(*renders), title=header, title_align="left")
        return Group(header, *renders)

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.exceptions, **{**self.options, **overrides})


def getdoc(code, /):
    """
    optional documentation fetch for a fault code.

    lookup
    - the host application may expose a __docs__ mapping in __main__ where keys
      are FaultCode instances and values are short documentation strings.
    - when not found, returns None (renderers treat docs as optional).
    """
    if not isinstance(code, FaultCode):
        raise TypeError("getdoc() argument must be a fault-code")
    try:
        return getattr(__import__("__main__"), "__docs__", {})[code]
    except KeyError:
        return None


__all__ = (
    "SchemaError",
    "FaultCode",
    "CommandFault",
    "UnterminatedQuoteError",
    "MissingOptionError",
    "UnexpectedArgumentError",
    "InvalidNumberError",
    "OutOfRangeError",
    "InvalidBooleanError",
    "InvalidMentionError",
    "MentionKindError",
    "LengthError",
    "InvalidChoiceError",
    "DelegatedError",
    "CommandExit",
    "getdoc",
)
