"""
Coercers: turn one raw token into a typed value, or fail with a CommandFault.

One function per option kind, each with the contract
    coerce_<kind>(option, token) -> value        (raises CommandFault)
plus coerce(option, token), which dispatches on option.kind and then applies
the kind-independent 'choices' constraint to the coerced value.

Literal sets
- numbers: [+-]?(digits[.digits?] | .digits), ascii digits only, no exponent,
  no inf/nan; integral literals become int, the others float.
- booleans (case-insensitive):
    truthy: true yes y on 1 enable
    falsy:  false no n off 0 disable
  render_boolean() gives the canonical literal back ("true"/"false").
- mentions: <@id> or <@!id> (user), <@&id> (role), <#id> (channel); ids are
  1 to 20 ascii digits (a 64-bit snowflake).
"""
import math
import re

from .faults import *
from .kinds import OptionKind, MentionKind, Mention

TRUTHY = frozenset({"true", "yes", "y", "on", "1", "enable"})
FALSY = frozenset({"false", "no", "n", "off", "0", "disable"})

_INTEGER = re.compile(r"[+-]?[0-9]+")
_DECIMAL = re.compile(r"[+-]?(?:[0-9]+\.[0-9]*|\.[0-9]+)")
_MENTION = re.compile(r"<(?P<sigil>@!?|@&|#)(?P<id>[0-9]{1,20})>")

_SIGILS = {
    "@": MentionKind.USER,
    "@!": MentionKind.USER,
    "@&": MentionKind.ROLE,
    "#": MentionKind.CHANNEL,
}


def _bounds(lower, upper):
    if lower is not None and upper is not None:
        return "between %s and %s" % (lower, upper)
    if lower is not None:
        return "greater than or equal to %s" % lower
    return "less than or equal to %s" % upper


def coerce_string(option, token, /):
    length = len(token)
    if (
        (option.min_length is not None and length < option.min_length) or
        (option.max_length is not None and length > option.max_length)
    ):
        raise LengthError(
            "value for option %r must have a length %s" % (
                option.name, _bounds(option.min_length, option.max_length)
            ),
            title="invalid length",
            code=FaultCode.INVALID_LENGTH,
            reason="invalid length",
            hint="use a text whose length is %s (got %d)" % (
                _bounds(option.min_length, option.max_length), length
            ),
            option=option.name,
            token=token,
            docs=getdoc(FaultCode.INVALID_LENGTH),
        )
    return token


def coerce_number(option, token, /):
    if _INTEGER.fullmatch(token):
        try:
            value = int(token)
        except ValueError:
            # more digits than int() converts
            value = math.inf
    elif _DECIMAL.fullmatch(token) and not option.integer:
        value = float(token)
    else:
        expected = "a whole number" if option.integer else "a number"
        raise InvalidNumberError(
            "value %r for option %r is not %s" % (token, option.name, expected),
            title="invalid number",
            code=FaultCode.INVALID_NUMBER,
            reason="not %s" % expected,
            hint="use %s (for example: %s)" % (expected, "42" if option.integer else "42 or -3.5"),
            option=option.name,
            token=token,
            docs=getdoc(FaultCode.INVALID_NUMBER),
        )

    if isinstance(value, float) and not math.isfinite(value):
        raise InvalidNumberError(
            "value %r for option %r is too large" % (token, option.name),
            title="invalid number",
            code=FaultCode.INVALID_NUMBER,
            reason="too large",
            hint="use a smaller number",
            option=option.name,
            token=token,
            docs=getdoc(FaultCode.INVALID_NUMBER),
        )

    if (
        (option.min_value is not None and value < option.min_value) or
        (option.max_value is not None and value > option.max_value)
    ):
        raise OutOfRangeError(
            "value %s for option %r is out of range" % (token, option.name),
            title="out of range",
            code=FaultCode.OUT_OF_RANGE,
            reason="out of range",
            hint="use a number %s" % _bounds(option.min_value, option.max_value),
            option=option.name,
            token=token,
            docs=getdoc(FaultCode.OUT_OF_RANGE),
        )
    return value


def coerce_boolean(option, token, /):
    literal = token.casefold()
    if literal in TRUTHY:
        return True
    if literal in FALSY:
        return False
    raise InvalidBooleanError(
        "value %r for option %r is not a boolean" % (token, option.name),
        title="invalid boolean",
        code=FaultCode.INVALID_BOOLEAN,
        reason="not a boolean",
        hint="use one of: %s" % " · ".join((*sorted(TRUTHY), *sorted(FALSY))),
        option=option.name,
        token=token,
        docs=getdoc(FaultCode.INVALID_BOOLEAN),
    )


def render_boolean(value, /):
    """
    canonical literal for a boolean value; coerce_boolean() parses it back.
    """
    if not isinstance(value, bool):
        raise TypeError("render_boolean() argument must be a boolean")
    return "true" if value else "false"


def coerce_mention(option, token, /):
    if not (match := _MENTION.fullmatch(token)):
        raise InvalidMentionError(
            "value %r for option %r is not a mention" % (token, option.name),
            title="invalid mention",
            code=FaultCode.INVALID_MENTION,
            reason="not a mention",
            hint="mention a %s (for example: %s)" % (
                " or ".join(option.kinds), str(Mention(option.kinds[0], 123456789012345678))
            ),
            option=option.name,
            token=token,
            docs=getdoc(FaultCode.INVALID_MENTION),
        )

    mention = Mention(_SIGILS[match["sigil"]], int(match["id"]))
    if mention.kind not in option.kinds:
        raise MentionKindError(
            "value %r for option %r mentions a %s" % (token, option.name, mention.kind),
            title="wrong mention",
            code=FaultCode.MENTION_KIND,
            reason="%s mentions are not accepted" % mention.kind,
            hint="mention a %s instead" % " or ".join(option.kinds),
            option=option.name,
            token=token,
            docs=getdoc(FaultCode.MENTION_KIND),
        )
    return mention


def coerce_custom(option, token, /):
    try:
        return option.coercer(token)
    except CommandFault:
        raise
    except Exception as exception:
        # the author's coercer decides; its message is forwarded as the reason
        reason = str(exception) or "rejected by %s" % getattr(option.coercer, "__name__", "the coercer")
        raise DelegatedError(
            "value %r for option %r was rejected: %s" % (token, option.name, reason),
            title="rejected value",
            code=FaultCode.DELEGATED_ERROR,
            reason=reason,
            hint="check the expected format of %r" % option.name,
            option=option.name,
            token=token,
            exception=exception,
            docs=getdoc(FaultCode.DELEGATED_ERROR),
        ) from exception


def coerce(option, token, /):
    """
    coerce `token` for `option`, then check the option's choices.

    dispatch is exhaustive over OptionKind; an unknown kind is a programmer
    mistake and raises TypeError instead of a fault.
    """
    match option.kind:
        case OptionKind.STRING:
            value = coerce_string(option, token)
        case OptionKind.NUMBER:
            value = coerce_number(option, token)
        case OptionKind.BOOLEAN:
            value = coerce_boolean(option, token)
        case OptionKind.MENTIONABLE:
            value = coerce_mention(option, token)
        case OptionKind.CUSTOM:
            value = coerce_custom(option, token)
        case _:
            raise TypeError("coerce() cannot handle option kind %r" % (option.kind,))

    if option.choices and value not in option.choices:
        allowed = " · ".join(map(str, option.choices))
        raise InvalidChoiceError(
            "value %r for option %r is not a valid choice" % (token, option.name),
            title="invalid choice",
            code=FaultCode.INVALID_CHOICE,
            reason="invalid choice",
            hint="use one of: %s" % allowed,
            option=option.name,
            token=token,
            choices=option.choices,
            docs=getdoc(FaultCode.INVALID_CHOICE),
        )
    return value


__all__ = (
    "TRUTHY",
    "FALSY",
    "coerce_string",
    "coerce_number",
    "coerce_boolean",
    "coerce_mention",
    "coerce_custom",
    "render_boolean",
    "coerce",
)
