"""
Type tags shared by option descriptors and coercers.

- OptionKind: the tag of every option descriptor; coercion dispatches on it.
- MentionKind / Mention: the structured reference produced by the mentionable
  coercer (kind + raw snowflake id). Mentions are never resolved here.
"""
from collections import namedtuple
from enum import StrEnum


class OptionKind(StrEnum):
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    MENTIONABLE = "mentionable"
    CUSTOM = "custom"


class MentionKind(StrEnum):
    USER = "user"
    ROLE = "role"
    CHANNEL = "channel"

    @property
    def sigil(self):
        """
        the mention prefix used when rendering back to chat syntax.
        """
        return {
            MentionKind.USER: "@",
            MentionKind.ROLE: "@&",
            MentionKind.CHANNEL: "#",
        }[self]


class Mention(namedtuple("Mention", ("kind", "id"))):
    """
    a parsed mention: Mention(MentionKind.USER, 80351110224678912).

    str() renders the canonical chat syntax, e.g. '<@80351110224678912>'.
    """
    __slots__ = ()

    def __str__(self):
        return f"<{self.kind.sigil}{self.id}>"


__all__ = (
    "OptionKind",
    "MentionKind",
    "Mention",
)
