"""
Message tokenizer.

tokenize() splits a chat message into tokens:
- runs of any unicode whitespace separate tokens;
- a pair of quote characters groups text (whitespace included) into one token,
  and may touch unquoted text (a"b c" -> 'ab c'); "" is an explicit empty token;
- there is no escape character and no comment character, so backslashes and
  '#channel' style words are kept verbatim;
- an unterminated quote raises UnterminatedQuoteError, a CommandFault the
  validation engine records as data.

The first token of a message is the command name; callers that only want the
arguments drop it themselves (Command.validate does).
"""
import shlex

from .faults import FaultCode, SchemaError, UnterminatedQuoteError, getdoc

# Every code point str.isspace() accepts lives below U+3001.
WHITESPACE = "".join(filter(str.isspace, map(chr, range(0x3001))))

QUOTES = '"'


def tokenize(text, /, quotes=QUOTES):
    """
    split `text` into a tuple of tokens.

    parameters
    - text: str
      the raw message content (command name included).
    - quotes: str
      characters that open and close a quoted segment; each segment must be
      closed by the same character that opened it. empty disables quoting.

    raises
    - UnterminatedQuoteError when a quoted segment is never closed.
    - TypeError/SchemaError for invalid arguments (programmer mistakes).
    """
    if not isinstance(text, str):
        raise TypeError("tokenize() argument must be a string")
    if not isinstance(quotes, str):
        raise SchemaError("tokenize() 'quotes' must be a string")
    if set(quotes) & set(WHITESPACE):
        raise SchemaError("tokenize() 'quotes' cannot contain whitespace")

    lexer = shlex.shlex(text, posix=True)
    lexer.whitespace = WHITESPACE
    lexer.whitespace_split = True
    lexer.commenters = ""
    lexer.quotes = quotes
    lexer.escape = ""

    try:
        return tuple(lexer)
    except ValueError:
        # shlex only fails on a missing closing quotation
        raise UnterminatedQuoteError(
            "message has an unterminated quote",
            title="unterminated quote",
            code=FaultCode.UNTERMINATED_QUOTE,
            reason="unterminated quote",
            hint="close the quoted text with a matching quote, or remove the stray quote",
            text=text,
            docs=getdoc(FaultCode.UNTERMINATED_QUOTE),
        ) from None


__all__ = (
    "WHITESPACE",
    "QUOTES",
    "tokenize",
)
