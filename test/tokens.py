"""
Tokenizer behavioral tests.

Scope
- Whitespace splitting (ascii and unicode, runs collapse).
- Quoting: grouped whitespace, adjacent text, explicit empty tokens, custom and
  disabled quote sets.
- Literal characters: no escapes, no comments.
- Unterminated quotes and argument checks.

Conventions
- Test method names follow CamelCase per project convention.
"""
import unittest
from unittest import TestCase

from parley import tokenize, UnterminatedQuoteError, SchemaError, FaultCode, CommandFault


class TestSplitting(TestCase):

    def testSingleSpaces(self):
        self.assertEqual(tokenize("ban alice now"), ("ban", "alice", "now"))

    def testWhitespaceRunsCollapse(self):
        self.assertEqual(tokenize("  ban \t alice\n\nnow  "), ("ban", "alice", "now"))

    def testUnicodeWhitespace(self):
        self.assertEqual(tokenize("ban\u00a0alice\u3000now\u2003!"), ("ban", "alice", "now", "!"))

    def testEmptyInput(self):
        self.assertEqual(tokenize(""), ())

    def testWhitespaceOnlyInput(self):
        self.assertEqual(tokenize(" \t\n "), ())

    def testReturnsTuple(self):
        self.assertIsInstance(tokenize("a b"), tuple)


class TestQuoting(TestCase):

    def testQuotedSegmentIsOneToken(self):
        self.assertEqual(tokenize('say "hello   world" twice'), ("say", "hello   world", "twice"))

    def testQuotesAdjacentToText(self):
        self.assertEqual(tokenize('a"b c"'), ("ab c",))
        self.assertEqual(tokenize('"b c"d'), ("b cd",))

    def testEmptyQuotesYieldEmptyToken(self):
        self.assertEqual(tokenize('say ""'), ("say", ""))

    def testSingleQuoteIsLiteralByDefault(self):
        self.assertEqual(tokenize("say don't stop"), ("say", "don't", "stop"))

    def testCustomQuotes(self):
        self.assertEqual(tokenize("say 'a b' \"c", "'"), ("say", "a b", '"c'))

    def testSeveralQuoteCharacters(self):
        self.assertEqual(tokenize("say 'a \"b' \"c 'd\"", "'\""), ("say", 'a "b', "c 'd"))

    def testQuotingDisabled(self):
        self.assertEqual(tokenize('say "a b"', ""), ("say", '"a', 'b"'))

    def testUnterminatedQuote(self):
        with self.assertRaises(UnterminatedQuoteError) as context:
            tokenize('say "hello world')
        fault = context.exception
        self.assertIsInstance(fault, CommandFault)
        self.assertIs(fault.code, FaultCode.UNTERMINATED_QUOTE)
        self.assertEqual(fault.options["text"], 'say "hello world')

    def testUnterminatedCustomQuote(self):
        with self.assertRaises(UnterminatedQuoteError):
            tokenize("say 'oops", "'")


class TestLiterals(TestCase):

    def testBackslashIsLiteral(self):
        self.assertEqual(tokenize(r"path C:\temp\new"), ("path", r"C:\temp\new"))

    def testBackslashDoesNotEscapeQuotes(self):
        self.assertEqual(tokenize(r'say "a\" b'), ("say", "a\\", "b"))

    def testHashIsNotAComment(self):
        self.assertEqual(tokenize("join #general now"), ("join", "#general", "now"))

    def testMentionsSurvive(self):
        self.assertEqual(tokenize("ban <@!123> <@&456>"), ("ban", "<@!123>", "<@&456>"))


class TestArguments(TestCase):

    def testTextMustBeString(self):
        with self.assertRaises(TypeError):
            tokenize(b"ban alice")

    def testQuotesMustBeString(self):
        with self.assertRaises(SchemaError):
            tokenize("ban alice", ["'"])

    def testQuotesCannotBeWhitespace(self):
        with self.assertRaises(SchemaError):
            tokenize("ban alice", " ")


if __name__ == '__main__':
    unittest.main()
