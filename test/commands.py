"""
Command schema and validation engine behavioral tests.

Scope
- Validation outcomes: exact arity, missing options (all reported), optional
  placeholders and defaults, excess arguments, rest options, quoting and
  unterminated quotes, fault aggregation order and positions.
- Validation helpers: truthiness, lookup, as_dict, unwrap, report, equality.
- Schema rules enforced by CommandBuilder/Command (SchemaError at build time).
- Builder finalization and reuse; rendering with rich.

Conventions
- Test method names follow CamelCase per project convention.
- Messages handed to validate() include the command name as first token.
"""
import io
import unittest
from threading import Thread, Lock
from unittest import TestCase

from rich.console import Console

from parley import *


def _duration(token):
    units = {"s": 1, "m": 60, "h": 3600}
    if len(token) < 2 or token[-1] not in units or not token[:-1].isdigit():
        raise ValueError("use a duration like 10s, 5m or 2h")
    return int(token[:-1]) * units[token[-1]]


def _purge():
    return (
        command("purge", "delete recent messages")
        .add_number_option(lambda option: (
            option.set_name("count").set_description("how many").set_min_value(1).set_max_value(100).set_integer()
        ))
        .add_boolean_option(lambda option: (
            option.set_name("pinned").set_description("include pinned messages")
        ))
        .add_mentionable_option(lambda option: (
            option.set_name("author").set_description("only this author").set_kinds("user")
        ))
        .build()
    )


def _ban():
    return (
        command("ban", "ban a member", aliases=("b",))
        .add_mentionable_option(lambda option: (
            option.set_name("user").set_description("the member").set_kinds("user")
        ))
        .add_string_option(lambda option: (
            option.set_name("reason").set_description("why").set_required(False).set_rest()
        ))
        .build()
    )


class TestValidation(TestCase):

    def setUp(self):
        self.purge = _purge()

    def testExactArity(self):
        validation = self.purge.validate("!purge 50 yes <@42>")
        self.assertTrue(validation)
        self.assertEqual(validation.errors, ())
        self.assertEqual(validation.options, (
            Value("count", OptionKind.NUMBER, 50, True),
            Value("pinned", OptionKind.BOOLEAN, True, True),
            Value("author", OptionKind.MENTIONABLE, Mention(MentionKind.USER, 42), True),
        ))

    def testOptionsAlignWithSchema(self):
        validation = self.purge.validate("!purge 1 off <@!7>")
        self.assertEqual([value.name for value in validation.options], [option.name for option in self.purge.options])

    def testAllMissingReported(self):
        validation = self.purge.validate("!purge")
        self.assertFalse(validation)
        self.assertEqual(len(validation.errors), 3)
        for fault, option, index in zip(validation.errors, self.purge.options, (1, 2, 3)):
            with self.subTest(option=option.name):
                self.assertIsInstance(fault, MissingOptionError)
                self.assertIs(fault.code, FaultCode.MISSING_OPTION)
                self.assertEqual(fault.option, option.name)
                self.assertEqual(fault.index, index)
        self.assertEqual(validation.options, ())

    def testSomeMissingReported(self):
        validation = self.purge.validate("!purge 5")
        self.assertEqual([fault.option for fault in validation.errors], ["pinned", "author"])
        self.assertIn("second position", str(validation.errors[0]))

    def testEmptyMessage(self):
        validation = self.purge.validate("")
        self.assertEqual(len(validation.errors), 3)

    def testOutOfRange(self):
        validation = self.purge.validate("!purge 101 yes <@1>")
        self.assertEqual(len(validation.errors), 1)
        fault = validation.errors[0]
        self.assertIsInstance(fault, OutOfRangeError)
        self.assertEqual(fault.reason, "out of range")
        self.assertEqual(fault.option, "count")
        self.assertEqual(fault.token, "101")
        self.assertEqual(fault.index, 1)
        self.assertIn("first position", str(fault))
        self.assertEqual(validation.options, ())

    def testInclusiveBounds(self):
        self.assertTrue(self.purge.validate("!purge 1 no <@1>"))
        self.assertTrue(self.purge.validate("!purge 100 no <@1>"))
        self.assertFalse(self.purge.validate("!purge 0 no <@1>"))

    def testFaultsAggregatedInOrder(self):
        validation = self.purge.validate("!purge lots maybe <@&3>")
        self.assertEqual(
            [type(fault) for fault in validation.errors],
            [InvalidNumberError, InvalidBooleanError, MentionKindError],
        )
        self.assertEqual([fault.index for fault in validation.errors], [1, 2, 3])

    def testFaultsCarryCommand(self):
        validation = self.purge.validate("!purge x")
        for fault in validation.errors:
            self.assertIs(fault.options["command"], self.purge)

    def testExcessArgumentsRejected(self):
        validation = self.purge.validate("!purge 5 yes <@1> extra more")
        self.assertEqual(len(validation.errors), 2)
        for fault, token, index in zip(validation.errors, ("extra", "more"), (4, 5)):
            self.assertIsInstance(fault, UnexpectedArgumentError)
            self.assertIs(fault.code, FaultCode.UNEXPECTED_ARGUMENT)
            self.assertEqual(fault.token, token)
            self.assertEqual(fault.index, index)

    def testExcessReportedAfterCoercionFaults(self):
        validation = self.purge.validate("!purge x yes <@1> extra")
        self.assertEqual(
            [type(fault) for fault in validation.errors],
            [InvalidNumberError, UnexpectedArgumentError],
        )

    def testCommandWithoutOptions(self):
        ping = command("ping", "check latency").build()
        self.assertTrue(ping.validate("!ping"))
        self.assertEqual(ping.validate("!ping").options, ())
        self.assertIsInstance(ping.validate("!ping now").errors[0], UnexpectedArgumentError)

    def testTypeError(self):
        with self.assertRaises(TypeError):
            self.purge.validate(None)


class TestOptional(TestCase):

    def setUp(self):
        self.echo = (
            command("echo", "repeat some text")
            .add_string_option(lambda option: option.set_name("text").set_description("what to say"))
            .add_number_option(lambda option: option.set_name("times").set_description("how often").set_required(False))
            .build()
        )

    def testTrailingOptionalPlaceholder(self):
        validation = self.echo.validate("!echo 42")
        self.assertEqual(validation.errors, ())
        self.assertEqual(validation.options, (
            Value("text", OptionKind.STRING, "42", True),
            Value("times", OptionKind.NUMBER, None, False),
        ))

    def testTrailingOptionalProvided(self):
        validation = self.echo.validate("!echo 42 3")
        self.assertEqual(validation["times"], 3)
        self.assertTrue(validation.options[1].present)

    def testDefault(self):
        slowmode = (
            command("slowmode", "set the slow mode delay")
            .add_number_option(lambda option: (
                option.set_name("seconds").set_description("delay").set_required(False).set_default(10)
            ))
            .build()
        )
        validation = slowmode.validate("!slowmode")
        self.assertEqual(validation.options, (Value("seconds", OptionKind.NUMBER, 10, False),))
        self.assertEqual(validation.unwrap(), (10,))


class TestRest(TestCase):

    def setUp(self):
        self.ban = _ban()

    def testRestJoinsRemainingTokens(self):
        validation = self.ban.validate("!ban <@1>   spamming   links  everywhere")
        self.assertEqual(validation["reason"], "spamming links everywhere")

    def testRestKeepsQuotedWhitespace(self):
        validation = self.ban.validate('!ban <@1> "two  spaces" kept')
        self.assertEqual(validation["reason"], "two  spaces kept")

    def testRestSingleToken(self):
        self.assertEqual(self.ban.validate("!ban <@1> spam")["reason"], "spam")

    def testRestOptionalMissing(self):
        validation = self.ban.validate("!ban <@1>")
        self.assertTrue(validation)
        self.assertEqual(validation.options[1], Value("reason", OptionKind.STRING, None, False))

    def testRestLengthCheckedOnJoinedText(self):
        note = (
            command("note", "leave a note")
            .add_string_option(lambda option: (
                option.set_name("text").set_description("the note").set_max_length(5).set_rest()
            ))
            .build()
        )
        self.assertTrue(note.validate("!note ab cd"))
        validation = note.validate("!note abc def")
        self.assertIsInstance(validation.errors[0], LengthError)
        self.assertEqual(validation.errors[0].token, "abc def")

    def testUsage(self):
        self.assertEqual(self.ban.usage, "ban <user> [reason...]")


class TestQuoting(TestCase):

    def setUp(self):
        self.say = (
            command("say", "say something")
            .add_string_option(lambda option: option.set_name("text").set_description("the text"))
            .add_string_option(lambda option: option.set_name("channel").set_description("where").set_required(False))
            .build()
        )

    def testQuotedArgument(self):
        validation = self.say.validate('!say "hello world" general')
        self.assertEqual(validation.as_dict(), {"text": "hello world", "channel": "general"})

    def testUnterminatedQuote(self):
        validation = self.say.validate('!say "hello world')
        self.assertEqual(len(validation.errors), 1)
        fault = validation.errors[0]
        self.assertIsInstance(fault, UnterminatedQuoteError)
        self.assertIs(fault.options["command"], self.say)
        self.assertEqual(validation.options, ())

    def testCustomQuotes(self):
        say = (
            command("say", "say something", quotes="'")
            .add_string_option(lambda option: option.set_name("text").set_description("the text"))
            .build()
        )
        self.assertEqual(say.validate("!say 'hello world'")["text"], "hello world")
        self.assertIsInstance(say.validate('!say "hello world"').errors[0], UnexpectedArgumentError)

    def testEmptyQuotedArgument(self):
        self.assertEqual(self.say.validate('!say ""')["text"], "")


class TestCustom(TestCase):

    def setUp(self):
        self.mute = (
            command("mute", "mute a member")
            .add_mentionable_option(lambda option: option.set_name("user").set_description("who").set_kinds("user"))
            .add_custom_option(_duration, lambda option: option.set_name("duration").set_description("how long"))
            .build()
        )

    def testCustomValue(self):
        self.assertEqual(self.mute.validate("!mute <@1> 5m")["duration"], 300)

    def testDelegatedError(self):
        validation = self.mute.validate("!mute <@1> soon")
        fault = validation.errors[0]
        self.assertIsInstance(fault, DelegatedError)
        self.assertEqual(fault.reason, "use a duration like 10s, 5m or 2h")
        self.assertEqual(fault.index, 2)
        self.assertEqual(fault.option, "duration")
        self.assertEqual(fault.token, "soon")
        self.assertIsInstance(fault.options["exception"], ValueError)
        self.assertIs(fault.__cause__, fault.options["exception"])

    def testRaisedFaultNamesItsSlot(self):
        def strict(token):
            raise CommandFault("not accepted", code=FaultCode.DELEGATED_ERROR, title="rejected value")

        def labelled(token):
            raise DelegatedError("not accepted", option="level", token="inner")

        for coercer, (name, token) in ((strict, ("level", "high")), (labelled, ("level", "inner"))):
            with self.subTest(coercer=coercer.__name__):
                schema = command("tune", "tune something").add_custom_option(
                    coercer, lambda option: option.set_name("level").set_description("a level")
                ).build()
                fault, = schema.validate("!tune high").errors
                self.assertEqual(fault.option, name)
                self.assertEqual(fault.token, token)
                self.assertEqual(fault.index, 1)
                self.assertEqual(str(fault), "not accepted at first position")


class TestHelpers(TestCase):

    def setUp(self):
        self.ban = _ban()

    def testLookup(self):
        validation = self.ban.validate("!ban <@5> spam")
        self.assertEqual(validation["user"], Mention(MentionKind.USER, 5))
        self.assertEqual(validation.get("reason"), "spam")
        self.assertEqual(validation.get("missing", "fallback"), "fallback")
        with self.assertRaises(KeyError):
            validation["missing"]  # NOQA: lookup only

    def testAsDict(self):
        validation = self.ban.validate("!ban <@5>")
        self.assertEqual(validation.as_dict(), {"user": Mention(MentionKind.USER, 5), "reason": None})

    def testUnwrapSuccess(self):
        self.assertEqual(self.ban.validate("!ban <@5> spam").unwrap(), (Mention(MentionKind.USER, 5), "spam"))

    def testUnwrapFailure(self):
        validation = self.ban.validate("!ban <@&5>")
        with self.assertRaises(CommandExit) as context:
            validation.unwrap()
        self.assertEqual(list(context.exception.exceptions), list(validation.errors))
        self.assertIs(context.exception.options["command"], self.ban)

    def testIdempotence(self):
        for text in ("!ban <@5> spam", "!ban", "!ban nobody", '!ban "oops'):
            with self.subTest(text=text):
                self.assertEqual(self.ban.validate(text), self.ban.validate(text))

    def testInequality(self):
        self.assertNotEqual(self.ban.validate("!ban <@5>"), self.ban.validate("!ban <@6>"))
        self.assertNotEqual(self.ban.validate("!ban x"), self.ban.validate("!ban y"))

    def testConcurrentValidation(self):
        results = []
        lock = Lock()

        def worker():
            validation = self.ban.validate("!ban <@5> spam and eggs")
            with lock:
                results.append(validation)

        threads = [Thread(target=worker) for _ in range(16)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        self.assertEqual(len(results), 16)
        for validation in results:
            self.assertEqual(validation, results[0])

    def testValidationIsImmutable(self):
        validation = self.ban.validate("!ban <@5>")
        with self.assertRaises(AttributeError):
            validation.errors = ()  # NOQA: read-only view

    def testValidationRejectsValuesAlongsideErrors(self):
        with self.assertRaises(ValueError):
            Validation((MissingOptionError("missing"),), (Value("x", OptionKind.STRING, "y", True),))

    def testReportFailure(self):
        console = Console(file=io.StringIO(), color_system=None, width=120)
        self.assertFalse(self.ban.validate("!ban nobody").report(console, colorful=False))
        output = console.file.getvalue()
        self.assertIn("Bad Input", output)
        self.assertIn(str(FaultCode.INVALID_MENTION.value), output)
        self.assertIn("not a mention", output)

    def testReportSuccess(self):
        console = Console(file=io.StringIO(), color_system=None, width=120)
        self.assertTrue(self.ban.validate("!ban <@5>").report(console))
        self.assertEqual(console.file.getvalue(), "")

    def testRichRendering(self):
        console = Console(file=io.StringIO(), color_system=None, width=120)
        console.print(self.ban.validate("!ban <@5> spam"))
        output = console.file.getvalue()
        self.assertIn("user", output)
        self.assertIn("'spam'", output)


class TestSchema(TestCase):

    def testRequiredAfterOptionalRejectedAtAdd(self):
        builder = (
            command("give", "give an item")
            .add_string_option(lambda option: option.set_name("item").set_description("what").set_required(False))
        )
        with self.assertRaises(SchemaError) as context:
            builder.add_number_option(lambda option: option.set_name("amount").set_description("how many"))
        self.assertIn("cannot follow optional option 'item'", str(context.exception))

    def testRestMustBeLast(self):
        builder = (
            command("tag", "create a tag")
            .add_string_option(lambda option: option.set_name("content").set_description("body").set_rest())
        )
        with self.assertRaises(SchemaError):
            builder.add_string_option(lambda option: option.set_name("name").set_description("tag name"))

    def testDuplicateOptionNames(self):
        builder = command("swap", "swap two things").add_string_option(
            lambda option: option.set_name("thing").set_description("first")
        )
        with self.assertRaises(SchemaError):
            builder.add_string_option(lambda option: option.set_name("thing").set_description("second"))

    def testOptionNameCollidesWithCommand(self):
        with self.assertRaises(SchemaError):
            command("ban", "ban").add_string_option(lambda option: option.set_name("ban").set_description("x"))
        with self.assertRaises(SchemaError):
            command("ban", "ban", aliases=("b",)).add_string_option(lambda option: option.set_name("b").set_description("x"))

    def testAliasRules(self):
        with self.assertRaises(SchemaError):
            command("ban", "ban", aliases=("ban",))
        with self.assertRaises(SchemaError):
            command("ban", "ban").add_alias("b", "b")
        with self.assertRaises(SchemaError):
            command("ban", "ban").add_alias("Bad Alias")
        with self.assertRaises(SchemaError):
            command("ban", "ban", aliases="b")
        self.assertEqual(command("ban", "ban").add_alias("b", "hammer").build().aliases, frozenset({"b", "hammer"}))

    def testCommandNameRules(self):
        with self.assertRaises(SchemaError):
            command("Ban", "ban")
        with self.assertRaises(SchemaError):
            command("", "ban")
        with self.assertRaises(SchemaError):
            command("ban", "  ")

    def testBuildRequiresNameAndDescription(self):
        with self.assertRaises(SchemaError):
            CommandBuilder().set_description("no name").build()
        with self.assertRaises(SchemaError):
            CommandBuilder().set_name("nameless").build()

    def testQuotesRules(self):
        with self.assertRaises(SchemaError):
            command("say", "say", quotes=" ")
        with self.assertRaises(SchemaError):
            CommandBuilder().set_quotes(None)

    def testSetupMustBeCallable(self):
        with self.assertRaises(SchemaError):
            command("say", "say").add_string_option("text")

    def testAddOptionDescriptor(self):
        option = NumberOption("count", "how many")
        say = command("say", "say").add_option(option).build()
        self.assertEqual(say.options, (option,))
        with self.assertRaises(SchemaError):
            command("say", "say").add_option("count")

    def testDirectConstruction(self):
        ping = Command("ping", "check latency", options=(StringOption("host", "where", required=False),))
        self.assertEqual(ping.usage, "ping [host]")
        with self.assertRaises(SchemaError):
            Command("ping", "check latency", options=(
                StringOption("host", "where", required=False),
                StringOption("port", "which"),
            ))

    def testSchemaErrorsAreNotFaults(self):
        try:
            command("Ban", "ban")
        except CommandFault:
            self.fail("schema mistakes must not be command faults")
        except SchemaError:
            pass


class TestBuilder(TestCase):

    def testDeclarationOrderPreserved(self):
        command_ = (
            command("trade", "trade items")
            .add_string_option(lambda option: option.set_name("give").set_description("what you give"))
            .add_string_option(lambda option: option.set_name("take").set_description("what you take"))
            .add_number_option(lambda option: option.set_name("amount").set_description("how many").set_required(False))
            .build()
        )
        self.assertEqual([option.name for option in command_.options], ["give", "take", "amount"])

    def testBuildIsCached(self):
        builder = command("ping", "check latency")
        self.assertIs(builder.build(), builder.build())

    def testFinalizedAfterBuild(self):
        builder = command("ping", "check latency")
        builder.build()
        with self.assertRaises(SchemaError):
            builder.set_description("other")
        with self.assertRaises(SchemaError):
            builder.add_alias("p")
        with self.assertRaises(SchemaError):
            builder.add_boolean_option(lambda option: option.set_name("flag").set_description("a flag"))

    def testValidateBuildsImplicitly(self):
        builder = command("echo", "echo").add_string_option(
            lambda option: option.set_name("text").set_description("text")
        )
        self.assertEqual(builder.validate("!echo hi")["text"], "hi")
        with self.assertRaises(SchemaError):
            builder.set_name("other")

    def testCommandIsImmutable(self):
        ping = command("ping", "check latency").build()
        with self.assertRaises(AttributeError):
            ping.name = "pong"  # NOQA: read-only view


class TestRendering(TestCase):

    def testHelpPanel(self):
        console = Console(file=io.StringIO(), color_system=None, width=120)
        console.print(_purge())
        output = console.file.getvalue()
        self.assertIn("PURGE HELP", output)
        self.assertIn("purge <count> <pinned> <author>", output)
        self.assertIn("whole number", output)
        self.assertIn("min 1", output)

    def testFaultHeader(self):
        fault = _purge().validate("!purge 500 yes <@1>").errors[0]
        console = Console(file=io.StringIO(), color_system=None, width=120)
        console.print(copy_fault := fault.__replace__(colorful=False))
        output = console.file.getvalue()
        self.assertIn("purge", output)
        self.assertIn("11122", output)
        self.assertIn("Out Of Range", output)
        self.assertIn("@ first", output)
        self.assertIsNot(copy_fault, fault)

    def testRepr(self):
        self.assertTrue(repr(_ban()).startswith("command(name='ban'"))


if __name__ == '__main__':
    unittest.main()
