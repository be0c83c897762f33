"""
Arguments module behavioral tests (field tags and schema derivation).

Scope
- Validate argument() tag metadata and its guards.
- Validate schema(): declaration order, kinds, defaults, descriptions, rejections.
- Validate Argument records: read-only properties, required flag, equality.

Conventions
- Test method names follow CamelCase per project convention.
- Records are declared at module level so their annotations resolve.
"""
import dataclasses
import unittest
from dataclasses import dataclass
from unittest import TestCase

from chervil import Argument, argument, schema, Kind, Int16, Float32


@dataclass
class GreetArgs:
    target: str = argument(default="world", descr="Target of the greeting.")
    times: Int16 = argument(default="1")
    loud: bool = argument()


@dataclass
class PlainTagArgs:
    ratio: Float32 = dataclasses.field(metadata={"default": "0.5", "description": "  a ratio  "})
    name: str


@dataclass
class StringAnnotationArgs:
    count: "int" = argument(default="2")


@dataclass
class UnsupportedArgs:
    items: list = argument()


@dataclass
class HiddenFieldArgs:
    visible: str = argument()
    hidden: str = dataclasses.field(init=False, default="x")


@dataclass
class BadDefaultArgs:
    count: int = dataclasses.field(metadata={"default": 3})


class NotARecord:
    value: str


class TestArgumentTag(TestCase):

    def testMetadataSpelling(self):
        field = argument(default="x", descr="a thing")
        self.assertEqual(dict(field.metadata), {"default": "x", "description": "a thing"})

    def testOmittedTagsAreAbsent(self):
        self.assertEqual(dict(argument().metadata), {})

    def testDefaultMustBeText(self):
        with self.assertRaises(TypeError):
            argument(default=3)

    def testDescriptionMustBeText(self):
        with self.assertRaises(TypeError):
            argument(descr=3)

    def testDataclassDefaultRejected(self):
        with self.assertRaises(TypeError):
            argument(default_factory=list)

    def testExtraMetadataPreserved(self):
        field = argument(default="x", metadata={"unit": "s"})
        self.assertEqual(field.metadata["unit"], "s")
        self.assertEqual(field.metadata["default"], "x")


class TestSchema(TestCase):

    def testDeclarationOrderAndKinds(self):
        arguments = schema(GreetArgs)
        self.assertEqual([a.name for a in arguments], ["target", "times", "loud"])
        self.assertEqual([a.kind for a in arguments], [Kind.STRING, Kind.INT16, Kind.BOOL])
        self.assertEqual([a.index for a in arguments], [0, 1, 2])

    def testDefaultsAndDescriptions(self):
        target, times, loud = schema(GreetArgs)
        self.assertEqual(target.default, "world")
        self.assertEqual(target.descr, "Target of the greeting.")
        self.assertFalse(target.required)
        self.assertEqual(times.default, "1")
        self.assertIsNone(times.descr)
        self.assertIsNone(loud.default)
        self.assertTrue(loud.required)

    def testPlainFieldMetadata(self):
        ratio, name = schema(PlainTagArgs)
        self.assertIs(ratio.kind, Kind.FLOAT32)
        self.assertEqual(ratio.default, "0.5")
        self.assertEqual(ratio.descr, "a ratio")
        self.assertTrue(name.required)

    def testStringAnnotationsResolve(self):
        count, = schema(StringAnnotationArgs)
        self.assertIs(count.kind, Kind.INT64)

    def testNotADataclass(self):
        for record in (NotARecord, GreetArgs(target="a", times=1, loud=True), str, None):
            with self.subTest(record=record):
                with self.assertRaises(TypeError):
                    schema(record)

    def testUnsupportedFieldType(self):
        with self.assertRaises(TypeError):
            schema(UnsupportedArgs)

    def testNonInitField(self):
        with self.assertRaises(TypeError):
            schema(HiddenFieldArgs)

    def testNonTextDefaultInMetadata(self):
        with self.assertRaises(TypeError):
            schema(BadDefaultArgs)


class TestArgument(TestCase):

    def testReadOnlyProperties(self):
        argument = Argument("target", Kind.STRING, default="world")
        with self.assertRaises(AttributeError):
            argument.name = "other"

    def testEquality(self):
        self.assertEqual(Argument("a", Kind.BOOL), Argument("a", Kind.BOOL))
        self.assertNotEqual(Argument("a", Kind.BOOL), Argument("a", Kind.BOOL, index=1))
        self.assertEqual(len({Argument("a", Kind.BOOL), Argument("a", Kind.BOOL)}), 1)

    def testRepr(self):
        text = repr(Argument("target", Kind.STRING, default="world"))
        self.assertTrue(text.startswith("argument("))
        self.assertIn("name='target'", text)
        self.assertIn("default='world'", text)

    def testValidation(self):
        with self.assertRaises(ValueError):
            Argument("not a name", Kind.STRING)
        with self.assertRaises(TypeError):
            Argument("name", "string")
        with self.assertRaises(TypeError):
            Argument("name", Kind.STRING, index=True)
        with self.assertRaises(ValueError):
            Argument("name", Kind.STRING, index=-1)

    def testBlankDescriptionCollapses(self):
        self.assertIsNone(Argument("name", Kind.STRING, descr="   ").descr)


if __name__ == "__main__":
    unittest.main()
