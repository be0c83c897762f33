"""
Kinds module behavioral tests (annotation mapping and text conversion).

Scope
- Validate kindof() for builtins, width markers and unsupported annotations.
- Validate convert() per kind: accepted literals, range limits, syntax failures.

Conventions
- Test method names follow CamelCase per project convention.
"""
import math
import struct
import unittest
from unittest import TestCase

from chervil import Kind, kindof, convert, Int8, UInt8, UInt64, Float32
from chervil.faults import ConversionError, InvalidLiteralError, OutOfRangeError


class TestKindof(TestCase):
    """Annotation to kind mapping."""

    def testBuiltinsMapToDefaultWidths(self):
        self.assertIs(kindof(bool), Kind.BOOL)
        self.assertIs(kindof(int), Kind.INT64)
        self.assertIs(kindof(float), Kind.FLOAT64)
        self.assertIs(kindof(str), Kind.STRING)

    def testWidthMarkers(self):
        self.assertIs(kindof(Int8), Kind.INT8)
        self.assertIs(kindof(UInt8), Kind.UINT8)
        self.assertIs(kindof(UInt64), Kind.UINT64)
        self.assertIs(kindof(Float32), Kind.FLOAT32)

    def testUnsupportedAnnotations(self):
        self.assertIsNone(kindof(list))
        self.assertIsNone(kindof(list[int]))
        self.assertIsNone(kindof(bytes))

    def testLabels(self):
        self.assertEqual(Kind.BOOL.label, "bool")
        self.assertEqual(Kind.UINT16.label, "uint16")
        self.assertEqual(Kind.FLOAT32.label, "float32")
        self.assertEqual(Kind.STRING.label, "string")


class TestConvertBool(TestCase):

    def testTruthyLiterals(self):
        for literal in ("1", "t", "T", "true", "True", "TRUE"):
            with self.subTest(literal=literal):
                self.assertIs(convert(Kind.BOOL, literal), True)

    def testFalsyLiterals(self):
        for literal in ("0", "f", "F", "false", "False", "FALSE"):
            with self.subTest(literal=literal):
                self.assertIs(convert(Kind.BOOL, literal), False)

    def testInvalidLiteral(self):
        with self.assertRaises(InvalidLiteralError) as context:
            convert(Kind.BOOL, "yes")
        self.assertIs(context.exception.kind, Kind.BOOL)
        self.assertEqual(context.exception.value, "yes")


class TestConvertIntegers(TestCase):

    def testSignedBounds(self):
        self.assertEqual(convert(Kind.INT8, "127"), 127)
        self.assertEqual(convert(Kind.INT8, "-128"), -128)
        self.assertEqual(convert(Kind.INT8, "+5"), 5)
        self.assertEqual(convert(Kind.INT64, str(2 ** 63 - 1)), 2 ** 63 - 1)

    def testSignedOutOfRange(self):
        for kind, literal in (
                (Kind.INT8, "128"),
                (Kind.INT8, "-129"),
                (Kind.INT16, "32768"),
                (Kind.INT32, "2147483648"),
                (Kind.INT64, str(2 ** 63)),
        ):
            with self.subTest(kind=kind, literal=literal):
                with self.assertRaises(OutOfRangeError):
                    convert(kind, literal)

    def testUnsignedBounds(self):
        self.assertEqual(convert(Kind.UINT8, "255"), 255)
        self.assertEqual(convert(Kind.UINT8, "0"), 0)
        self.assertEqual(convert(Kind.UINT64, str(2 ** 64 - 1)), 2 ** 64 - 1)
        with self.assertRaises(OutOfRangeError):
            convert(Kind.UINT8, "256")

    def testUnsignedRejectsSigns(self):
        for literal in ("-1", "+1"):
            with self.subTest(literal=literal):
                with self.assertRaises(InvalidLiteralError):
                    convert(Kind.UINT32, literal)

    def testNonDecimalSyntax(self):
        for literal in ("ABC", "", " 5", "1_000", "0x10", "1.0", "٣"):
            with self.subTest(literal=literal):
                with self.assertRaises(InvalidLiteralError):
                    convert(Kind.INT32, literal)

    def testConversionErrorsAreValueErrors(self):
        with self.assertRaises(ValueError):
            convert(Kind.INT16, "nope")
        with self.assertRaises(ConversionError):
            convert(Kind.INT16, "99999")


class TestConvertFloats(TestCase):

    def testDecimalForms(self):
        self.assertEqual(convert(Kind.FLOAT64, "1.5"), 1.5)
        self.assertEqual(convert(Kind.FLOAT64, "1e3"), 1000.0)
        self.assertEqual(convert(Kind.FLOAT64, ".5"), 0.5)
        self.assertEqual(convert(Kind.FLOAT64, "-2."), -2.0)
        self.assertEqual(convert(Kind.FLOAT64, "42"), 42.0)

    def testSpecialValues(self):
        self.assertEqual(convert(Kind.FLOAT64, "inf"), math.inf)
        self.assertEqual(convert(Kind.FLOAT64, "-Infinity"), -math.inf)
        self.assertTrue(math.isnan(convert(Kind.FLOAT32, "NaN")))

    def testInvalidSyntax(self):
        for literal in ("abc", "", "1.2.3", "0x1p3", "1e", "e5"):
            with self.subTest(literal=literal):
                with self.assertRaises(InvalidLiteralError):
                    convert(Kind.FLOAT64, literal)

    def testDoubleOverflow(self):
        with self.assertRaises(OutOfRangeError):
            convert(Kind.FLOAT64, "1e400")

    def testSinglePrecisionRounding(self):
        expected, = struct.unpack("f", struct.pack("f", 0.1))
        self.assertEqual(convert(Kind.FLOAT32, "0.1"), expected)
        self.assertNotEqual(convert(Kind.FLOAT32, "0.1"), 0.1)

    def testSingleOverflow(self):
        with self.assertRaises(OutOfRangeError):
            convert(Kind.FLOAT32, "1e39")


class TestConvertString(TestCase):

    def testVerbatim(self):
        self.assertEqual(convert(Kind.STRING, "  a=b \"c\" "), "  a=b \"c\" ")
        self.assertEqual(convert(Kind.STRING, ""), "")

    def testArgumentTypes(self):
        with self.assertRaises(TypeError):
            convert("string", "x")
        with self.assertRaises(TypeError):
            convert(Kind.STRING, 5)


if __name__ == "__main__":
    unittest.main()
