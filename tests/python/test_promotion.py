import unittest
from decimal import Decimal
from fractions import Fraction

import numpy as np

import mutarith
from mutarith import (
    BigInt,
    Diagonal,
    Matrix,
    SparseMatrix,
    Symmetric,
    Transpose,
    UniformScaling,
    UnknownResultTypeError,
    Vector,
    promote_operation,
    similar_container_type,
    typeof,
)
from mutarith import add, add_dot, add_mul, dot, mul, neg, one, sub, sub_mul, zero


class Meters:
    """Unit-carrying value without an additive identity."""

    def __init__(self, value):
        self.value = value

    def __add__(self, other):
        return Meters(self.value + other.value)


class TestScalarPromotion(unittest.TestCase):
    def test_builtin_numbers(self):
        self.assertIs(promote_operation(add, int, int), int)
        self.assertIs(promote_operation(add, int, float), float)
        self.assertIs(promote_operation(mul, int, Fraction), Fraction)
        self.assertIs(promote_operation(sub, Fraction, float), float)
        self.assertIs(promote_operation(add, bool, bool), int)
        self.assertIs(promote_operation(dot, complex, float), complex)
        self.assertIs(promote_operation(add, Decimal, int), Decimal)

    def test_numpy_scalars(self):
        self.assertIs(promote_operation(add, np.int64, np.int64), np.int64)
        self.assertIs(promote_operation(mul, np.int64, np.float64), np.float64)

    def test_unary(self):
        self.assertIs(promote_operation(zero, Fraction), Fraction)
        self.assertIs(promote_operation(one, float), float)
        self.assertIs(promote_operation(neg, bool), int)
        self.assertIs(promote_operation(add, Fraction), Fraction)

    def test_variadic_folds_left(self):
        self.assertIs(promote_operation(add, int, float, Fraction), float)
        self.assertIs(promote_operation(mul, int, Fraction, Fraction), Fraction)

    def test_fused_operations_reduce_to_binary(self):
        self.assertIs(promote_operation(add_mul, int, float, Fraction), float)
        self.assertIs(promote_operation(sub_mul, Fraction, int, int), Fraction)
        self.assertIs(promote_operation(add_dot, int, complex, int), complex)

    def test_bigint(self):
        self.assertIs(promote_operation(add, BigInt, int), BigInt)
        self.assertIs(promote_operation(mul, int, BigInt), BigInt)
        self.assertIs(promote_operation(add_mul, BigInt, BigInt, np.int64), BigInt)
        with self.assertRaises(UnknownResultTypeError):
            promote_operation(add, BigInt, float)

    def test_unknown_type_raises(self):
        with self.assertRaises(UnknownResultTypeError) as ctx:
            promote_operation(add, Meters, Meters)
        self.assertIn("no known result type", str(ctx.exception))
        # also a TypeError for callers that only catch builtins
        self.assertIsInstance(ctx.exception, TypeError)

    def test_accepts_operation_tokens(self):
        self.assertIs(promote_operation("+", int, float), float)

    def test_memoized(self):
        first = promote_operation(add_mul, Fraction, int, int)
        second = promote_operation(add_mul, Fraction, int, int)
        self.assertIs(first, second)


class TestRegisteredRules(unittest.TestCase):
    def test_register_direct(self):
        class Feet(Meters):
            pass

        with self.assertRaises(UnknownResultTypeError):
            promote_operation(add, Feet, Feet)
        mutarith.register_promotion(add, Feet, Feet, result=Feet)
        self.assertIs(promote_operation(add, Feet, Feet), Feet)

    def test_register_decorator(self):
        class Inches(Meters):
            pass

        @mutarith.register_promotion(mul, Inches, int)
        def _inches_times_int(a, b):
            return a

        self.assertIs(promote_operation(mul, Inches, int), Inches)
        # variadic rules fold through the registered binary rule
        self.assertIs(promote_operation(mul, Inches, int, int), Inches)

    def test_register_checks_arity(self):
        with self.assertRaises(TypeError):
            mutarith.register_promotion(sub, Meters, result=Meters)


class TestContainerPromotion(unittest.TestCase):
    def test_add_sub_dense(self):
        self.assertEqual(promote_operation(add, Matrix[int], Matrix[float]), Matrix[float])
        self.assertEqual(promote_operation(sub, Vector[Fraction], Vector[int]), Vector[Fraction])
        self.assertEqual(promote_operation(add, Symmetric[Matrix[int]], Matrix[int]), Matrix[int])
        self.assertEqual(promote_operation(add, Diagonal[Vector[int]], Diagonal[Vector[int]]), Matrix[int])

    def test_add_uniform_scaling(self):
        self.assertEqual(promote_operation(add, Matrix[int], UniformScaling[float]), Matrix[float])
        self.assertEqual(promote_operation(sub, UniformScaling[int], Matrix[int]), Matrix[int])
        self.assertEqual(promote_operation(add, UniformScaling[int], UniformScaling[float]), UniformScaling[float])
        with self.assertRaises(UnknownResultTypeError):
            promote_operation(add, Vector[int], UniformScaling[int])

    def test_add_sparse(self):
        self.assertEqual(promote_operation(add, SparseMatrix[int], SparseMatrix[float]), SparseMatrix[float])
        self.assertEqual(promote_operation(add, SparseMatrix[int], Matrix[int]), Matrix[int])
        self.assertEqual(promote_operation(add, SparseMatrix[int], UniformScaling[int]), Matrix[int])

    def test_container_and_scalar_do_not_broadcast(self):
        with self.assertRaises(UnknownResultTypeError):
            promote_operation(add, Vector[int], int)

    def test_scaling_keeps_structure(self):
        self.assertEqual(promote_operation(mul, float, Symmetric[Matrix[int]]), Symmetric[Matrix[float]])
        self.assertEqual(promote_operation(mul, SparseMatrix[int], Fraction), SparseMatrix[Fraction])
        self.assertEqual(promote_operation(mul, Transpose[Vector[int]], int), Transpose[Vector[int]])
        self.assertEqual(promote_operation(mul, UniformScaling[float], Matrix[int]), Matrix[float])

    def test_array_products(self):
        self.assertEqual(promote_operation(mul, Matrix[int], Vector[float]), Vector[float])
        self.assertEqual(promote_operation(mul, Matrix[int], Matrix[Fraction]), Matrix[Fraction])
        self.assertEqual(promote_operation(mul, SparseMatrix[int], SparseMatrix[int]), SparseMatrix[int])
        self.assertEqual(promote_operation(mul, SparseMatrix[int], Vector[int]), Vector[int])
        self.assertEqual(promote_operation(mul, Vector[int], Transpose[Vector[int]]), Matrix[int])
        self.assertIs(promote_operation(mul, Transpose[Vector[int]], Vector[float]), float)
        self.assertEqual(promote_operation(mul, Transpose[Vector[int]], Matrix[int]), Transpose[Vector[int]])
        with self.assertRaises(UnknownResultTypeError):
            promote_operation(mul, Vector[int], Vector[int])

    def test_reductions(self):
        self.assertIs(promote_operation(dot, Vector[int], Vector[float]), float)
        self.assertIs(promote_operation(mutarith.sum, Matrix[Fraction]), Fraction)
        self.assertIs(promote_operation(mutarith.sum, Vector[bool]), int)

    def test_unary_containers(self):
        self.assertEqual(promote_operation(zero, Symmetric[Matrix[int]]), Symmetric[Matrix[int]])
        self.assertEqual(promote_operation(neg, Vector[bool]), Vector[int])
        self.assertEqual(promote_operation(one, Matrix[Fraction]), Matrix[Fraction])
        with self.assertRaises(UnknownResultTypeError):
            promote_operation(one, Vector[int])

    def test_fused_with_containers(self):
        self.assertEqual(promote_operation(add_mul, Matrix[int], Matrix[int], Matrix[float]), Matrix[float])
        self.assertEqual(promote_operation(add_mul, Vector[BigInt], Vector[int], int), Vector[BigInt])
        self.assertIs(promote_operation(add_dot, BigInt, Vector[BigInt], Vector[int]), BigInt)

    def test_similar_container_type(self):
        self.assertEqual(similar_container_type(Matrix[int], float), Matrix[float])
        self.assertEqual(
            similar_container_type(Transpose[Symmetric[Matrix[int]]], Fraction),
            Transpose[Symmetric[Matrix[Fraction]]],
        )
        with self.assertRaises(TypeError):
            similar_container_type(int, float)

    def test_descriptor_repr(self):
        self.assertEqual(repr(Matrix[int]), "Matrix[int]")
        self.assertEqual(repr(Symmetric[Matrix[BigInt]]), "Symmetric[Matrix[BigInt]]")
        self.assertEqual(repr(Vector["f64"]), "Vector[numpy.float64]")


class TestPromotionAgreesWithResults(unittest.TestCase):
    def test_scalars(self):
        cases = [
            (add, 1, 2.5),
            (mul, Fraction(1, 3), 3),
            (sub, BigInt(4), 9),
            (add_mul, 1, 2, Fraction(1, 2)),
            (dot, 1j, 2.0),
            (neg, True),
        ]
        for op, *args in cases:
            with self.subTest(op=op, args=args):
                result = mutarith.operate(op, *args)
                self.assertIs(typeof(result), promote_operation(op, *[typeof(a) for a in args]))

    def test_containers(self):
        A = mutarith.matrix([[1, 2], [3, 4]])
        v = mutarith.vector([0.5, 1.5])
        S = mutarith.sparse([0, 1], [1, 0], [Fraction(1, 2), Fraction(3)], 2, 2)
        cases = [
            (add, A, A.T),
            (mul, A, v),
            (mul, A.T, A),
            (mul, v.T, A),
            (mul, 3, Symmetric(A)),
            (add, S, S),
            (mul, S, A),
            (add, A, mutarith.I),
            (neg, Diagonal(v)),
        ]
        for op, *args in cases:
            with self.subTest(op=op, args=args):
                result = mutarith.operate(op, *args)
                self.assertEqual(typeof(result), promote_operation(op, *[typeof(a) for a in args]))


if __name__ == "__main__":
    unittest.main()
