import random
import unittest
from fractions import Fraction

import mutarith
from mutarith import (
    BigInt,
    Matrix,
    SparseMatrix,
    Vector,
    add,
    add_dot,
    add_mul,
    buffer_for,
    buffer_type,
    buffered_operate_inplace,
    dot,
    mul,
    sub_mul,
)


class TestBufferType(unittest.TestCase):
    def test_scalar_rules(self):
        self.assertIs(buffer_type(add_mul, BigInt, BigInt, BigInt), BigInt)
        self.assertIs(buffer_type(sub_mul, BigInt, int, BigInt), BigInt)
        self.assertIs(buffer_type(add_dot, BigInt, BigInt, BigInt), BigInt)
        self.assertIsNone(buffer_type(add_mul, int, int, int))
        self.assertIsNone(buffer_type(add_mul, float, float, float))
        self.assertIsNone(buffer_type(add_mul, Fraction, Fraction, Fraction))
        self.assertIsNone(buffer_type(add, BigInt, BigInt))
        self.assertIsNone(buffer_type(add_mul, BigInt, BigInt))

    def test_container_rules_use_element_types(self):
        self.assertIs(buffer_type(add_mul, Vector[BigInt], Matrix[BigInt], Vector[BigInt]), BigInt)
        self.assertIs(buffer_type(add_mul, Matrix[BigInt], SparseMatrix[BigInt], Matrix[int]), BigInt)
        self.assertIs(buffer_type(add_mul, Vector[BigInt], Vector[BigInt], int), BigInt)
        self.assertIs(buffer_type(mul, Matrix[BigInt], Vector[BigInt]), BigInt)
        self.assertIs(buffer_type(dot, Vector[BigInt], Vector[int]), BigInt)
        self.assertIsNone(buffer_type(dot, Vector[int], Vector[int]))
        self.assertIsNone(buffer_type(add, Vector[BigInt], Vector[BigInt]))
        self.assertIsNone(buffer_type(add_mul, Matrix[float], Matrix[float], Matrix[float]))

    def test_buffer_for_allocates_fresh_values(self):
        a = buffer_for(add_mul, BigInt, BigInt, BigInt)
        b = buffer_for(add_mul, BigInt, BigInt, BigInt)
        self.assertIsInstance(a, BigInt)
        self.assertIsNot(a, b)
        self.assertIsNone(buffer_for(add_mul, int, int, int))


class TestBufferedSteps(unittest.TestCase):
    def test_step_reuses_target(self):
        acc = BigInt(1)
        buf = buffer_for(add_mul, BigInt, BigInt, BigInt)
        out = buffered_operate_inplace(buf, add_mul, acc, BigInt(3), BigInt(4))
        self.assertIs(out, acc)
        self.assertEqual(acc, 13)
        out = buffered_operate_inplace(buf, sub_mul, acc, 2, 5)
        self.assertIs(out, acc)
        self.assertEqual(acc, 3)

    def test_none_buffer_degrades_to_operate_inplace(self):
        self.assertEqual(buffered_operate_inplace(None, add_mul, 1, 2, 3), 7)
        acc = BigInt(0)
        self.assertIs(buffered_operate_inplace(None, add_mul, acc, 2, 3), acc)
        self.assertEqual(acc, 6)

    def test_immutable_target_allocates(self):
        buf = BigInt(0)
        self.assertEqual(buffered_operate_inplace(buf, add_mul, 1, 2, 3), 7)

    def test_buffered_and_unbuffered_loops_agree(self):
        rng = random.Random(7)
        xs = [BigInt(rng.randint(-10**20, 10**20)) for _ in range(50)]
        ys = [BigInt(rng.randint(-10**20, 10**20)) for _ in range(50)]
        snapshot = [int(x) for x in xs]

        buffered = BigInt(0)
        buf = buffer_for(add_mul, BigInt, BigInt, BigInt)
        for x, y in zip(xs, ys):
            buffered = buffered_operate_inplace(buf, add_mul, buffered, x, y)

        plain = BigInt(0)
        for x, y in zip(xs, ys):
            plain = buffered_operate_inplace(None, add_mul, plain, x, y)

        expected = sum(int(x) * int(y) for x, y in zip(xs, ys))
        self.assertEqual(buffered, expected)
        self.assertEqual(plain, expected)
        # operands are untouched
        self.assertEqual([int(x) for x in xs], snapshot)

    def test_dot_buffered_matches_reference(self):
        x = mutarith.vector([BigInt(v) for v in (3, -1, 4, 1, -5)])
        y = mutarith.vector([BigInt(v) for v in (2, 7, -1, 8, 2)])
        self.assertEqual(mutarith.operate(dot, x, y), 3 * 2 - 7 - 4 + 8 - 10)


class TestBigIntAccumulationScenario(unittest.TestCase):
    def test_vector_add_mul_in_place(self):
        x = mutarith.vector([BigInt(1), BigInt(2), BigInt(3)])
        y = mutarith.vector([BigInt(10), BigInt(20), BigInt(30)])
        elements = list(x)
        out = mutarith.operate_inplace(add_mul, x, y, 2)
        self.assertIs(out, x)
        self.assertEqual([int(v) for v in x], [21, 42, 63])
        for before, after in zip(elements, x):
            self.assertIs(before, after)
        self.assertEqual([int(v) for v in y], [10, 20, 30])

    def test_matrix_vector_accumulate(self):
        A = mutarith.matrix([[BigInt(1), BigInt(2)], [BigInt(3), BigInt(4)]])
        v = mutarith.vector([BigInt(1), BigInt(1)])
        c = mutarith.vector([BigInt(100), BigInt(200)])
        out = mutarith.operate_inplace(add_mul, c, A, v)
        self.assertIs(out, c)
        self.assertEqual([int(e) for e in c], [103, 207])
        self.assertEqual(mutarith._debug_last_dispatch_trace(), "buffered:matvec")


if __name__ == "__main__":
    unittest.main()
