import unittest
from fractions import Fraction

import mutarith
from mutarith import BigInt, Diagonal, I, Symmetric, UniformScaling, isequal_canonical, iszero_inplace


class Polynomial:
    """Coefficient list that may carry trailing zeros."""

    def __init__(self, coeffs):
        self.coeffs = list(coeffs)

    def _trimmed(self):
        coeffs = list(self.coeffs)
        while coeffs and coeffs[-1] == 0:
            coeffs.pop()
        return coeffs

    def isequal_canonical(self, other):
        return isinstance(other, Polynomial) and self._trimmed() == other._trimmed()

    def iszero_inplace(self):
        self.coeffs = self._trimmed()
        return not self.coeffs


class TestIsEqualCanonical(unittest.TestCase):
    def test_scalars(self):
        self.assertTrue(isequal_canonical(BigInt(3), 3))
        self.assertTrue(isequal_canonical(Fraction(4, 2), 2))
        self.assertFalse(isequal_canonical(1, 2))

    def test_hook_takes_over(self):
        self.assertTrue(isequal_canonical(Polynomial([1, 2, 0]), Polynomial([1, 2])))
        self.assertFalse(isequal_canonical(Polynomial([1]), Polynomial([2])))

    def test_containers_compare_elements(self):
        A = mutarith.matrix([[1, 2], [3, 4]])
        self.assertTrue(isequal_canonical(A, mutarith.matrix([[1, 2], [3, 4]], eltype=BigInt)))
        self.assertFalse(isequal_canonical(A, mutarith.matrix([[1, 2]])))
        self.assertFalse(isequal_canonical(A, 1))

    def test_wrappers_compare_parents(self):
        A = mutarith.matrix([[1, 2], [3, 4]])
        self.assertTrue(isequal_canonical(A.T, mutarith.matrix([[1, 2], [3, 4]]).T))
        self.assertTrue(isequal_canonical(A.T, mutarith.matrix([[1, 3], [2, 4]])))
        self.assertTrue(isequal_canonical(Symmetric(A), Symmetric(A.copy())))
        self.assertFalse(isequal_canonical(Symmetric(A, "U"), Symmetric(A, "L")))
        self.assertTrue(isequal_canonical(Diagonal([1, 2]), mutarith.matrix([[1, 0], [0, 2]])))

    def test_symmetric_ignores_unread_triangle(self):
        upper = Symmetric(mutarith.matrix([[1, 2], [99, 4]]))
        other = Symmetric(mutarith.matrix([[1, 2], [-7, 4]]))
        self.assertTrue(isequal_canonical(upper, other))
        self.assertTrue(isequal_canonical(upper, mutarith.matrix([[1, 2], [2, 4]])))
        self.assertFalse(isequal_canonical(upper, Symmetric(mutarith.matrix([[1, 5], [2, 4]]))))

    def test_uniform_scaling(self):
        self.assertTrue(isequal_canonical(I, UniformScaling(1)))
        self.assertFalse(isequal_canonical(I, UniformScaling(2)))
        self.assertFalse(isequal_canonical(I, mutarith.matrix([[1, 0], [0, 1]])))


class TestIsZeroInplace(unittest.TestCase):
    def test_scalars(self):
        self.assertTrue(iszero_inplace(0))
        self.assertTrue(iszero_inplace(BigInt(0)))
        self.assertFalse(iszero_inplace(Fraction(1, 3)))

    def test_hook_may_canonicalize(self):
        p = Polynomial([0, 0])
        self.assertTrue(iszero_inplace(p))
        self.assertEqual(p.coeffs, [])

    def test_containers(self):
        self.assertTrue(iszero_inplace(mutarith.zeros(BigInt, 2, 2)))
        self.assertFalse(iszero_inplace(mutarith.vector([0, 1])))
        self.assertTrue(iszero_inplace(UniformScaling(0)))
        self.assertTrue(iszero_inplace(mutarith.vector([Polynomial([0])], eltype=Polynomial)))


if __name__ == "__main__":
    unittest.main()
