import operator
import pickle
from fractions import Fraction

import pytest

import mutarith
from mutarith import normalize_operation


def test_operation_names_and_repr():
    assert mutarith.add_mul.name == "add_mul"
    assert repr(mutarith.sub) == "mutarith.sub"


@pytest.mark.parametrize(
    "token, expected",
    [
        ("add", mutarith.add),
        ("ADD_MUL", mutarith.add_mul),
        ("+", mutarith.add),
        ("-", mutarith.sub),
        ("*", mutarith.mul),
        ("muladd", mutarith.add_mul),
        (operator.add, mutarith.add),
        (operator.sub, mutarith.sub),
        (operator.mul, mutarith.mul),
        (operator.neg, mutarith.neg),
        (sum, mutarith.sum),
    ],
)
def test_normalize_operation_accepts_tokens(token, expected):
    assert normalize_operation(token) is expected


def test_normalize_operation_is_identity_on_operations():
    assert normalize_operation(mutarith.dot) is mutarith.dot


@pytest.mark.parametrize("token", ["divide", "/", operator.truediv, 3, None, max])
def test_normalize_operation_rejects_unknown(token):
    with pytest.raises(TypeError):
        normalize_operation(token)


def test_arity_is_checked():
    with pytest.raises(TypeError) as exc:
        mutarith.sub(1)
    assert "sub expects 2" in str(exc.value)
    with pytest.raises(TypeError):
        mutarith.add_dot(1, 2)
    with pytest.raises(TypeError):
        mutarith.neg(1, 2)


def test_scalar_semantics():
    assert mutarith.add(1, 2, 3) == 6
    assert mutarith.sub(5, 7) == -2
    assert mutarith.mul(2, 3, 4) == 24
    assert mutarith.add_mul(1, 2, 3) == 7
    assert mutarith.add_mul(1, 2, 3, 4) == 25
    assert mutarith.sub_mul(10, 2, 3) == 4
    assert mutarith.neg(Fraction(1, 3)) == Fraction(-1, 3)
    assert mutarith.zero(2.5) == 0.0
    assert isinstance(mutarith.zero(2.5), float)
    assert mutarith.one(Fraction(7, 2)) == Fraction(1)


def test_dot_conjugates_first_argument():
    assert mutarith.dot(1 + 2j, 3 + 0j) == (1 - 2j) * 3
    assert mutarith.add_dot(1, 1j, 1j) == 2


def test_single_argument_add_and_mul_copy():
    x = mutarith.BigInt(5)
    y = mutarith.add(x)
    assert y == 5
    assert y is not x
    assert mutarith.mul(7) == 7


def test_operations_pickle_to_singletons():
    for op in (mutarith.add, mutarith.add_mul, mutarith.dot):
        assert pickle.loads(pickle.dumps(op)) is op
