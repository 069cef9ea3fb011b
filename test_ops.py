import math

import numpy as np
import pytest

from neuronfun.nnetwork import ops
from neuronfun.nnetwork.core.errors import NumericDomain, ShapeMismatch
from neuronfun.nnetwork.core.node import Node


# ---------------------------------- add / sub ---------------------------------- #
def test_scalar_addition():
    a = Node.scalar(1.0)
    b = Node.scalar(2.0)
    y = a + b
    assert y.value_at(0) == 3.0
    y.back_propagation()
    assert a.grad_at(0) == 1.0
    assert b.grad_at(0) == 1.0


def test_self_addition():
    a = Node.scalar(1.0)
    y = a + a
    assert y.value_at(0) == 2.0
    y.back_propagation()
    assert a.grad_at(0) == 2.0


def test_add_broadcasts_scalar():
    a = Node.col_vector([1, 2, 3])
    s = Node.scalar(10.0)
    y = a + s
    assert y.shape == (3, 1)
    assert y.copy_values().tolist() == [11, 12, 13]
    y.back_propagation()
    assert s.grad_at(0) == 3.0
    assert a.copy_grads().tolist() == [1, 1, 1]

    y = s + a
    assert y.shape == (3, 1)


def test_add_with_python_number():
    a = Node.col_vector([1, 2])
    assert (a + 1).copy_values().tolist() == [2, 3]
    assert (1 + a).copy_values().tolist() == [2, 3]


def test_add_shape_mismatch():
    with pytest.raises(ShapeMismatch):
        Node.col_vector([1, 2]) + Node.col_vector([1, 2, 3])
    with pytest.raises(ShapeMismatch):
        Node.col_vector([1, 2]) + Node.row_vector([1, 2])


def test_neg_and_sub():
    a = Node.col_vector([1, 2])
    b = Node.col_vector([5, 7])
    y = (a - b).sum()
    assert y.value_at(0) == -9.0
    y.back_propagation()
    assert a.copy_grads().tolist() == [1, 1]
    assert b.copy_grads().tolist() == [-1, -1]

    z = -a
    assert z.copy_values().tolist() == [-1, -2]
    assert (3 - a).copy_values().tolist() == [2, 1]


# -------------------------------- multiplication ------------------------------- #
def test_matmul_2x2_by_2x1():
    A = Node.filled((2, 2), [1, 2, 3, 4])
    x = Node.col_vector([5, 6])
    y = A @ x
    assert y.copy_values().tolist() == [17, 39]
    y.back_propagation()
    assert A.grads.tolist() == [[5, 6], [5, 6]]
    assert x.copy_grads().tolist() == [4, 6]


def test_matmul_2x3_by_3x2():
    A = Node.filled((2, 3), [1, 2, 3, 4, 5, 6])
    B = Node.filled((3, 2), [7, 8, 9, 10, 11, 12])
    C = A * B
    assert C.values.tolist() == [[58, 64], [139, 154]]
    C.back_propagation()
    assert A.grads.tolist() == [[15, 19, 23], [15, 19, 23]]
    assert B.grads.tolist() == [[5, 5], [7, 7], [9, 9]]


def test_matmul_inner_dimension_mismatch():
    with pytest.raises(ShapeMismatch):
        Node.zeros((2, 3)) @ Node.zeros((2, 3))


def test_matmul_scalar_branch_matches_general_branch():
    s_vals, a_vals = 2.5, [1.0, -2.0, 3.0]

    s = Node.scalar(s_vals)
    a = Node.row_vector(a_vals)
    scalar_branch = s @ a
    scalar_branch.sum().back_propagation()

    # same product through a (1, 1) x (1, 3) product is the general rule
    s2 = Node.scalar(s_vals)
    a2 = Node.row_vector(a_vals)
    general = Node.from_array(s2.values @ a2.values)
    np.testing.assert_allclose(scalar_branch.values, general.values)
    assert scalar_branch.shape == (1, 3)
    # d/ds sum(s*a) = sum(a), d/da = s
    assert s.grad_at(0) == pytest.approx(sum(a_vals))
    np.testing.assert_allclose(a.copy_grads(), [s_vals] * 3)

    right = Node.col_vector([1, 2]) @ Node.scalar(3.0)
    assert right.copy_values().tolist() == [3, 6]


def test_mul_scalar_gradients():
    a = Node.col_vector([1, 2, 3])
    s = Node.scalar(2.0)
    y = ops.mul_scalar(a, s)
    assert y.copy_values().tolist() == [2, 4, 6]
    y.back_propagation()
    assert s.grad_at(0) == 6.0
    assert a.copy_grads().tolist() == [2, 2, 2]

    with pytest.raises(ShapeMismatch):
        ops.mul_scalar(a, Node.col_vector([1, 2]))


def test_mul_scalar_with_itself():
    s = Node.scalar(3.0)
    y = ops.mul_scalar(s, s)
    y.back_propagation()
    assert y.value_at(0) == 9.0
    assert s.grad_at(0) == 6.0


def test_element_wise_mul():
    a = Node.col_vector([1, 2])
    b = Node.col_vector([3, 4])
    y = a.element_wise_mul(b)
    assert y.copy_values().tolist() == [3, 8]
    y.back_propagation()
    assert a.copy_grads().tolist() == [3, 4]
    assert b.copy_grads().tolist() == [1, 2]
    with pytest.raises(ShapeMismatch):
        a.element_wise_mul(Node.row_vector([1, 2]))


def test_shared_node_accumulates_gradient():
    w = Node.scalar(3.0)
    y = w * w * w
    y.back_propagation()
    assert y.value_at(0) == 27.0
    assert w.grad_at(0) == pytest.approx(27.0)


# ------------------------------------ powers ----------------------------------- #
def test_pow_gradients():
    x = Node.col_vector([2, 3])
    p = Node.scalar(2.0)
    y = x ** p
    assert y.copy_values().tolist() == [4, 9]
    y.back_propagation()
    assert x.copy_grads().tolist() == [4, 6]
    assert p.grad_at(0) == pytest.approx(4 * math.log(2) + 9 * math.log(3))


def test_pow_negative_base_integer_power_stays_finite():
    x = Node.col_vector([-2.0, 3.0])
    p = Node.scalar(2.0)
    y = x ** p
    y.back_propagation()
    assert x.copy_grads().tolist() == [-4, 6]
    assert p.grad_at(0) == pytest.approx(9 * math.log(3))
    assert np.isfinite(p.grad_at(0))


def test_pow_domain_errors():
    with pytest.raises(NumericDomain):
        Node.scalar(0.0) ** -1
    with pytest.raises(NumericDomain):
        Node.scalar(-8.0) ** 0.5
    with pytest.raises(ShapeMismatch):
        Node.scalar(2.0) ** Node.col_vector([1, 2])


def test_pow_gradient_at_zero_base():
    x = Node.col_vector([0.0, 4.0])
    y = x ** 0.5
    assert y.copy_values().tolist() == [0.0, 2.0]
    with pytest.raises(NumericDomain):
        y.back_propagation()

    # the zero entry does not receive any gradient here
    w = Node.col_vector([0.0, 1.0])
    z = (x ** 0.5).element_wise_mul(w).sum()
    z.back_propagation()
    assert x.copy_grads().tolist() == [0.0, 0.25]

    c = Node.col_vector([0.0, 3.0])
    (c ** 0.0).sum().back_propagation()
    assert c.copy_grads().tolist() == [0.0, 0.0]


def test_inv_and_div():
    a = Node.col_vector([2, 4])
    assert a.inv().copy_values().tolist() == [0.5, 0.25]

    y = a / 2
    assert y.copy_values().tolist() == [1, 2]
    b = Node.col_vector([4, 8])
    z = b / a
    assert z.copy_values().tolist() == [2, 2]
    z.sum().back_propagation()
    np.testing.assert_allclose(b.copy_grads(), [0.5, 0.25])
    np.testing.assert_allclose(a.copy_grads(), [-4 / 4, -8 / 16])


# ---------------------------------- exp / log ---------------------------------- #
def test_exp_and_log():
    x = Node.col_vector([0.0, 1.0])
    y = x.exp()
    np.testing.assert_allclose(y.copy_values(), [1.0, math.e])
    y.sum().back_propagation()
    np.testing.assert_allclose(x.copy_grads(), [1.0, math.e])

    z = Node.col_vector([1.0, 4.0])
    w = z.log()
    np.testing.assert_allclose(w.copy_values(), [0.0, math.log(4)])
    w.sum().back_propagation()
    np.testing.assert_allclose(z.copy_grads(), [1.0, 0.25])


def test_log_of_non_positive_raises():
    with pytest.raises(NumericDomain):
        Node.col_vector([1.0, 0.0]).log()
    with pytest.raises(NumericDomain):
        Node.scalar(-1.0).log()


# ---------------------------------- reductions --------------------------------- #
def test_sum_and_normalize():
    x = Node.col_vector([1, 3])
    s = x.sum()
    assert s.shape == (1, 1)
    assert s.value_at(0) == 4.0
    s.back_propagation()
    assert x.copy_grads().tolist() == [1, 1]

    n = x.normalized()
    assert n.copy_values().tolist() == [0.25, 0.75]


def test_collapse_is_one_hot():
    rng = np.random.default_rng(0)
    p = Node.col_vector([0.1, 0.2, 0.7])
    for _ in range(20):
        c = p.collapse(rng)
        assert c.shape == (3, 1)
        assert sorted(c.copy_values().tolist()) == [0, 0, 1]
        assert c.is_leaf


def test_collapse_follows_weights():
    rng = np.random.default_rng(3)
    c = Node.row_vector([0.0, 0.0, 5.0]).collapse(rng)
    assert c.copy_values().tolist() == [0, 0, 1]

    counts = np.zeros(2)
    p = Node.col_vector([1.0, 3.0])
    for _ in range(2000):
        counts += p.collapse(rng).copy_values()
    assert 0.2 < counts[0] / 2000 < 0.3


def test_collapse_needs_positive_total():
    with pytest.raises(NumericDomain):
        Node.col_vector([0.0, 0.0]).collapse()


# ---------------------------------- activations -------------------------------- #
def test_softmax():
    y = ops.softmax(Node.col_vector([1.0, 2.0]))
    e, e2 = math.e, math.e ** 2
    np.testing.assert_allclose(y.copy_values(), [e / (e + e2), e2 / (e + e2)])
    assert y.copy_values().sum() == pytest.approx(1.0, abs=1e-9)


def test_softmax_sums_to_one():
    rng = np.random.default_rng(5)
    for _ in range(10):
        x = Node.from_array(rng.normal(scale=5.0, size=(6, 1)))
        assert ops.softmax(x).copy_values().sum() == pytest.approx(1.0, abs=1e-9)


def test_sigmoid():
    x = Node.col_vector([0.0, 2.0])
    y = ops.sigmoid(x)
    np.testing.assert_allclose(y.copy_values(), [0.5, 1 / (1 + math.exp(-2))])
    y.sum().back_propagation()
    s = 1 / (1 + math.exp(-2))
    np.testing.assert_allclose(x.copy_grads(), [0.25, s * (1 - s)])


def test_tanh():
    x = Node.col_vector([-10, -2, -1, 0, 1, 2, 10])
    y = ops.tanh(x)
    expected = [-1.0, -0.9640276, -0.7615942, 0, 0.7615942, 0.9640276, 1.0]
    np.testing.assert_allclose(y.copy_values(), expected, atol=1e-6)
    y.sum().back_propagation()
    np.testing.assert_allclose(x.copy_grads(), 1 - np.tanh(x.copy_values()) ** 2)


def test_leaky_relu():
    x = Node.col_vector([-1.0, 2.0])
    y = ops.leaky_relu(x)
    np.testing.assert_allclose(y.copy_values(), [-0.01, 2.0])
    y.sum().back_propagation()
    np.testing.assert_allclose(x.copy_grads(), [0.01, 1.0])
