# nnetwork/mlp/loss_functions.py
"""Loss functions `(prediction, target) -> scalar node`."""
from ..core.node import Node
from ..ops.reduction import sum as node_sum
from ..ops.transcendental import log


def least_squares(prediction: Node, target: Node) -> Node:
    """Sum of squared residuals."""
    return node_sum((prediction - target) ** 2)


def neg_log_likelihood(prediction: Node, target: Node) -> Node:
    """-log of the probability the prediction assigns to the one-hot target."""
    return -log(node_sum(prediction.element_wise_mul(target)))
