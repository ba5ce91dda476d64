from collections.abc import Iterable

import numpy as np
import torch
from matplotlib import pyplot as plt


def logistic(x: torch.Tensor) -> torch.Tensor:
    """Logistic sigmoid 1 / (1 + exp(-x))."""
    return torch.sigmoid(x)


def logistic_derivative(activation: torch.Tensor) -> torch.Tensor:
    """Derivative of the logistic function, expressed through its *output* y = logistic(x), i.e. y * (1 - y)."""
    return activation * (1 - activation)


def plot_learning_curves(history: dict[str, np.ndarray],
                         keys: Iterable[str]):
    """Basic plots for metrics of interest.

    Parameters:
        history: Dictionary as returned by an optimizer's optimize function.
        keys: One plot is made for each metric named in here.
    """
    for key in keys:
        plt.figure(figsize=(12, 3))
        plt.plot(history[key])
        plt.title(key)
        plt.xlabel("Iteration")
        plt.show()
