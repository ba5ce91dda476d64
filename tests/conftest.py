# tests/conftest.py
from __future__ import annotations

import matplotlib

matplotlib.use("Agg")

import pytest
import torch

from rbmopt.common import Optimizable, RandomSource
from rbmopt.data import TensorDataSet


class QuadraticProblem(Optimizable):
    """error = 1/2 * sum_n ||p - t_n||^2, so gradient(n) = p - t_n. Deterministic, which makes optimizers testable."""

    def __init__(self, targets: torch.Tensor):
        self.targets = targets
        self.parameters = torch.zeros(targets.shape[1], dtype=targets.dtype)
        self.finished_iterations = 0

    def provides_initialization(self) -> bool:
        return True

    def initialize(self):
        self.parameters.zero_()

    def dimension(self) -> int:
        return self.targets.shape[1]

    def examples(self) -> int:
        return self.targets.shape[0]

    def current_parameters(self) -> torch.Tensor:
        return self.parameters.clone()

    def set_parameters(self, parameters: torch.Tensor):
        self.parameters = parameters.clone()

    def error(self) -> float:
        return 0.5 * ((self.parameters - self.targets) ** 2).sum().item()

    def gradient(self, index: int | None = None) -> torch.Tensor:
        if index is None:
            return (self.parameters - self.targets).sum(dim=0)
        return self.parameters - self.targets[index]

    def finished_iteration(self):
        self.finished_iterations += 1


@pytest.fixture
def random_source() -> RandomSource:
    return RandomSource(seed=1234)


@pytest.fixture
def make_quadratic():
    return QuadraticProblem


@pytest.fixture
def quadratic() -> QuadraticProblem:
    targets = torch.linspace(-1, 1, 20 * 3, dtype=torch.float64).view(20, 3)
    return QuadraticProblem(targets)


def make_binary_data(n_examples: int, random_source: RandomSource) -> TensorDataSet:
    """Two noisy prototypes over 4 binary units."""
    prototypes = torch.tensor([[1., 1., 0., 0.], [0., 0., 1., 1.]], dtype=torch.float64)
    choice = random_source.index(2, size=(n_examples,))
    flips = random_source.uniform(size=(n_examples, 4)) < 0.1
    inputs = torch.where(flips, 1 - prototypes[choice], prototypes[choice])
    return TensorDataSet(inputs)


@pytest.fixture
def binary_data(random_source: RandomSource) -> TensorDataSet:
    return make_binary_data(100, random_source)
