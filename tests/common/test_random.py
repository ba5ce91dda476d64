#!filepath: tests/common/test_random.py
import pytest
import torch

from rbmopt.common import RandomSource


def test_same_seed_same_stream():
    a = RandomSource(seed=7)
    b = RandomSource(seed=7)

    assert torch.equal(a.uniform(size=(10,)), b.uniform(size=(10,)))
    assert a.normal() == b.normal()
    assert a.index(100) == b.index(100)
    assert torch.equal(a.permutation(10), b.permutation(10))


def test_uniform_range(random_source):
    draws = random_source.uniform(-2., 3., size=(1000,))

    assert draws.dtype == torch.float64
    assert draws.min() >= -2.
    assert draws.max() < 3.


def test_uniform_in_requested_dtype(random_source):
    draws = random_source.uniform(size=(1000,), dtype=torch.float32)

    assert draws.dtype == torch.float32
    assert draws.max() < 1.
    assert random_source.dtype == torch.float64


def test_scalar_draws_are_python_numbers(random_source):
    assert isinstance(random_source.uniform(), float)
    assert isinstance(random_source.normal(), float)
    assert isinstance(random_source.index(5), int)


def test_index_range(random_source):
    draws = random_source.index(4, size=(500,))

    assert draws.min() >= 0
    assert draws.max() < 4
    # with 500 draws every bin is hit
    assert set(draws.tolist()) == {0, 1, 2, 3}


def test_index_from_empty_range_raises(random_source):
    with pytest.raises(ValueError):
        random_source.index(0)


def test_permutation(random_source):
    permutation = random_source.permutation(50)

    assert torch.equal(permutation.sort().values, torch.arange(50))
