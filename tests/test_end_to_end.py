#!filepath: tests/test_end_to_end.py
import math

from rbmopt.optimization import MBSGD, StoppingCriteria
from rbmopt.rbm import RBM


def test_train_rbm_with_mbsgd(binary_data, random_source):
    rbm = RBM(visible_units=4, hidden_units=3, cd_steps=1, parameter_std_dev=0.01, random_source=random_source)
    rbm.training_set(binary_data)
    optimizer = MBSGD(learning_rate=0.1, momentum=0.5, batch_size=10, random_source=random_source)
    optimizer.set_optimizable(rbm)
    optimizer.set_stop_criteria(StoppingCriteria(maximal_iterations=10))

    history = optimizer.optimize()

    assert len(history["alpha"]) == 11
    assert math.isfinite(rbm.error())
    assert rbm.current_parameters().shape == (4 * 3 + 4 + 3,)
    assert optimizer.result().shape == (19,)
    assert optimizer.iteration == -1


def test_training_reduces_reconstruction_error(binary_data, random_source):
    rbm = RBM(4, 3, cd_steps=1, parameter_std_dev=0.01, random_source=random_source).training_set(binary_data)
    initial_error = rbm.error()
    optimizer = MBSGD(learning_rate=0.1, momentum=0.5, batch_size=10, random_source=random_source)
    optimizer.set_optimizable(rbm)
    optimizer.set_stop_criteria(StoppingCriteria(maximal_iterations=50))

    optimizer.optimize()

    assert rbm.error() < initial_error
