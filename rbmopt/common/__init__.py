"""This module contains the pieces every model and optimizer in this package builds on.

That is the interfaces between optimizers and the things they optimize (Optimizable) or the data those things learn
from (DataSet), the shared source of randomness, and a couple of general utility functions.
"""
from .interfaces import DataSet, Optimizable
from .random import RandomSource
from .utils import logistic, logistic_derivative, plot_learning_curves
