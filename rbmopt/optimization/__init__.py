"""This module contains optimizers that train anything implementing the Optimizable interface.

Currently this is mini-batch stochastic gradient descent (MBSGD) with momentum and adaptive per-parameter gains, plus
the stopping criteria that end a run.
"""
from .mbsgd import MBSGD
from .stopping import StoppingCriteria
