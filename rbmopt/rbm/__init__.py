"""This module contains functionalities for binary Restricted Boltzmann Machines.

The RBM implements the Optimizable interface, so it is trained by generic optimizers like MBSGD. Its "gradient" is a
Contrastive Divergence (CD-k) estimate obtained through Gibbs sampling rather than a true derivative. Alternatively,
the RBM can act as a single layer in a larger model that is trained with backpropagation.
"""
from .model import GradientMode, RBM, sample_binary
from .working_set import CDWorkingSet
