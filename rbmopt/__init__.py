"""This package trains parametric models with generic numerical optimizers.

Optimizers (see rbmopt.optimization) only talk to models through the narrow Optimizable interface in rbmopt.common:
a flat parameter vector, per-example gradients and an error. Models implement that interface however they like. The
binary Restricted Boltzmann Machine in rbmopt.rbm, for example, does not have a closed-form gradient at all and instead
provides a stochastic Contrastive Divergence estimate.
"""
