from __future__ import annotations

from enum import Enum

import torch
from torch import nn
from torch.nn.utils import parameters_to_vector, vector_to_parameters

from .working_set import CDWorkingSet
from ..common import DataSet, Optimizable, RandomSource, logistic, logistic_derivative
from ..types import HiddenFloat, ParameterVector, VisibleFloat, WeightMatrix


class GradientMode(Enum):
    """How an RBM is trained.

    CONTRASTIVE_DIVERGENCE: Standalone, unsupervised training with CD-k gradients through the Optimizable interface.
    BACKPROP: The RBM is one layer of a larger differentiable model. It only provides exact derivatives for an incoming
              error signal via backpropagate(); gradient() is unavailable.
    """
    CONTRASTIVE_DIVERGENCE = "cd"
    BACKPROP = "backprop"


def sample_binary(probabilities: torch.Tensor,
                  random_source: RandomSource) -> torch.Tensor:
    """Binary states: each unit is 1 iff its probability is strictly larger than an independent uniform(0, 1) draw.

    So probability 1 always gives 1, and probability 0 always gives 0.
    """
    draws = random_source.uniform(size=probabilities.shape, dtype=probabilities.dtype)
    return (probabilities > draws).to(probabilities.dtype)


class RBM(nn.Module, Optimizable):
    def __init__(self,
                 visible_units: int,
                 hidden_units: int,
                 cd_steps: int = 1,
                 parameter_std_dev: float = 0.01,
                 mode: GradientMode | str = GradientMode.CONTRASTIVE_DIVERGENCE,
                 random_source: RandomSource | None = None,
                 dtype: torch.dtype = torch.float64):
        """Binary Restricted Boltzmann Machine, trained with Contrastive Divergence.

        All parameters are exposed as one flat vector (see current_parameters()), so any optimizer working on the
        Optimizable interface can train it. The layout is: weights (hidden x visible, row by row), then visible biases,
        then hidden biases.

        Parameters:
            visible_units: Number of visible units, i.e. input dimensions.
            hidden_units: Number of hidden units to use.
            cd_steps: How many Gibbs sampling steps to run in the negative ("daydream") phase of CD-k. Note that one
                      step means sampling from p(v|h) *and* then p(h|v).
            parameter_std_dev: Parameters are initialized from a normal distribution with this standard deviation.
            mode: See GradientMode. Fixed for the lifetime of the model.
            random_source: Used for initialization and all sampling. Should be the same instance the optimizer uses.
                           A fresh one is created if None.
            dtype: Floating point type of parameters and buffers.
        """
        super().__init__()
        if visible_units < 1 or hidden_units < 1:
            raise ValueError(f"Need at least one visible and one hidden unit, you passed {visible_units} and "
                             f"{hidden_units}")
        if cd_steps < 1:
            raise ValueError(f"cd_steps must be at least 1, you passed {cd_steps}")
        if parameter_std_dev < 0:
            raise ValueError(f"parameter_std_dev must be non-negative, you passed {parameter_std_dev}")

        self.visible_units = visible_units
        self.hidden_units = hidden_units
        self.cd_steps = cd_steps
        self.parameter_std_dev = parameter_std_dev
        self.mode = GradientMode(mode)
        self.random_source = random_source if random_source is not None else RandomSource()
        self.n_parameters = hidden_units * visible_units + visible_units + hidden_units

        # registration order defines the layout of the flat parameter vector
        self.weights = nn.Parameter(torch.zeros(hidden_units, visible_units, dtype=dtype))
        self.bias_visible = nn.Parameter(torch.zeros(visible_units, dtype=dtype))
        self.bias_hidden = nn.Parameter(torch.zeros(hidden_units, dtype=dtype))

        self.working_set = self.new_working_set()
        self.train_set: DataSet | None = None
        self.initialize()

    def extra_repr(self) -> str:
        return (f"visible_units={self.visible_units}, hidden_units={self.hidden_units}, cd_steps={self.cd_steps}, "
                f"mode={self.mode.value}")

    def new_working_set(self) -> CDWorkingSet:
        """Fresh set of scratch buffers matching this model's layer sizes."""
        return CDWorkingSet.allocate(self.visible_units, self.hidden_units, self.weights.dtype)

    # Optimizable

    def provides_initialization(self) -> bool:
        return True

    @torch.no_grad()
    def initialize(self):
        """Draw every parameter independently from N(0, parameter_std_dev**2)."""
        parameters = self.random_source.normal(size=(self.n_parameters,)) * self.parameter_std_dev
        self.set_parameters(parameters)

    def dimension(self) -> int:
        return self.n_parameters

    def examples(self) -> int:
        return self._training_data().samples()

    @torch.no_grad()
    def current_parameters(self) -> ParameterVector:
        return parameters_to_vector(self.parameters())

    @torch.no_grad()
    def set_parameters(self,
                       parameters: ParameterVector):
        if parameters.shape != (self.n_parameters,):
            raise ValueError(f"Expected a parameter vector of shape ({self.n_parameters},), got "
                             f"{tuple(parameters.shape)}")
        # copy, so that callers can keep modifying their vector in-place
        vector_to_parameters(parameters.detach().to(self.weights.dtype).clone(), self.parameters())

    def error(self,
              index: int | None = None) -> float:
        """Squared distance between inputs and their one-step probabilistic reconstructions.

        Parameters:
            index: Example to compute the error for. If None, the error is summed over all examples.
        """
        if index is None:
            return sum(self.error(n) for n in range(self.examples()))
        reconstruction = self.reconstruct_prob(index, 1)
        return ((reconstruction - self._instance(index))**2).sum().item()

    def provides_gradient(self) -> bool:
        return self.mode is GradientMode.CONTRASTIVE_DIVERGENCE

    @torch.no_grad()
    def gradient(self,
                 index: int | None = None,
                 working_set: CDWorkingSet | None = None) -> ParameterVector:
        """CD-k estimate of the negative log-likelihood gradient.

        This is stochastic: calling it twice for the same example generally gives different results.

        Parameters:
            index: Example to compute the gradient for. If None, the gradient is summed over all examples.
            working_set: Buffers to compute in. Defaults to the model's own set. Pass separate sets to compute
                         gradients for several examples concurrently.
        """
        if self.mode is not GradientMode.CONTRASTIVE_DIVERGENCE:
            raise RuntimeError("RBM in backprop mode does not provide CD-k gradients; use backpropagate()")
        if index is None:
            total = torch.zeros(self.n_parameters, dtype=self.weights.dtype)
            for n in range(self.examples()):
                total += self.gradient(n, working_set)
            return total

        working_set = self.working_set if working_set is None else working_set
        self.reality(index, working_set)
        self.daydream(working_set)
        positive = torch.cat([working_set.pos_grad_weights.reshape(-1),
                              working_set.pos_grad_bias_visible,
                              working_set.pos_grad_bias_hidden])
        negative = torch.cat([working_set.neg_grad_weights.reshape(-1),
                              working_set.neg_grad_bias_visible,
                              working_set.neg_grad_bias_hidden])
        # optimizers descend, CD estimates the ascent direction of the log-likelihood
        return -(positive - negative)

    # Learner

    def training_set(self,
                     data: DataSet | torch.Tensor,
                     outputs: torch.Tensor | None = None) -> RBM:
        """Set the data to learn from. Only DataSets are supported, raw input/output matrices are not."""
        if isinstance(data, torch.Tensor) or outputs is not None:
            raise NotImplementedError("RBM.training_set(inputs, outputs) is not implemented! Wrap the data in a "
                                      "DataSet instead.")
        self.train_set = data
        return self

    # Contrastive divergence

    def reality(self,
                index: int,
                working_set: CDWorkingSet):
        """Positive phase: hidden statistics driven by one training example."""
        working_set.visible = self._instance(index)
        self.sample_h_given_v(working_set)
        working_set.pos_grad_weights = torch.outer(working_set.hidden_probs, working_set.visible)
        working_set.pos_grad_bias_visible = working_set.visible
        working_set.pos_grad_bias_hidden = working_set.hidden_probs

    def daydream(self,
                 working_set: CDWorkingSet):
        """Negative phase: statistics after cd_steps Gibbs sampling rounds, starting from the current hidden sample."""
        for _ in range(self.cd_steps):
            self.sample_v_given_h(working_set)
            self.sample_h_given_v(working_set)
        working_set.neg_grad_weights = torch.outer(working_set.hidden_probs, working_set.visible_probs)
        working_set.neg_grad_bias_visible = working_set.visible_probs
        working_set.neg_grad_bias_hidden = working_set.hidden_probs

    def sample_h_given_v(self,
                         working_set: CDWorkingSet):
        working_set.hidden_probs = logistic(working_set.visible @ self.weights.T + self.bias_hidden)
        working_set.hidden = sample_binary(working_set.hidden_probs, self.random_source)

    def sample_v_given_h(self,
                         working_set: CDWorkingSet):
        working_set.visible_probs = logistic(working_set.hidden @ self.weights + self.bias_visible)
        working_set.visible = sample_binary(working_set.visible_probs, self.random_source)

    @torch.no_grad()
    def reconstruct_prob(self,
                         index: int,
                         steps: int = 1) -> VisibleFloat:
        """Visible probabilities p(v|h) after running steps Gibbs sampling rounds starting from an example."""
        self.working_set.visible = self._instance(index)
        self.working_set.visible_probs = self.working_set.visible
        for _ in range(steps):
            self.sample_h_given_v(self.working_set)
            self.sample_v_given_h(self.working_set)
        return self.working_set.visible_probs.clone()

    @torch.no_grad()
    def reconstruct(self,
                    index: int,
                    steps: int = 1) -> VisibleFloat:
        """Like reconstruct_prob(), but returns the binary visible sample."""
        self.working_set.visible = self._instance(index)
        for _ in range(steps):
            self.sample_h_given_v(self.working_set)
            self.sample_v_given_h(self.working_set)
        return self.working_set.visible.clone()

    def visible_probs(self) -> VisibleFloat:
        """Visible probabilities of the most recent sampling step."""
        return self.working_set.visible_probs

    def visible_sample(self) -> VisibleFloat:
        """Visible states of the most recent sampling step."""
        return self.working_set.visible

    # Layer

    @torch.no_grad()
    def forward(self,
                visible: VisibleFloat) -> HiddenFloat:
        """Hidden probabilities p(h|v) for (a batch of) inputs. Also samples the hidden units as a side effect."""
        self.working_set.visible = visible.to(self.weights.dtype)
        self.sample_h_given_v(self.working_set)
        return self.working_set.hidden_probs

    @torch.no_grad()
    def backpropagate(self,
                      error_in: HiddenFloat) -> VisibleFloat:
        """Backward pass for the last forward() call.

        In backprop mode, derivatives for the weights and hidden biases are stored in their .grad attributes. In CD
        mode the RBM's parameters are treated as fixed, and only the error signal is passed on.

        Parameters:
            error_in: Derivative of the loss with respect to the hidden probabilities returned by forward().

        Returns:
            Derivative of the loss with respect to the inputs of forward(), for the layer below.
        """
        working_set = self.working_set
        working_set.deltas = logistic_derivative(working_set.hidden_probs) * error_in
        if self.mode is GradientMode.BACKPROP:
            deltas = working_set.deltas.reshape(-1, self.hidden_units)
            self.weights.grad = deltas.T @ working_set.visible.reshape(-1, self.visible_units)
            self.bias_hidden.grad = deltas.sum(dim=0)
        working_set.error_signal = working_set.deltas @ self.weights
        return working_set.error_signal

    def layer_parameters(self) -> list[nn.Parameter]:
        """Parameters that an enclosing model should update with the derivatives from backpropagate()."""
        if self.mode is GradientMode.BACKPROP:
            return [self.weights, self.bias_hidden]
        return []

    def output_dimensions(self) -> list[int]:
        return [self.hidden_units]

    def weight_matrix(self) -> WeightMatrix:
        """Detached view of the weights, one row per hidden unit (e.g. to plot as filters)."""
        return self.weights.detach()

    def _training_data(self) -> DataSet:
        if self.train_set is None:
            raise RuntimeError("No training set; call training_set() first")
        return self.train_set

    def _instance(self,
                  index: int) -> VisibleFloat:
        instance = torch.as_tensor(self._training_data().get_instance(index), dtype=self.weights.dtype)
        return instance.reshape(-1)
