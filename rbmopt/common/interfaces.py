from abc import ABC, abstractmethod

import torch

from ..types import ParameterVector, TabularFloat


class DataSet(ABC):
    """Anything that can hand out training examples one at a time.

    Models only ever see examples through samples() and get_instance(), so it does not matter whether the data lives in
    memory, comes from a file, or is generated on the fly.
    """
    @abstractmethod
    def samples(self) -> int:
        """Number of examples."""

    @abstractmethod
    def get_instance(self,
                     index: int) -> TabularFloat:
        """Input vector of one example."""

    def get_target(self,
                   index: int) -> TabularFloat:
        """Desired output of one example. Unsupervised data sets don't have any."""
        raise NotImplementedError(f"{type(self).__name__} does not provide targets")

    def __len__(self) -> int:
        return self.samples()


class Optimizable(ABC):
    """The narrow interface an optimizer uses to train something.

    Implementations expose their state as one flat parameter vector. The optimizer reads it, computes an update from
    (possibly stochastic) per-example gradients and writes it back with set_parameters(). It never touches the model in
    any other way.
    """
    def provides_initialization(self) -> bool:
        """Whether initialize() gives sensible starting parameters. Optimizers refuse to run otherwise."""
        return False

    def initialize(self):
        """Draw initial parameters."""
        raise NotImplementedError(f"{type(self).__name__} does not provide initialization")

    @abstractmethod
    def dimension(self) -> int:
        """Number of parameters."""

    @abstractmethod
    def examples(self) -> int:
        """Number of training examples."""

    @abstractmethod
    def current_parameters(self) -> ParameterVector:
        """Copy of the current parameter vector."""

    @abstractmethod
    def set_parameters(self,
                       parameters: ParameterVector):
        """Replace all parameters. set_parameters(current_parameters()) must not change anything."""

    @abstractmethod
    def error(self) -> float:
        """Training error summed over all examples."""

    def provides_gradient(self) -> bool:
        return True

    @abstractmethod
    def gradient(self,
                 index: int | None = None) -> ParameterVector:
        """Gradient of the error with respect to the parameters.

        Parameters:
            index: Example to compute the gradient for. If None, the gradient is summed over all examples.
        """

    def provides_hessian(self) -> bool:
        return False

    def hessian(self) -> torch.Tensor:
        raise NotImplementedError(f"{type(self).__name__}.hessian() is not implemented!")

    def finished_iteration(self):
        """Called by optimizers after each full pass over the data. Use it for housekeeping; does nothing by default."""
        pass
