from __future__ import annotations

from collections import defaultdict
from time import perf_counter

import numpy as np
import torch
from torch.utils.tensorboard import SummaryWriter
from tqdm.auto import tqdm

from .stopping import StoppingCriteria
from ..common import Optimizable, RandomSource
from ..types import GainVector, IndexBatch, ParameterVector


class MBSGD:
    def __init__(self,
                 learning_rate: float = 0.01,
                 learning_rate_decay: float = 1.0,
                 minimal_learning_rate: float = 0.0,
                 momentum: float = 0.5,
                 momentum_gain: float = 0.0,
                 maximal_momentum: float = 1.0,
                 batch_size: int = 10,
                 min_gain: float = 1.0,
                 max_gain: float = 1.0,
                 aggregation: str = "random",
                 random_source: RandomSource | None = None,
                 check_finite: bool = False,
                 verbose: bool = False,
                 use_tqdm: bool = False,
                 tensorboard_logdir: str | None = None):
        """Mini-batch stochastic gradient descent with momentum and per-parameter adaptive gains.

        The optimizer only talks to its model through the Optimizable interface. Use set_optimizable() to bind a model
        and set_stop_criteria() to decide when to stop, then either call step() yourself or optimize() to run until the
        stopping criteria fire.

        Parameters:
            learning_rate: Initial step size alpha.
            learning_rate_decay: After each mini-batch update, alpha is multiplied by this. 1 means no decay.
            minimal_learning_rate: alpha never decays below this.
            momentum: Initial momentum coefficient eta.
            momentum_gain: After each mini-batch update, this is added to eta.
            maximal_momentum: eta never grows beyond this.
            batch_size: Nominal mini-batch size. Each iteration uses (number of examples // batch_size) batches.
            min_gain, max_gain: Bounds for the per-parameter gains. If both are 1, gain adaptation is switched off.
            aggregation: One of 'random', 'partition'. How examples are split into batches each iteration.
                         'random' assigns every example to a uniformly drawn batch. Batch sizes vary, and summed
                         gradients are still divided by the nominal batch_size.
                         'partition' slices a random permutation into batches of (almost) equal size, and averages over
                         the actual members of each batch.
            random_source: Used for batch assignment. Should be the same instance the model samples from, so that a run
                           is reproducible from a single seed. If None, set_optimizable() adopts the model's
                           random_source, or a fresh one is used if the model has none.
            check_finite: If True, raise as soon as the parameters contain NaN or infinite values.
            verbose: If True, report on training progress in optimize().
            use_tqdm: If True, and verbose is also True, show a progress bar over iterations in optimize().
            tensorboard_logdir: If given, optimize() logs learning rate, momentum, step size and error to this
                                directory for visualization with TensorBoard. Pass None to disable logging.
        """
        if learning_rate <= 0:
            raise ValueError(f"learning_rate must be positive, you passed {learning_rate}")
        if not 0 < learning_rate_decay <= 1:
            raise ValueError(f"learning_rate_decay must be in (0, 1], you passed {learning_rate_decay}")
        if minimal_learning_rate > learning_rate:
            raise ValueError(f"minimal_learning_rate {minimal_learning_rate} exceeds learning_rate {learning_rate}")
        if momentum_gain < 0:
            raise ValueError(f"momentum_gain must be non-negative, you passed {momentum_gain}")
        if momentum > maximal_momentum:
            raise ValueError(f"momentum {momentum} exceeds maximal_momentum {maximal_momentum}")
        if batch_size < 1:
            raise ValueError(f"batch_size must be at least 1, you passed {batch_size}")
        if min_gain > max_gain:
            raise ValueError(f"min_gain {min_gain} exceeds max_gain {max_gain}")
        if aggregation not in ["random", "partition"]:
            raise ValueError(f"Invalid aggregation {aggregation}. Allowed are 'random', 'partition'.")

        self.alpha = learning_rate
        self.alpha_decay = learning_rate_decay
        self.min_alpha = minimal_learning_rate
        self.eta = momentum
        self.eta_gain = momentum_gain
        self.max_eta = maximal_momentum
        self.batch_size = batch_size
        self.min_gain = min_gain
        self.max_gain = max_gain
        self.use_gain = min_gain != 1.0 or max_gain != 1.0
        self.aggregation = aggregation
        self.adopt_random_source = random_source is None
        self.random_source = random_source if random_source is not None else RandomSource()
        self.check_finite = check_finite
        self.verbose = verbose
        self.use_tqdm = use_tqdm
        if tensorboard_logdir is not None:
            self.writer = SummaryWriter(tensorboard_logdir)
        else:
            self.writer = None

        self.opt: Optimizable | None = None
        self.stop = StoppingCriteria()
        self.iteration = -1
        self.optimum: ParameterVector | None = None

        # set up in initialize()
        self.n_parameters = 0
        self.n_examples = 0
        self.batches = 0
        self.gradient: ParameterVector | None = None
        self.gains: GainVector | None = None
        self.momentum: ParameterVector | None = None
        self.parameters: ParameterVector | None = None

    def set_optimizable(self,
                        opt: Optimizable):
        """Bind the model to optimize.

        The optimizer only borrows the model; the model has to stay alive for as long as a run is in progress.
        Model and optimizer must draw from one RandomSource per run. If this optimizer was built without one, it
        switches to the model's random_source.
        """
        self.opt = opt
        if self.adopt_random_source and isinstance(getattr(opt, "random_source", None), RandomSource):
            self.random_source = opt.random_source

    def set_stop_criteria(self,
                          stop: StoppingCriteria):
        self.stop = stop

    def name(self) -> str:
        return "Mini-Batch Stochastic Gradient Descent"

    def initialize(self):
        """Set up the optimizer state for a new run. Called lazily by the first step()."""
        self.n_parameters = self.opt.dimension()
        self.n_examples = self.opt.examples()
        self.batches = self.n_examples // self.batch_size
        if self.batches < 1:
            raise ValueError(f"batch_size {self.batch_size} is larger than the number of examples "
                             f"{self.n_examples}; no batch can be formed")
        self.parameters = self.opt.current_parameters().clone()
        self.gradient = torch.zeros_like(self.parameters)
        self.gains = torch.ones_like(self.parameters)
        self.momentum = torch.zeros_like(self.parameters)
        self.iteration = 0

    def assign_batches(self) -> list[IndexBatch]:
        """Split all example indices into this iteration's mini-batches.

        Every index ends up in exactly one batch. With 'random' aggregation, batches can have any size (including 0).
        """
        if self.aggregation == "random":
            assignment = self.random_source.index(self.batches, size=(self.n_examples,))
            return [torch.nonzero(assignment == batch_ind).view(-1) for batch_ind in range(self.batches)]
        else:
            return list(torch.tensor_split(self.random_source.permutation(self.n_examples), self.batches))

    @torch.no_grad()
    def step(self) -> bool:
        """One iteration, i.e. one pass over all mini-batches.

        Returns:
            False if the stopping criteria fired. In that case the optimizer is reset, and the next call to step()
            starts a new run from the model's current parameters.
        """
        if self.opt is None:
            raise RuntimeError("No Optimizable bound; call set_optimizable() first")
        if not self.opt.provides_initialization():
            raise RuntimeError(f"{type(self.opt).__name__} does not provide initialization")
        if self.iteration < 0:
            self.initialize()

        for batch in self.assign_batches():
            self.gradient.zero_()
            for index in batch.tolist():
                self.gradient += self.opt.gradient(index)
            if self.aggregation == "random":
                self.gradient /= self.batch_size
            elif len(batch) > 0:
                self.gradient /= len(batch)

            if self.use_gain:
                agrees = self.momentum * self.gradient >= 0
                self.gains = torch.where(agrees, self.gains + 0.05, self.gains * 0.95)
                self.gains.clamp_(self.min_gain, self.max_gain)
                self.gradient *= self.gains

            self.momentum = self.eta * self.momentum - self.alpha * self.gradient
            self.parameters += self.momentum
            if self.check_finite and not torch.isfinite(self.parameters).all():
                raise FloatingPointError(f"Parameters became non-finite in iteration {self.iteration}")
            self.opt.set_parameters(self.parameters)

            # decay learning rate, increase momentum
            self.alpha = max(self.alpha * self.alpha_decay, self.min_alpha)
            self.eta = min(self.eta + self.eta_gain, self.max_eta)

        self.iteration += 1
        self.optimum = self.parameters.clone()
        self.opt.finished_iteration()

        run = ((self.stop.maximal_iterations is None
                or self.iteration <= self.stop.maximal_iterations)
               and (self.stop.minimal_search_space_step is None
                    or self.step_norm() >= self.stop.minimal_search_space_step))
        if not run:
            self.iteration = -1
        return run

    def step_norm(self) -> float:
        """Norm of the last parameter update."""
        return torch.linalg.vector_norm(self.momentum).item()

    def optimize(self) -> defaultdict[str, np.ndarray]:
        """Call step() until the stopping criteria fire.

        Returns:
            Dictionary mapping 'alpha', 'eta' and 'step_norm' to numpy arrays with one entry per iteration. If verbose
            is set or TensorBoard logging is active, it also contains the training 'error' after each iteration that
            continued the run, i.e. one entry fewer. Computing the error costs about as much as another pass over the
            data, and it draws from the shared random source, so it is skipped otherwise.
        """
        if self.opt is None:
            raise RuntimeError("No Optimizable bound; call set_optimizable() first")
        if not self.opt.provides_initialization():
            raise RuntimeError(f"{type(self.opt).__name__} does not provide initialization")
        if self.verbose:
            print(f"Running {self.name()} on {self.opt.dimension()} parameters.")
            if self.stop.unbounded():
                print("Stopping criteria are unbounded -- this run will never stop on its own")
        track_error = self.verbose or self.writer is not None

        history = defaultdict(list)
        start_time = perf_counter()
        if self.stop.maximal_iterations is not None:
            total = self.stop.maximal_iterations + 1
        else:
            total = None
        with tqdm(total=total, desc="Iterations", leave=False,
                  disable=not self.use_tqdm or not self.verbose) as progressbar:
            running = True
            while running:
                running = self.step()
                # step() resets the counter when stopping, so count ourselves
                iteration = len(history["alpha"]) + 1
                record = {"alpha": self.alpha, "eta": self.eta, "step_norm": self.step_norm()}
                if track_error and running:
                    record["error"] = self.opt.error()
                for key, value in record.items():
                    history[key].append(value)
                    if self.writer is not None:
                        self.writer.add_scalar(key, value, iteration)

                if self.verbose:
                    print(f"Iteration {iteration} finished")
                    if "error" in record:
                        print(f"\tError = {record['error']:.6g}")
                    print(f"\talpha = {self.alpha:.6g}, eta = {self.eta:.6g}")
                progressbar.update(1)

        if self.verbose:
            print(f"Finished after {len(history['alpha'])} iterations in {perf_counter() - start_time:.4g} seconds")
        if self.writer is not None:
            self.writer.flush()
        for key in history:
            history[key] = np.array(history[key])
        return history

    def result(self) -> ParameterVector:
        """Parameters after the most recent completed iteration."""
        if self.optimum is None:
            raise RuntimeError("No iteration has been completed yet")
        return self.optimum.clone()
