from dataclasses import dataclass


@dataclass(frozen=True)
class StoppingCriteria:
    """When to end an optimization run.

    Attributes:
        maximal_iterations: Stop once more than this many iterations have been completed. None means unbounded.
        minimal_search_space_step: Stop once the norm of the last update falls below this. None means unbounded, i.e.
                                   never stop because of small steps.
    """
    maximal_iterations: int | None = None
    minimal_search_space_step: float | None = None

    def __post_init__(self):
        if self.maximal_iterations is not None and self.maximal_iterations < 0:
            raise ValueError(f"maximal_iterations must be non-negative or None, you passed {self.maximal_iterations}")
        if self.minimal_search_space_step is not None and self.minimal_search_space_step < 0:
            raise ValueError("minimal_search_space_step must be non-negative or None, "
                             f"you passed {self.minimal_search_space_step}")

    def unbounded(self) -> bool:
        """True if neither criterion can ever fire. Such a run only ends by raising."""
        return self.maximal_iterations is None and self.minimal_search_space_step is None
