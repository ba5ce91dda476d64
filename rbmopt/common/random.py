import torch

from ..types import IndexBatch


class RandomSource:
    def __init__(self,
                 seed: int | None = None,
                 dtype: torch.dtype = torch.float64):
        """Shared source of randomness for one training run.

        Both the model (Gibbs sampling) and the optimizer (batch assignment) should draw from the *same* instance. All
        draws come from one torch.Generator in call order, so a fixed seed reproduces a run exactly as long as the calls
        happen in the same order.

        Parameters:
            seed: Seed for the underlying generator. Pass None to seed non-deterministically.
            dtype: Floating point type of real-valued draws.
        """
        self.generator = torch.Generator()
        if seed is None:
            self.generator.seed()
        else:
            self.generator.manual_seed(seed)
        self.dtype = dtype

    def uniform(self,
                low: float = 0.,
                high: float = 1.,
                size: tuple[int, ...] | torch.Size | None = None,
                dtype: torch.dtype | None = None) -> float | torch.Tensor:
        """Uniform draw(s) in [low, high). Returns a Python float if size is None.

        dtype overrides the source's default type. Draws cast to a narrower type afterwards may round up to high.
        """
        dtype = self.dtype if dtype is None else dtype
        draws = torch.rand(() if size is None else size, generator=self.generator, dtype=dtype)
        draws = low + (high - low) * draws
        return draws.item() if size is None else draws

    def normal(self,
               size: tuple[int, ...] | torch.Size | None = None) -> float | torch.Tensor:
        """Standard normal draw(s). Returns a Python float if size is None."""
        draws = torch.randn(() if size is None else size, generator=self.generator, dtype=self.dtype)
        return draws.item() if size is None else draws

    def index(self,
              n: int,
              size: tuple[int, ...] | torch.Size | None = None) -> int | IndexBatch:
        """Uniform integer(s) in [0, n). Returns a Python int if size is None."""
        if n < 1:
            raise ValueError(f"Cannot draw an index from an empty range (n={n}).")
        draws = torch.randint(n, () if size is None else size, generator=self.generator)
        return draws.item() if size is None else draws

    def permutation(self,
                    n: int) -> IndexBatch:
        """Random permutation of 0, ..., n-1."""
        return torch.randperm(n, generator=self.generator)
