"""This module uses jaxtyping to add various more specific tensor types."""
from typing import TypeAlias

from jaxtyping import Float, Int
from torch import Tensor


ParameterVector: TypeAlias = Float[Tensor, "k"]
GainVector: TypeAlias = Float[Tensor, "k"]

VisibleFloat: TypeAlias = Float[Tensor, "*batch d"]
HiddenFloat: TypeAlias = Float[Tensor, "*batch h"]
WeightMatrix: TypeAlias = Float[Tensor, "h d"]

TabularFloat: TypeAlias = Float[Tensor, "c"]
TabularBatchFloat: TypeAlias = Float[Tensor, "batch c"]
ImageBatchFloat: TypeAlias = Float[Tensor, "batch c h w"]

IndexBatch: TypeAlias = Int[Tensor, "batch"]
