from __future__ import annotations

from dataclasses import dataclass, fields

import torch

from ..types import HiddenFloat, VisibleFloat, WeightMatrix


@dataclass
class CDWorkingSet:
    """Scratch buffers of one chain of RBM computations.

    Every gradient, reconstruction or forward pass overwrites these. The RBM owns one set for its own use. Code that
    computes gradients for several examples at the same time has to give every worker its own set (see
    RBM.new_working_set()) and only combine the returned gradient vectors.
    """
    visible: VisibleFloat
    visible_probs: VisibleFloat
    hidden: HiddenFloat
    hidden_probs: HiddenFloat
    pos_grad_weights: WeightMatrix
    pos_grad_bias_visible: VisibleFloat
    pos_grad_bias_hidden: HiddenFloat
    neg_grad_weights: WeightMatrix
    neg_grad_bias_visible: VisibleFloat
    neg_grad_bias_hidden: HiddenFloat
    deltas: HiddenFloat
    error_signal: VisibleFloat

    @classmethod
    def allocate(cls,
                 visible_units: int,
                 hidden_units: int,
                 dtype: torch.dtype = torch.float64) -> CDWorkingSet:
        """Zero-filled buffers for an RBM with the given layer sizes."""
        def zeros(*shape):
            return torch.zeros(*shape, dtype=dtype)

        v, h = visible_units, hidden_units
        return cls(visible=zeros(v), visible_probs=zeros(v), hidden=zeros(h), hidden_probs=zeros(h),
                   pos_grad_weights=zeros(h, v), pos_grad_bias_visible=zeros(v), pos_grad_bias_hidden=zeros(h),
                   neg_grad_weights=zeros(h, v), neg_grad_bias_visible=zeros(v), neg_grad_bias_hidden=zeros(h),
                   deltas=zeros(h), error_signal=zeros(v))

    def clone(self) -> CDWorkingSet:
        """Independent copy, e.g. for another worker."""
        return CDWorkingSet(**{field.name: getattr(self, field.name).clone() for field in fields(self)})
