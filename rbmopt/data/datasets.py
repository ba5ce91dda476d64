from __future__ import annotations

import torch
from torch.utils.data import Dataset

from ..common import DataSet
from ..types import TabularBatchFloat, TabularFloat


class TensorDataSet(DataSet):
    def __init__(self,
                 inputs: TabularBatchFloat,
                 outputs: TabularBatchFloat | None = None):
        """In-memory data set with one example per row.

        Parameters:
            inputs: n x d matrix of input vectors.
            outputs: Optional n x f matrix of targets (e.g. one-hot labels). Unsupervised models ignore these.
        """
        if inputs.dim() != 2:
            raise ValueError(f"inputs must be a matrix (one example per row), got shape {tuple(inputs.shape)}")
        if outputs is not None and outputs.shape[0] != inputs.shape[0]:
            raise ValueError(f"Got {inputs.shape[0]} inputs but {outputs.shape[0]} outputs")
        self.inputs = inputs
        self.outputs = outputs

    @classmethod
    def from_torch_dataset(cls,
                           dataset: Dataset,
                           dtype: torch.dtype = torch.float64) -> TensorDataSet:
        """Collect a torch dataset of (input, label) pairs in memory. Inputs (e.g. images) are flattened."""
        inputs = []
        outputs = []
        for ind in range(len(dataset)):
            data, label = dataset[ind]
            inputs.append(torch.as_tensor(data, dtype=dtype).reshape(-1))
            outputs.append(torch.as_tensor(label, dtype=dtype).reshape(-1))
        return cls(torch.stack(inputs), torch.stack(outputs))

    def samples(self) -> int:
        return self.inputs.shape[0]

    def get_instance(self,
                     index: int) -> TabularFloat:
        return self.inputs[index]

    def get_target(self,
                   index: int) -> TabularFloat:
        if self.outputs is None:
            return super().get_target(index)
        return self.outputs[index]
