#!filepath: tests/data/test_datasets.py
import pytest
import torch
from torch.utils.data import TensorDataset

from rbmopt.data import TensorDataSet


def test_tensor_data_set():
    inputs = torch.arange(6, dtype=torch.float64).view(3, 2)
    outputs = torch.eye(3, dtype=torch.float64)

    data = TensorDataSet(inputs, outputs)

    assert data.samples() == len(data) == 3
    assert data.get_instance(1).tolist() == [2., 3.]
    assert data.get_target(2).tolist() == [0., 0., 1.]


def test_unsupervised_data_set_has_no_targets():
    data = TensorDataSet(torch.zeros(3, 2))

    with pytest.raises(NotImplementedError):
        data.get_target(0)


@pytest.mark.parametrize("inputs, outputs", [
    (torch.zeros(3), None),
    (torch.zeros(3, 2), torch.zeros(4, 1)),
])
def test_invalid_shapes_raise(inputs, outputs):
    with pytest.raises(ValueError):
        TensorDataSet(inputs, outputs)


def test_from_torch_dataset_flattens_inputs():
    images = torch.arange(2 * 1 * 2 * 2, dtype=torch.float32).view(2, 1, 2, 2)
    labels = torch.tensor([4, 7])

    data = TensorDataSet.from_torch_dataset(TensorDataset(images, labels))

    assert data.inputs.shape == (2, 4)
    assert data.inputs.dtype == torch.float64
    assert data.get_instance(1).tolist() == [4., 5., 6., 7.]
    assert data.get_target(0).tolist() == [4.]
