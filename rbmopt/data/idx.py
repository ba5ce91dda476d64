"""Reader for the IDX file format used by MNIST and friends.

An IDX file starts with two zero bytes, one byte encoding the element type and one byte giving the number of axes. Then
follows one big-endian 32 bit extent per axis, and finally the raw (big-endian) data.
"""
import os

import numpy as np
import torch
from torch import nn

from .datasets import TensorDataSet
from ..types import ImageBatchFloat


IDX_TYPES = {0x08: np.dtype(">u1"), 0x09: np.dtype(">i1"), 0x0B: np.dtype(">i2"), 0x0C: np.dtype(">i4"),
             0x0D: np.dtype(">f4"), 0x0E: np.dtype(">f8")}
N_CLASSES = 10


def read_idx(path: str) -> torch.Tensor:
    """Read a whole IDX file into a tensor of the shape given in its header.

    Raises:
        FileNotFoundError: If there is no such file.
        ValueError: If the header is malformed or the file is shorter than the header says.
    """
    if not os.path.exists(path):
        raise FileNotFoundError(f"Could not find file {path}. Please download the data set.")
    with open(path, "rb") as file:
        content = file.read()

    if len(content) < 4:
        raise ValueError(f"{path} is too short to be an IDX file")
    zero_a, zero_b, type_code, n_dims = content[:4]
    if zero_a != 0 or zero_b != 0:
        raise ValueError(f"{path} does not start with two zero bytes; not an IDX file")
    if type_code not in IDX_TYPES:
        raise ValueError(f"Unknown IDX element type {type_code:#04x} in {path}")
    header_end = 4 + 4 * n_dims
    if len(content) < header_end:
        raise ValueError(f"Header of {path} is truncated")

    shape = tuple(int(extent) for extent in np.frombuffer(content, dtype=">u4", count=n_dims, offset=4))
    dtype = IDX_TYPES[type_code]
    n_values = int(np.prod(shape))
    if len(content) - header_end < n_values * dtype.itemsize:
        raise ValueError(f"{path} holds less data than its header {shape} announces")
    data = np.frombuffer(content, dtype=dtype, count=n_values, offset=header_end).reshape(shape)
    # torch can't handle big-endian arrays
    return torch.from_numpy(data.astype(dtype.newbyteorder("=")))


def pad_replicate(images: ImageBatchFloat,
                  width: int,
                  height: int) -> ImageBatchFloat:
    """Pad a batch of (n x rows x cols) images at the right and bottom edges by repeating the last column/row.

    Images that are already at least as large as the target are left alone along that axis.
    """
    pad_right = max(width - images.shape[-1], 0)
    pad_bottom = max(height - images.shape[-2], 0)
    if not pad_right and not pad_bottom:
        return images
    padded = nn.functional.pad(images[:, None], (0, pad_right, 0, pad_bottom), mode="replicate")
    return padded[:, 0]


def load_mnist(directory: str = "mnist",
               pad_to: tuple[int, int] | None = (29, 29),
               n_train: int | None = None,
               n_test: int | None = None,
               dtype: torch.dtype = torch.float64,
               verbose: bool = True) -> tuple[TensorDataSet, TensorDataSet]:
    """Load MNIST from the original IDX files.

    Pixels are scaled to [0, 1] and every image is flattened into one row. Labels become one-hot vectors.

    Parameters:
        directory: Folder containing train-images-idx3-ubyte, train-labels-idx1-ubyte, t10k-images-idx3-ubyte and
                   t10k-labels-idx1-ubyte.
        pad_to: (width, height) to pad images to by replicating edge pixels. The default 29 x 29 gives an odd size,
                which is convenient for convolutions. Pass None to keep the original 28 x 28.
        n_train, n_test: Only load this many examples. None loads everything.
        dtype: Floating point type of the resulting tensors.
        verbose: If True, print some info about what was loaded.

    Returns:
        Training and test data sets.
    """
    train_data = _load_split(directory, "train", pad_to, n_train, dtype)
    test_data = _load_split(directory, "t10k", pad_to, n_test, dtype)
    if verbose:
        print("Loaded MNIST data set.")
        print(f"\tTraining examples: {train_data.samples()}, test examples: {test_data.samples()}")
        print(f"\tD = {train_data.inputs.shape[1]}, F = {N_CLASSES}")
    return train_data, test_data


def _load_split(directory: str,
                prefix: str,
                pad_to: tuple[int, int] | None,
                max_n: int | None,
                dtype: torch.dtype) -> TensorDataSet:
    images = read_idx(os.path.join(directory, f"{prefix}-images-idx3-ubyte"))
    labels = read_idx(os.path.join(directory, f"{prefix}-labels-idx1-ubyte"))
    if images.dim() != 3 or images.dtype != torch.uint8:
        raise ValueError(f"Expected 3d unsigned byte images, got {images.dim()}d {images.dtype}")
    if labels.dim() != 1 or labels.dtype != torch.uint8:
        raise ValueError(f"Expected 1d unsigned byte labels, got {labels.dim()}d {labels.dtype}")
    if labels.shape[0] != images.shape[0]:
        raise ValueError(f"Got {images.shape[0]} images but {labels.shape[0]} labels")
    if labels.numel() and labels.max() >= N_CLASSES:
        raise ValueError(f"Labels must be smaller than {N_CLASSES}, found {labels.max().item()}")

    if max_n is not None:
        images = images[:max_n]
        labels = labels[:max_n]
    inputs = images.to(dtype) / 255
    if pad_to is not None:
        inputs = pad_replicate(inputs, *pad_to)
    outputs = nn.functional.one_hot(labels.long(), N_CLASSES).to(dtype)
    return TensorDataSet(inputs.reshape(inputs.shape[0], -1), outputs)
