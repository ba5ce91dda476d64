"""This module provides data sets implementing the DataSet interface, as well as a reader for IDX files (MNIST)."""
from .datasets import TensorDataSet
from .idx import N_CLASSES, load_mnist, pad_replicate, read_idx
