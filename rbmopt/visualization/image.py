import numpy as np
import torch
from matplotlib import pyplot as plt
from torch.utils.tensorboard import SummaryWriter

from ..types import WeightMatrix


def plot_filters(weights: WeightMatrix,
                 image_shape: tuple[int, int],
                 n_rows: int,
                 n_cols: int | None = None,
                 figure_size: tuple[int, int] = (12, 12),
                 title: str = "Filters",
                 colormap: str = "Greys",
                 writer: SummaryWriter | None = None,
                 iteration: int | None = None,
                 suppress_plots: bool = False):
    """Show the weights of hidden units as images in a grid.

    Each row of the weight matrix is reshaped to image_shape and rescaled to [0, 1] separately, since the raw weights
    can take any value.

    Parameters:
        weights: hidden x visible weight matrix, e.g. from RBM.weight_matrix().
        image_shape: (rows, cols) of the input images. rows * cols must equal the number of visible units.
        n_rows: Will plot this many rows of filters.
        n_cols: Will plot this many columns of filters. Defaults to n_rows. Only the first n_rows * n_cols hidden units
                are shown.
        colormap: Which colormap to use to display filters.
        writer: If given, the figure is also stored as a TensorBoard summary for the given iteration.
        suppress_plots: If True, and writer is given, the figure is *only* stored in TensorBoard.
    """
    if n_cols is None:
        n_cols = n_rows
    if image_shape[0] * image_shape[1] != weights.shape[1]:
        raise ValueError(f"image_shape {image_shape} does not fit {weights.shape[1]} visible units")
    with torch.inference_mode():
        filters = weights[:n_rows * n_cols].detach().cpu().numpy()
    minima = filters.min(axis=1, keepdims=True)
    ranges = np.maximum(filters.max(axis=1, keepdims=True) - minima, 1e-12)
    filters = (filters - minima) / ranges

    plt.figure(figsize=figure_size)
    for ind, filter_weights in enumerate(filters):
        plt.subplot(n_rows, n_cols, ind + 1)
        plt.imshow(filter_weights.reshape(image_shape), vmin=0, vmax=1, cmap=colormap)
        plt.axis("off")
    plt.suptitle(title)

    if writer is not None:
        writer.add_figure(title, plt.gcf(), iteration, close=suppress_plots)
    if writer is None or not suppress_plots:
        plt.show()
