#!filepath: tests/visualization/test_image.py
import numpy as np
import pytest
from matplotlib import pyplot as plt
from torch.utils.tensorboard import SummaryWriter

from rbmopt.common import plot_learning_curves
from rbmopt.rbm import RBM
from rbmopt.visualization import plot_filters


@pytest.fixture
def shown(monkeypatch):
    calls = []
    monkeypatch.setattr(plt, "show", lambda: calls.append(plt.gcf()))
    yield calls
    plt.close("all")


def test_plot_filters(random_source, shown):
    rbm = RBM(4, 6, parameter_std_dev=1.0, random_source=random_source)

    plot_filters(rbm.weight_matrix(), (2, 2), n_rows=2, n_cols=3, title="RBM filters")

    assert len(shown) == 1
    assert len(shown[0].axes) == 6
    assert shown[0]._suptitle.get_text() == "RBM filters"


def test_plot_filters_wrong_shape(random_source, shown):
    rbm = RBM(4, 6, random_source=random_source)

    with pytest.raises(ValueError):
        plot_filters(rbm.weight_matrix(), (3, 3), n_rows=2)


def test_plot_filters_to_tensorboard_only(random_source, shown, tmp_path):
    rbm = RBM(4, 4, random_source=random_source)
    writer = SummaryWriter(str(tmp_path))

    plot_filters(rbm.weight_matrix(), (2, 2), n_rows=2, writer=writer, iteration=0, suppress_plots=True)
    writer.close()

    assert shown == []
    assert any(path.name.startswith("events") for path in tmp_path.iterdir())


def test_plot_learning_curves(shown):
    history = {"alpha": np.array([0.1, 0.05]), "eta": np.array([0.5, 0.6])}

    plot_learning_curves(history, ["alpha", "eta"])

    assert len(shown) == 2
