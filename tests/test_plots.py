"""Smoke tests for the plotting helpers, rendered off-screen."""

import warnings

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
import pytest
import seaborn as sns

from chapter03 import base


@pytest.fixture(scope="module")
def fit_df():
    rng = np.random.default_rng(1)
    frames = []
    for chain in ("chain_0", "chain_1"):
        frames.append(pd.DataFrame({"theta": rng.beta(7, 5, size=300),
                                    "n": rng.integers(27, 200, size=300),
                                    "chain": chain}))
    return pd.concat(frames, ignore_index=True)


@pytest.fixture(autouse=True)
def close_figures():
    yield
    plt.close("all")


def test_plot_chains_layout(fit_df):
    fig = base.plot_chains(fit_df, show=False)
    assert len(fig.axes) == 4
    # trace panel holds one line per chain
    assert len(fig.axes[0].get_lines()) == 2


def test_plot_density_reference_line():
    fig = base.plot_density(np.random.default_rng(2).beta(7, 5, size=500), reference=0.6,
                            xlim=(0., 1.), show=False)
    ax = fig.axes[0]
    assert ax.get_xlim() == (0., 1.)
    assert any(len(line.get_xdata()) == 2 and np.allclose(line.get_xdata(), 0.6) for line in ax.get_lines())


def test_plot_histogram_density():
    samples = np.random.default_rng(3).normal(-0.17, 0.18, size=500)
    fig = base.plot_histogram_density(samples, reference=samples.mean(), show=False)
    assert fig.axes[0].get_ylabel() == "Posterior Density"


def test_plot_overlays():
    rng = np.random.default_rng(4)
    fig = base.plot_overlaid_densities({"prior": rng.beta(1, 1, 300), "posterior": rng.beta(2, 15, 300)},
                                       ylim=(0, 7), show=False)
    assert fig.axes[0].get_ylim() == (0, 7)
    fig = base.plot_overlaid_histograms({"prior": rng.integers(0, 16, 300), "posterior": rng.integers(0, 5, 300)},
                                        show=False)
    assert len(fig.axes[0].get_legend().get_texts()) == 2


def test_plot_marginal_histogram_marks_observed():
    rng = np.random.default_rng(5)
    grid = base.plot_marginal_histogram(rng.integers(0, 11, 300), rng.integers(0, 11, 300),
                                        observed=(0, 10), xlabel="k1", ylabel="k2", show=False)
    assert isinstance(grid, sns.JointGrid)
    assert grid.ax_joint.get_xlabel() == "k1"


def test_plot_joint_scatter_markers(fit_df):
    markers = {"MAP": (60, 0.4), "Mode": (80, 0.3), "Mean": (100, 0.25)}
    fig = base.plot_joint_scatter(fit_df, x="n", y="theta", markers=markers, ylim=(0, 1), show=False)
    labels = [text.get_text() for text in fig.axes[0].get_legend().get_texts()]
    assert labels == ["Posterior Sample", "MAP", "Mode", "Mean"]


def test_plot_autocorrelation_one_figure_per_parameter(fit_df):
    figs = base.plot_autocorrelation(fit_df, parameters=["theta"], lags=10, show=False)
    assert len(figs) == 1
    # per chain: one stem per lag plus markers & two band traces
    assert len(figs[0].data) == 2 * (11 + 3)


def test_plot_autocorrelation_without_acf_warnings(fit_df):
    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always")
        base.plot_autocorrelation(fit_df, parameters=["theta"], lags=10, show=False)
    acf_warnings = [w for w in caught if issubclass(w.category, FutureWarning)
                    and ("acf" in str(w.message).lower() or "result_object" in str(w.message))]
    assert acf_warnings == []


def test_plot_interaction_contours(fit_df):
    figs = base.plot_interaction_contours(fit_df, parameters=["theta", "n"], show=False)
    assert len(figs) == 1
    assert figs[0].layout.xaxis.title.text == "x (theta)"
