"""Tests for chain frames, summaries, HPD intervals and point statistics."""

import numpy as np
import pandas as pd
import pytest

from chapter03 import base


@pytest.fixture(scope="module")
def sample_chains():
    rng = np.random.default_rng(0)
    return {chain: {"theta": rng.normal(size=500), "y": rng.integers(0, 2, size=(500, 3))}
            for chain in ("chain_0", "chain_1")}


@pytest.fixture(scope="module")
def fit_df(sample_chains):
    return base.chains_to_dataframe(sample_chains)


def test_chains_to_dataframe_flattens_vectors(fit_df):
    assert list(fit_df.columns) == ["theta", "y[0]", "y[1]", "y[2]", "chain"]
    assert len(fit_df) == 1000
    assert fit_df["chain"].value_counts().to_dict() == {"chain_0": 500, "chain_1": 500}


def test_site_values_reassembles_vector(fit_df, sample_chains):
    values = base.site_values(fit_df, "y")
    assert values.shape == (1000, 3)
    np.testing.assert_array_equal(values[:500], sample_chains["chain_0"]["y"])
    with pytest.raises(KeyError):
        base.site_values(fit_df, "phi")


def test_parameter_names(fit_df):
    assert base.parameter_names(fit_df) == ["theta", "y[0]", "y[1]", "y[2]"]
    assert base.parameter_names(fit_df, ["theta"]) == ["theta"]
    with pytest.raises(KeyError):
        base.parameter_names(fit_df, ["theta1"])


def test_derived_quantity_leaves_input(fit_df):
    derived_df = base.derived_quantity(fit_df, "twice", lambda df: 2 * df["theta"])
    assert "twice" not in fit_df.columns
    np.testing.assert_allclose(derived_df["twice"], 2 * fit_df["theta"])


def test_summary_stats_df_per_chain(fit_df):
    summary_df = base.summary_stats_df(fit_df[["theta", "chain"]])
    assert list(summary_df.columns) == ["mean", "std", "25%", "50%", "75%"]
    assert summary_df.index.tolist() == [("theta", "chain_0"), ("theta", "chain_1")]


def test_describe_chains_iid_normal(fit_df):
    summary_df = base.describe_chains(fit_df, parameters=["theta"])
    row = summary_df.loc["theta"]
    assert row["mean"] == pytest.approx(0.0, abs=0.1)
    assert row["std"] == pytest.approx(1.0, abs=0.1)
    assert row["2.5%"] < row["50%"] < row["97.5%"]
    assert row["n_eff"] > 500
    assert row["r_hat"] == pytest.approx(1.0, abs=0.05)


def test_gelman_rubin_stats(fit_df):
    grubin_dict = base.gelman_rubin_stats(fit_df, parameters=["theta"])
    assert grubin_dict["theta"] == pytest.approx(1.0, abs=0.05)


def test_hpd_prefers_dense_region():
    samples = np.concatenate([np.linspace(0., 1., 95), np.linspace(50., 60., 5)])
    fit_df = pd.DataFrame({"theta": samples, "chain": "chain_0"})
    hpd_df = base.hpd(fit_df, alpha=0.1)
    lower, upper = hpd_df.loc["theta", ["lower", "upper"]]
    assert 0. <= lower < upper <= 1.


def test_hpd_rejects_bad_alpha(fit_df):
    with pytest.raises(ValueError):
        base.hpd(fit_df, alpha=1.5)


@pytest.fixture(scope="module")
def rate_draws():
    return pd.DataFrame({"theta": [0.2, 0.6, 0.6, 0.9], "chain": "chain_0"})


def test_log_densities_match_binomial(rate_draws):
    log_density = base.log_densities(base.BetaBinomialModel, rate_draws, 10, k=6)
    # Beta(1, 1) has zero log density, so only the binomial term is left
    expected = np.log(210) + 6 * np.log(rate_draws["theta"]) + 4 * np.log(1 - rate_draws["theta"])
    np.testing.assert_allclose(log_density, expected, rtol=1e-4)


def test_posterior_statistic_max_and_mode(rate_draws):
    log_density, draw = base.posterior_statistic(base.BetaBinomialModel, rate_draws, 10, k=6, statistic="max")
    assert draw["theta"] == pytest.approx(0.6)
    assert log_density == pytest.approx(np.log(210) + 6 * np.log(0.6) + 4 * np.log(0.4), rel=1e-4)
    _, draw = base.posterior_statistic(base.BetaBinomialModel, rate_draws, 10, k=6, statistic="mode")
    assert draw["theta"] == pytest.approx(0.6)


def test_posterior_statistic_mean_respects_eps(rate_draws):
    _, draw = base.posterior_statistic(base.BetaBinomialModel, rate_draws, 10, k=6, statistic="mean", eps=1.5)
    assert draw["theta"] == pytest.approx(0.9)
    with pytest.raises(ValueError):
        base.posterior_statistic(base.BetaBinomialModel, rate_draws, 10, k=6, statistic="mean", eps=0.01)
    with pytest.raises(ValueError, match="Unknown statistic"):
        base.posterior_statistic(base.BetaBinomialModel, rate_draws, 10, k=6, statistic="median")


def test_save_and_load_chain_dataframe(fit_df, tmp_path):
    filepath = str(tmp_path / "chains" / "rate.csv")
    base.save_parameter_chain_dataframe(fit_df, filepath)
    loaded_df = base.load_parameter_chain_dataframe(filepath)
    pd.testing.assert_frame_equal(loaded_df, fit_df, check_dtype=False)
