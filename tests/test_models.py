"""Tests for the chapter's model declarations and prior draws."""

import numpy as np
import torch
import pytest
import pyro.poutine as poutine

from chapter03 import base


@pytest.fixture(scope="module")
def chapter_data():
    return base.load_data()


def test_load_data_keys(chapter_data):
    expected = {"rate", "bernoulli", "difference", "common", "prediction",
                "posterior_prediction", "survey"}
    assert set(chapter_data) == expected
    assert chapter_data["bernoulli"]["n"] == 10
    assert sum(chapter_data["bernoulli"]["y"]) == chapter_data["rate"]["k"]


def test_beta_binomial_sites(chapter_data):
    rate = chapter_data["rate"]
    prior_sites = base.latent_site_names(base.BetaBinomialModel, rate["n"])
    assert prior_sites == (["theta"], ["k"], [], [])
    posterior_sites = base.latent_site_names(base.BetaBinomialModel, rate["n"], k=rate["k"])
    assert posterior_sites == (["theta"], [], [], ["k"])


def test_difference_model_records_delta(chapter_data):
    data = chapter_data["difference"]
    model_trace = poutine.trace(base.DifferenceModel).get_trace(data["n1"], data["n2"], k1=data["k1"], k2=data["k2"])
    theta1 = model_trace.nodes["theta1"]["value"]
    theta2 = model_trace.nodes["theta2"]["value"]
    assert model_trace.nodes["delta"]["value"].item() == pytest.approx((theta1 - theta2).item())
    continuous, discrete, derived, observed = base.latent_site_names(
        base.DifferenceModel, data["n1"], data["n2"], k1=data["k1"], k2=data["k2"])
    assert continuous == ["theta1", "theta2"]
    assert derived == ["delta"]
    assert observed == ["k1", "k2"]


def test_predictive_model_discrete_sites(chapter_data):
    data = chapter_data["prediction"]
    continuous, discrete, _, observed = base.latent_site_names(
        base.PriorPosteriorPredictiveModel, data["n"], k=data["k"])
    assert continuous == ["theta", "theta_prior_pred"]
    assert discrete == ["k_prior_pred", "k_post_pred"]
    assert observed == ["k"]


def test_survey_model_needs_counts_or_helpers():
    with pytest.raises(ValueError):
        base.SurveyModel()


def test_survey_model_zero_likelihood_above_n():
    model_trace = poutine.trace(poutine.condition(base.SurveyModel, data={"n": torch.tensor(20.), "theta": torch.tensor(0.5)})
                                ).get_trace(k=[16, 18, 22, 25, 27])
    assert model_trace.log_prob_sum().item() == -np.inf


def test_beta_binomial_prior_moments(chapter_data):
    base.set_seed(0)
    rate = chapter_data["rate"]
    samples = base.get_prior_samples(base.BetaBinomialModel, rate["n"], sample_count=2000)
    assert samples["theta"].shape == (2000,)
    assert samples["theta"].mean() == pytest.approx(0.5, abs=0.03)
    assert samples["k"].mean() == pytest.approx(5.0, abs=0.3)
    assert samples["k"].min() >= 0 and samples["k"].max() <= rate["n"]


def test_beta_bernoulli_prior_outcomes(chapter_data):
    base.set_seed(0)
    samples = base.get_prior_samples(base.BetaBernoulliModel, chapter_data["bernoulli"]["n"], sample_count=500)
    assert samples["theta"].shape == (500,)
    assert samples["y"].shape == (500, 10)
    np.testing.assert_allclose(samples["k"], samples["y"].sum(-1))


def test_difference_prior_delta_centred(chapter_data):
    base.set_seed(0)
    data = chapter_data["difference"]
    samples = base.get_prior_samples(base.DifferenceModel, data["n1"], data["n2"], sample_count=2000)
    np.testing.assert_allclose(samples["delta"], samples["theta1"] - samples["theta2"], atol=1e-6)
    assert samples["delta"].mean() == pytest.approx(0.0, abs=0.04)


def test_survey_prior_sizes_within_support(chapter_data):
    base.set_seed(0)
    samples = base.get_prior_samples(base.SurveyModel, m=5, nmax=50, sample_count=300)
    assert samples["n"].min() >= 1 and samples["n"].max() <= 50
    assert samples["k"].shape == (300, 5)
    assert np.all(samples["k"] <= samples["n"][:, None])
