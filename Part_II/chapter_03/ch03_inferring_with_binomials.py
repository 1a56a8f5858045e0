#!/usr/bin/env python
# coding: utf-8

# ## Chapter 03: Inferring with Binomials
#
#
# ### 1. Introduction
#
# This notebook reimplements the WinBUGS models of Lee & Wagenmakers, [Bayesian Cognitive Modeling](https://www.cambridge.org/core/books/bayesian-cognitive-modeling/B477C799F1DB4EBB06F4EBAFBFD2C28B) (2013), chapter 3, in `Pyro`.
#
# Some BUGS scripts translate line by line. Others need some rework, because BUGS is _declarative_ (the order of statements does not matter) while a Pyro model is a plain python function that runs top to bottom. Two consequences show up throughout the chapter:
#
# - MCMC in Pyro only records the _latent_ sample sites. Quantities derived from them, like $\delta = \theta_1 - \theta_2$, are declared with `pyro.deterministic` and filled in after sampling, or computed from the chains afterwards.
# - Gradient based samplers (HMC, NUTS) cannot move discrete variables. Pyro _enumerates_ discrete latent variables out of the density, and we redraw them from their exact conditionals after sampling. No Particle Gibbs or Gibbs composition is needed for the mixed discrete/continuous models of sections 3.4 to 3.6.
#
# All the code (functions) is glued in the `base` class of `chapter03.py`.

# In[1]:


import numpy as np
import torch
import pyro
import matplotlib.pyplot as plt
import seaborn as sns

from chapter03 import base, SAMPLER_SETTINGS

base.set_seed(1)

plt.style.use('default')


# In[2]:


chapter_data = base.load_data()
SAMPLER_SETTINGS


# ### 2. Inferring a rate $\theta$ with the _Beta-Binomial_ model
# (Lee & Wagenmakers, 2013, ch. 3.1, p.37ff)
#
# - **Prior:** $\theta \sim Beta(1, 1)$
# - **Likelihood:** $k \sim Binomial(n, \theta)$
#
# The model is defined in `base.BetaBinomialModel`. Passing `k` turns the prior model into the posterior model.

# In[3]:


BetaBinomialModel = base.BetaBinomialModel
k, n = chapter_data["rate"]["k"], chapter_data["rate"]["n"]


# #### 2.1 Prior model: $n$ is observed, $k$ and $\theta$ are latent
#
# Both $pdf(\theta)$ and $pmf(k)$ are approximately uniform with $\mathbb E(\hat\theta) \approx 0.5$ and $\mathbb E(\hat k) \approx 5.0$.

# In[4]:


prior_chains, _ = base.get_mcmc_n_chains(BetaBinomialModel, n, sampler="prior", sample_count=5000)
prior_fit_df = base.chains_to_dataframe(prior_chains)

base.describe_chains(prior_fit_df)


# In[5]:


base.plot_chains(prior_fit_df, bins=10)
base.hpd(prior_fit_df, alpha=0.05)


# In[6]:


base.plot_density(prior_fit_df["theta"], reference=k/n, xlim=(-0.1, 1.1), label=r"$\hat\theta_{prior}$",
                  reference_label=r"$\theta_{prior}$", title=r"Rate $\hat\theta_{prior}$", xlabel=r"$\hat\theta$",
                  ylabel=r"density $f(\hat\theta)$")


# #### 2.2 Posterior model: $n, k$ are observed, $\theta$ is latent
#
# For every sampler family the posterior is single peaked with $\mathbb E(\hat\theta_{posterior}) \approx 0.58$, the mean of the analytic $Beta(7, 5)$ posterior, close to the book's $0.6$.

# In[7]:


rate_fit_dfs = {}
for sampler, sample_count in [("mh", 4000), ("hmc", 3000), ("hmcda", 3000), ("nuts", 3000)]:
    sample_chains, chain_diagnostics = base.get_mcmc_n_chains(BetaBinomialModel, n, k=k, sampler=sampler,
                                                              sample_count=sample_count)
    rate_fit_dfs[sampler] = base.chains_to_dataframe(sample_chains)
    print("Sampler '%s' diagnostics: %s" % (sampler, chain_diagnostics["chain_0"]["theta"]))


# In[8]:


for sampler, fit_df in rate_fit_dfs.items():
    print("____\nSampler '%s'" % sampler)
    print(base.describe_chains(fit_df))
    print(base.hpd(fit_df))
    base.plot_chains(fit_df)
    base.plot_density(fit_df["theta"], reference=k/n, xlim=(0., 1.), label=r"$\hat\theta_{posterior}$",
                      reference_label=r"$\theta_{posterior}$", title=r"Rate $\hat\theta_{posterior}$ (%s)" % sampler)


# ACF plots show how strongly each sampler's draws are correlated; random-walk Metropolis needs many more draws than NUTS for the same precision.

# In[9]:


base.plot_autocorrelation(rate_fit_dfs["mh"], lags=40)
base.plot_autocorrelation(rate_fit_dfs["nuts"], lags=40)


# ### 3. Inferring a rate $\theta$ with the _Beta-Bernoulli_ model
# (not contained in Lee & Wagenmakers, 2013)
#
# Same data, written as a vector of binary outcomes, one Bernoulli likelihood per trial.

# In[10]:


BetaBernoulliModel = base.BetaBernoulliModel
y, n_trials = chapter_data["bernoulli"]["y"], chapter_data["bernoulli"]["n"]

bernoulli_prior_chains, _ = base.get_mcmc_n_chains(BetaBernoulliModel, n_trials, sampler="prior", sample_count=3000)
bernoulli_prior_fit_df = base.chains_to_dataframe(bernoulli_prior_chains)
base.describe_chains(bernoulli_prior_fit_df, parameters=["theta", "k"])


# In[11]:


base.plot_chains(bernoulli_prior_fit_df, parameters=["theta", "k"])


# In[12]:


bernoulli_fit_dfs = {}
for sampler in ["mh", "nuts"]:
    sample_chains, _ = base.get_mcmc_n_chains(BetaBernoulliModel, n_trials, y=y, sampler=sampler, sample_count=3000)
    bernoulli_fit_dfs[sampler] = base.chains_to_dataframe(sample_chains)
    print(base.describe_chains(bernoulli_fit_dfs[sampler]))
    print(base.hpd(bernoulli_fit_dfs[sampler]))
    base.plot_density(bernoulli_fit_dfs[sampler]["theta"], reference=k/n, xlim=(0., 1.),
                      label=r"$\hat\theta_{posterior}$", reference_label=r"$\theta_{posterior}$",
                      title=r"Rate $\hat\theta_{posterior}$ (%s)" % sampler)


# ### 4. Difference between two rates $\delta = \theta_1 - \theta_2$
# (Lee & Wagenmakers, 2013, ch. 3.2, p.39-42)
#
# $\delta$ is a deterministic site of `base.DifferenceModel`. Pyro's MCMC only records $\theta_1, \theta_2$, so $\delta$ is filled in from the posterior draws.

# In[13]:


DifferenceModel = base.DifferenceModel
difference_data = chapter_data["difference"]
n1, n2 = difference_data["n1"], difference_data["n2"]
k1, k2 = difference_data["k1"], difference_data["k2"]

difference_prior_chains, _ = base.get_mcmc_n_chains(DifferenceModel, n1, n2, sampler="prior", sample_count=2000)
difference_prior_fit_df = base.chains_to_dataframe(difference_prior_chains)
base.describe_chains(difference_prior_fit_df)


# Prior: $\mathbb E(\hat\delta) = \mathbb E(\hat\theta_1) - \mathbb E(\hat\theta_2) \approx 0.5 - 0.5 \approx 0.0$.

# In[14]:


base.plot_density(difference_prior_fit_df["delta"], reference=0.0, label=r"$\hat\delta_{prior}$",
                  reference_label=r"$\delta = 0$",
                  title=r"Difference in rates $\hat\delta_{prior}=\hat\theta_{1prior}-\hat\theta_{2prior}$")


# In[15]:


difference_chains, _ = base.get_mcmc_n_chains(DifferenceModel, n1, n2, k1=k1, k2=k2, sampler="nuts",
                                               num_chains=2, sample_count=3000)
difference_fit_df = base.chains_to_dataframe(difference_chains)
base.plot_chains(difference_fit_df)
base.plot_interaction_contours(difference_fit_df, parameters=["theta1", "theta2"])


# With WinBUGS: $\mathbb E(\hat\delta) \approx -0.17$ and the 95% credible interval is approximately $[-0.52, 0.21]$ (Lee & Wagenmakers, 2013, p.42).

# In[16]:


# delta computed outside the model agrees with the deterministic site
difference_fit_df = base.derived_quantity(difference_fit_df, "delta_outside",
                                          lambda fit_df: fit_df["theta1"] - fit_df["theta2"])
print(base.describe_chains(difference_fit_df, parameters=["delta", "delta_outside"]))
print(base.hpd(difference_fit_df, parameters=["delta"]))
base.gelman_rubin_stats(difference_fit_df, parameters=["theta1", "theta2", "delta"])


# In[17]:


base.plot_histogram_density(difference_fit_df["delta"], reference=difference_fit_df["delta"].mean(),
                            title=r"Difference $\hat\delta_{posterior} \leftarrow (\theta_1 - \theta_2)$",
                            xlabel=r"$\hat\delta_{posterior}$")


# ### 5. Inferring a common rate $\theta$ with two _Binomial_ likelihoods
# (Lee & Wagenmakers, 2013, ch. 3.3, p.43-45)

# In[18]:


CommonRateModel = base.CommonRateModel
common_data = chapter_data["common"]

common_prior_chains, _ = base.get_mcmc_n_chains(CommonRateModel, common_data["n1"], common_data["n2"],
                                                sampler="prior", sample_count=4000)
common_prior_fit_df = base.chains_to_dataframe(common_prior_chains)
base.plot_chains(common_prior_fit_df, bins=10)
base.hpd(common_prior_fit_df)


# With WinBUGS: $\mathbb E(\hat\theta) \approx 0.6$ (Lee & Wagenmakers, 2013, fig. 3.7, p.44).

# In[19]:


common_chains, _ = base.get_mcmc_n_chains(CommonRateModel, common_data["n1"], common_data["n2"],
                                           k1=common_data["k1"], k2=common_data["k2"], sampler="mh", sample_count=5000)
common_fit_df = base.chains_to_dataframe(common_chains)
print(base.describe_chains(common_fit_df))
print(base.hpd(common_fit_df))
base.plot_density(common_fit_df["theta"], reference=common_fit_df["theta"].mean(), xlim=(0., 1.),
                  label=r"$\hat\theta_{posterior}$", reference_label=r"$\theta_{posterior}$",
                  title=r"Rate $\hat\theta_{posterior}$", xlabel=r"$\hat\theta_{posterior}$",
                  ylabel=r"$f(\hat\theta_{posterior})$")


# ### 6. Prior and posterior prediction
# (Lee & Wagenmakers, 2013, ch. 3.4, p.45-47)
#
# One model function serves both the _prior predictive_ (no data) and the _posterior predictive_ (with `k`). The predictive counts are discrete latent sites: NUTS samples the rates with the counts summed out, then the counts are redrawn given each draw of the rates.

# In[20]:


PriorPosteriorPredictiveModel = base.PriorPosteriorPredictiveModel
prediction_data = chapter_data["prediction"]

prior_predictive_chains, _ = base.get_mcmc_n_chains(PriorPosteriorPredictiveModel, prediction_data["n"],
                                                    sampler="prior", sample_count=3000)
prior_predictive_fit_df = base.chains_to_dataframe(prior_predictive_chains)

posterior_predictive_chains, _ = base.get_mcmc_n_chains(PriorPosteriorPredictiveModel, prediction_data["n"],
                                                        k=prediction_data["k"], sampler="nuts", sample_count=3000)
posterior_predictive_fit_df = base.chains_to_dataframe(posterior_predictive_chains)

base.describe_chains(posterior_predictive_fit_df)


# In[21]:


base.plot_chains(posterior_predictive_fit_df, bins=10)


# Reconstruction of Lee & Wagenmakers' fig. 3.9 (p.46): prior & posterior of $\theta$ (left), prior & posterior predictive of $k$ (right).

# In[22]:


base.plot_overlaid_densities({r"$\theta_{prior}$": prior_predictive_fit_df["theta"],
                              r"$\theta_{posterior}$": posterior_predictive_fit_df["theta"]},
                             title=r"$\theta_{prior}$ & $\theta_{posterior}$", ylim=(0, 7))
base.plot_overlaid_histograms({r"$k_{priorPredictive}$": prior_predictive_fit_df["k_prior_pred"],
                               r"$k_{posteriorPredictive}$": posterior_predictive_fit_df["k_post_pred"]},
                              title=r"$k_{priorPredictive}$ & $k_{posteriorPredictive}$", ylim=(0, 0.6))


# ### 7. Posterior prediction
# (Lee & Wagenmakers, 2013, ch. 3.5, p.47-49)
#
# A common rate for $k_1 = 0$ and $k_2 = 10$ successes out of $n = 10$: the posterior of $\theta$ sits around $0.5$, yet the posterior predictive hardly ever reproduces the data.

# In[23]:


CommonRatePredictiveModel = base.CommonRatePredictiveModel
posterior_prediction_data = chapter_data["posterior_prediction"]

common_predictive_chains, _ = base.get_mcmc_n_chains(CommonRatePredictiveModel, posterior_prediction_data["n1"],
                                                     posterior_prediction_data["n2"],
                                                     k1=posterior_prediction_data["k1"],
                                                     k2=posterior_prediction_data["k2"], sampler="nuts",
                                                     sample_count=3000)
common_predictive_fit_df = base.chains_to_dataframe(common_predictive_chains)
print(base.describe_chains(common_predictive_fit_df))
base.plot_chains(common_predictive_fit_df)


# The 2d posterior predictive (Lee & Wagenmakers, 2013, fig. 3.11, right panel); the actual data are marked by a red square.

# In[24]:


base.plot_marginal_histogram(common_predictive_fit_df["post_pred1"], common_predictive_fit_df["post_pred2"],
                             observed=(posterior_prediction_data["k1"], posterior_prediction_data["k2"]),
                             xlabel=r"Success count $k_1$", ylabel=r"Success count $k_2$")


# ### 8. Joint distributions
# (Lee & Wagenmakers, 2013, ch. 3.6, p.49-53)
#
# $m$ helpers each hand out the same unknown number $n \le n_{max}$ of surveys and get $k_i$ of them back with unknown return rate $\theta$. $n$ is discrete, $\theta$ continuous, and the two are strongly dependent.

# In[25]:


SurveyModel = base.SurveyModel
survey_data = chapter_data["survey"]

survey_chains, _ = base.get_mcmc_n_chains(SurveyModel, k=survey_data["k"], nmax=survey_data["nmax"],
                                          sampler="nuts", sample_count=3000)
survey_fit_df = base.chains_to_dataframe(survey_chains)
print(base.describe_chains(survey_fit_df))
base.plot_chains(survey_fit_df, bins=50)


# From the BUGS script it is not clear how the point statistics of fig. 3.13 were computed. Here they are explicit: `max` is the draw with the highest log joint density, `mode` the draw with the most frequent (rounded) log density, `mean` a draw whose log density is closest to the mean log density.

# In[26]:


point_statistics = {}
for label, statistic in [("MAP", "max"), ("Mode", "mode"), ("Mean", "mean")]:
    log_density, draw = base.posterior_statistic(SurveyModel, survey_fit_df, k=survey_data["k"],
                                                 nmax=survey_data["nmax"], statistic=statistic, eps=0.2)
    print("%s: log density %.3f, n = %d, theta = %.3f" % (label, log_density, draw["n"], draw["theta"]))
    point_statistics[label] = (draw["n"], draw["theta"])


# Reconstruction of Lee & Wagenmakers' fig. 3.13 (p.52).

# In[27]:


base.plot_joint_scatter(survey_fit_df, x="n", y="theta", markers=point_statistics, xlim=(1, survey_data["nmax"]),
                        ylim=(0, 1), title="Joint posterior of return rate θ and survey size n")


# In[28]:


base.save_parameter_chain_dataframe(survey_fit_df, "data/ch03_survey_samples.csv")


# ### References
#
# - **Lee, M.D. & Wagenmakers, E.J.**; *Bayesian Cognitive Modeling*, Cambridge University Press, 2013
# - **Bingham, E. et al.**; *Pyro: Deep Universal Probabilistic Programming*, JMLR 20(28), 2019
