import os
import time
import random
import itertools
from collections import defaultdict

import numpy as np
import pandas as pd
import torch
import pyro
import seaborn as sns
import matplotlib.pyplot as plt
from scipy import stats

import pyro.distributions as dist
import pyro.poutine as poutine
from pyro.poutine.util import site_is_subsample
from pyro.infer import MCMC, NUTS, HMC, Predictive, config_enumerate, infer_discrete
from pyro.infer.mcmc import RandomWalkKernel
from pyro.ops.stats import hpdi, effective_sample_size, split_gelman_rubin

import plotly.graph_objects as go
from plotly.subplots import make_subplots
from statsmodels.tsa.stattools import acf


# Tuned hyperparameters per sampler family; `warmup_steps` goes to MCMC, the rest to the kernel.
SAMPLER_SETTINGS = {
    "prior": {},
    "mh": {"init_step_size": 0.1, "target_accept_prob": 0.234, "warmup_steps": 1000},
    "hmc": {"step_size": 0.05, "num_steps": 10, "adapt_step_size": False,
            "adapt_mass_matrix": False, "warmup_steps": 0},
    "hmcda": {"trajectory_length": 0.825, "adapt_step_size": True,
              "target_accept_prob": 0.65, "warmup_steps": 1000},
    "nuts": {"step_size": 0.3, "target_accept_prob": 0.65, "warmup_steps": 1000},
}

KERNELS = {"mh": RandomWalkKernel, "hmc": HMC, "hmcda": HMC, "nuts": NUTS}


class base(object):
    def __init__(self):
        pass

    @staticmethod
    def set_seed(seed=1):
        pyro.set_rng_seed(seed)

    @staticmethod
    def load_data():
        """
        Output
        --------
        Dictionary of the chapter's data sets, keyed by exercise:

            rate                 -> k successes out of n trials (3.1)
            bernoulli            -> the same 6 out of 10 as binary outcomes
            difference, common   -> two success counts (3.2, 3.3)
            prediction           -> single count for prior/posterior prediction (3.4)
            posterior_prediction -> two extreme counts k1=0, k2=10 (3.5)
            survey               -> surveys returned by m helpers, n <= nmax (3.6)
        """
        chapter_data = {
            "rate": {"k": 6, "n": 10},
            "bernoulli": {"y": [1, 0, 1, 0, 1, 0, 0, 1, 1, 1]},
            "difference": {"k1": 5, "n1": 10, "k2": 7, "n2": 10},
            "common": {"k1": 5, "n1": 10, "k2": 7, "n2": 10},
            "prediction": {"k": 1, "n": 15},
            "posterior_prediction": {"k1": 0, "n1": 10, "k2": 10, "n2": 10},
            "survey": {"k": [16, 18, 22, 25, 27], "nmax": 500},
        }
        chapter_data["bernoulli"]["n"] = len(chapter_data["bernoulli"]["y"])
        return chapter_data

    @staticmethod
    def to_tensor(value):
        return None if value is None else torch.as_tensor(value, dtype=torch.float)

    @staticmethod
    def BetaBinomialModel(n, k=None):
        """
        Input
        -------
        n: number of trials
        k: observed number of successes, None to leave it latent (prior model)

        Output
        --------
        Implements BUGS model: {
                theta ~ dbeta(1, 1)
                k ~ dbin(theta, n)}
        """
        theta = pyro.sample("theta", dist.Beta(1., 1.))
        pyro.sample("k", dist.Binomial(n, theta), obs=base.to_tensor(k))
        return theta

    @staticmethod
    def BetaBernoulliModel(n, y=None):
        """
        Input
        -------
        n: number of trials
        y: vector of n binary outcomes, None to leave them latent

        Output
        --------
        Beta prior on the rate with one Bernoulli likelihood per trial. When the
        outcomes are latent the number of successes is recorded as 'k'.
        """
        theta = pyro.sample("theta", dist.Beta(1., 1.))
        with pyro.plate("trials", n):
            outcomes = pyro.sample("y", dist.Bernoulli(theta), obs=base.to_tensor(y))
        if y is None:
            pyro.deterministic("k", outcomes.sum(-1))
        return theta

    @staticmethod
    def DifferenceModel(n1, n2, k1=None, k2=None):
        """
        Input
        -------
        n1, n2: number of trials of both groups
        k1, k2: observed successes of both groups, None for the prior model

        Output
        --------
        Implements BUGS model: {
                k1 ~ dbin(theta1, n1)
                k2 ~ dbin(theta2, n2)
                theta1 ~ dbeta(1, 1)
                theta2 ~ dbeta(1, 1)
                delta <- theta1 - theta2}

        Note: 'delta' is a deterministic site, so it is part of prior draws and is
        filled in for posterior draws.
        """
        theta1 = pyro.sample("theta1", dist.Beta(1., 1.))
        theta2 = pyro.sample("theta2", dist.Beta(1., 1.))
        delta = pyro.deterministic("delta", theta1 - theta2)
        pyro.sample("k1", dist.Binomial(n1, theta1), obs=base.to_tensor(k1))
        pyro.sample("k2", dist.Binomial(n2, theta2), obs=base.to_tensor(k2))
        return delta

    @staticmethod
    def CommonRateModel(n1, n2, k1=None, k2=None):
        theta = pyro.sample("theta", dist.Beta(1., 1.))
        pyro.sample("k1", dist.Binomial(n1, theta), obs=base.to_tensor(k1))
        pyro.sample("k2", dist.Binomial(n2, theta), obs=base.to_tensor(k2))
        return theta

    @staticmethod
    def PriorPosteriorPredictiveModel(n, k=None):
        """
        Input
        -------
        n: number of trials
        k: observed number of successes, None for the prior predictive

        Output
        --------
        Implements BUGS model: {
                theta ~ dbeta(1, 1)
                k ~ dbin(theta, n)
                thetaprior ~ dbeta(1, 1)
                priorpredk ~ dbin(thetaprior, n)
                postpredk ~ dbin(theta, n)}

        Note: 'k_prior_pred' and 'k_post_pred' are discrete latent sites; posterior
        samplers marginalise them out and they are redrawn afterwards.
        """
        theta = pyro.sample("theta", dist.Beta(1., 1.))
        pyro.sample("k", dist.Binomial(n, theta), obs=base.to_tensor(k))
        theta_prior_pred = pyro.sample("theta_prior_pred", dist.Beta(1., 1.))
        pyro.sample("k_prior_pred", dist.Binomial(n, theta_prior_pred))
        pyro.sample("k_post_pred", dist.Binomial(n, theta))
        return theta

    @staticmethod
    def CommonRatePredictiveModel(n1, n2, k1=None, k2=None):
        theta = pyro.sample("theta", dist.Beta(1., 1.))
        pyro.sample("k1", dist.Binomial(n1, theta), obs=base.to_tensor(k1))
        pyro.sample("k2", dist.Binomial(n2, theta), obs=base.to_tensor(k2))
        pyro.sample("post_pred1", dist.Binomial(n1, theta))
        pyro.sample("post_pred2", dist.Binomial(n2, theta))
        return theta

    @staticmethod
    def SurveyModel(k=None, m=None, nmax=500):
        """
        Input
        -------
        k: surveys returned by each of the m helpers, None for the prior model
        m: number of helpers, defaults to len(k)
        nmax: largest possible number of surveys handed to each helper

        Output
        --------
        Implements BUGS model: {
                for (i in 1:nmax) { p[i] <- 1/nmax }
                n ~ dcat(p[])
                theta ~ dbeta(1, 1)
                for (i in 1:m) { k[i] ~ dbin(theta, n) }}

        Note: index 0 of the categorical carries no mass, so the value of 'n' is the
        survey size itself. Counts above n have zero likelihood instead of failing
        validation.
        """
        k = base.to_tensor(k)
        if m is None:
            if k is None:
                raise ValueError("pass the observed counts 'k' or the number of helpers 'm'")
            m = len(k)
        theta = pyro.sample("theta", dist.Beta(1., 1.))
        probs = torch.ones(nmax + 1)
        probs[0] = 0.
        n = pyro.sample("n", dist.Categorical(probs=probs))
        with pyro.plate("helpers", m):
            pyro.sample("k", dist.Binomial(n, theta, validate_args=False), obs=k)
        return theta, n

    @staticmethod
    def latent_site_names(pyromodel, *model_args, **model_kwargs):
        """
        Input
        -------
        pyromodel: Pyro model function
        model_args, model_kwargs: arguments the model is run with

        Output
        --------
        Four lists of site names from one trace of the model: continuous latent,
        discrete latent (enumerable support), deterministic and observed sites.
        """
        model_trace = poutine.trace(pyromodel).get_trace(*model_args, **model_kwargs)
        continuous, discrete, derived, observed = [], [], [], []
        for name, site in model_trace.nodes.items():
            if site["type"] != "sample" or site_is_subsample(site):
                continue
            if site["infer"].get("_deterministic"):
                derived.append(name)
            elif site["is_observed"]:
                observed.append(name)
            elif site["fn"].has_enumerate_support:
                discrete.append(name)
            else:
                continuous.append(name)
        return continuous, discrete, derived, observed

    @staticmethod
    def site_shapes(pyromodel, *model_args, **model_kwargs):
        model_trace = poutine.trace(pyromodel).get_trace(*model_args, **model_kwargs)
        return {name: site["value"].shape for name, site in model_trace.nodes.items() if site["type"] == "sample"}

    @staticmethod
    def trim_plate_dims(samples, site_shapes):
        # Predictive pads every site with singleton dims up to the model's plate nesting
        return {k: v.reshape((v.shape[0],) + tuple(site_shapes[k])) for k, v in samples.items()}

    @staticmethod
    def get_prior_samples(pyromodel, *model_args, sample_count=3000, **model_kwargs):
        """
        Draws from the prior (no data passed) or, more generally, from every
        unobserved site of the model. Returns a dictionary of numpy arrays.
        """
        continuous, discrete, derived, _ = base.latent_site_names(pyromodel, *model_args, **model_kwargs)
        predictive = Predictive(pyromodel, num_samples=sample_count,
                                return_sites=continuous + discrete + derived)
        samples = predictive(*model_args, **model_kwargs)
        samples = base.trim_plate_dims(samples, base.site_shapes(pyromodel, *model_args, **model_kwargs))
        return {k: v.detach().cpu().numpy() for k, v in samples.items()}

    @staticmethod
    def build_kernel(pyromodel, sampler="nuts", **kwargs):
        """
        Input
        -------
        pyromodel: Pyro model function
        sampler: one of 'mh', 'hmc', 'hmcda', 'nuts'
        kwargs: overrides of SAMPLER_SETTINGS[sampler], including 'warmup_steps'

        Output
        --------
        (kernel, warmup_steps)
        """
        if sampler not in SAMPLER_SETTINGS:
            raise ValueError("Unknown sampler '%s', choose one of %s" % (sampler, sorted(SAMPLER_SETTINGS)))
        if sampler not in KERNELS:
            raise ValueError("Sampler '%s' draws through Predictive and has no MCMC kernel" % sampler)

        settings = dict(SAMPLER_SETTINGS[sampler])
        settings.update(kwargs)
        warmup_steps = settings.pop("warmup_steps", 0)
        return KERNELS[sampler](pyromodel, **settings), warmup_steps

    @staticmethod
    def draw_discrete_sites(pyromodel, samples, *model_args, max_plate_nesting=1, **model_kwargs):
        """
        Input
        -------
        pyromodel: Pyro model function
        samples: dictionary of tensors with the continuous draws, leading dim = draws
        max_plate_nesting: upper bound on the model's plate nesting

        Output
        --------
        Dictionary of tensors for the discrete latent sites, each drawn from its
        exact conditional given the continuous values of the same draw.
        """
        num_draws = len(next(iter(samples.values())))
        shapes = base.site_shapes(pyromodel, *model_args, **model_kwargs)
        discrete_draws = defaultdict(list)
        for idx in range(num_draws):
            conditioned_model = poutine.condition(pyromodel, data={k: v[idx] for k, v in samples.items()})
            discrete_model = infer_discrete(config_enumerate(conditioned_model, "parallel"),
                                            first_available_dim=-1 - max_plate_nesting, temperature=1)
            model_trace = poutine.trace(discrete_model).get_trace(*model_args, **model_kwargs)
            for name, site in model_trace.nodes.items():
                if site["type"] != "sample" or site["is_observed"] or site_is_subsample(site):
                    continue
                if name in samples:
                    continue
                value = site["value"].detach()
                discrete_draws[name].append(value.reshape(shapes[name]))
        return {k: torch.stack(v) for k, v in discrete_draws.items()}

    @staticmethod
    def get_mcmc_n_chains(pyromodel, *model_args, sampler="nuts", num_chains=1, sample_count=3000,
                          sampler_kwargs=None, seed=None, verbose=True, **model_kwargs):
        """
        Input
        -------
        pyromodel: Pyro model function, data passed through model_args/model_kwargs
        sampler: 'prior', 'mh', 'hmc', 'hmcda' or 'nuts'
        num_chains: count of chains to launch, default 1
        sample_count: count of samples kept per chain, default 3000
        sampler_kwargs: overrides of SAMPLER_SETTINGS[sampler]
        seed: if given, chain i is seeded with seed + i
        verbose: print timings & show Pyro's progress bar

        Outputs
        ---------
        sample_chains: a dictionary with chain names as keys & dictionary of site name vs sampled values as values,
                       holding continuous, discrete and deterministic sites (observed sites excluded)
        chain_diagnostics: a dictionary with chain names as keys & MCMC diagnostics as values, empty for 'prior'
        """
        sampler_kwargs = sampler_kwargs if sampler_kwargs else {}
        sample_chains = defaultdict(dict)
        chain_diagnostics = defaultdict(dict)
        continuous, discrete, derived, _ = base.latent_site_names(pyromodel, *model_args, **model_kwargs)

        t1 = time.time()
        for idx in range(num_chains):
            chain = "chain_{}".format(idx)
            if seed is not None:
                base.set_seed(seed + idx)
            if sampler == "prior":
                sample_chains[chain] = base.get_prior_samples(pyromodel, *model_args, sample_count=sample_count,
                                                              **model_kwargs)
                continue

            kernel, warmup_steps = base.build_kernel(pyromodel, sampler, **sampler_kwargs)
            mcmc = MCMC(kernel, num_samples=sample_count, warmup_steps=warmup_steps, disable_progbar=not verbose)
            mcmc.run(*model_args, **model_kwargs)
            samples = {k: v.detach() for k, v in mcmc.get_samples().items()}

            missing_discrete = [name for name in discrete if name not in samples]
            if missing_discrete:
                samples.update(base.draw_discrete_sites(pyromodel, samples, *model_args, **model_kwargs))

            missing_sites = [name for name in continuous + discrete + derived if name not in samples]
            if missing_sites:
                predictive = Predictive(pyromodel, posterior_samples=samples, return_sites=missing_sites)
                samples.update(base.trim_plate_dims(predictive(*model_args, **model_kwargs),
                                                    base.site_shapes(pyromodel, *model_args, **model_kwargs)))

            sample_chains[chain] = {k: v.detach().cpu().numpy() for k, v in samples.items()}
            chain_diagnostics[chain] = mcmc.diagnostics()

        if verbose:
            print("\nSampler '%s', %s chain(s) of %s samples, total time: %.2fs"
                  % (sampler, num_chains, sample_count, time.time() - t1))
        return dict(sample_chains), dict(chain_diagnostics)

    @staticmethod
    def chains_to_dataframe(sample_chains):
        """
        Input
        -------
        sample_chains: {"chain_0": {site: array}, ...} as returned by get_mcmc_n_chains

        Output
        --------
        fit_df: one row per draw, one column per scalar parameter and a 'chain' column.
                Vector sites are flattened into 'name[i]' columns.
        """
        fit_df = pd.DataFrame()
        for chain, params_dict in sample_chains.items():
            columns = {}
            for param, values in params_dict.items():
                values = np.asarray(values)
                if values.ndim == 1:
                    columns[param] = values
                    continue
                flat_values = values.reshape((values.shape[0], -1))
                for idx in range(flat_values.shape[1]):
                    columns["%s[%s]" % (param, idx)] = flat_values[:, idx]
            param_df = pd.DataFrame(columns)
            param_df["chain"] = chain
            fit_df = pd.concat([fit_df, param_df], axis=0, ignore_index=True)
        return fit_df

    @staticmethod
    def parameter_names(fit_df, parameters=None):
        if parameters:
            unknown = [param for param in parameters if param not in fit_df.columns]
            if unknown:
                raise KeyError("Unknown parameter(s) %s, available: %s" % (unknown, base.parameter_names(fit_df)))
            return list(parameters)
        return [column for column in fit_df.columns if column != "chain"]

    @staticmethod
    def derived_quantity(fit_df, name, func):
        """Adds column `name` computed as func(fit_df), e.g. a difference of two rates."""
        fit_df = fit_df.copy()
        fit_df[name] = func(fit_df)
        return fit_df

    @staticmethod
    def chain_matrix(fit_df, param):
        """Samples of `param` shaped (chains, draws), chains cut to the shortest one."""
        chain_list = [groupdf[param].to_numpy(dtype=float) for _, groupdf in fit_df.groupby("chain")]
        L = min(map(len, chain_list))
        return np.stack([values[:L] for values in chain_list])

    @staticmethod
    def summary_stats_df(fit_df, key_metrics=("mean", "std", "25%", "50%", "75%")):
        summary_stats_df = pd.DataFrame()
        for param in base.parameter_names(fit_df):
            for name, groupdf in fit_df.groupby("chain"):
                groupdi = dict(groupdf[param].describe())
                values = dict(map(lambda key: (key, [groupdi.get(key)]), key_metrics))
                values.update({"parameter": param, "chain": name})
                summary_stats_df = pd.concat([summary_stats_df, pd.DataFrame(values)], axis=0)
        summary_stats_df.set_index(["parameter", "chain"], inplace=True)
        return summary_stats_df

    @staticmethod
    def describe_chains(fit_df, parameters=None):
        """
        Input
        -------
        fit_df: chains in long format ('chain' column)
        parameters: parameters to describe, default all

        Output
        -------
        Dataframe indexed by parameter with pooled mean, std, Monte-Carlo standard error,
        quantiles, effective sample size and split Gelman-Rubin statistic.
        """
        rows = {}
        for param in base.parameter_names(fit_df, parameters):
            samples = base.chain_matrix(fit_df, param)
            samples_tensor = torch.tensor(samples, dtype=torch.double)
            n_eff = effective_sample_size(samples_tensor, chain_dim=0, sample_dim=1).item()
            r_hat = split_gelman_rubin(samples_tensor, chain_dim=0, sample_dim=1).item()
            std = np.std(samples)
            rows[param] = {"mean": np.mean(samples), "std": std, "mcse": std / np.sqrt(n_eff),
                           "2.5%": np.quantile(samples, 0.025), "25%": np.quantile(samples, 0.25),
                           "50%": np.quantile(samples, 0.5), "75%": np.quantile(samples, 0.75),
                           "97.5%": np.quantile(samples, 0.975), "n_eff": n_eff, "r_hat": r_hat}
        summary_df = pd.DataFrame.from_dict(rows, orient="index")
        summary_df.index.name = "parameter"
        return summary_df

    @staticmethod
    def gelman_rubin_stats(fit_df, parameters=None):
        """
        Input
        -------
        fit_df: chains in long format ('chain' column)

        Output
        -------
        Returns split gelman-rubin statistics per parameter, pooled over all chains.
        """
        grubin_dict = {}
        for param in base.parameter_names(fit_df, parameters):
            samples = torch.tensor(base.chain_matrix(fit_df, param), dtype=torch.double)
            grubin = round(split_gelman_rubin(samples, chain_dim=0, sample_dim=1).item(), 4)
            grubin_dict[param] = grubin
            print("\nGelman-rubin for param '%s' all chains is: %s" % (param, grubin))
        return grubin_dict

    @staticmethod
    def hpd(fit_df, alpha=0.05, parameters=None):
        """
        Input
        -------
        fit_df: chains in long format, all chains pooled
        alpha: the interval holds 1-alpha of the probability mass

        Output
        -------
        Dataframe indexed by parameter with 'lower' & 'upper' bounds of the narrowest
        interval holding 1-alpha of the draws.
        """
        if not 0 < alpha < 1:
            raise ValueError("alpha must lie in (0, 1), got %s" % alpha)
        rows = {}
        for param in base.parameter_names(fit_df, parameters):
            samples = torch.tensor(fit_df[param].to_numpy(dtype=float), dtype=torch.double)
            rows[param] = hpdi(samples, prob=1 - alpha).tolist()
        hpd_df = pd.DataFrame.from_dict(rows, orient="index", columns=["lower", "upper"])
        hpd_df.index.name = "parameter"
        return hpd_df

    @staticmethod
    def site_values(fit_df, site):
        """Draws of `site` as an array, reassembling vector sites from their 'site[i]' columns."""
        if site in fit_df.columns:
            return fit_df[site].to_numpy(dtype=float)
        columns = [column for column in fit_df.columns if column.startswith(site + "[")]
        if not columns:
            raise KeyError("No samples for site '%s'" % site)
        columns = sorted(columns, key=lambda column: int(column[len(site) + 1:-1]))
        return fit_df[columns].to_numpy(dtype=float)

    @staticmethod
    def log_densities(pyromodel, fit_df, *model_args, **model_kwargs):
        """
        Log joint density of every draw of fit_df: the model conditioned on the draw's
        latent values and on the data passed in model_args/model_kwargs.
        """
        continuous, discrete, _, _ = base.latent_site_names(pyromodel, *model_args, **model_kwargs)
        latent_values = {site: base.site_values(fit_df, site) for site in continuous + discrete}
        log_density = np.empty(len(fit_df))
        for idx in range(len(fit_df)):
            data = {site: torch.tensor(values[idx], dtype=torch.float) for site, values in latent_values.items()}
            model_trace = poutine.trace(poutine.condition(pyromodel, data=data)).get_trace(*model_args, **model_kwargs)
            log_density[idx] = model_trace.log_prob_sum().item()
        return log_density

    @staticmethod
    def posterior_statistic(pyromodel, fit_df, *model_args, statistic="max", eps=0.1, decimals=2,
                            **model_kwargs):
        """
        Input
        -------
        pyromodel: Pyro model function the draws came from
        fit_df: posterior draws in long format
        statistic: 'max'  -> draw with the highest log joint density (MAP sample)
                   'mode' -> first draw whose log density, rounded to `decimals`, is the most frequent
                   'mean' -> draw whose log density is closest to the mean log density
        eps: largest accepted distance to the mean log density for 'mean'

        Output
        -------
        (log_density, {site: value}) of the selected draw for every latent site.
        """
        log_density = base.log_densities(pyromodel, fit_df, *model_args, **model_kwargs)
        if statistic == "max":
            idx = int(np.argmax(log_density))
        elif statistic == "mode":
            rounded = np.round(log_density, decimals)
            mode = stats.mode(rounded, keepdims=False).mode
            idx = int(np.flatnonzero(rounded == mode)[0])
        elif statistic == "mean":
            distance = np.abs(log_density - np.mean(log_density))
            idx = int(np.argmin(distance))
            if distance[idx] > eps:
                raise ValueError("No draw within eps=%s of the mean log density (closest: %.4f)"
                                 % (eps, distance[idx]))
        else:
            raise ValueError("Unknown statistic '%s', choose one of ['max', 'mode', 'mean']" % statistic)

        continuous, discrete, _, _ = base.latent_site_names(pyromodel, *model_args, **model_kwargs)
        draw = {site: base.site_values(fit_df, site)[idx] for site in continuous + discrete}
        return log_density[idx], draw

    @staticmethod
    def save_parameter_chain_dataframe(param_chain_matrix_df, filepath):
        directory = os.path.dirname(filepath)
        if directory:
            os.makedirs(directory, exist_ok=True)
        param_chain_matrix_df.to_csv(filepath, index=False)
        print("Saved at '%s'" % filepath)

    @staticmethod
    def load_parameter_chain_dataframe(filepath):
        param_chain_matrix_df = pd.read_csv(filepath)
        print("Loaded '%s'" % filepath)
        return param_chain_matrix_df

    @staticmethod
    def is_discrete(values):
        values = np.asarray(values, dtype=float)
        return bool(np.all(np.isfinite(values)) and np.all(np.mod(values, 1) == 0))

    @staticmethod
    def integer_bins(values):
        values = np.asarray(values, dtype=float)
        return np.arange(values.min(), values.max() + 2) - 0.5

    @staticmethod
    def plot_chains(fit_df, parameters=None, bins=None, show=True):
        """
        Input
        -------
        fit_df: chains in long format ('chain' column)
        parameters: parameters to plot, default all
        bins: histogram bins for discrete parameters, default one bin per integer

        Output
        -------
        One row per parameter: sampled values per chain (left) and their density,
        or normalised histogram for discrete parameters (right).
        """
        parameters = base.parameter_names(fit_df, parameters)
        fig, axes = plt.subplots(len(parameters), 2, figsize=(12, 3 * len(parameters)), squeeze=False)
        for row, param in enumerate(parameters):
            trace_ax, density_ax = axes[row]
            discrete = base.is_discrete(fit_df[param])
            for chain, groupdf in fit_df.groupby("chain"):
                values = groupdf[param].to_numpy(dtype=float)
                trace_ax.plot(np.arange(len(values)), values, lw=0.8, label=chain)
                if discrete:
                    density_ax.hist(values, bins=bins if bins else base.integer_bins(values),
                                    density=True, alpha=0.6, label=chain)
                else:
                    sns.kdeplot(x=values, ax=density_ax, label=chain)
            trace_ax.set(title="Chain values of '%s'" % param, xlabel="Iteration", ylabel="Sample value")
            density_ax.set(title="Density of '%s'" % param, xlabel="Sample value", ylabel="Density")
            density_ax.legend(loc="best")
        fig.tight_layout()
        if show:
            plt.show()
        return fig

    @staticmethod
    def plot_density(samples, reference=None, label=r"$\hat\theta$", reference_label=r"$\theta$",
                     title=None, xlim=None, xlabel=None, ylabel="Density", show=True):
        fig, ax = plt.subplots(figsize=(6, 3))
        sns.kdeplot(x=np.asarray(samples, dtype=float), ax=ax, lw=2, label=label)
        if reference is not None:
            ax.axvline(reference, color="red", lw=1.5, label=reference_label)
        ax.set(title=title, xlabel=xlabel, ylabel=ylabel)
        if xlim:
            ax.set_xlim(xlim)
        ax.legend(loc="best")
        if show:
            plt.show()
        return fig

    @staticmethod
    def plot_histogram_density(samples, reference=None, label=r"$\hat\delta$", reference_label=r"$\delta$",
                               title=None, xlabel=None, ylabel="Posterior Density", show=True):
        """Normalised histogram with its density estimate and a red reference line."""
        fig, ax = plt.subplots(figsize=(6, 3))
        sns.histplot(x=np.asarray(samples, dtype=float), stat="density", kde=True, alpha=0.75,
                     ax=ax, label=label)
        if reference is not None:
            ax.axvline(reference, color="red", lw=3, label=reference_label)
        ax.set(title=title, xlabel=xlabel, ylabel=ylabel)
        ax.legend(loc="best")
        if show:
            plt.show()
        return fig

    @staticmethod
    def plot_overlaid_densities(samples_dict, title=None, xlabel=None, ylim=None, show=True):
        fig, ax = plt.subplots(figsize=(6, 3))
        for label, samples in samples_dict.items():
            sns.kdeplot(x=np.asarray(samples, dtype=float), ax=ax, lw=2, label=label)
        ax.set(title=title, xlabel=xlabel, ylabel="Density")
        if ylim:
            ax.set_ylim(ylim)
        ax.legend(loc="best")
        if show:
            plt.show()
        return fig

    @staticmethod
    def plot_overlaid_histograms(samples_dict, title=None, xlabel=None, ylim=None, show=True):
        """Normalised histograms of integer valued draws, one bin per count."""
        all_values = np.concatenate([np.asarray(samples, dtype=float) for samples in samples_dict.values()])
        bins = base.integer_bins(all_values)
        fig, ax = plt.subplots(figsize=(6, 3))
        for label, samples in samples_dict.items():
            ax.hist(np.asarray(samples, dtype=float), bins=bins, density=True, alpha=0.6, label=label)
        ax.set(title=title, xlabel=xlabel, ylabel="Mass")
        if ylim:
            ax.set_ylim(ylim)
        ax.legend(loc="best")
        if show:
            plt.show()
        return fig

    @staticmethod
    def plot_marginal_histogram(x, y, observed=None, xlabel=None, ylabel=None, lim=(-1, 12), show=True):
        """
        Input
        -------
        x, y: paired integer draws, e.g. posterior predictive success counts
        observed: (x, y) pair of the actual data, marked with a red square
        lim: axis limits shared by both axes

        Output
        -------
        seaborn JointGrid with the 2d histogram and both marginal histograms.
        """
        grid = sns.JointGrid(x=np.asarray(x, dtype=float), y=np.asarray(y, dtype=float),
                             height=6, xlim=lim, ylim=lim)
        grid.plot_joint(sns.histplot, discrete=True, cmap="Blues", cbar=False)
        grid.plot_marginals(sns.histplot, discrete=True, stat="density")
        if observed is not None:
            grid.ax_joint.scatter([observed[0]], [observed[1]], color="red", marker="s", s=80, label="Observed")
            grid.ax_joint.legend(loc="best")
        grid.set_axis_labels(xlabel, ylabel)
        if show:
            plt.show()
        return grid

    @staticmethod
    def plot_joint_scatter(fit_df, x, y, markers=None, xlim=None, ylim=None, title=None, show=True):
        """
        Scatter of joint draws of `x` and `y` with point statistics highlighted;
        markers maps a legend label to an (x, y) pair.
        """
        marker_styles = itertools.cycle([("yellow", "s", 6), ("red", "D", 7), ("red", "*", 11),
                                         ("orange", "o", 7)])
        fig, ax = plt.subplots(figsize=(6, 5))
        ax.scatter(fit_df[x], fit_df[y], s=16, alpha=0.6, label="Posterior Sample")
        for (label, point), (color, marker, size) in zip((markers or {}).items(), marker_styles):
            ax.scatter([point[0]], [point[1]], color=color, marker=marker, s=size ** 2,
                       edgecolors="black", label=label)
        ax.set(title=title, xlabel=x, ylabel=y)
        if xlim:
            ax.set_xlim(xlim)
        if ylim:
            ax.set_ylim(ylim)
        ax.legend(loc="best")
        if show:
            plt.show()
        return fig

    @staticmethod
    def plot_autocorrelation(fit_df, parameters=None, chains=None, msize=8, lags=40, show=True):
        lags = int(lags)
        chains_list = chains if chains else list(fit_df["chain"].unique())
        parameters_list = base.parameter_names(fit_df, parameters)

        figs = []
        for param in parameters_list:
            fig = make_subplots()
            for chain in chains_list:
                values = fit_df.loc[fit_df["chain"] == chain, param].dropna().to_numpy(dtype=float)
                corr_array = acf(values, alpha=0.05, fft=False, nlags=min(lags, len(values) - 1),
                                 result_object=False)

                lower_y = corr_array[1][:, 0] - corr_array[0]
                upper_y = corr_array[1][:, 1] - corr_array[0]

                r, g, b = random.sample(range(0, 255), 3)
                for x in range(len(corr_array[0])):
                    fig.add_trace(go.Scatter(x=(x, x), y=(0, corr_array[0][x]), mode='lines',
                                             line_color='rgba(%s,%s,%s,0.9)' % (r, g, b), showlegend=False))
                fig.add_trace(go.Scatter(x=np.arange(len(corr_array[0])), y=corr_array[0], mode='markers',
                                         marker_color='rgba(%s, %s,%s,0.8)' % (r, g, b), marker_size=msize,
                                         name=chain))
                fig.add_trace(go.Scatter(x=np.arange(len(corr_array[0])), y=upper_y, mode='lines',
                                         line_color='rgba(%s, %s,%s,0)' % (r, g, b), showlegend=False))
                fig.add_trace(go.Scatter(x=np.arange(len(corr_array[0])), y=lower_y, mode='lines',
                                         fillcolor='rgba(%s,%s,%s,0.2)' % (r, g, b), fill='tonexty',
                                         line_color='rgba(255,255,255,0)', name=chain))
            fig.update_layout(title="ACF plot for '%s' (all chains)" % param, legend_title="Chains",
                              xaxis_title="Lag", yaxis_title="Autocorrelation")
            if show:
                fig.show()
            figs.append(fig)
        return figs

    @staticmethod
    def plot_interaction_contours(fit_df, parameters=None, chain="chain_0", show=True):
        chain_samples_df = fit_df[fit_df["chain"] == chain]
        parameters = base.parameter_names(fit_df, parameters)
        colorscale = ['#7A4579', '#D56073', 'rgb(236,158,105)', 'rgb(255,255,51)', 'rgb(250,250,250)']

        figs = []
        for name1, name2 in itertools.combinations(parameters, 2):
            param1 = chain_samples_df[name1].to_numpy(dtype=float)
            param2 = chain_samples_df[name2].to_numpy(dtype=float)
            fig = go.Figure()
            fig.add_trace(go.Histogram2dContour(x=param1, y=param2, colorscale=colorscale, reversescale=True,
                                                showscale=False, ncontours=20))
            fig.add_trace(go.Scatter(x=param1, y=param2, mode='markers', marker=dict(size=4, color='rgba(0,0,0,0.3)'),
                                     showlegend=False))
            fig.update_layout(title="%s-%s joint density plot for '%s'" % (name1, name2, chain), autosize=False,
                              width=500, height=500, xaxis_title="x (%s)" % name1, yaxis_title="y (%s)" % name2)
            if show:
                fig.show()
            figs.append(fig)
        return figs
