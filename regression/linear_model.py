"""Ordinary least squares fitting of a target on contemporaneous and lagged predictors"""

from typing import Sequence
import numpy as np
import pandas as pd
import statsmodels.api as sm

from exceptions import InsufficientData, UnknownPredictor
from models import INTERCEPT, AlignedSeries, FeatureLike, FittedModel, RegressionSpec, as_lag_spec


class LinearModelFitter:
    def __init__(self, method: str = 'pinv'):
        """
        Initialize fitter

        Parameters:
        - method: statsmodels OLS solver, 'pinv' (SVD) or 'qr'. Both stay
          stable for near-collinear predictors.
        """
        if method not in ('pinv', 'qr'):
            raise ValueError(f"Unsupported least squares method: {method}")
        self.method = method

    def complete_cases(self,
                       aligned: AlignedSeries,
                       target: str,
                       predictors: Sequence[FeatureLike]) -> pd.DataFrame:
        """Rows where the target and every predictor are present and finite"""
        names = [as_lag_spec(p).feature_name for p in predictors]
        missing = [name for name in [target] + names if name not in aligned]
        if missing:
            raise UnknownPredictor(f"Columns {missing} not found; available: {aligned.names}")

        data = aligned.to_frame()[[target] + names]
        return data.replace([np.inf, -np.inf], np.nan).dropna()

    def fit(self,
            aligned: AlignedSeries,
            target: str,
            predictors: Sequence[FeatureLike]) -> FittedModel:
        """
        Fit target ~ intercept + predictors by least squares

        Parameters:
        - aligned: dataset holding the target and every predictor column
        - target: name of the dependent series
        - predictors: ordered feature names or LagSpecs

        Raises InsufficientData when fewer than len(predictors) + 2
        complete rows remain.
        """
        features = tuple(as_lag_spec(p) for p in predictors)
        names = [f.feature_name for f in features]
        if not names:
            raise ValueError("At least one predictor is required")
        if len(set(names)) != len(names):
            raise ValueError(f"Duplicate predictors: {names}")
        if target in names:
            raise ValueError(f"Target '{target}' cannot also be a predictor")

        clean = self.complete_cases(aligned, target, features)
        required = len(names) + 2
        if len(clean) < required:
            raise InsufficientData(required=required, available=len(clean),
                                   context=f"fit of '{target}'")

        Y = clean[target]
        X = sm.add_constant(clean[names], has_constant='add')
        results = sm.OLS(Y, X).fit(method=self.method)

        # Statistics computed from the stored residuals so R² = 1 - SSR/SST exactly
        residuals = results.resid
        ssr = float(np.sum(residuals ** 2))
        sst = float(np.sum((Y - Y.mean()) ** 2))
        df_resid = float(results.df_resid)
        r_squared = 1.0 - ssr / sst if sst > 0 else float('nan')
        nobs = int(results.nobs)
        adj_r_squared = (1.0 - (1.0 - r_squared) * (nobs - 1) / df_resid
                         if df_resid > 0 else float('nan'))

        ordered = [INTERCEPT] + names
        return FittedModel(
            target=target,
            features=features,
            coefficients={name: float(results.params[name]) for name in ordered},
            std_errors={name: float(results.bse[name]) for name in ordered},
            t_values={name: float(results.tvalues[name]) for name in ordered},
            p_values={name: float(results.pvalues[name]) for name in ordered},
            r_squared=r_squared,
            adj_r_squared=adj_r_squared,
            residual_std_error=float(np.sqrt(ssr / df_resid)),
            ssr=ssr,
            sst=sst,
            nobs=nobs,
            df_resid=df_resid,
            fitted_values=results.fittedvalues.rename(f"{target}_fitted"),
            residuals=residuals.rename(f"{target}_residual"),
            summary=results.summary().as_text(),
        )

    def fit_spec(self, aligned: AlignedSeries, spec: RegressionSpec) -> FittedModel:
        """Fit a named regression specification"""
        return self.fit(aligned, spec.target, spec.features)


def fit_linear_model(aligned: AlignedSeries,
                     target: str,
                     predictors: Sequence[FeatureLike],
                     method: str = 'pinv') -> FittedModel:
    return LinearModelFitter(method=method).fit(aligned, target, predictors)
