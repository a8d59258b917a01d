"""Iterative projection of a fitted lag model under driving-variable scenarios"""

from concurrent.futures import ThreadPoolExecutor
from typing import Dict, Iterable, List, Mapping, Optional
import pandas as pd

from exceptions import LagOrderMismatch, UnknownPredictor
from forecast.lag_window import LagWindow
from forecast.policies import ExtrapolationPolicy
from models import FittedModel, ScenarioForecast, ScenarioPath


class ScenarioProjector:
    """
    Projects a FittedModel forward along hypothetical driving-variable paths.

    At step t the contemporaneous driving feature is the scenario value,
    lag k comes from the lag window, and every other feature comes from its
    extrapolation policy. After predicting, the scenario's driving value is
    pushed onto the window; the driving variable is exogenous, so
    predictions never feed back into it.
    """

    def __init__(self,
                 model: FittedModel,
                 driving_variable: str,
                 policies: Optional[Mapping[str, ExtrapolationPolicy]] = None):
        self.model = model
        self.driving_variable = driving_variable
        self.policies = dict(policies or {})

        self.driving_features = [f for f in model.features if f.name == driving_variable]
        if not self.driving_features:
            raise UnknownPredictor(
                f"Model of '{model.target}' has no predictor for driving variable "
                f"'{driving_variable}'"
            )
        self.other_features = [f.feature_name for f in model.features
                               if f.name != driving_variable]
        self.max_lag = model.max_lag(driving_variable)

        self._check_policies(self.policies, allow_partial=True)

    def _check_policies(self, policies: Mapping[str, ExtrapolationPolicy], allow_partial: bool):
        unexpected = sorted(set(policies) - set(self.other_features))
        if unexpected:
            raise UnknownPredictor(
                f"Policies given for {unexpected}, which are not non-driving predictors "
                f"of the model ({self.other_features})"
            )
        if not allow_partial:
            missing = sorted(set(self.other_features) - set(policies))
            if missing:
                raise UnknownPredictor(f"No extrapolation policy for predictors {missing}")

    def _resolve_policies(self, scenario: ScenarioPath) -> Dict[str, ExtrapolationPolicy]:
        self._check_policies(scenario.policies, allow_partial=True)
        resolved = {**self.policies, **scenario.policies}
        self._check_policies(resolved, allow_partial=False)
        return resolved

    def feature_vector(self,
                       step: int,
                       driving_value: float,
                       window: LagWindow,
                       policies: Mapping[str, ExtrapolationPolicy]) -> Dict[str, float]:
        """Feature values for one forecast step, keyed by predictor name"""
        features = {}
        for spec in self.driving_features:
            if spec.lag == 0:
                features[spec.feature_name] = driving_value
            else:
                features[spec.feature_name] = window.lag(spec.lag)
        for name in self.other_features:
            features[name] = policies[name].value_at(step)
        return features

    def project(self,
                scenario: ScenarioPath,
                seed_window: LagWindow,
                start_date=None) -> ScenarioForecast:
        """
        Run one scenario.

        Parameters:
        - scenario: driving-variable values for months 1..H
        - seed_window: most recent historical driving values, newest last;
          copied, never modified
        - start_date: optional date of the last historical month, used to
          date the projected months
        """
        if len(seed_window) < self.max_lag:
            raise LagOrderMismatch(required=self.max_lag, available=len(seed_window))

        policies = self._resolve_policies(scenario)
        window = seed_window.copy()

        predictions = []
        for step, driving_value in scenario.pairs():
            features = self.feature_vector(step, driving_value, window, policies)
            predictions.append(self.model.predict(features))
            window.push(driving_value)

        dates = None
        if start_date is not None:
            origin = pd.Timestamp(start_date).to_period('M')
            dates = pd.DatetimeIndex([(origin + offset).to_timestamp()
                                      for offset in scenario.offsets], name='date')

        return ScenarioForecast(
            name=scenario.name,
            offsets=scenario.offsets,
            driving_values=scenario.values,
            predictions=tuple(predictions),
            dates=dates,
        )

    def project_all(self,
                    scenarios: Iterable[ScenarioPath],
                    seed_window: LagWindow,
                    start_date=None,
                    max_workers: Optional[int] = None) -> Dict[str, ScenarioForecast]:
        """
        Run every scenario independently, each on its own copy of the seed window.

        Results keep the input order. max_workers > 1 runs scenarios on a
        thread pool.
        """
        scenarios: List[ScenarioPath] = list(scenarios)
        names = [s.name for s in scenarios]
        if len(set(names)) != len(names):
            raise ValueError(f"Scenario names must be unique: {names}")

        if max_workers and max_workers > 1 and len(scenarios) > 1:
            with ThreadPoolExecutor(max_workers=max_workers) as executor:
                futures = [executor.submit(self.project, s, seed_window, start_date)
                           for s in scenarios]
                results = [f.result() for f in futures]
        else:
            results = [self.project(s, seed_window, start_date) for s in scenarios]

        return {forecast.name: forecast for forecast in results}
