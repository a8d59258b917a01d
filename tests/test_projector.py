import pytest
import pandas as pd

from conftest import make_model
from exceptions import LagOrderMismatch, UnknownPredictor
from forecast.lag_window import LagWindow
from forecast.policies import CompoundGrowth, ExplicitPath, HoldConstant
from forecast.projector import ScenarioProjector
from forecast.scenarios import custom_path
from models import INTERCEPT, ScenarioPath


@pytest.fixture
def lag_model():
    return make_model({INTERCEPT: 100.0, 'rate': -5.0, 'rate_lag1': -2.0, 'rate_lag2': -1.0})


def test_two_month_projection(lag_model):
    projector = ScenarioProjector(lag_model, 'rate')
    seed = LagWindow([5.0, 5.25])  # oldest to newest

    forecast = projector.project(custom_path('rising', [5.5, 5.75]), seed)

    assert forecast.offsets == (1, 2)
    assert forecast.predictions[0] == pytest.approx(57.0)
    assert forecast.predictions[1] == pytest.approx(55.0)
    assert forecast.driving_values == (5.5, 5.75)


def test_seed_window_is_not_modified(lag_model):
    projector = ScenarioProjector(lag_model, 'rate')
    seed = LagWindow([5.0, 5.25])

    projector.project(custom_path('rising', [5.5, 5.75, 6.0]), seed)

    assert seed.values == (5.0, 5.25)


def test_scenarios_do_not_share_state(lag_model):
    projector = ScenarioProjector(lag_model, 'rate')
    seed = LagWindow([5.0, 5.25])
    a = custom_path('a', [9.0, 9.0, 9.0])
    b = custom_path('b', [1.0, 2.0, 3.0])

    b_alone = projector.project(b, seed)
    results = projector.project_all([a, b], seed)

    assert list(results) == ['a', 'b']
    assert results['b'].predictions == b_alone.predictions


def test_threaded_run_matches_sequential(lag_model):
    projector = ScenarioProjector(lag_model, 'rate')
    seed = LagWindow([5.0, 5.25])
    scenarios = [custom_path(f"s{i}", [5.0 + i * 0.25] * 6) for i in range(5)]

    sequential = projector.project_all(scenarios, seed)
    threaded = projector.project_all(scenarios, seed, max_workers=3)

    assert list(threaded) == list(sequential)
    for name in sequential:
        assert threaded[name].predictions == sequential[name].predictions


def test_duplicate_scenario_names_rejected(lag_model):
    projector = ScenarioProjector(lag_model, 'rate')
    with pytest.raises(ValueError):
        projector.project_all([custom_path('a', [1.0]), custom_path('a', [2.0])],
                              LagWindow([5.0, 5.25]))


def test_short_window_raises(lag_model):
    projector = ScenarioProjector(lag_model, 'rate')
    with pytest.raises(LagOrderMismatch) as excinfo:
        projector.project(custom_path('a', [5.0]), LagWindow([5.25]))
    assert excinfo.value.required == 2
    assert excinfo.value.available == 1


def test_forecast_dates_follow_last_observation(lag_model):
    projector = ScenarioProjector(lag_model, 'rate')

    forecast = projector.project(custom_path('a', [5.0, 5.0, 5.0]), LagWindow([5.0, 5.0]),
                                 start_date='2024-11-01')

    assert list(forecast.dates) == [pd.Timestamp('2024-12-01'), pd.Timestamp('2025-01-01'),
                                    pd.Timestamp('2025-02-01')]
    frame = forecast.to_frame()
    assert list(frame.columns) == ['date', 'offset', 'driving_value', 'prediction']


def test_model_without_driving_variable():
    model = make_model({INTERCEPT: 1.0, 'income': 2.0})
    with pytest.raises(UnknownPredictor):
        ScenarioProjector(model, 'rate')


def test_contemporaneous_model_needs_no_history():
    model = make_model({INTERCEPT: 10.0, 'rate': -2.0})
    projector = ScenarioProjector(model, 'rate')

    forecast = projector.project(custom_path('a', [1.0, 2.0]), LagWindow([]))

    assert forecast.predictions == pytest.approx((8.0, 6.0))


class TestPolicies:
    @pytest.fixture
    def control_model(self):
        return make_model({INTERCEPT: 0.0, 'rate': 1.0, 'rate_lag1': 0.0, 'income': 2.0})

    def test_other_predictors_use_policies(self, control_model):
        projector = ScenarioProjector(control_model, 'rate',
                                      policies={'income': CompoundGrowth(100.0, 0.01)})

        forecast = projector.project(custom_path('a', [1.0, 1.0]), LagWindow([1.0]))

        assert forecast.predictions[0] == pytest.approx(1.0 + 2.0 * 101.0)
        assert forecast.predictions[1] == pytest.approx(1.0 + 2.0 * 102.01)

    def test_scenario_policy_overrides_default(self, control_model):
        projector = ScenarioProjector(control_model, 'rate', policies={'income': HoldConstant(10.0)})
        scenario = ScenarioPath('a', (1.0, 1.0), policies={'income': ExplicitPath((0.0, 5.0))})

        forecast = projector.project(scenario, LagWindow([1.0]))

        assert forecast.predictions == pytest.approx((1.0, 11.0))

    def test_missing_policy_raises(self, control_model):
        projector = ScenarioProjector(control_model, 'rate')
        with pytest.raises(UnknownPredictor):
            projector.project(custom_path('a', [1.0]), LagWindow([1.0]))

    def test_policy_for_unknown_predictor_raises(self, control_model):
        with pytest.raises(UnknownPredictor):
            ScenarioProjector(control_model, 'rate',
                              policies={'income': HoldConstant(1.0), 'sentiment': HoldConstant(1.0)})
