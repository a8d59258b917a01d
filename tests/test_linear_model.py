import pytest
import numpy as np
import pandas as pd

from conftest import make_model
from exceptions import InsufficientData, UnknownPredictor
from models import INTERCEPT, AlignedSeries, FittedModel, LagSpec
from regression.lags import build_lag_features
from regression.linear_model import LinearModelFitter, fit_linear_model


@pytest.fixture
def regression_data():
    """y = 1 + 2x - 0.5z + noise"""
    rng = np.random.default_rng(0)
    n = 60
    x = rng.normal(5, 1, n)
    z = rng.normal(0, 2, n)
    y = 1.0 + 2.0 * x - 0.5 * z + rng.normal(0, 0.1, n)
    frame = pd.DataFrame({'y': y, 'x': x, 'z': z},
                         index=pd.date_range('2015-01-01', periods=n, freq='MS'))
    return AlignedSeries(frame)


def test_recovers_coefficients(regression_data):
    model = fit_linear_model(regression_data, 'y', ['x', 'z'])

    assert list(model.coefficients) == [INTERCEPT, 'x', 'z']
    assert model.coefficients['x'] == pytest.approx(2.0, abs=0.05)
    assert model.coefficients['z'] == pytest.approx(-0.5, abs=0.05)
    assert model.r_squared > 0.99
    assert model.nobs == 60
    assert model.df_resid == 57


def test_r_squared_matches_residuals(regression_data):
    model = fit_linear_model(regression_data, 'y', ['x', 'z'])

    y = regression_data.column('y')
    ssr = float(np.sum(model.residuals ** 2))
    sst = float(np.sum((y - y.mean()) ** 2))

    assert model.r_squared == pytest.approx(1 - ssr / sst, abs=1e-6)
    # Predicting the fitting rows reproduces the residuals
    predicted = model.predict_frame(regression_data)
    assert (y - predicted).to_numpy() == pytest.approx(model.residuals.to_numpy(), abs=1e-6)


def test_fit_is_deterministic(regression_data):
    first = fit_linear_model(regression_data, 'y', ['x', 'z'])
    second = fit_linear_model(regression_data, 'y', ['x', 'z'])

    assert first.coefficients == second.coefficients


def test_qr_and_pinv_agree(regression_data):
    pinv = LinearModelFitter('pinv').fit(regression_data, 'y', ['x', 'z'])
    qr = LinearModelFitter('qr').fit(regression_data, 'y', ['x', 'z'])

    for name in pinv.coefficients:
        assert pinv.coefficients[name] == pytest.approx(qr.coefficients[name], rel=1e-8)

    with pytest.raises(ValueError):
        LinearModelFitter('gradient_descent')


def test_lagged_predictor_drops_leading_rows():
    n = 40
    x = np.sin(np.arange(n) / 3.0) + np.arange(n) * 0.1
    frame = pd.DataFrame({'x': x}, index=pd.date_range('2018-01-01', periods=n, freq='MS'))
    noise = np.random.default_rng(3).normal(0, 1e-3, n)
    frame['y'] = 5.0 + 2.0 * frame['x'].shift(1) + noise
    aligned = build_lag_features(AlignedSeries(frame), [LagSpec('x', 1)])

    model = fit_linear_model(aligned, 'y', ['x_lag1'])

    assert model.nobs == n - 1
    assert model.intercept == pytest.approx(5.0, abs=0.01)
    assert model.coefficients['x_lag1'] == pytest.approx(2.0, abs=0.01)
    assert model.max_lag('x') == 1


def test_non_finite_rows_are_excluded(regression_data):
    frame = regression_data.to_frame()
    frame.iloc[0, frame.columns.get_loc('x')] = np.inf
    frame.iloc[1, frame.columns.get_loc('z')] = np.nan

    model = fit_linear_model(AlignedSeries(frame), 'y', ['x', 'z'])

    assert model.nobs == 58


def test_near_collinear_predictors_fit():
    rng = np.random.default_rng(1)
    n = 50
    x1 = rng.normal(0, 1, n)
    x2 = 2.0 * x1 + rng.normal(0, 1e-6, n)
    y = 3.0 + x1 + rng.normal(0, 0.1, n)
    frame = pd.DataFrame({'y': y, 'x1': x1, 'x2': x2},
                         index=pd.date_range('2000-01-01', periods=n, freq='MS'))

    model = fit_linear_model(AlignedSeries(frame), 'y', ['x1', 'x2'])

    assert all(np.isfinite(v) for v in model.coefficients.values())
    assert model.r_squared > 0.9


def test_insufficient_rows():
    frame = pd.DataFrame({'y': [1.0, 2.0, 3.0], 'x': [1.0, 3.0, 2.0], 'z': [0.0, 1.0, 0.0]},
                         index=pd.date_range('2020-01-01', periods=3, freq='MS'))

    with pytest.raises(InsufficientData) as excinfo:
        fit_linear_model(AlignedSeries(frame), 'y', ['x', 'z'])
    assert excinfo.value.required == 4
    assert excinfo.value.available == 3


def test_invalid_predictor_lists(regression_data):
    with pytest.raises(UnknownPredictor):
        fit_linear_model(regression_data, 'y', ['x', 'missing'])
    with pytest.raises(ValueError):
        fit_linear_model(regression_data, 'y', [])
    with pytest.raises(ValueError):
        fit_linear_model(regression_data, 'y', ['x', 'x'])
    with pytest.raises(ValueError):
        fit_linear_model(regression_data, 'y', ['y'])


class TestPredict:
    def test_prediction_is_linear_combination(self):
        model = make_model({INTERCEPT: 10.0, 'a': 2.0, 'b': -1.0})
        assert model.predict({'a': 3.0, 'b': 4.0}) == pytest.approx(12.0)

    def test_missing_or_extra_predictors_rejected(self):
        model = make_model({INTERCEPT: 10.0, 'a': 2.0, 'b': -1.0})

        with pytest.raises(UnknownPredictor):
            model.predict({'a': 3.0})
        with pytest.raises(UnknownPredictor):
            model.predict({'a': 3.0, 'b': 4.0, 'c': 1.0})

    def test_predict_frame_requires_columns(self):
        model = make_model({INTERCEPT: 1.0, 'a': 2.0})
        frame = pd.DataFrame({'b': [1.0]})
        with pytest.raises(UnknownPredictor):
            model.predict_frame(frame)

    def test_coefficients_must_follow_predictor_order(self):
        model = make_model({INTERCEPT: 1.0, 'a': 2.0, 'b': 3.0})
        with pytest.raises(UnknownPredictor):
            FittedModel(
                target=model.target,
                features=model.features,
                coefficients={INTERCEPT: 1.0, 'b': 3.0, 'a': 2.0},
                std_errors=model.std_errors,
                t_values=model.t_values,
                p_values=model.p_values,
                r_squared=0.0, adj_r_squared=0.0, residual_std_error=0.0,
                ssr=0.0, sst=0.0, nobs=0, df_resid=0.0,
                fitted_values=model.fitted_values,
                residuals=model.residuals,
            )

    def test_non_finite_coefficient_rejected(self):
        with pytest.raises(ValueError):
            make_model({INTERCEPT: 1.0, 'a': float('nan')})


def test_intercept_name_rejected_as_predictor(regression_data):
    data = regression_data.with_columns({'const': regression_data.column('x')})
    with pytest.raises(ValueError, match="reserved for the regression intercept"):
        fit_linear_model(data, 'y', ['x', 'const'])
