import sys
import os
import pytest
import numpy as np
import pandas as pd
import matplotlib

matplotlib.use('Agg')

# Add project root to Python path
project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if project_root not in sys.path:
    sys.path.append(project_root)

from models import INTERCEPT, AlignedSeries, FittedModel, LagSpec


def make_model(coefficients, target='retail_sales'):
    """FittedModel with the given coefficients (intercept first) and placeholder statistics"""
    names = [name for name in coefficients if name != INTERCEPT]
    ordered = {INTERCEPT: coefficients[INTERCEPT], **{n: coefficients[n] for n in names}}
    zeros = {name: 0.0 for name in ordered}
    empty = pd.Series(dtype=float)
    return FittedModel(
        target=target,
        features=tuple(LagSpec.parse(n) for n in names),
        coefficients=ordered,
        std_errors=dict(zeros),
        t_values=dict(zeros),
        p_values=dict(zeros),
        r_squared=0.0,
        adj_r_squared=0.0,
        residual_std_error=0.0,
        ssr=0.0,
        sst=0.0,
        nobs=0,
        df_resid=0.0,
        fitted_values=empty,
        residuals=empty,
    )


@pytest.fixture
def macro_data():
    """Ten years of synthetic monthly data where sales respond to the rate and its first lag"""
    rng = np.random.default_rng(42)
    n = 120
    dates = pd.date_range('2010-01-01', periods=n, freq='MS')

    rate = np.clip(2.0 + np.cumsum(rng.normal(0, 0.2, n)), 0.0, None)
    income = 10_000 * (1.002 ** np.arange(n))
    sentiment = 80 + rng.normal(0, 3, n)

    rate_lag1 = np.concatenate([[rate[0]], rate[:-1]])
    sales = (200_000 - 3_000 * rate - 1_500 * rate_lag1 + 20 * income
             + 150 * sentiment + rng.normal(0, 500, n))

    frame = pd.DataFrame({
        'retail_sales': sales,
        'fed_funds': rate,
        'disposable_income': income,
        'consumer_sentiment': sentiment,
    }, index=dates)
    return AlignedSeries(frame)
