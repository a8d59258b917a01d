import pytest
import numpy as np
import pandas as pd

from exceptions import InsufficientData
from models import AlignedSeries
from regression.exploration import (
    correlation_matrix,
    decompose_seasonality,
    lagged_correlations,
    seasonal_profile,
)


@pytest.fixture
def seasonal_data():
    n = 48
    dates = pd.date_range('2019-01-01', periods=n, freq='MS')
    season = np.where(dates.month == 12, 10.0, 0.0)
    driver = np.sin(np.arange(n) / 2.0)
    target = 100.0 + np.arange(n) * 0.5 + season + 0.5 * np.roll(driver, 2)
    target[:2] = 100.0
    return AlignedSeries(pd.DataFrame({'sales': target, 'rate': driver}, index=dates))


def test_correlation_matrix(macro_data):
    corr = correlation_matrix(macro_data, columns=['retail_sales', 'fed_funds'])

    assert list(corr.columns) == ['retail_sales', 'fed_funds']
    assert corr.loc['retail_sales', 'retail_sales'] == pytest.approx(1.0)
    assert corr.loc['retail_sales', 'fed_funds'] == corr.loc['fed_funds', 'retail_sales']


def test_lagged_correlations_shape(seasonal_data):
    result = lagged_correlations(seasonal_data, 'sales', 'rate', max_lag=4)

    assert list(result.columns) == ['lag', 'correlation', 'p_value', 'nobs']
    assert result['lag'].tolist() == [0, 1, 2, 3, 4]
    assert result['nobs'].tolist() == [48, 47, 46, 45, 44]
    assert result['correlation'].abs().max() <= 1.0


def test_lagged_correlations_with_short_overlap():
    frame = pd.DataFrame({'y': [1.0, 2.0, 4.0], 'x': [3.0, 1.0, 2.0]},
                         index=pd.date_range('2020-01-01', periods=3, freq='MS'))
    result = lagged_correlations(AlignedSeries(frame), 'y', 'x', max_lag=1)

    assert not np.isnan(result.loc[0, 'correlation'])
    assert np.isnan(result.loc[1, 'correlation'])


def test_seasonal_profile(seasonal_data):
    profile = seasonal_profile(seasonal_data, 'sales')

    assert profile.index.name == 'month'
    assert len(profile) == 12
    assert profile['count'].tolist() == [4] * 12
    assert profile['deviation'].idxmax() == 12


def test_decompose_seasonality(seasonal_data):
    parts = decompose_seasonality(seasonal_data, 'sales')

    assert list(parts.columns) == ['observed', 'trend', 'seasonal', 'residual']
    assert len(parts) == 48
    december = parts['seasonal'][parts.index.month == 12]
    assert (december > 5.0).all()


def test_decompose_needs_two_cycles(seasonal_data):
    short = AlignedSeries(seasonal_data.to_frame().iloc[:20])
    with pytest.raises(InsufficientData):
        decompose_seasonality(short, 'sales')
