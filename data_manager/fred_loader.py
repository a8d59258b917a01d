"""
Retrieval of monthly macroeconomic series from the FRED API with a DuckDB cache.
"""

import logging
import os
from typing import Dict, List, Mapping, Optional, Tuple
import pandas as pd
import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from data_manager.database import ObservationStore
from exceptions import DataRetrievalError

logger = logging.getLogger(__name__)

FRED_OBSERVATIONS_URL = "https://api.stlouisfed.org/fred/series/observations"
FRED_MISSING = "."  # FRED marks unpublished or discontinued months with a dot


class FredClient:
    """Thin client for the FRED series/observations endpoint"""

    def __init__(self,
                 api_key: Optional[str] = None,
                 timeout: float = 30.0,
                 max_retries: int = 3,
                 backoff_factor: float = 0.5,
                 session: Optional[requests.Session] = None):
        """
        Initialize client

        Parameters:
        - api_key: FRED API key; falls back to the FRED_API_KEY environment variable
        - timeout: seconds per request
        - max_retries: retries on connection errors and 429/5xx responses
        - backoff_factor: exponential backoff between retries
        """
        self.api_key = api_key or os.environ.get('FRED_API_KEY')
        self.timeout = timeout
        self.logger = logging.getLogger(__name__)

        if session is None:
            session = requests.Session()
            retry = Retry(
                total=max_retries,
                connect=max_retries,
                read=max_retries,
                status=max_retries,
                backoff_factor=backoff_factor,
                status_forcelist=(429, 500, 502, 503, 504),
                allowed_methods=frozenset(['GET']),
            )
            adapter = HTTPAdapter(max_retries=retry)
            session.mount('https://', adapter)
            session.mount('http://', adapter)
        self.session = session

    def get_observations(self, series_id: str,
                         start_date=None,
                         end_date=None,
                         frequency: Optional[str] = 'm') -> List[Tuple[pd.Timestamp, Optional[float]]]:
        """
        Fetch (date, value) pairs for one series

        Parameters:
        - series_id: FRED series id, e.g. 'RSAFS'
        - start_date, end_date: optional observation range
        - frequency: FRED aggregation frequency; 'm' averages higher-frequency series to monthly
        """
        if not self.api_key:
            raise DataRetrievalError("No FRED API key configured (set FRED_API_KEY)")

        params = {
            'series_id': series_id,
            'api_key': self.api_key,
            'file_type': 'json',
        }
        if start_date is not None:
            params['observation_start'] = pd.Timestamp(start_date).strftime('%Y-%m-%d')
        if end_date is not None:
            params['observation_end'] = pd.Timestamp(end_date).strftime('%Y-%m-%d')
        if frequency:
            params['frequency'] = frequency

        try:
            resp = self.session.get(FRED_OBSERVATIONS_URL, params=params, timeout=self.timeout)
            resp.raise_for_status()
            payload = resp.json()
        except (requests.RequestException, ValueError) as e:
            self.logger.error(f"FRED request for {series_id} failed: {str(e)}")
            raise DataRetrievalError(f"FRED request for {series_id} failed: {e}") from e

        observations = []
        for obs in payload.get('observations', []):
            raw = obs.get('value')
            value = None if raw in (None, FRED_MISSING, '') else float(raw)
            observations.append((pd.Timestamp(obs['date']), value))

        self.logger.info(f"Fetched {len(observations)} observations for {series_id}")
        return observations


class SeriesLoader:
    """Serves series from the observation cache, fetching from FRED when needed"""

    def __init__(self, client: FredClient, store: Optional[ObservationStore] = None):
        self.client = client
        self.store = store
        self.logger = logging.getLogger(__name__)

    def load_series(self, series_id: str,
                    start_date=None,
                    end_date=None,
                    force: bool = False) -> pd.Series:
        """
        One series as a date-indexed Series named `series_id`.

        Served from the cache when it covers the requested range and `force`
        is not set; otherwise fetched and cached. On fetch failure falls back
        to whatever the cache holds, else raises DataRetrievalError.
        """
        if self.store is not None and not force and self.store.covers(series_id, start_date, end_date):
            cached = self.store.load_observations(series_id, start_date, end_date)
            if cached is not None:
                self.logger.info(f"Using cached {series_id} ({len(cached)} observations)")
                return cached

        try:
            observations = self.client.get_observations(series_id, start_date, end_date)
        except DataRetrievalError:
            if self.store is not None:
                cached = self.store.load_observations(series_id, start_date, end_date)
                if cached is not None:
                    self.logger.warning(
                        f"FRED fetch failed for {series_id}; using cached data, "
                        f"which may not span the requested range"
                    )
                    return cached
            raise

        if self.store is not None:
            # An open end asks for everything published as of today
            requested_end = end_date if end_date is not None else pd.Timestamp.today().normalize()
            self.store.save_observations(series_id, observations,
                                         start_date=start_date,
                                         end_date=requested_end,
                                         full_history=start_date is None)

        dates = pd.DatetimeIndex([date for date, _ in observations], name='date')
        return pd.Series([value for _, value in observations], index=dates,
                         dtype=float, name=series_id)

    def load(self, series_map: Mapping[str, str],
             start_date=None,
             end_date=None,
             force: bool = False) -> Dict[str, pd.Series]:
        """
        Load several series

        Parameters:
        - series_map: dataset name -> FRED series id
        Returns dataset name -> Series (renamed to the dataset name)
        """
        loaded = {}
        for name, series_id in series_map.items():
            self.logger.info(f"Loading {name} ({series_id})")
            loaded[name] = self.load_series(series_id, start_date, end_date, force).rename(name)
        return loaded
