import logging
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Tuple, Union
import os
import duckdb
import pandas as pd

logger = logging.getLogger(__name__)


class ObservationStore:
    """DuckDB cache of raw monthly observations keyed by series id"""

    def __init__(self, db_path: Union[str, Path]):
        """Initialize database connection and create tables if needed"""
        self.logger = logging.getLogger(__name__)
        self.db_path = str(db_path)

        if self.db_path != ':memory:':
            db_dir = os.path.dirname(self.db_path)
            if db_dir and not os.path.exists(db_dir):
                os.makedirs(db_dir)

        try:
            self.conn = duckdb.connect(self.db_path)
            self._initialize_tables()
        except Exception as e:
            self.logger.error(f"Failed to open observation store at {self.db_path}: {str(e)}")
            raise

        self.logger.info(f"Initialized observation store at {self.db_path}")

    def _initialize_tables(self):
        """Create tables if they don't exist"""
        self.conn.execute("""
            CREATE TABLE IF NOT EXISTS observations (
                series_id VARCHAR,
                date DATE,
                value DOUBLE,          -- NULL when the source marks the month missing
                PRIMARY KEY (series_id, date)
            )
        """)

        self.conn.execute("""
            CREATE TABLE IF NOT EXISTS series_fetches (
                series_id VARCHAR PRIMARY KEY,
                fetched_at TIMESTAMP,
                start_date DATE,        -- observed span
                end_date DATE,
                n_observations INTEGER,
                requested_start DATE,   -- range asked of the source
                requested_end DATE,
                full_history BOOLEAN    -- fetched without a start bound
            )
        """)

    def save_observations(self, series_id: str,
                          observations: List[Tuple[pd.Timestamp, Optional[float]]],
                          start_date=None,
                          end_date=None,
                          full_history: bool = False) -> int:
        """
        Insert or replace observations for one series; returns rows written

        Parameters:
        - start_date, end_date: range requested from the source; each
          defaults to the observed span
        - full_history: the source was asked for every observation from
          the first available month
        """
        if not observations:
            self.logger.warning(f"No observations to store for {series_id}")
            return 0

        df = pd.DataFrame(observations, columns=['date', 'value'])
        df['series_id'] = series_id
        df['date'] = pd.to_datetime(df['date']).dt.normalize()
        df['value'] = pd.to_numeric(df['value'], errors='coerce')
        df = df[['series_id', 'date', 'value']].drop_duplicates(subset=['date'], keep='last')

        try:
            self.conn.register('observations_df', df)
            self.conn.execute("""
                INSERT INTO observations
                SELECT series_id, CAST(date AS DATE), value FROM observations_df
                ON CONFLICT (series_id, date) DO UPDATE SET value = EXCLUDED.value
            """)
            observed_start, observed_end = df['date'].min(), df['date'].max()
            requested_start = pd.Timestamp(start_date) if start_date is not None else observed_start
            requested_end = pd.Timestamp(end_date) if end_date is not None else observed_end
            self.conn.execute("""
                INSERT INTO series_fetches
                (series_id, fetched_at, start_date, end_date, n_observations,
                 requested_start, requested_end, full_history)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT (series_id) DO UPDATE SET
                    fetched_at = EXCLUDED.fetched_at,
                    start_date = EXCLUDED.start_date,
                    end_date = EXCLUDED.end_date,
                    n_observations = EXCLUDED.n_observations,
                    requested_start = EXCLUDED.requested_start,
                    requested_end = EXCLUDED.requested_end,
                    full_history = EXCLUDED.full_history
            """, [series_id, datetime.now(), observed_start.date(), observed_end.date(), len(df),
                  requested_start.date(), requested_end.date(), bool(full_history)])
        except Exception as e:
            self.logger.error(f"Error storing observations for {series_id}: {str(e)}")
            raise
        finally:
            self.conn.unregister('observations_df')

        self.logger.info(
            f"Stored {len(df)} observations for {series_id} "
            f"({df['date'].min():%Y-%m-%d} to {df['date'].max():%Y-%m-%d})"
        )
        return len(df)

    def load_observations(self, series_id: str,
                          start_date=None,
                          end_date=None) -> Optional[pd.Series]:
        """Cached observations as a date-indexed Series, or None if never stored"""
        if not self.has_series(series_id):
            return None

        query = """
            SELECT date, value
            FROM observations
            WHERE series_id = ?
        """
        params = [series_id]
        if start_date is not None:
            query += " AND date >= ?"
            params.append(pd.Timestamp(start_date).date())
        if end_date is not None:
            query += " AND date <= ?"
            params.append(pd.Timestamp(end_date).date())
        query += " ORDER BY date"

        rows = self.conn.execute(query, params).fetchall()
        series = pd.Series(
            [value for _, value in rows],
            index=pd.DatetimeIndex([pd.Timestamp(date) for date, _ in rows], name='date'),
            dtype=float,
            name=series_id,
        )
        return series

    def covers(self, series_id: str, start_date=None, end_date=None) -> bool:
        """
        Whether the cache holds every month of [start_date, end_date].

        Compares months against the last fetch of the series. An open start
        needs a full-history fetch; an open end means the current month.
        The upper bound also counts as covered when observations already
        reach end_date.
        """
        row = self.conn.execute("""
            SELECT requested_start, requested_end, full_history, end_date
            FROM series_fetches
            WHERE series_id = ?
        """, [series_id]).fetchone()
        if row is None:
            return False
        requested_start, requested_end, full_history, observed_end = row

        def month(value) -> pd.Period:
            return pd.Timestamp(value).to_period('M')

        if not full_history:
            if start_date is None or month(start_date) < month(requested_start):
                return False

        target_end = end_date if end_date is not None else pd.Timestamp.today()
        if month(target_end) <= month(requested_end):
            return True
        return end_date is not None and month(end_date) <= month(observed_end)

    def has_series(self, series_id: str) -> bool:
        result = self.conn.execute(
            "SELECT COUNT(*) FROM series_fetches WHERE series_id = ?", [series_id]
        ).fetchone()
        return result[0] > 0

    def fetch_log(self) -> pd.DataFrame:
        """One row per cached series with its last fetch time and coverage"""
        return self.conn.execute("""
            SELECT series_id, fetched_at, start_date, end_date, n_observations
            FROM series_fetches
            ORDER BY series_id
        """).df()

    def close(self):
        """Close database connection"""
        if hasattr(self, 'conn'):
            self.conn.close()

    def __enter__(self):
        """Context manager entry"""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit"""
        self.close()
