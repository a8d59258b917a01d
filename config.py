"""Pipeline configuration"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional
import os

# Dataset name -> FRED series id
DEFAULT_SERIES = {
    'retail_sales': 'RSAFS',            # Advance retail sales, millions of dollars, SA
    'fed_funds': 'FEDFUNDS',            # Effective federal funds rate, percent
    'disposable_income': 'DSPIC96',     # Real disposable personal income, billions
    'consumer_sentiment': 'UMCSENT',    # University of Michigan consumer sentiment
}


@dataclass
class ScenarioDefinition:
    """Stepped path of the driving variable relative to its last observed level"""
    name: str
    step_change: float = 0.0   # change applied every `every` months
    every: int = 3
    floor: Optional[float] = 0.0


DEFAULT_SCENARIOS = [
    ScenarioDefinition('hold', step_change=0.0),
    ScenarioDefinition('gradual_cuts', step_change=-0.25, every=3),
    ScenarioDefinition('gradual_hikes', step_change=0.25, every=3),
    ScenarioDefinition('aggressive_cuts', step_change=-0.50, every=2),
]


@dataclass
class PipelineConfig:
    start: str = '2000-01-01'
    end: Optional[str] = None
    series: Dict[str, str] = field(default_factory=lambda: dict(DEFAULT_SERIES))

    target: str = 'retail_sales'
    driving_variable: str = 'fed_funds'
    income: str = 'disposable_income'
    sentiment: str = 'consumer_sentiment'
    max_lag: int = 3
    horizon: int = 24
    income_annual_growth: float = 0.02  # income compounds at this annual rate in projections

    scenarios: List[ScenarioDefinition] = field(default_factory=lambda: list(DEFAULT_SCENARIOS))

    db_path: Path = Path('data_manager/data/observations.duckdb')
    output_dir: Path = Path('results')
    api_key: Optional[str] = None
    force_refresh: bool = False
    max_workers: Optional[int] = None

    def __post_init__(self):
        self.db_path = Path(self.db_path)
        self.output_dir = Path(self.output_dir)
        if self.max_lag < 1:
            raise ValueError(f"max_lag must be at least 1, got {self.max_lag}")
        if self.horizon < 1:
            raise ValueError(f"horizon must be at least 1, got {self.horizon}")
        for name in (self.target, self.driving_variable, self.income, self.sentiment):
            if name not in self.series:
                raise ValueError(f"'{name}' has no series id in the configuration")

    @property
    def controls(self) -> List[str]:
        return [self.income, self.sentiment]

    @classmethod
    def from_env(cls, **overrides) -> 'PipelineConfig':
        """Defaults with the API key read from FRED_API_KEY"""
        overrides.setdefault('api_key', os.environ.get('FRED_API_KEY'))
        return cls(**overrides)
