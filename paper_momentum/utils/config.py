"""
Configuration for the paper trading engine
Settings come from configs/config.yaml; selected keys can be overridden from the
environment (or a .env file at the project root)
"""

import os
from pathlib import Path
from typing import Any, Callable, Dict, Optional
import yaml
from dotenv import load_dotenv

# Dotted config key -> environment variable that overrides it
ENV_OVERRIDES = {
    "session.initial_balance": "INITIAL_BALANCE",
    "market.base_url": "BINANCE_BASE_URL",
    "market.poll_interval": "POLL_INTERVAL",
    "logging.level": "LOG_LEVEL",
}

_TRUE_STRINGS = {"1", "true", "yes", "on"}


class Config:
    """Typed view over the YAML settings with environment overrides"""

    def __init__(self, config_dir: str = "configs", project_root: Optional[Path] = None):
        """
        Args:
            config_dir: Directory holding config.yaml, relative to the project root
            project_root: Repository root (defaults to the package's parent)
        """
        self.project_root = Path(project_root) if project_root else Path(__file__).resolve().parents[2]
        self.config_path = self.project_root / config_dir / "config.yaml"

        # .env never overrides variables already set in the process
        load_dotenv(self.project_root / ".env")

        if not self.config_path.is_file():
            raise FileNotFoundError(f"Configuration file not found: {self.config_path}")
        with open(self.config_path, "r") as f:
            self.settings: Dict[str, Any] = yaml.safe_load(f) or {}

    def get(self, key: str, default: Any = None) -> Any:
        """
        Look up a dotted key (e.g. 'market.top_n').

        An environment override listed in ENV_OVERRIDES wins over the file.
        """
        env_name = ENV_OVERRIDES.get(key)
        if env_name:
            env_value = os.getenv(env_name)
            if env_value not in (None, ""):
                return env_value

        node: Any = self.settings
        for part in key.split("."):
            if not isinstance(node, dict) or part not in node:
                return default
            node = node[part]
        return node

    def _typed(self, key: str, default: Any, cast: Callable[[Any], Any]) -> Any:
        value = self.get(key, default)
        try:
            return cast(value)
        except (TypeError, ValueError) as exc:
            raise ValueError(f"Invalid value for {key}: {value!r}") from exc

    @staticmethod
    def _flag(value: Any) -> bool:
        if isinstance(value, str):
            return value.strip().lower() in _TRUE_STRINGS
        return bool(value)

    # Session
    @property
    def initial_balance(self) -> float:
        """Virtual starting cash in USDT"""
        return self._typed("session.initial_balance", 50.0, float)

    @property
    def stop_loss_pct(self) -> float:
        """Stop distance below entry as decimal (e.g., 0.01 for 1%)"""
        return self._typed("session.stop_loss_pct", 0.01, float)

    @property
    def take_profit_pct(self) -> float:
        return self._typed("session.take_profit_pct", 0.01, float)

    # Strategy
    @property
    def fast_period(self) -> int:
        return self._typed("strategy.fast_period", 7, int)

    @property
    def slow_period(self) -> int:
        return self._typed("strategy.slow_period", 25, int)

    @property
    def max_exposure_pct(self) -> float:
        """Maximum share of equity committed across open positions"""
        return self._typed("strategy.max_exposure_pct", 0.8, float)

    @property
    def size_base(self) -> float:
        return self._typed("strategy.size_base", 50.0, float)

    @property
    def size_multiplier(self) -> float:
        return self._typed("strategy.size_multiplier", 10.0, float)

    @property
    def min_trade_amount(self) -> float:
        return self._typed("strategy.min_trade_amount", 1.0, float)

    # Market data
    @property
    def binance_base_url(self) -> str:
        return str(self.get("market.base_url", "https://api.binance.com/api/v3")).rstrip("/")

    @property
    def quote_asset(self) -> str:
        return str(self.get("market.quote_asset", "USDT")).upper()

    @property
    def min_quote_volume(self) -> float:
        return self._typed("market.min_quote_volume", 10_000_000, float)

    @property
    def top_n(self) -> int:
        return self._typed("market.top_n", 5, int)

    @property
    def kline_interval(self) -> str:
        return str(self.get("market.interval", "1h"))

    @property
    def kline_limit(self) -> int:
        return self._typed("market.kline_limit", 200, int)

    @property
    def poll_interval(self) -> float:
        """Seconds between polling cycles"""
        return self._typed("market.poll_interval", 15, float)

    @property
    def track_open_positions(self) -> bool:
        """Evaluate every open position against its own symbol each cycle"""
        return self._flag(self.get("market.track_open_positions", True))

    @property
    def request_timeout(self) -> float:
        return self._typed("market.request_timeout", 10, float)

    # Logging
    @property
    def logs_dir(self) -> Path:
        """Log directory under the project root (created on access)"""
        path = self.project_root / str(self.get("logging.dir", "logs"))
        path.mkdir(parents=True, exist_ok=True)
        return path

    @property
    def log_level(self) -> str:
        return str(self.get("logging.level", "INFO")).upper()

    def validate(self) -> None:
        """
        Reject settings the engine cannot run with.

        Raises:
            ValueError: Describing the first offending setting
        """
        if self.initial_balance <= 0:
            raise ValueError("session.initial_balance must be positive")
        if not 0 < self.stop_loss_pct < 1 or self.take_profit_pct <= 0:
            raise ValueError("session stop_loss_pct/take_profit_pct must be positive fractions")
        if not 0 < self.fast_period < self.slow_period:
            raise ValueError("strategy.fast_period must be positive and below slow_period")
        if not 0 < self.max_exposure_pct <= 1:
            raise ValueError("strategy.max_exposure_pct must be in (0, 1]")
        if self.poll_interval <= 0:
            raise ValueError("market.poll_interval must be positive")
        if self.top_n < 1 or self.kline_limit < self.slow_period:
            raise ValueError("market.top_n must be >= 1 and kline_limit must cover slow_period")

    def __repr__(self) -> str:
        return f"Config(path={self.config_path}, balance={self.initial_balance}, poll={self.poll_interval}s)"


_config: Optional[Config] = None


def get_config() -> Config:
    """Process-wide configuration (loaded on first use)"""
    global _config
    if _config is None:
        _config = Config()
    return _config
