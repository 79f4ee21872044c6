"""
Configuration loader for the dice region picker.

Loads configuration from config.yaml and provides easy access to parameters.
A missing config file is not an error: every property falls back to its
built-in default.
"""

from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml

from region_catalog import CatalogColumns

DEFAULT_CONFIG_PATH = Path(__file__).parent.parent / "config.yaml"


class Config:
    """Configuration loader and accessor."""

    def __init__(self, config_path=DEFAULT_CONFIG_PATH):
        """
        Load configuration from YAML file.

        Args:
            config_path: Path to config.yaml file
        """
        self.config_path = Path(config_path)
        self._config: Dict[str, Any] = {}
        if self.config_path.exists():
            with open(self.config_path, 'r', encoding='utf-8') as f:
                self._config = yaml.safe_load(f) or {}

    def get(self, path: str, default: Any = None) -> Any:
        """
        Get configuration value by dot-separated path.

        Examples:
            config.get('game.max_rounds') -> 3
            config.get('columns.name') -> 'region_name'

        Args:
            path: Dot-separated path to configuration value
            default: Default value if path not found

        Returns:
            Configuration value or default
        """
        parts = path.split('.')
        value = self._config

        for part in parts:
            if isinstance(value, dict) and part in value:
                value = value[part]
            else:
                return default

        return value

    @property
    def catalog_columns(self) -> CatalogColumns:
        """Get CSV column layout for the region catalog."""
        defaults = CatalogColumns()
        return CatalogColumns(
            name=self.get('columns.name', defaults.name),
            center=self.get('columns.center', defaults.center),
            geometry=self.get('columns.geometry', defaults.geometry),
            prefecture=self.get('columns.prefecture', defaults.prefecture),
            areas=self.get('columns.areas', defaults.areas),
            round_keys=tuple(self.get('columns.round_keys', defaults.round_keys)),
            areas_separator=self.get('columns.areas_separator', defaults.areas_separator),
        )

    @property
    def regions_csv(self) -> Path:
        """Get path to the region CSV (relative paths resolve against the config file)."""
        path = Path(self.get('data.regions_csv', 'data/regions_sample.csv'))
        if not path.is_absolute():
            path = self.config_path.parent / path
        return path

    @property
    def max_rounds(self) -> int:
        """Get number of dice rounds per session."""
        return int(self.get('game.max_rounds', 3))

    @property
    def min_roll_seconds(self) -> float:
        """Get minimum time a roll stays in progress."""
        return float(self.get('game.min_roll_seconds', 2.0))

    @property
    def names_separator(self) -> str:
        """Get separator used when copying survivor names."""
        return self.get('game.names_separator', ', ')

    @property
    def default_center(self) -> Tuple[float, float]:
        """
        Get map center used before any region is focused.

        Returns:
            (lat, lon) tuple
        """
        lat, lon = self.get('map.default_center', [36.5, 138.0])
        return (float(lat), float(lon))

    @property
    def zoom_levels(self) -> List[int]:
        """Get map zoom level per completed round."""
        return [int(z) for z in self.get('map.zoom_levels', [5, 7, 9])]

    @property
    def default_zoom(self) -> int:
        """Get zoom level before the first round."""
        return int(self.get('map.default_zoom', 5))

    @property
    def log_level(self) -> str:
        """Get logging level name."""
        return self.get('logging.level', 'INFO')

    @property
    def log_file(self) -> Optional[Path]:
        """Get log file path (relative to the config file), or None to log to console only."""
        path = self.get('logging.file')
        if not path:
            return None
        path = Path(path)
        if not path.is_absolute():
            path = self.config_path.parent / path
        return path

    @property
    def render_options(self) -> Dict[str, Any]:
        """
        Get map rendering options.

        Returns:
            Dictionary with highlight_color, base_color, fill_alpha, figsize, dpi
        """
        render = self.get('render', {}) or {}
        return {
            'highlight_color': render.get('highlight_color', '#00a8ff'),
            'base_color': render.get('base_color', '#3a3a3a'),
            'fill_alpha': float(render.get('fill_alpha', 0.3)),
            'figsize': tuple(render.get('figsize', [8, 8])),
            'dpi': int(render.get('dpi', 100)),
        }

    def controller_options(self) -> Dict[str, Any]:
        """Keyword arguments for GameController."""
        return {
            'min_roll_seconds': self.min_roll_seconds,
            'max_rounds': self.max_rounds,
            'zoom_levels': self.zoom_levels,
            'default_zoom': self.default_zoom,
            'default_center': self.default_center,
        }

    def __repr__(self) -> str:
        """String representation."""
        return f"Config(path='{self.config_path}', rounds={self.max_rounds})"


# Global config instance
_config_instance = None


def get_config(config_path=DEFAULT_CONFIG_PATH) -> Config:
    """
    Get or create global config instance.

    Args:
        config_path: Path to config file

    Returns:
        Config instance
    """
    global _config_instance
    if _config_instance is None:
        _config_instance = Config(config_path)
    return _config_instance


def reload_config(config_path=DEFAULT_CONFIG_PATH) -> Config:
    """
    Reload configuration from file.

    Args:
        config_path: Path to config file

    Returns:
        New Config instance
    """
    global _config_instance
    _config_instance = Config(config_path)
    return _config_instance
