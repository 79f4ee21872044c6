"""
Outer-layer helpers for the dice region picker:
- config_loader.py: config.yaml access
- setup_logging.py: logging configuration for scripts
- region_map_renderer.py: static PNG rendering of a session
"""
