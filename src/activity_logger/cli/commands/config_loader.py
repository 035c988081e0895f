import yaml
import sys
from pathlib import Path
import logging

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "config/application.yml"

def load_and_resolve_config(project_root: Path, config_path: str = DEFAULT_CONFIG_PATH) -> dict:
    """Loads YAML configuration and resolves relative paths."""
    absolute_config_path = project_root / config_path
    logger.debug(f"Attempting to load configuration from: {absolute_config_path}")
    try:
        with open(absolute_config_path, 'r', encoding='utf-8') as f:
            config_data = yaml.safe_load(f)
        if not isinstance(config_data, dict):
            raise ValueError("Configuration file is empty or invalid.")

        # Resolve paths relative to project_root
        resolve_path(config_data, project_root, ['event_log', 'path'], 'var/event_logs/activity.jsonl')
        resolve_path(config_data, project_root, ['logging', 'log_file']) # Optional

        logger.info(f"Configuration loaded successfully from {absolute_config_path}")
        return config_data

    except FileNotFoundError:
        logger.critical(f"Configuration file not found at {absolute_config_path}")
        sys.exit(1)
    except (yaml.YAMLError, ValueError, OSError) as err:
        logger.critical(f"Error loading or resolving configuration from {absolute_config_path}: {err}", exc_info=True)
        sys.exit(1)

def resolve_path(config: dict, root: Path, keys: list, default: str | None = None):
    """Helper to get, resolve, and update a path in the config dict."""
    current = config
    for key in keys[:-1]:
        if not isinstance(current.get(key), dict):
            if default is None:
                return # Optional path, section absent
            current[key] = {}
        current = current[key]

    last_key = keys[-1]
    relative_path = current.get(last_key, default)

    if relative_path is not None:
        resolved_path = str((root / relative_path).resolve())
        current[last_key] = resolved_path
        logger.debug(f"Resolved config path '{'.'.join(keys)}': {relative_path} -> {resolved_path}")

def ensure_app_directories(config: dict):
    """Creates parent directories for the files the application writes."""
    logger.debug("Ensuring application directories exist...")
    paths_to_ensure = [
        (config.get('event_log') or {}).get('path'),
        (config.get('logging') or {}).get('log_file'),
    ]
    for file_path in paths_to_ensure:
        if file_path:
            target_dir = Path(file_path).parent
            try:
                target_dir.mkdir(parents=True, exist_ok=True)
                logger.debug(f"Ensured directory exists: {target_dir}")
            except OSError as e:
                logger.error(f"Failed to create directory {target_dir}: {e}", exc_info=True)
