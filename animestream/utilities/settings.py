import os
import json
import logging
from urllib.parse import urlparse
from animestream.utilities.settings_schema import SETTINGS_SCHEMA

def get_config_dir():
    """Dynamically gets the configuration directory from environment variable."""
    return os.environ.get('USER_CONFIG', '/user/config')

def get_config_file_path():
    return os.path.join(get_config_dir(), 'config.json')

def _read_json(path):
    with open(path, 'r', encoding='utf-8') as config_file:
        return json.load(config_file)

def load_config():
    config_file_path = get_config_file_path()
    if not os.path.exists(config_file_path):
        logging.debug(f"load_config: Config file not found at {config_file_path}. Using defaults.")
        return {}

    try:
        config = _read_json(config_file_path)
    except json.JSONDecodeError as e:
        logging.error(f"Error decoding JSON from {config_file_path}: {str(e)}. Checking backup.")
        backup_file = config_file_path + '.backup'
        if os.path.exists(backup_file):
            try:
                config = _read_json(backup_file)
                logging.info(f"Successfully loaded config from backup: {backup_file}")
                return config if isinstance(config, dict) else {}
            except (OSError, json.JSONDecodeError) as e_backup:
                logging.error(f"Failed to load backup {backup_file}: {str(e_backup)}")
        logging.warning("load_config: Backup failed or non-existent. Using defaults.")
        return {}
    except OSError as e_read:
        logging.error(f"Error reading config file {config_file_path}: {str(e_read)}")
        return {}

    if not isinstance(config, dict):
        logging.warning(f"load_config: {config_file_path} does not hold an object. Using defaults.")
        return {}
    return config

def save_config(config):
    config_file_path = get_config_file_path()
    os.makedirs(os.path.dirname(config_file_path), exist_ok=True)
    with open(config_file_path, 'w', encoding='utf-8') as config_file:
        json.dump(config, config_file, indent=2)
    logging.debug(f"save_config: Successfully saved config to {config_file_path}")

def parse_bool(value):
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.lower() in ('true', 'yes', '1', 'on')
    return bool(value)

def validate_url(url):
    if not url or not isinstance(url, str):
        return ''
    if not url.startswith(('http://', 'https://')):
        url = f'http://{url}'
    result = urlparse(url)
    if all([result.scheme, result.netloc]):
        return url.rstrip('/')
    logging.warning(f"Invalid URL structure (scheme or netloc missing): {url}")
    return ''

def get_schema_default(section, key):
    item = SETTINGS_SCHEMA.get(section, {}).get(key)
    if isinstance(item, dict):
        return item.get('default')
    return None

def get_setting(section, key=None, default=None):
    config = load_config()

    if key is None:
        return config.get(section, {})

    if default is None:
        default = get_schema_default(section, key)

    section_data = config.get(section, {})
    if not isinstance(section_data, dict):
        logging.warning(f"get_setting: section '{section}' is not a dictionary. Using defaults.")
        section_data = {}
    value = section_data.get(key, default)

    if isinstance(value, str) and value.lower() in ('true', 'false'):
        return parse_bool(value)

    if isinstance(key, str) and key.lower().endswith('url'):
        return validate_url(value)

    return value

def set_setting(section, key, value):
    config = load_config()
    config.setdefault(section, {})[key] = value
    save_config(config)

def get_int_setting(section, key, default=None):
    """Numeric settings may be stored as strings by hand-edited configs."""
    value = get_setting(section, key, default)
    try:
        return int(value)
    except (TypeError, ValueError):
        fallback = default if default is not None else get_schema_default(section, key)
        logging.warning(f"Invalid integer for {section}.{key}: {value!r}. Using {fallback}.")
        return fallback

def get_float_setting(section, key, default=None):
    value = get_setting(section, key, default)
    try:
        return float(value)
    except (TypeError, ValueError):
        fallback = default if default is not None else get_schema_default(section, key)
        logging.warning(f"Invalid number for {section}.{key}: {value!r}. Using {fallback}.")
        return fallback
