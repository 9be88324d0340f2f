"""
Configuration Loader.

Responsible for reading the YAML configuration file and turning its
`mqtt:` and `broker:` sections into typed configuration objects.
Callbacks and error handlers are supplied in code, never in YAML.
"""
import yaml
import logging
from pathlib import Path
from typing import Any, Callable, Dict, Mapping, Optional, Union

from mqtt_facade.client.config import ConnectionConfig
from mqtt_facade.errors import ConfigurationError
from mqtt_facade.server.config import AdmissionConfig, ServerConfig

logger = logging.getLogger(__name__)


def _number(section: Mapping[str, Any], key: str, default: Any, convert: Callable[[Any], Any]) -> Any:
    value = section.get(key, default)
    try:
        return convert(value)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Invalid value for '{key}': {value!r}") from e


def load_config(config_path: Union[str, Path] = "config.yaml") -> Dict[str, Any]:
    """
    Loads the YAML configuration file.
    """
    path = Path(config_path)
    if not path.exists():
        logger.warning(f"Config file not found at {path}. Using defaults.")
        return {}

    try:
        with open(path, 'r') as f:
            config = yaml.safe_load(f) or {}
            logger.info(f"Loaded configuration from {path}")
    except yaml.YAMLError as e:
        logger.error(f"Failed to parse config file: {e}")
        raise
    if not isinstance(config, dict):
        raise ConfigurationError(f"Config file {path} must contain a mapping at the top level")
    return config


def client_config_from_dict(config: Mapping[str, Any], **callbacks: Any) -> ConnectionConfig:
    """
    Builds a `ConnectionConfig` from the `mqtt:` section of a loaded config.
    `callbacks` may carry `error_handler` and `message_received_callback`.
    """
    mqtt_conf = config.get('mqtt', {}) or {}
    return ConnectionConfig(
        server_address=mqtt_conf.get('host', '127.0.0.1'),
        port=_number(mqtt_conf, 'port', 1883, int),
        username=mqtt_conf.get('username'),
        password=mqtt_conf.get('password'),
        client_id=mqtt_conf.get('client_id'),
        reconnect_interval_seconds=_number(mqtt_conf, 'reconnect_interval', 5, float),
        protocol_version=_number(mqtt_conf, 'protocol_version', 4, int),
        keepalive=_number(mqtt_conf, 'keepalive', 60, int),
        **callbacks,
    )


def _admission_from_dict(admission_conf: Optional[Mapping[str, Any]]) -> Optional[AdmissionConfig]:
    if not admission_conf:
        return None
    return AdmissionConfig(
        client_ids=admission_conf.get('client_ids') or (),
        usernames=admission_conf.get('usernames') or (),
        passwords=admission_conf.get('passwords') or (),
        port=_number(admission_conf, 'port', 0, int),
    )


def server_config_from_dict(config: Mapping[str, Any], **callbacks: Any) -> ServerConfig:
    """
    Builds a `ServerConfig` from the `broker:` section of a loaded config.
    `callbacks` may carry the `on_*` event sinks and `error_handler`.
    """
    broker_conf = config.get('broker', {}) or {}
    return ServerConfig(
        admission=_admission_from_dict(broker_conf.get('admission')),
        host=broker_conf.get('host', '0.0.0.0'),
        port=_number(broker_conf, 'port', 1883, int),
        **callbacks,
    )
