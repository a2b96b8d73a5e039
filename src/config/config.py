"""Bridge configuration from defaults, environment and stored settings.

Precedence (highest first):
- Explicit stored settings passed by the host (``settings=`` mapping)
- The ``bridge:`` section of a YAML settings file
- Environment variables (KAFKA_BROKERS, S3_ENDPOINT, ...)
- Built-in defaults

Environment variables ARE supported inside the YAML file using ${VAR_NAME}
and ${VAR_NAME:-default} syntax. Empty values never override a lower layer.
"""

import json
import logging
import os
import re
import sys
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional
from urllib.parse import urlparse

import yaml

logger = logging.getLogger(__name__)


def load_yaml(path: Path) -> Dict[str, Any]:
    """Load YAML file and return dict."""
    if not path.exists():
        return {}
    with open(path, "r") as f:
        return yaml.safe_load(f) or {}


def _expand_env_vars(data: Any) -> Any:
    """Recursively expand ${VAR_NAME} and ${VAR_NAME:-default} environment variables in config data."""
    if isinstance(data, dict):
        return {key: _expand_env_vars(value) for key, value in data.items()}
    elif isinstance(data, list):
        return [_expand_env_vars(item) for item in data]
    elif isinstance(data, str):
        pattern = r"\$\{([^}:]+)(?::-(([^}]*))?)?\}"

        def replacer(match):
            var_name = match.group(1)
            default_value = match.group(2) if match.group(2) is not None else match.group(0)
            return os.getenv(var_name, default_value)

        return re.sub(pattern, replacer, data)
    else:
        return data


# Optional settings file: src/config/config.yaml (see config.yaml.example)
DEFAULT_CONFIG_FILE = Path(__file__).parent / "config.yaml"

# Field name -> environment variable
FIELD_ENV_VARS: Dict[str, str] = {
    "client_id": "KAFKA_CLIENT_ID",
    "bootstrap_servers": "KAFKA_BROKERS",
    "posts_topic": "KAFKA_POSTS_TOPIC",
    "images_topic": "KAFKA_IMAGES_TOPIC",
    "security_protocol": "KAFKA_SECURITY_PROTOCOL",
    "sasl_mechanism": "KAFKA_SASL_MECHANISM",
    "sasl_plain_username": "KAFKA_SASL_USERNAME",
    "sasl_plain_password": "KAFKA_SASL_PASSWORD",
    "request_timeout_ms": "KAFKA_REQUEST_TIMEOUT_MS",
    "s3_endpoint": "S3_ENDPOINT",
    "s3_public_endpoint": "S3_PUBLIC_ENDPOINT",
    "s3_access_key_id": "S3_ACCESS_KEY_ID",
    "s3_secret_access_key": "S3_SECRET_ACCESS_KEY",
    "s3_bucket": "S3_BUCKET",
    "s3_region": "S3_REGION",
    "publish_timeout_seconds": "PUBLISH_TIMEOUT_SECONDS",
    "upload_timeout_seconds": "UPLOAD_TIMEOUT_SECONDS",
}

SECRET_FIELDS = frozenset({"sasl_plain_password", "s3_secret_access_key"})

VALID_SECURITY_PROTOCOLS = ["PLAINTEXT", "SSL", "SASL_PLAINTEXT", "SASL_SSL"]
VALID_SASL_MECHANISMS = ["PLAIN", "SCRAM-SHA-256", "SCRAM-SHA-512"]

_BROKER_PATTERN = re.compile(r"^(?P<host>[A-Za-z0-9._-]+|\[[0-9A-Fa-f:]+\]):(?P<port>\d+)$")
_TOPIC_PATTERN = re.compile(r"^[A-Za-z0-9._-]{1,249}$")
_BUCKET_PATTERN = re.compile(r"^[a-z0-9][a-z0-9.-]{1,61}[a-z0-9]$")


@dataclass(frozen=True)
class BridgeConfig:
    """Forum bridge configuration.

    Frozen after load: the broker producer and the object-store client are
    built from one instance, and a settings change means building a new
    bridge rather than mutating this one.

    All Kafka timing values in milliseconds; bridge timeouts in seconds.
    """

    # =========================================================================
    # KAFKA
    # =========================================================================
    client_id: str = "forum-bridge"
    bootstrap_servers: str = "localhost:9092"
    posts_topic: str = "nodebb-posts"
    images_topic: str = "nodebb-images"
    security_protocol: str = "PLAINTEXT"
    sasl_mechanism: str = "PLAIN"
    sasl_plain_username: str = ""
    sasl_plain_password: str = ""
    request_timeout_ms: int = 30000

    # =========================================================================
    # OBJECT STORE (S3-compatible)
    # =========================================================================
    s3_endpoint: str = "http://localhost:9000"
    s3_public_endpoint: str = ""  # Falls back to s3_endpoint
    s3_access_key_id: str = ""
    s3_secret_access_key: str = ""
    s3_bucket: str = "forum-uploads"
    s3_region: str = "us-east-1"

    # =========================================================================
    # TIMEOUTS
    # =========================================================================
    publish_timeout_seconds: float = 10.0
    upload_timeout_seconds: float = 30.0

    @property
    def broker_list(self) -> List[str]:
        return [b.strip() for b in self.bootstrap_servers.split(",") if b.strip()]

    @property
    def public_endpoint(self) -> str:
        """Externally reachable base URL that image URLs are built from."""
        return (self.s3_public_endpoint or self.s3_endpoint).rstrip("/")

    def to_safe_dict(self) -> Dict[str, Any]:
        """Config as a dict with secrets masked, for display."""
        data = asdict(self)
        for key in SECRET_FIELDS:
            if data.get(key):
                data[key] = "********"
        return data

    def validate(self) -> None:
        """Validate configuration for correctness and constraints.

        Raises:
            ValueError: On the first malformed setting found
        """
        if not self.client_id.strip():
            raise ValueError("client_id is required")

        brokers = self.broker_list
        if not brokers:
            raise ValueError("bootstrap_servers is required (comma-separated host:port list)")
        for broker in brokers:
            self._validate_broker(broker)

        for key in ("posts_topic", "images_topic"):
            value = getattr(self, key)
            if not _TOPIC_PATTERN.match(value):
                raise ValueError(
                    f"{key} must be 1-249 characters of [A-Za-z0-9._-], got '{value}'"
                )

        self._validate_enum("security_protocol", VALID_SECURITY_PROTOCOLS)
        if self.security_protocol.startswith("SASL_"):
            self._validate_enum("sasl_mechanism", VALID_SASL_MECHANISMS)
            if not self.sasl_plain_username or not self.sasl_plain_password:
                raise ValueError(
                    f"sasl_plain_username and sasl_plain_password are required "
                    f"when security_protocol is {self.security_protocol}"
                )

        self._validate_url("s3_endpoint", self.s3_endpoint)
        if self.s3_public_endpoint:
            self._validate_url("s3_public_endpoint", self.s3_public_endpoint)

        if not _BUCKET_PATTERN.match(self.s3_bucket) or ".." in self.s3_bucket:
            raise ValueError(
                f"s3_bucket must be a valid bucket name (3-63 chars, lowercase letters, "
                f"digits, dots, hyphens), got '{self.s3_bucket}'"
            )

        if not self.s3_region.strip():
            raise ValueError("s3_region is required")

        for key in ("request_timeout_ms", "publish_timeout_seconds", "upload_timeout_seconds"):
            if getattr(self, key) <= 0:
                raise ValueError(f"{key} must be > 0, got {getattr(self, key)}")

    def _validate_enum(self, key: str, valid_values: List[str]) -> None:
        value = getattr(self, key)
        if value not in valid_values:
            raise ValueError(f"{key} must be one of {valid_values}, got '{value}'")

    @staticmethod
    def _validate_broker(broker: str) -> None:
        match = _BROKER_PATTERN.match(broker)
        if not match:
            raise ValueError(f"bootstrap_servers entry must be host:port, got '{broker}'")
        port = int(match.group("port"))
        if not 1 <= port <= 65535:
            raise ValueError(f"bootstrap_servers entry has invalid port {port}: '{broker}'")

    @staticmethod
    def _validate_url(key: str, value: str) -> None:
        parsed = urlparse(value)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError(f"{key} must be an http(s):// URL, got '{value}'")
        try:
            parsed.port
        except ValueError as e:
            raise ValueError(f"{key} has an invalid port: '{value}'") from e


_FIELD_TYPES = {f.name: f.type for f in fields(BridgeConfig)}


# A ${VAR} left in place because VAR is unset and has no default
_UNEXPANDED_PLACEHOLDER = re.compile(r"^\$\{[^}]+\}$")


def _is_unset(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        stripped = value.strip()
        return not stripped or bool(_UNEXPANDED_PLACEHOLDER.match(stripped))
    return False


def _coerce(key: str, value: Any) -> Any:
    """Coerce a raw env/YAML/settings value to the field's declared type."""
    expected = _FIELD_TYPES[key]
    if key == "bootstrap_servers" and isinstance(value, (list, tuple)):
        return ",".join(str(v).strip() for v in value)
    try:
        if expected is int:
            return int(value)
        if expected is float:
            return float(value)
    except (TypeError, ValueError) as e:
        raise ValueError(f"{key} must be a {expected.__name__}, got '{value}'") from e
    return str(value).strip()


def _apply_layer(
    values: Dict[str, Any],
    layer: Mapping[str, Any],
    source: str,
) -> None:
    for key, value in layer.items():
        if key not in _FIELD_TYPES:
            logger.warning(f"Ignoring unknown setting '{key}' from {source}")
            continue
        if _is_unset(value):
            continue
        values[key] = _coerce(key, value)


def _env_layer(environ: Mapping[str, str]) -> Dict[str, Any]:
    return {
        field_name: environ.get(env_var)
        for field_name, env_var in FIELD_ENV_VARS.items()
        if env_var in environ
    }


def _file_layer(config_path: Optional[Path]) -> Dict[str, Any]:
    if config_path is None:
        config_path = DEFAULT_CONFIG_FILE
        if not config_path.exists():
            return {}
    elif not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    logger.info(f"Loading settings from file: {config_path}")
    yaml_data = _expand_env_vars(load_yaml(config_path))
    if not yaml_data:
        return {}

    if "bridge" not in yaml_data:
        raise ValueError(
            "Invalid config file: missing 'bridge:' section\n"
            "See config.yaml.example for correct structure"
        )
    return yaml_data["bridge"] or {}


def load_config(
    config_path: Optional[Path] = None,
    settings: Optional[Mapping[str, Any]] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> BridgeConfig:
    """Load and validate bridge configuration.

    Args:
        config_path: YAML settings file. When omitted, src/config/config.yaml
            is used if it exists.
        settings: Stored settings from the host; highest precedence.
        environ: Environment mapping (defaults to os.environ)

    Raises:
        FileNotFoundError: If an explicit config_path does not exist
        ValueError: If any setting is malformed
    """
    environ = os.environ if environ is None else environ

    values: Dict[str, Any] = {}
    _apply_layer(values, _env_layer(environ), "environment")
    _apply_layer(values, _file_layer(config_path), "settings file")
    if settings:
        _apply_layer(values, settings, "stored settings")

    config = BridgeConfig(**values)

    logger.debug("Configuration loaded:")
    logger.debug(f"  - Bootstrap servers: {config.bootstrap_servers}")
    logger.debug(f"  - Topics: posts={config.posts_topic}, images={config.images_topic}")
    logger.debug(f"  - Object store: {config.s3_endpoint} bucket={config.s3_bucket}")

    config.validate()
    logger.debug("Configuration validation passed")

    return config


def _build_cli_parser():
    import argparse

    parser = argparse.ArgumentParser(
        description="Forum Bridge Configuration Tool",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Validate configuration
  python -m config.config --validate

  # Show merged configuration (secrets masked)
  python -m config.config --show-merged

  # Use a settings file
  python -m config.config --config /path/to/config.yaml --validate

  # JSON output for automation
  python -m config.config --validate --json
        """,
    )
    parser.add_argument(
        "--validate",
        action="store_true",
        help="Validate configuration",
    )
    parser.add_argument(
        "--show-merged",
        action="store_true",
        help="Display merged configuration as YAML",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="Path to settings YAML file (default: src/config/config.yaml if present)",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Output in JSON format instead of human-readable",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable debug logging",
    )
    return parser


def _build_validation_output(config: BridgeConfig, as_json: bool) -> Any:
    if as_json:
        return {"passed": True, "errors": []}
    return "\n".join(
        [
            "✓ Configuration validation passed",
            f"  - Brokers: {', '.join(config.broker_list)}",
            f"  - Topics: {config.posts_topic}, {config.images_topic}",
            f"  - Bucket: {config.s3_bucket} @ {config.s3_endpoint}",
            f"  - Public endpoint: {config.public_endpoint}",
        ]
    )


def _build_merged_config_output(config: BridgeConfig, as_json: bool) -> Any:
    safe = config.to_safe_dict()
    if as_json:
        return safe
    return yaml.dump({"bridge": safe}, default_flow_style=False, sort_keys=False)


def _handle_cli_error(exc: Exception, as_json: bool) -> int:
    if isinstance(exc, FileNotFoundError):
        label = "Error"
    elif isinstance(exc, ValueError):
        label = "Validation error"
    else:
        label = "Unexpected error"

    if as_json:
        print(json.dumps({"error": f"{label}: {exc}"}))
    else:
        print(f"✗ {label}: {exc}", file=sys.stderr)
    return 1


def _cli_main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point for config validation and debugging."""
    parser = _build_cli_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s: %(message)s",
    )

    if not args.validate and not args.show_merged:
        parser.print_help()
        return 0

    try:
        config = load_config(config_path=args.config)
    except (FileNotFoundError, ValueError) as e:
        return _handle_cli_error(e, args.json)

    output: Dict[str, Any] = {}
    if args.validate:
        result = _build_validation_output(config, args.json)
        if args.json:
            output["validation"] = result
        else:
            print(result)

    if args.show_merged:
        merged = _build_merged_config_output(config, args.json)
        if args.json:
            output["merged_config"] = merged
        else:
            print("\nConfiguration:")
            print("=" * 80)
            print(merged)
            print("=" * 80)

    if args.json:
        print(json.dumps(output, indent=2))

    return 0


if __name__ == "__main__":
    sys.exit(_cli_main())
