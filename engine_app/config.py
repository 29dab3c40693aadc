"""Configuration helpers for the wardrobe engine."""

from dataclasses import dataclass
from pathlib import Path
import os
from typing import Optional

DEFAULT_GEMINI_MODEL = "models/gemini-1.5-flash-002"
DEFAULT_HISTORY_LIMIT = 100


@dataclass
class EngineConfig:
    """Configuration values for the wardrobe engine.

    Defaults keep a local run fully offline: without an API key every generative
    collaborator reports itself unavailable and the deterministic engine takes
    over.
    """

    state_db_path: str = "data/wardrobe_state.db"
    model: str = DEFAULT_GEMINI_MODEL
    api_key: Optional[str] = None
    history_limit: int = DEFAULT_HISTORY_LIMIT
    default_top_k: int = 3
    thumbnail_size: int = 96
    max_image_dimension: int = 512
    jpeg_quality: int = 70
    embedding_bins: int = 8
    environment: str | None = None

    @classmethod
    def from_env(cls) -> "EngineConfig":
        """Build a config from environment variables or an environment YAML file.

        Environment specific YAML lives in ``config/environments/<env>.yaml`` by
        default and is merged with environment variables so that secrets such as
        the Gemini API key can be injected by the runtime environment.
        """

        env_name = os.getenv("APP_ENV")
        config_path = os.getenv("APP_CONFIG_PATH")
        config_dir = Path(os.getenv("ENGINE_CONFIG_DIR", "config/environments"))
        yaml_config: dict = {}

        if config_path:
            path = Path(config_path)
        elif env_name:
            path = config_dir / f"{env_name}.yaml"
        else:
            path = None

        if path and path.exists():
            yaml_config = cls._load_yaml_config(path)

        def get_value(key: str, default: Optional[str] = None) -> Optional[str]:
            env_key = key.upper()
            return os.getenv(env_key, yaml_config.get(key, default))

        def get_int(key: str, default: int) -> int:
            raw = get_value(key)
            if raw in (None, ""):
                return default
            try:
                return int(raw)
            except ValueError as exc:
                raise ValueError(f"Config value '{key}' must be an integer, got {raw!r}") from exc

        return cls(
            state_db_path=str(get_value("state_db_path", "data/wardrobe_state.db")),
            model=str(get_value("model", DEFAULT_GEMINI_MODEL) or DEFAULT_GEMINI_MODEL),
            api_key=get_value("google_api_key") or None,
            history_limit=get_int("history_limit", DEFAULT_HISTORY_LIMIT),
            default_top_k=get_int("default_top_k", 3),
            thumbnail_size=get_int("thumbnail_size", 96),
            max_image_dimension=get_int("max_image_dimension", 512),
            jpeg_quality=get_int("jpeg_quality", 70),
            embedding_bins=get_int("embedding_bins", 8),
            environment=env_name,
        )

    @staticmethod
    def _load_yaml_config(path: Path) -> dict:
        """Parse a minimal YAML/INI-style config without external dependencies."""

        config: dict[str, str] = {}
        for line in path.read_text().splitlines():
            stripped = line.strip()
            if not stripped or stripped.startswith("#"):
                continue
            if ":" not in stripped:
                continue
            key, raw_value = stripped.split(":", 1)
            value = raw_value.strip()
            if (value.startswith("\"") and value.endswith("\"")) or (
                value.startswith("'") and value.endswith("'")
            ):
                value = value[1:-1]
            config[key.strip()] = value
        return config
