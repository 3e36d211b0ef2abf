from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml
from loguru import logger

DEFAULT_CONFIG_PATH = Path(__file__).resolve().parents[2] / "config" / "config.yaml"
DEFAULT_UPSTREAM_URL = "https://predict.app.landing.ai/inference/v1/predict"


@dataclass(frozen=True)
class Settings:
    upstream_url: str = DEFAULT_UPSTREAM_URL
    timeout_seconds: Optional[float] = 60.0
    log_level: str = "INFO"
    audit_file: Optional[str] = "logs/audit.log"
    log_rotation: str = "10 MB"
    progress_interval: float = 0.1
    version: str = "1.0.0"

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "Settings":
        upstream = raw.get("upstream") or {}
        logging_cfg = raw.get("logging") or {}
        orchestrator = raw.get("orchestrator") or {}
        service = raw.get("service") or {}
        defaults = cls()
        return cls(
            upstream_url=upstream.get("url", defaults.upstream_url),
            timeout_seconds=upstream.get("timeout_seconds", defaults.timeout_seconds),
            log_level=str(logging_cfg.get("level", defaults.log_level)).upper(),
            audit_file=logging_cfg.get("audit_file", defaults.audit_file),
            log_rotation=logging_cfg.get("rotation", defaults.log_rotation),
            progress_interval=float(
                orchestrator.get("progress_interval_seconds", defaults.progress_interval)
            ),
            version=str(service.get("version", defaults.version)),
        )


def load_settings(config_path: Union[str, Path, None] = None) -> Settings:
    path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH
    logger.info(f"Loading settings from: {path}")
    with open(path, "r", encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}
    return Settings.from_dict(raw)
