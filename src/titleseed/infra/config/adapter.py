from __future__ import annotations

from pathlib import Path
from typing import Any

from titleseed.schemas import (
    AdminClientConfig,
    PipelineConfig,
    SessionConfig,
    ThrottleConfig,
)


class ConfigAdapter:
    """High-level accessor for general and title-specific configuration.

    All configuration resolution follows the order:

    **general -> title-specific -> built-in defaults**

    A title-specific block lives under ``titles.<title_id>`` and overrides any
    key of the ``general`` block.

    Args:
        config (dict[str, Any]): Fully loaded configuration mapping containing
            a ``general`` block and optionally a ``titles`` block.
    """

    def __init__(self, config: dict[str, Any]) -> None:
        self._config: dict[str, Any] = dict(config)

    def get_config(self) -> dict[str, Any]:
        """Return the full raw configuration mapping."""
        return self._config

    def get_session_config(self, title: str) -> SessionConfig:
        """Build a SessionConfig by merging general and title overrides.

        Args:
            title (str): Target title id.

        Returns:
            SessionConfig: Resolved session configuration.
        """
        cfg = self._merged(title)

        return SessionConfig(
            timeout=float(cfg.get("timeout", 10.0)),
            max_connections=int(cfg.get("max_connections", 10)),
            user_agent=cfg.get("user_agent"),
            headers=cfg.get("headers"),
            verify_ssl=bool(cfg.get("verify_ssl", True)),
            http2=bool(cfg.get("http2", True)),
            trust_env=bool(cfg.get("trust_env", False)),
            proxy=cfg.get("proxy"),
            proxy_user=cfg.get("proxy_user"),
            proxy_pass=cfg.get("proxy_pass"),
        )

    def get_admin_config(self, title: str) -> AdminClientConfig:
        """Build an AdminClientConfig for the given title.

        Args:
            title (str): Target title id.

        Returns:
            AdminClientConfig: Resolved client configuration.
        """
        cfg = self._merged(title)

        return AdminClientConfig(
            title_id=title,
            api_base=cfg.get("api_base") or None,
            backend=cfg.get("backend", "aiohttp"),
            max_rps=float(cfg.get("max_rps", 0.0)),
            session_cfg=self.get_session_config(title),
        )

    def get_throttle_config(self, title: str) -> ThrottleConfig:
        """Build a ThrottleConfig from the ``pipeline`` blocks.

        Args:
            title (str): Target title id.

        Returns:
            ThrottleConfig: Resolved spacing configuration.
        """
        cfg = self._pipeline_cfg(title)

        return ThrottleConfig(
            subtask_interval=float(cfg.get("subtask_interval", 0.5)),
            stage_settle_delay=float(cfg.get("stage_settle_delay", 0.5)),
        )

    def get_pipeline_config(self, title: str) -> PipelineConfig:
        """Build a PipelineConfig from the ``pipeline`` blocks.

        An ``item_timeout`` of 0 or less is treated as "no timeout".

        Args:
            title (str): Target title id.

        Returns:
            PipelineConfig: Resolved pipeline configuration.
        """
        cfg = self._pipeline_cfg(title)

        item_timeout = cfg.get("item_timeout")
        if item_timeout is not None:
            item_timeout = float(item_timeout)
            if item_timeout <= 0:
                item_timeout = None

        return PipelineConfig(
            catalog_version=str(cfg.get("catalog_version", "Main")),
            publish=bool(cfg.get("publish", True)),
            item_timeout=item_timeout,
            lookahead_bias=float(cfg.get("lookahead_bias", 0.1)),
            throttle=self.get_throttle_config(title),
        )

    def get_secret_key(self, title: str) -> str:
        """Return the configured secret key for a title, or an empty string.

        Args:
            title (str): Target title id.

        Returns:
            str: Stripped secret key.
        """
        val = self._title_cfg(title).get("secret_key", "")
        return val.strip() if isinstance(val, str) else ""

    def get_seed_dir(self) -> Path | None:
        """Return the directory holding seed JSON files, if configured.

        Returns:
            Path | None: Absolute seed directory, or None for bundled seed data.
        """
        seed_dir = self._gen_cfg().get("seed_dir")
        if not seed_dir:
            return None
        return Path(seed_dir).expanduser().resolve()

    def get_log_level(self) -> str:
        """Return the configured logging level, ``"INFO"`` if missing."""
        debug_cfg = self._gen_cfg().get("debug") or {}
        return debug_cfg.get("log_level") or "INFO"

    def get_log_dir(self) -> Path:
        """Return directory for log files.

        Returns:
            Path: Absolute log directory path.
        """
        debug_cfg = self._gen_cfg().get("debug") or {}
        log_dir = debug_cfg.get("log_dir") or "./logs"
        return Path(log_dir).expanduser().resolve()

    def _merged(self, title: str) -> dict[str, Any]:
        return {**self._gen_cfg(), **self._title_cfg(title)}

    def _pipeline_cfg(self, title: str) -> dict[str, Any]:
        general = self._gen_cfg().get("pipeline") or {}
        specific = self._title_cfg(title).get("pipeline") or {}
        return {**general, **specific}

    def _gen_cfg(self) -> dict[str, Any]:
        """Return general configuration mapping.

        Returns:
            dict[str, Any]: ``general`` config or empty dict.
        """
        general = self._config.get("general")
        return general if isinstance(general, dict) else {}

    def _title_cfg(self, title: str) -> dict[str, Any]:
        """Return configuration block for the given title.

        Args:
            title (str): Title id.

        Returns:
            dict[str, Any]: Title configuration or empty dict.
        """
        titles_cfg = self._config.get("titles") or {}
        value = titles_cfg.get(title)
        return value if isinstance(value, dict) else {}
