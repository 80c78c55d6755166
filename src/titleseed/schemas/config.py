"""
Defines structured configuration models using dataclasses.
"""

from dataclasses import dataclass, field


@dataclass
class SessionConfig:
    """Configuration for HTTP session behavior.

    Attributes:
        timeout: Request timeout in seconds.
        max_connections: Maximum number of concurrent connections per host.
        user_agent: Custom User-Agent string.
        headers: Headers attached to every request; replaces the defaults.
        verify_ssl: Whether to verify SSL certificates.
        http2: Whether HTTP/2 should be used. (`httpx`)
        trust_env: Whether environment variables are used for proxies.
        proxy: Proxy server URL.
        proxy_user: Proxy authentication username.
        proxy_pass: Proxy authentication password.
    """

    timeout: float = 10.0
    max_connections: int = 10
    user_agent: str | None = None
    headers: dict[str, str] | None = None
    verify_ssl: bool = True
    http2: bool = True
    trust_env: bool = False
    proxy: str | None = None
    proxy_user: str | None = None
    proxy_pass: str | None = None


@dataclass
class AdminClientConfig:
    """Configuration for the Admin API client.

    Attributes:
        title_id: Title the client provisions.
        api_base: Override of the API root; defaults to the title's own host.
        backend: HTTP backend name (aiohttp, httpx).
        max_rps: Overall requests-per-second ceiling; 0 disables it.
        session_cfg: HTTP session configuration.
    """

    title_id: str
    api_base: str | None = None
    backend: str = "aiohttp"
    max_rps: float = 0.0
    session_cfg: SessionConfig = field(default_factory=SessionConfig)


@dataclass
class ThrottleConfig:
    """Spacing applied by the pipeline.

    Attributes:
        subtask_interval: Seconds between dispatches within a fan-out stage.
        stage_settle_delay: Seconds between a stage completing and the next
            stage dispatching.
    """

    subtask_interval: float = 0.5
    stage_settle_delay: float = 0.5


@dataclass
class PipelineConfig:
    """Configuration for a provisioning run.

    Attributes:
        catalog_version: Catalog version the content is written to.
        publish: Whether the catalog is set as default and the script published.
        item_timeout: Per-call timeout in seconds; None waits indefinitely.
        lookahead_bias: Added to the progress fraction so the bar never
            starts empty.
        throttle: Spacing configuration.
    """

    catalog_version: str = "Main"
    publish: bool = True
    item_timeout: float | None = None
    lookahead_bias: float = 0.1
    throttle: ThrottleConfig = field(default_factory=ThrottleConfig)
