"""
Backend configuration.

Validated once at construction. A missing or invalid setting raises
ConfigurationError immediately instead of surfacing mid-request.

Sources:
    BackendConfig.from_dict({...})
    BackendConfig.from_yaml("admin/config.yml")   # CMS config with a backend: block
    BackendConfig.from_env()                      # CMS_* environment variables
"""

import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Optional

import yaml

from cms.errors.exceptions import ConfigurationError
from cms.models.workflow import WorkflowStatus

EDITORIAL_WORKFLOW = "editorial_workflow"

# Maps env vars to config fields
ENV_KEYS = {
    "bucket": "CMS_S3_BUCKET",
    "region": "CMS_S3_REGION",
    "endpoint_url": "CMS_S3_ENDPOINT_URL",
    "use_workflow": "CMS_USE_WORKFLOW",
    "initial_status": "CMS_INITIAL_STATUS",
    "statuses": "CMS_STATUSES",
    "published_prefix": "CMS_PUBLISHED_PREFIX",
    "unpublished_prefix": "CMS_UNPUBLISHED_PREFIX",
    "media_prefix": "CMS_MEDIA_PREFIX",
    "max_concurrency": "CMS_MAX_CONCURRENCY",
    "page_size": "CMS_PAGE_SIZE",
    "max_listing_keys": "CMS_MAX_LISTING_KEYS",
    "url_expires_in": "CMS_URL_EXPIRES_IN",
    "public_base_url": "CMS_PUBLIC_BASE_URL",
    "user_pool_id": "CMS_USER_POOL_ID",
    "client_id": "CMS_CLIENT_ID",
    "identity_pool_id": "CMS_IDENTITY_POOL_ID",
}

_INT_FIELDS = {"max_concurrency", "page_size", "max_listing_keys", "url_expires_in"}


@dataclass(frozen=True)
class BackendConfig:
    """Settings for the object store backend."""

    bucket: str
    region: str = "us-east-1"
    endpoint_url: Optional[str] = None        # S3-compatible stores (MinIO, SeaweedFS)

    # Editorial workflow
    use_workflow: bool = False
    initial_status: WorkflowStatus = WorkflowStatus.DRAFT
    statuses: tuple = tuple(WorkflowStatus)

    # Key namespaces
    published_prefix: str = "published"
    unpublished_prefix: str = "unpublished"
    media_prefix: str = "media"

    # Store limits
    max_concurrency: int = 16                 # In-flight requests per fan-out
    page_size: int = 1000                     # Keys per list request (S3 max)
    max_listing_keys: int = 100_000           # Upper bound on a drained listing

    # Media URLs
    url_expires_in: int = 3600                # Presigned URL lifetime (seconds)
    public_base_url: Optional[str] = None     # Set for public buckets/CDNs

    # Identity
    user_pool_id: Optional[str] = None
    client_id: Optional[str] = None
    identity_pool_id: Optional[str] = None

    def __post_init__(self):
        if not self.bucket:
            raise ConfigurationError("Missing required setting 'bucket'")
        if not self.region:
            raise ConfigurationError("Missing required setting 'region'")

        statuses = tuple(_parse_status(s) for s in self.statuses)
        if not statuses:
            raise ConfigurationError("Missing required setting 'statuses'")
        initial = _parse_status(self.initial_status)
        if initial not in statuses:
            raise ConfigurationError(
                f"initial_status '{initial.value}' is not one of "
                f"{[s.value for s in statuses]}"
            )
        object.__setattr__(self, "statuses", statuses)
        object.__setattr__(self, "initial_status", initial)

        prefixes = (self.published_prefix, self.unpublished_prefix, self.media_prefix)
        for prefix in prefixes:
            if not prefix or "/" in prefix:
                raise ConfigurationError(
                    f"Namespace prefix '{prefix}' must be a single non-empty key segment"
                )
        if len(set(prefixes)) != len(prefixes):
            raise ConfigurationError(f"Namespace prefixes must be distinct, got {prefixes}")

        if self.max_concurrency < 1:
            raise ConfigurationError("max_concurrency must be at least 1")
        if not 1 <= self.page_size <= 1000:
            raise ConfigurationError("page_size must be between 1 and 1000")
        if self.max_listing_keys < self.page_size:
            raise ConfigurationError("max_listing_keys must be at least page_size")
        if self.url_expires_in < 1:
            raise ConfigurationError("url_expires_in must be positive")

    @property
    def has_identity_pool(self) -> bool:
        return bool(self.user_pool_id and self.client_id and self.identity_pool_id)

    # --- Loaders ---

    @classmethod
    def from_dict(cls, data: dict) -> "BackendConfig":
        """Build from a flat dict. Unknown keys are ignored."""
        known = {f.name for f in fields(cls)}
        kwargs = {k: v for k, v in data.items() if k in known and v is not None}

        if "bucket" not in kwargs:
            raise ConfigurationError("Missing required setting 'bucket'")
        if "use_workflow" in kwargs:
            kwargs["use_workflow"] = _parse_bool(kwargs["use_workflow"])
        if isinstance(kwargs.get("statuses"), str):
            kwargs["statuses"] = [s.strip() for s in kwargs["statuses"].split(",") if s.strip()]
        if "statuses" in kwargs:
            kwargs["statuses"] = tuple(kwargs["statuses"])
        for name in _INT_FIELDS & kwargs.keys():
            try:
                kwargs[name] = int(kwargs[name])
            except (TypeError, ValueError):
                raise ConfigurationError(f"Setting '{name}' must be an integer, got {kwargs[name]!r}")

        return cls(**kwargs)

    @classmethod
    def from_yaml(cls, path: str) -> "BackendConfig":
        """
        Load from a CMS config file:

            backend:
              name: s3
              bucket: my-site-content
              region: eu-west-1
            publish_mode: editorial_workflow
        """
        config_path = Path(path)
        if not config_path.exists():
            raise ConfigurationError(f"Config file not found: {path}")

        with open(config_path) as f:
            document = yaml.safe_load(f) or {}

        backend = document.get("backend")
        if not isinstance(backend, dict):
            raise ConfigurationError(f"Missing required setting 'backend' in {path}")

        data = dict(backend)
        data.pop("name", None)
        if "use_workflow" not in data:
            data["use_workflow"] = document.get("publish_mode") == EDITORIAL_WORKFLOW
        return cls.from_dict(data)

    @classmethod
    def from_env(cls, environ: Optional[dict] = None) -> "BackendConfig":
        """Load from CMS_* environment variables."""
        env = os.environ if environ is None else environ
        data = {}
        for name, env_var in ENV_KEYS.items():
            value = env.get(env_var, "")
            if value:
                data[name] = value
        if "region" not in data and env.get("AWS_REGION"):
            data["region"] = env["AWS_REGION"]
        return cls.from_dict(data)


def _parse_status(value) -> WorkflowStatus:
    try:
        return WorkflowStatus(value)
    except ValueError:
        raise ConfigurationError(
            f"Unknown workflow status '{value}'. "
            f"Known: {[s.value for s in WorkflowStatus]}"
        )


def _parse_bool(value) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("1", "true", "yes", "on", EDITORIAL_WORKFLOW)
