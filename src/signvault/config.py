"""
Configuration Management for signvault
======================================

Vault configuration is split into focused sub-configurations:

- StorageConfig: which backend stores artifacts and how to reach it
- SecurityConfig: where the signing secret comes from
- VaultConfig: format, extension and the two sub-configurations
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Union

from .error_handling import VaultConfigurationError
from .security import load_secret

logger = logging.getLogger(__name__)

DEFAULT_EXTENSIONS = {"json": "json", "binary": "bin"}


@dataclass
class StorageConfig:
    """Configuration for the storage backend."""

    backend: str = "filesystem"  # "filesystem", "memory", "http", "s3" or registered
    base_dir: str = "./vault"
    atomic_writes: bool = True

    # HTTP backend
    base_url: Optional[str] = None
    get_url: Optional[str] = None
    post_url: Optional[str] = None
    timeout: float = 30.0

    # S3 backend
    bucket: Optional[str] = None
    prefix: str = ""
    region: str = "us-east-1"
    endpoint_url: Optional[str] = None

    def __post_init__(self):
        """Validate storage configuration."""
        if not self.backend:
            raise ValueError("backend must not be empty")

        if self.timeout is not None and self.timeout <= 0:
            raise ValueError("timeout must be positive")

        if self.backend == "http" and not (
            self.base_url or (self.get_url and self.post_url)
        ):
            raise ValueError("http backend requires base_url or get_url and post_url")

        if self.backend == "s3" and not self.bucket:
            raise ValueError("s3 backend requires bucket")

        logger.debug(f"Storage configured: backend={self.backend}")

    def backend_options(self) -> Dict[str, Any]:
        """Keyword arguments for the configured backend class."""
        if self.backend == "filesystem":
            return {"base_dir": self.base_dir, "atomic": self.atomic_writes}
        if self.backend == "http":
            return {
                "base_url": self.base_url,
                "get_url": self.get_url,
                "post_url": self.post_url,
                "timeout": self.timeout,
            }
        if self.backend == "s3":
            return {
                "bucket": self.bucket,
                "prefix": self.prefix,
                "region": self.region,
                "endpoint_url": self.endpoint_url,
            }
        return {}


@dataclass
class SecurityConfig:
    """Configuration for document signing."""

    secret: Optional[Union[str, bytes]] = field(default=None, repr=False)
    secret_file: Optional[str] = None
    secret_env_var: str = "SIGNVAULT_SECRET"
    strict_canonical: bool = True

    def __post_init__(self):
        """Validate security configuration."""
        if self.secret is not None and not self.secret:
            raise ValueError("secret must not be empty")

        if self.secret is not None and self.secret_file is not None:
            raise ValueError("Specify either secret or secret_file, not both")

        logger.debug(
            f"Security configured: secret_source={self.secret_source()}, "
            f"strict_canonical={self.strict_canonical}"
        )

    def secret_source(self) -> str:
        if self.secret is not None:
            return "explicit"
        if self.secret_file is not None:
            return "file"
        return f"env:{self.secret_env_var}"

    def resolve_secret(self) -> Union[str, bytes]:
        """
        Resolve the signing secret.

        Order: explicit secret, key file, environment variable.

        Raises:
            VaultConfigurationError: If no secret can be found
        """
        if self.secret is not None:
            return self.secret
        if self.secret_file is not None:
            return load_secret(Path(self.secret_file))

        value = os.environ.get(self.secret_env_var)
        if value:
            return value

        raise VaultConfigurationError(
            "No signing secret configured",
            {"secret_env_var": self.secret_env_var},
        )


@dataclass
class VaultConfig:
    """Main configuration class that combines all sub-configurations."""

    storage: StorageConfig = field(default_factory=StorageConfig)
    security: SecurityConfig = field(default_factory=SecurityConfig)
    format: str = "json"  # "json" (signed) or "binary"
    extension: Optional[str] = None
    compression_codec: str = "zstd"
    compression_level: int = 5

    def __post_init__(self):
        """Validate overall configuration consistency."""
        if self.format not in DEFAULT_EXTENSIONS:
            raise ValueError(
                f"Invalid format: {self.format}. Valid: {sorted(DEFAULT_EXTENSIONS)}"
            )

        if self.extension is None:
            self.extension = DEFAULT_EXTENSIONS[self.format]
        self.extension = self.extension.lstrip(".")
        if not self.extension:
            raise ValueError("extension must not be empty")

        if not (0 <= self.compression_level <= 9):
            raise ValueError("compression_level must be between 0 and 9")

        logger.debug(
            f"Vault configured: format={self.format}, extension={self.extension}, "
            f"backend={self.storage.backend}"
        )


def create_vault_config(
    base_dir: Optional[Union[str, Path]] = None,
    url: Optional[str] = None,
    secret: Optional[Union[str, bytes]] = None,
    format: str = "json",
    **overrides,
) -> VaultConfig:
    """
    Factory function for creating configurations with convenience parameters.

    Args:
        base_dir: Directory for filesystem storage
        url: Base URL for HTTP storage (selects the http backend)
        secret: Signing secret
        format: "json" or "binary"
        **overrides: Direct override values for any sub-configuration field

    Returns:
        Configured VaultConfig instance
    """
    if base_dir is not None and url is not None:
        raise ValueError("Cannot use both base_dir and url")

    storage_kwargs: Dict[str, Any] = {}
    security_kwargs: Dict[str, Any] = {}
    vault_kwargs: Dict[str, Any] = {"format": format}

    if base_dir is not None:
        storage_kwargs.update(backend="filesystem", base_dir=str(base_dir))
    if url is not None:
        storage_kwargs.update(backend="http", base_url=url)
    if secret is not None:
        security_kwargs["secret"] = secret

    storage_fields = StorageConfig.__dataclass_fields__
    security_fields = SecurityConfig.__dataclass_fields__
    vault_fields = VaultConfig.__dataclass_fields__

    for key, value in overrides.items():
        if key in storage_fields:
            storage_kwargs[key] = value
        elif key in security_fields:
            security_kwargs[key] = value
        elif key in vault_fields and key not in ("storage", "security"):
            vault_kwargs[key] = value
        else:
            logger.warning(f"Unknown configuration parameter ignored: {key}")

    return VaultConfig(
        storage=StorageConfig(**storage_kwargs),
        security=SecurityConfig(**security_kwargs),
        **vault_kwargs,
    )
