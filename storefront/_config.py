"""
Configuration — one immutable object handed to the composition root.

    config = (
        StorefrontConfig(base_url="https://api.example.com/api/")
        .with_timeout(seconds=15)
        .with_session(SessionPolicy().with_renewal(lead=timedelta(minutes=10)))
    )

    config = StorefrontConfig.from_env()
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field, replace

from storefront.checkout._policy import CheckoutPolicy
from storefront.session._policy import SessionPolicy

DEFAULT_BASE_URL = "http://localhost:3000/api/"


@dataclass(frozen=True, slots=True)
class StorefrontConfig:
    """
    Client configuration.

    Note: Immutable — each method returns a new config.
    """

    base_url: str = DEFAULT_BASE_URL
    timeout: float = 10.0
    storage_namespace: str = ""
    session: SessionPolicy = field(default_factory=SessionPolicy)
    checkout: CheckoutPolicy = field(default_factory=CheckoutPolicy)

    def __post_init__(self) -> None:
        # Relative paths ("auth/login") are resolved against the base URL
        if not self.base_url.endswith("/"):
            object.__setattr__(self, "base_url", self.base_url + "/")

    def with_base_url(self, base_url: str) -> StorefrontConfig:
        return replace(self, base_url=base_url)

    def with_timeout(self, *, seconds: float) -> StorefrontConfig:
        return replace(self, timeout=seconds)

    def with_namespace(self, namespace: str) -> StorefrontConfig:
        return replace(self, storage_namespace=namespace)

    def with_session(self, policy: SessionPolicy) -> StorefrontConfig:
        return replace(self, session=policy)

    def with_checkout(self, policy: CheckoutPolicy) -> StorefrontConfig:
        return replace(self, checkout=policy)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> StorefrontConfig:
        """
        Read STOREFRONT_API_URL, STOREFRONT_TIMEOUT and
        STOREFRONT_STORAGE_NAMESPACE. Missing variables keep the defaults.
        """
        env = os.environ if environ is None else environ
        config = cls(
            base_url=env.get("STOREFRONT_API_URL", DEFAULT_BASE_URL),
            storage_namespace=env.get("STOREFRONT_STORAGE_NAMESPACE", ""),
        )
        timeout = env.get("STOREFRONT_TIMEOUT")
        if timeout:
            config = config.with_timeout(seconds=float(timeout))
        return config


__all__ = ("StorefrontConfig", "DEFAULT_BASE_URL")
