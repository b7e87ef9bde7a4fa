"""Storage authentication strategies.

A run authenticates to the object store either as the host's managed
identity or as a service principal whose secret lives in an environment
variable. Either way the credential is resolved once, before capture
starts, so a missing secret fails the run up front.
"""

import logging
import os
from abc import ABC, abstractmethod
from typing import Literal

from pydantic import BaseModel, Field, SecretStr

from showtape.utils.errors import AuthenticationError

logger = logging.getLogger(__name__)


class StoreCredential(BaseModel):
    """Resolved identity handed to the object store factory."""

    kind: Literal["managed_identity", "service_principal"]
    client_id: str | None = None
    tenant_id: str | None = None
    secret: SecretStr | None = None

    @property
    def principal(self) -> str:
        if self.kind == "managed_identity":
            return f"managed identity ({self.client_id or 'system-assigned'})"
        return f"service principal {self.client_id} in tenant {self.tenant_id}"


class AuthStrategy(BaseModel, ABC):
    """Base class for storage authentication strategies."""

    @abstractmethod
    def resolve(self) -> StoreCredential:
        """Resolve the credential.

        Raises:
            AuthenticationError: If required credential material is missing
        """


class ManagedIdentityAuth(AuthStrategy):
    """Authenticate as the managed identity of the host."""

    type: Literal["managed_identity"] = "managed_identity"
    client_id: str | None = Field(
        default=None, description="User-assigned identity client id; system-assigned if unset"
    )

    def resolve(self) -> StoreCredential:
        credential = StoreCredential(kind="managed_identity", client_id=self.client_id)
        logger.info(f"Using {credential.principal}")
        return credential


class ServicePrincipalAuth(AuthStrategy):
    """Authenticate as a service principal; the secret comes from the environment."""

    type: Literal["service_principal"] = "service_principal"
    tenant_id: str = Field(..., min_length=1)
    client_id: str = Field(..., min_length=1)
    client_secret_env: str = Field(default="SHOWTAPE_CLIENT_SECRET", min_length=1)

    def resolve(self) -> StoreCredential:
        secret = os.environ.get(self.client_secret_env)
        if not secret:
            raise AuthenticationError(
                f"Service principal secret not found: set the "
                f"{self.client_secret_env} environment variable"
            )

        credential = StoreCredential(
            kind="service_principal",
            client_id=self.client_id,
            tenant_id=self.tenant_id,
            secret=SecretStr(secret),
        )
        logger.info(f"Using {credential.principal}")
        return credential
