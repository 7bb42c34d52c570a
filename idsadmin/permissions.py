"""
Authorization policies for the admin routes.
"""

from typing import Dict, List

from fastapi import Depends, FastAPI, HTTPException, Request, status
from loguru import logger
from pydantic import BaseModel

from idsadmin.authentication import AdminPrincipal, get_current_principal
from idsadmin.constants import ADMINISTRATION_POLICY
from idsadmin.options import AdminOptions


class Policy(BaseModel):
    name: str
    description: str
    roles: List[str]

    def allows(self, principal: AdminPrincipal) -> bool:
        """A principal satisfies the policy when it holds any of its roles."""
        return any(principal.has_role(role) for role in self.roles)


class AuthorizationPolicies:
    def __init__(self, policies: Dict[str, Policy]):
        self._policies = dict(policies)

    @classmethod
    def from_options(cls, options: AdminOptions) -> "AuthorizationPolicies":
        administration = Policy(
            name=ADMINISTRATION_POLICY,
            description="Administrator -- manage identities, clients, resources, grants and logs.",
            roles=[options.admin.administration_role],
        )
        return cls({administration.name: administration})

    @property
    def administration(self) -> Policy:
        return self._policies[ADMINISTRATION_POLICY]

    def get(self, name: str) -> Policy:
        return self._policies[name]

    def names(self) -> List[str]:
        return sorted(self._policies)


def add_authorization_policies(app: FastAPI, options: AdminOptions) -> FastAPI:
    policies = AuthorizationPolicies.from_options(options)
    app.state.authorization_policies = policies
    logger.debug(f"Registered authorization policies: {', '.join(policies.names())}")
    return app


def require_policy(name: str = ADMINISTRATION_POLICY):
    """
    Dependency enforcing a named policy on the current principal.
    """

    async def _require_policy(
        request: Request,
        principal: AdminPrincipal = Depends(get_current_principal),
    ) -> AdminPrincipal:
        policy = request.app.state.authorization_policies.get(name)
        if not policy.allows(principal):
            logger.warning(f"{principal.name} ({principal.subject}) denied by policy {name}")
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="This action can only be performed by administrators.",
            )
        return principal

    return _require_policy
