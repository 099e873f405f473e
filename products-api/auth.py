import hmac
from abc import ABC, abstractmethod
from fastapi import Request
from errors import UnauthorizedError


class AuthorizationPolicy(ABC):
    """Decides whether a request may reach the product endpoints."""

    @abstractmethod
    def authorize(self, request: Request) -> bool:
        ...


class StaticTokenPolicy(AuthorizationPolicy):
    """Compare one request header against a shared secret."""

    def __init__(self, header_name: str, secret: str):
        self.header_name = header_name
        self.secret = secret

    def authorize(self, request: Request) -> bool:
        value = request.headers.get(self.header_name)
        if value is None:
            return False
        return hmac.compare_digest(value.encode(), self.secret.encode())


def require_authorization(action: str):
    """Create a dependency that rejects the request unless the app's policy allows it."""

    async def dep(request: Request) -> None:
        policy: AuthorizationPolicy = request.app.state.authorization_policy
        if not policy.authorize(request):
            raise UnauthorizedError(f"You are not authorized to {action}.")

    return dep
