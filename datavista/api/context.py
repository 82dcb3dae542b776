from typing import Optional

from fastapi import Header, Request
from strawberry.fastapi import BaseContext

from datavista.core.security import AuthContext, resolve_context
from datavista.services import Services


class GraphQLContext(BaseContext):
    """Per-request context: caller identity plus the shared domain services"""

    def __init__(self, auth: AuthContext, services: Services, verbose_errors: bool = True):
        super().__init__()
        self.auth = auth
        self.services = services
        self.verbose_errors = verbose_errors


async def get_context(
    request: Request,
    authorization: Optional[str] = Header(None),
) -> GraphQLContext:
    services: Services = request.app.state.services
    return GraphQLContext(
        auth=resolve_context(authorization, services.credentials),
        services=services,
        verbose_errors=request.app.state.settings.verbose_errors,
    )
