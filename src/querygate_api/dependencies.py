"""Request-scoped access to the services held by the app container."""
from typing import Annotated

from fastapi import Depends, Request

from querygate_api.container import Container
from querygate_api.services import DatabaseService, HealthService, QueryService


def get_container(request: Request) -> Container:
    return request.app.state.container


def get_query_service(request: Request) -> QueryService:
    return get_container(request).query


def get_database_service(request: Request) -> DatabaseService:
    return get_container(request).database


def get_health_service(request: Request) -> HealthService:
    return get_container(request).health


QuerySvc = Annotated[QueryService, Depends(get_query_service)]
DatabaseSvc = Annotated[DatabaseService, Depends(get_database_service)]
HealthSvc = Annotated[HealthService, Depends(get_health_service)]
