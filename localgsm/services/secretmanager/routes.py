"""
Secret Manager Routes.

FastAPI routes for the Google Secret Manager v1 REST API. Handlers are plain
functions so FastAPI runs them on its worker thread pool; the backend is
passed in explicitly rather than held in a module global.

Author: LocalGSM Team
Date: 2026-10-19
"""

import logging
from typing import Optional

from fastapi import APIRouter, Body, Path, Query, Response, status

from .backend import SecretManagerBackend
from .exceptions import InvalidArgumentError
from .models import (
    AccessSecretVersionResponse,
    AddSecretVersionRequest,
    CreateSecretRequest,
    ListSecretsResponse,
    ListSecretVersionsResponse,
    Secret,
    SecretVersion,
)
from .names import SecretName, validate_project_id, validate_secret_id

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 100
MAX_PAGE_SIZE = 1000


def resolve_page_size(
    raw: Optional[str],
    default: int = DEFAULT_PAGE_SIZE,
    maximum: int = MAX_PAGE_SIZE,
) -> int:
    """Resolve the pageSize query parameter.

    Values that do not parse, or fall outside 1..maximum, use the default.
    """
    if raw:
        try:
            page_size = int(raw)
        except ValueError:
            return default
        if 0 < page_size <= maximum:
            return page_size
    return default


def _secret_name(project_id: str, secret_id: str) -> SecretName:
    return SecretName(validate_project_id(project_id), validate_secret_id(secret_id))


def create_router(
    backend: SecretManagerBackend,
    default_page_size: int = DEFAULT_PAGE_SIZE,
    max_page_size: int = MAX_PAGE_SIZE,
) -> APIRouter:
    """Create FastAPI router for Secret Manager endpoints.

    Args:
        backend: Store serving every request of this router
        default_page_size: Page size used when the request does not set one
        max_page_size: Largest page size a request may ask for

    Returns:
        Configured APIRouter
    """
    router = APIRouter(prefix="/v1")

    @router.post(
        "/projects/{project_id}/secrets",
        response_model=Secret,
        response_model_exclude_none=True,
        status_code=status.HTTP_201_CREATED,
        tags=["Secrets"]
    )
    def create_secret(
        project_id: str = Path(..., description="Project id"),
        request: CreateSecretRequest = Body(...),
        secret_id_param: Optional[str] = Query(None, alias="secretId"),
    ) -> Secret:
        """Create a secret with no versions.

        The secret id may be given as the ``secretId`` query parameter (as
        the real API does) or in the request body; the query wins.

        Raises:
            InvalidArgumentError: If the secret id is missing or invalid
            SecretAlreadyExistsError: If the secret exists
        """
        secret_id = secret_id_param or request.secret_id
        if not secret_id:
            raise InvalidArgumentError("secretId is required")
        name = _secret_name(project_id, secret_id)

        data = request.secret
        secret = Secret.new(
            name.project_id,
            name.secret_id,
            labels=data.labels if data else None,
            replication=data.replication if data else None,
        )
        created = backend.create_secret(name.project_id, name.secret_id, secret)
        logger.info(f"Created secret {created.name}")
        return created

    @router.get(
        "/projects/{project_id}/secrets",
        response_model=ListSecretsResponse,
        response_model_exclude_none=True,
        tags=["Secrets"]
    )
    def list_secrets(
        project_id: str = Path(..., description="Project id"),
        page_size: Optional[str] = Query(None, alias="pageSize"),
        page_token: Optional[str] = Query(None, alias="pageToken"),
    ) -> ListSecretsResponse:
        """List secrets of a project ordered by name."""
        validate_project_id(project_id)
        secrets, next_page_token = backend.list_secrets(
            project_id,
            resolve_page_size(page_size, default_page_size, max_page_size),
            page_token or "",
        )
        return ListSecretsResponse(
            secrets=secrets,
            next_page_token=next_page_token or None,
            total_size=len(secrets),
        )

    @router.get(
        "/projects/{project_id}/secrets/{secret_id}",
        response_model=Secret,
        response_model_exclude_none=True,
        tags=["Secrets"]
    )
    def get_secret(
        project_id: str = Path(..., description="Project id"),
        secret_id: str = Path(..., description="Secret id"),
    ) -> Secret:
        """Get secret metadata.

        Raises:
            SecretNotFoundError: If the secret does not exist
        """
        name = _secret_name(project_id, secret_id)
        return backend.get_secret(name.project_id, name.secret_id)

    @router.delete(
        "/projects/{project_id}/secrets/{secret_id}",
        status_code=status.HTTP_204_NO_CONTENT,
        tags=["Secrets"]
    )
    def delete_secret(
        project_id: str = Path(..., description="Project id"),
        secret_id: str = Path(..., description="Secret id"),
    ) -> Response:
        """Delete a secret and all of its versions."""
        name = _secret_name(project_id, secret_id)
        backend.delete_secret(name.project_id, name.secret_id)
        logger.info(f"Deleted secret {name.resource_name}")
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    @router.post(
        "/projects/{project_id}/secrets/{secret_id}:addVersion",
        response_model=SecretVersion,
        response_model_exclude_none=True,
        status_code=status.HTTP_201_CREATED,
        tags=["Versions"]
    )
    def add_secret_version(
        project_id: str = Path(..., description="Project id"),
        secret_id: str = Path(..., description="Secret id"),
        request: AddSecretVersionRequest = Body(...),
    ) -> SecretVersion:
        """Add a version holding the base64-decoded payload.

        Raises:
            InvalidArgumentError: If the payload is missing or empty
            SecretNotFoundError: If the secret does not exist
        """
        name = _secret_name(project_id, secret_id)
        if request.payload is None or not request.payload.data:
            raise InvalidArgumentError("Payload data is required")

        version = backend.add_secret_version(name.project_id, name.secret_id, request.payload.data)
        logger.info(f"Added version {version.name}")
        return version

    @router.get(
        "/projects/{project_id}/secrets/{secret_id}/versions",
        response_model=ListSecretVersionsResponse,
        response_model_exclude_none=True,
        tags=["Versions"]
    )
    def list_secret_versions(
        project_id: str = Path(..., description="Project id"),
        secret_id: str = Path(..., description="Secret id"),
        page_size: Optional[str] = Query(None, alias="pageSize"),
        page_token: Optional[str] = Query(None, alias="pageToken"),
    ) -> ListSecretVersionsResponse:
        """List versions of a secret, newest first."""
        name = _secret_name(project_id, secret_id)
        versions, next_page_token = backend.list_secret_versions(
            name.project_id,
            name.secret_id,
            resolve_page_size(page_size, default_page_size, max_page_size),
            page_token or "",
        )
        return ListSecretVersionsResponse(
            versions=versions,
            next_page_token=next_page_token or None,
            total_size=len(versions),
        )

    # Registered before the plain version route so ':access' is not taken as part of the id
    @router.get(
        "/projects/{project_id}/secrets/{secret_id}/versions/{version_id}:access",
        response_model=AccessSecretVersionResponse,
        response_model_exclude_none=True,
        tags=["Versions"]
    )
    def access_secret_version(
        project_id: str = Path(..., description="Project id"),
        secret_id: str = Path(..., description="Secret id"),
        version_id: str = Path(..., description="Version id or 'latest'"),
    ) -> AccessSecretVersionResponse:
        """Access the payload of a version.

        Raises:
            SecretNotFoundError: If the secret does not exist
            SecretVersionNotFoundError: If the resolved version does not exist
        """
        name = _secret_name(project_id, secret_id)
        version = backend.get_secret_version(name.project_id, name.secret_id, version_id)
        return AccessSecretVersionResponse.from_version(version)

    @router.get(
        "/projects/{project_id}/secrets/{secret_id}/versions/{version_id}",
        response_model=SecretVersion,
        response_model_exclude_none=True,
        tags=["Versions"]
    )
    def get_secret_version(
        project_id: str = Path(..., description="Project id"),
        secret_id: str = Path(..., description="Secret id"),
        version_id: str = Path(..., description="Version id or 'latest'"),
    ) -> SecretVersion:
        """Get version metadata (no payload)."""
        name = _secret_name(project_id, secret_id)
        return backend.get_secret_version(name.project_id, name.secret_id, version_id)

    @router.delete(
        "/projects/{project_id}/secrets/{secret_id}/versions/{version_id}",
        status_code=status.HTTP_204_NO_CONTENT,
        tags=["Versions"]
    )
    def delete_secret_version(
        project_id: str = Path(..., description="Project id"),
        secret_id: str = Path(..., description="Secret id"),
        version_id: str = Path(..., description="Version id"),
    ) -> Response:
        """Delete a single version; its id is never reused."""
        name = _secret_name(project_id, secret_id)
        backend.delete_secret_version(name.project_id, name.secret_id, version_id)
        logger.info(f"Deleted version {name.version(version_id).resource_name}")
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    return router
