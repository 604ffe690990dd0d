"""Find-or-create resolution of project and log-stream identifiers.

Lookup and creation are two separate requests. Two processes resolving the
same missing name at the same time can both see "not found" and both create
it, leaving duplicates on the server. The API offers no conditional create,
so this module does not try to prevent that.
"""

from __future__ import annotations

import logging

from galileo_trace.core.exceptions import ConfigurationError
from galileo_trace.sdk.client import GalileoClient

logger = logging.getLogger(__name__)


def find_project_id(client: GalileoClient, name: str) -> str | None:
    # The name filter is not guaranteed to be exact, so match locally.
    for project in client.list_projects(name=name):
        if project.name == name:
            return project.id
    return None


def resolve_project(
    client: GalileoClient,
    name: str,
    *,
    project_type: str = "gen_ai",
) -> str:
    """Return the id of the project called ``name``, creating it if absent.

    Raises:
        ConfigurationError: ``name`` is empty.
        TransportError: Lookup or creation failed.
    """
    if not name:
        raise ConfigurationError("project name is required")

    project_id = find_project_id(client, name)
    if project_id:
        logger.info(
            "Found existing project '%s' with ID: %s",
            name,
            project_id,
            extra={"project_id": project_id},
        )
        return project_id

    logger.info("Project '%s' not found, creating a new one", name)
    project = client.create_project(name, project_type=project_type)
    logger.info(
        "Created project '%s' with ID: %s", name, project.id, extra={"project_id": project.id}
    )
    return project.id


def find_log_stream_id(client: GalileoClient, project_id: str, name: str) -> str | None:
    for stream in client.list_log_streams(project_id, name=name):
        if stream.name == name:
            return stream.id
    return None


def resolve_log_stream(client: GalileoClient, project_id: str, name: str) -> str:
    """Return the id of log stream ``name`` in ``project_id``, creating it if absent.

    Raises:
        ConfigurationError: ``project_id`` or ``name`` is empty.
        TransportError: Lookup or creation failed.
    """
    if not project_id:
        raise ConfigurationError("project ID is required to resolve a log stream")
    if not name:
        raise ConfigurationError("log stream name is required")

    stream_id = find_log_stream_id(client, project_id, name)
    if stream_id:
        logger.info(
            "Found existing log stream '%s' with ID: %s",
            name,
            stream_id,
            extra={"project_id": project_id, "log_stream_id": stream_id},
        )
        return stream_id

    logger.info("Log stream '%s' not found, creating a new one", name)
    stream = client.create_log_stream(project_id, name)
    logger.info(
        "Created log stream '%s' with ID: %s",
        name,
        stream.id,
        extra={"project_id": project_id, "log_stream_id": stream.id},
    )
    return stream.id
