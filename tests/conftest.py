"""Shared fixtures for the sdkgen tests.

The sample document is a trimmed-down project/branch API: enough paths
to cover path and query parameters, request bodies, composition, enums,
list responses and an unreachable schema.
"""

from __future__ import annotations

import copy
from typing import Any

import pytest

SAMPLE_SPEC: dict[str, Any] = {
    "openapi": "3.0.3",
    "info": {"title": "Sample API", "version": "v2"},
    "servers": [{"url": "https://console.example.com/api/v2"}],
    "paths": {
        "/projects": {
            "get": {
                "operationId": "listProjects",
                "description": "Retrieves a list of projects.",
                "parameters": [
                    {"name": "cursor", "in": "query", "schema": {"type": "string"}},
                    {"name": "limit", "in": "query", "schema": {"type": "integer"}},
                ],
                "responses": {
                    "200": {
                        "description": "Returned the projects",
                        "content": {
                            "application/json": {
                                "schema": {"$ref": "#/components/schemas/ProjectsResponse"},
                                "example": {
                                    "projects": [
                                        {
                                            "id": "shiny-wind-028834",
                                            "name": "main",
                                            "state": "ready",
                                            "created_at": "2022-11-30T19:09:48Z",
                                        }
                                    ]
                                },
                            }
                        },
                    }
                },
            },
            "post": {
                "operationId": "createProject",
                "description": "Creates a project.",
                "requestBody": {
                    "required": True,
                    "content": {
                        "application/json": {
                            "schema": {"$ref": "#/components/schemas/ProjectCreateRequest"}
                        }
                    },
                },
                "responses": {
                    "201": {
                        "description": "Created a project",
                        "content": {
                            "application/json": {
                                "schema": {"$ref": "#/components/schemas/ProjectResponse"},
                                "example": {
                                    "project": {"id": "shiny-wind-028834", "name": "main"},
                                    "operations": [],
                                },
                            }
                        },
                    }
                },
            },
        },
        "/projects/{project_id}/branches/{branch_id}": {
            "parameters": [
                {
                    "name": "project_id",
                    "in": "path",
                    "required": True,
                    "schema": {"type": "string"},
                }
            ],
            "get": {
                "operationId": "getProjectBranch",
                "parameters": [
                    {
                        "name": "branch_id",
                        "in": "path",
                        "required": True,
                        "schema": {"type": "string"},
                    }
                ],
                "responses": {
                    "200": {
                        "description": "Returned the branch",
                        "content": {
                            "application/json": {
                                "schema": {"$ref": "#/components/schemas/Branch"},
                                "example": {"id": "br-1", "project_id": "shiny-wind-028834"},
                            }
                        },
                    }
                },
            },
            "delete": {
                "operationId": "deleteProjectBranch",
                "parameters": [
                    {
                        "name": "branch_id",
                        "in": "path",
                        "required": True,
                        "schema": {"type": "string"},
                    }
                ],
                "responses": {"204": {"description": "Deleted the branch"}},
            },
        },
        "/projects/{project_id}/operations": {
            "get": {
                "operationId": "listProjectOperations",
                "parameters": [
                    {"$ref": "#/components/parameters/ProjectIDParam"},
                    {
                        "name": "since",
                        "in": "query",
                        "required": True,
                        "schema": {"type": "string", "format": "date-time"},
                    },
                ],
                "responses": {
                    "200": {
                        "description": "Returned the operations",
                        "content": {
                            "application/json": {
                                "schema": {
                                    "type": "array",
                                    "items": {"$ref": "#/components/schemas/Operation"},
                                },
                                "example": [{"id": "op-1", "action": "start_compute"}],
                            }
                        },
                    }
                },
            },
        },
    },
    "components": {
        "parameters": {
            "ProjectIDParam": {
                "name": "project_id",
                "in": "path",
                "required": True,
                "schema": {"type": "string"},
            }
        },
        "schemas": {
            "ProjectsResponse": {
                "type": "object",
                "required": ["projects"],
                "properties": {
                    "projects": {
                        "type": "array",
                        "items": {"$ref": "#/components/schemas/Project"},
                    }
                },
            },
            "ProjectResponse": {
                "type": "object",
                "required": ["project"],
                "properties": {
                    "project": {"$ref": "#/components/schemas/Project"},
                    "operations": {
                        "type": "array",
                        "items": {"$ref": "#/components/schemas/Operation"},
                    },
                },
            },
            "Project": {
                "type": "object",
                "description": "A Neon-style project.",
                "required": ["id", "name"],
                "properties": {
                    "id": {"type": "string", "description": "The project ID"},
                    "name": {"type": "string"},
                    "state": {"$ref": "#/components/schemas/ProjectState"},
                    "created_at": {"type": "string", "format": "date-time"},
                },
            },
            "ProjectState": {"type": "string", "enum": ["ready", "init"]},
            "ProjectCreateRequest": {
                "type": "object",
                "required": ["project"],
                "properties": {
                    "project": {
                        "type": "object",
                        "properties": {
                            "name": {"type": "string"},
                            "settings": {"$ref": "#/components/schemas/ProjectSettings"},
                        },
                    }
                },
            },
            "ProjectSettings": {"type": "object"},
            "Branch": {
                "allOf": [
                    {"$ref": "#/components/schemas/BranchBase"},
                    {"$ref": "#/components/schemas/BranchTimestamps"},
                ]
            },
            "BranchBase": {
                "type": "object",
                "required": ["id", "project_id"],
                "properties": {
                    "id": {"type": "string"},
                    "project_id": {"type": "string"},
                },
            },
            "BranchTimestamps": {
                "type": "object",
                "properties": {"updated_at": {"type": "string", "format": "date-time"}},
            },
            "Operation": {
                "type": "object",
                "required": ["id", "action"],
                "properties": {
                    "id": {"type": "string"},
                    "action": {"type": "string"},
                },
            },
            "Unused": {
                "type": "object",
                "properties": {"value": {"type": "string"}},
            },
        },
    },
}


@pytest.fixture
def spec() -> dict[str, Any]:
    """A fresh copy of the sample document."""
    return copy.deepcopy(SAMPLE_SPEC)
