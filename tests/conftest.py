"""Shared pytest fixtures for spec-sync tests."""

import copy
import json

import pytest

_BASE_SPEC = {
    "openapi": "3.0.3",
    "info": {
        "title": "Test API",
        "version": "1.0.0",
        "description": "Base description",
    },
    "paths": {
        "/tasks": {
            "get": {
                "summary": "List tasks",
                "description": "Original description",
                "responses": {
                    "200": {
                        "description": "Success",
                        "content": {
                            "application/json": {
                                "schema": {"type": "array"},
                                "example": [{"id": 1}],
                            }
                        },
                    }
                },
            }
        }
    },
    "components": {
        "schemas": {
            "Task": {
                "type": "object",
                "properties": {"id": {"type": "integer"}},
            }
        }
    },
}


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch):
    """Keep developer settings out of every test."""
    for key in (
        "SPEC_SYNC_CONFIG",
        "SPEC_SYNC_CONFLICT_STRATEGY",
        "SPEC_SYNC_STRICT_MODE",
        "SPEC_SYNC_BASELINE_DIR",
        "LOG_LEVEL",
    ):
        monkeypatch.delenv(key, raising=False)


@pytest.fixture
def base_spec():
    """Baseline revision of a small task API."""
    return copy.deepcopy(_BASE_SPEC)


@pytest.fixture
def local_spec(base_spec):
    """Local revision: the info description was edited in the repo."""
    spec = copy.deepcopy(base_spec)
    spec["info"]["description"] = "Updated in repo"
    return spec


@pytest.fixture
def remote_spec(base_spec):
    """Remote revision: operation description and response example enriched."""
    spec = copy.deepcopy(base_spec)
    get = spec["paths"]["/tasks"]["get"]
    get["description"] = "Enhanced in Postman"
    get["responses"]["200"]["content"]["application/json"]["example"] = [
        {"id": 1, "title": "Task 1"}
    ]
    return spec


@pytest.fixture
def write_json(tmp_path):
    """Factory fixture writing a document to a JSON file under tmp_path."""

    def _write(name, document):
        path = tmp_path / name
        path.write_text(json.dumps(document, indent=2), encoding="utf-8")
        return path

    return _write
