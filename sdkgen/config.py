"""Generator configuration.

Settings come from the environment (``GeneratorConfig.from_env``) and an
optional YAML overrides file holding hand-written mock responses and the
routes whose tests are not generated::

    mock_responses:
      /projects/{project_id}:
        DELETE:
          code: 200
          content: '{"id": "foo"}'
    skip_routes:
      - /consumption_history/account
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import yaml

from .exceptions import ConfigError
from .fixtures import MockTable, canonical_json
from .ir import MockResponse

TEMPLATE_DIR = Path(__file__).parent / "templates"

DEFAULT_SPEC = Path("spec") / "openapi.json"
DEFAULT_OUTPUT = Path("generated")
DEFAULT_PACKAGE = "client"

_TRUE_VALUES = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class GeneratorConfig:
    """Settings of one generation run."""

    spec_source: str = str(DEFAULT_SPEC)
    output_dir: Path = DEFAULT_OUTPUT
    template_dir: Path = TEMPLATE_DIR
    package_name: str = DEFAULT_PACKAGE
    mock_overrides: MockTable = field(default_factory=dict)
    skip_routes: frozenset[str] = frozenset()
    verify: bool = False

    @property
    def package_dir(self) -> Path:
        return Path(self.output_dir) / self.package_name

    @property
    def api_key_env(self) -> str:
        """Environment variable the generated client reads its API key from."""
        return self.package_name.upper() + "_API_KEY"

    @classmethod
    def from_env(cls, environ: Optional[dict[str, str]] = None) -> "GeneratorConfig":
        """Create configuration from SDKGEN_* environment variables."""
        env = os.environ if environ is None else environ
        overrides: dict[str, Any] = {}
        if env.get("SDKGEN_OVERRIDES"):
            overrides = load_overrides(env["SDKGEN_OVERRIDES"])
        return cls(
            spec_source=env.get("SDKGEN_SPEC", str(DEFAULT_SPEC)),
            output_dir=Path(env.get("SDKGEN_OUTPUT", str(DEFAULT_OUTPUT))),
            package_name=env.get("SDKGEN_PACKAGE", DEFAULT_PACKAGE),
            verify=env.get("SDKGEN_VERIFY", "").lower() in _TRUE_VALUES,
            **overrides,
        )


def load_overrides(path: str | Path) -> dict[str, Any]:
    """Read an overrides file into ``mock_overrides`` and ``skip_routes`` settings."""
    try:
        data = yaml.safe_load(Path(path).read_text())
    except OSError as exc:
        raise ConfigError(f"Cannot read overrides file {path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in overrides file {path}: {exc}") from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Overrides file {path} must contain a mapping")

    unknown = set(data) - {"mock_responses", "skip_routes"}
    if unknown:
        raise ConfigError(f"Unknown keys in overrides file {path}: {', '.join(sorted(unknown))}")

    skip_routes = data.get("skip_routes") or []
    if not isinstance(skip_routes, list) or not all(isinstance(r, str) for r in skip_routes):
        raise ConfigError("skip_routes must be a list of routes")

    return {
        "mock_overrides": _mock_table(data.get("mock_responses") or {}),
        "skip_routes": frozenset(skip_routes),
    }


def _mock_table(raw: Any) -> MockTable:
    if not isinstance(raw, dict):
        raise ConfigError("mock_responses must map routes to methods")

    table: MockTable = {}
    for route, methods in raw.items():
        if not isinstance(methods, dict):
            raise ConfigError(f"mock_responses[{route!r}] must map methods to responses")
        for method, response in methods.items():
            if not isinstance(response, dict) or "code" not in response:
                raise ConfigError(f"Mock response for {method} {route} needs a code")
            content = response.get("content")
            if not isinstance(content, str):
                content = canonical_json(content)
            try:
                code = int(response["code"])
            except (TypeError, ValueError) as exc:
                raise ConfigError(f"Mock response for {method} {route} has a bad code") from exc
            table.setdefault(route, {})[str(method).upper()] = MockResponse(code, content)
    return table
