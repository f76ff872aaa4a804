"""Render templates and write generated output.

Takes the context from context_builder and produces the client package
under ``<output_dir>/<package_name>``. Every template is rendered before
the first file is written, so a rendering failure leaves the output
directory untouched.
"""

from __future__ import annotations

import logging
import subprocess
import sys
from pathlib import Path
from typing import Any, Optional

import jinja2

from .config import GeneratorConfig
from .context_builder import build_context
from .exceptions import VerificationError
from .loader import load_spec

logger = logging.getLogger(__name__)

TEMPLATE_SUFFIX = ".j2"


def environment(template_dir: Path) -> jinja2.Environment:
    return jinja2.Environment(
        loader=jinja2.FileSystemLoader(str(template_dir)),
        keep_trailing_newline=True,
        trim_blocks=True,
        lstrip_blocks=True,
        undefined=jinja2.StrictUndefined,
    )


def render(context: dict[str, Any], template_dir: Path) -> dict[str, str]:
    """Render every template of the directory, keyed by output file name."""
    env = environment(template_dir)
    rendered = {}
    for name in sorted(env.list_templates(extensions=[TEMPLATE_SUFFIX[1:]])):
        output_name = name[: -len(TEMPLATE_SUFFIX)]
        rendered[output_name] = env.get_template(name).render(**context)
    return rendered


def write(files: dict[str, str], package_dir: Path) -> list[Path]:
    """Write rendered files into the package directory."""
    package_dir.mkdir(parents=True, exist_ok=True)
    written = []
    for name, content in files.items():
        path = package_dir / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        written.append(path)
    return written


def verify(package_dir: Path) -> None:
    """Run the generated tests with pytest.

    Raises:
        VerificationError: If the test run does not pass.
    """
    logger.info("Verifying %s", package_dir)
    result = subprocess.run(
        [sys.executable, "-m", "pytest", "-q", package_dir.name],
        cwd=str(package_dir.parent),
        capture_output=True,
        text=True,
    )
    if result.returncode != 0:
        raise VerificationError(
            f"Generated tests failed (exit {result.returncode}):\n{result.stdout}{result.stderr}"
        )


def generate(
    spec: dict[str, Any],
    config: GeneratorConfig,
    routes: Optional[list[str]] = None,
) -> list[Path]:
    """Render the client package for ``spec`` and write it to disk."""
    context = build_context(spec, routes=routes, config=config)
    files = render(context, Path(config.template_dir))
    written = write(files, config.package_dir)
    logger.info(
        "Generated %s (%d endpoints, %d models)",
        config.package_dir, context["endpoint_count"], context["model_count"],
    )
    return written


def run(config: GeneratorConfig) -> list[Path]:
    """Load the document, generate the package, and verify it if configured."""
    spec = load_spec(config.spec_source)
    written = generate(spec, config)
    if config.verify:
        verify(config.package_dir)
    return written
