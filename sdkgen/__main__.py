"""Entry point: python -m sdkgen

Reads the document named by SDKGEN_SPEC (default spec/openapi.json) and
generates the client package under SDKGEN_OUTPUT (default generated/).
"""

from __future__ import annotations

import logging
import os
import sys

from .codegen import run
from .config import GeneratorConfig
from .exceptions import SdkgenError

logger = logging.getLogger("sdkgen")


def main() -> None:
    logging.basicConfig(
        level=os.environ.get("SDKGEN_LOG_LEVEL", "INFO").upper(),
        format="%(levelname)s %(name)s: %(message)s",
    )
    try:
        run(GeneratorConfig.from_env())
    except SdkgenError as exc:
        logger.error("%s", exc)
        sys.exit(exc.exit_code)


if __name__ == "__main__":
    main()
