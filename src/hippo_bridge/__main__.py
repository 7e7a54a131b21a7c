from __future__ import annotations

import logging

import uvicorn

from hippo_bridge.app import create_app
from hippo_bridge.config import AppConfig


def main() -> None:
    config = AppConfig.from_env()
    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run(create_app(config), host="0.0.0.0", port=config.port, reload=False)


if __name__ == "__main__":
    main()
