import logging

import uvicorn

from app.core.config import get_settings
from app.main import create_app


def main() -> None:
    settings = get_settings()
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    host, port = settings.listen_host_port
    logging.getLogger("bridge").info("http server listening on %s:%s", host, port)

    # log_config=None: uvicorn loggers propagate to the root handler above
    uvicorn.run(create_app(settings), host=host, port=port, log_config=None)


if __name__ == "__main__":
    main()
