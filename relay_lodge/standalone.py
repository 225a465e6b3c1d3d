"""Standalone chat server: run relay-lodge from the command line.

Usage::

    poetry run relay-lodge

    # Custom port / verbose logging:
    PORT=9000 LOG_LEVEL=DEBUG poetry run relay-lodge

Environment variables:
    HOST                Interface to bind (default: 0.0.0.0)
    PORT                Server port (default: 1234)
    BACKLOG             Listen backlog (default: 50)
    ENCODING            Wire encoding (default: utf-8)
    MAX_PENDING_LINES   Queued lines per client before deliveries fail (default: 1000)
    CLOSE_TIMEOUT       Seconds to flush a leaving client (default: 2.0)
    LOG_LEVEL           Logging level (default: INFO)

Loads .env from the current working directory or any parent directory.
"""

import logging

logger = logging.getLogger(__name__)


def main():
    """Load .env, configure logging, and run the server until interrupted."""
    # find_dotenv() searches upward through parent directories
    from dotenv import load_dotenv, find_dotenv
    load_dotenv(find_dotenv(usecwd=True))

    from relay_lodge.chat_config import ChatServerConfig
    from relay_lodge.server import ChatServer

    config = ChatServerConfig.from_env()

    logging.basicConfig(
        level=config.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s — %(message)s",
        datefmt="%H:%M:%S",
    )

    server = ChatServer(config)
    host, port = server.listen()
    print(f"\n  relay-lodge chat → tcp://{host}:{port}\n")
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        logger.info("[SERVER] Shutting down...")
    finally:
        server.shutdown()


if __name__ == "__main__":
    main()
