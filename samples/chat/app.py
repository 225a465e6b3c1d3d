#!/usr/bin/env python3
"""Standalone chat app: run relay-lodge as a plain TCP server.

    cd samples/chat
    poetry run python app.py

Connect with any line-based client, e.g. ``nc localhost 1234``.

Environment variables:
    PORT            Server port (default: 1234)
    HOST            Interface to bind (default: 0.0.0.0)
    LOG_LEVEL       Logging level (default: INFO)
"""
from relay_lodge.standalone import main

if __name__ == "__main__":
    main()
