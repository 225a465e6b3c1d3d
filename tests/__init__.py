"""Test package for relay-lodge."""
# pick up a local .env (e.g. LOG_LEVEL) if one exists
from dotenv import find_dotenv, load_dotenv

dotenv_path = find_dotenv(usecwd=True)
if dotenv_path:
    load_dotenv(dotenv_path)
