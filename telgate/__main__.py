"""Run the gateway, ``python -m telgate``."""
from .server import main

main()
