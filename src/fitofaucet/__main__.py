"""Allow ``python -m fitofaucet``."""

from fitofaucet.main import entrypoint

entrypoint()
