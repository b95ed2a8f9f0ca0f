"""ASGI entrypoint for the Protein Buddy API."""

from protein_buddy.api.app import create_app
from protein_buddy.containers import build_container

app = create_app(build_container())
