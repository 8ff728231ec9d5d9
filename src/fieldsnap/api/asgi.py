"""ASGI entrypoint for the FieldSnap API."""

from fieldsnap.api.app import create_app
from fieldsnap.containers import build_container

app = create_app(build_container())
