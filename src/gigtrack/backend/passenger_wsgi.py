"""WSGI entrypoint for Passenger-style hosting of the GigTrack backend."""

from gigtrack.backend.app import create_app

# Passenger looks for a module-level ``application`` callable.
application = create_app()
