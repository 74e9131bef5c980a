"""Styla connector package.

To use the Flask admin app:
    from styla_connect.flask_app import create_app

To run the provisioning flow directly:
    from styla_connect.core.provisioning_service import ConnectorService
"""
# Note: flask_app is not imported here so the CLI can use styla_connect.core
# without building the web application.
