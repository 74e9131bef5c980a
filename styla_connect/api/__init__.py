"""HTTP blueprints for the admin application."""
