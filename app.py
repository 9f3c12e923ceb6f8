"""WSGI / ``flask`` CLI entry point (``FLASK_APP=app.py``)."""

from hr_management.main import create_app

app = create_app()

if __name__ == "__main__":
    app.run(debug=bool(app.config.get("DEBUG")))
