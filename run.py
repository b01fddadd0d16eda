"""Application entry point.

Starts the Flask development server or is used by gunicorn in production.
The database file and conversation log directory are created on startup.

Usage:
    Development:  python run.py
    Production:   gunicorn --bind 0.0.0.0:8080 --workers 2 --threads 4 run:app
"""
import os

from app import create_app

app = create_app()

if __name__ == "__main__":
    port = int(os.environ.get("PORT", "8080"))
    app.run(host="0.0.0.0", port=port, debug=app.config.get("FLASK_DEBUG", False))
