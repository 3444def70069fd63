"""ABOUTME: WSGI entry point for production deployment
ABOUTME: Creates the accountdesk Flask application for a WSGI server"""

from accountdesk.entrypoints.flask_app import create_app

app = create_app()

if __name__ == "__main__":
    app.run()
