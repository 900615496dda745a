from flask import Flask
from flasgger import Swagger
from flask_cors import CORS
import click
import logging

from .config import get_config
from .errors import register_error_handlers
from models import CredentialStore

# Minimal Swagger config: exposes /swagger.json and UI at /apidocs
SWAGGER_TEMPLATE = {
    "swagger": "2.0.0",
    "info": {
        "title": "Squeeble Auth API",
        "version": "1.0.0",
        "description": "File-backed user registration, login, token refresh and password reset.",
    },
    "basePath": "/",
    "schemes": ["http"],
    "securityDefinitions": {
        "Bearer": {
            "type": "apiKey",
            "name": "Authorization",
            "in": "header",
            "description": "Enter the token with the `Bearer ` prefix, e.g. \"Bearer abcde12345\"."
        }
    }
}

SWAGGER_CONFIG = {
    "headers": [],
    "specs": [
        {
            "endpoint": "apispec_1",
            "route": "/swagger.json",
            "rule_filter": lambda rule: True,   # include all endpoints
            "model_filter": lambda tag: True,   # include all models
        }
    ],
    "static_url_path": "/flasgger_static",
    "swagger_ui": True,
    "specs_route": "/apidocs/",
}


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def create_app(config_name: str | None = None, overrides: dict | None = None) -> Flask:
    """
    Application factory: creates and configures the Flask app.
    The CredentialStore is built here, once per app, from the loaded config;
    the signing secret it holds lives exactly as long as the app.
    """
    app = Flask(__name__)

    # Load configuration (reads .env via get_config)
    app.config.from_object(get_config(config_name))
    if overrides:
        app.config.update(overrides)

    configure_logging(app.config.get("LOG_LEVEL", "INFO"))
    if not app.config.get("AUTH_SECRET"):
        app.logger.warning("AUTH_SECRET not set; tokens will not survive a restart")

    store = CredentialStore.from_config(app.config)
    store.init()
    app.extensions["credential_store"] = store

    # Cross-Origin Resource Sharing: enable for dev, configurable for prod
    CORS(app, resources={r"/*": {"origins": app.config.get("CORS_ORIGINS", "*")}})

    # Swagger UI and JSON
    Swagger(app, template=SWAGGER_TEMPLATE, config=SWAGGER_CONFIG)

    # Register global error handlers that return the uniform error envelope
    register_error_handlers(app)

    from .health import bp as health_bp
    from .auth import bp as auth_bp
    from .users import bp as users_bp

    app.register_blueprint(health_bp, url_prefix="/api/v1")
    app.register_blueprint(auth_bp, url_prefix="/api/v1")
    app.register_blueprint(users_bp, url_prefix="/api/v1")

    # For an external scheduler, e.g. cron: `flask --app api cleanup-expired`
    @app.cli.command("cleanup-expired")
    def cleanup_expired_command():
        """Remove expired refresh and reset tokens."""
        removed = store.cleanup_expired()
        click.echo(
            f"removed {removed['refresh_tokens']} refresh token(s), "
            f"{removed['reset_tokens']} reset token(s)"
        )

    @app.route("/")
    def root():
        return {
            "message": "Welcome to Squeeble Auth API",
            "docs": "/apidocs/",
            "health": "/api/v1/health",
        }, 200

    return app
