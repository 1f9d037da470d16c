"""Flask web application exposing the credential service."""

import logging
from typing import Optional

from flask import Flask, Response, jsonify, request

from .config import ConfigurationManager
from .exceptions import (
    AwsMfaCacheError,
    CacheNotFoundError,
    CacheWriteError,
    ConfigUnreadableError,
    CredentialsExpiredError,
    SettingsWriteError,
)
from .service import CredentialService
from .settings import Settings

logger = logging.getLogger(__name__)


def _error(message: str, status: int, details: Optional[str] = None):
    body = {"error": message}
    if details:
        body["details"] = details
    return jsonify(body), status


def create_app(config_path: Optional[str] = None,
               service: Optional[CredentialService] = None) -> Flask:
    """Create and configure the Flask application.

    Args:
        config_path: Optional path to YAML configuration file
        service: Prebuilt credential service (built from the config if omitted)

    Returns:
        Configured Flask app instance
    """
    app = Flask(__name__)

    if service is None:
        config = ConfigurationManager.load_config(config_path)
        service = CredentialService(config)
    service.startup()

    app.config["CREDENTIAL_SERVICE"] = service

    def svc() -> CredentialService:
        return app.config["CREDENTIAL_SERVICE"]

    @app.route("/health")
    def health():
        return jsonify({"status": "ok"})

    @app.route("/environment")
    def get_environment():
        return jsonify(svc().environment().to_dict())

    @app.route("/settings", methods=["GET"])
    def get_settings():
        return jsonify(svc().get_settings().to_dict())

    @app.route("/settings", methods=["PUT"])
    def update_settings():
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            return _error("Invalid settings", 400)
        try:
            settings = Settings.from_dict(data)
        except ValueError as e:
            return _error("Invalid settings", 400, str(e))

        try:
            svc().update_settings(settings)
        except SettingsWriteError as e:
            return _error("Failed to save settings", 500, str(e))
        return jsonify(settings.to_dict())

    @app.route("/profiles")
    def get_profiles():
        try:
            profiles = svc().list_profiles()
        except ConfigUnreadableError as e:
            return _error("Failed to load profiles", 500, str(e))
        return jsonify([p.to_dict() for p in profiles])

    @app.route("/status")
    def get_status():
        profile = request.args.get("profile") or "default"
        return jsonify(svc().status(profile).to_dict())

    @app.route("/status/all")
    def get_all_status():
        try:
            statuses = svc().all_status()
        except ConfigUnreadableError as e:
            return _error("Failed to load profiles", 500, str(e))
        return jsonify([s.to_dict() for s in statuses])

    @app.route("/login", methods=["POST"])
    def login():
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            return _error("Invalid request body", 400)

        profile = data.get("profile") or "default"
        token_code = data.get("tokenCode") or ""
        duration = data.get("duration") or None
        if not isinstance(profile, str) or not isinstance(token_code, str):
            return _error("Invalid request body", 400)
        if duration is not None and (isinstance(duration, bool) or not isinstance(duration, int)):
            return _error("Invalid request body", 400, "duration must be an integer")
        if not token_code:
            return _error("Token code is required", 400)

        try:
            status = svc().login(profile, token_code, duration)
        except CacheWriteError as e:
            return _error("Failed to cache credentials", 500, str(e))
        except AwsMfaCacheError as e:
            logger.warning(f"Login failed for profile '{profile}': {e}")
            return _error("Authentication failed", 401, str(e))
        return jsonify(status.to_dict())

    @app.route("/credentials", methods=["GET"])
    def get_credentials():
        profile = request.args.get("profile") or "default"
        return jsonify(svc().get_credentials(profile).to_dict())

    @app.route("/env")
    def get_env_file():
        profile = request.args.get("profile") or "default"
        return Response(svc().env_file(profile), status=200, mimetype="text/plain")

    @app.route("/env/export", methods=["POST"])
    def export_env_file():
        profile = request.args.get("profile") or "default"
        output_path = request.args.get("path") or ""
        if not output_path:
            return _error("Output path is required", 400)

        try:
            svc().export_env_file(profile, output_path)
        except OSError as e:
            return _error("Failed to write env file", 500, str(e))
        return jsonify({"message": f"Env file written to {output_path}", "path": output_path})

    @app.route("/credentials", methods=["DELETE"])
    def clear_credentials():
        profile = request.args.get("profile") or ""
        try:
            svc().clear(profile)
        except OSError as e:
            return _error("Failed to clear credentials", 500, str(e))
        if not profile:
            return jsonify({"message": "All credentials cleared"})
        return jsonify({"message": f"Credentials cleared for {profile}"})

    @app.errorhandler(CacheNotFoundError)
    def handle_cache_not_found(e):
        return _error("No cached credentials found", 404)

    @app.errorhandler(CredentialsExpiredError)
    def handle_expired(e):
        return _error("Credentials expired", 401)

    @app.errorhandler(ValueError)
    def handle_bad_input(e):
        return _error("Invalid request", 400, str(e))

    @app.errorhandler(AwsMfaCacheError)
    def handle_service_error(e):
        return _error(str(e), 500)

    return app
