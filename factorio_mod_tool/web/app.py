"""Flask application - JSON routes over the mod service."""

from dataclasses import asdict
from pathlib import Path

from flask import Flask, jsonify, request
from rich.console import Console

from ..errors import ErrorKind, FatalRunError, RunContext
from ..service import ModToolService, RunPlan
from ..settings import ServiceCredentials, SettingsError, read_credentials, read_settings


def _string_list(data: dict, key: str) -> list[str]:
    value = data.get(key) or []
    if isinstance(value, str):
        return [value]
    if not isinstance(value, list):
        raise ValueError(f"'{key}' must be a mod name or a list of mod names")
    return [str(item) for item in value]


def _plan_from_json(data) -> RunPlan:
    """Build a RunPlan from a request body; raises ValueError on a bad shape."""
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ValueError("Request body must be a JSON object")
    return RunPlan(
        enable=_string_list(data, "enable"),
        disable=_string_list(data, "disable"),
        install=_string_list(data, "install"),
        remove=_string_list(data, "remove"),
        redownload=_string_list(data, "redownload"),
        disable_all=bool(data.get("disable_all", False)),
    )


def create_app(settings_path: Path | None = None, mods_dir: Path | None = None) -> Flask:
    app = Flask(__name__)
    app.config["SETTINGS_PATH"] = settings_path
    app.config["MODS_DIR"] = mods_dir

    def get_service() -> ModToolService:
        """A fresh service per request; raises SettingsError on a broken setup."""
        ctx = RunContext(console=Console(quiet=True))
        credentials = ServiceCredentials()
        mods_path = app.config["MODS_DIR"]
        if mods_path is None or app.config["SETTINGS_PATH"] is not None:
            settings = read_settings(app.config["SETTINGS_PATH"])
            credentials = read_credentials(settings.player_data_path)
            if mods_path is None:
                mods_path = settings.mods_path
        return ModToolService(Path(mods_path), ctx=ctx, credentials=credentials)

    def settings_error(e: SettingsError):
        return jsonify({"error": str(e), "code": int(ErrorKind.MISSING_REQUIRED_PATH)}), 400

    def fatal_error(e: FatalRunError):
        return jsonify({"error": e.record.message, "code": e.exit_code}), 400

    @app.route("/api/mods")
    def api_mods():
        try:
            svc = get_service()
            svc.load()
        except SettingsError as e:
            return settings_error(e)
        except FatalRunError as e:
            return fatal_error(e)
        return jsonify({"mods": [asdict(entry) for entry in svc.entries()]})

    @app.route("/api/mods/enabled")
    def api_enabled():
        try:
            svc = get_service()
            svc.load()
        except SettingsError as e:
            return settings_error(e)
        except FatalRunError as e:
            return fatal_error(e)
        return jsonify({"enabled": svc.list_enabled()})

    @app.route("/api/apply", methods=["POST"])
    def api_apply():
        try:
            plan = _plan_from_json(request.get_json(silent=True))
        except ValueError as e:
            return jsonify({"error": str(e)}), 400
        if plan.is_empty:
            return jsonify({"error": "Nothing to do"}), 400

        try:
            svc = get_service()
            result = svc.apply(plan)
        except SettingsError as e:
            return settings_error(e)
        except FatalRunError as e:
            return fatal_error(e)
        return jsonify(asdict(result))

    return app
