"""
API routes for the Surveillance Console.
JSON endpoints the console shell calls by name. Every failure comes back as a
typed error payload; privileged checks live in the services themselves.
"""
from flask import Blueprint, Response, current_app, jsonify, request, session
from flask_login import login_user, logout_user, login_required, current_user
from werkzeug.exceptions import HTTPException

from ..auth import authenticate, log_logout
from ..errors import (
    ConsoleError,
    FormatError,
    HashingFailure,
    InternalError,
    LoginThrottled,
    PermissionDenied,
    log_error,
)
from ..models import Registry, Role
from ..security import audit_log, check_credential_strength, get_request_ip
from ..services import get_services

api_bp = Blueprint("api", __name__)

_STATUS_BY_KIND = {
    "AuthFailure": 401,
    "PermissionFailure": 403,
    "ProtectedEntityFailure": 403,
    "NotFoundFailure": 404,
    "ConfigIntegrityFailure": 400,
    "FormatFailure": 400,
    "TransportFailure": 502,
    "FileSystemFailure": 500,
    "InternalFailure": 500,
}


@api_bp.errorhandler(ConsoleError)
def handle_console_error(error):
    """Typed failure -> JSON payload"""
    user = current_user.login if current_user.is_authenticated else None
    log_error(error, f"{request.method} {request.path}", user)
    status = _STATUS_BY_KIND.get(error.kind, 500)
    if isinstance(error, LoginThrottled):
        status = 429
    elif isinstance(error, HashingFailure):
        status = 500
    return jsonify(error.to_dict()), status


@api_bp.errorhandler(Exception)
def handle_unexpected_error(error):
    """Anything else is an internal error, never a crash"""
    if isinstance(error, HTTPException):
        return jsonify({"error": error.description, "code": error.code}), error.code
    user = current_user.login if current_user.is_authenticated else None
    detail = InternalError(f"unexpected error: {error!r}")
    log_error(detail, f"{request.method} {request.path}", user)
    return jsonify(InternalError().to_dict()), 500


def _json_body() -> dict:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise FormatError("request body must be a JSON object")
    return data


def _string_field(data: dict, key: str, required: bool = True):
    value = data.get(key)
    if value is None and not required:
        return None
    if not isinstance(value, str) or not value.strip():
        raise FormatError(f"'{key}' must be a non-empty string")
    return value.strip()


def _parse_role(value) -> Role:
    try:
        return Role(value)
    except ValueError:
        raise FormatError("role must be Administrator or Operator")


@api_bp.route("/health")
def health_check():
    """Health check endpoint for system monitoring"""
    return jsonify({"status": "healthy", "service": "Surveillance Console"})


# =============================================================================
# SESSION ENDPOINTS
# =============================================================================


@api_bp.route("/login", methods=["POST"])
def login():
    """Authenticate and start a session"""
    data = _json_body()
    username = data.get("login", "")
    password = data.get("password", "")
    if not isinstance(username, str) or not isinstance(password, str):
        raise FormatError("login and password must be strings")

    principal = authenticate(username, password)
    login_user(principal)
    session.permanent = True

    return jsonify(
        {
            "success": True,
            "user": principal.to_dict(),
            "message": "authentication successful",
        }
    )


@api_bp.route("/logout", methods=["POST"])
@login_required
def logout():
    """End the session"""
    log_logout(current_user.login)
    get_services().session.logout()
    logout_user()
    return jsonify({"success": True})


@api_bp.route("/session")
def current_session():
    """Who is logged in"""
    if not current_user.is_authenticated:
        return jsonify({"authenticated": False, "user": None, "is_admin": False})
    return jsonify(
        {
            "authenticated": True,
            "user": current_user.to_dict(),
            "is_admin": current_user.is_admin,
        }
    )


@api_bp.route("/status")
@login_required
def system_status():
    """Session and configuration summary"""
    return jsonify(get_services().session.status())


# =============================================================================
# APARTMENT & CAMERA ENDPOINTS
# =============================================================================


@api_bp.route("/apartments")
@login_required
def list_apartments():
    """List all apartments"""
    return jsonify([site.to_dict() for site in get_services().resources.sites()])


@api_bp.route("/apartments", methods=["POST"])
@login_required
def create_apartment():
    """Add an apartment (admin only)"""
    data = _json_body()
    name = _string_field(data, "name")
    number = _string_field(data, "number")

    site_id = get_services().resources.add_site(current_user, name, number)
    return jsonify({"success": True, "id": site_id, "name": name}), 201


@api_bp.route("/apartments/<path:name>/cameras")
@login_required
def list_apartment_cameras(name):
    """Enabled cameras of one apartment"""
    sources = get_services().resources.sources_for_site(name)
    return jsonify([source.to_dict() for source in sources])


@api_bp.route("/cameras")
@login_required
def list_cameras():
    """List all cameras"""
    return jsonify([source.to_dict() for source in get_services().resources.sources()])


@api_bp.route("/cameras/grouped")
@login_required
def list_cameras_grouped():
    """Enabled cameras grouped by apartment"""
    grouped = get_services().resources.sources_grouped_by_site()
    return jsonify(
        {name: [source.to_dict() for source in sources] for name, sources in grouped.items()}
    )


@api_bp.route("/cameras", methods=["POST"])
@login_required
def create_camera():
    """Add a camera to an existing apartment (admin only)"""
    data = _json_body()
    name = _string_field(data, "name")
    apartment = _string_field(data, "apartment")
    rtsp_link = _string_field(data, "rtsp_link")

    source_id = get_services().resources.add_source(current_user, name, apartment, rtsp_link)
    return jsonify({"success": True, "id": source_id, "name": name}), 201


@api_bp.route("/cameras/<int:camera_id>", methods=["PUT"])
@login_required
def update_camera(camera_id):
    """Partially update a camera (admin only)"""
    data = _json_body()
    updated = get_services().resources.update_source(
        current_user,
        camera_id,
        name=_string_field(data, "name", required=False),
        site_name=_string_field(data, "apartment", required=False),
        uri=_string_field(data, "rtsp_link", required=False),
    )
    return jsonify({"success": True, "camera": updated.to_dict()})


@api_bp.route("/cameras/<int:camera_id>/toggle", methods=["POST"])
@login_required
def toggle_camera(camera_id):
    """Enable or disable a camera (admin only)"""
    enabled = get_services().resources.toggle_source(current_user, camera_id)
    return jsonify({"success": True, "id": camera_id, "enabled": enabled})


@api_bp.route("/cameras/<int:camera_id>", methods=["DELETE"])
@login_required
def delete_camera(camera_id):
    """Remove a camera (admin only)"""
    get_services().resources.remove_source(current_user, camera_id)
    return jsonify({"success": True, "deleted": camera_id})


# =============================================================================
# CONFIGURATION ENDPOINTS
# =============================================================================


@api_bp.route("/config/validate")
@login_required
def validate_config():
    """Run the registry integrity checks"""
    get_services().resources.validate()
    return jsonify({"valid": True})


@api_bp.route("/config/export")
@login_required
def export_config():
    """Serialized registry document"""
    return Response(get_services().resources.serialize(), mimetype="application/json")


@api_bp.route("/config/import", methods=["POST"])
@login_required
def import_config():
    """Replace the registry with an uploaded document (admin only)"""
    registry = Registry.from_json(request.get_data())
    get_services().resources.replace_registry(current_user, registry)
    audit_log("REGISTRY_REPLACED", get_request_ip(), current_user.login,
              f"{len(registry.sites)} apartments, {len(registry.sources)} cameras")
    return jsonify({"success": True, "apartments": len(registry.sites),
                    "cameras": len(registry.sources)})


@api_bp.route("/config/load", methods=["POST"])
@login_required
def load_config():
    """Load the registry from the sync backend and activate it (admin only)"""
    registry = get_services().session.reload_config(current_user)
    audit_log("REGISTRY_LOADED", get_request_ip(), current_user.login,
              f"{len(registry.sites)} apartments, {len(registry.sources)} cameras")
    return jsonify(registry.to_dict())


@api_bp.route("/config/save", methods=["POST"])
@login_required
def save_config():
    """Validate and push the registry to the sync backend (admin only)"""
    registry = get_services().resources.save_remote(current_user)
    return jsonify({"success": True, "apartments": len(registry.sites),
                    "cameras": len(registry.sources)})


# =============================================================================
# USER MANAGEMENT ENDPOINTS
# =============================================================================


@api_bp.route("/users")
@login_required
def list_users():
    """List all identities (admin only)"""
    identities = get_services().credentials.list_identities(current_user)
    return jsonify([identity.to_dict() for identity in identities])


@api_bp.route("/users", methods=["POST"])
@login_required
def create_user():
    """Create a new identity (admin only)"""
    data = _json_body()
    login = _string_field(data, "login")
    password = data.get("password", "")
    role = _parse_role(data.get("role", Role.OPERATOR.value))

    if not isinstance(password, str):
        raise FormatError("password must be a string")
    acceptable, message = check_credential_strength(
        password, login, current_app.config.get("MIN_PASSWORD_LENGTH"))
    if not acceptable:
        raise FormatError(message)

    principal = get_services().credentials.add_identity(current_user, login, password, role)
    audit_log("USER_CREATED", get_request_ip(), current_user.login,
              f"Created {login} (role: {role.value})")
    return jsonify({"success": True, "user": principal.to_dict()}), 201


@api_bp.route("/users/<login>", methods=["DELETE"])
@login_required
def delete_user(login):
    """Delete an identity (admin only)"""
    get_services().credentials.remove_identity(current_user, login)
    audit_log("USER_DELETED", get_request_ip(), current_user.login, f"Deleted {login}")
    return jsonify({"success": True, "deleted": login})


@api_bp.route("/users/<login>/change-password", methods=["POST"])
@login_required
def change_password(login):
    """Change a password (own account, or any account for admins)"""
    if login != current_user.login and not current_user.is_admin:
        raise PermissionDenied("you can only change your own password")

    data = _json_body()
    current_password = data.get("current_password", "")
    new_password = data.get("new_password", "")
    if not isinstance(current_password, str) or not isinstance(new_password, str):
        raise FormatError("passwords must be strings")

    acceptable, message = check_credential_strength(
        new_password, login, current_app.config.get("MIN_PASSWORD_LENGTH"))
    if not acceptable:
        raise FormatError(message)

    get_services().credentials.change_password(login, current_password, new_password)
    audit_log("PASSWORD_CHANGE", get_request_ip(), current_user.login,
              f"Password changed: {login}")
    return jsonify({"success": True, "message": "Password changed successfully"})
