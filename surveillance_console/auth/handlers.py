"""
Authentication handlers for the Surveillance Console.
Uses Flask-Login on top of the session state.
Includes rate limiting to prevent brute force attacks.
Includes audit logging for security events.
"""
import time
from collections import defaultdict

from flask import current_app, jsonify
from flask_login import LoginManager

from ..config import Config
from ..errors import AuthenticationFailed, LoginThrottled
from ..security import audit_log, get_request_ip

# Initialize Flask-Login
login_manager = LoginManager()


class LoginThrottle:
    """Track failed login attempts per client IP"""

    def __init__(self, max_attempts=Config.MAX_FAILED_ATTEMPTS,
                 lockout_duration=Config.LOCKOUT_DURATION,
                 attempt_window=Config.ATTEMPT_WINDOW, clock=time.time):
        self.max_attempts = max_attempts
        self.lockout_duration = lockout_duration
        self.attempt_window = attempt_window
        self._clock = clock
        self._failed_attempts = defaultdict(list)

    def _clean_old_attempts(self, ip: str):
        """Remove attempts older than the tracking window"""
        current_time = self._clock()
        self._failed_attempts[ip] = [
            t for t in self._failed_attempts[ip]
            if current_time - t < self.attempt_window
        ]

    def record_failure(self, ip: str) -> int:
        """Record a failed login attempt, return the count in the window"""
        self._failed_attempts[ip].append(self._clock())
        self._clean_old_attempts(ip)
        return len(self._failed_attempts[ip])

    def clear(self, ip: str):
        """Clear failed attempts after successful login"""
        self._failed_attempts.pop(ip, None)

    def is_limited(self, ip: str) -> tuple[bool, int]:
        """
        Check if an IP is rate limited.
        Returns (is_limited, seconds_remaining)
        """
        self._clean_old_attempts(ip)
        attempts = self._failed_attempts.get(ip, [])

        if len(attempts) >= self.max_attempts:
            time_since_lockout = self._clock() - max(attempts)
            if time_since_lockout < self.lockout_duration:
                return True, int(self.lockout_duration - time_since_lockout)
            self.clear(ip)

        return False, 0


def init_auth(app, services):
    """Initialize authentication for the Flask app"""
    login_manager.init_app(app)
    app.extensions['login_throttle'] = LoginThrottle(
        max_attempts=app.config.get('MAX_FAILED_ATTEMPTS', Config.MAX_FAILED_ATTEMPTS),
        lockout_duration=app.config.get('LOCKOUT_DURATION', Config.LOCKOUT_DURATION),
        attempt_window=app.config.get('ATTEMPT_WINDOW', Config.ATTEMPT_WINDOW),
    )

    credentials = services.credentials
    admin_login = app.config.get('PRIMARY_ADMIN_LOGIN', Config.PRIMARY_ADMIN_LOGIN)
    if not app.config.get('TESTING') and credentials.authenticate(admin_login, Config.DEFAULT_ADMIN_PASSWORD).success:
        print("\n" + "=" * 70)
        print("WARNING: DEFAULT CREDENTIALS DETECTED!")
        print("=" * 70)
        print("The primary administrator is using the default password.")
        print("Set CONSOLE_ADMIN_PASSWORD or change it through /api/users.")
        print("=" * 70 + "\n")

    print(f"[Auth] Identities: {len(credentials)} total")
    print(f"[Auth] Session timeout: {app.config.get('SESSION_TIMEOUT_MINUTES', Config.SESSION_TIMEOUT_MINUTES)} minutes")


@login_manager.user_loader
def load_user(user_id):
    """Return the session's principal if the cookie belongs to it"""
    from ..services import get_services
    principal = get_services().session.current_principal()
    if principal is not None and principal.get_id() == user_id:
        return principal
    return None


def authenticate(username: str, password: str):
    """Log in through the session state, with rate limiting.
    Raises LoginThrottled or AuthenticationFailed."""
    from ..services import get_services

    ip = get_request_ip()
    throttle = current_app.extensions['login_throttle']

    limited, remaining = throttle.is_limited(ip)
    if limited:
        audit_log('LOGIN_RATE_LIMITED', ip, username, f'Locked out for {remaining}s')
        raise LoginThrottled(remaining)

    try:
        principal = get_services().session.login(username, password)
    except AuthenticationFailed as e:
        attempts = throttle.record_failure(ip)
        audit_log('LOGIN_FAILURE', ip, username,
                  f'{e.reason.value} (attempt {attempts}/{throttle.max_attempts})')
        raise

    throttle.clear(ip)
    audit_log('LOGIN_SUCCESS', ip, username, f'Authentication successful (role: {principal.role.value})')
    return principal


def log_logout(username: str):
    """Log a logout event"""
    audit_log('LOGOUT', get_request_ip(), username, 'User logged out')


@login_manager.unauthorized_handler
def unauthorized():
    """JSON 401 instead of a redirect; there is no login page"""
    return jsonify({'error': 'login required', 'code': 1001, 'kind': 'AuthFailure',
                    'severity': 'Warning'}), 401
