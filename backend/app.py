import logging
import socket

from dotenv import load_dotenv
from flask import Flask, jsonify, send_from_directory

from account_service import AccountService
from account_store import CredentialStore
from applications import applications_bp
from auth import auth_bp
from config import Settings, get_settings
from db import Database
from errors import register_error_handlers
from extensions import cors, mail
from helpers.notifications import Notifier
from helpers.storage import LocalResumeStorage
from jobs import jobs_bp
from jobseekers import jobseekers_bp
from recruiters import recruiters_bp
from referrals import referrals_bp
from sweeper import ExpirySweeper

load_dotenv()

logger = logging.getLogger(__name__)


def _build_allowed_origins(settings: Settings):
    if settings.frontend_urls:
        return [origin.strip() for origin in settings.frontend_urls.split(',') if origin.strip()]
    origins = {'http://localhost:3000', 'http://127.0.0.1:3000', 'http://localhost:5173'}
    try:
        local_ip = socket.gethostbyname(socket.gethostname())
        if local_ip:
            origins.add(f'http://{local_ip}:3000')
    except OSError:
        pass
    return sorted(origins)


def create_app(settings=None, database=None, notifier=None, storage=None):
    settings = settings or get_settings()

    app = Flask(__name__)
    app.config['TESTING'] = settings.testing
    app.config['JWT_SECRET'] = settings.jwt_secret
    # Mail configuration
    app.config['MAIL_SERVER'] = settings.mail_server
    app.config['MAIL_PORT'] = settings.mail_port
    app.config['MAIL_USE_TLS'] = settings.mail_use_tls
    app.config['MAIL_USE_SSL'] = settings.mail_use_ssl
    app.config['MAIL_USERNAME'] = settings.mail_username
    app.config['MAIL_PASSWORD'] = settings.mail_password
    app.config['MAIL_DEFAULT_SENDER'] = settings.mail_default_sender
    app.config['MAIL_SUPPRESS_SEND'] = settings.mail_suppress_send
    # Leave headroom for the other form fields; the resume store enforces the file cap.
    app.config['MAX_CONTENT_LENGTH'] = settings.max_resume_bytes + 1024 * 1024
    # Disable strict slashes to prevent redirects that break CORS preflight
    app.url_map.strict_slashes = False

    cors.init_app(
        app,
        resources={
            r"/api/*": {
                "origins": _build_allowed_origins(settings),
                "methods": ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
                "allow_headers": ["Content-Type", "Authorization"],
                "supports_credentials": True,
            }
        },
        supports_credentials=True,
        automatic_options=True,
    )
    mail.init_app(app)
    register_error_handlers(app)

    database = database or Database(settings.sqlalchemy_url)
    database.create_all()
    notifier = notifier or Notifier(mail, settings)
    storage = storage or LocalResumeStorage(
        settings.upload_folder,
        url_prefix=settings.upload_url_prefix,
        max_bytes=settings.max_resume_bytes,
    )

    app.extensions['settings'] = settings
    app.extensions['database'] = database
    app.extensions['notifier'] = notifier
    app.extensions['resume_storage'] = storage
    app.extensions['account_service'] = AccountService(CredentialStore(database), notifier, settings)

    @app.route('/', methods=['GET'])
    def root():
        return jsonify({
            "status": "ok",
            "message": f"{settings.app_name} root. See /health for status.",
            "endpoints": [
                "/health", "/api/auth", "/api/jobs", "/api/jobseekers",
                "/api/applications", "/api/recruiters", "/api/referrals",
            ],
        })

    @app.route('/health', methods=['GET'])
    def health():
        return jsonify({"status": "ok", "message": f"{settings.app_name} is running"})

    @app.route(f"{settings.upload_url_prefix.rstrip('/')}/<path:filename>", methods=['GET'])
    def uploaded_file(filename):
        return send_from_directory(storage.folder, filename)

    app.register_blueprint(auth_bp, url_prefix='/api/auth')
    app.register_blueprint(jobs_bp, url_prefix='/api/jobs')
    app.register_blueprint(jobseekers_bp, url_prefix='/api/jobseekers')
    app.register_blueprint(applications_bp, url_prefix='/api/applications')
    app.register_blueprint(recruiters_bp, url_prefix='/api/recruiters')
    app.register_blueprint(referrals_bp, url_prefix='/api/referrals')

    sweeper = ExpirySweeper(database, interval=settings.sweeper_interval_seconds)
    app.extensions['expiry_sweeper'] = sweeper
    if settings.sweeper_enabled and not settings.testing:
        sweeper.start()

    return app


if __name__ == '__main__':
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    )
    settings = get_settings()
    app = create_app(settings)
    logger.info("Starting %s on port %s", settings.app_name, settings.port)
    # The reloader would start a second sweeper thread.
    app.run(host='0.0.0.0', port=settings.port, debug=settings.flask_debug,
            use_reloader=False)
