import os

BASE_DIR = os.path.abspath(os.path.dirname(__file__))

class Config:
    # Secrets
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-only-change-me")

    # Accounts database (users, roles, sessions, audit log)
    SQLALCHEMY_DATABASE_URI = os.getenv(
        "ACCOUNTS_DATABASE_URL",
        "sqlite:///" + os.path.join(BASE_DIR, "barber_accounts.db")
    )
    # Scheduling database (barbers, slots, reservations)
    SQLALCHEMY_BINDS = {
        "scheduling": os.getenv(
            "SCHEDULING_DATABASE_URL",
            "sqlite:///" + os.path.join(BASE_DIR, "barber_scheduling.db")
        ),
    }
    SQLALCHEMY_ENGINE_OPTIONS = {"pool_pre_ping": True}
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # 8 hours session lifetime
    SESSION_LIFETIME_SECONDS = 8 * 60 * 60

    # Idle timeout: 20 minutes
    IDLE_TIMEOUT_SECONDS = 20 * 60

    BCRYPT_ROUNDS = int(os.getenv("BCRYPT_ROUNDS", "12"))

    # Users registering with this email get the ADMIN role
    ADMIN_EMAIL = os.getenv("ADMIN_EMAIL")

    # Appointment sheet generation (background)
    DOCUMENT_PROCESSING_DELAY_SECONDS = float(os.getenv("DOCUMENT_PROCESSING_DELAY_SECONDS", "3"))
    DOCUMENT_WORKERS = int(os.getenv("DOCUMENT_WORKERS", "4"))

    # Development convenience; production schemas come from `flask db upgrade`
    CREATE_TABLES_ON_STARTUP = os.getenv("CREATE_TABLES_ON_STARTUP", "false").lower() == "true"

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    # Basic app settings
    DEBUG = False
