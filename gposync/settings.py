import re
import os.path
import dj_database_url

from configurations import Configuration


BASE_DIR = os.path.dirname(os.path.abspath(__file__))


def get_bool(name, default):
    return os.getenv(name, str(default)).lower() == "true"


def get_intOrNone(name, default):
    """Parses the env variable, accepts ints and literal None"""
    value = os.getenv(name, str(default))
    if value.lower() == "none":
        return None
    return int(value)


class BaseConfig(Configuration):

    DEBUG = get_bool("DEBUG", False)

    ADMINS = re.findall(r"\s*([^<]+) <([^>]+)>\s*", os.getenv("ADMINS", ""))

    MANAGERS = ADMINS

    _DATABASES = {
        "default": dj_database_url.config(
            default="sqlite:///"
            + os.path.abspath(os.path.join(BASE_DIR, "..", "gposync.sqlite3")),
            conn_max_age=int(os.getenv("CONN_MAX_AGE", 0)),
        )
    }

    # statement timeout in milliseconds; an overrunning statement aborts and
    # rolls back the surrounding transaction (PostgreSQL only)
    _STATEMENT_TIMEOUT = get_intOrNone("DB_STATEMENT_TIMEOUT", None)

    @property
    def DATABASES(self):
        default = self._DATABASES["default"]
        if self._STATEMENT_TIMEOUT and "postgresql" in default["ENGINE"]:
            options = default.setdefault("OPTIONS", {})
            options["options"] = "-c statement_timeout={timeout}".format(
                timeout=self._STATEMENT_TIMEOUT
            )
        return self._DATABASES

    DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

    # Subscription and episode timestamps are compared across devices in
    # different time zones, so everything is stored in UTC
    TIME_ZONE = "UTC"
    USE_TZ = True

    LANGUAGE_CODE = "en-us"

    USE_I18N = False

    INSTALLED_APPS = [
        "django.contrib.contenttypes",
        "django.contrib.auth",
        "gposync.core",
        "gposync.users",
        "gposync.podcasts",
        "gposync.history",
        "gposync.usersettings",
    ]

    AUTH_USER_MODEL = "auth.User"

    SECRET_KEY = os.getenv("SECRET_KEY", "")

    ALLOWED_HOSTS = ["*"]

    _LOGGING = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "verbose": {"format": "%(asctime)s %(name)s %(levelname)s %(message)s"}
        },
        "handlers": {
            "console": {
                "level": os.getenv("LOGGING_CONSOLE_LEVEL", "DEBUG"),
                "class": "logging.StreamHandler",
                "formatter": "verbose",
            }
        },
        "loggers": {
            "django": {
                "handlers": os.getenv("LOGGING_DJANGO_HANDLERS", "console").split(),
                "propagate": True,
                "level": os.getenv("LOGGING_DJANGO_LEVEL", "WARN"),
            },
            "gposync": {
                "handlers": os.getenv("LOGGING_GPOSYNC_HANDLERS", "console").split(),
                "level": os.getenv("LOGGING_GPOSYNC_LEVEL", "INFO"),
            },
        },
    }

    _use_log_file = bool(os.getenv("LOGGING_FILENAME", False))

    @property
    def LOGGING(self):
        if self._use_log_file:
            self._LOGGING["handlers"]["file"] = {
                "level": "INFO",
                "class": "logging.handlers.RotatingFileHandler",
                "filename": os.getenv("LOGGING_FILENAME"),
                "maxBytes": 10_000_000,
                "backupCount": 10,
                "formatter": "verbose",
            }
        return self._LOGGING


class Local(BaseConfig):

    DEBUG = get_bool("DEBUG", True)


class Test(BaseConfig):
    SECRET_KEY = "test"

    _DATABASES = {"default": dj_database_url.parse("sqlite://:memory:")}

    PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]


class Prod(BaseConfig):
    ALLOWED_HOSTS = os.getenv("ALLOWED_HOSTS", "127.0.0.1,localhost").split(",")

    @classmethod
    def post_setup(cls):
        """Sentry initialization"""
        super(Prod, cls).post_setup()

        # Sentry Data Source Name (DSN)
        sentry_dsn = os.getenv("SENTRY_DSN", "")
        if not sentry_dsn:
            return

        import sentry_sdk
        from sentry_sdk.integrations.django import DjangoIntegration

        sentry_sdk.init(dsn=sentry_dsn, integrations=[DjangoIntegration()])
