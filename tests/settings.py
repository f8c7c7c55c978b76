from environ import Env

env = Env()

DATABASES = {}

MAPML_LEGACY_WGS84_BINDING = env.bool("MAPML_LEGACY_WGS84_BINDING", default=False)

INSTALLED_APPS = [
    "mapmlserver",
]

# Test session requirements

SECRET_KEY = "insecure-tests-only"

TIME_ZONE = "Europe/Amsterdam"

ALLOWED_HOSTS = ["testserver"]

CSRF_COOKIE_SECURE = False
SESSION_COOKIE_SECURE = False

ROOT_URLCONF = "tests.test_mapmlserver.urls"
