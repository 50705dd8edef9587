"""Fixed names, paths and markers for the MediaWiki container stack."""

DIR_MODE = 0o755
FILE_MODE = 0o600

DEFAULT_DATA_DIR = "/srv/mediawiki-containers/data"
DEFAULT_REPO_DIR = "/usr/local/lib/mediawiki-containers"
DEFAULT_REPO_URL = "https://github.com/wikimedia/mediawiki-containers.git"
DEFAULT_INSTALLER_SCRIPT = "mediawiki-containers"
DEFAULT_SERVICE_NAME = "mediawiki-containers"
CONFIG_FILE_NAME = "config"

DEFAULT_DOMAIN = "localhost"
DEFAULT_ADMIN_USER = "admin"
DEFAULT_DB_PASSWORD = "password"

ADMIN_PASSWORD_LENGTH = 8

DNS_CONTAINER = "mediawiki-dnsmasq"
DB_CONTAINER = "mediawiki-mysql"
APP_CONTAINER = "mediawiki"
NODE_SERVICES_CONTAINER = "mediawiki-node-services"

DNS_IMAGE = "jderusse/dns-gen"
DB_IMAGE = "mariadb"
APP_IMAGE = "wikimedia/mediawiki"
NODE_SERVICES_IMAGE = "wikimedia/mediawiki-node-services"

DNS_SEARCH_DOMAIN = "docker"

INSTALL_DONE_SENTINEL = "Done in "
APACHE_STARTED_MARKER = "AH00558"
DEFAULT_SENTINEL_TIMEOUT = 1800.0

GIT_PACKAGE_MANAGERS = ("apt-get", "dnf", "yum")
