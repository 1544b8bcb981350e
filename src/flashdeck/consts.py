VERSION = "0.3.0"

APP_NAME = "flashdeck"
ENV_PREFIX = "FLASHDECK_"
AUDIT_LOGGER_NAME = "flashdeck.audit"
AUDIT_LOG_FILE = "audit.log"
