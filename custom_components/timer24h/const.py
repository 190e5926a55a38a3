"""Constants for the Timer 24H integration."""
from typing import Final

DOMAIN: Final = "timer24h"
VERSION = "2.1.0"

# --- Schedule Geometry ---
SLOT_MINUTES: Final = 30
SLOTS_PER_DAY: Final = 48

# Config keys
CONF_TITLE: Final = "title"
CONF_HOME_LOGIC: Final = "home_logic"
CONF_ENTITIES: Final = "entities"
CONF_HOME_SENSORS: Final = "home_sensors"
CONF_SAVE_STATE: Final = "save_state"
CONF_STORAGE_KEY: Final = "storage_key"
CONF_ALLOW_LOCAL_FALLBACK: Final = "allow_local_fallback"
CONF_AUTO_CREATE_HELPER: Final = "auto_create_helper"

# Sensor combinators
LOGIC_AND: Final = "AND"
LOGIC_OR: Final = "OR"
HOME_LOGIC_OPTIONS: Final = (LOGIC_AND, LOGIC_OR)

# Defaults (applied when a field is missing or malformed)
DEFAULT_TITLE: Final = "24 Hour Timer"
DEFAULT_STUB_TITLE: Final = "Timer 24H"
DEFAULT_HOME_LOGIC: Final = LOGIC_OR
DEFAULT_SAVE_STATE: Final = True
DEFAULT_ALLOW_LOCAL_FALLBACK: Final = True
DEFAULT_AUTO_CREATE_HELPER: Final = False

# Sensor normalization
PRESENCE_STATES: Final = frozenset({"on", "home", "true", "active", "detected"})
# "on" means a restriction is in effect, which forces the schedule to run.
INVERTED_SENSORS: Final = frozenset({"binary_sensor.jewish_calendar_issur_melacha_in_effect"})

# Timing (seconds)
EVALUATION_INTERVAL: Final = 60
SYNC_INTERVAL: Final = 60
CLEANUP_GRACE_PERIOD: Final = 5

# Storage
STORAGE_VERSION: Final = 1
STORAGE_KEY_PREFIX: Final = "timer_24h_card_"
DOCUMENT_STORE_TEMPLATE: Final = "timer24h.{}"
LOCAL_STORE_KEY: Final = "timer24h.local"
LOCAL_KEY_TEMPLATE: Final = "timer-24h-{}"
NOTIFICATION_TITLE: Final = "Timer 24H Card Data"

# Persisted document fields
DOC_TIME_SLOTS: Final = "timeSlots"
DOC_TIMESTAMP: Final = "timestamp"

# Tier names
TIER_DOCUMENT: Final = "document"
TIER_NOTIFICATION: Final = "notification"
TIER_LOCAL: Final = "local"

# Sync indicator
SYNC_SYNCED: Final = "synced"
SYNC_LOCAL: Final = "local"
SYNC_UNSAVED: Final = "unsaved"
SYNC_STATES: Final = [SYNC_SYNCED, SYNC_LOCAL, SYNC_UNSAVED]

# Actuator commands
HVAC_MODE_HEAT: Final = "heat"
HVAC_MODE_OFF: Final = "off"

# Services
SERVICE_TOGGLE_SLOT: Final = "toggle_slot"
SERVICE_SET_SLOTS: Final = "set_slots"
ATTR_HOUR: Final = "hour"
ATTR_MINUTE: Final = "minute"
ATTR_SLOTS: Final = "slots"
ATTR_ENTRY_ID: Final = "entry_id"
