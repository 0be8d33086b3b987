WORLD_NAME = "hoard"

# Ledgers live on the sheet next to the fields they account for.
LEDGER_PREFIX = "hr_ledger_"
ROW_LEDGER_PREFIX = "hr_ledger_rows_"
TOGGLE_LEDGER_PREFIX = "hr_ledger_toggle_"
RESOURCE_LEDGER_PREFIX = "hr_ledger_res_"
HOOK_LEDGER_PREFIX = "hr_ledger_hooks_"
SET_LEDGER_PREFIX = "hr_ledger_set_"
ABILITY_LEDGER_PREFIX = "hr_ledger_ability_"

# Repeating row bookkeeping (mirrors the sheet's own ordering attribute).
REPEATING_PREFIX = "repeating_"
REPORDER_PREFIX = "_reporder_repeating_"
REMEMBERED_ROWS_PREFIX = "hr_rows_"
ROW_ID_LENGTH = 19
ROW_ID_CHARSET = "abcdefghijklmnopqrstuvwxyz0123456789"
DEFAULT_ROW_LABEL_FIELD = "name"
DEFAULT_ROW_ACTIVE_FIELD = "active"

# Resource counters: hr_res_<slug>_max / _cur / _cadence
RESOURCE_PREFIX = "hr_res_"
RESOURCE_SUFFIXES = ("_max", "_cur", "_cadence")
DEFAULT_CADENCE = "per_room"

# String-segment "has modifier" flags.
FLAG_SUFFIX = "_flag"
FLAG_ON = "on"
FLAG_OFF = "0"

# Character abilities: hr_ability_<slug> holds {"name", "action", "token"}
ABILITY_PREFIX = "hr_ability_"

# GM notes are one labelled line each.
DEFAULT_NOTE_FIELD = "gmnotes"
NOTE_SEPARATOR = "\n"

HOOK_SEPARATOR = "|"
REMEMBERED_ROWS_SEPARATOR = "|"
HOOK_SEPARATOR_REPLACEMENT = "/"
ROW_ORDER_SEPARATOR = ","

LEDGER_KEY_SEPARATOR = "::"
INSTANCE_ID_PREFIX = "fx_"

DEFAULT_ADAPTER_NAME = "dnd5e-ledger"
# A sheet carrying any of these attributes is recognised by the ledger adapter.
DEFAULT_DETECT_MARKERS = ("pb", "spellcasting_ability")
