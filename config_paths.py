import json
import os

HOME = os.path.expanduser("~")
XDG_CONFIG_HOME = os.environ.get("XDG_CONFIG_HOME")
CONFIG_HOME = XDG_CONFIG_HOME if XDG_CONFIG_HOME else os.path.join(HOME, ".config")
CONFIG_DIR = os.path.join(CONFIG_HOME, "tableditor")
CONFIG_JSON = os.path.join(CONFIG_DIR, "config.json")

# default settings
EDITABLE_DEFAULT = False
STATUS_COLUMN_DEFAULT = "status"
DELETED_COLUMN_DEFAULT = "deleted"
COERCE_INPUTS_DEFAULT = True
HIDE_DELETED_ROWS_DEFAULT = True


def default_config():
    return {
        "EDITABLE_DEFAULT": EDITABLE_DEFAULT,
        "STATUS_COLUMN": STATUS_COLUMN_DEFAULT,
        "DELETED_COLUMN": DELETED_COLUMN_DEFAULT,
        "COERCE_INPUTS": COERCE_INPUTS_DEFAULT,
        "HIDE_DELETED_ROWS": HIDE_DELETED_ROWS_DEFAULT,
    }


def load_config():
    cfg = default_config()

    if not os.path.exists(CONFIG_JSON):
        return cfg

    try:
        with open(CONFIG_JSON, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError):
        return cfg

    if not isinstance(data, dict):
        return cfg

    editable = data.get("editable")
    if isinstance(editable, bool):
        cfg["EDITABLE_DEFAULT"] = editable

    columns = data.get("columns")
    if isinstance(columns, dict):
        status = columns.get("status")
        if isinstance(status, str) and status.strip():
            cfg["STATUS_COLUMN"] = status.strip()
        deleted = columns.get("deleted")
        if isinstance(deleted, str) and deleted.strip():
            cfg["DELETED_COLUMN"] = deleted.strip()

    coerce = data.get("coerce_inputs")
    if isinstance(coerce, bool):
        cfg["COERCE_INPUTS"] = coerce

    hide_deleted = data.get("hide_deleted_rows")
    if isinstance(hide_deleted, bool):
        cfg["HIDE_DELETED_ROWS"] = hide_deleted

    return cfg
