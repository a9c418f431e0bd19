# --- storefront/utils/api.py ---
from flask import jsonify


def api_ok(message, data=None, key="data", **extra):
    body = {
        "success": True,
        key: data,
        "message": message,
    }
    body.update(extra)
    return body


def api_error(message, errors=None, key="data", **extra):
    body = {
        "success": False,
        key: None,
        "message": message,
    }
    if errors:
        body["errors"] = errors
    body.update(extra)
    return body


# ---- response helpers shared by the blueprints -----------------------------
def ok(msg, data=None, status=200, key="data", **extra):
    r = jsonify(api_ok(msg, data, key=key, **extra)); r.status_code = status; return r

def err(msg, status=400, errors=None, key="data", **extra):
    r = jsonify(api_error(msg, errors, key=key, **extra)); r.status_code = status; return r
