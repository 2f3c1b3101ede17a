# --- shop/utils/api.py ---
from datetime import datetime, timezone

from flask import jsonify


def _meta(meta):
    if meta is None:
        return None
    out = {"timestamp": datetime.now(timezone.utc).isoformat()}
    out.update(meta)
    return out


def api_ok(message=None, data=None, meta=None):
    body = {"success": True}
    if message:
        body["message"] = message
    if data is not None:
        body["data"] = data
    meta = _meta(meta)
    if meta:
        body["meta"] = meta
    return body


def api_error(message, meta=None):
    body = {"success": False, "error": message}
    meta = _meta(meta)
    if meta:
        body["meta"] = meta
    return body


# unified response helpers
def ok(message, data=None, status_code=200, meta=None):
    resp = jsonify(api_ok(message, data, meta))
    resp.status_code = status_code
    return resp


def err(message, status_code=400, meta=None):
    resp = jsonify(api_error(message, meta))
    resp.status_code = status_code
    return resp
