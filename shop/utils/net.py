# shop/utils/net.py
from flask import request


def get_client_ip():
    # honor proxies/load balancers if present
    xff = request.headers.get("X-Forwarded-For", "")
    if xff:
        # first ip in list is original client
        return xff.split(",")[0].strip()
    return request.headers.get("X-Real-IP") or request.remote_addr or "127.0.0.1"


def last_value_args():
    """Query string as a flat dict; repeated keys keep their last value."""
    return {key: values[-1] for key, values in request.args.lists() if values}


def bearer_token():
    header = request.headers.get("Authorization", "")
    if not header.startswith("Bearer "):
        return None
    token = header.split(" ", 1)[1].strip()
    return token or None
