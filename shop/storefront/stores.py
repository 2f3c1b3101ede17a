# shop/storefront/stores.py
"""
Shopper state kept on the client.

Both stores live in the signed session cookie, each under its own key. A
store loads its state when constructed and writes it back after every
mutation; nothing is shared across requests on the server.
"""
from __future__ import annotations

from decimal import Decimal

from flask import session

from ..utils.money import D, round_money

CART_KEY = "cart"
AUTH_KEY = "auth"


def cart_item_id(product_id, variant_id=None) -> str:
    return f"{product_id}-{variant_id}" if variant_id else f"{product_id}"


def _totals(items):
    total_items = sum(int(i["quantity"]) for i in items)
    total_price = sum((D(i["totalPrice"]) for i in items), Decimal("0"))
    return total_items, float(round_money(total_price))


def _line(item, quantity):
    line = dict(item)
    line["quantity"] = quantity
    line["totalPrice"] = float(round_money(D(item["price"]) * quantity))
    return line


class CartStore:
    def __init__(self, storage=None):
        self._storage = session if storage is None else storage
        raw = self._storage.get(CART_KEY) or {}
        self.items = list(raw.get("items") or [])
        # totals are recomputed, never trusted from storage
        self.total_items, self.total_price = _totals(self.items)

    def _save(self):
        self.total_items, self.total_price = _totals(self.items)
        self._storage[CART_KEY] = self.as_dict()

    def as_dict(self):
        return {"items": self.items, "totalItems": self.total_items, "totalPrice": self.total_price}

    def _index(self, item_id):
        for idx, item in enumerate(self.items):
            if item["id"] == item_id:
                return idx
        return None

    def add(self, product: dict, variant_id=None, quantity=1):
        """Add ``product`` (API detail shape) or bump an existing line."""
        quantity = max(int(quantity), 1)
        item_id = cart_item_id(product["id"], variant_id)
        idx = self._index(item_id)
        if idx is not None:
            existing = self.items[idx]
            self.items[idx] = _line(existing, existing["quantity"] + quantity)
        else:
            variants = product.get("variants") or []
            variant = next((v for v in variants if v["id"] == variant_id), None) if variant_id else None
            price_source = variant or (variants[0] if variants else None)
            price = float(D(price_source["price"])) if price_source and price_source.get("price") else 0.0
            image = product.get("image") or ((product.get("images") or [None])[0])
            self.items.append(_line({
                "id": item_id,
                "productId": product["id"],
                "variantId": variant_id,
                "product": {
                    "id": product["id"],
                    "title": product["title"],
                    "handle": product.get("handle"),
                    "vendor": product.get("vendor"),
                    "image": {"src": image.get("src"), "alt": image.get("alt")} if image else None,
                },
                "variant": {
                    "id": variant["id"],
                    "title": variant.get("title"),
                    "price": variant.get("price"),
                    "sku": variant.get("sku"),
                    "available": variant.get("available"),
                } if variant else None,
                "price": price,
            }, quantity))
        self._save()

    def remove(self, item_id):
        self.items = [i for i in self.items if i["id"] != item_id]
        self._save()

    def update_quantity(self, item_id, quantity):
        quantity = int(quantity)
        if quantity <= 0:
            self.remove(item_id)
            return
        idx = self._index(item_id)
        if idx is not None:
            self.items[idx] = _line(self.items[idx], quantity)
        self._save()

    def increase(self, item_id):
        idx = self._index(item_id)
        if idx is not None:
            self.update_quantity(item_id, self.items[idx]["quantity"] + 1)

    def decrease(self, item_id):
        idx = self._index(item_id)
        if idx is not None:
            self.update_quantity(item_id, self.items[idx]["quantity"] - 1)

    def clear(self):
        self.items = []
        self._save()

    def contains(self, product_id, variant_id=None):
        return self._index(cart_item_id(product_id, variant_id)) is not None

    def checkout_items(self):
        """Lines in the shape the checkout endpoint accepts."""
        return [
            {
                "productId": i["productId"],
                "variantId": i.get("variantId"),
                "productTitle": i["product"]["title"],
                "variantTitle": (i.get("variant") or {}).get("title"),
                "quantity": i["quantity"],
                "price": i["price"],
            }
            for i in self.items
        ]


class AuthStore:
    def __init__(self, storage=None):
        self._storage = session if storage is None else storage
        raw = self._storage.get(AUTH_KEY) or {}
        self.token = raw.get("token")
        self.user = raw.get("user")

    @property
    def is_authenticated(self):
        return bool(self.token)

    def _save(self):
        self._storage[AUTH_KEY] = {"token": self.token, "user": self.user}

    def login(self, user, token):
        self.user = user
        self.token = token
        self._save()

    def logout(self):
        self.user = None
        self.token = None
        self._storage.pop(AUTH_KEY, None)
