from __future__ import annotations
from dataclasses import dataclass
from typing import Iterable
from flask import Request

@dataclass(frozen=True)
class Rule:
    blueprint: str | None  # None = cualquiera
    methods: set[str]      # {"GET"} o {"POST","PATCH"} o {"*"}
    roles: set[str]        # {"member","admin"}

PUBLIC_ENDPOINTS = {"health", "index"}

def _method_match(rule_methods: set[str], method: str) -> bool:
    return "*" in rule_methods or method in rule_methods

def is_public_endpoint(endpoint: str | None) -> bool:
    if not endpoint:
        return False
    if endpoint.startswith("auth."):
        return True
    return endpoint in PUBLIC_ENDPOINTS

def check_access(user, req: Request, rules: Iterable[Rule]) -> bool:
    role = getattr(getattr(user, "role", None), "value", None)

    # admin override
    if role == "admin":
        return True

    bp = req.blueprint
    method = req.method

    for r in rules:
        if r.blueprint is not None and r.blueprint != bp:
            continue
        if not _method_match(r.methods, method):
            continue
        if role in r.roles:
            return True

    return False
