# login_finder/indicators.py
"""
Signals the static scorer looks for in a response body.

All entries are lower-case; bodies are lower-cased once before matching.
Chinese entries are kept alongside English ones because the crawler is
routinely pointed at localized sites.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, fields, replace
from typing import Any, Mapping, Tuple

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class LoginIndicators:
    """Read-only table of keyword lists. Safe to share between tasks."""

    form_attributes: Tuple[str, ...]
    input_types: Tuple[str, ...]
    button_texts: Tuple[str, ...]
    keywords: Tuple[str, ...]
    exclusions: Tuple[str, ...]

    def extended(self, extras: Mapping[str, Any] | None) -> "LoginIndicators":
        """
        Return a copy with extra strings appended to the named lists.

        Unknown list names are ignored with a warning; duplicates are skipped.
        """
        if not extras:
            return self
        known = {f.name for f in fields(self)}
        changes: dict[str, Tuple[str, ...]] = {}
        for name, values in extras.items():
            if name not in known:
                log.warning("Ignoring unknown indicator list: %s", name)
                continue
            current = list(getattr(self, name))
            for value in values or []:
                value = str(value).lower()
                if value and value not in current:
                    current.append(value)
            changes[name] = tuple(current)
        return replace(self, **changes)


DEFAULT_INDICATORS = LoginIndicators(
    form_attributes=(
        "login",
        "signin",
        "sign-in",
        "logon",
        "authenticate",
    ),
    input_types=(
        "password",
        "text",
        "email",
        "tel",
    ),
    button_texts=(
        "登录",
        "登陆",
        "sign in",
        "signin",
        "login",
        "log in",
        "submit",
        "确定",
        "提交",
    ),
    keywords=(
        "用户名",
        "账号",
        "account",
        "username",
        "密码",
        "password",
        "登录",
        "login",
        "signin",
        "sign in",
        "sign-in",
    ),
    exclusions=(
        "注册",
        "register",
        "signup",
        "忘记密码",
        "找回密码",
    ),
)

# Tokens that hint at a CAPTCHA next to the form.
CAPTCHA_TOKENS = ("captcha", "验证码")
