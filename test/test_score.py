# Unit tests for the static login heuristic using pytest.

from __future__ import annotations

import pytest

from login_finder.indicators import DEFAULT_INDICATORS
from login_finder.scoring import calculate_score, is_login_page

BARE_FORM = '<form><input type="password"></form>'

# text + password inputs inside a form, no login vocabulary:
# password keyword 1 + two input types 3 + form/password structure 3 = 7
PLAIN_FORM = '<form><input type="text" name="user"><input type="password"></form>'

LOGIN_FORM = """
<html><body>
<form action="/login" method="post">
  <input type="text" name="user">
  <input type="password" name="pw">
  <button>Go</button>
</form>
</body></html>
"""


@pytest.mark.parametrize(
    "body",
    [
        None,
        "",
        "<html><body>hello</body></html>",
        "not html at all {json: true}",
        # password input but no form
        '<input type="password"> login username',
        # form but no password input
        "<form action='/login'><input type='text'> login</form>",
    ],
)
def test_gate_failures_score_zero(body):
    assert calculate_score(body) == 0
    assert is_login_page(body) is False


def test_bare_form_with_password_is_below_threshold():
    # password keyword 1 + structure 3
    assert calculate_score(BARE_FORM) == 4
    assert is_login_page(BARE_FORM) is False


def test_login_form_scores_above_threshold():
    # form attr "login" 2, two input types 3, button "login" 2,
    # keywords "password" + "login" 2, structure 3
    assert calculate_score(LOGIN_FORM) == 12
    assert is_login_page(LOGIN_FORM) is True


def test_matching_is_case_insensitive():
    assert calculate_score(LOGIN_FORM.upper()) == calculate_score(LOGIN_FORM)


def test_plain_form_sits_just_above_threshold():
    assert calculate_score(PLAIN_FORM) == 7
    assert is_login_page(PLAIN_FORM) is True


@pytest.mark.parametrize(
    "extra, expected_score, expected_login",
    [
        ("", 7, True),
        (" register", 7, True),
        (" register signup", 7, True),  # two exclusions: no penalty yet
        (" register signup 注册", 4, False),  # three exclusions: -3
    ],
)
def test_exclusion_penalty_boundary(extra, expected_score, expected_login):
    body = PLAIN_FORM + extra
    assert calculate_score(body) == expected_score
    assert is_login_page(body) is expected_login


def test_captcha_adds_one_point():
    assert calculate_score(BARE_FORM + " captcha") == 5
    assert calculate_score(BARE_FORM + " 验证码") == 5
    # both tokens still count once
    assert calculate_score(BARE_FORM + " captcha 验证码") == 5


def test_structure_needs_password_inside_form():
    # password input after the form closes: no structural bonus
    body = '<form action="/x"></form><input type="password">'
    assert calculate_score(body) == 1


def test_structure_accepts_single_quoted_type():
    # the gate needs a double-quoted marker somewhere; the structure match
    # accepts either quote style
    body = "<form><input type='password'></form><!-- type=\"password\" -->"
    assert calculate_score(body) == 4


def test_localized_login_page():
    body = """
    <form id="f"><label>用户名</label><input type="text">
    <label>密码</label><input type="password">
    <button>登录</button></form>
    """
    # buttons 登录 2; keywords 用户名 密码 登录 password 4; types 3; structure 3
    assert calculate_score(body) == 12
    assert is_login_page(body) is True


def test_repeated_calls_are_stable():
    results = {calculate_score(LOGIN_FORM) for _ in range(20)}
    assert results == {12}
    assert all(is_login_page(PLAIN_FORM) for _ in range(20))


def test_threshold_is_configurable():
    assert is_login_page(PLAIN_FORM, threshold=8) is False
    assert is_login_page(BARE_FORM, threshold=4) is True


def test_extended_indicators_add_points():
    indicators = DEFAULT_INDICATORS.extended({"form_attributes": ["portal"]})
    body = '<form action="/portal"><input type="password"></form>'
    assert calculate_score(body) == 4
    assert calculate_score(body, indicators) == 6


def test_extended_indicators_ignore_unknown_lists_and_duplicates():
    indicators = DEFAULT_INDICATORS.extended(
        {"nonsense": ["x"], "keywords": ["LOGIN", "benutzername"]}
    )
    assert indicators.keywords.count("login") == 1
    assert indicators.keywords[-1] == "benutzername"
    assert DEFAULT_INDICATORS.extended(None) is DEFAULT_INDICATORS
