"""
Transactional email templates.

Inline CSS only; most mail clients strip <style> blocks. Every template
accepts keyword context and returns (subject, html_body, text_body).
"""

from __future__ import annotations

from html import escape

APP_NAME = "FitnessVibe"
SIGNATURE = f"-- The {APP_NAME} Team"

BG_PAGE = "#F4F7F6"
BG_CARD = "#FFFFFF"
ACCENT = "#FF5A36"
TEXT_MAIN = "#1B2430"
TEXT_MUTED = "#5E6B78"
RULE = "#E3E8EC"


def _page(body_html: str) -> str:
    return f"""\
<!DOCTYPE html>
<html lang="en">
<head><meta charset="UTF-8"><meta name="viewport" content="width=device-width, initial-scale=1.0"><title>{APP_NAME}</title></head>
<body style="margin:0;padding:0;background:{BG_PAGE};font-family:Helvetica,Arial,sans-serif;">
  <table role="presentation" width="100%" cellpadding="0" cellspacing="0" style="background:{BG_PAGE};">
    <tr><td align="center" style="padding:32px 16px;">
      <table role="presentation" width="560" cellpadding="0" cellspacing="0" style="max-width:560px;width:100%;">
        <tr><td style="padding-bottom:20px;font-size:22px;font-weight:700;color:{ACCENT};">{APP_NAME}</td></tr>
        <tr><td style="background:{BG_CARD};border:1px solid {RULE};border-radius:10px;padding:32px;">{body_html}</td></tr>
        <tr><td style="padding-top:20px;font-size:12px;color:{TEXT_MUTED};">
          You received this email because of activity on your {APP_NAME} account.
        </td></tr>
      </table>
    </td></tr>
  </table>
</body>
</html>"""


def _heading(text: str) -> str:
    return f'<h1 style="margin:0 0 16px;font-size:22px;color:{TEXT_MAIN};">{escape(text)}</h1>'


def _para(text: str) -> str:
    return f'<p style="margin:0 0 16px;font-size:15px;line-height:1.6;color:{TEXT_MUTED};">{text}</p>'


def _cta(url: str, label: str) -> str:
    safe_url = escape(url, quote=True)
    return (
        f'<p style="margin:24px 0;"><a href="{safe_url}" target="_blank" '
        f'style="display:inline-block;padding:12px 28px;background:{ACCENT};color:#FFFFFF;'
        f'font-weight:600;text-decoration:none;border-radius:6px;">{escape(label)}</a></p>'
        f'<p style="margin:0;font-size:12px;color:{TEXT_MUTED};word-break:break-all;">'
        f'Button not working? Paste this link into your browser:<br>{safe_url}</p>'
    )


def _greeting(display_name: str | None) -> str:
    return f"Hi {display_name or 'there'},"


def welcome_email(
    display_name: str | None = None,
    verify_url: str = "",
    expires_hours: int = 24,
    **_: object,
) -> tuple[str, str, str]:
    """Sent right after registration; doubles as the first verification email."""
    subject = f"Welcome to {APP_NAME}"
    html_body = _page(
        _heading(f"Welcome to {APP_NAME}!")
        + _para(escape(_greeting(display_name)))
        + _para(
            "Your account is ready. Confirm your email address to start earning XP, "
            "badges and a spot on the leaderboard."
        )
        + _cta(verify_url, "Confirm my email")
        + _para(f"The link is valid for {expires_hours} hours.")
    )
    text_body = (
        f"{_greeting(display_name)}\n\n"
        f"Welcome to {APP_NAME}! Confirm your email address here:\n\n{verify_url}\n\n"
        f"The link is valid for {expires_hours} hours.\n\n{SIGNATURE}"
    )
    return subject, html_body, text_body


def verify_email(
    verify_url: str = "",
    expires_hours: int = 24,
    **_: object,
) -> tuple[str, str, str]:
    subject = "Confirm your email address"
    html_body = _page(
        _heading("Confirm your email")
        + _para("Use the button below to confirm the email address on your account.")
        + _cta(verify_url, "Confirm my email")
        + _para(f"The link is valid for {expires_hours} hours. Ignore this email if you did not ask for it.")
    )
    text_body = (
        f"Confirm your email address:\n\n{verify_url}\n\n"
        f"The link is valid for {expires_hours} hours.\n\n{SIGNATURE}"
    )
    return subject, html_body, text_body


def password_reset(
    reset_url: str = "",
    display_name: str | None = None,
    expires_minutes: int = 60,
    **_: object,
) -> tuple[str, str, str]:
    subject = "Reset your password"
    validity = "1 hour" if expires_minutes == 60 else f"{expires_minutes} minutes"
    html_body = _page(
        _heading("Reset your password")
        + _para(escape(_greeting(display_name)))
        + _para(f"Someone asked to reset the password of your {APP_NAME} account.")
        + _cta(reset_url, "Choose a new password")
        + _para(f"The link is valid for {validity}. If it wasn't you, your password stays unchanged.")
    )
    text_body = (
        f"{_greeting(display_name)}\n\n"
        f"Reset your password here:\n\n{reset_url}\n\n"
        f"The link is valid for {validity}. If it wasn't you, ignore this email.\n\n{SIGNATURE}"
    )
    return subject, html_body, text_body


def password_changed(display_name: str | None = None, **_: object) -> tuple[str, str, str]:
    subject = "Your password was changed"
    html_body = _page(
        _heading("Password changed")
        + _para(escape(_greeting(display_name)))
        + _para(f"The password of your {APP_NAME} account was just changed.")
        + _para(f'<strong style="color:{ACCENT};">Not you?</strong> Reset your password and contact support right away.')
    )
    text_body = (
        f"{_greeting(display_name)}\n\n"
        f"The password of your {APP_NAME} account was just changed.\n"
        f"Not you? Reset your password and contact support right away.\n\n{SIGNATURE}"
    )
    return subject, html_body, text_body


TEMPLATES = {
    "welcome": welcome_email,
    "verify_email": verify_email,
    "password_reset": password_reset,
    "password_changed": password_changed,
}
