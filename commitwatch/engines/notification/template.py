"""Email template rendering for new-commit notifications."""

from __future__ import annotations

from commitwatch.engines.github.models import Commit

_SUBJECT_MESSAGE_CHARS = 50
_ACCENT = "#667eea"


def commit_url(owner: str, repo_name: str, sha: str) -> str:
    return f"https://github.com/{owner}/{repo_name}/commit/{sha}"


def render_commit_notification(
    username: str,
    repo_name: str,
    commit: Commit,
) -> tuple[str, str]:
    """Return (subject, html_body) for a new-commit notification email."""
    message = commit.message
    preview = message[:_SUBJECT_MESSAGE_CHARS]
    if len(message) > _SUBJECT_MESSAGE_CHARS:
        preview += "..."
    subject = f"New commit from {username}: {preview}"

    author = commit.author_name or "Unknown"
    url = commit.html_url or commit_url(username, repo_name, commit.sha)

    td_hdr = 'style="padding: 6px 12px; font-weight: bold; border-bottom: 1px solid #e1e5e9;"'
    td_val = 'style="padding: 6px 12px; border-bottom: 1px solid #e1e5e9;"'
    body_style = (
        "font-family: -apple-system, BlinkMacSystemFont,"
        " 'Segoe UI', Roboto, sans-serif;"
        " color: #333; max-width: 600px; margin: 0 auto; padding: 20px;"
    )
    button_style = (
        f"background: {_ACCENT}; color: white; text-decoration: none;"
        " padding: 12px 24px; border-radius: 6px; font-weight: bold; display: inline-block;"
    )

    html_body = f"""\
<html>
<body style="{body_style}">
<h2 style="color: {_ACCENT};">{_esc(username)} pushed to {_esc(repo_name)}</h2>
<div style="background: #f8f9fa; border-left: 4px solid {_ACCENT}; padding: 16px; margin: 16px 0;">
  <p style="margin: 0; white-space: pre-wrap;"><strong>{_esc(message)}</strong></p>
</div>
<table style="border-collapse: collapse; width: 100%; margin-bottom: 16px;">
  <tr><td {td_hdr}>Repository</td>
      <td {td_val}>{_esc(username)}/{_esc(repo_name)}</td></tr>
  <tr><td {td_hdr}>Author</td>
      <td {td_val}>{_esc(author)}</td></tr>
  <tr><td {td_hdr}>Commit</td>
      <td {td_val}><code>{_esc(commit.short_sha)}</code></td></tr>
</table>
<p style="text-align: center; margin: 24px 0;">
  <a href="{_esc(url)}" style="{button_style}">View Commit on GitHub</a>
</p>
<hr style="border: none; border-top: 1px solid #e1e5e9; margin: 24px 0;">
<p style="color: #666; font-size: 12px; text-align: center;">
You're receiving this because you're subscribed to notifications for
<strong>{_esc(username)}</strong>.</p>
</body>
</html>"""

    return subject, html_body


def _esc(text: str) -> str:
    """Minimal HTML escaping."""
    return (
        text.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;").replace('"', "&quot;")
    )
