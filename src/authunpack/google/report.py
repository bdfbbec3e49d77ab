# src/authunpack/google/report.py

import base64
import io
from datetime import datetime
from html import escape
from pathlib import Path
from typing import List

import qrcode
from qrcode.constants import ERROR_CORRECT_M

from authunpack.common.models import ExportedAccount

QR_BOX_SIZE = 5
QR_BORDER = 2

REPORT_FORMATS = ("html", "md")

_STYLESHEET = """
    body { font-family: Arial, sans-serif; margin: 20px; background-color: #f5f5f5; }
    h1 { color: #333; text-align: center; }
    table { width: 100%; table-layout: fixed; border-collapse: collapse; margin-top: 20px;
            background-color: white; box-shadow: 0 0 10px rgba(0, 0, 0, 0.1); }
    th, td { border: 1px solid #ddd; padding: 10px; text-align: left;
             overflow: hidden; text-overflow: ellipsis; }
    th { background-color: #4CAF50; color: white; position: sticky; top: 0; }
    tr:nth-child(even) { background-color: #f2f2f2; }
    tr:hover { background-color: #ddd; }
    .summary { margin-top: 20px; font-weight: bold; text-align: center; }
    a { color: #2196F3; text-decoration: none; word-break: break-all; }
    a:hover { text-decoration: underline; }
    th:nth-child(1), td:nth-child(1) { width: 12%; }
    th:nth-child(2), td:nth-child(2) { width: 10%; }
    th:nth-child(3), td:nth-child(3) { width: 34%; }
    th:nth-child(4), td:nth-child(4) { width: 8%; }
    th:nth-child(5), td:nth-child(5) { width: 8%; }
    th:nth-child(6), td:nth-child(6) { width: 8%; }
    th:nth-child(7), td:nth-child(7) { width: 15%; }
    th:nth-child(8), td:nth-child(8) { width: 5%; }
"""

COLUMNS = ("Name", "Issuer", "Secret", "Type", "Algorithm", "Digits", "OTP Auth URL", "QR Code")


def qr_data_url(text: str) -> str:
    """Render ``text`` as a PNG QR code and return it as a data URL."""
    qr = qrcode.QRCode(error_correction=ERROR_CORRECT_M, box_size=QR_BOX_SIZE, border=QR_BORDER)
    qr.add_data(text)
    qr.make(fit=True)
    img = qr.make_image()

    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return "data:image/png;base64," + base64.b64encode(buf.getvalue()).decode("ascii")


def _html_row(acc: ExportedAccount) -> str:
    uri = escape(acc.canonical_uri)
    cells = [
        escape(acc.name or "-"),
        escape(acc.issuer or "-"),
        acc.secret_hex,
        acc.type,
        acc.algorithm,
        str(acc.digits),
        f'<a href="{uri}" target="_blank">{uri}</a>',
        f'<img src="{qr_data_url(acc.canonical_uri)}" alt="QR Code" width="100" height="100">',
    ]
    return "      <tr>\n" + "".join(f"        <td>{c}</td>\n" for c in cells) + "      </tr>"


def render_html(accounts: List[ExportedAccount]) -> str:
    header = "".join(f"<th>{c}</th>" for c in COLUMNS)
    rows = "\n".join(_html_row(acc) for acc in accounts)
    return "\n".join([
        "<!DOCTYPE html>",
        '<html lang="en">',
        "<head>",
        '  <meta charset="UTF-8">',
        '  <meta name="viewport" content="width=device-width, initial-scale=1.0">',
        "  <title>OTP Accounts</title>",
        f"  <style>{_STYLESHEET}  </style>",
        "</head>",
        "<body>",
        "  <h1>OTP Accounts</h1>",
        "  <table>",
        f"    <thead><tr>{header}</tr></thead>",
        "    <tbody>",
        rows,
        "    </tbody>",
        "  </table>",
        f'  <div class="summary">Total accounts: {len(accounts)}</div>',
        "</body>",
        "</html>",
        "",
    ])


def _md_cell(value: str) -> str:
    return (value or "-").replace("|", "\\|")


def render_markdown(accounts: List[ExportedAccount]) -> str:
    content = [
        "# OTP Accounts",
        f"- **Generated**: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}",
        f"- **Total accounts**: {len(accounts)}",
        "\n> [!] **Warning**: this file contains 2FA secrets. Keep it safe and delete it once the migration is done.\n",
        "| # | Name | Issuer | Secret | Type | Algorithm | Digits | OTP Auth URL |",
        "| :--- | :--- | :--- | :--- | :--- | :--- | :--- | :--- |",
    ]
    for i, acc in enumerate(accounts, 1):
        content.append(
            f"| {i} | {_md_cell(acc.name)} | {_md_cell(acc.issuer)} | `{acc.secret_hex}` | "
            f"{acc.type} | {acc.algorithm} | {acc.digits} | <{acc.canonical_uri}> |"
        )
    return "\n".join(content) + "\n"


def save_report(accounts: List[ExportedAccount], output_path: Path, fmt: str = "html") -> Path:
    renderers = {"html": render_html, "md": render_markdown}
    if fmt not in renderers:
        raise ValueError(f"unknown report format {fmt!r}, expected one of {', '.join(REPORT_FORMATS)}")

    output_path = Path(output_path)
    output_path.write_text(renderers[fmt](accounts), encoding="utf-8")
    return output_path
