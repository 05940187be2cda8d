"""
FastAPI Web Application - Vats Rental Back Office
==================================================

Dashboard for backups, CSV/Excel transfer and customer messaging.

Service objects are built once in the lifespan handler and kept on
app.state; routes reach them through the request.
"""

import html
import logging
from pathlib import Path
from typing import Dict, List, Optional
from urllib.parse import quote
from contextlib import asynccontextmanager

from fastapi import APIRouter, Body, FastAPI, File, Form, HTTPException, Request, UploadFile
from fastapi.responses import HTMLResponse, RedirectResponse, Response
from pydantic import BaseModel, Field

from ..application import BackupService, BulkDispatcher, ChannelDispatcher, recipients_from_customers
from ..domain.models import Channel, Recipient, REQUIRED_ENTITY_KINDS
from ..domain.templates import TemplateRegistry
from ..errors import MalformedInput, SourceUnavailable, TemplateNotFound
from ..infrastructure.config import Settings, get_settings
from ..infrastructure.importer import SpreadsheetParser, SPREADSHEET_EXTENSIONS
from ..infrastructure.messaging import default_providers
from ..infrastructure.persistence import Database

logger = logging.getLogger(__name__)

IMPORT_EXTENSIONS = ['.csv'] + SPREADSHEET_EXTENSIONS


# ── Request bodies ─────────────────────────────────────────────────

class SendRequest(BaseModel):
    channel: Channel = Channel.SMS
    destination: str
    message: str
    subject: Optional[str] = None
    customer_id: Optional[str] = None
    customer_name: Optional[str] = None


class TemplateSendRequest(BaseModel):
    template_id: str
    destination: str
    variables: Dict[str, str] = Field(default_factory=dict)
    customer_id: Optional[str] = None
    customer_name: Optional[str] = None


class RecipientIn(BaseModel):
    destination: str
    customer_id: Optional[str] = None
    customer_name: Optional[str] = None


class BulkRequest(BaseModel):
    recipients: List[RecipientIn]
    message: str
    channel: Channel = Channel.SMS


class TemplateIn(BaseModel):
    name: str
    channel: Channel
    body: str
    required_variables: Optional[List[str]] = None


# ══════════════════════════════════════════════════════════════════
#  SHARED CSS
# ══════════════════════════════════════════════════════════════════

SHARED_CSS = """
    :root {
        --bg-dark: #0a0a14;
        --bg-card: rgba(255,255,255,0.035);
        --border: rgba(255,255,255,0.07);
        --text: #e2e8f0;
        --text-muted: #64748b;
        --accent-1: #7c3aed;
        --accent-2: #06b6d4;
        --gradient: linear-gradient(135deg, #7c3aed 0%, #06b6d4 100%);
    }

    * { margin: 0; padding: 0; box-sizing: border-box; }

    body {
        font-family: 'Inter', -apple-system, BlinkMacSystemFont, sans-serif;
        background: var(--bg-dark);
        min-height: 100vh;
        color: var(--text);
    }

    .container { max-width: 1100px; margin: 0 auto; padding: 24px; }
    .grid { display: grid; grid-template-columns: repeat(auto-fit, minmax(300px, 1fr)); gap: 20px; }

    .card {
        background: var(--bg-card);
        border: 1px solid var(--border);
        border-radius: 16px;
        padding: 24px;
    }
    .card h2 { font-size: 16px; margin-bottom: 14px; }

    .stat { font-size: 28px; font-weight: 700; }
    .stat-label { color: var(--text-muted); font-size: 12px; text-transform: uppercase; }

    .btn {
        background: var(--gradient);
        color: #fff;
        border: none;
        padding: 10px 22px;
        border-radius: 10px;
        font-weight: 600;
        font-size: 14px;
        cursor: pointer;
        text-decoration: none;
        display: inline-block;
        margin: 4px 4px 4px 0;
    }

    input[type="file"], textarea, select {
        background: rgba(255,255,255,0.05);
        border: 1px solid var(--border);
        padding: 10px 14px;
        border-radius: 10px;
        color: var(--text);
        font-family: inherit;
        width: 100%;
        margin-bottom: 10px;
    }

    .alert {
        padding: 14px 20px;
        border-radius: 12px;
        margin-bottom: 20px;
        background: rgba(124,58,237,0.1);
        border: 1px solid rgba(124,58,237,0.25);
        color: #a78bfa;
    }

    table { width: 100%; border-collapse: collapse; font-size: 13px; }
    td, th { padding: 8px; border-bottom: 1px solid var(--border); text-align: left; }
"""


# ══════════════════════════════════════════════════════════════════
#  HTML RENDERERS
# ══════════════════════════════════════════════════════════════════

def render_dashboard(record_stats: dict, comm_stats: dict, message: str = "") -> str:
    """Render the back-office dashboard."""

    stat_cards = "".join(
        f'<div class="card"><div class="stat">{count}</div><div class="stat-label">{kind}</div></div>'
        for kind, count in record_stats.items()
    )

    kind_options = "".join(f'<option value="{kind}">{kind}</option>' for kind in REQUIRED_ENTITY_KINDS)
    export_links = "".join(
        f'<a class="btn" href="/export/{kind}">Export {kind}</a>' for kind in REQUIRED_ENTITY_KINDS
    )

    activity_rows = ""
    for log in comm_stats["recent_activity"]:
        activity_rows += f"""
        <tr>
            <td>{html.escape(log.recipient_name)}</td>
            <td>{log.channel.value}</td>
            <td>{log.status.value}</td>
            <td>{html.escape(log.rendered_message[:60])}</td>
        </tr>"""
    if not activity_rows:
        activity_rows = '<tr><td colspan="4">No messages sent yet.</td></tr>'

    msg_html = f'<div class="alert">{html.escape(message)}</div>' if message else ""

    return f"""<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>Dashboard - Vats Rental</title>
    <style>{SHARED_CSS}</style>
</head>
<body>
<div class="container">
    <h1 style="margin-bottom: 20px;">Vats Rental Back Office</h1>
    {msg_html}
    <div class="grid" style="margin-bottom: 20px;">
        {stat_cards}
        <div class="card"><div class="stat">{comm_stats["total_sent"]}</div><div class="stat-label">messages sent</div></div>
        <div class="card"><div class="stat">₹{comm_stats["total_cost"]:.2f}</div><div class="stat-label">messaging cost</div></div>
    </div>

    <div class="grid">
        <div class="card">
            <h2>Backup</h2>
            <a class="btn" href="/backup/download">Download Backup</a>
            <form method="post" action="/backup/restore" enctype="multipart/form-data" style="margin-top: 12px;">
                <input type="file" name="file" accept=".json">
                <button type="submit" class="btn">Restore</button>
            </form>
        </div>

        <div class="card">
            <h2>CSV / Excel</h2>
            {export_links}
            <form method="post" action="/import" enctype="multipart/form-data" style="margin-top: 12px;">
                <select name="kind">{kind_options}</select>
                <input type="file" name="file" accept=".csv,.xlsx,.xls">
                <button type="submit" class="btn">Import</button>
            </form>
        </div>

        <div class="card">
            <h2>Message All Customers</h2>
            <form method="post" action="/communication/broadcast">
                <select name="channel">
                    <option value="sms">SMS</option>
                    <option value="whatsapp">WhatsApp</option>
                </select>
                <textarea name="message" rows="3" placeholder="Message"></textarea>
                <button type="submit" class="btn">Send</button>
            </form>
        </div>
    </div>

    <div class="card" style="margin-top: 20px;">
        <h2>Recent Activity</h2>
        <table>
            <tr><th>Customer</th><th>Channel</th><th>Status</th><th>Message</th></tr>
            {activity_rows}
        </table>
    </div>
</div>
</body>
</html>"""


# ══════════════════════════════════════════════════════════════════
#  ROUTES
# ══════════════════════════════════════════════════════════════════

router = APIRouter()


def _check_kind(kind: str) -> None:
    if kind not in REQUIRED_ENTITY_KINDS:
        raise HTTPException(status_code=404, detail=f"Unknown entity kind: {kind}")


def _redirect(message: str) -> RedirectResponse:
    return RedirectResponse(url=f"/?message={quote(message)}", status_code=303)


# ── Dashboard ──────────────────────────────────────────────────

@router.get("/", response_class=HTMLResponse)
async def dashboard(request: Request, message: str = ""):
    state = request.app.state
    return render_dashboard(state.db.get_stats(), state.dispatcher.get_stats(), message)


# ── Records ────────────────────────────────────────────────────

@router.get("/api/stats")
async def api_stats(request: Request):
    return request.app.state.db.get_stats()


@router.get("/api/{kind}")
async def api_list_records(kind: str, request: Request):
    _check_kind(kind)
    return {"kind": kind, "records": request.app.state.db.get_records(kind)}


@router.post("/api/{kind}", status_code=201)
async def api_add_record(kind: str, request: Request, record: dict = Body(...)):
    _check_kind(kind)
    row_id = request.app.state.db.add_record(kind, record)
    return {"id": row_id}


# ── Backup / Restore ───────────────────────────────────────────

@router.get("/backup/download")
async def download_backup(request: Request):
    state = request.app.state
    try:
        snapshot = await state.backup.create_snapshot(state.db)
    except SourceUnavailable as e:
        raise HTTPException(status_code=503, detail=str(e))

    filename = state.backup.backup_filename()
    return Response(
        content=state.backup.serialize(snapshot),
        media_type="application/json",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.post("/backup/restore")
async def restore_backup(request: Request, file: UploadFile = File(...)):
    state = request.app.state
    content = await file.read()

    report = state.backup.restore_from_text(content)
    if report.success:
        state.db.replace_all(report.snapshot)
    return _redirect(report.message)


# ── CSV / Excel ────────────────────────────────────────────────

@router.get("/export/{kind}")
async def export_csv(kind: str, request: Request):
    _check_kind(kind)
    state = request.app.state

    exported = state.backup.export_csv(kind, state.db.get_records(kind))
    if exported is None:
        return _redirect(f"No {kind} to export")

    filename, text = exported
    return Response(
        content=text,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.post("/import")
async def import_file(request: Request, kind: str = Form(...), file: UploadFile = File(...)):
    """Import records from CSV or Excel into one entity table."""
    _check_kind(kind)
    state = request.app.state

    if not file.filename:
        return _redirect("No file selected")

    ext = Path(file.filename).suffix.lower()
    if ext not in IMPORT_EXTENSIONS:
        return _redirect("Invalid file type. Use .csv, .xlsx or .xls")

    content = await file.read()
    try:
        if ext == '.csv':
            result = state.backup.import_csv(kind, content.decode("utf-8-sig"))
        else:
            records = state.spreadsheets.parse(content)
            result = state.backup.import_records(kind, records)
    except (UnicodeDecodeError, MalformedInput) as e:
        logger.warning(f"Import of {file.filename} failed: {e}")
        return _redirect(f"Import failed: {str(e)[:80]}")

    if not result.success:
        return _redirect(result.message)

    state.db.add_records(kind, result.records)
    return _redirect(result.message)


# ── Communication ──────────────────────────────────────────────

@router.get("/communication/templates")
async def list_templates(request: Request):
    return {"templates": [t.to_dict() for t in request.app.state.dispatcher.templates.list()]}


@router.post("/communication/templates", status_code=201)
async def add_template(request: Request, body: TemplateIn):
    template = request.app.state.dispatcher.templates.add(
        body.name, body.channel, body.body, body.required_variables
    )
    return template.to_dict()


@router.post("/communication/send")
async def send_message(request: Request, body: SendRequest):
    dispatcher = request.app.state.dispatcher
    message = body.message
    if body.channel == Channel.EMAIL and body.subject:
        message = f"{body.subject}: {body.message}"

    record = await dispatcher.send(
        body.channel, body.destination, message, body.customer_id, body.customer_name
    )
    return record.to_dict()


@router.post("/communication/send-template")
async def send_template(request: Request, body: TemplateSendRequest):
    try:
        success = await request.app.state.dispatcher.send_templated(
            body.template_id, body.destination, body.variables, body.customer_id, body.customer_name
        )
    except TemplateNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"success": success}


@router.post("/communication/bulk")
async def send_bulk(request: Request, body: BulkRequest):
    recipients = [
        Recipient(destination=r.destination, recipient_id=r.customer_id, recipient_name=r.customer_name)
        for r in body.recipients
    ]
    result = await request.app.state.bulk.send_bulk(recipients, body.message, body.channel)
    return {"sent": result.sent_count, "failed": result.failed_count}


@router.post("/communication/broadcast")
async def broadcast(request: Request, message: str = Form(...), channel: Channel = Form(Channel.SMS)):
    """Send one message to every stored customer with a phone number."""
    state = request.app.state
    if not message.strip():
        return _redirect("Message is empty")

    recipients = recipients_from_customers(state.db.get_records("customers"))
    if not recipients:
        return _redirect("No customers with a phone number")

    result = await state.bulk.send_bulk(recipients, message, channel)
    return _redirect(f"Sent {result.sent_count}, failed {result.failed_count}")


@router.get("/communication/logs")
async def communication_logs(request: Request, customer_id: Optional[str] = None):
    logs = request.app.state.dispatcher.get_logs(customer_id)
    return {"logs": [log.to_dict() for log in logs]}


@router.get("/communication/stats")
async def communication_stats(request: Request):
    stats = request.app.state.dispatcher.get_stats()
    stats["recent_activity"] = [log.to_dict() for log in stats["recent_activity"]]
    return stats


# ══════════════════════════════════════════════════════════════════
#  APP FACTORY
# ══════════════════════════════════════════════════════════════════

def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the app; services are created when the lifespan starts."""
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        for issue in settings.validate():
            logger.warning(issue)

        db = Database(settings.database_file)
        db.init()

        dispatcher = ChannelDispatcher(
            providers=default_providers(settings.messaging),
            templates=TemplateRegistry(),
            settings=settings.messaging,
        )
        app.state.db = db
        app.state.dispatcher = dispatcher
        app.state.bulk = BulkDispatcher(dispatcher, delay_seconds=settings.messaging.bulk_delay_seconds)
        app.state.backup = BackupService(settings.backup, dispatcher=dispatcher)
        app.state.spreadsheets = SpreadsheetParser()
        logger.info("Back office services ready")
        yield

    app = FastAPI(title="Vats Rental", description="Rental back office: backups and customer messaging", lifespan=lifespan)
    app.include_router(router)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    logging.basicConfig(level=logging.INFO)
    uvicorn.run(app, host="127.0.0.1", port=8000)
