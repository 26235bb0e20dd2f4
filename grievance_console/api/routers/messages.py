"""
Messages router: the mail overlay of the calling console.

  POST   /console/messages/open             → show the messages overlay
  POST   /console/messages/close            → hide it
  POST   /console/mails/{mail_id}/select    → open a mail
  POST   /console/compose                   → start compose / reply / replyAll / forward
  POST   /console/compose/close             → discard the compose form
  POST   /console/mails                     → send the composed mail
  PUT    /console/mails/{mail_id}/star      → toggle the star
  PUT    /console/mails/{mail_id}/archive   → archive
  DELETE /console/mails/{mail_id}           → delete
"""

from fastapi import APIRouter

from grievance_console.api.dependencies import CurrentConsole
from grievance_console.api.schemas import ComposeRequest, SendMailRequest

router = APIRouter(prefix="/console", tags=["messages"])


@router.post("/messages/open")
async def open_messages(console: CurrentConsole) -> dict:
    with console.guard():
        (await console.dashboard()).open_messages()
        return await console.view()


@router.post("/messages/close")
async def close_messages(console: CurrentConsole) -> dict:
    with console.guard():
        (await console.dashboard()).close_messages()
        return await console.view()


@router.post("/mails/{mail_id}/select")
async def select_mail(mail_id: int, console: CurrentConsole) -> dict:
    with console.guard():
        (await console.dashboard()).select_mail(mail_id)
        return await console.view()


@router.post("/compose")
async def start_compose(body: ComposeRequest, console: CurrentConsole) -> dict:
    with console.guard():
        dashboard = await console.dashboard()
        dashboard.open_messages()
        dashboard.start_compose(body.mode, body.mail_id)
        return await console.view()


@router.post("/compose/close")
async def close_compose(console: CurrentConsole) -> dict:
    with console.guard():
        (await console.dashboard()).close_compose()
        return await console.view()


# ── Mail mutations ────────────────────────────────────────────────────────────

@router.post("/mails")
async def send_mail(body: SendMailRequest, console: CurrentConsole) -> dict:
    """Send what was typed into the compose form, merged over its prefilled fields."""
    with console.guard():
        dashboard = await console.dashboard()
        draft = dashboard.build_draft(
            body.body,
            subject=body.subject,
            to_addresses=body.to_addresses,
            cc_addresses=body.cc_addresses,
            bcc_addresses=body.bcc_addresses,
            attachments=body.attachments or None,
        )
        ok = await dashboard.send_mail(draft)
        return {"ok": ok, "console": await console.view()}


@router.put("/mails/{mail_id}/star")
async def toggle_star(mail_id: int, console: CurrentConsole) -> dict:
    with console.guard():
        dashboard = await console.dashboard()
        dashboard.select_mail(mail_id)
        ok = await dashboard.toggle_star(mail_id)
        return {"ok": ok, "console": await console.view()}


@router.put("/mails/{mail_id}/archive")
async def archive_mail(mail_id: int, console: CurrentConsole) -> dict:
    with console.guard():
        dashboard = await console.dashboard()
        dashboard.select_mail(mail_id)
        ok = await dashboard.archive_mail(mail_id)
        return {"ok": ok, "console": await console.view()}


@router.delete("/mails/{mail_id}")
async def delete_mail(mail_id: int, console: CurrentConsole) -> dict:
    with console.guard():
        dashboard = await console.dashboard()
        dashboard.select_mail(mail_id)
        ok = await dashboard.delete_mail(mail_id)
        return {"ok": ok, "console": await console.view()}
