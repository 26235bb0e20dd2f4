import logging
from typing import Optional

from grievance_console.grievance.client import GrievanceAPI
from grievance_console.grievance.errors import GrievanceAPIError
from grievance_console.grievance.schemas import Mail, MailDraft

logger = logging.getLogger(__name__)


class MailStore:
    """Bulk-fetched mail collection; per-request views are filters over it."""

    def __init__(self, api: GrievanceAPI) -> None:
        self._api = api
        self.mails: list[Mail] = []
        self.error: Optional[str] = None

    async def refresh(self) -> list[Mail]:
        try:
            self.mails = await self._api.list_mails()
            self.error = None
        except GrievanceAPIError as exc:
            self.mails = []
            self.error = "Error fetching mails"
            logger.error("mails.fetch_failed", extra={"error": exc.message})
        return self.mails

    def get(self, mail_id: int) -> Optional[Mail]:
        for mail in self.mails:
            if mail.mail_id == mail_id:
                return mail
        return None

    def get_request_messages(self, request_id: int) -> list[Mail]:
        return [mail for mail in self.mails if mail.request_id == request_id]

    def get_all_mails(self) -> list[Mail]:
        return list(self.mails)

    def get_thread(self, mail_id: int) -> list[Mail]:
        """Ancestors of a mail followed by the mail itself, oldest first."""
        by_id = {mail.mail_id: mail for mail in self.mails}
        chain: list[Mail] = []
        seen: set[int] = set()
        current = by_id.get(mail_id)
        while current is not None and current.mail_id not in seen:
            seen.add(current.mail_id)
            chain.append(current)
            current = by_id.get(current.parent_mail_id) if current.parent_mail_id is not None else None
        chain.reverse()
        return chain

    async def _mutate(self, event: str, call, **context) -> dict:
        try:
            body = await call
        except GrievanceAPIError as exc:
            logger.error(f"mails.{event}_failed", extra={**context, "error": exc.message})
            raise
        logger.info(f"mails.{event}", extra=context)
        await self.refresh()
        return body

    async def send_mail(self, draft: MailDraft) -> dict:
        return await self._mutate("send", self._api.send_mail(draft), request_id=draft.request_id)

    async def toggle_star(self, mail_id: int) -> dict:
        return await self._mutate("star", self._api.star_mail(mail_id), mail_id=mail_id)

    async def archive_mail(self, mail_id: int) -> dict:
        return await self._mutate("archive", self._api.archive_mail(mail_id), mail_id=mail_id)

    async def delete_mail(self, mail_id: int) -> dict:
        return await self._mutate("delete", self._api.delete_mail(mail_id), mail_id=mail_id)
