"""
Request data of one viewer.

The server scopes `/request-fetch/fetch` to the viewer; the store only keeps
the latest answer. Mutations are a single API call followed by a full
re-fetch, never a local patch.
"""

import asyncio
import logging
from typing import Optional

from grievance_console.config import settings
from grievance_console.grievance.client import GrievanceAPI
from grievance_console.grievance.errors import GrievanceAPIError
from grievance_console.grievance.schemas import (
    DEFAULT_PRIORITIES,
    DEFAULT_STATUSES,
    ROLE_USER,
    Assignment,
    NewRequest,
    Priority,
    Request,
    RequestType,
    Status,
    StatusUpdate,
    User,
)

logger = logging.getLogger(__name__)

FETCH_ERROR = "Error fetching requests"


class RequestStore:
    def __init__(self, api: GrievanceAPI, viewer_id: Optional[int] = None, page_size: Optional[int] = None) -> None:
        self._api = api
        self.viewer_id = viewer_id
        self.page_size = page_size or settings.grievance.page_size
        self.requests: list[Request] = []
        self.loading = True
        self.error: Optional[str] = None
        self.priorities: list[Priority] = list(DEFAULT_PRIORITIES)
        self.statuses: list[Status] = list(DEFAULT_STATUSES)
        self.request_types: list[RequestType] = []
        self.users: list[User] = []

    async def refresh(self) -> list[Request]:
        self.loading = True
        try:
            self.requests = await self._api.fetch_requests(self.viewer_id, page=1, page_size=self.page_size)
            self.error = None
        except GrievanceAPIError as exc:
            self.requests = []
            self.error = FETCH_ERROR
            logger.error("requests.fetch_failed", extra={"viewer_id": self.viewer_id, "error": exc.message})
        finally:
            self.loading = False
        return self.requests

    async def _load_priorities(self) -> None:
        try:
            priorities = await self._api.priority_list()
        except GrievanceAPIError as exc:
            logger.warning("requests.priorities_failed", extra={"error": exc.message})
            return
        if priorities:
            self.priorities = priorities

    async def _load_request_types(self) -> None:
        try:
            self.request_types = await self._api.request_type_list()
        except GrievanceAPIError as exc:
            logger.warning("requests.request_types_failed", extra={"error": exc.message})

    async def _load_users(self) -> None:
        try:
            self.users = await self._api.list_users()
        except GrievanceAPIError as exc:
            logger.warning("requests.users_failed", extra={"error": exc.message})

    async def load(self) -> None:
        """Fetch requests, reference lists and the user directory side by side."""
        await asyncio.gather(
            self.refresh(),
            self._load_priorities(),
            self._load_request_types(),
            self._load_users(),
        )

    def get(self, request_id: int) -> Optional[Request]:
        for request in self.requests:
            if request.request_id == request_id:
                return request
        return None

    def with_status(self, *status_names: str) -> list[Request]:
        return [r for r in self.requests if r.status_name in status_names]

    def assignable_users(self) -> list[User]:
        return [u for u in self.users if u.role != ROLE_USER]

    async def create_request(self, new_request: NewRequest) -> dict:
        try:
            body = await self._api.save_request(new_request)
        except GrievanceAPIError as exc:
            logger.error("requests.create_failed", extra={"error": exc.message})
            raise
        logger.info("requests.created", extra={"viewer_id": self.viewer_id, "subject": new_request.subject})
        await self.refresh()
        return body

    async def update_request_status(self, request_id: int, status_id: int, remark: Optional[str] = None) -> None:
        try:
            await self._api.update_status(StatusUpdate(request_id=request_id, status_id=status_id, remark=remark))
        except GrievanceAPIError as exc:
            logger.error("requests.status_failed", extra={"request_id": request_id, "error": exc.message})
            raise
        logger.info("requests.status_updated", extra={"request_id": request_id, "status_id": status_id})
        await self.refresh()

    async def assign_request(self, request_id: int, assignment: Assignment) -> None:
        try:
            await self._api.assign(request_id, assignment)
        except GrievanceAPIError as exc:
            logger.error("requests.assign_failed", extra={"request_id": request_id, "error": exc.message})
            raise
        logger.info("requests.assigned", extra={"request_id": request_id, "assigned_to": assignment.assigned_to})
        await self.refresh()
