"""Idempotent reviewer assignment pipeline.

The pipeline enforces a strict order:
1) Ensure the record table exists (failures are logged, not fatal)
2) Fetch the pull request record
3) Stop if a reviewer was already assigned
4) Select reviewers and compose messages
5) Post each message, waiting for the previous one to complete
6) Mark the pull request as assigned

Remote work goes through the record store and notifier ports only, and each
call is awaited before the next one starts.
"""

from __future__ import annotations

import enum
import logging
import random
from typing import Optional

from core.composer import MessageComposer
from core.errors import RecordStoreError, TransportError
from core.models import AssignmentOutcome, NameMapping, ReviewerSelection, pull_request_id_from_url
from core.ports import NotifierPort, RecordStorePort
from core.selector import select_reviewers

LOGGER = logging.getLogger(__name__)


class AssignmentState(str, enum.Enum):
    START = "start"
    TABLE_ENSURED = "table_ensured"
    RECORD_FETCHED = "record_fetched"
    ALREADY_ASSIGNED = "already_assigned"
    NEEDS_ASSIGNMENT = "needs_assignment"
    REVIEWERS_SELECTED = "reviewers_selected"
    NOTIFIED = "notified"
    RECORD_UPDATED = "record_updated"


class AssignmentCoordinator:
    """Orchestrates the check, select, notify and record steps for one pull request."""

    def __init__(
        self,
        store: RecordStorePort,
        notifier: NotifierPort,
        name_mapping: NameMapping,
        composer: MessageComposer,
        max_reviewers: int = 2,
        rng: Optional[random.Random] = None,
    ) -> None:
        self._store = store
        self._notifier = notifier
        self._names = name_mapping
        self._composer = composer
        self._max_reviewers = max_reviewers
        self._rng = rng or random.Random()
        self.state = AssignmentState.START

    async def run(self, pull_request_url: str, author: str) -> AssignmentOutcome:
        """Assign reviewers to the pull request unless it already has some."""

        pull_request_id = pull_request_id_from_url(pull_request_url)

        await self._ensure_table()

        record = await self._fetch_record(pull_request_id)
        if record.get("assigned") is True:
            self.state = AssignmentState.ALREADY_ASSIGNED
            LOGGER.info("Already assigned a reviewer for pull request ID %s. Exiting.", pull_request_id)
            return AssignmentOutcome.ALREADY_ASSIGNED

        self.state = AssignmentState.NEEDS_ASSIGNMENT
        LOGGER.info("Assigning a new pull request reviewer for pull request ID %s", pull_request_id)

        selection = select_reviewers(self._names, author, self._max_reviewers, self._rng)
        self.state = AssignmentState.REVIEWERS_SELECTED
        if not selection.reviewers and self._max_reviewers < 1:
            LOGGER.warning("Reviewer count is set to %s; no reviewer was requested", self._max_reviewers)
            return AssignmentOutcome.NO_CANDIDATES
        if not selection.reviewers:
            LOGGER.warning(
                "No possible reviewer exists. The list of GitHub authors is %s but at least "
                "one author other than the commit author %s is required",
                ",".join(self._names.source_names()),
                author,
            )
            return AssignmentOutcome.NO_CANDIDATES

        await self._notify(pull_request_id, pull_request_url, selection)
        await self._mark_assigned(pull_request_id, selection)
        return AssignmentOutcome.RECORD_UPDATED

    async def _ensure_table(self) -> None:
        # Table creation is idempotent on the store side; a failure here does not
        # stop the run because the record fetch will surface a real outage.
        try:
            created = await self._store.create_table_if_absent()
        except TransportError as exc:
            LOGGER.warning("Could not ensure the pull request table exists: %s", exc)
        else:
            if not created:
                LOGGER.warning("Record store rejected the table creation request; continuing")
        self.state = AssignmentState.TABLE_ENSURED

    async def _fetch_record(self, pull_request_id: str) -> dict:
        try:
            record = await self._store.get_record(pull_request_id)
        except (TransportError, RecordStoreError):
            LOGGER.error("Could not fetch the record for pull request ID %s; nothing was changed", pull_request_id)
            raise
        self.state = AssignmentState.RECORD_FETCHED
        return record

    async def _notify(self, pull_request_id: str, pull_request_url: str, selection: ReviewerSelection) -> None:
        # Messages go out one at a time so the announcement precedes the request
        # in the room history.
        for message in self._composer.compose(selection, pull_request_url):
            try:
                delivered = await self._notifier.post_message(message.text, message.format)
            except TransportError:
                LOGGER.error(
                    "Notification failed for pull request ID %s; the record was not updated",
                    pull_request_id,
                )
                raise
            if not delivered:
                LOGGER.warning("Chat service did not accept a message for pull request ID %s", pull_request_id)
        self.state = AssignmentState.NOTIFIED
        LOGGER.info("Notified reviewers %s for pull request ID %s", ", ".join(selection.reviewers), pull_request_id)

    async def _mark_assigned(self, pull_request_id: str, selection: ReviewerSelection) -> None:
        try:
            await self._store.put_record(pull_request_id, {"assigned": True})
        except (TransportError, RecordStoreError):
            LOGGER.warning(
                "Notified but not recorded: pull request ID %s was announced to %s but the "
                "assignment could not be saved. Set assigned=true manually to avoid a repeat.",
                pull_request_id,
                ", ".join(selection.reviewers),
            )
            raise
        self.state = AssignmentState.RECORD_UPDATED
        LOGGER.info("Successfully assigned reviewer for pull request ID %s", pull_request_id)
