import logging
from typing import Dict, Optional

from pydantic import ValidationError as PydanticValidationError

from gradeflow.core.errors import PersistenceError, PersistenceFailure, RecordNotFoundError
from gradeflow.core.logging import log_event
from gradeflow.core.naming import to_canonical
from gradeflow.core.notices import NoticeChannel
from gradeflow.db.models import ClassRecord
from gradeflow.db.store import RecordStore
from gradeflow.services.aggregate import AssignmentAggregateView
from gradeflow.services.batches import SubmissionBatchStateMachine
from gradeflow.services.mutations import RecordMutationController

logger = logging.getLogger(__name__)

CLASSES_TABLE = "classes"


class Workspace:
    """
    Everything one session works with: the store, the notice channel, the
    batch state, the mutation controller and one aggregate view per
    assignment that has been opened.
    """

    def __init__(self, store: RecordStore, notices: Optional[NoticeChannel] = None):
        self.store = store
        self.notices = notices or NoticeChannel()
        self.batches = SubmissionBatchStateMachine(store)
        self.mutations = RecordMutationController(store, self.notices)
        self._views: Dict[str, AssignmentAggregateView] = {}

    def view(self, class_id: str, assignment_id: str) -> AssignmentAggregateView:
        view = self._views.get(assignment_id)
        if view is None or view.class_id != class_id:
            view = AssignmentAggregateView(
                assignment_id, class_id, self.store, self.batches, self.mutations, self.notices
            )
            self._views[assignment_id] = view
        return view

    async def get_class(self, class_id: str) -> ClassRecord:
        """
        Fetch a class by id.

        Raises:
            RecordNotFoundError: With ``redirect`` set to the class list.
            PersistenceError: The store call failed or returned an unreadable row.
        """
        try:
            row = await self.store.fetch(CLASSES_TABLE, class_id)
            try:
                return ClassRecord.model_validate(to_canonical(row))
            except PydanticValidationError as e:
                raise PersistenceError(
                    "Class record is unreadable", CLASSES_TABLE, PersistenceFailure.MALFORMED
                ) from e
        except PersistenceError as exc:
            if isinstance(exc, RecordNotFoundError):
                exc.redirect = "/classes"
            log_event(
                logger, logging.ERROR, "persistence_failed",
                table=CLASSES_TABLE, id=class_id, reason=exc.reason.value, error=exc.message,
            )
            self.notices.error(exc.message)
            raise
