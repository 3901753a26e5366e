"""Execution wizard - steps an inspector through a checksheet one checkpoint at a time.

States are the checkpoint indexes 0..N-1 plus REVIEW, reached after the
last checkpoint. The wizard holds answers locally and hands the complete
response set to a caller-supplied submit function (normally a POST to
/results with status COMPLETED), so the same class drives a CLI, a test
or any HTTP client.

    wizard = ExecutionWizard.load(lambda: api.get_checksheet(checksheet_id))
    wizard.record(True)
    wizard.next()
    ...
    wizard.submit(api.create_result, notes="All clear")
"""

import json
import logging
from dataclasses import dataclass, field
from datetime import date, datetime, time
from typing import Any, Callable
from uuid import UUID

from gensheet.db.enums import FieldType, ResponseStatus, ResultStatus
from gensheet.schemas.checksheet import ChecksheetRead
from gensheet.services.response_values import (
    InvalidValueError, coerce_value, is_answered, missing_required, parse_bool,
)

logger = logging.getLogger(__name__)


REVIEW = "review"

Uploader = Callable[[bytes, str, str], dict[str, Any]]


class WizardAborted(Exception):
    """The checksheet could not be loaded; the client returns to the execution list."""

    pass


class WizardStepBlocked(Exception):
    """A transition was refused (required answer missing, or no step in that direction)."""

    pass


class WizardSubmitError(Exception):
    """Submission failed; the wizard keeps its state so the user can retry."""

    pass


@dataclass(frozen=True)
class WizardCheckpoint:
    id: UUID
    order: int
    title: str
    field_type: FieldType
    is_required: bool
    section: str
    config: dict[str, Any]


@dataclass
class WizardAnswer:
    value: str | None = None
    photo_urls: list[str] = field(default_factory=list)
    file_urls: list[str] = field(default_factory=list)
    status: ResponseStatus | None = None
    notes: str | None = None


@dataclass(frozen=True)
class Upload:
    """A file captured for a PHOTO/FILE/SIGNATURE checkpoint."""

    data: bytes
    filename: str
    content_type: str


def normalize_input(checkpoint: WizardCheckpoint, raw: Any) -> str | None:
    """
    Turn a typed input into the raw string recorded for `checkpoint`.

    Accepts natural Python values (bool for CHECKBOX, numbers, lists for
    MULTISELECT, date/time objects, (lat, lng) tuples for GPS) as well as
    strings, and checks them against the checkpoint config.

    Raises:
        InvalidValueError: input does not fit the field type/config
    """
    if raw is None or (isinstance(raw, str) and not raw.strip()):
        return None

    field_type = checkpoint.field_type
    if field_type == FieldType.CHECKBOX:
        value = "true" if (raw if isinstance(raw, bool) else parse_bool(str(raw))) else "false"
    elif field_type in (FieldType.NUMBER, FieldType.RATING) and isinstance(raw, (int, float)) and not isinstance(raw, bool):
        value = str(int(raw)) if float(raw).is_integer() else str(raw)
    elif field_type == FieldType.MULTISELECT and isinstance(raw, (list, tuple, set)):
        value = json.dumps([str(option) for option in raw])
    elif field_type in (FieldType.DATE, FieldType.TIME, FieldType.DATETIME) and isinstance(raw, (date, time, datetime)):
        value = raw.isoformat()
    elif field_type == FieldType.GPS and isinstance(raw, (list, tuple)):
        if len(raw) != 2:
            raise InvalidValueError("Expected coordinates as lat,lng")
        value = f"{raw[0]},{raw[1]}"
    else:
        value = str(raw)

    coerce_value(field_type, checkpoint.config, value)
    return value


class ExecutionWizard:
    """Step sequencer over a checksheet's checkpoints."""

    def __init__(self, checksheet: ChecksheetRead | dict[str, Any], uploader: Uploader | None = None):
        if not isinstance(checksheet, ChecksheetRead):
            checksheet = ChecksheetRead.model_validate(checksheet)
        self.checksheet_id = checksheet.id
        self.title = checksheet.title
        self.checkpoints = [
            WizardCheckpoint(
                id=cp.id,
                order=cp.order,
                title=cp.title,
                field_type=FieldType(cp.field_type),
                is_required=cp.is_required,
                section=cp.section,
                config=cp.config,
            )
            for cp in sorted(checksheet.checkpoints, key=lambda cp: cp.order)
        ]
        self.uploader = uploader
        self.answers: dict[UUID, WizardAnswer] = {}
        self.submitted = False
        self._index: int | str = 0 if self.checkpoints else REVIEW

    @classmethod
    def load(
        cls,
        fetch: Callable[[], ChecksheetRead | dict[str, Any]],
        uploader: Uploader | None = None,
    ) -> "ExecutionWizard":
        """
        Build a wizard from a fetch callable.

        Raises:
            WizardAborted: the fetch failed or returned an unusable checksheet
        """
        try:
            checksheet = fetch()
            return cls(checksheet, uploader=uploader)
        except Exception as e:
            logger.warning(f"Checksheet could not be loaded for execution: {type(e).__name__}")
            raise WizardAborted("Checksheet could not be loaded") from e

    # -------------------------------------------------------------------------
    # State
    # -------------------------------------------------------------------------

    @property
    def state(self) -> int | str:
        """Current checkpoint index, or REVIEW."""
        return self._index

    @property
    def in_review(self) -> bool:
        return self._index == REVIEW

    @property
    def current(self) -> WizardCheckpoint | None:
        if self.in_review:
            return None
        return self.checkpoints[self._index]

    @property
    def progress(self) -> tuple[int, int]:
        """(answered, total) checkpoint counts."""
        answered = sum(
            1 for cp in self.checkpoints
            if cp.id in self.answers and self._answered(self.answers[cp.id])
        )
        return answered, len(self.checkpoints)

    @staticmethod
    def _answered(answer: WizardAnswer) -> bool:
        return is_answered(answer.value, answer.photo_urls, answer.file_urls)

    def answer_for(self, checkpoint_id: UUID) -> WizardAnswer | None:
        return self.answers.get(checkpoint_id)

    def missing_required(self) -> list[WizardCheckpoint]:
        return missing_required(self.checkpoints, self.answers)

    # -------------------------------------------------------------------------
    # Recording
    # -------------------------------------------------------------------------

    def record(
        self,
        raw: Any,
        status: ResponseStatus | None = None,
        notes: str | None = None,
    ) -> WizardAnswer:
        """
        Record an answer for the current checkpoint.

        Upload-type checkpoints take an `Upload`; the file is sent through
        the uploader and its URL recorded.

        Raises:
            WizardStepBlocked: in review (no current checkpoint)
            InvalidValueError: input does not fit the checkpoint
        """
        checkpoint = self.current
        if checkpoint is None:
            raise WizardStepBlocked("No checkpoint to answer in review")

        answer = self.answers.get(checkpoint.id) or WizardAnswer()
        if isinstance(raw, Upload):
            url = self._upload(raw)
            answer.value = url
            if checkpoint.field_type == FieldType.FILE:
                answer.file_urls = [*answer.file_urls, url]
            elif checkpoint.field_type == FieldType.PHOTO:
                answer.photo_urls = [*answer.photo_urls, url]
        else:
            answer.value = normalize_input(checkpoint, raw)

        if status is not None:
            answer.status = status
        if notes is not None:
            answer.notes = notes
        self.answers[checkpoint.id] = answer
        return answer

    def _upload(self, upload: Upload) -> str:
        if self.uploader is None:
            raise InvalidValueError("File uploads are not available")
        result = self.uploader(upload.data, upload.filename, upload.content_type)
        return result.get("secure_url") or result["url"]

    # -------------------------------------------------------------------------
    # Navigation
    # -------------------------------------------------------------------------

    def can_next(self) -> bool:
        checkpoint = self.current
        if checkpoint is None:
            return False
        if not checkpoint.is_required:
            return True
        answer = self.answers.get(checkpoint.id)
        return answer is not None and self._answered(answer)

    def next(self) -> int | str:
        """Advance to the next checkpoint, or to REVIEW from the last one."""
        if not self.can_next():
            if self.in_review:
                raise WizardStepBlocked("Already at review")
            raise WizardStepBlocked(f"'{self.current.title}' is required")
        if self._index == len(self.checkpoints) - 1:
            self._index = REVIEW
        else:
            self._index += 1
        return self._index

    def can_previous(self) -> bool:
        if self.in_review:
            return bool(self.checkpoints)
        return self._index > 0

    def previous(self) -> int | str:
        """Go back one checkpoint; from REVIEW returns to the last checkpoint."""
        if not self.can_previous():
            raise WizardStepBlocked("Already at the first checkpoint")
        if self.in_review:
            self._index = len(self.checkpoints) - 1
        else:
            self._index -= 1
        return self._index

    # -------------------------------------------------------------------------
    # Submission
    # -------------------------------------------------------------------------

    def can_submit(self) -> bool:
        return not self.submitted and not self.missing_required()

    def build_payload(
        self,
        notes: str | None = None,
        location: str | None = None,
        gps: tuple[float, float] | None = None,
    ) -> dict[str, Any]:
        """Request body for POST /results."""
        responses = []
        for cp in self.checkpoints:
            answer = self.answers.get(cp.id)
            if answer is None:
                continue
            responses.append({
                "checkpoint_id": str(cp.id),
                "value": answer.value,
                "photo_urls": answer.photo_urls,
                "file_urls": answer.file_urls,
                "status": answer.status.value if answer.status else None,
                "notes": answer.notes,
            })

        payload: dict[str, Any] = {
            "checksheet_id": str(self.checksheet_id),
            "status": ResultStatus.COMPLETED.value,
            "notes": notes,
            "location": location,
            "responses": responses,
        }
        if gps is not None:
            payload["gps_lat"], payload["gps_lng"] = gps
        return payload

    def submit(
        self,
        submit_fn: Callable[[dict[str, Any]], Any],
        notes: str | None = None,
        location: str | None = None,
        gps: tuple[float, float] | None = None,
    ) -> Any:
        """
        Send every answer as one completed result.

        Raises:
            WizardStepBlocked: a required checkpoint is unanswered, or already submitted
            WizardSubmitError: submit_fn failed (state unchanged, retry allowed)
        """
        if self.submitted:
            raise WizardStepBlocked("Already submitted")
        missing = self.missing_required()
        if missing:
            raise WizardStepBlocked(
                "Required checkpoints are missing responses: "
                + ", ".join(cp.title for cp in missing)
            )

        payload = self.build_payload(notes=notes, location=location, gps=gps)
        try:
            result = submit_fn(payload)
        except Exception as e:
            logger.warning(f"Result submission failed: {type(e).__name__}")
            raise WizardSubmitError("Failed to submit result. Please try again.") from e

        self.submitted = True
        return result
