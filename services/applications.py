"""
Loan application records.

Every application is stored twice: under its owner
(users/{uid}/loanApplications/{id}) for the applicant's status page, and in
the flat admin collection (public/data/allApplications/{id}). Both copies are
written in the same store transaction, so they always agree on status and
repayment. The admin copy is authoritative when they have drifted apart
(reconcile() repairs data written before writes were transactional).
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Optional

from services import paths
from services.document_store import DocumentStore, Transaction
from services.errors import (
    ApplicationNotFound,
    ApplicationOwnerUnknown,
    InvalidStatus,
    MissingFieldsError,
)

logger = logging.getLogger(__name__)

PENDING = "Pending"
LOAN_STATUSES = ("Pending", "Approved", "Rejected")

REQUIRED_FIELDS = ("loanType", "purpose", "panNumber", "requestedLoanAmount")
APPLICATION_FIELDS = REQUIRED_FIELDS + (
    "monthlyEmi",
    "totalInterest",
    "principalAmount",
    "totalAmountPayable",
    "idProofFileName",
)
MIRRORED_FIELDS = ("status", "repayment")

MSG_MISSING_FIELDS = "Missing required loan application fields."


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    return value == 0


def _with_id(doc_id: str, data: dict[str, Any]) -> dict[str, Any]:
    return {"id": doc_id, **data}


def _mirrored(data: dict[str, Any]) -> dict[str, Any]:
    return {name: data.get(name) for name in MIRRORED_FIELDS}


def _user_copy_of(global_copy: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in global_copy.items() if k != "applicationId"}


@dataclass
class ReconcileReport:
    checked: int = 0
    restored_user_copies: list[str] = field(default_factory=list)
    restored_global_copies: list[str] = field(default_factory=list)
    resynced: list[str] = field(default_factory=list)
    orphaned: list[str] = field(default_factory=list)

    @property
    def repaired(self) -> int:
        return len(self.restored_user_copies) + len(self.restored_global_copies) + len(self.resynced)


class ApplicationRecordManager:
    def __init__(self, store: DocumentStore, app_id: str):
        self._store = store
        self._app_id = app_id

    async def create(self, user_id: str, fields: dict[str, Any]) -> str:
        """Write a new Pending application to both locations and return its id."""
        if not user_id:
            raise ValueError("user_id is required")
        missing = [name for name in REQUIRED_FIELDS if _is_blank(fields.get(name))]
        if missing:
            raise MissingFieldsError(MSG_MISSING_FIELDS, missing)

        application_id = self._store.new_id(paths.user_applications_collection(self._app_id, user_id))
        document = {
            "userId": user_id,
            **{name: fields.get(name) for name in APPLICATION_FIELDS},
            "status": PENDING,
            "appliedDate": self._store.server_timestamp(),
        }
        user_path = paths.user_application_path(self._app_id, user_id, application_id)
        global_path = paths.global_application_path(self._app_id, application_id)

        async def _write(txn: Transaction) -> None:
            txn.set(user_path, document)
            txn.set(global_path, {**document, "applicationId": application_id})

        await self._store.run_transaction(_write)
        logger.info("Created loan application %s for user %s", application_id, user_id)
        return application_id

    async def update_status(self, application_id: str, status: str, repayment: Optional[str] = None) -> str:
        """
        Set status and repayment on both copies. Returns the owning user id.
        Any status may move to any other status.
        """
        if status not in LOAN_STATUSES:
            raise InvalidStatus(status)
        changes = {"status": status, "repayment": repayment or None}
        global_path = paths.global_application_path(self._app_id, application_id)

        async def _write(txn: Transaction) -> str:
            current = await txn.get(global_path)
            if current is None:
                raise ApplicationNotFound(application_id)
            user_id = current.get("userId")
            if not user_id:
                raise ApplicationOwnerUnknown(application_id)
            user_path = paths.user_application_path(self._app_id, user_id, application_id)
            user_copy = await txn.get(user_path)

            txn.update(global_path, changes)
            if user_copy is None:
                logger.warning("User copy of application %s is missing; restoring it", application_id)
                txn.set(user_path, {**_user_copy_of(current), **changes})
            else:
                txn.update(user_path, changes)
            return user_id

        user_id = await self._store.run_transaction(_write)
        logger.info("Application %s (user %s) set to status=%s repayment=%s", application_id, user_id, status, changes["repayment"])
        return user_id

    async def list_for_user(self, user_id: str) -> list[dict[str, Any]]:
        docs = await self._store.list(paths.user_applications_collection(self._app_id, user_id))
        return [_with_id(doc_id, data) for doc_id, data in docs]

    async def list_all(self) -> list[dict[str, Any]]:
        docs = await self._store.list(paths.global_applications_collection(self._app_id))
        return [_with_id(doc_id, data) for doc_id, data in docs]

    async def list(self, scope: str, owner_id: Optional[str] = None) -> list[dict[str, Any]]:
        if scope == "user":
            if not owner_id:
                raise ValueError("owner_id is required for the user scope")
            return await self.list_for_user(owner_id)
        if scope == "admin":
            return await self.list_all()
        raise ValueError(f"Unknown scope: {scope!r}")

    async def get(self, application_id: str) -> dict[str, Any]:
        data = await self._store.get(paths.global_application_path(self._app_id, application_id))
        if data is None:
            raise ApplicationNotFound(application_id)
        return _with_id(application_id, data)

    async def reconcile(self) -> ReconcileReport:
        """
        Restore the two-copy invariant: re-create missing copies on either side
        and copy status/repayment from the admin copy onto a diverged user copy.
        """
        report = ReconcileReport()
        global_docs = dict(await self._store.list(paths.global_applications_collection(self._app_id)))

        for application_id, data in global_docs.items():
            report.checked += 1
            if not data.get("userId"):
                report.orphaned.append(application_id)
                continue
            action = await self._store.run_transaction(
                lambda txn, application_id=application_id: self._sync_user_copy(txn, application_id)
            )
            if action == "restored":
                report.restored_user_copies.append(application_id)
            elif action == "resynced":
                report.resynced.append(application_id)

        # A collection-group listing also reaches users whose profile document was never written.
        for path, data in await self._store.list_group(paths.USER_APPLICATIONS):
            parsed = paths.parse_user_application_path(self._app_id, path)
            if parsed is None:
                continue
            user_id, application_id = parsed
            if application_id in global_docs:
                continue
            report.checked += 1
            user_copy = {**data, "userId": data.get("userId") or user_id}
            restored = await self._store.run_transaction(
                lambda txn, application_id=application_id, user_copy=user_copy: self._restore_global_copy(
                    txn, application_id, user_copy
                )
            )
            if restored:
                report.restored_global_copies.append(application_id)

        if report.repaired:
            logger.warning(
                "Reconciled applications: %d user copies restored, %d admin copies restored, %d resynced",
                len(report.restored_user_copies),
                len(report.restored_global_copies),
                len(report.resynced),
            )
        for application_id in report.orphaned:
            logger.error("Application %s has no owning user and cannot be reconciled", application_id)
        return report

    async def _sync_user_copy(self, txn: Transaction, application_id: str) -> Optional[str]:
        global_copy = await txn.get(paths.global_application_path(self._app_id, application_id))
        if global_copy is None or not global_copy.get("userId"):
            return None
        user_path = paths.user_application_path(self._app_id, global_copy["userId"], application_id)
        user_copy = await txn.get(user_path)
        if user_copy is None:
            txn.set(user_path, _user_copy_of(global_copy))
            return "restored"
        if _mirrored(user_copy) != _mirrored(global_copy):
            txn.update(user_path, _mirrored(global_copy))
            return "resynced"
        return None

    async def _restore_global_copy(self, txn: Transaction, application_id: str, user_copy: dict[str, Any]) -> bool:
        global_path = paths.global_application_path(self._app_id, application_id)
        if await txn.get(global_path) is not None:
            return False
        txn.set(global_path, {**user_copy, "applicationId": application_id})
        return True
