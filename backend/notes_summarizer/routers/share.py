from __future__ import annotations

import logging
import re
from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException, Request

from ..errors import ApiError, MailDeliveryError, MailNotConfiguredError
from ..models.share import EmailCheckRequest, ShareHistory, ShareRequest, ShareResult, ShareStats
from ..services.mailer import validate_email_addresses
from ..state import State, get_state

router = APIRouter(prefix="/share", tags=["share"])
logger = logging.getLogger("app")

_SUMMARY_ID_RE = re.compile(r"^[0-9a-fA-F]{24}$")

_TEST_EMAIL_BODY = """This is a test email from the Meeting Notes Summarizer.

If you received this email, the email sharing functionality is working correctly.

Test Details:
- Sent at: {sent_at}
- Recipient: {recipient}"""


@router.post("")
def share_summary(payload: ShareRequest, request: Request, state: State = Depends(get_state)) -> Dict[str, Any]:
    summary = state.store.get(payload.summary_id)
    if summary is None:
        raise HTTPException(status_code=404, detail="Summary not found")

    valid, invalid = validate_email_addresses(payload.recipients)
    if invalid:
        raise ApiError(400, "Invalid email addresses found", details={"invalid_emails": invalid})
    if not valid:
        raise ApiError(400, "No valid email addresses provided")

    try:
        message_id = state.mailer.send_summary(valid, summary["final_summary"], summary["title"])
    except MailNotConfiguredError as e:
        raise ApiError(
            503,
            "Email service unavailable",
            message="Email sharing is not configured. Please contact the administrator.",
            details=str(e),
        )
    except MailDeliveryError as e:
        raise ApiError(500, "Failed to share summary", message=str(e))

    request_id = getattr(request.state, "request_id", None)
    try:
        entries = state.store.record_shares(payload.summary_id, valid)
    except ValueError:
        # deleted while the mail was in flight
        logger.warning(
            f"summary {payload.summary_id} vanished after mailing message_id={message_id}",
            extra={"request_id": request_id},
        )
        raise ApiError(404, "Summary not found", message="The summary was deleted after the email was sent")
    logger.info(
        f"summary {payload.summary_id} shared with {len(valid)} recipient(s)",
        extra={"request_id": request_id},
    )
    result = ShareResult(
        summary_id=payload.summary_id,
        recipients=valid,
        shared_at=entries[0]["shared_at"],
        message_id=message_id,
    )
    return {"ok": True, "message": "Summary shared successfully", "data": result.model_dump()}


@router.get("/history/{summary_id}")
def share_history(summary_id: str, state: State = Depends(get_state)) -> Dict[str, Any]:
    if not _SUMMARY_ID_RE.match(summary_id):
        raise HTTPException(status_code=400, detail="Invalid summary ID format")
    summary = state.store.get(summary_id)
    if summary is None:
        raise HTTPException(status_code=404, detail="Summary not found")

    history = state.store.share_history(summary_id)
    data = ShareHistory(
        summary_id=summary_id,
        title=summary["title"],
        is_shared=summary["is_shared"],
        share_history=history,
        total_shares=len(history),
        unique_recipients=len({h["email"] for h in history}),
    )
    return {"ok": True, "data": data.model_dump()}


@router.post("/test-email")
def send_test_email(payload: EmailCheckRequest, request: Request, state: State = Depends(get_state)) -> Dict[str, Any]:
    valid, _ = validate_email_addresses([payload.test_email])
    if not valid:
        raise ApiError(
            400,
            "Validation failed",
            details=[{"field": "test_email", "message": "Valid test email is required"}],
        )
    recipient = valid[0]

    relay = state.mailer.test_connection()
    if not relay["success"]:
        raise ApiError(503, "Email service connection failed", details=relay.get("error"))

    sent_at = datetime.now(timezone.utc).isoformat(timespec="seconds")
    body = _TEST_EMAIL_BODY.format(sent_at=sent_at, recipient=recipient)
    try:
        message_id = state.mailer.send_summary([recipient], body, "Test Email - Meeting Notes Summarizer")
    except (MailNotConfiguredError, MailDeliveryError) as e:
        raise ApiError(500, "Failed to send test email", message=str(e))
    logger.info(
        f"test email sent message_id={message_id}",
        extra={"request_id": getattr(request.state, "request_id", None)},
    )

    return {
        "ok": True,
        "message": "Test email sent successfully",
        "data": {"recipient": recipient, "message_id": message_id, "sent_at": sent_at},
    }


@router.get("/stats")
def share_stats(state: State = Depends(get_state)) -> Dict[str, Any]:
    total = state.store.count()
    shared = state.store.count(shared=True)
    total_shares, unique_recipients = state.store.share_totals()
    stats = ShareStats(
        total_summaries=total,
        shared_summaries=shared,
        unshared_summaries=total - shared,
        share_rate=round(shared / total * 100, 1) if total else 0.0,
        total_shares=total_shares,
        unique_recipients=unique_recipients,
        average_shares_per_summary=round(total_shares / shared, 1) if shared else 0.0,
    )
    return {"ok": True, "data": stats.model_dump()}
