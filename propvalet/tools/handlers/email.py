"""
send_email - the only way the assistant can send an email.

Order matters: the context type is checked first, then the recipient and
every cc/bcc copy are authorized by the guard, and only then is the
provider called. A refused request never reaches the provider.
"""

import logging
from typing import Any, Dict, List

from ...email.contexts import is_valid_context
from ...email.provider import OutboundEmail
from ...errors import EmailGuardError
from ...models import ToolContext
from ...result import Failure, Success, ToolResult

logger = logging.getLogger(__name__)


def _as_list(value: Any) -> List[str]:
    if not value:
        return []
    if isinstance(value, str):
        return [value]
    return [str(v) for v in value]


async def send_email(args: Dict[str, Any], actor_id: str, ctx: ToolContext) -> ToolResult:
    context_type = args.get("context_type")
    if not context_type:
        return Failure("Missing required parameter: context_type")
    if not is_valid_context(context_type):
        logger.warning(f"Refused email with unknown context type '{context_type}' for {actor_id}")
        return Failure(
            f"'{context_type}' is not an allowed email context. "
            "Emails can only be sent for a recognised purpose."
        )

    to = args.get("to")
    subject = args.get("subject")
    html = args.get("html_content")
    if not to or not subject or not html:
        return Failure("Missing required fields: to, subject, html_content")

    if ctx.email_guard is None or ctx.email_sender is None or not ctx.email_sender.is_enabled():
        return Failure("Email sending is not configured")

    cc = _as_list(args.get("cc"))
    bcc = _as_list(args.get("bcc"))
    try:
        auth = await ctx.email_guard.authorize(context_type, actor_id, to, copies=cc + bcc)
    except EmailGuardError as e:
        return Failure(e.reason)

    if auth.sender.persona is not None:
        html = html + auth.sender.persona.signature_html

    message = OutboundEmail(
        from_address=auth.sender.formatted,
        to=to,
        subject=subject,
        html=html,
        cc=cc,
        bcc=bcc,
        reply_to=args.get("reply_to"),
    )
    result = await ctx.email_sender.send(message)
    if not result.get("success"):
        return Failure(result.get("error") or "Email send failed")

    if ctx.notifier:
        ctx.notifier.dispatch(
            actor_id,
            "email_sent",
            "Email sent",
            f"{subject} was sent to {to}",
            {"context_type": auth.context_type.value, "to": to},
        )

    return Success({
        "sent": True,
        "context_type": auth.context_type.value,
        "from": auth.sender.formatted,
        "to": to,
        "cc": cc,
        "bcc": bcc,
        "subject": subject,
        "message_id": result.get("message_id"),
    })
