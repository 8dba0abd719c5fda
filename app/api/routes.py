from fastapi import APIRouter, HTTPException
from loguru import logger

from app.deps import conversation, executor, log_only_send, repo
from app.models.schemas import (
    InboundMessageRequest,
    InboundMessageResponse,
    MonthlyDispatchResponse,
    ReportResponse,
    Transaction,
    User,
)

router = APIRouter()


def _existing_user(user_id: str) -> User:
    user = repo.find_user(user_id)
    if user is None:
        raise HTTPException(status_code=404, detail="User not found")
    return user


@router.post("/messages", response_model=InboundMessageResponse)
async def post_message(request: InboundMessageRequest):
    reply = await conversation.handle(request.user_id, request.text)
    return InboundMessageResponse(reply=reply)


@router.get("/users/{user_id}", response_model=User)
def get_user(user_id: str):
    return _existing_user(user_id)


@router.get("/users/{user_id}/transactions", response_model=list[Transaction])
def list_transactions(user_id: str, limit: int = 10):
    _existing_user(user_id)
    return repo.last_transactions(user_id, limit)


@router.get("/users/{user_id}/report", response_model=ReportResponse)
def get_report(user_id: str, year: int | None = None, month: int | None = None):
    _existing_user(user_id)
    now = repo.now()
    if month is not None and not 1 <= month <= 12:
        raise HTTPException(status_code=400, detail="month must be between 1 and 12")
    report = executor.monthly_report(user_id, year or now.year, month or now.month)
    return ReportResponse(user_id=user_id, report=report)


@router.post("/reports/monthly", response_model=MonthlyDispatchResponse)
async def dispatch_monthly_reports():
    if conversation.sender is log_only_send:
        raise HTTPException(status_code=503, detail="No messaging transport attached")
    logger.info("Manual monthly report dispatch")
    sent, failed = await executor.send_monthly_reports(conversation.sender)
    return MonthlyDispatchResponse(sent=sent, failed=failed)
