from fastapi import APIRouter, Depends

from dashboard.app.core.context import DashboardContext, get_context
from dashboard.app.routers.schemas import NoticeOut


router = APIRouter()


@router.get("/notifications", response_model=list[NoticeOut])
async def notifications(drain: bool = True, ctx: DashboardContext = Depends(get_context)) -> list[NoticeOut]:
    notices = ctx.notifier.drain() if drain else ctx.notifier.peek()
    return [NoticeOut(**notice.as_dict()) for notice in notices]
