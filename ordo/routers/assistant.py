from fastapi import APIRouter, Depends

from ordo.deps import get_assistant
from ordo.schemas.assistant import ChatIn, ChatOut
from ordo.services.assistant import Assistant

router = APIRouter(prefix="/assistant", tags=["assistant"])


@router.post("/chat", response_model=ChatOut)
async def chat(body: ChatIn, assistant: Assistant = Depends(get_assistant)):
    return ChatOut(reply=await assistant.reply(body.history, body.message))
