from fastapi import APIRouter, Depends

from procurement.handoff.channel import HandoffChannel, get_handoff_channel

router = APIRouter()


@router.get("/")
def pending_handoff(channel: HandoffChannel = Depends(get_handoff_channel)):
    """Order waiting to be received, without consuming it."""
    return {"po_id": channel.peek()}


@router.delete("/")
def clear_handoff(channel: HandoffChannel = Depends(get_handoff_channel)):
    channel.clear()
    return {"message": "Handoff cleared"}
